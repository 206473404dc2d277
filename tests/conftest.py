"""
Shared fixtures: settings reset, in-memory session, and a fake REST backend
built on httpx.MockTransport.
"""

import json
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest
import pytest_asyncio

from pawmarket.config import settings
from pawmarket.notifications import Notifier
from pawmarket.session import SessionStore, Navigator, AuthContext
from pawmarket.utils.api_clients import ApiClient

API_BASE = "http://api.test/api"

Handler = Union[Callable[[httpx.Request], httpx.Response], Any]


class FakeBackend:
    """
    Route table for httpx.MockTransport.

    Routes are keyed by ``(METHOD, path)`` where ``path`` is relative to the
    API base. A value may be a JSON body, a ``(status, body)`` tuple, an
    exception instance to raise, or a callable taking the request.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Handler] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, response: Handler) -> None:
        self.routes[(method.upper(), path)] = response

    def calls(self, method: Optional[str] = None, path: Optional[str] = None) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if (method is None or r.method == method.upper())
            and (path is None or self._path(r) == path)
        ]

    @staticmethod
    def _path(request: httpx.Request) -> str:
        return request.url.path[len("/api"):] or "/"

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, self._path(request)))
        if handler is None:
            return httpx.Response(404, json={"message": "Not found"})
        if isinstance(handler, Exception):
            raise handler
        if callable(handler):
            return handler(request)
        if isinstance(handler, tuple):
            status, body = handler
            return httpx.Response(status, json=body)
        return httpx.Response(200, json=handler)


def request_json(request: httpx.Request) -> Any:
    return json.loads(request.content or b"null")


def make_pet(pet_id: str, **fields) -> Dict[str, Any]:
    """Raw pet record the way the server sends it."""
    record = {
        "_id": pet_id,
        "name": f"Pet {pet_id}",
        "breed": "Mixed",
        "category": "dog",
        "age": 2,
        "gender": "male",
        "size": "medium",
        "location": "Austin, TX",
        "description": "A very good companion animal.",
        "status": "available",
        "likes": [],
        "photos": [f"/uploads/{pet_id}.jpg"],
    }
    record.update(fields)
    return record


@pytest.fixture(autouse=True)
def reset_settings():
    """Keep tests independent of the environment and of each other."""
    saved = settings.model_dump()
    settings.api_base_url = API_BASE
    settings.session_file = None
    settings.page_size = 12
    settings.featured_limit = 8
    yield settings
    for key, value in saved.items():
        setattr(settings, key, value)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def session():
    return SessionStore(None)


@pytest.fixture
def navigator():
    return Navigator()


@pytest.fixture
def notifier():
    return Notifier()


@pytest_asyncio.fixture
async def api_client(backend, session, navigator):
    client = ApiClient(
        session=session,
        navigator=navigator,
        base_url=API_BASE,
        transport=httpx.MockTransport(backend),
    )
    yield client
    await client.aclose()


@pytest.fixture
def auth(api_client, session, navigator, notifier):
    return AuthContext(api_client, session, navigator, notifier)


@pytest.fixture
def logged_in(auth, session):
    """Session of a regular user ``u1``."""
    session.set("token", "token-123")
    session.set("role", "user")
    session.set("user", {"_id": "u1", "name": "Alice", "email": "alice@example.com"})
    return auth


@pytest.fixture
def logged_in_admin(auth, session):
    session.set("token", "admin-token")
    session.set("role", "admin")
    session.set("user", {"_id": "admin1", "name": "Root", "email": "root@example.com", "role": "admin"})
    return auth
