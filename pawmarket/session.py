"""
Auth session state and route gating.

The session store plays the part of browser local storage: a small JSON
file holding ``token``, ``user`` and ``role`` between CLI runs.
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from loguru import logger
from pydantic import ValidationError

from .config import settings
from .notifications import Notifier
from .schemas.user_profile import User, Role, ProfileUpdate, RegistrationForm
from .utils.api_clients import ApiClient, ApiError, AuthAPI
from .utils.validators import validate_registration


class SessionStore:
    """Key/value store persisted as JSON; in-memory when ``path`` is None."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self._data: Dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        if not self.path or not self.path.exists():
            return
        try:
            self._data = json.loads(self.path.read_text(encoding="utf-8")) or {}
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            self._data = {}

    def _save(self) -> None:
        if not self.path:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._data, indent=2, default=str), encoding="utf-8")

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._save()

    def remove(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._save()

    def clear(self) -> None:
        self._data = {}
        self._save()

    def __contains__(self, key: str) -> bool:
        return key in self._data


class Navigator:
    """Current location plus history, standing in for the browser router."""

    def __init__(self, path: str = "/"):
        self.current_path = path
        self.history: List[str] = [path]

    def navigate(self, path: str, replace: bool = False) -> str:
        logger.debug(f"Navigate {self.current_path} -> {path}")
        if replace and self.history:
            self.history[-1] = path
        else:
            self.history.append(path)
        self.current_path = path
        return path

    def back(self) -> str:
        if len(self.history) > 1:
            self.history.pop()
        self.current_path = self.history[-1]
        return self.current_path


PUBLIC_ROUTES = [
    r"/",
    r"/login",
    r"/register",
    r"/about",
    r"/help",
    r"/privacy",
    r"/terms",
    r"/community",
    r"/pets/[^/]+",
    r"/groups",
    r"/groups/[^/]+",
]

PROTECTED_ROUTES = [
    r"/post-pet",
    r"/profile",
    r"/favorites",
    r"/dashboard",
    r"/account",
    r"/edit-pet/[^/]+",
    r"/groups/[^/]+/manage",
]

ADMIN_ROUTES = [
    r"/admin",
]


def _matches(path: str, patterns: List[str]) -> bool:
    return any(re.fullmatch(pattern, path) for pattern in patterns)


def resolve_route(path: str) -> Optional[str]:
    """
    Classify a path.

    Returns:
        ``"admin"``, ``"protected"``, ``"public"``, or None for unknown paths
    """
    path = path.split("?", 1)[0].rstrip("/") or "/"
    if _matches(path, ADMIN_ROUTES):
        return "admin"
    if _matches(path, PROTECTED_ROUTES):
        return "protected"
    if _matches(path, PUBLIC_ROUTES):
        return "public"
    return None


def guard_route(path: str, token: Optional[str], role: Optional[str]) -> str:
    """
    Return the path a visitor actually ends up on.

    Args:
        path: Requested path
        token: Session token, if any
        role: Session role, if any

    Returns:
        ``path`` when allowed, otherwise the redirect target
    """
    kind = resolve_route(path)
    if kind is None:
        return "/"
    if kind == "admin":
        if not token:
            return "/login"
        return path if role == Role.ADMIN.value else "/"
    if kind == "protected" and not token:
        return "/login"
    return path


class AuthContext:
    """Current user, token and role, with the auth operations that change them."""

    def __init__(
        self,
        client: ApiClient,
        session: SessionStore,
        navigator: Navigator,
        notifier: Optional[Notifier] = None,
    ):
        self.client = client
        self.session = session
        self.navigator = navigator
        self.notifier = notifier or Notifier()
        self.auth_api = AuthAPI(client)

    @property
    def token(self) -> Optional[str]:
        return self.session.get("token")

    @property
    def role(self) -> Optional[str]:
        return self.session.get("role")

    @property
    def user(self) -> Optional[User]:
        raw = self.session.get("user")
        if not raw:
            return None
        try:
            return User.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Stored user is invalid, ignoring it: {e}")
            return None

    @property
    def user_id(self) -> Optional[str]:
        user = self.user
        return user.id if user else None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.role == Role.ADMIN.value

    def _store_user(self, user: User) -> None:
        self.session.set("user", user.model_dump(by_alias=True, mode="json", exclude_none=True))

    async def login(self, email: str, password: str) -> bool:
        """
        Log in and persist the session.

        Returns:
            True on success; failures are reported as toasts
        """
        try:
            response = await self.auth_api.login(email.strip(), password)
        except ApiError as e:
            logger.error(f"Login failed for {email}: {e}")
            self.notifier.error(e.message or "Login failed")
            return False

        self.session.set("token", response.token)
        self.session.set("role", response.role.value)
        self._store_user(response.user)
        logger.info(f"Logged in as {response.user.email} ({response.role.value})")
        self.notifier.success(f"Welcome back, {response.user.name or 'friend'}!")
        self.navigator.navigate("/admin" if response.role == Role.ADMIN else "/")
        return True

    async def register(self, data: Union[Dict[str, Any], RegistrationForm]) -> bool:
        """Validate the sign-up form and create the account."""
        if isinstance(data, RegistrationForm):
            form = data
        else:
            is_valid, error, form = validate_registration(data)
            if not is_valid:
                self.notifier.error(error)
                return False

        try:
            message = await self.auth_api.register(form)
        except ApiError as e:
            logger.error(f"Registration failed: {e}")
            self.notifier.error(e.message or "Registration failed")
            return False

        self.notifier.success(message or "Registration successful! Please login.")
        self.navigator.navigate("/login")
        return True

    def logout(self) -> None:
        for key in ("token", "user", "role"):
            self.session.remove(key)
        logger.info("Logged out")
        self.navigator.navigate("/login")

    async def refresh_profile(self) -> Optional[User]:
        """Reload the current user from the server."""
        if not self.is_authenticated:
            return None
        try:
            user = await self.auth_api.get_current_user()
        except ApiError as e:
            logger.error(f"Failed to refresh profile: {e}")
            return self.user
        self._store_user(user)
        return user

    async def update_profile(self, update: ProfileUpdate) -> Optional[User]:
        try:
            user = await self.auth_api.update_profile(update)
        except ApiError as e:
            logger.error(f"Profile update failed: {e}")
            self.notifier.error(e.message or "Failed to update profile")
            return None
        self._store_user(user)
        self.notifier.success("Profile updated successfully!")
        return user

    def guard(self, path: str) -> str:
        """Navigate to ``path`` or to where the route gate redirects."""
        target = guard_route(path, self.token, self.role)
        if target != path:
            logger.info(f"Route {path} redirected to {target}")
        return self.navigator.navigate(target)


def default_session() -> SessionStore:
    """Session store at the configured location."""
    return SessionStore(settings.session_file)
