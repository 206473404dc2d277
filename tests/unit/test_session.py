"""
Unit tests for session storage, route gating and the auth context.
"""

import pytest

from pawmarket.session import SessionStore, Navigator, resolve_route, guard_route

from conftest import request_json


class TestSessionStore:
    """Tests for SessionStore persistence."""

    def test_in_memory(self):
        store = SessionStore(None)
        store.set("token", "t")

        assert store.get("token") == "t"
        store.remove("token")
        assert store.get("token") is None

    def test_persists_to_file(self, tmp_path):
        path = tmp_path / "nested" / "session.json"
        store = SessionStore(path)
        store.set("token", "t")
        store.set("user", {"_id": "u1"})

        reloaded = SessionStore(path)

        assert reloaded.get("token") == "t"
        assert reloaded.get("user") == {"_id": "u1"}

    def test_clear(self, tmp_path):
        path = tmp_path / "session.json"
        store = SessionStore(path)
        store.set("token", "t")
        store.clear()

        assert SessionStore(path).get("token") is None

    def test_corrupt_file_is_ignored(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{not json")

        assert SessionStore(path).get("token") is None


class TestNavigator:

    def test_navigate_and_back(self):
        nav = Navigator()
        nav.navigate("/groups")
        nav.navigate("/groups/g1")

        assert nav.back() == "/groups"
        assert nav.current_path == "/groups"

    def test_replace(self):
        nav = Navigator()
        nav.navigate("/dashboard")
        nav.navigate("/login", replace=True)

        assert nav.history == ["/", "/login"]


class TestRouteGating:
    """Tests for route classification and redirects."""

    @pytest.mark.parametrize("path,kind", [
        ("/", "public"),
        ("/login", "public"),
        ("/pets/abc123", "public"),
        ("/groups", "public"),
        ("/groups/g1", "public"),
        ("/terms", "public"),
        ("/post-pet", "protected"),
        ("/edit-pet/abc", "protected"),
        ("/groups/g1/manage", "protected"),
        ("/favorites", "protected"),
        ("/admin", "admin"),
        ("/nowhere", None),
        ("/pets", None),
    ])
    def test_resolve_route(self, path, kind):
        assert resolve_route(path) == kind

    def test_protected_requires_token(self):
        assert guard_route("/dashboard", None, None) == "/login"
        assert guard_route("/dashboard", "t", "user") == "/dashboard"

    def test_admin_requires_admin_role(self):
        assert guard_route("/admin", "t", "user") == "/"
        assert guard_route("/admin", "t", "admin") == "/admin"
        assert guard_route("/admin", None, None) == "/login"

    def test_unknown_redirects_home(self):
        assert guard_route("/does/not/exist", "t", "admin") == "/"

    def test_public_passes_and_ignores_query(self):
        assert guard_route("/pets/p1?tab=photos", None, None) == "/pets/p1?tab=photos"


class TestAuthContext:
    """Tests for AuthContext login/logout/register."""

    @pytest.mark.asyncio
    async def test_login_stores_session(self, auth, backend, session, notifier, navigator):
        backend.add("POST", "/auth/login", {
            "token": "jwt",
            "role": "user",
            "user": {"id": "u1", "name": "Alice", "email": "alice@example.com"},
        })

        assert await auth.login(" alice@example.com ", "Secret1") is True

        assert request_json(backend.requests[0]) == {"email": "alice@example.com", "password": "Secret1"}
        assert session.get("token") == "jwt"
        assert session.get("role") == "user"
        assert auth.is_authenticated
        assert not auth.is_admin
        assert auth.user.id == "u1"
        assert auth.user_id == "u1"
        assert notifier.messages() == ["Welcome back, Alice!"]
        assert navigator.current_path == "/"

    @pytest.mark.asyncio
    async def test_admin_login_goes_to_admin(self, auth, backend, navigator):
        backend.add("POST", "/auth/login", {
            "token": "jwt", "role": "admin", "user": {"id": "a1", "name": "Root"},
        })

        await auth.login("root@example.com", "pw")

        assert auth.is_admin
        assert navigator.current_path == "/admin"

    @pytest.mark.asyncio
    async def test_failed_login(self, auth, backend, session, notifier, navigator):
        navigator.navigate("/login")
        backend.add("POST", "/auth/login", (401, {"message": "Invalid credentials"}))

        assert await auth.login("a@b.co", "bad") is False

        assert session.get("token") is None
        assert notifier.messages() == ["Invalid credentials"]

    @pytest.mark.asyncio
    async def test_logout(self, logged_in, session, navigator):
        logged_in.logout()

        assert session.get("token") is None
        assert session.get("user") is None
        assert session.get("role") is None
        assert logged_in.user is None
        assert navigator.current_path == "/login"

    @pytest.mark.asyncio
    async def test_register_never_sends_confirmation(self, auth, backend, navigator, notifier):
        backend.add("POST", "/auth/register", (201, {"message": "User registered successfully"}))

        ok = await auth.register({
            "name": "Bob Smith",
            "email": "bob@example.com",
            "phone": "+1 (512) 555-0199",
            "password": "Secret123",
            "confirm_password": "Secret123",
            "accept_terms": True,
        })

        assert ok is True
        body = request_json(backend.requests[0])
        assert body["email"] == "bob@example.com"
        assert "confirmPassword" not in body
        assert "acceptTerms" not in body
        assert navigator.current_path == "/login"
        assert notifier.messages() == ["User registered successfully"]

    @pytest.mark.asyncio
    async def test_register_invalid_form_sends_nothing(self, auth, backend, notifier):
        ok = await auth.register({
            "name": "Bob",
            "email": "bob@example.com",
            "password": "Secret123",
            "confirm_password": "Different123",
            "accept_terms": True,
        })

        assert ok is False
        assert backend.requests == []
        assert notifier.messages() == ["Passwords do not match"]

    @pytest.mark.asyncio
    async def test_refresh_profile(self, logged_in, backend, session):
        backend.add("GET", "/auth/profile", {"_id": "u1", "name": "Alice B", "email": "alice@example.com"})

        user = await logged_in.refresh_profile()

        assert user.name == "Alice B"
        assert session.get("user")["name"] == "Alice B"

    @pytest.mark.asyncio
    async def test_guard_navigates(self, auth, navigator):
        assert auth.guard("/favorites") == "/login"
        assert navigator.current_path == "/login"
