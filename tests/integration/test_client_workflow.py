"""
Integration tests running full user workflows through PawMarketClient
against a fake REST backend.
"""

import httpx
import pytest
import pytest_asyncio

from pawmarket.client import PawMarketClient, build_parser, run_command, _print_toasts
from pawmarket.session import SessionStore

from conftest import API_BASE, make_pet, request_json


@pytest.fixture
def marketplace(backend):
    """A small marketplace with a handful of pets and groups."""
    pets = [make_pet(i, name=name) for i, name in (("a", "Biscuit"), ("b", "Luna"), ("c", "Rex"), ("d", "Mochi"))]
    liked = {"a": False}

    def like(request):
        liked["a"] = not liked["a"]
        return httpx.Response(200, json={"liked": liked["a"], "likes": 1 if liked["a"] else 0})

    backend.add("POST", "/auth/login", {
        "token": "jwt-abc",
        "role": "user",
        "user": {"id": "u1", "name": "Alice", "email": "alice@example.com"},
    })
    backend.add("GET", "/auth/profile", {"_id": "u1", "name": "Alice", "email": "alice@example.com"})
    backend.add("GET", "/pets", {"pets": pets, "pagination": {"total": 4, "page": 1, "pages": 1}})
    backend.add("GET", "/pets/trending", [pets[1]])
    backend.add("GET", "/pets/recommended", [pets[3]])
    backend.add("GET", "/pets/stats", {"totalPets": 4})
    backend.add("GET", "/pets/insights", {"adoptedCount": 0})
    backend.add("GET", "/pets/a", {"pet": pets[0], "similarPets": [pets[2]]})
    backend.add("POST", "/pets/a/like", like)
    backend.add("GET", "/pets/user/favorites", lambda request: httpx.Response(
        200, json=[pets[0]] if liked["a"] else []
    ))
    backend.add("GET", "/groups", {
        "groups": [{"_id": "g1", "name": "Austin Dogs", "memberCount": 12, "location": {"city": "Austin"}}],
        "pagination": {"total": 1, "page": 1, "pages": 1},
    })
    return backend


@pytest_asyncio.fixture
async def client(marketplace, tmp_path):
    session = SessionStore(tmp_path / "session.json")
    async with PawMarketClient(
        session=session,
        base_url=API_BASE,
        transport=httpx.MockTransport(marketplace),
    ) as client:
        yield client


class TestClientWorkflow:
    """End-to-end flows through the client facade."""

    @pytest.mark.asyncio
    async def test_guest_browse(self, client, marketplace):
        feed = client.feed()

        await feed.refresh()

        # Guests get trending but no recommendations
        assert [p.id for p in feed.trending] == ["b"]
        assert feed.recommended == []
        assert [p.id for p in feed.main_grid] == ["a", "c", "d"]
        assert marketplace.calls(path="/pets/recommended") == []

    @pytest.mark.asyncio
    async def test_login_like_and_favorites(self, client, marketplace, tmp_path):
        assert await client.auth.login("alice@example.com", "Secret1") is True

        # Session survives a restart
        assert SessionStore(tmp_path / "session.json").get("token") == "jwt-abc"

        feed = client.feed()
        await feed.refresh()
        assert [p.id for p in feed.main_grid] == ["a", "c"]

        detail = client.pet_detail()
        await detail.load("a")
        state = await detail.like()
        assert state.is_liked is True
        assert state.like_count == 1
        assert marketplace.calls("POST", "/pets/a/like")[0].headers["Authorization"] == "Bearer jwt-abc"

        favorites = client.favorites()
        assert [p.id for p in await favorites.load()] == ["a"]
        assert await favorites.unlike("a") is True
        assert favorites.favorites == []

    @pytest.mark.asyncio
    async def test_expired_session_logs_out(self, client, marketplace):
        await client.auth.login("alice@example.com", "Secret1")
        marketplace.add("GET", "/pets/user/favorites", (401, {"message": "Token expired"}))
        client.navigator.navigate("/favorites")

        favorites = client.favorites()
        await favorites.load()

        assert not client.auth.is_authenticated
        assert client.auth.user is None
        assert client.navigator.current_path == "/login"
        assert client.auth.guard("/favorites") == "/login"


class TestCommandLine:
    """Tests for the CLI command runner."""

    @pytest.mark.asyncio
    async def test_browse_command(self, client, capsys):
        args = build_parser().parse_args(["browse", "--search", "bisc"])

        code = await run_command(args, client)

        out = capsys.readouterr().out
        assert code == 0
        assert "Biscuit (dog) [a]" in out
        assert "Rex" not in out

    @pytest.mark.asyncio
    async def test_login_whoami_logout(self, client, capsys, marketplace):
        parser = build_parser()

        assert await run_command(parser.parse_args(["login", "alice@example.com", "--password", "Secret1"]), client) == 0
        assert request_json(marketplace.calls("POST", "/auth/login")[0])["password"] == "Secret1"
        assert await run_command(parser.parse_args(["whoami"]), client) == 0
        assert await run_command(parser.parse_args(["logout"]), client) == 0
        assert await run_command(parser.parse_args(["whoami"]), client) == 1

        out = capsys.readouterr().out
        assert "Alice <alice@example.com> (user)" in out
        assert "Not logged in" in out

    @pytest.mark.asyncio
    async def test_favorites_requires_login(self, client, capsys):
        code = await run_command(build_parser().parse_args(["favorites"]), client)

        assert code == 1
        assert "Please login first" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_groups_command_and_toasts(self, client, capsys):
        code = await run_command(build_parser().parse_args(["groups"]), client)
        client.notifier.success("Done")
        _print_toasts(client.notifier)

        out = capsys.readouterr().out
        assert code == 0
        assert "Austin Dogs [g1] 12 members | Austin" in out
        assert "✔ Done" in out
        assert client.notifier.toasts == []

    @pytest.mark.asyncio
    async def test_like_requires_login(self, client, capsys, marketplace):
        code = await run_command(build_parser().parse_args(["like", "a"]), client)

        assert code == 1
        assert "Please login first" in capsys.readouterr().out
        assert marketplace.calls("POST", "/pets/a/like") == []
