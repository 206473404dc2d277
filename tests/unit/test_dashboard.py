"""
Unit tests for the user dashboard.
"""

import httpx
import pytest

from pawmarket.views.dashboard import UserDashboard

from conftest import make_pet


class TestUserDashboard:
    """Tests for UserDashboard."""

    @pytest.fixture
    def routes(self, backend):
        backend.add("GET", "/pets/user/favorites", [make_pet("f1"), make_pet("f2")])
        backend.add("GET", "/pets/user/posted", [
            make_pet("p1", likes=["a", "b"]),
            make_pet("p2", status="adopted", likes=["c"]),
        ])
        backend.add("GET", "/pets/user/adopted", [make_pet("ad1")])
        backend.add("GET", "/pets/recommended", [make_pet(str(i)) for i in range(12)])
        backend.add("GET", "/pets/stats", {"totalPets": 40, "availablePets": 30})
        backend.add("GET", "/pets/insights", {"adoptedCount": 10})
        return backend

    @pytest.mark.asyncio
    async def test_load_all_sections(self, api_client, logged_in, routes):
        dashboard = UserDashboard(api_client, logged_in)

        await dashboard.load()

        assert [p.id for p in dashboard.favorites] == ["f1", "f2"]
        assert len(dashboard.section("recommended")) == 8
        assert dashboard.nearby == []
        assert not any(dashboard.loading.values())
        assert routes.calls(path="/pets/nearby") == []

    @pytest.mark.asyncio
    async def test_failed_section_is_silent(self, api_client, logged_in, routes, notifier):
        routes.add("GET", "/pets/user/adopted", (500, {}))
        routes.add("GET", "/pets/nearby", (503, {}))
        dashboard = UserDashboard(api_client, logged_in)

        await dashboard.load(lat=30.0, lon=-97.0)

        assert dashboard.adopted == []
        assert dashboard.nearby == []
        assert len(dashboard.posted) == 2
        assert notifier.messages() == []

    @pytest.mark.asyncio
    async def test_malformed_section_is_silent(self, api_client, logged_in, routes):
        routes.add("GET", "/pets/stats", ["unexpected"])
        routes.add("GET", "/pets/user/favorites", lambda request: httpx.Response(200, text="not json"))
        dashboard = UserDashboard(api_client, logged_in)

        await dashboard.load()

        assert dashboard.stats is None
        assert dashboard.favorites == []
        assert [p.id for p in dashboard.adopted] == ["ad1"]
        assert not any(dashboard.loading.values())

    @pytest.mark.asyncio
    async def test_metrics(self, api_client, logged_in, routes):
        dashboard = UserDashboard(api_client, logged_in)
        await dashboard.load()

        metrics = dashboard.metrics()

        assert metrics["favorites"] == 2
        assert metrics["posted"] == 2
        assert metrics["available_posted"] == 1
        assert metrics["total_likes"] == 3
        assert metrics["marketplace_available"] == 30
        assert metrics["adopted_count"] == 10

    @pytest.mark.asyncio
    async def test_tabs_and_sections(self, api_client, logged_in):
        dashboard = UserDashboard(api_client, logged_in)

        dashboard.set_tab("pets")
        assert dashboard.tab == "pets"
        with pytest.raises(ValueError):
            dashboard.set_tab("settings")
        with pytest.raises(ValueError):
            dashboard.section("stats")
