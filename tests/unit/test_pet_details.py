"""
Unit tests for likes, pet details and favorites.
"""

import httpx
import pytest

from pawmarket.schemas.pet_data import LikeState, Pet
from pawmarket.views.pet_details import LikeToggle, PetDetailView, FavoritesView

from conftest import make_pet, request_json


class TestLikeToggle:
    """Tests for the optimistic like toggle."""

    @pytest.mark.asyncio
    async def test_requires_login(self, api_client, auth, notifier, backend):
        state = LikeState(pet_id="p1", is_liked=False, like_count=3)

        await LikeToggle(api_client, auth, notifier).toggle(state)

        assert state.is_liked is False
        assert state.like_count == 3
        assert backend.requests == []
        assert notifier.messages() == ["Please login to like pets"]

    @pytest.mark.asyncio
    async def test_flip_is_visible_before_response(self, api_client, logged_in, notifier, backend):
        """The state is already flipped while the request is in flight."""
        state = LikeState(pet_id="p1", is_liked=False, like_count=3)
        seen = {}

        def handler(request):
            seen["is_liked"] = state.is_liked
            seen["like_count"] = state.like_count
            return httpx.Response(200, json={"liked": True, "likes": 10, "message": "Pet liked"})

        backend.add("POST", "/pets/p1/like", handler)

        await LikeToggle(api_client, logged_in, notifier).toggle(state)

        assert seen == {"is_liked": True, "like_count": 4}
        # Reconciled with the server's count
        assert state.is_liked is True
        assert state.like_count == 10

    @pytest.mark.asyncio
    async def test_reverts_on_failure(self, api_client, logged_in, notifier, backend):
        state = LikeState(pet_id="p1", is_liked=True, like_count=1)
        backend.add("POST", "/pets/p1/like", (500, {}))

        await LikeToggle(api_client, logged_in, notifier).toggle(state)

        assert state.is_liked is True
        assert state.like_count == 1
        assert notifier.messages() == ["Failed to update like status"]

    @pytest.mark.asyncio
    async def test_reverts_on_malformed_response(self, api_client, logged_in, notifier, backend):
        state = LikeState(pet_id="p1", is_liked=False, like_count=3)
        backend.add("POST", "/pets/p1/like", lambda request: httpx.Response(200))

        await LikeToggle(api_client, logged_in, notifier).toggle(state)

        assert state.is_liked is False
        assert state.like_count == 3
        assert notifier.messages() == ["Failed to update like status"]

    @pytest.mark.asyncio
    async def test_reverts_on_network_error(self, api_client, logged_in, notifier, backend):
        state = LikeState(pet_id="p1", is_liked=False, like_count=0)
        backend.add("POST", "/pets/p1/like", httpx.ReadTimeout("slow"))

        await LikeToggle(api_client, logged_in, notifier).toggle(state)

        assert (state.is_liked, state.like_count) == (False, 0)

    @pytest.mark.asyncio
    async def test_server_message_used(self, api_client, logged_in, notifier, backend):
        state = LikeState(pet_id="p1")
        backend.add("POST", "/pets/p1/like", (404, {"message": "Pet not found"}))

        await LikeToggle(api_client, logged_in, notifier).toggle(state)

        assert notifier.messages() == ["Pet not found"]

    @pytest.mark.asyncio
    async def test_unlike_never_below_zero(self, api_client, logged_in, notifier, backend):
        state = LikeState(pet_id="p1", is_liked=True, like_count=0)
        seen = {}

        def handler(request):
            seen["like_count"] = state.like_count
            return httpx.Response(200, json={"liked": False, "likes": 0})

        backend.add("POST", "/pets/p1/like", handler)

        await LikeToggle(api_client, logged_in, notifier).toggle(state)

        assert seen["like_count"] == 0
        assert state.is_liked is False

    def test_like_state_from_pet(self):
        pet = Pet.model_validate(make_pet("p1", likes=["u1", "u2"]))

        state = LikeState.from_pet(pet, "u2")

        assert state.is_liked is True
        assert state.like_count == 2


class TestPetDetailView:
    """Tests for PetDetailView."""

    @pytest.mark.asyncio
    async def test_load(self, api_client, logged_in, notifier, backend):
        backend.add("GET", "/pets/p1", {
            "pet": make_pet("p1", isLiked=True, likeCount=7),
            "similarPets": [make_pet("p2")],
        })
        view = PetDetailView(api_client, logged_in, notifier)

        pet = await view.load("p1")

        assert pet.id == "p1"
        assert view.like_state.is_liked is True
        assert view.like_state.like_count == 7
        assert [p.id for p in view.similar_pets] == ["p2"]

    @pytest.mark.asyncio
    async def test_load_not_found(self, api_client, auth, notifier, backend):
        backend.add("GET", "/pets/missing", (404, {"message": "Pet not found"}))
        view = PetDetailView(api_client, auth, notifier)

        assert await view.load("missing") is None
        assert notifier.messages() == ["Pet not found"]

    @pytest.mark.asyncio
    async def test_cannot_adopt_own_pet(self, api_client, logged_in, notifier, backend):
        backend.add("GET", "/pets/p1", {"pet": make_pet("p1", postedBy={"_id": "u1", "name": "Alice"})})
        view = PetDetailView(api_client, logged_in, notifier)
        await view.load("p1")

        assert await view.adopt() is False
        assert notifier.messages() == ["You cannot adopt your own pet"]
        assert backend.calls("POST") == []

    @pytest.mark.asyncio
    async def test_adopt(self, api_client, logged_in, notifier, backend):
        backend.add("GET", "/pets/p1", {"pet": make_pet("p1", postedBy="someone-else")})
        backend.add("POST", "/pets/adopt", {"message": "ok", "pet": make_pet("p1", status="pending")})
        view = PetDetailView(api_client, logged_in, notifier)
        await view.load("p1")

        assert await view.adopt() is True
        assert request_json(backend.calls("POST", "/pets/adopt")[0]) == {"petId": "p1"}
        assert view.pet.status.value == "pending"
        assert "Adoption request sent successfully!" in notifier.messages()

    @pytest.mark.asyncio
    async def test_adopt_requires_login(self, api_client, auth, notifier, backend, navigator):
        backend.add("GET", "/pets/p1", {"pet": make_pet("p1")})
        view = PetDetailView(api_client, auth, notifier)
        await view.load("p1")

        assert await view.adopt() is False
        assert notifier.messages() == ["Please login to adopt pets"]
        assert navigator.current_path == "/login"

    @pytest.mark.asyncio
    async def test_owner_can_delete(self, api_client, logged_in, notifier, backend, navigator):
        backend.add("GET", "/pets/p1", {"pet": make_pet("p1", postedBy="u1")})
        backend.add("DELETE", "/pets/p1", {"message": "Pet deleted successfully", "petId": "p1"})
        view = PetDetailView(api_client, logged_in, notifier)
        await view.load("p1")
        navigator.navigate("/pets/p1")

        assert await view.delete() is True
        assert navigator.current_path == "/"
        assert view.pet is None

    @pytest.mark.asyncio
    async def test_stranger_cannot_delete(self, api_client, logged_in, notifier, backend):
        backend.add("GET", "/pets/p1", {"pet": make_pet("p1", postedBy="u2")})
        view = PetDetailView(api_client, logged_in, notifier)
        await view.load("p1")

        assert await view.delete() is False
        assert backend.calls("DELETE") == []

    @pytest.mark.asyncio
    async def test_delete_without_pet_is_quiet(self, api_client, logged_in, notifier, backend):
        view = PetDetailView(api_client, logged_in, notifier)

        assert await view.delete() is False
        assert notifier.messages() == []
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_report_requires_reason(self, api_client, logged_in, notifier, backend):
        backend.add("GET", "/pets/p1", {"pet": make_pet("p1")})
        backend.add("POST", "/pets/p1/report", {"message": "Pet reported successfully"})
        view = PetDetailView(api_client, logged_in, notifier)
        await view.load("p1")

        assert await view.report("  ") is False
        assert await view.report("scam", "asks for a deposit") is True
        assert request_json(backend.calls("POST", "/pets/p1/report")[0]) == {
            "reason": "scam", "details": "asks for a deposit",
        }

    @pytest.mark.asyncio
    async def test_share_link(self, api_client, auth, backend, reset_settings):
        reset_settings.app_base_url = "https://paws.example/"
        backend.add("GET", "/pets/p1", {"pet": make_pet("p1")})
        view = PetDetailView(api_client, auth)
        await view.load("p1")

        assert view.share_link() == "https://paws.example/pets/p1"


class TestFavoritesView:
    """Tests for FavoritesView."""

    @pytest.mark.asyncio
    async def test_unlike_removes_after_confirmation(self, api_client, logged_in, notifier, backend):
        backend.add("GET", "/pets/user/favorites", [make_pet("a"), make_pet("b")])
        backend.add("POST", "/pets/a/like", {"liked": False, "likes": 0})
        view = FavoritesView(api_client, logged_in, notifier)
        await view.load()

        assert await view.unlike("a") is True
        assert [p.id for p in view.favorites] == ["b"]

    @pytest.mark.asyncio
    async def test_unlike_failure_keeps_pet(self, api_client, logged_in, notifier, backend):
        backend.add("GET", "/pets/user/favorites", [make_pet("a")])
        backend.add("POST", "/pets/a/like", (500, {}))
        view = FavoritesView(api_client, logged_in, notifier)
        await view.load()

        assert await view.unlike("a") is False
        assert [p.id for p in view.favorites] == ["a"]

    @pytest.mark.asyncio
    async def test_load_failure(self, api_client, logged_in, notifier, backend):
        backend.add("GET", "/pets/user/favorites", (500, {}))
        view = FavoritesView(api_client, logged_in, notifier)

        assert await view.load() == []
        assert notifier.messages() == ["Failed to fetch favorites"]
