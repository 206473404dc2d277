"""
Pet detail, likes and favorites views.
"""

from typing import List, Optional
from loguru import logger

from ..config import settings
from ..notifications import Notifier
from ..schemas.pet_data import Pet, LikeState, PetReport
from ..utils.api_clients import ApiClient, ApiError, PetAPI


class LikeToggle:
    """Optimistic like/unlike for a single pet."""

    def __init__(self, client: ApiClient, auth, notifier: Optional[Notifier] = None):
        self.api = PetAPI(client)
        self.auth = auth
        self.notifier = notifier or Notifier()

    async def toggle(self, state: LikeState) -> LikeState:
        """
        Flip the like state immediately, then reconcile with the server.

        The state is changed in place before the request goes out and is
        restored if the request fails.

        Args:
            state: Like state of the pet card

        Returns:
            The same ``state`` object
        """
        if not (self.auth and self.auth.is_authenticated):
            self.notifier.error("Please login to like pets")
            return state

        previous = (state.is_liked, state.like_count)
        state.is_liked = not state.is_liked
        state.like_count = max(0, state.like_count + (1 if state.is_liked else -1))

        try:
            result = await self.api.toggle_like(state.pet_id)
        except ApiError as e:
            logger.error(f"Failed to toggle like on {state.pet_id}: {e}")
            state.is_liked, state.like_count = previous
            server_message = e.data.get("message") if isinstance(e.data, dict) else None
            self.notifier.error(server_message or "Failed to update like status")
            return state

        state.is_liked = result.liked
        state.like_count = result.likes
        return state


class PetDetailView:
    """A single pet with its similar listings."""

    def __init__(self, client: ApiClient, auth, notifier: Optional[Notifier] = None):
        self.api = PetAPI(client)
        self.auth = auth
        self.notifier = notifier or Notifier()
        self.likes = LikeToggle(client, auth, self.notifier)

        self.pet: Optional[Pet] = None
        self.similar_pets: List[Pet] = []
        self.like_state: Optional[LikeState] = None
        self.loading = False

    async def load(self, pet_id: str) -> Optional[Pet]:
        self.loading = True
        try:
            detail = await self.api.get_pet(pet_id)
        except ApiError as e:
            logger.error(f"Error loading pet {pet_id}: {e}")
            self.pet = None
            self.similar_pets = []
            self.like_state = None
            self.notifier.error("Pet not found" if e.status == 404 else "Failed to load pet details")
            return None
        finally:
            self.loading = False

        self.pet = detail.pet
        self.similar_pets = detail.similar_pets
        self.like_state = LikeState.from_pet(detail.pet, self.auth.user_id if self.auth else None)
        return self.pet

    @property
    def is_owner(self) -> bool:
        return bool(self.pet and self.auth and self.auth.user_id and self.pet.owner_id == self.auth.user_id)

    @property
    def can_manage(self) -> bool:
        """Owners and admins may edit or delete the listing."""
        return self.is_owner or bool(self.auth and self.auth.is_admin)

    async def like(self) -> Optional[LikeState]:
        if self.like_state is None:
            return None
        return await self.likes.toggle(self.like_state)

    async def adopt(self) -> bool:
        if self.pet is None:
            return False
        if not (self.auth and self.auth.is_authenticated):
            self.notifier.error("Please login to adopt pets")
            if self.auth:
                self.auth.navigator.navigate("/login")
            return False
        if self.is_owner:
            self.notifier.error("You cannot adopt your own pet")
            return False

        try:
            adopted = await self.api.adopt_pet(self.pet.id)
        except ApiError as e:
            logger.error(f"Adoption request failed for {self.pet.id}: {e}")
            self.notifier.error(e.message or "Failed to send adoption request")
            return False

        if adopted is not None:
            self.pet = adopted
        self.notifier.success("Adoption request sent successfully!")
        return True

    async def delete(self) -> bool:
        if self.pet is None:
            return False
        if not self.can_manage:
            self.notifier.error("You can only delete your own pets")
            return False
        try:
            await self.api.delete_pet(self.pet.id)
        except ApiError as e:
            logger.error(f"Failed to delete pet {self.pet.id}: {e}")
            self.notifier.error("Failed to delete pet")
            return False

        logger.info(f"Deleted pet {self.pet.id}")
        self.notifier.success("Pet deleted successfully")
        self.pet = None
        self.auth.navigator.navigate("/")
        return True

    async def report(self, reason: str, details: Optional[str] = None) -> bool:
        if self.pet is None:
            return False
        if not (reason or "").strip():
            self.notifier.error("Please select a reason for reporting")
            return False
        try:
            message = await self.api.report_pet(self.pet.id, PetReport(reason=reason.strip(), details=details))
        except ApiError as e:
            logger.error(f"Failed to report pet {self.pet.id}: {e}")
            self.notifier.error(e.message or "Failed to report pet")
            return False
        self.notifier.success(message)
        return True

    def share_link(self) -> Optional[str]:
        if self.pet is None:
            return None
        return f"{settings.app_base_url.rstrip('/')}/pets/{self.pet.id}"


class FavoritesView:
    """Pets the current user has liked."""

    def __init__(self, client: ApiClient, auth, notifier: Optional[Notifier] = None):
        self.api = PetAPI(client)
        self.auth = auth
        self.notifier = notifier or Notifier()
        self.favorites: List[Pet] = []
        self.loading = False

    async def load(self) -> List[Pet]:
        self.loading = True
        try:
            self.favorites = await self.api.get_favorite_pets()
        except ApiError as e:
            logger.error(f"Error fetching favorites: {e}")
            self.favorites = []
            self.notifier.error("Failed to fetch favorites")
        finally:
            self.loading = False
        return self.favorites

    async def unlike(self, pet_id: str) -> bool:
        """Unlike a favorite; it leaves the list once the server confirms."""
        try:
            result = await self.api.toggle_like(pet_id)
        except ApiError as e:
            logger.error(f"Failed to unlike {pet_id}: {e}")
            self.notifier.error("Failed to update like status")
            return False

        if not result.liked:
            self.favorites = [pet for pet in self.favorites if pet.id != pet_id]
            self.notifier.success("Removed from favorites")
            return True
        return False
