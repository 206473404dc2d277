"""
Admin dashboard.
"""

import asyncio
from typing import Any, Dict, List, Optional
from loguru import logger

from ..notifications import Notifier
from ..schemas.pet_data import Pet
from ..schemas.user_profile import User
from ..utils.api_clients import ApiClient, ApiError, AdminAPI


class AdminDashboard:
    """Users, pets and site stats; only usable by admins."""

    def __init__(self, client: ApiClient, auth, notifier: Optional[Notifier] = None):
        self.api = AdminAPI(client)
        self.auth = auth
        self.notifier = notifier or Notifier()
        self.users: List[User] = []
        self.pets: List[Pet] = []
        self.stats: Dict[str, Any] = {}

    def _allowed(self) -> bool:
        if self.auth and self.auth.is_admin:
            return True
        self.notifier.error("Admin access required")
        if self.auth:
            self.auth.guard("/admin")
        return False

    async def load(self) -> bool:
        if not self._allowed():
            return False
        results = await asyncio.gather(
            self.api.get_users(),
            self.api.get_pets(),
            self.api.get_stats(),
            return_exceptions=True,
        )
        for name, result in zip(("users", "pets", "stats"), results):
            if isinstance(result, ApiError):
                logger.error(f"Failed to load admin {name}: {result}")
                self.notifier.error(f"Failed to load {name}")
            elif isinstance(result, BaseException):
                raise result
            else:
                setattr(self, name, result)
        return True

    async def delete_user(self, user_id: str) -> bool:
        if not self._allowed():
            return False
        try:
            await self.api.delete_user(user_id)
        except ApiError as e:
            logger.error(f"Failed to delete user {user_id}: {e}")
            self.notifier.error(e.message or "Failed to delete user")
            return False
        self.users = [user for user in self.users if user.id != user_id]
        self.notifier.success("User deleted successfully")
        return True

    async def delete_pet(self, pet_id: str) -> bool:
        if not self._allowed():
            return False
        try:
            await self.api.delete_pet(pet_id)
        except ApiError as e:
            logger.error(f"Failed to delete pet {pet_id}: {e}")
            self.notifier.error(e.message or "Failed to delete pet")
            return False
        self.pets = [pet for pet in self.pets if pet.id != pet_id]
        self.notifier.success("Pet deleted successfully")
        return True
