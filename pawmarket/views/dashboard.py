"""
User dashboard: the signed-in user's pets, favorites and suggestions.
"""

import asyncio
from typing import Any, Dict, List, Optional
from loguru import logger

from ..config import settings
from ..schemas.pet_data import Pet, PetStats
from ..utils.api_clients import ApiClient, ApiError, PetAPI

TABS = ("overview", "groups", "pets", "activity")

# Loading key -> attribute holding the section
SECTIONS = {
    "fav": "favorites",
    "post": "posted",
    "adopted": "adopted",
    "rec": "recommended",
    "stats": "stats",
    "insights": "insights",
    "nearby": "nearby",
}


class UserDashboard:
    """Independent sections loaded concurrently; a failed section stays empty."""

    def __init__(self, client: ApiClient, auth=None):
        self.api = PetAPI(client)
        self.auth = auth
        self.tab = "overview"

        self.favorites: List[Pet] = []
        self.posted: List[Pet] = []
        self.adopted: List[Pet] = []
        self.recommended: List[Pet] = []
        self.nearby: List[Pet] = []
        self.stats: Optional[PetStats] = None
        self.insights: Dict[str, Any] = {}
        self.loading: Dict[str, bool] = {key: False for key in SECTIONS}

    def set_tab(self, tab: str) -> None:
        if tab not in TABS:
            raise ValueError(f"Unknown tab: {tab}")
        self.tab = tab

    async def _load(self, key: str, loader) -> None:
        self.loading[key] = True
        try:
            setattr(self, SECTIONS[key], await loader())
        except ApiError as e:
            logger.warning(f"Dashboard section {key} failed: {e}")
        finally:
            self.loading[key] = False

    async def load(self, lat: Optional[float] = None, lon: Optional[float] = None) -> None:
        """Load every section at once."""
        tasks = [
            self._load("fav", self.api.get_favorite_pets),
            self._load("post", self.api.get_user_pets),
            self._load("adopted", self.api.get_adopted_pets),
            self._load("rec", self.api.get_recommended),
            self._load("stats", self.api.get_stats),
            self._load("insights", self.api.get_insights),
        ]
        if lat is not None and lon is not None:
            tasks.append(self._load("nearby", lambda: self.api.get_nearby(lat, lon)))
        await asyncio.gather(*tasks)

    def section(self, name: str) -> List[Pet]:
        if name not in SECTIONS.values() or name in ("stats", "insights"):
            raise ValueError(f"Unknown pet section: {name}")
        return getattr(self, name)[:settings.featured_limit]

    def metrics(self) -> Dict[str, Any]:
        return {
            "favorites": len(self.favorites),
            "posted": len(self.posted),
            "adopted": len(self.adopted),
            "available_posted": sum(1 for pet in self.posted if pet.is_available()),
            "total_likes": sum(pet.effective_like_count for pet in self.posted),
            "marketplace_available": self.stats.available_pets if self.stats else 0,
            "adopted_count": self.insights.get("adoptedCount", 0),
        }
