"""
Pet discovery feed.

Holds the filtered, paginated main list plus the featured sections
(trending, recommended, nearby) and keeps the main grid free of pets that
are already featured.
"""

import asyncio
from typing import Any, Dict, List, Optional
from loguru import logger

from ..config import settings
from ..notifications import Notifier
from ..schemas.pet_data import Pet, PetFilters, Pagination, PetStats
from ..utils.api_clients import ApiClient, ApiError, PetAPI
from ..utils.helpers import exclude_featured, filter_by_search, pet_identifier

FEATURED_SECTIONS = ("trending", "recommended", "nearby")


class DiscoveryFeed:
    """
    Browse state for the home page.

    Server-side filters and pagination drive ``pets``; the search text is
    also applied locally so the grid narrows instantly while typing.
    """

    def __init__(self, client: ApiClient, auth=None, notifier: Optional[Notifier] = None):
        self.api = PetAPI(client)
        self.auth = auth
        self.notifier = notifier or Notifier()

        self.filters = PetFilters()
        self.page = 1
        self.pets: List[Pet] = []
        self.pagination = Pagination()

        self.trending: List[Pet] = []
        self.recommended: List[Pet] = []
        self.nearby: List[Pet] = []
        self.stats: Optional[PetStats] = None
        self.insights: Dict[str, Any] = {}

        self.loading: Dict[str, bool] = {
            "pets": False,
            "trending": False,
            "recommended": False,
            "nearby": False,
            "stats": False,
            "insights": False,
        }
        self.error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.auth and self.auth.is_authenticated)

    async def fetch_pets(self) -> List[Pet]:
        """Load the current page with the current filters."""
        self.loading["pets"] = True
        self.error = None
        try:
            result = await self.api.get_all_pets(self.filters, page=self.page, limit=settings.page_size)
            self.pets = result.pets
            self.pagination = result.pagination
            logger.info(
                f"Fetched {len(self.pets)} pets (page {self.pagination.page}/{self.pagination.pages})"
            )
        except ApiError as e:
            logger.error(f"Error fetching pets: {e}")
            self.error = e.message
            self.pets = []
            self.pagination = Pagination(page=self.page, pages=0)
            self.notifier.error("Failed to fetch pets")
        finally:
            self.loading["pets"] = False
        return self.pets

    def set_filter(self, key: str, value: Any) -> None:
        """Change one filter locally; nothing is fetched until applied."""
        if key not in PetFilters.model_fields:
            raise ValueError(f"Unknown filter: {key}")
        setattr(self.filters, key, "" if value is None else str(value))

    async def apply_filters(self) -> List[Pet]:
        self.page = 1
        return await self.fetch_pets()

    async def clear_filters(self) -> List[Pet]:
        self.filters = PetFilters()
        self.page = 1
        return await self.fetch_pets()

    async def go_to_page(self, page: int) -> bool:
        """
        Move to another page of results.

        Returns:
            False (and no request) when ``page`` is out of range or current
        """
        if page < 1 or page > self.pagination.pages or page == self.page:
            return False
        self.page = page
        await self.fetch_pets()
        return True

    async def next_page(self) -> bool:
        return await self.go_to_page(self.page + 1)

    async def previous_page(self) -> bool:
        return await self.go_to_page(self.page - 1)

    @property
    def visible_pets(self) -> List[Pet]:
        """Current page narrowed by the search text."""
        return filter_by_search(self.pets, self.filters.search)

    @property
    def main_grid(self) -> List[Pet]:
        """Visible pets minus everything shown in a featured section."""
        return exclude_featured(self.visible_pets, self.trending, self.recommended, self.nearby)

    def featured(self, limit: Optional[int] = None) -> Dict[str, List[Pet]]:
        limit = limit or settings.featured_limit
        return {name: getattr(self, name)[:limit] for name in FEATURED_SECTIONS}

    @property
    def active_filter_count(self) -> int:
        return self.filters.active_count()

    async def _load_section(self, name: str, loader) -> None:
        self.loading[name] = True
        try:
            setattr(self, name, await loader())
        except ApiError as e:
            # Featured sections fail quietly; the rest of the page still loads
            logger.warning(f"Failed to load {name}: {e}")
        finally:
            self.loading[name] = False

    async def load_featured(self, lat: Optional[float] = None, lon: Optional[float] = None) -> None:
        """Load trending, recommended, nearby, stats and insights concurrently."""
        tasks = [
            self._load_section("trending", self.api.get_trending),
            self._load_section("stats", self.api.get_stats),
            self._load_section("insights", self.api.get_insights),
        ]
        if self.is_authenticated:
            tasks.append(self._load_section("recommended", self.api.get_recommended))
        else:
            self.recommended = []
        if lat is not None and lon is not None:
            tasks.append(self._load_section("nearby", lambda: self.api.get_nearby(lat, lon)))
        else:
            self.nearby = []

        await asyncio.gather(*tasks)

    async def refresh(self, lat: Optional[float] = None, lon: Optional[float] = None) -> None:
        await asyncio.gather(self.fetch_pets(), self.load_featured(lat, lon))

    def handle_pet_adopted(self, pet_id: str) -> None:
        """Drop an adopted pet from every list shown."""
        for name in ("pets",) + FEATURED_SECTIONS:
            setattr(self, name, [p for p in getattr(self, name) if pet_identifier(p) != pet_id])
