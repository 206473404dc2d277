"""
Helper utilities for PawMarket.

Presentation and list helpers with no network access: feed de-duplication,
local search, card formatting, distances and relative times.
"""

import math
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Iterable, List, Union
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta
from loguru import logger

from ..schemas.pet_data import Pet

PetLike = Union[Pet, Dict[str, Any]]

SEARCH_FIELDS = ("name", "breed", "description", "location")


def pet_identifier(pet: Any) -> Optional[str]:
    """
    Identifier of a pet model or raw pet dict.

    Args:
        pet: ``Pet`` instance or a dict carrying ``_id`` or ``id``

    Returns:
        The identifier, or None when the item has none
    """
    if isinstance(pet, dict):
        value = pet.get("_id") or pet.get("id")
    else:
        value = getattr(pet, "id", None)
    return str(value) if value else None


def exclude_featured(all_pets: Iterable[PetLike], *featured: Iterable[PetLike]) -> List[PetLike]:
    """
    Drop pets that already appear in a featured list.

    Args:
        all_pets: The filtered/paginated main list
        *featured: Featured lists (trending, recommended, nearby)

    Returns:
        Pets of ``all_pets`` whose identifier is in no featured list, in
        their original order. Items without an identifier are kept.
    """
    featured_ids = set()
    for section in featured:
        for pet in section or []:
            pet_id = pet_identifier(pet)
            if pet_id:
                featured_ids.add(pet_id)

    grid = []
    for pet in all_pets or []:
        pet_id = pet_identifier(pet)
        if pet_id is None or pet_id not in featured_ids:
            grid.append(pet)
    return grid


def matches_search(pet: PetLike, term: str) -> bool:
    """Case-insensitive substring match over name, breed, description and location."""
    term = (term or "").strip().lower()
    if not term:
        return True
    for field in SEARCH_FIELDS:
        value = pet.get(field) if isinstance(pet, dict) else getattr(pet, field, None)
        if value and term in str(value).lower():
            return True
    return False


def filter_by_search(pets: Iterable[PetLike], term: str) -> List[PetLike]:
    """Pets matching the search text, order preserved."""
    return [pet for pet in pets if matches_search(pet, term)]


def calculate_distance(
    lat1: float, lon1: float, lat2: float, lon2: float
) -> float:
    """
    Calculate distance between two coordinates using Haversine formula.

    Args:
        lat1: Latitude of first point
        lon1: Longitude of first point
        lat2: Latitude of second point
        lon2: Longitude of second point

    Returns:
        Distance in kilometers
    """
    # Earth's radius in kilometers
    R = 6371.0

    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.asin(math.sqrt(a))

    return R * c


def pet_coordinates(pet: Pet) -> Optional[tuple[float, float]]:
    """(lat, lon) of a pet, from ``{lat, lng}`` or GeoJSON ``[lon, lat]``."""
    coords = pet.coordinates or {}
    if "lat" in coords and ("lng" in coords or "lon" in coords):
        return float(coords["lat"]), float(coords.get("lng", coords.get("lon")))
    points = coords.get("coordinates")
    if isinstance(points, list) and len(points) == 2:
        return float(points[1]), float(points[0])
    return None


def format_age(age: Optional[float]) -> str:
    """``0.5`` -> ``6 months``, ``1`` -> ``1 year``, ``3`` -> ``3 years``."""
    if age is None:
        return "Unknown age"
    if age < 1:
        months = max(1, round(age * 12))
        return f"{months} month{'s' if months != 1 else ''}"
    years = int(age) if float(age).is_integer() else age
    return f"{years} year{'s' if years != 1 else ''}"


def format_fee(pet: Pet) -> str:
    """Adoption fee label; zero fees show as ``Free``."""
    if not pet.adoption_fee:
        return "Free"
    return f"{pet.adoption_fee:,.2f} {pet.currency}"


def format_pet_card(pet: Pet, user_location: Optional[tuple[float, float]] = None) -> Dict[str, Any]:
    """
    Format a pet into the fields shown on a listing card.

    Args:
        pet: Pet to format
        user_location: Optional (latitude, longitude) for a distance label

    Returns:
        Dictionary of display fields
    """
    distance_km = None
    coords = pet_coordinates(pet)
    if user_location and coords:
        distance_km = round(calculate_distance(user_location[0], user_location[1], *coords), 1)

    category = pet.category.value if pet.category else "pet"
    return {
        "id": pet.id,
        "title": f"{pet.name} ({category})" if pet.name else category.title(),
        "subtitle": " · ".join(part for part in (pet.breed, format_age(pet.age), pet.location) if part),
        "image": pet.primary_image,
        "fee": format_fee(pet),
        "status": pet.status.value,
        "urgency": pet.urgency.value,
        "likes": pet.effective_like_count,
        "distance_km": distance_km,
        "description": (pet.description[:140] + "...") if len(pet.description) > 140 else pet.description,
        "posted": format_relative_time(pet.created_at),
    }


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse an ISO timestamp from the API into an aware datetime."""
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = date_parser.isoparse(value)
        except (ValueError, TypeError) as e:
            logger.warning(f"Unparseable timestamp {value!r}: {e}")
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_relative_time(value: Union[str, datetime, None], now: Optional[datetime] = None) -> str:
    """Get relative time string (e.g., '2 hours ago')."""
    dt = parse_timestamp(value)
    if dt is None:
        return ""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    if now <= dt:
        return "just now"

    delta = relativedelta(now, dt)
    for unit in ("years", "months", "days", "hours", "minutes"):
        amount = getattr(delta, unit)
        if amount:
            label = unit[:-1] if amount == 1 else unit
            return f"{amount} {label} ago"
    return "just now"


def format_datetime(dt: datetime) -> str:
    """Format datetime for display."""
    return dt.strftime("%Y-%m-%d %H:%M")
