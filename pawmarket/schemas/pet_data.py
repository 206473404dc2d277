"""
Pet data models and schemas.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any, Union
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .base import ApiModel, id_field


class PetCategory(str, Enum):
    """Types of pets."""
    DOG = "dog"
    CAT = "cat"
    BIRD = "bird"
    RABBIT = "rabbit"
    OTHER = "other"


class PetSize(str, Enum):
    """Pet size categories."""
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class Gender(str, Enum):
    """Pet gender."""
    MALE = "male"
    FEMALE = "female"


class PetStatus(str, Enum):
    """Pet availability status."""
    AVAILABLE = "available"
    PENDING = "pending"
    ADOPTED = "adopted"


class Urgency(str, Enum):
    """How quickly a pet needs a home."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ActivityLevel(str, Enum):
    """Energy level."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class OriginType(str, Enum):
    """Whether the pet is owned or was found as a stray."""
    OWNED = "owned"
    STRAY = "stray"


class SortOrder(str, Enum):
    """Server-side sort options for the pet list."""
    NEWEST = "newest"
    OLDEST = "oldest"
    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"
    URGENCY = "urgency"


class GoodWith(ApiModel):
    """Compatibility with children and other animals."""

    children: bool = Field(default=False)
    dogs: bool = Field(default=False)
    cats: bool = Field(default=False)


class UserSummary(ApiModel):
    """Populated owner/adopter reference embedded in a pet."""

    id: Optional[str] = id_field(default=None)
    name: Optional[str] = Field(default=None)
    email: Optional[str] = Field(default=None)
    phone: Optional[str] = Field(default=None)
    location: Optional[str] = Field(default=None)
    avatar: Optional[str] = Field(default=None)


class Pet(ApiModel):
    """Pet listing as returned by the API."""

    # Identifiers
    id: str = id_field(..., description="Unique pet identifier")

    # Basic information
    name: str = Field(default="", description="Pet name")
    breed: Optional[str] = Field(default=None)
    category: Optional[PetCategory] = Field(default=None)
    age: Optional[float] = Field(default=None, ge=0, description="Age in years")
    size: Optional[PetSize] = Field(default=None)
    gender: Optional[Gender] = Field(default=None)
    color: Optional[str] = Field(default=None)
    weight: Optional[float] = Field(default=None, ge=0)

    # Health
    vaccinated: bool = Field(default=False)
    neutered: bool = Field(default=False)
    health_details: Optional[str] = Field(default=None)
    dietary_needs: Optional[str] = Field(default=None)
    special_needs: Optional[str] = Field(default=None)

    # Adoption
    status: PetStatus = Field(default=PetStatus.AVAILABLE)
    adoption_fee: float = Field(default=0, ge=0)
    currency: str = Field(default="USD")
    origin_type: OriginType = Field(default=OriginType.OWNED)
    found_location: Optional[str] = Field(default=None)
    found_date: Optional[datetime] = Field(default=None)
    urgency: Urgency = Field(default=Urgency.MEDIUM)

    # People
    posted_by: Optional[Union[UserSummary, str]] = Field(default=None)
    adopted_by: Optional[Union[UserSummary, str]] = Field(default=None)
    likes: List[str] = Field(default_factory=list, description="IDs of users who liked the pet")

    # Media
    photos: List[str] = Field(default_factory=list)
    videos: List[str] = Field(default_factory=list)
    image: Optional[str] = Field(default=None)

    # Location
    location: Optional[str] = Field(default=None)
    coordinates: Optional[Dict[str, Any]] = Field(default=None)

    # Personality
    temperament: List[str] = Field(default_factory=list)
    good_with: GoodWith = Field(default_factory=GoodWith)
    activity_level: Optional[ActivityLevel] = Field(default=None)

    description: str = Field(default="")
    views: int = Field(default=0)

    # Viewer-specific state from the detail endpoint
    is_liked: Optional[bool] = Field(default=None)
    like_count: Optional[int] = Field(default=None)

    # Metadata
    created_at: Optional[datetime] = Field(default=None)
    updated_at: Optional[datetime] = Field(default=None)

    @property
    def primary_image(self) -> Optional[str]:
        """Main image, falling back to the first photo."""
        return self.image or (self.photos[0] if self.photos else None)

    @property
    def effective_like_count(self) -> int:
        """Like count from the detail payload, else the size of ``likes``."""
        if self.like_count is not None:
            return self.like_count
        return len(self.likes)

    @property
    def owner_id(self) -> Optional[str]:
        """ID of the user who posted the pet."""
        if isinstance(self.posted_by, UserSummary):
            return self.posted_by.id
        return self.posted_by

    def is_available(self) -> bool:
        """Check if the pet can still be adopted."""
        return self.status == PetStatus.AVAILABLE


class PetFilters(ApiModel):
    """Filters for the pet list; blank values are not sent."""

    search: str = ""
    category: str = ""
    breed: str = ""
    min_age: str = ""
    max_age: str = ""
    gender: str = ""
    size: str = ""
    location: str = ""
    urgency: str = ""
    status: str = ""
    origin_type: str = ""
    sort: str = ""

    def to_query_params(self) -> Dict[str, str]:
        """Non-blank, trimmed values keyed the way the server expects."""
        params = {}
        for key, value in self.model_dump(by_alias=True).items():
            value = str(value).strip() if value is not None else ""
            if value:
                params[key] = value
        return params

    def active_count(self) -> int:
        """Number of filters currently applied (sort excluded)."""
        return sum(
            1 for name, value in self.model_dump().items()
            if name != "sort" and str(value).strip()
        )


class Pagination(ApiModel):
    """Server pagination block."""

    total: int = Field(default=0, ge=0)
    page: int = Field(default=1, ge=1)
    pages: int = Field(default=1, ge=0)


class PetPage(ApiModel):
    """One page of the filtered pet list."""

    pets: List[Pet] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


class PetDetail(ApiModel):
    """Detail endpoint response: the pet plus similar listings."""

    pet: Pet
    similar_pets: List[Pet] = Field(default_factory=list)


class LikeResult(ApiModel):
    """Response from the like toggle endpoint."""

    liked: bool
    likes: int = Field(ge=0)
    message: Optional[str] = None


class LikeState(BaseModel):
    """Client-side like state mirrored optimistically."""

    pet_id: str
    is_liked: bool = False
    like_count: int = Field(default=0, ge=0)

    @classmethod
    def from_pet(cls, pet: Pet, user_id: Optional[str] = None) -> "LikeState":
        """Build the like state shown on a pet card."""
        if pet.is_liked is not None:
            is_liked = pet.is_liked
        else:
            is_liked = bool(user_id and user_id in pet.likes)
        return cls(pet_id=pet.id, is_liked=is_liked, like_count=pet.effective_like_count)


class PetStats(ApiModel):
    """Marketplace-wide pet statistics."""

    total_pets: int = 0
    available_pets: int = 0
    adopted_pets: int = 0
    adoption_rate: str = "0%"
    category_distribution: List[Dict[str, Any]] = Field(default_factory=list)
    location_distribution: List[Dict[str, Any]] = Field(default_factory=list)


class PetReport(ApiModel):
    """Report of an inappropriate listing."""

    reason: str = Field(..., min_length=1)
    details: Optional[str] = None


class PetDraft(ApiModel):
    """Post/edit pet form payload."""

    name: str = Field(..., min_length=2, description="Pet name")
    age: float = Field(..., ge=0, le=30, description="Age in years")
    breed: str = Field(..., min_length=1)
    category: PetCategory
    gender: Gender
    size: PetSize = Field(default=PetSize.MEDIUM)
    location: str = Field(..., min_length=2)
    description: str = Field(..., min_length=10)

    color: Optional[str] = None
    weight: Optional[float] = Field(default=None, ge=0)
    vaccinated: bool = False
    neutered: bool = False
    health_details: Optional[str] = None
    dietary_needs: Optional[str] = None
    special_needs: Optional[str] = None
    temperament: List[str] = Field(default_factory=list)
    good_with: GoodWith = Field(default_factory=GoodWith)
    activity_level: ActivityLevel = Field(default=ActivityLevel.MEDIUM)

    adoption_fee: float = Field(default=0, ge=0)
    currency: str = Field(default="USD")
    origin_type: OriginType = Field(default=OriginType.OWNED)
    found_location: Optional[str] = None
    found_date: Optional[datetime] = None
    urgency: Urgency = Field(default=Urgency.MEDIUM)

    photos: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def normalize_adoption_terms(self):
        """Stray pets are always free; currency is a 3 letter code."""
        self.currency = (self.currency or "USD").upper()[:3]
        if self.origin_type == OriginType.STRAY:
            self.adoption_fee = 0
            if not self.found_location:
                self.found_location = self.location
        else:
            self.found_location = None
            self.found_date = None
        return self

    def to_payload(self) -> Dict[str, Any]:
        """Request body; image fields duplicated for older server versions."""
        payload = self.to_api()
        payload["image"] = self.photos[0] if self.photos else None
        payload["images"] = list(self.photos)
        payload["photos"] = list(self.photos)
        return payload

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Max",
                "age": 3,
                "breed": "Labrador Retriever",
                "category": "dog",
                "gender": "male",
                "size": "large",
                "location": "Seattle, WA",
                "description": "Max is a friendly and energetic dog...",
                "photos": ["/uploads/image-123.jpg"]
            }
        }
    )
