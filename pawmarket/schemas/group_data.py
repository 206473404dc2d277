"""
Community group and group post models.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any, Union
from pydantic import Field, field_validator

from .base import ApiModel, id_field
from .pet_data import Pagination, UserSummary


class GroupType(str, Enum):
    """Who runs the group."""
    INDIVIDUAL = "individual"
    COMMUNITY = "community"
    NGO = "ngo"
    SHELTER = "shelter"
    RESCUE = "rescue"


class GroupCategory(str, Enum):
    """Group topic."""
    GENERAL = "general"
    ADOPTION = "adoption"
    RESCUE = "rescue"
    TRAINING = "training"
    HEALTH = "health"
    BREED_SPECIFIC = "breed-specific"
    LOCAL = "local"


class GroupPrivacy(str, Enum):
    """Group visibility."""
    PUBLIC = "public"
    PRIVATE = "private"


class MemberRole(str, Enum):
    """Role of a member inside a group."""
    MEMBER = "member"
    MODERATOR = "moderator"
    ADMIN = "admin"


class MemberStatus(str, Enum):
    """Membership status."""
    ACTIVE = "active"
    PENDING = "pending"
    BANNED = "banned"


class MemberAction(str, Enum):
    """Moderation actions accepted by the member endpoint."""
    APPROVE = "approve"
    REJECT = "reject"
    BAN = "ban"
    UNBAN = "unban"
    PROMOTE = "promote"
    DEMOTE = "demote"


class PostType(str, Enum):
    """Kinds of group posts."""
    TEXT = "text"
    PET_SHARE = "pet-share"
    ADOPTION_SUCCESS = "adoption-success"
    HELP_REQUEST = "help-request"
    EVENT = "event"
    RESOURCE = "resource"


class PostPriority(str, Enum):
    """Post priority."""
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class GroupLocation(ApiModel):
    """Where a group is based."""

    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None

    def label(self) -> str:
        """Human readable location, e.g. ``Austin, TX``."""
        return ", ".join(part for part in (self.city, self.state, self.country) if part)


class GroupMember(ApiModel):
    """Member entry of a group."""

    user: Optional[Union[UserSummary, str]] = None
    joined_at: Optional[datetime] = None
    role: MemberRole = MemberRole.MEMBER
    status: MemberStatus = MemberStatus.ACTIVE

    @property
    def user_id(self) -> Optional[str]:
        if isinstance(self.user, UserSummary):
            return self.user.id
        return self.user


class GroupContactInfo(ApiModel):
    """Public contact details of a group."""

    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    social_media: Dict[str, Optional[str]] = Field(default_factory=dict)


class GroupRule(ApiModel):
    title: Optional[str] = None
    description: Optional[str] = None


class Group(ApiModel):
    """Community group."""

    id: str = id_field(..., description="Unique group identifier")
    name: str = Field(default="")
    description: str = Field(default="")
    type: Optional[GroupType] = None
    category: GroupCategory = GroupCategory.GENERAL
    privacy: GroupPrivacy = GroupPrivacy.PUBLIC
    location: GroupLocation = Field(default_factory=GroupLocation)

    avatar: Optional[str] = None
    cover_image: Optional[str] = None

    created_by: Optional[Union[UserSummary, str]] = None
    admins: List[Union[UserSummary, str]] = Field(default_factory=list)
    moderators: List[Union[UserSummary, str]] = Field(default_factory=list)
    members: List[GroupMember] = Field(default_factory=list)
    member_count: int = Field(default=0, ge=0)

    tags: List[str] = Field(default_factory=list)
    rules: List[GroupRule] = Field(default_factory=list)
    settings: Dict[str, Any] = Field(default_factory=dict)
    stats: Dict[str, Any] = Field(default_factory=dict)
    contact_info: Optional[GroupContactInfo] = None

    is_verified: bool = False
    # Set by the server when a private group is viewed by a non-member
    is_private: bool = False

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def total_posts(self) -> int:
        return int(self.stats.get("totalPosts", 0) or 0)


class GroupDetail(ApiModel):
    """Group detail response."""

    group: Group
    user_membership: Optional[GroupMember] = None

    def is_member(self) -> bool:
        """Active member of the group."""
        return bool(self.user_membership and self.user_membership.status == MemberStatus.ACTIVE)

    def can_manage(self) -> bool:
        """Admins and moderators may manage the group."""
        return self.is_member() and self.user_membership.role in (MemberRole.ADMIN, MemberRole.MODERATOR)


class GroupPage(ApiModel):
    """One page of groups."""

    groups: List[Group] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


class PostLike(ApiModel):
    user: Optional[Union[UserSummary, str]] = None
    created_at: Optional[datetime] = None


class CommentReply(ApiModel):
    id: Optional[str] = id_field(default=None)
    user: Optional[Union[UserSummary, str]] = None
    content: str = ""
    created_at: Optional[datetime] = None


class Comment(ApiModel):
    """Comment on a group post."""

    id: Optional[str] = id_field(default=None)
    user: Optional[Union[UserSummary, str]] = None
    content: str = ""
    created_at: Optional[datetime] = None
    likes: List[str] = Field(default_factory=list)
    replies: List[CommentReply] = Field(default_factory=list)


class Engagement(ApiModel):
    views: int = 0
    likes_count: int = 0
    comments_count: int = 0
    shares_count: int = 0


class GroupPost(ApiModel):
    """Post inside a group."""

    id: str = id_field(..., description="Unique post identifier")
    group: Optional[Union[Dict[str, Any], str]] = None
    author: Optional[Union[UserSummary, str]] = None
    type: PostType = PostType.TEXT
    title: Optional[str] = None
    content: str = ""
    images: List[str] = Field(default_factory=list)
    related_pet: Optional[Union[Dict[str, Any], str]] = None
    tags: List[str] = Field(default_factory=list)
    priority: PostPriority = PostPriority.NORMAL
    likes: List[PostLike] = Field(default_factory=list)
    comments: List[Comment] = Field(default_factory=list)
    is_pinned: bool = False
    is_announcement: bool = False
    engagement: Engagement = Field(default_factory=Engagement)
    created_at: Optional[datetime] = None

    def liked_by(self, user_id: Optional[str]) -> bool:
        """Whether the given user has liked the post."""
        if not user_id:
            return False
        for like in self.likes:
            liker = like.user.id if isinstance(like.user, UserSummary) else like.user
            if liker == user_id:
                return True
        return False


class GroupFilters(ApiModel):
    """Filters for the group list."""

    type: str = ""
    category: str = ""
    privacy: str = ""
    location: str = ""
    search: str = ""

    def to_query_params(self) -> Dict[str, str]:
        return {
            key: str(value).strip()
            for key, value in self.model_dump(by_alias=True).items()
            if value is not None and str(value).strip()
        }


def split_tags(value: Union[str, List[str], None]) -> List[str]:
    """Turn ``"a, b,,c"`` into ``["a", "b", "c"]``."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [tag.strip().lower() for tag in value if tag and tag.strip()]


class GroupDraft(ApiModel):
    """Create/edit group form."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    type: GroupType = GroupType.INDIVIDUAL
    category: GroupCategory = GroupCategory.GENERAL
    privacy: GroupPrivacy = GroupPrivacy.PUBLIC
    location: GroupLocation = Field(default_factory=GroupLocation)
    tags: List[str] = Field(default_factory=list)
    contact_info: GroupContactInfo = Field(default_factory=GroupContactInfo)
    rules: List[GroupRule] = Field(default_factory=list)

    @field_validator("name", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, v):
        return split_tags(v)


class PostDraft(ApiModel):
    """Create/edit post form."""

    type: PostType = PostType.TEXT
    title: Optional[str] = Field(default=None, max_length=200)
    content: str = Field(..., min_length=1, max_length=2000)
    priority: PostPriority = PostPriority.NORMAL
    images: List[str] = Field(default_factory=list)
    related_pet: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("content", "title", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, v):
        return split_tags(v)
