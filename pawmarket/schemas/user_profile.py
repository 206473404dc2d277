"""
User profile and account data models.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List, Any
from pydantic import ConfigDict, Field, EmailStr, field_validator, model_validator

from .base import ApiModel, id_field


class Role(str, Enum):
    """Account roles."""
    USER = "user"
    ADMIN = "admin"


class NotificationSettings(ApiModel):
    """Per-user notification preferences."""

    email_notifications: bool = Field(default=True)
    push_notifications: bool = Field(default=True)
    adoption_updates: bool = Field(default=True)
    new_messages: bool = Field(default=True)
    community_updates: bool = Field(default=False)
    marketing_emails: bool = Field(default=False)


class User(ApiModel):
    """Account as returned by the auth endpoints."""

    id: Optional[str] = id_field(default=None, description="Unique user identifier")
    name: str = Field(default="", description="Display name")
    email: Optional[str] = Field(default=None, description="User email address")
    phone: Optional[str] = Field(default=None)
    location: Optional[str] = Field(default=None)
    role: Role = Field(default=Role.USER)
    avatar: Optional[str] = Field(default=None)
    is_active: bool = Field(default=True)

    notification_settings: NotificationSettings = Field(default_factory=NotificationSettings)

    # History
    posted_pets: List[Any] = Field(default_factory=list)
    adopted_pets: List[Any] = Field(default_factory=list)
    login_count: int = Field(default=0)
    last_login: Optional[datetime] = Field(default=None)

    # Metadata
    created_at: Optional[datetime] = Field(default=None)
    updated_at: Optional[datetime] = Field(default=None)

    def is_admin(self) -> bool:
        """Check whether the user has the admin role."""
        return self.role == Role.ADMIN


class LoginResponse(ApiModel):
    """Successful login payload."""

    token: str = Field(..., min_length=1)
    role: Role = Field(default=Role.USER)
    user: User


class RegistrationForm(ApiModel):
    """Sign-up form; confirmation and terms stay client-side."""

    name: str = Field(..., min_length=2, description="Full name")
    email: EmailStr = Field(..., description="Email address")
    phone: Optional[str] = Field(default=None)
    location: Optional[str] = Field(default=None)
    password: str = Field(..., min_length=6)
    confirm_password: str = Field(..., exclude=True)
    accept_terms: bool = Field(default=False, exclude=True)

    @field_validator("name", "location", "phone")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def check_confirmation(self):
        """Passwords must match and the terms must be accepted."""
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        if not self.accept_terms:
            raise ValueError("You must agree to the terms and conditions")
        return self

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "John Doe",
                "email": "john.doe@example.com",
                "phone": "+1 206 555 0123",
                "location": "Seattle, WA",
                "password": "Secret123",
                "confirmPassword": "Secret123",
                "acceptTerms": True
            }
        }
    )


class ProfileUpdate(ApiModel):
    """Editable profile fields; unset fields are left untouched."""

    name: Optional[str] = Field(default=None, min_length=2)
    email: Optional[EmailStr] = Field(default=None)
    phone: Optional[str] = Field(default=None)
    location: Optional[str] = Field(default=None)
    avatar: Optional[str] = Field(default=None)


class PasswordChange(ApiModel):
    """Password change form."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)
    confirm_password: str = Field(..., exclude=True)

    @model_validator(mode="after")
    def check_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("New passwords do not match")
        return self


class AccountStats(ApiModel):
    """Activity summary shown in account settings."""

    pets_posted: int = 0
    pets_adopted: int = 0
    pets_liked: int = 0
    groups_joined: int = 0
    login_count: int = 0
    member_since: Optional[datetime] = None
