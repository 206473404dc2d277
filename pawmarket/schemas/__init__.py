"""Data schemas and models for PawMarket."""

from .pet_data import Pet, PetFilters, PetPage, Pagination, LikeState, PetDraft
from .user_profile import User, LoginResponse, RegistrationForm
from .group_data import Group, GroupPost, GroupFilters, GroupDraft, PostDraft

__all__ = [
    "Pet",
    "PetFilters",
    "PetPage",
    "Pagination",
    "LikeState",
    "PetDraft",
    "User",
    "LoginResponse",
    "RegistrationForm",
    "Group",
    "GroupPost",
    "GroupFilters",
    "GroupDraft",
    "PostDraft",
]
