"""Utility modules for PawMarket."""

from .api_clients import (
    ApiClient,
    ApiError,
    UnauthorizedError,
    NetworkError,
    InvalidResponseError,
    PetAPI,
    AuthAPI,
    UploadAPI,
    GroupAPI,
    AdminAPI,
)
from .validators import validate_registration, validate_pet_form
from .helpers import exclude_featured, calculate_distance, format_pet_card

__all__ = [
    "ApiClient",
    "ApiError",
    "UnauthorizedError",
    "NetworkError",
    "InvalidResponseError",
    "PetAPI",
    "AuthAPI",
    "UploadAPI",
    "GroupAPI",
    "AdminAPI",
    "validate_registration",
    "validate_pet_form",
    "exclude_featured",
    "calculate_distance",
    "format_pet_card",
]
