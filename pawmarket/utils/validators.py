"""
Input validation and sanitization utilities.
"""

import re
from typing import Any, Dict, List, Optional
from pydantic import ValidationError
from loguru import logger

from ..config import settings
from ..schemas.pet_data import PetDraft
from ..schemas.user_profile import RegistrationForm, PasswordChange
from ..schemas.group_data import GroupDraft, PostDraft


EMAIL_PATTERN = re.compile(r"^[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}$", re.IGNORECASE)
PHONE_PATTERN = re.compile(r"^[\+]?[\d\s\-\(\)]{10,}$")

# Required pet form fields in display order
PET_REQUIRED_FIELDS = (
    "name", "age", "breed", "category", "gender", "size", "location", "description",
)

PET_TEXT_LIMITS = {
    "name": 100,
    "breed": 100,
    "location": 200,
    "description": 5000,
    "health_details": 2000,
    "dietary_needs": 2000,
    "special_needs": 2000,
    "found_location": 200,
}


def sanitize_string(value: str, max_length: int = 1000) -> str:
    """
    Sanitize string input to prevent injection attacks.

    Args:
        value: Input string
        max_length: Maximum allowed length

    Returns:
        Sanitized string
    """
    if not isinstance(value, str):
        return str(value)

    # Remove null bytes
    value = value.replace("\x00", "")

    # Truncate to max length
    value = value[:max_length]

    return value.strip()


def validate_email(email: str) -> bool:
    """
    Validate email format.

    Args:
        email: Email address

    Returns:
        True if valid email format
    """
    return bool(email and EMAIL_PATTERN.match(email.strip()))


def validate_phone(phone: str) -> bool:
    """
    Validate phone number format.

    Args:
        phone: Phone number

    Returns:
        True if valid phone format
    """
    return bool(phone and PHONE_PATTERN.match(phone.strip()))


def validate_password_strength(password: str) -> Optional[str]:
    """
    Check password rules for new accounts.

    Returns:
        Error message, or None when the password is acceptable
    """
    if not password:
        return "Password is required"
    if len(password) < 6:
        return "Password must be at least 6 characters long"
    if not (
        re.search(r"[a-z]", password)
        and re.search(r"[A-Z]", password)
        and re.search(r"\d", password)
    ):
        return "Password must contain at least one uppercase letter, one lowercase letter, and one number"
    return None


def _first_error(error: ValidationError) -> str:
    """Readable message for the first pydantic error."""
    first = error.errors()[0]
    message = first.get("msg", str(error))
    # Messages raised from our own validators come prefixed
    if message.startswith("Value error, "):
        return message[len("Value error, "):]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {message}" if location else message


def validate_registration(
    data: Dict[str, Any],
) -> tuple[bool, Optional[str], Optional[RegistrationForm]]:
    """
    Validate sign-up form data.

    Args:
        data: Form data (name, email, phone, location, password,
            confirm_password, accept_terms)

    Returns:
        Tuple of (is_valid, error_message, registration_form)
    """
    name = sanitize_string(data.get("name") or "", 50)
    if len(name) < 2:
        return False, "Name must be at least 2 characters long", None

    email = sanitize_string(data.get("email") or "", 254)
    if not validate_email(email):
        return False, "Please enter a valid email address", None

    phone = sanitize_string(data.get("phone") or "", 30)
    if phone and not validate_phone(phone):
        return False, "Please enter a valid phone number", None

    password_error = validate_password_strength(data.get("password") or "")
    if password_error:
        logger.warning(f"Registration rejected: {password_error}")
        return False, password_error, None

    try:
        form = RegistrationForm(
            name=name,
            email=email,
            phone=phone or None,
            location=sanitize_string(data.get("location") or "", 100) or None,
            password=data["password"],
            confirm_password=data.get("confirm_password") or "",
            accept_terms=bool(data.get("accept_terms")),
        )
        return True, None, form

    except ValidationError as e:
        logger.warning(f"Registration validation failed: {e}")
        return False, _first_error(e), None


def missing_pet_fields(data: Dict[str, Any]) -> List[str]:
    """Required pet form fields that are blank."""
    missing = []
    for field in PET_REQUIRED_FIELDS:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(field)
    return missing


def validate_pet_form(
    data: Dict[str, Any],
    images: Optional[List[str]] = None,
) -> tuple[bool, Optional[str], Optional[PetDraft]]:
    """
    Validate the post/edit pet form.

    Args:
        data: Form fields keyed by snake_case name
        images: URLs of images already uploaded for the pet

    Returns:
        Tuple of (is_valid, error_message, pet_draft)
    """
    images = [url for url in (images or data.get("photos") or []) if url]
    if not images:
        return False, "Please upload at least one image", None

    cleaned = dict(data)
    for field, limit in PET_TEXT_LIMITS.items():
        if isinstance(cleaned.get(field), str):
            cleaned[field] = sanitize_string(cleaned[field], limit)

    missing = missing_pet_fields(cleaned)
    if missing:
        message = f"Please fill required: {', '.join(missing)}"
        logger.warning(message)
        return False, message, None

    # Empty optional inputs should not trip number parsing
    for field in ("weight", "found_date"):
        if cleaned.get(field) == "":
            cleaned[field] = None
    if isinstance(cleaned.get("temperament"), str):
        cleaned["temperament"] = [t.strip() for t in cleaned["temperament"].split(",") if t.strip()]

    cleaned["photos"] = images

    try:
        draft = PetDraft(**cleaned)
        return True, None, draft

    except ValidationError as e:
        logger.warning(f"Pet form validation failed: {e}")
        return False, _first_error(e), None


def validate_group_form(data: Dict[str, Any]) -> tuple[bool, Optional[str], Optional[GroupDraft]]:
    """
    Validate the create/edit group form.

    Returns:
        Tuple of (is_valid, error_message, group_draft)
    """
    name = sanitize_string(data.get("name") or "", 1000)
    if not name:
        return False, "Group name is required", None
    if len(name) > 100:
        return False, "Group name cannot exceed 100 characters", None

    description = sanitize_string(data.get("description") or "", 5000)
    if not description:
        return False, "Description is required", None
    if len(description) > 500:
        return False, "Description cannot exceed 500 characters", None

    try:
        draft = GroupDraft(**{**data, "name": name, "description": description})
        return True, None, draft

    except ValidationError as e:
        logger.warning(f"Group form validation failed: {e}")
        return False, _first_error(e), None


def validate_post_form(data: Dict[str, Any]) -> tuple[bool, Optional[str], Optional[PostDraft]]:
    """Validate a group post; returns (is_valid, error_message, post_draft)."""
    content = sanitize_string(data.get("content") or "", 5000)
    if not content:
        return False, "Post content is required", None
    if len(content) > 2000:
        return False, "Post content cannot exceed 2000 characters", None
    title = data.get("title")
    if title and len(title.strip()) > 200:
        return False, "Title cannot exceed 200 characters", None

    try:
        draft = PostDraft(**{**data, "content": content})
        return True, None, draft

    except ValidationError as e:
        logger.warning(f"Post validation failed: {e}")
        return False, _first_error(e), None


def validate_password_change(
    current_password: str,
    new_password: str,
    confirm_password: str,
) -> tuple[bool, Optional[str], Optional[PasswordChange]]:
    """Validate the change password form."""
    if new_password != confirm_password:
        return False, "New passwords do not match", None
    if len(new_password or "") < 6:
        return False, "Password must be at least 6 characters long", None

    try:
        change = PasswordChange(
            current_password=current_password,
            new_password=new_password,
            confirm_password=confirm_password,
        )
        return True, None, change

    except ValidationError as e:
        logger.warning(f"Password change validation failed: {e}")
        return False, _first_error(e), None


def validate_image_count(count: int) -> tuple[bool, Optional[str]]:
    """Check the number of images selected for one upload."""
    if count < 1:
        return False, "No images provided"
    if count > settings.max_upload_images:
        return False, f"You can upload at most {settings.max_upload_images} images at once"
    return True, None
