"""
Post and edit pet forms.
"""

from typing import Any, Dict, List, Optional
from loguru import logger

from ..config import settings
from ..notifications import Notifier
from ..schemas.pet_data import Pet
from ..utils.api_clients import ApiClient, ApiError, PetAPI, UploadAPI, ImageInput
from ..utils.validators import validate_pet_form, validate_image_count

# Pet fields copied into the form when editing
EDITABLE_FIELDS = (
    "name", "age", "breed", "category", "gender", "size", "color", "weight",
    "vaccinated", "neutered", "health_details", "dietary_needs", "special_needs",
    "temperament", "activity_level", "location", "description", "adoption_fee",
    "currency", "origin_type", "found_location", "found_date", "urgency",
)


class PetFormView:
    """
    Form state for posting a new pet or editing an existing one.

    Images are uploaded first; their URLs become the pet's photos when the
    form is submitted.
    """

    def __init__(self, client: ApiClient, auth, notifier: Optional[Notifier] = None):
        self.pets = PetAPI(client)
        self.uploads = UploadAPI(client)
        self.auth = auth
        self.notifier = notifier or Notifier()

        self.pet_id: Optional[str] = None
        self.data: Dict[str, Any] = {
            "size": "medium",
            "currency": "USD",
            "origin_type": "owned",
            "urgency": "medium",
        }
        self.images: List[str] = []
        self.uploading = False
        self.submitting = False

    @property
    def is_edit(self) -> bool:
        return self.pet_id is not None

    def set_field(self, name: str, value: Any) -> None:
        self.data[name] = value

    def update(self, **fields: Any) -> None:
        self.data.update(fields)

    async def upload_images(self, images: List[ImageInput]) -> List[str]:
        """
        Upload selected images and keep their URLs.

        Args:
            images: File paths, raw bytes or base64 data URIs

        Returns:
            URLs added by this upload
        """
        is_valid, error = validate_image_count(len(images))
        if not is_valid:
            self.notifier.error(error)
            return []

        self.uploading = True
        try:
            if len(images) == 1:
                urls = [await self.uploads.upload_image(images[0])]
            else:
                urls = await self.uploads.upload_images(images)
        except ValueError as e:
            self.notifier.error(str(e))
            return []
        except ApiError as e:
            logger.error(f"Image upload failed: {e}")
            self.notifier.error("Failed to upload images")
            return []
        finally:
            self.uploading = False

        urls = [url for url in urls if url]
        self.images.extend(urls)
        self.notifier.success("Images uploaded successfully!")
        return urls

    def remove_image(self, url: str) -> None:
        self.images = [image for image in self.images if image != url]

    async def load_for_edit(self, pet_id: str) -> Optional[Pet]:
        """Prefill the form from an existing listing the user owns."""
        try:
            detail = await self.pets.get_pet(pet_id)
        except ApiError as e:
            logger.error(f"Error loading pet {pet_id} for edit: {e}")
            self.notifier.error("Pet not found" if e.status == 404 else "Failed to load pet details")
            return None

        pet = detail.pet
        is_owner = self.auth and self.auth.user_id and pet.owner_id == self.auth.user_id
        if not is_owner and not (self.auth and self.auth.is_admin):
            self.notifier.error("You can only edit your own pets")
            self.auth.navigator.navigate(f"/pets/{pet_id}")
            return None

        self.pet_id = pet.id
        values = pet.model_dump(mode="json")
        self.data = {name: values.get(name) for name in EDITABLE_FIELDS if values.get(name) is not None}
        self.data["good_with"] = pet.good_with.model_dump()
        self.images = list(pet.photos) or ([pet.image] if pet.image else [])
        return pet

    async def submit(self) -> Optional[Pet]:
        """
        Validate and send the form.

        Returns:
            The saved pet, or None when validation or the request failed
        """
        is_valid, error, draft = validate_pet_form(self.data, self.images)
        if not is_valid:
            self.notifier.error(error)
            return None

        self.submitting = True
        try:
            if self.is_edit:
                pet = await self.pets.update_pet(self.pet_id, draft)
            else:
                pet = await self.pets.add_pet(draft)
        except ApiError as e:
            logger.error(f"Failed to save pet: {e}")
            if e.fields:
                self.notifier.error(f"{e.message}: {', '.join(e.fields)}")
            else:
                self.notifier.error(e.message or "Failed to save pet")
            return None
        finally:
            self.submitting = False

        if self.is_edit:
            self.notifier.success("Pet updated successfully!")
        else:
            self.notifier.success("Pet posted successfully!")
        self.auth.navigator.navigate(f"/pets/{pet.id}")
        return pet

    def preview(self) -> Dict[str, Any]:
        """Summary of the form as it would be listed."""
        return {
            "name": self.data.get("name", ""),
            "image": self.images[0] if self.images else None,
            "images": len(self.images),
            "max_images": settings.max_upload_images,
            "fee": 0 if self.data.get("origin_type") == "stray" else self.data.get("adoption_fee", 0),
        }
