"""
REST API clients for PawMarket.
Handles communication with the marketplace backend: pets, auth, uploads,
community groups and admin endpoints.
"""

import mimetypes
from pathlib import Path
from typing import List, Dict, Any, Optional, Type, TypeVar, Union, TYPE_CHECKING
import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from ..config import settings
from ..schemas.pet_data import (
    Pet, PetDetail, PetDraft, PetFilters, PetPage, Pagination,
    LikeResult, PetStats, PetReport,
)
from ..schemas.user_profile import (
    User, LoginResponse, RegistrationForm, ProfileUpdate,
    PasswordChange, NotificationSettings, AccountStats,
)
from ..schemas.group_data import (
    Group, GroupDetail, GroupPage, GroupPost, GroupDraft, GroupFilters,
    PostDraft, MemberAction, Comment,
)

if TYPE_CHECKING:
    from ..session import SessionStore, Navigator


NETWORK_ERROR_MESSAGE = "Network error. Please check your internet connection."
INVALID_RESPONSE_MESSAGE = "Invalid response from server"

# Keys cleared from the session when the server rejects the token
SESSION_KEYS = ("token", "user", "role")

ImageInput = Union[str, Path, bytes]
M = TypeVar("M", bound=BaseModel)


class ApiError(Exception):
    """Error response from the marketplace API."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        data: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data

    @property
    def fields(self) -> List[str]:
        """Missing/invalid field names reported by a 400 response."""
        if isinstance(self.data, dict):
            return list(self.data.get("fields") or [])
        return []

    def __str__(self) -> str:
        if self.status:
            return f"{self.status}: {self.message}"
        return self.message


class UnauthorizedError(ApiError):
    """401 from the API; the local session has already been cleared."""


class NetworkError(ApiError):
    """The request never got a response."""

    def __init__(self, message: str = NETWORK_ERROR_MESSAGE, original: Optional[Exception] = None):
        super().__init__(message)
        self.original = original


class InvalidResponseError(ApiError):
    """A 2xx response whose body could not be decoded or did not match the expected shape."""

    def __init__(self, status: Optional[int] = None, data: Optional[Any] = None):
        super().__init__(INVALID_RESPONSE_MESSAGE, status, data)


class ApiClient:
    """
    Thin async wrapper over the marketplace REST API.

    Attaches the bearer token from the session store to every request and
    turns error responses into ``ApiError``. A 401 clears the stored session
    and sends the navigator to ``/login``.
    """

    def __init__(
        self,
        session: Optional["SessionStore"] = None,
        navigator: Optional["Navigator"] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session
        self.navigator = navigator
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout or settings.api_timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _get_headers(self) -> Dict[str, str]:
        """Request headers with the bearer token when logged in."""
        headers = {"Accept": "application/json"}
        token = self.session.get("token") if self.session else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        files: Optional[List[Any]] = None,
        raw: bool = False,
    ) -> Any:
        """
        Send a request and return the decoded JSON body.

        Args:
            method: HTTP method
            path: Endpoint path relative to the API base URL
            params: Query parameters; ``None`` and blank values are dropped
            json: JSON request body
            files: Multipart file parts
            raw: Return the response bytes instead of decoded JSON

        Returns:
            Decoded response body (or bytes when ``raw``)

        Raises:
            NetworkError: the server could not be reached
            UnauthorizedError: the token was rejected
            ApiError: any other non-2xx response
        """
        if params:
            params = {k: v for k, v in params.items() if v is not None and v != ""}

        logger.debug(f"{method} {path} params={params}")

        try:
            response = await self._client.request(
                method,
                path,
                params=params or None,
                json=json,
                files=files,
                headers=self._get_headers(),
            )
        except httpx.TransportError as e:
            logger.error(f"Network Error: {e}")
            raise NetworkError(original=e) from e

        if response.is_success:
            if raw:
                return response.content
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                logger.error(f"Invalid JSON from {method} {path}: {e}")
                raise InvalidResponseError(response.status_code, response.text) from e

        self._raise_for_status(response)

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Log by status code, then raise the matching ApiError."""
        try:
            data = response.json()
        except ValueError:
            data = {"message": response.text}

        status = response.status_code
        message = None
        if isinstance(data, dict):
            message = data.get("message")
        message = message or response.reason_phrase or f"Request failed with status {status}"

        if status == 401:
            logger.warning("Unauthorized: clearing session")
            self._handle_unauthorized()
            raise UnauthorizedError(message, status, data)
        elif status == 403:
            logger.error(f"Permission denied: {data}")
        elif status == 404:
            logger.error(f"Resource not found: {data}")
        elif status == 500:
            logger.error(f"Server error: {data}")
        else:
            logger.error(f"Error {status}: {data}")

        raise ApiError(message, status, data)

    def _handle_unauthorized(self) -> None:
        if self.session is not None:
            for key in SESSION_KEYS:
                self.session.remove(key)
        # Only redirect if not already on the login page
        if self.navigator is not None and "/login" not in self.navigator.current_path:
            self.navigator.navigate("/login", replace=True)

    async def get(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs) -> Any:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)


def _unwrap(data: Any, key: str) -> Any:
    """Return ``data[key]`` when the body wraps the record, otherwise the body itself."""
    if isinstance(data, dict) and key in data:
        return data[key]
    return data


def _validate(model: Type[M], data: Any) -> M:
    """Validate a response body, raising InvalidResponseError on a shape mismatch."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.error(f"Unexpected {model.__name__} response: {e}")
        raise InvalidResponseError(data=data) from e


def _unwrap_list(data: Any, *keys: str) -> List[Any]:
    """Accept either a bare list or an object wrapping one under ``keys``."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in keys:
            value = data.get(key)
            if isinstance(value, list):
                return value
    return []


def parse_pets(data: Any, *keys: str) -> List[Pet]:
    """Parse a pet list response, skipping records that fail validation."""
    pets = []
    for item in _unwrap_list(data, *(keys or ("pets",))):
        try:
            pets.append(Pet.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Failed to parse pet record: {e}")
    return pets


def parse_pet_page(data: Any) -> PetPage:
    """Parse ``{pets, pagination}`` or a bare list into a PetPage."""
    pets = parse_pets(data, "pets")
    if isinstance(data, dict) and isinstance(data.get("pagination"), dict):
        pagination = _validate(Pagination, data["pagination"])
    else:
        pagination = Pagination(total=len(pets), page=1, pages=1 if pets else 0)
    return PetPage(pets=pets, pagination=pagination)


class PetAPI:
    """Pet listing endpoints."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def get_all_pets(
        self,
        filters: Optional[PetFilters] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> PetPage:
        """
        Get one page of pets matching the given filters.

        Args:
            filters: Server-side filters
            page: Page number (1-based)
            limit: Page size, defaults to settings.page_size

        Returns:
            PetPage with pets and pagination
        """
        params = filters.to_query_params() if filters else {}
        params["page"] = page
        params["limit"] = limit or settings.page_size
        data = await self.client.get("/pets", params=params)
        return parse_pet_page(data)

    async def get_pet(self, pet_id: str) -> PetDetail:
        """Get a pet with viewer like state and similar pets."""
        data = await self.client.get(f"/pets/{pet_id}")
        if isinstance(data, dict) and "pet" in data:
            return _validate(PetDetail, data)
        return PetDetail(pet=_validate(Pet, data))

    async def add_pet(self, draft: PetDraft) -> Pet:
        data = await self.client.post("/pets", json=draft.to_payload())
        logger.info(f"Posted pet {draft.name}")
        return _validate(Pet, _unwrap(data, "pet"))

    async def update_pet(self, pet_id: str, draft: Union[PetDraft, Dict[str, Any]]) -> Pet:
        payload = draft.to_payload() if isinstance(draft, PetDraft) else draft
        data = await self.client.put(f"/pets/{pet_id}", json=payload)
        return _validate(Pet, _unwrap(data, "pet"))

    async def delete_pet(self, pet_id: str) -> Dict[str, Any]:
        return await self.client.delete(f"/pets/{pet_id}")

    async def toggle_like(self, pet_id: str) -> LikeResult:
        data = await self.client.post(f"/pets/{pet_id}/like")
        return _validate(LikeResult, data)

    async def adopt_pet(self, pet_id: str) -> Optional[Pet]:
        """Send an adoption request; returns the updated pet when the server includes it."""
        data = await self.client.post("/pets/adopt", json={"petId": pet_id}) or {}
        pet = data.get("pet") if isinstance(data, dict) else None
        return _validate(Pet, pet) if pet else None

    async def report_pet(self, pet_id: str, report: PetReport) -> str:
        data = await self.client.post(f"/pets/{pet_id}/report", json=report.to_api())
        return (data or {}).get("message", "Pet reported successfully")

    async def get_user_pets(self) -> List[Pet]:
        """Pets posted by the current user."""
        return parse_pets(await self.client.get("/pets/user/posted"), "pets")

    async def get_adopted_pets(self) -> List[Pet]:
        """Pets adopted by the current user."""
        return parse_pets(await self.client.get("/pets/user/adopted"), "pets")

    async def get_favorite_pets(self) -> List[Pet]:
        """Pets liked by the current user."""
        return parse_pets(await self.client.get("/pets/user/favorites"), "favorites", "pets")

    async def search_pets(self, **query: Any) -> List[Pet]:
        """Search by name, breed, category or originType."""
        return parse_pets(await self.client.get("/pets/search", params=query), "pets")

    async def get_trending(self) -> List[Pet]:
        return parse_pets(await self.client.get("/pets/trending"), "pets")

    async def get_recommended(self) -> List[Pet]:
        return parse_pets(await self.client.get("/pets/recommended"), "pets")

    async def get_nearby(self, lat: float, lon: float, radius: Optional[int] = None) -> List[Pet]:
        params = {"lat": lat, "lon": lon, "radius": radius or settings.nearby_radius_km}
        return parse_pets(await self.client.get("/pets/nearby", params=params), "pets")

    async def get_stats(self) -> PetStats:
        return _validate(PetStats, await self.client.get("/pets/stats") or {})

    async def get_insights(self) -> Dict[str, Any]:
        return await self.client.get("/pets/insights") or {}


class AuthAPI:
    """Authentication and account endpoints."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def login(self, email: str, password: str) -> LoginResponse:
        data = await self.client.post("/auth/login", json={"email": email, "password": password})
        return _validate(LoginResponse, data)

    async def register(self, form: RegistrationForm) -> str:
        data = await self.client.post("/auth/register", json=form.to_api())
        return (data or {}).get("message", "User registered successfully")

    async def get_current_user(self) -> User:
        return _validate(User, await self.client.get("/auth/profile"))

    async def update_profile(self, update: ProfileUpdate) -> User:
        data = await self.client.put("/auth/profile", json=update.to_api())
        return _validate(User, _unwrap(data, "user"))

    async def change_password(self, change: PasswordChange) -> str:
        data = await self.client.post("/auth/change-password", json=change.to_api())
        return (data or {}).get("message", "Password updated successfully")

    async def update_notification_settings(self, prefs: NotificationSettings) -> Dict[str, Any]:
        return await self.client.put("/auth/notification-settings", json=prefs.to_api())

    async def get_account_stats(self) -> AccountStats:
        return _validate(AccountStats, await self.client.get("/auth/account-stats") or {})

    async def export_data(self) -> bytes:
        return await self.client.get("/auth/export-data", raw=True)

    async def delete_account(self) -> Dict[str, Any]:
        return await self.client.delete("/auth/account")


def _sniff_image_type(content: bytes) -> Optional[str]:
    """Detect common image formats from their magic bytes."""
    if content.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if content.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if content[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if content[:4] == b"RIFF" and content[8:12] == b"WEBP":
        return "image/webp"
    return None


class UploadAPI:
    """Image upload endpoints."""

    def __init__(self, client: ApiClient):
        self.client = client

    @staticmethod
    def is_data_uri(image: Any) -> bool:
        return isinstance(image, str) and image.startswith("data:image")

    def _file_part(self, image: ImageInput, index: int = 0) -> tuple:
        """Build a ``(filename, content, mime)`` multipart tuple."""
        if isinstance(image, bytes):
            content = image
            mime = _sniff_image_type(content)
            extension = mimetypes.guess_extension(mime) if mime else ""
            filename = f"upload-{index}{extension or ''}"
        elif isinstance(image, (str, Path)) and Path(image).is_file():
            path = Path(image)
            content = path.read_bytes()
            mime = mimetypes.guess_type(path.name)[0] or _sniff_image_type(content)
            filename = path.name
        else:
            raise ValueError("Invalid image format")

        if not mime or not mime.startswith("image/"):
            raise ValueError("Only image files are allowed")
        if len(content) > settings.max_upload_bytes:
            raise ValueError(
                f"{filename} is larger than {settings.max_upload_bytes // (1024 * 1024)}MB"
            )
        return (filename, content, mime)

    async def upload_image(self, image: ImageInput) -> str:
        """
        Upload one image.

        Args:
            image: File path, raw bytes, or a ``data:image/...`` base64 string

        Returns:
            URL of the stored image
        """
        if self.is_data_uri(image):
            data = await self.client.post("/upload/image-base64", json={"image": image})
        else:
            files = [("image", self._file_part(image))]
            data = await self.client.post("/upload/image", files=files)
        return data.get("imageUrl") or data.get("url")

    async def upload_images(self, images: List[ImageInput]) -> List[str]:
        """Upload several images in one request; returns their URLs."""
        if not isinstance(images, list) or not images:
            raise ValueError("No images provided")
        if len(images) > settings.max_upload_images:
            raise ValueError(f"You can upload at most {settings.max_upload_images} images at once")

        if self.is_data_uri(images[0]):
            data = await self.client.post("/upload/images-base64", json={"images": images})
        else:
            files = [("images", self._file_part(image, i)) for i, image in enumerate(images)]
            data = await self.client.post("/upload/images", files=files)
        return list(data.get("imageUrls") or data.get("urls") or [])


class GroupAPI:
    """Community group and post endpoints."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def get_groups(
        self,
        filters: Optional[GroupFilters] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> GroupPage:
        params = filters.to_query_params() if filters else {}
        params["page"] = page
        params["limit"] = limit or settings.page_size
        return _validate(GroupPage, await self.client.get("/groups", params=params) or {})

    async def get_group(self, group_id: str) -> GroupDetail:
        return _validate(GroupDetail, await self.client.get(f"/groups/{group_id}"))

    async def get_my_groups(self) -> List[Group]:
        data = await self.client.get("/groups/my-groups")
        return [_validate(Group, g) for g in _unwrap_list(data, "groups")]

    async def get_group_stats(self) -> Dict[str, Any]:
        return await self.client.get("/groups/stats") or {}

    async def create_group(self, draft: GroupDraft) -> Group:
        data = await self.client.post("/groups", json=draft.to_api())
        return _validate(Group, _unwrap(data, "group"))

    async def update_group(self, group_id: str, draft: GroupDraft) -> Group:
        data = await self.client.put(f"/groups/{group_id}", json=draft.to_api())
        return _validate(Group, _unwrap(data, "group"))

    async def delete_group(self, group_id: str) -> Dict[str, Any]:
        return await self.client.delete(f"/groups/{group_id}")

    async def join_group(self, group_id: str) -> Dict[str, Any]:
        return await self.client.post(f"/groups/{group_id}/join")

    async def leave_group(self, group_id: str) -> Dict[str, Any]:
        return await self.client.post(f"/groups/{group_id}/leave")

    async def manage_member(
        self,
        group_id: str,
        member_id: str,
        action: MemberAction,
        role: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = {"action": MemberAction(action).value}
        if role:
            body["role"] = role
        return await self.client.patch(f"/groups/{group_id}/members/{member_id}", json=body)

    async def invite(self, group_id: str, email: str) -> Dict[str, Any]:
        return await self.client.post(f"/groups/{group_id}/invite", json={"email": email})

    async def get_posts(self, group_id: str, page: int = 1) -> Dict[str, Any]:
        """Posts of a group; returns ``{"posts": [...], "pagination": Pagination}``."""
        data = await self.client.get(f"/groups/{group_id}/posts", params={"page": page}) or {}
        posts = [_validate(GroupPost, p) for p in _unwrap_list(data, "posts")]
        raw_pagination = data.get("pagination") if isinstance(data, dict) else None
        pagination = _validate(Pagination, raw_pagination or {"total": len(posts)})
        return {"posts": posts, "pagination": pagination}

    async def create_post(self, group_id: str, draft: PostDraft) -> GroupPost:
        data = await self.client.post(f"/groups/{group_id}/posts", json=draft.to_api())
        return _validate(GroupPost, _unwrap(data, "post"))

    async def update_post(self, post_id: str, draft: PostDraft) -> GroupPost:
        data = await self.client.put(f"/groups/posts/{post_id}", json=draft.to_api())
        return _validate(GroupPost, _unwrap(data, "post"))

    async def delete_post(self, post_id: str) -> Dict[str, Any]:
        return await self.client.delete(f"/groups/posts/{post_id}")

    async def toggle_like_post(self, post_id: str) -> Dict[str, Any]:
        return await self.client.post(f"/groups/posts/{post_id}/like")

    async def toggle_pin_post(self, post_id: str) -> Dict[str, Any]:
        return await self.client.post(f"/groups/posts/{post_id}/pin")

    async def add_comment(self, post_id: str, content: str) -> Comment:
        data = await self.client.post(f"/groups/posts/{post_id}/comments", json={"content": content})
        return _validate(Comment, (data or {}).get("comment", data or {}))

    async def delete_comment(self, post_id: str, comment_id: str) -> Dict[str, Any]:
        return await self.client.delete(f"/groups/posts/{post_id}/comments/{comment_id}")

    async def share_pet(self, group_id: str, pet_id: str, message: str = "") -> GroupPost:
        data = await self.client.post(
            f"/groups/{group_id}/share-pet",
            json={"petId": pet_id, "content": message},
        )
        return _validate(GroupPost, _unwrap(data, "post"))


class AdminAPI:
    """Admin-only endpoints."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def get_users(self) -> List[User]:
        data = await self.client.get("/admin/users")
        return [_validate(User, u) for u in _unwrap_list(data, "users")]

    async def get_pets(self) -> List[Pet]:
        return parse_pets(await self.client.get("/admin/pets"), "pets")

    async def get_stats(self) -> Dict[str, Any]:
        return await self.client.get("/admin/stats") or {}

    async def delete_user(self, user_id: str) -> Dict[str, Any]:
        return await self.client.delete(f"/admin/users/{user_id}")

    async def delete_pet(self, pet_id: str) -> Dict[str, Any]:
        return await self.client.delete(f"/admin/pets/{pet_id}")
