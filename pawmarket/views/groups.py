"""
Community group views: browsing, detail/posts, management and "my groups".
"""

import asyncio
from typing import Any, Dict, List, Optional, Union
from loguru import logger

from ..config import settings
from ..notifications import Notifier
from ..schemas.group_data import (
    Group, GroupDetail, GroupDraft, GroupFilters, GroupPost, MemberAction,
    MemberRole, PostDraft,
)
from ..schemas.pet_data import Pagination
from ..utils.api_clients import ApiClient, ApiError, GroupAPI
from ..utils.validators import validate_group_form, validate_post_form


def _draft(data: Union[Dict[str, Any], GroupDraft, PostDraft], validator):
    """Return (draft, error) from a model or raw form data."""
    if isinstance(data, (GroupDraft, PostDraft)):
        return data, None
    is_valid, error, draft = validator(data)
    return (draft, None) if is_valid else (None, error)


class GroupsBrowser:
    """Paginated, filterable list of groups."""

    def __init__(self, client: ApiClient, auth=None, notifier: Optional[Notifier] = None):
        self.api = GroupAPI(client)
        self.auth = auth
        self.notifier = notifier or Notifier()

        self.filters = GroupFilters()
        self.page = 1
        self.groups: List[Group] = []
        self.pagination = Pagination()
        self.loading = False

    async def fetch(self) -> List[Group]:
        self.loading = True
        try:
            result = await self.api.get_groups(self.filters, page=self.page, limit=settings.page_size)
            self.groups = result.groups
            self.pagination = result.pagination
        except ApiError as e:
            logger.error(f"Error fetching groups: {e}")
            self.groups = []
            self.notifier.error("Failed to load groups")
        finally:
            self.loading = False
        return self.groups

    async def set_filter(self, key: str, value: Any) -> List[Group]:
        """Change a filter, go back to page 1 and refetch."""
        if key not in GroupFilters.model_fields:
            raise ValueError(f"Unknown filter: {key}")
        setattr(self.filters, key, "" if value is None else str(value))
        self.page = 1
        return await self.fetch()

    async def search(self, term: str) -> List[Group]:
        return await self.set_filter("search", term)

    async def go_to_page(self, page: int) -> bool:
        if page < 1 or page > self.pagination.pages or page == self.page:
            return False
        self.page = page
        await self.fetch()
        return True

    async def join(self, group_id: str) -> bool:
        if not (self.auth and self.auth.is_authenticated):
            self.notifier.error("Please login to join groups")
            return False
        try:
            await self.api.join_group(group_id)
        except ApiError as e:
            logger.error(f"Failed to join group {group_id}: {e}")
            self.notifier.error(e.message or "Failed to join group")
            return False
        self.notifier.success("Joined group successfully!")
        await self.fetch()
        return True

    async def create(self, data: Union[Dict[str, Any], GroupDraft]) -> Optional[Group]:
        draft, error = _draft(data, validate_group_form)
        if draft is None:
            self.notifier.error(error)
            return None
        try:
            group = await self.api.create_group(draft)
        except ApiError as e:
            logger.error(f"Failed to create group: {e}")
            self.notifier.error(e.message or "Failed to create group")
            return None
        logger.info(f"Created group {group.id}")
        self.notifier.success("Group created successfully!")
        await self.fetch()
        return group


class GroupDetailView:
    """One group with its posts."""

    def __init__(self, client: ApiClient, auth=None, notifier: Optional[Notifier] = None):
        self.api = GroupAPI(client)
        self.auth = auth
        self.notifier = notifier or Notifier()

        self.group_id: Optional[str] = None
        self.detail: Optional[GroupDetail] = None
        self.posts: List[GroupPost] = []
        self.posts_page = 1
        self.posts_pagination = Pagination()
        self.loading = False

    @property
    def group(self) -> Optional[Group]:
        return self.detail.group if self.detail else None

    @property
    def is_member(self) -> bool:
        return bool(self.detail and self.detail.is_member())

    async def load(self, group_id: str) -> Optional[GroupDetail]:
        self.group_id = group_id
        self.loading = True
        try:
            self.detail = await self.api.get_group(group_id)
        except ApiError as e:
            logger.error(f"Error loading group {group_id}: {e}")
            self.detail = None
            self.notifier.error("Failed to load group details")
            return None
        finally:
            self.loading = False

        # Private groups hide their posts from non-members
        if not self.detail.group.is_private or self.is_member:
            await self.load_posts()
        return self.detail

    async def load_posts(self, page: int = 1) -> List[GroupPost]:
        try:
            result = await self.api.get_posts(self.group_id, page=page)
        except ApiError as e:
            logger.error(f"Error loading posts for {self.group_id}: {e}")
            self.notifier.error("Failed to load posts")
            return self.posts
        self.posts = result["posts"]
        self.posts_pagination = result["pagination"]
        self.posts_page = page
        return self.posts

    async def join(self) -> bool:
        if not (self.auth and self.auth.is_authenticated):
            self.notifier.error("Please login to join groups")
            return False
        try:
            await self.api.join_group(self.group_id)
        except ApiError as e:
            logger.error(f"Failed to join group {self.group_id}: {e}")
            self.notifier.error(e.message or "Failed to join group")
            return False
        self.notifier.success("Join request sent!")
        await self.load(self.group_id)
        return True

    async def leave(self) -> bool:
        try:
            await self.api.leave_group(self.group_id)
        except ApiError as e:
            logger.error(f"Failed to leave group {self.group_id}: {e}")
            self.notifier.error(e.message or "Failed to leave group")
            return False
        self.notifier.success("Left group successfully")
        await self.load(self.group_id)
        return True

    async def like_post(self, post_id: str) -> bool:
        try:
            await self.api.toggle_like_post(post_id)
        except ApiError as e:
            logger.error(f"Failed to like post {post_id}: {e}")
            self.notifier.error("Failed to like post")
            return False
        await self.load_posts(self.posts_page)
        return True

    async def create_post(self, data: Union[Dict[str, Any], PostDraft]) -> Optional[GroupPost]:
        draft, error = _draft(data, validate_post_form)
        if draft is None:
            self.notifier.error(error)
            return None
        try:
            post = await self.api.create_post(self.group_id, draft)
        except ApiError as e:
            logger.error(f"Failed to create post in {self.group_id}: {e}")
            self.notifier.error(e.message or "Failed to create post")
            return None
        self.notifier.success("Post created successfully!")
        await self.load_posts(1)
        return post

    async def add_comment(self, post_id: str, content: str) -> bool:
        content = (content or "").strip()
        if not content:
            self.notifier.error("Comment cannot be empty")
            return False
        try:
            await self.api.add_comment(post_id, content)
        except ApiError as e:
            logger.error(f"Failed to comment on {post_id}: {e}")
            self.notifier.error(e.message or "Failed to add comment")
            return False
        await self.load_posts(self.posts_page)
        return True

    async def share_pet(self, pet_id: str, message: str = "") -> Optional[GroupPost]:
        try:
            post = await self.api.share_pet(self.group_id, pet_id, message)
        except ApiError as e:
            logger.error(f"Failed to share pet {pet_id} to {self.group_id}: {e}")
            self.notifier.error(e.message or "Failed to share pet")
            return None
        self.notifier.success("Pet shared to group!")
        await self.load_posts(1)
        return post

    async def toggle_pin(self, post_id: str) -> bool:
        try:
            await self.api.toggle_pin_post(post_id)
        except ApiError as e:
            logger.error(f"Failed to pin post {post_id}: {e}")
            self.notifier.error(e.message or "Failed to pin post")
            return False
        await self.load_posts(self.posts_page)
        return True

    async def edit_post(self, post_id: str, data: Union[Dict[str, Any], PostDraft]) -> Optional[GroupPost]:
        draft, error = _draft(data, validate_post_form)
        if draft is None:
            self.notifier.error(error)
            return None
        try:
            post = await self.api.update_post(post_id, draft)
        except ApiError as e:
            logger.error(f"Failed to update post {post_id}: {e}")
            self.notifier.error(e.message or "Failed to update post")
            return None
        self.posts = [post if p.id == post_id else p for p in self.posts]
        self.notifier.success("Post updated successfully!")
        return post

    async def delete_post(self, post_id: str) -> bool:
        try:
            await self.api.delete_post(post_id)
        except ApiError as e:
            logger.error(f"Failed to delete post {post_id}: {e}")
            self.notifier.error(e.message or "Failed to delete post")
            return False
        self.posts = [p for p in self.posts if p.id != post_id]
        self.notifier.success("Post deleted successfully")
        return True

    async def delete_comment(self, post_id: str, comment_id: str) -> bool:
        try:
            await self.api.delete_comment(post_id, comment_id)
        except ApiError as e:
            logger.error(f"Failed to delete comment {comment_id}: {e}")
            self.notifier.error(e.message or "Failed to delete comment")
            return False
        await self.load_posts(self.posts_page)
        return True


class GroupManager:
    """Admin/moderator actions on a group."""

    def __init__(self, client: ApiClient, group_id: str, auth=None, notifier: Optional[Notifier] = None):
        self.api = GroupAPI(client)
        self.group_id = group_id
        self.auth = auth
        self.notifier = notifier or Notifier()

    async def _member_action(
        self,
        member_id: str,
        action: MemberAction,
        success: str,
        role: Optional[str] = None,
    ) -> bool:
        try:
            await self.api.manage_member(self.group_id, member_id, action, role)
        except ApiError as e:
            logger.error(f"Member action {action.value} on {member_id} failed: {e}")
            self.notifier.error(e.message or "Failed to update member")
            return False
        self.notifier.success(success)
        return True

    async def update(self, data: Union[Dict[str, Any], GroupDraft]) -> Optional[Group]:
        draft, error = _draft(data, validate_group_form)
        if draft is None:
            self.notifier.error(error)
            return None
        try:
            group = await self.api.update_group(self.group_id, draft)
        except ApiError as e:
            logger.error(f"Failed to update group {self.group_id}: {e}")
            self.notifier.error(e.message or "Failed to update group")
            return None
        self.notifier.success("Group updated successfully!")
        return group

    async def delete(self) -> bool:
        try:
            await self.api.delete_group(self.group_id)
        except ApiError as e:
            logger.error(f"Failed to delete group {self.group_id}: {e}")
            self.notifier.error(e.message or "Failed to delete group")
            return False
        self.notifier.success("Group deleted successfully")
        if self.auth:
            self.auth.navigator.navigate("/groups")
        return True

    async def set_member_role(self, member_id: str, role: str) -> bool:
        """Moderator role promotes; anything else demotes."""
        if role == MemberRole.MODERATOR.value:
            action = MemberAction.PROMOTE
        else:
            action = MemberAction.DEMOTE
        return await self._member_action(member_id, action, "Member role updated", role=role)

    async def remove_member(self, member_id: str) -> bool:
        return await self._member_action(member_id, MemberAction.BAN, "Member removed")

    async def approve_member(self, member_id: str) -> bool:
        return await self._member_action(member_id, MemberAction.APPROVE, "Member approved")

    async def reject_member(self, member_id: str) -> bool:
        return await self._member_action(member_id, MemberAction.REJECT, "Member request rejected")

    async def invite(self, email: str) -> bool:
        try:
            await self.api.invite(self.group_id, email.strip())
        except ApiError as e:
            logger.error(f"Failed to invite {email}: {e}")
            self.notifier.error(e.message or "Failed to send invitation")
            return False
        self.notifier.success(f"Invitation sent to {email.strip()}")
        return True


class MyGroups:
    """Groups the current user belongs to, plus community stats."""

    def __init__(self, client: ApiClient, notifier: Optional[Notifier] = None):
        self.api = GroupAPI(client)
        self.notifier = notifier or Notifier()
        self.groups: List[Group] = []
        self.stats: Dict[str, Any] = {}

    async def load(self) -> List[Group]:
        groups, stats = await asyncio.gather(
            self.api.get_my_groups(),
            self.api.get_group_stats(),
            return_exceptions=True,
        )
        if isinstance(groups, ApiError):
            logger.error(f"Error loading my groups: {groups}")
            self.notifier.error("Failed to load your groups")
            self.groups = []
        elif isinstance(groups, BaseException):
            raise groups
        else:
            self.groups = groups

        if isinstance(stats, ApiError):
            logger.warning(f"Error loading group stats: {stats}")
        elif isinstance(stats, BaseException):
            raise stats
        else:
            self.stats = stats
        return self.groups
