"""
Account settings: profile, password, notifications, data export, deactivation.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union
from loguru import logger
from pydantic import ValidationError

from ..notifications import Notifier
from ..schemas.user_profile import AccountStats, NotificationSettings, ProfileUpdate
from ..utils.api_clients import ApiClient, ApiError, AuthAPI
from ..utils.validators import validate_password_change
from ..utils.helpers import format_datetime


class AccountSettingsView:
    """Settings for the signed-in account."""

    def __init__(self, client: ApiClient, auth, notifier: Optional[Notifier] = None):
        self.api = AuthAPI(client)
        self.auth = auth
        self.notifier = notifier or Notifier()
        self.stats: Optional[AccountStats] = None
        self.notification_settings = NotificationSettings()

    async def load(self) -> Optional[AccountStats]:
        """Refresh the profile and activity stats."""
        user = await self.auth.refresh_profile()
        if user is not None:
            self.notification_settings = user.notification_settings
        try:
            self.stats = await self.api.get_account_stats()
        except ApiError as e:
            logger.warning(f"Failed to load account stats: {e}")
        return self.stats

    async def update_profile(self, **fields: Any) -> bool:
        try:
            update = ProfileUpdate(**fields)
        except ValidationError as e:
            logger.warning(f"Profile update rejected: {e}")
            self.notifier.error(e.errors()[0].get("msg", "Invalid profile data"))
            return False
        return await self.auth.update_profile(update) is not None

    async def change_password(self, current_password: str, new_password: str, confirm_password: str) -> bool:
        is_valid, error, change = validate_password_change(current_password, new_password, confirm_password)
        if not is_valid:
            self.notifier.error(error)
            return False
        try:
            await self.api.change_password(change)
        except ApiError as e:
            logger.error(f"Password change failed: {e}")
            self.notifier.error(e.message or "Failed to update password")
            return False
        self.notifier.success("Password updated successfully!")
        return True

    async def update_notifications(self, **prefs: bool) -> bool:
        updated = self.notification_settings.model_copy(update=prefs)
        try:
            await self.api.update_notification_settings(updated)
        except ApiError as e:
            logger.error(f"Notification settings update failed: {e}")
            self.notifier.error("Failed to update notification settings")
            return False
        self.notification_settings = updated
        self.notifier.success("Notification preferences updated")
        return True

    async def export_data(self, directory: Union[str, Path] = ".") -> Optional[Path]:
        """Download the account data export into ``directory``."""
        try:
            content = await self.api.export_data()
        except ApiError as e:
            logger.error(f"Data export failed: {e}")
            self.notifier.error(e.message or "Failed to export data")
            return None

        target = Path(directory) / f"pawmarket-data-{datetime.now().strftime('%Y-%m-%d')}.json"
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content or b"")
        logger.info(f"Account data written to {target}")
        self.notifier.success("Account data downloaded successfully")
        return target

    async def deactivate(self, confirmation: str) -> bool:
        """Delete the account; the user must type DELETE to confirm."""
        if confirmation != "DELETE":
            self.notifier.error("Please type DELETE to confirm")
            return False
        try:
            await self.api.delete_account()
        except ApiError as e:
            logger.error(f"Account deactivation failed: {e}")
            self.notifier.error(e.message or "Failed to deactivate account")
            return False
        self.notifier.success("Account deactivated successfully")
        self.auth.logout()
        return True

    def summary(self) -> Dict[str, Any]:
        user = self.auth.user
        return {
            "name": user.name if user else None,
            "email": user.email if user else None,
            "role": self.auth.role,
            "member_since": format_datetime(user.created_at) if user and user.created_at else None,
            "stats": self.stats.model_dump() if self.stats else {},
        }
