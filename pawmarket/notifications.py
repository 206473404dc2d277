"""
Toast notifications.

Views report the outcome of user actions here instead of raising; the CLI
prints whatever is queued after each command.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional
from loguru import logger
from pydantic import BaseModel, Field

from .config import settings


class ToastKind(str, Enum):
    """Toast flavours."""
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class Toast(BaseModel):
    """A single transient notification."""

    kind: ToastKind
    message: str
    duration: float = Field(default=4.0, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now - self.created_at > timedelta(seconds=self.duration)


class Notifier:
    """Queue of toasts shown to the user."""

    def __init__(self, duration: Optional[float] = None):
        self.duration = settings.toast_duration if duration is None else duration
        self.toasts: List[Toast] = []

    def _push(self, kind: ToastKind, message: str) -> Toast:
        toast = Toast(kind=kind, message=message, duration=self.duration)
        self.toasts.append(toast)
        return toast

    def success(self, message: str) -> Toast:
        logger.info(f"[toast] {message}")
        return self._push(ToastKind.SUCCESS, message)

    def error(self, message: str) -> Toast:
        logger.warning(f"[toast] {message}")
        return self._push(ToastKind.ERROR, message)

    def info(self, message: str) -> Toast:
        logger.debug(f"[toast] {message}")
        return self._push(ToastKind.INFO, message)

    def active(self, now: Optional[datetime] = None) -> List[Toast]:
        """Toasts that have not timed out yet."""
        return [toast for toast in self.toasts if not toast.expired(now)]

    def drain(self) -> List[Toast]:
        """Return and forget every queued toast."""
        toasts, self.toasts = self.toasts, []
        return toasts

    def messages(self, kind: Optional[ToastKind] = None) -> List[str]:
        return [t.message for t in self.toasts if kind is None or t.kind == kind]

    def clear(self) -> None:
        self.toasts.clear()
