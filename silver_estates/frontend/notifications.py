"""
Transient user notifications (toasts).
"""

from dataclasses import dataclass
from typing import List
import logging

logger = logging.getLogger(__name__)

DEFAULT = "default"
DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Toast:
    title: str
    description: str = ""
    variant: str = DEFAULT

    @property
    def is_error(self) -> bool:
        return self.variant == DESTRUCTIVE


class ToastQueue:
    """Toasts waiting to be shown, oldest first."""

    def __init__(self):
        self._toasts: List[Toast] = []

    def push(self, title: str, description: str = "", variant: str = DEFAULT) -> Toast:
        toast = Toast(title=title, description=description, variant=variant)
        self._toasts.append(toast)
        return toast

    def success(self, title: str, description: str = "") -> Toast:
        return self.push(title, description)

    def error(self, title: str, description: str = "") -> Toast:
        logger.debug(f"Error toast: {title} - {description}")
        return self.push(title, description, DESTRUCTIVE)

    def drain(self) -> List[Toast]:
        """Remove and return every pending toast."""
        toasts, self._toasts = self._toasts, []
        return toasts

    @property
    def pending(self) -> List[Toast]:
        return list(self._toasts)

    def __len__(self) -> int:
        return len(self._toasts)
