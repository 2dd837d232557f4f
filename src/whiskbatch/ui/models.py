"""Data models for the batch UI state and preferences."""

import logging
from dataclasses import dataclass, field
from typing import Any

from whiskbatch.core.batch import CancellationToken, GenerationTask, TaskStatus
from whiskbatch.core.config import (
    ASPECT_RATIOS,
    DEFAULT_ASPECT_RATIO,
    DEFAULT_REQUEST_DELAY_MS,
)
from whiskbatch.core.images import GeneratedImage

logger = logging.getLogger(__name__)

# Browser local-storage keys
SESSION_STORAGE_KEY = "img_gen_session_data"
CONFIG_STORAGE_KEY = "img_gen_config"

DEFAULT_PREFERENCES = {
    "aspect_ratio": DEFAULT_ASPECT_RATIO,
    "request_delay": DEFAULT_REQUEST_DELAY_MS,
}

# Dropdown choices as (label, value) pairs
ASPECT_RATIO_CHOICES = [(label, ratio_id) for ratio_id, label in ASPECT_RATIOS.items()]


@dataclass
class CredentialState:
    """The user's saved session credential.

    Attributes
    ----------
    token : str | None
        Session-token cookie value
    expiry_ms : int | None
        Cookie expiry in epoch milliseconds, ``None`` if unknown
    status : str
        "idle" (nothing saved), "valid", "expired" or "missing" (last paste
        had no session cookie)
    saved : bool
        True once a credential has been saved
    """

    token: str | None = None
    expiry_ms: int | None = None
    status: str = "idle"
    saved: bool = False

    def to_storage(self) -> dict:
        """Value persisted under :data:`SESSION_STORAGE_KEY`."""
        return {"token": self.token, "expiry": self.expiry_ms}


@dataclass
class UIState:
    """Session state for the Gradio UI.

    Each browser session gets its own instance.

    Attributes
    ----------
    credential : CredentialState
        Saved credential and its advisory status
    feed : list
        Result feed in display order; holds pending/error
        :class:`GenerationTask` cards and :class:`GeneratedImage` results
    cancel_token : CancellationToken | None
        Stop flag of the run in progress
    preview_id : str | None
        Id of the image shown in the details panel
    """

    credential: CredentialState = field(default_factory=CredentialState)
    feed: list[Any] = field(default_factory=list)
    cancel_token: CancellationToken | None = None
    preview_id: str | None = None

    @property
    def is_generating(self) -> bool:
        return self.cancel_token is not None

    def images(self) -> list[GeneratedImage]:
        """Images in the feed, in display order."""
        return [item for item in self.feed if isinstance(item, GeneratedImage)]

    def selected_images(self) -> list[GeneratedImage]:
        return [image for image in self.images() if image.selected]

    def error_tasks(self) -> list[GenerationTask]:
        return [
            item
            for item in self.feed
            if isinstance(item, GenerationTask) and item.status == TaskStatus.ERROR
        ]

    def find(self, item_id: str) -> Any | None:
        return next((item for item in self.feed if item.id == item_id), None)

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"UIState(credential={self.credential.status}, "
            f"feed={len(self.feed)}, generating={self.is_generating})"
        )
