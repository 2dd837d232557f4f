"""UI event handlers organized by feature area.

This package provides handlers for all Gradio UI events, organized into logical modules:
- session: Session credential and preference persistence
- generation: Batch queue start and stop
- feed: Result selection, deletion, download and preview
"""

from .feed import (
    clear_errors,
    delete_selected,
    deselect_all,
    download_selected,
    remove_item,
    reuse_prompt,
    select_all,
    select_image,
)
from .generation import start_generation, stop_generation
from .session import (
    clear_session,
    load_preferences,
    refresh_session_status,
    restore_session,
    save_preferences,
    save_session,
)

__all__ = [
    # Session handlers
    "clear_session",
    "load_preferences",
    "refresh_session_status",
    "restore_session",
    "save_preferences",
    "save_session",
    # Generation handlers
    "start_generation",
    "stop_generation",
    # Feed handlers
    "clear_errors",
    "delete_selected",
    "deselect_all",
    "download_selected",
    "remove_item",
    "reuse_prompt",
    "select_all",
    "select_image",
]
