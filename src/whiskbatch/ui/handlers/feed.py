"""Result feed handlers: selection, deletion, download and preview."""

import logging
from pathlib import Path

import gradio as gr

from whiskbatch.core.batch import GenerationTask
from whiskbatch.core.config import config
from whiskbatch.core.images import GeneratedImage

from ..formatting import format_image_details, render_board, render_gallery
from ..models import UIState

logger = logging.getLogger(__name__)


def _feed_outputs(state: UIState, message: str) -> tuple[list, str, str, UIState]:
    return render_gallery(state), render_board(state), message, state


def select_image(state: UIState, evt: gr.SelectData) -> tuple[list, str, str, str, UIState]:
    """Toggle selection of the clicked gallery image and show its details.

    Args:
        state: UI state
        evt: Gallery select event (``evt.index`` is the gallery position)

    Returns:
        Tuple of (gallery, board_md, status_message, details_md, updated_state)
    """
    images = state.images()
    index = evt.index[0] if isinstance(evt.index, (list, tuple)) else evt.index
    if index is None or not 0 <= index < len(images):
        return render_gallery(state), render_board(state), "", "", state

    image = images[index]
    image.selected = not image.selected
    state.preview_id = image.id
    return (
        render_gallery(state),
        render_board(state),
        "",
        format_image_details(image),
        state,
    )


def set_all_selected(state: UIState, selected: bool) -> tuple[list, str, str, UIState]:
    """Select or deselect every image in the feed."""
    for image in state.images():
        image.selected = selected
    return _feed_outputs(state, "")


def select_all(state: UIState) -> tuple[list, str, str, UIState]:
    return set_all_selected(state, True)


def deselect_all(state: UIState) -> tuple[list, str, str, UIState]:
    return set_all_selected(state, False)


def delete_selected(state: UIState) -> tuple[list, str, str, UIState]:
    """Remove selected images from the feed."""
    before = len(state.feed)
    state.feed[:] = [
        item for item in state.feed if not (isinstance(item, GeneratedImage) and item.selected)
    ]
    removed = before - len(state.feed)
    if state.preview_id and state.find(state.preview_id) is None:
        state.preview_id = None
    return _feed_outputs(state, f"🗑️ Deleted {removed} image(s).")


def clear_errors(state: UIState) -> tuple[list, str, str, UIState]:
    """Remove failed task cards from the feed."""
    errors = state.error_tasks()
    state.feed[:] = [item for item in state.feed if item not in errors]
    return _feed_outputs(state, "✅ Errors cleared")


def remove_item(state: UIState) -> tuple[list, str, str, str, UIState]:
    """Remove the previewed image from the feed.

    Returns:
        Tuple of (gallery, board_md, status_message, details_md, updated_state)
    """
    item = state.find(state.preview_id) if state.preview_id else None
    if item is None:
        return render_gallery(state), render_board(state), "Nothing to remove.", "", state

    state.feed[:] = [existing for existing in state.feed if existing is not item]
    state.preview_id = None
    return render_gallery(state), render_board(state), "🗑️ Removed.", "", state


def download_filename(image: GeneratedImage) -> str:
    """File name for a downloaded image, unique per task and image index."""
    task_id, _, index = image.id.rpartition("-")
    if not task_id:
        return f"gen-{image.id[:8]}.jpg"
    return f"gen-{task_id[:8]}-{index}.jpg"


def download_selected(state: UIState, output_dir: Path | None = None) -> tuple[list[str] | None, str]:
    """Write the selected images to disk as JPEG files for download.

    Files are named ``gen-<first 8 chars of task id>-<image index>.jpg`` so
    every image of a multi-image task gets its own file.

    Args:
        state: UI state
        output_dir: Target directory (default: ``config.outputs_dir``)

    Returns:
        Tuple of (file_paths, status_message)
    """
    selected = state.selected_images()
    if not selected:
        return None, "❌ No images selected."

    output_dir = output_dir or config.outputs_dir
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = []
    for image in selected:
        path = output_dir / download_filename(image)
        try:
            image.to_pil().convert("RGB").save(path, format="JPEG")
        except (ValueError, OSError) as e:
            logger.warning(f"Could not save image {image.id}: {e}")
            continue
        paths.append(str(path))

    logger.info(f"Saved {len(paths)} image(s) to {output_dir}")
    return paths, f"✅ Done — {len(paths)} image(s) ready."


def reuse_prompt(state: UIState, current_text: str) -> tuple[str, str]:
    """Load the previewed image's prompt into the prompt editor.

    Returns:
        Tuple of (prompts_input_value, status_message)
    """
    item = state.find(state.preview_id) if state.preview_id else None
    if item is None or isinstance(item, GenerationTask):
        return current_text, "Select an image first."
    return item.prompt, "✅ Prompt loaded to editor"
