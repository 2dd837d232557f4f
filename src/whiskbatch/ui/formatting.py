"""Rendering helpers that turn UI state into Gradio component values."""

from datetime import datetime

from PIL import Image

from whiskbatch.core.batch import BatchRun, GenerationTask, TaskStatus
from whiskbatch.core.config import ASPECT_RATIOS
from whiskbatch.core.images import GeneratedImage

from .models import CredentialState, UIState

_STATUS_BADGES = {
    "valid": "🟢 **Active**",
    "expired": "🔴 **Expired**",
    "missing": "⚪ **Required** (session token not found)",
    "idle": "⚪ **Required**",
}


def format_session_status(credential: CredentialState) -> str:
    """Markdown for the session card in the configuration panel."""
    if not credential.saved or not credential.token:
        return f"**Session:** {_STATUS_BADGES.get(credential.status, _STATUS_BADGES['idle'])}"

    if credential.expiry_ms:
        expires = datetime.fromtimestamp(credential.expiry_ms / 1000).strftime("%Y-%m-%d %H:%M:%S")
    else:
        expires = "N/A"

    badge = _STATUS_BADGES["valid"] if credential.status == "valid" else _STATUS_BADGES["expired"]
    return f"**Session:** {badge}\n\n**Status:** {credential.status.upper()}  \n**Expires:** {expires}"


def format_progress(run: BatchRun | None) -> str:
    """Progress line shown while a queue is processing."""
    if run is None or not run.total:
        return ""
    if run.done:
        return f"**Processed {run.completed}/{run.total}** ({round(run.percent)}%)"
    return f"⏳ **Processing Queue...** ({run.completed}/{run.total}) — {round(run.percent)}%"


def _caption(image: GeneratedImage) -> str:
    mark = "☑️" if image.selected else "⬜"
    return f"{mark} {image.prompt}"


def render_gallery(state: UIState) -> list[tuple]:
    """Gallery items (PIL image, caption) for every image in the feed."""
    items = []
    for image in state.images():
        try:
            picture = image.to_pil()
        except (ValueError, OSError):
            # Keeps gallery positions aligned with the feed.
            picture = Image.new("RGB", (64, 64), "gray")
        items.append((picture, _caption(image)))
    return items


def render_board(state: UIState) -> str:
    """Markdown list of the feed in order, with pending and failed cards."""
    if not state.feed:
        return "_No images yet. Start generating!_"

    lines = []
    for position, item in enumerate(state.feed, start=1):
        if isinstance(item, GeneratedImage):
            lines.append(f"{position}. 🖼️ {item.prompt}")
        elif item.status == TaskStatus.PENDING:
            lines.append(f"{position}. ⏳ Generating... — {item.prompt}")
        else:
            lines.append(f"{position}. ❌ **Failed** — {item.error_message} _({item.prompt})_")

    selected = len(state.selected_images())
    lines.append("")
    lines.append(f"**{selected} selected**")
    return "\n".join(lines)


def format_image_details(image: GeneratedImage | None) -> str:
    """Markdown for the image details panel."""
    if image is None:
        return ""

    aspect = ASPECT_RATIOS.get(image.aspect_ratio or "")
    if aspect is None:
        aspect = (image.aspect_ratio or "N/A").replace("IMAGE_ASPECT_RATIO_", "")

    seed = image.seed if image.seed is not None else "Random"
    return (
        "### Image Details\n\n"
        f"**Prompt:**\n\n```\n{image.prompt}\n```\n\n"
        f"**Aspect Ratio:** {aspect}  \n"
        f"**Model:** {image.model or 'Unknown'}  \n"
        f"**Seed:** `{seed}`"
    )


def task_summary(task: GenerationTask) -> str:
    """One-line summary of a task for log and status messages."""
    if task.status == TaskStatus.ERROR:
        return f"❌ {task.prompt[:40]} — {task.error_message}"
    if task.status == TaskStatus.SUCCESS:
        return f"✅ {task.prompt[:40]} ({len(task.result_images)} image(s))"
    return f"⏳ {task.prompt[:40]}"
