"""Batch generation handlers (start and stop)."""

import functools
import logging
from collections.abc import AsyncIterator

import gradio as gr

from whiskbatch.core.batch import BatchQueueController, BatchRun, CancellationToken, split_prompts
from whiskbatch.core.config import config

from ..api_client import ProxyClient
from ..credentials import credential_status
from ..formatting import format_progress, format_session_status, render_board, render_gallery, task_summary
from ..models import UIState

logger = logging.getLogger(__name__)


def create_proxy_client() -> ProxyClient:
    """Client for the configured proxy server."""
    return ProxyClient(config.api_base_url)


def _outputs(state: UIState, run: BatchRun | None, message: str, open_config: bool = False) -> tuple:
    """Assemble the generation outputs.

    Returns:
        Tuple of (gallery, board_md, progress_md, status_md, session_status_md,
        config_panel_update, state)
    """
    return (
        render_gallery(state),
        render_board(state),
        format_progress(run),
        message,
        format_session_status(state.credential),
        gr.update(open=True) if open_config else gr.update(),
        state,
    )


async def start_generation(
    prompts_text: str,
    aspect_ratio: str,
    request_delay: float,
    state: UIState,
) -> AsyncIterator[tuple]:
    """Run the prompts in the editor as a sequential batch.

    Yields updated outputs after every state change so the feed, progress and
    status refresh while the queue runs.

    Args:
        prompts_text: Prompt editor text, prompts separated by ``---``
        aspect_ratio: Upstream aspect ratio identifier
        request_delay: Pause between tasks in milliseconds
        state: UI state

    Yields:
        Tuple of (gallery, board_md, progress_md, status_md,
        session_status_md, config_panel_update, state)
    """
    state = state or UIState()
    credential = state.credential

    if state.is_generating:
        yield _outputs(state, None, "⏳ A queue is already running.")
        return

    # --- Preconditions ------------------------------------------------------
    if not credential.saved or not credential.token:
        yield _outputs(state, None, "❌ Configure session first.", open_config=True)
        return

    # Keeps the expired flag set by a 401 in an earlier run.
    if credential.status != "expired" and credential.expiry_ms:
        credential.status = credential_status(credential.expiry_ms)
    if credential.status == "expired":
        yield _outputs(state, None, "❌ Session expired.", open_config=True)
        return

    prompts = split_prompts(prompts_text)
    if not prompts:
        yield _outputs(state, None, "❌ Enter at least one prompt.")
        return

    def mark_expired() -> None:
        state.credential.status = "expired"

    client = create_proxy_client()
    try:
        controller = BatchQueueController(
            functools.partial(client.generate, token=credential.token, aspect_ratio=aspect_ratio),
            delay_ms=int(request_delay),
            on_unauthorized=mark_expired,
        )
    except ValueError as e:
        await client.aclose()
        yield _outputs(state, None, f"❌ **Validation Error**\n\n{e}")
        return

    # --- Run ------------------------------------------------------------------
    state.cancel_token = CancellationToken()
    run = None
    try:
        async for run in controller.run(prompts, feed=state.feed, cancel=state.cancel_token):
            if run.done:
                continue
            message = task_summary(run.tasks[-1]) if run.tasks else "⏳ Starting queue..."
            yield _outputs(state, run, message)
    finally:
        state.cancel_token = None
        await client.aclose()

    if run is not None and run.finished:
        message = "✅ Queue finished."
    elif run is not None:
        message = f"🛑 Stopped after {run.completed}/{run.total} task(s)."
    else:
        message = ""
    yield _outputs(state, run, message)


def stop_generation(state: UIState) -> tuple[str, UIState]:
    """Ask the running queue to stop after its current task.

    Returns:
        Tuple of (status_message, state)
    """
    if state is None or state.cancel_token is None:
        return "Nothing is running.", state

    state.cancel_token.cancel()
    logger.info("Stop requested for the running queue")
    return "🛑 Stopping after current task...", state
