"""Gradio UI for the Whisk Batch Generator."""

import logging

import gradio as gr

from whiskbatch.core.config import (
    DEFAULT_ASPECT_RATIO,
    MAX_REQUEST_DELAY_MS,
    MIN_REQUEST_DELAY_MS,
    config,
)

from .formatting import format_session_status, render_board
from .handlers import (
    clear_errors,
    clear_session,
    delete_selected,
    deselect_all,
    download_selected,
    load_preferences,
    refresh_session_status,
    remove_item,
    restore_session,
    reuse_prompt,
    save_preferences,
    save_session,
    select_all,
    select_image,
    start_generation,
    stop_generation,
)
from .models import (
    ASPECT_RATIO_CHOICES,
    CONFIG_STORAGE_KEY,
    DEFAULT_PREFERENCES,
    SESSION_STORAGE_KEY,
    CredentialState,
    UIState,
)

logger = logging.getLogger(__name__)

# Session status is re-checked against the cookie expiry this often.
SESSION_CHECK_INTERVAL_SECONDS = 30


def create_ui() -> gr.Blocks:
    """Create the Gradio Blocks app.

    Returns:
        The Gradio Blocks app (not launched)
    """
    app = gr.Blocks(title="Whisk Batch Generator")

    with app:
        # Session state - one instance per user
        ui_state = gr.State(UIState())

        # Persisted in browser local storage
        stored_session = gr.BrowserState(
            CredentialState().to_storage(), storage_key=SESSION_STORAGE_KEY
        )
        stored_prefs = gr.BrowserState(dict(DEFAULT_PREFERENCES), storage_key=CONFIG_STORAGE_KEY)

        gr.Markdown(
            """
            # Whisk Batch Generator
            ### Queue prompts and generate them one after another
            """
        )
        progress_md = gr.Markdown()

        with gr.Row():
            with gr.Column(scale=1):
                with gr.Accordion("⚙️ Configuration", open=False) as config_panel:
                    session_status = gr.Markdown(format_session_status(CredentialState()))
                    cookie_input = gr.Textbox(
                        label="Session cookies",
                        placeholder="Paste cookie JSON...",
                        lines=6,
                    )
                    with gr.Row():
                        save_btn = gr.Button("💾 Save", size="sm", variant="primary")
                        clear_btn = gr.Button("🗑️ Clear", size="sm", variant="stop")

                    aspect_ratio = gr.Dropdown(
                        choices=ASPECT_RATIO_CHOICES,
                        value=DEFAULT_ASPECT_RATIO,
                        label="Aspect Ratio",
                    )
                    request_delay = gr.Slider(
                        minimum=MIN_REQUEST_DELAY_MS,
                        maximum=MAX_REQUEST_DELAY_MS,
                        step=100,
                        value=config.request_delay_ms,
                        label="Request Delay (ms)",
                    )

                prompts_input = gr.Textbox(
                    label="Prompts (split: ---)",
                    placeholder="Prompt 1\n---\nPrompt 2",
                    lines=12,
                )
                with gr.Row():
                    start_btn = gr.Button("▶️ Start Generating", variant="primary", size="lg")
                    stop_btn = gr.Button("⏹️ Stop Processing", variant="stop", size="lg")
                status_md = gr.Markdown()

            with gr.Column(scale=2):
                gallery = gr.Gallery(
                    label="Results",
                    columns=4,
                    height=520,
                    object_fit="contain",
                    allow_preview=False,
                )
                with gr.Row():
                    select_all_btn = gr.Button("☑️ Select All", size="sm")
                    deselect_all_btn = gr.Button("⬜ Deselect All", size="sm")
                    delete_btn = gr.Button("🗑️ Delete", size="sm", variant="stop")
                    clear_errors_btn = gr.Button("✖️ Clear Errors", size="sm")
                    download_btn = gr.Button("⬇️ Download", size="sm")
                download_files = gr.File(label="Downloads", file_count="multiple", interactive=False)

                with gr.Accordion("Queue", open=True):
                    board_md = gr.Markdown(render_board(UIState()))

                details_md = gr.Markdown()
                with gr.Row():
                    reuse_btn = gr.Button("↩️ Reuse Prompt", size="sm")
                    remove_btn = gr.Button("✖️ Remove", size="sm")

        session_timer = gr.Timer(SESSION_CHECK_INTERVAL_SECONDS)

        # --- Page load ------------------------------------------------------
        app.load(
            fn=restore_session,
            inputs=[stored_session, ui_state],
            outputs=[session_status, ui_state],
        )
        app.load(
            fn=load_preferences,
            inputs=[stored_prefs],
            outputs=[aspect_ratio, request_delay],
        )

        # --- Configuration --------------------------------------------------
        save_btn.click(
            fn=save_session,
            inputs=[cookie_input, ui_state],
            outputs=[session_status, status_md, cookie_input, stored_session, ui_state],
        )
        clear_btn.click(
            fn=clear_session,
            inputs=[ui_state],
            outputs=[session_status, status_md, stored_session, ui_state],
        )
        for control in (aspect_ratio, request_delay):
            control.change(
                fn=save_preferences,
                inputs=[aspect_ratio, request_delay],
                outputs=[stored_prefs],
            )
        session_timer.tick(
            fn=refresh_session_status,
            inputs=[ui_state],
            outputs=[session_status, ui_state],
        )

        # --- Queue ------------------------------------------------------------
        start_btn.click(
            fn=start_generation,
            inputs=[prompts_input, aspect_ratio, request_delay, ui_state],
            outputs=[
                gallery,
                board_md,
                progress_md,
                status_md,
                session_status,
                config_panel,
                ui_state,
            ],
        )
        # Not queued behind the running batch; the flag is read at the next task.
        stop_btn.click(
            fn=stop_generation,
            inputs=[ui_state],
            outputs=[status_md, ui_state],
            concurrency_limit=None,
        )

        # --- Results feed -----------------------------------------------------
        feed_outputs = [gallery, board_md, status_md, ui_state]
        gallery.select(
            fn=select_image,
            inputs=[ui_state],
            outputs=[gallery, board_md, status_md, details_md, ui_state],
        )
        select_all_btn.click(fn=select_all, inputs=[ui_state], outputs=feed_outputs)
        deselect_all_btn.click(fn=deselect_all, inputs=[ui_state], outputs=feed_outputs)
        delete_btn.click(fn=delete_selected, inputs=[ui_state], outputs=feed_outputs)
        clear_errors_btn.click(fn=clear_errors, inputs=[ui_state], outputs=feed_outputs)
        download_btn.click(
            fn=download_selected,
            inputs=[ui_state],
            outputs=[download_files, status_md],
        )
        reuse_btn.click(
            fn=reuse_prompt,
            inputs=[ui_state, prompts_input],
            outputs=[prompts_input, status_md],
        )
        remove_btn.click(
            fn=remove_item,
            inputs=[ui_state],
            outputs=[gallery, board_md, status_md, details_md, ui_state],
        )

    return app


def main() -> None:
    """Launch the Gradio UI using the configured host, port and share flag."""
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(f"Starting UI against proxy at {config.api_base_url}")

    app = create_ui()
    app.queue().launch(
        server_name=config.gradio_server_name,
        server_port=config.gradio_server_port,
        share=config.gradio_share,
    )


if __name__ == "__main__":
    main()
