"""Unit tests for UI rendering helpers."""

from PIL import Image

from whiskbatch.core.batch import BatchRun, GenerationTask
from whiskbatch.core.images import DATA_URL_PREFIX, GeneratedImage
from whiskbatch.ui.formatting import (
    format_image_details,
    format_progress,
    format_session_status,
    render_board,
    render_gallery,
)
from whiskbatch.ui.models import CredentialState, UIState


class TestFormatSessionStatus:
    """Tests for format_session_status."""

    def test_idle(self):
        assert format_session_status(CredentialState()) == "**Session:** ⚪ **Required**"

    def test_valid_without_expiry(self):
        text = format_session_status(CredentialState(token="t", status="valid", saved=True))

        assert "🟢 **Active**" in text
        assert "**Expires:** N/A" in text

    def test_expired(self):
        text = format_session_status(
            CredentialState(token="t", expiry_ms=1000, status="expired", saved=True)
        )
        assert "🔴 **Expired**" in text
        assert "EXPIRED" in text


class TestFormatProgress:
    """Tests for format_progress."""

    def test_no_run(self):
        assert format_progress(None) == ""

    def test_in_progress(self):
        run = BatchRun(prompts=["a", "b", "c", "d"], completed=1)
        assert format_progress(run) == "⏳ **Processing Queue...** (1/4) — 25%"

    def test_done(self):
        run = BatchRun(prompts=["a", "b"], completed=2, finished=True)
        assert format_progress(run) == "**Processed 2/2** (100%)"


class TestRenderFeed:
    """Tests for render_board and render_gallery."""

    def test_empty_board(self):
        assert render_board(UIState()) == "_No images yet. Start generating!_"

    def test_board_lines(self, jpeg_b64):
        failed = GenerationTask(id="f", prompt="bad")
        failed.fail("blocked")
        state = UIState(
            feed=[
                GeneratedImage(id="i", url=f"{DATA_URL_PREFIX}{jpeg_b64}", prompt="ok", selected=True),
                GenerationTask(id="p", prompt="waiting"),
                failed,
            ]
        )

        board = render_board(state)

        assert "1. 🖼️ ok" in board
        assert "2. ⏳ Generating... — waiting" in board
        assert "3. ❌ **Failed** — blocked _(bad)_" in board
        assert board.endswith("**1 selected**")

    def test_gallery_keeps_positions_for_broken_images(self, jpeg_b64):
        state = UIState(
            feed=[
                GeneratedImage(id="a", url=f"{DATA_URL_PREFIX}@@@", prompt="broken"),
                GeneratedImage(id="b", url=f"{DATA_URL_PREFIX}{jpeg_b64}", prompt="fine", selected=True),
            ]
        )

        items = render_gallery(state)

        assert len(items) == 2
        assert all(isinstance(picture, Image.Image) for picture, _ in items)
        assert items[0][1] == "⬜ broken"
        assert items[1][1] == "☑️ fine"


class TestFormatImageDetails:
    """Tests for format_image_details."""

    def test_known_aspect_ratio(self):
        image = GeneratedImage(
            id="a",
            url="",
            prompt="cat",
            aspect_ratio="IMAGE_ASPECT_RATIO_SQUARE",
            seed=7,
            model="IMAGEN_3_5",
        )

        text = format_image_details(image)

        assert "cat" in text
        assert "1:1" in text
        assert "`7`" in text
        assert "IMAGEN_3_5" in text

    def test_unknown_values(self):
        text = format_image_details(GeneratedImage(id="a", url="", prompt="cat"))

        assert "**Seed:** `Random`" in text
        assert "**Model:** Unknown" in text

    def test_none(self):
        assert format_image_details(None) == ""
