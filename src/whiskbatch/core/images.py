"""Extraction of generated images from a generation response.

The generation endpoint answers with::

    {
        "imagePanels": [
            {
                "generatedImages": [
                    {
                        "encodedImage": "<base64 JPEG>",
                        "prompt": "...",
                        "aspectRatio": "IMAGE_ASPECT_RATIO_LANDSCAPE",
                        "seed": 123,
                        "imageModel": "IMAGEN_3_5"
                    }
                ]
            }
        ]
    }

Only the first panel is read.  Each image becomes a :class:`GeneratedImage`
whose ``url`` is a ``data:`` URL so it can be shown or saved without touching
the network again.
"""

from __future__ import annotations

import base64
import binascii
import io
from dataclasses import dataclass
from typing import Any

from PIL import Image

from .errors import MalformedResponseError

DATA_URL_PREFIX = "data:image/jpeg;base64,"


@dataclass
class GeneratedImage:
    """A single image produced by one generation task.

    Attributes:
        id: Unique id, ``<task id>-<index>``
        url: ``data:`` URL carrying the encoded image bytes
        prompt: Prompt reported by the upstream service (falls back to the
            submitted prompt)
        aspect_ratio: Upstream aspect ratio identifier
        seed: Seed reported by the upstream service, if any
        model: Image model identifier, if reported
        selected: UI selection flag
    """

    id: str
    url: str
    prompt: str
    aspect_ratio: str | None = None
    seed: int | None = None
    model: str | None = None
    selected: bool = False

    @property
    def encoded(self) -> str:
        """Base64 payload without the ``data:`` prefix."""
        return self.url.split(",", 1)[-1]

    def to_pil(self) -> Image.Image:
        """Decode the image bytes with Pillow.

        Raises:
            ValueError: If the payload is not valid base64 image data
        """
        try:
            raw = base64.b64decode(self.encoded, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Image {self.id} is not valid base64") from e
        image = Image.open(io.BytesIO(raw))
        image.load()
        return image


def extract_generated_images(result: Any, task_id: str, fallback_prompt: str) -> list[GeneratedImage]:
    """Build :class:`GeneratedImage` objects from a generation response.

    Args:
        result: Parsed generation response
        task_id: Id of the task the images belong to
        fallback_prompt: Prompt to use when an image does not report one

    Returns:
        Images in upstream order (at least one)

    Raises:
        MalformedResponseError: If the response has no images in its first panel
    """
    panels = result.get("imagePanels") if isinstance(result, dict) else None
    if not isinstance(panels, list) or not panels or not isinstance(panels[0], dict):
        raise MalformedResponseError()

    generated = panels[0].get("generatedImages")
    if not isinstance(generated, list) or not generated:
        raise MalformedResponseError()

    images = []
    for index, item in enumerate(generated):
        if not isinstance(item, dict) or not item.get("encodedImage"):
            raise MalformedResponseError()
        images.append(
            GeneratedImage(
                id=f"{task_id}-{index}",
                url=f"{DATA_URL_PREFIX}{item['encodedImage']}",
                prompt=item.get("prompt") or fallback_prompt,
                aspect_ratio=item.get("aspectRatio"),
                seed=item.get("seed"),
                model=item.get("imageModel"),
            )
        )
    return images
