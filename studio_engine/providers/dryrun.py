"""Dry-run image client (offline)."""

from __future__ import annotations

import hashlib
import io

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from ..assets import ImageAsset
from ..codec import decode_asset, encode
from ..errors import InvalidInputError, ServiceError


class DryRunImageClient:
    name = "dryrun"

    def __init__(self, size: tuple[int, int] = (512, 512)) -> None:
        self.size = size
        self.calls = 0

    def generate(self, prompt: str) -> ImageAsset:
        if not (prompt or "").strip():
            raise InvalidInputError("Prompt must not be empty.")
        self.calls += 1
        image = Image.new("RGB", self.size, _color_from_prompt(prompt))
        _stamp(image, f"dryrun\n{prompt[:60]}")
        return _to_asset(image, "JPEG", "image/jpeg")

    def edit(self, source_image: ImageAsset | None, prompt: str) -> ImageAsset:
        if source_image is None:
            raise InvalidInputError("A source image is required for edits.")
        if not (prompt or "").strip():
            raise InvalidInputError("Prompt must not be empty.")
        self.calls += 1
        try:
            image = Image.open(io.BytesIO(decode_asset(source_image))).convert("RGB")
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise ServiceError(f"Dry-run edit could not open the source image: {exc}") from exc
        _stamp(image, f"edit\n{prompt[:60]}")
        return _to_asset(image, "PNG", "image/png")


def _stamp(image: Image.Image, text: str) -> None:
    draw = ImageDraw.Draw(image)
    draw.text((20, 20), text, fill=(255, 255, 255), font=ImageFont.load_default())


def _to_asset(image: Image.Image, fmt: str, media_type: str) -> ImageAsset:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return encode(buffer.getvalue(), media_type)


def _color_from_prompt(prompt: str) -> tuple[int, int, int]:
    digest = hashlib.sha256(prompt.encode("utf-8")).digest()
    return digest[0], digest[1], digest[2]
