"""Download names and saving of result images."""

from __future__ import annotations

import binascii
import re
from pathlib import Path
from typing import Callable, Optional

from .assets import Flow, ImageAsset, extension_for_media_type
from .codec import decode_asset
from .errors import InvalidInputError, PlatformError


GENERATED_BASE_NAME = "generated-image"
GENERATED_EXTENSION = "jpeg"
EDITED_BASE_NAME = "edited-image"
MAX_NAME_CHARS = 30

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")

Saver = Callable[[bytes, Path], None]


def generation_export_name(prompt: str | None) -> str:
    slug = _NON_ALNUM_RE.sub("_", str(prompt or "").lower()).strip("_")
    slug = slug[:MAX_NAME_CHARS].rstrip("_")
    return f"{slug or GENERATED_BASE_NAME}.{GENERATED_EXTENSION}"


def edit_export_name(media_type: str | None) -> str:
    return f"{EDITED_BASE_NAME}.{extension_for_media_type(media_type)}"


def export_name(flow: Flow, prompt: str | None = None, media_type: str | None = None) -> str:
    if flow is Flow.GENERATE:
        return generation_export_name(prompt)
    return edit_export_name(media_type)


def write_file(data: bytes, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


def trigger_save(
    asset: ImageAsset,
    filename: str,
    directory: Path | str | None = None,
    saver: Optional[Saver] = write_file,
) -> Path:
    """Save ``asset`` once under ``directory/filename``.

    Any failure of the save mechanism, including a missing one, surfaces as
    ``PlatformError``. An undecodable asset raises ``InvalidInputError`` first.
    """
    if not filename or Path(filename).name != filename or filename in {".", ".."}:
        raise InvalidInputError(f"Export filename must be a bare file name: {filename!r}")
    if saver is None:
        raise PlatformError("No save mechanism is available on this platform.")
    target = Path(directory or ".").expanduser() / filename
    try:
        data = decode_asset(asset)
    except (binascii.Error, ValueError) as exc:
        raise InvalidInputError(f"Result image is not valid base64: {exc}") from exc
    try:
        saver(data, target)
    except OSError as exc:
        raise PlatformError(f"Could not save {target}: {exc}") from exc
    except Exception as exc:
        raise PlatformError(f"Save failed for {target}: {exc}") from exc
    return target
