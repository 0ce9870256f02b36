"""Binary <-> base64 conversion for images crossing the service boundary."""

from __future__ import annotations

import base64
import binascii
import mimetypes
from pathlib import Path
from typing import IO, Any, Union

from .assets import ImageAsset, is_image_media_type
from .errors import ImageReadError, InvalidInputError


ImageSource = Union[bytes, bytearray, memoryview, str, Path, IO[bytes]]

_SUFFIX_MEDIA_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


def encode(source: ImageSource, media_type: str | None = None) -> ImageAsset:
    """Read ``source`` completely and return it as an encoded asset.

    ``source`` may be raw bytes, a path, or a binary file handle. When
    ``media_type`` is omitted it is guessed from the path or handle name.
    Raises ``ImageReadError`` if the read fails and ``InvalidInputError`` if the
    media type is missing or not an image type.
    """
    data = _read_all(source)
    resolved = media_type or media_type_for_name(_source_name(source))
    if not resolved:
        raise InvalidInputError("Could not determine the image media type.")
    if not is_image_media_type(resolved):
        raise InvalidInputError(f"Not an image media type: {resolved!r}")
    text = base64.b64encode(data).decode("ascii")
    return ImageAsset(data=text, media_type=resolved.strip().lower())


def decode(text: str, media_type: str) -> bytes:
    # Content is not validated here; malformed payloads are the client's concern.
    return base64.b64decode(text)


def decode_asset(asset: ImageAsset) -> bytes:
    return decode(asset.data, asset.media_type)


def media_type_for_name(name: str | None) -> str | None:
    if not name:
        return None
    suffix = Path(name).suffix.lower()
    if suffix in _SUFFIX_MEDIA_TYPES:
        return _SUFFIX_MEDIA_TYPES[suffix]
    guessed, _ = mimetypes.guess_type(name)
    return guessed


def _source_name(source: Any) -> str | None:
    if isinstance(source, (str, Path)):
        return str(source)
    name = getattr(source, "name", None)
    return name if isinstance(name, str) else None


def _read_all(source: Any) -> bytes:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    if isinstance(source, (str, Path)):
        try:
            return Path(source).expanduser().read_bytes()
        except (OSError, ValueError) as exc:
            # ValueError covers paths holding a NUL byte.
            raise ImageReadError(f"Could not read {source!r}: {exc}") from exc
    reader = getattr(source, "read", None)
    if reader is None:
        raise InvalidInputError(f"Unsupported image source: {type(source).__name__}")
    try:
        data = reader()
    except Exception as exc:
        # Handles are caller-supplied; any failing read is a read error.
        raise ImageReadError(f"Could not read the selected file: {exc}") from exc
    if not isinstance(data, (bytes, bytearray)):
        raise ImageReadError("Selected file did not return binary data.")
    return bytes(data)


def is_valid_base64(text: str) -> bool:
    try:
        base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True
