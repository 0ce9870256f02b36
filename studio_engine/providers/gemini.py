"""Google image service client (Imagen for generation, Gemini for edits)."""

from __future__ import annotations

import base64
import os
import threading
from typing import Any, Sequence

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..assets import ImageAsset, is_image_media_type
from ..codec import decode_asset, is_valid_base64
from ..errors import InvalidInputError, ServiceError


DEFAULT_GENERATE_MODEL = "imagen-4.0-generate-001"
DEFAULT_EDIT_MODEL = "gemini-2.5-flash-image-preview"
DEFAULT_OUTPUT_MIME_TYPE = "image/jpeg"
EDIT_FALLBACK_MIME_TYPE = "image/png"


class GeminiImageClient:
    """Single-shot calls against the Google GenAI SDK.

    Every failure leaves this class as a ``ServiceError`` (or ``InvalidInputError``
    for inputs that should never have been sent). No retries are attempted.
    """

    name = "gemini"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        client: Any | None = None,
        generate_model: str = DEFAULT_GENERATE_MODEL,
        edit_model: str = DEFAULT_EDIT_MODEL,
        output_mime_type: str = DEFAULT_OUTPUT_MIME_TYPE,
    ) -> None:
        self._api_key = api_key
        self._client = client
        self._client_lock = threading.Lock()
        self.generate_model = generate_model
        self.edit_model = edit_model
        self.output_mime_type = output_mime_type

    def generate(self, prompt: str) -> ImageAsset:
        if not (prompt or "").strip():
            raise InvalidInputError("Prompt must not be empty.")
        client = self._sdk_client()
        config = types.GenerateImagesConfig(
            number_of_images=1,
            output_mime_type=self.output_mime_type,
        )
        try:
            response = client.models.generate_images(
                model=self.generate_model,
                prompt=prompt,
                config=config,
            )
        except genai_errors.APIError as exc:
            raise _service_error("Image generation", exc) from exc
        except Exception as exc:
            raise ServiceError(f"Image generation request failed: {exc}") from exc

        generated = getattr(response, "generated_images", None) or []
        for item in generated:
            image = getattr(item, "image", None)
            data = getattr(image, "image_bytes", None)
            if not data:
                continue
            media_type = getattr(image, "mime_type", None) or self.output_mime_type
            return _asset_from_payload(data, media_type)
        raise ServiceError("Image service returned no images.")

    def edit(self, source_image: ImageAsset | None, prompt: str) -> ImageAsset:
        if source_image is None:
            raise InvalidInputError("A source image is required for edits.")
        if not (prompt or "").strip():
            raise InvalidInputError("Prompt must not be empty.")
        client = self._sdk_client()
        contents = [
            types.Part(
                inline_data=types.Blob(
                    data=decode_asset(source_image),
                    mime_type=source_image.media_type,
                )
            ),
            types.Part(text=prompt),
        ]
        config = types.GenerateContentConfig(response_modalities=["IMAGE", "TEXT"])
        try:
            response = client.models.generate_content(
                model=self.edit_model,
                contents=contents,
                config=config,
            )
        except genai_errors.APIError as exc:
            raise _service_error("Image edit", exc) from exc
        except Exception as exc:
            raise ServiceError(f"Image edit request failed: {exc}") from exc

        candidates = getattr(response, "candidates", None) or []
        for data, media_type in _extract_inline_images(candidates):
            return _asset_from_payload(data, media_type or EDIT_FALLBACK_MIME_TYPE)
        raise ServiceError("Image service returned no edited image.")

    def _sdk_client(self) -> Any:
        if self._client is not None:
            return self._client
        # Both flows share this client from worker threads.
        with self._client_lock:
            if self._client is None:
                api_key = self._api_key or os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
                if not api_key:
                    raise ServiceError("GEMINI_API_KEY or GOOGLE_API_KEY not set.")
                self._client = genai.Client(api_key=api_key)
        return self._client


def _service_error(action: str, exc: Any) -> ServiceError:
    code = getattr(exc, "code", None)
    status_code = code if isinstance(code, int) else None
    message = getattr(exc, "message", None) or str(exc)
    if status_code is not None:
        return ServiceError(f"{action} failed ({status_code}): {message}", status_code=status_code)
    return ServiceError(f"{action} failed: {message}")


def _extract_inline_images(candidates: Sequence[Any]) -> list[tuple[Any, str | None]]:
    images: list[tuple[Any, str | None]] = []
    for candidate in candidates:
        content = getattr(candidate, "content", None)
        parts = getattr(content, "parts", None) or getattr(candidate, "parts", None) or []
        for part in parts:
            inline_data = getattr(part, "inline_data", None)
            data = getattr(inline_data, "data", None) if inline_data else None
            if not data:
                continue
            images.append((data, getattr(inline_data, "mime_type", None)))
    return images


def _asset_from_payload(data: Any, media_type: str) -> ImageAsset:
    if not is_image_media_type(media_type):
        raise ServiceError(f"Image service returned a non-image payload ({media_type}).")
    if isinstance(data, (bytes, bytearray)):
        text = base64.b64encode(bytes(data)).decode("ascii")
    elif isinstance(data, str) and is_valid_base64(data):
        text = data
    else:
        raise ServiceError("Image service returned malformed image data.")
    return ImageAsset(data=text, media_type=media_type)
