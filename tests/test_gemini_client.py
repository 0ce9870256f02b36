from __future__ import annotations

import base64
import threading
import time
from types import SimpleNamespace
from typing import Any

import pytest

from google.genai import errors as genai_errors

from studio_engine.codec import decode_asset, encode
from studio_engine.errors import InvalidInputError, ServiceError
from studio_engine.providers.gemini import GeminiImageClient


class _FakeModels:
    def __init__(self, response: Any = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def generate_images(self, **kwargs: Any) -> Any:
        self.calls.append({"method": "generate_images", **kwargs})
        if self.error is not None:
            raise self.error
        return self.response

    def generate_content(self, **kwargs: Any) -> Any:
        self.calls.append({"method": "generate_content", **kwargs})
        if self.error is not None:
            raise self.error
        return self.response


def _client(response: Any = None, error: Exception | None = None) -> tuple[GeminiImageClient, _FakeModels]:
    models = _FakeModels(response=response, error=error)
    return GeminiImageClient(client=SimpleNamespace(models=models)), models


def _imagen_response(data: bytes, mime_type: str | None = "image/jpeg") -> Any:
    image = SimpleNamespace(image_bytes=data, mime_type=mime_type)
    return SimpleNamespace(generated_images=[SimpleNamespace(image=image)])


def _gemini_response(*parts: Any) -> Any:
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))])


def _inline(data: Any, mime_type: str | None) -> Any:
    return SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type), text=None)


def test_generate_returns_renderable_asset() -> None:
    client, models = _client(_imagen_response(b"jpeg-bytes"))
    asset = client.generate("A cat wearing a tiny hat")

    assert asset.media_type == "image/jpeg"
    assert decode_asset(asset) == b"jpeg-bytes"
    assert len(models.calls) == 1
    call = models.calls[0]
    assert call["method"] == "generate_images"
    assert call["model"] == "imagen-4.0-generate-001"
    assert call["prompt"] == "A cat wearing a tiny hat"
    assert call["config"].number_of_images == 1
    assert call["config"].output_mime_type == "image/jpeg"


def test_generate_falls_back_to_requested_mime_type() -> None:
    client, _ = _client(_imagen_response(b"bytes", mime_type=None))
    assert client.generate("boat").media_type == "image/jpeg"


def test_generate_rejects_empty_prompt_without_calling_service() -> None:
    client, models = _client(_imagen_response(b"unused"))
    with pytest.raises(InvalidInputError):
        client.generate("   ")
    assert models.calls == []


def test_generate_without_images_is_service_error() -> None:
    client, _ = _client(SimpleNamespace(generated_images=[]))
    with pytest.raises(ServiceError):
        client.generate("boat")


def test_generate_api_error_carries_status_code() -> None:
    error = genai_errors.ClientError(
        400,
        {"error": {"code": 400, "message": "prompt blocked", "status": "INVALID_ARGUMENT"}},
    )
    client, _ = _client(error=error)
    with pytest.raises(ServiceError) as excinfo:
        client.generate("boat")
    assert excinfo.value.status_code == 400


def test_network_failure_is_service_error() -> None:
    client, _ = _client(error=ConnectionError("connection reset"))
    with pytest.raises(ServiceError) as excinfo:
        client.generate("boat")
    assert excinfo.value.status_code is None
    assert "connection reset" in str(excinfo.value)


def test_edit_sends_image_then_prompt() -> None:
    source = encode(b"source-png", "image/png")
    client, models = _client(_gemini_response(SimpleNamespace(inline_data=None, text="ok"), _inline(b"edited", "image/png")))

    asset = client.edit(source, "Add a retro filter")

    assert decode_asset(asset) == b"edited"
    assert asset.media_type == "image/png"
    call = models.calls[0]
    assert call["method"] == "generate_content"
    assert call["model"] == "gemini-2.5-flash-image-preview"
    image_part, text_part = call["contents"]
    assert image_part.inline_data.data == b"source-png"
    assert image_part.inline_data.mime_type == "image/png"
    assert text_part.text == "Add a retro filter"
    assert list(call["config"].response_modalities) == ["IMAGE", "TEXT"]


def test_edit_accepts_base64_text_payload() -> None:
    encoded = base64.b64encode(b"edited").decode("ascii")
    client, _ = _client(_gemini_response(_inline(encoded, "image/webp")))
    asset = client.edit(encode(b"src", "image/png"), "sharpen")
    assert asset.media_type == "image/webp"
    assert decode_asset(asset) == b"edited"


def test_edit_malformed_payload_is_service_error() -> None:
    client, _ = _client(_gemini_response(_inline("not base64!!", "image/png")))
    with pytest.raises(ServiceError):
        client.edit(encode(b"src", "image/png"), "sharpen")


def test_edit_text_only_response_is_service_error() -> None:
    client, _ = _client(_gemini_response(SimpleNamespace(inline_data=None, text="I cannot do that")))
    with pytest.raises(ServiceError):
        client.edit(encode(b"src", "image/png"), "sharpen")


def test_edit_requires_source_image() -> None:
    client, models = _client(_gemini_response(_inline(b"edited", "image/png")))
    with pytest.raises(InvalidInputError):
        client.edit(None, "sharpen")
    assert models.calls == []


def test_missing_api_key_is_service_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    with pytest.raises(ServiceError):
        GeminiImageClient().generate("boat")


def test_concurrent_first_calls_share_one_sdk_client(monkeypatch: pytest.MonkeyPatch) -> None:
    built: list[str] = []

    class _SlowClient:
        def __init__(self, api_key: str) -> None:
            time.sleep(0.05)
            built.append(api_key)
            self.models = _FakeModels(response=_imagen_response(b"jpeg-bytes"))

    monkeypatch.setattr("studio_engine.providers.gemini.genai.Client", _SlowClient)
    client = GeminiImageClient(api_key="test-key")
    threads = [threading.Thread(target=client.generate, args=("boat",)) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert built == ["test-key"]
