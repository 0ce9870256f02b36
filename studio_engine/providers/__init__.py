"""Service client registry."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import InvalidInputError
from .base import ClientRegistry, ImageServiceClient
from .dryrun import DryRunImageClient
from .gemini import GeminiImageClient

if TYPE_CHECKING:
    from ..config import StudioSettings


def default_registry(settings: "StudioSettings | None" = None) -> ClientRegistry:
    if settings is None:
        gemini = GeminiImageClient()
    else:
        gemini = GeminiImageClient(
            settings.api_key,
            generate_model=settings.generate_model,
            edit_model=settings.edit_model,
            output_mime_type=settings.output_mime_type,
        )
    return ClientRegistry([DryRunImageClient(), gemini])


def build_client(settings: "StudioSettings") -> ImageServiceClient:
    registry = default_registry(settings)
    client = registry.get(settings.provider)
    if client is None:
        raise InvalidInputError(
            f"Unknown image provider {settings.provider!r}; expected one of {', '.join(registry.list())}."
        )
    return client
