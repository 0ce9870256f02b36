"""Service client base classes."""

from __future__ import annotations

from typing import Iterable, Protocol

from ..assets import ImageAsset


class ImageServiceClient(Protocol):
    name: str

    def generate(self, prompt: str) -> ImageAsset:
        ...

    def edit(self, source_image: ImageAsset | None, prompt: str) -> ImageAsset:
        ...


class ClientRegistry:
    def __init__(self, clients: Iterable[ImageServiceClient]) -> None:
        self._clients = {client.name: client for client in clients}

    def get(self, name: str) -> ImageServiceClient | None:
        return self._clients.get(name)

    def list(self) -> list[str]:
        return sorted(self._clients.keys())
