"""Image assets, flow requests and orchestrator state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import ErrorKind, InvalidInputError


DEFAULT_EXTENSION = "png"


class Flow(str, Enum):
    GENERATE = "generate"
    EDIT = "edit"


@dataclass(frozen=True)
class ImageAsset:
    """An image held in its wire form: base64 text plus media type.

    Raw bytes are never stored alongside the text; use ``codec.decode_asset``.
    """

    data: str
    media_type: str

    def __post_init__(self) -> None:
        if not is_image_media_type(self.media_type):
            raise InvalidInputError(f"Not an image media type: {self.media_type!r}")

    @property
    def data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.data}"

    @property
    def extension(self) -> str:
        return extension_for_media_type(self.media_type)

    def __repr__(self) -> str:
        return f"ImageAsset(media_type={self.media_type!r}, chars={len(self.data)})"


def is_image_media_type(value: object) -> bool:
    if not isinstance(value, str):
        return False
    lowered = value.strip().lower()
    if not lowered.startswith("image/"):
        return False
    return bool(lowered.split("/", 1)[1])


def extension_for_media_type(media_type: str | None) -> str:
    if not media_type or "/" not in media_type:
        return DEFAULT_EXTENSION
    subtype = media_type.split(";", 1)[0].split("/", 1)[1].strip().lower()
    subtype = subtype.split("+", 1)[0]
    return subtype or DEFAULT_EXTENSION


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str

    def validate(self) -> None:
        if not (self.prompt or "").strip():
            raise InvalidInputError("Please enter a prompt.")


@dataclass(frozen=True)
class EditRequest:
    prompt: str
    source_image: ImageAsset | None = None

    def validate(self) -> None:
        if self.source_image is None or not (self.prompt or "").strip():
            raise InvalidInputError("Please upload an image and enter an editing prompt.")


class Status(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class OrchestratorState:
    flow: Flow
    status: Status = Status.IDLE
    result: ImageAsset | None = None
    error: ErrorKind | None = None
    message: str | None = None

    @property
    def is_idle(self) -> bool:
        return self.status is Status.IDLE

    @property
    def is_pending(self) -> bool:
        return self.status is Status.PENDING

    @property
    def succeeded(self) -> bool:
        return self.status is Status.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.status is Status.FAILED

    @classmethod
    def idle(cls, flow: Flow) -> "OrchestratorState":
        return cls(flow=flow)

    @classmethod
    def pending(cls, flow: Flow) -> "OrchestratorState":
        return cls(flow=flow, status=Status.PENDING)

    @classmethod
    def success(cls, flow: Flow, result: ImageAsset) -> "OrchestratorState":
        return cls(flow=flow, status=Status.SUCCEEDED, result=result)

    @classmethod
    def failure(cls, flow: Flow, error: ErrorKind, message: str) -> "OrchestratorState":
        return cls(flow=flow, status=Status.FAILED, error=error, message=message)
