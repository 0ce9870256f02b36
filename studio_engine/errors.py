"""Error taxonomy shared by the codec, clients, orchestrators and export."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    IO_ERROR = "io_error"
    SERVICE_ERROR = "service_error"
    PLATFORM_ERROR = "platform_error"
    CONCURRENT_REQUEST = "concurrent_request"


class StudioError(Exception):
    kind: ErrorKind = ErrorKind.SERVICE_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(StudioError):
    """Empty prompt, missing source image or a non-image media type."""

    kind = ErrorKind.INVALID_INPUT


class ImageReadError(StudioError, OSError):
    """The selected file could not be read in full."""

    kind = ErrorKind.IO_ERROR


class ServiceError(StudioError):
    """The image service rejected or failed the call."""

    kind = ErrorKind.SERVICE_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PlatformError(StudioError):
    """Saving the result failed."""

    kind = ErrorKind.PLATFORM_ERROR


class ConcurrentRequestError(StudioError):
    kind = ErrorKind.CONCURRENT_REQUEST


def error_kind(exc: BaseException) -> ErrorKind:
    if isinstance(exc, StudioError):
        return exc.kind
    return ErrorKind.SERVICE_ERROR
