"""Per-flow request orchestration.

Each flow (generate, edit) gets its own orchestrator. An orchestrator owns a
single ``OrchestratorState`` and moves it through::

    IDLE -> PENDING -> SUCCEEDED | FAILED

A submission runs as one asyncio task whose future settles exactly once with
the final state. Client and codec errors are turned into ``FAILED`` states;
they never escape the future. A submission while ``PENDING`` is rejected with
``ConcurrentRequestError`` and leaves the in-flight request alone.
"""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import Any, Union

from .assets import EditRequest, Flow, GenerationRequest, ImageAsset, OrchestratorState
from .codec import ImageSource, encode
from .errors import ConcurrentRequestError, ErrorKind, PlatformError, StudioError, error_kind
from .events import EventWriter, NullEventWriter
from .export import Saver, export_name, trigger_save, write_file
from .providers.base import ImageServiceClient


Request = Union[GenerationRequest, EditRequest]
Events = Union[EventWriter, NullEventWriter]


class RequestOrchestrator:
    flow: Flow
    failure_message = "Request failed. Please try again."

    def __init__(self, client: ImageServiceClient, events: Events | None = None) -> None:
        self._client = client
        self._events = events or NullEventWriter()
        self._state = OrchestratorState.idle(self.flow)
        self._last_prompt: str | None = None

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state.is_pending

    def reset(self) -> OrchestratorState:
        self._ensure_not_pending()
        self._last_prompt = None
        return self._transition(OrchestratorState.idle(self.flow))

    def submit(self, request: Request) -> "asyncio.Future[OrchestratorState]":
        """Start ``request`` and return a future for its final state.

        Must be called from a running event loop. Raises ``ConcurrentRequestError``
        if a request for this flow is already pending.
        """
        self._ensure_not_pending()
        loop = asyncio.get_running_loop()
        try:
            request.validate()
        except StudioError as exc:
            return self._settled(loop, self._fail(exc, exc.message))

        self._last_prompt = request.prompt
        self._transition(OrchestratorState.pending(self.flow))
        self._events.emit("request_started", flow=self.flow.value, prompt=request.prompt)
        return loop.create_task(self._run(request))

    def request_download(
        self,
        directory: Path | str | None = None,
        saver: Saver | None = write_file,
    ) -> Path | None:
        """Save the current result; ``None`` when there is nothing to save.

        ``PlatformError`` propagates to the caller and leaves the state as is.
        """
        result = self._state.result
        if not self._state.succeeded or result is None:
            return None
        filename = export_name(self.flow, prompt=self._last_prompt, media_type=result.media_type)
        try:
            path = trigger_save(result, filename, directory, saver=saver)
        except PlatformError as exc:
            self._events.emit("export_failed", flow=self.flow.value, error=str(exc))
            raise
        self._events.emit("image_saved", flow=self.flow.value, path=str(path))
        return path

    def _call(self, request: Any) -> ImageAsset:
        raise NotImplementedError

    async def _run(self, request: Request) -> OrchestratorState:
        started = time.monotonic()
        try:
            result = await asyncio.to_thread(self._call, request)
        except Exception as exc:
            return self._fail(exc, self.failure_message, elapsed_s=time.monotonic() - started)
        self._transition(OrchestratorState.success(self.flow, result))
        self._events.emit(
            "request_succeeded",
            flow=self.flow.value,
            media_type=result.media_type,
            elapsed_s=round(time.monotonic() - started, 3),
        )
        return self._state

    def _fail(self, exc: BaseException, message: str, elapsed_s: float | None = None) -> OrchestratorState:
        kind = error_kind(exc)
        state = self._transition(OrchestratorState.failure(self.flow, kind, message))
        payload: dict[str, Any] = {
            "flow": self.flow.value,
            "kind": kind.value,
            "message": message,
            "error": str(exc),
        }
        if elapsed_s is not None:
            payload["elapsed_s"] = round(elapsed_s, 3)
        self._events.emit("request_failed", **payload)
        return state

    def _transition(self, state: OrchestratorState) -> OrchestratorState:
        self._state = state
        return state

    def _ensure_not_pending(self) -> None:
        if self._state.is_pending:
            self._events.emit(
                "request_rejected",
                flow=self.flow.value,
                kind="concurrent_request",
                message="A request is already in progress.",
            )
            raise ConcurrentRequestError(f"A {self.flow.value} request is already in progress.")

    @staticmethod
    def _settled(loop: asyncio.AbstractEventLoop, state: OrchestratorState) -> "asyncio.Future[OrchestratorState]":
        future: asyncio.Future[OrchestratorState] = loop.create_future()
        future.set_result(state)
        return future


class GenerateOrchestrator(RequestOrchestrator):
    flow = Flow.GENERATE
    failure_message = "Failed to generate image. Please try again."

    def submit_generate(self, prompt: str) -> "asyncio.Future[OrchestratorState]":
        return self.submit(GenerationRequest(prompt=prompt))

    def _call(self, request: GenerationRequest) -> ImageAsset:
        return self._client.generate(request.prompt)


class EditOrchestrator(RequestOrchestrator):
    flow = Flow.EDIT
    failure_message = "Failed to edit image. Please try again."
    read_failure_message = "Could not read the selected file."

    def __init__(self, client: ImageServiceClient, events: Events | None = None) -> None:
        super().__init__(client, events)
        self._source: ImageAsset | None = None

    @property
    def source_image(self) -> ImageAsset | None:
        return self._source

    def select_source(self, file_handle: ImageSource, media_type: str | None = None) -> OrchestratorState:
        """Read and encode a newly chosen source image, clearing any prior result."""
        self._ensure_not_pending()
        try:
            self._source = encode(file_handle, media_type)
        except StudioError as exc:
            self._source = None
            message = self.read_failure_message if exc.kind is ErrorKind.IO_ERROR else exc.message
            return self._fail(exc, message)
        self._events.emit("source_selected", flow=self.flow.value, media_type=self._source.media_type)
        return self._transition(OrchestratorState.idle(self.flow))

    def submit_edit(
        self,
        prompt: str,
        file_handle: ImageSource | None = None,
        media_type: str | None = None,
    ) -> "asyncio.Future[OrchestratorState]":
        self._ensure_not_pending()
        if file_handle is not None:
            selected = self.select_source(file_handle, media_type)
            if selected.failed:
                return self._settled(asyncio.get_running_loop(), selected)
        return self.submit(EditRequest(prompt=prompt, source_image=self._source))

    def _call(self, request: EditRequest) -> ImageAsset:
        return self._client.edit(request.source_image, request.prompt)
