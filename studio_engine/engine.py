"""Image studio engine: one orchestrator per flow."""

from __future__ import annotations

import asyncio
from pathlib import Path

from .assets import Flow, OrchestratorState
from .codec import ImageSource
from .config import StudioSettings
from .events import EventWriter, NullEventWriter, event_writer
from .orchestrator import EditOrchestrator, GenerateOrchestrator, RequestOrchestrator
from .providers import build_client
from .providers.base import ImageServiceClient


class ImageStudio:
    def __init__(
        self,
        client: ImageServiceClient | None = None,
        settings: StudioSettings | None = None,
        events: EventWriter | NullEventWriter | None = None,
    ) -> None:
        self.settings = settings or StudioSettings()
        self.client = client or build_client(self.settings)
        self.events = events or event_writer(self.settings.events_path)
        self.generator = GenerateOrchestrator(self.client, self.events)
        self.editor = EditOrchestrator(self.client, self.events)

    @classmethod
    def from_env(cls) -> "ImageStudio":
        return cls(settings=StudioSettings.from_env())

    def orchestrator(self, flow: Flow) -> RequestOrchestrator:
        return self.generator if flow is Flow.GENERATE else self.editor

    def state(self, flow: Flow) -> OrchestratorState:
        return self.orchestrator(flow).state

    def submit_generate(self, prompt: str) -> "asyncio.Future[OrchestratorState]":
        return self.generator.submit_generate(prompt)

    def select_source(self, file_handle: ImageSource, media_type: str | None = None) -> OrchestratorState:
        return self.editor.select_source(file_handle, media_type)

    def submit_edit(
        self,
        prompt: str,
        file_handle: ImageSource | None = None,
        media_type: str | None = None,
    ) -> "asyncio.Future[OrchestratorState]":
        return self.editor.submit_edit(prompt, file_handle, media_type)

    def request_download(self, flow: Flow, directory: Path | str | None = None) -> Path | None:
        target = directory if directory is not None else self.settings.download_dir
        return self.orchestrator(flow).request_download(target)
