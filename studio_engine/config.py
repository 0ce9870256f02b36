"""Environment-driven settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .providers.gemini import DEFAULT_EDIT_MODEL, DEFAULT_GENERATE_MODEL, DEFAULT_OUTPUT_MIME_TYPE
from .utils import getenv_first, load_dotenv


API_KEY_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")


@dataclass(frozen=True)
class StudioSettings:
    api_key: str | None = None
    provider: str = "dryrun"
    generate_model: str = DEFAULT_GENERATE_MODEL
    edit_model: str = DEFAULT_EDIT_MODEL
    output_mime_type: str = DEFAULT_OUTPUT_MIME_TYPE
    download_dir: Path = Path(".")
    events_path: Path | None = None

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> "StudioSettings":
        if dotenv:
            load_dotenv()
        api_key = getenv_first(*API_KEY_ENV_VARS)
        provider = (os.getenv("IMAGE_STUDIO_PROVIDER") or "").strip().lower()
        if not provider:
            provider = "gemini" if api_key else "dryrun"
        events_raw = getenv_first("IMAGE_STUDIO_EVENTS")
        return cls(
            api_key=api_key,
            provider=provider,
            generate_model=getenv_first("IMAGE_STUDIO_GENERATE_MODEL") or DEFAULT_GENERATE_MODEL,
            edit_model=getenv_first("IMAGE_STUDIO_EDIT_MODEL") or DEFAULT_EDIT_MODEL,
            output_mime_type=getenv_first("IMAGE_STUDIO_OUTPUT_MIME") or DEFAULT_OUTPUT_MIME_TYPE,
            download_dir=Path(getenv_first("IMAGE_STUDIO_OUT_DIR") or ".").expanduser(),
            events_path=Path(events_raw).expanduser() if events_raw else None,
        )
