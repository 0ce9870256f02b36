from __future__ import annotations

import io
from pathlib import Path

import pytest
from PIL import Image

from studio_engine.cli import main


@pytest.fixture(autouse=True)
def _offline(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for key in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY", "IMAGE_STUDIO_PROVIDER", "IMAGE_STUDIO_EVENTS"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    return int(excinfo.value.code)


def test_generate_saves_result(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = _run(["generate", "--prompt", "A Cat! Wearing #1 Hat", "--out", str(tmp_path / "out"), "--provider", "dryrun"])
    assert code == 0
    saved = tmp_path / "out" / "a_cat_wearing_1_hat.jpeg"
    assert saved.exists()
    assert str(saved) in capsys.readouterr().out


def test_generate_empty_prompt_fails(capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(["generate", "--prompt", "", "--provider", "dryrun"]) == 1
    assert "Please enter a prompt." in capsys.readouterr().err


def test_edit_saves_result(tmp_path: Path) -> None:
    source = tmp_path / "source.png"
    buffer = io.BytesIO()
    Image.new("RGB", (20, 20), (0, 0, 255)).save(buffer, format="PNG")
    source.write_bytes(buffer.getvalue())

    code = _run(["edit", "--image", str(source), "--prompt", "Add a retro filter", "--out", str(tmp_path / "out")])
    assert code == 0
    assert (tmp_path / "out" / "edited-image.png").exists()


def test_edit_missing_file_reports_read_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = _run(["edit", "--image", str(tmp_path / "missing.png"), "--prompt", "sharpen", "--provider", "dryrun"])
    assert code == 1
    assert "Could not read the selected file." in capsys.readouterr().err


def test_save_failure_exit_code(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("occupied", encoding="utf-8")
    code = _run(["generate", "--prompt", "boat", "--out", str(blocker), "--provider", "dryrun"])
    assert code == 2
    assert "Could not save the image" in capsys.readouterr().err


def test_unknown_provider(capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(["generate", "--prompt", "boat", "--provider", "nope"]) == 1
    assert "Unknown image provider" in capsys.readouterr().err


def test_name_command(capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(["name", "--flow", "generate", "--prompt", "!!!"]) == 0
    assert capsys.readouterr().out.strip() == "generated-image.jpeg"
    assert _run(["name", "--flow", "edit", "--media-type", "image/webp"]) == 0
    assert capsys.readouterr().out.strip() == "edited-image.webp"
