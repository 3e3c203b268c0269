from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterator

import pytest

from tabular_review.runtime.lifecycle import main


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "app.yaml"
    path.write_text(
        f"storage:\n  backend: file\n  path: {tmp_path / 'data'}\nswitcher:\n  default_model: gpt-x\n",
        encoding="utf-8",
    )
    return path


def _run(capsys: pytest.CaptureFixture[str], *args: str) -> tuple[int, str]:
    code = main(list(args))
    return code, capsys.readouterr().out


def test_create_list_and_delete(config_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code, out = _run(capsys, "--config", str(config_path), "create", "  Alpha  ", "--select")
    assert code == 0
    created = json.loads(out)
    assert created["name"] == "Alpha"
    assert created["selectedModel"] == "gpt-x"

    code, out = _run(capsys, "--config", str(config_path), "current")
    assert code == 0
    assert json.loads(out) == {"current_project_id": created["id"]}

    code, out = _run(capsys, "--config", str(config_path), "update", created["id"], "--context", "USD only")
    assert code == 0

    code, out = _run(capsys, "--config", str(config_path), "show", created["id"])
    assert json.loads(out)["sheetContext"] == "USD only"

    code, out = _run(capsys, "--config", str(config_path))
    rows = json.loads(out)
    assert [(r["name"], r["is_current"]) for r in rows] == [("Alpha", True)]
    assert rows[0]["summary"].endswith("0 columns • 0 docs")

    code, _ = _run(capsys, "--config", str(config_path), "delete", created["id"], "--yes")
    assert code == 0

    code, out = _run(capsys, "--config", str(config_path), "list")
    assert json.loads(out) == []
    code, out = _run(capsys, "--config", str(config_path), "current")
    assert json.loads(out) == {"current_project_id": None}


def test_delete_prompt_declined(config_path: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch) -> None:
    _, out = _run(capsys, "--config", str(config_path), "create", "Keep")
    pid = json.loads(out)["id"]
    monkeypatch.setattr("builtins.input", lambda prompt: "n")

    code, _ = _run(capsys, "--config", str(config_path), "delete", pid)

    assert code == 1
    _, out = _run(capsys, "--config", str(config_path), "show", pid)
    assert json.loads(out)["name"] == "Keep"


def test_create_with_explicit_model(config_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code, out = _run(capsys, "--config", str(config_path), "create", "Beta", "--model", "gpt-y")
    assert code == 0
    created = json.loads(out)
    assert created["selectedModel"] == "gpt-y"

    _, out = _run(capsys, "--config", str(config_path), "show", created["id"])
    assert json.loads(out)["selectedModel"] == "gpt-y"
    _, out = _run(capsys, "--config", str(config_path), "current")
    assert json.loads(out) == {"current_project_id": None}


def test_blank_name_and_unknown_ids_fail(config_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--config", str(config_path), "create", "   "]) == 1
    assert main(["--config", str(config_path), "show", "missing"]) == 1
    assert main(["--config", str(config_path), "update", "missing", "--name", "X"]) == 1
    assert main(["--config", str(config_path), "current", "missing"]) == 1


def test_config_error_exit_code(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    bad = tmp_path / "bad.yaml"
    bad.write_text("storage:\n  backend: redis\n", encoding="utf-8")

    assert main(["--config", str(bad), "list"]) == 2
    assert "ConfigError" in capsys.readouterr().err
