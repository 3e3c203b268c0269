from __future__ import annotations

from pathlib import Path

import pytest

from tabular_review.errors import MediumError, MediumQuotaExceededError
from tabular_review.storage.medium import FileMedium, InMemoryMedium
from tabular_review.storage.project_store import ProjectStore


def test_file_medium_round_trip(tmp_path: Path) -> None:
    medium = FileMedium(tmp_path / "data")

    assert medium.get_item("tabular_review_projects") is None

    medium.set_item("tabular_review_projects", '[{"name": "Résumé"}]')
    assert medium.get_item("tabular_review_projects") == '[{"name": "Résumé"}]'
    assert not list((tmp_path / "data").glob("*.tmp"))

    medium.remove_item("tabular_review_projects")
    medium.remove_item("tabular_review_projects")
    assert medium.get_item("tabular_review_projects") is None


def test_file_medium_sanitizes_keys(tmp_path: Path) -> None:
    medium = FileMedium(tmp_path)

    assert medium.path_for("a/b c") == tmp_path / "a_b_c"
    with pytest.raises(MediumError):
        medium.path_for("..")
    with pytest.raises(MediumError):
        medium.path_for("")


def test_file_medium_write_error_is_medium_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    medium = FileMedium(blocker / "nested")

    with pytest.raises(MediumError) as ei:
        medium.set_item("key", "value")
    assert ei.value.error_type == "write_failed"


def test_file_medium_failed_replace_leaves_no_temp_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    medium = FileMedium(tmp_path)
    medium.set_item("key", "old")

    def failing_replace(src: object, dst: object) -> None:
        raise OSError("disk full")

    monkeypatch.setattr("tabular_review.storage.medium.os.replace", failing_replace)

    with pytest.raises(MediumError) as ei:
        medium.set_item("key", "new")
    assert ei.value.error_type == "write_failed"
    assert not list(tmp_path.glob("*.tmp"))
    assert medium.get_item("key") == "old"


def test_store_survives_restart_on_file_medium(tmp_path: Path) -> None:
    first = ProjectStore(FileMedium(tmp_path))
    project = first.create("Alpha", "m").value
    first.set_current_id(project.id)

    second = ProjectStore(FileMedium(tmp_path))
    assert second.get(project.id) == project
    assert second.get_current_id() == project.id


def test_memory_quota_counts_replaced_value_once() -> None:
    medium = InMemoryMedium(quota_bytes=10)
    medium.set_item("a", "12345")
    medium.set_item("a", "1234567890")

    with pytest.raises(MediumQuotaExceededError) as ei:
        medium.set_item("b", "1")
    assert ei.value.error_type == "quota_exceeded"
    assert medium.get_item("b") is None
