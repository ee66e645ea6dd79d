"""Shared fixtures for callmap tests."""

import json
from pathlib import Path

import pytest

from callmap.core.models import CallRef, FunctionRecord


def make_record(name: str, file_path: str, *calls: tuple[str, str], line: int = 1):
    """Build a FunctionRecord; ``calls`` are (name, file_path) pairs."""
    return FunctionRecord(
        name=name,
        line=line,
        file_path=file_path,
        calls=[CallRef(name=n, file_path=f) for n, f in calls],
    )


@pytest.fixture
def record():
    """Factory fixture for FunctionRecord."""
    return make_record


@pytest.fixture
def main_run_records():
    """main.main -> pkg.Run, the smallest interesting dataset."""
    return [
        make_record("main.main", "cmd/main.go", ("pkg.Run", "pkg/run.go")),
        make_record("pkg.Run", "pkg/run.go"),
    ]


@pytest.fixture
def many_roots():
    """Factory: ``n`` independent roots that all call one shared helper."""

    def _make(n: int) -> list[FunctionRecord]:
        records = [
            make_record(f"svc.Handler{i:02d}", "svc/handlers.go", ("util.Log", "util/log.go"))
            for i in range(n)
        ]
        records.append(make_record("util.Log", "util/log.go"))
        return records

    return _make


@pytest.fixture
def dataset_file(tmp_path: Path, main_run_records) -> Path:
    """Dataset JSON on disk in the analyzer's ``called`` spelling."""
    payload = [
        {
            "name": r.name,
            "line": r.line,
            "filePath": r.file_path,
            "called": [{"name": c.name, "filePath": c.file_path} for c in r.calls],
        }
        for r in main_run_records
    ]
    path = tmp_path / "functionmap.json"
    path.write_text(json.dumps(payload))
    return path
