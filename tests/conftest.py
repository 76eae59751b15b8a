import json
import zipfile
from pathlib import Path

import pytest

from h5pbatch.core.engine import EngineContext, EnginePaths, ExportJob, Operator
from h5pbatch.core.errors import ExportError, PackageError
from h5pbatch.core.formats import ExportFormat

CORRUPT_BYTES = b"this is not a zip archive"


def build_h5p(path: Path, title: str = "Quiz", library: bool = True, media: bool = True) -> Path:
    metadata = {
        "title": title,
        "language": "und",
        "mainLibrary": "H5P.MultiChoice",
        "license": "U",
        "embedTypes": ["iframe"],
        "preloadedDependencies": [
            {"machineName": "H5P.MultiChoice", "majorVersion": 1, "minorVersion": 16},
        ],
    }
    params = {
        "question": "<p>What is 2 + 2?</p>",
        "answers": [{"text": "4", "correct": True}, {"text": "5", "correct": False}],
    }
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("h5p.json", json.dumps(metadata))
        archive.writestr("content/content.json", json.dumps(params))
        if media:
            archive.writestr("content/images/pic.png", b"\x89PNG fake image")
        if library:
            archive.writestr(
                "H5P.MultiChoice-1.16/library.json",
                json.dumps({"machineName": "H5P.MultiChoice", "majorVersion": 1, "minorVersion": 16}),
            )
            archive.writestr("H5P.MultiChoice-1.16/js/multichoice.js", "// player")
    return path


@pytest.fixture
def make_h5p():
    return build_h5p


@pytest.fixture
def make_corrupt():
    def _make(path: Path) -> Path:
        path.write_bytes(CORRUPT_BYTES)
        return path

    return _make


class FakeEngine:
    """記錄呼叫的內容引擎"""

    def __init__(self) -> None:
        self.store: dict[str, bytes] = {}
        self.calls: list[tuple] = []
        self.jobs: list[ExportJob] = []
        self.fail_formats: set[ExportFormat] = set()
        self.fail_delete = False
        self.import_error: Exception | None = None
        self._next_id = 0

    def import_package(self, data: bytes, operator: Operator) -> str:
        self.calls.append(("import", len(data)))
        if self.import_error is not None:
            raise self.import_error
        if data == CORRUPT_BYTES:
            raise PackageError("Not a valid H5P archive")
        self._next_id += 1
        content_id = f"c{self._next_id}"
        self.store[content_id] = data
        return content_id

    def export_content(self, job: ExportJob, operator: Operator) -> None:
        self.calls.append(("export", job.content_id, job.format))
        self.jobs.append(job)
        if job.format in self.fail_formats:
            raise ExportError(f"{job.format.value} exporter failed")
        job.target_path.write_text("exported", encoding="utf-8")
        if job.format is ExportFormat.EXTERNAL:
            job.target_path.with_suffix("").mkdir(exist_ok=True)

    def delete_content(self, content_id: str, operator: Operator) -> None:
        self.calls.append(("delete", content_id))
        if self.fail_delete:
            raise OSError("store is read-only")
        self.store.pop(content_id, None)

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def engine_paths(tmp_path) -> EnginePaths:
    return EnginePaths(tmp_path / "engine")


@pytest.fixture
def fake_context(fake_engine, engine_paths) -> EngineContext:
    return EngineContext(engine=fake_engine, paths=engine_paths)
