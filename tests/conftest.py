import sys
from pathlib import Path
from typing import Dict, List

import pytest

from src.harness.config import HarnessConfig
from src.harness.scenarios import AUDIO_RAW, COMMERCIAL_MONO_WAV, GOOGLE_GNOME_WAV

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"


class InMemoryStorage:
    """Storage fake recording every call.

    With lag_objects=N, the first listing of a bucket misses the N most
    recent uploads, the way a freshly written bucket can lag behind.
    """

    def __init__(self, lag_objects: int = 0) -> None:
        self.buckets: Dict[str, List[str]] = {}
        self.deleted_buckets: List[str] = []
        self.calls: List[tuple] = []
        self.lag_objects = lag_objects
        self.fail_on: Dict[str, Exception] = {}

    def _maybe_fail(self, op: str) -> None:
        if op in self.fail_on:
            raise self.fail_on[op]

    def create_bucket(self, name: str) -> None:
        self.calls.append(("create_bucket", name))
        self._maybe_fail("create_bucket")
        if name in self.buckets:
            raise RuntimeError("409 Conflict: bucket already exists")
        self.buckets[name] = []

    def upload(self, bucket: str, path: Path) -> str:
        self.calls.append(("upload", bucket, Path(path).name))
        self._maybe_fail("upload")
        self.buckets[bucket].append(Path(path).name)
        return Path(path).name

    def list_objects(self, bucket: str) -> List[str]:
        objects = self.buckets[bucket]
        if self.lag_objects:
            visible = objects[: max(0, len(objects) - self.lag_objects)]
            self.lag_objects = 0
            return list(visible)
        return list(objects)

    def delete_objects(self, bucket: str, force: bool = True) -> int:
        self.calls.append(("delete_objects", bucket, force))
        self._maybe_fail("delete_objects")
        visible = self.list_objects(bucket)
        for name in visible:
            self.buckets[bucket].remove(name)
        return len(visible)

    def delete_bucket(self, bucket: str) -> None:
        self.calls.append(("delete_bucket", bucket))
        self._maybe_fail("delete_bucket")
        if self.buckets[bucket]:
            raise RuntimeError("409 Conflict: bucket is not empty")
        del self.buckets[bucket]
        self.deleted_buckets.append(bucket)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def resources_dir(tmp_path: Path) -> Path:
    """Placeholder fixture files; the fake tool never decodes them."""
    res = tmp_path / "resources"
    res.mkdir()
    for name in (AUDIO_RAW, GOOGLE_GNOME_WAV, COMMERCIAL_MONO_WAV):
        (res / name).write_bytes(b"\x00\x01" * 16)
    return res


@pytest.fixture
def fake_tool() -> Path:
    return FIXTURES_DIR / "fake_recognize.py"


@pytest.fixture
def harness_config(tmp_path: Path, resources_dir: Path, fake_tool: Path) -> HarnessConfig:
    return HarnessConfig(
        tool_command=[sys.executable, str(fake_tool)],
        tool_cwd=tmp_path,
        resources_dir=resources_dir,
        bucket_prefix="harness-test-",
        delete_attempts=2,
        command_timeout_seconds=60,
    )


@pytest.fixture
def storage_factory():
    return InMemoryStorage
