"""core 测试配置 -- 任务与产物 fixture"""

import io
import plistlib
import zipfile
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import pytest
from ipaharbor.core.models import Task, artifact_file_name
from ipaharbor.core.store import FileArtifactStore
from ulid import ULID


@pytest.fixture
def make_task() -> Callable[..., Task]:
    """按 job key 构造任务"""

    def _make(app_id: str = "100", version_id: str = "200", **kwargs) -> Task:
        now = kwargs.pop("created_at", datetime.now(UTC))
        return Task(
            task_id=kwargs.pop("task_id", str(ULID())),
            app_id=app_id,
            version_id=version_id,
            bundle_id=kwargs.pop("bundle_id", "com.example.app"),
            file_name=artifact_file_name(app_id, version_id),
            created_at=now,
            updated_at=now,
            **kwargs,
        )

    return _make


@pytest.fixture
def artifact_store(tmp_data_dir: Path) -> FileArtifactStore:
    return FileArtifactStore(tmp_data_dir)


@pytest.fixture
def build_ipa() -> Callable[..., bytes]:
    """构造包含 iTunesMetadata.plist 的 IPA（zip）"""

    def _build(metadata: dict | None = None, fmt=plistlib.FMT_BINARY, raw: bytes | None = None) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            if raw is not None:
                archive.writestr("iTunesMetadata.plist", raw)
            elif metadata is not None:
                archive.writestr("iTunesMetadata.plist", plistlib.dumps(metadata, fmt=fmt))
            archive.writestr("Payload/App.app/Info.plist", b"")
        return buffer.getvalue()

    return _build
