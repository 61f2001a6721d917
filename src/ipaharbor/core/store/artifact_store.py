"""ArtifactStore 文件系统实现

产物目录是扁平目录：{app_id}_{version_id}.ipa / .json / .ipa.tmp。
下载进程是唯一写入方，此处只负责查询与删除。
"""

import json
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

import structlog

from ..config import TRACKED_EXTENSIONS
from ..exceptions import InvalidFileNameError
from ..models.artifact import (
    ARTIFACT_SUFFIX,
    ArtifactFileInfo,
    ArtifactFileList,
    partial_file_name,
    sidecar_file_name,
)

log = structlog.get_logger()

# sidecar 键 -> ArtifactFileInfo 字段
_SIDECAR_FIELDS = {
    "itemId": "item_id",
    "bundleDisplayName": "bundle_display_name",
    "artistName": "artist_name",
    "bundleShortVersionString": "bundle_short_version_string",
    "bundleVersion": "bundle_version",
    "product-type": "product_type",
    "softwareVersionBundleId": "software_version_bundle_id",
    "softwareVersionExternalIdentifier": "software_version_external_identifier",
    "releaseDate": "release_date",
}


def validate_artifact_name(file_name: str) -> str:
    """校验产物文件名：必须是不含路径成分的 *.ipa 文件名"""
    if (
        not file_name
        or file_name != Path(file_name).name
        or file_name in (".", "..")
        or "\\" in file_name
        or not file_name.endswith(ARTIFACT_SUFFIX)
        or file_name == ARTIFACT_SUFFIX
    ):
        raise InvalidFileNameError(file_name)
    return file_name


class FileArtifactStore:
    """ArtifactStore 的文件系统实现"""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def ensure_dir(self) -> None:
        self._root.mkdir(parents=True, exist_ok=True)

    def path_for(self, file_name: str) -> Path:
        return self._root / validate_artifact_name(file_name)

    def delete_artifact_files(self, file_name: str) -> bool:
        """删除产物、sidecar 与临时文件

        文件不存在不视为错误。

        Returns:
            是否至少删除了一个文件
        """
        validate_artifact_name(file_name)
        deleted = False
        for name in (file_name, sidecar_file_name(file_name), partial_file_name(file_name)):
            path = self._root / name
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            deleted = True
            log.info("artifact_file_deleted", file_name=name)
        return deleted

    def delete_all(self) -> int:
        """删除产物目录下所有受管理后缀的文件（不限于已知任务）"""
        if not self._root.is_dir():
            return 0
        count = 0
        for path in self._root.iterdir():
            if not path.is_file() or path.suffix not in TRACKED_EXTENSIONS:
                continue
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            count += 1
        log.info("artifact_dir_cleared", deleted_files=count)
        return count

    def iter_artifacts(self) -> Iterator[Path]:
        if not self._root.is_dir():
            return
        for path in self._root.iterdir():
            if path.is_file() and path.suffix == ARTIFACT_SUFFIX:
                yield path

    def read_sidecar(self, file_name: str) -> dict | None:
        """读取 sidecar，不存在或损坏时返回 None"""
        path = self._root / sidecar_file_name(file_name)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            log.warning("sidecar_unreadable", file_name=path.name, error=str(e))
            return None
        return data if isinstance(data, dict) else None

    def list_files(self) -> ArtifactFileList:
        """列出全部 *.ipa，按修改时间倒序，sidecar 存在时附带 metadata 摘要"""
        files: list[ArtifactFileInfo] = []
        for path in self.iter_artifacts():
            try:
                stat = path.stat()
            except FileNotFoundError:
                # 列举过程中被删除
                continue
            info: dict = {
                "name": path.name,
                "size": stat.st_size,
                "created_at": datetime.fromtimestamp(stat.st_ctime, UTC),
                "modified_at": datetime.fromtimestamp(stat.st_mtime, UTC),
            }
            sidecar = self.read_sidecar(path.name)
            if sidecar:
                for key, field in _SIDECAR_FIELDS.items():
                    value = sidecar.get(key)
                    if isinstance(value, (str, int)) and not isinstance(value, bool):
                        info[field] = value
            files.append(ArtifactFileInfo(**info))

        files.sort(key=lambda f: (f.modified_at, f.name), reverse=True)
        return ArtifactFileList(
            files=files,
            total=len(files),
            total_size=sum(f.size for f in files),
        )
