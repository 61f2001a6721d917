"""MetadataExtractor -- 从 IPA 产物中提取 iTunesMetadata

IPA 是 zip 包，根目录下的 iTunesMetadata.plist（二进制或 XML plist）
解码后规范化为 JSON 兼容值，写入同名 sidecar（{app_id}_{version_id}.json）。

提取是幂等的：sidecar 已存在且可读时直接返回，不重新读取产物，也不重写 sidecar。
"""

import asyncio
import base64
import json
import plistlib
import zipfile
from datetime import datetime
from typing import Any
from xml.parsers.expat import ExpatError

import structlog

from .exceptions import (
    ArtifactNotFoundError,
    MetadataNotFoundError,
    MetadataParseError,
)
from .models.artifact import sidecar_file_name
from .store.artifact_store import FileArtifactStore

log = structlog.get_logger()

METADATA_ENTRY = "iTunesMetadata.plist"


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, plistlib.UID):
        return value.data
    raise TypeError(f"不支持的 plist 值类型: {type(value).__name__}")


def normalize_metadata(raw: Any) -> dict[str, Any]:
    """plist 解码结果 -> JSON 兼容 dict（datetime 转 ISO 字符串，bytes 转 base64）"""
    return json.loads(json.dumps(raw, default=_json_default))


class MetadataExtractor:
    """IPA metadata 提取器"""

    def __init__(self, artifact_store: FileArtifactStore) -> None:
        self._artifacts = artifact_store

    async def extract(self, file_name: str) -> dict[str, Any]:
        """提取 metadata（在线程中执行文件 IO）

        Raises:
            InvalidFileNameError: 文件名非法
            ArtifactNotFoundError: 产物不存在
            MetadataNotFoundError: 产物中没有 iTunesMetadata.plist
            MetadataParseError: 产物或 plist 无法解析
        """
        return await asyncio.to_thread(self.extract_sync, file_name)

    def extract_sync(self, file_name: str) -> dict[str, Any]:
        ipa_path = self._artifacts.path_for(file_name)
        if not ipa_path.is_file():
            raise ArtifactNotFoundError(file_name)

        cached = self._artifacts.read_sidecar(file_name)
        if cached is not None:
            return cached

        raw = self._read_plist(ipa_path, file_name)
        if not isinstance(raw, dict):
            raise MetadataParseError(
                file_name, TypeError(f"plist 顶层不是字典: {type(raw).__name__}")
            )
        try:
            metadata = normalize_metadata(raw)
        except (TypeError, ValueError) as e:
            raise MetadataParseError(file_name, e) from e

        sidecar_path = self._artifacts.root / sidecar_file_name(file_name)
        sidecar_path.write_text(
            json.dumps(metadata, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        if not ipa_path.is_file():
            # 解析期间产物已被删除，不留下孤立的 sidecar
            sidecar_path.unlink(missing_ok=True)
            raise ArtifactNotFoundError(file_name)
        log.info("metadata_extracted", file_name=file_name, sidecar=sidecar_path.name)
        return metadata

    @staticmethod
    def _read_plist(ipa_path, file_name: str) -> Any:
        try:
            with zipfile.ZipFile(ipa_path) as archive:
                try:
                    content = archive.read(METADATA_ENTRY)
                except KeyError:
                    raise MetadataNotFoundError(file_name) from None
        except (zipfile.BadZipFile, OSError) as e:
            raise MetadataParseError(file_name, e) from e

        try:
            # plistlib 自动识别二进制 / XML 格式
            return plistlib.loads(content)
        except (plistlib.InvalidFileException, ValueError, ExpatError) as e:
            raise MetadataParseError(file_name, e) from e
