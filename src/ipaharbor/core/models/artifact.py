"""Artifact 文件模型

产物命名完全由 job key 决定：
- {app_id}_{version_id}.ipa      产物本体
- {app_id}_{version_id}.json     metadata sidecar（由 extractor 写入）
- {app_id}_{version_id}.ipa.tmp  下载中的临时文件
"""

from datetime import datetime

from pydantic import BaseModel, Field

ARTIFACT_SUFFIX = ".ipa"
SIDECAR_SUFFIX = ".json"
PARTIAL_SUFFIX = ".tmp"


def artifact_file_name(app_id: str, version_id: str) -> str:
    """根据 job key 生成确定性的产物文件名"""
    return f"{app_id}_{version_id}{ARTIFACT_SUFFIX}"


def sidecar_file_name(file_name: str) -> str:
    """产物对应的 metadata sidecar 文件名"""
    stem = file_name.removesuffix(ARTIFACT_SUFFIX)
    return f"{stem}{SIDECAR_SUFFIX}"


def partial_file_name(file_name: str) -> str:
    """产物对应的下载临时文件名"""
    return f"{file_name}{PARTIAL_SUFFIX}"


class ArtifactFileInfo(BaseModel):
    """产物目录中的 IPA 文件信息，sidecar 存在时附带部分 metadata 字段"""

    name: str = Field(description="文件名")
    size: int = Field(description="文件大小（字节）")
    created_at: datetime = Field(description="创建时间")
    modified_at: datetime = Field(description="修改时间")

    item_id: int | str | None = None
    bundle_display_name: str | None = None
    artist_name: str | None = None
    bundle_short_version_string: str | None = None
    bundle_version: str | None = None
    product_type: str | None = None
    software_version_bundle_id: str | None = None
    software_version_external_identifier: int | str | None = None
    release_date: str | None = None


class ArtifactFileList(BaseModel):
    """文件列表查询结果"""

    files: list[ArtifactFileInfo] = Field(default_factory=list)
    total: int = 0
    total_size: int = 0
