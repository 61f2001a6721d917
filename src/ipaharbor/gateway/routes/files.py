"""产物文件路由

GET /api/files: 产物目录中的 IPA 文件列表（附带 sidecar metadata 摘要）。
DELETE /api/files/{file_name}: 按产物文件名删除任务与文件。
POST /api/ipa/metadata: 提取 IPA 的 iTunesMetadata（已有 sidecar 时直接返回）。
"""

import structlog
from fastapi import APIRouter, Depends
from ipaharbor.core.exceptions import (
    ArtifactNotFoundError,
    InvalidFileNameError,
    MetadataError,
)
from ipaharbor.core.models import ArtifactFileList, FileDeleteResult
from pydantic import AliasChoices, BaseModel, Field
from starlette.responses import JSONResponse

from ..deps import get_download_manager, get_metadata_extractor

log = structlog.get_logger()

router = APIRouter()


class MetadataRequest(BaseModel):
    """metadata 提取请求体"""

    file_name: str = Field(
        min_length=1,
        validation_alias=AliasChoices("file_name", "fileName"),
        description="IPA 文件名",
    )


class MetadataResponse(BaseModel):
    """metadata 提取响应"""

    file_name: str
    metadata: dict


def _invalid_name(e: InvalidFileNameError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "error": {
                "code": "INVALID_FILE_NAME",
                "message": str(e),
            }
        },
    )


@router.get("/api/files", response_model=ArtifactFileList)
async def list_files(manager=Depends(get_download_manager)):
    """产物文件列表，按修改时间倒序"""
    return manager.list_files()


@router.delete("/api/files/{file_name}", response_model=FileDeleteResult)
async def delete_file(
    file_name: str,
    manager=Depends(get_download_manager),
):
    """删除文件名匹配的全部任务与产物文件

    既没有匹配任务也没有文件时返回 404。
    """
    try:
        result = await manager.delete_by_file_name(file_name)
    except InvalidFileNameError as e:
        return _invalid_name(e)

    if not result.found:
        return JSONResponse(
            status_code=404,
            content={
                "error": {
                    "code": "FILE_NOT_FOUND",
                    "message": f"No task or file matches {file_name}",
                }
            },
        )
    return result


@router.post("/api/ipa/metadata", response_model=MetadataResponse)
async def extract_metadata(
    body: MetadataRequest,
    extractor=Depends(get_metadata_extractor),
):
    """提取 IPA metadata 并写入 sidecar"""
    try:
        metadata = await extractor.extract(body.file_name)
    except InvalidFileNameError as e:
        return _invalid_name(e)
    except ArtifactNotFoundError as e:
        return JSONResponse(
            status_code=404,
            content={
                "error": {
                    "code": "FILE_NOT_FOUND",
                    "message": str(e),
                }
            },
        )
    except MetadataError as e:
        log.warning("metadata_request_failed", file_name=body.file_name, error=str(e))
        return JSONResponse(
            status_code=422,
            content={
                "error": {
                    "code": "METADATA_ERROR",
                    "message": str(e),
                }
            },
        )

    return MetadataResponse(file_name=body.file_name, metadata=metadata)
