"""下载任务创建路由

POST /api/downloads: 创建下载任务（同一 app/version 的旧任务与产物会被替换）。
- 201: 创建成功
- 400: app_id / version_id 无法构成合法的产物文件名
"""

from fastapi import APIRouter, Depends
from ipaharbor.core.exceptions import InvalidFileNameError
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from starlette.responses import JSONResponse

from ..deps import get_download_manager

router = APIRouter()

_ID_PATTERN = r"^[A-Za-z0-9._-]+$"


class CreateDownloadRequest(BaseModel):
    """下载任务创建请求体（同时接受 camelCase 键名）"""

    model_config = ConfigDict(str_strip_whitespace=True)

    app_id: str = Field(
        min_length=1,
        pattern=_ID_PATTERN,
        validation_alias=AliasChoices("app_id", "appId"),
        description="App ID",
    )
    version_id: str = Field(
        min_length=1,
        pattern=_ID_PATTERN,
        validation_alias=AliasChoices("version_id", "versionId"),
        description="版本 ID，可为 latest",
    )
    bundle_id: str = Field(
        min_length=1,
        pattern=_ID_PATTERN,
        validation_alias=AliasChoices("bundle_id", "bundleId"),
        description="Bundle ID",
    )
    resolved_version_id: str | None = Field(
        default=None,
        pattern=_ID_PATTERN,
        validation_alias=AliasChoices("resolved_version_id", "resolvedVersionId"),
        description="version_id 为 latest 时解析出的具体版本 ID",
    )


class CreateDownloadResponse(BaseModel):
    """创建成功响应"""

    task_id: str
    app_id: str
    version_id: str
    status: str
    file_name: str


@router.post("/api/downloads", status_code=201, response_model=CreateDownloadResponse)
async def create_download(
    body: CreateDownloadRequest,
    manager=Depends(get_download_manager),
):
    """创建下载任务并立即尝试准入"""
    try:
        task = await manager.create_task(
            app_id=body.app_id,
            version_id=body.version_id,
            bundle_id=body.bundle_id,
            resolved_version_id=body.resolved_version_id,
        )
    except InvalidFileNameError as e:
        return JSONResponse(
            status_code=400,
            content={
                "error": {
                    "code": "INVALID_FILE_NAME",
                    "message": str(e),
                }
            },
        )

    return JSONResponse(
        status_code=201,
        content=CreateDownloadResponse(
            task_id=task.task_id,
            app_id=task.app_id,
            version_id=task.version_id,
            status=task.status.value,
            file_name=task.file_name,
        ).model_dump(),
    )
