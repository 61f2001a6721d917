"""任务查询 / 删除路由

GET /api/tasks: 按状态分组的任务列表 + app/version 摘要。
GET /api/progress: 运行中 / 等待中任务的实时进度。
DELETE /api/tasks/{task_id}: 删除单个任务（终止进程 + 删除产物）。
DELETE /api/tasks: 清空全部任务与产物目录。
"""

from fastapi import APIRouter, Depends
from ipaharbor.core.models import ClearResult, ProgressSnapshot, TaskListView
from pydantic import BaseModel
from starlette.responses import JSONResponse

from ..deps import get_download_manager

router = APIRouter()


class ProgressResponse(BaseModel):
    """实时进度响应"""

    progress: list[ProgressSnapshot]


class DeleteTaskResponse(BaseModel):
    """删除成功响应"""

    task_id: str
    deleted: bool = True


@router.get("/api/tasks", response_model=TaskListView)
async def list_tasks(manager=Depends(get_download_manager)):
    """任务列表，各分组内按 created_at 倒序"""
    return manager.list_tasks()


@router.get("/api/progress", response_model=ProgressResponse)
async def get_progress(manager=Depends(get_download_manager)):
    """运行中 / 等待中任务的最新进度行"""
    return ProgressResponse(progress=manager.get_progress())


@router.delete("/api/tasks/{task_id}", response_model=DeleteTaskResponse)
async def delete_task(
    task_id: str,
    manager=Depends(get_download_manager),
):
    """删除任务

    - running: 终止进程（不等待退出）
    - pending: 移出队列
    - 任意状态: 删除产物、sidecar 与临时文件
    """
    task = await manager.delete_task(task_id)
    if task is None:
        return JSONResponse(
            status_code=404,
            content={
                "error": {
                    "code": "TASK_NOT_FOUND",
                    "message": f"Task with id {task_id} does not exist",
                }
            },
        )
    return DeleteTaskResponse(task_id=task_id)


@router.delete("/api/tasks", response_model=ClearResult)
async def clear_tasks(manager=Depends(get_download_manager)):
    """清空全部任务并删除产物目录下所有 ipa / json / tmp 文件"""
    return await manager.clear_all()
