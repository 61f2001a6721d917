"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，包含产物目录、磁盘空间、下载器可执行文件。
"""

import os
import shutil
from pathlib import Path

import structlog
from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request):
    """Readiness 检查 -- 验证核心依赖可用性

    检查项：
    1. data_dir: 产物目录可访问性
    2. disk_space_mb: 产物目录所在磁盘剩余空间
    3. downloader: ipatool 模式下可执行文件存在且可执行；simulate 模式跳过
    4. running / pending: 当前任务数（仅展示）
    """
    checks = {}
    all_ok = True

    # 1. 产物目录检查
    data_dir = Path(request.app.state.store_group.data_dir)
    if data_dir.exists() and data_dir.is_dir():
        checks["data_dir"] = "ok"
    else:
        checks["data_dir"] = "error: directory does not exist"
        all_ok = False

    # 2. 磁盘空间检查
    try:
        disk_usage = shutil.disk_usage(data_dir if data_dir.exists() else "/")
        checks["disk_space_mb"] = disk_usage.free // (1024 * 1024)
    except OSError as e:
        log.warning("disk_usage_check_failed", error=str(e))
        checks["disk_space_mb"] = 0
        all_ok = False

    # 3. 下载器检查
    downloader_config = request.app.state.downloader_config
    if downloader_config.mode == "simulate":
        checks["downloader"] = "skipped"
    else:
        executable = Path(downloader_config.ipatool_path)
        if executable.is_file() and os.access(executable, os.X_OK):
            checks["downloader"] = "ok"
        else:
            checks["downloader"] = f"error: {executable} is not an executable file"
            all_ok = False

    # 4. 任务概况
    task_store = request.app.state.store_group.task_store
    checks["running"] = task_store.running_count
    checks["pending"] = len(task_store.queued_ids)

    status_code = 200 if all_ok else 503
    status_text = "ready" if all_ok else "not_ready"

    return JSONResponse(
        status_code=status_code,
        content={
            "status": status_text,
            "mode": downloader_config.mode,
            "checks": checks,
        },
    )
