"""进度解析 -- 将下载器的进度行解析为结构化进度

进度行示例::

    downloading  25% |█████████                             | (24/97 MB, 1.4 MB/s)
"""

import re

from .models.enums import TaskStatus
from .models.views import ProgressInfo

# 进度行识别子串
PROGRESS_MARKER = "downloading"

WAITING_TEXT = "waiting..."
COMPLETED_TEXT = "completed"

_PERCENTAGE_RE = re.compile(r"(\d+)%")
_CLAUSE_RE = re.compile(r"\(([^)]+)\)")


def is_progress_line(line: str) -> bool:
    """判断一行（已 strip）是否为进度行"""
    return bool(line) and PROGRESS_MARKER in line


def parse_progress(progress_text: str | None, status: str | None = None) -> ProgressInfo:
    """解析进度文本

    Args:
        progress_text: 进度行原文，None 表示尚无进度
        status: 任务状态，completed 时忽略文本直接返回 100%

    Returns:
        ProgressInfo
    """
    if status == TaskStatus.COMPLETED:
        return ProgressInfo(percentage=100, size_progress=COMPLETED_TEXT)

    if not progress_text:
        return ProgressInfo(percentage=0, size_progress=WAITING_TEXT)

    match = _PERCENTAGE_RE.search(progress_text)
    percentage = min(int(match.group(1)), 100) if match else 0

    size_progress = ""
    download_speed = ""
    clause = _CLAUSE_RE.search(progress_text)
    if clause:
        parts = [part.strip() for part in clause.group(1).split(",")]
        size_progress = parts[0]
        if len(parts) > 1:
            download_speed = parts[1]

    return ProgressInfo(
        percentage=percentage,
        size_progress=size_progress,
        download_speed=download_speed,
    )
