"""Downloader 异常体系

下载过程中的失败（哨兵、非零退出）以进程输出与退出码体现，不抛异常；
只有下载器根本无法启动时才抛出 DownloaderSpawnError。
"""


class DownloaderError(Exception):
    """Downloader 包基础异常"""

    def __init__(self, message: str, recoverable: bool = False) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可通过重试恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class DownloaderSpawnError(DownloaderError):
    """下载器进程无法启动（可执行文件不存在、无执行权限等）

    str(exc) 为系统原始错误信息，直接作为任务的 error。
    """

    def __init__(self, executable: str, original_error: Exception) -> None:
        """
        Args:
            executable: 尝试启动的可执行文件
            original_error: 原始异常
        """
        super().__init__(str(original_error) or type(original_error).__name__)
        self.executable = executable
        self.original_error = original_error
