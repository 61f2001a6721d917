"""Core 异常体系

下载任务本身的失败记录为任务状态，不以异常形式抛出；
此处只包含产物目录与 metadata 提取相关的异常。
"""


class InvalidFileNameError(ValueError):
    """产物文件名非法（不是产物目录下的 *.ipa 纯文件名）"""

    def __init__(self, file_name: str) -> None:
        super().__init__(f"非法的产物文件名: {file_name!r}")
        self.file_name = file_name


class MetadataError(Exception):
    """Metadata 提取基础异常"""

    def __init__(self, message: str, file_name: str) -> None:
        """
        Args:
            message: 错误描述
            file_name: 产物文件名
        """
        super().__init__(message)
        self.file_name = file_name


class ArtifactNotFoundError(MetadataError):
    """产物文件不存在"""

    def __init__(self, file_name: str) -> None:
        super().__init__(f"IPA 文件不存在: {file_name}", file_name)


class MetadataNotFoundError(MetadataError):
    """产物中没有 iTunesMetadata.plist"""

    def __init__(self, file_name: str) -> None:
        super().__init__(f"IPA 中未找到 iTunesMetadata.plist: {file_name}", file_name)


class MetadataParseError(MetadataError):
    """产物或 plist 无法解析"""

    def __init__(self, file_name: str, original_error: Exception) -> None:
        """
        Args:
            file_name: 产物文件名
            original_error: 原始异常
        """
        super().__init__(f"解析 metadata 失败: {file_name} -- {original_error}", file_name)
        self.original_error = original_error
