"""CLI 入口模块 -- python -m ipaharbor.core <command>

支持的命令：
  list-files                列出产物目录中的 IPA 文件
  extract-metadata <file>   提取 IPA 的 iTunesMetadata 并写入 sidecar
"""

import asyncio
import json
import sys

from .config import get_data_dir
from .exceptions import InvalidFileNameError, MetadataError

_USAGE = """用法: python -m ipaharbor.core <command>
命令:
  list-files                列出产物目录中的 IPA 文件
  extract-metadata <file>   提取 IPA 的 iTunesMetadata 并写入 sidecar"""


def main(argv: list[str] | None = None) -> int:
    """CLI 主入口，返回退出码"""
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print(_USAGE)
        return 1

    command = args[0]

    if command == "list-files":
        return list_files()
    if command == "extract-metadata":
        if len(args) < 2:
            print("缺少参数: <file>")
            return 1
        return asyncio.run(extract_metadata(args[1]))

    print(f"未知命令: {command}")
    print("可用命令: list-files, extract-metadata")
    return 1


def list_files() -> int:
    """打印产物目录中的 IPA 文件"""
    from .store import create_store_group

    data_dir = get_data_dir()
    print(f"产物目录: {data_dir}")

    result = create_store_group(data_dir).artifact_store.list_files()
    for info in result.files:
        title = info.bundle_display_name or "-"
        version = info.bundle_short_version_string or "-"
        print(f"{info.name}\t{info.size}\t{title}\t{version}")
    print(f"共 {result.total} 个文件，{result.total_size} 字节")
    return 0


async def extract_metadata(file_name: str) -> int:
    """提取单个 IPA 的 metadata 并打印"""
    from .metadata import MetadataExtractor
    from .store import create_store_group

    store_group = create_store_group(get_data_dir())
    extractor = MetadataExtractor(store_group.artifact_store)
    try:
        metadata = await extractor.extract(file_name)
    except (InvalidFileNameError, MetadataError) as e:
        print(f"提取失败: {e}")
        return 1

    print(json.dumps(metadata, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
