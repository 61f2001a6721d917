"""哨兵子串 -- 下载器输出中明确指示可由用户处理的失败

任何一个输出流中出现哨兵，任务立即失败并终止进程（fail-fast）。
匹配顺序即表中顺序。
"""

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class Sentinel:
    """单个哨兵：子串 -> 错误分类 + 用户可读信息"""

    pattern: str
    kind: str
    message: str


IPATOOL_SENTINELS: tuple[Sentinel, ...] = (
    Sentinel(
        pattern="password token is expired",
        kind="TOKEN_EXPIRED",
        message="密码令牌已过期，请重新登录",
    ),
    Sentinel(
        pattern="license is required",
        kind="LICENSE_REQUIRED",
        message="需要先领取该应用的许可证",
    ),
)


def match_sentinel(
    text: str,
    sentinels: Iterable[Sentinel] = IPATOOL_SENTINELS,
) -> Sentinel | None:
    """返回 text 中第一个命中的哨兵，未命中返回 None"""
    for sentinel in sentinels:
        if sentinel.pattern in text:
            return sentinel
    return None
