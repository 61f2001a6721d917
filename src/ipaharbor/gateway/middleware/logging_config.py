"""structlog 配置模块

dev 模式：pretty print 可读输出
json 模式：结构化 JSON 输出
Logfire APM：LOGFIRE_SEND_TO_LOGFIRE 环境变量控制，false 时降级为纯本地日志。
"""

import logging
import os

import structlog

# 日志中一律打码的字段
SENSITIVE_KEYS = frozenset({"keychain_passphrase", "passphrase", "password", "token"})

REDACTED = "***"


def redact_secrets(
    logger: object,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """将敏感字段替换为 ***"""
    for key in SENSITIVE_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """初始化 structlog 配置

    未显式传入时读取环境变量：
    - IPAHARBOR_LOG_FORMAT: "json" 结构化 JSON 输出 / "dev"（默认）pretty print
    - IPAHARBOR_LOG_LEVEL: 日志级别（默认 INFO）；下载器原始输出行只在 DEBUG 级别输出
    """
    log_format = log_format or os.environ.get("IPAHARBOR_LOG_FORMAT", "dev")
    log_level = log_level or os.environ.get("IPAHARBOR_LOG_LEVEL", "INFO")

    # 基础处理器链
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        # 生产模式：JSON 输出
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
        shared_processors.append(structlog.processors.format_exc_info)
    else:
        # 开发模式：pretty print
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # 配置标准库 logging
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # uvicorn 访问日志由 LoggingMiddleware 取代
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def setup_logfire(app) -> None:
    """Logfire 可选初始化

    LOGFIRE_SEND_TO_LOGFIRE 环境变量控制：
    - "true": 启用 Logfire APM（需要 LOGFIRE_TOKEN，安装 observability extra）
    - "false" (默认): 降级为纯本地日志
    """
    send_to_logfire = os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower()
    if send_to_logfire == "true":
        try:
            import logfire

            logfire.configure(service_name="ipa-harbor")
            logfire.instrument_fastapi(app)
        except Exception:
            # Logfire 初始化失败不影响系统运行
            structlog.get_logger().warning(
                "logfire_init_failed",
                message="Logfire 初始化失败，降级为纯本地日志",
            )
