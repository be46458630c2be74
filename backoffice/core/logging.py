# backoffice/core/logging.py
import logging
import sys
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# 本服务所有 logger 都挂在这个前缀下：backoffice.orders / backoffice.inventory / backoffice.audit ...
APP_LOGGER = "backoffice"


def setup_logging(
    level: str = "INFO",
    *,
    fmt: Optional[str] = None,
) -> logging.Handler:
    """
    日志初始化（create_app 时调用一次，可重复调用）：

    - backoffice.* 按 LOG_LEVEL 输出
    - 第三方库只放行 WARNING 以上，DEBUG 时跟随 LOG_LEVEL
    - 根 logger 只挂一个 stdout handler，格式取 LOG_FORMAT
    - DEBUG 时打开 sqlalchemy.engine 的 INFO（SQL 语句）
    """
    level_no = logging.getLevelName(level.upper())
    if not isinstance(level_no, int):
        raise ValueError(f"unknown log level: {level!r}")

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    root.addHandler(handler)
    root.setLevel(level_no if level_no <= logging.DEBUG else max(level_no, logging.WARNING))

    logging.getLogger(APP_LOGGER).setLevel(level_no)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if level_no <= logging.DEBUG else logging.WARNING
    )
    return handler
