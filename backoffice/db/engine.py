# backoffice/db/engine.py
# 统一引擎工厂：PG 走 psycopg3；SQLite 走 aiosqlite 并补齐外键 / 事务行为
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

__all__ = ["SQLITE_BUSY_TIMEOUT", "create_async_engine_safe", "install_sqlite_pragmas"]

SQLITE_BUSY_TIMEOUT = 15.0


def _connect_args_for(url_str: str) -> dict[str, Any]:
    backend = make_url(url_str).get_backend_name()
    if backend.startswith("sqlite"):
        # timeout = busy 等待秒数：写锁被占用时排队，而不是立刻报 database is locked
        return {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT}
    return {}


def install_sqlite_pragmas(engine: AsyncEngine) -> None:
    """
    SQLite 默认不校验外键，也不会级联删除；
    这里在每个新连接上打开 foreign_keys，保证与 PG 的 ON DELETE 语义一致。
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, _record):  # pragma: no cover - 驱动回调
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_async_engine_safe(url_str: str, *, echo: bool = False, **extra: Any) -> AsyncEngine:
    """Async 版（'postgresql+psycopg' 或 'sqlite+aiosqlite'）。"""
    u = make_url(url_str)

    kwargs: dict[str, Any] = {"echo": echo}
    if u.get_backend_name().startswith("postgresql"):
        kwargs["pool_pre_ping"] = True
    connect_args = _connect_args_for(url_str)
    if connect_args:
        kwargs["connect_args"] = connect_args
    kwargs.update(extra)

    engine = create_async_engine(url_str, **kwargs)
    if u.get_backend_name().startswith("sqlite"):
        install_sqlite_pragmas(engine)
    return engine
