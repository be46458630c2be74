# backoffice/core/tx.py
from __future__ import annotations

from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession


@asynccontextmanager
async def tx_commit(session: AsyncSession):
    """
    Commit 事务：块内全部写入同属一个事务（AsyncSession autobegin），
    正常退出提交，任何异常回滚后继续上抛。
    Service 内部不得再自行 commit。
    """
    try:
        yield session
        await session.commit()
    except BaseException:
        await session.rollback()
        raise
