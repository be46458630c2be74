# backoffice/core/audit.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Mapping, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models.admin_log import AdminLog

logger = logging.getLogger("backoffice.audit")


@asynccontextmanager
async def best_effort(label: str, session: Optional[AsyncSession] = None):
    """
    次要副作用（审计日志 / 物流单同步等）的统一包装：

    - 块内异常只记 WARNING，不向上抛，不影响主流程结果
    - 传入 session 时，失败后回滚该 session，保证后续仍可使用
    - 只应在主事务 commit 之后使用
    """
    try:
        yield
    except Exception:
        logger.warning("best-effort step failed: %s", label, exc_info=True)
        if session is not None:
            try:
                await session.rollback()
            except Exception:
                logger.warning("rollback after best-effort failure also failed: %s", label, exc_info=True)


async def write_admin_log(
    session: AsyncSession,
    *,
    admin_id: UUID,
    action: str,
    resource_type: str,
    resource_id: Optional[UUID] = None,
    details: Optional[Mapping[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> None:
    """写一条管理操作日志并提交（调用方负责包 best_effort）。"""
    session.add(
        AdminLog(
            admin_id=admin_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=dict(details or {}),
            ip_address=ip_address,
            user_agent=user_agent,
        )
    )
    await session.commit()
