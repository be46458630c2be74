# backoffice/db/base.py
from __future__ import annotations

import importlib
import logging

from sqlalchemy.orm import DeclarativeBase, configure_mappers

log = logging.getLogger("backoffice.models")


class Base(DeclarativeBase):
    """全局唯一 ORM Base"""

    pass


_INITIALIZED: bool = False  # 防重复初始化

# 关系字符串目标类必须先注册，按依赖顺序显式导入
MODEL_MODULES = [
    "backoffice.models.profile",
    "backoffice.models.product",
    "backoffice.models.inventory_movement",
    "backoffice.models.order",
    "backoffice.models.order_item",
    "backoffice.models.shipment",
    "backoffice.models.admin_log",
]


def init_models(*, force: bool = False) -> None:
    """集中导入模型 + 固化关系映射（alembic / 建表前调用）。"""
    global _INITIALIZED
    if _INITIALIZED and not force:
        return

    for mod in MODEL_MODULES:
        importlib.import_module(mod)

    configure_mappers()
    _INITIALIZED = True
    log.info("ORM models initialized & mappers configured (loaded %d modules)", len(MODEL_MODULES))
