# backoffice/schemas/inventory.py
from __future__ import annotations

from datetime import datetime
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

from backoffice.models.enums import MovementReferenceType
from backoffice.models.product import QUANTITY_MAX


class _Base(BaseModel):
    """
    - from_attributes: 允许 ORM 对象直接序列化
    - extra="ignore": 忽略冗余字段，兼容旧客户端
    """

    model_config = ConfigDict(
        from_attributes=True,
        extra="ignore",
        populate_by_name=True,
    )


# ========= 库存调整（请求） =========
class AdjustmentIn(_Base):
    """
    单条调整：
    - adjustment 为有符号整数（负数 = 扣减），不接受小数 / 字符串；绝对值不超过库存列上限
    - reference_type 缺省为 adjustment
    """

    variant_id: UUID
    adjustment: Annotated[StrictInt, Field(ge=-QUANTITY_MAX, le=QUANTITY_MAX)]
    notes: Optional[str] = None
    reference_type: MovementReferenceType = MovementReferenceType.ADJUSTMENT
    reference_id: Optional[UUID] = None

    @field_validator("notes", mode="before")
    @classmethod
    def _trim_notes(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


class AdjustRequest(_Base):
    adjustments: Annotated[List[AdjustmentIn], Field(min_length=1)]

    model_config = _Base.model_config | {
        "json_schema_extra": {
            "example": {
                "adjustments": [
                    {
                        "variant_id": "5f0c4c64-8a53-4f4e-9c55-7d1c3f0e2f11",
                        "adjustment": -2,
                        "notes": "damaged in transit",
                        "reference_type": "damage",
                    }
                ]
            }
        }
    }


# ========= 库存调整（响应） =========
class AdjustmentResult(_Base):
    variant_id: UUID
    before: int
    delta: int
    after: int
    clamped: bool
    movement_id: UUID


class AdjustResponse(_Base):
    success: bool = True
    results: List[AdjustmentResult]


# ========= 库存流水（查询） =========
class InventoryMovementOut(_Base):
    id: UUID
    variant_id: UUID
    type: str
    quantity: int
    reference_type: Optional[str] = None
    reference_id: Optional[UUID] = None
    notes: Optional[str] = None
    created_by: Optional[UUID] = None
    created_at: datetime


class MovementListResponse(_Base):
    data: List[InventoryMovementOut]
