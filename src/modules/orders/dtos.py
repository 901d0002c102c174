"""Order DTOs for the service layer.

Framework-agnostic, immutable Pydantic v2 models passed from the API
layer into ``OrderService``.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.orders.constants import OrderStatus, normalize_status


class CancelOrderDTO(BaseModel):
    """Cancellation request: the order and an optional free-text reason."""

    model_config = ConfigDict(frozen=True)

    order_id: UUID
    reason: str = ""

    @field_validator("reason", mode="before")
    @classmethod
    def strip_reason(cls, v: object) -> str:
        return "" if v is None else str(v).strip()


class UpdateOrderStatusDTO(BaseModel):
    """Staff-driven transition to any status other than CANCELLED."""

    model_config = ConfigDict(frozen=True)

    order_id: UUID
    new_status: str
    notes: str = ""

    @field_validator("new_status")
    @classmethod
    def status_must_be_known(cls, v: str) -> str:
        status = normalize_status(v)
        if status not in OrderStatus.values:
            raise ValueError(f"Unknown order status '{v}'.")
        if status == OrderStatus.CANCELLED:
            raise ValueError("Use the cancel endpoint for cancellations.")
        return status
