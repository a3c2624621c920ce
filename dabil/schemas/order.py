from pydantic import BaseModel, Field, AliasChoices
from typing import List, Optional, Dict, Any
from datetime import datetime


class OrderItemCreate(BaseModel):
    menu_item_id: str = Field(validation_alias=AliasChoices("menu_item_id", "menuItemId"))
    quantity: int = Field(..., ge=1, le=100)


class OrderCreate(BaseModel):
    session_id: str = Field(validation_alias=AliasChoices("session_id", "sessionId"))
    items: List[OrderItemCreate] = Field(..., min_length=1)
    notes: Optional[str] = Field(default=None, max_length=1000)


class OrderResponse(BaseModel):
    id: str
    session_id: str
    order_number: str
    status: str
    items: List[Dict[str, Any]]
    subtotal: float
    total_amount: float
    notes: Optional[str] = None
    served_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        return cls(
            id=order.id,
            session_id=order.session_id,
            order_number=order.order_number,
            status=order.status.value,
            items=order.items or [],
            subtotal=float(order.subtotal),
            total_amount=float(order.total_amount),
            notes=order.notes,
            served_at=order.served_at,
            created_at=order.created_at,
        )


class PaymentStatusResponse(BaseModel):
    status: str
    confirmed: bool
    declined: bool
    pending: bool
