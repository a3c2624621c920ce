from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, Text, JSON
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
import enum
from dabil.database import Base
from dabil.models.types import ValueEnum


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    AWAITING_PAYMENT = "awaiting_payment"
    PAYMENT_CONFIRMED = "payment_confirmed"
    PAYMENT_DECLINED = "payment_declined"
    SERVED = "served"


# One-directional, except a declined payment may go back to pending for a retry.
# Only the settlement transaction moves an order to SERVED.
ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.AWAITING_PAYMENT, OrderStatus.SERVED},
    OrderStatus.AWAITING_PAYMENT: {OrderStatus.PAYMENT_CONFIRMED, OrderStatus.PAYMENT_DECLINED},
    OrderStatus.PAYMENT_CONFIRMED: {OrderStatus.SERVED},
    OrderStatus.PAYMENT_DECLINED: {OrderStatus.PENDING},
    OrderStatus.SERVED: set(),
}

SETTLEABLE_STATUSES = (OrderStatus.PENDING, OrderStatus.PAYMENT_CONFIRMED)


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    session_id = Column(String(36), ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    order_number = Column(String(50), unique=True, nullable=False, index=True)
    # Snapshot of [{menu_item_id, name, quantity, unit_price}] taken at order time
    items = Column(JSON, nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(ValueEnum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True)
    notes = Column(Text, nullable=True)
    served_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    session = relationship("DiningSession", back_populates="orders")

    def can_transition_to(self, new_status: OrderStatus) -> bool:
        return new_status in ORDER_TRANSITIONS.get(self.status, set())
