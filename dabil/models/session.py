from sqlalchemy import Column, String, Integer, Numeric, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
import uuid
import enum
from datetime import datetime
from dabil.database import Base
from dabil.models.types import ValueEnum


class SessionStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class DiningSession(Base):
    """A single dine-in visit binding a customer to a restaurant."""
    __tablename__ = "sessions"
    __table_args__ = (
        CheckConstraint("party_size >= 1", name="ck_sessions_party_size"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    restaurant_id = Column(String(36), ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    session_code = Column(String(12), nullable=False, index=True)
    table_number = Column(String(20), nullable=True)
    party_size = Column(Integer, default=1, nullable=False)
    status = Column(ValueEnum(SessionStatus, length=20), default=SessionStatus.ACTIVE, nullable=False)
    # Running aggregates mirrored from settled orders
    total_spent = Column(Numeric(12, 2), default=0, nullable=False)
    loyalty_points_earned = Column(Integer, default=0, nullable=False)
    checked_in_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    checked_out_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="sessions")
    restaurant = relationship("Restaurant", back_populates="sessions")
    orders = relationship("Order", back_populates="session", cascade="all, delete-orphan", order_by="Order.created_at")
