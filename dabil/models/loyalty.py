from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
import uuid
import enum
from datetime import datetime
from dabil.database import Base
from dabil.models.types import ValueEnum


class LoyaltyTier(str, enum.Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"


class LoyaltyAccount(Base):
    """Per-user points. points_balance == lifetime_points_earned - lifetime_points_redeemed."""
    __tablename__ = "loyalty_accounts"
    __table_args__ = (
        CheckConstraint("points_balance >= 0", name="ck_loyalty_accounts_points_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    points_balance = Column(Integer, default=0, nullable=False)
    lifetime_points_earned = Column(Integer, default=0, nullable=False)
    lifetime_points_redeemed = Column(Integer, default=0, nullable=False)
    current_tier = Column(ValueEnum(LoyaltyTier, length=20), default=LoyaltyTier.BRONZE, nullable=False)
    last_earned_at = Column(DateTime, nullable=True)
    last_redeemed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="loyalty_account")
