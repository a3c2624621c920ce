from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
import uuid
import enum
from datetime import datetime
from dabil.database import Base
from dabil.models.types import ValueEnum


class TransactionType(str, enum.Enum):
    CREDIT = "credit"  # wallet funding
    DEBIT = "debit"  # order settlement
    BONUS = "bonus"  # loyalty point redemption
    REFUND = "refund"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


# Entry types that add to the balance once completed
INFLOW_TYPES = (TransactionType.CREDIT, TransactionType.BONUS, TransactionType.REFUND)


class Wallet(Base):
    """One wallet per user; balance in NGN."""
    __tablename__ = "wallets"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_wallets_balance_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    balance = Column(Numeric(12, 2), default=0, nullable=False)
    total_funded = Column(Numeric(12, 2), default=0, nullable=False)
    total_spent = Column(Numeric(12, 2), default=0, nullable=False)
    currency = Column(String(10), default="NGN", nullable=False)
    last_transaction_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="wallet", uselist=False)
    transactions = relationship("WalletTransaction", back_populates="wallet", cascade="all, delete-orphan", order_by="WalletTransaction.created_at.desc()")


class WalletTransaction(Base):
    """Ledger entry. Append-only; only a pending funding entry is ever finalized."""
    __tablename__ = "wallet_transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    wallet_id = Column(String(36), ForeignKey("wallets.id", ondelete="CASCADE"), nullable=False, index=True)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="SET NULL"), nullable=True, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    type = Column(ValueEnum(TransactionType, length=20), nullable=False)
    reference = Column(String(120), unique=True, nullable=False, index=True)
    external_reference = Column(String(120), nullable=True)  # Gateway reference for funding
    status = Column(ValueEnum(TransactionStatus, length=20), default=TransactionStatus.PENDING, nullable=False)
    balance_before = Column(Numeric(12, 2), nullable=False)
    balance_after = Column(Numeric(12, 2), nullable=False)
    description = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    processed_at = Column(DateTime, nullable=True)

    wallet = relationship("Wallet", back_populates="transactions")
    order = relationship("Order")
