"""
Typed data access for the wallet ledger, loyalty accounts and orders.

Services never build queries themselves for money-moving paths; they go
through LedgerRepository so the settlement, funding and redemption logic can
be exercised against any SQLAlchemy session (SQLite in tests, PostgreSQL in
production).
"""
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
import uuid

from sqlalchemy import case, func
from sqlalchemy.orm import Session, joinedload

from dabil.models.loyalty import LoyaltyAccount, LoyaltyTier
from dabil.models.order import Order
from dabil.models.session import DiningSession
from dabil.models.wallet import (
    INFLOW_TYPES,
    TransactionStatus,
    TransactionType,
    Wallet,
    WalletTransaction,
)


def new_reference(prefix: str, owner_id: str) -> str:
    """Globally unique ledger reference, e.g. dabil_<user>_<hex>"""
    return f"{prefix}_{owner_id}_{uuid.uuid4().hex}"


class LedgerRepository:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def atomic(self):
        """
        Unit of work: everything done inside the block commits together or
        is rolled back together, whatever the exception.
        """
        try:
            yield self
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _lock(self, query, for_update: bool):
        if for_update:
            # populate_existing so a row already in the identity map is
            # refreshed with the values read under the lock
            return query.with_for_update().populate_existing()
        return query

    # Orders

    def get_order(self, order_id: str, for_update: bool = False) -> Optional[Order]:
        query = self.db.query(Order).filter(Order.id == order_id)
        return self._lock(query, for_update).first()

    def get_order_for_settlement(self, order_id: str) -> Optional[Order]:
        """Lock the order row and load its session and restaurant in one read"""
        return (
            self.db.query(Order)
            .options(
                joinedload(Order.session, innerjoin=True)
                .joinedload(DiningSession.restaurant, innerjoin=True)
            )
            .filter(Order.id == order_id)
            .with_for_update(of=Order)
            .populate_existing()
            .first()
        )

    # Wallets

    def get_wallet(self, user_id: str, for_update: bool = False) -> Optional[Wallet]:
        query = self.db.query(Wallet).filter(Wallet.user_id == user_id)
        return self._lock(query, for_update).first()

    def get_wallet_by_id(self, wallet_id: str, for_update: bool = False) -> Optional[Wallet]:
        query = self.db.query(Wallet).filter(Wallet.id == wallet_id)
        return self._lock(query, for_update).first()

    def create_wallet(self, user_id: str, currency: str = "NGN") -> Wallet:
        wallet = Wallet(
            user_id=user_id,
            balance=Decimal("0.00"),
            total_funded=Decimal("0.00"),
            total_spent=Decimal("0.00"),
            currency=currency,
        )
        self.db.add(wallet)
        self.db.flush()
        return wallet

    # Loyalty

    def get_loyalty_account(self, user_id: str, for_update: bool = False) -> Optional[LoyaltyAccount]:
        query = self.db.query(LoyaltyAccount).filter(LoyaltyAccount.user_id == user_id)
        return self._lock(query, for_update).first()

    def create_loyalty_account(self, user_id: str) -> LoyaltyAccount:
        account = LoyaltyAccount(
            user_id=user_id,
            points_balance=0,
            lifetime_points_earned=0,
            lifetime_points_redeemed=0,
            current_tier=LoyaltyTier.BRONZE,
        )
        self.db.add(account)
        self.db.flush()
        return account

    def get_or_create_loyalty_account(self, user_id: str) -> LoyaltyAccount:
        account = self.get_loyalty_account(user_id, for_update=True)
        if account is None:
            account = self.create_loyalty_account(user_id)
        return account

    # Ledger entries

    def get_entry_by_reference(self, reference: str, for_update: bool = False) -> Optional[WalletTransaction]:
        query = self.db.query(WalletTransaction).filter(WalletTransaction.reference == reference)
        return self._lock(query, for_update).first()

    def append_entry(
        self,
        wallet: Wallet,
        amount: Decimal,
        type: TransactionType,
        reference: str,
        balance_before: Decimal,
        balance_after: Decimal,
        status: TransactionStatus = TransactionStatus.COMPLETED,
        description: Optional[str] = None,
        order_id: Optional[str] = None,
        external_reference: Optional[str] = None,
    ) -> WalletTransaction:
        entry = WalletTransaction(
            wallet_id=wallet.id,
            order_id=order_id,
            amount=amount,
            type=type,
            reference=reference,
            external_reference=external_reference,
            status=status,
            balance_before=balance_before,
            balance_after=balance_after,
            description=description,
            processed_at=datetime.utcnow() if status == TransactionStatus.COMPLETED else None,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def list_entries(self, wallet_id: str, limit: int = 20, offset: int = 0) -> List[WalletTransaction]:
        return (
            self.db.query(WalletTransaction)
            .options(joinedload(WalletTransaction.order))
            .filter(WalletTransaction.wallet_id == wallet_id)
            .order_by(WalletTransaction.created_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def count_entries(self, wallet_id: str) -> int:
        return self.db.query(WalletTransaction).filter(WalletTransaction.wallet_id == wallet_id).count()

    def completed_balance(self, wallet_id: str) -> Decimal:
        """Balance recomputed from completed ledger entries only"""
        signed_amount = case(
            (WalletTransaction.type.in_(INFLOW_TYPES), WalletTransaction.amount),
            else_=-WalletTransaction.amount,
        )
        total = (
            self.db.query(func.coalesce(func.sum(signed_amount), 0))
            .filter(
                WalletTransaction.wallet_id == wallet_id,
                WalletTransaction.status == TransactionStatus.COMPLETED,
            )
            .scalar()
        )
        return Decimal(str(total)).quantize(Decimal("0.01"))
