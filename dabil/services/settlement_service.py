"""
Order settlement: charge the customer's wallet for an order, award loyalty
points and mark the order served, all in one database transaction.
"""
from dataclasses import dataclass, asdict
from datetime import datetime
from decimal import Decimal
from typing import Optional
import logging

from dabil.exceptions import (
    Conflict,
    InsufficientFunds,
    IntegrityViolation,
    NotFound,
    PermissionDenied,
)
from dabil.models.order import Order, OrderStatus, SETTLEABLE_STATUSES
from dabil.models.restaurant import RestaurantStaff
from dabil.models.wallet import TransactionType, Wallet
from dabil.repositories.ledger import LedgerRepository, new_reference
from dabil.services import loyalty_service

logger = logging.getLogger(__name__)


@dataclass
class SettlementReceipt:
    order_id: str
    order_number: str
    amount_charged: Decimal
    balance_before: Decimal
    new_balance: Decimal
    loyalty_points_earned: int
    tier: str
    reference: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["amount_charged"] = float(self.amount_charged)
        data["balance_before"] = float(self.balance_before)
        data["new_balance"] = float(self.new_balance)
        return data


def _debit_wallet(repo: LedgerRepository, wallet: Wallet, order: Order, restaurant_name: str):
    amount = Decimal(order.total_amount)
    balance_before = Decimal(wallet.balance)
    new_balance = balance_before - amount
    if new_balance < 0:
        raise IntegrityViolation("Wallet balance would become negative")

    wallet.balance = new_balance
    wallet.total_spent = Decimal(wallet.total_spent or 0) + amount
    wallet.last_transaction_at = datetime.utcnow()

    return repo.append_entry(
        wallet,
        amount=amount,
        type=TransactionType.DEBIT,
        reference=new_reference("order", order.id),
        balance_before=balance_before,
        balance_after=new_balance,
        description=f"Order payment - {restaurant_name}",
        order_id=order.id,
    )


def _mark_served(order: Order):
    if not order.can_transition_to(OrderStatus.SERVED):
        raise Conflict(f"Order cannot move from {order.status.value} to served")
    order.status = OrderStatus.SERVED
    order.served_at = datetime.utcnow()


def settle_order(
    repo: LedgerRepository,
    order_id: str,
    staff: Optional[RestaurantStaff] = None,
) -> SettlementReceipt:
    """
    Convert a pending (or customer-confirmed) order into a served one.

    The amount always comes from the stored order. Any failure, expected or
    not, rolls back every mutation made so far; settlement is never retried
    automatically since a replayed debit would double-charge.
    """
    with repo.atomic():
        order = repo.get_order_for_settlement(order_id)
        if order is None:
            raise NotFound("Order not found")
        if order.status not in SETTLEABLE_STATUSES:
            raise Conflict("Order not found or already processed", details={"status": order.status.value})

        session = order.session
        restaurant = session.restaurant
        if staff is not None and staff.restaurant_id != restaurant.id:
            raise PermissionDenied("Order belongs to another restaurant")

        loyalty = repo.get_or_create_loyalty_account(session.user_id)
        points = loyalty_service.calculate_loyalty_points(
            order.total_amount, restaurant.restaurant_type, loyalty.current_tier
        )

        wallet = repo.get_wallet(session.user_id, for_update=True)
        if wallet is None:
            raise NotFound("Wallet not found")
        if Decimal(wallet.balance) < Decimal(order.total_amount):
            logger.warning(
                f"Settlement of order {order.order_number} rejected: "
                f"balance {wallet.balance} below total {order.total_amount}"
            )
            raise InsufficientFunds(
                "Insufficient wallet balance",
                details={"balance": float(wallet.balance), "required": float(order.total_amount)},
            )

        entry = _debit_wallet(repo, wallet, order, restaurant.name)
        tier = loyalty_service.apply_points(loyalty, points)
        _mark_served(order)

        session.total_spent = Decimal(session.total_spent or 0) + Decimal(order.total_amount)
        session.loyalty_points_earned = (session.loyalty_points_earned or 0) + points

        receipt = SettlementReceipt(
            order_id=order.id,
            order_number=order.order_number,
            amount_charged=Decimal(order.total_amount),
            balance_before=Decimal(entry.balance_before),
            new_balance=Decimal(wallet.balance),
            loyalty_points_earned=points,
            tier=tier.value,
            reference=entry.reference,
        )

    logger.info(
        f"Order {receipt.order_number} served: charged {receipt.amount_charged}, "
        f"awarded {receipt.loyalty_points_earned} points"
    )
    return receipt
