"""
Wallet ledger operations: balance reads, Paystack funding, loyalty point
redemption and reconciliation against the ledger.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional
import logging

from dabil.config import settings
from dabil.exceptions import (
    Conflict,
    ExternalServiceError,
    IntegrityViolation,
    NotFound,
    PermissionDenied,
    ValidationFailed,
)
from dabil.models.user import User
from dabil.models.wallet import TransactionStatus, TransactionType, Wallet, WalletTransaction
from dabil.repositories.ledger import LedgerRepository, new_reference
from dabil.services.payment_gateway import PaystackClient, from_kobo

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


@dataclass
class FundingResult:
    reference: str
    amount: Decimal
    new_balance: Decimal
    already_processed: bool = False


@dataclass
class RedemptionResult:
    points_redeemed: int
    wallet_credited: Decimal
    new_wallet_balance: Decimal
    points_balance: int


def _require_wallet(repo: LedgerRepository, user_id: str, for_update: bool = False) -> Wallet:
    wallet = repo.get_wallet(user_id, for_update=for_update)
    if wallet is None:
        raise NotFound("Wallet not found")
    return wallet


def serialize_transaction(entry: WalletTransaction) -> dict:
    return {
        "id": entry.id,
        "type": entry.type.value,
        "transaction_type": entry.type.value,
        "amount": float(entry.amount),
        "status": entry.status.value,
        "reference": entry.reference,
        "description": entry.description,
        "balance_before": float(entry.balance_before),
        "balance_after": float(entry.balance_after),
        "order_details": (
            {"id": entry.order.id, "order_number": entry.order.order_number} if entry.order else None
        ),
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
        "processed_at": entry.processed_at.isoformat() if entry.processed_at else None,
    }


def get_balance(repo: LedgerRepository, user: User) -> dict:
    wallet = _require_wallet(repo, user.id)
    return {
        "balance": float(wallet.balance),
        "total_funded": float(wallet.total_funded),
        "total_spent": float(wallet.total_spent),
        "currency": wallet.currency,
        "last_transaction_at": wallet.last_transaction_at.isoformat() if wallet.last_transaction_at else None,
    }


def list_transactions(repo: LedgerRepository, user: User, limit: int = 20, offset: int = 0) -> dict:
    wallet = _require_wallet(repo, user.id)
    entries = repo.list_entries(wallet.id, limit=limit, offset=offset)
    return {
        "transactions": [serialize_transaction(entry) for entry in entries],
        "total": repo.count_entries(wallet.id),
    }


# Funding

def _mark_funding_failed(repo: LedgerRepository, reference: str, reason: str):
    with repo.atomic():
        entry = repo.get_entry_by_reference(reference, for_update=True)
        if entry is not None and entry.status == TransactionStatus.PENDING:
            entry.status = TransactionStatus.FAILED
            entry.processed_at = datetime.utcnow()
            entry.description = f"{entry.description or 'Wallet funding'} ({reason})"
    logger.warning(f"Funding {reference} failed: {reason}")


def initiate_funding(
    repo: LedgerRepository,
    gateway: PaystackClient,
    user: User,
    amount: Decimal,
    email: Optional[str] = None,
) -> dict:
    """
    Record a pending credit and ask Paystack for a checkout URL.
    The balance does not change until the payment is verified.
    """
    amount = Decimal(str(amount)).quantize(CENT)
    if amount < settings.FUNDING_MIN_AMOUNT:
        raise ValidationFailed(f"Minimum funding amount is ₦{settings.FUNDING_MIN_AMOUNT:,}")
    if amount > settings.FUNDING_MAX_AMOUNT:
        raise ValidationFailed(f"Maximum funding amount is ₦{settings.FUNDING_MAX_AMOUNT:,}")

    reference = new_reference("dabil", user.id)
    with repo.atomic():
        wallet = _require_wallet(repo, user.id)
        repo.append_entry(
            wallet,
            amount=amount,
            type=TransactionType.CREDIT,
            reference=reference,
            external_reference=reference,
            balance_before=Decimal(wallet.balance),
            balance_after=Decimal(wallet.balance),
            status=TransactionStatus.PENDING,
            description="Wallet funding via Paystack",
        )

    try:
        data = gateway.initialize_transaction(
            email=email or user.email,
            amount=amount,
            reference=reference,
            callback_url=f"{settings.FRONTEND_URL}/wallet/callback",
            metadata={"user_id": user.id, "purpose": "wallet_funding"},
        )
    except ExternalServiceError:
        _mark_funding_failed(repo, reference, "initialization failed")
        raise

    logger.info(f"Funding {reference} initiated for {amount}")
    return {
        "authorization_url": data.get("authorization_url"),
        "access_code": data.get("access_code"),
        "reference": data.get("reference") or reference,
        "amount": float(amount),
    }


def confirm_funding(
    repo: LedgerRepository,
    gateway: PaystackClient,
    reference: str,
    user: Optional[User] = None,
) -> FundingResult:
    """
    Finalize a pending funding entry. Safe to call any number of times for
    the same reference: only the first successful call credits the wallet.
    """
    entry = repo.get_entry_by_reference(reference)
    if entry is None or entry.type != TransactionType.CREDIT:
        raise NotFound("Transaction not found")
    wallet = repo.get_wallet_by_id(entry.wallet_id)
    if user is not None and wallet.user_id != user.id:
        raise PermissionDenied("Transaction belongs to another user")

    if entry.status == TransactionStatus.COMPLETED:
        return FundingResult(reference, Decimal(entry.amount), Decimal(wallet.balance), already_processed=True)
    if entry.status == TransactionStatus.FAILED:
        raise Conflict("Funding transaction already failed")

    payment = gateway.verify_transaction(reference)
    gateway_status = payment.get("status")
    if gateway_status != "success":
        _mark_funding_failed(repo, reference, f"gateway status {gateway_status}")
        raise ExternalServiceError("Payment verification failed", details={"status": gateway_status})

    paid = from_kobo(payment.get("amount") or 0)
    if paid != Decimal(entry.amount).quantize(CENT):
        _mark_funding_failed(repo, reference, f"amount mismatch, paid {paid}")
        raise ExternalServiceError(
            "Paid amount does not match the funding request",
            details={"expected": float(entry.amount), "paid": float(paid)},
        )

    with repo.atomic():
        entry = repo.get_entry_by_reference(reference, for_update=True)
        wallet = repo.get_wallet_by_id(entry.wallet_id, for_update=True)

        # Re-check under the lock; a webhook and a redirect can race here
        if entry.status == TransactionStatus.COMPLETED:
            return FundingResult(reference, Decimal(entry.amount), Decimal(wallet.balance), already_processed=True)
        if entry.status != TransactionStatus.PENDING:
            raise Conflict("Funding transaction already failed")

        amount = Decimal(entry.amount)
        balance_before = Decimal(wallet.balance)
        new_balance = balance_before + amount
        if new_balance < 0:
            raise IntegrityViolation("Wallet balance would become negative")

        wallet.balance = new_balance
        wallet.total_funded = Decimal(wallet.total_funded or 0) + amount
        wallet.last_transaction_at = datetime.utcnow()

        entry.status = TransactionStatus.COMPLETED
        entry.balance_before = balance_before
        entry.balance_after = new_balance
        entry.processed_at = datetime.utcnow()

    logger.info(f"Funding {reference} completed: +{amount}, balance {new_balance}")
    return FundingResult(reference, amount, new_balance)


# Redemption

def redeem_points(repo: LedgerRepository, user: User, points: int) -> RedemptionResult:
    """Convert loyalty points to wallet credit at POINTS_PER_CURRENCY_UNIT points per naira"""
    rate = settings.POINTS_PER_CURRENCY_UNIT
    if points is None or points <= 0 or points % rate != 0:
        raise ValidationFailed(f"Points must be positive and divisible by {rate}")

    credit = Decimal(points // rate).quantize(CENT)

    with repo.atomic():
        account = repo.get_loyalty_account(user.id, for_update=True)
        if account is None:
            raise NotFound("Loyalty account not found")
        if account.points_balance < points:
            raise ValidationFailed(
                "Insufficient points balance",
                details={"points_balance": account.points_balance, "requested": points},
            )

        wallet = _require_wallet(repo, user.id, for_update=True)
        balance_before = Decimal(wallet.balance)
        new_balance = balance_before + credit

        wallet.balance = new_balance
        wallet.last_transaction_at = datetime.utcnow()

        account.points_balance -= points
        account.lifetime_points_redeemed = (account.lifetime_points_redeemed or 0) + points
        account.last_redeemed_at = datetime.utcnow()

        repo.append_entry(
            wallet,
            amount=credit,
            type=TransactionType.BONUS,
            reference=new_reference("redeem", user.id),
            balance_before=balance_before,
            balance_after=new_balance,
            description=f"Points redemption: {points} points",
        )
        points_left = account.points_balance

    logger.info(f"User {user.id} redeemed {points} points for {credit}")
    return RedemptionResult(points, credit, new_balance, points_left)


# Reconciliation

def ledger_balance(repo: LedgerRepository, wallet: Wallet) -> Decimal:
    """Balance implied by completed entries: credits, bonuses and refunds minus debits"""
    return repo.completed_balance(wallet.id)


def reconcile_wallet(repo: LedgerRepository, user_id: str) -> dict:
    """Compare the stored balance with the one implied by completed ledger entries"""
    wallet = _require_wallet(repo, user_id)
    stored = Decimal(wallet.balance).quantize(CENT)
    ledger = ledger_balance(repo, wallet)
    return {
        "wallet_id": wallet.id,
        "user_id": user_id,
        "stored_balance": float(stored),
        "ledger_balance": float(ledger),
        "difference": float(stored - ledger),
        "consistent": stored == ledger,
    }
