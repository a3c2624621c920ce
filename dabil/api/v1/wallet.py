"""
Wallet Endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from starlette.concurrency import run_in_threadpool
import json
import logging
from dabil.api.deps import get_current_user, get_ledger_repository
from dabil.exceptions import Conflict, NotFound
from dabil.models.user import User
from dabil.repositories.ledger import LedgerRepository
from dabil.schemas.common import ResponseModel
from dabil.schemas.wallet import (
    FundWalletRequest,
    FundWalletResponse,
    VerifyFundingResponse,
    RedeemPointsRequest,
    RedeemPointsResponse,
)
from dabil.services import wallet_service
from dabil.services.payment_gateway import PaystackClient, get_payment_gateway
from dabil.utils.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/balance", response_model=ResponseModel)
def get_balance(
    current_user: User = Depends(get_current_user),
    repo: LedgerRepository = Depends(get_ledger_repository)
):
    return ResponseModel(
        success=True,
        data=wallet_service.get_balance(repo, current_user),
        message="Wallet balance fetched successfully"
    )


@router.post("/fund", response_model=ResponseModel)
def fund_wallet(
    payload: FundWalletRequest,
    current_user: User = Depends(get_current_user),
    repo: LedgerRepository = Depends(get_ledger_repository),
    gateway: PaystackClient = Depends(get_payment_gateway)
):
    """Start a Paystack checkout; the wallet is credited on verification"""
    result = wallet_service.initiate_funding(repo, gateway, current_user, payload.amount, email=payload.email)
    return ResponseModel(
        success=True,
        data=FundWalletResponse(**result).model_dump(),
        message="Payment initialized"
    )


@router.get("/verify/{reference}", response_model=ResponseModel)
def verify_funding(
    reference: str,
    current_user: User = Depends(get_current_user),
    repo: LedgerRepository = Depends(get_ledger_repository),
    gateway: PaystackClient = Depends(get_payment_gateway)
):
    result = wallet_service.confirm_funding(repo, gateway, reference, user=current_user)
    data = VerifyFundingResponse(
        reference=result.reference,
        amount=float(result.amount),
        new_balance=float(result.new_balance),
        already_processed=result.already_processed,
    )
    return ResponseModel(
        success=True,
        data=data.model_dump(),
        message="Payment already processed" if result.already_processed else "Wallet funded successfully"
    )


@router.get("/transactions", response_model=ResponseModel)
def get_transactions(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    repo: LedgerRepository = Depends(get_ledger_repository)
):
    result = wallet_service.list_transactions(repo, current_user, limit=limit, offset=offset)
    return ResponseModel(
        success=True,
        data={
            "transactions": result["transactions"],
            "pagination": paginate(result["total"], limit, offset),
        },
        message="Transactions fetched successfully"
    )


@router.post("/redeem", response_model=ResponseModel)
def redeem_points(
    payload: RedeemPointsRequest,
    current_user: User = Depends(get_current_user),
    repo: LedgerRepository = Depends(get_ledger_repository)
):
    result = wallet_service.redeem_points(repo, current_user, payload.points)
    data = RedeemPointsResponse(
        points_redeemed=result.points_redeemed,
        wallet_credited=float(result.wallet_credited),
        new_wallet_balance=float(result.new_wallet_balance),
        points_balance=result.points_balance,
    )
    return ResponseModel(
        success=True,
        data=data.model_dump(),
        message=f"Redeemed {result.points_redeemed} points"
    )


@router.post("/webhook", response_model=ResponseModel)
async def paystack_webhook(
    request: Request,
    repo: LedgerRepository = Depends(get_ledger_repository),
    gateway: PaystackClient = Depends(get_payment_gateway)
):
    """Paystack event callback, authenticated by the x-paystack-signature header"""
    raw_body = await request.body()
    signature = request.headers.get("x-paystack-signature")
    if not gateway.is_valid_signature(raw_body, signature):
        logger.warning("Rejected Paystack webhook with invalid signature")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid signature"
        )

    try:
        event = json.loads(raw_body)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Malformed webhook body"
        )

    if event.get("event") != "charge.success":
        return ResponseModel(success=True, message="Event ignored")

    reference = (event.get("data") or {}).get("reference")
    if not reference:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing transaction reference"
        )

    # Blocking DB and Paystack I/O stays off the event loop
    try:
        result = await run_in_threadpool(wallet_service.confirm_funding, repo, gateway, reference)
    except (NotFound, Conflict) as e:
        # Acknowledged so Paystack stops redelivering a charge we cannot apply
        logger.warning(f"Ignored Paystack charge.success for {reference}: {e.message}")
        return ResponseModel(
            success=True,
            data={"reference": reference, "reason": e.message},
            message="Event ignored"
        )

    return ResponseModel(
        success=True,
        data={"reference": result.reference, "already_processed": result.already_processed},
        message="Webhook processed"
    )
