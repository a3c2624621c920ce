"""
Order Endpoints

Customers place orders and answer payment requests; staff request payment
and serve. Serving runs the settlement transaction.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from dabil.database import get_db
from dabil.api.deps import get_current_user, get_current_staff, get_ledger_repository
from dabil.models.user import User
from dabil.models.restaurant import RestaurantStaff
from dabil.repositories.ledger import LedgerRepository
from dabil.schemas.common import ResponseModel
from dabil.schemas.order import OrderCreate, OrderResponse
from dabil.services import order_service
from dabil.services.settlement_service import settle_order

router = APIRouter()


@router.post("", response_model=ResponseModel, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    order = order_service.create_order(db, current_user, payload.session_id, payload.items, notes=payload.notes)
    return ResponseModel(
        success=True,
        data=OrderResponse.from_order(order).model_dump(mode="json"),
        message="Order placed successfully"
    )


@router.put("/{order_id}/serve", response_model=ResponseModel)
def serve_order(
    order_id: str,
    staff: RestaurantStaff = Depends(get_current_staff),
    repo: LedgerRepository = Depends(get_ledger_repository)
):
    """Charge the customer's wallet, award points and mark the order served"""
    receipt = settle_order(repo, order_id, staff=staff)
    return ResponseModel(
        success=True,
        data=receipt.to_dict(),
        message="Order served and paid"
    )


@router.post("/{order_id}/request-payment", response_model=ResponseModel)
def request_payment(
    order_id: str,
    staff: RestaurantStaff = Depends(get_current_staff),
    db: Session = Depends(get_db)
):
    order = order_service.request_payment(db, order_id, staff)
    return ResponseModel(
        success=True,
        data=OrderResponse.from_order(order).model_dump(mode="json"),
        message="Payment requested"
    )


@router.get("/{order_id}/payment-status", response_model=ResponseModel)
def get_payment_status(
    order_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return ResponseModel(
        success=True,
        data=order_service.payment_status(db, order_id, current_user),
        message="Payment status fetched"
    )


@router.post("/{order_id}/confirm-payment", response_model=ResponseModel)
def confirm_payment(
    order_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    order = order_service.confirm_payment(db, order_id, current_user)
    return ResponseModel(
        success=True,
        data=OrderResponse.from_order(order).model_dump(mode="json"),
        message="Payment confirmed"
    )


@router.post("/{order_id}/decline-payment", response_model=ResponseModel)
def decline_payment(
    order_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    order = order_service.decline_payment(db, order_id, current_user)
    return ResponseModel(
        success=True,
        data=OrderResponse.from_order(order).model_dump(mode="json"),
        message="Payment declined"
    )


@router.post("/{order_id}/retry", response_model=ResponseModel)
def retry_order(
    order_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    order = order_service.retry_order(db, order_id, current_user)
    return ResponseModel(
        success=True,
        data=OrderResponse.from_order(order).model_dump(mode="json"),
        message="Order back to pending"
    )
