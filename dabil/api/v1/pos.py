"""
POS Endpoints

Everything here is scoped to the restaurant in the staff token.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from dabil.database import get_db
from dabil.api.deps import get_current_staff
from dabil.models.restaurant import RestaurantStaff
from dabil.schemas.common import ResponseModel
from dabil.schemas.order import OrderResponse
from dabil.schemas.restaurant import MenuItemResponse
from dabil.services import order_service, restaurant_service, session_service, stats_service

router = APIRouter()


@router.get("/guests", response_model=ResponseModel)
def get_checked_in_guests(
    staff: RestaurantStaff = Depends(get_current_staff),
    db: Session = Depends(get_db)
):
    guests = stats_service.pos_guests(db, staff.restaurant_id)
    return ResponseModel(
        success=True,
        data={"guests": guests, "total": len(guests)},
        message="Guests fetched successfully"
    )


@router.get("/sessions/{session_id}/orders", response_model=ResponseModel)
def get_session_orders(
    session_id: str,
    staff: RestaurantStaff = Depends(get_current_staff),
    db: Session = Depends(get_db)
):
    session = session_service.get_session(db, session_id)
    session_service.ensure_session_access(session, staff)
    orders = order_service.list_session_orders(db, session.id)
    return ResponseModel(
        success=True,
        data={"orders": [OrderResponse.from_order(o).model_dump(mode="json") for o in orders]},
        message="Orders fetched successfully"
    )


@router.post("/sessions/{session_id}/check-out", response_model=ResponseModel)
def check_out_guest(
    session_id: str,
    staff: RestaurantStaff = Depends(get_current_staff),
    db: Session = Depends(get_db)
):
    session = session_service.check_out(db, session_id, staff)
    return ResponseModel(
        success=True,
        data={"id": session.id, "status": session.status.value},
        message="Guest checked out"
    )


@router.get("/orders/{order_id}/payment-status", response_model=ResponseModel)
def get_payment_status(
    order_id: str,
    staff: RestaurantStaff = Depends(get_current_staff),
    db: Session = Depends(get_db)
):
    return ResponseModel(
        success=True,
        data=order_service.payment_status(db, order_id, staff),
        message="Payment status fetched"
    )


@router.get("/menu", response_model=ResponseModel)
def get_menu(
    staff: RestaurantStaff = Depends(get_current_staff),
    db: Session = Depends(get_db)
):
    items = restaurant_service.get_menu(db, staff.restaurant_id, available_only=False)
    return ResponseModel(
        success=True,
        data={"items": [MenuItemResponse.from_item(i).model_dump() for i in items]},
        message="Menu fetched successfully"
    )
