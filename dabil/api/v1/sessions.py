from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from dabil.database import get_db
from dabil.api.deps import get_current_user
from dabil.models.user import User
from dabil.schemas.common import ResponseModel
from dabil.schemas.order import OrderResponse
from dabil.schemas.session import CheckInRequest, SessionResponse
from dabil.services import session_service, order_service

router = APIRouter()


@router.post("/check-in", response_model=ResponseModel, status_code=status.HTTP_201_CREATED)
def check_in(
    payload: CheckInRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    session = session_service.check_in(
        db,
        current_user,
        restaurant_id=payload.restaurant_id,
        table_number=payload.table_number,
        party_size=payload.party_size,
    )
    return ResponseModel(
        success=True,
        data=SessionResponse.from_session(session).model_dump(mode="json"),
        message="Checked in successfully"
    )


@router.get("/active", response_model=ResponseModel)
def get_active_session(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    session = session_service.get_active_session(db, current_user)
    return ResponseModel(
        success=True,
        data=SessionResponse.from_session(session).model_dump(mode="json") if session else None,
        message="Active session fetched" if session else "No active session"
    )


@router.post("/{session_id}/check-out", response_model=ResponseModel)
def check_out(
    session_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    session = session_service.check_out(db, session_id, current_user)
    return ResponseModel(
        success=True,
        data=SessionResponse.from_session(session).model_dump(mode="json"),
        message="Checked out successfully"
    )


@router.get("/{session_id}/orders", response_model=ResponseModel)
def get_session_orders(
    session_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    session = session_service.get_session(db, session_id)
    session_service.ensure_session_access(session, current_user)
    orders = order_service.list_session_orders(db, session.id)
    return ResponseModel(
        success=True,
        data={"orders": [OrderResponse.from_order(o).model_dump(mode="json") for o in orders]},
        message="Orders fetched successfully"
    )
