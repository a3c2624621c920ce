from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from dabil.database import get_db
from dabil.api.deps import get_current_user
from dabil.models.user import User
from dabil.schemas.common import ResponseModel
from dabil.services import stats_service

router = APIRouter()


@router.get("", response_model=ResponseModel)
@router.get("/summary", response_model=ResponseModel)
def get_loyalty_summary(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Points balance, tier and progress towards the next tier"""
    return ResponseModel(
        success=True,
        data=stats_service.loyalty_summary(db, current_user),
        message="Loyalty summary fetched successfully"
    )


@router.get("/history", response_model=ResponseModel)
def get_points_history(
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    history = stats_service.points_history(db, current_user, limit=limit)
    return ResponseModel(
        success=True,
        data={"history": history, "total": len(history)},
        message="Points history fetched successfully"
    )
