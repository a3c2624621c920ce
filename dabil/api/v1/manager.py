"""
Restaurant Manager Endpoints
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from dabil.database import get_db
from dabil.api.deps import require_manager
from dabil.models.user import User
from dabil.schemas.common import ResponseModel
from dabil.schemas.restaurant import RestaurantResponse
from dabil.schemas.staff import StaffCreate, StaffResponse
from dabil.services import restaurant_service, staff_service, stats_service

router = APIRouter()


@router.get("/restaurant", response_model=ResponseModel)
def get_my_restaurant(
    current_user: User = Depends(require_manager),
    db: Session = Depends(get_db)
):
    """The manager's restaurant with its full menu, unavailable items included"""
    restaurant = restaurant_service.get_managed_restaurant(db, current_user)
    menu = restaurant_service.get_menu(db, restaurant.id, available_only=False)
    return ResponseModel(
        success=True,
        data=RestaurantResponse.from_restaurant(restaurant, menu_items=menu).model_dump(mode="json"),
        message="Restaurant fetched successfully"
    )


@router.get("/stats", response_model=ResponseModel)
def get_stats(
    current_user: User = Depends(require_manager),
    db: Session = Depends(get_db)
):
    restaurant = restaurant_service.get_managed_restaurant(db, current_user)
    return ResponseModel(
        success=True,
        data=stats_service.manager_stats(db, restaurant),
        message="Stats fetched successfully"
    )


@router.get("/loyalty", response_model=ResponseModel)
def get_loyalty_overview(
    top: int = Query(5, ge=1, le=50),
    current_user: User = Depends(require_manager),
    db: Session = Depends(get_db)
):
    restaurant = restaurant_service.get_managed_restaurant(db, current_user)
    return ResponseModel(
        success=True,
        data=stats_service.loyalty_overview(db, restaurant, top=top),
        message="Loyalty overview fetched successfully"
    )


@router.get("/staff", response_model=ResponseModel)
def list_staff(
    current_user: User = Depends(require_manager),
    db: Session = Depends(get_db)
):
    restaurant = restaurant_service.get_managed_restaurant(db, current_user)
    staff = staff_service.list_staff(db, restaurant.id)
    return ResponseModel(
        success=True,
        data={"staff": [StaffResponse.from_staff(s).model_dump(mode="json") for s in staff]},
        message="Staff fetched successfully"
    )


@router.post("/staff", response_model=ResponseModel, status_code=status.HTTP_201_CREATED)
def create_staff(
    payload: StaffCreate,
    current_user: User = Depends(require_manager),
    db: Session = Depends(get_db)
):
    restaurant = restaurant_service.get_managed_restaurant(db, current_user)
    staff = staff_service.create_staff(
        db,
        restaurant_id=restaurant.id,
        email=payload.email,
        name=payload.name,
        role=payload.role,
        password=payload.password,
    )
    return ResponseModel(
        success=True,
        data=StaffResponse.from_staff(staff).model_dump(mode="json"),
        message="Staff account created"
    )
