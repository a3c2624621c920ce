from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from dabil.database import get_db
from dabil.api.deps import require_admin, require_admin_or_manager
from dabil.models.user import User
from dabil.schemas.common import ResponseModel
from dabil.schemas.restaurant import RestaurantCreate, RestaurantResponse, MenuItemCreate, MenuItemResponse
from dabil.services import restaurant_service

router = APIRouter()


@router.get("", response_model=ResponseModel)
def list_restaurants(db: Session = Depends(get_db)):
    """Public directory of active restaurants"""
    restaurants = restaurant_service.list_restaurants(db)
    data = [RestaurantResponse.from_restaurant(r).model_dump(mode="json", exclude={"qr_code", "menu_items"}) for r in restaurants]
    return ResponseModel(
        success=True,
        data={"restaurants": data, "total": len(data)},
        message="Restaurants fetched successfully"
    )


@router.get("/{restaurant_id}", response_model=ResponseModel)
def get_restaurant(restaurant_id: str, db: Session = Depends(get_db)):
    """Public detail with the orderable menu"""
    restaurant = restaurant_service.get_restaurant(db, restaurant_id, active_only=True)
    menu = restaurant_service.get_menu(db, restaurant.id)
    return ResponseModel(
        success=True,
        data=RestaurantResponse.from_restaurant(restaurant, menu_items=menu).model_dump(mode="json", exclude={"qr_code"}),
        message="Restaurant fetched successfully"
    )


@router.post("", response_model=ResponseModel, status_code=status.HTTP_201_CREATED)
def create_restaurant(
    payload: RestaurantCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    restaurant = restaurant_service.create_restaurant(db, payload)
    return ResponseModel(
        success=True,
        data=RestaurantResponse.from_restaurant(restaurant).model_dump(mode="json"),
        message="Restaurant onboarded successfully"
    )


@router.post("/{restaurant_id}/qr", response_model=ResponseModel)
def regenerate_qr(
    restaurant_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    restaurant = restaurant_service.regenerate_qr(db, restaurant_id)
    return ResponseModel(
        success=True,
        data={"id": restaurant.id, "qr_code": restaurant.qr_code},
        message="QR code regenerated"
    )


@router.delete("/{restaurant_id}", response_model=ResponseModel)
def delete_restaurant(
    restaurant_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    restaurant_service.delete_restaurant(db, restaurant_id)
    return ResponseModel(success=True, message="Restaurant deleted successfully")


@router.post("/{restaurant_id}/menu", response_model=ResponseModel, status_code=status.HTTP_201_CREATED)
def add_menu_item(
    restaurant_id: str,
    payload: MenuItemCreate,
    current_user: User = Depends(require_admin_or_manager),
    db: Session = Depends(get_db)
):
    item = restaurant_service.add_menu_item(db, restaurant_id, payload, user=current_user)
    return ResponseModel(
        success=True,
        data=MenuItemResponse.from_item(item).model_dump(),
        message="Menu item added successfully"
    )
