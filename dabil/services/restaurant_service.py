from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional
import logging
from dabil.models.restaurant import Restaurant, RestaurantStatus, MenuItem, MenuItemStatus
from dabil.models.session import DiningSession, SessionStatus
from dabil.models.user import User, UserRole
from dabil.schemas.restaurant import RestaurantCreate, MenuItemCreate
from dabil.repositories.ledger import LedgerRepository
from dabil.exceptions import Conflict, NotFound, PermissionDenied
from dabil.services.auth_service import create_account
from dabil.utils.slug import unique_restaurant_slug
from dabil.utils.qr import generate_check_in_qr

logger = logging.getLogger(__name__)


def list_restaurants(db: Session) -> List[Restaurant]:
    """Active restaurants for the public directory"""
    return (
        db.query(Restaurant)
        .filter(Restaurant.status == RestaurantStatus.ACTIVE)
        .order_by(Restaurant.name)
        .all()
    )


def get_restaurant(db: Session, restaurant_id: str, active_only: bool = False) -> Restaurant:
    query = db.query(Restaurant).filter(Restaurant.id == restaurant_id)
    if active_only:
        query = query.filter(Restaurant.status == RestaurantStatus.ACTIVE)
    restaurant = query.first()
    if restaurant is None:
        raise NotFound("Restaurant not found")
    return restaurant


def get_menu(db: Session, restaurant_id: str, available_only: bool = True) -> List[MenuItem]:
    query = db.query(MenuItem).filter(
        MenuItem.restaurant_id == restaurant_id,
        MenuItem.status == MenuItemStatus.ACTIVE,
    )
    if available_only:
        query = query.filter(MenuItem.is_available == True)
    return query.order_by(MenuItem.category, MenuItem.sort_order, MenuItem.name).all()


def get_managed_restaurant(db: Session, user: User) -> Restaurant:
    """The restaurant owned by a manager account"""
    restaurant = db.query(Restaurant).filter(Restaurant.owner_user_id == user.id).first()
    if restaurant is None:
        raise NotFound("No restaurant is linked to this account")
    return restaurant


def _resolve_owner(db: Session, data: RestaurantCreate) -> User:
    """
    Reuse an existing account as owner (promoting it to manager) or create
    one. An account can own at most one restaurant.
    """
    owner = db.query(User).filter(User.email == data.email.lower()).first()
    if owner is None:
        return create_account(
            db,
            email=data.email,
            name=f"{data.name} Manager",
            password=data.password,
            phone=data.phone,
            role=UserRole.RESTAURANT_MANAGER,
        )

    if owner.is_admin:
        raise Conflict("An admin account cannot own a restaurant")
    if db.query(Restaurant).filter(Restaurant.owner_user_id == owner.id).first():
        raise Conflict("This account already owns a restaurant")

    # The account keeps its own password; only the role changes
    owner.role = UserRole.RESTAURANT_MANAGER
    return owner


def create_restaurant(db: Session, data: RestaurantCreate) -> Restaurant:
    repo = LedgerRepository(db)
    with repo.atomic():
        owner = _resolve_owner(db, data)
        restaurant = Restaurant(
            name=data.name,
            slug=unique_restaurant_slug(db, data.name),
            restaurant_type=data.restaurant_type,
            cuisine_type=data.cuisine_type,
            address=data.address,
            city=data.city,
            phone=data.phone,
            email=data.email.lower(),
            owner_user_id=owner.id,
            status=RestaurantStatus.ACTIVE,
            onboarded_at=datetime.utcnow(),
        )
        db.add(restaurant)
        db.flush()
        # The QR encodes the id, so it can only be drawn after the insert
        restaurant.qr_code = generate_check_in_qr(restaurant.id)

    db.refresh(restaurant)
    logger.info(f"Onboarded restaurant {restaurant.id} ({restaurant.slug}) owned by {owner.id}")
    return restaurant


def regenerate_qr(db: Session, restaurant_id: str) -> Restaurant:
    restaurant = get_restaurant(db, restaurant_id)
    restaurant.qr_code = generate_check_in_qr(restaurant.id)
    db.commit()
    db.refresh(restaurant)
    return restaurant


def delete_restaurant(db: Session, restaurant_id: str):
    restaurant = get_restaurant(db, restaurant_id)
    active = db.query(DiningSession).filter(
        DiningSession.restaurant_id == restaurant.id,
        DiningSession.status == SessionStatus.ACTIVE,
    ).count()
    if active:
        raise Conflict("Restaurant has guests checked in", details={"active_sessions": active})

    db.delete(restaurant)
    db.commit()
    logger.info(f"Deleted restaurant {restaurant_id}")


def add_menu_item(db: Session, restaurant_id: str, data: MenuItemCreate, user: Optional[User] = None) -> MenuItem:
    """Admins may add to any restaurant, managers only to their own"""
    restaurant = get_restaurant(db, restaurant_id)
    if user is not None and not user.is_admin and restaurant.owner_user_id != user.id:
        raise PermissionDenied("You can only edit your own restaurant's menu")

    item = MenuItem(
        restaurant_id=restaurant.id,
        name=data.name.strip(),
        description=data.description,
        price=data.price,
        category=data.category,
        image_url=data.image_url,
        sort_order=data.sort_order,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item
