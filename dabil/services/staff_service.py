"""
POS staff accounts. Staff authenticate separately from customers and their
tokens carry the restaurant they work at.
"""
from datetime import datetime
from typing import List
import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from dabil.exceptions import Conflict, NotFound
from dabil.models.restaurant import Restaurant, RestaurantStaff, StaffRole
from dabil.utils.security import create_staff_token, get_password_hash, verify_password

logger = logging.getLogger(__name__)


def authenticate_staff(db: Session, email: str, password: str) -> dict:
    staff = db.query(RestaurantStaff).filter(RestaurantStaff.email == email.lower()).first()
    if staff is None or not verify_password(password, staff.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )
    if not staff.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Staff account is inactive"
        )

    staff.last_login_at = datetime.utcnow()
    db.commit()
    db.refresh(staff)

    logger.info(f"Staff {staff.id} logged in at restaurant {staff.restaurant_id}")
    return {"token": create_staff_token(staff), "staff": staff}


def create_staff(
    db: Session,
    restaurant_id: str,
    email: str,
    name: str,
    role: StaffRole,
    password: str,
) -> RestaurantStaff:
    restaurant = db.query(Restaurant).filter(Restaurant.id == restaurant_id).first()
    if restaurant is None:
        raise NotFound("Restaurant not found")

    email = email.lower()
    if db.query(RestaurantStaff).filter(RestaurantStaff.email == email).first():
        raise Conflict("Staff email already registered")

    staff = RestaurantStaff(
        restaurant_id=restaurant.id,
        email=email,
        name=name.strip(),
        role=role,
        password_hash=get_password_hash(password),
    )
    db.add(staff)
    db.commit()
    db.refresh(staff)
    logger.info(f"Created {role.value} {staff.id} for restaurant {restaurant.id}")
    return staff


def list_staff(db: Session, restaurant_id: str) -> List[RestaurantStaff]:
    return (
        db.query(RestaurantStaff)
        .filter(RestaurantStaff.restaurant_id == restaurant_id)
        .order_by(RestaurantStaff.created_at.desc())
        .all()
    )
