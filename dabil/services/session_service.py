"""
Dine-in sessions. A customer checks in by scanning the restaurant's QR code
and every order they place belongs to that session until check-out.
"""
from datetime import datetime
from typing import Optional, Union
import logging
import secrets
import string

from sqlalchemy.orm import Session, joinedload

from dabil.exceptions import Conflict, NotFound, PermissionDenied
from dabil.models.order import Order, OrderStatus
from dabil.models.restaurant import RestaurantStaff
from dabil.models.session import DiningSession, SessionStatus
from dabil.models.user import User
from dabil.services import restaurant_service

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6

# Orders in these states still need staff or the customer to act
OPEN_ORDER_STATUSES = (
    OrderStatus.PENDING,
    OrderStatus.AWAITING_PAYMENT,
    OrderStatus.PAYMENT_CONFIRMED,
)


def generate_session_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def check_in(
    db: Session,
    user: User,
    restaurant_id: str,
    table_number: Optional[str] = None,
    party_size: int = 1,
) -> DiningSession:
    restaurant = restaurant_service.get_restaurant(db, restaurant_id, active_only=True)

    existing = db.query(DiningSession).filter(
        DiningSession.user_id == user.id,
        DiningSession.restaurant_id == restaurant.id,
        DiningSession.status == SessionStatus.ACTIVE,
    ).first()
    if existing:
        raise Conflict(
            "You already have an active session at this restaurant",
            details={"session_id": existing.id},
        )

    session = DiningSession(
        user_id=user.id,
        restaurant_id=restaurant.id,
        session_code=generate_session_code(),
        table_number=table_number,
        party_size=party_size,
        status=SessionStatus.ACTIVE,
    )
    db.add(session)
    db.commit()
    db.refresh(session)

    logger.info(f"User {user.id} checked in at {restaurant.id}, session {session.session_code}")
    return session


def get_session(db: Session, session_id: str) -> DiningSession:
    session = (
        db.query(DiningSession)
        .options(joinedload(DiningSession.restaurant))
        .filter(DiningSession.id == session_id)
        .first()
    )
    if session is None:
        raise NotFound("Session not found")
    return session


def ensure_session_access(session: DiningSession, actor: Union[User, RestaurantStaff]):
    """The session's customer, staff of its restaurant, or an admin"""
    if isinstance(actor, RestaurantStaff):
        if actor.restaurant_id != session.restaurant_id:
            raise PermissionDenied("Session belongs to another restaurant")
    elif actor.id != session.user_id and not actor.is_admin:
        raise PermissionDenied("Not your session")


def check_out(db: Session, session_id: str, actor: Union[User, RestaurantStaff]) -> DiningSession:
    session = get_session(db, session_id)
    ensure_session_access(session, actor)

    if session.status != SessionStatus.ACTIVE:
        raise Conflict("Session already completed")

    open_orders = db.query(Order).filter(
        Order.session_id == session.id,
        Order.status.in_(OPEN_ORDER_STATUSES),
    ).count()
    if open_orders:
        raise Conflict(
            "Session has orders that have not been served",
            details={"open_orders": open_orders},
        )

    session.status = SessionStatus.COMPLETED
    session.checked_out_at = datetime.utcnow()
    db.commit()
    db.refresh(session)

    logger.info(f"Session {session.id} checked out, spent {session.total_spent}")
    return session


def get_active_session(db: Session, user: User) -> Optional[DiningSession]:
    return (
        db.query(DiningSession)
        .options(joinedload(DiningSession.restaurant))
        .filter(
            DiningSession.user_id == user.id,
            DiningSession.status == SessionStatus.ACTIVE,
        )
        .order_by(DiningSession.checked_in_at.desc())
        .first()
    )
