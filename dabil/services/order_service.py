from sqlalchemy.orm import Session, joinedload
from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional
import logging
import random
import string
from dabil.models.order import Order, OrderStatus
from dabil.models.restaurant import MenuItem, RestaurantStaff
from dabil.models.session import DiningSession, SessionStatus
from dabil.models.user import User
from dabil.schemas.order import OrderItemCreate
from dabil.exceptions import Conflict, NotFound, PermissionDenied, ValidationFailed
from dabil.repositories.ledger import LedgerRepository

logger = logging.getLogger(__name__)


def generate_order_number() -> str:
    """Generate unique order number"""
    timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
    random_str = ''.join(random.choices(string.ascii_uppercase + string.digits, k=6))
    return f"ORD{timestamp}{random_str}"


def build_order_lines(db: Session, restaurant_id: str, items: List[OrderItemCreate]) -> dict:
    """
    Snapshot menu prices into order lines. The request only names items and
    quantities; prices always come from the menu.
    """
    if not items:
        raise ValidationFailed("Order must contain at least one item")

    ids = {str(item.menu_item_id) for item in items}
    menu = {
        m.id: m for m in db.query(MenuItem).filter(MenuItem.id.in_(ids)).all()
    }

    lines = []
    subtotal = Decimal("0.00")
    for item in items:
        menu_item = menu.get(str(item.menu_item_id))
        if menu_item is None or menu_item.restaurant_id != restaurant_id:
            raise ValidationFailed(
                "Menu item not found at this restaurant",
                details={"menu_item_id": item.menu_item_id},
            )
        if not menu_item.is_orderable:
            raise ValidationFailed(f"{menu_item.name} is not available")
        if item.quantity < 1:
            raise ValidationFailed("Quantity must be at least 1")

        unit_price = Decimal(menu_item.price)
        lines.append({
            "menu_item_id": menu_item.id,
            "name": menu_item.name,
            "quantity": item.quantity,
            "unit_price": float(unit_price),
        })
        subtotal += unit_price * item.quantity

    return {"items": lines, "subtotal": subtotal}


def create_order(
    db: Session,
    user: User,
    session_id: str,
    items: List[OrderItemCreate],
    notes: Optional[str] = None,
) -> Order:
    session = db.query(DiningSession).filter(DiningSession.id == session_id).first()
    if session is None:
        raise NotFound("Session not found")
    if session.user_id != user.id:
        raise PermissionDenied("Not your session")
    if session.status != SessionStatus.ACTIVE:
        raise Conflict("Session is no longer active")

    totals = build_order_lines(db, session.restaurant_id, items)

    order = Order(
        session_id=session.id,
        order_number=generate_order_number(),
        items=totals["items"],
        subtotal=totals["subtotal"],
        # No tax or service charge on dine-in orders
        total_amount=totals["subtotal"],
        status=OrderStatus.PENDING,
        notes=notes,
    )
    db.add(order)
    db.commit()
    db.refresh(order)

    logger.info(f"Order {order.order_number} created in session {session.id} for {order.total_amount}")
    return order


def get_order(db: Session, order_id: str) -> Order:
    order = (
        db.query(Order)
        .options(joinedload(Order.session))
        .filter(Order.id == order_id)
        .first()
    )
    if order is None:
        raise NotFound("Order not found")
    return order


def _ensure_customer(order: Order, user: User):
    if order.session.user_id != user.id:
        raise PermissionDenied("Not your order")


def _ensure_restaurant(order: Order, staff: RestaurantStaff):
    if order.session.restaurant_id != staff.restaurant_id:
        raise PermissionDenied("Order belongs to another restaurant")


def _transition(
    db: Session,
    order_id: str,
    new_status: OrderStatus,
    authorize: Callable[[Order], None],
) -> Order:
    """
    Move an order along the payment handshake. The row is re-read under
    lock, so a concurrent settlement that already served it wins and this
    call fails with a conflict.
    """
    repo = LedgerRepository(db)
    with repo.atomic():
        order = repo.get_order(order_id, for_update=True)
        if order is None:
            raise NotFound("Order not found")
        authorize(order)
        if not order.can_transition_to(new_status):
            raise Conflict(
                f"Order cannot move from {order.status.value} to {new_status.value}",
                details={"status": order.status.value},
            )
        old_status = order.status
        order.status = new_status

    db.refresh(order)
    logger.info(f"Order {order.order_number}: {old_status.value} -> {new_status.value}")
    return order


def request_payment(db: Session, order_id: str, staff: RestaurantStaff) -> Order:
    """Staff asks the customer to approve the wallet charge"""
    return _transition(db, order_id, OrderStatus.AWAITING_PAYMENT, lambda o: _ensure_restaurant(o, staff))


def confirm_payment(db: Session, order_id: str, user: User) -> Order:
    return _transition(db, order_id, OrderStatus.PAYMENT_CONFIRMED, lambda o: _ensure_customer(o, user))


def decline_payment(db: Session, order_id: str, user: User) -> Order:
    return _transition(db, order_id, OrderStatus.PAYMENT_DECLINED, lambda o: _ensure_customer(o, user))


def retry_order(db: Session, order_id: str, user: User) -> Order:
    return _transition(db, order_id, OrderStatus.PENDING, lambda o: _ensure_customer(o, user))


def payment_status(db: Session, order_id: str, actor) -> dict:
    order = get_order(db, order_id)
    if isinstance(actor, RestaurantStaff):
        _ensure_restaurant(order, actor)
    else:
        _ensure_customer(order, actor)

    return {
        "status": order.status.value,
        # Served orders were paid through settlement
        "confirmed": order.status in (OrderStatus.PAYMENT_CONFIRMED, OrderStatus.SERVED),
        "declined": order.status == OrderStatus.PAYMENT_DECLINED,
        "pending": order.status == OrderStatus.AWAITING_PAYMENT,
    }


def list_session_orders(db: Session, session_id: str) -> List[Order]:
    return (
        db.query(Order)
        .filter(Order.session_id == session_id)
        .order_by(Order.created_at.desc())
        .all()
    )
