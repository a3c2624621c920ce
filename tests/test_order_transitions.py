from decimal import Decimal

import pytest
from sqlalchemy.orm import sessionmaker

from dabil.exceptions import Conflict, NotFound, PermissionDenied
from dabil.models.order import Order, OrderStatus
from dabil.models.wallet import TransactionType, Wallet, WalletTransaction
from dabil.repositories.ledger import LedgerRepository
from dabil.services import order_service
from dabil.services.settlement_service import settle_order

from tests.factories import OrderFactory, RestaurantFactory, StaffFactory


@pytest.fixture
def order(db_session, dining_session):
    order = OrderFactory(session=dining_session, total_amount=Decimal("1500.00"))
    db_session.commit()
    return order


def _debits(db_session, order_id):
    return db_session.query(WalletTransaction).filter(
        WalletTransaction.order_id == order_id,
        WalletTransaction.type == TransactionType.DEBIT,
    ).count()


def test_payment_request_after_concurrent_serve_conflicts(engine, db_session, customer, cashier, order):
    # This session read the order while it was still pending
    stale = order_service.get_order(db_session, order.id)
    assert stale.status == OrderStatus.PENDING

    other = sessionmaker(bind=engine, autoflush=False)()
    try:
        settle_order(LedgerRepository(other), order.id)
    finally:
        other.close()

    with pytest.raises(Conflict):
        order_service.request_payment(db_session, order.id, cashier)

    served = db_session.query(Order).filter(Order.id == order.id).one()
    assert served.status == OrderStatus.SERVED

    # The served order cannot be walked back into the handshake and charged again
    with pytest.raises(Conflict):
        order_service.confirm_payment(db_session, order.id, customer)
    with pytest.raises(Conflict):
        settle_order(LedgerRepository(db_session), order.id)

    assert _debits(db_session, order.id) == 1
    wallet = db_session.query(Wallet).filter(Wallet.user_id == customer.id).one()
    assert wallet.balance == Decimal("3500.00")


def test_handshake_walks_the_status_machine(db_session, customer, cashier, order):
    assert order_service.request_payment(db_session, order.id, cashier).status == OrderStatus.AWAITING_PAYMENT
    assert order_service.decline_payment(db_session, order.id, customer).status == OrderStatus.PAYMENT_DECLINED
    assert order_service.retry_order(db_session, order.id, customer).status == OrderStatus.PENDING
    order_service.request_payment(db_session, order.id, cashier)
    assert order_service.confirm_payment(db_session, order.id, customer).status == OrderStatus.PAYMENT_CONFIRMED


def test_confirm_without_request_conflicts(db_session, customer, order):
    with pytest.raises(Conflict):
        order_service.confirm_payment(db_session, order.id, customer)

    assert db_session.query(Order).filter(Order.id == order.id).one().status == OrderStatus.PENDING


def test_staff_of_another_restaurant_cannot_request_payment(db_session, order):
    outsider = StaffFactory(restaurant=RestaurantFactory())
    db_session.commit()

    with pytest.raises(PermissionDenied):
        order_service.request_payment(db_session, order.id, outsider)

    assert db_session.query(Order).filter(Order.id == order.id).one().status == OrderStatus.PENDING


def test_unknown_order(db_session, customer):
    with pytest.raises(NotFound):
        order_service.confirm_payment(db_session, "missing", customer)
