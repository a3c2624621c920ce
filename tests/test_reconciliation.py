from decimal import Decimal

import pytest

from dabil.exceptions import ExternalServiceError
from dabil.models.wallet import Wallet
from dabil.services.settlement_service import settle_order
from dabil.services.wallet_service import confirm_funding, initiate_funding, redeem_points, reconcile_wallet

from tests.factories import DiningSessionFactory, OrderFactory, UserFactory


def test_balance_matches_ledger_after_mixed_activity(repo, db_session, gateway, restaurant):
    user = UserFactory()
    db_session.commit()

    funded = initiate_funding(repo, gateway, user, Decimal("2000"))["reference"]
    confirm_funding(repo, gateway, funded)

    # A failed funding attempt must not count towards the balance
    declined = initiate_funding(repo, gateway, user, Decimal("700"))["reference"]
    gateway.transactions[declined]["status"] = "abandoned"
    with pytest.raises(ExternalServiceError):
        confirm_funding(repo, gateway, declined)

    order = OrderFactory(
        session=DiningSessionFactory(user=user, restaurant=restaurant),
        total_amount=Decimal("1500.00"),
    )
    db_session.commit()
    settle_order(repo, order.id)  # earns 150 points

    redeem_points(repo, user, 148)

    report = reconcile_wallet(repo, user.id)

    assert report["stored_balance"] == 537.0
    assert report["ledger_balance"] == 537.0
    assert report["difference"] == 0.0
    assert report["consistent"] is True


def test_tampered_balance_is_reported(repo, db_session, gateway):
    user = UserFactory()
    db_session.commit()
    reference = initiate_funding(repo, gateway, user, Decimal("1000"))["reference"]
    confirm_funding(repo, gateway, reference)

    wallet = db_session.query(Wallet).filter(Wallet.user_id == user.id).one()
    wallet.balance = Decimal("1001.00")
    db_session.commit()

    report = reconcile_wallet(repo, user.id)

    assert report["consistent"] is False
    assert report["difference"] == 1.0
