import os

# Must be set before dabil.config is imported
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "True")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("PAYSTACK_SECRET_KEY", "sk_test_dabil")
os.environ.setdefault("SECRET_KEY", "test-secret")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import dabil.models  # noqa: F401
from dabil.database import Base, get_db
from dabil.exceptions import ExternalServiceError
from dabil.main import app
from dabil.repositories.ledger import LedgerRepository
from dabil.services import auth_service
from dabil.services.payment_gateway import PaystackClient, get_payment_gateway, to_kobo
from dabil.utils import security
from dabil.utils.security import create_staff_token

from tests.factories import (
    ALL_FACTORIES,
    DiningSessionFactory,
    MenuItemFactory,
    RestaurantFactory,
    StaffFactory,
    UserFactory,
)


class FakeGateway(PaystackClient):
    """In-memory Paystack: every initialized transaction verifies as paid in full.

    Tests edit ``transactions[reference]`` to simulate declines or short payments.
    """

    def __init__(self):
        super().__init__(secret_key=os.environ["PAYSTACK_SECRET_KEY"])
        self.transactions = {}
        self.verify_calls = []
        self.fail_initialize = False

    def initialize_transaction(self, email, amount, reference, callback_url, metadata=None):
        if self.fail_initialize:
            raise ExternalServiceError("Payment gateway unreachable")
        self.transactions[reference] = {"status": "success", "amount": to_kobo(amount), "email": email}
        return {
            "authorization_url": f"https://checkout.paystack.com/{reference}",
            "access_code": "ac_test",
            "reference": reference,
        }

    def verify_transaction(self, reference):
        self.verify_calls.append(reference)
        if reference not in self.transactions:
            raise ExternalServiceError("Payment gateway request failed", details="Transaction reference not found")
        return {"reference": reference, **self.transactions[reference]}


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    monkeypatch.setattr(security, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """A session shared by factories, services and the test client."""
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    for factory_class in ALL_FACTORIES:
        factory_class._meta.sqlalchemy_session = session
    yield session
    session.close()


@pytest.fixture
def repo(db_session) -> LedgerRepository:
    return LedgerRepository(db_session)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def client(db_session, gateway):
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def restaurant(db_session):
    restaurant = RestaurantFactory(name="Mama Put")
    db_session.commit()
    return restaurant


@pytest.fixture
def menu_item(db_session, restaurant):
    item = MenuItemFactory(restaurant=restaurant, name="Jollof Rice", price=Decimal("1500.00"))
    db_session.commit()
    return item


@pytest.fixture
def customer(db_session):
    """Customer holding NGN 5000 in their wallet"""
    user = UserFactory(email="ada@example.com", name="Ada", wallet__balance=Decimal("5000.00"))
    db_session.commit()
    return user


@pytest.fixture
def dining_session(db_session, customer, restaurant):
    session = DiningSessionFactory(user=customer, restaurant=restaurant)
    db_session.commit()
    return session


@pytest.fixture
def cashier(db_session, restaurant):
    staff = StaffFactory(restaurant=restaurant, email="cashier@example.com")
    db_session.commit()
    return staff


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = auth_service.create_tokens(user)["token"]
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def staff_headers():
    def _headers(staff):
        return {"Authorization": f"Bearer {create_staff_token(staff)}"}
    return _headers
