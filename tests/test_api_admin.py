from decimal import Decimal

import pytest

from dabil.models.restaurant import Restaurant, RestaurantStatus
from dabil.models.session import SessionStatus
from dabil.models.user import UserRole

from tests.factories import DiningSessionFactory, OrderFactory, RestaurantFactory, UserFactory
from tests.factories.accounts import PASSWORD

OWNER_EMAIL = "owner@example.com"
OWNER_PASSWORD = "owner-pass"


@pytest.fixture
def admin(db_session):
    user = UserFactory(email="admin@example.com", role=UserRole.ADMIN)
    db_session.commit()
    return user


def _onboard(client, headers, name="Bukka Hut", email=OWNER_EMAIL):
    return client.post("/api/v1/restaurants", json={
        "name": name,
        "restaurant_type": "Casual",
        "cuisine_type": "Nigerian",
        "city": "Abuja",
        "email": email,
        "password": OWNER_PASSWORD,
    }, headers=headers)


@pytest.fixture
def onboarded(client, admin, auth_headers):
    response = _onboard(client, auth_headers(admin))
    assert response.status_code == 201
    return response.json()["data"]


@pytest.fixture
def manager_headers(client, onboarded):
    token = client.post("/api/v1/auth/login", json={"email": OWNER_EMAIL, "password": OWNER_PASSWORD}).json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}


def test_onboarding_creates_owner_and_qr(client, onboarded, admin, auth_headers):
    assert onboarded["slug"] == "bukka-hut"
    assert onboarded["restaurant_type"] == "Casual"
    assert onboarded["status"] == "active"
    assert onboarded["qr_code"].startswith("data:image/svg+xml;base64,")

    login = client.post("/api/v1/auth/login", json={"email": OWNER_EMAIL, "password": OWNER_PASSWORD}).json()["data"]
    assert login["user"]["id"] == onboarded["owner_user_id"]
    assert login["user"]["role"] == "restaurant_manager"


def test_slugs_stay_unique(client, admin, onboarded, auth_headers):
    second = _onboard(client, auth_headers(admin), email="other-owner@example.com")
    assert second.json()["data"]["slug"] == "bukka-hut-2"


def test_one_restaurant_per_owner(client, admin, onboarded, auth_headers):
    response = _onboard(client, auth_headers(admin), name="Bukka Hut Annex")
    assert response.status_code == 409


def test_customers_cannot_onboard(client, customer, auth_headers):
    response = _onboard(client, auth_headers(customer))
    assert response.status_code == 403


def test_regenerate_qr(client, admin, onboarded, auth_headers):
    response = client.post(f"/api/v1/restaurants/{onboarded['id']}/qr", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["data"]["qr_code"].startswith("data:image/svg+xml;base64,")


def test_public_directory_hides_inactive_restaurants(client, db_session, restaurant, menu_item):
    RestaurantFactory(name="Closed Kitchen", status=RestaurantStatus.INACTIVE)
    db_session.commit()

    listing = client.get("/api/v1/restaurants").json()["data"]
    assert [r["name"] for r in listing["restaurants"]] == ["Mama Put"]

    detail = client.get(f"/api/v1/restaurants/{restaurant.id}").json()["data"]
    assert "qr_code" not in detail
    assert [item["name"] for item in detail["menu_items"]] == ["Jollof Rice"]


def test_delete_restaurant_blocked_while_guests_checked_in(client, admin, restaurant, dining_session, auth_headers):
    response = client.delete(f"/api/v1/restaurants/{restaurant.id}", headers=auth_headers(admin))
    assert response.status_code == 409
    assert response.json()["error"]["details"] == {"active_sessions": 1}


def test_delete_restaurant(client, admin, restaurant, auth_headers):
    response = client.delete(f"/api/v1/restaurants/{restaurant.id}", headers=auth_headers(admin))
    assert response.status_code == 200
    assert client.get(f"/api/v1/restaurants/{restaurant.id}").status_code == 404


def test_manager_adds_menu_items_to_own_restaurant_only(client, restaurant, onboarded, manager_headers):
    item = {"name": "Pepper Soup", "price": "2500.00", "category": "Soups"}

    own = client.post(f"/api/v1/restaurants/{onboarded['id']}/menu", json=item, headers=manager_headers)
    assert own.status_code == 201
    assert own.json()["data"]["price"] == 2500.0
    assert own.json()["data"]["is_available"] is True

    other = client.post(f"/api/v1/restaurants/{restaurant.id}/menu", json=item, headers=manager_headers)
    assert other.status_code == 403


def test_menu_item_price_must_be_positive(client, onboarded, manager_headers):
    response = client.post(
        f"/api/v1/restaurants/{onboarded['id']}/menu",
        json={"name": "Free Water", "price": "0"},
        headers=manager_headers,
    )
    assert response.status_code == 422


def test_manager_restaurant_and_stats(client, db_session, onboarded, manager_headers):
    mine = client.get("/api/v1/manager/restaurant", headers=manager_headers).json()["data"]
    assert mine["id"] == onboarded["id"]
    assert mine["menu_items"] == []

    session = DiningSessionFactory(restaurant=db_session.get(Restaurant, onboarded["id"]))
    OrderFactory(session=session)
    db_session.commit()

    stats = client.get("/api/v1/manager/stats", headers=manager_headers).json()["data"]
    assert stats["active_sessions"] == 1
    assert stats["pending_orders"] == 1
    assert stats["today_orders"] == 0
    assert stats["today_revenue"] == 0.0


def test_manager_loyalty_overview(client, db_session, customer, onboarded, manager_headers):
    DiningSessionFactory(
        user=customer,
        restaurant=db_session.get(Restaurant, onboarded["id"]),
        status=SessionStatus.COMPLETED,
        total_spent=Decimal("3000.00"),
        loyalty_points_earned=300,
    )
    db_session.commit()

    overview = client.get("/api/v1/manager/loyalty", headers=manager_headers).json()["data"]

    assert overview["total_points_awarded"] == 300
    assert overview["active_customers"] == 1
    assert overview["tier_distribution"]["bronze"] == 1
    assert overview["top_customers"][0]["name"] == "Ada"
    assert overview["top_customers"][0]["total_spent"] == 3000.0


def test_manager_routes_reject_customers(client, customer, auth_headers):
    assert client.get("/api/v1/manager/stats", headers=auth_headers(customer)).status_code == 403


def test_manager_hires_staff_who_can_log_in(client, onboarded, manager_headers):
    created = client.post("/api/v1/manager/staff", json={
        "email": "waiter@example.com",
        "name": "Tunde",
        "role": "waiter",
        "password": "waiter-pass",
    }, headers=manager_headers)
    assert created.status_code == 201
    assert created.json()["data"]["restaurant_id"] == onboarded["id"]

    staff = client.get("/api/v1/manager/staff", headers=manager_headers).json()["data"]["staff"]
    assert [s["email"] for s in staff] == ["waiter@example.com"]

    login = client.post("/api/v1/staff/login", json={"email": "waiter@example.com", "password": "waiter-pass"})
    assert login.status_code == 200
    token = login.json()["data"]["token"]

    me = client.get("/api/v1/staff/me", headers={"Authorization": f"Bearer {token}"}).json()["data"]
    assert me["restaurant_name"] == "Bukka Hut"
    assert me["role"] == "waiter"
    assert me["last_login_at"] is not None


def test_staff_login_rejects_wrong_password(client, cashier):
    response = client.post("/api/v1/staff/login", json={"email": "cashier@example.com", "password": "nope"})
    assert response.status_code == 401


def test_admin_creates_staff_for_any_restaurant(client, admin, restaurant, auth_headers):
    response = client.post("/api/v1/staff", json={
        "restaurant_id": restaurant.id,
        "email": "chef@example.com",
        "name": "Ngozi",
        "role": "chef",
        "password": "chef-pass",
    }, headers=auth_headers(admin))
    assert response.status_code == 201
    assert response.json()["data"]["restaurant_name"] == "Mama Put"


def test_duplicate_staff_email_conflicts(client, admin, restaurant, cashier, auth_headers):
    response = client.post("/api/v1/staff", json={
        "restaurant_id": restaurant.id,
        "email": "cashier@example.com",
        "name": "Copy",
        "role": "cashier",
        "password": "secret1",
    }, headers=auth_headers(admin))
    assert response.status_code == 409


def test_admin_stats(client, admin, customer, restaurant, auth_headers):
    stats = client.get("/api/v1/admin/stats", headers=auth_headers(admin)).json()["data"]

    assert stats["total_users"] == 1
    assert stats["active_restaurants"] == 1
    assert stats["wallet_balance_total"] == 5000.0
    assert stats["served_orders"] == 0


def test_admin_reconcile(client, db_session, admin, auth_headers):
    user = UserFactory()
    db_session.commit()

    response = client.get(f"/api/v1/admin/wallets/{user.id}/reconcile", headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["data"]["consistent"] is True
    assert response.json()["message"] == "Wallet is consistent"


def test_admin_routes_reject_customers(client, customer, auth_headers):
    assert client.get("/api/v1/admin/stats", headers=auth_headers(customer)).status_code == 403


def test_existing_customer_promoted_to_owner_keeps_password(client, admin, customer, auth_headers):
    response = _onboard(client, auth_headers(admin), email="ada@example.com")
    assert response.status_code == 201
    assert response.json()["data"]["owner_user_id"] == customer.id

    own = client.post("/api/v1/auth/login", json={"email": "ada@example.com", "password": PASSWORD})
    assert own.status_code == 200
    assert own.json()["data"]["user"]["role"] == "restaurant_manager"

    supplied = client.post("/api/v1/auth/login", json={"email": "ada@example.com", "password": OWNER_PASSWORD})
    assert supplied.status_code == 401
