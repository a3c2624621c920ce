from decimal import Decimal

import pytest

from dabil.models.restaurant import MenuItemStatus
from dabil.models.wallet import Wallet

from tests.factories import MenuItemFactory, RestaurantFactory, StaffFactory, UserFactory


@pytest.fixture
def checked_in(client, customer, restaurant, auth_headers):
    response = client.post(
        "/api/v1/sessions/check-in",
        json={"restaurantId": restaurant.id, "tableNumber": "12", "partySize": 3},
        headers=auth_headers(customer),
    )
    assert response.status_code == 201
    return response.json()["data"]


def _place_order(client, headers, session_id, menu_item, quantity=2):
    return client.post(
        "/api/v1/orders",
        json={"sessionId": session_id, "items": [{"menuItemId": menu_item.id, "quantity": quantity}]},
        headers=headers,
    )


def test_check_in_creates_active_session(checked_in, restaurant):
    assert checked_in["restaurant_id"] == restaurant.id
    assert checked_in["restaurant_name"] == "Mama Put"
    assert checked_in["restaurant_type"] == "QSR"
    assert checked_in["status"] == "active"
    assert checked_in["party_size"] == 3
    assert len(checked_in["session_code"]) == 6


def test_second_check_in_at_same_restaurant_conflicts(client, customer, restaurant, checked_in, auth_headers):
    response = client.post("/api/v1/sessions/check-in", json={"restaurant_id": restaurant.id}, headers=auth_headers(customer))
    assert response.status_code == 409


def test_check_in_unknown_restaurant(client, customer, auth_headers):
    response = client.post("/api/v1/sessions/check-in", json={"restaurantId": "missing"}, headers=auth_headers(customer))
    assert response.status_code == 404


def test_active_session_lookup(client, customer, checked_in, auth_headers):
    data = client.get("/api/v1/sessions/active", headers=auth_headers(customer)).json()["data"]
    assert data["id"] == checked_in["id"]


def test_order_prices_come_from_menu(client, customer, menu_item, checked_in, auth_headers):
    response = client.post(
        "/api/v1/orders",
        json={
            "sessionId": checked_in["id"],
            "items": [{"menuItemId": menu_item.id, "quantity": 2, "price": 1}],
        },
        headers=auth_headers(customer),
    )

    assert response.status_code == 201
    order = response.json()["data"]
    assert order["status"] == "pending"
    assert order["total_amount"] == 3000.0
    assert order["order_number"].startswith("ORD")
    assert order["items"] == [{
        "menu_item_id": menu_item.id,
        "name": "Jollof Rice",
        "quantity": 2,
        "unit_price": 1500.0,
    }]


def test_order_rejects_items_from_other_restaurants(client, db_session, customer, checked_in, auth_headers):
    elsewhere = MenuItemFactory(restaurant=RestaurantFactory())
    db_session.commit()

    response = _place_order(client, auth_headers(customer), checked_in["id"], elsewhere)
    assert response.status_code == 400


def test_order_rejects_archived_items(client, db_session, customer, restaurant, checked_in, auth_headers):
    archived = MenuItemFactory(restaurant=restaurant, status=MenuItemStatus.ARCHIVED)
    db_session.commit()

    response = _place_order(client, auth_headers(customer), checked_in["id"], archived)
    assert response.status_code == 400


def test_order_requires_items(client, customer, checked_in, auth_headers):
    response = client.post("/api/v1/orders", json={"sessionId": checked_in["id"], "items": []}, headers=auth_headers(customer))
    assert response.status_code == 422


def test_serve_charges_wallet_and_awards_points(client, db_session, customer, cashier, menu_item, checked_in, auth_headers, staff_headers):
    order = _place_order(client, auth_headers(customer), checked_in["id"], menu_item).json()["data"]

    response = client.put(f"/api/v1/orders/{order['id']}/serve", headers=staff_headers(cashier))

    assert response.status_code == 200
    receipt = response.json()["data"]
    assert receipt["amount_charged"] == 3000.0
    assert receipt["new_balance"] == 2000.0
    assert receipt["loyalty_points_earned"] == 300

    assert client.get("/api/v1/wallet/balance", headers=auth_headers(customer)).json()["data"]["balance"] == 2000.0
    assert client.get("/api/v1/loyalty", headers=auth_headers(customer)).json()["data"]["points_balance"] == 300

    again = client.put(f"/api/v1/orders/{order['id']}/serve", headers=staff_headers(cashier))
    assert again.status_code == 409
    assert db_session.query(Wallet).filter(Wallet.user_id == customer.id).one().balance == Decimal("2000.00")


def test_serve_requires_staff_token(client, customer, menu_item, checked_in, auth_headers):
    order = _place_order(client, auth_headers(customer), checked_in["id"], menu_item).json()["data"]

    response = client.put(f"/api/v1/orders/{order['id']}/serve", headers=auth_headers(customer))
    assert response.status_code == 401


def test_serve_by_other_restaurant_staff_forbidden(client, db_session, customer, menu_item, checked_in, auth_headers, staff_headers):
    outsider = StaffFactory(restaurant=RestaurantFactory())
    db_session.commit()
    order = _place_order(client, auth_headers(customer), checked_in["id"], menu_item).json()["data"]

    response = client.put(f"/api/v1/orders/{order['id']}/serve", headers=staff_headers(outsider))
    assert response.status_code == 403


def test_serve_with_insufficient_funds(client, customer, cashier, menu_item, checked_in, auth_headers, staff_headers):
    order = _place_order(client, auth_headers(customer), checked_in["id"], menu_item, quantity=4).json()["data"]

    response = client.put(f"/api/v1/orders/{order['id']}/serve", headers=staff_headers(cashier))

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INSUFFICIENT_FUNDS"
    assert client.get("/api/v1/wallet/balance", headers=auth_headers(customer)).json()["data"]["balance"] == 5000.0


def test_payment_handshake(client, customer, cashier, menu_item, checked_in, auth_headers, staff_headers):
    order_id = _place_order(client, auth_headers(customer), checked_in["id"], menu_item).json()["data"]["id"]

    requested = client.post(f"/api/v1/orders/{order_id}/request-payment", headers=staff_headers(cashier))
    assert requested.json()["data"]["status"] == "awaiting_payment"

    status = client.get(f"/api/v1/orders/{order_id}/payment-status", headers=auth_headers(customer)).json()["data"]
    assert status == {"status": "awaiting_payment", "confirmed": False, "declined": False, "pending": True}

    # Waiting on the customer, so staff cannot serve yet
    assert client.put(f"/api/v1/orders/{order_id}/serve", headers=staff_headers(cashier)).status_code == 409

    confirmed = client.post(f"/api/v1/orders/{order_id}/confirm-payment", headers=auth_headers(customer))
    assert confirmed.json()["data"]["status"] == "payment_confirmed"

    served = client.put(f"/api/v1/orders/{order_id}/serve", headers=staff_headers(cashier))
    assert served.status_code == 200

    pos_status = client.get(f"/api/v1/pos/orders/{order_id}/payment-status", headers=staff_headers(cashier)).json()["data"]
    assert pos_status["status"] == "served"
    assert pos_status["confirmed"] is True


def test_declined_payment_can_be_retried(client, customer, cashier, menu_item, checked_in, auth_headers, staff_headers):
    order_id = _place_order(client, auth_headers(customer), checked_in["id"], menu_item).json()["data"]["id"]
    client.post(f"/api/v1/orders/{order_id}/request-payment", headers=staff_headers(cashier))

    declined = client.post(f"/api/v1/orders/{order_id}/decline-payment", headers=auth_headers(customer))
    assert declined.json()["data"]["status"] == "payment_declined"
    assert client.post(f"/api/v1/orders/{order_id}/confirm-payment", headers=auth_headers(customer)).status_code == 409

    retried = client.post(f"/api/v1/orders/{order_id}/retry", headers=auth_headers(customer))
    assert retried.json()["data"]["status"] == "pending"


def test_only_the_diner_answers_payment_requests(client, db_session, customer, cashier, menu_item, checked_in, auth_headers, staff_headers):
    stranger = UserFactory()
    db_session.commit()
    order_id = _place_order(client, auth_headers(customer), checked_in["id"], menu_item).json()["data"]["id"]
    client.post(f"/api/v1/orders/{order_id}/request-payment", headers=staff_headers(cashier))

    response = client.post(f"/api/v1/orders/{order_id}/confirm-payment", headers=auth_headers(stranger))
    assert response.status_code == 403


def test_check_out_blocked_by_open_orders(client, customer, cashier, menu_item, checked_in, auth_headers, staff_headers):
    order_id = _place_order(client, auth_headers(customer), checked_in["id"], menu_item).json()["data"]["id"]

    blocked = client.post(f"/api/v1/sessions/{checked_in['id']}/check-out", headers=auth_headers(customer))
    assert blocked.status_code == 409

    client.put(f"/api/v1/orders/{order_id}/serve", headers=staff_headers(cashier))
    done = client.post(f"/api/v1/sessions/{checked_in['id']}/check-out", headers=auth_headers(customer))

    assert done.status_code == 200
    data = done.json()["data"]
    assert data["status"] == "completed"
    assert data["total_spent"] == 3000.0
    assert data["loyalty_points_earned"] == 300

    again = client.post(f"/api/v1/sessions/{checked_in['id']}/check-out", headers=auth_headers(customer))
    assert again.status_code == 409


def test_pos_guest_list_and_session_orders(client, customer, cashier, menu_item, checked_in, auth_headers, staff_headers):
    _place_order(client, auth_headers(customer), checked_in["id"], menu_item)

    guests = client.get("/api/v1/pos/guests", headers=staff_headers(cashier)).json()["data"]["guests"]
    assert len(guests) == 1
    assert guests[0]["customer_name"] == "Ada"
    assert guests[0]["table_number"] == "12"
    assert guests[0]["order_count"] == 1
    assert guests[0]["open_orders"] == 1

    orders = client.get(f"/api/v1/pos/sessions/{checked_in['id']}/orders", headers=staff_headers(cashier)).json()["data"]["orders"]
    assert len(orders) == 1

    menu = client.get("/api/v1/pos/menu", headers=staff_headers(cashier)).json()["data"]["items"]
    assert [item["name"] for item in menu] == ["Jollof Rice"]


def test_pos_guest_checkout(client, customer, cashier, checked_in, staff_headers):
    response = client.post(f"/api/v1/pos/sessions/{checked_in['id']}/check-out", headers=staff_headers(cashier))
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "completed"


def test_loyalty_history_lists_sessions_with_points(client, customer, cashier, menu_item, checked_in, auth_headers, staff_headers):
    order_id = _place_order(client, auth_headers(customer), checked_in["id"], menu_item).json()["data"]["id"]
    client.put(f"/api/v1/orders/{order_id}/serve", headers=staff_headers(cashier))

    history = client.get("/api/v1/loyalty/history", headers=auth_headers(customer)).json()["data"]["history"]

    assert len(history) == 1
    assert history[0]["restaurant_name"] == "Mama Put"
    assert history[0]["points_earned"] == 300
    assert history[0]["amount_spent"] == 3000.0
