"""
HTTP surface: auth, role gating, money as decimal strings, error mapping.
"""

from decimal import Decimal

import pytest

from conftest import PASSWORD, login

API = "/api/v1"


def new_order(client, headers, **overrides):
    body = {
        "client_name": "Alice Styles",
        "order_date": "2025-03-04",
        "items": [
            {"description": "Silk Saree Blouse", "quantity": 1, "price": "1500"},
            {"description": "Embroidery Work", "quantity": 1, "price": "2500"},
        ],
        "initial_payment": "2000",
        "initial_payment_mode": "Cash",
    }
    body.update(overrides)
    resp = client.post(f"{API}/orders", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestAuth:

    def test_register_only_once(self, client, admin_headers):
        resp = client.post(f"{API}/auth/register", json={"username": "second", "password": PASSWORD})
        assert resp.status_code == 403

    def test_first_user_is_admin(self, client, admin_headers):
        resp = client.get(f"{API}/users/me", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["role"] == "admin"

    def test_bad_password(self, client, admin_headers):
        resp = client.post(f"{API}/auth/login", json={"username": "admin", "password": "wrong-one"})
        assert resp.status_code == 401

    def test_token_form(self, client, admin_headers):
        resp = client.post(f"{API}/auth/token", data={"username": "admin", "password": PASSWORD})
        assert resp.status_code == 200
        assert resp.json()["token_type"] == "bearer"

    def test_missing_token(self, client):
        assert client.get(f"{API}/orders").status_code == 401

    def test_garbage_token(self, client, admin_headers):
        resp = client.get(f"{API}/orders", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    def test_logout(self, client):
        assert client.get(f"{API}/auth/logout").status_code == 200


class TestRoleGating:

    def test_staff_can_create_orders_and_take_payments(self, client, staff_headers):
        order = new_order(client, staff_headers)
        resp = client.post(
            f"{API}/orders/{order['id']}/payments",
            json={"amount": "500", "mode": "UPI"},
            headers=staff_headers,
        )
        assert resp.status_code == 201

    @pytest.mark.parametrize(
        "method, path, body",
        [
            ("patch", "/balances", {"bank_balance": "10"}),
            ("post", "/expenses", {"description": "x", "category": "y", "amount": "1", "mode": "Cash"}),
            ("post", "/transactions", {"type": "Deposit", "amount": "1", "description": "x", "mode": "Cash"}),
            ("get", "/reports/monthly", None),
        ],
    )
    def test_staff_forbidden(self, client, staff_headers, method, path, body):
        kwargs = {"headers": staff_headers}
        if body is not None:
            kwargs["json"] = body
        resp = getattr(client, method)(f"{API}{path}", **kwargs)
        assert resp.status_code == 403

    def test_staff_cannot_edit_or_cancel(self, client, staff_headers):
        order = new_order(client, staff_headers)
        assert client.post(f"{API}/orders/{order['id']}/cancel", headers=staff_headers).status_code == 403
        resp = client.put(
            f"{API}/orders/{order['id']}/items",
            json={"items": [{"description": "x", "price": "1"}]},
            headers=staff_headers,
        )
        assert resp.status_code == 403

    def test_manager_cannot_delete_orders_or_manage_users(self, client, manager_headers):
        order = new_order(client, manager_headers)
        assert client.delete(f"{API}/orders/{order['id']}", headers=manager_headers).status_code == 403
        assert client.get(f"{API}/users", headers=manager_headers).status_code == 403
        resp = client.post(
            f"{API}/reports/adjustments",
            json={"year": 2025, "month": 3, "mode": "Bank", "closing_balance": "100"},
            headers=manager_headers,
        )
        assert resp.status_code == 403

    def test_admin_deletes_order(self, client, admin_headers):
        order = new_order(client, admin_headers)
        assert client.delete(f"{API}/orders/{order['id']}", headers=admin_headers).status_code == 200
        assert client.get(f"{API}/orders/{order['id']}", headers=admin_headers).status_code == 404
        balances = client.get(f"{API}/balances", headers=admin_headers).json()
        assert Decimal(balances["cash_in_hand"]) == Decimal("0")


class TestOrderFlow:

    def test_create_and_settle(self, client, manager_headers):
        order = new_order(client, manager_headers)
        assert isinstance(order["total_amount"], str)
        assert Decimal(order["total_amount"]) == Decimal("4000")
        assert Decimal(order["balance_amount"]) == Decimal("2000")
        assert order["payment_status"] == "Partial"
        assert order["payment_history"][0]["note"] == "Advance Payment"

        resp = client.post(
            f"{API}/orders/{order['id']}/payments",
            json={"amount": "2000", "mode": "Bank", "date": "2025-03-09"},
            headers=manager_headers,
        )
        assert resp.status_code == 201
        settled = resp.json()
        assert settled["payment_status"] == "Paid"
        assert Decimal(settled["amount_due"]) == Decimal("0")

        balances = client.get(f"{API}/balances", headers=manager_headers).json()
        assert Decimal(balances["bank_balance"]) == Decimal("2000")
        assert Decimal(balances["cash_in_hand"]) == Decimal("2000")

    def test_edit_and_delete_payment(self, client, manager_headers):
        order = new_order(client, manager_headers)
        payment_id = order["payment_history"][0]["id"]

        resp = client.patch(
            f"{API}/orders/{order['id']}/payments/{payment_id}",
            json={"amount": "1000", "mode": "UPI"},
            headers=manager_headers,
        )
        assert resp.status_code == 200
        assert Decimal(resp.json()["balance_amount"]) == Decimal("3000")

        resp = client.delete(f"{API}/orders/{order['id']}/payments/{payment_id}", headers=manager_headers)
        assert resp.status_code == 200
        assert resp.json()["payment_status"] == "Unpaid"

        balances = client.get(f"{API}/balances", headers=manager_headers).json()
        assert Decimal(balances["bank_balance"]) == Decimal("0")
        assert Decimal(balances["cash_in_hand"]) == Decimal("0")

    def test_update_items_and_status(self, client, manager_headers):
        order = new_order(client, manager_headers)
        resp = client.patch(
            f"{API}/orders/{order['id']}",
            json={"work_status": "In Progress", "items": [{"description": "Lehenga", "price": "5000"}]},
            headers=manager_headers,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["work_status"] == "In Progress"
        assert Decimal(body["total_amount"]) == Decimal("5000")
        assert Decimal(body["balance_amount"]) == Decimal("3000")

    def test_patch_null_clears_optional_fields(self, client, manager_headers):
        order = new_order(client, manager_headers, due_date="2025-03-10", notes="Rush")
        resp = client.patch(
            f"{API}/orders/{order['id']}",
            json={"due_date": None, "notes": None},
            headers=manager_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["due_date"] is None
        assert resp.json()["notes"] is None

        resp = client.patch(f"{API}/orders/{order['id']}", json={"client_name": None}, headers=manager_headers)
        assert resp.status_code == 400

        payment_id = order["payment_history"][0]["id"]
        resp = client.patch(
            f"{API}/orders/{order['id']}/payments/{payment_id}",
            json={"note": None},
            headers=manager_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["payment_history"][0]["note"] is None
        assert Decimal(resp.json()["balance_amount"]) == Decimal("2000")

    def test_list_and_worklists(self, client, staff_headers):
        new_order(client, staff_headers, due_date="2025-03-10")
        resp = client.get(f"{API}/orders", params={"search": "alice"}, headers=staff_headers)
        assert resp.status_code == 200
        assert resp.json()["total"] == 1

        resp = client.get(f"{API}/orders/worklists", params={"today": "2025-03-10"}, headers=staff_headers)
        assert resp.status_code == 200
        assert len(resp.json()["due_today"]) == 1

    def test_duplicate_order_number_conflicts(self, client, staff_headers):
        new_order(client, staff_headers, order_number="ORD-DEMO01")
        resp = client.post(
            f"{API}/orders",
            json={"client_name": "Sarah", "order_number": "ORD-DEMO01", "items": [{"description": "x", "price": "1"}]},
            headers=staff_headers,
        )
        assert resp.status_code == 409


class TestErrors:

    def test_unknown_order(self, client, staff_headers):
        resp = client.get(f"{API}/orders/ORD-NOPE", headers=staff_headers)
        assert resp.status_code == 404
        assert resp.json()["success"] is False

    def test_malformed_amount(self, client, staff_headers):
        order = new_order(client, staff_headers)
        resp = client.post(
            f"{API}/orders/{order['id']}/payments",
            json={"amount": "lots", "mode": "Cash"},
            headers=staff_headers,
        )
        assert resp.status_code == 400

    def test_negative_amount(self, client, staff_headers):
        order = new_order(client, staff_headers)
        resp = client.post(
            f"{API}/orders/{order['id']}/payments",
            json={"amount": "-5", "mode": "Cash"},
            headers=staff_headers,
        )
        assert resp.status_code == 400

    def test_upi_transaction_rejected(self, client, manager_headers):
        resp = client.post(
            f"{API}/transactions",
            json={"type": "Deposit", "amount": "10", "description": "x", "mode": "UPI"},
            headers=manager_headers,
        )
        assert resp.status_code == 400


class TestMoneyEndpoints:

    def test_expense_round_trip(self, client, manager_headers):
        resp = client.post(
            f"{API}/expenses",
            json={"description": "Shop Rent", "category": "Rent", "amount": "500", "mode": "Bank", "date": "2025-03-01"},
            headers=manager_headers,
        )
        assert resp.status_code == 201
        expense_id = resp.json()["id"]

        listing = client.get(f"{API}/expenses", headers=manager_headers).json()
        assert listing["total"] == 1
        assert Decimal(listing["total_amount"]) == Decimal("500")

        assert client.delete(f"{API}/expenses/{expense_id}", headers=manager_headers).status_code == 200
        balances = client.get(f"{API}/balances", headers=manager_headers).json()
        assert Decimal(balances["bank_balance"]) == Decimal("0")

    def test_balance_overwrite(self, client, manager_headers):
        resp = client.patch(f"{API}/balances", json={"bank_balance": "45000"}, headers=manager_headers)
        assert resp.status_code == 200
        assert Decimal(resp.json()["bank_balance"]) == Decimal("45000")
        assert Decimal(resp.json()["cash_in_hand"]) == Decimal("0")

    def test_adjustment_and_reports(self, client, admin_headers):
        client.post(
            f"{API}/transactions",
            json={"type": "Deposit", "amount": "10000", "description": "Capital", "mode": "Bank", "date": "2025-03-05"},
            headers=admin_headers,
        )
        resp = client.post(
            f"{API}/reports/adjustments",
            json={"year": 2025, "month": 3, "mode": "Bank", "closing_balance": "12000"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        body = resp.json()
        assert Decimal(body["difference"]) == Decimal("2000")
        assert body["transaction"]["type"] == "Deposit"
        assert body["transaction"]["date"] == "2025-03-31"
        assert body["transaction"]["description"] == "Balance Adjustment (March)"

        report = client.get(f"{API}/reports/monthly", params={"year": 2025}, headers=admin_headers).json()
        assert Decimal(report["months"][2]["closing_bank"]) == Decimal("12000")

        recon = client.get(f"{API}/reports/reconciliation", headers=admin_headers).json()
        assert recon["balanced"] is True

        board = client.get(f"{API}/reports/dashboard", headers=admin_headers)
        assert board.status_code == 200
        assert Decimal(board.json()["bank_balance"]) == Decimal("12000")


class TestUsers:

    def test_admin_manages_users(self, client, admin_headers):
        resp = client.post(
            f"{API}/users",
            json={"username": "tailor", "password": PASSWORD, "role": "staff"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        user_id = resp.json()["id"]

        resp = client.patch(f"{API}/users/{user_id}", json={"role": "manager"}, headers=admin_headers)
        assert resp.json()["role"] == "manager"

        headers = login(client, "tailor")
        assert client.get(f"{API}/expenses", headers=headers).status_code == 200

        assert client.delete(f"{API}/users/{user_id}", headers=admin_headers).status_code == 200
        assert client.get(f"{API}/users/{user_id}", headers=admin_headers).status_code == 404

    def test_duplicate_username(self, client, admin_headers):
        resp = client.post(
            f"{API}/users",
            json={"username": "admin", "password": PASSWORD, "role": "staff"},
            headers=admin_headers,
        )
        assert resp.status_code == 409

    @pytest.mark.parametrize("password", ["x" * 80, "é" * 40])
    def test_password_over_bcrypt_limit(self, client, admin_headers, password):
        resp = client.post(
            f"{API}/users",
            json={"username": "tailor", "password": password, "role": "staff"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["success"] is False

        resp = client.put(
            f"{API}/users/me/password",
            json={"old_password": PASSWORD, "new_password": password},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        login(client, "admin")

    def test_register_with_long_password(self, client):
        resp = client.post(f"{API}/auth/register", json={"username": "admin", "password": "x" * 80})
        assert resp.status_code == 400
        assert client.post(f"{API}/auth/register", json={"username": "admin", "password": PASSWORD}).status_code == 201

    def test_change_own_password(self, client, staff_headers):
        resp = client.put(
            f"{API}/users/me/password",
            json={"old_password": PASSWORD, "new_password": "new-secret"},
            headers=staff_headers,
        )
        assert resp.status_code == 200
        login(client, "staff", "new-secret")
