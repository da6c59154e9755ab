"""
API tests for cash ledger endpoints.

Tests cover:
- Recording, reading, editing and deleting entries
- Error-to-status mapping
- User isolation via the X-User-Id header
- Balance, cash flow and monthly summary endpoints
"""

from decimal import Decimal

from fastapi.testclient import TestClient


def record(client: TestClient, headers: dict, **overrides) -> dict:
    payload = {
        "entry_type": "deposit",
        "amount": "1000",
        "currency": "PLN",
        "comment": "funding",
        "occurred_at": "2024-06-01T10:00:00Z",
    }
    payload.update(overrides)
    response = client.post("/cash-ledger", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestHealthEndpoints:
    """Tests for the service info endpoints."""

    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_root(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"


class TestCashLedgerEndpoints:
    """Tests for entry CRUD endpoints."""

    def test_create_entry(self, client: TestClient, user_headers):
        """
        GIVEN an authenticated user
        WHEN a deposit is posted
        THEN 201 is returned with the stored entry
        """
        data = record(client, user_headers, currency="pln")

        assert data["entry_id"].startswith("CASH_")
        assert data["user_id"] == "user-1"
        assert data["currency"] == "PLN"
        assert data["source"] == "api"
        assert data["direction"] == "credit"
        assert Decimal(data["amount"]) == Decimal("1000")
        assert Decimal(data["signed_amount"]) == Decimal("1000")

    def test_withdrawal_is_debit(self, client: TestClient, user_headers):
        data = record(client, user_headers, entry_type="withdrawal", amount="25.5")

        assert data["direction"] == "debit"
        assert Decimal(data["signed_amount"]) == Decimal("-25.5")

    def test_missing_user_header_is_rejected(self, client: TestClient):
        response = client.post(
            "/cash-ledger",
            json={"entry_type": "deposit", "amount": "10", "comment": "x"},
        )

        assert response.status_code == 422

    def test_blank_user_header_is_rejected(self, client: TestClient):
        response = client.get("/cash-ledger", headers={"X-User-Id": "   "})

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_business_validation_maps_to_400(self, client: TestClient, user_headers):
        response = client.post(
            "/cash-ledger",
            json={"entry_type": "dividend", "amount": "5", "comment": "div"},
            headers=user_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"
        assert "Symbol" in response.json()["message"]

    def test_zero_deposit_maps_to_400(self, client: TestClient, user_headers):
        response = client.post(
            "/cash-ledger",
            json={"entry_type": "deposit", "amount": "0", "comment": "x"},
            headers=user_headers,
        )

        assert response.status_code == 400

    def test_get_entry_of_other_user_is_404(self, client: TestClient, user_headers, other_user_headers):
        entry = record(client, user_headers)

        response = client.get(f"/cash-ledger/{entry['entry_id']}", headers=other_user_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    def test_list_entries(self, client: TestClient, user_headers, other_user_headers):
        record(client, user_headers, occurred_at="2024-06-01T10:00:00Z")
        record(client, user_headers, entry_type="fee", amount="2", occurred_at="2024-06-02T10:00:00Z")
        record(client, other_user_headers)

        response = client.get("/cash-ledger", headers=user_headers)
        fees = client.get("/cash-ledger", params={"entry_type": ["fee"]}, headers=user_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert data["total"] == 2
        assert data["entries"][0]["entry_type"] == "fee"
        assert fees.json()["count"] == 1

    def test_update_entry(self, client: TestClient, user_headers):
        entry = record(client, user_headers)

        response = client.put(
            f"/cash-ledger/{entry['entry_id']}",
            json={"amount": "1200", "comment": "corrected"},
            headers=user_headers,
        )

        assert response.status_code == 200
        assert Decimal(response.json()["amount"]) == Decimal("1200")
        assert response.json()["comment"] == "corrected"

    def test_mark_failed_then_completed(self, client: TestClient, user_headers):
        entry = record(client, user_headers, status="pending")

        failed = client.post(
            f"/cash-ledger/{entry['entry_id']}/fail",
            json={"reason": "insufficient funds"},
            headers=user_headers,
        )
        completed = client.post(f"/cash-ledger/{entry['entry_id']}/complete", headers=user_headers)

        assert failed.json()["status"] == "failed"
        assert failed.json()["notes"] == "Failed: insufficient funds"
        assert completed.json()["status"] == "completed"

    def test_delete_entry(self, client: TestClient, user_headers):
        entry = record(client, user_headers)

        response = client.delete(f"/cash-ledger/{entry['entry_id']}", headers=user_headers)
        missing = client.get(f"/cash-ledger/{entry['entry_id']}", headers=user_headers)

        assert response.status_code == 204
        assert missing.status_code == 404

    def test_batch(self, client: TestClient, user_headers):
        response = client.post(
            "/cash-ledger/batch",
            json={
                "entries": [
                    {"entry_type": "deposit", "amount": "100", "comment": "a"},
                    {"entry_type": "dividend", "amount": "3", "comment": "no symbol"},
                ]
            },
            headers=user_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["imported_count"] == 1
        assert data["error_count"] == 1
        assert data["errors"][0].startswith("Row 2:")
        stored = client.get(f"/cash-ledger/{data['imported_ids'][0]}", headers=user_headers)
        assert stored.json()["source"] == "import"
        assert stored.json()["import_batch_id"] == data["import_batch_id"]


class TestBalanceEndpoints:
    """Tests for aggregation endpoints."""

    def test_balances(self, client: TestClient, user_headers):
        record(client, user_headers, amount="1000")
        record(client, user_headers, entry_type="withdrawal", amount="300")
        record(client, user_headers, amount="50", currency="USD")
        record(client, user_headers, amount="999", status="pending")

        response = client.get("/cash-ledger/balance", headers=user_headers)

        assert response.status_code == 200
        balances = {b["currency"]: b for b in response.json()["balances"]}
        assert list(balances.keys()) == ["PLN", "USD"]
        assert Decimal(balances["PLN"]["balance"]) == Decimal("700")
        assert Decimal(balances["PLN"]["total_outflow"]) == Decimal("300")
        assert Decimal(balances["USD"]["balance"]) == Decimal("50")

    def test_balance_all_statuses_and_point_in_time(self, client: TestClient, user_headers):
        record(client, user_headers, amount="100", occurred_at="2024-06-01T10:00:00Z")
        record(client, user_headers, amount="40", status="pending", occurred_at="2024-06-02T10:00:00Z")
        record(client, user_headers, amount="10", occurred_at="2024-06-20T10:00:00Z")

        every = client.get(
            "/cash-ledger/balance", params={"all_statuses": True}, headers=user_headers
        )
        past = client.get(
            "/cash-ledger/balance",
            params={"up_to_date": "2024-06-10T00:00:00Z"},
            headers=user_headers,
        )

        assert Decimal(every.json()["balances"][0]["balance"]) == Decimal("150")
        assert Decimal(past.json()["balances"][0]["balance"]) == Decimal("100")

    def test_empty_balance_for_currency(self, client: TestClient, user_headers):
        response = client.get(
            "/cash-ledger/balance", params={"currency": "EUR"}, headers=user_headers
        )

        assert response.status_code == 200
        balances = response.json()["balances"]
        assert len(balances) == 1
        assert balances[0]["currency"] == "EUR"
        assert Decimal(balances[0]["balance"]) == Decimal("0")

    def test_cash_flow(self, client: TestClient, user_headers):
        record(client, user_headers, amount="100", occurred_at="2024-06-01T10:00:00Z")
        record(client, user_headers, entry_type="fee", amount="1", occurred_at="2024-06-01T11:00:00Z")

        response = client.get(
            "/cash-ledger/cash-flow",
            params={"since": "2024-05-01T00:00:00Z"},
            headers=user_headers,
        )

        assert response.status_code == 200
        items = response.json()["items"]
        assert [(i["day"], i["entry_type"]) for i in items] == [
            ("2024-06-01", "deposit"),
            ("2024-06-01", "fee"),
        ]
        assert Decimal(items[1]["total_amount"]) == Decimal("-1")

    def test_monthly_summary(self, client: TestClient, user_headers):
        record(client, user_headers, amount="100", occurred_at="2024-06-01T10:00:00Z")
        record(client, user_headers, entry_type="withdrawal", amount="30", occurred_at="2024-06-15T10:00:00Z")

        response = client.get("/cash-ledger/monthly/2024/6", headers=user_headers)

        assert response.status_code == 200
        currencies = response.json()["currencies"]
        assert currencies[0]["currency"] == "PLN"
        assert Decimal(currencies[0]["total_flow"]) == Decimal("70")

    def test_monthly_summary_invalid_month(self, client: TestClient, user_headers):
        response = client.get("/cash-ledger/monthly/2024/13", headers=user_headers)

        assert response.status_code == 400
