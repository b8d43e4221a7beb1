"""Tests for the accounts domain router."""

from datetime import date

from packages.storage.models import StoredTransaction


class TestAccounts:
    def test_create_normalizes_bank_and_masks_number(self, client):
        response = client.post(
            "/api/v1/accounts",
            json={"name": "Salary", "bank_name": "SBI", "account_number": "30001234"},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["bank_name"] == "State Bank of India"
        assert body["account_number"] == "1234"
        assert body["account_type"] == "savings"

    def test_unknown_bank_kept_verbatim(self, client):
        body = client.post("/api/v1/accounts", json={"name": "Cash", "bank_name": "Local Co-op"}).json()
        assert body["bank_name"] == "Local Co-op"

    def test_rejects_unknown_account_type(self, client):
        response = client.post(
            "/api/v1/accounts", json={"name": "X", "bank_name": "HDFC", "account_type": "wallet"}
        )
        assert response.status_code == 422

    def test_list(self, client, account):
        body = client.get("/api/v1/accounts").json()
        assert [a["id"] for a in body] == [account.id]


class TestTransactions:
    def test_newest_first(self, client, imported, account):
        body = client.get(f"/api/v1/accounts/{account.id}/transactions").json()
        assert body["count"] == 3
        assert [t["date"] for t in body["transactions"]] == ["2024-03-07", "2024-03-05", "2024-03-01"]

    def test_limit(self, client, imported, account):
        body = client.get(f"/api/v1/accounts/{account.id}/transactions", params={"limit": 1}).json()
        assert body["count"] == 1
        assert body["transactions"][0]["merchant_key"] == "SELF"

    def test_date_range_is_inclusive(self, client, imported, account):
        body = client.get(
            f"/api/v1/accounts/{account.id}/transactions",
            params={"start": "2024-03-01", "end": "2024-03-05"},
        ).json()
        assert [t["date"] for t in body["transactions"]] == ["2024-03-05", "2024-03-01"]

    def test_open_ended_range(self, client, services, account):
        services.store.insert_transactions(
            [
                StoredTransaction(
                    date=date(2023, 12, 31),
                    description="OLD",
                    amount=-1.0,
                    transaction_type="debit",
                    source="TEST",
                    bank_name="HDFC Bank",
                    account_id=account.id,
                )
            ]
        )
        body = client.get(
            f"/api/v1/accounts/{account.id}/transactions", params={"start": "2024-01-01"}
        ).json()
        assert body["count"] == 0

    def test_inverted_range(self, client, account):
        response = client.get(
            f"/api/v1/accounts/{account.id}/transactions",
            params={"start": "2024-03-05", "end": "2024-03-01"},
        )
        assert response.status_code == 422

    def test_unknown_account(self, client):
        assert client.get("/api/v1/accounts/missing/transactions").status_code == 404
