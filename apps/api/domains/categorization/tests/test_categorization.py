"""Tests for the categorization domain router."""


def _transactions(services, account):
    return {t.merchant_key: t for t in services.store.list_transactions(account.id)}


class TestCatalog:
    def test_categories(self, client):
        body = client.get("/api/v1/categorization/categories").json()
        ids = [c["id"] for c in body["categories"]]
        assert "food" in ids
        assert "transfers" in ids
        assert all({"label", "icon", "color", "description"} <= set(c) for c in body["categories"])


class TestDetect:
    def test_detect_keyword(self, client):
        response = client.post(
            "/api/v1/categorization/detect",
            json={"description": "UPI-SWIGGY-swiggy@icici-412345678901-Order", "amount": -250.0},
        )
        assert response.status_code == 200
        assert response.json() == {"merchant_key": "SWIGGY", "category": "food"}

    def test_detect_learns_system_rule(self, client, services):
        client.post(
            "/api/v1/categorization/detect",
            json={"description": "UPI-SWIGGY-swiggy@icici-1-Order", "amount": -250.0, "bank": "HDFC"},
        )
        (rule,) = services.categorizer.rules_for_merchant("SWIGGY")
        assert rule.created_by == "system"

    def test_detect_unknown(self, client):
        body = client.post(
            "/api/v1/categorization/detect",
            json={"description": "QXZ 4471 VWK", "amount": -120.0},
        ).json()
        assert body["category"] is None

    def test_detect_requires_description(self, client):
        response = client.post("/api/v1/categorization/detect", json={"description": "", "amount": 1})
        assert response.status_code == 422


class TestManual:
    def test_categorize_transaction(self, client, imported, services, account):
        swiggy = _transactions(services, account)["SWIGGY"]
        response = client.post(
            f"/api/v1/categorization/transactions/{swiggy.id}", json={"category": "housing"}
        )
        assert response.status_code == 200
        assert response.json()["category"] == "housing"
        (rule,) = services.categorizer.rules_for_merchant("SWIGGY")
        assert rule.created_by == "user"

    def test_unknown_category(self, client, imported, services, account):
        swiggy = _transactions(services, account)["SWIGGY"]
        response = client.post(
            f"/api/v1/categorization/transactions/{swiggy.id}", json={"category": "groceries"}
        )
        assert response.status_code == 422
        assert response.json()["detail"] == "Unknown category: groceries"

    def test_unknown_transaction(self, client):
        response = client.post("/api/v1/categorization/transactions/missing", json={"category": "food"})
        assert response.status_code == 404

    def test_bulk(self, client, imported, services, account):
        ids = [t.id for t in services.store.list_transactions(account.id)]
        response = client.post("/api/v1/categorization/bulk", json={"transaction_ids": ids, "category": "misc"})
        assert response.json() == {"updated": 3}
        assert {t.category for t in services.store.list_transactions(account.id)} == {"misc"}

    def test_bulk_rejects_missing_ids(self, client, imported, services, account):
        ids = [t.id for t in services.store.list_transactions(account.id)] + ["missing"]
        response = client.post("/api/v1/categorization/bulk", json={"transaction_ids": ids, "category": "misc"})
        assert response.status_code == 404
        assert {t.category for t in services.store.list_transactions(account.id)} != {"misc"}

    def test_merchant_categorize(self, client, imported, services, account):
        swiggy = _transactions(services, account)["SWIGGY"]
        services.store.update_transaction(swiggy.id, {"category": None})
        response = client.post(
            "/api/v1/categorization/merchants/SWIGGY",
            json={"category": "entertainment", "import_id": imported["import_id"]},
        )
        assert response.json() == {"updated": 1}
        assert services.store.get_transaction(swiggy.id).category == "entertainment"


class TestAutoAndReports:
    def test_auto_categorize(self, client, imported, services, account):
        for txn in services.store.list_transactions(account.id):
            services.store.update_transaction(txn.id, {"category": None})
        response = client.post("/api/v1/categorization/auto", json={"import_id": imported["import_id"]})
        assert response.json() == {"success": 3, "failed": 0}

    def test_rules(self, client, imported):
        rules = client.get("/api/v1/categorization/rules").json()
        assert {r["merchant_key"] for r in rules} >= {"SWIGGY", "ACME"}

        swiggy = client.get("/api/v1/categorization/rules", params={"merchant_key": "SWIGGY"}).json()
        assert len(swiggy) == 1
        assert client.delete(f"/api/v1/categorization/rules/{swiggy[0]['id']}").status_code == 204
        assert client.delete(f"/api/v1/categorization/rules/{swiggy[0]['id']}").status_code == 404

    def test_stats(self, client, imported, account):
        stats = client.get("/api/v1/categorization/stats", params={"account_id": account.id}).json()
        assert stats["food"]["count"] == 1
        assert stats["income"]["amount"] == 90000.0

    def test_recurring(self, client, imported, account):
        response = client.get("/api/v1/categorization/recurring", params={"account_id": account.id})
        assert response.status_code == 200
        assert response.json() == []
