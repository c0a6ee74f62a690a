"""
Catalog and system API tests.

The menu endpoints are public; guests browse before logging in.
"""

import pytest


class TestListItems:

    def test_public_listing(self, client, nasi_goreng, es_teh, ayam_geprek):
        resp = client.get("/api/items")
        assert resp.status_code == 200

        items = resp.get_json()["items"]
        assert [item["name"] for item in items] == ["Ayam Geprek", "Es Teh Manis", "Nasi Goreng"]
        assert items[2]["stock_quantity"] == 5
        assert items[2]["unit_price"] == 15000

    def test_status_filter(self, client, nasi_goreng, es_teh, ayam_geprek, mie_ayam):
        resp = client.get("/api/items?status=AVAILABLE")
        assert resp.status_code == 200
        assert {item["name"] for item in resp.get_json()["items"]} == {"Nasi Goreng", "Es Teh Manis"}

    def test_invalid_status(self, client, app):
        resp = client.get("/api/items?status=SOLD")
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.parametrize("limit", ["0", "101", "-5"])
    def test_limit_bounds(self, client, app, limit):
        resp = client.get(f"/api/items?limit={limit}")
        assert resp.status_code == 400

    def test_best_sellers(self, client, cashier_headers, nasi_goreng, es_teh):
        resp = client.post(
            "/api/transactions",
            json={"items": [{"itemId": es_teh.id, "quantity": 4}, {"itemId": nasi_goreng.id, "quantity": 1}]},
            headers=cashier_headers,
        )
        assert resp.status_code == 201

        resp = client.get("/api/items?status=AVAILABLE&bestSeller=true&limit=1")
        assert resp.status_code == 200
        assert [item["name"] for item in resp.get_json()["items"]] == ["Es Teh Manis"]


class TestGetItem:

    def test_get_item(self, client, nasi_goreng):
        resp = client.get(f"/api/items/{nasi_goreng.id}")
        assert resp.status_code == 200
        assert resp.get_json()["item"]["name"] == "Nasi Goreng"

    def test_unknown_item(self, client, app):
        resp = client.get("/api/items/9999")
        assert resp.status_code == 404
        assert resp.get_json()["code"] == "NOT_FOUND"

    def test_id_beyond_integer_column(self, client, app):
        resp = client.get(f"/api/items/{10 ** 20}")
        assert resp.status_code == 404
        assert resp.get_json()["code"] == "NOT_FOUND"

    def test_unexpected_failure_is_500(self, client, app, monkeypatch):
        from app.services import catalog_service

        def broken(item_id, **kwargs):
            raise RuntimeError("database gone")

        monkeypatch.setattr(catalog_service, "get_item", broken)

        resp = client.get("/api/items/1")
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Internal server error"}


class TestSystem:

    def test_health(self, client, nasi_goreng):
        resp = client.get("/api/health")
        assert resp.status_code == 200

        data = resp.get_json()
        assert data["status"] == "healthy"
        assert data["checks"]["database"]["status"] == "healthy"

    def test_cors_allowed_origin(self, client, app):
        resp = client.get("/api/items", headers={"Origin": "http://localhost:3000"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"

    def test_cors_unknown_origin(self, client, app):
        resp = client.get("/api/items", headers={"Origin": "http://evil.example.com"})
        assert "Access-Control-Allow-Origin" not in resp.headers

    def test_version(self, client, app):
        resp = client.get("/api/version")
        assert resp.status_code == 200
        assert resp.get_json()["api_version"] == "1.0.0"
