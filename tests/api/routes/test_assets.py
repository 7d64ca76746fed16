"""Tests for asset endpoints."""

import uuid

import pytest
from httpx import AsyncClient

from app.models.asset import Asset

pytestmark = pytest.mark.integration


async def _create(client: AsyncClient, name: str, category: str) -> dict:
    response = await client.post("/api/v1/assets/", json={"name": name, "category": category})
    assert response.status_code == 201
    return response.json()


class TestAssetCrud:
    """Tests for asset create/read/update/delete."""

    async def test_create_and_get(self, client: AsyncClient) -> None:
        created = await _create(client, "Savings Deposit", "fixed")

        assert created["name"] == "Savings Deposit"
        assert created["category"] == "fixed"
        assert created["ticker"] is None

        response = await client.get(f"/api/v1/assets/{created['id']}")
        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

    async def test_create_rejects_unknown_category(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/assets/", json={"name": "Mystery", "category": "collectible"}
        )

        assert response.status_code == 422

    async def test_list(self, client: AsyncClient, stock: Asset, deposit: Asset) -> None:
        response = await client.get("/api/v1/assets/")

        assert response.status_code == 200
        assert {a["name"] for a in response.json()} == {"Index ETF", "Term Deposit"}

    async def test_get_missing_asset(self, client: AsyncClient) -> None:
        response = await client.get(f"/api/v1/assets/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    async def test_partial_update(self, client: AsyncClient, stock: Asset) -> None:
        response = await client.put(
            f"/api/v1/assets/{stock.id}", json={"ticker": "IDX", "note": "core holding"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Index ETF"
        assert data["ticker"] == "IDX"
        assert data["note"] == "core holding"

    async def test_delete_unreferenced_asset(self, client: AsyncClient, gold: Asset) -> None:
        response = await client.delete(f"/api/v1/assets/{gold.id}")
        assert response.status_code == 204

        response = await client.get(f"/api/v1/assets/{gold.id}")
        assert response.status_code == 404

    async def test_delete_referenced_asset_conflicts(self, client: AsyncClient, stock: Asset) -> None:
        asset_id = stock.id
        saved = await client.post(
            "/api/v1/snapshots/",
            json={
                "date": "2024-01-31",
                "assets": [{"asset_id": str(asset_id), "unit_price": 10, "added_quantity": 1}],
            },
        )
        assert saved.status_code == 200

        response = await client.delete(f"/api/v1/assets/{asset_id}")

        assert response.status_code == 409
        assert response.json()["error_code"] == "CONFLICT"
        assert (await client.get(f"/api/v1/assets/{asset_id}")).status_code == 200


class TestAssetPricesAndHistory:
    """Tests for ad-hoc prices and per-asset history."""

    async def test_record_price(self, client: AsyncClient, stock: Asset) -> None:
        response = await client.put(
            f"/api/v1/assets/{stock.id}/price", json={"date": "2024-02-15", "price": 12.5}
        )

        assert response.status_code == 200
        assert response.json() == {"success": True}

    async def test_record_price_rejects_bad_date(self, client: AsyncClient, stock: Asset) -> None:
        response = await client.put(
            f"/api/v1/assets/{stock.id}/price", json={"date": "2024-02-30", "price": 12.5}
        )

        assert response.status_code == 422

    async def test_record_price_for_missing_asset(self, client: AsyncClient) -> None:
        response = await client.put(
            f"/api/v1/assets/{uuid.uuid4()}/price", json={"date": "2024-02-15", "price": 1}
        )

        assert response.status_code == 404

    async def test_history(self, client: AsyncClient, stock: Asset, deposit: Asset) -> None:
        for date, quantity, price in (("2024-01-31", 10, 10.0), ("2024-03-31", 5, 12.0)):
            response = await client.post(
                "/api/v1/snapshots/",
                json={
                    "date": date,
                    "assets": [
                        {
                            "asset_id": str(stock.id),
                            "unit_price": price,
                            "added_quantity": quantity,
                            "added_principal": quantity * price,
                        }
                    ],
                },
            )
            assert response.status_code == 200
        # a snapshot in between that only touches another asset
        response = await client.post(
            "/api/v1/snapshots/",
            json={
                "date": "2024-02-29",
                "assets": [{"asset_id": str(deposit.id), "added_quantity": 100, "added_principal": 100}],
            },
        )
        assert response.status_code == 200

        response = await client.get(f"/api/v1/assets/{stock.id}/history")

        assert response.status_code == 200
        history = response.json()
        assert [p["date"] for p in history] == ["2024-01-31", "2024-02-29", "2024-03-31"]
        assert [p["quantity"] for p in history] == [10, 10, 15]
        assert [p["added_quantity"] for p in history] == [10, 0, 5]
        assert history[1]["unit_price"] == 10.0
        assert history[2]["market_value"] == pytest.approx(15 * 12.0)
        assert history[2]["total_cost"] == pytest.approx(160)

    async def test_history_skips_dates_before_first_holding(
        self, client: AsyncClient, stock: Asset, deposit: Asset
    ) -> None:
        await client.post(
            "/api/v1/snapshots/",
            json={"date": "2024-01", "assets": [{"asset_id": str(deposit.id), "added_quantity": 1}]},
        )

        response = await client.get(f"/api/v1/assets/{stock.id}/history")

        assert response.status_code == 200
        assert response.json() == []
