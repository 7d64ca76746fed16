"""Tests for snapshot endpoints."""

import uuid

import pytest
from httpx import AsyncClient

from app.models.asset import Asset

pytestmark = pytest.mark.integration


async def _save(client: AsyncClient, date: str, assets: list[dict], note: str | None = None):
    return await client.post(
        "/api/v1/snapshots/", json={"date": date, "assets": assets, "note": note}
    )


class TestSaveSnapshot:
    """Tests for POST /api/v1/snapshots/."""

    async def test_save_and_read_back(self, client: AsyncClient, stock: Asset, deposit: Asset) -> None:
        response = await _save(
            client,
            "2024-01-31",
            [
                {"asset_id": str(stock.id), "unit_price": 20, "added_quantity": 5, "added_principal": 90},
                {"asset_id": str(deposit.id), "added_quantity": 1000, "added_principal": 1000},
            ],
            note="first entry",
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True

        detail = await client.get(f"/api/v1/snapshots/{body['id']}")
        assert detail.status_code == 200
        data = detail.json()
        assert data["date"] == "2024-01-31"
        assert data["note"] == "first entry"
        assert data["total_value"] == pytest.approx(1100)
        assert data["total_invested"] == pytest.approx(1090)
        assets = {a["name"]: a for a in data["assets"]}
        assert assets["Index ETF"]["market_value"] == pytest.approx(100)
        assert assets["Index ETF"]["added_principal"] == pytest.approx(90)
        assert assets["Term Deposit"]["unit_price"] == 1.0
        assert assets["Term Deposit"]["category"] == "fixed"

    async def test_resave_keeps_the_same_id(self, client: AsyncClient, stock: Asset) -> None:
        payload = [{"asset_id": str(stock.id), "unit_price": 10, "added_quantity": 1}]

        first = (await _save(client, "2024-01", payload)).json()["id"]
        second = (await _save(client, "2024-01", payload)).json()["id"]

        assert first == second
        listing = (await client.get("/api/v1/snapshots/")).json()
        assert listing["total"] == 1
        assert listing["items"][0]["total_value"] == pytest.approx(10)

    async def test_unknown_asset_is_rejected(self, client: AsyncClient) -> None:
        response = await _save(client, "2024-01-31", [{"asset_id": str(uuid.uuid4()), "added_quantity": 1}])

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"
        assert (await client.get("/api/v1/snapshots/")).json()["total"] == 0

    @pytest.mark.parametrize("date", ["2024-13", "31/01/2024", "2024-02-30"])
    async def test_malformed_date_is_rejected(self, client: AsyncClient, date: str) -> None:
        response = await _save(client, date, [])

        assert response.status_code == 422

    async def test_negative_price_is_rejected(self, client: AsyncClient, stock: Asset) -> None:
        response = await _save(client, "2024-01-31", [{"asset_id": str(stock.id), "unit_price": -1}])

        assert response.status_code == 422


class TestSnapshotReads:
    """Tests for snapshot listing, details and previous lookup."""

    async def test_list_pagination(self, client: AsyncClient, deposit: Asset) -> None:
        for date in ("2024-01", "2024-02", "2024-03"):
            await _save(client, date, [{"asset_id": str(deposit.id), "added_quantity": 10}])

        response = await client.get("/api/v1/snapshots/", params={"page": 2, "limit": 2})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["page"] == 2
        assert data["limit"] == 2
        assert [s["date"] for s in data["items"]] == ["2024-01"]

    async def test_list_rejects_page_zero(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/snapshots/", params={"page": 0})

        assert response.status_code == 422

    async def test_missing_snapshot(self, client: AsyncClient) -> None:
        response = await client.get(f"/api/v1/snapshots/{uuid.uuid4()}")

        assert response.status_code == 404

    async def test_previous(self, client: AsyncClient, deposit: Asset) -> None:
        await _save(client, "2024-01", [{"asset_id": str(deposit.id), "added_quantity": 10}])

        response = await client.get("/api/v1/snapshots/previous", params={"date": "2024-02-29"})

        assert response.status_code == 200
        data = response.json()
        assert data["date"] == "2024-01"
        assert data["assets"][0]["quantity"] == pytest.approx(10)

    async def test_previous_without_earlier_snapshot(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/snapshots/previous", params={"date": "2024-02-29"})

        assert response.status_code == 200
        assert response.json() is None

    async def test_previous_rejects_bad_date(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/snapshots/previous", params={"date": "yesterday"})

        assert response.status_code == 400
        assert "date" in response.json()["detail"]


class TestRecalculate:
    """Tests for POST /api/v1/snapshots/recalculate."""

    async def test_rebuild_after_ad_hoc_price(self, client: AsyncClient, stock: Asset) -> None:
        saved = await _save(
            client,
            "2024-03-31",
            [{"asset_id": str(stock.id), "unit_price": 10, "added_quantity": 10, "added_principal": 100}],
        )
        snapshot_id = saved.json()["id"]
        await client.put(f"/api/v1/assets/{stock.id}/price", json={"date": "2024-03-31", "price": 11})

        # the price write already refreshed the header
        listed = (await client.get("/api/v1/snapshots/")).json()["items"][0]
        assert listed["total_value"] == pytest.approx(110)

        response = await client.post("/api/v1/snapshots/recalculate")

        assert response.status_code == 200
        assert response.json() == {"success": True, "count": 1}
        detail = (await client.get(f"/api/v1/snapshots/{snapshot_id}")).json()
        assert detail["total_value"] == pytest.approx(110)
