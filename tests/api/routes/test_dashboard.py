"""Tests for dashboard reporting endpoints.

Seeded portfolio: Index ETF 10 units (cost 100) priced 10 then 12, and a
term deposit of 500 growing to 600. The strategy covers only the ETF.
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient

from app.models.asset import Asset

pytestmark = pytest.mark.integration


@pytest_asyncio.fixture
async def strategy_layer_id(client: AsyncClient, stock: Asset, deposit: Asset) -> str:
    for payload in (
        {
            "date": "2024-01-31",
            "assets": [
                {"asset_id": str(stock.id), "unit_price": 10, "added_quantity": 10, "added_principal": 100},
                {"asset_id": str(deposit.id), "added_quantity": 500, "added_principal": 500},
            ],
        },
        {
            "date": "2024-02-29",
            "assets": [
                {"asset_id": str(stock.id), "unit_price": 12},
                {"asset_id": str(deposit.id), "added_quantity": 100, "added_principal": 100},
            ],
        },
    ):
        response = await client.post("/api/v1/snapshots/", json=payload)
        assert response.status_code == 200

    response = await client.post(
        "/api/v1/strategies/",
        json={
            "name": "Equity only",
            "start_date": "2024-01-01",
            "layers": [
                {"name": "Equity", "weight": 100, "targets": [{"asset_id": str(stock.id), "weight": 100}]}
            ],
        },
    )
    assert response.status_code == 201
    return response.json()["layers"][0]["id"]


async def test_empty_portfolio(client: AsyncClient) -> None:
    """Test that every report answers with empty defaults before any snapshot."""
    metrics = await client.get("/api/v1/dashboard/metrics")
    assert metrics.status_code == 200
    assert metrics.json() == {
        "end_value": 0.0,
        "end_invested": 0.0,
        "profit": 0.0,
        "return_rate": 0.0,
        "period_label": "All time",
    }
    for path in ("allocation", "trend", "breakdown"):
        response = await client.get(f"/api/v1/dashboard/{path}")
        assert response.status_code == 200
        assert response.json() == []


class TestMetrics:
    """Tests for GET /api/v1/dashboard/metrics."""

    async def test_total_view(self, client: AsyncClient, strategy_layer_id: str) -> None:
        response = await client.get(
            "/api/v1/dashboard/metrics", params={"view_mode": "total", "time_range": "all"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["end_value"] == pytest.approx(720)
        assert data["end_invested"] == pytest.approx(700)
        assert data["profit"] == pytest.approx(20)
        assert data["return_rate"] == pytest.approx(20 / 700 * 100)

    async def test_defaults_to_strategy_view(self, client: AsyncClient, strategy_layer_id: str) -> None:
        data = (await client.get("/api/v1/dashboard/metrics")).json()

        assert data["end_value"] == pytest.approx(120)
        assert data["end_invested"] == pytest.approx(100)
        assert data["return_rate"] == pytest.approx(20)

    async def test_unknown_view_mode(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/dashboard/metrics", params={"view_mode": "family"})

        assert response.status_code == 422


class TestAllocation:
    """Tests for GET /api/v1/dashboard/allocation."""

    async def test_by_category(self, client: AsyncClient, strategy_layer_id: str) -> None:
        response = await client.get("/api/v1/dashboard/allocation", params={"view_mode": "total"})

        items = response.json()
        assert [(i["name"], i["percent"]) for i in items] == [
            ("cash-like", 83.3),
            ("equity-like", 16.7),
        ]
        assert items[0]["target_percent"] is None

    async def test_by_layer(self, client: AsyncClient, strategy_layer_id: str) -> None:
        [layer] = (await client.get("/api/v1/dashboard/allocation")).json()

        assert layer["id"] == strategy_layer_id
        assert layer["value"] == pytest.approx(120)
        assert layer["percent"] == 100.0
        assert layer["target_percent"] == 100
        assert layer["deviation"] == pytest.approx(0)
        assert layer["is_layer"] is True

    async def test_by_target(self, client: AsyncClient, strategy_layer_id: str) -> None:
        response = await client.get(
            "/api/v1/dashboard/allocation", params={"layer_id": strategy_layer_id}
        )

        [target] = response.json()
        assert target["name"] == "Index ETF"
        assert target["percent"] == 100.0
        assert target["is_layer"] is False


class TestTrend:
    """Tests for GET /api/v1/dashboard/trend."""

    async def test_total_and_strategy_series(self, client: AsyncClient, strategy_layer_id: str) -> None:
        total = (await client.get("/api/v1/dashboard/trend", params={"view_mode": "total"})).json()
        strategy = (await client.get("/api/v1/dashboard/trend")).json()

        assert [(p["date"], p["value"], p["invested"]) for p in total] == [
            ("2024-01-31", 600, 600),
            ("2024-02-29", 720, 700),
        ]
        assert [(p["value"], p["invested"]) for p in strategy] == [(100, 100), (120, 100)]

    async def test_start_date(self, client: AsyncClient, strategy_layer_id: str) -> None:
        response = await client.get("/api/v1/dashboard/trend", params={"start_date": "2024-02"})

        assert [p["date"] for p in response.json()] == ["2024-02-29"]

    async def test_bad_start_date(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/dashboard/trend", params={"start_date": "Feb 2024"})

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"


class TestBreakdown:
    """Tests for GET /api/v1/dashboard/breakdown."""

    async def test_by_category(self, client: AsyncClient, strategy_layer_id: str) -> None:
        response = await client.get("/api/v1/dashboard/breakdown", params={"view_mode": "total"})

        items = response.json()
        assert [i["id"] for i in items] == ["cash-like", "equity-like"]
        equity = items[1]
        assert equity["end_val"] == pytest.approx(120)
        assert equity["end_cost"] == pytest.approx(100)
        assert equity["profit"] == pytest.approx(20)

    async def test_by_layer(self, client: AsyncClient, strategy_layer_id: str) -> None:
        [layer] = (await client.get("/api/v1/dashboard/breakdown")).json()

        assert layer["id"] == strategy_layer_id
        assert layer["name"] == "Equity"
        assert layer["change_input"] == pytest.approx(100)
        assert layer["profit"] == pytest.approx(20)
