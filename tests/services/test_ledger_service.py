"""Tests for point-in-time ledger reconstruction."""

import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.asset import Asset, AssetCategory
from app.models.market_price import MarketPrice
from app.models.transaction import Transaction
from app.repositories.market_price import MarketPriceRepository
from app.repositories.transaction import TransactionRepository
from app.services.ledger_service import (
    LedgerTimeline,
    default_price,
    holdings_at,
    load_timeline,
    portfolio_at,
    portfolio_totals,
    price_at,
    valuation_at,
)


def _tx(asset_id: uuid.UUID, date: str, quantity: float, cost: float) -> Transaction:
    return Transaction(
        id=uuid.uuid4(),
        asset_id=asset_id,
        date=date,
        quantity_change=quantity,
        cost_change=cost,
    )


def _price(asset_id: uuid.UUID, date: str, price: float) -> MarketPrice:
    return MarketPrice(id=uuid.uuid4(), asset_id=asset_id, date=date, price=price)


def _asset(name: str, category: AssetCategory) -> Asset:
    return Asset(id=uuid.uuid4(), name=name, category=category)


@pytest.mark.unit
class TestDefaultPrice:
    """Tests for the no-observation price fallback."""

    @pytest.mark.parametrize("category", [AssetCategory.FIXED, AssetCategory.WEALTH])
    def test_cash_like_defaults_to_face_value(self, category: AssetCategory) -> None:
        assert default_price(category) == 1.0

    @pytest.mark.parametrize(
        "category",
        [AssetCategory.SECURITY, AssetCategory.FUND, AssetCategory.GOLD, AssetCategory.CRYPTO],
    )
    def test_priced_assets_default_to_zero(self, category: AssetCategory) -> None:
        assert default_price(category) == 0.0

    def test_unknown_category_defaults_to_zero(self) -> None:
        assert default_price(None) == 0.0


@pytest.mark.unit
class TestLedgerTimeline:
    """Tests for the in-memory bulk reconstructor."""

    def test_holdings_are_cumulative_and_inclusive(self) -> None:
        stock = _asset("ETF", AssetCategory.SECURITY)
        timeline = LedgerTimeline(
            [
                _tx(stock.id, "2024-03-31", 5, 60),
                _tx(stock.id, "2024-01-31", 10, 100),
                _tx(stock.id, "2024-02-29", -2, -20),
            ],
            [],
            {stock.id: stock},
        )

        assert timeline.holdings_at(stock.id, "2024-01-30").quantity == 0
        assert timeline.holdings_at(stock.id, "2024-01-31").quantity == 10
        state = timeline.holdings_at(stock.id, "2024-03-31")
        assert state.quantity == pytest.approx(13)
        assert state.total_cost == pytest.approx(140)

    def test_sold_out_quantity_residue_is_exactly_zero(self) -> None:
        stock = _asset("ETF", AssetCategory.SECURITY)
        timeline = LedgerTimeline(
            [
                _tx(stock.id, "2024-01-31", 0.3, 3),
                _tx(stock.id, "2024-02-29", -0.1, -1),
                _tx(stock.id, "2024-03-31", -0.2, -2),
            ],
            [_price(stock.id, "2024-03-31", 10.0)],
            {stock.id: stock},
        )

        assert timeline.holdings_at(stock.id, "2024-03-31").quantity == 0.0
        assert timeline.valuation_at(stock.id, "2024-03-31").market_value == 0.0

    def test_holdings_are_additive_between_dates(self) -> None:
        stock = _asset("ETF", AssetCategory.SECURITY)
        txs = [
            _tx(stock.id, "2024-01-15", 3, 30),
            _tx(stock.id, "2024-02-15", 4, 41),
            _tx(stock.id, "2024-03-15", -1, -9),
            _tx(stock.id, "2024-04-15", 7, 80),
        ]
        timeline = LedgerTimeline(txs, [], {stock.id: stock})

        d1, d2 = "2024-02-01", "2024-04-01"
        between = [t for t in txs if d1 < t.date <= d2]
        delta_q = timeline.holdings_at(stock.id, d2).quantity - timeline.holdings_at(stock.id, d1).quantity
        delta_c = (
            timeline.holdings_at(stock.id, d2).total_cost
            - timeline.holdings_at(stock.id, d1).total_cost
        )
        assert delta_q == pytest.approx(sum(t.quantity_change for t in between))
        assert delta_c == pytest.approx(sum(t.cost_change for t in between))

    def test_price_is_carried_forward_never_backward(self) -> None:
        stock = _asset("ETF", AssetCategory.SECURITY)
        timeline = LedgerTimeline(
            [],
            [_price(stock.id, "2024-01-31", 10.0), _price(stock.id, "2024-03-31", 12.0)],
            {stock.id: stock},
        )

        assert timeline.price_at(stock.id, "2024-01-30") == 0.0
        assert timeline.price_at(stock.id, "2024-01-31") == 10.0
        assert timeline.price_at(stock.id, "2024-02-29") == 10.0
        assert timeline.price_at(stock.id, "2024-03-31") == 12.0
        assert timeline.price_at(stock.id, "2025-01-01") == 12.0

    def test_unpriced_cash_like_asset_is_worth_face_value(self) -> None:
        deposit = _asset("Deposit", AssetCategory.FIXED)
        timeline = LedgerTimeline([_tx(deposit.id, "2024-01", 100, 100)], [], {deposit.id: deposit})

        valuation = timeline.valuation_at(deposit.id, "2024-01")
        assert valuation.unit_price == 1.0
        assert valuation.market_value == 100.0

    def test_year_month_sorts_before_days_of_that_month(self) -> None:
        stock = _asset("ETF", AssetCategory.SECURITY)
        timeline = LedgerTimeline(
            [_tx(stock.id, "2024-03-15", 1, 10)],
            [_price(stock.id, "2024-03", 9.0)],
            {stock.id: stock},
        )

        # a mid-month transaction is not part of the month-level date
        assert timeline.holdings_at(stock.id, "2024-03").quantity == 0
        # a month-level price applies to every day of that month
        assert timeline.price_at(stock.id, "2024-03-15") == 9.0

    def test_missing_asset_row_uses_placeholder(self) -> None:
        ghost_id = uuid.uuid4()
        timeline = LedgerTimeline([_tx(ghost_id, "2024-01-31", 2, 20)], [], {})

        valuation = timeline.valuation_at(ghost_id, "2024-01-31")
        assert valuation.name == "Unknown"
        assert valuation.category == AssetCategory.OTHER
        assert valuation.unit_price == 0.0

    def test_portfolio_skips_sold_out_and_not_yet_bought(self) -> None:
        sold = _asset("Sold", AssetCategory.SECURITY)
        later = _asset("Later", AssetCategory.SECURITY)
        held = _asset("Held", AssetCategory.FUND)
        timeline = LedgerTimeline(
            [
                _tx(sold.id, "2024-01-31", 0.3, 3),
                _tx(sold.id, "2024-02-29", -0.1, -1),
                _tx(sold.id, "2024-02-29", -0.2, -2),
                _tx(later.id, "2024-06-30", 1, 1),
                _tx(held.id, "2024-01-31", 4, 40),
            ],
            [_price(held.id, "2024-01-31", 11.0)],
            {a.id: a for a in (sold, later, held)},
        )

        portfolio = timeline.portfolio_at("2024-03-31")
        assert [v.asset_id for v in portfolio] == [held.id]
        assert portfolio_totals(portfolio) == (pytest.approx(44.0), pytest.approx(40.0))


@pytest.mark.integration
class TestLedgerQueries:
    """Tests for the database-backed reconstruction helpers."""

    async def _seed(self, db: AsyncSession, stock: Asset, deposit: Asset) -> None:
        tx_repo = TransactionRepository(Transaction, db)
        price_repo = MarketPriceRepository(MarketPrice, db)
        await tx_repo.add_transaction(
            asset_id=stock.id, date="2024-01-31", quantity_change=10, cost_change=100
        )
        await tx_repo.add_transaction(
            asset_id=stock.id, date="2024-02-29", quantity_change=5, cost_change=55
        )
        await tx_repo.add_transaction(
            asset_id=deposit.id, date="2024-01-31", quantity_change=1000, cost_change=1000
        )
        await price_repo.upsert_price(asset_id=stock.id, date="2024-01-31", price=10.5)
        await price_repo.upsert_price(asset_id=stock.id, date="2024-03-31", price=12.0)
        await db.commit()

    async def test_holdings_and_price_at(
        self, test_db: AsyncSession, stock: Asset, deposit: Asset
    ) -> None:
        await self._seed(test_db, stock, deposit)

        state = await holdings_at(test_db, stock.id, "2024-02-29")
        assert state.quantity == pytest.approx(15)
        assert state.total_cost == pytest.approx(155)

        assert await price_at(test_db, stock.id, "2024-02-29") == 10.5
        assert await price_at(test_db, stock.id, "2023-12-31") == 0.0
        assert await price_at(test_db, deposit.id, "2024-02-29") == 1.0

    async def test_valuation_matches_timeline(
        self, test_db: AsyncSession, stock: Asset, deposit: Asset
    ) -> None:
        await self._seed(test_db, stock, deposit)

        single = await valuation_at(test_db, stock.id, "2024-03-31")
        timeline = await load_timeline(test_db)
        bulk = timeline.valuation_at(stock.id, "2024-03-31")

        assert single == bulk
        assert single.market_value == pytest.approx(15 * 12.0)

    async def test_portfolio_at_totals(
        self, test_db: AsyncSession, stock: Asset, deposit: Asset
    ) -> None:
        await self._seed(test_db, stock, deposit)

        portfolio = await portfolio_at(test_db, "2024-01-31")
        value, invested = portfolio_totals(portfolio)
        assert {v.asset_id for v in portfolio} == {stock.id, deposit.id}
        assert value == pytest.approx(10 * 10.5 + 1000)
        assert invested == pytest.approx(1100)

    async def test_unknown_asset_valuation_is_empty(self, test_db: AsyncSession) -> None:
        valuation = await valuation_at(test_db, uuid.uuid4(), "2024-01-31")
        assert valuation.name == "Unknown"
        assert valuation.quantity == 0
        assert valuation.market_value == 0
