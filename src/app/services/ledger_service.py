"""Point-in-time reconstruction of holdings and valuations from the ledger.

Holdings are never stored. Quantity and cost of an asset at a date are the
sum of every transaction dated on or before it, and its unit price is the
most recent observation at or before it (last value carried forward).
Cash-like assets that were never priced are worth face value.

Two access paths are provided:

- Single-asset helpers (``holdings_at``, ``price_at``, ``valuation_at``) that
  push the aggregation down to the database.
- ``LedgerTimeline``, a pre-grouped, date-sorted in-memory view used for
  bulk reconstruction. It keeps per-asset cumulative sums and answers every
  point with a binary search, so building a trend line over N snapshot
  dates does not rescan the ledger N times.
"""

import logging
import uuid
from bisect import bisect_right
from collections.abc import Iterable, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import LedgerConstants
from app.models.asset import Asset, AssetCategory
from app.models.market_price import MarketPrice
from app.models.transaction import Transaction
from app.repositories.asset import AssetRepository
from app.repositories.market_price import MarketPriceRepository
from app.repositories.transaction import TransactionRepository
from app.schemas.ledger import AssetValuation, HoldingState

logger = logging.getLogger(__name__)


def default_price(category: AssetCategory | None) -> float:
    """Price to use when an asset has no observation at or before a date."""
    if category in LedgerConstants.CASH_LIKE_CATEGORIES:
        return LedgerConstants.CASH_LIKE_DEFAULT_PRICE
    return LedgerConstants.MISSING_PRICE


def is_zero_quantity(quantity: float) -> bool:
    """Whether a reconstructed quantity is floating point noise."""
    return abs(quantity) < LedgerConstants.QUANTITY_EPSILON


def clamp_quantity(quantity: float) -> float:
    """Snap floating point noise around zero to exactly 0."""
    return 0.0 if is_zero_quantity(quantity) else quantity


def asset_metadata(
    assets: Mapping[uuid.UUID, Asset],
    asset_id: uuid.UUID,
) -> tuple[str, AssetCategory]:
    """Name and category of an asset, with a placeholder for missing rows."""
    asset = assets.get(asset_id)
    if asset is None:
        return LedgerConstants.UNKNOWN_ASSET_NAME, LedgerConstants.UNKNOWN_ASSET_CATEGORY
    return asset.name, asset.category


class LedgerTimeline:
    """Date-sorted, per-asset index over transactions and prices.

    Built once from raw ledger rows, then queried for any number of dates.
    Dates are compared as strings, so ``YYYY-MM`` and ``YYYY-MM-DD`` entries
    can be mixed.

    Example:
        >>> timeline = LedgerTimeline(transactions, prices, assets)
        >>> for snapshot in snapshots:
        ...     holdings = timeline.portfolio_at(snapshot.date)
    """

    def __init__(
        self,
        transactions: Iterable[Transaction],
        prices: Iterable[MarketPrice],
        assets: Mapping[uuid.UUID, Asset] | None = None,
    ) -> None:
        self._assets: dict[uuid.UUID, Asset] = dict(assets or {})

        # asset_id -> parallel lists (dates ascending, running totals)
        self._tx_dates: dict[uuid.UUID, list[str]] = {}
        self._cum_quantity: dict[uuid.UUID, list[float]] = {}
        self._cum_cost: dict[uuid.UUID, list[float]] = {}

        for tx in sorted(transactions, key=lambda t: t.date):
            dates = self._tx_dates.setdefault(tx.asset_id, [])
            quantities = self._cum_quantity.setdefault(tx.asset_id, [])
            costs = self._cum_cost.setdefault(tx.asset_id, [])

            previous_quantity = quantities[-1] if quantities else 0.0
            previous_cost = costs[-1] if costs else 0.0
            dates.append(tx.date)
            quantities.append(previous_quantity + (tx.quantity_change or 0.0))
            costs.append(previous_cost + (tx.cost_change or 0.0))

        self._price_dates: dict[uuid.UUID, list[str]] = {}
        self._price_values: dict[uuid.UUID, list[float]] = {}

        for row in sorted(prices, key=lambda p: p.date):
            self._price_dates.setdefault(row.asset_id, []).append(row.date)
            self._price_values.setdefault(row.asset_id, []).append(row.price)

    @property
    def asset_ids(self) -> list[uuid.UUID]:
        """Assets with at least one transaction, in order of first activity."""
        return list(self._tx_dates)

    def category_of(self, asset_id: uuid.UUID) -> AssetCategory:
        """Category of an asset, ``other`` when the asset row is missing."""
        return asset_metadata(self._assets, asset_id)[1]

    def holdings_at(self, asset_id: uuid.UUID, date: str) -> HoldingState:
        """Cumulative quantity and cost of an asset as of ``date`` (inclusive).

        Quantities within epsilon of zero are reported as exactly 0.
        """
        dates = self._tx_dates.get(asset_id)
        if not dates:
            return HoldingState()

        idx = bisect_right(dates, date)
        if idx == 0:
            return HoldingState()
        return HoldingState(
            quantity=clamp_quantity(self._cum_quantity[asset_id][idx - 1]),
            total_cost=self._cum_cost[asset_id][idx - 1],
        )

    def price_at(
        self,
        asset_id: uuid.UUID,
        date: str,
        category: AssetCategory | None = None,
    ) -> float:
        """Most recent observed price at or before ``date``.

        Never returns a price dated after ``date``. Falls back to the
        category default when the asset was never priced up to that date.
        """
        dates = self._price_dates.get(asset_id)
        if dates:
            idx = bisect_right(dates, date)
            if idx > 0:
                return self._price_values[asset_id][idx - 1]

        if category is None:
            category = self.category_of(asset_id)
        return default_price(category)

    def valuation_at(self, asset_id: uuid.UUID, date: str) -> AssetValuation:
        """Holdings and price of one asset combined into a valuation."""
        name, category = asset_metadata(self._assets, asset_id)
        holding = self.holdings_at(asset_id, date)
        unit_price = self.price_at(asset_id, date, category)
        return AssetValuation(
            asset_id=asset_id,
            name=name,
            category=category,
            quantity=holding.quantity,
            unit_price=unit_price,
            market_value=holding.quantity * unit_price,
            total_cost=holding.total_cost,
        )

    def portfolio_at(self, date: str) -> list[AssetValuation]:
        """Valuation of every asset still held at ``date``.

        Assets whose reconstructed quantity is ~0 (never bought yet, or sold
        out) are skipped.
        """
        portfolio = []
        for asset_id in self._tx_dates:
            holding = self.holdings_at(asset_id, date)
            if is_zero_quantity(holding.quantity):
                continue
            portfolio.append(self.valuation_at(asset_id, date))
        return portfolio


def portfolio_totals(valuations: Iterable[AssetValuation]) -> tuple[float, float]:
    """Sum market value and total cost of a set of valuations.

    Returns:
        (total_value, total_invested)
    """
    total_value = 0.0
    total_invested = 0.0
    for valuation in valuations:
        total_value += valuation.market_value
        total_invested += valuation.total_cost
    return total_value, total_invested


async def load_timeline(db: AsyncSession, max_date: str | None = None) -> LedgerTimeline:
    """Load the ledger (optionally only up to ``max_date``) into a timeline.

    Three queries in total regardless of how many assets or dates are
    reconstructed from the result.

    Args:
        db: Database session
        max_date: Skip rows dated after this date

    Returns:
        LedgerTimeline over all transactions, prices and assets
    """
    tx_repo = TransactionRepository(Transaction, db)
    price_repo = MarketPriceRepository(MarketPrice, db)
    asset_repo = AssetRepository(Asset, db)

    transactions = await tx_repo.list_transactions(max_date=max_date)
    prices = await price_repo.list_prices(max_date=max_date)
    assets = await asset_repo.get_map()

    logger.debug(
        f"Loaded ledger timeline up to {max_date or 'latest'}: "
        f"{len(transactions)} transactions, {len(prices)} prices"
    )
    return LedgerTimeline(transactions, prices, assets)


async def holdings_at(db: AsyncSession, asset_id: uuid.UUID, date: str) -> HoldingState:
    """Cumulative quantity and cost of one asset as of ``date``.

    Example:
        >>> state = await holdings_at(db, asset.id, "2024-03-31")
        >>> state.quantity, state.total_cost
        (150.0, 1520.0)
    """
    repo = TransactionRepository(Transaction, db)
    return await repo.sum_holdings(asset_id, date)


async def price_at(
    db: AsyncSession,
    asset_id: uuid.UUID,
    date: str,
    category: AssetCategory | None = None,
) -> float:
    """Last-value-carried-forward price of one asset at ``date``.

    Args:
        db: Database session
        asset_id: Asset to price
        date: Inclusive cutoff date
        category: Category hint for the no-observation default; looked up
            from the asset row when omitted

    Returns:
        Latest observed price, else 1.0 for cash-like assets, else 0.0
    """
    repo = MarketPriceRepository(MarketPrice, db)
    latest = await repo.get_latest_on_or_before(asset_id, date)
    if latest is not None:
        return latest.price

    if category is None:
        asset = await AssetRepository(Asset, db).get(asset_id)
        category = asset.category if asset is not None else LedgerConstants.UNKNOWN_ASSET_CATEGORY
    return default_price(category)


async def valuation_at(db: AsyncSession, asset_id: uuid.UUID, date: str) -> AssetValuation:
    """Quantity, price, market value and cost of one asset at ``date``."""
    asset = await AssetRepository(Asset, db).get(asset_id)
    if asset is None:
        name, category = LedgerConstants.UNKNOWN_ASSET_NAME, LedgerConstants.UNKNOWN_ASSET_CATEGORY
    else:
        name, category = asset.name, asset.category

    holding = await holdings_at(db, asset_id, date)
    unit_price = await price_at(db, asset_id, date, category)
    return AssetValuation(
        asset_id=asset_id,
        name=name,
        category=category,
        quantity=holding.quantity,
        unit_price=unit_price,
        market_value=holding.quantity * unit_price,
        total_cost=holding.total_cost,
    )


async def portfolio_at(db: AsyncSession, date: str) -> list[AssetValuation]:
    """Reconstruct every held asset as of ``date``.

    Example:
        >>> portfolio = await portfolio_at(db, "2024-06")
        >>> total_value, total_invested = portfolio_totals(portfolio)
    """
    timeline = await load_timeline(db, max_date=date)
    return timeline.portfolio_at(date)
