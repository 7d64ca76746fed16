"""Reporting engine: metrics, allocation, trend and profit attribution.

Every report is computed from the ledger through one ``LedgerTimeline``
loaded per request, so a report never rescans the ledger once per
snapshot date. Reports can be viewed over the whole portfolio (``total``)
or over only the assets the strategy in force covers (``strategy``).
"""

import logging
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date as date_type

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import AllocationConstants
from app.db.session import read_only_transaction
from app.models.asset import AssetCategory
from app.models.snapshot import Snapshot
from app.models.strategy import StrategyLayer, StrategyTarget, StrategyVersion
from app.repositories.snapshot import SnapshotRepository
from app.schemas.dashboard import (
    PERIOD_LABELS,
    AllocationItem,
    AttributionItem,
    MetricsResponse,
    TimeRange,
    TrendPoint,
    ViewMode,
)
from app.schemas.ledger import AssetValuation
from app.services.ledger_service import LedgerTimeline, load_timeline, portfolio_totals
from app.services.strategy_service import (
    active_strategy_at,
    build_asset_map,
    find_layer,
    list_strategies,
    resolve_target_weights,
)
from app.utils.dates import one_year_before, year_month

logger = logging.getLogger(__name__)


@dataclass
class _ReportContext:
    """Everything one report reads, loaded in a single read-only pass."""

    snapshots: list[Snapshot]
    versions: list[StrategyVersion]
    timeline: LedgerTimeline


async def _load_context(db: AsyncSession) -> _ReportContext:
    async with read_only_transaction(db):
        snapshots = await SnapshotRepository(Snapshot, db).list_ordered()
        versions = await list_strategies(db)
        timeline = await load_timeline(db)
    return _ReportContext(snapshots=snapshots, versions=versions, timeline=timeline)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def category_bucket(category: AssetCategory | str) -> str:
    """Allocation bucket of an asset category; unmapped categories are ``other``."""
    try:
        category = AssetCategory(category)
    except ValueError:
        return AllocationConstants.BUCKET_OTHER
    return AllocationConstants.CATEGORY_BUCKETS.get(category, AllocationConstants.BUCKET_OTHER)


def bucket_color(bucket: str) -> str:
    return AllocationConstants.BUCKET_COLORS.get(bucket, AllocationConstants.FALLBACK_COLOR)


def layer_color(index: int) -> str:
    colors = AllocationConstants.LAYER_COLORS
    return colors[index % len(colors)]


def _percent(part: float, whole: float) -> float:
    return part / whole * 100 if whole > 0 else 0.0


def _totals_for(valuations: Iterable[AssetValuation], asset_ids: set[uuid.UUID]) -> tuple[float, float]:
    return portfolio_totals(v for v in valuations if v.asset_id in asset_ids)


def select_period(
    snapshots: Sequence[Snapshot],
    time_range: TimeRange,
    today: date_type | None = None,
) -> tuple[Snapshot | None, Snapshot | None]:
    """Pick the (start, end) snapshots a time range compares.

    ``end`` is always the latest snapshot. ``start`` is:

    - ``all``: None (compare against a zero baseline)
    - ``ytd``: the first snapshot of the current year, else the first
      snapshot overall; if that is the end snapshot itself, the one right
      before it
    - ``1y``: the first snapshot on or after the year-month one year ago,
      else the first snapshot overall

    Args:
        snapshots: Snapshot headers sorted by date ascending
        time_range: Comparison window
        today: Reference day (defaults to the current date)

    Returns:
        (start, end); both None when there are no snapshots
    """
    if not snapshots:
        return None, None

    today = today or date_type.today()
    end = snapshots[-1]

    if time_range == TimeRange.YTD:
        year = str(today.year)
        idx = next((i for i, s in enumerate(snapshots) if s.date.startswith(year)), 0)
        if snapshots[idx] is end and idx > 0:
            idx -= 1
        return snapshots[idx], end

    if time_range == TimeRange.ONE_YEAR:
        cutoff = year_month(one_year_before(today))
        start = next((s for s in snapshots if s.date >= cutoff), snapshots[0])
        return start, end

    return None, end


def _strategy_assets(
    versions: Sequence[StrategyVersion],
    date: str,
    layer_id: uuid.UUID | None = None,
) -> set[uuid.UUID]:
    """Asset ids the strategy in force at ``date`` covers.

    With ``layer_id`` only the assets of that layer's own targets count,
    even when another layer also lists them; a layer missing from the
    strategy in force at that date covers nothing.
    """
    strategy = active_strategy_at(versions, date)
    if layer_id is None:
        return set(build_asset_map(strategy))
    layer = find_layer(strategy, layer_id)
    if layer is None:
        return set()
    return {target.asset_id for target in layer.targets}


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


async def get_metrics(
    db: AsyncSession,
    view_mode: ViewMode = ViewMode.STRATEGY,
    time_range: TimeRange = TimeRange.ALL,
    today: date_type | None = None,
) -> MetricsResponse:
    """Headline value, invested capital and period profit.

    profit = (end value - end invested) - (start value - start invested)
    return_rate = profit / end invested * 100, or 0 when nothing is
    invested at the end.

    In strategy mode each side only counts the assets covered by the
    strategy in force at that side's own date.

    Example:
        >>> metrics = await get_metrics(db, ViewMode.TOTAL, TimeRange.YTD)
        >>> metrics.profit
        5.0
    """
    label = PERIOD_LABELS[time_range]
    context = await _load_context(db)
    start, end = select_period(context.snapshots, time_range, today)
    if end is None:
        return MetricsResponse(period_label=label)

    def side_totals(snapshot: Snapshot | None) -> tuple[float, float]:
        if snapshot is None:
            return 0.0, 0.0
        if view_mode == ViewMode.TOTAL:
            return snapshot.total_value, snapshot.total_invested
        portfolio = context.timeline.portfolio_at(snapshot.date)
        return _totals_for(portfolio, _strategy_assets(context.versions, snapshot.date))

    end_value, end_invested = side_totals(end)
    start_value, start_invested = side_totals(start)

    profit = (end_value - end_invested) - (start_value - start_invested)
    return_rate = profit / end_invested * 100 if end_invested > 0 else 0.0

    return MetricsResponse(
        end_value=end_value,
        end_invested=end_invested,
        profit=profit,
        return_rate=return_rate,
        period_label=label,
    )


# ---------------------------------------------------------------------------
# Allocation
# ---------------------------------------------------------------------------


def _category_allocation(portfolio: list[AssetValuation]) -> list[AllocationItem]:
    grouped: dict[str, float] = {}
    for valuation in portfolio:
        bucket = category_bucket(valuation.category)
        grouped[bucket] = grouped.get(bucket, 0.0) + valuation.market_value

    grand_total = sum(v.market_value for v in portfolio)
    items = [
        AllocationItem(
            name=bucket,
            value=value,
            percent=round(_percent(value, grand_total), 1),
            color=bucket_color(bucket),
        )
        for bucket, value in grouped.items()
    ]
    return sorted(items, key=lambda item: item.value, reverse=True)


def _layer_allocation(
    strategy: StrategyVersion,
    portfolio: list[AssetValuation],
) -> list[AllocationItem]:
    asset_map = build_asset_map(strategy)
    layer_values: dict[uuid.UUID, float] = {}
    strategy_total = 0.0
    for valuation in portfolio:
        mapping = asset_map.get(valuation.asset_id)
        if mapping is None:
            continue
        _, layer = mapping
        layer_values[layer.id] = layer_values.get(layer.id, 0.0) + valuation.market_value
        strategy_total += valuation.market_value

    items = []
    for idx, layer in enumerate(sorted(strategy.layers, key=lambda l: l.sort_order)):
        value = layer_values.get(layer.id, 0.0)
        actual = _percent(value, strategy_total)
        items.append(
            AllocationItem(
                id=layer.id,
                name=layer.name,
                value=value,
                percent=round(actual, 1),
                target_percent=layer.weight,
                color=layer_color(idx),
                deviation=actual - layer.weight,
                is_layer=True,
            )
        )
    return sorted(items, key=lambda item: item.target_percent, reverse=True)


def _target_allocation(layer: StrategyLayer, portfolio: list[AssetValuation]) -> list[AllocationItem]:
    values = {v.asset_id: v.market_value for v in portfolio}
    targets: list[StrategyTarget] = sorted(layer.targets, key=lambda t: t.sort_order)
    weights = resolve_target_weights(layer)
    layer_total = sum(values.get(t.asset_id, 0.0) for t in targets)

    items = []
    for target in targets:
        value = values.get(target.asset_id, 0.0)
        actual = _percent(value, layer_total)
        target_weight = weights[target.id]
        items.append(
            AllocationItem(
                id=target.id,
                name=target.display_name,
                value=value,
                percent=round(actual, 1),
                target_percent=round(target_weight, 1),
                color=target.color or AllocationConstants.FALLBACK_COLOR,
                deviation=actual - target_weight,
                is_layer=False,
            )
        )
    return sorted(items, key=lambda item: item.value, reverse=True)


async def get_allocation(
    db: AsyncSession,
    view_mode: ViewMode = ViewMode.STRATEGY,
    layer_id: uuid.UUID | None = None,
) -> list[AllocationItem]:
    """Current allocation as of the latest snapshot.

    - total mode: one slice per category bucket, by value descending
    - strategy mode: one slice per layer of the strategy in force, with
      its target weight and deviation, by target weight descending
    - strategy mode with ``layer_id``: one slice per target of that layer,
      percent within the layer, by value descending

    Returns an empty list when there are no snapshots, no strategy, or the
    layer is not part of the strategy in force.
    """
    context = await _load_context(db)
    if not context.snapshots:
        return []

    latest = context.snapshots[-1]
    portfolio = context.timeline.portfolio_at(latest.date)

    if view_mode == ViewMode.TOTAL:
        return _category_allocation(portfolio)

    strategy = active_strategy_at(context.versions, latest.date)
    if strategy is None:
        return []

    if layer_id is None:
        return _layer_allocation(strategy, portfolio)

    layer = find_layer(strategy, layer_id)
    if layer is None:
        return []
    return _target_allocation(layer, portfolio)


# ---------------------------------------------------------------------------
# Trend
# ---------------------------------------------------------------------------


async def get_trend(
    db: AsyncSession,
    view_mode: ViewMode = ViewMode.STRATEGY,
    layer_id: uuid.UUID | None = None,
    start_date: str | None = None,
) -> list[TrendPoint]:
    """Value and invested capital at every snapshot date, oldest first.

    In strategy mode each point is filtered by the strategy in force at
    that point's own date (and by ``layer_id`` within it, when given).

    Args:
        db: Database session
        view_mode: Whole portfolio or strategy-covered assets only
        layer_id: Narrow strategy mode to one layer
        start_date: Drop points dated before this
    """
    context = await _load_context(db)

    points = []
    for snapshot in context.snapshots:
        if start_date is not None and snapshot.date < start_date:
            continue

        portfolio = context.timeline.portfolio_at(snapshot.date)
        if view_mode == ViewMode.TOTAL:
            value, invested = portfolio_totals(portfolio)
        else:
            covered = _strategy_assets(context.versions, snapshot.date, layer_id)
            value, invested = _totals_for(portfolio, covered)
        points.append(TrendPoint(date=snapshot.date, value=value, invested=invested))

    logger.debug(f"Built trend with {len(points)} point(s) ({view_mode.value})")
    return points


# ---------------------------------------------------------------------------
# Attribution
# ---------------------------------------------------------------------------


def _attribution_item(
    key: str,
    name: str,
    color: str,
    end: tuple[float, float],
    start: tuple[float, float],
) -> AttributionItem:
    end_value, end_cost = end
    start_value, start_cost = start
    return AttributionItem(
        id=key,
        name=name,
        color=color,
        end_val=end_value,
        end_cost=end_cost,
        change_val=end_value - start_value,
        change_input=end_cost - start_cost,
        profit=(end_value - end_cost) - (start_value - start_cost),
    )


def _bucket_totals(portfolio: Iterable[AssetValuation]) -> dict[str, tuple[float, float]]:
    totals = {bucket: (0.0, 0.0) for bucket in AllocationConstants.BUCKET_ORDER}
    for valuation in portfolio:
        bucket = category_bucket(valuation.category)
        value, cost = totals[bucket]
        totals[bucket] = (value + valuation.market_value, cost + valuation.total_cost)
    return totals


async def get_attribution(
    db: AsyncSession,
    view_mode: ViewMode = ViewMode.STRATEGY,
    time_range: TimeRange = TimeRange.ALL,
    layer_id: uuid.UUID | None = None,
    today: date_type | None = None,
) -> list[AttributionItem]:
    """Break the period's change down by category bucket, layer or target.

    Uses the same start/end snapshots as ``get_metrics``. Strategy mode
    groups both sides by the strategy in force at the end date.

    Total mode leaves out buckets with no end value, no value change and no
    profit, and sorts by end value descending. Layer rows keep the
    strategy's layer order; target rows are sorted by end value descending.
    """
    context = await _load_context(db)
    start, end = select_period(context.snapshots, time_range, today)
    if end is None:
        return []

    end_portfolio = context.timeline.portfolio_at(end.date)
    start_portfolio = context.timeline.portfolio_at(start.date) if start is not None else []

    if view_mode == ViewMode.TOTAL:
        end_totals = _bucket_totals(end_portfolio)
        start_totals = _bucket_totals(start_portfolio)
        items = [
            _attribution_item(
                bucket, bucket, bucket_color(bucket), end_totals[bucket], start_totals[bucket]
            )
            for bucket in AllocationConstants.BUCKET_ORDER
        ]
        items = [
            item
            for item in items
            if item.end_val > 0 or abs(item.change_val) > 0 or abs(item.profit) > 0
        ]
        return sorted(items, key=lambda item: item.end_val, reverse=True)

    strategy = active_strategy_at(context.versions, end.date)
    if strategy is None:
        return []

    if layer_id is not None:
        layer = find_layer(strategy, layer_id)
        if layer is None:
            return []
        items = []
        for target in sorted(layer.targets, key=lambda t: t.sort_order):
            asset_ids = {target.asset_id}
            items.append(
                _attribution_item(
                    str(target.id),
                    target.display_name,
                    target.color or AllocationConstants.FALLBACK_COLOR,
                    _totals_for(end_portfolio, asset_ids),
                    _totals_for(start_portfolio, asset_ids),
                )
            )
        return sorted(items, key=lambda item: item.end_val, reverse=True)

    items = []
    for idx, layer in enumerate(sorted(strategy.layers, key=lambda l: l.sort_order)):
        asset_ids = {target.asset_id for target in layer.targets}
        items.append(
            _attribution_item(
                str(layer.id),
                layer.name,
                layer_color(idx),
                _totals_for(end_portfolio, asset_ids),
                _totals_for(start_portfolio, asset_ids),
            )
        )
    return items
