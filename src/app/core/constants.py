"""Application-wide constants and configuration values.

This module centralizes the magic numbers and lookup tables used by the
ledger reconstruction and reporting code, providing:
- Clear documentation of what each constant represents
- Single source of truth for thresholds, defaults and palettes
- Easy modification of behavior across the entire codebase

Constants are organized into logical groups for easy navigation and maintenance.
"""

from app.models.asset import AssetCategory


class LedgerConstants:
    """Constants for point-in-time ledger reconstruction."""

    # Cumulative quantities smaller than this are floating point noise left
    # over from buy/sell round trips and are treated as "not held".
    QUANTITY_EPSILON = 1e-6

    # Cash-like assets are worth their face value when no price was ever
    # observed; everything else is worth nothing until priced.
    CASH_LIKE_CATEGORIES = frozenset({AssetCategory.FIXED, AssetCategory.WEALTH})
    CASH_LIKE_DEFAULT_PRICE = 1.0
    MISSING_PRICE = 0.0

    # Placeholder metadata for transactions whose asset row is gone
    UNKNOWN_ASSET_NAME = "Unknown"
    UNKNOWN_ASSET_CATEGORY = AssetCategory.OTHER

    # Transaction type written by snapshot saves
    SNAPSHOT_TRANSACTION_TYPE = "adjustment"
    SNAPSHOT_PRICE_SOURCE = "manual"


class StrategyConstants:
    """Constants for strategy weights."""

    # A target weight of -1 means "take an even share of what is left"
    AUTO_WEIGHT = -1.0
    FULL_WEIGHT = 100.0


class AllocationConstants:
    """Category buckets and chart colors used by the reporting engine."""

    BUCKET_EQUITY = "equity-like"
    BUCKET_CASH = "cash-like"
    BUCKET_ALTERNATIVE = "alternative"
    BUCKET_OTHER = "other"

    # Unmapped categories always land in BUCKET_OTHER
    CATEGORY_BUCKETS: dict[AssetCategory, str] = {
        AssetCategory.SECURITY: BUCKET_EQUITY,
        AssetCategory.FUND: BUCKET_EQUITY,
        AssetCategory.FIXED: BUCKET_CASH,
        AssetCategory.WEALTH: BUCKET_CASH,
        AssetCategory.GOLD: BUCKET_ALTERNATIVE,
        AssetCategory.CRYPTO: BUCKET_ALTERNATIVE,
    }

    # Display order for attribution rows before sorting by value
    BUCKET_ORDER = (BUCKET_EQUITY, BUCKET_CASH, BUCKET_ALTERNATIVE, BUCKET_OTHER)

    BUCKET_COLORS: dict[str, str] = {
        BUCKET_EQUITY: "#3b82f6",
        BUCKET_ALTERNATIVE: "#f59e0b",
        BUCKET_CASH: "#64748b",
        BUCKET_OTHER: "#a855f7",
    }
    FALLBACK_COLOR = "#cbd5e1"

    LAYER_COLORS = ("#3b82f6", "#f59e0b", "#10b981", "#ef4444", "#8b5cf6", "#64748b")


class APIConstants:
    """Constants for API behavior, limits, and defaults."""

    DEFAULT_PAGE_SIZE = 20
    MAX_PAGE_SIZE = 1000


# ============================================================================
# MODULE-LEVEL EXPORTS
# ============================================================================

QUANTITY_EPSILON = LedgerConstants.QUANTITY_EPSILON
AUTO_WEIGHT = StrategyConstants.AUTO_WEIGHT
