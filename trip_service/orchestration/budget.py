"""Budget aggregation over itinerary items.

Category buckets are exact literal matches on the item category. An item
whose category is not one of the five known values still counts toward the
estimated cost but toward no bucket, so bucket totals can under-sum.
"""

from collections.abc import Iterable
from decimal import Decimal

from trip_service.db.repositories import ItineraryItemRecord
from trip_service.models.common import ItemCategory
from trip_service.models.trip import BudgetSummary, CategoryBreakdown

# Breakdown field <- item category
CATEGORY_BUCKETS: dict[str, ItemCategory] = {
    "transport": ItemCategory.transport,
    "accommodation": ItemCategory.hotel,
    "food": ItemCategory.restaurant,
    "attractions": ItemCategory.attraction,
    "other": ItemCategory.other,
}


def estimated_cost(items: Iterable[ItineraryItemRecord]) -> Decimal:
    """Sum of all item costs."""
    return sum((item.estimated_cost for item in items), Decimal("0"))


def category_total(items: Iterable[ItineraryItemRecord], category: ItemCategory) -> Decimal:
    """Sum of costs of items whose category exactly matches."""
    return sum(
        (item.estimated_cost for item in items if item.category == category.value),
        Decimal("0"),
    )


def recompute(budget: Decimal, items: list[ItineraryItemRecord]) -> BudgetSummary:
    """Budget summary with a breakdown recomputed from item categories.

    Args:
        budget: Trip total budget
        items: Stored itinerary items

    Returns:
        BudgetSummary; remaining may be negative
    """
    estimated = estimated_cost(items)
    breakdown = CategoryBreakdown(
        **{field: category_total(items, category) for field, category in CATEGORY_BUCKETS.items()}
    )
    return BudgetSummary(
        total_budget=budget,
        estimated_cost=estimated,
        remaining=budget - estimated,
        breakdown=breakdown,
    )


def from_declared(budget: Decimal, breakdown: CategoryBreakdown) -> BudgetSummary:
    """Generation-time summary from the LLM's declared breakdown.

    The estimated cost is the sum of the five declared categories, which is
    not necessarily equal to the sum of the item costs.
    """
    estimated = breakdown.total()
    return BudgetSummary(
        total_budget=budget,
        estimated_cost=estimated,
        remaining=budget - estimated,
        breakdown=breakdown,
    )


def summarize(budget: Decimal, items: list[ItineraryItemRecord]) -> BudgetSummary:
    """Lightweight summary for listings: totals only, no breakdown."""
    estimated = estimated_cost(items)
    return BudgetSummary(total_budget=budget, estimated_cost=estimated, remaining=budget - estimated)
