"""Quantity arithmetic and ledger folds shared by every stock mutation path."""

from collections.abc import Iterable

from src.core.entities.inventory import (
    Condition,
    ConditionBreakdown,
    MovementType,
    StockMovement,
)


def apply_delta(current: int, quantity: int, movement_type: MovementType | str) -> int:
    """
    New on-hand quantity after a movement.

    There is no floor at zero: removing more than is on hand yields a
    negative quantity, which is how over-removal is surfaced.
    """
    if MovementType(movement_type) == MovementType.ADD:
        return current + quantity
    return current - quantity


def format_change(quantity: int, movement_type: MovementType | str) -> str:
    """Signed display string such as ``+5`` or ``-2``."""
    sign = "+" if MovementType(movement_type) == MovementType.ADD else "-"
    return f"{sign}{quantity}"


def condition_breakdown(
    movements: Iterable[StockMovement],
    default_condition: Condition = Condition.GOOD,
) -> ConditionBreakdown:
    """
    Fold an item's movements into per-condition stock.

    Movements without a condition count as ``default_condition``. Each
    bucket is clamped at zero after folding, for display.
    """
    totals = {condition: 0 for condition in Condition}
    for movement in movements:
        totals[movement.condition or default_condition] += movement.signed_quantity

    return ConditionBreakdown(
        **{condition.value: max(0, total) for condition, total in totals.items()}
    )


def ledger_balance(movements: Iterable[StockMovement]) -> int:
    """Net quantity implied by a movement history."""
    return sum(movement.signed_quantity for movement in movements)
