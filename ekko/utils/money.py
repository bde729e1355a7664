"""Money helpers shared by the ledger and the read models."""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from ekko.models.project import BudgetType

CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Convert an amount to a two-decimal ``Decimal``; raise ``ValueError`` if invalid."""

    if isinstance(value, Decimal):
        d = value
    else:
        try:
            # str() avoids binary float artefacts
            d = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError) as e:
            raise ValueError(f"Invalid money amount: {value!r}") from e
    if not d.is_finite():
        raise ValueError(f"Invalid money amount: {value!r}")
    return d.quantize(CENT)


def contract_total(budget_type: BudgetType, agreed_rate: Any, milestone_amounts: Iterable[Any]) -> Decimal:
    """Displayed contract value: the milestone sum for MILESTONE orders, else the agreed rate."""

    if budget_type == BudgetType.MILESTONE:
        return sum((to_decimal(amount) for amount in milestone_amounts), Decimal("0.00"))
    return to_decimal(agreed_rate)


__all__ = ["CENT", "to_decimal", "contract_total"]
