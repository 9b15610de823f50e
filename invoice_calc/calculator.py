"""Per-line totals derived from quantity, unit price, and tax-rate code."""
from __future__ import annotations

import logging

from .money import money_context, parse_tax_rate, round_money, to_decimal
from .schemas import LineItem, LineTotals, RawNumber

logger = logging.getLogger(__name__)


def compute_line_totals(quantity: RawNumber, unit_price: RawNumber, tax_rate_code: str | None) -> LineTotals:
    """Compute before-tax, tax, and after-tax totals for one line.

    Each product is rounded before it feeds the next step, so the tax is
    taken on the rounded before-tax total rather than the raw product.
    Unusable quantity or price input counts as 0.
    """
    rate = parse_tax_rate(tax_rate_code)
    with money_context():
        total_before_tax = round_money(to_decimal(quantity) * to_decimal(unit_price))
        tax_amount = round_money((total_before_tax * rate).scaleb(-2))
    return LineTotals(
        total_before_tax=total_before_tax,
        tax_amount=tax_amount,
        total_after_tax=total_before_tax + tax_amount,
    )


def apply_line_totals(line: LineItem, force: bool = False) -> LineItem:
    """Return ``line`` with freshly computed totals.

    A manually edited line is returned untouched unless ``force`` is set;
    only the recalculate-all path forces.
    """
    if line.manually_edited and not force:
        logger.debug("Skipping recompute for manually edited line %r", line.item_name)
        return line
    totals = compute_line_totals(line.quantity, line.unit_price_before_tax, line.tax_rate)
    return line.model_copy(update=totals.model_dump())
