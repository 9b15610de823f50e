"""Invoice-level totals summed from line totals."""
from __future__ import annotations

import logging
from typing import Iterable, Mapping, Union

from .money import round_money
from .schemas import Invoice, InvoiceTotals, LineItem, LineTotals

logger = logging.getLogger(__name__)

LineLike = Union[LineItem, LineTotals, Mapping[str, object]]


def _field(line: LineLike, name: str) -> int:
    if isinstance(line, Mapping):
        return round_money(line.get(name))
    return round_money(getattr(line, name, None))


def aggregate(lines: Iterable[LineLike]) -> InvoiceTotals:
    """Sum each total field across ``lines``; missing or non-numeric fields count as 0."""
    total_before_tax = 0
    total_tax = 0
    total_after_tax = 0
    for line in lines:
        total_before_tax += _field(line, "total_before_tax")
        total_tax += _field(line, "tax_amount")
        total_after_tax += _field(line, "total_after_tax")
    return InvoiceTotals(
        total_before_tax=total_before_tax,
        total_tax=total_tax,
        total_after_tax=total_after_tax,
    )


def apply_aggregate(invoice: Invoice) -> Invoice:
    """Return ``invoice`` with totals taken from its lines, unless they were typed by hand."""
    if invoice.totals_manually_edited:
        logger.debug("Keeping manual totals on invoice %s", invoice.display_id)
        return invoice
    return invoice.model_copy(update=aggregate(invoice.lines).model_dump())
