"""Manual-override tracking for line and invoice totals.

Both a line and the invoice carry a single coarse flag. Typing into any one of
the three total fields switches the whole group to ``MANUAL``; from then on
automatic recomputation leaves all three alone. Editing quantity, price, or
tax rate never changes the state. The only way back to ``AUTO`` is
:func:`invoice_calc.recalculate.recalculate_all`.
"""
from __future__ import annotations

import logging

from .money import round_money
from .schemas import Invoice, LineItem, OverrideState

logger = logging.getLogger(__name__)

LINE_TOTAL_FIELDS = ("total_before_tax", "tax_amount", "total_after_tax")
LINE_INPUT_FIELDS = ("quantity", "unit_price_before_tax", "tax_rate")
LINE_DETAIL_FIELDS = ("category", "item_name", "unit", "inventory_id", "supplier_id")
INVOICE_TOTAL_FIELDS = ("total_before_tax", "total_tax", "total_after_tax")

__all__ = [
    "INVOICE_TOTAL_FIELDS",
    "LINE_DETAIL_FIELDS",
    "LINE_INPUT_FIELDS",
    "LINE_TOTAL_FIELDS",
    "OverrideState",
    "edit_invoice_total",
    "edit_line_total",
    "reset_invoice",
    "reset_line",
]


def edit_line_total(line: LineItem, field: str, value: object) -> LineItem:
    """Store a hand-typed line total and lock the line."""
    if field not in LINE_TOTAL_FIELDS:
        raise ValueError(f"{field!r} is not a line total field")
    if not line.manually_edited:
        logger.debug("Line %r switched to manual totals via %s", line.item_name, field)
    return line.model_copy(update={field: round_money(value), "manually_edited": True})


def edit_invoice_total(invoice: Invoice, field: str, value: object) -> Invoice:
    """Store a hand-typed invoice total and lock the invoice totals."""
    if field not in INVOICE_TOTAL_FIELDS:
        raise ValueError(f"{field!r} is not an invoice total field")
    if not invoice.totals_manually_edited:
        logger.debug("Invoice %s switched to manual totals via %s", invoice.display_id, field)
    return invoice.model_copy(update={field: round_money(value), "totals_manually_edited": True})


def reset_line(line: LineItem) -> LineItem:
    return line.model_copy(update={"manually_edited": False})


def reset_invoice(invoice: Invoice) -> Invoice:
    return invoice.model_copy(update={"totals_manually_edited": False})
