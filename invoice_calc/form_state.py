"""Single form-state object for an invoice being edited.

The host form forwards every raw edit as a :class:`FieldChange`; the reducer
routes it to the calculator, the override tracker, and the aggregator and
keeps the resulting :class:`Invoice`. Nothing here knows about rendering.
"""
from __future__ import annotations

import logging
from typing import Optional

from .aggregator import apply_aggregate
from .calculator import apply_line_totals
from .overrides import (
    INVOICE_TOTAL_FIELDS,
    LINE_DETAIL_FIELDS,
    LINE_INPUT_FIELDS,
    LINE_TOTAL_FIELDS,
    edit_invoice_total,
    edit_line_total,
)
from .recalculate import recalculate_all
from .schemas import FieldChange, Invoice, LineItem, RawNumber

logger = logging.getLogger(__name__)

INVOICE_HEADER_FIELDS = ("invoice_number", "invoice_date", "invoice_type", "counterparty_name", "description")
_ID_FIELDS = ("inventory_id", "supplier_id")


class FormStateError(ValueError):
    """Raised for edits the form could never legitimately send (unknown field, bad row)."""


def _as_text(value: RawNumber) -> Optional[str]:
    return None if value is None else str(value)


def _parse_id(value: RawNumber) -> Optional[int]:
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if value is None or not value.strip().isdigit():
        return None
    return int(value)


class InvoiceForm:
    def __init__(self, invoice: Optional[Invoice] = None) -> None:
        self.invoice = invoice if invoice is not None else Invoice()

    # Public API
    def apply_change(self, change: FieldChange) -> Invoice:
        if change.line_index is None:
            self.invoice = self._apply_invoice_change(change.field, change.value)
        else:
            self.invoice = self._apply_line_change(change.line_index, change.field, change.value)
        return self.invoice

    def add_line(self, **fields: object) -> Invoice:
        """Append a new row: goods category, 10% tax, zero totals, automatic."""
        line = apply_line_totals(LineItem.model_validate(fields))
        lines = [*self.invoice.lines, line]
        self.invoice = apply_aggregate(self.invoice.model_copy(update={"lines": lines}))
        return self.invoice

    def remove_line(self, index: int) -> Invoice:
        self._check_index(index)
        lines = [line for i, line in enumerate(self.invoice.lines) if i != index]
        self.invoice = apply_aggregate(self.invoice.model_copy(update={"lines": lines}))
        return self.invoice

    def recalculate_all(self) -> Invoice:
        self.invoice = recalculate_all(self.invoice)
        return self.invoice

    # Internals
    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.invoice.lines):
            raise FormStateError(f"line index {index} out of range for {len(self.invoice.lines)} lines")

    def _apply_invoice_change(self, field: str, value: RawNumber) -> Invoice:
        if field in INVOICE_TOTAL_FIELDS:
            return edit_invoice_total(self.invoice, field, value)
        if field in INVOICE_HEADER_FIELDS:
            return self.invoice.model_copy(update={field: _as_text(value)})
        raise FormStateError(f"unknown invoice field {field!r}")

    def _apply_line_change(self, index: int, field: str, value: RawNumber) -> Invoice:
        self._check_index(index)
        line = self.invoice.lines[index]

        if field == "tax_rate":
            line = apply_line_totals(line.model_copy(update={field: _as_text(value)}))
        elif field in LINE_INPUT_FIELDS:
            line = apply_line_totals(line.model_copy(update={field: value}))
        elif field in LINE_TOTAL_FIELDS:
            line = edit_line_total(line, field, value)
        elif field in _ID_FIELDS:
            line = line.model_copy(update={field: _parse_id(value)})
        elif field in LINE_DETAIL_FIELDS:
            line = line.model_copy(update={field: _as_text(value)})
        else:
            raise FormStateError(f"unknown line field {field!r}")

        logger.debug("Line %d %s=%r -> %s", index, field, value, line.override_state.value)
        lines = list(self.invoice.lines)
        lines[index] = line
        return apply_aggregate(self.invoice.model_copy(update={"lines": lines}))
