"""User-triggered "recalculate all" for an invoice."""
from __future__ import annotations

import logging

from .aggregator import apply_aggregate
from .calculator import apply_line_totals
from .overrides import reset_invoice, reset_line
from .schemas import Invoice

logger = logging.getLogger(__name__)


def recalculate_all(invoice: Invoice) -> Invoice:
    """Drop every manual override and rebuild all totals from the inputs.

    Flags are cleared first, then each line is recomputed, and only then is
    the invoice summed from the fresh line totals. The input is not modified.
    """
    manual_lines = sum(1 for line in invoice.lines if line.manually_edited)
    lines = [reset_line(line) for line in invoice.lines]
    invoice = reset_invoice(invoice).model_copy(update={"lines": lines})

    lines = [apply_line_totals(line, force=True) for line in invoice.lines]
    invoice = apply_aggregate(invoice.model_copy(update={"lines": lines}))

    logger.info(
        "Recalculated invoice %s: %d lines (%d manual overrides cleared)",
        invoice.display_id,
        len(lines),
        manual_lines,
    )
    return invoice
