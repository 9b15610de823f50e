"""Reconciliation of stored totals against what a full recalculation would give."""
from __future__ import annotations

import logging
from collections import Counter
from datetime import date
from typing import Iterable, List, Optional, Set

from dateutil import parser

from .aggregator import aggregate
from .calculator import compute_line_totals
from .money import is_known_tax_rate
from .schemas import (
    Invoice,
    InvoiceReconciliationResult,
    LineDiscrepancy,
    ReconciliationReport,
    ReconciliationSummary,
)

logger = logging.getLogger(__name__)


def parse_date(value: str) -> Optional[date]:
    """Parse a date string into a date object; returns None on failure."""
    if not value:
        return None
    try:
        return parser.parse(value, dayfirst=False, yearfirst=True).date()
    except (ValueError, TypeError, OverflowError):
        try:
            return parser.parse(value, dayfirst=True, yearfirst=True).date()
        except (ValueError, TypeError, OverflowError):
            return None


class InvoiceReconciler:
    def __init__(self, strict_tax_rates: bool = False) -> None:
        self.strict_tax_rates = strict_tax_rates

    def reconcile_invoices(self, invoices: List[Invoice]) -> ReconciliationReport:
        seen_numbers: Set[str] = set()
        results: List[InvoiceReconciliationResult] = []
        error_counter: Counter[str] = Counter()
        warning_counter: Counter[str] = Counter()

        for invoice in invoices:
            result = self.reconcile_invoice(invoice)

            # Duplicate detection
            if invoice.invoice_number:
                if invoice.invoice_number in seen_numbers:
                    result.errors.append("anomaly: duplicate_invoice")
                    result.is_consistent = False
                else:
                    seen_numbers.add(invoice.invoice_number)

            results.append(result)
            error_counter.update(result.errors)
            warning_counter.update(result.warnings)

        summary = ReconciliationSummary(
            total_invoices=len(results),
            consistent_invoices=sum(1 for r in results if r.is_consistent),
            inconsistent_invoices=sum(1 for r in results if not r.is_consistent),
            error_counts=dict(error_counter),
            warning_counts=dict(warning_counter),
        )
        logger.info(
            "Reconciled %d invoices: %d consistent, %d inconsistent",
            summary.total_invoices,
            summary.consistent_invoices,
            summary.inconsistent_invoices,
        )
        return ReconciliationReport(summary=summary, results=results)

    def reconcile_invoice(self, invoice: Invoice) -> InvoiceReconciliationResult:
        errors: list[str] = []
        warnings: list[str] = []
        discrepancies: list[LineDiscrepancy] = []

        if invoice.invoice_date and not parse_date(invoice.invoice_date):
            errors.append("format: invoice_date_unparseable")

        computed_lines = []
        for index, line in enumerate(invoice.lines):
            if line.tax_rate and not is_known_tax_rate(line.tax_rate):
                # Calculator treats these as 0%; only surfaced here.
                target = errors if self.strict_tax_rates else warnings
                target.append("format: tax_rate_unknown")

            computed = compute_line_totals(line.quantity, line.unit_price_before_tax, line.tax_rate)
            computed_lines.append(computed)
            stored = line.totals()
            if stored == computed:
                continue

            discrepancies.append(
                LineDiscrepancy(line_index=index, state=line.override_state, stored=stored, computed=computed)
            )
            if line.manually_edited:
                warnings.append("override: line_totals_differ")
            else:
                errors.append("error: stale_line_totals")

            if line.manually_edited and stored.total_before_tax + stored.tax_amount != stored.total_after_tax:
                warnings.append("business: line_totals_mismatch")

        # What recalculate-all would produce, against what is stored now.
        computed_totals = aggregate(computed_lines)
        stored_sum = aggregate(invoice.lines)
        if invoice.totals() != stored_sum:
            if invoice.totals_manually_edited:
                warnings.append("override: invoice_totals_differ")
            else:
                errors.append("error: stale_invoice_totals")

        if invoice.total_before_tax + invoice.total_tax != invoice.total_after_tax:
            errors.append("business: totals_mismatch")

        return InvoiceReconciliationResult(
            invoice_id=invoice.display_id,
            is_consistent=len(errors) == 0,
            errors=errors,
            warnings=warnings,
            line_discrepancies=discrepancies,
            computed_totals=computed_totals,
        )
