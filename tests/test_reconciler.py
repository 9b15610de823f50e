"""Tests for reconciling stored totals against a fresh recalculation."""
from invoice_calc.reconciler import InvoiceReconciler, parse_date
from invoice_calc.recalculate import recalculate_all
from invoice_calc.schemas import Invoice, LineItem, OverrideState


def _clean_invoice(number="NK-1") -> Invoice:
    invoice = Invoice(
        invoice_number=number,
        invoice_date="2024-03-15",
        lines=[
            LineItem(quantity=2, unit_price_before_tax=100000, tax_rate="10%"),
            LineItem(quantity=1, unit_price_before_tax=50000, tax_rate="KCT"),
        ],
    )
    return recalculate_all(invoice)


def test_clean_invoice_is_consistent():
    report = InvoiceReconciler().reconcile_invoices([_clean_invoice()])
    result = report.results[0]
    assert result.is_consistent
    assert result.errors == []
    assert result.warnings == []
    assert result.computed_totals.total_after_tax == 270000
    assert report.summary.consistent_invoices == 1


def test_manual_line_override_is_a_warning():
    invoice = _clean_invoice()
    line = invoice.lines[0].model_copy(update={"tax_amount": 19000, "total_after_tax": 219000, "manually_edited": True})
    invoice = invoice.model_copy(
        update={"lines": [line, invoice.lines[1]], "total_tax": 19000, "total_after_tax": 269000}
    )

    result = InvoiceReconciler().reconcile_invoice(invoice)
    assert result.is_consistent
    assert "override: line_totals_differ" in result.warnings
    assert len(result.line_discrepancies) == 1
    discrepancy = result.line_discrepancies[0]
    assert discrepancy.line_index == 0
    assert discrepancy.state is OverrideState.MANUAL
    assert discrepancy.stored.tax_amount == 19000
    assert discrepancy.computed.tax_amount == 20000
    assert result.computed_totals.total_tax == 20000


def test_stale_auto_line_is_an_error():
    invoice = _clean_invoice()
    line = invoice.lines[0].model_copy(update={"quantity": 3})
    invoice = invoice.model_copy(update={"lines": [line, invoice.lines[1]]})
    result = InvoiceReconciler().reconcile_invoice(invoice)
    assert not result.is_consistent
    assert "error: stale_line_totals" in result.errors


def test_manual_invoice_totals():
    invoice = _clean_invoice().model_copy(
        update={"total_before_tax": 1, "total_tax": 1, "total_after_tax": 2, "totals_manually_edited": True}
    )
    result = InvoiceReconciler().reconcile_invoice(invoice)
    assert result.is_consistent
    assert result.warnings == ["override: invoice_totals_differ"]

    broken = invoice.model_copy(update={"total_after_tax": 5})
    assert "business: totals_mismatch" in InvoiceReconciler().reconcile_invoice(broken).errors


def test_stale_invoice_totals_without_override():
    invoice = _clean_invoice().model_copy(update={"total_before_tax": 0, "total_after_tax": 20000})
    result = InvoiceReconciler().reconcile_invoice(invoice)
    assert "error: stale_invoice_totals" in result.errors


def test_unknown_tax_rate_is_tolerated_unless_strict():
    invoice = recalculate_all(Invoice(lines=[LineItem(quantity=1, unit_price_before_tax=100, tax_rate="12%")]))
    assert invoice.lines[0].tax_amount == 12

    invoice = recalculate_all(Invoice(lines=[LineItem(quantity=1, unit_price_before_tax=100, tax_rate="VAT")]))
    assert invoice.lines[0].tax_amount == 0
    lenient = InvoiceReconciler().reconcile_invoice(invoice)
    assert lenient.is_consistent
    assert lenient.warnings == ["format: tax_rate_unknown"]

    strict = InvoiceReconciler(strict_tax_rates=True).reconcile_invoice(invoice)
    assert strict.errors == ["format: tax_rate_unknown"]


def test_duplicates_and_dates_are_summarised():
    bad_date = _clean_invoice("NK-2").model_copy(update={"invoice_date": "not a date"})
    report = InvoiceReconciler().reconcile_invoices([_clean_invoice(), _clean_invoice(), bad_date])
    assert report.summary.total_invoices == 3
    assert report.summary.inconsistent_invoices == 2
    assert report.summary.error_counts == {
        "anomaly: duplicate_invoice": 1,
        "format: invoice_date_unparseable": 1,
    }


def test_parse_date():
    assert parse_date("2024-03-15").isoformat() == "2024-03-15"
    assert parse_date("15/03/2024").isoformat() == "2024-03-15"
    assert parse_date("") is None
    assert parse_date("garbage") is None


def test_line_totals_mismatch_only_reported_for_manual_lines():
    invoice = _clean_invoice()
    stale = invoice.lines[0].model_copy(update={"tax_amount": 1})
    invoice = invoice.model_copy(update={"lines": [stale, invoice.lines[1]]})
    result = InvoiceReconciler().reconcile_invoice(invoice)
    assert "error: stale_line_totals" in result.errors
    assert "business: line_totals_mismatch" not in result.warnings

    manual = stale.model_copy(update={"manually_edited": True})
    invoice = invoice.model_copy(update={"lines": [manual, invoice.lines[1]]})
    result = InvoiceReconciler().reconcile_invoice(invoice)
    assert "override: line_totals_differ" in result.warnings
    assert "business: line_totals_mismatch" in result.warnings
