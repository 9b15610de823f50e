"""FastAPI application exposing the calculation engine."""
from __future__ import annotations

from typing import List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .aggregator import aggregate
from .calculator import compute_line_totals
from .config import configure_logging, get_settings
from .form_state import FormStateError, InvoiceForm
from .money import DEFAULT_TAX_RATE
from .reconciler import InvoiceReconciler
from .recalculate import recalculate_all
from .schemas import FieldChange, Invoice, InvoiceTotals, LineItem, LineTotals, RawNumber, ReconciliationReport

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(title="Invoice Calculation Service", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class LineInput(BaseModel):
    quantity: RawNumber = 0
    unit_price_before_tax: RawNumber = 0
    tax_rate: str = DEFAULT_TAX_RATE


class ChangeRequest(BaseModel):
    invoice: Invoice
    change: FieldChange


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/lines/compute", response_model=LineTotals)
def compute_line(line: LineInput):
    return compute_line_totals(line.quantity, line.unit_price_before_tax, line.tax_rate)


@app.post("/invoices/aggregate", response_model=InvoiceTotals)
def aggregate_lines(lines: List[LineItem]):
    return aggregate(lines)


@app.post("/invoices/recalculate", response_model=Invoice)
def recalculate(invoice: Invoice):
    return recalculate_all(invoice)


@app.post("/invoices/apply-change", response_model=Invoice)
def apply_change(request: ChangeRequest):
    form = InvoiceForm(request.invoice)
    try:
        return form.apply_change(request.change)
    except FormStateError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@app.post("/invoices/reconcile", response_model=ReconciliationReport)
def reconcile(invoices: List[Invoice]):
    return InvoiceReconciler(strict_tax_rates=settings.strict_tax_rates).reconcile_invoices(invoices)
