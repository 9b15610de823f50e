"""Data models used across calculator, form reducer, reconciler, CLI, and API."""
from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .money import DEFAULT_TAX_RATE, round_money

RawNumber = Union[float, str, None]


class OverrideState(str, Enum):
    """Whether computed totals follow their inputs or were typed by hand."""

    AUTO = "auto"
    MANUAL = "manual"


class LineTotals(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total_before_tax: int = 0
    tax_amount: int = 0
    total_after_tax: int = 0


class InvoiceTotals(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total_before_tax: int = 0
    total_tax: int = 0
    total_after_tax: int = 0


class LineItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    category: str = "HH"
    item_name: Optional[str] = None
    unit: Optional[str] = None
    inventory_id: Optional[int] = None
    supplier_id: Optional[int] = None

    quantity: RawNumber = 0
    unit_price_before_tax: RawNumber = 0
    tax_rate: Optional[str] = DEFAULT_TAX_RATE

    total_before_tax: int = 0
    tax_amount: int = 0
    total_after_tax: int = 0
    manually_edited: bool = False

    @field_validator("total_before_tax", "tax_amount", "total_after_tax", mode="before")
    @classmethod
    def _coerce_total(cls, value: object) -> int:
        return round_money(value)

    @property
    def override_state(self) -> OverrideState:
        return OverrideState.MANUAL if self.manually_edited else OverrideState.AUTO

    def totals(self) -> LineTotals:
        return LineTotals(
            total_before_tax=self.total_before_tax,
            tax_amount=self.tax_amount,
            total_after_tax=self.total_after_tax,
        )


class Invoice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    invoice_number: Optional[str] = None
    invoice_date: Optional[str] = None
    invoice_type: Optional[str] = None
    counterparty_name: Optional[str] = None
    description: Optional[str] = None
    lines: List[LineItem] = Field(default_factory=list)

    total_before_tax: int = 0
    total_tax: int = 0
    total_after_tax: int = 0
    totals_manually_edited: bool = False

    @field_validator("total_before_tax", "total_tax", "total_after_tax", mode="before")
    @classmethod
    def _coerce_total(cls, value: object) -> int:
        return round_money(value)

    @property
    def override_state(self) -> OverrideState:
        return OverrideState.MANUAL if self.totals_manually_edited else OverrideState.AUTO

    @property
    def display_id(self) -> str:
        """Fallback identifier for messages and reports."""
        return self.invoice_number or "<unknown>"

    def totals(self) -> InvoiceTotals:
        return InvoiceTotals(
            total_before_tax=self.total_before_tax,
            total_tax=self.total_tax,
            total_after_tax=self.total_after_tax,
        )


class FieldChange(BaseModel):
    """A raw edit coming from the form: which row, which field, what was typed.

    ``line_index`` is None for invoice-level fields.
    """

    model_config = ConfigDict(extra="ignore")

    line_index: Optional[int] = None
    field: str
    value: RawNumber = None


class LineDiscrepancy(BaseModel):
    model_config = ConfigDict(extra="ignore")

    line_index: int
    state: OverrideState
    stored: LineTotals
    computed: LineTotals


class InvoiceReconciliationResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    invoice_id: str
    is_consistent: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    line_discrepancies: List[LineDiscrepancy] = Field(default_factory=list)
    computed_totals: InvoiceTotals


class ReconciliationSummary(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total_invoices: int
    consistent_invoices: int
    inconsistent_invoices: int
    error_counts: Dict[str, int] = Field(default_factory=dict)
    warning_counts: Dict[str, int] = Field(default_factory=dict)


class ReconciliationReport(BaseModel):
    model_config = ConfigDict(extra="ignore")

    summary: ReconciliationSummary
    results: List[InvoiceReconciliationResult]
