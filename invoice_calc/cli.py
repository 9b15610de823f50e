"""Command-line entrypoints for line calculation, recalculation, and reconciliation."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich import print
from rich.markup import escape

from .calculator import compute_line_totals
from .config import configure_logging, get_settings
from .money import DEFAULT_TAX_RATE
from .reconciler import InvoiceReconciler
from .recalculate import recalculate_all
from .schemas import Invoice

app = typer.Typer(add_completion=False, help="Invoice calculation CLI")


@app.callback()
def _setup(log_level: Optional[str] = typer.Option(None, help="Override INVOICE_CALC_LOG_LEVEL")) -> None:
    configure_logging(log_level)


def _load_invoices(json_path: Path) -> list[Invoice]:
    try:
        data = json.loads(json_path.read_text(encoding="utf-8"))
        if isinstance(data, dict):
            data = [data]
        return [Invoice.model_validate(item) for item in data]
    except (json.JSONDecodeError, ValidationError) as exc:
        print(f"[red]Could not read invoices from {escape(str(json_path))}:[/red] {escape(str(exc))}")
        raise typer.Exit(code=2)


def _print_summary(report) -> None:
    summary = report.summary
    print(f"[bold]Total:[/bold] {summary.total_invoices}")
    print(f"[green]Consistent:[/green] {summary.consistent_invoices}  [red]Inconsistent:[/red] {summary.inconsistent_invoices}")
    if summary.error_counts:
        print("Top errors:")
        for err, count in sorted(summary.error_counts.items(), key=lambda x: x[1], reverse=True):
            print(f"- {err}: {count}")
    if summary.warning_counts:
        print("Warnings:")
        for warn, count in sorted(summary.warning_counts.items(), key=lambda x: x[1], reverse=True):
            print(f"- {warn}: {count}")


@app.command()
def line(quantity: str = typer.Argument(..., help="Quantity as typed"), price: str = typer.Argument(..., help="Unit price before tax"), tax_rate: str = typer.Option(DEFAULT_TAX_RATE, help="KCT, 0%, 5%, 8% or 10%")) -> None:
    """Compute totals for a single line."""
    totals = compute_line_totals(quantity, price, tax_rate)
    print(f"[bold]Before tax:[/bold] {totals.total_before_tax}")
    print(f"[bold]Tax:[/bold] {totals.tax_amount}")
    print(f"[bold]After tax:[/bold] {totals.total_after_tax}")


@app.command()
def recalculate(input: Path = typer.Option(..., exists=True, dir_okay=False, help="JSON file with invoices"), output: Optional[Path] = typer.Option(None, help="Path to write recalculated JSON (stdout if omitted)")) -> None:
    """Drop manual overrides and recalculate every invoice in a JSON file."""
    invoices = [recalculate_all(inv) for inv in _load_invoices(input)]
    payload = json.dumps([inv.model_dump(mode="json") for inv in invoices], indent=2, ensure_ascii=False)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(payload, encoding="utf-8")
        print(f"Recalculated {len(invoices)} invoices -> {output}")
    else:
        typer.echo(payload)


@app.command()
def check(input: Path = typer.Option(..., exists=True, dir_okay=False, help="JSON file with invoices"), report: Optional[Path] = typer.Option(None, help="Optional path to write reconciliation report")) -> None:
    """Compare stored totals with what a recalculation would produce."""
    invoices = _load_invoices(input)
    reconciler = InvoiceReconciler(strict_tax_rates=get_settings().strict_tax_rates)
    response = reconciler.reconcile_invoices(invoices)
    if report:
        report.parent.mkdir(parents=True, exist_ok=True)
        report.write_text(response.model_dump_json(indent=2), encoding="utf-8")
        print(f"Report written to {report}")
    _print_summary(response)
    if response.summary.inconsistent_invoices > 0:
        raise typer.Exit(code=1)


def main():
    app()


if __name__ == "__main__":
    main()
