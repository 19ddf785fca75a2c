"""Command‑line interface for the salary advance calculator.

This module uses the ``click`` library to implement a multi‑command interface.
Users can quote an advance, print or export the base schedule table, validate
a schedule file and apply administrator edits to it.
"""

from __future__ import annotations

import csv
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

import click

from .data_models import LoanQuote, Number, ScheduleEntry
from .engine import compute_loan_quote, compute_quotes
from .formatter import print_problems, print_quote, print_quotes, print_schedule_table
from .schedule import (
    DEFAULT_SCHEDULE,
    SUPPORTED_TENURES,
    QuoteRequestError,
    ScheduleError,
    check_monotonic,
    load_schedule,
    save_schedule,
    schedule_to_records,
    update_schedule_entry,
    validate_request,
    validate_schedule,
)
from .utils import number_from_str


def parse_amount(value: str) -> Number:
    """Parse a numeric string with an optional ``k`` suffix.

    Accepts plain numbers ("2500") and shorthand such as "2.5k" meaning 2 500.
    """
    value = value.strip().lower()
    value = value.replace(",", "")
    factor = 1
    if value.endswith("k"):
        factor = 1_000
        value = value[:-1]
    try:
        amount = number_from_str(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")
    # 2.5k should quote exactly like 2500
    if isinstance(amount, float) and amount.is_integer():
        return int(amount)
    return amount


def read_schedule(path: Optional[str]) -> List[ScheduleEntry]:
    """Load the schedule from ``path``, or the built-in base table."""
    if not path:
        return list(DEFAULT_SCHEDULE)
    try:
        return load_schedule(Path(path))
    except (OSError, ScheduleError) as exc:
        raise click.BadParameter(str(exc), param_hint="--schedule")


def export_quote_to_json(path: Path, quote: LoanQuote) -> None:
    """Export a quote to a JSON file."""
    with path.open("w", encoding="utf-8") as f:
        json.dump({"quote": asdict(quote)}, f, indent=2)


def export_schedule_to_csv(path: Path, table: List[ScheduleEntry]) -> None:
    """Export the schedule table to a CSV file."""
    header = ["Disbursed_Amount"] + [f"Installment_{m}M" for m in SUPPORTED_TENURES]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for entry in sorted(table, key=lambda e: e.disbursed_amount):
            writer.writerow([entry.disbursed_amount] + [entry.installments.get(m, "") for m in SUPPORTED_TENURES])


@click.group()
def cli() -> None:
    """A command‑line salary advance calculator and schedule editor."""
    pass


@cli.command()
@click.option("--amount", "-a", "amount", required=True, help="Amount to borrow (e.g. 2500 or 2.5k)")
@click.option("--months", "-m", "months", required=True, type=int, help="Repayment period in months")
@click.option("--schedule", "-s", "schedule_path", help="Schedule table JSON file (defaults to the base table)")
@click.option("--allow-any-amount", is_flag=True, help="Quote amounts outside the offered range")
@click.option("--output", "output", type=str, help="Output file path (.json)")
def quote(amount: str, months: int, schedule_path: Optional[str], allow_any_amount: bool, output: Optional[str]) -> None:
    """Quote the monthly installment and totals for one request."""
    amount_value = parse_amount(amount)
    if months not in SUPPORTED_TENURES:
        raise click.BadParameter(
            f"Repayment period must be one of {', '.join(str(t) for t in SUPPORTED_TENURES)}",
            param_hint="--months",
        )
    if not allow_any_amount:
        try:
            validate_request(amount_value, months)
        except QuoteRequestError as exc:
            raise click.BadParameter(str(exc), param_hint="--amount")
    table = read_schedule(schedule_path)
    try:
        result = compute_loan_quote(table, amount_value, months)
    except KeyError:
        raise click.ClickException(f"Schedule has no installment for {months} months; run 'validate'")
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Quote export must use .json extension")
        export_quote_to_json(path, result)
        click.echo(f"Quote exported to {path}")
    else:
        print_quote(result)


@cli.command()
@click.option("--amount", "-a", "amount", required=True, help="Amount to borrow (e.g. 2500 or 2.5k)")
@click.option("--schedule", "-s", "schedule_path", help="Schedule table JSON file (defaults to the base table)")
def quotes(amount: str, schedule_path: Optional[str]) -> None:
    """Quote one amount for every supported repayment period."""
    amount_value = parse_amount(amount)
    table = read_schedule(schedule_path)
    try:
        results = compute_quotes(table, amount_value, SUPPORTED_TENURES)
    except KeyError as exc:
        raise click.ClickException(f"Schedule has no installment for {exc.args[0]} months; run 'validate'")
    print_quotes(results)


@cli.command()
@click.option("--schedule", "-s", "schedule_path", help="Schedule table JSON file (defaults to the base table)")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def table(schedule_path: Optional[str], output: Optional[str]) -> None:
    """Print or export the base schedule table."""
    entries = read_schedule(schedule_path)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            save_schedule(path, entries)
            click.echo(f"Schedule exported to {path}")
        elif path.suffix.lower() == ".csv":
            export_schedule_to_csv(path, entries)
            click.echo(f"Schedule exported to {path}")
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
    else:
        print_schedule_table(entries, SUPPORTED_TENURES)


@cli.command()
@click.option("--schedule", "-s", "schedule_path", required=True, help="Schedule table JSON file")
def validate(schedule_path: str) -> None:
    """Check a schedule file for authoring mistakes."""
    entries = read_schedule(schedule_path)
    problems = validate_schedule(entries)
    warnings = check_monotonic(entries)
    if warnings:
        print_problems("Data-quality warnings", warnings)
    if problems:
        print_problems("Schedule problems", problems)
        sys.exit(1)
    click.echo(f"Schedule OK: {len(entries)} rows")


@cli.command()
@click.option("--schedule", "-s", "schedule_path", required=True, help="Schedule table JSON file")
@click.option("--index", "-i", "index", required=True, type=int, help="Row to edit (0-based, file order)")
@click.option("--field", "-f", "field", required=True, help="'disbursed_amount' or 'installments.<months>'")
@click.option("--value", "-v", "value", required=True, help="New integer value")
def edit(schedule_path: str, index: int, field: str, value: str) -> None:
    """Change one value in a schedule file, keeping the file valid."""
    entries = read_schedule(schedule_path)
    try:
        updated = update_schedule_entry(entries, index, field, value)
    except ScheduleError as exc:
        raise click.BadParameter(str(exc))
    problems = validate_schedule(updated)
    if problems:
        print_problems("Edit rejected", problems)
        sys.exit(1)
    save_schedule(Path(schedule_path), updated)
    click.echo(json.dumps(schedule_to_records([updated[index]])[0]))


if __name__ == "__main__":
    cli()
