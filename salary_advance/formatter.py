"""Output helpers for the salary advance calculator.

This module provides simple functions to render quotes and the schedule table
in a tabular text format. We rely only on built-in printing and string
formatting.
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from .data_models import LoanQuote, Number, ScheduleEntry


def format_currency(amount: Number) -> str:
    """Format a Kwacha amount as ``K1,234``; non-positive amounts give ``K0``."""
    if not amount or amount <= 0:
        return "K0"
    # half-up, so K121.5 shows as K122
    return f"K{math.floor(amount + 0.5):,}"


def print_quote(quote: LoanQuote) -> None:
    """Print a single quote in a human-readable format."""
    print("Quote")
    print("-" * 48)
    print(f"Amount             : {format_currency(quote.amount)}")
    print(f"Repayment period   : {quote.tenure_months} month{'s' if quote.tenure_months != 1 else ''}")
    print(f"Monthly installment: {format_currency(quote.monthly_installment)}")
    print(f"Total repayment    : {format_currency(quote.total_repayment)}")
    print(f"Total cost         : {format_currency(quote.total_cost)}")
    print("-" * 48)


def print_quotes(quotes: Iterable[LoanQuote]) -> None:
    """Print quotes for several tenures side by side as a table."""
    print("\t".join(["Months", "Monthly", "Total", "Cost"]))
    for quote in quotes:
        print(
            "\t".join(
                [
                    str(quote.tenure_months),
                    f"{quote.monthly_installment:.2f}",
                    f"{quote.total_repayment:.2f}",
                    f"{quote.total_cost:.2f}",
                ]
            )
        )


def print_schedule_table(table: Iterable[ScheduleEntry], tenures: Sequence[int]) -> None:
    """Print the base schedule, one row per disbursed amount."""
    print("\t".join(["Disbursed"] + [f"{m}M" for m in tenures]))
    for entry in sorted(table, key=lambda e: e.disbursed_amount):
        row = [str(entry.disbursed_amount)]
        for months in tenures:
            value = entry.installments.get(months)
            row.append("-" if value is None else str(value))
        print("\t".join(row))


def print_problems(title: str, problems: Iterable[str]) -> None:
    print(title)
    print("=" * 48)
    for problem in problems:
        print(f"  - {problem}")
    print("=" * 48)
