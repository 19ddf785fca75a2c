"""Loading, validating and editing the repayment schedule table.

The calculator in :mod:`salary_advance.engine` trusts its input. Everything
that can go wrong with a table (duplicate amounts, missing tenures, bad
numbers) is caught here, where tables are read from storage or edited by an
administrator.

The persisted shape is a JSON array of
``{"disbursedAmount": n, "installments": {"1": n, ..., "6": n}}`` objects.
"""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from .data_models import Number, ScheduleEntry
from .utils import parse_leading_int

SUPPORTED_TENURES: Tuple[int, ...] = (1, 2, 3, 4, 5, 6)

MIN_LOAN_AMOUNT = 500
MAX_LOAN_AMOUNT = 10000


class ScheduleError(ValueError):
    """Raised when a schedule table cannot be parsed."""


class QuoteRequestError(ValueError):
    """Raised when a requested amount or tenure is outside what is offered."""


# disbursed amount followed by the installments for tenures 1..6
_BASE_ROWS = [
    (500, 664, 357, 243, 194, 161, 189),
    (600, 780, 420, 285, 228, 189, 213),
    (700, 896, 472, 328, 261, 217, 237),
    (800, 1012, 533, 370, 295, 245, 262),
    (900, 1129, 594, 412, 329, 273, 286),
    (1000, 1245, 665, 455, 363, 301, 310),
    (1500, 1825, 961, 667, 533, 442, 431),
    (2000, 2406, 1266, 879, 702, 582, 552),
    (2500, 2986, 1572, 1091, 872, 723, 673),
    (3000, 3567, 1878, 1303, 1042, 864, 804),
    (3500, 4147, 2183, 1515, 1211, 1004, 935),
    (4000, 4728, 2489, 1727, 1381, 1145, 1066),
    (4500, 5308, 2794, 1939, 1550, 1286, 1197),
    (5000, 5889, 3100, 2151, 1720, 1427, 1328),
    (6000, 7050, 3711, 2575, 2059, 1708, 1590),
    (7000, 8211, 4322, 3000, 2398, 1990, 1852),
    (8000, 9372, 4933, 3424, 2738, 2271, 2114),
    (9000, 10533, 5545, 3848, 3077, 2553, 2376),
    (10000, 11694, 6156, 4273, 3416, 2834, 2638),
]

DEFAULT_SCHEDULE: Tuple[ScheduleEntry, ...] = tuple(
    ScheduleEntry(disbursed_amount=row[0], installments=dict(zip(SUPPORTED_TENURES, row[1:])))
    for row in _BASE_ROWS
)


def _as_number(value: Any, what: str) -> Number:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        if isinstance(value, str):
            try:
                return float(value) if "." in value else int(value)
            except ValueError:
                pass
        raise ScheduleError(f"{what} must be a number; got {value!r}")
    return value


def schedule_from_records(records: Iterable[Dict[str, Any]]) -> List[ScheduleEntry]:
    """Build schedule entries from their persisted (JSON) representation.

    JSON object keys are always strings, so installment keys are converted to
    ``int`` tenures here.
    """
    entries: List[ScheduleEntry] = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise ScheduleError(f"Row {index} must be an object; got {type(record).__name__}")
        if "disbursedAmount" not in record or "installments" not in record:
            raise ScheduleError(f"Row {index} needs 'disbursedAmount' and 'installments'")
        raw_installments = record["installments"]
        if not isinstance(raw_installments, dict):
            raise ScheduleError(f"Row {index}: 'installments' must be an object")
        installments: Dict[int, Number] = {}
        for key, value in raw_installments.items():
            try:
                months = int(key)
            except (TypeError, ValueError) as exc:
                raise ScheduleError(f"Row {index}: invalid tenure key {key!r}") from exc
            installments[months] = _as_number(value, f"Row {index} installment for {months} months")
        entries.append(
            ScheduleEntry(
                disbursed_amount=_as_number(record["disbursedAmount"], f"Row {index} disbursedAmount"),
                installments=installments,
            )
        )
    return entries


def schedule_to_records(table: Iterable[ScheduleEntry]) -> List[Dict[str, Any]]:
    """Return the JSON-serialisable representation of ``table``."""
    return [
        {
            "disbursedAmount": entry.disbursed_amount,
            "installments": {str(months): value for months, value in sorted(entry.installments.items())},
        }
        for entry in table
    ]


def load_schedule(path: Path) -> List[ScheduleEntry]:
    """Read a schedule table from a JSON file."""
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise ScheduleError(f"{path} is not valid JSON: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ScheduleError(f"{path} is not UTF-8 text: {exc}") from exc
    if not isinstance(data, list):
        raise ScheduleError(f"{path} must contain a JSON array of schedule rows")
    return schedule_from_records(data)


def save_schedule(path: Path, table: Iterable[ScheduleEntry]) -> None:
    """Write a schedule table to a JSON file."""
    with path.open("w", encoding="utf-8") as f:
        json.dump(schedule_to_records(table), f, indent=2)


def validate_schedule(table: Sequence[ScheduleEntry], tenures: Iterable[int] = SUPPORTED_TENURES) -> List[str]:
    """Return a list of problems with ``table``; an empty list means valid."""
    problems: List[str] = []
    tenures = tuple(tenures)
    if not table:
        problems.append("Schedule is empty; every quote will be zero")
        return problems

    seen: Dict[Number, int] = {}
    for index, entry in enumerate(table):
        amount = entry.disbursed_amount
        if amount <= 0:
            problems.append(f"Row {index}: disbursed amount must be positive; got {amount}")
        if amount in seen:
            problems.append(f"Row {index}: disbursed amount {amount} duplicates row {seen[amount]}")
        else:
            seen[amount] = index
        for months in tenures:
            if months not in entry.installments:
                problems.append(f"Row {index} ({amount}): missing installment for {months} months")
            elif entry.installments[months] <= 0:
                problems.append(
                    f"Row {index} ({amount}): installment for {months} months must be positive; "
                    f"got {entry.installments[months]}"
                )
    return problems


def check_monotonic(table: Sequence[ScheduleEntry], tenures: Iterable[int] = SUPPORTED_TENURES) -> List[str]:
    """Report rows whose installment drops while the amount rises.

    These are data-quality warnings, not errors: the calculator handles such
    tables, the quotes are just surprising.
    """
    warnings: List[str] = []
    ordered = sorted(table, key=lambda e: e.disbursed_amount)
    for months in tenures:
        for lower, upper in zip(ordered, ordered[1:]):
            low = lower.installments.get(months)
            high = upper.installments.get(months)
            if low is None or high is None:
                continue
            if high < low:
                warnings.append(
                    f"{months} months: installment falls from {low} at {lower.disbursed_amount} "
                    f"to {high} at {upper.disbursed_amount}"
                )
    return warnings


def update_schedule_entry(table: Sequence[ScheduleEntry], index: int, field: str, value: object) -> List[ScheduleEntry]:
    """Return a copy of ``table`` with one field of row ``index`` changed.

    ``field`` is ``"disbursed_amount"`` or ``"installments.<months>"``.
    Values are parsed as integers; a value with no leading integer leaves the
    table unchanged.
    """
    if not 0 <= index < len(table):
        raise ScheduleError(f"Row index {index} out of range (0..{len(table) - 1})")
    new_table = list(table)
    number = parse_leading_int(value)
    if number is None:
        return new_table

    entry = new_table[index]
    if field in ("disbursed_amount", "disbursedAmount"):
        new_table[index] = replace(entry, disbursed_amount=number)
    elif field.startswith("installments."):
        try:
            months = int(field.split(".", 1)[1])
        except ValueError as exc:
            raise ScheduleError(f"Invalid tenure in field {field!r}") from exc
        installments = dict(entry.installments)
        installments[months] = number
        new_table[index] = replace(entry, installments=installments)
    else:
        raise ScheduleError(f"Unknown schedule field {field!r}")
    return new_table


def validate_request(amount: Number, tenure_months: int, tenures: Iterable[int] = SUPPORTED_TENURES) -> None:
    """Check a quote request against the offered amounts and tenures."""
    tenures = tuple(tenures)
    if tenure_months not in tenures:
        raise QuoteRequestError(
            f"Repayment period must be one of {', '.join(str(t) for t in tenures)} months; got {tenure_months}"
        )
    if not MIN_LOAN_AMOUNT <= amount <= MAX_LOAN_AMOUNT:
        raise QuoteRequestError(
            f"Amount must be between K{MIN_LOAN_AMOUNT:,} and K{MAX_LOAN_AMOUNT:,}; got {amount}"
        )
