"""Core calculation engine for the salary advance calculator.

The repayment schedule is a sparse table of disbursed amounts, each with a
monthly installment per supported tenure. This module resolves an installment
for any requested amount: exact lookup when the amount is a table row, linear
interpolation between the two bracketing rows otherwise, and proportional
scaling against the nearest boundary row outside the table's range.

Precondition: ``tenure_months`` must be a key of every row's ``installments``
map. It is not checked here; a missing tenure raises ``KeyError`` from the
lookup. Validate tables with :func:`salary_advance.schedule.validate_schedule`
when they are loaded or edited.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

from .data_models import LoanQuote, Number, ScheduleEntry


def _sort_schedule(table: Iterable[ScheduleEntry]) -> List[ScheduleEntry]:
    return sorted(table, key=lambda e: e.disbursed_amount)


def compute_installment(table: Sequence[ScheduleEntry], amount: Number, tenure_months: int) -> Number:
    """Return the monthly installment for ``amount`` over ``tenure_months``.

    Parameters
    ----------
    table: Sequence[ScheduleEntry]
        The base schedule. Order does not matter and it is never mutated.
    amount: Number
        Requested disbursed amount. Non-positive amounts quote as zero.
    tenure_months: int
        Repayment period; one of the table's tenure keys.

    Returns
    -------
    Number
        The installment, or ``0`` when there is nothing to quote from.
    """
    if amount <= 0:
        return 0
    if not table:
        return 0

    for entry in table:
        if entry.disbursed_amount == amount:
            return entry.installments[tenure_months]

    sorted_schedule = _sort_schedule(table)

    # Outside the table the installment is scaled through the origin from the
    # nearest row, not extended along the interior slope.
    lowest = sorted_schedule[0]
    if amount < lowest.disbursed_amount:
        return lowest.installments[tenure_months] * (amount / lowest.disbursed_amount)

    highest = sorted_schedule[-1]
    if amount > highest.disbursed_amount:
        return highest.installments[tenure_months] * (amount / highest.disbursed_amount)

    for lower, upper in zip(sorted_schedule, sorted_schedule[1:]):
        if lower.disbursed_amount < amount < upper.disbursed_amount:
            ratio = (amount - lower.disbursed_amount) / (upper.disbursed_amount - lower.disbursed_amount)
            lower_installment = lower.installments[tenure_months]
            upper_installment = upper.installments[tenure_months]
            return lower_installment + ratio * (upper_installment - lower_installment)

    return 0


def compute_loan_quote(table: Sequence[ScheduleEntry], amount: Number, tenure_months: int) -> LoanQuote:
    """Compute the installment and the derived totals for one request.

    ``total_repayment`` is the installment times the tenure (the installment
    itself for a one-month advance) and ``total_cost`` is what the applicant
    pays on top of the amount. A zero installment yields a zero cost.
    """
    monthly_installment = compute_installment(table, amount, tenure_months)
    if tenure_months == 1:
        total_repayment = monthly_installment
    else:
        total_repayment = monthly_installment * tenure_months
    total_cost = total_repayment - amount if total_repayment > 0 else 0
    return LoanQuote(
        amount=amount,
        tenure_months=tenure_months,
        monthly_installment=monthly_installment,
        total_repayment=total_repayment,
        total_cost=total_cost,
    )


def compute_quotes(table: Sequence[ScheduleEntry], amount: Number, tenures: Iterable[int]) -> List[LoanQuote]:
    """Return one quote per tenure, in the order given."""
    return [compute_loan_quote(table, amount, months) for months in tenures]
