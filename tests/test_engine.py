# tests/test_engine.py
import pytest

from salary_advance.data_models import ScheduleEntry
from salary_advance.engine import compute_installment, compute_loan_quote, compute_quotes
from salary_advance.schedule import DEFAULT_SCHEDULE, SUPPORTED_TENURES


def test_exact_match(sample_table):
    assert compute_installment(sample_table, 1000, 3) == 455


def test_interior_midpoint(sample_table):
    assert compute_installment(sample_table, 1500, 3) == pytest.approx(667)


def test_below_range_scales_lowest_row(sample_table):
    assert compute_installment(sample_table, 250, 3) == 121.5


def test_above_range_scales_highest_row(sample_table):
    assert compute_installment(sample_table, 4000, 3) == 1758


def test_degenerate_inputs_quote_zero(sample_table):
    assert compute_installment([], 1000, 3) == 0
    assert compute_installment(sample_table, 0, 3) == 0
    assert compute_installment(sample_table, -50, 3) == 0


def test_unsorted_table_gives_same_result(sample_table):
    shuffled = [sample_table[2], sample_table[0], sample_table[1]]
    for amount in (250, 750, 1500, 3000):
        assert compute_installment(shuffled, amount, 3) == compute_installment(sample_table, amount, 3)


def test_table_is_not_mutated(sample_table):
    shuffled = [sample_table[2], sample_table[0], sample_table[1]]
    before = list(shuffled)
    compute_installment(shuffled, 1500, 3)
    assert shuffled == before


def test_exact_match_for_every_row_and_tenure():
    for entry in DEFAULT_SCHEDULE:
        for months in SUPPORTED_TENURES:
            assert compute_installment(DEFAULT_SCHEDULE, entry.disbursed_amount, months) == entry.installments[months]


def test_interpolation_stays_between_bracketing_rows():
    rows = sorted(DEFAULT_SCHEDULE, key=lambda e: e.disbursed_amount)
    for lower, upper in zip(rows, rows[1:]):
        amount = lower.disbursed_amount + (upper.disbursed_amount - lower.disbursed_amount) * 0.3
        for months in SUPPORTED_TENURES:
            value = compute_installment(DEFAULT_SCHEDULE, amount, months)
            low, high = sorted((lower.installments[months], upper.installments[months]))
            assert low <= value <= high


def test_below_range_is_proportional(sample_table):
    for k in (0.1, 0.25, 0.5, 0.8):
        amount = k * 500
        assert compute_installment(sample_table, amount, 3) == 243 * (amount / 500)


def test_default_schedule_is_non_decreasing_per_tenure():
    amounts = range(500, 10001, 250)
    for months in SUPPORTED_TENURES:
        values = [compute_installment(DEFAULT_SCHEDULE, a, months) for a in amounts]
        assert values == sorted(values)


def test_missing_tenure_raises_key_error(sample_table):
    with pytest.raises(KeyError):
        compute_installment(sample_table, 1500, 6)


def test_single_row_table_scales_both_ways():
    table = [ScheduleEntry(disbursed_amount=1000, installments={2: 600})]
    assert compute_installment(table, 1000, 2) == 600
    assert compute_installment(table, 500, 2) == 300
    assert compute_installment(table, 2000, 2) == 1200


def test_duplicate_amounts_use_first_row_on_exact_match():
    table = [
        ScheduleEntry(disbursed_amount=1000, installments={3: 455}),
        ScheduleEntry(disbursed_amount=1000, installments={3: 999}),
    ]
    assert compute_installment(table, 1000, 3) == 455


def test_quote_totals(sample_table):
    quote = compute_loan_quote(sample_table, 1000, 3)
    assert quote.monthly_installment == 455
    assert quote.total_repayment == 1365
    assert quote.total_cost == 365


def test_one_month_total_is_the_installment():
    quote = compute_loan_quote(DEFAULT_SCHEDULE, 1000, 1)
    assert quote.total_repayment == quote.monthly_installment == 1245
    assert quote.total_cost == 245


def test_zero_quote_has_zero_cost():
    quote = compute_loan_quote([], 1000, 3)
    assert quote.monthly_installment == 0
    assert quote.total_repayment == 0
    assert quote.total_cost == 0


def test_compute_quotes_keeps_tenure_order():
    quotes = compute_quotes(DEFAULT_SCHEDULE, 2500, (6, 1, 3))
    assert [q.tenure_months for q in quotes] == [6, 1, 3]
    assert [q.monthly_installment for q in quotes] == [673, 2986, 1091]
