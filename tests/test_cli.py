# tests/test_cli.py
import json

import pytest
from click.testing import CliRunner

from salary_advance.formatter import format_currency
from salary_advance.main import cli, parse_amount
from salary_advance.schedule import DEFAULT_SCHEDULE, load_schedule, save_schedule


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def schedule_file(tmp_path):
    path = tmp_path / "schedule.json"
    save_schedule(path, DEFAULT_SCHEDULE)
    return path


def test_format_currency():
    assert format_currency(0) == "K0"
    assert format_currency(-5) == "K0"
    assert format_currency(121.5) == "K122"
    assert format_currency(10533) == "K10,533"


def test_parse_amount():
    assert parse_amount("2500") == 2500
    assert parse_amount("2.5k") == 2500
    assert parse_amount("1,250") == 1250
    assert parse_amount("750.5") == 750.5


def test_quote_command(runner):
    result = runner.invoke(cli, ["quote", "--amount", "1000", "--months", "3"])
    assert result.exit_code == 0, result.output
    assert "Monthly installment: K455" in result.output
    assert "Total repayment    : K1,365" in result.output
    assert "Total cost         : K365" in result.output


def test_quote_rejects_unsupported_tenure(runner):
    result = runner.invoke(cli, ["quote", "--amount", "1000", "--months", "9"])
    assert result.exit_code != 0
    assert "Repayment period must be one of" in result.output


def test_quote_rejects_out_of_range_amount_unless_allowed(runner):
    result = runner.invoke(cli, ["quote", "--amount", "250", "--months", "3"])
    assert result.exit_code != 0
    result = runner.invoke(cli, ["quote", "--amount", "250", "--months", "3", "--allow-any-amount"])
    assert result.exit_code == 0
    assert "Monthly installment: K122" in result.output


def test_quote_export(runner, tmp_path):
    out = tmp_path / "quote.json"
    result = runner.invoke(cli, ["quote", "-a", "1500", "-m", "3", "--output", str(out)])
    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text())
    assert data["quote"]["monthly_installment"] == pytest.approx(667)
    assert data["quote"]["tenure_months"] == 3


def test_quotes_command(runner):
    result = runner.invoke(cli, ["quotes", "--amount", "2500"])
    assert result.exit_code == 0, result.output
    lines = result.output.strip().splitlines()
    assert lines[0].split("\t") == ["Months", "Monthly", "Total", "Cost"]
    assert lines[1].split("\t") == ["1", "2986.00", "2986.00", "486.00"]
    assert len(lines) == 7


def test_table_export_csv(runner, tmp_path):
    out = tmp_path / "table.csv"
    result = runner.invoke(cli, ["table", "--output", str(out)])
    assert result.exit_code == 0, result.output
    rows = out.read_text().splitlines()
    assert rows[0].startswith("Disbursed_Amount,Installment_1M")
    assert rows[1] == "500,664,357,243,194,161,189"


def test_validate_command(runner, schedule_file, tmp_path):
    result = runner.invoke(cli, ["validate", "--schedule", str(schedule_file)])
    assert result.exit_code == 0
    assert "Schedule OK: 19 rows" in result.output

    broken = tmp_path / "broken.json"
    broken.write_text(json.dumps([{"disbursedAmount": 500, "installments": {"1": 664}}]))
    result = runner.invoke(cli, ["validate", "--schedule", str(broken)])
    assert result.exit_code == 1
    assert "missing installment for 2 months" in result.output


def test_edit_command_writes_file(runner, schedule_file):
    result = runner.invoke(
        cli, ["edit", "-s", str(schedule_file), "-i", "0", "-f", "installments.3", "-v", "250"]
    )
    assert result.exit_code == 0, result.output
    assert load_schedule(schedule_file)[0].installments[3] == 250


def test_edit_command_rejects_duplicate_amount(runner, schedule_file):
    result = runner.invoke(
        cli, ["edit", "-s", str(schedule_file), "-i", "1", "-f", "disbursed_amount", "-v", "500"]
    )
    assert result.exit_code == 1
    assert "duplicates row 0" in result.output
    assert load_schedule(schedule_file)[1].disbursed_amount == 600


def test_missing_schedule_file(runner, tmp_path):
    result = runner.invoke(cli, ["table", "--schedule", str(tmp_path / "nope.json")])
    assert result.exit_code == 2


def test_schedule_file_that_is_not_text(runner, tmp_path):
    path = tmp_path / "schedule.json"
    path.write_bytes(b"\xff\xfe\x00[bad")
    result = runner.invoke(cli, ["table", "--schedule", str(path)])
    assert result.exit_code == 2
    assert "not UTF-8" in result.output
