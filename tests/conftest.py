import os

import pytest

# The web module opens its store at import time; keep that off disk.
os.environ.setdefault("DATABASE_URL", "sqlite://")

from salary_advance.data_models import ScheduleEntry
from salary_advance_web.store import SalaryAdvanceStore


@pytest.fixture
def sample_table():
    return [
        ScheduleEntry(disbursed_amount=500, installments={3: 243}),
        ScheduleEntry(disbursed_amount=1000, installments={3: 455}),
        ScheduleEntry(disbursed_amount=2000, installments={3: 879}),
    ]


@pytest.fixture
def store(tmp_path):
    return SalaryAdvanceStore(f"sqlite:///{tmp_path / 'test.sqlite3'}")


@pytest.fixture
def client(store, monkeypatch):
    from salary_advance_web import app as app_module

    monkeypatch.setattr(app_module, "store", store)
    app_module.app.config["TESTING"] = True
    with app_module.app.test_client() as c:
        yield c


@pytest.fixture
def applicant():
    return {
        "full_names": "Mwila Banda",
        "nrc": "123456/10/1",
        "employee_number": "EMP-0042",
        "employer": "Ministry of Health",
        "phone": "0977123456",
        "email": "mwila@example.com",
        "bank_name": "Zanaco",
        "account_number": "0123456789",
        "declaration_agreed": True,
    }
