"""Data models for the salary advance calculator.

This module defines dataclasses for the repayment schedule table rows, the
quotes computed from that table and the application records that snapshot a
quote at submission time. Using dataclasses makes it easy to construct,
inspect and serialize these structures.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Union

Number = Union[int, float]


@dataclass(frozen=True)
class ScheduleEntry:
    """One row of the base repayment schedule.

    Attributes
    ----------
    disbursed_amount: Number
        The principal paid out to the applicant. Unique across a table.
    installments: Dict[int, Number]
        Monthly installment keyed by tenure in months.
    """

    disbursed_amount: Number
    installments: Dict[int, Number]


@dataclass(frozen=True)
class LoanQuote:
    """The computed installment and derived totals for one request."""

    amount: Number
    tenure_months: int
    monthly_installment: Number
    total_repayment: Number
    total_cost: Number


@dataclass(frozen=True)
class LoanDetails:
    """Loan figures frozen into an application when it is submitted.

    These are facts of the application from then on; they are not recomputed
    when the schedule table changes.
    """

    amount: Number
    months: int
    monthly_payment: Number


@dataclass
class Application:
    """A submitted salary advance application."""

    id: str
    submitted_at: str  # ISO 8601 timestamp
    status: str
    loan_details: LoanDetails
    date_of_application: str = ""
    full_names: str = ""
    nrc: str = ""
    employee_number: str = ""
    employer: str = ""
    phone: str = ""
    email: str = ""
    employment_address: str = ""
    employment_terms: str = ""  # "Permanent" or "Contract"
    loan_purpose: str = ""
    kin_full_names: str = ""
    kin_nrc: str = ""
    kin_relationship: str = ""
    kin_phone: str = ""
    kin_residential_address: str = ""
    bank_name: str = ""
    branch_name: str = ""
    account_number: str = ""
    declaration_agreed: bool = False
    signature: str = ""
    # Document captures are opaque data URLs produced by the client.
    selfie: Optional[str] = None
    latest_payslip: Optional[str] = None
    extra: Dict[str, object] = field(default_factory=dict)
