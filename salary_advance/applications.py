"""Application records: submission snapshots, review edits and status.

An application carries the loan figures that were quoted when it was
submitted. Later edits by staff change the applicant's details or the review
status, never the loan figures.
"""

from __future__ import annotations

import re
from dataclasses import asdict, fields, replace
from datetime import datetime
from typing import Any, Dict, Mapping, Optional
from uuid import uuid4

from .data_models import Application, LoanDetails, LoanQuote
from .utils import digits_only, utc_now_iso

STATUS_NEW = "New"
STATUS_PENDING = "Pending"
STATUS_UNDER_REVIEW = "Under Review"
STATUS_APPROVED = "Approved"
STATUS_REJECTED = "Rejected"

STATUSES = (STATUS_NEW, STATUS_PENDING, STATUS_UNDER_REVIEW, STATUS_APPROVED, STATUS_REJECTED)

_STATUS_ALIASES = {"Reviewing": STATUS_UNDER_REVIEW}

STATUS_MESSAGES: Dict[str, Dict[str, str]] = {
    STATUS_NEW: {
        "title": "Application Submitted Successfully",
        "message": "Your application has been successfully submitted and is now under review.",
    },
    STATUS_PENDING: {
        "title": "Application Pending",
        "message": "Your application has been received and is waiting to be picked up by our team.",
    },
    STATUS_UNDER_REVIEW: {
        "title": "Under Review",
        "message": "Your application is currently being reviewed by our team. "
        "We're checking the details you provided.",
    },
    STATUS_APPROVED: {
        "title": "Loan Approved!",
        "message": "Congratulations! Your salary advance has been approved. "
        "The funds will be disbursed to your account shortly.",
    },
    STATUS_REJECTED: {
        "title": "Application Declined",
        "message": "After careful consideration, we are unable to approve your application at this time. "
        "Please contact us for more details.",
    },
}

# Fields staff may not overwrite through a review edit.
_PROTECTED_FIELDS = {"id", "submitted_at", "loan_details", "status"}

_EMAIL = re.compile(r"\S+@\S+\.\S+")

_OPTIONAL_TEXT_FIELDS = {"selfie", "latest_payslip"}
_NON_TEXT_FIELDS = _PROTECTED_FIELDS | _OPTIONAL_TEXT_FIELDS | {"declaration_agreed", "extra"}
_CHECKBOX_VALUES = {"true": True, "on": True, "yes": True, "1": True, "false": False, "off": False, "no": False, "0": False, "": False}


class ApplicationError(ValueError):
    """Raised for applications that cannot be created or updated."""


def _application_field_names() -> set:
    return {f.name for f in fields(Application)}


def _clean_details(values: Mapping[str, Any]) -> Dict[str, Any]:
    """Check applicant detail types and normalise them for storage.

    ``None`` for a text field becomes ``""``; any other non-string value is
    refused.
    """
    cleaned = dict(values)
    for name, value in values.items():
        if name in _OPTIONAL_TEXT_FIELDS:
            if value is not None and not isinstance(value, str):
                raise ApplicationError(f"'{name}' must be a string or null")
        elif name == "declaration_agreed":
            # form posts send checkboxes as text
            if isinstance(value, str) and value.strip().lower() in _CHECKBOX_VALUES:
                cleaned[name] = _CHECKBOX_VALUES[value.strip().lower()]
            elif not isinstance(value, bool):
                raise ApplicationError("'declaration_agreed' must be true or false")
        elif name not in _NON_TEXT_FIELDS:
            if value is None:
                cleaned[name] = ""
            elif not isinstance(value, str):
                raise ApplicationError(f"'{name}' must be a string; got {type(value).__name__}")
    if "nrc" in cleaned:
        cleaned["nrc"] = normalize_nrc(cleaned["nrc"])
    return cleaned


def build_application(form: Mapping[str, Any], quote: LoanQuote, now: Optional[datetime] = None) -> Application:
    """Create a new application from applicant fields and a computed quote.

    Unknown form keys are kept under ``extra``. A zero installment means the
    request could not be quoted and is refused.
    """
    if quote.monthly_installment <= 0:
        raise ApplicationError("Cannot submit an application without a valid quote")

    known = _application_field_names() - _PROTECTED_FIELDS - {"extra"}
    values = _clean_details({k: v for k, v in form.items() if k in known})
    extra = {k: v for k, v in form.items() if k not in known and k not in _PROTECTED_FIELDS}
    return Application(
        id=uuid4().hex,
        submitted_at=utc_now_iso(now),
        status=STATUS_NEW,
        loan_details=LoanDetails(
            amount=quote.amount,
            months=quote.tenure_months,
            monthly_payment=quote.monthly_installment,
        ),
        extra=extra,
        **values,
    )


def validate_application(application: Application) -> Dict[str, str]:
    """Return ``{field: message}`` for every detail that fails the review checks."""
    errors: Dict[str, str] = {}
    if not application.full_names.strip():
        errors["full_names"] = "Full Name is required."
    if not application.nrc.strip():
        errors["nrc"] = "NRC is required."
    elif len(digits_only(application.nrc)) < 9:
        errors["nrc"] = "Invalid NRC format (too short)."
    if not application.phone.strip():
        errors["phone"] = "Phone is required."
    elif len(digits_only(application.phone)) < 10:
        errors["phone"] = "Phone must have at least 10 digits."
    if not application.email.strip():
        errors["email"] = "Email is required."
    elif not _EMAIL.search(application.email):
        errors["email"] = "Invalid email address format."
    if not application.employer.strip():
        errors["employer"] = "Employer is required."
    return errors


def update_details(application: Application, changes: Mapping[str, Any]) -> Application:
    """Return a copy of ``application`` with applicant details changed."""
    blocked = set(changes) & _PROTECTED_FIELDS
    if blocked:
        raise ApplicationError(f"Fields cannot be edited: {', '.join(sorted(blocked))}")
    unknown = set(changes) - _application_field_names()
    if unknown:
        raise ApplicationError(f"Unknown fields: {', '.join(sorted(unknown))}")
    return replace(application, **_clean_details(changes))


def change_status(application: Application, status: str) -> Application:
    """Return a copy of ``application`` with a new review status."""
    status = _STATUS_ALIASES.get(status, status)
    if status not in STATUSES:
        raise ApplicationError(f"Status must be one of {', '.join(STATUSES)}; got {status!r}")
    return replace(application, status=status)


def status_message(status: Optional[str]) -> Dict[str, str]:
    """Return the applicant-facing title and message for ``status``."""
    return STATUS_MESSAGES.get(status or STATUS_NEW, STATUS_MESSAGES[STATUS_NEW])


def normalize_nrc(nrc: str) -> str:
    return (nrc or "").strip()


def application_to_dict(application: Application) -> Dict[str, Any]:
    """Return a JSON-serialisable dict for ``application``."""
    return asdict(application)


def application_from_dict(data: Mapping[str, Any]) -> Application:
    """Rebuild an application from :func:`application_to_dict` output."""
    values = dict(data)
    try:
        values["loan_details"] = LoanDetails(**values["loan_details"])
        return Application(**values)
    except (KeyError, TypeError) as exc:
        raise ApplicationError(f"Malformed application record: {exc}") from exc
