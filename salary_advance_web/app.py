import logging
import math
import os

from flask import Flask, jsonify, request

from salary_advance.applications import (
    ApplicationError,
    application_to_dict,
    build_application,
    change_status,
    normalize_nrc,
    status_message,
    update_details,
    validate_application,
)
from salary_advance.engine import compute_loan_quote, compute_quotes
from salary_advance.schedule import (
    SUPPORTED_TENURES,
    QuoteRequestError,
    ScheduleError,
    check_monotonic,
    schedule_from_records,
    schedule_to_records,
    update_schedule_entry,
    validate_request,
    validate_schedule,
)
from salary_advance.utils import number_from_str
from salary_advance_web.store import create_store_from_env

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
store = create_store_from_env(os.environ.get("DATABASE_URL"))


def _payload():
    """Return the request body as a dict, accepting JSON or form posts."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def _parse_amount(value):
    try:
        amount = number_from_str(str(value))
    except ValueError:
        raise QuoteRequestError("'amount' must be a number")
    if not math.isfinite(amount):
        raise QuoteRequestError("'amount' must be a finite number")
    return amount


def _parse_request(source) -> tuple:
    """Pull ``amount`` and ``months`` out of a request mapping."""
    amount = _parse_amount(source.get("amount", ""))
    try:
        months = int(source.get("months", 0))
    except (TypeError, ValueError):
        raise QuoteRequestError("'months' must be a whole number")
    return amount, months


def _quote_dict(quote) -> dict:
    return {
        "amount": quote.amount,
        "months": quote.tenure_months,
        "monthly_payment": quote.monthly_installment,
        "total_repayment": quote.total_repayment,
        "total_cost": quote.total_cost,
    }


def _application_view(application) -> dict:
    data = application_to_dict(application)
    data["status_message"] = status_message(application.status)
    return data


def _notify_status_change(application, previous_status: str) -> None:
    message = status_message(application.status)
    logger.info(
        "Application %s status %s -> %s; notifying %s: %s",
        application.id,
        previous_status,
        application.status,
        application.email or application.phone or "applicant",
        message["title"],
    )


@app.errorhandler(QuoteRequestError)
@app.errorhandler(ScheduleError)
@app.errorhandler(ApplicationError)
def handle_bad_request(exc):
    return jsonify({"error": str(exc)}), 400


@app.get("/api/schedule")
def get_schedule():
    table = store.get_schedule()
    return jsonify(
        {
            "tenures": list(SUPPORTED_TENURES),
            "schedule": schedule_to_records(table),
            "warnings": check_monotonic(table),
        }
    )


@app.route("/api/quote", methods=["GET", "POST"])
def quote():
    source = request.args if request.method == "GET" else _payload()
    amount, months = _parse_request(source)
    validate_request(amount, months)
    result = compute_loan_quote(store.get_schedule(), amount, months)
    return jsonify(_quote_dict(result))


@app.get("/api/quotes")
def quotes():
    amount = _parse_amount(request.args.get("amount", ""))
    results = compute_quotes(store.get_schedule(), amount, SUPPORTED_TENURES)
    return jsonify({"amount": amount, "quotes": [_quote_dict(q) for q in results]})


@app.put("/api/admin/schedule")
def replace_schedule():
    data = request.get_json(silent=True)
    records = data.get("schedule") if isinstance(data, dict) else data
    if not isinstance(records, list):
        raise ScheduleError("Request body must be a list of schedule rows")
    table = schedule_from_records(records)
    problems = validate_schedule(table)
    if problems:
        return jsonify({"error": "Schedule rejected", "problems": problems}), 400
    store.save_schedule(table)
    return jsonify({"schedule": schedule_to_records(table), "warnings": check_monotonic(table)})


@app.post("/api/admin/schedule/edit")
def edit_schedule():
    data = _payload()
    try:
        index = int(data.get("index"))
    except (TypeError, ValueError):
        raise ScheduleError("'index' must be an integer")
    updated = update_schedule_entry(store.get_schedule(), index, str(data.get("field", "")), data.get("value"))
    problems = validate_schedule(updated)
    if problems:
        return jsonify({"error": "Edit rejected", "problems": problems}), 400
    preview = None
    if data.get("amount") is not None and data.get("months") is not None:
        amount, months = _parse_request(data)
        # the preview may use any amount, but only an offered tenure
        if months not in SUPPORTED_TENURES:
            raise QuoteRequestError(
                f"Repayment period must be one of {', '.join(str(t) for t in SUPPORTED_TENURES)} months; got {months}"
            )
        preview = _quote_dict(compute_loan_quote(updated, amount, months))
    store.save_schedule(updated)
    response = {"schedule": schedule_to_records(updated)}
    if preview is not None:
        response["preview"] = preview
    return jsonify(response)


@app.post("/api/applications")
def submit_application():
    data = _payload()
    amount, months = _parse_request(data)
    validate_request(amount, months)
    result = compute_loan_quote(store.get_schedule(), amount, months)
    form = {k: v for k, v in data.items() if k not in {"amount", "months"}}
    application = build_application(form, result)
    errors = validate_application(application)
    if errors:
        return jsonify({"error": "Application has invalid details", "fields": errors}), 400
    store.add_application(application)
    logger.info(
        "Application %s submitted: K%s over %s months at K%.2f",
        application.id,
        amount,
        months,
        result.monthly_installment,
    )
    return jsonify(_application_view(application)), 201


@app.get("/api/applications/<application_id>")
def get_application(application_id):
    application = store.get_application(application_id)
    if application is None:
        return jsonify({"error": "Application not found"}), 404
    return jsonify(_application_view(application))


@app.get("/api/status")
def check_status():
    nrc = normalize_nrc(request.args.get("nrc", ""))
    if not nrc:
        return jsonify({"error": "Enter your NRC number"}), 400
    application = store.find_latest_by_nrc(nrc)
    if application is None:
        return jsonify({"error": "No application found with this NRC number"}), 404
    return jsonify(_application_view(application))


@app.get("/api/admin/applications")
def list_applications():
    status = request.args.get("status") or None
    applications = store.list_applications(status)
    return jsonify({"count": len(applications), "applications": [application_to_dict(a) for a in applications]})


@app.patch("/api/admin/applications/<application_id>")
def update_application(application_id):
    application = store.get_application(application_id)
    if application is None:
        return jsonify({"error": "Application not found"}), 404
    data = dict(_payload())
    previous_status = application.status
    new_status = data.pop("status", None)
    if data:
        application = update_details(application, data)
        errors = validate_application(application)
        if errors:
            return jsonify({"error": "Please fix validation errors before saving", "fields": errors}), 400
    if new_status is not None:
        application = change_status(application, new_status)
    store.update_application(application)
    if application.status != previous_status:
        _notify_status_change(application, previous_status)
    return jsonify(_application_view(application))


@app.delete("/api/admin/applications/<application_id>")
def delete_application(application_id):
    if not store.delete_application(application_id):
        return jsonify({"error": "Application not found"}), 404
    return "", 204


if __name__ == "__main__":
    print("Starting salary advance service...")
    app.run(host="0.0.0.0", port=8710, debug=True)
