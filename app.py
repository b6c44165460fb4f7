"""
# ============================================================
#  Project  : Sales Ledger & Credit Risk Engine
#             محرك حسابات المندوبين والعيادات والمخاطر الائتمانية
#  Module   : app.py - HTTP adapter (Flask)
# ============================================================
#  Description:
#    Thin JSON API over the engine. Each request carries its own
#    snapshot (orders, collections, visits, clinics, users) plus the
#    period; nothing is stored between requests.
# ============================================================
"""

import logging
from datetime import datetime, timezone

from flask import Flask, Response, jsonify, request
from werkzeug.utils import secure_filename

import config
from processors import (
    Calculator, ContractError, FileTransformer, LedgerError, NotFoundError,
    ReportBuilder, merge_leaderboards, resolve_period
)
from snapshot.store import Snapshot
from utils.exporters import ReportExporter

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.json.ensure_ascii = False


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _payload():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ContractError("request body must be a JSON object")
    return data


def _period(data):
    token = data.get("period") or "all"
    return token, resolve_period(token, {"from": data.get("from"), "to": data.get("to")})


def _builder(data):
    token, date_range = _period(data)
    return ReportBuilder(Snapshot.from_dict(data), date_range), token, date_range


def _csv_response(text, filename):
    return Response(
        text,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{secure_filename(filename) or "report.csv"}"'},
    )


@app.errorhandler(NotFoundError)
def handle_not_found(e):
    return jsonify({"success": False, "error": str(e)}), 404


@app.errorhandler(LedgerError)
def handle_ledger_error(e):
    logger.info("Rejected request to %s: %s", request.path, e)
    return jsonify({"success": False, "error": str(e)}), 400


# ─────────────────────────────────────────────────────────────────────────────
# Routes
# ─────────────────────────────────────────────────────────────────────────────

@app.route("/api/health")
def api_health():
    return jsonify({"success": True, "status": "ok"})


@app.route("/api/period", methods=["POST"])
def api_period():
    token, date_range = _period(_payload())
    return jsonify({
        "success": True,
        "period": token,
        "range": date_range.to_dict() if date_range else None,
    })


@app.route("/api/roster", methods=["POST"])
def api_roster():
    builder, token, date_range = _builder(_payload())
    rows = builder.representative_roster()
    return jsonify({
        "success": True,
        "period": token,
        "range": date_range.to_dict() if date_range else None,
        "rows": rows,
        "summary": ReportBuilder.summarize(rows),
    })


@app.route("/api/roster.csv", methods=["POST"])
def api_roster_csv():
    builder, token, _ = _builder(_payload())
    text = ReportExporter.to_csv(builder.representative_roster(), ReportBuilder.ROSTER_COLUMNS)
    return _csv_response(text, f"all-reps-{token}.csv")


@app.route("/api/roster.html", methods=["POST"])
def api_roster_html():
    builder, token, _ = _builder(_payload())
    page = ReportExporter.to_printable_html(
        "All Reps Metrics",
        builder.representative_roster(),
        ReportBuilder.ROSTER_COLUMNS,
        headers=ReportBuilder.ROSTER_HEADERS_AR,
        heading="ملخص أداء المندوبين",
    )
    return Response(page, mimetype="text/html")


@app.route("/api/clinics/ledger", methods=["POST"])
def api_clinic_ledger():
    builder, token, _ = _builder(_payload())
    return jsonify({"success": True, "period": token, "rows": builder.clinic_ledger()})


@app.route("/api/orders/credit-check", methods=["POST"])
def api_credit_check():
    """
    فحص الائتمان لطلب لم يُحفظ بعد

    Body: snapshot + clinicId + either items (with optional order-level
    discount %) or orderTotal; paymentMethod 'deferred' adds a due date.
    """
    data = _payload()
    clinic_id = FileTransformer.clean_id(data.get("clinicId") or data.get("clinic_id"))
    if clinic_id is None:
        raise ContractError("clinicId is required")

    builder = ReportBuilder(Snapshot.from_dict(data))
    items = data.get("items")
    if items is not None:
        if not isinstance(items, list):
            raise ContractError("items must be a list")
        totals = Calculator.calculate_order_totals(
            [FileTransformer.transform_item(item) for item in items],
            FileTransformer.parse_number(data.get("discount")),
        )
        order_total = totals.total
    else:
        totals = None
        order_total = FileTransformer.parse_number(data.get("orderTotal"))

    check = builder.credit_check(clinic_id, order_total)

    due_date = None
    if data.get("paymentMethod") == "deferred":
        clinic = builder.snapshot.clinic(clinic_id)
        due = Calculator.due_date(datetime.now(timezone.utc), clinic.payment_terms_days)
        due_date = due.date().isoformat() if due else None

    return jsonify({
        "success": True,
        "order_total": order_total,
        "totals": None if totals is None else {
            "subtotal": totals.subtotal,
            "discount_amount": totals.discount_amount,
            "total": totals.total,
        },
        "credit": check.as_dict(),
        "due_date": due_date,
    })


@app.route("/api/top-products", methods=["POST"])
def api_top_products():
    data = _payload()
    builder, token, _ = _builder(data)
    n = data.get("n", config.TOP_N_DEFAULT)
    rollup_by = data.get("rollupBy")
    if rollup_by and rollup_by != "none":
        leaderboard = builder.rollup_top_products(rollup_by, data.get("rollupValue"), n)
    else:
        leaderboard = builder.top_products(n)
    return jsonify({"success": True, "period": token, **leaderboard.as_dict()})


@app.route("/api/top-products.csv", methods=["POST"])
def api_top_products_csv():
    data = _payload()
    builder, token, _ = _builder(data)
    rollup_by = data.get("rollupBy")
    rollup_value = data.get("rollupValue")
    if not rollup_by or rollup_by == "none" or not rollup_value:
        raise ContractError("rollupBy and rollupValue are required")

    leaderboard = builder.rollup_top_products(rollup_by, rollup_value, data.get("n", config.TOP_N_DEFAULT))
    text = ReportExporter.to_csv(
        merge_leaderboards(leaderboard),
        ReportBuilder.TOP_PRODUCTS_COLUMNS,
        headers=["Product", "Revenue", "Qty"],
    )
    return _csv_response(text, f"rollup-top-products-{rollup_by}-{rollup_value}.csv")


@app.route("/api/representatives/<user_id>/scorecard", methods=["POST"])
def api_scorecard(user_id):
    builder, token, _ = _builder(_payload())
    return jsonify({"success": True, "period": token, **builder.representative_scorecard(user_id)})


if __name__ == "__main__":
    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
    app.run(debug=False, port=5000)
