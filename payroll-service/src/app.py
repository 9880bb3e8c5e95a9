"""
BharatPay Payroll Service
Flask application entry point with health check, single-employee
calculation and batch payroll run endpoints.
"""

import os
import logging
import time
from flask import Flask, jsonify, request
from flask_cors import CORS

from payroll_engine import calculate_payroll_api
from payroll_run import payroll_run_api

# Configure logging
logging.basicConfig(
    level=os.environ.get("PAYROLL_LOG_LEVEL", "INFO"),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app, origins=os.environ.get(
    "PAYROLL_CORS_ORIGINS", "http://localhost:3001,http://localhost:3000").split(","))

# HTTP status per run error; anything unlisted is a bad request
_ERROR_STATUS = {
    "PeriodLockedError": 409,
    "EPSMaturityError":  409,
    "UnlockError":       409,
    "CalculationError":  500,
}


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.route("/health", methods=["GET"])
def health():
    """Lightweight liveness probe used by load balancers and Docker."""
    return jsonify(
        {
            "status": "ok",
            "service": "payroll-service",
            "timestamp": time.time(),
            "version": "1.0.0",
        }
    )


# ---------------------------------------------------------------------------
# Single employee calculation
# ---------------------------------------------------------------------------

@app.route("/payroll/calculate", methods=["POST"])
def calculate_payroll():
    """
    POST /payroll/calculate
    Body: { "employee": {...}, "config": {...}, "month": str, "year": int,
            "attendance": {...}, "leave_ledger": {...}, "advance_ledger": {...},
            "fines": [...], "restrict_to_50_percent": bool }
    Returns: the itemised PayrollResult.
    """
    body = request.get_json(silent=True) or {}
    if not (body.get("employee") or {}).get("id"):
        return jsonify({"error": "employee.id is required"}), 400

    result = calculate_payroll_api(body)
    if "error" in result:
        logger.warning("Calculation rejected: %s", result["error"])
        return jsonify(result), 400
    return jsonify(result)


# ---------------------------------------------------------------------------
# Batch run / draft / freeze / unlock
# ---------------------------------------------------------------------------

@app.route("/payroll/run", methods=["POST"])
def payroll_run():
    """
    POST /payroll/run
    Body: { "action": "run" | "save" | "freeze" | "unlock" | "status",
            "establishment": str, "month": str, "year": int, ... }
    """
    body = request.get_json(silent=True) or {}
    start = time.perf_counter()

    result = payroll_run_api(body)
    if "error" in result:
        code = _ERROR_STATUS.get(result.get("error_type", ""), 400)
        logger.error("Payroll %s failed: %s", body.get("action", "run"), result["error"])
        return jsonify(result), code

    result["latency_ms"] = round((time.perf_counter() - start) * 1000, 2)
    return jsonify(result)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    port = int(os.environ.get("PAYROLL_SERVICE_PORT", 5002))
    debug = os.environ.get("FLASK_DEBUG", "0") == "1"
    logger.info("Starting payroll service on port %d (debug=%s)", port, debug)
    app.run(host="0.0.0.0", port=port, debug=debug)
