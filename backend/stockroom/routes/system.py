# backend/stockroom/routes/system.py
"""System health endpoint."""

import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api/v1")


def check_database_health() -> dict:
    """Round-trip a trivial query and report its latency."""
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        current_app.logger.error("Database health check failed: %s", exc)
        db.session.rollback()
        return {"status": "unhealthy", "error": exc.__class__.__name__}
    elapsed_ms = (time.time() - start_time) * 1000
    return {"status": "healthy", "response_time_ms": round(elapsed_ms, 2)}


@system_bp.get("/health")
def health():
    database = check_database_health()
    status = 200 if database["status"] == "healthy" else 503
    return jsonify({
        "status": status,
        "data": {
            "database": database,
            "timestamp": to_utc_z(utcnow()),
        },
    }), status
