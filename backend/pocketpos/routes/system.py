# backend/pocketpos/routes/system.py
"""
System health, version and factory-reset endpoints.
"""

import time

from flask import Blueprint, current_app

from . import gated, json_error
from ..extensions import db
from ..models import StateEntry
from ..services import admin_service
from ..services.state_service import get_state
from ..time_utils import format_timestamp, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """Check database connectivity by counting durable state rows."""
    start_time = time.time()
    try:
        entry_count = db.session.query(StateEntry).count()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"state_entries": entry_count},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    database = check_database_health()
    state = get_state()
    overall = "healthy" if database["status"] == "healthy" else "unhealthy"
    body = {
        "status": overall,
        "timestamp": format_timestamp(utcnow()),
        "checks": {
            "database": database,
            "state": {
                "status": "healthy",
                "products": len(state.catalog.products),
                "ledger_events": len(state.ledger.events),
                "gate_open": state.gate.is_open,
            },
        },
    }
    return body, 200 if overall == "healthy" else 503


@system_bp.get("/version")
def version():
    return {
        "name": "pocketpos",
        "snapshot_type": current_app.config["SNAPSHOT_TYPE"],
        "snapshot_version": current_app.config["SNAPSHOT_VERSION"],
    }


@system_bp.post("/api/system/factory-reset")
def factory_reset():
    try:
        return gated(admin_service.request_factory_reset(get_state()))
    except Exception as e:
        return json_error(e, "request factory reset")
