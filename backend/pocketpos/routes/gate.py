# Overview: Confirm/cancel endpoints for the single pending gate request.

from __future__ import annotations

from flask import Blueprint, jsonify

from . import json_body, json_error, ok, to_jsonable
from ..services.state_service import get_state
from ..validation import PersistenceError

gate_bp = Blueprint("gate", __name__, url_prefix="/api/gate")


@gate_bp.get("")
def get_gate():
    return {"pending": get_state().gate.pending.to_dict()}


@gate_bp.post("/confirm")
def confirm():
    """
    Run the pending operation.

    Body (prompts only): {"value": "..."}; omitted means the prompt's initial text.
    """
    state = get_state()
    try:
        result = state.gate.confirm(json_body().get("value"))
        return ok({"confirmed": True, "result": to_jsonable(result)})
    except PersistenceError as e:
        if not e.applied:
            return json_error(e, "confirm gate request")
        # Operation is live in memory, only the durable write failed
        return jsonify({
            "confirmed": True,
            "result": None,
            "persisted": False,
            "warnings": state.take_warnings(),
        }), 200
    except Exception as e:
        return json_error(e, "confirm gate request")


@gate_bp.post("/cancel")
def cancel():
    return {"cancelled": get_state().gate.cancel()}
