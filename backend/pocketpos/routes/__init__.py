# Overview: Shared response helpers for the JSON blueprints.

from __future__ import annotations

from flask import current_app, jsonify, request

from ..services.state_service import get_state
from ..validation import PersistenceError, PreconditionError, ValidationError


def json_body() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def to_jsonable(value):
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


def ok(payload: dict, status: int = 200):
    """Attach any pending persistence warnings to a success payload."""
    warnings = get_state().take_warnings()
    if warnings:
        payload = dict(payload)
        payload["warnings"] = warnings
        payload["persisted"] = False
    return jsonify(payload), status


def gated(pending):
    """A gated operation was requested; the client must confirm through /api/gate."""
    return jsonify({"pending": pending.to_dict()}), 202


def json_error(exc: Exception, action: str):
    if isinstance(exc, ValidationError):
        return jsonify({"error": str(exc)}), 400
    if isinstance(exc, PreconditionError):
        return jsonify({"error": str(exc)}), 409
    if isinstance(exc, PersistenceError):
        return jsonify({"error": str(exc), "persisted": False, "warnings": get_state().take_warnings()}), 500
    current_app.logger.exception("Failed to %s", action)
    return jsonify({"error": "Internal server error"}), 500
