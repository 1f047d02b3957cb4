# Overview: Session ledger endpoints: history, recording, voids and till reset.

from __future__ import annotations

from flask import Blueprint, request

from . import gated, json_body, json_error, ok
from ..services import admin_service
from ..services.state_service import get_state

ledger_bp = Blueprint("ledger", __name__, url_prefix="/api/ledger")


@ledger_bp.get("")
def get_ledger():
    """
    Ledger history plus the derived dashboard figures.

    Query params:
    - include_voided: "false" hides events that have been voided
    """
    state = get_state()
    include_voided = request.args.get("include_voided", "true").lower() != "false"
    body = admin_service.dashboard(state)
    body["items"] = state.ledger.history(include_voided=include_voided)
    return body


@ledger_bp.post("/sales")
def record_sale():
    payload = json_body()
    try:
        ev = admin_service.record_sale(
            get_state(),
            payload.get("amount"),
            payload.get("description") or "",
            team_id=payload.get("team_id"),
        )
        return ok({"event": ev.to_dict()}, 201)
    except Exception as e:
        return json_error(e, "record sale")


@ledger_bp.post("/expenses")
def record_expense():
    payload = json_body()
    try:
        ev = admin_service.record_expense(get_state(), payload.get("amount"), payload.get("description"))
        return ok({"event": ev.to_dict()}, 201)
    except Exception as e:
        return json_error(e, "record expense")


@ledger_bp.post("/deposits")
def record_deposit():
    try:
        ev = admin_service.record_deposit(get_state(), json_body().get("amount"))
        return ok({"event": ev.to_dict()}, 201)
    except Exception as e:
        return json_error(e, "record deposit")


@ledger_bp.post("/withdrawals")
def request_withdrawal():
    try:
        return gated(admin_service.request_withdrawal(get_state(), json_body().get("amount")))
    except Exception as e:
        return json_error(e, "request withdrawal")


@ledger_bp.post("/<int:event_id>/void")
def void_event(event_id: int):
    try:
        return gated(admin_service.request_void(get_state(), event_id))
    except Exception as e:
        return json_error(e, "void ledger event")


@ledger_bp.post("/undo")
def undo_last():
    try:
        return gated(admin_service.request_undo_last(get_state()))
    except Exception as e:
        return json_error(e, "undo last transaction")


@ledger_bp.post("/reset")
def reset_ledger():
    try:
        return gated(admin_service.request_ledger_reset(get_state()))
    except Exception as e:
        return json_error(e, "reset ledger")
