from __future__ import annotations

from flask import Blueprint

from . import gated, json_body, json_error, ok
from ..services import admin_service
from ..services.state_service import get_state

roster_bp = Blueprint("roster", __name__, url_prefix="/api")


# =============================================================================
# TEAMS
# =============================================================================

@roster_bp.get("/teams")
def list_teams():
    items = [t.to_dict() for t in get_state().roster.teams]
    return {"items": items, "count": len(items)}


@roster_bp.post("/teams")
def create_team():
    try:
        team = admin_service.add_team(get_state(), json_body().get("name"))
        return ok({"team": team.to_dict()}, 201)
    except Exception as e:
        return json_error(e, "create team")


@roster_bp.put("/teams/<team_id>")
def update_team(team_id: str):
    try:
        team = admin_service.update_team(get_state(), team_id, json_body())
        if team is None:
            return {"error": "Team not found"}, 404
        return ok({"team": team.to_dict()})
    except Exception as e:
        return json_error(e, "update team")


@roster_bp.delete("/teams/<team_id>")
def delete_team(team_id: str):
    try:
        return gated(admin_service.request_delete_team(get_state(), team_id))
    except Exception as e:
        return json_error(e, "delete team")


# =============================================================================
# PAYMENT METHODS
# =============================================================================

@roster_bp.get("/payment-methods")
def list_payment_methods():
    items = [m.to_dict() for m in get_state().roster.payment_methods]
    return {"items": items, "count": len(items)}


@roster_bp.post("/payment-methods")
def create_payment_method():
    try:
        method = admin_service.add_payment_method(get_state(), json_body().get("name"))
        return ok({"payment_method": method.to_dict()}, 201)
    except Exception as e:
        return json_error(e, "create payment method")


@roster_bp.put("/payment-methods/<method_id>")
def update_payment_method(method_id: str):
    try:
        method = admin_service.update_payment_method(get_state(), method_id, json_body())
        if method is None:
            return {"error": "Payment method not found"}, 404
        return ok({"payment_method": method.to_dict()})
    except Exception as e:
        return json_error(e, "update payment method")


@roster_bp.delete("/payment-methods/<method_id>")
def delete_payment_method(method_id: str):
    try:
        return gated(admin_service.request_delete_payment_method(get_state(), method_id))
    except Exception as e:
        return json_error(e, "delete payment method")
