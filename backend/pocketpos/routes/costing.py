from __future__ import annotations

from flask import Blueprint

from . import json_body, json_error, ok
from ..services import admin_service
from ..services.state_service import get_state

costing_bp = Blueprint("costing", __name__, url_prefix="/api/costing")


@costing_bp.get("")
def get_costing():
    return get_state().costing.to_dict()


@costing_bp.put("")
def update_costing():
    try:
        config = admin_service.update_costing(get_state(), json_body())
        return ok(config.to_dict())
    except Exception as e:
        return json_error(e, "update costing")


@costing_bp.post("/toggle")
def toggle_costing():
    try:
        config = admin_service.toggle_costing(get_state())
        return ok(config.to_dict())
    except Exception as e:
        return json_error(e, "toggle costing")
