# Overview: Configuration snapshot export (download) and import (gated).

from __future__ import annotations

from flask import Blueprint, Response, current_app, request

from . import gated, json_error
from ..services import admin_service
from ..services.snapshot_service import dumps_snapshot, snapshot_filename
from ..services.state_service import get_state

snapshot_bp = Blueprint("snapshot", __name__, url_prefix="/api/snapshot")


@snapshot_bp.get("/export")
def export_snapshot():
    document = admin_service.export_snapshot(
        get_state(),
        version=current_app.config["SNAPSHOT_VERSION"],
        exported_by=current_app.config["SNAPSHOT_EXPORTED_BY"],
    )
    return Response(
        dumps_snapshot(document),
        mimetype="application/json",
        headers={"Content-Disposition": f'attachment; filename="{snapshot_filename()}"'},
    )


@snapshot_bp.post("/import")
def import_snapshot():
    """
    Accepts the snapshot either as a JSON body or as an uploaded file (field "file").

    The document is validated up front; a malformed one is rejected with 400
    and never reaches the gate.
    """
    upload = request.files.get("file")
    raw = upload.read() if upload is not None else request.get_data()
    if not raw:
        return {"error": "No snapshot provided"}, 400
    try:
        return gated(admin_service.request_import(get_state(), raw))
    except Exception as e:
        return json_error(e, "import snapshot")
