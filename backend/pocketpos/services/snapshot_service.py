"""
Snapshot Synchronizer: export/import of the whole configuration as one
versioned JSON document.

Document layout:
    {
      "meta":    {"type": SNAPSHOT_TYPE, "version": "2.4", "date": "<ISO-8601>", "exportedBy": "..."},
      "payload": {"products": [...], "teams": [...], "paymentMethods": [...],
                  "categories": [...], "lootConfig": {...}}
    }

The ledger is session-local and never exported.

Import rules:
- meta.type must match SNAPSHOT_TYPE and payload must be an object, anything
  else is a ValidationError and nothing changes
- every payload sub-field is optional; absent (or malformed) ones keep the
  current value
- catalog, roster and costing are rebuilt completely before they are swapped
  in together, then persisted in one durable transaction
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..time_utils import date_stamp, format_timestamp, parse_timestamp, utcnow
from ..validation import ValidationError
from .catalog_service import CatalogStore, Product
from .costing_service import CostingModel
from .roster_service import RosterStore
from .state_service import CONFIGURATION_KEYS

logger = logging.getLogger(__name__)

SNAPSHOT_TYPE = "POCKET_HORNET_CONFIG"
SNAPSHOT_VERSION = "2.4"
EXPORTED_BY = "POCKETPOS_ADMIN"
FILE_PREFIX = "HORNET_CONFIG"


@dataclass(frozen=True)
class SnapshotMeta:
    type: str
    version: str | None
    date: datetime | None
    exported_by: str | None = None


@dataclass(frozen=True)
class Snapshot:
    meta: SnapshotMeta
    payload: dict


def build_snapshot(
    catalog: CatalogStore,
    roster: RosterStore,
    costing: CostingModel,
    *,
    now: datetime | None = None,
    version: str = SNAPSHOT_VERSION,
    exported_by: str = EXPORTED_BY,
) -> dict:
    return {
        "meta": {
            "type": SNAPSHOT_TYPE,
            "version": version,
            "date": format_timestamp(now or utcnow()),
            "exportedBy": exported_by,
        },
        "payload": {
            "products": [p.to_dict() for p in catalog.products],
            "teams": [t.to_dict() for t in roster.teams],
            "paymentMethods": [m.to_dict() for m in roster.payment_methods],
            "categories": list(catalog.categories),
            "lootConfig": costing.to_dict(),
        },
    }


def export_snapshot(
    state,
    *,
    now: datetime | None = None,
    version: str = SNAPSHOT_VERSION,
    exported_by: str = EXPORTED_BY,
) -> dict:
    return build_snapshot(
        state.catalog, state.roster, state.costing, now=now, version=version, exported_by=exported_by
    )


def snapshot_filename(now: datetime | None = None, prefix: str = FILE_PREFIX) -> str:
    return f"{prefix}_{date_stamp(now)}.json"


def dumps_snapshot(document: dict) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def parse_snapshot(raw: Any) -> Snapshot:
    """Validate an incoming document (str, bytes or decoded mapping)."""
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            raise ValidationError("Snapshot is not UTF-8 text")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"Snapshot is not valid JSON: {exc.msg}")

    if not isinstance(raw, dict):
        raise ValidationError("Invalid file format: expected a JSON object")
    meta = raw.get("meta")
    if not isinstance(meta, dict) or meta.get("type") != SNAPSHOT_TYPE:
        raise ValidationError(f"Invalid file format: not a {SNAPSHOT_TYPE} document")
    payload = raw.get("payload")
    if not isinstance(payload, dict):
        raise ValidationError("Invalid file format: payload is missing")

    date = parse_timestamp(meta.get("date"))
    version = meta.get("version")
    if version is not None and str(version) != SNAPSHOT_VERSION:
        logger.info("Importing snapshot version %s (current format is %s)", version, SNAPSHOT_VERSION)

    return Snapshot(
        meta=SnapshotMeta(
            type=SNAPSHOT_TYPE,
            version=str(version) if version is not None else None,
            date=date,
            exported_by=meta.get("exportedBy"),
        ),
        payload=payload,
    )


def _list_field(payload: dict, key: str) -> list | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        logger.warning("Snapshot field %s is not a list; keeping current value", key)
        return None
    return value


def _dict_field(payload: dict, *keys: str) -> dict | None:
    for key in keys:
        value = payload.get(key)
        if value is None:
            continue
        if isinstance(value, dict):
            return value
        logger.warning("Snapshot field %s is not an object; keeping current value", key)
    return None


def materialize(snapshot: Snapshot, state) -> tuple[CatalogStore, RosterStore, CostingModel]:
    """Build the complete replacement stores without touching state."""
    payload = snapshot.payload

    raw_products = _list_field(payload, "products")
    raw_categories = _list_field(payload, "categories")
    products = (
        [Product.from_dict(r) for r in raw_products if isinstance(r, dict)]
        if raw_products is not None
        else list(state.catalog.products)
    )
    categories = (
        [c for c in raw_categories if isinstance(c, str)]
        if raw_categories is not None
        else list(state.catalog.categories)
    )
    # CatalogStore adds any category a product references
    catalog = CatalogStore(products=products, categories=categories)

    raw_teams = _list_field(payload, "teams")
    raw_methods = _list_field(payload, "paymentMethods")
    roster = RosterStore.from_dict({
        "teams": raw_teams if raw_teams is not None else [t.to_dict() for t in state.roster.teams],
        "payment_methods": raw_methods if raw_methods is not None else [m.to_dict() for m in state.roster.payment_methods],
    })

    raw_costing = _dict_field(payload, "lootConfig", "costingConfig")
    costing = CostingModel.from_dict(raw_costing) if raw_costing is not None else CostingModel(state.costing.config)

    return catalog, roster, costing


def apply_snapshot(state, snapshot: Snapshot) -> None:
    """
    Replace catalog, roster and costing wholesale, then persist them.

    Raises PersistenceError if the durable write fails; the new configuration
    is active in memory regardless.
    """
    catalog, roster, costing = materialize(snapshot, state)
    state.replace_configuration(catalog, roster, costing)
    state.persist(*CONFIGURATION_KEYS, strict=True)
    logger.info(
        "Snapshot applied: %d products, %d categories, %d teams",
        len(catalog.products),
        len(catalog.categories),
        len(roster.teams),
    )
