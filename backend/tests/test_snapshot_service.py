"""
Snapshot synchronizer tests: export layout, validation of incoming documents,
wholesale replacement on apply, and persistence failure reporting.
"""

import json
from datetime import datetime
from decimal import Decimal

import pytest

from pocketpos.services.catalog_service import CatalogStore, Product
from pocketpos.services.costing_service import CostingConfig, CostingModel
from pocketpos.services.roster_service import RosterStore, Team
from pocketpos.services.snapshot_service import (
    EXPORTED_BY,
    SNAPSHOT_TYPE,
    SNAPSHOT_VERSION,
    apply_snapshot,
    dumps_snapshot,
    export_snapshot,
    parse_snapshot,
    snapshot_filename,
)
from pocketpos.services.state_service import AppState
from pocketpos.validation import PersistenceError, ValidationError


@pytest.fixture
def seeded(state):
    state.catalog = CatalogStore(
        products=[
            Product(id="a", name="Cola", price=Decimal("5.00"), category="BAR"),
            Product(id="b", name="Chips", price=Decimal("3.00"), category="SNACKS", active=False),
        ],
        categories=["LEER"],
    )
    state.roster = RosterStore(teams=[Team(id="t1", name="Rot")])
    state.costing = CostingModel(CostingConfig(active=True, rent_cost=Decimal("10.00")))
    state.ledger.record("sale", 8)
    return state


def _observable(state):
    return (state.catalog.to_dict(), state.roster.to_dict(), state.costing.to_dict(), state.ledger.to_dict())


def _document(payload, type_=SNAPSHOT_TYPE):
    return {"meta": {"type": type_, "version": SNAPSHOT_VERSION, "date": "2026-10-18T10:00:00Z"}, "payload": payload}


# =============================================================================
# EXPORT
# =============================================================================

class TestExport:
    def test_layout(self, seeded):
        document = export_snapshot(seeded, now=datetime(2026, 10, 18, 9, 30))
        assert document["meta"] == {
            "type": SNAPSHOT_TYPE,
            "version": SNAPSHOT_VERSION,
            "date": "2026-10-18T09:30:00Z",
            "exportedBy": EXPORTED_BY,
        }
        payload = document["payload"]
        assert set(payload) == {"products", "teams", "paymentMethods", "categories", "lootConfig"}
        assert [p["id"] for p in payload["products"]] == ["a", "b"]
        assert payload["categories"] == ["ALLGEMEIN", "BAR", "LEER", "SNACKS"]
        assert payload["lootConfig"]["rentCost"] == 10.0

    def test_ledger_is_not_exported(self, seeded):
        assert "ledger" not in dumps_snapshot(export_snapshot(seeded)).lower()

    def test_filename(self):
        assert snapshot_filename(datetime(2026, 10, 18)) == "HORNET_CONFIG_2026-10-18.json"


# =============================================================================
# PARSE
# =============================================================================

class TestParse:
    def test_accepts_text_bytes_and_mapping(self):
        document = _document({"products": []})
        for raw in (document, json.dumps(document), json.dumps(document).encode("utf-8")):
            snapshot = parse_snapshot(raw)
            assert snapshot.meta.type == SNAPSHOT_TYPE
            assert snapshot.meta.date == datetime(2026, 10, 18, 10, 0)

    @pytest.mark.parametrize(
        "raw",
        [
            "{not json",
            "[]",
            {"payload": {}},
            {"meta": {"type": "SOMETHING_ELSE"}, "payload": {}},
            {"meta": {"type": SNAPSHOT_TYPE}},
            {"meta": {"type": SNAPSHOT_TYPE}, "payload": []},
        ],
    )
    def test_rejects_malformed(self, raw):
        with pytest.raises(ValidationError):
            parse_snapshot(raw)

    def test_unparseable_date_is_tolerated(self):
        snapshot = parse_snapshot({"meta": {"type": SNAPSHOT_TYPE, "date": "yesterday"}, "payload": {}})
        assert snapshot.meta.date is None


# =============================================================================
# APPLY
# =============================================================================

class TestApply:
    def test_round_trip_is_identity(self, seeded):
        before = _observable(seeded)
        apply_snapshot(seeded, parse_snapshot(export_snapshot(seeded)))
        assert _observable(seeded) == before

    def test_round_trip_through_json(self, seeded):
        before = _observable(seeded)
        apply_snapshot(seeded, parse_snapshot(dumps_snapshot(export_snapshot(seeded))))
        assert _observable(seeded) == before

    def test_bad_marker_leaves_everything_unchanged(self, seeded, store):
        before = _observable(seeded)
        document = export_snapshot(seeded)
        document["meta"]["type"] = "WRONG"
        document["payload"]["products"] = []
        with pytest.raises(ValidationError):
            apply_snapshot(seeded, parse_snapshot(document))
        assert _observable(seeded) == before
        assert store.writes == []

    def test_absent_fields_keep_current_values(self, seeded):
        apply_snapshot(seeded, parse_snapshot(_document({"teams": [{"id": "t9", "name": "Blau"}]})))
        assert [t.id for t in seeded.roster.teams] == ["t9"]
        assert seeded.catalog.product_ids() == ["a", "b"]
        assert seeded.costing.config.rent_cost == Decimal("10.00")
        assert [m.id for m in seeded.roster.payment_methods] == ["cash", "invoice", "internal"]

    def test_categories_referenced_by_products_are_added(self, state):
        apply_snapshot(state, parse_snapshot(_document({
            "products": [{"id": "x", "name": "Eis", "price": 2, "category": "kuehl"}],
            "categories": [],
        })))
        assert state.catalog.categories == ("ALLGEMEIN", "KUEHL")

    def test_legacy_costing_names(self, state):
        apply_snapshot(state, parse_snapshot(_document({
            "costingConfig": {"active": True, "paintCostPerBox": 2, "foodCost": 1},
        })))
        config = state.costing.config
        assert config.paint_cost_per_unit == Decimal("2.00")
        assert config.consumables_cost == Decimal("1.00")

    def test_malformed_sub_field_is_treated_as_absent(self, seeded):
        apply_snapshot(seeded, parse_snapshot(_document({"products": "nope", "lootConfig": 5})))
        assert seeded.catalog.product_ids() == ["a", "b"]
        assert seeded.costing.config.active is True

    def test_ledger_untouched(self, seeded):
        before = seeded.ledger.to_dict()
        apply_snapshot(seeded, parse_snapshot(_document({"products": []})))
        assert seeded.ledger.to_dict() == before

    def test_persists_configuration_in_one_write(self, seeded, store):
        apply_snapshot(seeded, parse_snapshot(export_snapshot(seeded)))
        assert store.writes == [["catalog", "costing", "roster"]]

    def test_persistence_failure_keeps_memory_and_reports(self, seeded, store):
        store.fail_writes = True
        with pytest.raises(PersistenceError):
            apply_snapshot(seeded, parse_snapshot(_document({"teams": []})))
        assert seeded.roster.teams == ()
        assert seeded.take_warnings() == ["Changes are active but were not saved: disk full"]


class TestStateLoad:
    def test_load_restores_persisted_state(self, seeded, store):
        seeded.persist()
        restored = AppState.load(store)
        assert _observable(restored) == _observable(seeded)

    def test_unreadable_key_falls_back_to_defaults(self, store):
        store.data["ledger"] = {"events": [{"id": 1, "kind": "bogus", "amount": "1"}]}
        store.data["roster"] = {"teams": [{"id": "t1", "name": "Rot"}]}
        restored = AppState.load(store)
        assert restored.ledger.events == ()
        assert restored.roster.get_team("t1").name == "Rot"
