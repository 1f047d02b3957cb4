import pytest

from pocketpos.services.roster_service import (
    DEFAULT_PAYMENT_METHODS,
    NEW_PAYMENT_METHOD_NAME,
    NEW_TEAM_NAME,
    RosterStore,
    Team,
)
from pocketpos.validation import ValidationError


class TestTeams:
    def test_add_team_default_name(self):
        roster = RosterStore()
        team = roster.add_team()
        assert team.name == NEW_TEAM_NAME
        assert team.active is True
        assert roster.get_team(team.id) == team

    def test_update_team(self):
        roster = RosterStore(teams=[Team(id="t1", name="Rot")])
        updated = roster.update_team("t1", {"name": "Blau", "active": "false"})
        assert updated.name == "Blau"
        assert updated.active is False

    def test_update_missing_team_returns_none(self):
        assert RosterStore().update_team("ghost", {"name": "x"}) is None

    def test_blank_name_rejected(self):
        roster = RosterStore(teams=[Team(id="t1", name="Rot")])
        with pytest.raises(ValidationError):
            roster.update_team("t1", {"name": "  "})
        assert roster.get_team("t1").name == "Rot"

    def test_delete_team(self):
        roster = RosterStore(teams=[Team(id="t1"), Team(id="t2")])
        assert roster.delete_team("t1") is True
        assert roster.delete_team("t1") is False
        assert [t.id for t in roster.teams] == ["t2"]

    def test_label_for(self):
        roster = RosterStore(teams=[Team(id="t1", name="Rot")])
        assert roster.label_for("t1") == "Rot"
        assert roster.label_for("nope") is None
        assert roster.label_for(None) is None


class TestPaymentMethods:
    def test_defaults(self):
        roster = RosterStore()
        assert roster.payment_methods == DEFAULT_PAYMENT_METHODS
        assert roster.get_payment_method("cash").name == "BAR"

    def test_crud(self):
        roster = RosterStore()
        method = roster.add_payment_method()
        assert method.name == NEW_PAYMENT_METHOD_NAME
        assert roster.update_payment_method(method.id, {"name": "KARTE"}).name == "KARTE"
        assert roster.delete_payment_method(method.id) is True
        assert roster.get_payment_method(method.id) is None


class TestRosterSerialization:
    def test_round_trip_keeps_extras(self):
        roster = RosterStore.from_dict({
            "teams": [{"id": "t1", "name": "Rot", "color": "#f00"}],
            "payment_methods": [{"id": "cash", "name": "BAR", "active": False}],
        })
        data = RosterStore.from_dict(roster.to_dict()).to_dict()
        assert data["teams"] == [{"id": "t1", "name": "Rot", "active": True, "color": "#f00"}]
        assert data["payment_methods"] == [{"id": "cash", "name": "BAR", "active": False}]

    def test_missing_payment_methods_keep_defaults(self):
        roster = RosterStore.from_dict({"teams": []})
        assert roster.payment_methods == DEFAULT_PAYMENT_METHODS

    def test_duplicate_team_ids_keep_first(self):
        roster = RosterStore.from_dict({
            "teams": [{"id": "t1", "name": "Rot"}, {"id": "t1", "name": "Blau"}],
        })
        assert [t.name for t in roster.teams] == ["Rot"]
        assert roster.delete_team("t1") is True
        assert roster.teams == ()
