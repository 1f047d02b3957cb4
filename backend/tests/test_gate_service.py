import pytest

from pocketpos.services.gate_service import (
    ConfirmRequest,
    InteractionGate,
    NoRequest,
    PromptRequest,
)
from pocketpos.validation import PreconditionError


class TestInteractionGate:
    def test_starts_empty(self):
        gate = InteractionGate()
        assert isinstance(gate.pending, NoRequest)
        assert gate.is_open is False
        assert gate.pending.to_dict() == {"type": None}

    def test_confirm_runs_continuation_once(self):
        gate = InteractionGate()
        calls = []
        gate.ask_confirm("DELETE?", "Really?", lambda: calls.append("ran") or "done", danger=True)
        assert gate.pending.to_dict() == {"type": "confirm", "title": "DELETE?", "message": "Really?", "danger": True}
        assert gate.confirm() == "done"
        assert calls == ["ran"]
        assert gate.is_open is False

    def test_cancel_discards_without_running(self):
        gate = InteractionGate()
        calls = []
        gate.ask_confirm("DELETE?", "Really?", lambda: calls.append("ran"))
        assert gate.cancel() is True
        assert calls == []
        assert gate.cancel() is False

    def test_new_request_replaces_pending(self):
        gate = InteractionGate()
        calls = []
        gate.ask_confirm("A", "first", lambda: calls.append("a"))
        gate.ask_confirm("B", "second", lambda: calls.append("b"))
        gate.confirm()
        assert calls == ["b"]

    def test_confirm_without_request(self):
        with pytest.raises(PreconditionError):
            InteractionGate().confirm()

    def test_prompt_passes_value(self):
        gate = InteractionGate()
        seen = []
        request = gate.ask_prompt("NAME", "Name:", "OLD", seen.append)
        assert isinstance(request, PromptRequest)
        gate.confirm("  new  ")
        assert seen == ["new"]

    def test_prompt_defaults_to_initial(self):
        gate = InteractionGate()
        seen = []
        gate.ask_prompt("NAME", "Name:", "OLD", seen.append)
        gate.confirm()
        assert seen == ["OLD"]

    def test_prompt_blank_value_closes_without_invoking(self):
        gate = InteractionGate()
        seen = []
        gate.ask_prompt("NAME", "Name:", "", seen.append)
        assert gate.confirm("   ") is None
        assert seen == []
        assert gate.is_open is False

    def test_gate_closed_even_if_continuation_fails(self):
        gate = InteractionGate()

        def boom():
            raise RuntimeError("boom")

        gate.ask_confirm("X", "y", boom)
        with pytest.raises(RuntimeError):
            gate.confirm()
        assert gate.is_open is False

    def test_confirm_request_type(self):
        gate = InteractionGate()
        assert isinstance(gate.ask_confirm("X", "y", lambda: None), ConfirmRequest)
