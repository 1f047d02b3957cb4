# Overview: Session ledger of monetary events and the aggregates derived from it.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional

from ..time_utils import format_timestamp, parse_timestamp, utcnow
from ..validation import (
    ZERO,
    PreconditionError,
    ValidationError,
    enforce_rules_amount,
    money_to_json,
    to_money,
    to_text,
)
from .costing_service import CostingConfig

"""
Ledger Invariants (authoritative)

- Append-only: events are never updated or deleted (clear() is the explicit,
  gated till reset).
- Sign follows kind: sale/deposit > 0, expense/withdrawal < 0.
- A void is a compensating event: it references the event it reverses,
  carries the negated amount and keeps the original kind in reversed_kind.
- Each event can be voided at most once; voids cannot be voided.
- Aggregates are recomputed from the full sequence on every call. No running
  totals are cached.
"""

SALE = "sale"
EXPENSE = "expense"
DEPOSIT = "deposit"
WITHDRAWAL = "withdrawal"
VOID = "void"

# kind -> sign applied to the recorded magnitude
KIND_SIGNS = {
    SALE: 1,
    DEPOSIT: 1,
    EXPENSE: -1,
    WITHDRAWAL: -1,
}
ALL_KINDS = (SALE, EXPENSE, DEPOSIT, WITHDRAWAL, VOID)


@dataclass(frozen=True)
class LedgerEvent:
    id: int
    timestamp: datetime
    kind: str
    amount: Decimal
    description: str = ""
    counterparty_ref: Optional[str] = None
    # Copied at record time so history survives team renames/deletes
    counterparty_label: Optional[str] = None
    reverses: Optional[int] = None
    reversed_kind: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": format_timestamp(self.timestamp),
            "kind": self.kind,
            "amount": str(self.amount),
            "description": self.description,
            "counterparty_ref": self.counterparty_ref,
            "counterparty_label": self.counterparty_label,
            "reverses": self.reverses,
            "reversed_kind": self.reversed_kind,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> "LedgerEvent":
        kind = raw.get("kind")
        if kind not in ALL_KINDS:
            raise ValidationError(f"Unknown ledger kind: {kind!r}")
        return cls(
            id=int(raw["id"]),
            timestamp=parse_timestamp(raw.get("timestamp")) or utcnow(),
            kind=kind,
            amount=to_money(raw.get("amount"), field="amount"),
            description=raw.get("description") or "",
            counterparty_ref=raw.get("counterparty_ref"),
            counterparty_label=raw.get("counterparty_label"),
            reverses=raw.get("reverses"),
            reversed_kind=raw.get("reversed_kind"),
        )


class Ledger:
    def __init__(
        self,
        events: Iterable[LedgerEvent] = (),
        last_transaction_id: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._events: list[LedgerEvent] = list(events)
        self._last_id = last_transaction_id
        self._clock = clock

    @property
    def events(self) -> tuple[LedgerEvent, ...]:
        return tuple(self._events)

    @property
    def last_transaction(self) -> LedgerEvent | None:
        if self._last_id is None:
            return None
        return self.get(self._last_id)

    def get(self, event_id: int) -> LedgerEvent | None:
        for ev in self._events:
            if ev.id == event_id:
                return ev
        return None

    def _voided_ids(self) -> set[int]:
        return {ev.reverses for ev in self._events if ev.kind == VOID}

    def is_voided(self, event_id: int) -> bool:
        return event_id in self._voided_ids()

    def _next_id(self) -> int:
        return max((ev.id for ev in self._events), default=0) + 1

    def _append(self, ev: LedgerEvent) -> LedgerEvent:
        self._events = self._events + [ev]
        return ev

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record(
        self,
        kind: str,
        amount=None,
        description: str = "",
        counterparty_ref: str | None = None,
        counterparty_label: str | None = None,
        *,
        target_id: int | None = None,
    ) -> LedgerEvent:
        """
        Append a monetary event.

        amount is the positive magnitude; the kind decides the sign. kind="void"
        takes no amount and reverses target_id instead.
        """
        if kind == VOID:
            if target_id is None:
                raise ValidationError("target_id is required for void")
            return self.void(target_id)
        if kind not in KIND_SIGNS:
            raise ValidationError(f"Unknown ledger kind: {kind!r}")

        magnitude = enforce_rules_amount(to_money(amount, field="amount"))
        ev = self._append(
            LedgerEvent(
                id=self._next_id(),
                timestamp=self._clock(),
                kind=kind,
                amount=magnitude * KIND_SIGNS[kind],
                description=to_text(description) or "",
                counterparty_ref=counterparty_ref,
                counterparty_label=counterparty_label,
            )
        )
        self._last_id = ev.id
        return ev

    def void(self, event_id: int) -> LedgerEvent:
        target = self.get(event_id)
        if target is None:
            raise PreconditionError(f"Ledger event {event_id} not found")
        if target.kind == VOID:
            raise PreconditionError("A void cannot be voided")
        if self.is_voided(event_id):
            raise PreconditionError(f"Ledger event {event_id} already voided")

        ev = self._append(
            LedgerEvent(
                id=self._next_id(),
                timestamp=self._clock(),
                kind=VOID,
                amount=-target.amount,
                description=f"STORNO: {target.description}".strip(),
                counterparty_ref=target.counterparty_ref,
                counterparty_label=target.counterparty_label,
                reverses=target.id,
                reversed_kind=target.kind,
            )
        )
        if self._last_id == target.id:
            self._last_id = None
        return ev

    def undo_last(self) -> LedgerEvent:
        if self._last_id is None:
            raise PreconditionError("No transaction to undo")
        return self.void(self._last_id)

    def clear(self) -> int:
        """Till reset: drop the whole session ledger. Returns how many events were removed."""
        removed = len(self._events)
        self._events = []
        self._last_id = None
        return removed

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def _effective(self) -> list[LedgerEvent]:
        voided = self._voided_ids()
        return [ev for ev in self._events if ev.kind != VOID and ev.id not in voided]

    def compute_cash_on_hand(self) -> Decimal:
        return sum((ev.amount for ev in self._effective()), ZERO)

    def totals_by_kind(self) -> dict[str, Decimal]:
        totals = {kind: ZERO for kind in KIND_SIGNS}
        for ev in self._effective():
            totals[ev.kind] += abs(ev.amount)
        return totals

    def compute_profit(self, costing: CostingConfig) -> Decimal:
        totals = self.totals_by_kind()
        profit = totals[SALE] - totals[EXPENSE]
        # Inactive costing must not be read at all
        if costing.active:
            profit -= costing.cost_total()
        return profit

    def history(self, include_voided: bool = True) -> list[dict]:
        voided = self._voided_ids()
        items = []
        for ev in self._events:
            is_voided = ev.id in voided
            if is_voided and not include_voided:
                continue
            item = ev.to_dict()
            item["voided"] = is_voided
            items.append(item)
        return items

    def summary(self, costing: CostingConfig) -> dict:
        last = self.last_transaction
        return {
            "cash_on_hand": money_to_json(self.compute_cash_on_hand()),
            "profit": money_to_json(self.compute_profit(costing)),
            "totals": {k: money_to_json(v) for k, v in self.totals_by_kind().items()},
            "event_count": len(self._events),
            "last_transaction": last.to_dict() if last else None,
        }

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "events": [ev.to_dict() for ev in self._events],
            "last_transaction_id": self._last_id,
        }

    @classmethod
    def from_dict(cls, data: dict | None, clock: Callable[[], datetime] = utcnow) -> "Ledger":
        data = data or {}
        raw_events = data.get("events") if isinstance(data.get("events"), list) else []
        events = [LedgerEvent.from_dict(r) for r in raw_events]
        last_id = data.get("last_transaction_id")
        return cls(events=events, last_transaction_id=last_id, clock=clock)
