"""
Roster Store: counterparties (teams) and the payment methods offered at the till.

No foreign keys into the ledger: events copy the team label when they are
recorded, so renaming or deleting a team never rewrites history.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Generic, Iterable, TypeVar

from ..validation import ValidationError, to_bool, to_text

logger = logging.getLogger(__name__)

NEW_TEAM_NAME = "Neues Team"
NEW_PAYMENT_METHOD_NAME = "Neue Zahlart"

ROSTER_MUTABLE_FIELDS = {"name", "active"}
_KNOWN_KEYS = {"id", "name", "active"}


@dataclass(frozen=True)
class Team:
    id: str
    name: str = NEW_TEAM_NAME
    active: bool = True
    extras: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = dict(self.extras)
        data.update({"id": self.id, "name": self.name, "active": self.active})
        return data


@dataclass(frozen=True)
class PaymentMethod:
    id: str
    name: str = NEW_PAYMENT_METHOD_NAME
    active: bool = True
    extras: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = dict(self.extras)
        data.update({"id": self.id, "name": self.name, "active": self.active})
        return data


DEFAULT_PAYMENT_METHODS = (
    PaymentMethod(id="cash", name="BAR"),
    PaymentMethod(id="invoice", name="RECHNUNG"),
    PaymentMethod(id="internal", name="INTERN"),
)

E = TypeVar("E", Team, PaymentMethod)


def _entity_from_dict(cls: Callable[..., E], raw: dict, prefix: str, default_name: str) -> E:
    try:
        active = to_bool(raw.get("active"), field="active", default=True)
    except ValidationError:
        active = True
    return cls(
        id=to_text(raw.get("id")) or f"{prefix}{uuid.uuid4().hex[:12]}",
        name=to_text(raw.get("name")) or default_name,
        active=active,
        extras={k: v for k, v in raw.items() if k not in _KNOWN_KEYS},
    )


class _Registry(Generic[E]):
    """Ordered id -> entity list with add/update/delete, shared by teams and payment methods."""

    def __init__(self, cls: Callable[..., E], prefix: str, default_name: str, items: Iterable[E] = ()):
        self._cls = cls
        self._prefix = prefix
        self._default_name = default_name
        self._items: list[E] = list(items)

    @property
    def items(self) -> tuple[E, ...]:
        return tuple(self._items)

    def get(self, entity_id: str) -> E | None:
        for item in self._items:
            if item.id == entity_id:
                return item
        return None

    def add(self, name: str | None = None) -> E:
        item = self._cls(id=f"{self._prefix}{uuid.uuid4().hex[:12]}", name=to_text(name) or self._default_name)
        self._items = self._items + [item]
        return item

    def update(self, entity_id: str, patch: dict) -> E | None:
        for idx, item in enumerate(self._items):
            if item.id != entity_id:
                continue
            clean: dict[str, Any] = {}
            if "name" in patch:
                name = to_text(patch["name"])
                if not name:
                    raise ValidationError("name cannot be blank")
                clean["name"] = name
            if "active" in patch:
                clean["active"] = to_bool(patch["active"], field="active")
            updated = replace(item, **clean)
            items = list(self._items)
            items[idx] = updated
            self._items = items
            return updated
        logger.info("update: %s %s not found; nothing changed", self._cls.__name__, entity_id)
        return None

    def delete(self, entity_id: str) -> bool:
        remaining = [i for i in self._items if i.id != entity_id]
        if len(remaining) == len(self._items):
            return False
        self._items = remaining
        return True

    def to_list(self) -> list[dict]:
        return [i.to_dict() for i in self._items]

    def load(self, raw: Any) -> None:
        if not isinstance(raw, list):
            return
        items: list[E] = []
        seen: set[str] = set()
        for r in raw:
            if not isinstance(r, dict):
                continue
            item = _entity_from_dict(self._cls, r, self._prefix, self._default_name)
            if item.id in seen:
                logger.warning("Dropping duplicate %s id %r", self._cls.__name__, item.id)
                continue
            seen.add(item.id)
            items.append(item)
        self._items = items


class RosterStore:
    def __init__(self, teams: Iterable[Team] = (), payment_methods: Iterable[PaymentMethod] | None = None):
        self._teams: _Registry[Team] = _Registry(Team, "t", NEW_TEAM_NAME, teams)
        self._methods: _Registry[PaymentMethod] = _Registry(
            PaymentMethod,
            "pm",
            NEW_PAYMENT_METHOD_NAME,
            DEFAULT_PAYMENT_METHODS if payment_methods is None else payment_methods,
        )

    # Teams

    @property
    def teams(self) -> tuple[Team, ...]:
        return self._teams.items

    def get_team(self, team_id: str) -> Team | None:
        return self._teams.get(team_id)

    def add_team(self, name: str | None = None) -> Team:
        return self._teams.add(name)

    def update_team(self, team_id: str, patch: dict) -> Team | None:
        return self._teams.update(team_id, patch)

    def delete_team(self, team_id: str) -> bool:
        return self._teams.delete(team_id)

    def label_for(self, team_id: str | None) -> str | None:
        if not team_id:
            return None
        team = self._teams.get(team_id)
        return team.name if team else None

    # Payment methods

    @property
    def payment_methods(self) -> tuple[PaymentMethod, ...]:
        return self._methods.items

    def get_payment_method(self, method_id: str) -> PaymentMethod | None:
        return self._methods.get(method_id)

    def add_payment_method(self, name: str | None = None) -> PaymentMethod:
        return self._methods.add(name)

    def update_payment_method(self, method_id: str, patch: dict) -> PaymentMethod | None:
        return self._methods.update(method_id, patch)

    def delete_payment_method(self, method_id: str) -> bool:
        return self._methods.delete(method_id)

    # Serialization

    def to_dict(self) -> dict:
        return {"teams": self._teams.to_list(), "payment_methods": self._methods.to_list()}

    @classmethod
    def from_dict(cls, data: dict | None) -> "RosterStore":
        data = data or {}
        roster = cls()
        roster._teams.load(data.get("teams"))
        roster._methods.load(data.get("payment_methods"))
        return roster
