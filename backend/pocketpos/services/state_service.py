"""
Application-state container.

One AppState per running app (stored in app.extensions), passed explicitly to
every operation. Lifecycle:
- load(): seed every store from the durable store, once at startup
- persist(): write named stores back after each mutation
- factory_reset(): explicit, gated wipe of durable and in-memory state
"""

from __future__ import annotations

import functools
import logging
import threading
from typing import Any, Callable, Protocol, TypeVar

from flask import current_app

from ..validation import PersistenceError, ValidationError
from .catalog_service import CatalogStore
from .costing_service import CostingModel
from .feedback_service import FeedbackSink, LoggingFeedback
from .gate_service import InteractionGate
from .ledger_service import Ledger
from .roster_service import RosterStore

logger = logging.getLogger(__name__)

EXTENSION_KEY = "pocketpos.state"

CATALOG_KEY = "catalog"
ROSTER_KEY = "roster"
COSTING_KEY = "costing"
LEDGER_KEY = "ledger"
STATE_KEYS = (CATALOG_KEY, ROSTER_KEY, COSTING_KEY, LEDGER_KEY)
CONFIGURATION_KEYS = (CATALOG_KEY, ROSTER_KEY, COSTING_KEY)

_LOADERS = {
    CATALOG_KEY: CatalogStore.from_dict,
    ROSTER_KEY: RosterStore.from_dict,
    COSTING_KEY: CostingModel.from_dict,
    LEDGER_KEY: Ledger.from_dict,
}

_F = TypeVar("_F", bound=Callable[..., Any])


class KeyValueStore(Protocol):
    def read(self, key: str, default: Any = None) -> Any:
        ...

    def write_many(self, values: dict[str, Any]) -> None:
        ...

    def clear(self) -> int:
        ...


class AppState:
    def __init__(
        self,
        store: KeyValueStore,
        *,
        feedback: FeedbackSink | None = None,
        catalog: CatalogStore | None = None,
        roster: RosterStore | None = None,
        costing: CostingModel | None = None,
        ledger: Ledger | None = None,
    ):
        self.store = store
        self.feedback = feedback or LoggingFeedback()
        # Request threads share one AppState; every mutation and gate step holds this
        self.lock = threading.RLock()
        self.gate = InteractionGate(lock=self.lock)
        self.catalog = catalog or CatalogStore()
        self.roster = roster or RosterStore()
        self.costing = costing or CostingModel()
        self.ledger = ledger or Ledger()
        self.persistence_warnings: list[str] = []

    @classmethod
    def load(cls, store: KeyValueStore, *, feedback: FeedbackSink | None = None) -> "AppState":
        seeded: dict[str, Any] = {}
        for key, loader in _LOADERS.items():
            raw = store.read(key)
            if raw is None:
                continue
            try:
                seeded[key] = loader(raw)
            except (ValidationError, KeyError, TypeError, ValueError):
                # Unreadable document: start this store from defaults, keep the rest
                logger.exception("Stored %s state is unreadable; starting from defaults", key)
        return cls(
            store,
            feedback=feedback,
            catalog=seeded.get(CATALOG_KEY),
            roster=seeded.get(ROSTER_KEY),
            costing=seeded.get(COSTING_KEY),
            ledger=seeded.get(LEDGER_KEY),
        )

    def serialize(self, key: str) -> dict:
        if key == CATALOG_KEY:
            return self.catalog.to_dict()
        if key == ROSTER_KEY:
            return self.roster.to_dict()
        if key == COSTING_KEY:
            return self.costing.to_dict()
        if key == LEDGER_KEY:
            return self.ledger.to_dict()
        raise KeyError(key)

    def persist(self, *keys: str, strict: bool = False) -> list[str]:
        """
        Write the named stores in one durable transaction.

        A failed write leaves memory as it is (still valid for this session)
        and is reported: logged, recorded in persistence_warnings and, with
        strict=True, re-raised.
        """
        keys = keys or STATE_KEYS
        try:
            self.store.write_many({k: self.serialize(k) for k in keys})
        except PersistenceError as exc:
            message = f"Changes are active but were not saved: {exc}"
            logger.warning(message)
            self.persistence_warnings.append(message)
            if strict:
                raise
            return [message]
        return []

    def take_warnings(self) -> list[str]:
        warnings, self.persistence_warnings = self.persistence_warnings, []
        return warnings

    def replace_configuration(self, catalog: CatalogStore, roster: RosterStore, costing: CostingModel) -> None:
        # Single assignment: readers see the old trio or the new trio, never a mix
        self.catalog, self.roster, self.costing = catalog, roster, costing

    def play(self, cue: str) -> None:
        try:
            self.feedback.play(cue)
        except Exception:
            logger.exception("Feedback cue %s failed", cue)

    def factory_reset(self) -> None:
        # Durable store first: if the wipe fails, memory still matches disk
        try:
            self.store.clear()
        except PersistenceError as exc:
            message = f"Factory reset did not run: {exc}"
            logger.warning(message)
            self.persistence_warnings.append(message)
            raise PersistenceError(message, applied=False) from exc
        self.catalog = CatalogStore()
        self.roster = RosterStore()
        self.costing = CostingModel()
        self.ledger = Ledger()
        self.gate.cancel()
        self.persistence_warnings = []


def exclusive(fn: _F) -> _F:
    """Run an operation taking AppState first while holding state.lock."""

    @functools.wraps(fn)
    def wrapper(state: AppState, *args, **kwargs):
        with state.lock:
            return fn(state, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


def init_state(app) -> AppState:
    """Seed the app's state from the durable store. Needs an app context."""
    from .durable_store import DurableStore

    state = AppState.load(DurableStore())
    app.extensions[EXTENSION_KEY] = state
    return state


def get_state() -> AppState:
    return current_app.extensions[EXTENSION_KEY]
