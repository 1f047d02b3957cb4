"""
Operator operations: the entry points the presentation layer (HTTP routes,
CLI) calls.

RULES:
- Irreversible or money-affecting operations only open a gate request
  (request_*); the work runs when the operator confirms it
- Plain edits (add, rename, price, toggles) and incoming money (sales,
  expenses, deposits) apply immediately
- Every mutation persists the affected store and fires a feedback cue
"""

from __future__ import annotations

from typing import Any

from ..time_utils import format_timestamp
from ..validation import PreconditionError, ValidationError, money_to_json, to_money
from . import feedback_service as cues
from .catalog_service import DEFAULT_CATEGORY, Product, normalize_category
from .costing_service import CostingConfig
from .gate_service import ConfirmRequest, PromptRequest
from .ledger_service import DEPOSIT, EXPENSE, SALE, VOID, WITHDRAWAL, LedgerEvent
from .roster_service import PaymentMethod, Team
from .snapshot_service import apply_snapshot, export_snapshot as build_export, parse_snapshot
from .state_service import (
    CATALOG_KEY,
    COSTING_KEY,
    LEDGER_KEY,
    ROSTER_KEY,
    AppState,
    exclusive,
)

DEFAULT_EXPENSE_DESCRIPTION = "Sonstiges"
DEPOSIT_DESCRIPTION = "Bareinlage"
WITHDRAWAL_DESCRIPTION = "Rückzahlung Bareinlage"


def _fmt(amount) -> str:
    return f"{money_to_json(to_money(amount)):.2f}"


# =============================================================================
# DASHBOARD
# =============================================================================

@exclusive
def dashboard(state: AppState) -> dict:
    summary = state.ledger.summary(state.costing.config)
    summary.update({
        "product_count": len(state.catalog.products),
        "team_count": len(state.roster.teams),
        "costing": state.costing.to_dict(),
        "gate": state.gate.pending.to_dict(),
    })
    return summary


# =============================================================================
# CATALOG
# =============================================================================

@exclusive
def add_product(state: AppState, category: str | None = None) -> Product:
    product = state.catalog.add_product(category)
    state.persist(CATALOG_KEY)
    state.play(cues.CUE_ITEM_ADDED)
    return product


@exclusive
def update_product(state: AppState, product_id: str, patch: dict) -> Product | None:
    product = state.catalog.update_product(product_id, patch)
    if product is not None:
        state.persist(CATALOG_KEY)
    return product


@exclusive
def reorder_product(state: AppState, product_id: str, target_id: str) -> bool:
    moved = state.catalog.reorder_product(product_id, target_id)
    if moved:
        state.persist(CATALOG_KEY)
    return moved


@exclusive
def request_delete_product(state: AppState, product_id: str) -> ConfirmRequest:
    product = state.catalog.get_product(product_id)
    if product is None:
        raise PreconditionError("Product not found")

    def _delete() -> bool:
        deleted = state.catalog.delete_product(product_id)
        if deleted:
            state.persist(CATALOG_KEY)
            state.play(cues.CUE_ITEM_REMOVED)
        return deleted

    return state.gate.ask_confirm(
        "ARTIKEL ENTFERNEN?",
        f'"{product.name.upper()}" löschen?',
        _delete,
        danger=True,
    )


@exclusive
def add_category(state: AppState, name: str) -> str | None:
    added = state.catalog.add_category(name)
    if added:
        state.persist(CATALOG_KEY)
    return added


@exclusive
def request_add_category(state: AppState) -> PromptRequest:
    return state.gate.ask_prompt(
        "NEUER BEREICH",
        "Name der Kategorie:",
        "",
        lambda name: add_category(state, name),
    )


@exclusive
def rename_category(state: AppState, old: str, new: str) -> bool:
    renamed = state.catalog.rename_category(old, new)
    if renamed:
        state.persist(CATALOG_KEY)
    return renamed


@exclusive
def request_rename_category(state: AppState, old: str) -> PromptRequest:
    old_name = normalize_category(old)
    if old_name not in state.catalog.categories:
        raise PreconditionError(f"Unknown category: {old_name}")
    return state.gate.ask_prompt(
        "BEREICH UMBENENNEN",
        f'Neuer Name für "{old_name}":',
        old_name,
        lambda new: rename_category(state, old_name, new),
    )


@exclusive
def request_delete_category(state: AppState, name: str) -> ConfirmRequest:
    target = normalize_category(name)
    if target == DEFAULT_CATEGORY:
        raise PreconditionError(f"{DEFAULT_CATEGORY} cannot be deleted")
    if target not in state.catalog.categories:
        raise PreconditionError(f"Unknown category: {target}")

    def _delete() -> int:
        moved = state.catalog.delete_category(target)
        state.persist(CATALOG_KEY)
        state.play(cues.CUE_ITEM_REMOVED)
        return moved

    return state.gate.ask_confirm(
        "BEREICH LÖSCHEN?",
        f'"{target}" entfernen? Artikel werden nach "{DEFAULT_CATEGORY}" verschoben.',
        _delete,
        danger=True,
    )


# =============================================================================
# ROSTER
# =============================================================================

@exclusive
def add_team(state: AppState, name: str | None = None) -> Team:
    team = state.roster.add_team(name)
    state.persist(ROSTER_KEY)
    state.play(cues.CUE_ITEM_ADDED)
    return team


@exclusive
def update_team(state: AppState, team_id: str, patch: dict) -> Team | None:
    team = state.roster.update_team(team_id, patch)
    if team is not None:
        state.persist(ROSTER_KEY)
    return team


@exclusive
def request_delete_team(state: AppState, team_id: str) -> ConfirmRequest:
    team = state.roster.get_team(team_id)
    if team is None:
        raise PreconditionError("Team not found")

    def _delete() -> bool:
        deleted = state.roster.delete_team(team_id)
        if deleted:
            state.persist(ROSTER_KEY)
            state.play(cues.CUE_ITEM_REMOVED)
        return deleted

    return state.gate.ask_confirm(
        "EINHEIT AUFLÖSEN?",
        f'"{team.name.upper()}" entfernen?',
        _delete,
        danger=True,
    )


@exclusive
def add_payment_method(state: AppState, name: str | None = None) -> PaymentMethod:
    method = state.roster.add_payment_method(name)
    state.persist(ROSTER_KEY)
    state.play(cues.CUE_ITEM_ADDED)
    return method


@exclusive
def update_payment_method(state: AppState, method_id: str, patch: dict) -> PaymentMethod | None:
    method = state.roster.update_payment_method(method_id, patch)
    if method is not None:
        state.persist(ROSTER_KEY)
    return method


@exclusive
def request_delete_payment_method(state: AppState, method_id: str) -> ConfirmRequest:
    method = state.roster.get_payment_method(method_id)
    if method is None:
        raise PreconditionError("Payment method not found")

    def _delete() -> bool:
        deleted = state.roster.delete_payment_method(method_id)
        if deleted:
            state.persist(ROSTER_KEY)
            state.play(cues.CUE_ITEM_REMOVED)
        return deleted

    return state.gate.ask_confirm(
        "ZAHLART ENTFERNEN?",
        f'"{method.name.upper()}" entfernen?',
        _delete,
        danger=True,
    )


# =============================================================================
# COSTING
# =============================================================================

@exclusive
def update_costing(state: AppState, patch: dict) -> CostingConfig:
    config = state.costing.update(patch)
    state.persist(COSTING_KEY)
    return config


@exclusive
def toggle_costing(state: AppState) -> CostingConfig:
    config = state.costing.toggle_active()
    state.persist(COSTING_KEY)
    return config


# =============================================================================
# LEDGER
# =============================================================================

@exclusive
def record_sale(
    state: AppState,
    amount: Any,
    description: str = "",
    team_id: str | None = None,
) -> LedgerEvent:
    label = None
    if team_id:
        label = state.roster.label_for(team_id)
        if label is None:
            raise ValidationError("Unknown team")
    ev = state.ledger.record(SALE, amount, description, counterparty_ref=team_id, counterparty_label=label)
    state.persist(LEDGER_KEY)
    state.play(cues.CUE_PAYMENT_CONFIRMED)
    return ev


@exclusive
def record_expense(state: AppState, amount: Any, description: str | None = None) -> LedgerEvent:
    ev = state.ledger.record(EXPENSE, amount, (description or "").strip() or DEFAULT_EXPENSE_DESCRIPTION)
    state.persist(LEDGER_KEY)
    state.play(cues.CUE_DOCUMENT_STAMPED)
    return ev


@exclusive
def record_deposit(state: AppState, amount: Any) -> LedgerEvent:
    ev = state.ledger.record(DEPOSIT, amount, DEPOSIT_DESCRIPTION)
    state.persist(LEDGER_KEY)
    state.play(cues.CUE_DOCUMENT_STAMPED)
    return ev


@exclusive
def request_withdrawal(state: AppState, amount: Any) -> ConfirmRequest:
    # Validate before asking; a bad amount never reaches the gate
    magnitude = to_money(amount, field="amount")
    if magnitude <= 0:
        raise ValidationError("amount must be > 0")

    def _withdraw() -> LedgerEvent:
        ev = state.ledger.record(WITHDRAWAL, magnitude, WITHDRAWAL_DESCRIPTION)
        state.persist(LEDGER_KEY)
        state.play(cues.CUE_DOCUMENT_STAMPED)
        return ev

    return state.gate.ask_confirm(
        "EINLAGE ZURÜCK?",
        f"{_fmt(magnitude)} Wechselgeld an Eigentümer zurückgeben?",
        _withdraw,
    )


def _void_now(state: AppState, event_id: int) -> LedgerEvent:
    ev = state.ledger.void(event_id)
    state.persist(LEDGER_KEY)
    state.play(cues.CUE_OPERATION_REVERTED)
    return ev


@exclusive
def request_void(state: AppState, event_id: int) -> ConfirmRequest:
    target = state.ledger.get(event_id)
    if target is None:
        raise PreconditionError(f"Ledger event {event_id} not found")
    if target.kind == VOID:
        raise PreconditionError("A void cannot be voided")
    if state.ledger.is_voided(event_id):
        raise PreconditionError(f"Ledger event {event_id} already voided")

    return state.gate.ask_confirm(
        "STORNO?",
        f"Buchung #{target.id} ({_fmt(abs(target.amount))}) stornieren?",
        lambda: _void_now(state, event_id),
        danger=True,
    )


@exclusive
def request_undo_last(state: AppState) -> ConfirmRequest:
    last = state.ledger.last_transaction
    if last is None:
        raise PreconditionError("No transaction to undo")
    last_id = last.id

    def _undo() -> LedgerEvent:
        # Only the transaction shown in the request may be reversed
        current = state.ledger.last_transaction
        if current is None or current.id != last_id:
            raise PreconditionError(f"Last transaction changed since #{last_id} was shown; nothing voided")
        return _void_now(state, last_id)

    return state.gate.ask_confirm(
        "STORNO?",
        f"Letzte Buchung ({_fmt(abs(last.amount))}) stornieren?",
        _undo,
        danger=True,
    )


@exclusive
def request_ledger_reset(state: AppState) -> ConfirmRequest:
    def _reset() -> int:
        removed = state.ledger.clear()
        state.persist(LEDGER_KEY)
        state.play(cues.CUE_NOTIFICATION)
        return removed

    return state.gate.ask_confirm(
        "KASSE NULLEN?",
        f"{len(state.ledger.events)} Buchungen verwerfen und die Kasse auf 0 setzen?",
        _reset,
        danger=True,
    )


# =============================================================================
# SNAPSHOT & SYSTEM
# =============================================================================

@exclusive
def export_snapshot(state: AppState, **meta) -> dict:
    return build_export(state, **meta)


@exclusive
def request_import(state: AppState, raw: Any) -> ConfirmRequest:
    """Validate first; only a well-formed document ever reaches the gate."""
    snapshot = parse_snapshot(raw)
    stamp = format_timestamp(snapshot.meta.date) or "unbekanntem Datum"

    def _apply() -> dict:
        apply_snapshot(state, snapshot)
        state.play(cues.CUE_NOTIFICATION)
        return {
            "products": len(state.catalog.products),
            "categories": len(state.catalog.categories),
            "teams": len(state.roster.teams),
            "payment_methods": len(state.roster.payment_methods),
        }

    return state.gate.ask_confirm(
        "SYSTEM ÜBERSCHREIBEN?",
        f"Config vom {stamp} laden? Aktuelle Einstellungen (Produkte, Teams) werden ersetzt!",
        _apply,
        danger=True,
    )


@exclusive
def request_factory_reset(state: AppState) -> ConfirmRequest:
    def _reset() -> bool:
        state.factory_reset()
        state.play(cues.CUE_NOTIFICATION)
        return True

    return state.gate.ask_confirm(
        "TOTALER RESET?",
        "WIRKLICH ALLES AUF NULL SETZEN?",
        _reset,
        danger=True,
    )
