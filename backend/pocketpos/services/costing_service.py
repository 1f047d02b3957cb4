"""
Costing Model: per-event cost inputs applied when profit is computed.

The ledger reads these values at computation time only, so edits are
retroactive for every recorded event.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal

from ..validation import ZERO, ValidationError, money_to_json, to_bool, to_money

# JSON name -> attribute. Older exports used paintCostPerBox / foodCost.
COST_FIELDS = {
    "paintCostPerUnit": "paint_cost_per_unit",
    "rentCost": "rent_cost",
    "consumablesCost": "consumables_cost",
}
LEGACY_ALIASES = {
    "paintCostPerBox": "paintCostPerUnit",
    "foodCost": "consumablesCost",
}
FLAG_FIELDS = {"active": "active", "rentPaid": "rent_paid"}


@dataclass(frozen=True)
class CostingConfig:
    active: bool = False
    paint_cost_per_unit: Decimal = ZERO
    rent_cost: Decimal = ZERO
    consumables_cost: Decimal = ZERO
    # Whether rent already left the till; informational, profit ignores it
    rent_paid: bool = False

    def cost_total(self) -> Decimal:
        return self.paint_cost_per_unit + self.rent_cost + self.consumables_cost

    def to_dict(self) -> dict:
        return {
            "active": self.active,
            "paintCostPerUnit": money_to_json(self.paint_cost_per_unit),
            "rentCost": money_to_json(self.rent_cost),
            "consumablesCost": money_to_json(self.consumables_cost),
            "rentPaid": self.rent_paid,
        }

    @classmethod
    def from_dict(cls, raw: dict | None) -> "CostingConfig":
        """Permissive reader for stored and imported configs; bad values fall back to defaults."""
        raw = dict(raw or {})
        for legacy, current in LEGACY_ALIASES.items():
            if legacy in raw and current not in raw:
                raw[current] = raw[legacy]
        values: dict = {}
        for key, attr in COST_FIELDS.items():
            try:
                values[attr] = max(to_money(raw.get(key), field=key, default=ZERO), ZERO)
            except ValidationError:
                values[attr] = ZERO
        for key, attr in FLAG_FIELDS.items():
            try:
                values[attr] = to_bool(raw.get(key), field=key, default=False)
            except ValidationError:
                values[attr] = False
        return cls(**values)


class CostingModel:
    def __init__(self, config: CostingConfig | None = None):
        self._config = config or CostingConfig()

    @property
    def config(self) -> CostingConfig:
        return self._config

    def update(self, patch: dict) -> CostingConfig:
        """Strict partial update; accepts JSON names (and legacy aliases)."""
        changes: dict = {}
        for key, value in patch.items():
            key = LEGACY_ALIASES.get(key, key)
            if key in COST_FIELDS:
                amount = to_money(value, field=key, default=ZERO)
                if amount < 0:
                    raise ValidationError(f"{key} must be >= 0")
                changes[COST_FIELDS[key]] = amount
            elif key in FLAG_FIELDS:
                changes[FLAG_FIELDS[key]] = to_bool(value, field=key)
        self._config = replace(self._config, **changes)
        return self._config

    def toggle_active(self) -> CostingConfig:
        self._config = replace(self._config, active=not self._config.active)
        return self._config

    def to_dict(self) -> dict:
        return self._config.to_dict()

    @classmethod
    def from_dict(cls, data: dict | None) -> "CostingModel":
        return cls(CostingConfig.from_dict(data))
