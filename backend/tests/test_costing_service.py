from decimal import Decimal

import pytest

from pocketpos.services.costing_service import CostingConfig, CostingModel
from pocketpos.validation import ValidationError


class TestCostingModel:
    def test_defaults_inactive_and_zero(self):
        config = CostingModel().config
        assert config.active is False
        assert config.cost_total() == Decimal("0.00")

    def test_update_coerces_money(self):
        model = CostingModel()
        config = model.update({"paintCostPerUnit": "2", "rentCost": 10.5, "active": True})
        assert config.paint_cost_per_unit == Decimal("2.00")
        assert config.rent_cost == Decimal("10.50")
        assert config.active is True
        assert config.cost_total() == Decimal("12.50")

    def test_negative_cost_rejected(self):
        model = CostingModel()
        with pytest.raises(ValidationError):
            model.update({"rentCost": -1})
        assert model.config.rent_cost == Decimal("0.00")

    def test_toggle_active(self):
        model = CostingModel()
        assert model.toggle_active().active is True
        assert model.toggle_active().active is False

    def test_update_accepts_legacy_names(self):
        config = CostingModel().update({"paintCostPerBox": 3, "foodCost": 4})
        assert config.paint_cost_per_unit == Decimal("3.00")
        assert config.consumables_cost == Decimal("4.00")


class TestCostingSerialization:
    def test_from_dict_maps_legacy_names(self):
        config = CostingConfig.from_dict({"active": True, "paintCostPerBox": 2, "foodCost": "1,5", "rentPaid": True})
        assert config.paint_cost_per_unit == Decimal("2.00")
        assert config.consumables_cost == Decimal("1.50")
        assert config.rent_paid is True

    def test_from_dict_falls_back_on_bad_values(self):
        config = CostingConfig.from_dict({"rentCost": "lots", "active": "maybe"})
        assert config.rent_cost == Decimal("0.00")
        assert config.active is False

    def test_to_dict_uses_camel_case(self):
        data = CostingConfig(active=True, rent_cost=Decimal("10.00")).to_dict()
        assert data == {
            "active": True,
            "paintCostPerUnit": 0.0,
            "rentCost": 10.0,
            "consumablesCost": 0.0,
            "rentPaid": False,
        }
