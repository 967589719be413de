"""
Tests for core.config - POS operating rules.
"""

import pytest

from core.config.rules import ConsumptionPolicy, PosSettings


class TestPosSettings:
    def test_defaults(self):
        settings = PosSettings()
        assert settings.consumption_policy is ConsumptionPolicy.MANUAL
        assert settings.link_cash_sales is True
        assert settings.queue_horizon_hours == 12
        assert settings.done_visible_minutes == 60
        assert settings.top_products_limit == 15

    @pytest.mark.parametrize("kwargs", [
        {"queue_horizon_hours": 0},
        {"top_products_limit": True},
        {"order_code_width": "3"},
        {"link_cash_sales": "yes"},
        {"consumption_policy": "ON_SETTLE"},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            PosSettings(**kwargs)

    def test_frozen(self):
        from dataclasses import FrozenInstanceError

        with pytest.raises(FrozenInstanceError):
            PosSettings().link_cash_sales = False


class TestFromMapping:
    def test_django_style_keys(self):
        settings = PosSettings.from_mapping({
            "CONSUMPTION_POLICY": "on_done",
            "LINK_CASH_SALES": False,
            "TOP_PRODUCTS_LIMIT": 5,
        })
        assert settings.consumption_policy is ConsumptionPolicy.ON_DONE
        assert settings.link_cash_sales is False
        assert settings.top_products_limit == 5

    def test_empty_mapping_gives_defaults(self):
        assert PosSettings.from_mapping(None) == PosSettings()
        assert PosSettings.from_mapping({}) == PosSettings()

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown POS setting"):
            PosSettings.from_mapping({"TAX_RATE": 7})

    def test_unknown_policy(self):
        with pytest.raises(ValueError, match="consumption_policy"):
            PosSettings.from_mapping({"consumption_policy": "hourly"})

    def test_project_settings_are_valid(self):
        from django.conf import settings

        assert PosSettings.from_mapping(settings.POS) == PosSettings()
