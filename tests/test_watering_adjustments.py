from __future__ import annotations

from datetime import timedelta

import pytest

from app.services.care_models import WateringAdjustment, WateringPreferences
from app.services.watering_adjustments import (
    ADJUSTMENT_RULES,
    REASON_DISABLED,
    REASON_NO_PROFILE,
    REASON_NO_WEATHER,
    RuleContext,
    apply_rules,
    environment_rule,
    evaluate,
    is_drought_tolerant_species,
    is_moisture_loving_species,
    rain_rule,
    resolve_preferences,
)


class TestWeatherRules:
    def test_heavy_rain_skips_outdoor_watering(self, basil, make_weather, now):
        adjustment = evaluate(basil, "Ocimum basilicum", "outdoor", make_weather(rain_forecast=10), now)

        assert adjustment.should_skip is True
        assert adjustment.should_increase is False
        assert adjustment.next_watering_date == now + timedelta(days=1)
        assert adjustment.reason == "10mm of rain expected"
        assert adjustment.recommendation == "Skip watering Sweet Basil, rain expected soon"

    def test_rain_at_threshold_skips(self, basil, make_weather, now):
        adjustment = evaluate(basil, "Ocimum basilicum", "outdoor", make_weather(rain_forecast=5), now)
        assert adjustment.should_skip is True

    def test_light_rain_passes_through(self, basil, make_weather, now):
        adjustment = evaluate(basil, "Ocimum basilicum", "outdoor", make_weather(rain_forecast=4.9), now)
        assert adjustment.should_skip is False
        assert adjustment.next_watering_date == now

    def test_heat_increases(self, basil, make_weather, now):
        adjustment = evaluate(basil, "Ocimum basilicum", "outdoor", make_weather(temperature=30), now)
        assert adjustment.should_increase is True
        assert adjustment.reason == "High temperature (30°C)"

    def test_wind_increases(self, basil, make_weather, now):
        adjustment = evaluate(basil, "Ocimum basilicum", "outdoor", make_weather(wind_speed=15), now)
        assert adjustment.should_increase is True
        assert adjustment.reason == "High wind speed (15m/s)"

    def test_low_humidity_increases(self, basil, make_weather, now):
        adjustment = evaluate(basil, "Ocimum basilicum", "outdoor", make_weather(humidity=30), now)
        assert adjustment.should_increase is True
        assert adjustment.reason == "Low humidity (30%)"

    def test_last_matching_rule_owns_message(self, basil, make_weather, now):
        weather = make_weather(temperature=35, humidity=20, rain_forecast=10)
        adjustment = evaluate(basil, "Ocimum basilicum", "outdoor", weather, now)

        assert adjustment.should_skip is True
        assert adjustment.should_increase is True
        assert adjustment.reason == "Low humidity (20%)"

    def test_mild_weather_passes_through(self, basil, make_weather, now):
        adjustment = evaluate(basil, "Ocimum basilicum", "outdoor", make_weather(), now)
        assert adjustment == WateringAdjustment(
            should_skip=False,
            should_increase=False,
            next_watering_date=now,
            recommendation="",
            reason="",
        )


class TestOverrides:
    def test_indoor_never_skips_but_heat_still_applies(self, basil, make_weather, now):
        weather = make_weather(temperature=35, rain_forecast=10)
        adjustment = evaluate(basil, "Ocimum basilicum", "indoor", weather, now)

        assert adjustment.should_skip is False
        assert adjustment.should_increase is True
        assert adjustment.next_watering_date == now + timedelta(days=1)
        assert adjustment.recommendation == "Check soil moisture for Sweet Basil, indoor temperature is high"

    def test_cool_indoor_keeps_weather_message(self, basil, make_weather, now):
        adjustment = evaluate(basil, "Ocimum basilicum", "indoor", make_weather(humidity=20), now)
        assert adjustment.recommendation == "Sweet Basil may need extra water due to dry conditions"

    def test_drought_tolerant_never_increases(self, aloe, make_weather, now):
        weather = make_weather(temperature=38, humidity=15, wind_speed=20)
        adjustment = evaluate(aloe, "Aloe vera", "outdoor", weather, now)

        assert adjustment.should_increase is False
        assert adjustment.recommendation == ""

    def test_drought_tolerant_rain_message(self, aloe, make_weather, now):
        adjustment = evaluate(aloe, "Aloe vera", "outdoor", make_weather(rain_forecast=8), now)

        assert adjustment.should_skip is True
        assert adjustment.recommendation == "Aloe is drought-tolerant and rain is expected"

    def test_moisture_loving_always_monitored(self, peace_lily, make_weather, now):
        adjustment = evaluate(peace_lily, "Spathiphyllum", "outdoor", make_weather(), now)

        assert adjustment.should_increase is True
        assert adjustment.recommendation == "Peace Lily prefers consistent moisture, monitor closely"

    def test_plant_name_overrides_display_name(self, peace_lily, make_weather, now):
        adjustment = evaluate(
            peace_lily, "Spathiphyllum", "outdoor", make_weather(), now, plant_name="Lily"
        )
        assert adjustment.recommendation.startswith("Lily ")

    def test_listed_genus_does_not_cover_its_species(self, peace_lily, make_weather, now):
        adjustment = evaluate(peace_lily, "Spathiphyllum wallisii", "outdoor", make_weather(), now)

        assert adjustment.should_increase is False
        assert adjustment.recommendation == ""


class TestPassThrough:
    def test_disabled(self, basil, make_weather, now):
        adjustment = evaluate(
            basil,
            "Ocimum basilicum",
            "outdoor",
            make_weather(rain_forecast=20),
            now,
            preferences=WateringPreferences(enabled=False),
        )
        assert adjustment.should_skip is False
        assert adjustment.should_increase is False
        assert adjustment.next_watering_date == now
        assert adjustment.reason == REASON_DISABLED

    def test_missing_weather(self, basil, now):
        adjustment = evaluate(basil, "Ocimum basilicum", "outdoor", None, now)
        assert adjustment.reason == REASON_NO_WEATHER
        assert adjustment.next_watering_date == now

    def test_missing_profile(self, make_weather, now):
        weather = make_weather(temperature=35, rain_forecast=10)
        adjustment = evaluate(None, "Ocimum basilicum", "outdoor", weather, now)

        assert adjustment.should_skip is False
        assert adjustment.should_increase is False
        assert adjustment.next_watering_date == now
        assert adjustment.reason == REASON_NO_PROFILE

    def test_missing_scheduled_date_defaults_to_now(self, basil, make_weather):
        adjustment = evaluate(basil, "Ocimum basilicum", "outdoor", make_weather(), None)
        assert adjustment.next_watering_date is not None


class TestRuleOrder:
    def _context(self, make_weather, now, environment):
        return RuleContext(
            plant_name="Basil",
            species="Ocimum basilicum",
            environment=environment,
            weather=make_weather(rain_forecast=10),
            scheduled_date=now,
            preferences=WateringPreferences(),
        )

    def test_default_order_lets_environment_win(self, make_weather, now):
        ctx = self._context(make_weather, now, "indoor")
        initial = WateringAdjustment(False, False, now)
        assert apply_rules(initial, ctx).should_skip is False

    def test_reordered_rules_change_outcome(self, make_weather, now):
        ctx = self._context(make_weather, now, "indoor")
        initial = WateringAdjustment(False, False, now)
        assert apply_rules(initial, ctx, (environment_rule, rain_rule)).should_skip is True

    def test_environment_override_is_last(self):
        assert ADJUSTMENT_RULES[-1] is environment_rule


class TestAllowLists:
    @pytest.mark.parametrize("species", ["Aloe vera", "Sedum", "Lavandula", "  Aloe   vera "])
    def test_drought_tolerant(self, species):
        assert is_drought_tolerant_species(species) is True

    @pytest.mark.parametrize("species", ["Aloe", "Sedum morganianum", "Lavandula angustifolia", "aloe vera"])
    def test_exact_name_required(self, species):
        assert is_drought_tolerant_species(species) is False

    @pytest.mark.parametrize("species", ["Calathea", "Spathiphyllum", "Hydrangea macrophylla"])
    def test_moisture_loving(self, species):
        assert is_moisture_loving_species(species) is True

    def test_unlisted_species(self):
        assert is_drought_tolerant_species("Ocimum basilicum") is False
        assert is_moisture_loving_species("Ocimum basilicum") is False
        assert is_moisture_loving_species("Spathiphyllum wallisii") is False
        assert is_drought_tolerant_species("") is False


class TestPreferences:
    def test_defaults_outside_app_context(self):
        assert resolve_preferences() == WateringPreferences()

    def test_overrides_accept_camel_case(self):
        prefs = resolve_preferences({"rainSkipThreshold": 20, "heat_increase_threshold": 40})
        assert prefs.rain_skip_threshold == 20
        assert prefs.heat_increase_threshold == 40
        assert prefs.wind_speed_threshold == 15

    def test_config_supplies_defaults(self, app):
        app.config["SMART_WATERING_RAIN_SKIP_MM"] = 12.0
        with app.app_context():
            assert resolve_preferences().rain_skip_threshold == 12.0

    def test_raised_threshold_prevents_skip(self, basil, make_weather, now):
        adjustment = evaluate(
            basil,
            "Ocimum basilicum",
            "outdoor",
            make_weather(rain_forecast=10),
            now,
            preferences=resolve_preferences({"rain_skip_threshold": 20}),
        )
        assert adjustment.should_skip is False
