from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from app.services import species_profiles, supabase_client
from app.services.care_models import SpeciesMoistureProfile
from app.utils.cache import invalidate_profile, profile_cache_size


REMOTE_ROW = {
    "scientific_name": "Ficus lyrata",
    "common_names": ["Fiddle Leaf Fig"],
    "category": "houseplant",
    "moisture_retention_score": 0.6,
    "drought_tolerance": 0.4,
    "humidity_preference": 0.6,
    "watering_interval_summer": 7,
    "watering_interval_winter": 12,
    "moisture_threshold_min": 0.3,
    "moisture_threshold_optimal": 0.5,
    "moisture_threshold_max": 0.7,
    "sensitive_to_overwatering": True,
    "sensitive_to_underwatering": False,
    "sensitive_to_temperature": True,
    "sensitive_to_wind": True,
    "watering_notes": ["Let the top 5cm dry out"],
}


@pytest.fixture()
def remote_client(app):
    """Supabase stub returning REMOTE_ROW for any species query."""
    client = MagicMock()
    query = client.table.return_value.select.return_value.eq.return_value.limit.return_value
    query.execute.return_value.data = [REMOTE_ROW]
    supabase_client.set_client(client)
    yield client
    supabase_client.set_client(None)


class TestBundledProfiles:
    def test_known_species(self, basil):
        assert basil.scientific_name == "Ocimum basilicum"
        assert basil.retention_score == 0.4
        assert basil.watering_interval.summer == 2
        assert basil.moisture_thresholds.optimal == 0.6
        assert basil.sensitivities.wind is True
        assert basil.is_fallback is False

    def test_lookup_ignores_case_and_spacing(self, basil):
        assert species_profiles.get_profile("  ocimum   BASILICUM ") == basil

    def test_all_profiles_sorted(self):
        profiles = species_profiles.get_all_profiles()
        names = [p.scientific_name for p in profiles]

        assert len(profiles) == 5
        assert names == sorted(names)
        assert "Lavandula angustifolia" in names

    def test_thresholds_ordered(self):
        for profile in species_profiles.get_all_profiles():
            t = profile.moisture_thresholds
            assert t.min <= t.optimal <= t.max


class TestFallback:
    def test_unknown_species(self):
        profile = species_profiles.get_profile("Unknown species xyz")

        assert profile.is_fallback is True
        assert profile.scientific_name == "Unknown species xyz"
        assert profile.retention_score == 0.5
        assert (profile.watering_interval.summer, profile.watering_interval.winter) == (7, 14)
        assert profile.moisture_thresholds.min == 0.2
        assert profile.sensitivities.temperature is True
        assert profile.sensitivities.wind is False

    def test_missing_name(self):
        assert species_profiles.get_profile(None).scientific_name == "Unknown species"
        assert species_profiles.get_profile("").is_fallback is True


class TestClassifiers:
    def test_drought_tolerant(self, aloe, basil):
        assert species_profiles.is_drought_tolerant(aloe) is True
        assert species_profiles.is_drought_tolerant(basil) is False

    def test_moisture_loving(self, peace_lily, basil):
        assert species_profiles.is_moisture_loving(peace_lily) is True
        assert species_profiles.is_moisture_loving(basil) is False


class TestCaching:
    def test_known_profiles_cached(self):
        species_profiles.get_profile("Aloe vera")
        species_profiles.get_profile("aloe vera")
        assert profile_cache_size() == 1

        invalidate_profile("Aloe vera")
        assert profile_cache_size() == 0

    def test_fallback_not_cached(self):
        species_profiles.get_profile("Nonexistent plant")
        assert profile_cache_size() == 0

    def test_refresh_one_species(self):
        species_profiles.get_profile("Aloe vera")
        species_profiles.get_profile("Ocimum basilicum")

        assert species_profiles.refresh_profiles(" aloe  VERA ") == 1
        assert profile_cache_size() == 1

    def test_refresh_all(self):
        species_profiles.get_profile("Aloe vera")
        species_profiles.get_profile("Ocimum basilicum")

        assert species_profiles.refresh_profiles() == 2
        assert profile_cache_size() == 0


class TestRemoteProfiles:
    def test_remote_lookup_when_enabled(self, app, remote_client):
        app.config["SPECIES_PROFILES_REMOTE_ENABLED"] = True
        with app.app_context():
            profile = species_profiles.get_profile("Ficus lyrata")

        assert profile.is_fallback is False
        assert profile.display_name == "Fiddle Leaf Fig"
        assert profile.watering_interval.winter == 12
        assert profile.care_notes.watering == ("Let the top 5cm dry out",)
        remote_client.table.assert_called_with("species_profiles")

    def test_remote_disabled_uses_fallback(self, app, remote_client):
        with app.app_context():
            profile = species_profiles.get_profile("Ficus lyrata")

        assert profile.is_fallback is True
        remote_client.table.assert_not_called()

    def test_bundled_profile_wins_over_remote(self, app, remote_client):
        app.config["SPECIES_PROFILES_REMOTE_ENABLED"] = True
        with app.app_context():
            profile = species_profiles.get_profile("Aloe vera")

        assert profile.scientific_name == "Aloe vera"
        remote_client.table.assert_not_called()

    def test_remote_error_falls_back(self, app, remote_client):
        remote_client.table.side_effect = RuntimeError("connection reset")
        app.config["SPECIES_PROFILES_REMOTE_ENABLED"] = True
        with app.app_context():
            profile = species_profiles.get_profile("Ficus lyrata")

        assert profile.is_fallback is True

    def test_malformed_row_falls_back(self, app, remote_client):
        query = remote_client.table.return_value.select.return_value.eq.return_value.limit.return_value
        query.execute.return_value.data = [{"scientific_name": "Ficus lyrata"}]
        app.config["SPECIES_PROFILES_REMOTE_ENABLED"] = True
        with app.app_context():
            profile = species_profiles.get_profile("Ficus lyrata")

        assert profile.is_fallback is True


class TestProfileParsing:
    def test_profile_from_record_rejects_unordered_thresholds(self):
        row = dict(REMOTE_ROW, moisture_threshold_min=0.9)
        with pytest.raises(ValueError):
            species_profiles.profile_from_record(row)

    def test_from_dict_accepts_camel_case(self):
        profile = SpeciesMoistureProfile.from_dict({
            "scientificName": "Pilea peperomioides",
            "commonNames": ["Chinese Money Plant"],
            "retentionScore": 0.55,
            "wateringInterval": {"summer": 6, "winter": 10},
            "moistureThresholds": {"min": 0.25, "optimal": 0.5, "max": 0.75},
            "sensitivities": {"temperature": True},
        })

        assert profile.scientific_name == "Pilea peperomioides"
        assert profile.retention_score == 0.55
        assert profile.watering_interval.winter == 10
        assert profile.sensitivities.temperature is True

    def test_from_dict_rejects_unordered_thresholds(self):
        with pytest.raises(ValueError):
            SpeciesMoistureProfile.from_dict({
                "scientific_name": "Broken",
                "moisture_thresholds": {"min": 0.6, "optimal": 0.5, "max": 0.7},
            })
