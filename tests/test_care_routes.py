from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest


API = "/api/v1/care"

HOT_DRY = {"temperature": 35, "humidity": 25, "wind_speed": 5, "rain_forecast": 0}
RAINY = {"temperature": 20, "humidity": 60, "wind_speed": 0, "rain_forecast": 10}


def iso_days_ago(days):
    return (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()


class TestSpeciesEndpoints:
    def test_list_species(self, client):
        response = client.get(f"{API}/species")
        assert response.status_code == 200

        payload = response.get_json()
        assert payload["success"] is True
        assert len(payload["species"]) == 5
        aloe = next(s for s in payload["species"] if s["scientific_name"] == "Aloe vera")
        assert aloe["drought_tolerant"] is True
        assert aloe["moisture_loving"] is False

    def test_get_species(self, client):
        response = client.get(f"{API}/species/Spathiphyllum%20wallisii")
        profile = response.get_json()["profile"]

        assert profile["common_names"][0] == "Peace Lily"
        assert profile["moisture_loving"] is True
        assert profile["moisture_thresholds"] == {"min": 0.4, "optimal": 0.7, "max": 0.9}

    def test_unknown_species_returns_fallback(self, client):
        response = client.get(f"{API}/species/Mystery%20plant")

        assert response.status_code == 200
        assert response.get_json()["profile"]["is_fallback"] is True


class TestEngineEndpoints:
    def test_interval(self, client):
        response = client.post(f"{API}/interval", json={
            "species": "Ocimum basilicum",
            "environment": "outdoor",
            "weather": HOT_DRY,
        })
        assert response.status_code == 200
        assert response.get_json() == {"success": True, "interval": 1}

    def test_interval_without_weather(self, client):
        response = client.post(f"{API}/interval", json={"species": "Ocimum basilicum"})
        assert response.get_json()["interval"] is None

    def test_timeline(self, client):
        response = client.post(f"{API}/timeline", json={
            "species": "Ocimum basilicum",
            "environment": "outdoor",
            "last_watered": iso_days_ago(1),
            "weather": HOT_DRY,
        })
        timeline = response.get_json()["timeline"]

        assert len(timeline) == 7
        assert set(timeline[0]) == {"date", "moisture", "optimal", "confidence"}
        assert all(0.3 <= point["moisture"] <= 0.8 for point in timeline)

    def test_timeline_custom_profile_and_horizon(self, client):
        response = client.post(f"{API}/timeline", json={
            "profile": {
                "scientificName": "Pilea peperomioides",
                "moisture": {
                    "retentionScore": 0.5,
                    "moistureThresholds": {"min": 0.2, "optimal": 0.45, "max": 0.7},
                },
            },
            "horizonDays": 3,
            "isIndoor": True,
            "weather": {"temperature": 22, "humidity": 50},
        })
        timeline = response.get_json()["timeline"]

        assert len(timeline) == 3
        assert all(point["optimal"] == 0.45 for point in timeline)

    def test_timeline_without_weather_is_empty(self, client):
        response = client.post(f"{API}/timeline", json={"species": "Aloe vera"})
        assert response.get_json()["timeline"] == []

    def test_adjustment_rain_skip(self, client):
        response = client.post(f"{API}/adjustment", json={
            "species": "Ocimum basilicum",
            "plant_name": "Porch basil",
            "environment": "outdoor",
            "scheduled_date": "2024-06-01T09:00:00Z",
            "weather": RAINY,
        })
        adjustment = response.get_json()["adjustment"]

        assert adjustment["should_skip"] is True
        assert adjustment["next_watering_date"] == "2024-06-02T09:00:00+00:00"
        assert adjustment["recommendation"] == "Skip watering Porch basil, rain expected soon"

    def test_adjustment_preferences_override(self, client):
        response = client.post(f"{API}/adjustment", json={
            "species": "Ocimum basilicum",
            "environment": "outdoor",
            "scheduled_date": "2024-06-01T09:00:00Z",
            "preferences": {"rainSkipThreshold": 25},
            "weather": RAINY,
        })
        assert response.get_json()["adjustment"]["should_skip"] is False

    @pytest.mark.parametrize("enabled", [False, "false", "off", 0])
    def test_adjustment_disabled_by_preference(self, client, enabled):
        response = client.post(f"{API}/adjustment", json={
            "species": "Ocimum basilicum",
            "environment": "outdoor",
            "preferences": {"enabled": enabled},
            "weather": RAINY,
        })
        adjustment = response.get_json()["adjustment"]

        assert adjustment["should_skip"] is False
        assert adjustment["reason"] == "disabled"

    def test_is_indoor_string_flag(self, client):
        response = client.post(f"{API}/adjustment", json={
            "species": "Ocimum basilicum",
            "is_indoor": "false",
            "weather": RAINY,
        })
        assert response.get_json()["adjustment"]["should_skip"] is True

    def test_recommendation_hydroponic(self, client):
        response = client.post(f"{API}/recommendation", json={
            "species": "Ocimum basilicum",
            "environment": "indoor",
            "last_watered": iso_days_ago(8),
            "growing_method": {
                "type": "hydroponic",
                "nutrient_schedule": {"frequency_days": 7, "solution": "FloraGro", "ppm": 800},
            },
            "weather": {"temperature": 22, "humidity": 55},
        })
        payload = response.get_json()

        assert payload["recommendation"]["type"] == "nutrients"
        assert payload["recommendation"]["severity"] == "warning"
        assert payload["recommendation"]["environment_label"] == "Indoor hydroponic"
        assert payload["acknowledgement"] == "warning"
        assert len(payload["timeline"]) == 7

    def test_recommendation_without_weather(self, client):
        response = client.post(f"{API}/recommendation", json={
            "species": "Aloe vera",
            "environment": "outdoor",
        })
        payload = response.get_json()

        assert payload["success"] is True
        assert payload["recommendation"]["type"] == "monitor"
        assert payload["recommendation"]["reason"] == "Weather data unavailable"
        assert payload["acknowledgement"] is None
        assert payload["timeline"] == []

    def test_schedule(self, client):
        response = client.post(f"{API}/schedule", json={
            "species": "Ocimum basilicum",
            "environment": "outdoor",
            "last_watered": iso_days_ago(0),
            "weather": RAINY,
        })
        schedule = response.get_json()["schedule"]

        assert schedule["base_interval"] == 4
        assert schedule["is_adjusted"] is True
        assert schedule["adjustment"]["should_skip"] is True


class TestValidation:
    @pytest.mark.parametrize("body", [
        [1, 2, 3],
        {"weather": "sunny"},
        {"weather": {"temperature": "hot", "humidity": 50}},
        {"last_watered": "yesterday"},
        {"horizon_days": "a week"},
        {"growing_method": {"type": "aeroponic"}},
        {"preferences": ["no-rain"]},
        {"preferences": {"rain_skip_threshold": "lots"}},
        {"preferences": {"enabled": "maybe"}},
        {"is_indoor": "sometimes"},
        {"profile": {"moisture_thresholds": {"min": 0.9, "optimal": 0.5, "max": 0.7}}},
    ])
    def test_bad_payload_rejected(self, client, body):
        response = client.post(f"{API}/timeline", json=body)

        assert response.status_code == 400
        assert response.get_json()["success"] is False

    def test_bad_threshold_message(self, client):
        response = client.post(f"{API}/schedule", json={
            "species": "Ocimum basilicum",
            "preferences": {"rain_skip_threshold": "lots"},
            "weather": RAINY,
        })

        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid preferences: rain_skip_threshold must be a number"

    def test_empty_body_degrades(self, client):
        response = client.post(f"{API}/recommendation")
        assert response.status_code == 200
        assert response.get_json()["recommendation"]["type"] == "monitor"


def test_security_headers(client):
    response = client.get(f"{API}/species")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
