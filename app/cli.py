"""
Flask CLI commands for inspecting the care engine.

Usage:
    flask list-species                                   # Bundled species profiles
    flask care-forecast "Ocimum basilicum" --temperature 35 --humidity 25
    flask care-forecast "Aloe vera" --temperature 22 --humidity 50 --indoor
    flask care-forecast "Ocimum basilicum" --temperature 22 --humidity 60 \\
        --hydroponic --frequency-days 7 --days-since-watered 8
    flask refresh-species                                # Drop all cached profiles
    flask refresh-species "Ficus lyrata"                 # Drop one
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import click
from flask.cli import with_appcontext


@click.command("list-species")
@with_appcontext
def list_species_command() -> None:
    """List the bundled species moisture profiles."""
    from app.services import species_profiles

    profiles = species_profiles.get_all_profiles()
    if not profiles:
        click.echo("No species profiles found.")
        return

    for profile in profiles:
        flags = []
        if species_profiles.is_drought_tolerant(profile):
            flags.append("drought-tolerant")
        if species_profiles.is_moisture_loving(profile):
            flags.append("moisture-loving")
        interval = profile.watering_interval
        click.echo(
            f"{profile.scientific_name:<40} {profile.category:<11} "
            f"retention={profile.retention_score:.2f} "
            f"interval={interval.summer}/{interval.winter}d"
            + (f"  [{', '.join(flags)}]" if flags else "")
        )

    click.echo(f"\n{len(profiles)} species.")


@click.command("care-forecast")
@click.argument("species")
@click.option("--temperature", type=float, required=True, help="Current temperature in °C.")
@click.option("--humidity", type=float, required=True, help="Relative humidity in percent.")
@click.option("--wind", type=float, default=0.0, show_default=True, help="Wind speed in m/s.")
@click.option("--rain", type=float, default=0.0, show_default=True, help="Rain expected in the next 24h, mm.")
@click.option("--days-since-watered", type=float, default=0.0, show_default=True,
              help="Days since the last watering (or nutrient change).")
@click.option("--indoor", is_flag=True, default=False, help="Plant lives indoors.")
@click.option("--hydroponic", is_flag=True, default=False, help="Hydroponic growing method.")
@click.option("--frequency-days", type=click.IntRange(min=1), default=7, show_default=True,
              help="Nutrient change frequency for hydroponic plants.")
@with_appcontext
def care_forecast_command(
    species: str,
    temperature: float,
    humidity: float,
    wind: float,
    rain: float,
    days_since_watered: float,
    indoor: bool,
    hydroponic: bool,
    frequency_days: int,
) -> None:
    """Print the moisture timeline and recommendation for SPECIES."""
    from app.constants import ENV_INDOOR, ENV_OUTDOOR
    from app.services import species_profiles
    from app.services.care_models import GrowingMethod, WeatherSnapshot
    from app.services.moisture_timeline import simulate
    from app.services.recommendations import recommend
    from app.services.watering_interval import calculate_interval_for_weather

    now = datetime.now(timezone.utc)
    last_watered = now - timedelta(days=days_since_watered)
    weather = WeatherSnapshot(
        temperature=temperature,
        humidity=humidity,
        wind_speed=wind,
        rain_forecast=rain,
        timestamp=now,
    )
    growing_method = GrowingMethod.hydroponic(frequency_days) if hydroponic else GrowingMethod.soil()

    profile = species_profiles.get_profile(species)
    if profile.is_fallback:
        click.echo(f"Unknown species '{species}', using fallback profile.")

    interval = calculate_interval_for_weather(profile, weather, indoor)
    click.echo(f"{profile.display_name}: water every {interval} day(s)\n")

    timeline = simulate(profile, weather, last_watered, indoor, now=now)
    click.echo(f"{'Date':<12} {'Moisture':>8} {'Optimal':>8} {'Confidence':>10}")
    for point in timeline:
        click.echo(
            f"{point.date:%Y-%m-%d}   {point.moisture:>8.2f} {point.optimal:>8.2f} {point.confidence:>10.2f}"
        )

    recommendation = recommend(
        timeline,
        profile,
        weather,
        last_watered,
        ENV_INDOOR if indoor else ENV_OUTDOOR,
        growing_method,
        now=now,
    )
    click.echo(f"\n[{recommendation.severity.upper()}] {recommendation.message}")
    if recommendation.reason:
        click.echo(f"  {recommendation.reason}")
    if recommendation.date:
        click.echo(f"  Suggested date: {recommendation.date:%Y-%m-%d}")
    click.echo(f"  ({recommendation.environment_label})")


@click.command("refresh-species")
@click.argument("species", required=False)
@with_appcontext
def refresh_species_command(species: str | None) -> None:
    """Drop cached profiles (all, or only SPECIES) so remote edits load."""
    from app.services import species_profiles

    dropped = species_profiles.refresh_profiles(species)
    target = f"'{species}'" if species else "all species"
    click.echo(f"Refreshed {target}: {dropped} cached profile(s) dropped.")
