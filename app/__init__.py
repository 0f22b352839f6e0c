"""
Application factory for the care engine API.

Loads config, checks production settings, wires the rate limiter and the
optional Supabase species table, then registers the care blueprint and CLI
commands. No engine logic lives here.
"""

from __future__ import annotations
import os
from flask import Flask, Response
from dotenv import load_dotenv
from .extensions import limiter
from .routes.care import care_bp
from .services import supabase_client


_PRODUCTION_CHECKS = (
    (
        lambda cfg: not cfg.get("DEBUG", False),
        "DEBUG is enabled. The interactive debugger must never be reachable in production.",
    ),
    (
        lambda cfg: cfg.get("PREFERRED_URL_SCHEME", "http") == "https",
        "PREFERRED_URL_SCHEME is not 'https'. Set PREFERRED_URL_SCHEME=https.",
    ),
    (
        lambda cfg: len(cfg.get("SECRET_KEY") or "") >= 32,
        "SECRET_KEY is shorter than 32 characters. Set FLASK_SECRET_KEY.",
    ),
)


def _check_production_config(app: Flask, cfg_path: str) -> None:
    """
    Refuse to start ProdConfig with unsafe settings.

    Raises:
        RuntimeError: listing every failed check
    """
    if "ProdConfig" not in cfg_path or app.config.get("TESTING", False):
        return

    failures = [message for check, message in _PRODUCTION_CHECKS if not check(app.config)]
    if failures:
        raise RuntimeError(
            "[Config] Production configuration rejected:\n" + "\n".join(f"  * {m}" for m in failures)
        )

    if not app.config.get("OPENWEATHER_API_KEY"):
        app.logger.warning("[Config] OPENWEATHER_API_KEY not set, city lookups will return degraded results")

    app.logger.info("[Config] Production configuration checks passed")


def create_app() -> Flask:
    # Real environment variables win over .env
    load_dotenv(override=False)

    app = Flask(__name__)

    # APP_CONFIG selects a class from app/config.py
    cfg_path = os.getenv("APP_CONFIG", "app.config.ProdConfig")
    try:
        app.config.from_object(cfg_path)
    except (ImportError, AttributeError) as e:
        app.logger.warning(f"Could not load config object {cfg_path}: {e}")

    _check_production_config(app, cfg_path)

    limiter.init_app(app)

    if not app.config.get("RATELIMIT_ENABLED", True):
        limiter.enabled = False

    if not app.secret_key:
        app.secret_key = app.config.get("SECRET_KEY", "")

    # Optional remote species table
    supabase_client.init_supabase(app)

    @app.after_request
    def apply_security_headers(resp: Response) -> Response:
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
        return resp

    app.register_blueprint(care_bp, url_prefix="/api/v1/care")

    from app.cli import care_forecast_command, list_species_command, refresh_species_command
    app.cli.add_command(list_species_command)
    app.cli.add_command(care_forecast_command)
    app.cli.add_command(refresh_species_command)

    return app
