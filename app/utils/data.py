"""
Bundled JSON data (app/data/) for the care engine.
"""

from __future__ import annotations
import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent.parent / "data"


def load_data_file(filename: str) -> list:
    """
    Read a JSON array shipped in app/data/.

    A missing or unreadable file logs a warning and yields an empty list, so
    the engine still starts (every lookup then uses the fallback profile).
    """
    path = DATA_DIR / filename
    try:
        records = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.warning(f"[Data] {filename} not found in {DATA_DIR}")
        return []
    except json.JSONDecodeError as e:
        logger.warning(f"[Data] {filename} is not valid JSON: {e}")
        return []

    if not isinstance(records, list):
        logger.warning(f"[Data] {filename} must contain a JSON array")
        return []
    return records
