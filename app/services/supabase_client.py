"""
Read-only Supabase access for remote species moisture profiles.

The ``species_profiles`` table is optional. When the client is missing or a
query fails, callers use the bundled profile table instead.
"""

from __future__ import annotations
import logging
from typing import Optional, Dict, Any
from supabase import create_client, Client

logger = logging.getLogger(__name__)

_supabase_client: Optional[Client] = None


def init_supabase(app) -> None:
    """Create the client when SPECIES_PROFILES_REMOTE_ENABLED is set."""
    global _supabase_client
    _supabase_client = None

    if not app.config.get("SPECIES_PROFILES_REMOTE_ENABLED", False):
        return

    url = app.config.get("SUPABASE_URL", "")
    anon_key = app.config.get("SUPABASE_ANON_KEY", "")
    if not url or not anon_key:
        app.logger.warning("[Species] SUPABASE_URL or SUPABASE_ANON_KEY missing, remote profiles disabled")
        return

    try:
        _supabase_client = create_client(url, anon_key)
    except Exception as e:
        app.logger.error(f"[Species] Supabase client init failed: {e}")
        return
    app.logger.info("[Species] Remote species profiles enabled")


def set_client(client: Optional[Client]) -> None:
    global _supabase_client
    _supabase_client = client


def get_species_profile_record(
    scientific_name: str,
    table: str = "species_profiles"
) -> Optional[Dict[str, Any]]:
    """
    First row of ``table`` whose scientific_name matches exactly.

    Returns:
        Row dict, or None when remote lookups are off, nothing matches, or the
        query fails
    """
    if _supabase_client is None or not scientific_name:
        return None

    try:
        rows = (
            _supabase_client.table(table)
            .select("*")
            .eq("scientific_name", scientific_name)
            .limit(1)
            .execute()
        ).data or []
    except Exception as e:
        logger.error(f"[Species] Remote lookup failed for {scientific_name}: {e}")
        return None

    if not rows:
        return None
    logger.info(f"[Species] Loaded remote profile for {scientific_name}")
    return rows[0]
