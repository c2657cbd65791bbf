"""Admin-only setup and teardown routines."""

from __future__ import annotations

import logging
from typing import Any

from app.services.common import SupabaseService, clear_caches
from app.utils.errors import StoreError
from supabase import Client

logger = logging.getLogger(__name__)

DEFAULT_POSITIONS: list[dict[str, Any]] = [
    {
        "title": "President",
        "description": "Lead the chapter and represent members in all matters",
        "is_executive": True,
        "seat_count": 1,
    },
    {
        "title": "Vice President",
        "description": "Assist the President and manage internal affairs",
        "is_executive": True,
        "seat_count": 1,
    },
    {
        "title": "Treasurer",
        "description": "Manage chapter finances and budget",
        "is_executive": True,
        "seat_count": 1,
    },
    {
        "title": "Social Chair",
        "description": "Plan and execute social events",
        "is_executive": False,
        "seat_count": 3,
    },
    {
        "title": "Rush Chair",
        "description": "Lead recruitment efforts",
        "is_executive": False,
        "seat_count": 4,
    },
]


class MaintenanceService:
    """Bulk resets and demo catalog seeding. Both are safe to repeat."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def reset_all_elections(self, include_applications: bool = False) -> dict[str, int]:
        """Delete every vote, winner, round and election in one transaction.

        Positions are untouched; applications are removed only when asked.
        """
        result = self.db.call_function(
            "reset_all_elections",
            {"p_include_applications": include_applications},
        )
        if not result["success"]:
            raise StoreError(f"Failed to reset elections ({result['reason'] or 'unknown reason'})")

        clear_caches()
        deleted = {key: int(value) for key, value in result["payload"].items()}
        logger.warning("All elections reset: %s", deleted)
        return deleted

    def seed_positions(self) -> list[dict[str, Any]]:
        """Insert the default positions when the catalog is empty."""
        if self.db.count("positions") > 0:
            logger.info("Positions already exist; skipping seed")
            return []

        created = self.db.insert_many("positions", [dict(item) for item in DEFAULT_POSITIONS])
        logger.info("Seeded %s positions", len(created))
        return created
