"""Candidate pool lookups and floor nominations."""

from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import asdict, dataclass
from typing import Any, ClassVar

from app.services.common import SupabaseService
from app.utils.errors import InvalidInputError
from supabase import Client

logger = logging.getLogger(__name__)

APPLICANT = "applicant"
FLOOR_NOMINATION = "floor_nomination"


@dataclass(frozen=True)
class Applicant:
    """A member who submitted their own application."""

    kind: ClassVar[str] = APPLICANT

    application_id: str
    position_id: str
    display_name: str
    member_id: str
    statement: str = ""
    photo_url: str | None = None
    submitted_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {**asdict(self), "kind": self.kind, "is_floor_nomination": False}


@dataclass(frozen=True)
class FloorNomination:
    """A nominee entered from the floor by an admin; has no member account."""

    kind: ClassVar[str] = FLOOR_NOMINATION

    application_id: str
    position_id: str
    display_name: str
    statement: str = ""
    submitted_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {**asdict(self), "kind": self.kind, "is_floor_nomination": True}


Candidate = Applicant | FloorNomination


def candidate_from_row(row: dict[str, Any], users: dict[str, dict[str, Any]]) -> Candidate:
    """Build the tagged candidate variant for an ``applications`` row."""
    common = {
        "application_id": str(row["id"]),
        "position_id": str(row["position_id"]),
        "statement": row.get("statement") or "",
        "submitted_at": row.get("created_at"),
    }
    if row.get("kind") == FLOOR_NOMINATION:
        return FloorNomination(display_name=str(row.get("nominee_name") or "Floor nominee"), **common)

    member_id = str(row["member_id"])
    user = users.get(member_id) or {}
    return Applicant(
        member_id=member_id,
        display_name=str(user.get("display_name") or "Unknown member"),
        photo_url=row.get("photo_url"),
        **common,
    )


class CandidateService:
    """Supply candidates for a position and register floor nominations."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def _build(self, rows: list[dict[str, Any]]) -> list[Candidate]:
        member_ids = [str(row["member_id"]) for row in rows if row.get("member_id")]
        users = self.db.get_users_map(member_ids)
        return [candidate_from_row(row, users) for row in rows]

    def pool_for(self, position_id: str, exclude: Collection[str] = ()) -> list[Candidate]:
        """Return candidates in submission order, minus ``exclude`` application ids.

        Submission order is the tie-break order used when tallying.
        """
        rows = self.db.select_many(
            "applications",
            filters={"position_id": position_id},
            order_by=["created_at", "id"],
        )
        excluded = {str(application_id) for application_id in exclude}
        return self._build([row for row in rows if str(row["id"]) not in excluded])

    def count_for_position(self, position_id: str) -> int:
        """Return how many candidates stand for a position."""
        return self.db.count("applications", {"position_id": position_id})

    def describe(self, application_ids: Collection[str]) -> dict[str, Candidate]:
        """Return candidates keyed by application id, for labelling ledger rows."""
        rows = self.db.select_in("applications", "id", application_ids)
        return {candidate.application_id: candidate for candidate in self._build(rows)}

    def find_in_position(self, application_id: str, position_id: str) -> dict[str, Any] | None:
        """Return the application row when it stands for ``position_id``."""
        rows = self.db.select_many(
            "applications",
            filters={"id": application_id, "position_id": position_id},
            columns="id,position_id",
            limit=1,
        )
        return rows[0] if rows else None

    def create_floor_nomination(
        self,
        position_id: str,
        nominee_name: str,
        statement: str | None = None,
    ) -> FloorNomination:
        """Register a floor nominee as a candidate for ``position_id``."""
        name = " ".join(nominee_name.split())
        if not name:
            raise InvalidInputError("Nominee name is required")

        self.db.select_one("positions", {"id": position_id}, columns="id", not_found_label="Position")
        final_statement = (statement or "").strip() or f"Floor nomination for {name}"
        row = self.db.insert_one(
            "applications",
            {
                "position_id": position_id,
                "kind": FLOOR_NOMINATION,
                "nominee_name": name,
                "statement": final_statement,
            },
        )
        logger.info("Floor nomination %s created for position %s", row["id"], position_id)
        return FloorNomination(
            application_id=str(row["id"]),
            position_id=str(row["position_id"]),
            display_name=name,
            statement=final_statement,
            submitted_at=row.get("created_at"),
        )
