"""Read side of the append-only winner ledger.

Winners are only ever written by the ``close_election_round`` database
function, in the same transaction that closes the round.
"""

from __future__ import annotations

from typing import Any

from app.services.candidate_service import CandidateService
from app.services.common import SupabaseService
from supabase import Client


class WinnerLedger:
    """Declared seat winners per election."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def winners_for(self, election_id: str) -> list[dict[str, Any]]:
        """Return winners ordered by round, then by vote count descending."""
        return self.db.execute(
            self.db.client.table("election_winners")
            .select("*")
            .eq("election_id", election_id)
            .order("round_number")
            .order("vote_count", desc=True),
            default=[],
        )

    def count_for(self, election_id: str) -> int:
        """Return how many seats have been filled."""
        return self.db.count("election_winners", {"election_id": election_id})

    def won_application_ids(self, election_id: str) -> set[str]:
        """Return application ids that already hold a seat."""
        return {str(row["application_id"]) for row in self.winners_for(election_id)}

    def history(self, election_id: str) -> list[dict[str, Any]]:
        """Return winners with candidate display names for results pages."""
        winners = self.winners_for(election_id)
        candidates = CandidateService(self.db.client).describe(
            [str(row["application_id"]) for row in winners]
        )
        history: list[dict[str, Any]] = []
        for row in winners:
            candidate = candidates.get(str(row["application_id"]))
            history.append(
                {
                    "application_id": str(row["application_id"]),
                    "display_name": candidate.display_name if candidate else "Unknown candidate",
                    "round_number": int(row["round_number"]),
                    "vote_count": int(row["vote_count"]),
                    "declared_at": row.get("declared_at"),
                }
            )
        return history
