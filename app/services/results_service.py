"""Live results for an election's current round."""

from __future__ import annotations

from typing import Any

from app.services.candidate_service import CandidateService
from app.services.common import SupabaseService
from app.services.resolver import tally_round
from app.services.round_tracker import summarize_election
from app.services.vote_ledger import VoteLedger
from app.services.winner_ledger import WinnerLedger
from app.utils.time import elapsed_label
from supabase import Client


class ResultsService:
    """Read-only view over the vote and winner ledgers."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)
        self.candidates = CandidateService(client)
        self.votes = VoteLedger(client)
        self.winners = WinnerLedger(client)

    def _current_round(self, election_id: str, round_number: int) -> dict[str, Any] | None:
        rows = self.db.select_many(
            "election_rounds",
            filters={"election_id": election_id, "round_number": round_number},
            limit=1,
        )
        return rows[0] if rows else None

    def results(self, election_id: str) -> dict[str, Any]:
        """Return the current round's tally, its threshold and the winner history."""
        election = self.db.select_one("elections", {"id": election_id}, not_found_label="Election")
        position = self.db.select_one(
            "positions",
            {"id": election["position_id"]},
            not_found_label="Position",
        )
        round_number = int(election["current_round"])
        history = self.winners.history(election_id)

        # A candidate who won the round on display stays in its tally.
        earlier_winners = {
            entry["application_id"] for entry in history if entry["round_number"] < round_number
        }
        pool = self.candidates.pool_for(str(election["position_id"]), exclude=earlier_winners)
        tally = tally_round(pool, self.votes.votes_for_round(election_id, round_number))

        round_row = self._current_round(election_id, round_number) or {}
        seat_count = int(position["seat_count"])
        return {
            "election": summarize_election(election, position),
            "round": {
                "round_number": round_number,
                "started_at": round_row.get("started_at"),
                "ended_at": round_row.get("ended_at"),
                "elapsed": elapsed_label(round_row.get("started_at"), round_row.get("ended_at")),
            },
            "results": {
                "total_votes": tally.total_votes,
                "required_votes": tally.required_votes,
                "candidates": [entry.to_dict() for entry in tally.candidates],
            },
            "winners_count": len(history),
            "remaining_seats": max(0, seat_count - len(history)),
            "previous_winners": history,
        }
