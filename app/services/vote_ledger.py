"""Ballot casting and the append-only vote ledger."""

from __future__ import annotations

import logging
from typing import Any

from app.services.candidate_service import CandidateService
from app.services.common import SupabaseService, index_by
from app.services.resolver import ElectionStatus
from app.services.winner_ledger import WinnerLedger
from app.utils.errors import (
    CandidateAlreadyWonError,
    DuplicateVoteError,
    ElectionNotActiveError,
    InvalidCandidateError,
    StaleRoundError,
    StoreError,
)
from supabase import Client

logger = logging.getLogger(__name__)


class VoteLedger:
    """One ballot per voter per round, tagged with the round open at cast time."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)
        self.candidates = CandidateService(client)
        self.winners = WinnerLedger(client)

    def _election(self, election_id: str) -> dict[str, Any]:
        return self.db.select_one("elections", {"id": election_id}, not_found_label="Election")

    def _vote_in_round(self, election_id: str, round_number: int, voter_id: str) -> bool:
        rows = self.db.select_many(
            "election_votes",
            filters={
                "election_id": election_id,
                "round_number": round_number,
                "voter_id": voter_id,
            },
            columns="id",
            limit=1,
        )
        return bool(rows)

    def cast_vote(self, election_id: str, voter_id: str, application_id: str) -> dict[str, Any]:
        """Record a ballot in the election's current round.

        Raises:
            NotFoundError: the election does not exist.
            ElectionNotActiveError: no round is open.
            DuplicateVoteError: the voter already voted this round.
            InvalidCandidateError: the application stands for another position.
            CandidateAlreadyWonError: the candidate already holds a seat.
        """
        election = self._election(election_id)
        if election["status"] != ElectionStatus.ACTIVE:
            raise ElectionNotActiveError("Active election not found")

        round_number = int(election["current_round"])
        if self._vote_in_round(election_id, round_number, voter_id):
            raise DuplicateVoteError(round_number)

        if self.candidates.find_in_position(application_id, str(election["position_id"])) is None:
            raise InvalidCandidateError()

        if application_id in self.winners.won_application_ids(election_id):
            raise CandidateAlreadyWonError()

        try:
            result = self.db.call_function(
                "cast_election_vote",
                {
                    "p_election_id": election_id,
                    "p_round_number": round_number,
                    "p_voter_id": voter_id,
                    "p_application_id": application_id,
                },
            )
        except StoreError as exc:
            if exc.is_unique_violation:
                raise DuplicateVoteError(round_number) from exc
            raise

        if not result["success"]:
            self._raise_for_reason(result["reason"], round_number)

        logger.info("Vote recorded for election %s round %s", election_id, round_number)
        return result["payload"]

    @staticmethod
    def _raise_for_reason(reason: str, round_number: int) -> None:
        if reason == "election_not_active":
            raise ElectionNotActiveError("Active election not found")
        if reason == "stale_round":
            raise StaleRoundError("The round closed before your vote was recorded")
        if reason == "duplicate_vote":
            raise DuplicateVoteError(round_number)
        if reason == "candidate_already_won":
            raise CandidateAlreadyWonError()
        if reason == "invalid_candidate":
            raise InvalidCandidateError()
        raise StoreError(f"Vote could not be recorded ({reason or 'unknown reason'})")

    def has_voted(self, election_id: str, voter_id: str) -> dict[str, Any]:
        """Return whether the voter has a ballot in the current round."""
        election = self._election(election_id)
        round_number = int(election["current_round"])
        return {
            "has_voted": self._vote_in_round(election_id, round_number, voter_id),
            "round_number": round_number,
        }

    def votes_for_round(self, election_id: str, round_number: int) -> list[dict[str, Any]]:
        """Return all ballots of one round in cast order."""
        return self.db.select_many(
            "election_votes",
            filters={"election_id": election_id, "round_number": round_number},
            order_by="created_at",
        )

    def history_for(self, voter_id: str) -> list[dict[str, Any]]:
        """Return a voter's ballots, newest first, labelled with position and candidate."""
        votes = self.db.select_many(
            "election_votes",
            filters={"voter_id": voter_id},
            order_by="created_at",
            descending=True,
        )
        if not votes:
            return []

        elections = index_by(
            self.db.select_in("elections", "id", [vote["election_id"] for vote in votes])
        )
        positions = index_by(
            self.db.select_in(
                "positions",
                "id",
                [election["position_id"] for election in elections.values()],
            )
        )
        candidates = self.candidates.describe([str(vote["application_id"]) for vote in votes])

        history: list[dict[str, Any]] = []
        for vote in votes:
            election = elections.get(str(vote["election_id"]), {})
            position = positions.get(str(election.get("position_id")), {})
            candidate = candidates.get(str(vote["application_id"]))
            history.append(
                {
                    "id": str(vote["id"]),
                    "election_id": str(vote["election_id"]),
                    "position_id": position.get("id"),
                    "position_title": position.get("title"),
                    "round_number": int(vote["round_number"]),
                    "candidate_name": candidate.display_name if candidate else None,
                    "voted_at": vote.get("created_at"),
                }
            )
        return history
