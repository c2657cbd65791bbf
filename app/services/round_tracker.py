"""Election lifecycle: starting elections, closing rounds, opening the next one."""

from __future__ import annotations

import logging
from typing import Any

from app.services.candidate_service import CandidateService
from app.services.common import SupabaseService, index_by
from app.services.resolver import ElectionStatus, RoundOutcome, resolve_round
from app.services.vote_ledger import VoteLedger
from app.services.winner_ledger import WinnerLedger
from app.utils.errors import (
    AlreadyActiveError,
    CandidateAlreadyWonError,
    ConflictError,
    ElectionClosedError,
    ElectionNotActiveError,
    InvalidInputError,
    NoCandidatesError,
    NotFoundError,
    SeatsFilledError,
    StaleRoundError,
    StoreError,
)
from supabase import Client

logger = logging.getLogger(__name__)


def summarize_election(
    election: dict[str, Any],
    position: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Flatten an election row (plus its position) for API responses."""
    position = position or {}
    status = str(election["status"])
    return {
        "id": str(election["id"]),
        "position_id": str(election["position_id"]),
        "position_title": position.get("title"),
        "seat_count": position.get("seat_count"),
        "is_executive": bool(position.get("is_executive")),
        "description": position.get("description"),
        "status": status,
        "is_active": status == ElectionStatus.ACTIVE,
        "current_round": int(election["current_round"]),
        "started_at": election.get("started_at"),
        "ended_at": election.get("ended_at"),
    }


class RoundTracker:
    """Drive an election through its rounds.

    ``active -> {complete | awaiting_next_round | ended_no_majority}``; an
    election awaiting its next round goes back to ``active`` through
    :meth:`start_next_round`, and one that ended without a majority through
    :meth:`start_election`. ``complete`` is final.
    """

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)
        self.candidates = CandidateService(client)
        self.votes = VoteLedger(client)
        self.winners = WinnerLedger(client)

    def _position(self, position_id: str) -> dict[str, Any]:
        position = self.db.select_one("positions", {"id": position_id}, not_found_label="Position")
        if int(position.get("seat_count") or 0) < 1:
            raise InvalidInputError("Position seat count must be at least 1")
        return position

    def _election(self, election_id: str) -> dict[str, Any]:
        return self.db.select_one("elections", {"id": election_id}, not_found_label="Election")

    def _open_round(
        self,
        position_id: str,
        round_number: int,
        expected_status: ElectionStatus | None,
    ) -> dict[str, Any]:
        result = self.db.call_function(
            "open_election_round",
            {
                "p_position_id": position_id,
                "p_expected_status": str(expected_status) if expected_status else None,
                "p_round_number": round_number,
            },
        )
        if not result["success"]:
            self._raise_for_reason(result["reason"])
        return result["payload"]

    @staticmethod
    def _raise_for_reason(reason: str) -> None:
        if reason == "not_found":
            raise NotFoundError("Election")
        if reason in {"stale_status", "stale_round", "already_exists", "round_exists"}:
            raise StaleRoundError()
        if reason == "tally_changed":
            raise StaleRoundError("New votes arrived while the round was closing; try again")
        if reason == "already_won":
            raise CandidateAlreadyWonError()
        raise StoreError(f"Election update failed ({reason or 'unknown reason'})")

    def _raise_complete(self, election_id: str, seat_count: int) -> None:
        """A complete election either filled its seats or ran out of candidates."""
        if self.winners.count_for(election_id) >= seat_count:
            raise SeatsFilledError(seat_count)
        raise NoCandidatesError("Election is complete; every candidate has already won a seat")

    def list_elections(self) -> list[dict[str, Any]]:
        """Return every election, active ones first, newest start first."""
        elections = self.db.select_many("elections", order_by="started_at", descending=True)
        positions = index_by(
            self.db.select_in("positions", "id", [row["position_id"] for row in elections])
        )
        summaries = [
            summarize_election(row, positions.get(str(row["position_id"]))) for row in elections
        ]
        return sorted(summaries, key=lambda item: not item["is_active"])

    def active_elections(self) -> list[dict[str, Any]]:
        """Return elections with an open round, executive positions first, then by title."""
        active = [item for item in self.list_elections() if item["is_active"]]
        return sorted(
            active,
            key=lambda item: (not item["is_executive"], str(item["position_title"] or "")),
        )

    def start_election(self, position_id: str) -> dict[str, Any]:
        """Create (or reactivate) the position's election and open a round."""
        position = self._position(position_id)
        if self.candidates.count_for_position(position_id) == 0:
            raise NoCandidatesError()

        existing = self.db.select_many("elections", filters={"position_id": position_id}, limit=1)
        if not existing:
            election = self._open_round(position_id, 1, expected_status=None)
            logger.info("Election %s started for position %s", election["id"], position_id)
            return summarize_election(election, position)

        current = existing[0]
        status = ElectionStatus(current["status"])
        if status is ElectionStatus.ACTIVE:
            raise AlreadyActiveError()
        if status is ElectionStatus.AWAITING_NEXT_ROUND:
            raise ConflictError(
                "Election is paused between rounds; start the next round instead",
                code="ELECTION_PAUSED",
            )
        if status is ElectionStatus.COMPLETE:
            self._raise_complete(str(current["id"]), int(position["seat_count"]))

        # Reactivation keeps earlier rounds and winners, so numbering continues.
        next_round = int(current["current_round"]) + 1
        election = self._open_round(position_id, next_round, expected_status=status)
        logger.info(
            "Election %s reactivated for position %s at round %s",
            election["id"],
            position_id,
            next_round,
        )
        return summarize_election(election, position)

    def end_round(self, election_id: str) -> RoundOutcome:
        """Tally the open round, record any winner and leave the election inactive."""
        election = self._election(election_id)
        if election["status"] != ElectionStatus.ACTIVE:
            raise ElectionNotActiveError()

        position = self._position(str(election["position_id"]))
        round_number = int(election["current_round"])
        won = self.winners.won_application_ids(election_id)
        pool = self.candidates.pool_for(str(election["position_id"]), exclude=won)
        ballots = self.votes.votes_for_round(election_id, round_number)

        outcome = resolve_round(
            round_number=round_number,
            pool=pool,
            votes=ballots,
            seat_count=int(position["seat_count"]),
            winners_before=len(won),
        )

        winner = outcome.winner
        result = self.db.call_function(
            "close_election_round",
            {
                "p_election_id": election_id,
                "p_round_number": round_number,
                "p_votes_seen": len(ballots),
                "p_next_status": str(outcome.status),
                "p_winner_application_id": winner.application_id if winner else None,
                "p_winner_vote_count": winner.vote_count if winner else None,
            },
        )
        if not result["success"]:
            self._raise_for_reason(result["reason"])

        logger.info(
            "Election %s round %s closed as %s (%s/%s votes, %s required)",
            election_id,
            round_number,
            outcome.status,
            outcome.top_candidate.vote_count if outcome.top_candidate else 0,
            outcome.tally.total_votes,
            outcome.tally.required_votes,
        )
        return outcome

    def start_next_round(self, election_id: str) -> dict[str, Any]:
        """Reopen a paused multi-seat election for its next round."""
        election = self._election(election_id)
        position = self._position(str(election["position_id"]))
        seat_count = int(position["seat_count"])

        won = self.winners.won_application_ids(election_id)
        if len(won) >= seat_count:
            raise SeatsFilledError(seat_count)

        status = ElectionStatus(election["status"])
        if status is ElectionStatus.ACTIVE:
            raise AlreadyActiveError()
        if status is ElectionStatus.COMPLETE:
            self._raise_complete(election_id, seat_count)
        if status is not ElectionStatus.AWAITING_NEXT_ROUND:
            raise ElectionClosedError()

        if not self.candidates.pool_for(str(election["position_id"]), exclude=won):
            raise NoCandidatesError("Every remaining candidate has already won a seat")

        next_round = int(election["current_round"]) + 1
        updated = self._open_round(
            str(election["position_id"]),
            next_round,
            expected_status=ElectionStatus.AWAITING_NEXT_ROUND,
        )
        logger.info("Election %s opened round %s", election_id, next_round)
        return summarize_election(updated, position)
