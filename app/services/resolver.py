"""Round tallying and the 2/3-majority resolution rule.

Everything here is pure: callers load the candidate pool and the round's
ballots, and persist the returned outcome.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from fractions import Fraction
from typing import Any

from app.services.candidate_service import Candidate

SUPERMAJORITY = Fraction(2, 3)


class ElectionStatus(StrEnum):
    """Lifecycle state stored on ``elections.status``."""

    ACTIVE = "active"
    AWAITING_NEXT_ROUND = "awaiting_next_round"
    COMPLETE = "complete"
    ENDED_NO_MAJORITY = "ended_no_majority"


def required_votes(total_votes: int) -> int:
    """Votes needed to win a round: ``ceil(total * 2 / 3)``."""
    return math.ceil(total_votes * SUPERMAJORITY)


def vote_percentage(vote_count: int, total_votes: int) -> int:
    """Whole-number share of the round, rounding halves up."""
    if total_votes <= 0:
        return 0
    return math.floor(Fraction(100 * vote_count, total_votes) + Fraction(1, 2))


@dataclass(frozen=True)
class CandidateTally:
    candidate: Candidate
    vote_count: int
    percentage: int
    meets_threshold: bool

    @property
    def application_id(self) -> str:
        return self.candidate.application_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "application_id": self.application_id,
            "display_name": self.candidate.display_name,
            "kind": self.candidate.kind,
            "vote_count": self.vote_count,
            "percentage": self.percentage,
            "meets_threshold": self.meets_threshold,
        }


@dataclass(frozen=True)
class RoundTally:
    """Per-candidate counts for one round, highest first."""

    candidates: list[CandidateTally] = field(default_factory=list)
    total_votes: int = 0
    required_votes: int = 0

    @property
    def leader(self) -> CandidateTally | None:
        return self.candidates[0] if self.candidates else None

    @property
    def has_winner(self) -> bool:
        """True when there were ballots and the leader reached the threshold."""
        leader = self.leader
        return self.total_votes > 0 and leader is not None and leader.meets_threshold


def tally_round(pool: Sequence[Candidate], votes: Iterable[Mapping[str, Any]]) -> RoundTally:
    """Count ``votes`` for every candidate in ``pool``.

    Candidates without ballots are kept with zero votes and ballots for
    applications outside the pool are ignored. Sorting is stable, so ties keep
    pool order.
    """
    counts = Counter(str(vote["application_id"]) for vote in votes)
    raw = [(candidate, counts.get(candidate.application_id, 0)) for candidate in pool]
    total = sum(count for _, count in raw)
    needed = required_votes(total)

    ordered = sorted(raw, key=lambda item: item[1], reverse=True)
    return RoundTally(
        candidates=[
            CandidateTally(
                candidate=candidate,
                vote_count=count,
                percentage=vote_percentage(count, total),
                meets_threshold=total > 0 and count >= needed,
            )
            for candidate, count in ordered
        ],
        total_votes=total,
        required_votes=needed,
    )


@dataclass(frozen=True)
class RoundOutcome:
    """Result of closing a round, and the status the election moves to."""

    round_number: int
    status: ElectionStatus
    tally: RoundTally
    seat_count: int
    winners_count: int
    winner: CandidateTally | None = None

    @property
    def election_complete(self) -> bool:
        return self.status is ElectionStatus.COMPLETE

    @property
    def needs_next_round(self) -> bool:
        return self.status is ElectionStatus.AWAITING_NEXT_ROUND

    @property
    def no_majority(self) -> bool:
        return self.status is ElectionStatus.ENDED_NO_MAJORITY

    @property
    def remaining_seats(self) -> int:
        return max(0, self.seat_count - self.winners_count)

    @property
    def top_candidate(self) -> CandidateTally | None:
        return self.tally.leader

    @property
    def message(self) -> str:
        if self.election_complete and self.remaining_seats:
            return (
                f"Election complete! {self.winners_count} of {self.seat_count} seats filled; "
                "no candidates remain."
            )
        if self.election_complete:
            return f"Election complete! All {self.seat_count} seats filled."
        if self.needs_next_round and self.winner is not None:
            return (
                f"Round {self.round_number} ended. {self.winner.candidate.display_name} wins! "
                f"{self.remaining_seats} of {self.seat_count} seats remaining."
            )
        if self.tally.total_votes == 0:
            return "Round ended with no votes cast"
        return (
            f"Round {self.round_number} ended. No candidate achieved 2/3 majority "
            f"({self.tally.required_votes} votes required)."
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "message": self.message,
            "status": str(self.status),
            "round_number": self.round_number,
            "election_complete": self.election_complete,
            "needs_next_round": self.needs_next_round,
            "no_majority": self.no_majority,
            "total_votes": self.tally.total_votes,
            "required_votes": self.tally.required_votes,
            "winners_count": self.winners_count,
            "total_seats": self.seat_count,
            "remaining_seats": self.remaining_seats,
            "winner": None,
            "top_candidate": None,
            "candidates": [entry.to_dict() for entry in self.tally.candidates],
        }
        if self.winner is not None:
            payload["winner"] = {**self.winner.to_dict(), "round_number": self.round_number}
        if self.top_candidate is not None:
            payload["top_candidate"] = self.top_candidate.to_dict()
        return payload


def resolve_round(
    *,
    round_number: int,
    pool: Sequence[Candidate],
    votes: Iterable[Mapping[str, Any]],
    seat_count: int,
    winners_before: int,
) -> RoundOutcome:
    """Decide the outcome of a round.

    ``pool`` must already exclude candidates who won earlier rounds. The leader
    wins iff at least one ballot was cast and they hold ``required_votes``;
    the election completes once winners reach ``seat_count`` or the winner
    was the last candidate in the pool, otherwise it pauses for another
    round. Without a winner it ends with no majority.
    """
    tally = tally_round(pool, votes)
    if not tally.has_winner:
        return RoundOutcome(
            round_number=round_number,
            status=ElectionStatus.ENDED_NO_MAJORITY,
            tally=tally,
            seat_count=seat_count,
            winners_count=winners_before,
        )

    winners_count = winners_before + 1
    candidates_left = len(pool) - 1
    status = (
        ElectionStatus.COMPLETE
        if winners_count >= seat_count or candidates_left == 0
        else ElectionStatus.AWAITING_NEXT_ROUND
    )
    return RoundOutcome(
        round_number=round_number,
        status=status,
        tally=tally,
        seat_count=seat_count,
        winners_count=winners_count,
        winner=tally.leader,
    )
