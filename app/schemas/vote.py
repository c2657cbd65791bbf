"""Voting schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class VoteCreate(BaseModel):
    """Request body for casting a vote."""

    election_id: str = Field(..., min_length=1)
    application_id: str = Field(..., min_length=1)


class VoteRecord(BaseModel):
    """A ballot as stored in the vote ledger."""

    id: str
    election_id: str
    round_number: int
    application_id: str
    created_at: datetime | None = None


class VoteResponse(BaseModel):
    """Envelope returned after a successful ballot."""

    success: bool = True
    message: str = "Vote cast successfully"
    vote: VoteRecord


class HasVotedResponse(BaseModel):
    """Whether the caller already voted in the current round."""

    success: bool = True
    has_voted: bool
    round_number: int


class VoteHistoryEntry(BaseModel):
    """One ballot in a member's voting history."""

    id: str
    election_id: str
    position_id: str | None = None
    position_title: str | None = None
    round_number: int
    candidate_name: str | None = None
    voted_at: datetime | None = None


class VoteHistoryResponse(BaseModel):
    """Envelope for a member's voting history."""

    success: bool = True
    votes: list[VoteHistoryEntry] = Field(default_factory=list)
