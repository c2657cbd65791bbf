"""Voting endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from app.dependencies import get_current_user, get_current_user_id, get_db_client
from app.schemas.vote import HasVotedResponse, VoteCreate, VoteHistoryResponse, VoteResponse
from app.services.vote_ledger import VoteLedger
from supabase import Client

router = APIRouter()


@router.post("/vote", response_model=VoteResponse)
def cast_vote(
    payload: VoteCreate,
    user: Any = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> dict:
    """Cast the caller's ballot in the election's current round."""
    vote = VoteLedger(client).cast_vote(
        election_id=payload.election_id,
        voter_id=get_current_user_id(user),
        application_id=payload.application_id,
    )
    return {"success": True, "message": "Vote cast successfully", "vote": vote}


@router.get("/has-voted/{election_id}", response_model=HasVotedResponse)
def has_voted(
    election_id: str,
    user: Any = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return whether the caller voted in the current round."""
    status = VoteLedger(client).has_voted(election_id, get_current_user_id(user))
    return {"success": True, **status}


@router.get("/my-votes", response_model=VoteHistoryResponse)
def my_votes(
    user: Any = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return the caller's voting history."""
    return {"success": True, "votes": VoteLedger(client).history_for(get_current_user_id(user))}
