"""Candidate endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from app.dependencies import get_db_client, require_admin
from app.schemas.candidate import CandidateResponse, FloorNominationCreate
from app.services.candidate_service import CandidateService
from supabase import Client

router = APIRouter()


@router.get("/position/{position_id}")
def list_candidates(position_id: str, client: Client = Depends(get_db_client)) -> dict:
    """List candidates for a position in submission order."""
    candidates = CandidateService(client).pool_for(position_id)
    return {
        "success": True,
        "applications": [
            CandidateResponse(**candidate.to_dict()).model_dump() for candidate in candidates
        ],
    }


@router.post("/floor-nomination")
def create_floor_nomination(
    payload: FloorNominationCreate,
    _: Any = Depends(require_admin),
    client: Client = Depends(get_db_client),
) -> dict:
    """Add a nominee from the floor as a candidate."""
    candidate = CandidateService(client).create_floor_nomination(
        position_id=payload.position_id,
        nominee_name=payload.nominee_name,
        statement=payload.statement,
    )
    return {
        "success": True,
        "message": "Floor nomination created successfully",
        "application": CandidateResponse(**candidate.to_dict()).model_dump(),
    }
