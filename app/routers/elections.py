"""Election endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from app.dependencies import get_db_client, require_admin
from app.schemas.election import (
    ElectionListResponse,
    ElectionResponse,
    ElectionStart,
    ResetRequest,
)
from app.services.maintenance_service import MaintenanceService
from app.services.results_service import ResultsService
from app.services.round_tracker import RoundTracker
from supabase import Client

router = APIRouter()


@router.get("", response_model=ElectionListResponse)
def list_elections(client: Client = Depends(get_db_client)) -> dict:
    """Return every election, active first."""
    return {"success": True, "elections": RoundTracker(client).list_elections()}


@router.get("/active", response_model=ElectionListResponse)
def list_active_elections(client: Client = Depends(get_db_client)) -> dict:
    """Return elections that currently accept votes."""
    return {"success": True, "elections": RoundTracker(client).active_elections()}


@router.get("/{election_id}/results")
def get_election_results(election_id: str, client: Client = Depends(get_db_client)) -> dict:
    """Return live tallies, the 2/3 threshold and previous winners."""
    return {"success": True, **ResultsService(client).results(election_id)}


@router.post("/start", response_model=ElectionResponse)
def start_election(
    payload: ElectionStart,
    _: Any = Depends(require_admin),
    client: Client = Depends(get_db_client),
) -> dict:
    """Start voting for a position."""
    election = RoundTracker(client).start_election(payload.position_id)
    return {
        "success": True,
        "message": f"Election started (round {election['current_round']})",
        "election": election,
    }


@router.put("/{election_id}/end")
def end_round(
    election_id: str,
    _: Any = Depends(require_admin),
    client: Client = Depends(get_db_client),
) -> dict:
    """Close the current round and resolve it."""
    outcome = RoundTracker(client).end_round(election_id)
    return {"success": True, **outcome.to_dict()}


@router.put("/{election_id}/next-round", response_model=ElectionResponse)
def start_next_round(
    election_id: str,
    _: Any = Depends(require_admin),
    client: Client = Depends(get_db_client),
) -> dict:
    """Open the next round of a multi-seat election."""
    election = RoundTracker(client).start_next_round(election_id)
    return {
        "success": True,
        "message": f"Round {election['current_round']} started",
        "election": election,
    }


@router.delete("/reset")
def reset_all_elections(
    payload: ResetRequest | None = None,
    _: Any = Depends(require_admin),
    client: Client = Depends(get_db_client),
) -> dict:
    """Purge every election, round, vote and winner."""
    include_applications = payload.include_applications if payload else False
    deleted = MaintenanceService(client).reset_all_elections(include_applications)
    return {"success": True, "message": "All elections reset successfully", "deleted": deleted}
