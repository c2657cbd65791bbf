"""Service package exports with lazy loading."""

from __future__ import annotations

from importlib import import_module
from typing import Any

_EXPORTS = {
    "CandidateService": "app.services.candidate_service",
    "ElectionStatus": "app.services.resolver",
    "MaintenanceService": "app.services.maintenance_service",
    "ResultsService": "app.services.results_service",
    "RoundTracker": "app.services.round_tracker",
    "SupabaseService": "app.services.common",
    "VoteLedger": "app.services.vote_ledger",
    "WinnerLedger": "app.services.winner_ledger",
    "resolve_round": "app.services.resolver",
    "tally_round": "app.services.resolver",
}

__all__ = sorted(_EXPORTS.keys())


def __getattr__(name: str) -> Any:
    if name not in _EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = import_module(_EXPORTS[name])
    return getattr(module, name)
