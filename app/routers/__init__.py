"""API router package."""

from app.routers import applications, elections, voting

__all__ = [
    "applications",
    "elections",
    "voting",
]
