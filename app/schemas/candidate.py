"""Candidate schemas."""

from pydantic import BaseModel, Field


class FloorNominationCreate(BaseModel):
    """Request body for nominating someone from the floor."""

    position_id: str = Field(..., min_length=1)
    nominee_name: str = Field(..., min_length=1, max_length=120)
    statement: str | None = Field(None, max_length=2000)


class CandidateResponse(BaseModel):
    """A candidate standing for a position."""

    application_id: str
    position_id: str
    kind: str
    is_floor_nomination: bool
    display_name: str
    member_id: str | None = None
    statement: str = ""
    photo_url: str | None = None
    submitted_at: str | None = None
