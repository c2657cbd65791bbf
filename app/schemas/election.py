"""Election schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.services.resolver import ElectionStatus


class ElectionStart(BaseModel):
    """Request body for starting an election."""

    position_id: str = Field(..., min_length=1)


class ElectionSummary(BaseModel):
    """Election representation joined with its position."""

    id: str
    position_id: str
    position_title: str | None = None
    seat_count: int | None = None
    is_executive: bool = False
    description: str | None = None
    status: ElectionStatus
    is_active: bool
    current_round: int
    started_at: datetime | None = None
    ended_at: datetime | None = None


class ElectionResponse(BaseModel):
    """Envelope for a single election."""

    success: bool = True
    message: str
    election: ElectionSummary


class ElectionListResponse(BaseModel):
    """Envelope for election listings."""

    success: bool = True
    elections: list[ElectionSummary] = Field(default_factory=list)


class ResetRequest(BaseModel):
    """Request body for resetting every election."""

    include_applications: bool = False
