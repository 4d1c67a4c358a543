# app/models/api/schedule_request.py
"""
Schedule API request models.
Used by routes for input validation.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class SessionUpsertRequest(BaseModel):
    """Request for creating or updating a workout session."""

    participant_id: str = Field(..., min_length=1, description="Client the session is for")
    title: str = Field(default="", max_length=200, description="Session title")
    start_time: datetime = Field(
        ..., description="Session start; naive values are read in the schedule timezone"
    )
    duration_minutes: int = Field(
        default=60, ge=15, le=480, description="Session length in minutes (15-480)"
    )


class SlotProposalRequest(BaseModel):
    """Request for clamping a candidate start into working hours."""

    candidate: datetime = Field(..., description="Desired start instant")
