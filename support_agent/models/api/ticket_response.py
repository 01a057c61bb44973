"""
Ticket API response models.
Successful manual runs return PipelineResult (see ticket_domain.py) as-is.
"""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body returned when a manual run or diagnostic call fails."""

    ok: bool = Field(default=False, description="Always false")
    error: str = Field(..., description="Error message")


class SlackTestResponse(BaseModel):
    """Response for a posted Slack test message."""

    ok: bool = Field(default=True, description="Always true")
    channel: str | None = Field(None, description="Channel the message landed in")
    ts: str | None = Field(None, description="Slack message timestamp")
