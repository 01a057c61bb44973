"""
Ticket API request models.
Used by routes for input parsing of the manual trigger and diagnostics.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

from support_agent.models.domain.ticket_domain import PipelineOptions, Ticket

SKIP_EMAIL_HEADER = "x-skip-email"
SKIP_AI_HEADER = "x-skip-ai"

# Body keys that steer the pipeline rather than describe the ticket
CONTROL_FIELDS = ("skip_email", "skip_ai", "draft")


class DraftPayload(BaseModel):
    """Caller-written reply that replaces AI generation."""

    text: str | None = Field(default=None, description="Reply text sent to the customer as-is")


class SlackTestRequest(BaseModel):
    """Request for posting a test message to the support channel."""

    text: str | None = Field(default=None, description="Message text; a heartbeat line when omitted")


def pipeline_options_from_request(body: Mapping[str, Any], headers: Mapping[str, str]) -> PipelineOptions:
    """
    Flags are set by the body value `true` or the header value "1"; nothing
    else (e.g. "true" as a string) turns them on.
    """
    skip_email = body.get("skip_email") is True or headers.get(SKIP_EMAIL_HEADER) == "1"
    skip_ai = body.get("skip_ai") is True or headers.get(SKIP_AI_HEADER) == "1"

    draft_text = None
    draft = body.get("draft")
    if isinstance(draft, Mapping):
        draft_text = DraftPayload.model_validate(draft).text or None

    return PipelineOptions(skip_email=skip_email, skip_ai=skip_ai, draft_text=draft_text)


def ticket_from_manual_request(body: Mapping[str, Any]) -> Ticket:
    ticket_fields = {key: value for key, value in body.items() if key not in CONTROL_FIELDS}
    ticket_fields.setdefault("source", "manual")
    return Ticket.model_validate(ticket_fields)
