"""
Ticket Domain Models
Shapes that flow through the ticket pipeline for a single run.
Built once per inbound request and discarded when the request ends.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

TicketSource = Literal["helpscout", "gmail", "manual"]

MESSAGE_PREVIEW_LENGTH = 180
RESPONSE_PREVIEW_LENGTH = 180


def message_text(message: Any) -> str:
    """Return the body (or text) of a ticket message, "" when it has none."""
    if isinstance(message, str):
        return message
    if not isinstance(message, dict):
        return ""
    value = message.get("body") or message.get("text") or ""
    return value if isinstance(value, str) else str(value)


class Customer(BaseModel):
    """Canonical customer identity; both fields are always strings."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    email: str = ""

    def display(self) -> str:
        """Customer line used in notifications."""
        if self.name and self.email:
            return f"{self.name} ({self.email})"
        if self.name or self.email:
            return self.name or self.email
        return "Unknown customer"


class Ticket(BaseModel):
    """
    One customer-support request.

    `customer` is kept raw (mapping, JSON string or absent) and is resolved by
    the customer normalizer. Unknown top-level fields such as `customer_name`
    or `Email` are preserved as extras for the same reason.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str | int | None = None
    subject: str | None = None
    customer: Any = None
    messages: list[Any] = Field(default_factory=list)
    source: TicketSource | None = None

    @field_validator("subject", mode="before")
    @classmethod
    def coerce_subject(cls, v: Any) -> str | None:
        """Webhook senders may send numeric or structured subjects."""
        if v is None or isinstance(v, str):
            return v
        return str(v)

    def first_message_text(self) -> str:
        if not self.messages:
            return ""
        return message_text(self.messages[0])

    def message_texts(self) -> list[str]:
        return [message_text(message) for message in self.messages]

    def display_id(self) -> str:
        return "" if self.id is None else str(self.id)


@dataclass(slots=True, frozen=True)
class PipelineOptions:
    """Caller-supplied switches for one pipeline run."""

    skip_email: bool = False
    skip_ai: bool = False
    draft_text: str | None = None

    @property
    def has_draft(self) -> bool:
        return bool(self.draft_text)


class SummaryFlags(BaseModel):
    skip_email: bool
    skip_ai: bool
    has_draft: bool


class TicketSummary(BaseModel):
    source: TicketSource | None = None
    subject: str | None = None
    customer: Customer
    message_preview: str = Field(default="", max_length=MESSAGE_PREVIEW_LENGTH)
    response_preview: str = Field(default="", max_length=RESPONSE_PREVIEW_LENGTH)
    flags: SummaryFlags


class SlackPost(BaseModel):
    channel: str | None = None
    ts: str | None = None


class PipelineResult(BaseModel):
    """What the pipeline hands back to the caller after a successful run."""

    ok: bool = True
    ticketId: str | int | None = None
    used_ai: bool
    emailed: bool
    summary: TicketSummary
    slack: SlackPost | None = None


@dataclass(slots=True)
class InteractionRecord:
    """Snapshot of a handled ticket; logged, never persisted."""

    timestamp: str
    ticketId: str | int | None
    customerQuery: str
    aiResponse: str
    customerEmail: str
    subject: str | None
    source: str | None

    @classmethod
    def from_ticket(cls, ticket: Ticket, customer: Customer, response: str) -> "InteractionRecord":
        return cls(
            timestamp=datetime.now(UTC).isoformat(),
            ticketId=ticket.id,
            customerQuery=" ".join(text for text in ticket.message_texts() if text),
            aiResponse=response,
            customerEmail=customer.email,
            subject=ticket.subject,
            source=ticket.source,
        )
