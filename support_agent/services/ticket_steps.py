"""
Best-effort pipeline steps: ticket log, customer email, Slack notification.

Each step depends only on a narrow capability ("insert text", "send message",
"post message") and reports a StepResult instead of raising.
"""

from datetime import UTC, datetime
from typing import Any, Protocol

from support_agent.infrastructure.observability.logging import get_logger
from support_agent.models.domain.ticket_domain import Customer, Ticket
from support_agent.services import slack_messages
from support_agent.services.slack_service import message_ts
from support_agent.services.step_result import StepResult, run_best_effort

logger = get_logger(__name__)

EMAIL_SIGNATURE = "Best regards,\nCustomer Support Team"
EMAIL_FOOTER = (
    "---\n"
    "This is an automated response. If you need further assistance, please reply to this email."
)


class TextAppender(Protocol):
    async def insert_text(self, document_id: str, text: str) -> Any: ...


class MessageSender(Protocol):
    async def send_message(self, to: str, subject: str, body: str) -> Any: ...


class MessagePoster(Protocol):
    async def post_message(
        self,
        text: str,
        blocks: list[dict[str, Any]] | None = None,
        channel: str | None = None,
        thread_ts: str | None = None,
    ) -> dict[str, Any]: ...


def format_ticket_log_entry(ticket: Ticket, customer: Customer, timestamp: str | None = None) -> str:
    timestamp = timestamp or datetime.now(UTC).isoformat()
    messages = "\n".join(f"- {text or 'No content'}" for text in ticket.message_texts())
    return (
        "\n---\n"
        f"Ticket ID: {ticket.display_id()}\n"
        f"Date: {timestamp}\n"
        f"Source: {ticket.source or ''}\n"
        f"Customer: {customer.name} ({customer.email})\n"
        f"Subject: {ticket.subject or ''}\n"
        "\n"
        "Messages:\n"
        f"{messages}\n"
        "---\n\n"
    )


def format_reply_email(customer: Customer, response: str) -> str:
    return f"Hi {customer.name},\n\n{response}\n\n{EMAIL_SIGNATURE}\n\n{EMAIL_FOOTER}"


class DocumentLogger:
    STEP = "document_log"

    def __init__(self, docs: TextAppender, document_id: str | None):
        self.docs = docs
        self.document_id = document_id

    async def log_ticket(self, ticket: Ticket, customer: Customer) -> StepResult:
        if not self.document_id:
            logger.warning("GOOGLE_DOC_ID is not set; skipping doc write")
            return StepResult.skipped(self.STEP, "GOOGLE_DOC_ID not configured")

        async def _append() -> StepResult:
            await self.docs.insert_text(self.document_id, format_ticket_log_entry(ticket, customer))
            logger.info("Ticket stored in Google Doc", ticket_id=ticket.display_id())
            return StepResult.success(self.STEP)

        return await run_best_effort(self.STEP, _append)


class EmailSender:
    STEP = "email"

    def __init__(self, mailer: MessageSender):
        self.mailer = mailer

    async def send_reply(self, ticket: Ticket, customer: Customer, response: str | None) -> StepResult:
        if not response or not response.strip():
            logger.warning("Empty response; not sending email", ticket_id=ticket.display_id())
            return StepResult.skipped(self.STEP, "empty response")

        if not customer.email:
            logger.warning("Customer has no email address; not sending email", ticket_id=ticket.display_id())
            return StepResult.skipped(self.STEP, "missing customer email")

        async def _send() -> StepResult:
            sent = await self.mailer.send_message(
                to=customer.email,
                subject=f"Re: {ticket.subject or ''}",
                body=format_reply_email(customer, response),
            )
            logger.info("Response sent via Gmail", ticket_id=ticket.display_id())
            return StepResult.success(self.STEP, sent)

        return await run_best_effort(self.STEP, _send)


class ChatNotifier:
    STEP = "slack"

    def __init__(
        self,
        poster: MessagePoster,
        channel: str | None = None,
        reply_form_url: str | None = None,
        conversation_url: str | None = None,
    ):
        self.poster = poster
        self.channel = channel
        self.reply_form_url = reply_form_url
        self.conversation_url = conversation_url

    async def notify(
        self,
        ticket: Ticket,
        customer: Customer,
        response: str | None,
        error: BaseException | None = None,
    ) -> StepResult:
        """Post the ticket (or error) message; value is {"channel", "ts"} or None."""

        async def _post() -> StepResult:
            if error is not None:
                message = slack_messages.build_error_message(ticket, customer, error)
            else:
                message = slack_messages.build_ticket_message(
                    ticket,
                    customer,
                    response,
                    reply_form_url=self.reply_form_url,
                    conversation_url=self.conversation_url,
                )

            parent = await self.poster.post_message(
                text=message["text"], blocks=message["blocks"], channel=self.channel
            )
            channel = parent.get("channel") or self.channel
            thread_ts = message_ts(parent)

            if error is None and response:
                await self.poster.post_message(
                    text=slack_messages.build_full_response_text(response),
                    channel=channel,
                    thread_ts=thread_ts,
                )

            logger.info("Slack notification sent", ticket_id=ticket.display_id(), ts=thread_ts)
            return StepResult.success(self.STEP, {"channel": channel, "ts": thread_ts})

        return await run_best_effort(self.STEP, _post)
