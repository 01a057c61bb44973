"""
Ticket processing pipeline.

Runs one ticket through a fixed sequence:

    normalize customer -> log to doc -> knowledge-base context ->
    resolve response (draft / AI / none) -> email -> Slack -> record interaction

Doc logging, email and Slack are best-effort and report StepResults. Anything
else that raises aborts the run: a Slack error notification is attempted and
the original exception is re-raised to the caller.
"""

from typing import Any, Protocol

from structlog.contextvars import bound_contextvars

from support_agent.infrastructure.observability.logging import get_logger
from support_agent.models.domain.ticket_domain import (
    MESSAGE_PREVIEW_LENGTH,
    RESPONSE_PREVIEW_LENGTH,
    Customer,
    PipelineOptions,
    PipelineResult,
    SlackPost,
    SummaryFlags,
    Ticket,
    TicketSummary,
)
from support_agent.services.customer_normalizer import normalize_customer
from support_agent.services.knowledge_base_service import KnowledgeBaseService
from support_agent.services.ticket_steps import ChatNotifier, DocumentLogger, EmailSender

logger = get_logger(__name__)


class ResponseSource(Protocol):
    async def generate(self, ticket: Ticket, customer: Customer, context: dict[str, Any]) -> str: ...


class TicketPipeline:
    def __init__(
        self,
        document_logger: DocumentLogger,
        knowledge_base: KnowledgeBaseService,
        response_generator: ResponseSource,
        email_sender: EmailSender,
        chat_notifier: ChatNotifier,
    ):
        self.document_logger = document_logger
        self.knowledge_base = knowledge_base
        self.response_generator = response_generator
        self.email_sender = email_sender
        self.chat_notifier = chat_notifier

    async def process(self, ticket: Ticket, options: PipelineOptions | None = None) -> PipelineResult:
        options = options or PipelineOptions()

        with bound_contextvars(ticket_id=ticket.display_id(), source=ticket.source):
            logger.info(
                "Processing ticket",
                skip_email=options.skip_email,
                skip_ai=options.skip_ai,
                has_draft=options.has_draft,
            )

            customer: Customer | None = None
            try:
                customer = normalize_customer(ticket)

                await self.document_logger.log_ticket(ticket, customer)

                context = await self.knowledge_base.get_context(ticket)

                response = await self._resolve_response(ticket, customer, context, options)

                if options.skip_email:
                    emailed = False
                else:
                    email_result = await self.email_sender.send_reply(ticket, customer, response)
                    emailed = email_result.ok

                slack_result = await self.chat_notifier.notify(ticket, customer, response)

                await self.knowledge_base.record_interaction(ticket, customer, response)

            except Exception as e:
                logger.error(
                    "Error processing ticket",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                await self._notify_failure(ticket, customer or Customer(), e)
                raise

            result = self._build_result(ticket, customer, response, options, emailed, slack_result.value)
            logger.info("Ticket processed", used_ai=result.used_ai, emailed=result.emailed)
            return result

    async def _resolve_response(
        self,
        ticket: Ticket,
        customer: Customer,
        context: dict[str, Any],
        options: PipelineOptions,
    ) -> str:
        if options.draft_text:
            return options.draft_text
        if options.skip_ai:
            return ""
        return await self.response_generator.generate(ticket, customer, context)

    async def _notify_failure(self, ticket: Ticket, customer: Customer, error: Exception) -> None:
        try:
            await self.chat_notifier.notify(ticket, customer, None, error=error)
        except Exception as notify_error:
            logger.error("Failed to send Slack error notification", error=str(notify_error))

    def _build_result(
        self,
        ticket: Ticket,
        customer: Customer,
        response: str,
        options: PipelineOptions,
        emailed: bool,
        slack_value: dict[str, Any] | None,
    ) -> PipelineResult:
        return PipelineResult(
            ok=True,
            ticketId=ticket.id,
            used_ai=not options.skip_ai and not options.has_draft,
            emailed=emailed,
            summary=TicketSummary(
                source=ticket.source,
                subject=ticket.subject,
                customer=customer,
                message_preview=ticket.first_message_text()[:MESSAGE_PREVIEW_LENGTH],
                response_preview=(response or "")[:RESPONSE_PREVIEW_LENGTH],
                flags=SummaryFlags(
                    skip_email=options.skip_email,
                    skip_ai=options.skip_ai,
                    has_draft=options.has_draft,
                ),
            ),
            slack=SlackPost(**slack_value) if slack_value else None,
        )
