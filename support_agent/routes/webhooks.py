"""
Inbound webhooks: HelpScout conversations and Gmail push notifications.
Callers only get a bare OK / error text back.
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse

from support_agent.dependencies import get_gmail_ticket_source, get_ticket_pipeline
from support_agent.infrastructure.observability.logging import get_logger
from support_agent.services.ticket_pipeline import TicketPipeline
from support_agent.services.ticket_sources import GmailTicketSource, ticket_from_helpscout

logger = get_logger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhooks"])


@router.post("/helpscout", response_class=PlainTextResponse)
async def helpscout_webhook(
    request: Request,
    pipeline: TicketPipeline = Depends(get_ticket_pipeline),
):
    """Process a HelpScout conversation event."""
    try:
        payload = await request.json()
        logger.info("Processing HelpScout ticket", ticket_id=payload.get("id"))
        await pipeline.process(ticket_from_helpscout(payload))
    except Exception as e:
        logger.error("HelpScout webhook error", error=str(e), error_type=type(e).__name__)
        return PlainTextResponse(
            "Error processing ticket", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    return "OK"


@router.post("/gmail", response_class=PlainTextResponse)
async def gmail_webhook(
    request: Request,
    pipeline: TicketPipeline = Depends(get_ticket_pipeline),
    gmail_source: GmailTicketSource = Depends(get_gmail_ticket_source),
):
    """Process a Gmail push notification (Pub/Sub push subscription)."""
    try:
        push = await request.json()
        logger.info("Processing Gmail message (push)")
        for ticket in await gmail_source.tickets_from_push(push):
            await pipeline.process(ticket)
    except Exception as e:
        logger.error("Gmail webhook error", error=str(e), error_type=type(e).__name__)
        return PlainTextResponse(
            "Error processing email", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    return "OK"
