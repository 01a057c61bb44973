"""
Manual ticket trigger.
Accepts ticket fields plus skip flags / draft and returns the pipeline summary.
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from support_agent.dependencies import get_ticket_pipeline
from support_agent.infrastructure.observability.logging import get_logger
from support_agent.models.api.ticket_request import (
    pipeline_options_from_request,
    ticket_from_manual_request,
)
from support_agent.models.api.ticket_response import ErrorResponse
from support_agent.models.domain.ticket_domain import PipelineResult
from support_agent.services.ticket_pipeline import TicketPipeline

logger = get_logger(__name__)

router = APIRouter(tags=["tickets"])


@router.post(
    "/process-ticket",
    response_model=PipelineResult,
    responses={500: {"model": ErrorResponse}},
)
async def process_ticket(
    request: Request,
    pipeline: TicketPipeline = Depends(get_ticket_pipeline),
):
    """
    Run the pipeline on a ticket supplied in the body.

    Flags: `skip_email` / `skip_ai` (body `true` or headers x-skip-email /
    x-skip-ai = "1"); `draft.text` replaces AI generation.
    """
    try:
        body = await request.json()
        if not isinstance(body, dict):
            body = {}
        options = pipeline_options_from_request(body, request.headers)
        ticket = ticket_from_manual_request(body)
        return await pipeline.process(ticket, options)
    except Exception as e:
        logger.error("Manual processing error", error=str(e), error_type=type(e).__name__)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error=str(e) or type(e).__name__).model_dump(),
        )
