"""
Operator diagnostics.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from support_agent.dependencies import get_slack_service
from support_agent.infrastructure.observability.logging import get_logger
from support_agent.models.api.ticket_request import SlackTestRequest
from support_agent.models.api.ticket_response import ErrorResponse, SlackTestResponse
from support_agent.services.slack_service import SlackService, message_ts

logger = get_logger(__name__)

router = APIRouter(prefix="/test", tags=["diagnostics"])


@router.post(
    "/slack",
    response_model=SlackTestResponse,
    responses={500: {"model": ErrorResponse}},
)
async def test_slack(
    payload: SlackTestRequest | None = None,
    slack: SlackService = Depends(get_slack_service),
):
    """Post a message to the support channel to check the Slack wiring."""
    text = (payload.text if payload else None) or f"Server alive ✅ {datetime.now(UTC).isoformat()}"

    try:
        data = await slack.post_message(text=text)
    except Exception as e:
        logger.error("Slack test message failed", error=str(e))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error=str(e)).model_dump(),
        )

    return SlackTestResponse(channel=data.get("channel"), ts=message_ts(data))
