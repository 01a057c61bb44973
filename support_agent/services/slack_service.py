"""
Slack Web API client.
Posts messages (optionally threaded) with the bot token via chat.postMessage.
"""

from typing import Any

import httpx

from support_agent.config import settings
from support_agent.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

SLACK_API_BASE_URL = "https://slack.com/api"
REQUEST_TIMEOUT = 10  # seconds


class SlackServiceError(Exception):
    """Raised when Slack rejects a call or cannot be reached."""

    def __init__(self, message: str, error_code: str | None = None, response_data: dict | None = None):
        super().__init__(message)
        self.error_code = error_code
        self.response_data = response_data or {}


class SlackService:
    def __init__(self, bot_token: str | None = None, default_channel: str | None = None):
        self.bot_token = bot_token or settings.SLACK_BOT_TOKEN
        self.default_channel = default_channel or settings.SLACK_SUPPORT_CHANNEL_ID

    async def post_message(
        self,
        text: str,
        blocks: list[dict[str, Any]] | None = None,
        channel: str | None = None,
        thread_ts: str | None = None,
    ) -> dict[str, Any]:
        """
        Post a message and return Slack's response body.

        Raises:
            SlackServiceError: Missing configuration, transport failure or `ok: false`
        """
        channel = channel or self.default_channel
        if not self.bot_token or not channel:
            raise SlackServiceError("Missing SLACK_BOT_TOKEN or SLACK_SUPPORT_CHANNEL_ID")

        payload: dict[str, Any] = {"channel": channel, "text": text}
        if blocks:
            payload["blocks"] = blocks
        if thread_ts:
            payload["thread_ts"] = thread_ts

        try:
            async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
                response = await client.post(
                    f"{SLACK_API_BASE_URL}/chat.postMessage",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self.bot_token}",
                        "Content-Type": "application/json; charset=utf-8",
                    },
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise SlackServiceError(f"Slack request failed: {e}") from e
        except ValueError as e:
            raise SlackServiceError(f"Slack returned invalid JSON: {e}") from e

        if not data.get("ok"):
            error_code = data.get("error", "unknown_error")
            logger.error("Slack API error", error_code=error_code, channel=channel)
            raise SlackServiceError(f"Slack error: {error_code}", error_code=error_code, response_data=data)

        logger.debug("Slack message posted", channel=data.get("channel"), ts=data.get("ts"))
        return data


def message_ts(data: dict[str, Any]) -> str | None:
    """Timestamp of a posted message (top-level `ts`, or the nested message's)."""
    return data.get("ts") or (data.get("message") or {}).get("ts")
