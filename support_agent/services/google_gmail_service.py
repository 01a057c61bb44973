"""
Google Gmail API Service.
Low-level Gmail API client: fetches push-notified messages and sends replies.
Domain model creation is handled by gmail_domain.py.
"""

import asyncio
import base64
import json
from email.mime.text import MIMEText

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from support_agent.infrastructure.observability.logging import get_logger
from support_agent.models.domain.gmail_domain import GmailMessage
from support_agent.services.google_oauth_service import GoogleTokenProvider

logger = get_logger(__name__)

# Google Gmail API configuration
GMAIL_API_BASE_URL = "https://gmail.googleapis.com/gmail/v1"
GMAIL_USER_ID = "me"

# Request timeouts and retry configuration
REQUEST_TIMEOUT = 30  # seconds
MAX_RETRIES = 3
BACKOFF_FACTOR = 2


class GoogleGmailError(Exception):
    """Custom exception for Google Gmail API errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int | None = None,
        response_data: dict | None = None,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.status_code = status_code
        self.response_data = response_data or {}


def build_raw_message(to: str, subject: str, body: str) -> str:
    """Encode a plain-text email as the URL-safe base64 `raw` field Gmail expects."""
    msg = MIMEText(body, "plain", "utf-8")
    msg["To"] = to
    msg["Subject"] = subject
    return base64.urlsafe_b64encode(msg.as_bytes()).decode("utf-8")


class GoogleGmailService:
    """
    Service for Google Gmail API operations.

    Pure API client that handles HTTP requests, authentication and error
    mapping. Sends are never retried so a flaky connection cannot double-send
    a customer reply. Blocking session calls run via asyncio.to_thread.
    """

    def __init__(self, token_provider: GoogleTokenProvider):
        self.token_provider = token_provider
        self._session = self._create_session()

    def _create_session(self) -> requests.Session:
        """Create requests session with retry strategy for idempotent Gmail calls."""
        session = requests.Session()

        retry_strategy = Retry(
            total=MAX_RETRIES,
            backoff_factor=BACKOFF_FACTOR,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("https://", adapter)

        return session

    async def _get_auth_headers(self) -> dict:
        access_token = await self.token_provider.get_access_token()
        return {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _handle_api_response(self, response: requests.Response, operation: str) -> dict:
        """
        Handle and validate Gmail API response.

        Raises:
            GoogleGmailError: If response contains errors
        """
        logger.debug(
            f"Gmail API {operation} response",
            status_code=response.status_code,
            response_size=len(response.text) if response.text else 0,
        )

        if response.ok:
            try:
                return response.json() if response.text else {}
            except ValueError as e:
                logger.error(f"Failed to parse Gmail API {operation} response", error=str(e))
                raise GoogleGmailError(f"Invalid response format: {e}") from e

        try:
            error_data = response.json() if response.text else {}
        except ValueError:
            logger.error(
                f"Gmail API {operation} failed with non-JSON response",
                status_code=response.status_code,
                response_text=response.text[:200] if response.text else "",
            )
            raise GoogleGmailError(
                f"Gmail API error (HTTP {response.status_code})",
                status_code=response.status_code,
            ) from None

        error_info = error_data.get("error", {})
        error_code = error_info.get("code", response.status_code)
        error_message = error_info.get("message", "Unknown Gmail API error")

        logger.error(
            f"Gmail API {operation} failed",
            status_code=response.status_code,
            error_code=error_code,
            error_message=error_message,
        )

        raise GoogleGmailError(
            self._map_gmail_error(str(error_code), error_message),
            error_code=str(error_code),
            status_code=response.status_code,
            response_data=error_data,
        )

    def _map_gmail_error(self, error_code: str, error_message: str) -> str:
        """Map Gmail API error codes to readable messages."""
        error_mappings = {
            "403": "Gmail access denied. Please check permissions.",
            "404": "Email message not found.",
            "400": "Invalid Gmail request format.",
            "401": "Gmail authorization expired.",
            "429": "Too many Gmail requests. Please try again later.",
            "500": "Gmail service temporarily unavailable.",
        }

        return error_mappings.get(error_code, f"Gmail error: {error_message}")

    async def _get(self, url: str, params: dict, operation: str) -> dict:
        """GET on a worker thread; the session's urllib3 retries block that thread only."""
        headers = await self._get_auth_headers()
        try:
            response = await asyncio.to_thread(
                self._session.get, url, headers=headers, params=params, timeout=REQUEST_TIMEOUT
            )
        except requests.RequestException as e:
            raise GoogleGmailError(f"Gmail {operation} request failed: {e}") from e

        return self._handle_api_response(response, operation)

    async def list_message_ids(
        self, label_ids: list[str] | None = None, max_results: int = 1
    ) -> list[str]:
        """Return the newest message IDs, optionally filtered by labels."""
        url = f"{GMAIL_API_BASE_URL}/users/{GMAIL_USER_ID}/messages"
        params: dict = {"maxResults": max_results}
        if label_ids:
            params["labelIds"] = label_ids

        logger.info("Listing Gmail messages", label_ids=label_ids, max_results=max_results)

        data = await self._get(url, params, "list_messages")
        return [msg["id"] for msg in data.get("messages", []) if msg.get("id")]

    async def list_added_messages(
        self, start_history_id: str | int, label_id: str | None = "INBOX"
    ) -> tuple[list[dict], str | None]:
        """
        Messages added to the mailbox after `start_history_id`.

        Follows history pagination. Returns the message references
        (`id`, `threadId`, `labelIds`) and the mailbox's current historyId.

        Raises:
            GoogleGmailError: If the history lookup fails (404 when the
                start id is too old for Gmail to keep)
        """
        url = f"{GMAIL_API_BASE_URL}/users/{GMAIL_USER_ID}/history"
        params: dict = {"startHistoryId": str(start_history_id), "historyTypes": "messageAdded"}
        if label_id:
            params["labelId"] = label_id

        logger.info("Listing Gmail history", start_history_id=start_history_id, label_id=label_id)

        messages: list[dict] = []
        history_id = None
        while True:
            data = await self._get(url, params, "list_history")
            history_id = data.get("historyId", history_id)
            for record in data.get("history", []):
                for added in record.get("messagesAdded", []):
                    message = added.get("message") or {}
                    if message.get("id"):
                        messages.append(message)

            page_token = data.get("nextPageToken")
            if not page_token:
                break
            params = {**params, "pageToken": page_token}

        return messages, history_id

    async def get_message(self, message_id: str, format: str = "full") -> GmailMessage:
        """
        Get a specific message by ID.

        Raises:
            GoogleGmailError: If getting message fails
        """
        url = f"{GMAIL_API_BASE_URL}/users/{GMAIL_USER_ID}/messages/{message_id}"
        params = {"format": format}

        logger.info("Getting Gmail message", message_id=message_id, format=format)

        data = await self._get(url, params, "get_message")
        return GmailMessage(data)

    async def send_message(self, to: str, subject: str, body: str) -> dict:
        """
        Send a plain-text email.

        Returns:
            dict: Sent message information (id, threadId, labelIds)

        Raises:
            GoogleGmailError: If sending message fails
        """
        url = f"{GMAIL_API_BASE_URL}/users/{GMAIL_USER_ID}/messages/send"
        send_data = {"raw": build_raw_message(to, subject, body)}

        logger.info("Sending Gmail message", to=to, subject=subject)

        headers = await self._get_auth_headers()
        try:
            response = await asyncio.to_thread(
                self._session.post,
                url,
                headers=headers,
                data=json.dumps(send_data),
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise GoogleGmailError(f"Failed to send message: {e}") from e

        data = self._handle_api_response(response, "send_message")
        logger.info("Message sent successfully", message_id=data.get("id"))
        return data
