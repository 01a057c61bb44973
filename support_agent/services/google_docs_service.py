"""
Google Docs API client.
Appends plain text to a document through documents.batchUpdate.
"""

import httpx

from support_agent.infrastructure.observability.logging import get_logger
from support_agent.services.google_oauth_service import GoogleTokenProvider

logger = get_logger(__name__)

DOCS_API_BASE_URL = "https://docs.googleapis.com/v1"
REQUEST_TIMEOUT = 15  # seconds

# Index 1 is the start of the document body
DEFAULT_INSERT_INDEX = 1


class GoogleDocsError(Exception):
    """Raised when a Google Docs API call fails."""

    def __init__(self, message: str, status_code: int | None = None, response_data: dict | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data or {}


class GoogleDocsService:
    def __init__(self, token_provider: GoogleTokenProvider):
        self.token_provider = token_provider

    async def insert_text(
        self, document_id: str, text: str, index: int = DEFAULT_INSERT_INDEX
    ) -> dict:
        """
        Insert `text` at `index` of the document.

        Raises:
            GoogleDocsError: On transport errors or a non-2xx response
        """
        access_token = await self.token_provider.get_access_token()
        url = f"{DOCS_API_BASE_URL}/documents/{document_id}:batchUpdate"
        body = {
            "requests": [
                {"insertText": {"location": {"index": index}, "text": text}},
            ]
        }

        try:
            async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
                response = await client.post(
                    url,
                    json=body,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.RequestError as e:
            raise GoogleDocsError(f"Network error calling Google Docs: {e}") from e

        if not response.is_success:
            try:
                error_data = response.json()
            except ValueError:
                error_data = {}
            message = error_data.get("error", {}).get("message") or response.text[:200]
            logger.error(
                "Google Docs batchUpdate failed",
                document_id=document_id,
                status_code=response.status_code,
                error_message=message,
            )
            raise GoogleDocsError(
                f"Google Docs error (HTTP {response.status_code}): {message}",
                status_code=response.status_code,
                response_data=error_data,
            )

        return response.json()
