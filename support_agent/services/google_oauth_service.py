"""
Google OAuth access tokens for the Gmail and Docs APIs.
Exchanges the configured refresh token for short-lived access tokens and
caches them until shortly before they expire.
"""

import asyncio
from datetime import UTC, datetime, timedelta

import httpx

from support_agent.config import settings
from support_agent.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"

# Scopes the refresh token must have been granted
SUPPORT_AGENT_SCOPES = [
    "https://www.googleapis.com/auth/gmail.modify",  # Read push-notified messages, send replies
    "https://www.googleapis.com/auth/documents",  # Append to the ticket log doc
]

# Request timeouts and retry configuration
REQUEST_TIMEOUT = 10  # seconds
MAX_RETRIES = 3
BACKOFF_FACTOR = 2  # 2, 4 seconds
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}
EXPIRY_SKEW = timedelta(seconds=60)


class GoogleOAuthError(Exception):
    """Custom exception for Google OAuth-related errors."""

    def __init__(
        self, message: str, error_code: str | None = None, response_data: dict | None = None
    ):
        super().__init__(message)
        self.error_code = error_code
        self.response_data = response_data or {}


class TokenResponse:
    """Structured representation of OAuth token response."""

    def __init__(self, data: dict):
        self.access_token = data.get("access_token")
        self.token_type = data.get("token_type", "Bearer")
        self.expires_in = data.get("expires_in")
        self.scope = data.get("scope", "")

        if self.expires_in:
            self.expires_at = datetime.now(UTC) + timedelta(seconds=int(self.expires_in))
        else:
            self.expires_at = None

    def is_valid(self) -> bool:
        """Check if token response contains required fields."""
        return bool(self.access_token and self.token_type)

    def is_fresh(self) -> bool:
        if self.expires_at is None:
            return True
        return datetime.now(UTC) + EXPIRY_SKEW < self.expires_at


class GoogleTokenProvider:
    """
    Hands out a valid access token for the service's Google account.

    The refresh token is minted once (offline consent for SUPPORT_AGENT_SCOPES)
    and supplied through configuration.
    """

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        refresh_token: str | None = None,
    ):
        self.client_id = client_id or settings.GOOGLE_CLIENT_ID
        self.client_secret = client_secret or settings.GOOGLE_CLIENT_SECRET
        self.refresh_token = refresh_token or settings.GOOGLE_REFRESH_TOKEN
        self._token: TokenResponse | None = None

    def _validate_config(self) -> None:
        if not self.client_id:
            raise GoogleOAuthError("GOOGLE_CLIENT_ID not configured")
        if not self.client_secret:
            raise GoogleOAuthError("GOOGLE_CLIENT_SECRET not configured")
        if not self.refresh_token:
            raise GoogleOAuthError("GOOGLE_REFRESH_TOKEN not configured")

    async def get_access_token(self) -> str:
        """Return a cached access token, refreshing it when close to expiry."""
        if self._token is None or not self._token.is_fresh():
            self._token = await self.refresh_access_token()
        return self._token.access_token

    async def refresh_access_token(self) -> TokenResponse:
        """
        Exchange the refresh token for a new access token.

        Raises:
            GoogleOAuthError: If configuration is missing or the refresh fails
        """
        self._validate_config()

        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": self.refresh_token,
            "grant_type": "refresh_token",
        }

        try:
            logger.info("Refreshing Google access token")
            response = await self._post_with_retry(GOOGLE_TOKEN_URL, data, operation="token_refresh")
            return self._handle_token_response(response, "token_refresh")

        except GoogleOAuthError:
            raise
        except httpx.RequestError as e:
            logger.error(
                "Network error during token refresh",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise GoogleOAuthError(f"Network error during token refresh: {e}") from e

    async def _post_with_retry(self, url: str, data: dict, operation: str) -> httpx.Response:
        """POST form data, backing off on transient statuses and network errors."""
        headers = {"Content-Type": "application/x-www-form-urlencoded"}

        async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
            for attempt in range(1, MAX_RETRIES + 1):
                try:
                    response = await client.post(url, data=data, headers=headers)
                except httpx.RequestError as exc:
                    if attempt == MAX_RETRIES:
                        raise

                    wait_time = BACKOFF_FACTOR**attempt
                    logger.warning(
                        "Google OAuth request error, retrying",
                        operation=operation,
                        attempt=attempt,
                        wait_time=wait_time,
                        error=str(exc),
                    )
                    await asyncio.sleep(wait_time)
                    continue

                if response.status_code in RETRY_STATUS_CODES and attempt < MAX_RETRIES:
                    wait_time = BACKOFF_FACTOR**attempt
                    logger.warning(
                        "Google OAuth transient status",
                        operation=operation,
                        status_code=response.status_code,
                        attempt=attempt,
                        wait_time=wait_time,
                    )
                    await asyncio.sleep(wait_time)
                    continue

                return response

        raise GoogleOAuthError(f"{operation} failed: retries exhausted")

    def _handle_token_response(self, response: httpx.Response, operation: str) -> TokenResponse:
        """Validate the token endpoint response."""
        if not response.is_success:
            try:
                error_data = response.json()
            except ValueError:
                logger.error(
                    f"Google {operation} failed with non-JSON response",
                    status_code=response.status_code,
                    response_text=response.text[:200],
                )
                raise GoogleOAuthError(
                    f"Google OAuth service error (HTTP {response.status_code})"
                ) from None

            error_code = error_data.get("error", "unknown_error")
            logger.error(
                f"Google {operation} failed",
                status_code=response.status_code,
                error_code=error_code,
                error_description=error_data.get("error_description"),
            )
            raise GoogleOAuthError(
                self._map_google_error(error_code),
                error_code=error_code,
                response_data=error_data,
            )

        try:
            token_response = TokenResponse(response.json())
        except ValueError as e:
            raise GoogleOAuthError(f"Failed to parse Google response: {e}") from e

        if not token_response.is_valid():
            raise GoogleOAuthError("Invalid token response from Google")

        logger.info(
            f"Google {operation} successful",
            token_type=token_response.token_type,
            expires_in=token_response.expires_in,
        )
        return token_response

    def _map_google_error(self, error_code: str) -> str:
        error_messages = {
            "invalid_grant": "Google refresh token expired or revoked. Mint a new GOOGLE_REFRESH_TOKEN.",
            "invalid_client": "Google OAuth client misconfigured (check GOOGLE_CLIENT_ID/SECRET).",
            "unauthorized_client": "Google OAuth client not authorized for this grant.",
        }
        return error_messages.get(error_code, f"Google token refresh failed ({error_code})")
