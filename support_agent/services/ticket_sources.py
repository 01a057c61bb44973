"""
Adapters from inbound provider payloads to Tickets.
"""

import base64
import binascii
import json
from collections import OrderedDict
from typing import Any

from support_agent.infrastructure.observability.logging import get_logger
from support_agent.models.domain.ticket_domain import Ticket
from support_agent.services.google_gmail_service import GoogleGmailError, GoogleGmailService

logger = get_logger(__name__)

# Labels on mail the service itself produced
OWN_MAIL_LABELS = frozenset({"SENT", "DRAFT"})
SEEN_MESSAGE_LIMIT = 1000


def _is_own_mail(label_ids: list[str] | None) -> bool:
    return bool(OWN_MAIL_LABELS.intersection(label_ids or []))


class InvalidPushNotification(ValueError):
    """Gmail push body is missing `message.data` or it does not decode."""


def ticket_from_helpscout(payload: dict[str, Any]) -> Ticket:
    customer = payload.get("customer") or {}
    if not isinstance(customer, dict):
        customer = {}

    return Ticket(
        id=payload.get("id"),
        subject=payload.get("subject"),
        customer={"email": customer.get("email"), "name": customer.get("name")},
        messages=payload.get("threads") or [],
        source="helpscout",
    )


def decode_push_data(push: dict[str, Any]) -> dict[str, Any]:
    """Decode the base64 JSON document carried in a Pub/Sub push body."""
    data = (push.get("message") or {}).get("data")
    if not data:
        raise InvalidPushNotification("Push notification has no message.data")

    try:
        decoded = json.loads(base64.b64decode(data + "=" * (-len(data) % 4), altchars=b"-_"))
    except (binascii.Error, ValueError) as e:
        raise InvalidPushNotification(f"Push notification data is not base64 JSON: {e}") from e

    if not isinstance(decoded, dict):
        raise InvalidPushNotification("Push notification data is not a JSON object")
    return decoded


class GmailTicketSource:
    """
    Builds tickets from Gmail push notifications.

    Gmail's notification only carries `emailAddress` and `historyId` and
    fires on every mailbox change, our own sent replies included. When a relay
    adds an explicit `messageId` that message is used. Otherwise the messages
    added to INBOX since the previous push's historyId are listed; the first
    push seen by this process (or one whose history has expired) falls back
    to the newest INBOX message. Message ids already turned into tickets and
    messages labelled SENT or DRAFT are skipped.
    """

    def __init__(self, gmail: GoogleGmailService):
        self.gmail = gmail
        self._last_history_id: int | None = None
        self._seen_message_ids: OrderedDict[str, None] = OrderedDict()

    def _advance_history(self, history_id: Any) -> int | None:
        """Record the push's historyId and return the one it replaces."""
        previous = self._last_history_id
        try:
            current = int(history_id)
        except (TypeError, ValueError):
            return previous

        if previous is None or current > previous:
            self._last_history_id = current
        return previous

    def _claim(self, message_id: str) -> bool:
        if message_id in self._seen_message_ids:
            return False
        self._seen_message_ids[message_id] = None
        if len(self._seen_message_ids) > SEEN_MESSAGE_LIMIT:
            self._seen_message_ids.popitem(last=False)
        return True

    async def _candidate_messages(self, notification: dict[str, Any]) -> list[dict[str, Any]]:
        previous_history_id = self._advance_history(notification.get("historyId"))

        message_id = notification.get("messageId")
        if message_id:
            return [{"id": str(message_id)}]

        if previous_history_id is not None:
            try:
                messages, _ = await self.gmail.list_added_messages(previous_history_id)
                return messages
            except GoogleGmailError as e:
                if e.status_code != 404:
                    raise
                logger.warning(
                    "Gmail history no longer available, using newest INBOX message",
                    start_history_id=previous_history_id,
                )

        message_ids = await self.gmail.list_message_ids(label_ids=["INBOX"], max_results=1)
        return [{"id": message_id} for message_id in message_ids]

    async def tickets_from_push(self, push: dict[str, Any]) -> list[Ticket]:
        """New customer messages referenced by one push, oldest first."""
        notification = decode_push_data(push)
        logger.info(
            "Gmail push received",
            email_address=notification.get("emailAddress"),
            history_id=notification.get("historyId"),
        )

        tickets = []
        for ref in await self._candidate_messages(notification):
            message_id = ref["id"]
            if _is_own_mail(ref.get("labelIds")):
                continue
            if not self._claim(message_id):
                logger.info("Gmail message already processed", message_id=message_id)
                continue

            try:
                message = await self.gmail.get_message(message_id)
            except Exception:
                self._seen_message_ids.pop(message_id, None)
                raise

            if _is_own_mail(message.label_ids):
                continue
            tickets.append(
                Ticket(
                    id=message.id,
                    subject=message.subject,
                    customer={"email": message.sender["email"], "name": message.sender["name"]},
                    messages=[{"body": message.body_text}],
                    source="gmail",
                )
            )

        if not tickets:
            logger.info("No new Gmail messages for push notification")
        return tickets
