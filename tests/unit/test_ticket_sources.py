"""
Tests for HelpScout and Gmail push adapters.
"""

import base64
import json
from unittest.mock import AsyncMock

import pytest

from support_agent.models.domain.gmail_domain import GmailMessage
from support_agent.services.google_gmail_service import GoogleGmailError
from support_agent.services.ticket_sources import (
    GmailTicketSource,
    InvalidPushNotification,
    decode_push_data,
    ticket_from_helpscout,
)


def _push(data: dict) -> dict:
    encoded = base64.b64encode(json.dumps(data).encode()).decode()
    return {"message": {"data": encoded, "messageId": "pubsub-1"}, "subscription": "sub"}


def _gmail_message() -> GmailMessage:
    body = base64.urlsafe_b64encode(b"My invoice is wrong").decode()
    return GmailMessage(
        {
            "id": "18c1",
            "payload": {
                "headers": [
                    {"name": "Subject", "value": "Invoice"},
                    {"name": "From", "value": "Bea Cruz <bea@example.com>"},
                ],
                "parts": [{"mimeType": "text/plain", "body": {"data": body}}],
            },
        }
    )


def test_helpscout_payload_maps_to_ticket():
    ticket = ticket_from_helpscout(
        {
            "id": 991,
            "subject": "Cannot export",
            "customer": {"email": "c@x.com", "name": "Cam"},
            "threads": [{"body": "Export button is greyed out"}],
        }
    )

    assert ticket.id == 991
    assert ticket.source == "helpscout"
    assert ticket.customer == {"email": "c@x.com", "name": "Cam"}
    assert ticket.first_message_text() == "Export button is greyed out"


def test_helpscout_payload_without_threads_or_customer():
    ticket = ticket_from_helpscout({"id": 1, "subject": "Empty"})

    assert ticket.messages == []
    assert ticket.customer == {"email": None, "name": None}


def test_decode_push_data_accepts_urlsafe_and_unpadded():
    raw = base64.urlsafe_b64encode(json.dumps({"emailAddress": "s@x.com"}).encode()).decode()

    assert decode_push_data({"message": {"data": raw.rstrip("=")}}) == {"emailAddress": "s@x.com"}


@pytest.mark.parametrize(
    "push",
    [
        {},
        {"message": {}},
        {"message": {"data": "%%%not-base64%%%"}},
        {"message": {"data": base64.b64encode(b"[1, 2]").decode()}},
    ],
)
def test_decode_push_data_rejects_malformed(push):
    with pytest.raises(InvalidPushNotification):
        decode_push_data(push)


@pytest.mark.asyncio
async def test_push_with_message_id_fetches_that_message():
    gmail = AsyncMock()
    gmail.get_message.return_value = _gmail_message()

    tickets = await GmailTicketSource(gmail).tickets_from_push(
        _push({"emailAddress": "support@x.com", "historyId": 77, "messageId": "18c1"})
    )

    gmail.get_message.assert_awaited_once_with("18c1")
    gmail.list_message_ids.assert_not_awaited()
    [ticket] = tickets
    assert ticket.id == "18c1"
    assert ticket.subject == "Invoice"
    assert ticket.customer == {"email": "bea@example.com", "name": "Bea Cruz"}
    assert ticket.messages == [{"body": "My invoice is wrong"}]
    assert ticket.source == "gmail"


@pytest.mark.asyncio
async def test_first_push_uses_newest_inbox_message():
    gmail = AsyncMock()
    gmail.list_message_ids.return_value = ["18c1"]
    gmail.get_message.return_value = _gmail_message()

    tickets = await GmailTicketSource(gmail).tickets_from_push(
        _push({"emailAddress": "support@x.com", "historyId": 77})
    )

    gmail.list_message_ids.assert_awaited_once_with(label_ids=["INBOX"], max_results=1)
    gmail.list_added_messages.assert_not_awaited()
    assert [ticket.id for ticket in tickets] == ["18c1"]


@pytest.mark.asyncio
async def test_later_push_reads_history_since_previous_push():
    gmail = AsyncMock()
    gmail.list_message_ids.return_value = ["m1"]
    gmail.list_added_messages.return_value = (
        [{"id": "m2", "labelIds": ["INBOX"]}, {"id": "m3", "labelIds": ["INBOX"]}],
        "120",
    )
    gmail.get_message.side_effect = lambda message_id: GmailMessage(
        {"id": message_id, "labelIds": ["INBOX"], "payload": {"headers": []}}
    )
    source = GmailTicketSource(gmail)

    await source.tickets_from_push(_push({"historyId": 100}))
    tickets = await source.tickets_from_push(_push({"historyId": 120}))

    gmail.list_added_messages.assert_awaited_once_with(100)
    assert [ticket.id for ticket in tickets] == ["m2", "m3"]


@pytest.mark.asyncio
async def test_repeated_pushes_do_not_reprocess_a_message():
    gmail = AsyncMock()
    gmail.list_message_ids.return_value = ["18c1"]
    gmail.list_added_messages.return_value = ([{"id": "18c1", "labelIds": ["INBOX"]}], "101")
    gmail.get_message.return_value = _gmail_message()
    source = GmailTicketSource(gmail)

    first = await source.tickets_from_push(_push({"historyId": 100}))
    second = await source.tickets_from_push(_push({"historyId": 101}))

    assert len(first) == 1
    assert second == []
    gmail.get_message.assert_awaited_once_with("18c1")


@pytest.mark.asyncio
async def test_own_sent_mail_is_skipped():
    gmail = AsyncMock()
    gmail.list_message_ids.return_value = ["reply-1"]
    gmail.get_message.return_value = GmailMessage(
        {"id": "reply-1", "labelIds": ["SENT"], "payload": {"headers": []}}
    )
    source = GmailTicketSource(gmail)

    assert await source.tickets_from_push(_push({"historyId": 5})) == []

    gmail.list_added_messages.return_value = ([{"id": "reply-2", "labelIds": ["SENT"]}], "6")
    assert await source.tickets_from_push(_push({"historyId": 6})) == []
    gmail.get_message.assert_awaited_once_with("reply-1")


@pytest.mark.asyncio
async def test_expired_history_falls_back_to_newest_inbox_message():
    gmail = AsyncMock()
    gmail.list_message_ids.side_effect = [["m1"], ["m9"]]
    gmail.list_added_messages.side_effect = GoogleGmailError("Email message not found.", status_code=404)
    gmail.get_message.side_effect = lambda message_id: GmailMessage(
        {"id": message_id, "payload": {"headers": []}}
    )
    source = GmailTicketSource(gmail)

    await source.tickets_from_push(_push({"historyId": 1}))
    tickets = await source.tickets_from_push(_push({"historyId": 900}))

    assert [ticket.id for ticket in tickets] == ["m9"]


@pytest.mark.asyncio
async def test_failed_fetch_leaves_message_for_retry():
    gmail = AsyncMock()
    gmail.list_message_ids.return_value = ["18c1"]
    gmail.get_message.side_effect = [GoogleGmailError("Gmail service temporarily unavailable."), _gmail_message()]
    source = GmailTicketSource(gmail)

    with pytest.raises(GoogleGmailError):
        await source.tickets_from_push(_push({"messageId": "18c1"}))

    tickets = await source.tickets_from_push(_push({"messageId": "18c1"}))
    assert [ticket.id for ticket in tickets] == ["18c1"]


@pytest.mark.asyncio
async def test_push_with_empty_inbox_returns_no_tickets():
    gmail = AsyncMock()
    gmail.list_message_ids.return_value = []

    tickets = await GmailTicketSource(gmail).tickets_from_push(_push({"emailAddress": "s@x.com"}))

    assert tickets == []
    gmail.get_message.assert_not_awaited()
