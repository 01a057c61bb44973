"""
Slack Block Kit payloads for ticket notifications.
Pure functions: no I/O, so every shape is easy to assert on.
"""

from typing import Any
from urllib.parse import urlencode

from support_agent.models.domain.ticket_domain import Customer, Ticket

CUSTOMER_MESSAGE_LIMIT = 500
RESPONSE_PREVIEW_LIMIT = 200
REPLY_FORM_MESSAGE_LIMIT = 1000
ELLIPSIS = "..."


def _section(text: str) -> dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def _button(label: str, url: str) -> dict[str, Any]:
    return {
        "type": "button",
        "text": {"type": "plain_text", "text": label, "emoji": True},
        "url": url,
    }


def truncate_preview(text: str, limit: int = RESPONSE_PREVIEW_LIMIT) -> str:
    """Cut to at most `limit` characters, ending in "..." when anything was dropped."""
    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)] + ELLIPSIS


def build_reply_url(base_url: str | None, ticket: Ticket, customer: Customer) -> str | None:
    if not base_url:
        return None

    params = urlencode(
        {
            "ticketId": ticket.display_id(),
            "name": customer.name,
            "email": customer.email,
            "subject": ticket.subject or "",
            "source": ticket.source or "",
            "customerMessage": ticket.first_message_text()[:REPLY_FORM_MESSAGE_LIMIT],
        }
    )
    return f"{base_url}?{params}"


def build_conversation_url(base_url: str | None, ticket: Ticket) -> str | None:
    ticket_id = ticket.display_id()
    if not base_url or not ticket_id:
        return None

    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{urlencode({'ticketId': ticket_id})}"


def build_error_message(ticket: Ticket, customer: Customer, error: BaseException | str) -> dict[str, Any]:
    ticket_id = ticket.display_id()
    error_text = str(error) or type(error).__name__
    return {
        "text": f"🚨 Error processing ticket {ticket_id}",
        "blocks": [
            _section(
                "*Error Processing Ticket*\n"
                f"*ID:* {ticket_id}\n"
                f"*Customer:* {customer.display()}\n"
                f"*Subject:* {ticket.subject or ''}\n"
                f"*Error:* {error_text}"
            )
        ],
    }


def build_ticket_message(
    ticket: Ticket,
    customer: Customer,
    response: str | None,
    reply_form_url: str | None = None,
    conversation_url: str | None = None,
) -> dict[str, Any]:
    ticket_id = ticket.display_id()
    customer_message = ticket.first_message_text()[:CUSTOMER_MESSAGE_LIMIT]

    blocks = [
        _section(
            "*New Support Ticket*\n"
            f"*Ticket ID:* {ticket_id}\n"
            f"*Customer:* {customer.display()}\n"
            f"*Subject:* {ticket.subject or ''}\n"
            f"*Source:* {ticket.source or ''}"
        ),
        _section(f"*Customer Message:*\n{customer_message or '_No message body_'}"),
    ]

    if response:
        blocks.append(_section(f"*Response Preview:*\n{truncate_preview(response)}"))

    actions = []
    reply_url = build_reply_url(reply_form_url, ticket, customer)
    if reply_url:
        actions.append(_button("Reply", reply_url))
    full_conversation_url = build_conversation_url(conversation_url, ticket)
    if full_conversation_url:
        actions.append(_button("Full Conversation", full_conversation_url))
    if actions:
        blocks.append({"type": "actions", "elements": actions})

    return {
        "text": f"New support ticket {ticket_id}".rstrip(),
        "blocks": blocks,
    }


def build_full_response_text(response: str) -> str:
    return f"*Full AI Response:*\n\n```\n{response}\n```"
