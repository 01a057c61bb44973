# support_agent/models/domain/gmail_domain.py
"""
Gmail Domain Models
Wraps the Gmail API message resource and pulls out what a support ticket needs:
subject, sender and the plain-text body.
"""

import base64
from typing import Any

NO_CONTENT = "No content available"


def decode_base64url(data: str) -> str:
    """Decode Gmail's URL-safe base64 payload data (padding optional)."""
    decoded_bytes = base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))
    return decoded_bytes.decode("utf-8", errors="replace")


def extract_email_body(payload: dict[str, Any] | None) -> str:
    """
    Return the plain-text body of a Gmail message payload.

    Only the first text/plain part carrying data is used; HTML-only
    messages yield the NO_CONTENT sentinel.
    """
    if not payload:
        return NO_CONTENT

    parts = payload.get("parts")
    if parts:
        for part in parts:
            data = (part.get("body") or {}).get("data")
            if part.get("mimeType") == "text/plain" and data:
                return decode_base64url(data)
    else:
        data = (payload.get("body") or {}).get("data")
        if data:
            return decode_base64url(data)

    return NO_CONTENT


def parse_email_address(address_str: str) -> dict[str, str]:
    """Parse "Jane Doe <jane@example.com>" into name and email components."""
    if not address_str:
        return {"name": "", "email": ""}

    if "<" in address_str and ">" in address_str:
        name_part = address_str.split("<")[0].strip().strip('"')
        email_part = address_str.split("<")[1].split(">")[0].strip()
        return {"name": name_part, "email": email_part}
    return {"name": "", "email": address_str.strip()}


class GmailMessage:
    """Domain model for a Gmail message fetched in "full" format."""

    def __init__(self, data: dict):
        self.id = data.get("id")
        self.thread_id = data.get("threadId")
        self.label_ids = data.get("labelIds", [])
        self.snippet = data.get("snippet", "")
        self.payload = data.get("payload") or {}
        self.raw_data = data

        self._parse_headers()
        self.body_text = extract_email_body(self.payload)

    def _parse_headers(self):
        """Parse email headers from payload."""
        headers = self.payload.get("headers") or []
        self.headers = {h["name"].lower(): h.get("value", "") for h in headers if "name" in h}

        self.subject = self.headers.get("subject", "")
        self.from_header = self.headers.get("from", "")
        self.sender = parse_email_address(self.from_header)
        self.message_id = self.headers.get("message-id", "")
