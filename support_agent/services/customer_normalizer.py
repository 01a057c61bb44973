"""
Customer normalization.

Inbound tickets describe the customer in several shapes: a nested object, a
JSON-encoded string of that object, or loose top-level fields from form
builders (`customer_name`, `CustomerName`, `Name`, `name` and the email
equivalents). This module reduces all of them to one `Customer`.
"""

import json
from collections.abc import Mapping
from typing import Any

from support_agent.infrastructure.observability.logging import get_logger
from support_agent.models.domain.ticket_domain import Customer, Ticket

logger = get_logger(__name__)

# Lookup order per field: nested keys first, then top-level aliases.
NAME_NESTED_KEYS = ("name", "Name")
NAME_TOP_LEVEL_KEYS = ("customer_name", "CustomerName", "Name", "name")
EMAIL_NESTED_KEYS = ("email", "Email")
EMAIL_TOP_LEVEL_KEYS = ("customer_email", "CustomerEmail", "Email", "email")


def _as_mapping(ticket_like: Any) -> Mapping[str, Any]:
    if isinstance(ticket_like, Ticket):
        return ticket_like.model_dump()
    if isinstance(ticket_like, Mapping):
        return ticket_like
    return {}


def _parse_customer_field(raw: Any) -> Mapping[str, Any]:
    """Return the nested customer object, decoding JSON strings; {} on anything else."""
    if isinstance(raw, Mapping):
        return raw
    if isinstance(raw, str) and raw.strip():
        try:
            parsed = json.loads(raw)
        except ValueError:
            logger.debug("Customer field is not valid JSON, ignoring it")
            return {}
        return parsed if isinstance(parsed, Mapping) else {}
    return {}


def _first_value(sources: list[tuple[Mapping[str, Any], tuple[str, ...]]]) -> str:
    for source, keys in sources:
        for key in keys:
            value = source.get(key)
            if value is None or value == "":
                continue
            return value if isinstance(value, str) else str(value)
    return ""


def normalize_customer(ticket_like: Any) -> Customer:
    """
    Extract the canonical {name, email} pair from a ticket or raw payload.

    Never raises on malformed customer data; missing values come back as "".
    """
    data = _as_mapping(ticket_like)
    nested = _parse_customer_field(data.get("customer"))

    name = _first_value([(nested, NAME_NESTED_KEYS), (data, NAME_TOP_LEVEL_KEYS)])
    email = _first_value([(nested, EMAIL_NESTED_KEYS), (data, EMAIL_TOP_LEVEL_KEYS)])

    return Customer(name=name, email=email)
