"""
Knowledge base placeholder.

Context is a static catalogue for now and interactions are only logged;
swap in retrieval and persistence behind the same two methods.
"""

from dataclasses import asdict
from typing import Any

from support_agent.infrastructure.observability.logging import get_logger
from support_agent.models.domain.ticket_domain import Customer, InteractionRecord, Ticket

logger = get_logger(__name__)

STATIC_CONTEXT: dict[str, list[str]] = {
    "commonIssues": [
        "Account setup and onboarding",
        "Feature usage and best practices",
        "Integration troubleshooting",
        "Billing and subscription questions",
    ],
    "platformFeatures": [
        "User management",
        "API documentation",
        "Dashboard customization",
        "Data export/import",
    ],
}


class KnowledgeBaseService:
    async def get_context(self, ticket: Ticket) -> dict[str, Any]:
        return {key: list(values) for key, values in STATIC_CONTEXT.items()}

    async def record_interaction(
        self, ticket: Ticket, customer: Customer, response: str
    ) -> InteractionRecord:
        interaction = InteractionRecord.from_ticket(ticket, customer, response)
        logger.info(
            "Knowledge base updated with interaction",
            ticket_id=interaction.ticketId,
            interaction=asdict(interaction),
        )
        return interaction
