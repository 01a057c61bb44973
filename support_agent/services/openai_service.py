"""
OpenAI Service for support replies.
Turns a ticket plus knowledge-base context into a draft answer with one
chat-completion call.
"""

import json
from typing import Any

from openai import AsyncOpenAI

from support_agent.config import settings
from support_agent.infrastructure.observability.logging import get_logger
from support_agent.models.domain.ticket_domain import Customer, Ticket

logger = get_logger(__name__)

SYSTEM_MESSAGE = (
    "You are a helpful customer support agent specializing in software platform assistance."
)


class OpenAIServiceError(Exception):
    """Raised when the completion call cannot produce a reply."""

    def __init__(self, message: str, recoverable: bool = True):
        super().__init__(message)
        self.recoverable = recoverable


def build_prompt(ticket: Ticket, customer: Customer, context: dict[str, Any]) -> str:
    """Fill the fixed reply template for one ticket."""
    messages = "\n".join(text or "No content" for text in ticket.message_texts())

    return f"""
You are a helpful customer support agent for our software platform.

Customer Information:
- Name: {customer.name}
- Email: {customer.email}
- Subject: {ticket.subject or ""}

Customer Message:
{messages}

Knowledge Base Context:
{json.dumps(context, indent=2)}

Please generate a helpful, professional response that:
1. Addresses the customer's specific question or concern
2. Provides step-by-step guidance when appropriate
3. References relevant platform features or documentation
4. Maintains a friendly, professional tone
5. Offers additional help if needed

Response:"""


class ResponseGenerator:
    """
    Generates reply text with GPT.

    `generate` never raises: any failure is logged and comes back as "",
    which the pipeline reads as "no response produced".
    """

    def __init__(self, client: AsyncOpenAI | None = None):
        self.client = client
        self.model = settings.OPENAI_MODEL
        self.max_tokens = settings.OPENAI_MAX_TOKENS
        self.temperature = settings.OPENAI_TEMPERATURE

    def _get_client(self) -> AsyncOpenAI:
        if self.client is None:
            if not settings.OPENAI_API_KEY:
                raise OpenAIServiceError("OPENAI_API_KEY not configured in settings")
            self.client = AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=settings.OPENAI_TIMEOUT_SECONDS,
            )
            logger.info("OpenAI client initialized", model=self.model)
        return self.client

    async def complete(self, prompt: str) -> str:
        """Run the completion; raises on any API or response problem."""
        response = await self._get_client().chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_MESSAGE},
                {"role": "user", "content": prompt},
            ],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )

        if not response.choices:
            raise OpenAIServiceError("Empty response from OpenAI API")

        content = response.choices[0].message.content or ""
        logger.info(
            "AI response generated",
            response_length=len(content),
            usage_tokens=response.usage.total_tokens if response.usage else 0,
        )
        return content.strip()

    async def generate(self, ticket: Ticket, customer: Customer, context: dict[str, Any]) -> str:
        try:
            return await self.complete(build_prompt(ticket, customer, context))
        except Exception as e:
            logger.error(
                "Error generating AI response",
                ticket_id=ticket.display_id(),
                error=str(e),
                error_type=type(e).__name__,
            )
            return ""
