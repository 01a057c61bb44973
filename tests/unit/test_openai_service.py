"""
Tests for reply generation.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from support_agent.models.domain.ticket_domain import Customer, Ticket
from support_agent.services.knowledge_base_service import STATIC_CONTEXT
from support_agent.services.openai_service import SYSTEM_MESSAGE, ResponseGenerator, build_prompt

ANA = Customer(name="Ana", email="a@x.com")


def _completion(content):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(total_tokens=42),
    )


def _client(result=None, error=None):
    client = AsyncMock()
    if error:
        client.chat.completions.create.side_effect = error
    else:
        client.chat.completions.create.return_value = result
    return client


def test_prompt_embeds_ticket_customer_and_context():
    ticket = Ticket(
        id="T1",
        subject="Help",
        messages=[{"body": "Can't log in"}, {"text": "Still stuck"}, {}],
    )

    prompt = build_prompt(ticket, ANA, STATIC_CONTEXT)

    assert "- Name: Ana" in prompt
    assert "- Email: a@x.com" in prompt
    assert "- Subject: Help" in prompt
    assert "Customer Message:\nCan't log in\nStill stuck\nNo content\n" in prompt
    assert '"commonIssues": [' in prompt
    assert prompt.endswith("Response:")


@pytest.mark.asyncio
async def test_generate_returns_stripped_completion(sample_ticket):
    client = _client(_completion("  Here is how to reset it.\n"))
    generator = ResponseGenerator(client=client)

    reply = await generator.generate(sample_ticket, ANA, STATIC_CONTEXT)

    assert reply == "Here is how to reset it."
    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == generator.model
    assert kwargs["max_tokens"] == generator.max_tokens
    assert kwargs["temperature"] == generator.temperature
    assert kwargs["messages"][0] == {"role": "system", "content": SYSTEM_MESSAGE}


@pytest.mark.asyncio
async def test_generate_allows_empty_completion(sample_ticket):
    generator = ResponseGenerator(client=_client(_completion(None)))

    assert await generator.generate(sample_ticket, ANA, {}) == ""


@pytest.mark.asyncio
async def test_generate_swallows_api_errors(sample_ticket):
    generator = ResponseGenerator(client=_client(error=TimeoutError("read timeout")))

    assert await generator.generate(sample_ticket, ANA, {}) == ""


@pytest.mark.asyncio
async def test_generate_swallows_malformed_response(sample_ticket):
    generator = ResponseGenerator(client=_client(SimpleNamespace(choices=[], usage=None)))

    assert await generator.generate(sample_ticket, ANA, {}) == ""


@pytest.mark.asyncio
async def test_generate_without_api_key_returns_empty(sample_ticket, monkeypatch):
    monkeypatch.setattr("support_agent.services.openai_service.settings.OPENAI_API_KEY", None)

    assert await ResponseGenerator().generate(sample_ticket, ANA, {}) == ""
