"""Test doubles for the pipeline capabilities."""

from typing import Any

from support_agent.services.knowledge_base_service import KnowledgeBaseService
from support_agent.services.ticket_pipeline import TicketPipeline
from support_agent.services.ticket_steps import ChatNotifier, DocumentLogger, EmailSender


class FakeDocs:
    def __init__(self, error: Exception | None = None):
        self.inserts: list[tuple[str, str]] = []
        self.error = error

    async def insert_text(self, document_id: str, text: str) -> dict:
        if self.error:
            raise self.error
        self.inserts.append((document_id, text))
        return {"documentId": document_id}


class FakeMailer:
    def __init__(self, error: Exception | None = None):
        self.sent: list[dict[str, str]] = []
        self.error = error

    async def send_message(self, to: str, subject: str, body: str) -> dict:
        if self.error:
            raise self.error
        self.sent.append({"to": to, "subject": subject, "body": body})
        return {"id": f"sent-{len(self.sent)}"}


class FakeSlack:
    def __init__(self, error: Exception | None = None, channel: str = "C123"):
        self.posts: list[dict[str, Any]] = []
        self.error = error
        self.channel = channel

    async def post_message(self, text, blocks=None, channel=None, thread_ts=None) -> dict:
        if self.error:
            raise self.error
        self.posts.append({"text": text, "blocks": blocks, "channel": channel, "thread_ts": thread_ts})
        return {"ok": True, "channel": channel or self.channel, "ts": f"1700000000.{len(self.posts):06d}"}


class FakeGenerator:
    def __init__(self, reply: str = "Try resetting your password.", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls = 0

    async def generate(self, ticket, customer, context) -> str:
        self.calls += 1
        if self.error:
            raise self.error
        return self.reply


class Fakes:
    def __init__(self):
        self.docs = FakeDocs()
        self.mailer = FakeMailer()
        self.slack = FakeSlack()
        self.generator = FakeGenerator()
        self.knowledge_base = KnowledgeBaseService()

    def pipeline(self, document_id: str | None = "doc-1") -> TicketPipeline:
        return TicketPipeline(
            document_logger=DocumentLogger(self.docs, document_id=document_id),
            knowledge_base=self.knowledge_base,
            response_generator=self.generator,
            email_sender=EmailSender(self.mailer),
            chat_notifier=ChatNotifier(self.slack, channel="C123"),
        )


