"""
Service wiring for FastAPI.

Clients are built once per process from settings; routes receive them through
Depends so tests can swap any of them with app.dependency_overrides.
"""

from functools import lru_cache

from support_agent.config import settings
from support_agent.services.google_docs_service import GoogleDocsService
from support_agent.services.google_gmail_service import GoogleGmailService
from support_agent.services.google_oauth_service import GoogleTokenProvider
from support_agent.services.knowledge_base_service import KnowledgeBaseService
from support_agent.services.openai_service import ResponseGenerator
from support_agent.services.slack_service import SlackService
from support_agent.services.ticket_pipeline import TicketPipeline
from support_agent.services.ticket_sources import GmailTicketSource
from support_agent.services.ticket_steps import ChatNotifier, DocumentLogger, EmailSender


@lru_cache
def get_google_token_provider() -> GoogleTokenProvider:
    return GoogleTokenProvider()


@lru_cache
def get_gmail_service() -> GoogleGmailService:
    return GoogleGmailService(get_google_token_provider())


@lru_cache
def get_slack_service() -> SlackService:
    return SlackService()


@lru_cache
def get_ticket_pipeline() -> TicketPipeline:
    return TicketPipeline(
        document_logger=DocumentLogger(
            GoogleDocsService(get_google_token_provider()),
            document_id=settings.GOOGLE_DOC_ID,
        ),
        knowledge_base=KnowledgeBaseService(),
        response_generator=ResponseGenerator(),
        email_sender=EmailSender(get_gmail_service()),
        chat_notifier=ChatNotifier(
            get_slack_service(),
            channel=settings.SLACK_SUPPORT_CHANNEL_ID,
            reply_form_url=settings.REPLY_FORM_URL,
            conversation_url=settings.CONVERSATION_URL,
        ),
    )


@lru_cache
def get_gmail_ticket_source() -> GmailTicketSource:
    return GmailTicketSource(get_gmail_service())
