"""
Customer support agent: FastAPI application.
HelpScout / Gmail / manual tickets in; Google Doc log, Gmail reply and Slack
notification out.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from support_agent.config import settings
from support_agent.infrastructure.observability.logging import get_logger, log_request, setup_logging
from support_agent.routes import diagnostics, health, tickets, webhooks

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)

ENDPOINTS = [
    "GET /health",
    "POST /webhook/helpscout",
    "POST /webhook/gmail",
    "POST /process-ticket",
    "POST /test/slack",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log configuration state on startup and shutdown."""
    logger.info(
        "Customer support agent starting",
        environment=settings.environment,
        port=settings.PORT,
        endpoints=ENDPOINTS,
        google_configured=settings.google_configured(),
        slack_configured=settings.slack_configured(),
        openai_configured=bool(settings.OPENAI_API_KEY),
        doc_logging_enabled=bool(settings.GOOGLE_DOC_ID),
    )

    yield

    logger.info("Customer support agent shutting down")


app = FastAPI(
    title="Customer Support Agent",
    description="Webhook-driven support ticket automation",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(webhooks.router)
app.include_router(tickets.router)
app.include_router(diagnostics.router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    log_request(
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(process_time, 2),
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
