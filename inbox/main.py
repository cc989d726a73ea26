"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from inbox.api.errors import register_exception_handlers
from inbox.api.middleware import RequestContextMiddleware
from inbox.api.routes import api_router
from inbox.infrastructure.redis import redis_client
from inbox.logging_config import setup_logging
from inbox.settings import settings

# Setup logging
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    await redis_client.connect()
    yield
    await redis_client.disconnect()


app = FastAPI(
    title="Omnichannel Inbox API",
    description="Contact identity, conversations and contact merge for a multi-tenant inbox",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(RequestContextMiddleware)
register_exception_handlers(app)

app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
