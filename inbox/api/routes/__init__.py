"""API routes."""

from fastapi import APIRouter

from inbox.api.routes import contacts, conversations, messages

api_router = APIRouter()

api_router.include_router(contacts.router, prefix="/contacts", tags=["contacts"])
api_router.include_router(conversations.router, prefix="/conversations", tags=["conversations"])
api_router.include_router(messages.router, prefix="/messages", tags=["messages"])
