"""Conversations API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from inbox.api.deps import require_tenant_context
from inbox.api.routes.schemas import (
    ConversationResponse,
    MessageResponse,
    conversation_to_response,
    message_to_response,
)
from inbox.domain.services.conversation_service import ConversationService
from inbox.persistence.database import get_db

router = APIRouter()


@router.get("/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    tenant_id: Annotated[str, Depends(require_tenant_context)],
) -> ConversationResponse:
    """Get a conversation by ID."""
    conversation = await ConversationService(db).get_conversation(tenant_id, conversation_id)
    return conversation_to_response(conversation)


@router.get("/{conversation_id}/messages", response_model=list[MessageResponse])
async def get_conversation_messages(
    conversation_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    tenant_id: Annotated[str, Depends(require_tenant_context)],
) -> list[MessageResponse]:
    """Get a conversation's messages in chronological order."""
    messages = await ConversationService(db).get_conversation_history(tenant_id, conversation_id)
    return [message_to_response(m) for m in messages]
