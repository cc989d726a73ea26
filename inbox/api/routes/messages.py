"""Message search endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from inbox.api.deps import require_tenant_context
from inbox.api.routes.schemas import MessageResponse, message_to_response
from inbox.domain.services.conversation_service import ConversationService
from inbox.persistence.database import get_db

router = APIRouter()


@router.get("/search", response_model=list[MessageResponse])
async def search_messages(
    db: Annotated[AsyncSession, Depends(get_db)],
    tenant_id: Annotated[str, Depends(require_tenant_context)],
    q: str = Query(...),
    limit: int = Query(50, ge=1, le=200),
) -> list[MessageResponse]:
    """Search the tenant's messages by content."""
    messages = await ConversationService(db).search_messages(tenant_id, q, limit=limit)
    return [message_to_response(m) for m in messages]
