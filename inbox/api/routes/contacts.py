"""Contacts API endpoints: identity lookup and merge administration."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from inbox.api.deps import require_tenant_context
from inbox.api.routes.schemas import (
    ContactResponse,
    ConversationResponse,
    contact_to_response,
    conversation_to_response,
)
from inbox.domain.services.contact_merge_service import ContactMergeService
from inbox.domain.services.contact_service import ContactService
from inbox.domain.services.conversation_service import ConversationService
from inbox.domain.services.identity_resolver import IdentityResolver
from inbox.infrastructure.merge_lock import MergeLock
from inbox.persistence.database import get_db

router = APIRouter()


# ============== Request Models ==============

class ResolveContactRequest(BaseModel):
    """Resolve (or create) a contact from a channel identifier."""

    channel: str
    identifier: str
    name: str | None = None


class UpdateContactRequest(BaseModel):
    """Update contact request; only fields sent are changed."""

    name: str | None = None
    email: str | None = None
    whatsapp_phone_number: str | None = None
    instagram_id: str | None = None
    messenger_id: str | None = None
    crm_partner_id: str | None = None
    crm_lead_id: str | None = None
    crm_stage: str | None = None
    sync_status: str | None = None
    assigned_staff_id: str | None = None
    notes: str | None = None
    observations: str | None = None
    attributes: dict[str, Any] | None = None


class MergeContactsRequest(BaseModel):
    """Merge contacts request: ``from`` is retired into ``to``."""

    from_contact_id: int
    to_contact_id: int
    merged_by: str | None = None


# ============== Response Models ==============

class LookupResponse(BaseModel):
    """Identifier lookup response."""

    exists: bool
    contact: ContactResponse | None = None


class MergeResponse(BaseModel):
    """Merge result with consolidation counters."""

    merged_contact: ContactResponse
    stats: dict[str, int]


class ChannelPlanResponse(BaseModel):
    """Per-channel part of a merge preview."""

    channel: str
    canonical_conversation_id: int | None
    duplicate_conversation_ids: list[int]
    messages_to_move: int
    rewrites_participant: bool


class MergePreviewResponse(BaseModel):
    """Merge preview response."""

    from_contact: ContactResponse
    to_contact: ContactResponse
    channels: list[ChannelPlanResponse]
    merged_fields: dict[str, Any]


class MergeHistoryEntry(BaseModel):
    """Merge history entry."""

    id: int
    primary_contact_id: int
    merged_contact_id: int
    merged_contact_data: dict | None
    merged_by: str | None
    merged_at: str | None
    stats: dict | None


# ============== Identity Endpoints ==============

@router.post("/resolve", response_model=ContactResponse)
async def resolve_contact(
    request: ResolveContactRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    tenant_id: Annotated[str, Depends(require_tenant_context)],
) -> ContactResponse:
    """Resolve a channel identifier to its contact, creating it if absent."""
    resolver = IdentityResolver(db)
    contact = await resolver.resolve(
        tenant_id, request.channel, request.identifier, name_hint=request.name
    )
    return contact_to_response(contact)


@router.get("/lookup", response_model=LookupResponse)
async def lookup_contact(
    db: Annotated[AsyncSession, Depends(get_db)],
    tenant_id: Annotated[str, Depends(require_tenant_context)],
    channel: str = Query(...),
    identifier: str = Query(...),
) -> LookupResponse:
    """Check whether an active contact holds a channel identifier."""
    resolver = IdentityResolver(db)
    contact = await resolver.find_by_identifier(tenant_id, channel, identifier)
    if contact is None:
        return LookupResponse(exists=False)
    return LookupResponse(exists=True, contact=contact_to_response(contact))


# ============== Merge Endpoints ==============

@router.post("/merge", response_model=MergeResponse)
async def merge_contacts(
    request: MergeContactsRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    tenant_id: Annotated[str, Depends(require_tenant_context)],
) -> MergeResponse:
    """Merge a duplicate contact into a canonical one."""
    merge_service = ContactMergeService(db)
    async with MergeLock(tenant_id, [request.from_contact_id, request.to_contact_id]):
        result = await merge_service.merge(
            tenant_id,
            request.from_contact_id,
            request.to_contact_id,
            merged_by=request.merged_by,
        )
    return MergeResponse(
        merged_contact=contact_to_response(result.merged_contact),
        stats=result.stats.as_dict(),
    )


@router.post("/merge/preview", response_model=MergePreviewResponse)
async def preview_merge(
    request: MergeContactsRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    tenant_id: Annotated[str, Depends(require_tenant_context)],
) -> MergePreviewResponse:
    """Show what merging two contacts would do."""
    merge_service = ContactMergeService(db)
    preview = await merge_service.preview_merge(
        tenant_id, request.from_contact_id, request.to_contact_id
    )
    return MergePreviewResponse(
        from_contact=contact_to_response(preview.from_contact),
        to_contact=contact_to_response(preview.to_contact),
        channels=[
            ChannelPlanResponse(
                channel=plan.channel,
                canonical_conversation_id=plan.canonical_conversation_id,
                duplicate_conversation_ids=plan.duplicate_conversation_ids,
                messages_to_move=plan.messages_to_move,
                rewrites_participant=plan.rewrites_participant,
            )
            for plan in preview.channels
        ],
        merged_fields=jsonable_encoder(preview.merged_fields),
    )


# ============== Contact Endpoints ==============

@router.get("/{contact_id}", response_model=ContactResponse)
async def get_contact(
    contact_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    tenant_id: Annotated[str, Depends(require_tenant_context)],
) -> ContactResponse:
    """Get a specific contact by ID."""
    contact_service = ContactService(db)
    contact = await contact_service.get_contact(tenant_id, contact_id)
    return contact_to_response(contact)


@router.patch("/{contact_id}", response_model=ContactResponse)
async def update_contact(
    contact_id: int,
    request: UpdateContactRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    tenant_id: Annotated[str, Depends(require_tenant_context)],
) -> ContactResponse:
    """Update a contact's information."""
    contact_service = ContactService(db)
    contact = await contact_service.update_contact(
        tenant_id, contact_id, **request.model_dump(exclude_unset=True)
    )
    return contact_to_response(contact)


@router.get("/{contact_id}/conversations", response_model=list[ConversationResponse])
async def list_contact_conversations(
    contact_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    tenant_id: Annotated[str, Depends(require_tenant_context)],
) -> list[ConversationResponse]:
    """List the conversations a contact participates in."""
    await ContactService(db).get_contact(tenant_id, contact_id)
    conversations = await ConversationService(db).list_for_contact(tenant_id, contact_id)
    return [conversation_to_response(c) for c in conversations]


@router.get("/{contact_id}/merge-history", response_model=list[MergeHistoryEntry])
async def get_merge_history(
    contact_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    tenant_id: Annotated[str, Depends(require_tenant_context)],
) -> list[MergeHistoryEntry]:
    """Get merge history for a contact."""
    merge_service = ContactMergeService(db)
    history = await merge_service.get_merge_history(tenant_id, contact_id)
    return [MergeHistoryEntry(**entry) for entry in history]
