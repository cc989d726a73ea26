"""Tests for conversation location and message appends."""

import pytest

from inbox.core.errors import InvalidArgumentError, NotFoundError
from inbox.domain.services.conversation_service import ConversationService
from inbox.persistence.models.conversation import DIRECTION_INBOUND, SENDER_CONTACT
from tests.factories import OTHER_TENANT, TENANT, add_messages, add_staff_reply, at, make_contact, make_conversation


@pytest.mark.asyncio
async def test_locate_creates_direct_conversation(db_session):
    contact = await make_contact(db_session, whatsapp_phone_number="+549")
    service = ConversationService(db_session)

    conversation = await service.locate(TENANT, "whatsapp", contact.id)

    assert conversation.id is not None
    assert conversation.channel == "whatsapp"
    assert conversation.type == "direct"
    assert conversation.version == 0
    assert conversation.last_message_id is None
    assert conversation.participant_ids == [contact.id]


@pytest.mark.asyncio
async def test_locate_reuses_active_conversation(db_session):
    contact = await make_contact(db_session, whatsapp_phone_number="+549")
    service = ConversationService(db_session)

    first = await service.locate(TENANT, "whatsapp", contact.id)
    second = await service.locate(TENANT, "whatsapp", contact.id)

    assert first.id == second.id


@pytest.mark.asyncio
async def test_locate_keeps_channels_separate(db_session):
    contact = await make_contact(db_session, whatsapp_phone_number="+549", instagram_id="ig1")
    service = ConversationService(db_session)

    whatsapp = await service.locate(TENANT, "whatsapp", contact.id)
    instagram = await service.locate(TENANT, "instagram", contact.id)

    assert whatsapp.id != instagram.id
    assert instagram.channel == "instagram"


@pytest.mark.asyncio
async def test_locate_prefers_oldest_when_duplicates_exist(db_session):
    contact = await make_contact(db_session, whatsapp_phone_number="+549")
    newer = await make_conversation(db_session, [contact.id], created_minutes=10)
    older = await make_conversation(db_session, [contact.id], created_minutes=1)

    conversation = await ConversationService(db_session).locate(TENANT, "whatsapp", contact.id)

    assert conversation.id == older.id
    assert conversation.id != newer.id


@pytest.mark.asyncio
async def test_append_bumps_version_and_last_message(db_session):
    contact = await make_contact(db_session, whatsapp_phone_number="+549")
    conversation = await make_conversation(db_session, [contact.id])

    messages = await add_messages(db_session, conversation, contact.id, 2)

    assert conversation.version == 2
    assert conversation.last_message_id == messages[-1].id
    assert messages[0].sender_type == SENDER_CONTACT
    assert messages[0].sender_id == str(contact.id)
    assert messages[0].direction == DIRECTION_INBOUND


@pytest.mark.asyncio
async def test_history_is_chronological(db_session):
    contact = await make_contact(db_session, whatsapp_phone_number="+549")
    conversation = await make_conversation(db_session, [contact.id])
    service = ConversationService(db_session)

    await add_messages(db_session, conversation, contact.id, 1, start_minutes=5)
    await add_messages(db_session, conversation, contact.id, 1, start_minutes=1)
    await add_staff_reply(db_session, conversation, "staff-1", minutes=3)

    history = await service.get_conversation_history(TENANT, conversation.id)

    assert [m.timestamp for m in history] == [at(1), at(3), at(5)]


@pytest.mark.asyncio
async def test_append_rejects_unknown_direction(db_session):
    contact = await make_contact(db_session, whatsapp_phone_number="+549")
    conversation = await make_conversation(db_session, [contact.id])

    with pytest.raises(InvalidArgumentError):
        await ConversationService(db_session).append_message(
            TENANT, conversation, SENDER_CONTACT, contact.id, "hi", direction="sideways"
        )


@pytest.mark.asyncio
async def test_append_rejects_unknown_sender_type(db_session):
    contact = await make_contact(db_session, whatsapp_phone_number="+549")
    conversation = await make_conversation(db_session, [contact.id])

    with pytest.raises(InvalidArgumentError):
        await ConversationService(db_session).append_message(
            TENANT, conversation, "bot", "x", "hi", direction=DIRECTION_INBOUND
        )


@pytest.mark.asyncio
async def test_get_conversation_from_other_tenant_is_not_found(db_session):
    contact = await make_contact(db_session, whatsapp_phone_number="+549")
    conversation = await make_conversation(db_session, [contact.id])

    with pytest.raises(NotFoundError):
        await ConversationService(db_session).get_conversation(OTHER_TENANT, conversation.id)


@pytest.mark.asyncio
async def test_list_for_contact_includes_every_channel(db_session):
    contact = await make_contact(db_session, whatsapp_phone_number="+549")
    other = await make_contact(db_session, whatsapp_phone_number="+550")
    await make_conversation(db_session, [contact.id], channel="instagram", created_minutes=2)
    await make_conversation(db_session, [contact.id], channel="whatsapp", created_minutes=1)
    await make_conversation(db_session, [other.id], channel="whatsapp")

    conversations = await ConversationService(db_session).list_for_contact(TENANT, contact.id)

    assert [c.channel for c in conversations] == ["whatsapp", "instagram"]


@pytest.mark.asyncio
async def test_search_messages_matches_content_ignoring_case(db_session):
    contact = await make_contact(db_session, whatsapp_phone_number="+549")
    conversation = await make_conversation(db_session, [contact.id])
    service = ConversationService(db_session)
    await service.append_message(
        TENANT, conversation, SENDER_CONTACT, contact.id, "Where is my ORDER?", DIRECTION_INBOUND, timestamp=at(1)
    )
    await service.append_message(
        TENANT, conversation, SENDER_CONTACT, contact.id, "order arrived", DIRECTION_INBOUND, timestamp=at(2)
    )
    await service.append_message(
        TENANT, conversation, SENDER_CONTACT, contact.id, "thanks", DIRECTION_INBOUND, timestamp=at(3)
    )

    results = await service.search_messages(TENANT, " order ")

    assert [m.content for m in results] == ["order arrived", "Where is my ORDER?"]


@pytest.mark.asyncio
async def test_search_messages_is_tenant_scoped(db_session):
    mine = await make_contact(db_session, whatsapp_phone_number="+549")
    theirs = await make_contact(db_session, tenant_id=OTHER_TENANT, whatsapp_phone_number="+549")
    await add_messages(db_session, await make_conversation(db_session, [mine.id]), mine.id, 1)
    await add_messages(
        db_session,
        await make_conversation(db_session, [theirs.id], tenant_id=OTHER_TENANT),
        theirs.id,
        1,
        tenant_id=OTHER_TENANT,
    )

    results = await ConversationService(db_session).search_messages(TENANT, "message")

    assert [m.tenant_id for m in results] == [TENANT]


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(db_session):
    contact = await make_contact(db_session, whatsapp_phone_number="+549")
    conversation = await make_conversation(db_session, [contact.id])
    service = ConversationService(db_session)
    await service.append_message(
        TENANT, conversation, SENDER_CONTACT, contact.id, "100% sure", DIRECTION_INBOUND, timestamp=at(1)
    )
    await service.append_message(
        TENANT, conversation, SENDER_CONTACT, contact.id, "100 units", DIRECTION_INBOUND, timestamp=at(2)
    )

    results = await service.search_messages(TENANT, "100%")

    assert [m.content for m in results] == ["100% sure"]


@pytest.mark.asyncio
async def test_blank_search_is_rejected(db_session):
    with pytest.raises(InvalidArgumentError):
        await ConversationService(db_session).search_messages(TENANT, "  ")
