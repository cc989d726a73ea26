"""Tests for the admin API."""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from inbox.domain.services.message_ingest_service import MessageIngestService
from inbox.infrastructure.merge_lock import MergeLock
from inbox.persistence.repositories.message_repository import MessageRepository
from tests.factories import TENANT, at, make_contact

HEADERS = {"X-Tenant-Id": TENANT}


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_missing_tenant_header_is_forbidden(client):
    response = await client.get("/api/v1/contacts/1")

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_request_id_is_echoed(client):
    response = await client.get("/health", headers={"X-Request-Id": "req-123"})

    assert response.headers["X-Request-Id"] == "req-123"


@pytest.mark.asyncio
async def test_resolve_and_lookup(client):
    response = await client.post(
        "/api/v1/contacts/resolve",
        json={"channel": "whatsapp", "identifier": "+5490000", "name": "Lucia"},
        headers=HEADERS,
    )
    assert response.status_code == 200
    contact = response.json()
    assert contact["name"] == "Lucia"
    assert contact["whatsapp_phone_number"] == "+5490000"

    again = await client.post(
        "/api/v1/contacts/resolve",
        json={"channel": "whatsapp", "identifier": "+5490000"},
        headers=HEADERS,
    )
    assert again.json()["id"] == contact["id"]

    lookup = await client.get(
        "/api/v1/contacts/lookup",
        params={"channel": "whatsapp", "identifier": "+5490000"},
        headers=HEADERS,
    )
    assert lookup.json()["exists"] is True
    assert lookup.json()["contact"]["id"] == contact["id"]


@pytest.mark.asyncio
async def test_resolve_rejects_unknown_channel(client):
    response = await client.post(
        "/api/v1/contacts/resolve",
        json={"channel": "fax", "identifier": "123"},
        headers=HEADERS,
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_lookup_unknown_identifier(client):
    response = await client.get(
        "/api/v1/contacts/lookup",
        params={"channel": "instagram", "identifier": "nobody"},
        headers=HEADERS,
    )

    assert response.status_code == 200
    assert response.json() == {"exists": False, "contact": None}


@pytest.mark.asyncio
async def test_merge_endpoint(client, db_session):
    ingest = MessageIngestService(db_session)
    a = (await ingest.ingest_inbound(TENANT, "instagram", "ig123", "hi", timestamp=at(0))).contact
    b = (await ingest.ingest_inbound(TENANT, "whatsapp", "+549", "hola", timestamp=at(1))).contact
    a_id, b_id = a.id, b.id

    response = await client.post(
        "/api/v1/contacts/merge",
        json={"from_contact_id": b_id, "to_contact_id": a_id, "merged_by": "staff-1"},
        headers=HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["merged_contact"]["id"] == a_id
    assert body["merged_contact"]["whatsapp_phone_number"] == "+549"
    assert body["stats"]["participants_rewritten"] == 1

    conversations = await client.get(f"/api/v1/contacts/{a_id}/conversations", headers=HEADERS)
    assert sorted(c["channel"] for c in conversations.json()) == ["instagram", "whatsapp"]

    history = await client.get(f"/api/v1/contacts/{b_id}/merge-history", headers=HEADERS)
    assert history.json()[0]["primary_contact_id"] == a_id

    retired = await client.get(f"/api/v1/contacts/{b_id}", headers=HEADERS)
    assert retired.json()["status"] == "inactive"


@pytest.mark.asyncio
async def test_merge_errors_map_to_status_codes(client, db_session):
    contact = await make_contact(db_session, whatsapp_phone_number="+1")

    self_merge = await client.post(
        "/api/v1/contacts/merge",
        json={"from_contact_id": contact.id, "to_contact_id": contact.id},
        headers=HEADERS,
    )
    missing = await client.post(
        "/api/v1/contacts/merge",
        json={"from_contact_id": 9999, "to_contact_id": contact.id},
        headers=HEADERS,
    )

    assert self_merge.status_code == 400
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_merge_preview_endpoint(client, db_session):
    a = await make_contact(db_session, name="A", whatsapp_phone_number="+1")
    b = await make_contact(db_session, name="B", messenger_id="psid", crm_stage="won")

    response = await client.post(
        "/api/v1/contacts/merge/preview",
        json={"from_contact_id": b.id, "to_contact_id": a.id},
        headers=HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["channels"] == []
    assert body["merged_fields"]["messenger_id"] == "psid"
    assert body["merged_fields"]["crm_stage"] == "won"


@pytest.mark.asyncio
async def test_conversation_messages_endpoint(client, db_session):
    result = await MessageIngestService(db_session).ingest_inbound(
        TENANT, "messenger", "psid", "first", timestamp=at(0)
    )
    await MessageIngestService(db_session).ingest_inbound(
        TENANT, "messenger", "psid", "second", timestamp=at(1)
    )

    conversation = await client.get(f"/api/v1/conversations/{result.conversation.id}", headers=HEADERS)
    messages = await client.get(
        f"/api/v1/conversations/{result.conversation.id}/messages", headers=HEADERS
    )

    assert conversation.json()["version"] == 2
    assert [m["content"] for m in messages.json()] == ["first", "second"]


@pytest.mark.asyncio
async def test_conversation_of_other_tenant_is_not_found(client, db_session):
    result = await MessageIngestService(db_session).ingest_inbound(
        TENANT, "messenger", "psid", "first", timestamp=at(0)
    )

    response = await client.get(
        f"/api/v1/conversations/{result.conversation.id}",
        headers={"X-Tenant-Id": "someone-else"},
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_failed_merge_returns_500_with_partial_stats(client, db_session):
    ingest = MessageIngestService(db_session)
    a_id = (await ingest.ingest_inbound(TENANT, "instagram", "ig123", "hi", timestamp=at(0))).contact.id
    b_id = (await ingest.ingest_inbound(TENANT, "whatsapp", "+549", "hola", timestamp=at(1))).contact.id

    with patch.object(
        MessageRepository, "reassign_contact_sender", side_effect=SQLAlchemyError("db gone")
    ):
        response = await client.post(
            "/api/v1/contacts/merge",
            json={"from_contact_id": b_id, "to_contact_id": a_id},
            headers=HEADERS,
        )

    assert response.status_code == 500
    body = response.json()
    assert body["stats"]["channels_processed"] == 2
    assert body["stats"]["participants_rewritten"] == 1

    retry = await client.post(
        "/api/v1/contacts/merge",
        json={"from_contact_id": b_id, "to_contact_id": a_id},
        headers=HEADERS,
    )
    assert retry.status_code == 200


@pytest.mark.asyncio
async def test_merge_while_locked_returns_409(client, db_session):
    a = await make_contact(db_session, name="A", whatsapp_phone_number="+1")
    b = await make_contact(db_session, name="B", whatsapp_phone_number="+2")

    async with MergeLock(TENANT, [a.id]):
        response = await client.post(
            "/api/v1/contacts/merge",
            json={"from_contact_id": b.id, "to_contact_id": a.id},
            headers=HEADERS,
        )

    assert response.status_code == 409
    still_active = await client.get(f"/api/v1/contacts/{b.id}", headers=HEADERS)
    assert still_active.json()["status"] == "active"


@pytest.mark.asyncio
async def test_update_contact_endpoint(client, db_session):
    contact = await make_contact(db_session, name="Old", whatsapp_phone_number="+1", crm_stage="lead")

    response = await client.patch(
        f"/api/v1/contacts/{contact.id}",
        json={"name": "New", "instagram_id": " IG_New "},
        headers=HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "New"
    assert body["instagram_id"] == "ig_new"
    assert body["crm_stage"] == "lead"


@pytest.mark.asyncio
async def test_update_contact_endpoint_errors(client, db_session):
    await make_contact(db_session, name="Holder", instagram_id="taken")
    contact = await make_contact(db_session, name="Other", whatsapp_phone_number="+1")
    contact_id = contact.id

    taken = await client.patch(
        f"/api/v1/contacts/{contact_id}", json={"instagram_id": "taken"}, headers=HEADERS
    )
    null_name = await client.patch(
        f"/api/v1/contacts/{contact_id}", json={"name": None}, headers=HEADERS
    )
    missing = await client.patch("/api/v1/contacts/9999", json={"notes": "x"}, headers=HEADERS)

    assert taken.status_code == 409
    assert null_name.status_code == 400
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_search_messages_endpoint(client, db_session):
    ingest = MessageIngestService(db_session)
    await ingest.ingest_inbound(TENANT, "whatsapp", "+549", "Need a QUOTE please", timestamp=at(0))
    await ingest.ingest_inbound(TENANT, "whatsapp", "+549", "hello", timestamp=at(1))
    await ingest.ingest_inbound("someone-else", "whatsapp", "+549", "quote for them", timestamp=at(2))

    response = await client.get("/api/v1/messages/search", params={"q": "quote"}, headers=HEADERS)
    blank = await client.get("/api/v1/messages/search", params={"q": " "}, headers=HEADERS)

    assert response.status_code == 200
    assert [m["content"] for m in response.json()] == ["Need a QUOTE please"]
    assert blank.status_code == 400
