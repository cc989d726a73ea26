"""Tests for contact reads and updates."""

import pytest

from inbox.core.errors import ConflictError, InvalidArgumentError, NotFoundError
from inbox.domain.services.contact_merge_service import ContactMergeService
from inbox.domain.services.contact_service import ContactService
from inbox.persistence.repositories.contact_repository import ContactRepository
from tests.factories import OTHER_TENANT, TENANT, make_contact


@pytest.mark.asyncio
async def test_update_contact_normalizes_identifiers(db_session):
    contact = await make_contact(db_session, whatsapp_phone_number="+1")

    updated = await ContactService(db_session).update_contact(
        TENANT, contact.id, instagram_id=" New_Handle ", crm_stage="lead"
    )

    assert updated.instagram_id == "new_handle"
    assert updated.crm_stage == "lead"


@pytest.mark.asyncio
async def test_update_to_taken_identifier_conflicts(db_session):
    await make_contact(db_session, name="Holder", instagram_id="taken")
    contact = await make_contact(db_session, name="Other", whatsapp_phone_number="+1")
    contact_id = contact.id

    with pytest.raises(ConflictError):
        await ContactService(db_session).update_contact(TENANT, contact_id, instagram_id="TAKEN")

    reloaded = await ContactRepository(db_session).get_by_id(TENANT, contact_id)
    assert reloaded.instagram_id is None


@pytest.mark.asyncio
async def test_retired_identifier_can_be_reused(db_session):
    a = await make_contact(db_session, name="A", whatsapp_phone_number="+1")
    b = await make_contact(db_session, name="B", instagram_id="ig-b")
    c = await make_contact(db_session, name="C", whatsapp_phone_number="+3")
    await ContactMergeService(db_session).merge(TENANT, b.id, a.id)
    service = ContactService(db_session)
    await service.update_contact(TENANT, a.id, instagram_id="ig-a")

    updated = await service.update_contact(TENANT, c.id, instagram_id="ig-b")

    assert updated.instagram_id == "ig-b"


@pytest.mark.asyncio
async def test_same_identifier_allowed_in_other_tenant(db_session):
    await make_contact(db_session, instagram_id="ig1")
    other = await make_contact(db_session, tenant_id=OTHER_TENANT, whatsapp_phone_number="+1")

    updated = await ContactService(db_session).update_contact(OTHER_TENANT, other.id, instagram_id="ig1")

    assert updated.instagram_id == "ig1"


@pytest.mark.asyncio
async def test_unknown_field_is_rejected(db_session):
    contact = await make_contact(db_session, whatsapp_phone_number="+1")

    with pytest.raises(InvalidArgumentError):
        await ContactService(db_session).update_contact(TENANT, contact.id, status="inactive")


@pytest.mark.asyncio
async def test_update_retired_contact_is_not_found(db_session):
    a = await make_contact(db_session, name="A", whatsapp_phone_number="+1")
    b = await make_contact(db_session, name="B", whatsapp_phone_number="+2")
    await ContactMergeService(db_session).merge(TENANT, b.id, a.id)

    with pytest.raises(NotFoundError):
        await ContactService(db_session).update_contact(TENANT, b.id, notes="hello")


@pytest.mark.asyncio
async def test_get_contact_returns_retired_contacts(db_session):
    a = await make_contact(db_session, name="A", whatsapp_phone_number="+1")
    b = await make_contact(db_session, name="B", whatsapp_phone_number="+2")
    await ContactMergeService(db_session).merge(TENANT, b.id, a.id)

    retired = await ContactService(db_session).get_contact(TENANT, b.id)

    assert retired.merged_into_contact_id == a.id
    with pytest.raises(NotFoundError):
        await ContactService(db_session).get_contact(OTHER_TENANT, a.id)


@pytest.mark.asyncio
async def test_list_contacts_excludes_retired(db_session):
    a = await make_contact(db_session, name="A", whatsapp_phone_number="+1")
    b = await make_contact(db_session, name="B", whatsapp_phone_number="+2")
    await ContactMergeService(db_session).merge(TENANT, b.id, a.id)

    contacts = await ContactService(db_session).list_contacts(TENANT)

    assert [c.id for c in contacts] == [a.id]


@pytest.mark.asyncio
@pytest.mark.parametrize("name", [None, "", "   "])
async def test_blank_name_is_rejected(db_session, name):
    contact = await make_contact(db_session, name="Keep Me", whatsapp_phone_number="+1")
    contact_id = contact.id

    with pytest.raises(InvalidArgumentError):
        await ContactService(db_session).update_contact(TENANT, contact_id, name=name)

    reloaded = await ContactRepository(db_session).get_by_id(TENANT, contact_id)
    assert reloaded.name == "Keep Me"
