"""Field merge policy used when two contacts are consolidated."""

from typing import Any, Mapping

# Contact attributes carried over by a merge. Status, tenant, ids and
# timestamps are owned by the merge itself and never coalesced.
MERGEABLE_FIELDS: tuple[str, ...] = (
    "name",
    "email",
    "whatsapp_phone_number",
    "instagram_id",
    "messenger_id",
    "crm_partner_id",
    "crm_lead_id",
    "crm_stage",
    "sync_status",
    "assigned_staff_id",
    "notes",
    "observations",
    "attributes",
    "last_interaction_at",
)


def is_absent(value: Any) -> bool:
    """None and blank strings count as missing; False and 0 are real values."""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def merge_fields(from_values: Mapping[str, Any], to_values: Mapping[str, Any]) -> dict[str, Any]:
    """Right-biased coalesce of two attribute maps.

    For every key, ``to_values`` wins when it holds a value, otherwise the
    ``from_values`` value is used. Nested mappings merge key-by-key under
    the same rule, so a populated target field is never erased by the
    source.
    """
    merged: dict[str, Any] = {}
    for key in list(to_values) + [k for k in from_values if k not in to_values]:
        to_value = to_values.get(key)
        from_value = from_values.get(key)
        if isinstance(to_value, Mapping) and isinstance(from_value, Mapping):
            merged[key] = merge_fields(from_value, to_value)
        elif is_absent(to_value):
            merged[key] = from_value
        else:
            merged[key] = to_value
    return merged


def contact_values(contact: Any) -> dict[str, Any]:
    """Snapshot the mergeable attributes of a contact."""
    return {field: getattr(contact, field) for field in MERGEABLE_FIELDS}
