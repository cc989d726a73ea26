"""Supported messaging channels and identifier handling."""

from enum import Enum

from inbox.core.errors import InvalidArgumentError


class Channel(str, Enum):
    """Messaging platform a contact reaches us through."""

    WHATSAPP = "whatsapp"
    INSTAGRAM = "instagram"
    MESSENGER = "messenger"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def contact_field(self) -> str:
        """Name of the Contact column holding this channel's identifier."""
        return _CONTACT_FIELDS[self]


_DISPLAY_NAMES = {
    Channel.WHATSAPP: "WhatsApp",
    Channel.INSTAGRAM: "Instagram",
    Channel.MESSENGER: "Messenger",
}

_CONTACT_FIELDS = {
    Channel.WHATSAPP: "whatsapp_phone_number",
    Channel.INSTAGRAM: "instagram_id",
    Channel.MESSENGER: "messenger_id",
}

IDENTIFIER_FIELDS: tuple[str, ...] = tuple(_CONTACT_FIELDS.values())


def parse_channel(value: "str | Channel") -> Channel:
    """Convert a channel name to a Channel.

    Raises:
        InvalidArgumentError: If the channel is not supported
    """
    if isinstance(value, Channel):
        return value
    try:
        return Channel(str(value).strip().lower())
    except ValueError:
        raise InvalidArgumentError(f"Unsupported channel: {value!r}") from None


def normalize_identifier(raw_identifier: str | None) -> str:
    """Trim and lower-case a platform identifier.

    Raises:
        InvalidArgumentError: If the identifier is empty
    """
    identifier = (raw_identifier or "").strip().lower()
    if not identifier:
        raise InvalidArgumentError("Identifier must not be empty")
    return identifier


def placeholder_name(channel: Channel, identifier: str) -> str:
    """Synthesized display name for a contact we know nothing about."""
    return f"{channel.display_name} User {identifier}"
