"""Tests for channel parsing and identifier normalization."""

import pytest

from inbox.core.channels import Channel, normalize_identifier, parse_channel, placeholder_name
from inbox.core.errors import InvalidArgumentError


def test_parse_channel_accepts_names_case_insensitively():
    assert parse_channel("WhatsApp") is Channel.WHATSAPP
    assert parse_channel(" instagram ") is Channel.INSTAGRAM
    assert parse_channel(Channel.MESSENGER) is Channel.MESSENGER


def test_parse_channel_rejects_unsupported():
    with pytest.raises(InvalidArgumentError):
        parse_channel("telegram")


def test_normalize_identifier_trims_and_lowercases():
    assert normalize_identifier("  IG_User.123 ") == "ig_user.123"
    assert normalize_identifier("+5491100000000") == "+5491100000000"


@pytest.mark.parametrize("raw", ["", "   ", None])
def test_normalize_identifier_rejects_empty(raw):
    with pytest.raises(InvalidArgumentError):
        normalize_identifier(raw)


def test_invalid_argument_is_a_value_error():
    with pytest.raises(ValueError):
        normalize_identifier("")


def test_placeholder_name_uses_channel_display_name():
    assert placeholder_name(Channel.WHATSAPP, "+549") == "WhatsApp User +549"
    assert placeholder_name(Channel.MESSENGER, "psid1") == "Messenger User psid1"
