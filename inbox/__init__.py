"""Omnichannel inbox core: contact identity, conversations and contact merge."""
