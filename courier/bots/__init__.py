"""XMPP bots."""
