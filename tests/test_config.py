"""Tests for environment-driven configuration."""

from __future__ import annotations

import json
import os

import pytest

from courier.config import get_bridge_config, load_env
from courier.streaming import DEFAULT_CHUNK_SIZE

_VARS = (
    "XMPP_SERVER",
    "XMPP_DOMAIN",
    "XMPP_RECIPIENT",
    "COURIER_JID",
    "COURIER_PASSWORD",
    "COURIER_ALLOWED_JIDS",
    "COURIER_ALIASES_JSON",
    "COURIER_ALIASES_FILE",
    "COURIER_SESSION_TIMEOUT_S",
    "COURIER_CHUNK_SIZE",
    "COURIER_LONG_RUNNING_S",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


class TestLoadEnv:
    def test_reads_quoted_values_and_skips_comments(self, tmp_path, monkeypatch):
        monkeypatch.delenv("COURIER_TEST_A", raising=False)
        monkeypatch.delenv("COURIER_TEST_B", raising=False)
        env = tmp_path / ".env"
        env.write_text('# comment\nCOURIER_TEST_A="hello world"\n\nCOURIER_TEST_B = plain\nnot a pair\n')

        load_env(env)

        assert os.environ["COURIER_TEST_A"] == "hello world"
        assert os.environ["COURIER_TEST_B"] == "plain"

    def test_missing_file_is_ignored(self, tmp_path):
        load_env(tmp_path / "nope.env")


class TestBridgeConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("XMPP_SERVER", "chat.example.org")
        cfg = get_bridge_config()
        assert cfg.domain == "chat.example.org"
        assert cfg.jid == "courier@chat.example.org"
        assert cfg.allowed_jids == frozenset({"user@chat.example.org"})
        assert cfg.aliases == {}
        assert cfg.session_timeout_s == 86400
        assert cfg.chunk_size == DEFAULT_CHUNK_SIZE
        assert cfg.long_running_s == 120.0

    def test_allowed_jids_are_bare_and_lowercase(self, monkeypatch):
        monkeypatch.setenv("COURIER_ALLOWED_JIDS", "Alice@Example.org/phone, bob@example.org,")
        cfg = get_bridge_config()
        assert cfg.allowed_jids == frozenset({"alice@example.org", "bob@example.org"})

    def test_aliases_from_json(self, monkeypatch):
        monkeypatch.setenv("COURIER_ALIASES_JSON", json.dumps({"Web": "/srv/web", "empty": "", " ": "/x"}))
        assert get_bridge_config().aliases == {"web": "/srv/web"}

    def test_aliases_from_file(self, tmp_path, monkeypatch):
        path = tmp_path / "aliases.json"
        path.write_text(json.dumps({"api": "/srv/api"}))
        monkeypatch.setenv("COURIER_ALIASES_FILE", str(path))
        assert get_bridge_config().aliases == {"api": "/srv/api"}

    def test_invalid_aliases_fall_back_to_empty(self, monkeypatch):
        monkeypatch.setenv("COURIER_ALIASES_JSON", "[1, 2]")
        assert get_bridge_config().aliases == {}
        monkeypatch.setenv("COURIER_ALIASES_JSON", "{oops")
        assert get_bridge_config().aliases == {}

    def test_numeric_overrides(self, monkeypatch):
        monkeypatch.setenv("COURIER_SESSION_TIMEOUT_S", "90")
        monkeypatch.setenv("COURIER_CHUNK_SIZE", "500")
        monkeypatch.setenv("COURIER_LONG_RUNNING_S", "bogus")
        cfg = get_bridge_config()
        assert cfg.session_timeout_s == 90.0
        assert cfg.chunk_size == 500
        assert cfg.long_running_s == 120.0

    def test_nonpositive_chunk_size(self, monkeypatch):
        monkeypatch.setenv("COURIER_CHUNK_SIZE", "0")
        assert get_bridge_config().chunk_size == DEFAULT_CHUNK_SIZE
