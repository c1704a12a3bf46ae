# /// script
# requires-python = ">=3.12"
# dependencies = ["pytest>=7.0"]
# ///
"""Tests for environment configuration."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

import config


class TestConfig:
    def test_default_base_url(self, monkeypatch):
        monkeypatch.delenv(config.API_URL_ENV, raising=False)
        assert config.get_base_url() == config.DEFAULT_API_URL

    def test_base_url_trailing_slash(self, monkeypatch):
        monkeypatch.setenv(config.API_URL_ENV, "http://host:9000/api/")
        assert config.get_base_url() == "http://host:9000/api"

    def test_token(self, monkeypatch):
        monkeypatch.setenv(config.API_TOKEN_ENV, "abc")
        assert config.get_token() == "abc"
        assert config.require_token() == "abc"

    def test_require_token_exits(self, monkeypatch, capsys):
        monkeypatch.delenv(config.API_TOKEN_ENV, raising=False)
        with pytest.raises(SystemExit) as exc_info:
            config.require_token()
        assert exc_info.value.code == 1
        assert config.API_TOKEN_ENV in capsys.readouterr().err

    @pytest.mark.parametrize("raw, expected", [
        ("2.5", 2.5),
        ("", config.DEFAULT_POLL_INTERVAL),
        ("soon", config.DEFAULT_POLL_INTERVAL),
        ("0", config.DEFAULT_POLL_INTERVAL),
        ("-3", config.DEFAULT_POLL_INTERVAL),
    ])
    def test_poll_interval(self, monkeypatch, raw, expected):
        monkeypatch.setenv(config.POLL_INTERVAL_ENV, raw)
        assert config.get_poll_interval() == expected
