"""Tests for environment configuration."""
import pytest

from havasi_bot.config import Config


@pytest.fixture
def env(monkeypatch):
    for name in ("BOT_TOKEN", "TOKEN", "DATABASE_URL", "ALLOWED_IDS", "API_BASE_URL", "PAGE_SIZE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("BOT_TOKEN", "123456:ABCDEFGHIJ")
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db/havasi")
    return monkeypatch


def test_reads_environment(env):
    env.setenv("API_BASE_URL", "https://api.havasi.example/")
    env.setenv("ALLOWED_IDS", "11, 22,abc,")
    env.setenv("PAGE_SIZE", "5")

    config = Config.from_env()

    assert config.API_BASE_URL == "https://api.havasi.example"
    assert config.ALLOWED_IDS == (11, 22)
    assert config.PAGE_SIZE == 5
    assert config.SENT_PAGE_SIZE == 20


def test_token_alias(env):
    env.delenv("BOT_TOKEN")
    env.setenv("TOKEN", "999:XYZ")

    assert Config.from_env().BOT_TOKEN == "999:XYZ"


def test_missing_database_url(env):
    env.delenv("DATABASE_URL")

    with pytest.raises(RuntimeError, match="DATABASE_URL"):
        Config.from_env()


def test_allowed_ids(env):
    assert Config.from_env().is_allowed(1) is True

    env.setenv("ALLOWED_IDS", "42")
    config = Config.from_env()
    assert config.is_allowed(42) is True
    assert config.is_allowed(7) is False
    assert config.is_allowed(None) is False


def test_summary_masks_secrets(env):
    summary = Config.from_env().masked_summary()

    assert summary["BOT_TOKEN"] == "123456...GHIJ"
    assert summary["DATABASE_URL"] == "***"
