"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from src.config.settings import Settings


def test_comment_defaults() -> None:
    settings = Settings(_env_file=None)
    assert settings.comment_max_length == 5000
    assert settings.comment_write_max_retries == 5
    assert settings.comments_page_size_max == 100
    assert settings.cassandra_keyspace == "lifecherry"


def test_environment_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "production")
    settings = Settings(_env_file=None)
    assert settings.is_production
    assert not settings.is_development
    assert not settings.is_testing


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COMMENTS_PER_MINUTE", "3")
    monkeypatch.setenv("CASSANDRA_HOSTS", '["db1", "db2"]')
    settings = Settings(_env_file=None)
    assert settings.comments_per_minute == 3
    assert settings.cassandra_hosts == ["db1", "db2"]


def test_rejects_unknown_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "moon")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_write_retries_must_be_positive(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COMMENT_WRITE_MAX_RETRIES", "0")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)
