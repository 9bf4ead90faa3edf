"""Tests for keyspace and schema creation."""

from unittest.mock import AsyncMock, Mock

import pytest

from src.config.settings import Settings
from src.core.database.async_cassandra import (
    SCHEMA_GROUPS,
    init_async_keyspace,
    init_async_tables,
    keyspace_replication,
)


def test_simple_strategy_by_default() -> None:
    settings = Settings(_env_file=None)
    assert keyspace_replication(settings) == (
        "{'class': 'SimpleStrategy', 'replication_factor': 1}"
    )


def test_network_topology_with_datacenter() -> None:
    settings = Settings(
        _env_file=None, cassandra_datacenter="dc1", cassandra_replication_factor=3
    )
    assert keyspace_replication(settings) == (
        "{'class': 'NetworkTopologyStrategy', 'dc1': 3}"
    )


@pytest.mark.asyncio
async def test_init_keyspace() -> None:
    session = Mock()
    session.aexecute = AsyncMock()
    settings = Settings(_env_file=None, cassandra_keyspace="lc_test")

    await init_async_keyspace(session, settings)

    cql = session.aexecute.await_args.args[0]
    assert cql.startswith("CREATE KEYSPACE IF NOT EXISTS lc_test ")
    assert "SimpleStrategy" in cql


@pytest.mark.asyncio
async def test_init_tables_formats_keyspace() -> None:
    session = Mock()
    session.aexecute = AsyncMock()

    await init_async_tables(session, "lc_test")

    statements = [c.args[0] for c in session.aexecute.await_args_list]
    assert len(statements) == sum(len(t) for _, t in SCHEMA_GROUPS)
    assert all("lc_test." in cql for cql in statements)
    assert any("lc_test.comments_by_lesson" in cql for cql in statements)
