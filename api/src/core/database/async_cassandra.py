"""Async Cassandra session for the LifeCherry API.

cassandra-asyncio-driver adds ``session.aexecute()`` on top of the regular
driver, so services ``await`` their queries. Connecting is still blocking
and happens once at startup, together with creating the keyspace and every
table the services prepare statements against.
"""

import structlog
from cassandra.auth import PlainTextAuthProvider
from cassandra.policies import DCAwareRoundRobinPolicy, TokenAwarePolicy
from cassandra_asyncio.cluster import Cluster

from src.audit.models import AUDIT_TABLES_CQL
from src.comments.models import COMMENTS_TABLES_CQL
from src.config.settings import Settings, get_settings
from src.lessons.models import LESSONS_TABLES_CQL
from src.users.models import USERS_TABLES_CQL


logger = structlog.get_logger(__name__)


# (name, table templates) in creation order
SCHEMA_GROUPS: list[tuple[str, list[str]]] = [
    ("users", USERS_TABLES_CQL),
    ("lessons", LESSONS_TABLES_CQL),
    ("comments", COMMENTS_TABLES_CQL),
    ("audit", AUDIT_TABLES_CQL),
]


class AsyncCassandraConnection:
    """Process-wide cluster and session holder."""

    _cluster: Cluster | None = None
    _session = None  # cassandra_asyncio Session

    @classmethod
    def connect(cls, settings: Settings | None = None):
        """Connect to the cluster, reusing an open session.

        Raises:
            ConnectionError: If no contact point answers
        """
        if cls._session is not None:
            return cls._session

        settings = settings or get_settings()

        auth_provider = None
        if settings.cassandra_username and settings.cassandra_password:
            auth_provider = PlainTextAuthProvider(
                username=settings.cassandra_username,
                password=settings.cassandra_password,
            )

        cls._cluster = Cluster(
            contact_points=settings.cassandra_hosts,
            port=settings.cassandra_port,
            auth_provider=auth_provider,
            protocol_version=settings.cassandra_protocol_version,
            load_balancing_policy=TokenAwarePolicy(
                DCAwareRoundRobinPolicy(local_dc=settings.cassandra_datacenter)
            ),
            connect_timeout=settings.cassandra_connect_timeout,
        )

        try:
            cls._session = cls._cluster.connect()
        except Exception as e:
            logger.error(
                "cassandra_connection_failed",
                hosts=settings.cassandra_hosts,
                error=str(e),
            )
            cls._cluster.shutdown()
            cls._cluster = None
            raise ConnectionError(f"Failed to connect to Cassandra: {e}") from e

        # Bounds every aexecute(); LWT retries in the comment service sit on top
        cls._session.default_timeout = settings.cassandra_request_timeout
        logger.info(
            "cassandra_connected",
            hosts=settings.cassandra_hosts,
            port=settings.cassandra_port,
            datacenter=settings.cassandra_datacenter,
        )
        return cls._session

    @classmethod
    def disconnect(cls) -> None:
        """Shut down the session and the cluster, if open."""
        if cls._session is not None:
            cls._session.shutdown()
            cls._session = None

        if cls._cluster is not None:
            cls._cluster.shutdown()
            cls._cluster = None
            logger.info("cassandra_disconnected")


def keyspace_replication(settings: Settings) -> str:
    """Replication map for ``CREATE KEYSPACE``.

    >>> s = Settings(_env_file=None, cassandra_replication_factor=2)
    >>> keyspace_replication(s)
    "{'class': 'SimpleStrategy', 'replication_factor': 2}"
    """
    factor = settings.cassandra_replication_factor
    if settings.cassandra_datacenter:
        return (
            "{'class': 'NetworkTopologyStrategy', "
            f"'{settings.cassandra_datacenter}': {factor}}}"
        )
    return f"{{'class': 'SimpleStrategy', 'replication_factor': {factor}}}"


async def init_async_keyspace(session, settings: Settings) -> None:
    """Create the keyspace if it does not exist."""
    keyspace = settings.cassandra_keyspace
    await session.aexecute(
        f"CREATE KEYSPACE IF NOT EXISTS {keyspace} "
        f"WITH replication = {keyspace_replication(settings)} "
        "AND durable_writes = true"
    )
    logger.info("keyspace_ready", keyspace=keyspace)


async def init_async_tables(session, keyspace: str) -> None:
    """Create every table the API reads or writes."""
    for name, templates in SCHEMA_GROUPS:
        for cql_template in templates:
            await session.aexecute(cql_template.format(keyspace=keyspace))
        logger.info("tables_ready", group=name, keyspace=keyspace)


async def init_async_cassandra():
    """Connect and make sure the schema exists.

    Returns:
        Session with aexecute() support, bound to the application keyspace
    """
    settings = get_settings()

    session = AsyncCassandraConnection.connect(settings)

    await init_async_keyspace(session, settings)
    session.set_keyspace(settings.cassandra_keyspace)
    await init_async_tables(session, settings.cassandra_keyspace)

    return session


async def shutdown_async_cassandra() -> None:
    """Close the shared Cassandra session."""
    AsyncCassandraConnection.disconnect()
