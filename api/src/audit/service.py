"""Audit log service.

Writing is best-effort: a failed audit write is logged and swallowed so the
operation that triggered it still succeeds.
"""

from typing import TYPE_CHECKING, Any

import structlog

from .models import AuditAction, ChangeLog, TargetType, create_change_log


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)

_INSERT_COLUMNS = """
    (log_id, actor_email, actor_name, actor_role, target_type, target_id,
     target_owner_email, action, summary, metadata, created_at)
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


class AuditService:
    """Service for recording and listing audit entries."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        ks = self.keyspace

        self._insert_by_target_type = self.session.prepare(
            f"INSERT INTO {ks}.change_log_by_target_type {_INSERT_COLUMNS}"
        )
        self._insert_by_actor = self.session.prepare(
            f"INSERT INTO {ks}.change_log_by_actor {_INSERT_COLUMNS}"
        )
        self._insert_by_owner = self.session.prepare(
            f"INSERT INTO {ks}.change_log_by_owner {_INSERT_COLUMNS}"
        )

        self._list_by_target_type = self.session.prepare(f"""
            SELECT * FROM {ks}.change_log_by_target_type
            WHERE target_type = ?
            LIMIT ?
        """)
        self._list_all_by_target_type = self.session.prepare(f"""
            SELECT * FROM {ks}.change_log_by_target_type
            WHERE target_type = ?
        """)
        self._count_by_target_type = self.session.prepare(f"""
            SELECT COUNT(*) FROM {ks}.change_log_by_target_type
            WHERE target_type = ?
        """)
        self._list_by_actor = self.session.prepare(f"""
            SELECT * FROM {ks}.change_log_by_actor
            WHERE actor_email = ?
        """)
        self._list_by_owner = self.session.prepare(f"""
            SELECT * FROM {ks}.change_log_by_owner
            WHERE target_owner_email = ?
        """)

    # ==========================================================================
    # Recording
    # ==========================================================================

    async def log_change(
        self,
        actor_email: str | None,
        target_type: TargetType | str,
        action: AuditAction | str,
        actor_name: str | None = None,
        actor_role: str | None = None,
        target_id: str | None = None,
        target_owner_email: str | None = None,
        summary: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ChangeLog | None:
        """Record an audit entry.

        Returns:
            The stored entry, or None when there is no actor or the write failed
        """
        if not actor_email or not actor_email.strip():
            return None

        try:
            entry = create_change_log(
                actor_email=actor_email,
                target_type=target_type,
                action=action,
                actor_name=actor_name,
                actor_role=actor_role,
                target_id=target_id,
                target_owner_email=target_owner_email,
                summary=summary,
                metadata=metadata,
            )
            values = entry.values()

            await self.session.aexecute(self._insert_by_target_type, values)
            await self.session.aexecute(self._insert_by_actor, values)
            if entry.target_owner_email:
                await self.session.aexecute(self._insert_by_owner, values)
        except Exception as e:
            logger.warning(
                "audit_log_failed",
                error=str(e),
                error_type=type(e).__name__,
                target_type=str(target_type),
                target_id=target_id,
                action=str(action),
            )
            return None

        logger.debug(
            "audit_logged",
            log_id=str(entry.log_id),
            target_type=entry.target_type,
            action=entry.action,
        )
        return entry

    # ==========================================================================
    # Listing
    # ==========================================================================

    async def list_admin_changes(
        self,
        page: int,
        limit: int,
        target_type: TargetType | None = None,
        actor_role: str | None = None,
    ) -> tuple[int, list[ChangeLog]]:
        """List all changes newest first, optionally narrowed.

        Each target type is its own partition, so the listing reads one
        window per type and merges. Filtering by actor role has to read
        the full partitions to keep ``total`` exact.

        Returns:
            Tuple of (total matching entries, entries on the requested page)
        """
        types = [target_type] if target_type else list(TargetType)
        window = page * limit

        total = 0
        entries: list[ChangeLog] = []
        if actor_role is None:
            for tt in types:
                count = await self.session.aexecute(
                    self._count_by_target_type, [tt.value]
                )
                row = count.one()
                total += row.count if row else 0
            if (page - 1) * limit >= total:
                return total, []
            for tt in types:
                rows = await self.session.aexecute(
                    self._list_by_target_type, [tt.value, window]
                )
                entries.extend(ChangeLog.from_row(r) for r in rows)
        else:
            for tt in types:
                rows = await self.session.aexecute(
                    self._list_all_by_target_type, [tt.value]
                )
                matching = [
                    e
                    for e in (ChangeLog.from_row(r) for r in rows)
                    if e.actor_role == actor_role
                ]
                total += len(matching)
                entries.extend(matching)

        return total, _page_of(entries, page, limit)

    async def list_user_changes(
        self,
        email: str,
        page: int,
        limit: int,
        target_type: TargetType | None = None,
    ) -> tuple[int, list[ChangeLog]]:
        """List changes where the user is the actor or the target owner.

        Returns:
            Tuple of (total matching entries, entries on the requested page)
        """
        email = email.lower()
        by_id: dict[Any, ChangeLog] = {}

        for statement in (self._list_by_actor, self._list_by_owner):
            rows = await self.session.aexecute(statement, [email])
            for row in rows:
                entry = ChangeLog.from_row(row)
                by_id.setdefault(entry.log_id, entry)

        entries = list(by_id.values())
        if target_type is not None:
            entries = [e for e in entries if e.target_type == target_type.value]

        return len(entries), _page_of(entries, page, limit)


def _page_of(entries: list[ChangeLog], page: int, limit: int) -> list[ChangeLog]:
    entries.sort(key=lambda e: e.created_at, reverse=True)
    start = (page - 1) * limit
    return entries[start : start + limit]
