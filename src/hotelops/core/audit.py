"""Audit logging service for privileged operations.

Audit records are immutable, append-only logs of platform-admin actions,
used for forensic review and operator risk scoring.

Writes go through their own session and transaction. A failed write is
logged and reported as ``None``; it never raises into the caller, so the
primary operation's outcome is unaffected.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import ColumnElement, and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.requests import Request

from hotelops.core.auth import AuthContext
from hotelops.core.security import get_client_ip
from hotelops.db.models.audit import AuditAction, AuditEntityType, AuditLog

logger = structlog.get_logger(__name__)

MAX_QUERY_LIMIT = 1000


@dataclass
class AuditEntry:
    """One privileged action to record."""

    actor_id: UUID
    actor_role: str
    action: str
    entity_type: str
    entity_id: UUID | None = None
    target_user_id: UUID | None = None
    target_hotel_id: UUID | None = None
    ip: str | None = None
    user_agent: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class AuditFilter:
    """Filters for querying audit records.

    ``visible_to`` restricts results to records a delegated operator may
    see: their own actions, or actions targeting one of their hotels.
    """

    actor_id: UUID | None = None
    action: str | None = None
    entity_type: str | None = None
    target_hotel_id: UUID | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    visible_to: tuple[UUID, Sequence[UUID]] | None = None

    def criteria(self) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = []
        if self.actor_id is not None:
            conditions.append(AuditLog.actor_id == self.actor_id)
        if self.action:
            conditions.append(AuditLog.action == self.action)
        if self.entity_type:
            conditions.append(AuditLog.entity_type == self.entity_type)
        if self.target_hotel_id is not None:
            conditions.append(AuditLog.target_hotel_id == self.target_hotel_id)
        if self.start_date is not None:
            conditions.append(AuditLog.created_at >= self.start_date)
        if self.end_date is not None:
            conditions.append(AuditLog.created_at <= self.end_date)
        if self.visible_to is not None:
            operator_id, hotel_ids = self.visible_to
            visibility = [AuditLog.actor_id == operator_id]
            if hotel_ids:
                visibility.append(AuditLog.target_hotel_id.in_(list(hotel_ids)))
            conditions.append(or_(*visibility))
        return conditions


class AuditLogger:
    """Service for writing and querying audit records."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """Initialize with the factory used to open audit sessions.

        Args:
            session_factory: Factory producing independent async sessions
        """
        self._session_factory = session_factory

    async def write(self, entry: AuditEntry) -> AuditLog | None:
        """Persist one audit record in its own transaction.

        Returns:
            The stored record, or None when the write failed
        """
        try:
            async with self._session_factory() as session:
                record = AuditLog(
                    actor_id=entry.actor_id,
                    actor_role=entry.actor_role,
                    action=entry.action,
                    entity_type=entry.entity_type,
                    entity_id=entry.entity_id,
                    target_user_id=entry.target_user_id,
                    target_hotel_id=entry.target_hotel_id,
                    ip=entry.ip,
                    user_agent=entry.user_agent,
                    details=dict(entry.metadata),
                )
                session.add(record)
                await session.commit()
                return record
        except Exception:
            logger.exception(
                "audit_write_failed",
                action=entry.action,
                actor_id=str(entry.actor_id),
                entity_type=entry.entity_type,
            )
            return None

    async def log_action(
        self,
        auth: AuthContext,
        action: AuditAction | str,
        entity_type: AuditEntityType | str,
        request: Request | None = None,
        entity_id: UUID | None = None,
        target_user_id: UUID | None = None,
        target_hotel_id: UUID | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLog | None:
        """Record an action performed by ``auth``, with request metadata.

        Example:
            >>> await audit.log_action(
            ...     auth,
            ...     AuditAction.HOTEL_CREATE,
            ...     AuditEntityType.HOTEL,
            ...     request=request,
            ...     entity_id=hotel.id,
            ...     target_hotel_id=hotel.id,
            ... )
        """
        if isinstance(action, AuditAction):
            action = action.value
        if isinstance(entity_type, AuditEntityType):
            entity_type = entity_type.value

        entry = AuditEntry(
            actor_id=auth.user_id,
            actor_role=auth.role,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            target_user_id=target_user_id,
            target_hotel_id=target_hotel_id,
            ip=get_client_ip(request) if request is not None else None,
            user_agent=request.headers.get("User-Agent") if request is not None else None,
            metadata=metadata or {},
        )
        return await self.write(entry)

    async def query(
        self,
        filters: AuditFilter | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[AuditLog], int]:
        """Query audit records, newest first.

        Returns:
            (page of records, total matching count)
        """
        conditions = (filters or AuditFilter()).criteria()
        where = and_(*conditions) if conditions else None

        query = select(AuditLog).order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        count_query = select(func.count()).select_from(AuditLog)
        if where is not None:
            query = query.where(where)
            count_query = count_query.where(where)
        query = query.limit(min(limit, MAX_QUERY_LIMIT)).offset(offset)

        async with self._session_factory() as session:
            total = (await session.execute(count_query)).scalar_one()
            records = list((await session.execute(query)).scalars().all())
        return records, total

    async def count_by(
        self,
        column: str,
        filters: AuditFilter | None = None,
        limit: int = 10,
    ) -> list[tuple[str, int]]:
        """Most frequent values of ``column`` (e.g. "action") among matches."""
        group_column = getattr(AuditLog, column)
        conditions = (filters or AuditFilter()).criteria()
        count = func.count().label("count")
        query = (
            select(group_column, count)
            .group_by(group_column)
            .order_by(count.desc(), group_column)
            .limit(limit)
        )
        if conditions:
            query = query.where(*conditions)

        async with self._session_factory() as session:
            rows = (await session.execute(query)).all()
        return [(str(value), int(total)) for value, total in rows]
