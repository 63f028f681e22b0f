"""Writes domain events and keeps the read projections in step with them."""

import json
from datetime import UTC, datetime
from uuid import uuid4

import aiosqlite
import structlog

from cryptotrend.database import write_lock
from cryptotrend.event_store.models import AggregateType, Event, EventType
from cryptotrend.event_store.projections import ProjectionEngine
from cryptotrend.event_store.repository import EventRepository
from cryptotrend.exceptions import ConflictError

logger = structlog.get_logger()


class EventStoreService:
    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db
        self._events = EventRepository(db)
        self._projections = ProjectionEngine(db)
        self._lock = write_lock(db)

    async def append_event(
        self,
        aggregate_type: AggregateType,
        aggregate_id: str,
        event_type: EventType,
        event_data: dict,
        user_id: str | None = None,
        idempotency_key: str | None = None,
    ) -> Event:
        """Store one event and project it; both land in a single commit."""
        metadata: dict = {}
        if user_id is not None:
            metadata["user_id"] = user_id
        if idempotency_key is not None:
            metadata["idempotency_key"] = idempotency_key

        async with self._lock:
            if idempotency_key is not None and await self._events.has_idempotency_key(
                idempotency_key
            ):
                raise ConflictError(f"Request '{idempotency_key}' was already processed")

            event = Event(
                event_id=str(uuid4()),
                aggregate_type=aggregate_type,
                aggregate_id=aggregate_id,
                event_type=event_type,
                event_data=json.dumps(event_data, default=str),
                metadata=json.dumps(metadata) if metadata else None,
                version=await self._events.next_version(aggregate_id),
                created_at=datetime.now(UTC).isoformat(),
            )

            try:
                await self._events.insert(event)
                await self._projections.project(event)
            except aiosqlite.IntegrityError as exc:
                await self._db.rollback()
                logger.warning(
                    "event_conflict", event_type=event_type, aggregate_id=aggregate_id, error=str(exc)
                )
                raise ConflictError(f"{aggregate_type} '{aggregate_id}' conflicts with stored data") from exc
            except Exception:
                await self._db.rollback()
                logger.error("event_projection_failed", event_type=event_type, aggregate_id=aggregate_id)
                raise
            await self._db.commit()

        logger.debug(
            "event_appended",
            aggregate_type=aggregate_type,
            aggregate_id=aggregate_id,
            event_type=event_type,
            version=event.version,
        )
        return event

    async def history(self, aggregate_type: AggregateType, aggregate_id: str) -> list[Event]:
        return await self._events.list_for_aggregate(aggregate_type, aggregate_id)
