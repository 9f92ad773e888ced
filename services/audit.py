"""
Usage update audit sinks

Each usage update emits one PropagationEvent. Sinks only record it:
a failing sink is logged and never fails the update that produced it.
"""

from typing import Iterable
from motor.motor_asyncio import AsyncIOMotorDatabase
import logging

from models.propagation import PropagationEvent

logger = logging.getLogger(__name__)


class AuditSink:
    """Receives the structured event of every usage update"""

    async def record(self, event: PropagationEvent) -> None:
        raise NotImplementedError


class LoggingAuditSink(AuditSink):
    async def record(self, event: PropagationEvent) -> None:
        logger.info(
            f"Usage update aircraft={event.aircraft_id} delta={event.delta:+.1f} "
            f"reason={event.reason.value if event.reason else None} "
            f"updated={event.components_updated} failed={event.components_failed}"
        )


class MongoAuditSink(AuditSink):
    """Appends events to the usage_update_events collection"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def record(self, event: PropagationEvent) -> None:
        await self.db.usage_update_events.insert_one(event.model_dump())


async def emit_event(sinks: Iterable[AuditSink], event: PropagationEvent) -> None:
    for sink in sinks:
        try:
            await sink.record(event)
        except Exception as e:
            # Never fail an update due to audit log error
            logger.error(f"Failed to write audit event with {type(sink).__name__}: {e}")
