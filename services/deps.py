"""
Service dependencies for the semaforo API
Builds the propagation coordinator shared by the routes
"""

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from config import get_settings
from database.fleet_store import FleetStore
from database.mongodb import get_database, get_fleet_store
from services.audit import LoggingAuditSink, MongoAuditSink
from services.propagation import PropagationCoordinator, aircraft_locks

async def get_coordinator(
    store: FleetStore = Depends(get_fleet_store),
    db: AsyncIOMotorDatabase = Depends(get_database)
) -> PropagationCoordinator:
    """Coordinator wired to MongoDB with logging + Mongo audit sinks"""
    settings = get_settings()
    return PropagationCoordinator(
        store,
        audit_sinks=[LoggingAuditSink(), MongoAuditSink(db)],
        allow_decrease=settings.allow_usage_decrease,
        concurrency=settings.propagation_concurrency,
        locks=aircraft_locks
    )
