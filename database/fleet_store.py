"""
Fleet Store

Keyed-record storage for aircraft and their components, as consumed by
the propagation coordinator. MongoFleetStore is the production backend;
any other backend only has to implement FleetStore.

Collections: aircrafts, components
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List
import logging
import uuid

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from models.aircraft import Aircraft, AircraftCreate
from models.component import Component
from services.errors import ConcurrentUpdateError, NotFoundError, StorageError

logger = logging.getLogger(__name__)


def new_record_id() -> str:
    return uuid.uuid4().hex


class FleetStore(ABC):
    """Storage collaborator of the semaforo core"""

    @abstractmethod
    async def get_aircraft(self, aircraft_id: str) -> Aircraft:
        """Raises NotFoundError when absent"""

    @abstractmethod
    async def list_components(self, aircraft_id: str) -> List[Component]:
        """All components owned by the aircraft"""

    @abstractmethod
    async def save_aircraft(self, aircraft: Aircraft, expected_version: int) -> None:
        """
        Persist the aircraft only if the stored version still equals
        expected_version. Raises ConcurrentUpdateError otherwise and
        StorageError on any other persistence failure.
        """

    @abstractmethod
    async def save_component(self, component: Component) -> None:
        """Raises StorageError on persistence failure"""

    @abstractmethod
    async def get_component(self, component_id: str) -> Component:
        """Raises NotFoundError when absent"""

    @abstractmethod
    async def create_aircraft(self, data: AircraftCreate) -> Aircraft:
        pass

    @abstractmethod
    async def create_component(self, component: Component) -> None:
        """Insert a fully built component record"""


class MongoFleetStore(FleetStore):
    """FleetStore backed by MongoDB through motor"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def get_aircraft(self, aircraft_id: str) -> Aircraft:
        try:
            doc = await self.db.aircrafts.find_one({"_id": aircraft_id})
        except PyMongoError as e:
            raise StorageError(f"Failed to load aircraft {aircraft_id}: {e}") from e

        if not doc:
            raise NotFoundError("Aircraft", aircraft_id)
        return Aircraft(**doc)

    async def list_components(self, aircraft_id: str) -> List[Component]:
        try:
            cursor = self.db.components.find({"aircraft_id": aircraft_id}).sort("created_at", 1)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise StorageError(f"Failed to list components of {aircraft_id}: {e}") from e

        return [Component(**doc) for doc in docs]

    async def save_aircraft(self, aircraft: Aircraft, expected_version: int) -> None:
        update_data = aircraft.model_dump(by_alias=True, exclude={"id", "created_at"})

        try:
            result = await self.db.aircrafts.update_one(
                {"_id": aircraft.id, "version": expected_version},
                {"$set": update_data}
            )
        except PyMongoError as e:
            raise StorageError(f"Failed to save aircraft {aircraft.id}: {e}") from e

        if result.matched_count == 0:
            raise ConcurrentUpdateError(
                f"Aircraft {aircraft.id} changed since version {expected_version}"
            )

    async def save_component(self, component: Component) -> None:
        update_data = component.model_dump(by_alias=True, exclude={"id", "created_at"})

        try:
            result = await self.db.components.update_one(
                {"_id": component.id},
                {"$set": update_data}
            )
        except PyMongoError as e:
            raise StorageError(f"Failed to save component {component.id}: {e}") from e

        if result.matched_count == 0:
            raise StorageError(f"Component {component.id} no longer exists")

    async def get_component(self, component_id: str) -> Component:
        try:
            doc = await self.db.components.find_one({"_id": component_id})
        except PyMongoError as e:
            raise StorageError(f"Failed to load component {component_id}: {e}") from e

        if not doc:
            raise NotFoundError("Component", component_id)
        return Component(**doc)

    async def create_aircraft(self, data: AircraftCreate) -> Aircraft:
        now = datetime.utcnow()
        aircraft = Aircraft(
            _id=new_record_id(),
            **data.model_dump(),
            created_at=now,
            updated_at=now
        )

        try:
            await self.db.aircrafts.insert_one(aircraft.model_dump(by_alias=True))
        except PyMongoError as e:
            raise StorageError(f"Failed to create aircraft {data.registration}: {e}") from e

        logger.info(f"Aircraft {aircraft.registration} created ({aircraft.id})")
        return aircraft

    async def create_component(self, component: Component) -> None:
        try:
            await self.db.components.insert_one(component.model_dump(by_alias=True))
        except PyMongoError as e:
            raise StorageError(f"Failed to create component {component.name}: {e}") from e

        logger.info(f"Component {component.name} created on aircraft {component.aircraft_id}")
