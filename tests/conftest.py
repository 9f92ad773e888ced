"""
Shared fixtures: an in-memory FleetStore and record builders.

The in-memory store keeps deep copies so a test can only observe what
was actually persisted through the FleetStore interface.
"""

from datetime import datetime
from typing import Dict, List, Optional, Set

import pytest

from database.fleet_store import FleetStore, new_record_id
from models.aircraft import Aircraft, AircraftCreate
from models.component import Component
from models.threshold import ThresholdBoundaries, ThresholdConfig, ThresholdUnit
from services.audit import AuditSink
from services.errors import ConcurrentUpdateError, NotFoundError, StorageError
from services.semaforo import evaluate_component


class InMemoryFleetStore(FleetStore):
    """FleetStore test double with switchable failures"""

    def __init__(self):
        self.aircrafts: Dict[str, Aircraft] = {}
        self.components: Dict[str, Component] = {}
        self.failing_components: Set[str] = set()
        self.fail_aircraft_save = False
        self.aircraft_saves = 0
        self.component_saves = 0

    async def get_aircraft(self, aircraft_id: str) -> Aircraft:
        if aircraft_id not in self.aircrafts:
            raise NotFoundError("Aircraft", aircraft_id)
        return self.aircrafts[aircraft_id].model_copy(deep=True)

    async def list_components(self, aircraft_id: str) -> List[Component]:
        return [
            component.model_copy(deep=True)
            for component in self.components.values()
            if component.aircraft_id == aircraft_id
        ]

    async def save_aircraft(self, aircraft: Aircraft, expected_version: int) -> None:
        if self.fail_aircraft_save:
            raise StorageError(f"Simulated failure saving aircraft {aircraft.id}")
        stored = self.aircrafts.get(aircraft.id)
        if stored is None or stored.version != expected_version:
            raise ConcurrentUpdateError(f"Aircraft {aircraft.id} changed since version {expected_version}")
        self.aircrafts[aircraft.id] = aircraft.model_copy(deep=True)
        self.aircraft_saves += 1

    async def save_component(self, component: Component) -> None:
        if component.id in self.failing_components:
            raise StorageError(f"Simulated failure saving component {component.id}")
        if component.id not in self.components:
            raise StorageError(f"Component {component.id} no longer exists")
        self.components[component.id] = component.model_copy(deep=True)
        self.component_saves += 1

    async def get_component(self, component_id: str) -> Component:
        if component_id not in self.components:
            raise NotFoundError("Component", component_id)
        return self.components[component_id].model_copy(deep=True)

    async def create_aircraft(self, data: AircraftCreate) -> Aircraft:
        aircraft = Aircraft(_id=new_record_id(), **data.model_dump())
        self.aircrafts[aircraft.id] = aircraft.model_copy(deep=True)
        return aircraft

    async def create_component(self, component: Component) -> None:
        self.components[component.id] = component.model_copy(deep=True)

    # Test helpers (synchronous seeding)

    def add_aircraft(self, aircraft_id: str, flight_hours: float, registration: str = "XA-TST") -> Aircraft:
        aircraft = Aircraft(_id=aircraft_id, registration=registration, flight_hours=flight_hours)
        self.aircrafts[aircraft_id] = aircraft
        return aircraft

    def add_component(
        self,
        component_id: str,
        aircraft_id: str,
        usage: float,
        interval: float,
        config: ThresholdConfig,
        name: Optional[str] = None
    ) -> Component:
        component = Component(
            _id=component_id,
            aircraft_id=aircraft_id,
            name=name or f"Component {component_id}",
            usage=usage,
            interval=interval,
            threshold=config,
            created_at=datetime.utcnow()
        )
        component.last_alert = evaluate_component(component)
        self.components[component_id] = component
        return component


class RecordingAuditSink(AuditSink):
    def __init__(self):
        self.events = []

    async def record(self, event) -> None:
        self.events.append(event)


class BrokenAuditSink(AuditSink):
    async def record(self, event) -> None:
        raise RuntimeError("audit backend down")


def make_config(
    purple: int = 50,
    red: int = 50,
    orange: int = 30,
    yellow: int = 20,
    green: int = 0,
    enabled: bool = True,
    unit: ThresholdUnit = ThresholdUnit.HOURS
) -> ThresholdConfig:
    return ThresholdConfig(
        enabled=enabled,
        unit=unit,
        boundaries=ThresholdBoundaries(purple=purple, red=red, orange=orange, yellow=yellow, green=green)
    )


@pytest.fixture
def store():
    return InMemoryFleetStore()


@pytest.fixture
def audit_sink():
    return RecordingAuditSink()


@pytest.fixture
def semaforo_config():
    """The configuration of the regression case: yellow 20, orange 30, red 50, purple 50"""
    return make_config()
