from fastapi import APIRouter, Depends, status
from typing import List
import logging

from database.fleet_store import FleetStore
from database.mongodb import get_fleet_store
from models.aircraft import Aircraft, AircraftCreate
from models.component import Component
from models.propagation import (
    AlertBoardResponse,
    ComponentAlert,
    ComponentRetryRequest,
    PropagationResult,
    UsageUpdateRequest,
)
from services.deps import get_coordinator
from services.propagation import PropagationCoordinator
from services.semaforo import evaluate_all, prioritize_alerts, summarize_alerts

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/aircraft", tags=["aircraft"])

def format_registration(registration: str) -> str:
    """Format registration to uppercase"""
    return registration.upper().strip()

@router.post("", response_model=Aircraft, status_code=status.HTTP_201_CREATED)
async def create_aircraft(
    aircraft: AircraftCreate,
    store: FleetStore = Depends(get_fleet_store)
):
    """Create a new aircraft"""
    aircraft = aircraft.model_copy(update={"registration": format_registration(aircraft.registration)})
    return await store.create_aircraft(aircraft)

@router.get("/{aircraft_id}", response_model=Aircraft)
async def get_aircraft(
    aircraft_id: str,
    store: FleetStore = Depends(get_fleet_store)
):
    """Get a specific aircraft by ID"""
    return await store.get_aircraft(aircraft_id)

@router.get("/{aircraft_id}/components", response_model=List[Component])
async def get_aircraft_components(
    aircraft_id: str,
    store: FleetStore = Depends(get_fleet_store)
):
    """Get all components owned by an aircraft"""
    await store.get_aircraft(aircraft_id)
    return await store.list_components(aircraft_id)

@router.post("/{aircraft_id}/usage", response_model=PropagationResult)
async def update_aircraft_usage(
    aircraft_id: str,
    request: UsageUpdateRequest,
    coordinator: PropagationCoordinator = Depends(get_coordinator)
):
    """
    Set the aircraft's cumulative flight hours.
    When propagate is true, the delta is applied to every component and
    their semaforo is recomputed; the response lists components that
    crossed into a more severe band.
    """
    return await coordinator.apply_usage_update(
        aircraft_id,
        request.new_total_usage,
        request.propagate,
        reason=request.reason,
        notes=request.notes
    )

@router.post("/{aircraft_id}/usage/retry", response_model=PropagationResult)
async def retry_component_usage(
    aircraft_id: str,
    request: ComponentRetryRequest,
    coordinator: PropagationCoordinator = Depends(get_coordinator)
):
    """Re-apply an update's delta to the components listed in its failures"""
    return await coordinator.retry_components(
        aircraft_id,
        request.component_ids,
        request.delta,
        notes=request.notes
    )

@router.get("/{aircraft_id}/alerts", response_model=AlertBoardResponse)
async def get_aircraft_alerts(
    aircraft_id: str,
    limit: int = 3,
    store: FleetStore = Depends(get_fleet_store)
):
    """Semaforo board of an aircraft: every component's alert plus the most urgent ones"""
    aircraft = await store.get_aircraft(aircraft_id)
    components = await store.list_components(aircraft_id)

    results = evaluate_all(components)
    alerts = [
        ComponentAlert(
            component_id=component.id,
            name=component.name,
            usage=component.usage,
            alert=alert
        )
        for component, alert in zip(components, results)
    ]

    return AlertBoardResponse(
        aircraft_id=aircraft.id,
        registration=aircraft.registration,
        flight_hours=aircraft.flight_hours,
        summary=summarize_alerts(results),
        alerts=alerts,
        priority_alerts=prioritize_alerts(alerts, limit=limit)
    )
