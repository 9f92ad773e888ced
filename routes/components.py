"""
Component Routes
Creation of usage-tracked components, semaforo configuration and
overhaul resets
"""

from fastapi import APIRouter, Depends, status
from typing import Dict, Optional
from pydantic import BaseModel
import logging

from database.fleet_store import FleetStore
from database.mongodb import get_fleet_store
from models.component import Component, ComponentCreate
from models.threshold import THRESHOLD_PRESETS, ThresholdConfig
from services.deps import get_coordinator
from services.propagation import PropagationCoordinator

router = APIRouter(prefix="/api/components", tags=["components"])
logger = logging.getLogger(__name__)

class ResetRequest(BaseModel):
    notes: Optional[str] = None

@router.get("/presets", response_model=Dict[str, ThresholdConfig])
async def get_threshold_presets():
    """Ready-made semaforo configurations"""
    return THRESHOLD_PRESETS

@router.post("", response_model=Component, status_code=status.HTTP_201_CREATED)
async def create_component(
    data: ComponentCreate,
    coordinator: PropagationCoordinator = Depends(get_coordinator)
):
    """Create a component on an aircraft with its initial semaforo"""
    return await coordinator.register_component(data)

@router.get("/{component_id}", response_model=Component)
async def get_component(
    component_id: str,
    store: FleetStore = Depends(get_fleet_store)
):
    """Get a component by ID"""
    return await store.get_component(component_id)

@router.put("/{component_id}/threshold", response_model=Component)
async def update_component_threshold(
    component_id: str,
    config: ThresholdConfig,
    coordinator: PropagationCoordinator = Depends(get_coordinator)
):
    """Replace the semaforo configuration (validated on the way in)"""
    return await coordinator.update_component_threshold(component_id, config)

@router.post("/{component_id}/reset", response_model=Component)
async def reset_component(
    component_id: str,
    request: Optional[ResetRequest] = None,
    coordinator: PropagationCoordinator = Depends(get_coordinator)
):
    """Overhaul: usage counter back to zero"""
    notes = request.notes if request else None
    return await coordinator.reset_component_usage(component_id, notes=notes)
