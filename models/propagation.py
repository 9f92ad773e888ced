"""
Usage Update & Propagation Models

Request/response shapes for aircraft usage updates and the structured
event emitted for the audit log after each update.

Collections:
- usage_update_events for the audit trail
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum

from models.aircraft import Aircraft
from models.threshold import AlertLevel, AlertResult, AlertSummary


# ============================================================
# ENUMS
# ============================================================

class UsageUpdateReason(str, Enum):
    """Why the aircraft usage counter changed"""
    FLIGHT = "FLIGHT"
    MAINTENANCE = "MAINTENANCE"
    CORRECTION = "CORRECTION"
    INSPECTION = "INSPECTION"
    OVERHAUL = "OVERHAUL"
    OTHER = "OTHER"


# ============================================================
# REQUEST
# ============================================================

class UsageUpdateRequest(BaseModel):
    """New cumulative flight hours for an aircraft"""
    new_total_usage: float = Field(..., description="New cumulative flight hours")
    propagate: bool = Field(
        default=True,
        description="Apply the delta to every component of the aircraft"
    )
    reason: Optional[UsageUpdateReason] = None
    notes: Optional[str] = None


class ComponentRetryRequest(BaseModel):
    """Re-apply an update's delta to the components whose save failed"""
    component_ids: List[str] = Field(..., min_length=1, description="Ids from PropagationResult.failures")
    delta: float = Field(..., description="Delta of the original update")
    notes: Optional[str] = None


# ============================================================
# RESULT
# ============================================================

class ComponentFailure(BaseModel):
    """A component that could not be persisted during propagation"""
    component_id: str
    reason: str


class ComponentAlert(BaseModel):
    """Current alert of one component after an update"""
    component_id: str
    name: str
    usage: float
    previous_level: Optional[AlertLevel] = None
    alert: AlertResult


class PropagationResult(BaseModel):
    """Aggregate outcome of apply_usage_update"""
    aircraft: Aircraft
    delta: float
    propagated: bool
    components_updated: int = 0
    components_unchanged: int = 0
    components_skipped: int = 0  # Disabled threshold config
    components_failed: int = 0
    failures: List[ComponentFailure] = []
    alerts: List[ComponentAlert] = []
    escalations: List[ComponentAlert] = []  # Crossed into a more severe band


# ============================================================
# AUDIT EVENT
# ============================================================

class PropagationEvent(BaseModel):
    """Structured fact emitted once per usage update"""
    aircraft_id: str
    delta: float
    reason: Optional[UsageUpdateReason] = None
    notes: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    components_updated: int = 0
    components_failed: int = 0


USAGE_UPDATE_EVENTS_INDEXES = [
    {
        "keys": [("aircraft_id", 1), ("timestamp", -1)],
        "name": "aircraft_timestamp"
    },
    {
        "keys": [("reason", 1)],
        "name": "reason_idx"
    },
]


# ============================================================
# ALERT BOARD RESPONSE
# ============================================================

class AlertBoardResponse(BaseModel):
    """Current semaforo of every component of an aircraft"""
    aircraft_id: str
    registration: str
    flight_hours: float
    summary: AlertSummary
    alerts: List[ComponentAlert]
    priority_alerts: List[ComponentAlert]
