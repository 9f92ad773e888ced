"""
Component Model

Usage-tracked components owned by an aircraft (engines, rotors,
transmissions, dynamic parts). Each carries its own cumulative usage
counter, the interval it is tracked against and its semaforo config.

Collection: components
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

from models.threshold import AlertResult, ThresholdConfig, ThresholdUnit


class ComponentType(str, Enum):
    """Types of usage-tracked components"""
    ENGINE = "ENGINE"
    MAIN_ROTOR = "MAIN_ROTOR"
    TAIL_ROTOR = "TAIL_ROTOR"
    TRANSMISSION = "TRANSMISSION"
    PROPELLER = "PROPELLER"
    DYNAMIC_PART = "DYNAMIC_PART"
    OTHER = "OTHER"


class ComponentBase(BaseModel):
    """Base model for a tracked component"""
    aircraft_id: str = Field(..., description="Owning aircraft ID")
    name: str = Field(..., description="Component description")
    component_type: ComponentType = Field(default=ComponentType.OTHER)
    part_no: Optional[str] = Field(None, description="Part number")
    serial_no: Optional[str] = Field(None, description="Serial number")
    usage: float = Field(default=0.0, ge=0.0, description="Usage accumulated since last reset (TSO)")
    interval: float = Field(..., gt=0.0, description="Limit the usage is tracked against (e.g. TBO)")
    threshold: ThresholdConfig


class ComponentCreate(ComponentBase):
    """Model for creating a component"""
    pass


class Component(ComponentBase):
    """Full component document"""
    id: str = Field(alias="_id")
    last_alert: Optional[AlertResult] = Field(None, description="Cached alert, display only")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        populate_by_name = True

    def remaining_margin(self) -> float:
        """Margin left before the interval is reached, in the config's unit"""
        remaining = self.interval - self.usage
        if self.threshold.unit == ThresholdUnit.PERCENT:
            return remaining / self.interval * 100
        return remaining


# ============================================================
# INDEX DEFINITION
# ============================================================

COMPONENTS_INDEXES = [
    {
        "keys": [("aircraft_id", 1)],
        "name": "aircraft_id_idx"
    },
    {
        "keys": [("aircraft_id", 1), ("component_type", 1)],
        "name": "aircraft_component_type_idx"
    },
]
