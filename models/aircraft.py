from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

class AircraftType(str, Enum):
    HELICOPTER = "HELICOPTER"
    AIRPLANE = "AIRPLANE"

class AircraftBase(BaseModel):
    registration: str  # Always stored in UPPERCASE
    aircraft_type: AircraftType = AircraftType.HELICOPTER
    model: Optional[str] = None
    serial_number: Optional[str] = None

    # Cumulative flight hours - seeds component propagation
    flight_hours: float = Field(default=0.0, ge=0.0)

    description: Optional[str] = None

class AircraftCreate(AircraftBase):
    pass

class Aircraft(AircraftBase):
    id: str = Field(alias="_id")
    version: int = 0  # Optimistic concurrency token, bumped on every save
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        populate_by_name = True
