"""
Threshold (semaforo) configuration and alert models

A ThresholdConfig describes, for one tracked quantity of a component
(hours to overhaul, cycles, consumed percentage), the remaining-margin
cutoffs that trigger each of the five alert colors.

Boundaries are validated when the config is built:
    purple >= red >= orange >= yellow >= green >= 0
A malformed config raises ConfigError and never reaches evaluation.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Dict, Optional
from enum import Enum

from services.errors import ConfigError


# ============================================================
# ENUMS
# ============================================================

class AlertLevel(str, Enum):
    """Semaforo colors, ordered by severity (PURPLE > RED > ... > GREEN)"""
    PURPLE = "PURPLE"
    RED = "RED"
    ORANGE = "ORANGE"
    YELLOW = "YELLOW"
    GREEN = "GREEN"

    @property
    def severity(self) -> int:
        return ALERT_SEVERITY[self]

    @property
    def requires_attention(self) -> bool:
        return self is not AlertLevel.GREEN

    def __lt__(self, other):
        if not isinstance(other, AlertLevel):
            return NotImplemented
        return self.severity < other.severity

    def __le__(self, other):
        if not isinstance(other, AlertLevel):
            return NotImplemented
        return self.severity <= other.severity

    def __gt__(self, other):
        if not isinstance(other, AlertLevel):
            return NotImplemented
        return self.severity > other.severity

    def __ge__(self, other):
        if not isinstance(other, AlertLevel):
            return NotImplemented
        return self.severity >= other.severity


ALERT_SEVERITY: Dict[AlertLevel, int] = {
    AlertLevel.GREEN: 0,
    AlertLevel.YELLOW: 1,
    AlertLevel.ORANGE: 2,
    AlertLevel.RED: 3,
    AlertLevel.PURPLE: 4,
}

# Most severe first - the order bands are tested in
LEVELS_BY_SEVERITY = sorted(ALERT_SEVERITY, key=ALERT_SEVERITY.get, reverse=True)


class ThresholdUnit(str, Enum):
    """Unit of the tracked quantity"""
    HOURS = "HOURS"
    CYCLES = "CYCLES"
    PERCENT = "PERCENT"  # Remaining share of the interval, 0-100


# ============================================================
# CONFIGURATION
# ============================================================

class ThresholdBoundaries(BaseModel):
    """Remaining-margin cutoff for each color (inclusive)"""
    purple: int
    red: int
    orange: int
    yellow: int
    green: int = 0

    @model_validator(mode="after")
    def check_order(self):
        if self.green < 0:
            raise ConfigError(f"green boundary must be >= 0, got {self.green}")

        ordered = [(level.value.lower(), self.for_level(level)) for level in LEVELS_BY_SEVERITY]
        for (upper_name, upper), (lower_name, lower) in zip(ordered, ordered[1:]):
            if upper < lower:
                raise ConfigError(
                    f"Threshold boundaries must be non-increasing: "
                    f"{upper_name}={upper} < {lower_name}={lower}"
                )
        return self

    def for_level(self, level: AlertLevel) -> int:
        return getattr(self, level.value.lower())


class ThresholdDescriptions(BaseModel):
    """Display text per color - never affects the computed level"""
    purple: str = "Over-critical - component overdue in service"
    red: str = "Critical - schedule overhaul immediately"
    orange: str = "High - prepare upcoming overhaul"
    yellow: str = "Medium - monitor progress"
    green: str = "OK - normal operation"

    def for_level(self, level: AlertLevel) -> str:
        return getattr(self, level.value.lower())


class ThresholdConfig(BaseModel):
    """Semaforo configuration for one tracked quantity"""
    enabled: bool = True
    unit: ThresholdUnit = ThresholdUnit.HOURS
    boundaries: ThresholdBoundaries
    descriptions: ThresholdDescriptions = Field(default_factory=ThresholdDescriptions)

    @model_validator(mode="after")
    def check_unit_range(self):
        if self.unit == ThresholdUnit.PERCENT and self.boundaries.purple > 100:
            raise ConfigError(
                f"PERCENT boundaries must lie within 0-100, got purple={self.boundaries.purple}"
            )
        return self


# ============================================================
# ALERT RESULT
# ============================================================

class AlertResult(BaseModel):
    """
    Evaluated semaforo state of a component.

    Derived data: recomputed from (usage, interval, config) on every change,
    cached on the component for display only.
    """
    level: AlertLevel
    description: str
    remaining: float  # Never clamped - negative means overdue
    percent_complete: float = Field(..., ge=0.0, le=100.0)
    requires_attention: bool
    priority: int
    applicable: bool = True  # False for the disabled-config sentinel


# ============================================================
# PRESETS
# ============================================================

# Purple is a remaining-margin boundary that may not sit below red, so every
# preset collapses it onto red (hours past the limit are reported as RED).
THRESHOLD_PRESETS: Dict[str, ThresholdConfig] = {
    "STANDARD": ThresholdConfig(
        unit=ThresholdUnit.HOURS,
        boundaries=ThresholdBoundaries(purple=100, red=100, orange=50, yellow=25, green=0),
    ),
    "CONSERVATIVE": ThresholdConfig(
        unit=ThresholdUnit.HOURS,
        boundaries=ThresholdBoundaries(purple=150, red=150, orange=100, yellow=50, green=25),
        descriptions=ThresholdDescriptions(
            purple="Over-critical - stop operation",
            red="Critical - immediate action required",
            orange="High - plan urgent overhaul",
            yellow="Medium - start preparations",
            green="Low - routine monitoring",
        ),
    ),
    "AGGRESSIVE": ThresholdConfig(
        unit=ThresholdUnit.HOURS,
        boundaries=ThresholdBoundaries(purple=50, red=50, orange=25, yellow=10, green=0),
        descriptions=ThresholdDescriptions(
            purple="Over-critical - significantly exceeded",
            red="Critical - overhaul required",
            orange="High - prepare tooling",
            yellow="Medium - finish scheduled flights",
            green="OK - normal operation",
        ),
    ),
    "PERCENT": ThresholdConfig(
        unit=ThresholdUnit.PERCENT,
        boundaries=ThresholdBoundaries(purple=25, red=25, orange=15, yellow=5, green=0),
        descriptions=ThresholdDescriptions(
            purple="Over-critical - interval exceeded",
            red="Critical - 75%+ of the interval consumed",
            orange="High - 85%+ of the interval consumed",
            yellow="Medium - 95%+ of the interval consumed",
            green="OK - less than 75% consumed",
        ),
    ),
}


# ============================================================
# ALERT BOARD SUMMARY
# ============================================================

class AlertSummary(BaseModel):
    """Aggregate view over a set of evaluated alerts"""
    total: int = 0
    not_applicable: int = 0
    by_level: Dict[AlertLevel, int] = Field(
        default_factory=lambda: {level: 0 for level in LEVELS_BY_SEVERITY}
    )
    requires_attention: int = 0
    worst_level: Optional[AlertLevel] = None
    health_percentage: int = 100
