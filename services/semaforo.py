"""
Semaforo Threshold Evaluator

Turns a component's remaining margin and its ThresholdConfig into an
AlertResult. Pure functions: no I/O, no state between calls.

EVALUATION ORDER (most severe first, first match wins, inclusive):
1. PURPLE  remaining <= purple   (only when purple > red)
2. RED     remaining <= red
3. ORANGE  remaining <= orange
4. YELLOW  remaining <= yellow
5. GREEN   otherwise

A value satisfying both "<= red" and "<= yellow" is RED, never YELLOW.
"""

from typing import Iterable, Iterator, List, Optional, Sequence

from models.component import Component
from models.propagation import ComponentAlert
from models.threshold import (
    AlertLevel,
    AlertResult,
    AlertSummary,
    ThresholdBoundaries,
    ThresholdConfig,
    ThresholdUnit,
)

NOT_APPLICABLE_DESCRIPTION = "Not applicable - semaforo disabled"

# Health weight per level for the alert board
HEALTH_WEIGHTS = {
    AlertLevel.GREEN: 100,
    AlertLevel.YELLOW: 50,
    AlertLevel.ORANGE: 50,
    AlertLevel.RED: 0,
    AlertLevel.PURPLE: 0,
}


# --------------------------------------------------------
# SINGLE EVALUATION
# --------------------------------------------------------

def match_level(remaining: float, boundaries: ThresholdBoundaries) -> AlertLevel:
    """Most severe band whose boundary is >= remaining"""
    if boundaries.purple > boundaries.red and remaining <= boundaries.purple:
        return AlertLevel.PURPLE
    if remaining <= boundaries.red:
        return AlertLevel.RED
    if remaining <= boundaries.orange:
        return AlertLevel.ORANGE
    if remaining <= boundaries.yellow:
        return AlertLevel.YELLOW
    return AlertLevel.GREEN


def percent_complete(remaining: float, unit: ThresholdUnit, interval: Optional[float] = None) -> float:
    """Consumed share of the interval, clamped to [0, 100] for display"""
    if unit == ThresholdUnit.PERCENT:
        percent = 100.0 - remaining
    elif interval:
        percent = (interval - remaining) / interval * 100
    else:
        percent = 0.0
    return min(100.0, max(0.0, percent))


def evaluate(
    remaining: float,
    config: ThresholdConfig,
    interval: Optional[float] = None
) -> AlertResult:
    """
    Evaluate the semaforo for one tracked quantity.

    Args:
        remaining: Margin left before the limit (limit - used), may be negative
        config: Validated threshold configuration
        interval: Total interval, used only for percent_complete

    Returns:
        AlertResult. A disabled config yields a GREEN, non-applicable sentinel.
    """
    percent = percent_complete(remaining, config.unit, interval)

    if not config.enabled:
        return AlertResult(
            level=AlertLevel.GREEN,
            description=NOT_APPLICABLE_DESCRIPTION,
            remaining=remaining,
            percent_complete=percent,
            requires_attention=False,
            priority=AlertLevel.GREEN.severity,
            applicable=False
        )

    level = match_level(remaining, config.boundaries)

    return AlertResult(
        level=level,
        description=config.descriptions.for_level(level),
        remaining=remaining,
        percent_complete=percent,
        requires_attention=level.requires_attention,
        priority=level.severity
    )


def evaluate_component(component: Component) -> AlertResult:
    return evaluate(component.remaining_margin(), component.threshold, interval=component.interval)


# --------------------------------------------------------
# BATCH EVALUATION
# --------------------------------------------------------

class AlertSequence:
    """
    Lazy, restartable view of the alerts of a set of components.

    Every iteration re-evaluates from the components; nothing is cached.
    """

    def __init__(self, components: Iterable[Component]):
        self._components = list(components)

    def __iter__(self) -> Iterator[AlertResult]:
        return (evaluate_component(component) for component in self._components)

    def __len__(self) -> int:
        return len(self._components)


def evaluate_all(components: Iterable[Component]) -> AlertSequence:
    return AlertSequence(components)


def is_escalation(before: Optional[AlertResult], after: AlertResult) -> bool:
    """True when after is strictly more severe than before"""
    if not after.applicable:
        return False
    if before is None or not before.applicable:
        return after.level > AlertLevel.GREEN
    return after.level > before.level


# --------------------------------------------------------
# ALERT BOARD
# --------------------------------------------------------

def summarize_alerts(alerts: Iterable[AlertResult]) -> AlertSummary:
    summary = AlertSummary()
    weight_total = 0

    for alert in alerts:
        if not alert.applicable:
            summary.not_applicable += 1
            continue

        summary.total += 1
        summary.by_level[alert.level] += 1
        weight_total += HEALTH_WEIGHTS[alert.level]
        if alert.requires_attention:
            summary.requires_attention += 1
        if summary.worst_level is None or alert.level > summary.worst_level:
            summary.worst_level = alert.level

    if summary.total:
        summary.health_percentage = round(weight_total / summary.total)

    return summary


def prioritize_alerts(alerts: Sequence[ComponentAlert], limit: int = 3) -> List[ComponentAlert]:
    """Most urgent attention-requiring alerts: highest priority, then least remaining"""
    urgent = [item for item in alerts if item.alert.applicable and item.alert.requires_attention]
    urgent.sort(key=lambda item: (-item.alert.priority, item.alert.remaining))
    return urgent[:limit]
