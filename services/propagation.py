"""
Usage Propagation Coordinator

Keeps every component's usage counter consistent when an aircraft's
cumulative flight hours change, and recomputes each component's semaforo.

DATA FLOW:
1. Load aircraft, compute delta = new total - current total
2. If propagating, list owned components (a listing failure aborts)
3. Persist aircraft (optimistic version check) - failure aborts everything
4. If propagating: apply the same delta to every listed component,
   re-evaluate, persist, note band escalations
5. Aggregate outcomes, emit one audit event
6. Components whose save failed are returned; retry_components
   re-applies the delta to just those

GUARDRAILS:
- Negative totals (and decreases, when disallowed) rejected before any write
- A correction never takes a component counter below zero
- One component's storage failure never aborts the others
- delta == 0 replays write nothing and escalate nothing
- Updates to the same aircraft are serialized
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
import asyncio
import logging
import weakref

from database.fleet_store import FleetStore, new_record_id
from models.component import Component, ComponentCreate
from models.propagation import (
    ComponentAlert,
    ComponentFailure,
    PropagationEvent,
    PropagationResult,
    UsageUpdateReason,
)
from models.threshold import ThresholdConfig
from services.audit import AuditSink, LoggingAuditSink, emit_event
from services.errors import NotFoundError, StorageError, UsageValidationError
from services.semaforo import evaluate_component, is_escalation

logger = logging.getLogger(__name__)


class AircraftLocks:
    """One asyncio.Lock per aircraft, dropped once nobody holds it"""

    def __init__(self):
        self._locks = weakref.WeakValueDictionary()

    def lock_for(self, aircraft_id: str) -> asyncio.Lock:
        lock = self._locks.get(aircraft_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[aircraft_id] = lock
        return lock


# Shared by every coordinator built for API requests
aircraft_locks = AircraftLocks()


@dataclass
class ComponentOutcome:
    """Result of propagating to a single component"""
    component_id: str
    status: str  # updated | unchanged | skipped | failed
    alert: Optional[ComponentAlert] = None
    escalated: bool = False
    reason: Optional[str] = None


class PropagationCoordinator:
    """
    Applies aircraft usage updates to the aircraft and its components.

    Per-component work may run concurrently (bounded by concurrency);
    the aggregate result is only assembled once every component is done.
    """

    def __init__(
        self,
        store: FleetStore,
        audit_sinks: Optional[List[AuditSink]] = None,
        allow_decrease: bool = True,
        concurrency: int = 8,
        locks: Optional[AircraftLocks] = None
    ):
        self.store = store
        self.audit_sinks = audit_sinks if audit_sinks is not None else [LoggingAuditSink()]
        self.allow_decrease = allow_decrease
        self.concurrency = max(1, concurrency)
        self.locks = locks or AircraftLocks()

    # --------------------------------------------------------
    # USAGE UPDATE
    # --------------------------------------------------------

    async def apply_usage_update(
        self,
        aircraft_id: str,
        new_total_usage: float,
        propagate: bool,
        reason: Optional[UsageUpdateReason] = None,
        notes: Optional[str] = None
    ) -> PropagationResult:
        """
        Set the aircraft's cumulative usage and optionally propagate the delta.

        Raises:
            NotFoundError: aircraft does not exist
            UsageValidationError: negative total, a decrease when disallowed,
                or a correction larger than a component's usage
            StorageError: components could not be listed, or the aircraft
                itself could not be saved
        """
        if new_total_usage < 0:
            raise UsageValidationError(f"Usage cannot be negative: {new_total_usage}")

        async with self.locks.lock_for(aircraft_id):
            aircraft = await self.store.get_aircraft(aircraft_id)
            delta = new_total_usage - aircraft.flight_hours

            if delta < 0 and not self.allow_decrease:
                raise UsageValidationError(
                    f"Usage decrease not allowed for {aircraft.registration}: "
                    f"{aircraft.flight_hours} -> {new_total_usage}"
                )

            # Listed before any write so a listing failure leaves the aircraft untouched
            components = await self.store.list_components(aircraft_id) if propagate else []
            self._check_usage_floor(components, delta)

            if delta != 0:
                updated_aircraft = aircraft.model_copy(update={
                    "flight_hours": new_total_usage,
                    "version": aircraft.version + 1,
                    "updated_at": datetime.utcnow()
                })
                # Fatal on failure: components must never get ahead of the aircraft
                await self.store.save_aircraft(updated_aircraft, expected_version=aircraft.version)
            else:
                updated_aircraft = aircraft

            logger.info(
                f"Aircraft {aircraft.registration}: {aircraft.flight_hours} -> "
                f"{new_total_usage} (delta {delta:+.1f}, propagate={propagate})"
            )

            if not propagate:
                result = PropagationResult(aircraft=updated_aircraft, delta=delta, propagated=False)
            else:
                outcomes = await self._propagate(components, delta)
                result = self._aggregate(updated_aircraft, delta, outcomes)

        await emit_event(self.audit_sinks, PropagationEvent(
            aircraft_id=aircraft_id,
            delta=delta,
            reason=reason,
            notes=notes,
            components_updated=result.components_updated,
            components_failed=result.components_failed
        ))

        if result.escalations:
            logger.warning(
                f"Aircraft {aircraft.registration}: {len(result.escalations)} component(s) "
                f"crossed into a higher alert band"
            )

        return result

    async def retry_components(
        self,
        aircraft_id: str,
        component_ids: List[str],
        delta: float,
        notes: Optional[str] = None
    ) -> PropagationResult:
        """
        Re-apply a delta to the components whose save failed during an update.

        The aircraft record is not touched: it already carries the new total.
        Only pass the ids listed in PropagationResult.failures, once each.

        Raises:
            NotFoundError: aircraft or any listed component does not exist
            UsageValidationError: no ids given, or a counter would go negative
        """
        if not component_ids:
            raise UsageValidationError("No components to retry")

        async with self.locks.lock_for(aircraft_id):
            aircraft = await self.store.get_aircraft(aircraft_id)
            owned = {component.id: component for component in await self.store.list_components(aircraft_id)}

            missing = [component_id for component_id in component_ids if component_id not in owned]
            if missing:
                raise NotFoundError("Component", ", ".join(missing))

            components = [owned[component_id] for component_id in dict.fromkeys(component_ids)]
            self._check_usage_floor(components, delta)

            outcomes = await self._propagate(components, delta)
            result = self._aggregate(aircraft, delta, outcomes)

        logger.info(
            f"Retried delta {delta:+.1f} on {len(components)} component(s) of {aircraft.registration}: "
            f"failed={result.components_failed}"
        )

        await emit_event(self.audit_sinks, PropagationEvent(
            aircraft_id=aircraft_id,
            delta=delta,
            reason=UsageUpdateReason.CORRECTION,
            notes=notes or f"Retry of {', '.join(component.id for component in components)}",
            components_updated=result.components_updated,
            components_failed=result.components_failed
        ))

        return result

    def _check_usage_floor(self, components: List[Component], delta: float) -> None:
        """A downward correction may not take any usage counter below zero"""
        if delta >= 0:
            return
        below = [component.id for component in components if component.usage + delta < 0]
        if below:
            raise UsageValidationError(
                f"Correction of {delta:+.1f}h would make usage negative for: {', '.join(below)}"
            )

    async def _propagate(self, components: List[Component], delta: float) -> List[ComponentOutcome]:
        semaphore = asyncio.Semaphore(self.concurrency)
        return list(await asyncio.gather(
            *(self._propagate_one(component, delta, semaphore) for component in components)
        ))

    async def _propagate_one(
        self,
        component: Component,
        delta: float,
        semaphore: asyncio.Semaphore
    ) -> ComponentOutcome:
        # Cached last_alert may be stale - recompute the "before" state
        before = evaluate_component(component)

        candidate = component.model_copy(update={"usage": component.usage + delta})
        after = evaluate_component(candidate)

        item = ComponentAlert(
            component_id=component.id,
            name=component.name,
            usage=candidate.usage,
            previous_level=before.level if before.applicable else None,
            alert=after
        )

        if delta == 0 and component.last_alert == after:
            return ComponentOutcome(component_id=component.id, status="unchanged", alert=item)

        updated = candidate.model_copy(update={
            "last_alert": after,
            "updated_at": datetime.utcnow()
        })

        async with semaphore:
            try:
                await self.store.save_component(updated)
            except StorageError as e:
                logger.warning(f"Component {component.id} not updated: {e}")
                return ComponentOutcome(component_id=component.id, status="failed", reason=str(e))

        return ComponentOutcome(
            component_id=component.id,
            status="updated" if component.threshold.enabled else "skipped",
            alert=item,
            escalated=is_escalation(before, after)
        )

    def _aggregate(self, aircraft, delta: float, outcomes: List[ComponentOutcome]) -> PropagationResult:
        result = PropagationResult(aircraft=aircraft, delta=delta, propagated=True)

        for outcome in outcomes:
            if outcome.status == "failed":
                result.components_failed += 1
                result.failures.append(ComponentFailure(
                    component_id=outcome.component_id,
                    reason=outcome.reason or "unknown error"
                ))
                continue

            if outcome.status == "updated":
                result.components_updated += 1
            elif outcome.status == "skipped":
                result.components_skipped += 1
            else:
                result.components_unchanged += 1

            result.alerts.append(outcome.alert)
            if outcome.escalated:
                result.escalations.append(outcome.alert)

        logger.info(
            f"Propagation for {aircraft.registration}: updated={result.components_updated} "
            f"unchanged={result.components_unchanged} skipped={result.components_skipped} "
            f"failed={result.components_failed}"
        )
        return result

    # --------------------------------------------------------
    # COMPONENT MAINTENANCE
    # --------------------------------------------------------

    async def register_component(self, data: ComponentCreate) -> Component:
        """Create a component on an existing aircraft with its initial alert"""
        await self.store.get_aircraft(data.aircraft_id)

        now = datetime.utcnow()
        component = Component(
            _id=new_record_id(),
            **data.model_dump(),
            created_at=now,
            updated_at=now
        )
        component.last_alert = evaluate_component(component)

        await self.store.create_component(component)
        return component

    async def reset_component_usage(self, component_id: str, notes: Optional[str] = None) -> Component:
        """
        Overhaul: usage counter back to 0, identity and config kept.
        """
        component = await self.store.get_component(component_id)

        async with self.locks.lock_for(component.aircraft_id):
            # Re-read under the lock so a concurrent propagation is not lost
            component = await self.store.get_component(component_id)
            reset = component.model_copy(update={"usage": 0.0, "updated_at": datetime.utcnow()})
            reset.last_alert = evaluate_component(reset)
            await self.store.save_component(reset)

        logger.info(
            f"Component {component.name} ({component_id}) reset from {component.usage} to 0"
            + (f": {notes}" if notes else "")
        )
        return reset

    async def update_component_threshold(self, component_id: str, config: ThresholdConfig) -> Component:
        """Store a new (already validated) threshold config and recompute the alert"""
        component = await self.store.get_component(component_id)

        async with self.locks.lock_for(component.aircraft_id):
            component = await self.store.get_component(component_id)
            updated = component.model_copy(update={"threshold": config, "updated_at": datetime.utcnow()})
            updated.last_alert = evaluate_component(updated)
            await self.store.save_component(updated)

        logger.info(f"Threshold config updated for component {component_id}")
        return updated
