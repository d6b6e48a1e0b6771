"""
Repair Desk — Workflow State Machine

The stage-indexed set of queues that owns every live device, and the
transitions between stages:

  admit                 → RECEIVED
  advance_from_received   RECEIVED → IN_REPAIR | READY_DELIVERY
  advance_from_repair     IN_REPAIR → QUALITY_CHECK
  advance_from_quality    QUALITY_CHECK → READY_DELIVERY | IN_REPAIR
  deliver                 READY_DELIVERY → (released) | READY_DELIVERY tail

This is pure logic, no I/O. The service desk (runtime.py) wires it to
the history log (history.py) and the snapshot store (store.py).
"""

from __future__ import annotations

from workshop.errors import DuplicateIdentifier, InvalidTransition, NotFound
from workshop.queues import StageQueue
from workshop.types import Device, Stage


# Source stage → stages a transition may send a device to
TRANSITIONS: dict[Stage, set[Stage]] = {
    Stage.RECEIVED:       {Stage.IN_REPAIR, Stage.READY_DELIVERY},
    Stage.IN_REPAIR:      {Stage.QUALITY_CHECK},
    Stage.QUALITY_CHECK:  {Stage.READY_DELIVERY, Stage.IN_REPAIR},
    Stage.READY_DELIVERY: {Stage.READY_DELIVERY},
}


class Workflow:
    """Ownership root for all live devices: one StageQueue per Stage."""

    def __init__(self):
        self._queues: dict[Stage, StageQueue] = {stage: StageQueue(stage) for stage in Stage}

    def queue(self, stage: Stage) -> StageQueue:
        return self._queues[stage]

    def _move(self, device: Device, to: Stage) -> None:
        """Enqueue a dequeued device into its next stage, enforcing TRANSITIONS."""
        allowed = TRANSITIONS.get(device.current_stage, set())
        if to not in allowed:
            raise InvalidTransition(
                f"Device {device.identifier}: "
                f"{device.current_stage.value} → {to.value} is not allowed. "
                f"Valid transitions: {sorted(s.value for s in allowed)}"
            )
        self._queues[to].enqueue(device)

    # ── Transitions ─────────────────────────────────────────────

    def admit(self, device: Device) -> Device:
        if self.find_by_identifier(device.identifier) is not None:
            raise DuplicateIdentifier(
                f"A device with serial number {device.identifier!r} already exists",
                identifier=device.identifier,
            )
        self._queues[Stage.RECEIVED].enqueue(device)
        device.record_activity("Equipo ingresado al sistema")
        return device

    def advance_from_received(self, analysis_text: str, requires_repair: bool) -> Device:
        device = self._queues[Stage.RECEIVED].dequeue()
        device.technical_analysis = analysis_text
        device.record_activity(f"Evaluación técnica realizada: {analysis_text}")
        if requires_repair:
            self._move(device, Stage.IN_REPAIR)
            device.record_activity("Enviado a reparación")
        else:
            self._move(device, Stage.READY_DELIVERY)
            device.record_activity("No requiere reparación. Listo para entrega")
        return device

    def advance_from_repair(self, repair_text: str, technician_id: str) -> Device:
        device = self._queues[Stage.IN_REPAIR].dequeue()
        device.repair_work = repair_text
        device.technician_id = technician_id
        device.record_activity(f"Reparación completada por {technician_id}: {repair_text}")
        self._move(device, Stage.QUALITY_CHECK)
        return device

    def advance_from_quality(self, approved: bool) -> Device:
        device = self._queues[Stage.QUALITY_CHECK].dequeue()
        if approved:
            self._move(device, Stage.READY_DELIVERY)
            device.record_activity("Aprobado en control de calidad. Listo para entrega")
        else:
            self._move(device, Stage.IN_REPAIR)
            device.record_activity("Rechazado en control de calidad. Regresado a reparación")
        return device

    def deliver(self, confirmed: bool) -> Device:
        """
        Take the head of READY_DELIVERY. A confirmed delivery releases the
        device; a cancelled one sends it to the back of the same queue
        without recording anything.
        """
        device = self._queues[Stage.READY_DELIVERY].dequeue()
        if confirmed:
            device.record_activity("Equipo entregado al cliente")
        else:
            self._move(device, Stage.READY_DELIVERY)
        return device

    # ── Lookup / removal ────────────────────────────────────────

    def find_by_identifier(self, identifier: str) -> Device | None:
        for stage in Stage:
            device = self._queues[stage].find(identifier)
            if device is not None:
                return device
        return None

    def delete_by_identifier(self, identifier: str) -> Device:
        for stage in Stage:
            queue = self._queues[stage]
            if queue.find(identifier) is not None:
                return queue.remove_by_identifier(identifier)
        raise NotFound(
            f"No device with serial number {identifier!r}",
            identifier=identifier,
        )

    # ── Views ───────────────────────────────────────────────────

    def list_by_stage(self) -> list[tuple[Stage, list[Device]]]:
        return [(stage, self._queues[stage].list()) for stage in Stage]

    def devices(self) -> list[Device]:
        return [d for _, devices in self.list_by_stage() for d in devices]

    def counts(self) -> dict[Stage, int]:
        return {stage: self._queues[stage].size() for stage in Stage}

    def __len__(self) -> int:
        return sum(q.size() for q in self._queues.values())

    def __repr__(self) -> str:
        sizes = ", ".join(f"{s.value}={n}" for s, n in self.counts().items())
        return f"Workflow({sizes})"
