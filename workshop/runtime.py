"""
Repair Desk — Service Desk

Wires the workflow state machine to its two persistence surfaces:

  - HistoryLog: one record per successful mutation, written right after
    the change (not for cancelled deliveries or deletions)
  - SnapshotStore: rewritten after every mutation

Both are injected. If either write fails, the other is still attempted,
the in-memory change stands, and the first PersistenceError is raised so
the console can report it.

Usage:
    from workshop.runtime import ServiceDesk
    from workshop.store import SnapshotStore
    from workshop.history import HistoryLog

    desk = ServiceDesk.open(SnapshotStore("data.snapshot"), HistoryLog("records.log"))
    desk.admit("SN-1", "no enciende", date(2024, 5, 1), "Ana", "a@x", "22223333")
    desk.advance_from_received("placa quemada", requires_repair=True)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from common.logging import DeskLogger
from workshop.errors import PersistenceError
from workshop.history import HistoryLog
from workshop.store import SnapshotStore
from workshop.types import Device, Stage
from workshop.workflow import Workflow

logger = logging.getLogger("repair_desk.runtime")


@dataclass
class IntegrityReport:
    """Result of checking the snapshot and history files."""
    snapshot_ok: bool
    history_ok: bool
    problems: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.snapshot_ok and self.history_ok


def _file_usable(path: Path) -> bool:
    """A missing file is fine; an existing one must be readable and writable."""
    if not path.exists():
        return True
    return path.is_file() and os.access(path, os.R_OK) and os.access(path, os.W_OK)


class ServiceDesk:
    """The live workflow plus the stores that make it durable."""

    def __init__(
        self,
        workflow: Workflow,
        store: SnapshotStore,
        history: HistoryLog,
        events: DeskLogger | None = None,
    ):
        self.workflow = workflow
        self.store = store
        self.history = history
        self.events = events or DeskLogger()

    @classmethod
    def open(
        cls,
        store: SnapshotStore,
        history: HistoryLog,
        events: DeskLogger | None = None,
    ) -> ServiceDesk:
        return cls(store.load(), store, history, events)

    # ── Persistence ─────────────────────────────────────────────

    def _commit(self, device: Device | None) -> None:
        """Append the device to history (when given), then rewrite the snapshot."""
        failure: PersistenceError | None = None

        if device is not None:
            try:
                self.history.append(device)
                self.events.on_history_appended(device.identifier, device.current_stage.value)
            except PersistenceError as e:
                self.events.on_persistence_error("history", str(e))
                failure = e

        try:
            self.store.save(self.workflow)
            self.events.on_snapshot_saved(len(self.workflow))
        except PersistenceError as e:
            self.events.on_persistence_error("snapshot", str(e))
            failure = failure or e

        if failure is not None:
            raise failure

    def save(self) -> None:
        try:
            self.store.save(self.workflow)
        except PersistenceError as e:
            self.events.on_persistence_error("snapshot", str(e))
            raise
        self.events.on_snapshot_saved(len(self.workflow))

    # ── Transitions ─────────────────────────────────────────────

    def admit(
        self,
        identifier: str,
        issue: str,
        entry_date: date,
        owner: str,
        email: str,
        phone: str,
    ) -> Device:
        device = Device.create(identifier, issue, entry_date, owner, email, phone)
        self.workflow.admit(device)
        self.events.on_admit(device.identifier, device.owner_name)
        self._commit(device)
        return device

    def advance_from_received(self, analysis_text: str, requires_repair: bool) -> Device:
        device = self.workflow.advance_from_received(analysis_text, requires_repair)
        self.events.on_transition(device.identifier, Stage.RECEIVED.value,
                                  device.current_stage.value, "advance_from_received")
        self._commit(device)
        return device

    def advance_from_repair(self, repair_text: str, technician_id: str) -> Device:
        device = self.workflow.advance_from_repair(repair_text, technician_id)
        self.events.on_transition(device.identifier, Stage.IN_REPAIR.value,
                                  device.current_stage.value, "advance_from_repair")
        self._commit(device)
        return device

    def advance_from_quality(self, approved: bool) -> Device:
        device = self.workflow.advance_from_quality(approved)
        self.events.on_transition(device.identifier, Stage.QUALITY_CHECK.value,
                                  device.current_stage.value, "advance_from_quality")
        self._commit(device)
        return device

    def deliver(self, confirmed: bool) -> Device:
        device = self.workflow.deliver(confirmed)
        if confirmed:
            self.events.on_delivered(device.identifier, len(device.activity_log))
            self._commit(device)
        else:
            self.events.on_delivery_cancelled(
                device.identifier, self.workflow.queue(Stage.READY_DELIVERY).size(),
            )
            self._commit(None)
        return device

    def delete_by_identifier(self, identifier: str) -> Device:
        # TODO: product review on whether deletions belong in the history log;
        # for now they only show up as absence from the next snapshot.
        device = self.workflow.delete_by_identifier(identifier)
        self.events.on_deleted(device.identifier, device.current_stage.value)
        self._commit(None)
        return device

    # ── Queries ─────────────────────────────────────────────────

    def find_by_identifier(self, identifier: str) -> Device | None:
        return self.workflow.find_by_identifier(identifier)

    def list_by_stage(self) -> list[tuple[Stage, list[Device]]]:
        return self.workflow.list_by_stage()

    def peek(self, stage: Stage) -> Device | None:
        return self.workflow.queue(stage).peek()

    def read_history(self) -> str:
        return self.history.read_all()

    def export_history(self, destination: str | Path) -> Path:
        return self.history.export(destination)

    def verify_integrity(self) -> IntegrityReport:
        snapshot_ok = _file_usable(self.store.path)
        history_ok = _file_usable(self.history.path)
        problems = []
        if not snapshot_ok:
            problems.append(f"❌ Problema con el archivo de datos del sistema: {self.store.path}")
        if not history_ok:
            problems.append(f"❌ Problema con el archivo de registro: {self.history.path}")
        for problem in problems:
            logger.error(problem)
        return IntegrityReport(snapshot_ok, history_ok, problems)
