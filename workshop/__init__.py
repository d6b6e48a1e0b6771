"""
Repair Desk — Workflow Engine

Tracks computer-repair jobs through a fixed service pipeline:
reception → technical evaluation → optional repair → quality check →
delivery. The Workflow holds one FIFO queue per stage; the ServiceDesk
makes every change durable in an overwrite snapshot and an append-only
history log.

Usage:
    from workshop import ServiceDesk, SnapshotStore, HistoryLog

    desk = ServiceDesk.open(SnapshotStore("data.snapshot"), HistoryLog("records.log"))
"""

from workshop.types import ActivityRecord, Device, Stage
from workshop.errors import (
    WorkshopError,
    DuplicateIdentifier,
    QueueEmpty,
    NotFound,
    PersistenceError,
)
from workshop.queues import StageQueue
from workshop.workflow import Workflow
from workshop.store import SnapshotStore
from workshop.history import HistoryLog
from workshop.runtime import ServiceDesk, IntegrityReport

__all__ = [
    "ActivityRecord",
    "Device",
    "Stage",
    "WorkshopError",
    "DuplicateIdentifier",
    "QueueEmpty",
    "NotFound",
    "PersistenceError",
    "StageQueue",
    "Workflow",
    "SnapshotStore",
    "HistoryLog",
    "ServiceDesk",
    "IntegrityReport",
]
