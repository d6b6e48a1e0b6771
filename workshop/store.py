"""
Repair Desk — Snapshot Store

Durable overwrite-snapshot of the whole workflow: every stage queue, in
FIFO order, with each device's full activity log.

File format: gzip-compressed JSON document
    {"format": "repair-desk-snapshot", "version": 1, "saved_at": <epoch>,
     "stages": {"received": [<device>, ...], "in_repair": [...], ...}}

Saves go to a temporary file in the same directory and are moved into
place with os.replace, so a crash mid-write leaves the previous snapshot
intact. Loads never fail the caller: a missing, empty or unreadable file
yields a fresh workflow and a logged diagnostic.
"""

from __future__ import annotations

import gzip
import json
import logging
import os
import tempfile
import time
import zlib
from pathlib import Path
from typing import Any

from workshop.errors import PersistenceError
from workshop.types import Device, Stage
from workshop.workflow import Workflow

logger = logging.getLogger("repair_desk.store")

SNAPSHOT_FORMAT = "repair-desk-snapshot"
SNAPSHOT_VERSION = 1


def workflow_to_dict(workflow: Workflow) -> dict[str, Any]:
    return {
        "format": SNAPSHOT_FORMAT,
        "version": SNAPSHOT_VERSION,
        "saved_at": time.time(),
        "stages": {
            stage.value: [d.to_dict() for d in devices]
            for stage, devices in workflow.list_by_stage()
        },
    }


def workflow_from_dict(data: dict[str, Any]) -> Workflow:
    """
    Rebuild a workflow from a snapshot document. Devices are enqueued in
    stored order; identifiers are not deduplicated.
    """
    if not isinstance(data, dict) or data.get("format") != SNAPSHOT_FORMAT:
        raise ValueError(f"not a {SNAPSHOT_FORMAT} document")
    workflow = Workflow()
    stages = data.get("stages") or {}
    for stage in Stage:
        for raw in stages.get(stage.value, []):
            workflow.queue(stage).enqueue(Device.from_dict(raw))
    return workflow


class SnapshotStore:
    """Gzip+JSON snapshot file for the live workflow."""

    def __init__(self, path: str | Path = "technical_support_data.snapshot"):
        self.path = Path(path)

    def save(self, workflow: Workflow) -> None:
        payload = json.dumps(workflow_to_dict(workflow), ensure_ascii=False).encode("utf-8")
        compressed = gzip.compress(payload)

        tmp_name = None
        try:
            directory = self.path.parent
            with tempfile.NamedTemporaryFile(
                dir=directory, prefix=f".{self.path.name}.", suffix=".tmp", delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(compressed)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            logger.error("Snapshot save failed: %s (%s)", self.path, e)
            raise PersistenceError(
                f"Could not save snapshot to {self.path}: {e}",
                path=str(self.path),
            ) from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.debug("Temporary snapshot %s already gone", tmp_name)

        logger.debug("Snapshot saved: %s (%d devices, %d bytes)",
                     self.path, len(workflow), len(compressed))

    def load(self) -> Workflow:
        try:
            if not self.path.exists() or self.path.stat().st_size == 0:
                logger.info("No snapshot at %s, starting with empty queues", self.path)
                return Workflow()
            with open(self.path, "rb") as f:
                raw = gzip.decompress(f.read())
            workflow = workflow_from_dict(json.loads(raw.decode("utf-8")))
        except (OSError, EOFError, zlib.error, RecursionError,
                ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Snapshot %s unreadable (%s: %s), starting with empty queues",
                           self.path, type(e).__name__, e)
            return Workflow()

        logger.info("Snapshot loaded: %s (%d devices)", self.path, len(workflow))
        return workflow

    def exists(self) -> bool:
        return self.path.exists()
