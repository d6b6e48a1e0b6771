"""
Repair Desk — Structured Logging

JSON log lines for every workflow event, written to stderr (or any
stream) under the "repair_desk" logger namespace. The console owns
stdout, so diagnostics never interleave with the menu.

Usage:
    from common.logging import DeskLogger, configure_logging

    configure_logging(level="INFO")
    events = DeskLogger()
    events.on_transition("SN-1", "received", "in_repair", "advance_from_received")

Every DeskLogger carries a session_id so one operator session can be
followed end to end.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import uuid
from datetime import datetime, timezone
from typing import Any

ROOT_LOGGER = "repair_desk"


# ═══════════════════════════════════════════════════════════════════
# JSON Formatter
# ═══════════════════════════════════════════════════════════════════

class JSONFormatter(logging.Formatter):
    """Formats log records as one JSON object per line."""

    def __init__(self, service_name: str = ROOT_LOGGER):
        super().__init__()
        self.service_name = service_name
        self.service_version = os.environ.get("RD_VERSION", "0.1.0")

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service.name": self.service_name,
            "service.version": self.service_version,
        }

        if hasattr(record, "structured"):
            entry.update(record.structured)

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception.type"] = record.exc_info[0].__name__
            entry["exception.message"] = str(record.exc_info[1])

        return json.dumps(entry, default=str, ensure_ascii=False)


# ═══════════════════════════════════════════════════════════════════
# Log Configuration
# ═══════════════════════════════════════════════════════════════════

def configure_logging(
    level: str = "WARNING",
    stream: Any = None,
    service_name: str = ROOT_LOGGER,
) -> logging.Logger:
    """
    Configure the repair_desk logger with JSON output.

    Args:
        level: DEBUG, INFO, WARNING, ERROR
        stream: Output stream (default: sys.stderr)
        service_name: Service name in log entries

    Returns:
        The configured repair_desk logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

    # Avoid duplicate handlers on reconfigure
    logger.handlers.clear()
    for name in list(logging.Logger.manager.loggerDict.keys()):
        if name.startswith(f"{ROOT_LOGGER}."):
            child = logging.getLogger(name)
            child.handlers.clear()
            child.setLevel(logging.NOTSET)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter(service_name=service_name))
    handler.setLevel(getattr(logging, level.upper(), logging.WARNING))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str = "") -> logging.Logger:
    """Get a child logger under the repair_desk namespace."""
    if name:
        return logging.getLogger(f"{ROOT_LOGGER}.{name}")
    return logging.getLogger(ROOT_LOGGER)


def generate_session_id() -> str:
    return uuid.uuid4().hex


# ═══════════════════════════════════════════════════════════════════
# Desk Event Logger
# ═══════════════════════════════════════════════════════════════════

class DeskLogger:
    """Structured events emitted by the service desk."""

    def __init__(self, session_id: str | None = None):
        self.session_id = session_id or generate_session_id()
        self._logger = get_logger("events")

    def _emit(self, level: int, action: str, **fields):
        if not self._logger.isEnabledFor(level):
            return
        structured = {"session_id": self.session_id, "action": action, **fields}
        record = self._logger.makeRecord(
            name=self._logger.name,
            level=level,
            fn="", lno=0, msg=action,
            args=(), exc_info=None,
        )
        record.structured = structured
        self._logger.handle(record)

    def on_admit(self, identifier: str, owner: str) -> None:
        self._emit(logging.INFO, "device_admitted", identifier=identifier, owner=owner)

    def on_transition(self, identifier: str, from_stage: str, to_stage: str,
                      operation: str) -> None:
        self._emit(
            logging.INFO, "stage_transition",
            identifier=identifier,
            from_stage=from_stage,
            to_stage=to_stage,
            operation=operation,
        )

    def on_delivered(self, identifier: str, activities: int) -> None:
        self._emit(logging.INFO, "device_delivered",
                   identifier=identifier, activities=activities)

    def on_delivery_cancelled(self, identifier: str, position: int) -> None:
        self._emit(logging.INFO, "delivery_cancelled",
                   identifier=identifier, position=position)

    def on_deleted(self, identifier: str, stage: str) -> None:
        self._emit(logging.WARNING, "device_deleted", identifier=identifier, stage=stage)

    def on_history_appended(self, identifier: str, stage: str) -> None:
        self._emit(logging.DEBUG, "history_appended", identifier=identifier, stage=stage)

    def on_snapshot_saved(self, devices: int) -> None:
        self._emit(logging.DEBUG, "snapshot_saved", devices=devices)

    def on_persistence_error(self, target: str, error: str) -> None:
        self._emit(logging.ERROR, "persistence_error", target=target, error=error[:500])
