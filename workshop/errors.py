"""
Repair Desk — Error Hierarchy

Typed errors raised by the workflow engine and its persistence layer.
None of them is fatal: the operator console reports each one with its
label and returns to the main menu.

  DuplicateIdentifier — admit with a serial number already in use
  QueueEmpty          — stage-advancing operation on an empty stage
  NotFound            — lookup or deletion of an unknown serial number
  PersistenceError    — snapshot save or history write failed
"""

from __future__ import annotations


class WorkshopError(Exception):
    """Base exception for all Repair Desk errors."""
    label: str = "Error"

    def __init__(self, message: str = "", **kwargs):
        self.detail = kwargs
        super().__init__(message)


class DuplicateIdentifier(WorkshopError):
    """A device with the same identifier (any case) is already tracked."""
    label = "Número de serie duplicado"


class QueueEmpty(WorkshopError):
    """The source stage has no devices waiting."""
    label = "Cola vacía"


class NotFound(WorkshopError):
    """No live device matches the identifier."""
    label = "Equipo no encontrado"


class PersistenceError(WorkshopError):
    """Snapshot or history I/O failed. In-memory state is kept."""
    label = "Error de persistencia"


class InvalidTransition(WorkshopError):
    """A device was routed to a stage its current stage cannot reach."""
    label = "Transición inválida"
