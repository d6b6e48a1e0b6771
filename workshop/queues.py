"""
Repair Desk — Stage Queue

FIFO queue of devices bound to one pipeline stage. Enqueueing a device
moves it into the queue's stage; everything else is plain FIFO access.
"""

from __future__ import annotations

from collections import deque
from typing import Iterator

from workshop.errors import NotFound, QueueEmpty
from workshop.types import Device, Stage


class StageQueue:
    """FIFO queue of devices waiting at a single stage."""

    def __init__(self, stage: Stage):
        self.stage = stage
        self._devices: deque[Device] = deque()

    def enqueue(self, device: Device) -> None:
        device.current_stage = self.stage
        self._devices.append(device)

    def dequeue(self) -> Device:
        if not self._devices:
            raise QueueEmpty(
                f"No devices waiting in {self.stage.label}",
                stage=self.stage.value,
            )
        return self._devices.popleft()

    def peek(self) -> Device | None:
        return self._devices[0] if self._devices else None

    def size(self) -> int:
        return len(self._devices)

    def is_empty(self) -> bool:
        return not self._devices

    def list(self) -> list[Device]:
        """Snapshot of the queue contents in FIFO order."""
        return list(self._devices)

    def find(self, identifier: str) -> Device | None:
        for device in self._devices:
            if device.matches(identifier):
                return device
        return None

    def remove_by_identifier(self, identifier: str) -> Device:
        for index, device in enumerate(self._devices):
            if device.matches(identifier):
                del self._devices[index]
                return device
        raise NotFound(
            f"No device {identifier!r} in {self.stage.label}",
            identifier=identifier,
            stage=self.stage.value,
        )

    def __len__(self) -> int:
        return len(self._devices)

    def __iter__(self) -> Iterator[Device]:
        return iter(list(self._devices))

    def __repr__(self) -> str:
        return f"StageQueue({self.stage.value}, size={len(self._devices)})"
