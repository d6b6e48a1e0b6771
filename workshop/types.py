"""
Repair Desk — Type Definitions

Pipeline stages, the immutable activity record, and the device record
that moves between stage queues.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date
from typing import Any


# ─── Stages ─────────────────────────────────────────────────────────

class Stage(str, enum.Enum):
    """Service pipeline stages, in display order."""
    RECEIVED = "received"
    UNDER_EVALUATION = "under_evaluation"   # display only, never populated
    IN_REPAIR = "in_repair"
    QUALITY_CHECK = "quality_check"
    READY_DELIVERY = "ready_delivery"

    @property
    def label(self) -> str:
        return _STAGE_LABELS[self]

    def __str__(self) -> str:
        return self.label


_STAGE_LABELS: dict[Stage, str] = {
    Stage.RECEIVED: "📥 Recibido",
    Stage.UNDER_EVALUATION: "🔍 En Evaluación",
    Stage.IN_REPAIR: "🛠️ En Reparación",
    Stage.QUALITY_CHECK: "✅ Control de Calidad",
    Stage.READY_DELIVERY: "📦 Listo para Entrega",
}


def same_identifier(a: str, b: str) -> bool:
    """
    Serial-number equality ignoring case, one character at a time.

    Characters match when equal or equal after upper- or lower-casing
    each one alone. Full case folding is not applied, so "straße" and
    "STRASSE" stay distinct identifiers.
    """
    if len(a) != len(b):
        return False
    return all(
        x == y or x.upper() == y.upper() or x.lower() == y.lower()
        for x, y in zip(a, b)
    )


# ─── Activity ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class ActivityRecord:
    """One thing that happened to a device, stamped with its stage."""
    date: date
    description: str
    stage: Stage

    def __str__(self) -> str:
        return f"📅 {self.date.isoformat()} - [{self.stage.label}] {self.description}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "description": self.description,
            "stage": self.stage.value,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ActivityRecord:
        return ActivityRecord(
            date=date.fromisoformat(data["date"]),
            description=data["description"],
            stage=Stage(data["stage"]),
        )


# ─── Device ─────────────────────────────────────────────────────────

@dataclass
class Device:
    """
    One physical unit in the shop.

    Identity and contact fields are fixed at creation. The work fields
    are filled in as the device moves through the pipeline, and every
    step is recorded in activity_log.
    """
    identifier: str
    issue_description: str
    entry_date: date
    owner_name: str
    owner_email: str
    owner_phone: str

    current_stage: Stage = Stage.RECEIVED
    technical_analysis: str | None = None
    repair_work: str | None = None
    technician_id: str | None = None

    activity_log: list[ActivityRecord] = field(default_factory=list)

    @staticmethod
    def create(
        identifier: str,
        issue: str,
        entry_date: date,
        owner: str,
        email: str,
        phone: str,
    ) -> Device:
        device = Device(
            identifier=identifier,
            issue_description=issue,
            entry_date=entry_date,
            owner_name=owner,
            owner_email=email,
            owner_phone=phone,
        )
        device.record_activity(f"Equipo recibido en el sistema: {issue}")
        return device

    def record_activity(self, description: str) -> ActivityRecord:
        record = ActivityRecord(date.today(), description, self.current_stage)
        self.activity_log.append(record)
        return record

    def matches(self, identifier: str) -> bool:
        """Case-insensitive identifier comparison (see same_identifier)."""
        return same_identifier(self.identifier, identifier)

    @property
    def last_activity(self) -> ActivityRecord | None:
        return self.activity_log[-1] if self.activity_log else None

    # ── Display ─────────────────────────────────────────────────

    def summary(self) -> str:
        return "\n".join([
            f"🔢 Número de serie: {self.identifier}",
            f"👤 Propietario: {self.owner_name}",
            f"📊 Estado actual: {self.current_stage.label}",
            f"📅 Fecha de ingreso: {self.entry_date.isoformat()}",
            f"🔧 Descripción del problema: {self.issue_description}",
            f"📞 Contacto: {self.owner_email} / {self.owner_phone}",
        ])

    def full_details(self) -> str:
        lines = [self.summary()]
        if self.technical_analysis:
            lines.append(f"🔍 Análisis técnico: {self.technical_analysis}")
        if self.repair_work:
            lines.append(f"🛠️ Trabajo realizado: {self.repair_work}")
            lines.append(f"👨‍🔧 Técnico asignado: {self.technician_id}")
        lines.append("")
        lines.append("📜 Registro de actividades:")
        for record in self.activity_log:
            lines.append(f"   {record}")
        return "\n".join(lines) + "\n"

    # ── Serialization ───────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "issue_description": self.issue_description,
            "entry_date": self.entry_date.isoformat(),
            "owner_name": self.owner_name,
            "owner_email": self.owner_email,
            "owner_phone": self.owner_phone,
            "current_stage": self.current_stage.value,
            "technical_analysis": self.technical_analysis,
            "repair_work": self.repair_work,
            "technician_id": self.technician_id,
            "activity_log": [r.to_dict() for r in self.activity_log],
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Device:
        return Device(
            identifier=data["identifier"],
            issue_description=data["issue_description"],
            entry_date=date.fromisoformat(data["entry_date"]),
            owner_name=data["owner_name"],
            owner_email=data["owner_email"],
            owner_phone=data["owner_phone"],
            current_stage=Stage(data["current_stage"]),
            technical_analysis=data.get("technical_analysis"),
            repair_work=data.get("repair_work"),
            technician_id=data.get("technician_id"),
            activity_log=[ActivityRecord.from_dict(r) for r in data.get("activity_log", [])],
        )
