"""
Repair Desk — Service History Log

Append-only text ledger. Every mutating desk operation writes one record
describing the device as it stands after the change:

    ═══════════════════════════════════════════════
    🏷️ Identificador: SN-1
    📊 Estado Actual: 🛠️ En Reparación
    👤 Propietario: Ana
    📅 Fecha de Registro: 2024-05-01T10:32:07.114503
    🔍 Diagnóstico: placa quemada
    📝 Registro de Actividades:
        ↳ 📅 2024-05-01 - [📥 Recibido] Equipo recibido en el sistema: no enciende
        ...
    ═══════════════════════════════════════════════
    <blank line>

No update or delete is exposed. Records outlive the devices they
describe, including delivered ones.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from workshop.errors import PersistenceError
from workshop.types import Device, same_identifier

logger = logging.getLogger("repair_desk.history")

SEPARATOR = "═" * 47
HEADING = "📚 HISTORIAL COMPLETO DEL SISTEMA\n" + "═" * 50 + "\n\n"

# Anything this short holds the heading and nothing else
_EMPTY_THRESHOLD = 100

NO_RECORDS_MESSAGE = (
    "📝 No se encontraron registros históricos en el sistema.\n"
    "💡 Los registros aparecerán aquí cuando se procesen dispositivos."
)
EMPTY_MESSAGE = (
    "📝 El historial está vacío.\n"
    "💡 Los registros aparecerán aquí cuando se procesen dispositivos."
)
READ_ERROR_MESSAGE = (
    "⚠️ Error al recuperar el historial del sistema.\n"
    "🔧 Verifique los permisos de archivo y el espacio disponible."
)

_IDENTIFIER_PREFIX = "🏷️ Identificador: "


def format_record(device: Device, timestamp: datetime | None = None) -> str:
    """Render one history record, separators and trailing blank line included."""
    timestamp = timestamp or datetime.now()
    lines = [
        SEPARATOR,
        f"{_IDENTIFIER_PREFIX}{device.identifier}",
        f"📊 Estado Actual: {device.current_stage.label}",
        f"👤 Propietario: {device.owner_name}",
        f"📅 Fecha de Registro: {timestamp.isoformat()}",
    ]
    if device.technical_analysis:
        lines.append(f"🔍 Diagnóstico: {device.technical_analysis}")
    if device.repair_work:
        lines.append(f"🛠️ Intervención: {device.repair_work}")
        lines.append(f"👨‍🔧 Especialista: {device.technician_id}")
    lines.append("📝 Registro de Actividades:")
    for record in device.activity_log:
        lines.append(f"    ↳ {record}")
    lines.append(SEPARATOR)
    lines.append("")
    return "\n".join(lines) + "\n"


class HistoryLog:
    """Append-only service history file."""

    def __init__(self, path: str | Path = "service_records.log"):
        self.path = Path(path)

    def append(self, device: Device) -> None:
        record = format_record(device)
        try:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(record)
                f.flush()
        except OSError as e:
            logger.error("History append failed for %s: %s", device.identifier, e)
            raise PersistenceError(
                f"Could not write history record for {device.identifier}: {e}",
                path=str(self.path),
                identifier=device.identifier,
            ) from e

    def read_all(self) -> str:
        if not self.path.exists():
            return NO_RECORDS_MESSAGE

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.error("History read failed: %s (%s)", self.path, e)
            return READ_ERROR_MESSAGE

        history = HEADING + content
        if len(history) <= _EMPTY_THRESHOLD:
            return EMPTY_MESSAGE
        return history

    def records(self, identifier: str | None = None) -> list[str]:
        """
        Split the log into record blocks (separator to separator), oldest
        first. With an identifier, keep only that device's records.
        """
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                lines = f.read().splitlines()
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(f"Could not read history {self.path}: {e}",
                                   path=str(self.path)) from e

        blocks: list[str] = []
        current: list[str] | None = None
        for line in lines:
            if line == SEPARATOR:
                if current is None:
                    current = [line]
                else:
                    current.append(line)
                    blocks.append("\n".join(current))
                    current = None
            elif current is not None:
                current.append(line)

        if identifier is None:
            return blocks

        return [b for b in blocks if same_identifier(_block_identifier(b), identifier)]

    def export(self, destination: str | Path) -> Path:
        destination = Path(destination)
        try:
            with open(destination, "w", encoding="utf-8") as f:
                f.write(self.read_all())
        except OSError as e:
            raise PersistenceError(f"Could not export history to {destination}: {e}",
                                   path=str(destination)) from e
        logger.info("History exported to %s", destination)
        return destination

    def exists(self) -> bool:
        return self.path.exists()


def _block_identifier(block: str) -> str:
    for line in block.splitlines():
        if line.startswith(_IDENTIFIER_PREFIX):
            return line[len(_IDENTIFIER_PREFIX):]
    return ""
