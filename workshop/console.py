"""
Repair Desk — Operator Console

Interactive menu driving a ServiceDesk. Each menu entry shows the device
it is about to act on, collects and validates every answer first, and
only then calls the desk, so aborting a prompt (Ctrl-D / Ctrl-C) leaves
the queues untouched and returns to the menu.
"""

from __future__ import annotations

import logging
import sys
from typing import Callable, TextIO

from common.validate import (
    InvalidInput,
    parse_date,
    parse_email,
    parse_menu_choice,
    parse_phone,
    parse_text,
    parse_yes_no,
)
from workshop.errors import PersistenceError, WorkshopError
from workshop.runtime import ServiceDesk
from workshop.types import Device, Stage

logger = logging.getLogger("repair_desk.console")

MENU = """\
╔══════════════════════════════════════════════════╗
║              🔧 SISTEMA DE SOPORTE              ║
║            TÉCNICO COMPUTACIONAL 🔧             ║
╠══════════════════════════════════════════════════╣
║  1️⃣  ► Consultar estado de colas                ║
║  2️⃣  ► Ingresar nuevo equipo                    ║
║  3️⃣  ► Realizar evaluación técnica              ║
║  4️⃣  ► Ver registro histórico                   ║
║  5️⃣  ► Procesar reparación                      ║
║  6️⃣  ► Control de calidad                       ║
║  7️⃣  ► Gestionar entrega                        ║
║  8️⃣  ► Eliminar registro                        ║
║  0️⃣  ► Cerrar sistema                           ║
╚══════════════════════════════════════════════════╝"""

GOODBYE = """\
╔════════════════════════════════════════╗
║     Sistema cerrado exitosamente      ║
╚════════════════════════════════════════╝"""


class PromptAborted(Exception):
    """The operator closed input or interrupted a prompt."""
    pass


def _banner(title: str) -> str:
    return (
        "┌─────────────────────────────────────┐\n"
        f"│    {title:<33}│\n"
        "└─────────────────────────────────────┘"
    )


def render_queues(listing: list[tuple[Stage, list[Device]]]) -> str:
    """Queue overview: every stage with its devices in FIFO order."""
    lines = []
    for stage, devices in listing:
        lines.append(f"\n🔸 {stage.label} ({len(devices)} equipos):")
        if not devices:
            lines.append("   └─ No hay equipos en esta cola.")
        for position, device in enumerate(devices, start=1):
            lines.append(f"   {position}. {device.identifier} - {device.owner_name}")
    return "\n".join(lines)


class OperatorConsole:
    """Menu loop for a single operator."""

    def __init__(
        self,
        desk: ServiceDesk,
        input_fn: Callable[[str], str] = input,
        out: TextIO | None = None,
        clear: bool = True,
        pause: bool = True,
    ):
        self.desk = desk
        self._input = input_fn
        self._out = out or sys.stdout
        self._clear_enabled = clear
        self._pause_enabled = pause
        self._actions: dict[int, Callable[[], None]] = {
            1: self.show_queues,
            2: self.register_device,
            3: self.evaluate_device,
            4: self.show_history,
            5: self.repair_device,
            6: self.verify_quality,
            7: self.deliver_device,
            8: self.delete_device,
        }

    # ── I/O helpers ─────────────────────────────────────────────

    def _say(self, text: str = "") -> None:
        print(text, file=self._out)

    def _ask(self, prompt: str) -> str:
        try:
            return self._input(prompt)
        except (EOFError, KeyboardInterrupt):
            raise PromptAborted() from None

    def _ask_valid(self, prompt: str, parse: Callable[[str], object]):
        while True:
            try:
                return parse(self._ask(prompt))
            except InvalidInput as e:
                self._say(str(e))

    def _ask_yes_no(self, prompt: str) -> bool:
        answer = self._ask(prompt)
        while True:
            try:
                return parse_yes_no(answer)
            except InvalidInput as e:
                answer = self._ask(str(e))

    def _clear(self) -> None:
        if self._clear_enabled:
            self._out.write("\033[H\033[2J")
            self._out.flush()

    def _pause(self) -> None:
        if not self._pause_enabled:
            return
        try:
            self._ask("\n⏸️  Presione Enter para continuar...")
        except PromptAborted:
            pass

    # ── Main loop ───────────────────────────────────────────────

    def run(self) -> int:
        """Run until the operator exits. Returns the process exit code."""
        while True:
            self._clear()
            self._say(MENU)
            try:
                raw = self._ask("Ingrese su elección: ")
            except PromptAborted:
                raw = "0"

            try:
                choice = parse_menu_choice(raw)
            except InvalidInput as e:
                self._say(str(e))
                self._pause()
                continue

            if choice == 0:
                return self.shutdown()

            action = self._actions.get(choice)
            if action is None:
                self._say("❌ Selección inválida. Intente nuevamente.")
                self._pause()
                continue

            self.dispatch(action)
            self._pause()

    def dispatch(self, action: Callable[[], None]) -> None:
        """Run one menu action, reporting every failure without leaving the loop."""
        try:
            action()
        except PromptAborted:
            self._say("\n↩️  Operación cancelada. Regresando al menú principal.")
        except WorkshopError as e:
            self._say(f"❌ {e.label}: {e}")
        except Exception as e:
            logger.exception("Unexpected error in menu action %s", getattr(action, "__name__", action))
            self._say(f"❌ Error inesperado: {e}")

    def shutdown(self) -> int:
        try:
            self.desk.save()
        except PersistenceError as e:
            self._say(f"❌ Error crítico al persistir datos: {e}")
            return 1
        self._say("💾 Estado del sistema guardado exitosamente.")
        self._say(GOODBYE)
        return 0

    # ── Menu actions ────────────────────────────────────────────

    def show_queues(self) -> None:
        self._clear()
        self._say(_banner("📊 ESTADO DE COLAS"))
        self._say(render_queues(self.desk.list_by_stage()))

    def show_history(self) -> None:
        self._clear()
        self._say(_banner("📜 REGISTRO HISTÓRICO"))
        self._say(self.desk.read_history())

    def register_device(self) -> None:
        self._clear()
        self._say(_banner("📝 REGISTRO DE NUEVO EQUIPO"))

        while True:
            identifier = self._ask_valid("Número de serie del equipo: ", parse_text)
            if self.desk.find_by_identifier(identifier) is None:
                break
            self._say("⚠️  Error: Ya existe un equipo con ese número de serie.")
            if not self._ask_yes_no("¿Desea intentar con otro número? (S/N): "):
                return

        issue = self._ask_valid("Descripción del problema: ", parse_text)
        entry_date = self._ask_valid("Fecha de ingreso (YYYY-MM-DD): ", parse_date)
        owner = self._ask_valid("Nombre del propietario: ", parse_text)
        email = self._ask_valid("Correo electrónico: ", parse_email)
        phone = self._ask_valid("Número telefónico (8 dígitos): ", parse_phone)

        self.desk.admit(identifier, issue, entry_date, owner, email, phone)
        self._say("✅ Equipo registrado correctamente.")

    def evaluate_device(self) -> None:
        self._clear()
        self._say(_banner("🔍 EVALUACIÓN TÉCNICA"))

        device = self.desk.peek(Stage.RECEIVED)
        if device is None:
            self._say("ℹ️  No hay equipos pendientes de evaluación.")
            return

        self._say(f"🔧 Evaluando: {device.identifier}")
        self._say("\n📋 Información del equipo:")
        self._say(device.summary())

        analysis = self._ask_valid("\nIngrese el análisis técnico: ", parse_text)
        requires_repair = self._ask_yes_no("¿El equipo requiere reparación? (S/N): ")

        self.desk.advance_from_received(analysis, requires_repair)
        if requires_repair:
            self._say("📤 Equipo enviado a cola de reparación.")
        else:
            self._say("📤 Equipo enviado directamente a entrega.")

    def repair_device(self) -> None:
        self._clear()
        self._say(_banner("🛠️  PROCESO DE REPARACIÓN"))

        device = self.desk.peek(Stage.IN_REPAIR)
        if device is None:
            self._say("ℹ️  No hay equipos en reparación.")
            return

        self._say(f"🔧 Reparando: {device.identifier}")
        self._say("\n📋 Información del equipo:")
        self._say(device.summary())
        self._say(f"🔍 Análisis: {device.technical_analysis}")

        repair_text = self._ask_valid("\nDetalles del trabajo realizado: ", parse_text)
        technician_id = self._ask_valid("Identificación del técnico: ", parse_text)

        self.desk.advance_from_repair(repair_text, technician_id)
        self._say("✅ Equipo enviado a control de calidad.")

    def verify_quality(self) -> None:
        self._clear()
        self._say(_banner("✅ CONTROL DE CALIDAD"))

        device = self.desk.peek(Stage.QUALITY_CHECK)
        if device is None:
            self._say("ℹ️  No hay equipos en control de calidad.")
            return

        self._say(f"🔍 Verificando: {device.identifier}")
        self._say("\n📋 Información completa:")
        self._say(device.summary())
        self._say(f"🔍 Análisis: {device.technical_analysis}")
        self._say(f"🛠️  Reparación: {device.repair_work}")
        self._say(f"👨‍🔧 Técnico: {device.technician_id}")

        approved = self._ask_yes_no("\n¿El trabajo cumple con los estándares de calidad? (S/N): ")

        self.desk.advance_from_quality(approved)
        if approved:
            self._say("✅ Equipo aprobado y enviado a entrega.")
        else:
            self._say("❌ Equipo regresado a reparación.")

    def deliver_device(self) -> None:
        self._clear()
        self._say(_banner("📦 GESTIÓN DE ENTREGA"))

        device = self.desk.peek(Stage.READY_DELIVERY)
        if device is None:
            self._say("ℹ️  No hay equipos listos para entrega.")
            return

        self._say(f"📦 Procesando entrega: {device.identifier}")
        self._say("\n📋 Información completa del servicio:")
        self._say(device.full_details())

        confirmed = self._ask_yes_no("\n¿Confirmar entrega al cliente? (S/N): ")

        delivered = self.desk.deliver(confirmed)
        if confirmed:
            self._say(f"✅ Entrega confirmada para: {delivered.identifier}")
        else:
            self._say("❌ Entrega cancelada. Equipo regresado a cola de entrega.")

    def delete_device(self) -> None:
        self._clear()
        self._say(_banner("🗑️  ELIMINAR REGISTRO"))

        while True:
            identifier = self._ask_valid("Número de serie del equipo a eliminar: ", parse_text)
            device = self.desk.find_by_identifier(identifier)
            if device is not None:
                break
            self._say(f"❌ No se encontró equipo con número de serie: {identifier}")
            if not self._ask_yes_no("¿Desea intentar con otro número? (S/N): "):
                return

        self._say("\n📋 Información del equipo a eliminar:")
        self._say(device.summary())

        if self._ask_yes_no("\n¿Confirmar eliminación? (S/N): "):
            self.desk.delete_by_identifier(device.identifier)
            self._say("✅ Equipo eliminado exitosamente.")
        else:
            self._say("❌ Operación cancelada.")
