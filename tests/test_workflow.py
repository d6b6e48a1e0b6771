"""
Repair Desk — Workflow State Machine Tests

Tests the stage transitions and their boundaries:
  - admit / duplicate identifiers
  - evaluation routing (repair vs. straight to delivery)
  - quality rejection loopback
  - delivery confirm / cancel
  - lookup and deletion
  - invariants: stage matches queue, unique identifiers, append-only logs
"""

import os
import sys
import unittest
from datetime import date

_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from workshop.errors import DuplicateIdentifier, InvalidTransition, NotFound, QueueEmpty
from workshop.types import Device, Stage
from workshop.workflow import Workflow


def _device(identifier: str, issue: str = "no enciende") -> Device:
    return Device.create(identifier, issue, date(2024, 5, 1), "Ana", "a@x", "22223333")


def _descriptions(device: Device) -> list[str]:
    return [r.description for r in device.activity_log]


class _WorkflowTestCase(unittest.TestCase):

    def setUp(self):
        self.wf = Workflow()

    def assertInvariants(self):
        seen = set()
        for stage, devices in self.wf.list_by_stage():
            for device in devices:
                self.assertEqual(device.current_stage, stage)
                key = device.identifier.lower()
                self.assertNotIn(key, seen)
                seen.add(key)

    def ids(self, stage: Stage) -> list[str]:
        return [d.identifier for d in self.wf.queue(stage).list()]


class TestAdmit(_WorkflowTestCase):

    def test_admit_into_received(self):
        device = self.wf.admit(_device("SN-1"))
        self.assertEqual(self.ids(Stage.RECEIVED), ["SN-1"])
        self.assertEqual(device.current_stage, Stage.RECEIVED)
        self.assertEqual(_descriptions(device), [
            "Equipo recibido en el sistema: no enciende",
            "Equipo ingresado al sistema",
        ])
        self.assertInvariants()

    def test_duplicate_any_case_rejected(self):
        self.wf.admit(_device("SN-3"))
        with self.assertRaises(DuplicateIdentifier):
            self.wf.admit(_device("sn-3"))
        self.assertEqual(len(self.wf), 1)
        self.assertInvariants()

    def test_expanding_case_forms_are_distinct(self):
        self.wf.admit(_device("STRASSE"))
        self.wf.admit(_device("straße"))
        self.assertEqual(self.ids(Stage.RECEIVED), ["STRASSE", "straße"])
        self.assertInvariants()

    def test_duplicate_detected_in_later_stage(self):
        self.wf.admit(_device("SN-3"))
        self.wf.advance_from_received("x", True)
        with self.assertRaises(DuplicateIdentifier):
            self.wf.admit(_device("Sn-3"))
        self.assertEqual(self.wf.counts()[Stage.RECEIVED], 0)

    def test_one_queue_per_stage(self):
        self.assertEqual(set(self.wf.counts()), set(Stage))
        self.assertTrue(self.wf.queue(Stage.UNDER_EVALUATION).is_empty())


class TestEvaluation(_WorkflowTestCase):

    def test_requires_repair_routes_to_in_repair(self):
        self.wf.admit(_device("SN-1"))
        device = self.wf.advance_from_received("placa quemada", True)
        self.assertEqual(device.technical_analysis, "placa quemada")
        self.assertEqual(self.ids(Stage.IN_REPAIR), ["SN-1"])
        self.assertEqual(_descriptions(device)[-2:], [
            "Evaluación técnica realizada: placa quemada",
            "Enviado a reparación",
        ])
        self.assertEqual(device.activity_log[-2].stage, Stage.RECEIVED)
        self.assertEqual(device.activity_log[-1].stage, Stage.IN_REPAIR)
        self.assertInvariants()

    def test_no_repair_routes_to_delivery(self):
        self.wf.admit(_device("SN-2"))
        device = self.wf.advance_from_received("limpieza", False)
        self.assertEqual(self.ids(Stage.READY_DELIVERY), ["SN-2"])
        self.assertEqual(self.ids(Stage.IN_REPAIR), [])
        self.assertEqual(_descriptions(device)[-1], "No requiere reparación. Listo para entrega")
        self.assertInvariants()

    def test_fifo_across_received(self):
        for ident in ("A", "B"):
            self.wf.admit(_device(ident))
        self.assertEqual(self.wf.advance_from_received("x", True).identifier, "A")
        self.assertEqual(self.wf.advance_from_received("y", True).identifier, "B")
        self.assertEqual(self.ids(Stage.IN_REPAIR), ["A", "B"])


class TestEmptySources(_WorkflowTestCase):

    def test_each_advance_on_empty_raises(self):
        with self.assertRaises(QueueEmpty):
            self.wf.advance_from_received("x", True)
        with self.assertRaises(QueueEmpty):
            self.wf.advance_from_repair("x", "T1")
        with self.assertRaises(QueueEmpty):
            self.wf.advance_from_quality(True)
        with self.assertRaises(QueueEmpty):
            self.wf.deliver(True)
        self.assertEqual(len(self.wf), 0)

    def test_empty_source_leaves_other_stages_alone(self):
        self.wf.admit(_device("SN-1"))
        before = _descriptions(self.wf.find_by_identifier("SN-1"))
        with self.assertRaises(QueueEmpty):
            self.wf.advance_from_repair("x", "T1")
        self.assertEqual(self.ids(Stage.RECEIVED), ["SN-1"])
        self.assertEqual(_descriptions(self.wf.find_by_identifier("SN-1")), before)


class TestRepairAndQuality(_WorkflowTestCase):

    def _to_repair(self, ident="SN-1"):
        self.wf.admit(_device(ident))
        self.wf.advance_from_received("placa quemada", True)

    def test_repair_moves_to_quality(self):
        self._to_repair()
        device = self.wf.advance_from_repair("reemplazo de placa", "T7")
        self.assertEqual(device.repair_work, "reemplazo de placa")
        self.assertEqual(device.technician_id, "T7")
        self.assertEqual(self.ids(Stage.QUALITY_CHECK), ["SN-1"])
        self.assertEqual(_descriptions(device)[-1], "Reparación completada por T7: reemplazo de placa")
        self.assertInvariants()

    def test_quality_approved(self):
        self._to_repair()
        self.wf.advance_from_repair("reemplazo", "T7")
        device = self.wf.advance_from_quality(True)
        self.assertEqual(self.ids(Stage.READY_DELIVERY), ["SN-1"])
        self.assertEqual(_descriptions(device)[-1],
                         "Aprobado en control de calidad. Listo para entrega")

    def test_quality_rejection_loops_back(self):
        self._to_repair()
        self.wf.advance_from_repair("primer intento", "T7")
        device = self.wf.advance_from_quality(False)
        self.assertEqual(self.ids(Stage.IN_REPAIR), ["SN-1"])
        self.assertEqual(device.activity_log[-1].stage, Stage.IN_REPAIR)

        self.wf.advance_from_repair("segundo intento", "T8")
        self.wf.advance_from_quality(True)
        self.wf.deliver(True)

        log = _descriptions(device)
        first = log.index("Reparación completada por T7: primer intento")
        rejected = log.index("Rechazado en control de calidad. Regresado a reparación")
        second = log.index("Reparación completada por T8: segundo intento")
        self.assertLess(first, rejected)
        self.assertLess(rejected, second)
        self.assertEqual(log[-1], "Equipo entregado al cliente")
        self.assertEqual(device.technician_id, "T8")
        self.assertEqual(len(self.wf), 0)


class TestDelivery(_WorkflowTestCase):

    def _ready(self, *idents):
        for ident in idents:
            self.wf.admit(_device(ident))
            self.wf.advance_from_received("ok", False)

    def test_confirmed_releases_device(self):
        self._ready("SN-2")
        device = self.wf.deliver(True)
        self.assertEqual(len(self.wf), 0)
        self.assertIsNone(self.wf.find_by_identifier("SN-2"))
        self.assertEqual(_descriptions(device)[-2:], [
            "No requiere reparación. Listo para entrega",
            "Equipo entregado al cliente",
        ])

    def test_cancel_goes_to_tail_without_activity(self):
        self._ready("SN-4", "SN-5")
        head = self.wf.queue(Stage.READY_DELIVERY).peek()
        entries = len(head.activity_log)
        device = self.wf.deliver(False)
        self.assertIs(device, head)
        self.assertEqual(self.ids(Stage.READY_DELIVERY), ["SN-5", "SN-4"])
        self.assertEqual(len(device.activity_log), entries)
        self.assertEqual(device.current_stage, Stage.READY_DELIVERY)

    def test_cancel_single_device_stays(self):
        self._ready("SN-4")
        self.wf.deliver(False)
        self.assertEqual(self.ids(Stage.READY_DELIVERY), ["SN-4"])


class TestLookupAndDelete(_WorkflowTestCase):

    def test_find_across_stages(self):
        self.wf.admit(_device("A"))
        self.wf.admit(_device("B"))
        self.wf.advance_from_received("x", True)
        self.assertEqual(self.wf.find_by_identifier("a").current_stage, Stage.IN_REPAIR)
        self.assertEqual(self.wf.find_by_identifier("B").current_stage, Stage.RECEIVED)
        self.assertIsNone(self.wf.find_by_identifier("C"))

    def test_delete_from_any_stage(self):
        self.wf.admit(_device("A"))
        self.wf.admit(_device("B"))
        self.wf.advance_from_received("x", True)
        entries = len(self.wf.find_by_identifier("A").activity_log)
        removed = self.wf.delete_by_identifier("a")
        self.assertEqual(removed.identifier, "A")
        self.assertEqual(len(removed.activity_log), entries)
        self.assertEqual(self.ids(Stage.IN_REPAIR), [])
        self.assertEqual(self.ids(Stage.RECEIVED), ["B"])

    def test_delete_unknown_raises(self):
        self.wf.admit(_device("A"))
        with self.assertRaises(NotFound):
            self.wf.delete_by_identifier("Z")
        self.assertEqual(len(self.wf), 1)

    def test_deleted_identifier_can_be_admitted_again(self):
        self.wf.admit(_device("A"))
        self.wf.delete_by_identifier("A")
        self.wf.admit(_device("a"))
        self.assertEqual(self.ids(Stage.RECEIVED), ["a"])

    def test_list_by_stage_order(self):
        self.assertEqual([s for s, _ in self.wf.list_by_stage()], list(Stage))


class TestTransitionGuard(_WorkflowTestCase):

    def test_move_outside_table_rejected(self):
        device = _device("A")
        device.current_stage = Stage.IN_REPAIR
        with self.assertRaises(InvalidTransition):
            self.wf._move(device, Stage.READY_DELIVERY)


class TestActivityLogAppendOnly(_WorkflowTestCase):

    def test_every_observation_extends_the_previous(self):
        device = self.wf.admit(_device("SN-1"))
        observed = [list(device.activity_log)]
        self.wf.advance_from_received("a", True)
        observed.append(list(device.activity_log))
        self.wf.advance_from_repair("b", "T1")
        observed.append(list(device.activity_log))
        self.wf.advance_from_quality(False)
        observed.append(list(device.activity_log))
        self.wf.advance_from_repair("c", "T1")
        self.wf.advance_from_quality(True)
        self.wf.deliver(False)
        observed.append(list(device.activity_log))
        self.wf.deliver(True)
        observed.append(list(device.activity_log))

        for earlier, later in zip(observed, observed[1:]):
            self.assertEqual(later[:len(earlier)], earlier)
        self.assertEqual(device.activity_log[0].description,
                         "Equipo recibido en el sistema: no enciende")


if __name__ == "__main__":
    unittest.main()
