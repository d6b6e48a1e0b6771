"""
Repair Desk — CLI Tests

Non-interactive subcommands against temporary snapshot/history files.
"""

import contextlib
import io
import os
import shutil
import sys
import tempfile
import unittest
from datetime import date

_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from workshop.cli import COMMANDS, build_parser, main
from workshop.history import HistoryLog
from workshop.runtime import ServiceDesk
from workshop.store import SnapshotStore


class TestCLI(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.snapshot = os.path.join(self.tmpdir, "data.snapshot")
        self.history = os.path.join(self.tmpdir, "records.log")

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def seed(self):
        desk = ServiceDesk.open(SnapshotStore(self.snapshot), HistoryLog(self.history))
        desk.admit("SN-1", "no enciende", date(2024, 5, 1), "Ana", "a@x", "22223333")
        desk.admit("SN-2", "lento", date(2024, 5, 2), "Beto", "b@x", "22223334")
        desk.advance_from_received("placa quemada", True)

    def run_cli(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            code = main(["--snapshot", self.snapshot, "--history", self.history,
                         "--log-level", "ERROR", *argv])
        return code, out.getvalue(), err.getvalue()

    def test_parser_commands(self):
        parser = build_parser()
        for name in COMMANDS:
            argv = [name, "out.txt"] if name == "export-history" else [name]
            self.assertEqual(parser.parse_args(argv).command, name)

    def test_queues(self):
        self.seed()
        code, out, _ = self.run_cli("queues")
        self.assertEqual(code, 0)
        self.assertIn("1. SN-2 - Beto", out)
        self.assertIn("🛠️ En Reparación (1 equipos)", out)

    def test_queues_without_files(self):
        code, out, _ = self.run_cli("queues")
        self.assertEqual(code, 0)
        self.assertEqual(out.count("No hay equipos en esta cola."), 5)

    def test_history(self):
        self.seed()
        code, out, _ = self.run_cli("history")
        self.assertEqual(code, 0)
        self.assertIn("📚 HISTORIAL COMPLETO DEL SISTEMA", out)

    def test_history_for_device(self):
        self.seed()
        code, out, _ = self.run_cli("history", "--device", "sn-1")
        self.assertEqual(code, 0)
        self.assertIn("(2 records)", out)
        self.assertNotIn("SN-2", out)

    def test_history_for_unknown_device(self):
        self.seed()
        code, out, _ = self.run_cli("history", "-d", "SN-9")
        self.assertEqual(code, 0)
        self.assertIn("No history records for SN-9.", out)

    def test_export_history(self):
        self.seed()
        target = os.path.join(self.tmpdir, "export.txt")
        code, out, _ = self.run_cli("export-history", target)
        self.assertEqual(code, 0)
        self.assertIn("📤 Historial exportado a:", out)
        with open(target, encoding="utf-8") as f:
            self.assertIn("🏷️ Identificador: SN-1", f.read())

    def test_export_history_failure(self):
        code, _, err = self.run_cli("export-history", os.path.join(self.tmpdir, "no", "x.txt"))
        self.assertEqual(code, 1)
        self.assertIn("Error al exportar historial", err)

    def test_verify(self):
        self.seed()
        code, out, _ = self.run_cli("verify")
        self.assertEqual(code, 0)
        self.assertIn("[ok]", out)
        self.assertNotIn("FAIL", out)

    def test_verify_reports_config_source(self):
        config = os.path.join(self.tmpdir, "desk.yaml")
        with open(config, "w") as f:
            f.write("logging:\n  level: ERROR\n")
        out = io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(io.StringIO()):
            code = main(["--config", config, "--snapshot", self.snapshot,
                         "--history", self.history, "verify"])
        self.assertEqual(code, 0)
        self.assertIn(f"config:   {config}", out.getvalue())

    def test_verify_failure(self):
        os.mkdir(self.snapshot)
        code, out, err = self.run_cli("verify")
        self.assertEqual(code, 1)
        self.assertIn("FAIL", out)
        self.assertIn("Problema con el archivo de datos", err)


if __name__ == "__main__":
    unittest.main()
