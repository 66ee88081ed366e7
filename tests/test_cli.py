import io
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

from mystic_habits.core.database import JsonFileStore
from mystic_habits.main import build_parser, main, resolve_id


class TestResolveId(unittest.TestCase):
    def test_prefix_resolution(self) -> None:
        ids = ["abc123", "abd456", "xyz789"]
        self.assertEqual(resolve_id(ids, "xyz789"), "xyz789")
        self.assertEqual(resolve_id(ids, "x"), "xyz789")
        self.assertEqual(resolve_id(ids, "ab"), "ab")
        self.assertEqual(resolve_id(ids, "nope"), "nope")


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.data_dir = Path(self._tmp.name) / "data"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def run_cli(self, *argv: str):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(["--data-dir", str(self.data_dir), *argv])
        return code, out.getvalue(), err.getvalue()

    def login(self, *argv: str):
        return self.run_cli("--user", "alice", "--pin", "1234", *argv)

    def snapshot(self) -> dict:
        return JsonFileStore(self.data_dir).load_snapshot("cyberMysticData_alice")

    def test_add_and_complete_habit(self) -> None:
        code, out, _ = self.login("add-habit", "Read", "--difficulty", "medium")
        self.assertEqual(code, 0)
        self.assertIn("'Read' added", out)

        habit_id = self.snapshot()["habits"][0]["habit_id"]
        code, out, _ = self.login("habit-done", habit_id[:8])
        self.assertEqual(code, 0)
        self.assertIn("xp=12", out)

        code, out, _ = self.login("habit-done", habit_id, "--undo")
        self.assertIn("xp=0", out)

    def test_tasks_and_list(self) -> None:
        self.login("add-task", "Ship", "--priority", "high", "--repeat", "fri,mon")
        task = self.snapshot()["tasks"][0]
        self.assertEqual(task["repeat"], ["mon", "fri"])

        self.login("task-done", task["task_id"])
        code, out, _ = self.login("list", "tasks")
        self.assertEqual(code, 0)
        self.assertIn("[x]", out)
        self.assertIn("Ship <high>", out)
        self.assertIn("xp 16/", out)

    def test_edit_and_delete(self) -> None:
        self.login("add-task", "Ship", "--due", "2030-01-01")
        task_id = self.snapshot()["tasks"][0]["task_id"]

        code, _, _ = self.login("edit-task", task_id, "--title", "Ship it", "--no-due")
        self.assertEqual(code, 0)
        self.assertEqual(self.snapshot()["tasks"][0]["title"], "Ship it")
        self.assertIsNone(self.snapshot()["tasks"][0]["due"])

        self.assertEqual(self.login("delete-task", task_id)[0], 0)
        self.assertEqual(self.login("delete-task", task_id)[0], 1)

    def test_wrong_pin(self) -> None:
        self.login("sweep")
        code, _, err = self.run_cli("--user", "alice", "--pin", "0000", "sweep")
        self.assertEqual(code, 1)
        self.assertIn("Incorrect PIN", err)

    def test_validation_error_exit_code(self) -> None:
        code, _, err = self.login("add-habit", "   ")
        self.assertEqual(code, 1)
        self.assertIn("must not be empty", err)

    def test_requires_login(self) -> None:
        code, _, err = self.run_cli("list")
        self.assertEqual(code, 1)
        self.assertIn("No remembered user", err)

    def test_remember_and_logout(self) -> None:
        self.run_cli("--user", "alice", "--pin", "1234", "--remember", "sweep")
        self.assertEqual(self.run_cli("list")[0], 0)
        self.assertEqual(self.run_cli("logout")[0], 0)
        self.assertEqual(self.run_cli("list")[0], 1)

    def test_logout_without_remembered_user(self) -> None:
        code, out, _ = self.run_cli("logout")
        self.assertEqual(code, 0)
        self.assertIn("Nobody is remembered", out)

    def test_logout_does_not_open_session(self) -> None:
        self.run_cli("--user", "alice", "--pin", "1234", "--remember", "sweep")
        path = self.data_dir / "cyberMysticData_alice.json"
        before = path.read_text(encoding="utf-8")

        code, out, _ = self.run_cli("logout")
        self.assertEqual(code, 0)
        self.assertIn("Logged out", out)
        self.assertEqual(path.read_text(encoding="utf-8"), before)
        self.assertIsNone(JsonFileStore(self.data_dir).get_value("cm_lastUser"))

    def test_settings(self) -> None:
        code, out, _ = self.login("settings", "--grace-days", "5", "--theme", "sunset")
        self.assertEqual(code, 0)
        self.assertIn("grace_days=3", out)
        self.assertIn("theme=sunset", out)

    def test_demo_and_stats(self) -> None:
        code, out, _ = self.run_cli("demo", "--seed", "1")
        self.assertEqual(code, 0)
        self.assertIn("Morning stretch", out)

        export_dir = Path(self._tmp.name) / "charts"
        code, out, _ = self.run_cli("stats", "--out", str(export_dir), "--days", "14")
        self.assertEqual(code, 0)
        self.assertTrue((export_dir / "habits.svg").exists())
        self.assertTrue((export_dir / "tasks.svg").exists())
        self.assertIn("xp: 120", out)

    def test_reset_needs_confirmation(self) -> None:
        self.login("sweep")
        self.assertEqual(self.login("reset")[0], 1)
        self.assertIsNotNone(self.snapshot())
        self.assertEqual(self.login("reset", "--yes")[0], 0)
        self.assertIsNone(self.snapshot())

    def test_parser_requires_command(self) -> None:
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                build_parser().parse_args([])


if __name__ == "__main__":
    unittest.main(verbosity=2)
