import os
import sys
import json
import unittest
from unittest.mock import Mock, patch

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
import cli
from db import NoteRepository, WorkoutRepository


class CLITestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "test_cli.db"
        self.yaml_path = "test_cli.yaml"
        self.backup_path = "test_cli_backup.db"
        self.out_dir = "test_cli_out"
        os.makedirs(self.out_dir, exist_ok=True)
        self._cleanup()

    def tearDown(self) -> None:
        self._cleanup()
        if os.path.isdir(self.out_dir):
            os.rmdir(self.out_dir)

    def _cleanup(self) -> None:
        paths = [self.db_path, self.yaml_path, self.backup_path]
        paths += [os.path.join(self.out_dir, f) for f in ("history.json", "notes.json")]
        for path in paths:
            if os.path.exists(path):
                os.remove(path)

    def test_demo_data(self) -> None:
        cli.demo_data(self.db_path, self.yaml_path)
        history = WorkoutRepository(self.db_path).fetch_history()
        self.assertEqual(len(history), 1)
        self.assertTrue(history[0].is_completed)
        self.assertEqual(history[0].duration_at(history[0].end_time), 30)
        self.assertEqual(len(NoteRepository(self.db_path).fetch_notes()), 1)

        cli.demo_data(self.db_path, self.yaml_path)
        self.assertEqual(len(WorkoutRepository(self.db_path).fetch_history()), 1)

    def test_export(self) -> None:
        cli.demo_data(self.db_path, self.yaml_path)
        path = cli.export_data(self.db_path, "history", self.out_dir)
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        self.assertEqual(data[0]["name"], "Zen Strength")
        path = cli.export_data(self.db_path, "notes", self.out_dir)
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        self.assertEqual(data[0]["mood"], "Good")

    def test_backup_and_restore(self) -> None:
        cli.demo_data(self.db_path, self.yaml_path)
        cli.backup_db(self.db_path, self.backup_path)
        cli.reset_data(self.db_path, self.yaml_path)
        self.assertEqual(WorkoutRepository(self.db_path).fetch_history(), [])
        cli.restore_db(self.backup_path, self.db_path)
        self.assertEqual(len(WorkoutRepository(self.db_path).fetch_history()), 1)

    def test_convert(self) -> None:
        self.assertEqual(cli.convert_weight(100, "kg"), "100 kg = 220.46 lb")
        self.assertEqual(cli.convert_weight(220.46, "lb"), "220.46 lb = 100.0 kg")

    @patch("builtins.print")
    def test_main_convert(self, fake_print) -> None:
        cli.main(["convert", "--weight", "10", "--unit", "kg"])
        fake_print.assert_called_once_with("10.0 kg = 22.05 lb")

    @patch("builtins.print")
    @patch("reachability.requests.get")
    def test_main_check_link(self, get, fake_print) -> None:
        get.return_value = Mock(status_code=404)
        cli.main(["check-link", "--url", "https://zengym.app/gate", "--timeout", "3"])
        get.assert_called_once_with("https://zengym.app/gate", timeout=3.0)
        fake_print.assert_called_once_with("native")

    @patch("builtins.print")
    def test_main_stats(self, fake_print) -> None:
        cli.main(["stats", "--db", self.db_path, "--yaml", self.yaml_path])
        output = json.loads(fake_print.call_args[0][0])
        self.assertEqual(output["total_workouts"], 0)
        self.assertEqual(output["achievements"], [])

    def test_stats_lists_unlocked_achievements(self) -> None:
        cli.demo_data(self.db_path, self.yaml_path)
        with patch("builtins.print") as fake_print:
            cli.print_stats(self.db_path, self.yaml_path)
        output = json.loads(fake_print.call_args[0][0])
        self.assertEqual(output["total_workouts"], 1)
        self.assertEqual(output["achievements"], ["First Workout"])

    def test_main_vacuum(self) -> None:
        cli.demo_data(self.db_path, self.yaml_path)
        cli.reset_data(self.db_path, self.yaml_path)
        cli.main(["vacuum", "--db", self.db_path])
        self.assertTrue(os.path.exists(self.db_path))
        self.assertEqual(WorkoutRepository(self.db_path).fetch_history(), [])
        self.assertEqual(len(WorkoutRepository(self.db_path).fetch_templates()), 8)


if __name__ == "__main__":
    unittest.main()
