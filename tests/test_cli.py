import io
import json
import os
import shutil
import tempfile
from contextlib import redirect_stdout
from unittest import TestCase
from unittest.mock import MagicMock, patch

from test_games_db import DatabaseTester

from savekeeper import cli
from savekeeper.database import games as games_db
from savekeeper.exceptions import BackupNotFoundError
from savekeeper.local_backup import ReconciliationReport

BACKUP = {
    "id": "3f1c",
    "size_bytes": 4096,
    "download_option_title": None,
    "created_at": "2024-01-02T10:00:00+00:00",
    "updated_at": "2024-01-02T10:00:00+00:00",
    "hostname": "deck",
    "download_count": 0,
    "label": "Before boss",
    "is_frozen": True,
}


class TestCommandLine(TestCase):
    def setUp(self):
        self.service = MagicMock()

    def run_cli(self, *argv):
        output = io.StringIO()
        with redirect_stdout(output):
            status = cli.main(list(argv), service=self.service)
        return status, output.getvalue()

    def test_list(self):
        self.service.list_backups.return_value = [BACKUP]
        status, output = self.run_cli("list", "steam", "1245620")
        self.assertEqual(status, 0)
        self.service.list_backups.assert_called_once_with("1245620", "steam")
        self.assertIn("Before boss", output)
        self.assertIn("4.0 kB", output)
        self.assertIn("[frozen]", output)

    def test_list_json(self):
        self.service.list_backups.return_value = [BACKUP]
        _status, output = self.run_cli("list", "steam", "1245620", "--json")
        self.assertEqual(json.loads(output), [BACKUP])

    def test_create(self):
        self.service.create_backup.return_value = "3f1c"
        status, output = self.run_cli("create", "steam", "1245620", "--label", "Before boss")
        self.assertEqual(status, 0)
        self.assertEqual(output.strip(), "3f1c")
        self.service.create_backup.assert_called_once_with("1245620", "steam", None, "Before boss")

    def test_freeze_and_unfreeze(self):
        self.run_cli("freeze", "3f1c")
        self.run_cli("unfreeze", "3f1c")
        self.assertEqual(
            [call.args for call in self.service.toggle_freeze.call_args_list],
            [("3f1c", True), ("3f1c", False)],
        )

    def test_restore(self):
        self.run_cli("restore", "3f1c", "steam", "1245620")
        self.service.restore_backup.assert_called_once_with("3f1c", "1245620", "steam")

    def test_errors_give_exit_status(self):
        self.service.delete_backup.side_effect = BackupNotFoundError("3f1c")
        status, _output = self.run_cli("delete", "3f1c")
        self.assertEqual(status, 1)

    def test_reconcile(self):
        self.service.reconcile.return_value = ReconciliationReport(["orphan"], ["gone"])
        _status, output = self.run_cli("reconcile", "--clean")
        self.service.reconcile.assert_called_once_with(clean=True)
        self.assertIn("orphaned archive: orphan", output)
        self.assertIn("missing archive: gone", output)


class TestGameCommands(DatabaseTester):
    def setUp(self):
        super().setUp()
        self.service = MagicMock()
        self.service.game_registry = games_db
        self.prefix = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.prefix)
        super().tearDown()

    def run_cli(self, *argv):
        output = io.StringIO()
        with redirect_stdout(output):
            status = cli.main(list(argv), service=self.service)
        return status, output.getvalue()

    def test_add_and_list(self):
        status, _output = self.run_cli("game", "add", "steam", "1245620", "--title", "Elden Ring",
                                       "--wine-prefix", self.prefix)
        self.assertEqual(status, 0)
        game = games_db.get_game("steam", "1245620")
        self.assertEqual(game["title"], "Elden Ring")
        self.assertEqual(game["wine_prefix_path"], os.path.realpath(self.prefix))
        _status, output = self.run_cli("game", "list")
        self.assertIn("Elden Ring", output)

    def test_add_twice_updates(self):
        self.run_cli("game", "add", "steam", "1245620", "--wine-prefix", self.prefix)
        self.run_cli("game", "add", "steam", "1245620", "--title", "Elden Ring")
        self.assertEqual(len(games_db.get_games()), 1)
        self.assertEqual(games_db.get_game("steam", "1245620")["title"], "Elden Ring")
        self.assertEqual(games_db.get_game("steam", "1245620")["wine_prefix_path"], os.path.realpath(self.prefix))

    def test_set_prefix(self):
        self.run_cli("game", "add", "steam", "1245620")
        status, _output = self.run_cli("game", "set-prefix", "steam", "1245620", self.prefix)
        self.assertEqual(status, 0)
        self.assertEqual(games_db.get_game("steam", "1245620")["wine_prefix_path"], os.path.realpath(self.prefix))

    def test_unknown_game(self):
        self.assertEqual(self.run_cli("game", "set-prefix", "steam", "1245620", self.prefix)[0], 1)
        self.assertEqual(self.run_cli("game", "remove", "steam", "1245620")[0], 1)

    def test_remove(self):
        self.run_cli("game", "add", "steam", "1245620")
        self.assertEqual(self.run_cli("game", "remove", "steam", "1245620")[0], 0)
        self.assertEqual(games_db.get_games(), [])


class TestConfigCommand(TestCase):
    def run_cli(self, *argv):
        output = io.StringIO()
        with redirect_stdout(output):
            status = cli.main(list(argv))
        return status, output.getvalue()

    @patch("savekeeper.settings.write_setting")
    def test_write_setting(self, write_setting):
        self.assertEqual(self.run_cli("config", "ludusavi_path", "/opt/ludusavi")[0], 0)
        write_setting.assert_called_once_with("ludusavi_path", "/opt/ludusavi")

    @patch("savekeeper.settings.read_setting", return_value="/srv/saves")
    def test_show_setting(self, _read_setting):
        self.assertEqual(self.run_cli("config", "backups_dir"), (0, "/srv/saves\n"))

    @patch("savekeeper.settings.write_setting", side_effect=PermissionError(13, "denied"))
    def test_unwritable_config(self, _write_setting):
        self.assertEqual(self.run_cli("config", "backups_dir", "/srv/saves")[0], 1)
