import os
import shutil
import tempfile
from unittest import TestCase

from savekeeper.exceptions import BackupIOError, ManifestNotFoundError
from savekeeper.manifest import Manifest
from savekeeper.restore import RestoreMapper, RestorePair, SavePath
from savekeeper.util.wine.paths import PathResolver


def make_manifest(files, drives):
    return Manifest(name="game", drives=drives, backups=[{"name": ".", "files": {f: {"size": 1} for f in files}}])


class TestSavePath(TestCase):
    def test_parse_windows_path(self):
        path = SavePath.parse("C:\\Users\\bob\\save.dat")
        self.assertEqual(path.drive, "C")
        self.assertEqual(path.parts, ("Users", "bob", "save.dat"))
        self.assertEqual(str(path), "C:/Users/bob/save.dat")

    def test_parse_posix_path(self):
        path = SavePath.parse("/home/bob/save.dat")
        self.assertIsNone(path.drive)
        self.assertEqual(str(path), "/home/bob/save.dat")

    def test_windows_paths_ignore_case(self):
        self.assertEqual(SavePath.parse("c:/USERS/Bob"), SavePath.parse("C:/users/bob"))
        self.assertTrue(SavePath.parse("C:/Users/Public/x").is_relative_to(SavePath.parse("C:/users/public")))

    def test_posix_paths_are_case_sensitive(self):
        self.assertFalse(SavePath.parse("/home/Bob/x").is_relative_to(SavePath.parse("/home/bob")))

    def test_drives_must_match(self):
        self.assertFalse(SavePath.parse("D:/users/bob/x").is_relative_to(SavePath.parse("C:/users/bob")))
        self.assertFalse(SavePath.parse("/users/bob/x").is_relative_to(SavePath.parse("C:/users/bob")))

    def test_segments_are_not_matched_partially(self):
        self.assertFalse(SavePath.parse("/home/bobby/x").is_relative_to(SavePath.parse("/home/bob")))

    def test_rebase(self):
        path = SavePath.parse("/home/bob/.config/game/save")
        rebased = path.rebase(SavePath.parse("/home/bob"), SavePath.parse("C:/users/steamuser"))
        self.assertEqual(str(rebased), "C:/users/steamuser/.config/game/save")


class TestWindowsPathDecomposition(TestCase):
    def test_source_prefix_is_stripped(self):
        path = RestoreMapper.to_windows_path(
            "/home/alice/.wine/drive_c/users/alice/save.dat", {}, "/home/alice/.wine"
        )
        self.assertEqual(str(path), "C:/users/alice/save.dat")

    def test_other_drive_letters(self):
        path = RestoreMapper.to_windows_path("/pfx/drive_d/Games/save.dat", {}, "/pfx")
        self.assertEqual(str(path), "D:/Games/save.dat")

    def test_prefix_found_in_drive_table(self):
        path = RestoreMapper.to_windows_path(
            "/home/u/.wine/drive_c/users/Public/save.dat", {"<C>": "/home/u/.wine/drive_c"}
        )
        self.assertEqual(str(path), "C:/users/Public/save.dat")

    def test_native_posix_path_is_kept(self):
        path = RestoreMapper.to_windows_path("/home/u/.local/share/game/save", {"drive-0": ""}, "/home/u/.wine")
        self.assertEqual(str(path), "/home/u/.local/share/game/save")

    def test_windows_path_is_kept(self):
        path = RestoreMapper.to_windows_path("C:/Users/u/save", {"drive-C": "C:"}, None)
        self.assertEqual(str(path), "C:/Users/u/save")


class TestExtractedPath(TestCase):
    def test_empty_drive_value_is_prepended(self):
        path = RestoreMapper.get_extracted_path("/home/u/save.dat", {"drive-0": ""}, "/tmp/r/game")
        self.assertEqual(path, "/tmp/r/game/drive-0/home/u/save.dat")

    def test_windows_drive(self):
        path = RestoreMapper.get_extracted_path("C:/Users/u/save.dat", {"drive-C": "C:"}, "/tmp/r/game")
        self.assertEqual(path, "/tmp/r/game/drive-C/Users/u/save.dat")

    def test_longest_drive_value_wins(self):
        drives = {"drive-0": "", "<C>": "/home/u/.wine/drive_c"}
        path = RestoreMapper.get_extracted_path("/home/u/.wine/drive_c/users/u/save.dat", drives, "/tmp/r/game")
        self.assertEqual(path, "/tmp/r/game/<C>/users/u/save.dat")

    def test_no_matching_drive(self):
        path = RestoreMapper.get_extracted_path("/home/u/save.dat", {"drive-C": "C:"}, "/tmp/r/game")
        self.assertEqual(path, "/tmp/r/game/home/u/save.dat")


class TestComputeDestinations(TestCase):
    def setUp(self):
        self.linux = RestoreMapper(PathResolver(platform="linux", home="/home/bob"))
        self.windows = RestoreMapper(PathResolver(platform="win32", home="C:/Users/bob", environ={}))

    def test_public_profile_round_trip(self):
        key = "/home/u/.wine/drive_c/users/Public/save.dat"
        manifest = make_manifest([key], {"<C>": "/home/u/.wine/drive_c"})
        pairs = self.windows.compute_destinations(manifest, "/tmp/r", "game", "/home/u", None, "C:/Users/bob", None)
        self.assertEqual(pairs, [RestorePair("/tmp/r/game/<C>/users/Public/save.dat", "C:/Users/Public/save.dat")])
        destination = pairs[0].destination
        self.assertNotIn("<C>", destination)
        self.assertNotIn(".wine", destination)
        self.assertNotIn("drive_c", destination)

    def test_wine_to_wine_with_other_user(self):
        key = "/home/alice/.wine/drive_c/users/alice/AppData/Roaming/Game/save1.sav"
        manifest = make_manifest([key], {"drive-0": ""})
        pairs = self.linux.compute_destinations(
            manifest, "/tmp/r", "game", "C:/users/alice", "/home/alice/.wine",
            "C:/users/steamuser", "/home/bob/Games/pfx",
        )
        self.assertEqual(pairs, [
            RestorePair(
                "/tmp/r/game/drive-0/home/alice/.wine/drive_c/users/alice/AppData/Roaming/Game/save1.sav",
                "/home/bob/Games/pfx/drive_c/users/steamuser/AppData/Roaming/Game/save1.sav",
            )
        ])

    def test_wine_public_profile_moves_to_new_prefix(self):
        key = "/home/alice/.wine/drive_c/users/Public/Documents/Game/save.dat"
        manifest = make_manifest([key], {"drive-0": ""})
        pairs = self.linux.compute_destinations(
            manifest, "/tmp/r", "game", "C:/users/alice", "/home/alice/.wine", "C:/users/bob", "/pfx",
        )
        self.assertEqual(pairs[0].destination, "/pfx/drive_c/users/Public/Documents/Game/save.dat")

    def test_windows_backup_restored_in_prefix(self):
        key = "C:/Users/Alice/Documents/Game/save.dat"
        manifest = make_manifest([key], {"drive-C": "C:"})
        pairs = self.linux.compute_destinations(
            manifest, "/tmp/r", "game", "C:/users/alice", None, "C:/users/steamuser", "/pfx",
        )
        self.assertEqual(pairs, [
            RestorePair(
                "/tmp/r/game/drive-C/Users/Alice/Documents/Game/save.dat",
                "/pfx/drive_c/users/steamuser/Documents/Game/save.dat",
            )
        ])

    def test_native_home_restored_in_prefix(self):
        key = "/home/alice/.local/share/Game/save.dat"
        manifest = make_manifest([key], {"drive-0": ""})
        pairs = self.linux.compute_destinations(
            manifest, "/tmp/r", "game", "/home/alice", None, "C:/users/steamuser", "/pfx",
        )
        self.assertEqual(pairs[0].destination, "/pfx/drive_c/users/steamuser/.local/share/Game/save.dat")

    def test_native_to_native(self):
        key = "/home/alice/.local/share/Game/save.dat"
        manifest = make_manifest([key], {"drive-0": ""})
        pairs = self.linux.compute_destinations(manifest, "/tmp/r", "game", "/home/alice", None, "/home/bob", None)
        self.assertEqual(pairs[0].destination, "/home/bob/.local/share/Game/save.dat")

    def test_drive_path_outside_home_keeps_its_place(self):
        key = "C:/ProgramData/Game/save.dat"
        manifest = make_manifest([key], {"drive-C": "C:"})
        pairs = self.linux.compute_destinations(
            manifest, "/tmp/r", "game", "C:/users/alice", None, "C:/users/bob", "/pfx",
        )
        self.assertEqual(pairs[0].destination, "/pfx/drive_c/ProgramData/Game/save.dat")
        pairs = self.windows.compute_destinations(
            manifest, "/tmp/r", "game", "C:/users/alice", None, "C:/Users/bob", None,
        )
        self.assertEqual(pairs[0].destination, "C:/ProgramData/Game/save.dat")

    def test_drive_path_without_prefix_on_linux_is_skipped(self):
        manifest = make_manifest(["C:/ProgramData/Game/save.dat"], {"drive-C": "C:"})
        pairs = self.linux.compute_destinations(manifest, "/tmp/r", "game", "C:/users/a", None, "/home/bob", None)
        self.assertEqual(pairs, [])

    def test_home_matching_ignores_case(self):
        manifest = make_manifest(["C:/Users/ALICE/save.dat"], {"drive-C": "C:"})
        pairs = self.windows.compute_destinations(
            manifest, "/tmp/r", "game", "C:/users/alice", None, "C:/Users/bob", None,
        )
        self.assertEqual(pairs[0].destination, "C:/Users/bob/save.dat")


class TestApply(TestCase):
    def setUp(self):
        self.root = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.root)

    def write(self, relpath, content):
        path = os.path.join(self.root, relpath)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return path

    def read(self, path):
        with open(path, "r", encoding="utf-8") as f:
            return f.read()

    def test_moves_files_and_creates_folders(self):
        source = self.write("extracted/save.dat", "new")
        destination = os.path.join(self.root, "dest", "deep", "save.dat")
        self.assertEqual(RestoreMapper.apply([RestorePair(source, destination)]), 1)
        self.assertEqual(self.read(destination), "new")
        self.assertFalse(os.path.exists(source))

    def test_replaces_existing_file(self):
        source = self.write("extracted/save.dat", "new")
        destination = self.write("dest/save.dat", "old")
        RestoreMapper.apply([RestorePair(source, destination)])
        self.assertEqual(self.read(destination), "new")

    def test_folder_at_destination_is_an_error(self):
        source = self.write("extracted/save.dat", "new")
        destination = os.path.join(self.root, "dest", "save.dat")
        os.makedirs(destination)
        with self.assertRaises(BackupIOError):
            RestoreMapper.apply([RestorePair(source, destination)])
        self.assertEqual(os.listdir(destination), [])
        self.assertTrue(os.path.isfile(source))

    def test_missing_files_are_skipped(self):
        source = self.write("extracted/a.dat", "a")
        pairs = [
            RestorePair(os.path.join(self.root, "extracted/missing.dat"), os.path.join(self.root, "dest/missing.dat")),
            RestorePair(source, os.path.join(self.root, "dest/a.dat")),
        ]
        self.assertEqual(RestoreMapper.apply(pairs), 1)
        self.assertFalse(os.path.exists(os.path.join(self.root, "dest/missing.dat")))
        self.assertTrue(os.path.exists(os.path.join(self.root, "dest/a.dat")))


class TestManifest(TestCase):
    def setUp(self):
        self.title_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.title_dir)

    def test_load_mapping(self):
        with open(os.path.join(self.title_dir, "mapping.yaml"), "w", encoding="utf-8") as mapping:
            mapping.write(
                "name: game\n"
                "drives:\n"
                "  drive-0: \"\"\n"
                "backups:\n"
                "  - name: \".\"\n"
                "    files:\n"
                "      /home/u/save1.dat:\n"
                "        hash: abc\n"
                "        size: 3\n"
                "  - name: \"diff\"\n"
                "    files:\n"
                "      /home/u/save1.dat: {}\n"
                "      /home/u/save2.dat: {}\n"
            )
        manifest = Manifest.load(self.title_dir)
        self.assertEqual(manifest.name, "game")
        self.assertEqual(manifest.drives, {"drive-0": ""})
        self.assertEqual(manifest.files, ["/home/u/save1.dat", "/home/u/save2.dat"])

    def test_missing_mapping(self):
        with self.assertRaises(ManifestNotFoundError):
            Manifest.load(self.title_dir)
