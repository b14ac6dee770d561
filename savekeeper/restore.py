"""Map the files of an extracted backup to their location on this machine.

Recorded paths are decomposed into a drive and a list of segments before any
rewrite happens, so a Wine prefix path such as
``/home/me/.wine/drive_c/users/me/Saves`` and a Windows path such as
``C:/users/me/Saves`` compare equal once the prefix is stripped. Rewrites are
applied on those structured paths, never on raw strings.
"""

import os
import re
import shutil
from collections import namedtuple
from typing import List, Optional

from savekeeper.exceptions import BackupIOError
from savekeeper.manifest import Manifest
from savekeeper.util.log import logger
from savekeeper.util.wine.paths import WINE_PUBLIC_PROFILE, PathResolver, normalize_path

DRIVE_FOLDER_RE = re.compile(r"^drive_([a-z])$", re.IGNORECASE)
DRIVE_LETTER_RE = re.compile(r"^([a-z]):$", re.IGNORECASE)

RestorePair = namedtuple("RestorePair", ["source", "destination"])


class SavePath:
    """A path split into an optional drive letter and its segments.

    Paths with a drive are Windows paths and compare case-insensitively,
    paths without one are rooted POSIX paths.
    """

    def __init__(self, drive: Optional[str], parts) -> None:
        self.drive = drive.upper() if drive else None
        self.parts = tuple(part for part in parts if part and part != ".")

    @classmethod
    def parse(cls, path: str) -> "SavePath":
        segments = normalize_path(path).split("/")
        match = DRIVE_LETTER_RE.match(segments[0])
        if match:
            return cls(match.group(1), segments[1:])
        return cls(None, segments)

    @classmethod
    def from_prefix_relative(cls, parts) -> Optional["SavePath"]:
        """Build a Windows path from segments relative to a Wine prefix,
        if they start in one of its drive_x folders."""
        if parts:
            match = DRIVE_FOLDER_RE.match(parts[0])
            if match:
                return cls(match.group(1), parts[1:])
        return None

    def __repr__(self):
        return "<SavePath %s>" % self

    def __str__(self):
        if self.drive:
            return "%s:/%s" % (self.drive, "/".join(self.parts))
        return "/" + "/".join(self.parts)

    def __eq__(self, other):
        return isinstance(other, SavePath) and self._keys() == other._keys()

    def __hash__(self):
        return hash(self._keys())

    def _keys(self):
        if self.drive:
            return self.drive, tuple(part.casefold() for part in self.parts)
        return None, self.parts

    def is_relative_to(self, other: "SavePath") -> bool:
        drive, parts = self._keys()
        other_drive, other_parts = other._keys()
        return drive == other_drive and parts[:len(other_parts)] == other_parts

    def relative_parts(self, other: "SavePath"):
        return self.parts[len(other.parts):]

    def rebase(self, old: "SavePath", new: "SavePath") -> "SavePath":
        """Move this path from under old to under new"""
        return SavePath(new.drive, new.parts + self.relative_parts(old))


def _has_path_prefix(path, prefix):
    prefix = prefix.rstrip("/")
    return path == prefix or path.startswith(prefix + "/")


class RestoreMapper:
    """Computes and applies the destination of each file of a backup."""

    def __init__(self, path_resolver: PathResolver = None) -> None:
        self.path_resolver = path_resolver or PathResolver()

    @staticmethod
    def get_extracted_path(key: str, drives: dict, title_dir: str) -> str:
        """Return where the file recorded as key was written in the extracted backup.

        The backup tool stores each file under the token of the drive it came from,
        the longest matching drive prefix wins. An empty prefix matches everything.
        """
        best_token = None
        best_value = None
        for token, value in drives.items():
            if value and not _has_path_prefix(key, value):
                continue
            if best_value is None or len(value) > len(best_value):
                best_token, best_value = token, value
        if best_token is None:
            relpath = key
        else:
            relpath = best_token + "/" + key[len(best_value.rstrip("/")):]
        return os.path.join(title_dir, *[part for part in relpath.split("/") if part])

    @staticmethod
    def to_windows_path(key: str, drives: dict, source_prefix: Optional[str] = None) -> SavePath:
        """Decompose a recorded path, turning Wine prefix locations back into
        the Windows path the game saw."""
        path = SavePath.parse(key)
        if path.drive:
            return path

        if source_prefix:
            prefix = SavePath.parse(source_prefix)
            if path.is_relative_to(prefix):
                return SavePath.from_prefix_relative(path.relative_parts(prefix)) or path

        # Prefixes not recorded with the backup still show up in the drive table
        best_match = None
        for value in drives.values():
            if not value:
                continue
            drive_root = SavePath.parse(value)
            if drive_root.drive or not drive_root.parts or not DRIVE_FOLDER_RE.match(drive_root.parts[-1]):
                continue
            if path.is_relative_to(drive_root) and (
                best_match is None or len(drive_root.parts) > len(best_match.parts)
            ):
                best_match = drive_root
        if best_match:
            return SavePath.from_prefix_relative(
                best_match.parts[-1:] + path.relative_parts(best_match)
            )

        return SavePath.from_prefix_relative(path.parts) or path

    @staticmethod
    def translate(path: SavePath, rules) -> SavePath:
        """Apply the first rule whose source contains path"""
        for source, destination in rules:
            if source and path.is_relative_to(source):
                return path.rebase(source, destination)
        return path

    def render(self, path: SavePath, dest_prefix: Optional[str] = None) -> Optional[str]:
        """Return the path on this host, None if it has nowhere to go"""
        if not path.drive:
            return str(path)
        if dest_prefix:
            return os.path.join(dest_prefix, "drive_" + path.drive.lower(), *path.parts)
        if self.path_resolver.platform == "win32":
            return str(path)
        return None

    def compute_destinations(
        self,
        manifest: Manifest,
        extracted_root: str,
        title: str,
        source_home: str,
        source_prefix: Optional[str],
        dest_home: str,
        dest_prefix: Optional[str],
    ) -> List[RestorePair]:
        """Return the (extracted file, destination) pairs for every file of the backup"""
        title_dir = os.path.join(extracted_root, title)
        drives = manifest.drives

        dest_public = SavePath.parse(self.path_resolver.resolve_public_profile(dest_prefix))
        rules = [
            (
                self.to_windows_path(source_home, drives, source_prefix) if source_home else None,
                self.to_windows_path(dest_home, {}, dest_prefix),
            ),
            (SavePath.parse(WINE_PUBLIC_PROFILE), dest_public),
        ]

        pairs = []
        for key in manifest.files:
            source_path = self.get_extracted_path(key, drives, title_dir)
            windows_path = self.to_windows_path(key, drives, source_prefix)
            destination_path = self.render(self.translate(windows_path, rules), dest_prefix)
            if not destination_path:
                logger.warning("No location on this host for %s, skipping", key)
                continue
            logger.debug("Mapped %s to %s", source_path, destination_path)
            pairs.append(RestorePair(source_path, destination_path))
        return pairs

    @staticmethod
    def apply(pairs: List[RestorePair]) -> int:
        """Move each extracted file to its destination, replacing existing files.

        Returns:
            int: number of files restored
        """
        restored = 0
        for pair in pairs:
            if not os.path.isfile(pair.source):
                logger.warning("%s is not part of the backup, skipping", pair.source)
                continue
            if os.path.isdir(pair.destination) and not os.path.islink(pair.destination):
                raise BackupIOError("Unable to restore %s: a folder is in the way" % pair.destination)
            logger.info("Moving %s to %s", pair.source, pair.destination)
            try:
                os.makedirs(os.path.dirname(pair.destination), exist_ok=True)
                if os.path.isfile(pair.destination) or os.path.islink(pair.destination):
                    os.remove(pair.destination)
                shutil.move(pair.source, pair.destination)
            except OSError as ex:
                raise BackupIOError("Unable to restore %s: %s" % (pair.destination, ex)) from ex
            restored += 1
        return restored
