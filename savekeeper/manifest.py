"""Ludusavi's mapping.yaml, written next to the saves it backed up"""

import os
from typing import Dict, List

from savekeeper.exceptions import ManifestNotFoundError
from savekeeper.util import system
from savekeeper.util.yaml import read_yaml_from_file

MANIFEST_FILENAME = "mapping.yaml"


class Manifest:
    """Recorded file paths of a backed up title, and the drive table used
    to lay them out on disk.

    The drive table maps a folder name found in the backup (the token) to the
    absolute path prefix it replaced on the machine that made the backup.
    """

    def __init__(self, name: str = "", drives: Dict[str, str] = None, backups: List[dict] = None) -> None:
        self.name = name
        self.drives = drives or {}
        self.backups = backups or []

    def __repr__(self):
        return "<Manifest %s: %s files>" % (self.name, len(self.files))

    @classmethod
    def from_dict(cls, data: dict) -> "Manifest":
        drives = {str(token): str(value or "") for token, value in (data.get("drives") or {}).items()}
        return cls(name=data.get("name") or "", drives=drives, backups=data.get("backups") or [])

    @classmethod
    def load(cls, title_dir: str) -> "Manifest":
        manifest_path = os.path.join(title_dir, MANIFEST_FILENAME)
        if not system.path_exists(manifest_path, check_symlinks=True):
            raise ManifestNotFoundError(filename=manifest_path)
        return cls.from_dict(read_yaml_from_file(manifest_path))

    @property
    def files(self) -> List[str]:
        """Recorded paths of every file in every backup entry, without duplicates"""
        seen = {}
        for backup in self.backups:
            for path in backup.get("files") or {}:
                seen.setdefault(path, None)
        return list(seen)
