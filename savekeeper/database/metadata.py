"""Metadata of local backups, kept as a single JSON file next to the archives"""

import json
import os
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

from savekeeper.exceptions import PersistenceError
from savekeeper.util.log import logger


@dataclass
class BackupRecord:
    backup_id: str
    object_id: str
    shop: str
    label: str
    created_at: int  # milliseconds since epoch
    size: int
    hostname: str
    platform: str
    wine_prefix_path: Optional[str] = None
    home_dir: Optional[str] = None
    download_option_title: Optional[str] = None
    is_frozen: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BackupRecord":
        return cls(
            backup_id=data["id"],
            object_id=data["objectId"],
            shop=data["shop"],
            label=data.get("label") or "",
            created_at=int(data.get("createdAt") or 0),
            size=int(data.get("size") or 0),
            hostname=data.get("hostname") or "",
            platform=data.get("platform") or "",
            wine_prefix_path=data.get("winePrefixPath"),
            home_dir=data.get("homeDir"),
            download_option_title=data.get("downloadOptionTitle"),
            is_frozen=bool(data.get("isFrozen")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.backup_id,
            "objectId": self.object_id,
            "shop": self.shop,
            "label": self.label,
            "createdAt": self.created_at,
            "size": self.size,
            "hostname": self.hostname,
            "platform": self.platform,
            "winePrefixPath": self.wine_prefix_path,
            "homeDir": self.home_dir,
            "downloadOptionTitle": self.download_option_title,
            "isFrozen": self.is_frozen,
        }

    def to_artifact(self) -> Dict[str, Any]:
        """Public view of the backup, without the host specific paths"""
        created_at = datetime.fromtimestamp(self.created_at / 1000, tz=timezone.utc).isoformat()
        return {
            "id": self.backup_id,
            "size_bytes": self.size,
            "download_option_title": self.download_option_title or None,
            "created_at": created_at,
            "updated_at": created_at,
            "hostname": self.hostname,
            "download_count": 0,
            "label": self.label,
            "is_frozen": self.is_frozen,
        }


def find_record(records: List[BackupRecord], backup_id: str) -> Optional[BackupRecord]:
    for record in records:
        if record.backup_id == backup_id:
            return record
    return None


class MetadataStore:
    """Reads and writes the whole collection of backup records.

    Mutations should go through transaction(), which serializes writers
    behind a lock for the read-modify-write cycle.
    """

    def __init__(self, metadata_path: str) -> None:
        self.metadata_path = metadata_path
        self._lock = threading.RLock()

    def load_all(self) -> List[BackupRecord]:
        """Return every backup record; a missing or unreadable file means no backups."""
        if not os.path.isfile(self.metadata_path):
            return []
        try:
            with open(self.metadata_path, "r", encoding="utf-8") as metadata_file:
                content = json.load(metadata_file)
            return [BackupRecord.from_dict(entry) for entry in content]
        except (OSError, ValueError, TypeError, KeyError) as ex:
            logger.warning("Failed to read local backup metadata %s: %s", self.metadata_path, ex)
            return []

    def save_all(self, records: List[BackupRecord]) -> None:
        """Replace the persisted collection with records"""
        content = json.dumps([record.to_dict() for record in records], indent=2)
        temp_path = self.metadata_path + ".tmp"
        with self._lock:
            try:
                os.makedirs(os.path.dirname(self.metadata_path) or ".", exist_ok=True)
                with open(temp_path, "w", encoding="utf-8") as metadata_file:
                    metadata_file.write(content)
                os.replace(temp_path, self.metadata_path)
            except OSError as ex:
                logger.error("Failed to save local backup metadata: %s", ex)
                raise PersistenceError("Unable to write %s: %s" % (self.metadata_path, ex)) from ex
            finally:
                if os.path.isfile(temp_path):
                    os.unlink(temp_path)

    @contextmanager
    def transaction(self) -> Iterator[List[BackupRecord]]:
        """Yield the current records; they are written back when the block
        completes without raising."""
        with self._lock:
            records = self.load_all()
            yield records
            self.save_all(records)
