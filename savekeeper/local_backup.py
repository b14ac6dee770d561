"""Local save backups: create, list, rename, freeze, delete and restore"""

import os
import socket
import time
from collections import namedtuple
from datetime import datetime
from gettext import gettext as _
from typing import List, Optional

from savekeeper import settings
from savekeeper.database import games as games_db
from savekeeper.database.metadata import BackupRecord, MetadataStore, find_record
from savekeeper.exceptions import ArchiveNotFoundError, BackupNotFoundError, InvalidStateError
from savekeeper.manifest import Manifest
from savekeeper.notifications import NotificationSource, get_restore_complete_topic, get_upload_complete_topic
from savekeeper.restore import RestoreMapper
from savekeeper.util import system
from savekeeper.util.archive import ArchiveManager
from savekeeper.util.ludusavi import Ludusavi
from savekeeper.util.log import logger
from savekeeper.util.wine.paths import PathResolver

ReconciliationReport = namedtuple("ReconciliationReport", ["orphaned_archives", "dangling_records"])


def get_backup_label(automatic=False):
    date = datetime.now().strftime("%x")
    if automatic:
        return _("Automatic backup from {date}").format(date=date)
    return _("Backup from {date}").format(date=date)


class LocalBackupService:
    """Backups of game saves kept on this machine.

    Every collaborator can be swapped; the defaults use the configured
    directories, Ludusavi and the local games database.
    """

    def __init__(
        self,
        store: MetadataStore = None,
        archives: ArchiveManager = None,
        path_resolver: PathResolver = None,
        save_resolver=None,
        game_registry=None,
        notifier: NotificationSource = None,
        staging_dir: str = None,
    ) -> None:
        self.store = store or MetadataStore(settings.METADATA_FILE)
        self.archives = archives or ArchiveManager(settings.BACKUPS_DIR)
        self.path_resolver = path_resolver or PathResolver()
        self.save_resolver = save_resolver or Ludusavi()
        self.game_registry = game_registry or games_db
        self.notifier = notifier or NotificationSource()
        self.staging_dir = staging_dir or settings.STAGING_DIR
        self.mapper = RestoreMapper(self.path_resolver)

    def get_wine_prefix(self, shop, object_id) -> Optional[str]:
        game = self.game_registry.get_game(shop, object_id) or {}
        return game.get("wine_prefix_path") or None

    def get_record(self, backup_id) -> BackupRecord:
        record = find_record(self.store.load_all(), backup_id)
        if not record:
            raise BackupNotFoundError(backup_id)
        return record

    def create_backup(self, object_id, shop, download_option_title=None, label=None) -> str:
        """Back up the current saves of a game and return the new backup ID"""
        wine_prefix = self.get_wine_prefix(shop, object_id)
        home_dir = self.path_resolver.resolve_home(wine_prefix)

        with system.scratch_directory(self.staging_dir, prefix="%s-%s-" % (shop, object_id)) as staging_path:
            self.save_resolver.capture_saves(shop, object_id, staging_path, wine_prefix)
            archive = self.archives.bundle(staging_path)

        try:
            record = BackupRecord(
                backup_id=archive.backup_id,
                object_id=object_id,
                shop=shop,
                label=label or get_backup_label(),
                created_at=int(time.time() * 1000),
                size=os.path.getsize(archive.path),
                hostname=socket.gethostname(),
                platform=self.path_resolver.platform,
                wine_prefix_path=os.path.realpath(os.path.expanduser(wine_prefix)) if wine_prefix else None,
                home_dir=home_dir,
                download_option_title=download_option_title,
            )
            with self.store.transaction() as records:
                records.append(record)
        except Exception:
            logger.error("Failed to create local backup for %s (%s)", object_id, shop)
            self.archives.remove(archive)
            raise

        self.notifier.notify(get_upload_complete_topic(object_id, shop), True)
        logger.info("Local backup created successfully: %s", record.backup_id)
        return record.backup_id

    def list_backups(self, object_id, shop) -> List[dict]:
        return [
            record.to_artifact()
            for record in self.store.load_all()
            if record.object_id == object_id and record.shop == shop
        ]

    def rename_backup(self, backup_id, label):
        with self.store.transaction() as records:
            record = find_record(records, backup_id)
            if not record:
                raise BackupNotFoundError(backup_id)
            record.label = label
        logger.info("Local backup renamed: %s -> %s", backup_id, label)

    def toggle_freeze(self, backup_id, freeze):
        with self.store.transaction() as records:
            record = find_record(records, backup_id)
            if not record:
                raise BackupNotFoundError(backup_id)
            record.is_frozen = bool(freeze)
        logger.info("Local backup %s: %s", "frozen" if freeze else "unfrozen", backup_id)

    def delete_backup(self, backup_id):
        with self.store.transaction() as records:
            record = find_record(records, backup_id)
            if not record:
                raise BackupNotFoundError(backup_id)
            if record.is_frozen:
                raise InvalidStateError(_("Backup {} is frozen and can't be deleted").format(backup_id))
            try:
                self.archives.remove(self.archives.get_archive(backup_id))
            except OSError as ex:
                logger.error("Failed to delete backup file for %s: %s", backup_id, ex)
            records.remove(record)
        logger.info("Local backup deleted: %s", backup_id)

    def restore_backup(self, backup_id, object_id, shop):
        """Put the files of a backup back where the game expects them"""
        record = self.get_record(backup_id)
        archive = self.archives.get_archive(backup_id)
        if not os.path.isfile(archive.path):
            raise ArchiveNotFoundError(filename=archive.path)

        wine_prefix = self.get_wine_prefix(shop, object_id)
        dest_home = self.path_resolver.resolve_home(wine_prefix)
        source_home = record.home_dir or dest_home

        with system.scratch_directory(self.staging_dir, prefix="restore-%s-" % backup_id) as restore_path:
            self.archives.extract(archive, restore_path)
            manifest = Manifest.load(os.path.join(restore_path, object_id))
            pairs = self.mapper.compute_destinations(
                manifest,
                restore_path,
                object_id,
                source_home,
                record.wine_prefix_path,
                dest_home,
                wine_prefix,
            )
            restored = self.mapper.apply(pairs)

        self.notifier.notify(get_restore_complete_topic(object_id, shop), True)
        logger.info("Local backup restored: %s (%s files)", backup_id, restored)

    def _find_mismatches(self, records):
        archives = {archive.backup_id: archive for archive in self.archives.list_archives()}
        known_ids = {record.backup_id for record in records}
        orphaned = sorted(backup_id for backup_id in archives if backup_id not in known_ids)
        dangling = [record.backup_id for record in records if record.backup_id not in archives]
        return ReconciliationReport(orphaned, dangling), archives

    def reconcile(self, clean=False) -> ReconciliationReport:
        """Find archives without a record and records without an archive,
        and remove them if clean is set."""
        if not clean:
            report, _archives = self._find_mismatches(self.store.load_all())
            return report
        with self.store.transaction() as records:
            report, archives = self._find_mismatches(records)
            for backup_id in report.orphaned_archives:
                logger.info("Removing orphaned archive %s", archives[backup_id].path)
                self.archives.remove(archives[backup_id])
            if report.dangling_records:
                logger.info("Dropping records without archive: %s", ", ".join(report.dangling_records))
                records[:] = [record for record in records if record.backup_id in archives]
        return report
