"""Tar archives holding one backup each, named after the backup ID"""

import os
import tarfile
import uuid
from collections import namedtuple
from typing import List

from savekeeper.exceptions import ArchiveError, ArchiveNotFoundError, BackupIOError
from savekeeper.util.log import logger

ARCHIVE_EXTENSION = ".tar"

Archive = namedtuple("Archive", ["backup_id", "path"])


def random_id():
    """Return a random ID"""
    return str(uuid.uuid4())


class ArchiveManager:
    def __init__(self, archives_dir):
        self.archives_dir = archives_dir

    def get_archive_path(self, backup_id):
        return os.path.join(self.archives_dir, backup_id + ARCHIVE_EXTENSION)

    def get_archive(self, backup_id):
        return Archive(backup_id, self.get_archive_path(backup_id))

    def bundle(self, source_dir):
        """Pack the content of source_dir into a new archive.

        Returns:
            Archive: the ID and path of the created archive
        """
        if not os.path.isdir(source_dir) or not os.access(source_dir, os.R_OK | os.X_OK):
            raise BackupIOError("Unable to read %s" % source_dir)
        archive = self.get_archive(random_id())
        logger.debug("Bundling %s into %s", source_dir, archive.path)
        try:
            os.makedirs(self.archives_dir, exist_ok=True)
            with tarfile.open(archive.path, "w") as handler:
                handler.add(source_dir, arcname=".")
        except (OSError, tarfile.TarError) as ex:
            logger.error("Bundling %s failed: %s", source_dir, ex)
            self.remove(archive)
            raise ArchiveError(str(ex)) from ex
        return archive

    def extract(self, archive, dest_dir):
        """Unpack an archive into dest_dir, creating it if needed"""
        if not os.path.isfile(archive.path):
            raise ArchiveNotFoundError(filename=archive.path)
        logger.debug("Extracting %s to %s", archive.path, dest_dir)
        try:
            os.makedirs(dest_dir, exist_ok=True)
            with tarfile.open(archive.path, "r:") as handler:
                if hasattr(tarfile, "data_filter"):
                    handler.extractall(dest_dir, filter="data")
                else:
                    handler.extractall(dest_dir)
        except (OSError, EOFError, tarfile.TarError) as ex:
            logger.error("Extraction failed: %s", ex)
            raise ArchiveError(str(ex)) from ex
        return dest_dir

    def remove(self, archive):
        """Delete an archive; a missing file is fine"""
        try:
            os.remove(archive.path)
            logger.debug("Removed archive %s", archive.path)
        except FileNotFoundError:
            pass

    def list_archives(self) -> List[Archive]:
        if not os.path.isdir(self.archives_dir):
            return []
        archives = []
        for filename in sorted(os.listdir(self.archives_dir)):
            backup_id, ext = os.path.splitext(filename)
            if ext == ARCHIVE_EXTENSION and os.path.isfile(os.path.join(self.archives_dir, filename)):
                archives.append(self.get_archive(backup_id))
        return archives
