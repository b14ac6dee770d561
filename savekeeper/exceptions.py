"""Exception handling module"""

from gettext import gettext as _


class SaveKeeperError(Exception):
    """Base exception for backup engine errors"""

    def __init__(self, message, *args, **kwarg):
        super().__init__(message, *args, **kwarg)
        self.message = message


class NotFoundError(SaveKeeperError):
    """Raised when something a backup operation needs does not exist."""


class BackupNotFoundError(NotFoundError):
    def __init__(self, backup_id, message=None, *args, **kwarg):
        if not message:
            message = _("Backup with ID {} not found").format(backup_id)
        super().__init__(message, *args, **kwarg)
        self.backup_id = backup_id


class ArchiveNotFoundError(NotFoundError):
    def __init__(self, message=None, filename=None, *args, **kwarg):
        if not message and filename:
            message = _("Backup file not found: {}").format(filename)
        super().__init__(message, *args, **kwarg)
        self.filename = filename


class ManifestNotFoundError(NotFoundError):
    def __init__(self, message=None, filename=None, *args, **kwarg):
        if not message and filename:
            message = _("Mapping file not found: {}").format(filename)
        super().__init__(message, *args, **kwarg)
        self.filename = filename


class InvalidArgumentError(SaveKeeperError):
    """Raised when an operation is called with a missing or unusable argument,
    like a Wine prefix on a host that needs one."""


class BackupIOError(SaveKeeperError):
    """Raised when reading or writing backup files fails."""


class ArchiveError(BackupIOError):
    """Raised when an archive can't be created or extracted"""


class SaveCaptureError(BackupIOError):
    """Raised when the save-location resolver fails to copy a game's saves."""


class PersistenceError(SaveKeeperError):
    """Raised when the backup metadata can't be written to disk."""


class InvalidStateError(SaveKeeperError):
    """Raised when a backup is in a state that forbids the operation,
    like deleting a frozen backup."""
