"""Local save-data backups for games, with Wine prefix aware restores."""

__version__ = "0.3.0"
