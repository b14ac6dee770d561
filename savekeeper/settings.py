"""Internal settings."""

import os
import sys

from gi.repository import GLib

from savekeeper import __version__
from savekeeper.util.settings import SettingsIO

PROJECT = "SaveKeeper"
VERSION = __version__

# Paths
CONFIG_DIR = os.path.join(GLib.get_user_config_dir(), "savekeeper")
DATA_DIR = os.path.join(GLib.get_user_data_dir(), "savekeeper")
CONFIG_FILE = os.path.join(CONFIG_DIR, "savekeeper.conf")
sio = SettingsIO(CONFIG_FILE)

CACHE_DIR = sio.read_setting("cache_dir") or os.path.join(GLib.get_user_cache_dir(), "savekeeper")
BACKUPS_DIR = sio.read_setting("backups_dir") or os.path.join(DATA_DIR, "LocalBackups")
STAGING_DIR = sio.read_setting("staging_dir") or os.path.join(CACHE_DIR, "backups")
METADATA_FILE = os.path.join(BACKUPS_DIR, "metadata.json")
LUDUSAVI_PATH = sio.read_setting("ludusavi_path") or "ludusavi"

if "nosetests" in sys.argv[0] or "nose2" in sys.argv[0] or "pytest" in sys.argv[0]:
    DB_PATH = "/tmp/savekeeper-games.db"
else:
    DB_PATH = sio.read_setting("db_path") or os.path.join(DATA_DIR, "games.db")

read_setting = sio.read_setting
write_setting = sio.write_setting
