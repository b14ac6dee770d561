"""Locate the user profile of the current host, natively or inside a Wine prefix"""

import os
import posixpath
import sys

from savekeeper.exceptions import InvalidArgumentError, NotFoundError
from savekeeper.util import system
from savekeeper.util.log import logger
from savekeeper.util.wine.registry import WineRegistry

VOLATILE_ENVIRONMENT_KEY = "Volatile Environment"
USER_PROFILE_VALUE = "USERPROFILE"
WINE_PUBLIC_PROFILE = "C:/users/Public"
WINDOWS_PUBLIC_PROFILE = "C:/Users/Public"
MACOS_SHARED_PROFILE = "/Users/Shared"


def normalize_path(path):
    """Return path with forward slashes, escaped registry backslashes collapsed,
    redundant separators removed and no trailing slash."""
    if not path:
        return path
    path = path.replace("\\\\", "\\").replace("\\", "/")
    return posixpath.normpath(path)


class PathResolver:
    """Computes where a user's profile lives on the current host.

    Linux hosts run Windows games through Wine, so the profile that matters is
    the one declared in the prefix registry. Every other platform uses the
    native home directory.
    """

    def __init__(self, platform=None, home=None, environ=None):
        self.platform = platform or sys.platform
        self.home = home
        self.environ = os.environ if environ is None else environ

    @property
    def is_compatibility_host(self):
        return self.platform.startswith("linux")

    @property
    def native_home(self):
        return normalize_path(self.home or os.path.expanduser("~"))

    def resolve_home(self, prefix=None):
        """Return the home-equivalent directory for a Wine prefix, or the native
        home directory on hosts that don't need one.

        Raises:
            InvalidArgumentError: no prefix given on a Wine host
            NotFoundError: the prefix has no user.reg or it doesn't declare USERPROFILE
            BackupIOError: user.reg can't be read
        """
        if not self.is_compatibility_host:
            return self.native_home

        if not prefix:
            raise InvalidArgumentError("Wine prefix path is required")

        reg_filename = os.path.join(os.path.expanduser(prefix), "user.reg")
        if not system.path_exists(reg_filename, check_symlinks=True):
            raise NotFoundError("No user.reg found in %s" % prefix)

        registry = WineRegistry(reg_filename)
        key = registry.keys.get(VOLATILE_ENVIRONMENT_KEY)
        if not key:
            raise NotFoundError("Volatile environment not found in user.reg")

        user_profile = key.get_subkey(USER_PROFILE_VALUE)
        if not user_profile or not isinstance(user_profile, str):
            raise NotFoundError("User profile not found in user.reg")
        logger.debug("User profile for prefix %s is %s", prefix, user_profile)
        return normalize_path(user_profile)

    def resolve_public_profile(self, prefix=None):
        """Return the shared profile directory matching resolve_home().

        Linux has no shared profile outside of Wine, files meant for it go to
        the user's home.
        """
        if self.is_compatibility_host and prefix:
            return WINE_PUBLIC_PROFILE
        if self.platform == "win32":
            return normalize_path(self.environ.get("PUBLIC") or WINDOWS_PUBLIC_PROFILE)
        if self.platform == "darwin":
            return MACOS_SHARED_PROFILE
        return self.native_home
