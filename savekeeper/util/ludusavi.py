"""Capture a game's saves with Ludusavi"""

import json
import os

from savekeeper import settings
from savekeeper.exceptions import SaveCaptureError
from savekeeper.util import system
from savekeeper.util.log import logger


class Ludusavi:
    """Runs the ludusavi command line tool, which knows where games keep
    their saves and copies them, with a mapping.yaml manifest, to a folder."""

    def __init__(self, executable=None):
        self.executable = executable or settings.LUDUSAVI_PATH

    def get_command(self, object_id, destination_dir, wine_prefix=None):
        command = [self.executable, "backup", "--force", "--api", "--path", destination_dir]
        if wine_prefix:
            command += ["--wine-prefix", wine_prefix]
        command.append(object_id)
        return command

    def capture_saves(self, shop, object_id, destination_dir, wine_prefix=None):
        """Copy the current saves of a game to destination_dir"""
        executable = system.find_executable(self.executable)
        if not executable:
            raise SaveCaptureError("Ludusavi executable %s not found" % self.executable)
        os.makedirs(destination_dir, exist_ok=True)
        logger.info("Backing up saves of %s (%s) to %s", object_id, shop, destination_dir)
        stdout, stderr, returncode = system.execute_with_error(
            self.get_command(object_id, destination_dir, wine_prefix)
        )
        if returncode != 0:
            raise SaveCaptureError(
                "Ludusavi failed for %s with exit code %s: %s" % (object_id, returncode, stderr or stdout)
            )
        try:
            report = json.loads(stdout) if stdout else {}
        except ValueError as ex:
            raise SaveCaptureError("Unexpected output from Ludusavi: %s" % stdout[:200]) from ex
        errors = report.get("errors") if isinstance(report, dict) else None
        if errors:
            raise SaveCaptureError("Ludusavi reported errors for %s: %s" % (object_id, errors))
        return report
