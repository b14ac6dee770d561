"""System utilities"""

import os
import shutil
import subprocess
import tempfile
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from savekeeper.exceptions import BackupIOError
from savekeeper.util.log import logger


def get_environment():
    """Return a safe to use copy of the system's environment.
    Values starting with BASH_FUNC can cause issues when written in a text file."""
    return {key: value for key, value in os.environ.items() if not key.startswith("BASH_FUNC")}


def execute_with_error(
    command: List[str],
    env: Optional[Dict[str, str]] = None,
    cwd: Optional[str] = None,
    quiet: bool = False,
) -> Tuple[str, str, int]:
    """
    Execute a system command and return its standard output, standard error
    and exit status in a tuple.

    Params:
        command (list): A list containing an executable and its parameters
        env (dict): Dict of values to add to the current environment
        cwd (str): Working directory
        quiet (bool): Do not display log messages

    Returns:
        str, str, int: stdout output, stderr output and return code

    Raises:
        BackupIOError: if the command can't be started at all
    """
    if not command:
        raise BackupIOError("No executable provided")

    if not quiet:
        logger.debug("Executing %s", " ".join([str(i) for i in command]))

    existing_env = get_environment()
    if env:
        env = {k: v for k, v in env.items() if v is not None}
        existing_env.update(env)

    try:
        with subprocess.Popen(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=existing_env,
            cwd=cwd,
            errors="replace",
        ) as command_process:
            stdout, stderr = command_process.communicate()
    except (OSError, TypeError) as ex:
        logger.error("Could not run command %s: %s", command, ex)
        raise BackupIOError("Could not run %s: %s" % (command[0], ex)) from ex

    return stdout.strip(), (stderr or "").strip(), command_process.returncode


def find_executable(exec_name: str) -> Optional[str]:
    """Return the absolute path of an executable, or None if it can't be found"""
    if not exec_name:
        return None
    if os.path.isabs(exec_name):
        return exec_name if os.access(exec_name, os.X_OK) else None
    return shutil.which(exec_name)


def path_exists(path: str, check_symlinks: bool = False) -> bool:
    """Wrapper around os.path.exists that doesn't crash with empty values

    Params:
        path (str): File to the file to check
        check_symlinks (bool): If the path is a broken symlink, return False
    """
    if not path:
        return False
    if path.startswith("~"):
        path = os.path.expanduser(path)
    if os.path.exists(path):
        return True
    if os.path.islink(path):
        logger.warning("%s is a broken link", path)
        return not check_symlinks
    return False


def create_folder(path):
    """Creates a folder specified by path"""
    if not path:
        return
    path = os.path.expanduser(path)
    os.makedirs(path, exist_ok=True)
    return path


@contextmanager
def scratch_directory(parent: str, prefix: str = "") -> Iterator[str]:
    """Create a fresh directory under parent and remove it when the block
    exits, whatever the outcome. Removal failures are only logged."""
    try:
        create_folder(parent)
        path = tempfile.mkdtemp(prefix=prefix, dir=parent)
    except OSError as ex:
        raise BackupIOError("Unable to create a scratch directory in %s: %s" % (parent, ex)) from ex
    try:
        yield path
    finally:
        if os.path.exists(path):
            logger.debug("Deleting folder %s", path)
            try:
                shutil.rmtree(path)
            except OSError as ex:
                logger.warning("Scratch directory %s was left behind: %s (Error code %s)", path, ex.strerror, ex.errno)
