"""Utility functions for YAML handling"""

import yaml
from yaml.parser import ParserError
from yaml.scanner import ScannerError

from savekeeper.exceptions import BackupIOError
from savekeeper.util.log import logger


def read_yaml_from_file(filename: str) -> dict:
    """Read filename and return parsed yaml; the file must exist"""
    try:
        with open(filename, "r", encoding="utf-8") as yaml_file:
            yaml_content = yaml.safe_load(yaml_file) or {}
    except (ScannerError, ParserError) as ex:
        logger.error("error parsing file %s", filename)
        raise BackupIOError("Invalid YAML in %s: %s" % (filename, ex)) from ex
    except OSError as ex:
        raise BackupIOError("Unable to read %s: %s" % (filename, ex)) from ex
    if not isinstance(yaml_content, dict):
        raise BackupIOError("%s does not contain a mapping" % filename)
    return yaml_content
