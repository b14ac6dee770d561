"""Read-only access to the .reg files found at the root of Wine prefixes"""
import re
from collections import OrderedDict

from savekeeper.exceptions import BackupIOError
from savekeeper.util import system
from savekeeper.util.log import logger


class WineRegistry:
    def __init__(self, reg_filename):
        self.keys = OrderedDict()
        self.reg_filename = reg_filename
        if not system.path_exists(reg_filename):
            logger.error("Unexisting registry %s", reg_filename)
        self.parse_reg_file(reg_filename)

    @staticmethod
    def get_raw_registry(reg_filename):
        """Return an array of the unprocessed contents of a registry file"""
        if not system.path_exists(reg_filename):
            return []
        # Wine writes its registry files in UTF-8, but older prefixes
        # may contain stray bytes.
        try:
            with open(reg_filename, "r", encoding="utf-8", errors="replace") as reg_file:
                return reg_file.readlines()
        except OSError as ex:
            raise BackupIOError("Unable to read %s: %s" % (reg_filename, ex)) from ex

    def parse_reg_file(self, reg_filename):
        current_key = None
        add_next_to_value = False
        additional_values = []
        for line in self.get_raw_registry(reg_filename):
            line = line.rstrip("\n")

            if line.startswith("["):
                current_key = WineRegistryKey(key_def=line)
                self.keys[current_key.name] = current_key
            elif current_key:
                if add_next_to_value:
                    additional_values.append(line)
                else:
                    if additional_values:
                        current_key.add_to_last("\n".join(additional_values))
                        additional_values = []
                    current_key.parse(line)
                add_next_to_value = line.endswith("\\")


class WineRegistryKey:
    def __init__(self, key_def):
        self.subkeys = OrderedDict()
        # Key names end at the closing bracket, a timestamp may follow
        raw_name = re.split(re.compile(r"(?<=[^\\]\]) "), key_def, maxsplit=1)[0]
        self.name = raw_name.replace("\\\\", "/").strip("[]")

    def __str__(self):
        return self.name

    def parse(self, line):
        """Parse a named value line; metadata and default values are skipped"""
        if len(line) < 4 or not line.startswith('"'):
            return
        try:
            key, value = re.split(re.compile(r"(?<![^\\]\\\")="), line, maxsplit=1)
        except ValueError:
            logger.error("Unable to parse line %s", line)
            return
        self.subkeys[key[1:-1]] = value

    def add_to_last(self, line):
        if not self.subkeys:
            return
        last_subkey = next(reversed(self.subkeys))
        self.subkeys[last_subkey] += "\n{}".format(line)

    def get_subkey(self, name):
        """Return the text of a string subkey, None if missing or of another type"""
        value = self.subkeys.get(name)
        if value is None:
            return None
        for prefix in ('"', 'str:"', 'str(2):"'):
            if value.startswith(prefix) and value.endswith('"'):
                return value[len(prefix):-1]
        logger.debug("Unsupported registry value %s for %s", value, name)
        return None
