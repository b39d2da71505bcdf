from __future__ import annotations

import logging
import os
from configparser import ConfigParser

NEW_CONFIG = """\
[system]
# Directory holding one metadata file per temporary directory.
# Leave empty to use "temporary_directories" next to the program.
store_path =
# Temporary directories are created inside this directory.
base_directory = .

[sweep]
# Remove the metadata of every record read during a sweep, expired or not.
# Unexpired directories lose their tracking when this is enabled.
remove_unexpired_metadata = false
"""


class TempConfig:
    """Configuration for temporary directory management."""

    logger = logging.getLogger("temp_dirs.TempConfig")

    def __init__(self, filepath: str | None = None) -> None:
        """Load the configuration from the given file, or use defaults."""
        self._config = ConfigParser()

        if filepath is None:
            self.logger.debug("No config file given, using defaults")
            return

        success = self._config.read(filepath)

        if not success:
            raise ValueError(f"Could not read config file at {filepath}")

        self.logger.debug("Loaded config from %s", filepath)

    @property
    def store_path(self) -> str | None:
        """Return the metadata store path, or None if not set."""
        return self._config.get("system", "store_path", fallback="").strip() or None

    @property
    def base_directory(self) -> str:
        """Return the directory temporary directories are created in."""
        return self._config.get("system", "base_directory", fallback=".").strip() or "."

    @property
    def remove_unexpired_metadata(self) -> bool:
        """Return whether a sweep removes the metadata of unexpired records."""
        return self._config.getboolean(
            "sweep", "remove_unexpired_metadata", fallback=False
        )


def write_new_config(filename: str) -> None:
    """Write a new config file if one does not exist."""
    if os.path.exists(filename):
        return

    with open(filename, "w") as config_file:
        config_file.write(NEW_CONFIG)
