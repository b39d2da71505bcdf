from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from .temperrors import MetadataWriteError
from .temperrors import RecordFormatError
from .temperrors import SerializationError
from .temperrors import StoreDirectoryError
from .temperrors import StoreListingError
from .temperrors import StorePathError
from .tempmodel import TempDirectory

if TYPE_CHECKING:
    from typing import Protocol

    class _TempConfig(Protocol):
        @property
        def store_path(self) -> str | None:
            ...


STORE_DIRECTORY_NAME = "temporary_directories"


def locate_store_path(executable: str | None = None) -> Path:
    """
    Return the default store path, a sibling of the running program.

    Under `python -m temp_dirs` the program is the package's __main__.py, so
    the interpreter's directory is used instead. That is where the temp-dirs
    console script is installed.

    Args:
        executable: Path of the running program. Defaults to sys.argv[0].

    Raises:
        StorePathError: The program location is unknown or has no parent.
    """
    if executable is None:
        executable = sys.argv[0] if sys.argv else ""
        if Path(executable).name == "__main__.py":
            executable = sys.executable

    if not executable:
        raise StorePathError("Could not determine the location of the program")

    program = Path(executable).resolve()
    if program.parent == program:
        raise StorePathError(f"Program location {program} has no parent directory")

    return program.parent / STORE_DIRECTORY_NAME


class TempStore:
    """Metadata files for temporary directories, one JSON file per record."""

    logger = logging.getLogger(__name__)

    def __init__(self, store_path: str | os.PathLike[str]) -> None:
        """
        Initialize a new TempStore at the given directory.

        The directory is not created until the first record is saved.

        Args:
            store_path: The directory holding the metadata files.
        """
        self.store_path = Path(store_path)
        self.logger.debug("Initializing TempStore at %s", self.store_path)

    @classmethod
    def from_config(
        cls,
        config: _TempConfig,
        *,
        store_path: str | None = None,
    ) -> TempStore:
        """
        Build a TempStore from the given configuration.

        An explicit store_path wins over the configuration, which wins over
        the default location next to the program.

        Raises:
            StorePathError: No store path was given and none can be located.
        """
        return cls(store_path or config.store_path or locate_store_path())

    def metadata_path(self, name: str) -> Path:
        """Return the metadata file path for the named directory."""
        return self.store_path / f"{name}.json"

    def ensure_store_path(self) -> None:
        """
        Create the store directory if it does not exist.

        Raises:
            StoreDirectoryError
        """
        if self.store_path.is_dir():
            return

        self.logger.info("Metadata directory not found. Creating %s", self.store_path)
        try:
            self.store_path.mkdir(parents=True, exist_ok=True)

        except OSError as error:
            msg = f"Metadata directory {self.store_path} couldn't be created: {error}"
            raise StoreDirectoryError(msg) from error

    def save(self, record: TempDirectory) -> Path:
        """
        Write the record to a new metadata file. An existing one is never replaced.

        A metadata file left half written by a failure is removed.

        Returns:
            The path of the metadata file.

        Raises:
            StoreDirectoryError
            SerializationError
            MetadataWriteError
        """
        self.ensure_store_path()

        try:
            content = record.to_json()

        except (TypeError, ValueError) as error:
            msg = f"Failed to serialize {record.name!r}: {error}"
            raise SerializationError(msg) from error

        filepath = self.metadata_path(record.name)
        opened = False
        try:
            with open(filepath, "x", encoding="utf-8") as file_out:
                opened = True
                file_out.write(content)

        except (OSError, UnicodeError) as error:
            if opened:
                self._discard_partial(filepath)
            msg = f"Metadata file {filepath} couldn't be written: {error}"
            raise MetadataWriteError(msg) from error

        self.logger.debug("Saved metadata file %s", filepath)
        return filepath

    def entries(self) -> list[Path]:
        """
        Return every entry of the store directory, sorted by name.

        A store directory that does not exist yet has no entries.

        Raises:
            StoreListingError: The store directory exists but can't be listed.
        """
        if not self.store_path.exists():
            self.logger.info("Metadata directory %s does not exist", self.store_path)
            return []

        try:
            with os.scandir(self.store_path) as iterator:
                return sorted(Path(entry.path) for entry in iterator)

        except OSError as error:
            msg = f"Metadata directory {self.store_path} couldn't be opened: {error}"
            raise StoreListingError(msg) from error

    def read(self, filepath: Path) -> TempDirectory:
        """
        Read a record from a metadata file.

        Raises:
            OSError: The file can't be opened or read.
            RecordFormatError: The content is not a valid record.
        """
        try:
            content = filepath.read_text(encoding="utf-8")

        except UnicodeDecodeError as error:
            raise RecordFormatError(f"{filepath} is not UTF-8 text") from error

        return TempDirectory.from_json(content)

    def remove(self, filepath: Path) -> None:
        """
        Remove a metadata file.

        Raises:
            OSError
        """
        filepath.unlink()
        self.logger.info("%s metadata file deleted", filepath)

    def _discard_partial(self, filepath: Path) -> None:
        """Remove a metadata file left behind by a failed write."""
        try:
            filepath.unlink(missing_ok=True)

        except OSError as error:
            self.logger.error("Partial metadata file %s remains: %s", filepath, error)
