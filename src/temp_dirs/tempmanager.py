from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Callable

from .tempconfig import TempConfig
from .temperrors import DirectoryCreationError
from .temperrors import RecordFormatError
from .temperrors import SaveError
from .temperrors import StoreListingError
from .tempmodel import SweepReport
from .tempmodel import TempDirectory
from .tempstore import TempStore


class TempManager:
    """Create temporary directories and sweep away the expired ones."""

    logger = logging.getLogger(__name__)

    def __init__(
        self,
        config: TempConfig,
        *,
        store_path: str | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize a new TempManager.

        Args:
            config: The configuration to use for this manager.

        Keyword Args:
            store_path: Overrides the store path of the configuration.
            clock: Returns the current unix time. Defaults to time.time.

        Raises:
            StorePathError: No store path is configured and none can be
                located next to the program.

        NOTE: The store is assumed to have a single writer. Running create and
            clean concurrently against the same store is not supported.
        """
        self._config = config
        self._store = TempStore.from_config(config, store_path=store_path)
        self._clock = clock

    @property
    def store(self) -> TempStore:
        """The metadata store used by this manager."""
        return self._store

    def create(self, name: str, duration: str) -> TempDirectory:
        """
        Create a temporary directory and record when it expires.

        Raises:
            CreationError: The name or duration is invalid.
            DirectoryCreationError: The directory couldn't be created.
            SaveError: The record couldn't be saved. The directory is removed.
        """
        record = TempDirectory.new(name, duration, clock=self._clock)
        lifetime = record.end_time - record.created_at
        self.logger.info("Total lifetime: %s seconds", lifetime)

        return self.materialize(record)

    def materialize(self, record: TempDirectory) -> TempDirectory:
        """
        Create the directory of the record and save the record.

        Returns:
            The saved record, with its absolute path set.

        Raises:
            DirectoryCreationError
            SaveError
        """
        directory = Path(self._config.base_directory) / record.name

        try:
            os.mkdir(directory)

        except OSError as error:
            self.logger.error("Failed to create directory %s: %s", directory, error)
            raise DirectoryCreationError(f"Failed to create {directory}") from error

        try:
            path = directory.resolve(strict=True)

        except OSError as error:
            self.logger.error("Failed to resolve directory %s: %s", directory, error)
            self._remove_directory(str(directory))
            raise DirectoryCreationError(f"Failed to resolve {directory}") from error

        self.logger.info("Directory %s created", path)
        record = record.with_path(str(path))
        self.save(record)

        return record

    def save(self, record: TempDirectory) -> None:
        """
        Save the record to the store, removing its directory on failure.

        Raises:
            SaveError
        """
        try:
            filepath = self._store.save(record)

        except SaveError as error:
            self.logger.error("%s. Temporary directory couldn't be created", error)
            self.delete(record)
            raise

        self.logger.info("Temporary directory %s saved to %s", record.name, filepath)

    def delete(self, record: TempDirectory) -> bool:
        """
        Remove the directory of the record. The directory must be empty.

        Failures are logged, not raised.

        Returns:
            True if the directory is gone.
        """
        if record.path is None:
            self.logger.error(
                "Directory %s can't be removed, path is not specified", record.name
            )
            return False

        return self._remove_directory(record.path)

    def clean(self, now: int | None = None) -> SweepReport:
        """
        Sweep the store, removing expired directories and their metadata.

        A single unreadable entry or failed removal is logged and counted but
        never stops the sweep. A store that can't be listed aborts it.

        Args:
            now: The unix time to compare against. Defaults to the clock.
        """
        if now is None:
            now = int(self._clock())

        self.logger.info("Sweeping %s...", self._store.store_path)
        tic = time.perf_counter()
        report = SweepReport()

        try:
            entries = self._store.entries()

        except StoreListingError as error:
            self.logger.error("%s. Temporary directories cannot be deleted", error)
            report.aborted = True
            return report

        queued: list[Path] = []
        for filepath in entries:
            record = self._read_entry(filepath, report)
            if record is None:
                continue

            if record.is_expired(now):
                report.expired.append(record.name)
                if self.delete(record):
                    report.removed_directories.append(record.name)
                else:
                    report.errors += 1

                # Metadata goes even when the directory stays behind
                queued.append(filepath)

            elif self._config.remove_unexpired_metadata:
                self.logger.debug("Dropping metadata of unexpired %s", record.name)
                queued.append(filepath)

            else:
                remaining = record.end_time - now
                self.logger.debug("%s expires in %d seconds", record, remaining)

        self._remove_metadata(queued, report)

        toc = time.perf_counter()
        self.logger.info("Sweep finished in %s seconds", toc - tic)
        self.logger.info(
            "Removed %d of %d expired directories",
            len(report.removed_directories),
            len(report.expired),
        )

        return report

    def _read_entry(self, filepath: Path, report: SweepReport) -> TempDirectory | None:
        """Read a store entry, returning None if it is skipped."""
        if not filepath.is_file():
            self.logger.debug("Skipping %s, not a metadata file", filepath)
            report.skipped.append(filepath.name)
            return None

        try:
            return self._store.read(filepath)

        except OSError as error:
            self.logger.error("Meta data file %s couldn't be read: %s", filepath, error)

        except RecordFormatError as error:
            self.logger.error(
                "Meta data file %s couldn't be parsed: %s", filepath, error
            )

        report.skipped.append(filepath.name)
        report.errors += 1
        return None

    def _remove_metadata(self, filepaths: list[Path], report: SweepReport) -> None:
        """Remove each metadata file, continuing past failures."""
        for filepath in filepaths:
            try:
                self._store.remove(filepath)

            except OSError as error:
                self.logger.error(
                    "%s meta data file couldn't be deleted: %s", filepath, error
                )
                report.errors += 1

            else:
                report.removed_metadata.append(filepath.name)

    def _remove_directory(self, path: str) -> bool:
        """Remove an empty directory, logging the outcome."""
        try:
            os.rmdir(path)

        except FileNotFoundError:
            self.logger.warning("Directory %s was already removed", path)
            return True

        except OSError as error:
            self.logger.error("Unable to remove directory %s: %s", path, error)
            return False

        self.logger.info("Removed directory %s", path)
        return True
