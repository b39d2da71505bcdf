from __future__ import annotations


class TempDirError(Exception):
    """Base class for all temporary directory errors."""


class InvalidDurationError(TempDirError, ValueError):
    """The duration string could not be parsed."""


class MalformedAmountError(InvalidDurationError):
    """The numeric part of a duration string is missing or invalid."""


class UnknownUnitError(InvalidDurationError):
    """The unit part of a duration string is not a known unit."""


class InvalidNameError(TempDirError, ValueError):
    """The directory name is not a single path component."""


class CreationError(TempDirError):
    """A temporary directory record could not be constructed."""


class DirectoryCreationError(TempDirError):
    """The physical directory could not be created."""


class StorePathError(TempDirError):
    """The metadata store path could not be determined."""


class SaveError(TempDirError):
    """A record could not be persisted. The directory has been rolled back."""


class StoreDirectoryError(SaveError):
    """The metadata store directory could not be created."""


class MetadataWriteError(SaveError):
    """The metadata file could not be created or written."""


class SerializationError(SaveError):
    """The record could not be serialized."""


class StoreListingError(TempDirError):
    """The metadata store directory exists but could not be listed."""


class RecordFormatError(TempDirError, ValueError):
    """A metadata file does not hold a valid record."""
