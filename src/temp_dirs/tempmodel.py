from __future__ import annotations

import dataclasses
import json
import time
from datetime import datetime
from typing import Any
from typing import Callable

from .tempduration import MAX_TIMESTAMP
from .tempduration import parse_duration
from .temperrors import CreationError
from .temperrors import InvalidDurationError
from .temperrors import InvalidNameError
from .temperrors import MalformedAmountError
from .temperrors import RecordFormatError

_SEPARATORS = ("/", "\\", "\0")


@dataclasses.dataclass(frozen=True)
class TempDirectory:
    """A managed directory and the moment it expires."""

    name: str
    duration: str
    created_at: int
    end_time: int
    path: str | None = None

    def __str__(self) -> str:
        """Return a string representation of the directory."""
        expires = datetime.fromtimestamp(self.end_time).strftime("%Y-%m-%d %H:%M:%S")
        return f"{self.name} ({self.duration}, expires {expires})"

    @classmethod
    def new(
        cls,
        name: str,
        duration: str,
        *,
        clock: Callable[[], float] = time.time,
    ) -> TempDirectory:
        """
        Build a record starting now and ending after the given duration.

        Args:
            name: The directory name, a single path component.
            duration: The lifetime, for example "1d" or "4w".

        Keyword Args:
            clock: Returns the current unix time. Defaults to time.time.

        Raises:
            CreationError: The name or the duration is invalid. The precise
                cause is chained.
        """
        try:
            validate_name(name)
            lifetime = parse_duration(duration)
        except (InvalidNameError, InvalidDurationError) as error:
            msg = f"Failed to create temporary directory: {error}"
            raise CreationError(msg) from error

        created_at = int(clock())
        if created_at + lifetime > MAX_TIMESTAMP:
            cause = MalformedAmountError(f"Duration {duration!r} ends too late")
            msg = f"Failed to create temporary directory: {cause}"
            raise CreationError(msg) from cause

        return cls(
            name=name,
            duration=duration,
            created_at=created_at,
            end_time=created_at + lifetime,
        )

    def with_path(self, path: str) -> TempDirectory:
        """Return a copy of the record pointing at the created directory."""
        return dataclasses.replace(self, path=path)

    def is_expired(self, now: int) -> bool:
        """True once now is strictly past the end time."""
        return now > self.end_time

    def to_dict(self) -> dict[str, Any]:
        """Return the record as a plain dictionary."""
        return dataclasses.asdict(self)

    def to_json(self) -> str:
        """Return the record in metadata file format."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: Any) -> TempDirectory:
        """
        Build a record from a decoded metadata object.

        Raises:
            RecordFormatError: A field is missing or of the wrong type, or
                the end time does not match the duration or is out of range.
        """
        if not isinstance(data, dict):
            raise RecordFormatError(f"Expected an object, got {type(data).__name__}")

        for key in ("name", "duration"):
            if not isinstance(data.get(key), str):
                raise RecordFormatError(f"Field {key!r} must be a string")

        for key in ("created_at", "end_time"):
            value = data.get(key)
            # bool is an int subclass
            if not isinstance(value, int) or isinstance(value, bool):
                raise RecordFormatError(f"Field {key!r} must be an integer")

        path = data.get("path")
        if path is not None and not isinstance(path, str):
            raise RecordFormatError("Field 'path' must be a string or null")

        try:
            validate_name(data["name"])
            lifetime = parse_duration(data["duration"])
        except (InvalidNameError, InvalidDurationError) as error:
            raise RecordFormatError(str(error)) from error

        if data["end_time"] != data["created_at"] + lifetime:
            raise RecordFormatError(
                f"End time of {data['name']!r} does not match its duration"
            )

        if data["end_time"] > MAX_TIMESTAMP:
            raise RecordFormatError(f"End time of {data['name']!r} is out of range")

        return cls(
            name=data["name"],
            duration=data["duration"],
            created_at=data["created_at"],
            end_time=data["end_time"],
            path=path,
        )

    @classmethod
    def from_json(cls, content: str) -> TempDirectory:
        """Build a record from metadata file content."""
        try:
            data = json.loads(content)
        except json.JSONDecodeError as error:
            raise RecordFormatError(f"Invalid JSON: {error}") from error

        return cls.from_dict(data)


@dataclasses.dataclass
class SweepReport:
    """Outcome of a single sweep of the metadata store."""

    expired: list[str] = dataclasses.field(default_factory=list)
    removed_directories: list[str] = dataclasses.field(default_factory=list)
    removed_metadata: list[str] = dataclasses.field(default_factory=list)
    skipped: list[str] = dataclasses.field(default_factory=list)
    errors: int = 0
    aborted: bool = False

    @property
    def ok(self) -> bool:
        """True if the sweep ran to completion without a failure."""
        return not self.aborted and not self.errors


def validate_name(name: str) -> None:
    """
    Raise InvalidNameError unless name is a single path component.

    The name doubles as the metadata file stem so it may not climb out of,
    or nest inside, the store directory.
    """
    if not name or name in (".", ".."):
        raise InvalidNameError(f"Invalid directory name {name!r}")

    if any(separator in name for separator in _SEPARATORS):
        raise InvalidNameError(f"Directory name {name!r} contains a separator")
