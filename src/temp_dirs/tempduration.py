from __future__ import annotations

import logging
import re

from .temperrors import InvalidDurationError
from .temperrors import MalformedAmountError
from .temperrors import UnknownUnitError

# A month is a fixed 31 days, not calendar aware.
UNIT_SECONDS: dict[str, int] = {
    "s": 1,
    "min": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
    "m": 2678400,
}

_LETTERS = re.compile(r"[A-Za-z]+")
_DIGITS = re.compile(r"[0-9]+")

# 9999-12-31 00:00 UTC, the last day datetime.fromtimestamp can render in any
# local time zone.
MAX_TIMESTAMP = 253402214400

logger = logging.getLogger(__name__)


def parse_duration(duration: str) -> int:
    """
    Convert a lifetime string such as "30min" or "4w" into seconds.

    Args:
        duration: An amount followed by a unit with no separator. Units are
            s, min, h, d, w and m (31 day month), case insensitive.

    Returns:
        The total lifetime in seconds.

    Raises:
        MalformedAmountError: The amount is missing, repeated, not a
            plain decimal number or the lifetime exceeds MAX_TIMESTAMP.
        UnknownUnitError: The letters do not spell a known unit.
    """
    errors: list[InvalidDurationError] = []

    try:
        amount = _parse_amount(duration)
    except MalformedAmountError as error:
        errors.append(error)

    try:
        unit_seconds = _parse_unit(duration)
    except UnknownUnitError as error:
        errors.append(error)

    if errors:
        for error in errors:
            logger.error("Unable to parse duration string: %s", error)
        raise errors[0]

    lifetime = amount * unit_seconds
    if lifetime > MAX_TIMESTAMP:
        too_large = MalformedAmountError(f"Amount in {duration!r} is too large")
        logger.error("Unable to parse duration string: %s", too_large)
        raise too_large

    return lifetime


def _parse_amount(duration: str) -> int:
    """Return the single numeric segment of the duration string."""
    segments = [segment for segment in _LETTERS.split(duration) if segment]

    if len(segments) != 1:
        raise MalformedAmountError(
            f"Expected one amount in {duration!r}, found {len(segments)}"
        )

    if not _DIGITS.fullmatch(segments[0]):
        raise MalformedAmountError(f"Invalid amount {segments[0]!r} in {duration!r}")

    return int(segments[0])


def _parse_unit(duration: str) -> int:
    """Return the number of seconds for the unit spelled by the letters."""
    unit = "".join(_LETTERS.findall(duration)).lower()

    if unit not in UNIT_SECONDS:
        raise UnknownUnitError(f"Invalid time unit {unit!r} in {duration!r}")

    return UNIT_SECONDS[unit]
