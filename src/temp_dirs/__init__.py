from __future__ import annotations

from .tempconfig import TempConfig
from .tempduration import parse_duration
from .tempmanager import TempManager
from .tempmodel import SweepReport
from .tempmodel import TempDirectory
from .tempstore import TempStore

__all__ = [
    "SweepReport",
    "TempConfig",
    "TempDirectory",
    "TempManager",
    "TempStore",
    "parse_duration",
]
