from __future__ import annotations

from datetime import datetime
from typing import Protocol


# PUBLIC_INTERFACE
class Clock(Protocol):
    """Supplies the current time to the workflow and the sweeper."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall-clock time as a naive local datetime."""

    def now(self) -> datetime:
        return datetime.now()
