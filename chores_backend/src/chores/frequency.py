from __future__ import annotations

from calendar import monthrange
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Optional, Union


# PUBLIC_INTERFACE
class Frequency(str, Enum):
    """Canonical recurrence labels stored on every task."""

    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"
    quarterly = "quarterly"
    semiannual = "semiannual"


# Both vocabularies seen in client data, lower-cased.
_LABELS: Dict[str, Frequency] = {
    "daily": Frequency.daily,
    "weekly": Frequency.weekly,
    "monthly": Frequency.monthly,
    "quarterly": Frequency.quarterly,
    "semiannual": Frequency.semiannual,
    "semi-annual": Frequency.semiannual,
    "semi_annual": Frequency.semiannual,
    "quotidienne": Frequency.daily,
    "hebdomadaire": Frequency.weekly,
    "mensuelle": Frequency.monthly,
    "trimestrielle": Frequency.quarterly,
    "semestrielle": Frequency.semiannual,
}

_DAY_STEPS: Dict[Frequency, int] = {
    Frequency.daily: 1,
    Frequency.weekly: 7,
}

_MONTH_STEPS: Dict[Frequency, int] = {
    Frequency.monthly: 1,
    Frequency.quarterly: 3,
    Frequency.semiannual: 6,
}


# PUBLIC_INTERFACE
def parse_frequency(label: Union[Frequency, str, None]) -> Optional[Frequency]:
    """
    Translate an external frequency label into the canonical Frequency.

    Accepts the English and French vocabularies, case-insensitively.
    Returns None for anything unrecognized.
    """
    if label is None:
        return None
    if isinstance(label, Frequency):
        return label
    return _LABELS.get(str(label).strip().lower())


def add_months(value: datetime, months: int) -> datetime:
    """
    Add calendar months, clamping the day to the end of the target month.

    2024-01-31 + 1 month -> 2024-02-29.
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(value.day, last_day))


# PUBLIC_INTERFACE
def next_due(frequency: Union[Frequency, str, None], from_: datetime) -> datetime:
    """
    Compute the next occurrence of a recurring task anchored at from_.

    Unrecognized labels return from_ unchanged.
    """
    freq = parse_frequency(frequency)
    if freq in _DAY_STEPS:
        return from_ + timedelta(days=_DAY_STEPS[freq])
    if freq in _MONTH_STEPS:
        return add_months(from_, _MONTH_STEPS[freq])
    return from_
