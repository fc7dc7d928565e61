from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .frequency import Frequency, parse_frequency

# Shared type for incoming timestamps which can be a date, datetime, or ISO8601 string
DateTimeInput = Union[date, datetime, str]


def _parse_datetime(value: Optional[DateTimeInput]) -> Optional[datetime]:
    """
    Internal helper to normalize timestamp input into a naive local datetime.
    - If value is a string, attempt to parse via datetime.fromisoformat; if time is missing, set to 00:00.
    - If value is a date (not datetime), convert to datetime at 00:00.
    - Aware datetimes are converted to local time and made naive, matching the server clock.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        # Promote a date to a datetime at midnight
        parsed = datetime(value.year, value.month, value.day, 0, 0, 0)
    elif isinstance(value, str):
        s = value.strip()
        try:
            parsed = datetime.fromisoformat(s)
        except ValueError:
            try:
                d = date.fromisoformat(s)
            except ValueError as e:
                raise ValueError(
                    "Invalid timestamp format. Use ISO8601 date or datetime string (e.g., '2025-01-31' or '2025-01-31T13:45:00')."
                ) from e
            parsed = datetime(d.year, d.month, d.day, 0, 0, 0)
    else:
        raise ValueError("Invalid type for timestamp; expected date, datetime, or ISO8601 string.")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


class _CamelModel(BaseModel):
    """Base model exposing camelCase names on the wire while keeping snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# PUBLIC_INTERFACE
class TaskCreate(_CamelModel):
    """
    Schema for creating a new chore. Created chores are always private to the requester.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "name": "Clean the oven",
                "description": "Racks and door glass",
                "room": "kitchen",
                "what": ["racks", "door"],
                "frequency": "monthly",
                "time": "30min",
                "nextDue": "2025-02-01",
            }
        },
    )

    name: str = Field(..., description="Short name of the chore", min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    room: Optional[str] = Field(default=None, description="Room the chore belongs to")
    what: List[str] = Field(default_factory=list, description="Ordered sub-items or tags")
    frequency: Frequency = Field(
        ...,
        description="Recurrence label. Accepts daily/weekly/monthly/quarterly/semiannual or "
        "Quotidienne/Hebdomadaire/Mensuelle/Trimestrielle/Semestrielle",
    )
    time: Optional[str] = Field(default=None, description="Time-of-day or duration metadata")
    next_due: Optional[datetime] = Field(
        default=None,
        description="Optional first due date. Accepts ISO8601 date or datetime; dates are set to 00:00",
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..200 length.
        """
        s = v.strip()
        if not (1 <= len(s) <= 200):
            raise ValueError("name length must be between 1 and 200 characters")
        return s

    @field_validator("what", mode="before")
    @classmethod
    def wrap_single_item(cls, v):
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("frequency", mode="before")
    @classmethod
    def translate_frequency(cls, v):
        """
        Map either vocabulary onto the canonical Frequency.
        """
        freq = parse_frequency(v)
        if freq is None:
            raise ValueError(f"Unknown frequency label: {v!r}")
        return freq

    @field_validator("next_due", mode="before")
    @classmethod
    def parse_next_due(cls, v: Optional[DateTimeInput]) -> Optional[datetime]:
        return _parse_datetime(v)


# PUBLIC_INTERFACE
class TaskDoneFlag(_CamelModel):
    """
    Body of the bare completion-flag patch. Only isDone is written.
    """

    is_done: bool = Field(..., description="New completion flag")


# PUBLIC_INTERFACE
class TaskOut(_CamelModel):
    """
    Schema returned by the API for a chore.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": 7,
                "name": "Clean the oven",
                "description": "Racks and door glass",
                "room": "kitchen",
                "what": ["racks", "door"],
                "frequency": "monthly",
                "time": "30min",
                "isDone": True,
                "dateDone": "2025-01-31T10:00:00",
                "lastCompleted": "2025-01-31T10:00:00",
                "nextDue": "2025-02-28T10:00:00",
                "isGlobal": False,
                "user": "alice",
            }
        },
    )

    id: int = Field(..., description="Unique identifier of the chore")
    name: str
    description: Optional[str] = None
    room: Optional[str] = None
    what: List[str] = Field(default_factory=list)
    frequency: Optional[str] = None
    time: Optional[str] = None
    is_done: bool = False
    date_done: Optional[datetime] = None
    last_completed: Optional[datetime] = None
    next_due: Optional[datetime] = None
    is_global: bool = False
    user: Optional[str] = None


# PUBLIC_INTERFACE
class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


# PUBLIC_INTERFACE
class TaskActionResponse(BaseModel):
    """Acknowledgement carrying the updated chore."""

    message: str
    task: TaskOut
