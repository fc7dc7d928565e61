from __future__ import annotations

from datetime import datetime
from typing import List, Optional, TypedDict


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    A lightweight domain model representing a household chore for non-ORM
    storage backends.

    Fields:
    - id: Unique integer identifier assigned by the store
    - name: Short name of the chore
    - description: Optional free-text description
    - room: Room tag used for location filtering
    - what: Ordered list of sub-items/tags
    - frequency: Canonical frequency label (see frequency.Frequency)
    - time: Opaque time-of-day or duration metadata
    - is_done: Current completion flag
    - date_done: Timestamp of the last mark-done
    - last_completed: Timestamp of the last completion or sweep advance
    - next_due: Next occurrence; the anchor for the sweeper
    - is_global: Visible to every user when True
    - user: Owning user id (None for global tasks)
    """

    id: int
    name: str
    description: Optional[str]
    room: Optional[str]
    what: List[str]
    frequency: Optional[str]
    time: Optional[str]
    is_done: bool
    date_done: Optional[datetime]
    last_completed: Optional[datetime]
    next_due: Optional[datetime]
    is_global: bool
    user: Optional[str]
