from __future__ import annotations

from typing import Optional, Set


# PUBLIC_INTERFACE
def parse_rooms(raw: Optional[str]) -> Set[str]:
    """
    Parse a comma-separated rooms query value into a set of room names.

    Args:
        raw: Value such as "kitchen,bathroom". None or blank yields an empty set.

    Returns:
        Set of trimmed, non-empty room names. An empty set matches no task.
    """
    if not raw:
        return set()
    return {r.strip() for r in raw.split(",") if r.strip()}
