"""
Household chores backend package.

Recurring chores scoped to rooms: owned-or-global visibility, completion
bookkeeping with next-due calculation, and a periodic sweep that advances
overdue chores. The FastAPI app lives in `src.chores.main`.
"""
