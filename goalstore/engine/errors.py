"""Error taxonomy for the goal engine.

Not-found is deliberately absent: lookups return None.
"""


class GoalStoreError(Exception):
    """Base class for refused engine operations."""


class InvalidDateKey(GoalStoreError, ValueError):
    def __init__(self, key: object):
        self.key = key
        super().__init__(f"Invalid date key: {key!r} (expected YYYY-MM-DD)")


class GoalValidationError(GoalStoreError, ValueError):
    """Structurally invalid draft or mutation input. State is left unchanged."""
