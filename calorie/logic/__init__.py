"""Core budget logic.

Subpackages:
- records: daily record store transitions
- progress: weekly progress aggregation
- redistribution: remaining-budget split over the rest of the week
- locking: daily target lock and effective target
- banking: banking plan validation and overlay
- recovery: overeating detection, recovery plans and sessions
- rollover: week rollover and legacy migration
- history: metabolism profile from logged history
- goals: goal, profile and planned-session configuration

`queries` holds the read-only views, `engine` the single-writer facade.
"""
__all__ = [
    "records", "progress", "redistribution", "locking", "banking",
    "recovery", "rollover", "history", "goals", "queries", "engine",
]
