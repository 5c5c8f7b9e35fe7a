"""Game domain services: rooms, scoring and timers.

This package contains the in-memory game core that socket handlers and
HTTP routes call into, keeping transport concerns separated from the
room state machine and scoring rules.
"""
