"""venueroom - per-peer interaction protocol for a venue room.

Two people in the same venue move from a lightweight signal, through a
short canned dialog, to an optional agreement to meet in person.
"""

__version__ = "0.1.0"
