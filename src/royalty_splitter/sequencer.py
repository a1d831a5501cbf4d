"""
Royalty Splitter - Work identifier sequencer
"""

import threading


class WorkIdSequencer:
    """Issues monotonically increasing work identifiers, starting from 0."""

    def __init__(self, start: int = 0):
        self._counter = start
        self._lock = threading.Lock()

    def next_work_id(self) -> int:
        """Current counter value; does not advance it."""
        return self._counter

    def increment_work_id(self) -> int:
        """Advance the counter and return the new value."""
        with self._lock:
            self._counter += 1
            return self._counter
