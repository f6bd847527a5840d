"""
Utility functions for timestamps.
"""

from time import time


def wall_ms() -> int:
    """Get current wall clock timestamp in milliseconds."""
    return int(time() * 1000)
