from __future__ import annotations


class LaunchPassError(Exception):
    """Base class for errors raised by the LaunchPass data-source engine."""
