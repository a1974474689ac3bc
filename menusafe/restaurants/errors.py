from __future__ import annotations


class InvalidObservationError(ValueError):
    """Observation rejected before any matching work (blank name, bad coordinates)."""


class StoreError(RuntimeError):
    """The restaurant store could not be read or written."""
