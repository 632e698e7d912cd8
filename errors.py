"""
Ambilight error types.

Recoverable errors drop the current frame only. GeometryInvariantViolation
and TransportFailure stop the loop.
"""


class AmbilightError(Exception):
    """Base class for all ambilight errors."""


class CaptureUnavailable(AmbilightError):
    """No screen frame could be obtained for this tick."""


class GeometryInvariantViolation(AmbilightError):
    """Zone list or color list does not match the configured LED layout."""


class PortUnavailable(AmbilightError):
    """Serial port could not be opened."""


class TransportError(AmbilightError):
    """Frame write failed (timeout, disconnect or short write)."""


class TransportFailure(TransportError):
    """Too many consecutive write failures, the strip is considered lost."""
