class IntonationError(Exception):
    """Base class for errors raised by the intonation backend."""


class InvalidInput(IntonationError, ValueError):
    """Input that cannot be analyzed: bad reference pitch, undecodable audio, bad PCM params."""


class DeviceUnavailable(IntonationError):
    """Capture device could not be opened. The capture path stays disabled until retried."""


class InvariantViolation(IntonationError, RuntimeError):
    """Internal invariant broken (e.g. quantizer could not bracket a frequency)."""
