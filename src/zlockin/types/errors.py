"""Error taxonomy of the measurement core.

- AllocationError: the capture buffer could not be reserved (fatal, raised
  before any measurement begins)
- PhaseNotFound: a burst had no rising crossing on the reference channel
  (recoverable, the burst is dropped)
- StalledCapture: the capture source never signalled completion (fatal)
- IndeterminateImpedance: the divider formula has a vanishing denominator
"""


class MeterError(Exception):
    """Base exception for measurement core errors."""

    pass


class AllocationError(MeterError, MemoryError):
    """Raised when the capture buffer cannot be reserved."""

    pass


class PhaseNotFound(MeterError):
    """Raised when a phase origin is required but none was detected."""

    pass


class StalledCapture(MeterError, TimeoutError):
    """Raised when a block capture does not complete within its timeout."""

    pass


class IndeterminateImpedance(MeterError, ArithmeticError):
    """Raised when the impedance cannot be determined from the measurements."""

    pass
