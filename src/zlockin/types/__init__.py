"""
Protocol definitions, configuration types and errors.

1. Hardware abstraction
    - CaptureSourceProtocol defines what a capture device must implement.

2. Configuration
    - ExcitationConfig: the excitation PWM and its register settings
    - MeterConfig: sample rate, divider resistances, session defaults

3. Errors
    - The measurement core's error taxonomy (see zlockin.types.errors)
"""

from .config import ExcitationConfig, MeterConfig, PWMSettings
from .errors import (
    AllocationError,
    IndeterminateImpedance,
    MeterError,
    PhaseNotFound,
    StalledCapture,
)
from .protocols import CaptureSourceProtocol

__all__ = [
    "AllocationError",
    "CaptureSourceProtocol",
    "ExcitationConfig",
    "IndeterminateImpedance",
    "MeterConfig",
    "MeterError",
    "PWMSettings",
    "PhaseNotFound",
    "StalledCapture",
]
