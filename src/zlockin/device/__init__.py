# -*- coding: utf-8 -*-
"""
Capture device implementations for zlockin.

Each device class implements the Device base class lifecycle
(open/close/is_connected) and the methods of
`zlockin.types.protocols.CaptureSourceProtocol`.

Examples
--------
Creating a synthetic capture source:
```python
from zlockin.device import MockCaptureSource
source = MockCaptureSource(sample_rate=500e3, excitation_frequency=500.0)
source.open()
```

See Also
--------
zlockin.system : Meter configuration and device construction
"""

from .device import Device
from .mock import MockCaptureSource, WaveType


def get_valid_device_types() -> dict[str, type[Device]]:
    """Map device class names (as used in meter INI files) to classes."""
    return {
        "MockCaptureSource": MockCaptureSource,
    }


__all__ = [
    "Device",
    "MockCaptureSource",
    "WaveType",
    "get_valid_device_types",
]
