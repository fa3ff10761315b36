"""Device base class and hardware abstraction layer.

All capture hardware in zlockin inherits from `Device` and implements the
methods of `zlockin.types.protocols.CaptureSourceProtocol`.

The Device class provides connection handling and the hook that passes meter
configuration values to a device built from an INI section.

Examples
--------
Creating a new device implementation:

```python
class MyCaptureDevice(Device):
    meter_config_keys = ("sample_rate",)

    def __init__(self, sample_rate: float, port: str = "/dev/ttyACM0"):
        super().__init__()
        ...

    def open(self) -> tuple[bool, str]:
        ...
        return True, "Connected successfully"

    def close(self):
        ...

    def is_connected(self) -> bool:
        ...

    # CaptureSourceProtocol methods
    def start_block_capture(self, buffer): ...
    def is_ready(self) -> bool: ...
    def stop(self): ...
```

See Also
--------
zlockin.types.protocols : Protocol definitions
zlockin.device.mock : Synthetic capture source
"""

from __future__ import annotations


class Device:
    """Base class for all hardware devices in zlockin.

    Attributes
    ----------
    meter_config_keys : tuple[str, ...]
        MeterConfig attributes passed to the constructor when the device is
        built from a meter configuration
    """

    meter_config_keys: tuple[str, ...] = ()

    def __init__(self, **config_kwargs):
        for key, value in config_kwargs.items():
            setattr(self, key, value)

    def open(self) -> tuple[bool, str]:
        raise NotImplementedError()

    def close(self):
        raise NotImplementedError()

    def is_connected(self) -> bool:
        raise NotImplementedError()
