# -*- coding: utf-8 -*-
"""
Meter configurations for zlockin.

A meter configuration ties together the capture device, the excitation and
the divider resistances of one impedance meter setup. Configurations are
read from INI files.

Examples
--------
Building a meter from its configuration:
```python
from zlockin.meas import ImpedanceMeter
from zlockin.system import build_capture_source, load_meter_config
config = load_meter_config("mock")
source = build_capture_source(config)
source.open()
meter = ImpedanceMeter(source, config)
```

See Also
--------
zlockin.system.meterconfig : INI format and search order
zlockin.device : Capture device implementations
"""

from .meterconfig import (
    build_capture_source,
    create_default_meters_file,
    list_available_meters,
    load_meter_config,
    package_meters_dir,
    user_meters_file,
    validate_meter_config,
)

__all__ = [
    "build_capture_source",
    "create_default_meters_file",
    "list_available_meters",
    "load_meter_config",
    "package_meters_dir",
    "user_meters_file",
    "validate_meter_config",
]
