"""
Command-line interface for zlockin.

This module provides command-line tools for the impedance meter, including:

- Running measurement sessions
- Open-circuit calibration and DUT measurement
- Impedance calculation from saved measurements
- Meter configuration management

The CLI is built using the Click framework and provides a hierarchical
command structure with consistent help documentation.

Examples
--------
Calibrating against the mock meter:
```bash
$ zlockin calibrate -n mock -i 200 --mock-dut-amplitude 400 --mock-dut-phase -45
```

CLI Tree
--------

```
$ zlockin --tree
cli
└── calibrate
└── impedance
└── measure
└── meters
    └── init
    └── list
    └── show
```
"""

from .base import cli, tree_option
from .measure import calibrate, impedance, measure
from .meters import meters

cli.add_command(measure)
cli.add_command(impedance)
cli.add_command(calibrate)
cli.add_command(meters)

__all__ = ["cli", "tree_option"]
