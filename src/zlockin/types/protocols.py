"""Protocol definitions for the hardware consumed by the measurement core.

The core consumes exactly one capability from its environment: a source that
fills a pre-sized buffer with a contiguous block of raw samples, alternating
between the reference channel and the input channel.

Instead of using inheritance to define this capability, we use a protocol to
specify the required methods. Devices only need to implement them (duck
typing), and `@runtime_checkable` allows `isinstance()` checks when a meter
is built.

Example
-------
    class MyCaptureDevice(Device):
        def start_block_capture(self, buffer: np.ndarray) -> None:
            # arm the ADC, DMA into buffer
            ...

        def is_ready(self) -> bool:
            ...

        def stop(self) -> None:
            ...

    meter = ImpedanceMeter(MyCaptureDevice(), config)

See Also
--------
zlockin.device : Device implementations
zlockin.meas.sampler : The consumer of this protocol
"""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class CaptureSourceProtocol(Protocol):
    """Methods required for an interleaved two-channel capture source.

    Implementations must provide methods for:
    - Starting a block capture that fills a caller-owned buffer end-to-end,
      starting at index 0, in reference/input alternating order
    - Reporting whether the capture has completed
    - Aborting a capture that is still in flight
    """

    start_block_capture: Callable[[np.ndarray], None]
    """Start filling the whole buffer in place.

    Parameters:
    - buffer: unsigned integer array, written as [ref0, in0, ref1, in1, ...]
    """

    is_ready: Callable[[], bool]
    """Return True once the buffer has been completely written."""

    stop: Callable[[], None]
    """Abort the current capture, if any."""
