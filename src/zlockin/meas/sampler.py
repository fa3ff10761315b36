"""Synchronous sampler: one blocking capture burst per call.

`SynchronousSampler.acquire` is the only suspension point of the measurement
core. It starts a block capture on the capture source and blocks until the
source reports completion, so no second capture can be in flight while a
burst is being processed.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

import numpy as np
from loguru import logger

from zlockin.meas.buffer import CaptureBuffer
from zlockin.meas.numeric import round_half_away
from zlockin.types.errors import StalledCapture
from zlockin.types.protocols import CaptureSourceProtocol
from zlockin.util.defaults import DEFAULT_CAPTURE_TIMEOUT, DEFAULT_POLL_INTERVAL


@dataclass(frozen=True)
class SampleFrame:
    """Result of one burst.

    `samples` is a read-only view of the sampler's buffer and is only valid
    until the next `acquire()`.

    Attributes
    ----------
    samples : np.ndarray
        Interleaved raw samples, ``[ref0, in0, ref1, in1, ...]``
    ref_average : int
        Rounded mean of the reference samples over the usable length
    input_average : int
        Rounded mean of the input samples over the usable length
    usable_length : int
        Even number of samples to process
    """

    samples: np.ndarray
    ref_average: int
    input_average: int
    usable_length: int

    @property
    def reference(self) -> np.ndarray:
        """Reference channel samples (even buffer indices)."""
        return self.samples[0 : self.usable_length : 2]

    @property
    def input(self) -> np.ndarray:
        """Input channel samples (odd buffer indices)."""
        return self.samples[1 : self.usable_length : 2]


class SynchronousSampler:
    """Blocking burst acquisition into an owned capture buffer.

    Parameters
    ----------
    source : CaptureSourceProtocol
        Device filling the buffer
    buffer : CaptureBuffer
        Configured capture buffer, owned by this sampler from now on
    timeout_s : float
        Maximum time to wait for a capture to complete
    poll_interval_s : float
        Time between completion polls
    """

    def __init__(
        self,
        source: CaptureSourceProtocol,
        buffer: CaptureBuffer,
        timeout_s: float = DEFAULT_CAPTURE_TIMEOUT,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL,
    ):
        if not isinstance(source, CaptureSourceProtocol):
            raise TypeError(
                f"{type(source).__name__} does not implement CaptureSourceProtocol"
            )
        if timeout_s <= 0 or poll_interval_s <= 0:
            raise ValueError("Timeout and poll interval must be positive")
        self._source = source
        self._buffer = buffer
        self._timeout_s = timeout_s
        self._poll_interval_s = poll_interval_s
        self._in_flight = False

    @property
    def buffer(self) -> CaptureBuffer:
        return self._buffer

    def acquire(self) -> SampleFrame:
        """Capture one burst and compute the per-channel averages.

        Raises
        ------
        RuntimeError
            If a capture is already in flight or the buffer is not configured
        StalledCapture
            If the source does not complete the capture within the timeout
        """
        if self._in_flight:
            raise RuntimeError("acquire() called while a capture is in flight")
        samples = self._buffer.samples

        self._in_flight = True
        try:
            self._source.start_block_capture(samples)
            self._wait_for_capture()
        finally:
            self._in_flight = False

        usable = self._buffer.usable_length()
        ref_average = round_half_away(samples[0:usable:2].mean())
        input_average = round_half_away(samples[1:usable:2].mean())
        logger.trace(
            "Burst captured: ref average {}, input average {}",
            ref_average,
            input_average,
        )

        view = samples.view()
        view.flags.writeable = False
        return SampleFrame(
            samples=view,
            ref_average=ref_average,
            input_average=input_average,
            usable_length=usable,
        )

    def _wait_for_capture(self) -> None:
        deadline = time.monotonic() + self._timeout_s
        while not self._source.is_ready():
            if time.monotonic() >= deadline:
                self._source.stop()
                logger.error(
                    "Block capture did not complete within {} s, source stopped",
                    self._timeout_s,
                )
                raise StalledCapture(
                    f"Block capture did not complete within {self._timeout_s} s"
                )
            time.sleep(self._poll_interval_s)
