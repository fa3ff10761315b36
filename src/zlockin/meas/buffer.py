"""Capture buffer: pre-sized storage for one interleaved burst.

The buffer holds raw unsigned samples alternating between the reference and
the input channel, ``[ref0, in0, ref1, in1, ...]``, and is sized to span at
least two excitation periods. It is allocated once and overwritten in place
by every burst.
"""

from __future__ import annotations

import math

import numpy as np
from loguru import logger

from zlockin.types.errors import AllocationError

# two reference and two input samples
MIN_CAPACITY = 4


class CaptureBuffer:
    """Fixed-capacity raw sample storage owned by the sampler.

    Parameters
    ----------
    max_capacity : int
        Largest capacity (in samples) `configure` may allocate
    dtype : numpy dtype
        Unsigned sample type, by default ``np.uint16``
    """

    def __init__(self, max_capacity: int = 1 << 22, dtype=np.uint16):
        if np.dtype(dtype).kind != "u":
            raise ValueError(f"Capture buffer needs an unsigned dtype, got {dtype}")
        self._max_capacity = int(max_capacity)
        self._dtype = np.dtype(dtype)
        self._samples: np.ndarray | None = None
        self._period_samples = 0.0

    def configure(self, sample_rate: float, excitation_frequency: float) -> int:
        """Allocate a buffer spanning at least two excitation periods.

        Parameters
        ----------
        sample_rate : float
            Aggregate raw sample rate of the interleaved stream in samples/s
        excitation_frequency : float
            Excitation frequency in Hz

        Returns
        -------
        int
            Capacity of the buffer in samples

        Raises
        ------
        ValueError
            If a rate is not positive, or the burst would hold fewer than two
            samples per channel
        AllocationError
            If the buffer cannot be reserved
        """
        if sample_rate <= 0 or excitation_frequency <= 0:
            raise ValueError(
                f"Sample rate ({sample_rate}) and excitation frequency "
                f"({excitation_frequency}) must be positive"
            )
        period_samples = sample_rate / excitation_frequency
        capacity = math.ceil(2 * period_samples)
        if capacity < MIN_CAPACITY:
            raise ValueError(
                f"Capture buffer of {capacity} samples is shorter than "
                f"{MIN_CAPACITY}: sample rate ({sample_rate}) too low for an "
                f"excitation frequency of {excitation_frequency}"
            )

        if capacity > self._max_capacity:
            logger.error(
                "Capture buffer of {} samples exceeds the limit of {}",
                capacity,
                self._max_capacity,
            )
            raise AllocationError(
                f"Capture buffer of {capacity} samples exceeds the limit of "
                f"{self._max_capacity} samples"
            )
        try:
            samples = np.zeros(capacity, dtype=self._dtype)
        except (MemoryError, ValueError) as e:
            logger.error("Could not allocate capture buffer: {}", str(e))
            raise AllocationError(
                f"Could not allocate a capture buffer of {capacity} samples"
            ) from e

        self._samples = samples
        self._period_samples = period_samples
        logger.info(
            "Capture buffer configured: {} samples, {:.2f} samples per period",
            capacity,
            period_samples,
        )
        return capacity

    @property
    def is_allocated(self) -> bool:
        return self._samples is not None

    @property
    def samples(self) -> np.ndarray:
        if self._samples is None:
            raise RuntimeError("Capture buffer not configured")
        return self._samples

    @property
    def capacity(self) -> int:
        return 0 if self._samples is None else len(self._samples)

    @property
    def period_samples(self) -> float:
        """Interleaved samples per excitation period."""
        return self._period_samples

    def usable_length(self) -> int:
        """Capacity rounded down to an even number of samples."""
        return self.capacity - (self.capacity % 2)

    def release(self) -> None:
        if self._samples is not None:
            logger.debug("Releasing capture buffer of {} samples", self.capacity)
        self._samples = None
        self._period_samples = 0.0
