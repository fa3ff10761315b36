"""Quadrature demodulator: four phase-spaced input samples per burst.

From a burst's phase origin the demodulator walks a quarter excitation period
at a time through the buffer. The capture rate is generally not an integer
multiple of the excitation frequency, so the walk uses a fractional position
(advanced by repeated modular addition) and reads the nearest input-channel
sample. The resulting snapping error is suppressed by averaging many bursts.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
from loguru import logger

from zlockin.meas.numeric import round_half_away, wrap_index, wrap_position
from zlockin.meas.phase import PhaseOrigin
from zlockin.meas.sampler import SampleFrame
from zlockin.types.errors import PhaseNotFound

QUADRATURE_POINTS = 4


def phase_step(sample_rate: float, excitation_frequency: float) -> float:
    """Quarter of an excitation period in interleaved-sample units."""
    if sample_rate <= 0 or excitation_frequency <= 0:
        raise ValueError("Sample rate and excitation frequency must be positive")
    return sample_rate / excitation_frequency / QUADRATURE_POINTS


def nearest_input_index(position: float, length: int) -> int:
    """Nearest odd (input channel) index to `position`, wrapped into the buffer.

    Ties round towards the higher index. `length` must be even so wrapping
    preserves the odd parity.
    """
    if length % 2:
        raise ValueError(f"length must be even, got {length}")
    odd = 2 * math.floor((position - 1) / 2 + 0.5) + 1
    return wrap_index(odd, length)


def extract(
    frame: SampleFrame, origin: Optional[PhaseOrigin], step: float
) -> np.ndarray:
    """Extract one burst's quadrature vector.

    Parameters
    ----------
    frame : SampleFrame
        Burst to demodulate
    origin : Optional[PhaseOrigin]
        Phase origin of this burst, from `find_origin`
    step : float
        Quarter period in sample units, see `phase_step`

    Returns
    -------
    np.ndarray
        Four int64 deviations from the input average, at phases 0, 90, 180
        and 270 degrees after the origin

    Raises
    ------
    PhaseNotFound
        If `origin` is None; such bursts must be skipped by the caller
    """
    if origin is None:
        raise PhaseNotFound("Cannot demodulate a burst without a phase origin")

    length = frame.usable_length
    start = origin.index + 1
    if start % 2 == 0:
        start += 1
    position = wrap_position(float(start), length)

    vector = np.empty(QUADRATURE_POINTS, dtype=np.int64)
    for k in range(QUADRATURE_POINTS):
        idx = nearest_input_index(position, length)
        vector[k] = int(frame.samples[idx]) - frame.input_average
        position = wrap_position(position + step, length)
    return vector


@dataclass(frozen=True, eq=False)
class MeasurementVector:
    """Noise-averaged quadrature response of one measurement session.

    Attributes
    ----------
    components : np.ndarray
        Four int64 components, the accumulated quadrature vectors divided by
        the number of successful bursts
    bursts : int
        Number of bursts that contributed
    dropped : int
        Number of bursts skipped for lack of a phase origin
    """

    components: np.ndarray
    bursts: int
    dropped: int = 0

    def __post_init__(self):
        components = np.asarray(self.components, dtype=np.int64)
        if components.shape != (QUADRATURE_POINTS,):
            raise ValueError(
                f"Expected {QUADRATURE_POINTS} components, got shape {components.shape}"
            )
        object.__setattr__(self, "components", components)

    def __eq__(self, other):
        if not isinstance(other, MeasurementVector):
            return NotImplemented
        return (
            np.array_equal(self.components, other.components)
            and self.bursts == other.bursts
            and self.dropped == other.dropped
        )

    def __getitem__(self, k):
        return self.components[k]

    def __len__(self):
        return QUADRATURE_POINTS

    @property
    def success_ratio(self) -> float:
        total = self.bursts + self.dropped
        return self.bursts / total if total else 0.0

    def __repr__(self):
        return (
            f"MeasurementVector(components={self.components.tolist()}, "
            f"bursts={self.bursts}, dropped={self.dropped})"
        )


@dataclass
class DemodSession:
    """Running sum of quadrature vectors over a measurement session."""

    total: np.ndarray = field(
        default_factory=lambda: np.zeros(QUADRATURE_POINTS, dtype=np.int64)
    )
    bursts: int = 0
    dropped: int = 0

    def accumulate(self, vector) -> None:
        """Add one burst's quadrature vector."""
        vector = np.asarray(vector, dtype=np.int64)
        if vector.shape != (QUADRATURE_POINTS,):
            raise ValueError(
                f"Expected {QUADRATURE_POINTS} components, got shape {vector.shape}"
            )
        self.total += vector
        self.bursts += 1

    def skip(self) -> None:
        """Record a burst without phase origin; it is excluded from the divisor."""
        self.dropped += 1

    def finalize(self) -> MeasurementVector:
        """Divide the running sum by the successful bursts.

        Raises
        ------
        PhaseNotFound
            If no burst of the session had a phase origin
        """
        if self.bursts == 0:
            logger.error(
                "No phase origin found in any of {} bursts", self.dropped
            )
            raise PhaseNotFound(
                f"No phase origin found in any of {self.dropped} bursts"
            )
        return MeasurementVector(
            components=round_half_away(self.total / self.bursts),
            bursts=self.bursts,
            dropped=self.dropped,
        )
