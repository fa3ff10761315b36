"""Phase synchronizer: locate the reference's rising crossing in a burst."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from zlockin.meas.sampler import SampleFrame


@dataclass(frozen=True)
class PhaseOrigin:
    """Buffer index (even, on the reference channel) of a burst's phase 0."""

    index: int


def find_origin(frame: SampleFrame) -> Optional[PhaseOrigin]:
    """Find the first rising crossing of the reference through its average.

    The reference samples are scanned as a circular sequence whose first
    predecessor is the last reference sample, so a crossing straddling the
    end of the buffer is detected at index 0.

    Parameters
    ----------
    frame : SampleFrame
        Burst to scan

    Returns
    -------
    Optional[PhaseOrigin]
        Origin at the first reference sample ``>= ref_average`` whose
        predecessor is ``< ref_average``, or None if there is no such pair
        (e.g. a flat reference)
    """
    ref = frame.reference.astype(np.int64)
    if len(ref) < 2:
        return None
    prev = np.roll(ref, 1)
    rising = (prev < frame.ref_average) & (ref >= frame.ref_average)
    crossings = np.flatnonzero(rising)
    if crossings.size == 0:
        return None
    return PhaseOrigin(index=2 * int(crossings[0]))
