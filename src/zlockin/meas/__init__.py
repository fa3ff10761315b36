# -*- coding: utf-8 -*-
"""
Measurement core of zlockin.

One measurement session runs, for every burst:

1. `SynchronousSampler.acquire` - blocking capture of an interleaved
   reference/input burst into the `CaptureBuffer`
2. `find_origin` - rising crossing of the reference through its average
3. `extract` - four input samples a quarter period apart from the origin
4. `DemodSession.accumulate` - running sum, divided at the end of the session

`zlockin.meas.impedance` then turns an open-circuit and a DUT measurement into
a complex impedance.

See Also
--------
zlockin.meas.meter : `ImpedanceMeter`, the entry point to the core
"""

from .buffer import CaptureBuffer
from .demod import (
    QUADRATURE_POINTS,
    DemodSession,
    MeasurementVector,
    extract,
    nearest_input_index,
    phase_step,
)
from .impedance import DEGENERATE_TOLERANCE, ComplexImpedance, compute, to_complex
from .meter import ImpedanceMeter
from .numeric import round_half_away, wrap_index, wrap_position
from .phase import PhaseOrigin, find_origin
from .sampler import SampleFrame, SynchronousSampler

__all__ = [
    "CaptureBuffer",
    "QUADRATURE_POINTS",
    "DemodSession",
    "MeasurementVector",
    "extract",
    "nearest_input_index",
    "phase_step",
    "DEGENERATE_TOLERANCE",
    "ComplexImpedance",
    "compute",
    "to_complex",
    "ImpedanceMeter",
    "round_half_away",
    "wrap_index",
    "wrap_position",
    "PhaseOrigin",
    "find_origin",
    "SampleFrame",
    "SynchronousSampler",
]
