# -*- coding: utf-8 -*-
"""# zlockin

`Synchronous (lock-in) impedance meter core`

A (python) library for measuring a complex impedance with a two-channel
lock-in technique: a periodic excitation drives the device under test (DUT),
a reference and an input channel are captured as one interleaved block, each
burst is phase-aligned on the reference's rising crossing, and four
phase-spaced input samples are averaged over many bursts.

- [Measurement core](meas/index.html): buffer, sampler, phase synchronizer,
  demodulator and impedance calculator.
- [Devices](device/index.html): capture sources, including a synthetic one.
- [Meter configurations](system/index.html): INI-based meter definitions.
- CLI: `zlockin --help`.
"""

from ._version import __version__
