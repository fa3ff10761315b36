"""Impedance meter: the measurement core behind one capture source.

Examples
--------
```python
from zlockin.device import MockCaptureSource
from zlockin.meas import ImpedanceMeter
from zlockin.types import MeterConfig

config = MeterConfig()
source = MockCaptureSource(
    sample_rate=config.sample_rate,
    excitation_frequency=config.excitation_frequency,
)
source.open()
with ImpedanceMeter(source, config) as meter:
    v_open = meter.measure(1000)
    source.set_response(400.0, -30.0)
    v_dut = meter.measure(1000)
    z = meter.compute_impedance(v_open, v_dut)
```
"""

from __future__ import annotations

from typing import Callable, Optional

from loguru import logger

from zlockin.meas import impedance
from zlockin.meas.buffer import CaptureBuffer
from zlockin.meas.demod import DemodSession, MeasurementVector, extract, phase_step
from zlockin.meas.impedance import ComplexImpedance
from zlockin.meas.phase import find_origin
from zlockin.meas.sampler import SynchronousSampler
from zlockin.types.config import MeterConfig
from zlockin.types.protocols import CaptureSourceProtocol

LOW_SUCCESS_RATIO = 0.5  # warn below this fraction of bursts with an origin


class ImpedanceMeter:
    """Synchronous impedance meter.

    Parameters
    ----------
    source : CaptureSourceProtocol
        Opened capture source delivering interleaved reference/input bursts
    config : MeterConfig
        Meter configuration; validated on construction

    Raises
    ------
    ValueError
        If the configuration is invalid
    AllocationError
        If the capture buffer cannot be reserved
    """

    def __init__(self, source: CaptureSourceProtocol, config: MeterConfig):
        config.validate()
        self._config = config
        self._excitation_frequency = config.excitation_frequency
        self._step = phase_step(config.sample_rate, self._excitation_frequency)

        buffer = CaptureBuffer(max_capacity=config.max_capacity)
        buffer.configure(config.sample_rate, self._excitation_frequency)
        self._sampler = SynchronousSampler(
            source,
            buffer,
            timeout_s=config.capture_timeout_s,
            poll_interval_s=config.poll_interval_s,
        )
        logger.info(
            "Meter '{}' ready: {} S/s, excitation {:.4f} Hz, quarter period {:.3f} samples",
            config.name,
            config.sample_rate,
            self._excitation_frequency,
            self._step,
        )

    @property
    def config(self) -> MeterConfig:
        return self._config

    @property
    def excitation_frequency(self) -> float:
        return self._excitation_frequency

    def measure(
        self,
        n_iterations: int,
        progress: Optional[Callable[[int, int], None]] = None,
    ) -> MeasurementVector:
        """Run one measurement session of `n_iterations` bursts.

        Parameters
        ----------
        n_iterations : int
            Number of bursts to capture
        progress : Callable[[int, int], None], optional
            Called with ``(completed, total)`` after every burst

        Returns
        -------
        MeasurementVector
            Session sum divided by the number of bursts with a phase origin

        Raises
        ------
        PhaseNotFound
            If no burst had a phase origin
        StalledCapture
            If a capture did not complete in time
        """
        if n_iterations <= 0:
            raise ValueError(f"n_iterations must be positive, got {n_iterations}")
        if not self._sampler.buffer.is_allocated:
            raise RuntimeError("Meter is closed")

        session = DemodSession()
        for i in range(n_iterations):
            frame = self._sampler.acquire()
            origin = find_origin(frame)
            if origin is None:
                logger.debug("Burst {}: no phase origin, dropped", i)
                session.skip()
            else:
                session.accumulate(extract(frame, origin, self._step))
            if progress is not None:
                progress(i + 1, n_iterations)

        vector = session.finalize()
        if vector.success_ratio < LOW_SUCCESS_RATIO:
            logger.warning(
                "Only {}/{} bursts had a phase origin",
                vector.bursts,
                n_iterations,
            )
        logger.info(
            "Measurement: {} ({} bursts, {} dropped)",
            vector.components.tolist(),
            vector.bursts,
            vector.dropped,
        )
        return vector

    def to_complex(self, vector) -> ComplexImpedance:
        return impedance.to_complex(vector)

    def compute_impedance(self, open_vector, dut_vector) -> ComplexImpedance:
        """DUT impedance from an open-circuit and a DUT measurement, in ohms."""
        return impedance.compute(
            open_vector,
            dut_vector,
            series_resistance=self._config.series_resistance,
            reference_resistance=self._config.reference_resistance,
        )

    def close(self) -> None:
        """Release the capture buffer. The source stays open."""
        self._sampler.buffer.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False
