from __future__ import annotations

import time
from enum import Enum

import numpy as np
import numpy.random
from loguru import logger

from zlockin.device.device import Device


class WaveType(Enum):
    """Reference waveforms supported by the mock source."""

    SINE = "SINE"
    SQUARE = "SQUARE"


class MockCaptureSource(Device):  # Protocol compliance checked at meter build
    """Synthetic interleaved reference/input capture source.

    The stream is sampled round-robin: raw sample ``i`` is taken at
    ``t = i / sample_rate``, even indices from the reference channel and odd
    indices from the input channel. Each burst starts at a random excitation
    phase, like a free-running capture would.

    Parameters
    ----------
    sample_rate : float
        Aggregate raw sample rate (both channels) in samples/s
    excitation_frequency : float
        Excitation frequency in Hz
    adc_bits : int
        Samples are clipped to [0, 2**adc_bits - 1]
    ref_waveform : str
        "SINE" or "SQUARE"
    ref_amplitude : float
        Reference amplitude in ADC counts
    input_amplitude : float
        Input amplitude in ADC counts
    input_phase_deg : float
        Input phase relative to the reference in degrees
    offset : float, optional
        DC level of both channels, mid-scale by default
    noise_sigma : float
        Standard deviation of additive gaussian noise in counts
    random_phase : bool
        Randomize the excitation phase at the start of each burst
    seed : int
        RNG seed, restored by `reset()`
    capture_delay_s : float
        Time before a started capture reports ready
    stall : bool
        Never report a capture as ready
    """

    meter_config_keys = ("sample_rate", "excitation_frequency", "adc_bits")

    def __init__(
        self,
        sample_rate: float = 500_000.0,
        excitation_frequency: float = 500.0,
        adc_bits: int = 12,
        ref_waveform: str = "SINE",
        ref_amplitude: float = 1000.0,
        input_amplitude: float = 500.0,
        input_phase_deg: float = 0.0,
        offset: float | None = None,
        noise_sigma: float = 0.0,
        random_phase: bool = True,
        seed: int = 0,
        capture_delay_s: float = 0.0,
        stall: bool = False,
        **config_kwargs,
    ):
        super().__init__(**config_kwargs)
        self._sample_rate = float(sample_rate)
        self._excitation_frequency = float(excitation_frequency)
        self._adc_bits = int(adc_bits)
        self._ref_waveform = WaveType(str(ref_waveform).upper())
        self._ref_amplitude = float(ref_amplitude)
        self._input_amplitude = float(input_amplitude)
        self._input_phase = np.deg2rad(float(input_phase_deg))
        self._offset = (
            float(offset) if offset is not None else float(2 ** (self._adc_bits - 1))
        )
        self._noise_sigma = float(noise_sigma)
        self._random_phase = _as_bool(random_phase)
        self._seed = int(seed)
        self._capture_delay_s = float(capture_delay_s)
        self._stall = _as_bool(stall)

        self._connected = False
        self._capturing = False
        self._ready_at = 0.0
        self._bursts = 0
        self.__rng = numpy.random.default_rng(self._seed)

    def open(self) -> tuple[bool, str]:
        self._connected = True
        logger.info("Connected to capture source: MockCaptureSource")
        return True, "Connected to capture source: MockCaptureSource"

    def close(self):
        self.stop()
        self._connected = False
        logger.info("Disconnected from capture source: {}", "MockCaptureSource")

    def is_connected(self) -> bool:
        return self._connected

    def reset(self) -> None:
        """Restore the RNG to its seeded state."""
        self.__rng = numpy.random.default_rng(self._seed)
        self._bursts = 0

    def set_response(self, amplitude: float, phase_deg: float) -> None:
        """Change the simulated DUT response on the input channel."""
        self._input_amplitude = float(amplitude)
        self._input_phase = np.deg2rad(float(phase_deg))

    def set_stall(self, stall: bool) -> None:
        self._stall = stall

    def start_block_capture(self, buffer: np.ndarray) -> None:
        """Fill `buffer` in place with one interleaved burst."""
        if self._capturing:
            raise RuntimeError("Capture already in progress")
        self._capturing = True
        self._ready_at = time.monotonic() + self._capture_delay_s
        if self._stall:
            logger.trace("Mock capture armed but stalled")
            return

        n = len(buffer)
        t = np.arange(n) / self._sample_rate
        start_phase = (
            self.__rng.uniform(0.0, 2 * np.pi) if self._random_phase else 0.0
        )
        phase = 2 * np.pi * self._excitation_frequency * t + start_phase

        if self._ref_waveform is WaveType.SQUARE:
            ref = np.where(np.sin(phase) >= 0, 1.0, -1.0)
        else:
            ref = np.sin(phase)
        signal = np.empty(n, dtype=np.float64)
        signal[0::2] = self._offset + self._ref_amplitude * ref[0::2]
        signal[1::2] = self._offset + self._input_amplitude * np.sin(
            phase[1::2] + self._input_phase
        )
        if self._noise_sigma > 0:
            signal += self.__rng.normal(0.0, self._noise_sigma, n)

        full_scale = 2**self._adc_bits - 1
        buffer[:] = np.clip(np.rint(signal), 0, full_scale).astype(buffer.dtype)
        self._bursts += 1
        logger.trace(
            "Mock burst {} filled {} samples (start phase {:.3f} rad)",
            self._bursts,
            n,
            start_phase,
        )

    def is_ready(self) -> bool:
        if not self._capturing or self._stall:
            return False
        if time.monotonic() < self._ready_at:
            return False
        self._capturing = False
        return True

    def stop(self) -> None:
        self._capturing = False


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)
