"""Configuration types for the excitation and the meter."""

import math
from dataclasses import dataclass, field

from mashumaro import DataClassDictMixin

from zlockin.util.defaults import (
    DEFAULT_CAPTURE_TIMEOUT,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_SAVE_DIR,
)

PWM_COUNTER_MAX = 0xFFFF  # 16 bit wrap register
PWM_DIVIDER_MAX = 256.0  # 8.4 fixed point divider


@dataclass(frozen=True)
class PWMSettings:
    """Register values for the PWM slice producing the excitation.

    Attributes
    ----------
    clock_divider : float
        System clock divider (8.4 fixed point on the hardware)
    wrap : int
        Counter value at which the PWM counter resets
    level : int
        Counter value at which the output switches from high to low
    actual_frequency : float
        Excitation frequency produced by these settings in Hz
    """

    clock_divider: float
    wrap: int
    level: int
    actual_frequency: float


@dataclass(kw_only=True)
class ExcitationConfig(DataClassDictMixin):
    """Configuration of the fixed-frequency square wave excitation.

    Attributes
    ----------
    clock_freq : float
        System clock feeding the PWM slice in Hz
    pwm_freq : float
        Requested excitation frequency in Hz
    duty_cycle_percent : float
        High time of the square wave (0-100%)
    """

    clock_freq: float = 125e6
    pwm_freq: float = 500.0
    duty_cycle_percent: float = 50.0

    def validate(self) -> None:
        """Validate excitation configuration."""
        if self.clock_freq <= 0:
            raise ValueError("Clock frequency must be positive")
        if self.pwm_freq <= 0:
            raise ValueError("Excitation frequency must be positive")
        if not 0 < self.duty_cycle_percent < 100:
            raise ValueError("Duty cycle must be between 0 and 100%")

    def pwm_settings(self) -> PWMSettings:
        """Compute the PWM divider, wrap and level for this excitation.

        The divider is chosen so the counter wraps near 4096 * 16 counts per
        period, leaving a fine duty cycle resolution.
        """
        self.validate()
        clock_divider = math.ceil(self.clock_freq / (4096 * self.pwm_freq)) / 16
        clock_divider = max(clock_divider, 1.0)
        if clock_divider >= PWM_DIVIDER_MAX:
            raise ValueError(
                f"Excitation frequency {self.pwm_freq} Hz is too low for a "
                f"{self.clock_freq} Hz clock (divider {clock_divider})"
            )

        divided_clock_freq = self.clock_freq / clock_divider
        wrap = int(divided_clock_freq / self.pwm_freq - 1)
        if not 0 < wrap <= PWM_COUNTER_MAX:
            raise ValueError(
                f"PWM wrap {wrap} out of range for excitation {self.pwm_freq} Hz"
            )
        level = int(wrap * self.duty_cycle_percent / 100)

        return PWMSettings(
            clock_divider=clock_divider,
            wrap=wrap,
            level=level,
            actual_frequency=divided_clock_freq / (wrap + 1),
        )


@dataclass(kw_only=True)
class MeterConfig(DataClassDictMixin):
    """Configuration of one impedance meter.

    Attributes
    ----------
    name : str
        Meter configuration name
    sample_rate : float
        Aggregate raw sample rate of the interleaved stream in samples/s
        (both channels together)
    excitation : ExcitationConfig
        Excitation waveform settings
    series_resistance : float
        Series resistance of the divider in ohms
    reference_resistance : float
        Reference resistance of the divider in ohms
    iterations : int
        Default number of bursts per measurement session
    capture_timeout_s : float
        Maximum wait for one block capture before it is declared stalled
    poll_interval_s : float
        Interval between capture-completion polls
    adc_bits : int
        ADC resolution, raw samples are in [0, 2**adc_bits)
    max_capacity : int
        Upper bound on the capture buffer length in samples
    save_dir : str
        Root directory for saved measurements
    capture_type : str
        Capture device class name, see `zlockin.device.get_valid_device_types`
    capture_params : dict[str, str]
        Keyword arguments for the capture device, as read from the INI file
    """

    name: str = "mock"
    sample_rate: float = 500_000.0
    excitation: ExcitationConfig = field(default_factory=ExcitationConfig)
    series_resistance: float = 100_000.0
    reference_resistance: float = 9_500.0
    iterations: int = 1000
    capture_timeout_s: float = DEFAULT_CAPTURE_TIMEOUT
    poll_interval_s: float = DEFAULT_POLL_INTERVAL
    adc_bits: int = 12
    max_capacity: int = 1 << 22
    save_dir: str = DEFAULT_SAVE_DIR
    capture_type: str = "MockCaptureSource"
    capture_params: dict[str, str] = field(default_factory=dict)

    @property
    def excitation_frequency(self) -> float:
        """Excitation frequency actually produced by the PWM, in Hz."""
        return self.excitation.pwm_settings().actual_frequency

    def validate(self) -> None:
        """Validate meter configuration."""
        self.excitation.validate()
        if self.sample_rate <= 0:
            raise ValueError("Sample rate must be positive")
        if self.series_resistance <= 0 or self.reference_resistance <= 0:
            raise ValueError("Divider resistances must be positive")
        if self.iterations <= 0:
            raise ValueError("Iterations must be positive")
        if self.capture_timeout_s <= 0 or self.poll_interval_s <= 0:
            raise ValueError("Capture timeout and poll interval must be positive")
        if not 1 <= self.adc_bits <= 16:
            raise ValueError(f"Invalid ADC resolution: {self.adc_bits} bits")
        if self.sample_rate < 8 * self.excitation_frequency:
            raise ValueError(
                f"Sample rate {self.sample_rate} S/s too low for excitation at "
                f"{self.excitation_frequency:.3f} Hz (need 4 samples per period per channel)"
            )
