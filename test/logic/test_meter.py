"""Tests for the impedance meter measurement sessions."""

import numpy as np
import pytest

from zlockin.meas import ImpedanceMeter, MeasurementVector
from zlockin.types import (
    AllocationError,
    IndeterminateImpedance,
    MeterConfig,
    PhaseNotFound,
    StalledCapture,
)


@pytest.mark.parametrize("phase_deg", [0.0, 30.0, -45.0, 90.0, 135.0, -170.0])
def test_sinusoid_recovery(make_source, meter_config, phase_deg):
    amplitude = 1000.0
    source = make_source(input_amplitude=amplitude, input_phase_deg=phase_deg)

    with ImpedanceMeter(source, meter_config) as meter:
        vector = meter.measure(meter_config.iterations)
        z = meter.to_complex(vector)

    phi = np.deg2rad(phase_deg)
    assert vector.bursts == meter_config.iterations
    assert vector.dropped == 0
    assert z.real / 2 == pytest.approx(amplitude * np.cos(phi), abs=0.02 * amplitude)
    assert z.imag / 2 == pytest.approx(amplitude * np.sin(phi), abs=0.02 * amplitude)


def test_sinusoid_recovery_square_reference(make_source, meter_config):
    amplitude = 600.0
    source = make_source(
        ref_waveform="SQUARE", input_amplitude=amplitude, input_phase_deg=-60.0
    )
    with ImpedanceMeter(source, meter_config) as meter:
        z = meter.to_complex(meter.measure(20))

    phi = np.deg2rad(-60.0)
    assert z.real / 2 == pytest.approx(amplitude * np.cos(phi), abs=0.02 * amplitude)
    assert z.imag / 2 == pytest.approx(amplitude * np.sin(phi), abs=0.02 * amplitude)


def test_noisy_sinusoid_recovery(make_source):
    # non-integer quarter period: 500 kS/s at 500.001 Hz
    config = MeterConfig(sample_rate=500e3)
    amplitude = 500.0
    source = make_source(
        sample_rate=config.sample_rate,
        excitation_frequency=config.excitation_frequency,
        input_amplitude=amplitude,
        input_phase_deg=-30.0,
        noise_sigma=2.0,
        seed=42,
    )
    with ImpedanceMeter(source, config) as meter:
        z = meter.to_complex(meter.measure(200))

    phi = np.deg2rad(-30.0)
    assert z.real / 2 == pytest.approx(amplitude * np.cos(phi), abs=0.03 * amplitude)
    assert z.imag / 2 == pytest.approx(amplitude * np.sin(phi), abs=0.03 * amplitude)


def test_measure_is_repeatable(make_source, meter_config):
    source = make_source(input_phase_deg=20.0, noise_sigma=8.0, seed=7)
    with ImpedanceMeter(source, meter_config) as meter:
        first = meter.measure(15)
        source.reset()
        second = meter.measure(15)

    assert first == second


def test_progress_callback(make_source, meter_config):
    calls = []
    with ImpedanceMeter(make_source(), meter_config) as meter:
        meter.measure(5, progress=lambda done, total: calls.append((done, total)))
    assert calls == [(1, 5), (2, 5), (3, 5), (4, 5), (5, 5)]


def test_all_bursts_dropped(make_source, meter_config):
    # flat reference: no rising crossing in any burst
    source = make_source(ref_amplitude=0.0)
    with ImpedanceMeter(source, meter_config) as meter:
        with pytest.raises(PhaseNotFound):
            meter.measure(5)


def test_stalled_source(make_source):
    config = MeterConfig(sample_rate=1e6, capture_timeout_s=0.05, poll_interval_s=0.005)
    source = make_source(stall=True)
    with ImpedanceMeter(source, config) as meter:
        with pytest.raises(StalledCapture):
            meter.measure(3)


def test_buffer_too_large(make_source):
    config = MeterConfig(sample_rate=1e6, max_capacity=1000)
    with pytest.raises(AllocationError):
        ImpedanceMeter(make_source(), config)


def test_invalid_config(make_source):
    config = MeterConfig(sample_rate=2000.0)  # < 8 samples per period at 500 Hz
    with pytest.raises(ValueError):
        ImpedanceMeter(make_source(), config)


def test_invalid_iterations(make_source, meter_config):
    with ImpedanceMeter(make_source(), meter_config) as meter:
        with pytest.raises(ValueError):
            meter.measure(0)


def test_closed_meter(make_source, meter_config):
    meter = ImpedanceMeter(make_source(), meter_config)
    meter.close()
    with pytest.raises(RuntimeError, match="closed"):
        meter.measure(1)


def test_open_dut_impedance(make_source, meter_config):
    """Open-circuit then DUT pass through the meter, against the closed form."""
    source = make_source(input_amplitude=800.0, input_phase_deg=0.0)
    with ImpedanceMeter(source, meter_config) as meter:
        v_open = meter.measure(10)
        source.set_response(400.0, -45.0)
        v_dut = meter.measure(10)
        z = meter.compute_impedance(v_open, v_dut)

    o, d = complex(meter.to_complex(v_open)), complex(meter.to_complex(v_dut))
    rs, rref = meter_config.series_resistance, meter_config.reference_resistance
    assert complex(z) == pytest.approx(rref * rs * d / (rref + rs * (o - d)))


def test_compute_impedance_uses_configured_divider(make_source):
    config = MeterConfig(sample_rate=1e6, series_resistance=100.0, reference_resistance=200.0)
    with ImpedanceMeter(make_source(), config) as meter:
        with pytest.raises(IndeterminateImpedance):
            meter.compute_impedance(
                MeasurementVector(components=[0, 0, 0, 0], bursts=1),
                MeasurementVector(components=[0, 2, 0, 0], bursts=1),
            )
