"""Tests for quadrature extraction and session averaging."""

import numpy as np
import pytest

from zlockin.meas import (
    CaptureBuffer,
    DemodSession,
    MeasurementVector,
    PhaseOrigin,
    SampleFrame,
    SynchronousSampler,
    extract,
    find_origin,
    nearest_input_index,
    phase_step,
    to_complex,
)
from zlockin.types import PhaseNotFound


def ramp_frame(length=16, input_average=100):
    """Frame whose input sample at odd index i is input_average + i."""
    samples = np.zeros(length, dtype=np.uint16)
    samples[1::2] = input_average + np.arange(1, length, 2)
    return SampleFrame(
        samples=samples,
        ref_average=0,
        input_average=input_average,
        usable_length=length,
    )


def test_phase_step():
    assert phase_step(1e6, 500.0) == pytest.approx(500.0)
    assert phase_step(500e3, 500.0) == pytest.approx(250.0)
    with pytest.raises(ValueError):
        phase_step(1e6, 0.0)


@pytest.mark.parametrize(
    "position, expected",
    [
        (1.0, 1),
        (1.9, 1),
        (2.0, 3),  # tie between 1 and 3
        (3.5, 3),
        (6.0, 7),  # tie between 5 and 7
        (8.5, 9),
        (15.0, 15),
        (16.2, 1),  # wraps past the end
        (0.0, 1),
        (-0.5, 15),
    ],
)
def test_nearest_input_index(position, expected):
    assert nearest_input_index(position, 16) == expected


def test_nearest_input_index_odd_length():
    with pytest.raises(ValueError):
        nearest_input_index(3.0, 15)


def test_extract_integer_step():
    vector = extract(ramp_frame(), PhaseOrigin(index=0), 2.0)
    assert vector.dtype == np.int64
    assert vector.tolist() == [1, 3, 5, 7]


def test_extract_fractional_step():
    # positions 1, 3.5, 6, 8.5 -> indices 1, 3, 7, 9
    vector = extract(ramp_frame(), PhaseOrigin(index=0), 2.5)
    assert vector.tolist() == [1, 3, 7, 9]


def test_extract_wraps_around():
    # positions 15, 17, 19, 21 -> indices 15, 1, 3, 5
    vector = extract(ramp_frame(), PhaseOrigin(index=14), 2.0)
    assert vector.tolist() == [15, 1, 3, 5]


def test_extract_deviation_from_average():
    frame = ramp_frame(input_average=200)
    shifted = SampleFrame(
        samples=frame.samples,
        ref_average=0,
        input_average=206,
        usable_length=frame.usable_length,
    )
    assert extract(shifted, PhaseOrigin(index=0), 2.0).tolist() == [-5, -3, -1, 1]


def test_extract_without_origin():
    with pytest.raises(PhaseNotFound):
        extract(ramp_frame(), None, 2.0)


class TestDemodSession:
    def test_finalize_divides_and_rounds(self):
        session = DemodSession()
        session.accumulate([1, 2, -1, 0])
        session.accumulate([2, 1, -2, 1])

        result = session.finalize()
        # [1.5, 1.5, -1.5, 0.5] rounds halves away from zero
        assert result.components.tolist() == [2, 2, -2, 1]
        assert result.bursts == 2
        assert result.dropped == 0

    def test_skipped_bursts_excluded_from_divisor(self):
        session = DemodSession()
        session.accumulate([10, 20, -10, -20])
        session.skip()
        session.accumulate([30, 40, -30, -40])
        session.skip()

        result = session.finalize()
        assert result.components.tolist() == [20, 30, -20, -30]
        assert result.bursts == 2
        assert result.dropped == 2
        assert result.success_ratio == pytest.approx(0.5)

    def test_no_successful_bursts(self):
        session = DemodSession()
        session.skip()
        session.skip()
        with pytest.raises(PhaseNotFound):
            session.finalize()

    def test_empty_session(self):
        with pytest.raises(PhaseNotFound):
            DemodSession().finalize()

    def test_wrong_length_vector(self):
        with pytest.raises(ValueError):
            DemodSession().accumulate([1, 2, 3])


class TestMeasurementVector:
    def test_equality(self):
        a = MeasurementVector(components=[1, 2, 3, 4], bursts=10, dropped=1)
        b = MeasurementVector(components=np.array([1, 2, 3, 4]), bursts=10, dropped=1)
        c = MeasurementVector(components=[1, 2, 3, 5], bursts=10, dropped=1)
        assert a == b
        assert a != c
        assert a != [1, 2, 3, 4]

    def test_indexing(self):
        vector = MeasurementVector(components=[1, 2, 3, 4], bursts=1)
        assert len(vector) == 4
        assert [vector[k] for k in range(4)] == [1, 2, 3, 4]

    def test_shape_validation(self):
        with pytest.raises(ValueError):
            MeasurementVector(components=[1, 2], bursts=1)


def test_demodulate_sinusoid(make_source, meter_config):
    """Full chain from mock capture to complex form for a known response."""
    amplitude = 1000.0
    phase_deg = 30.0
    source = make_source(input_amplitude=amplitude, input_phase_deg=phase_deg)
    buffer = CaptureBuffer()
    buffer.configure(meter_config.sample_rate, meter_config.excitation_frequency)
    sampler = SynchronousSampler(source, buffer)
    step = phase_step(meter_config.sample_rate, meter_config.excitation_frequency)

    session = DemodSession()
    for _ in range(20):
        frame = sampler.acquire()
        origin = find_origin(frame)
        assert origin is not None
        session.accumulate(extract(frame, origin, step))

    z = to_complex(session.finalize())
    phi = np.deg2rad(phase_deg)
    assert z.real / 2 == pytest.approx(amplitude * np.cos(phi), abs=0.02 * amplitude)
    assert z.imag / 2 == pytest.approx(amplitude * np.sin(phi), abs=0.02 * amplitude)
