"""Tests for the complex value type and the divider impedance formula."""

import math

import pytest

from zlockin.meas import ComplexImpedance, MeasurementVector, compute, to_complex
from zlockin.types import IndeterminateImpedance


class TestComplexImpedance:
    def test_arithmetic_matches_builtin_complex(self):
        a = ComplexImpedance(3.0, -2.0)
        b = ComplexImpedance(-1.5, 4.0)
        ca, cb = complex(a), complex(b)

        assert complex(a + b) == ca + cb
        assert complex(a - b) == ca - cb
        assert complex(a * b) == ca * cb
        assert complex(a / b) == pytest.approx(ca / cb)
        assert complex(-a) == -ca

    def test_real_operands_promoted(self):
        a = ComplexImpedance(3.0, -2.0)
        assert 2 * a == ComplexImpedance(6.0, -4.0)
        assert a * 2.0 == ComplexImpedance(6.0, -4.0)
        assert 1 + a == ComplexImpedance(4.0, -2.0)
        assert 1 - a == ComplexImpedance(-2.0, 2.0)
        assert complex(1 / a) == pytest.approx(1 / complex(a))

    def test_division_by_zero(self):
        with pytest.raises(ZeroDivisionError):
            ComplexImpedance(1.0, 1.0) / ComplexImpedance(0.0, 0.0)

    def test_magnitude_and_phase(self):
        z = ComplexImpedance(0.0, 2.0)
        assert abs(z) == pytest.approx(2.0)
        assert z.phase_deg == pytest.approx(90.0)
        assert ComplexImpedance(-1.0, 0.0).phase_deg == pytest.approx(180.0)

    def test_from_complex(self):
        assert ComplexImpedance.from_complex(1 - 2j) == ComplexImpedance(1.0, -2.0)

    def test_is_finite(self):
        assert ComplexImpedance(1.0, 2.0).is_finite()
        assert not ComplexImpedance(math.inf, 0.0).is_finite()
        assert not ComplexImpedance(0.0, math.nan).is_finite()

    def test_str(self):
        assert str(ComplexImpedance(1.5, -2.0)) == "1.5 - 2j"
        assert str(ComplexImpedance(1.5, 2.0)) == "1.5 + 2j"


def test_to_complex():
    z = to_complex([10, 20, -30, -5])
    assert z == ComplexImpedance(real=25.0, imag=40.0)


def test_to_complex_accepts_measurement_vector():
    vector = MeasurementVector(components=[50, 0, -50, 0], bursts=1)
    assert to_complex(vector) == ComplexImpedance(0.0, 100.0)


def test_to_complex_wrong_length():
    with pytest.raises(ValueError):
        to_complex([1, 2, 3])


def test_closed_form():
    """Open circuit at zero, DUT response 100j."""
    rs, rref = 100000.0, 9500.0
    open_vector = [0, 0, 0, 0]
    dut_vector = [50, 0, -50, 0]

    z = compute(open_vector, dut_vector, rs, rref)

    expected = (rref * rs * 100j) / (rref + rs * (0 - 100j))
    assert complex(z) == pytest.approx(expected, rel=1e-12)


def test_general_formula():
    rs, rref = 100000.0, 9500.0
    open_vector = [120, 900, -118, -902]
    dut_vector = [-300, 450, 302, -448]
    v_open = complex(900 - -902, 120 - -118)
    v_dut = complex(450 - -448, -300 - 302)

    z = compute(
        MeasurementVector(components=open_vector, bursts=10),
        MeasurementVector(components=dut_vector, bursts=10),
        rs,
        rref,
    )

    expected = (rref * rs * v_dut) / (rref + rs * (v_open - v_dut))
    assert complex(z) == pytest.approx(expected, rel=1e-12)


def test_dut_equal_to_open():
    """Identical vectors leave only Rref in the denominator: Z = Rs * V_dut."""
    rs, rref = 100000.0, 9500.0
    vector = [10, 20, -10, -20]

    z = compute(vector, vector, rs, rref)

    assert complex(z) == pytest.approx(rs * complex(40, 20))
    assert abs(z) > 1e6


def test_vanishing_denominator():
    # 200 + 100 * (0 - 2) == 0
    with pytest.raises(IndeterminateImpedance):
        compute([0, 0, 0, 0], [0, 2, 0, 0], 100.0, 200.0)


def test_vanishing_denominator_is_arithmetic_error():
    with pytest.raises(ArithmeticError):
        compute([0, 0, 0, 0], [0, 2, 0, 0], 100.0, 200.0)


def test_nearly_vanishing_denominator_is_computed():
    # denominator 200.1 + 100 * (0 - 2) = 0.1, well above the tolerance
    z = compute([0, 0, 0, 0], [0, 2, 0, 0], 100.0, 200.1)
    assert z.is_finite()


@pytest.mark.parametrize("rs, rref", [(0.0, 9500.0), (100000.0, -1.0)])
def test_invalid_resistances(rs, rref):
    with pytest.raises(ValueError):
        compute([0, 0, 0, 0], [50, 0, -50, 0], rs, rref)
