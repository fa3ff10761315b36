"""Impedance calculator: quadrature vectors to a calibrated complex impedance.

The DUT is one leg of a resistive divider against a known reference. With the
short-circuit response idealized to zero:

    Z = (Rref * Rseries * (V_dut - V_short)) / (Rref + Rseries * (V_open - V_dut))

where V_open and V_dut are the complex forms (`to_complex`) of the
open-circuit and DUT measurement vectors.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Real

from loguru import logger

from zlockin.types.errors import IndeterminateImpedance

DEGENERATE_TOLERANCE = 1e-9  # relative to the reference resistance


@dataclass(frozen=True)
class ComplexImpedance:
    """Complex value with explicit arithmetic, in ohms for results.

    Real numbers on either side of an operator are promoted explicitly to
    ``ComplexImpedance(x, 0)``.
    """

    real: float
    imag: float

    @classmethod
    def from_complex(cls, z: complex) -> ComplexImpedance:
        return cls(real=float(z.real), imag=float(z.imag))

    @staticmethod
    def _coerce(other) -> ComplexImpedance:
        if isinstance(other, ComplexImpedance):
            return other
        if isinstance(other, Real):
            return ComplexImpedance(float(other), 0.0)
        return NotImplemented

    def __add__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return other
        return ComplexImpedance(self.real + other.real, self.imag + other.imag)

    __radd__ = __add__

    def __sub__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return other
        return ComplexImpedance(self.real - other.real, self.imag - other.imag)

    def __rsub__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return other
        return other - self

    def __mul__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return other
        return ComplexImpedance(
            self.real * other.real - self.imag * other.imag,
            self.real * other.imag + self.imag * other.real,
        )

    __rmul__ = __mul__

    def __truediv__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return other
        den = other.real**2 + other.imag**2
        if den == 0:
            raise ZeroDivisionError("complex division by zero")
        return ComplexImpedance(
            (self.real * other.real + self.imag * other.imag) / den,
            (self.imag * other.real - self.real * other.imag) / den,
        )

    def __rtruediv__(self, other):
        other = self._coerce(other)
        if other is NotImplemented:
            return other
        return other / self

    def __neg__(self):
        return ComplexImpedance(-self.real, -self.imag)

    def __abs__(self) -> float:
        return math.hypot(self.real, self.imag)

    def __complex__(self) -> complex:
        return complex(self.real, self.imag)

    @property
    def phase_deg(self) -> float:
        return math.degrees(math.atan2(self.imag, self.real))

    def is_finite(self) -> bool:
        return math.isfinite(self.real) and math.isfinite(self.imag)

    def __str__(self):
        sign = "-" if self.imag < 0 else "+"
        return f"{self.real:.6g} {sign} {abs(self.imag):.6g}j"


def _components(vector):
    components = getattr(vector, "components", vector)
    if len(components) != 4:
        raise ValueError(f"Expected 4 quadrature components, got {len(components)}")
    return components


def to_complex(vector) -> ComplexImpedance:
    """Complex form of a quadrature vector.

    real = c[1] - c[3] (in-phase pair), imag = c[0] - c[2] (quadrature pair)

    Parameters
    ----------
    vector : MeasurementVector or sequence of 4 numbers
    """
    c = _components(vector)
    return ComplexImpedance(
        real=float(c[1]) - float(c[3]),
        imag=float(c[0]) - float(c[2]),
    )


def compute(
    open_vector,
    dut_vector,
    series_resistance: float,
    reference_resistance: float,
    tolerance: float = DEGENERATE_TOLERANCE,
) -> ComplexImpedance:
    """Combine an open-circuit and a DUT measurement into the DUT impedance.

    Parameters
    ----------
    open_vector : MeasurementVector or sequence of 4 numbers
        Response with the DUT terminals open
    dut_vector : MeasurementVector or sequence of 4 numbers
        Response with the DUT connected
    series_resistance : float
        Series resistance of the divider in ohms
    reference_resistance : float
        Reference resistance of the divider in ohms
    tolerance : float
        Denominator magnitudes at or below ``tolerance * reference_resistance``
        are treated as zero

    Returns
    -------
    ComplexImpedance
        DUT impedance in ohms

    Raises
    ------
    IndeterminateImpedance
        If the denominator vanishes or the result is not finite
    """
    if series_resistance <= 0 or reference_resistance <= 0:
        raise ValueError("Divider resistances must be positive")

    v_open = to_complex(open_vector)
    v_dut = to_complex(dut_vector)
    v_short = ComplexImpedance(0.0, 0.0)

    numerator = reference_resistance * series_resistance * (v_dut - v_short)
    denominator = reference_resistance + series_resistance * (v_open - v_dut)

    if abs(denominator) <= tolerance * reference_resistance:
        logger.error(
            "Indeterminate impedance: denominator {} vanishes (V_open={}, V_dut={})",
            denominator,
            v_open,
            v_dut,
        )
        raise IndeterminateImpedance(
            f"Divider denominator vanishes for V_open={v_open}, V_dut={v_dut}"
        )

    z = numerator / denominator
    if not z.is_finite():
        logger.error("Indeterminate impedance: non-finite result {}", z)
        raise IndeterminateImpedance(f"Non-finite impedance {z}")

    logger.debug("Impedance {} ohm (|Z|={:.6g}, {:.2f} deg)", z, abs(z), z.phase_deg)
    return z
