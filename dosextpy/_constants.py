"""
Physical constants used by the charge models and the simulation driver.

The constants are grouped in a read-only PhysicalConstants object which is
built once and handed explicitly to every computation that needs it. Tests
can therefore run the same code with alternate constants.

All quantities are in SI units.
"""

import math


class PhysicalConstants:
    """
    Read-only container of the numerical constants of the simulation.

    Args:
        q (float): elementary charge [C]
        k_b (float): Boltzmann constant [J/K]
        eps0 (float): vacuum permittivity [F/m]
        temperature (float): reference temperature [K]
    """

    __slots__ = ('_q', '_k_b', '_eps0', '_temperature')

    def __init__(self, q=1.60217653e-19, k_b=1.3806505e-23, eps0=8.854187817e-12, temperature=300.0):
        if q <= 0 or k_b <= 0 or eps0 <= 0 or temperature <= 0:
            raise ValueError("physical constants must be positive")
        object.__setattr__(self, '_q', float(q))
        object.__setattr__(self, '_k_b', float(k_b))
        object.__setattr__(self, '_eps0', float(eps0))
        object.__setattr__(self, '_temperature', float(temperature))

    def __setattr__(self, name, value):
        raise AttributeError("PhysicalConstants is read-only")

    @property
    def q(self):
        return self._q

    @property
    def q2(self):
        # electron charge squared [C^2]
        return self._q * self._q

    @property
    def k_b(self):
        return self._k_b

    @property
    def eps0(self):
        return self._eps0

    @property
    def temperature(self):
        return self._temperature

    @property
    def kb_t(self):
        # thermal energy at the reference temperature [J]
        return self._k_b * self._temperature

    @property
    def v_th(self):
        # thermal voltage [V]
        return self.kb_t / self._q

    def __repr__(self):
        return (f"PhysicalConstants(q={self._q!r}, k_b={self._k_b!r}, "
                f"eps0={self._eps0!r}, temperature={self._temperature!r})")


DEFAULT_CONSTANTS = PhysicalConstants()

SQRT_PI = math.sqrt(math.pi)
SQRT_2 = math.sqrt(2.0)

# floor applied to the charge derivative, keeps the Newton jacobian definite
DCHARGE_FLOOR = -math.exp(-20.0)
