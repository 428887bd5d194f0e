import logging
import numpy as np
from scipy.special import expit

from dosextpy._common import ParameterError, ConfigurationError, chunked_apply, quadrature_contract
from dosextpy._constants import SQRT_2, SQRT_PI, DCHARGE_FLOOR
from dosextpy.config import DOS_MODELS
from dosextpy.quadrature import GAUSS_HERMITE, GAUSS_LAGUERRE

logger = logging.getLogger(__name__)

# This module contains the constitutive relations between the electric
# potential and the total mobile charge in the semiconductor

############################ CHARGE MODELS ##########################

"""
The electron density for a density of states g(E) is
    n(phi) = int g(E) f(E - q phi) dE,    f(E) = 1 / (1 + exp(E / kT))
and is evaluated with a quadrature rule whose weight function matches the
shape of g. The total charge is rho = -q n and its derivative with respect
to the potential is returned in the form q^2 * dn_approx, where dn_approx is
the derivative of n with respect to the energy shift (hence negative).

The Fermi occupation uses the reference temperature of the PhysicalConstants
object, not the device temperature of the parameter set.
"""

class Charge:
    """
    Base class of the total charge models.

    Args:
        params (ParameterSet): DOS parameters
        rule (QuadratureRule): quadrature nodes and weights, shared read-only
        constants (PhysicalConstants): defaults to params.constants
        pool: None (default thread pool), 1 (serial) or a ThreadPool
    """
    kind = None
    rule_kind = None

    def __init__(self, params, rule, constants=None, pool=None):
        self.params = params
        self.rule = rule
        self.constants = params.constants if constants is None else constants
        self.pool = pool

        if self.rule_kind is not None and rule.kind != self.rule_kind:
            logger.warning(f"{self.kind} DOS integrated with a {rule.kind} rule, "
                           f"expected {self.rule_kind}")

    def charge(self, phi):
        """
        Total charge density [C m^-3] at each potential sample phi [V].
        """
        phi = np.asarray(phi, dtype=float)
        rho = np.zeros(phi.size)
        for n in self._densities(phi.ravel()):
            rho += -self.constants.q * n
        return rho.reshape(phi.shape)

    def dcharge(self, phi):
        """
        Derivative of the total charge density with respect to the
        potential [C V^-1 m^-3]. Samples above -exp(-20) are clamped
        to -exp(-20).
        """
        phi = np.asarray(phi, dtype=float)
        drho = np.zeros(phi.size)
        for dn in self._density_derivatives(phi.ravel()):
            drho += self.constants.q2 * dn
        drho = np.minimum(drho, DCHARGE_FLOOR)
        return drho.reshape(phi.shape)

    def _densities(self, phi):
        raise NotImplementedError

    def _density_derivatives(self, phi):
        raise NotImplementedError

    def _occupation(self, energy, phi):
        # fermi occupation, shape (samples, nodes); energy [J] per node, phi [V] per sample
        c = self.constants
        z = (energy[None, :] - c.q * phi[:, None]) / c.kb_t
        return expit(-z)

    def _reduce(self, energy, weights, phi):
        def func(chunk):
            return quadrature_contract(self._occupation(energy, chunk), weights)
        return chunked_apply(func, phi, pool=self.pool)


class GaussianCharge(Charge):
    """
    Density of states given by up to four gaussians
        g(E) = N0 / (sqrt(2 pi) sigma) exp(-E^2 / (2 sigma^2)),
    the k-th one centred at -q shift_k. Integrated with Gauss-Hermite nodes
    after the change of variable E = sqrt(2) sigma x.
    """
    kind = 'Gaussian'
    rule_kind = GAUSS_HERMITE

    def __init__(self, params, rule, constants=None, pool=None):
        super().__init__(params, rule, constants=constants, pool=pool)
        self.components = [c for c in params.gaussian_components() if c[0] > 0.0]
        for n0, sigma, shift in self.components:
            if not sigma > 0.0:
                raise ParameterError(f"gaussian with amplitude {n0} has zero width")

    def n_approx(self, phi, n0, sigma):
        """Electron density [m^-3] of a single gaussian."""
        energy = SQRT_2 * sigma * self.rule.nodes
        weights = self.rule.weights * n0 / SQRT_PI
        return self._reduce(energy, weights, np.asarray(phi, dtype=float))

    def dn_approx(self, phi, n0, sigma):
        """Derivative of the electron density with respect to the energy shift [m^-3 J^-1]."""
        nodes = self.rule.nodes
        energy = SQRT_2 * sigma * nodes
        weights = self.rule.weights * n0 * SQRT_2 / (sigma * SQRT_PI) * nodes
        return self._reduce(energy, weights, np.asarray(phi, dtype=float))

    def _densities(self, phi):
        return [self.n_approx(phi + shift, n0, sigma) for n0, sigma, shift in self.components]

    def _density_derivatives(self, phi):
        return [self.dn_approx(phi + shift, n0, sigma) for n0, sigma, shift in self.components]


class ExponentialCharge(Charge):
    """
    Density of states given by a single exponential tail below the band edge
        g(E) = N0_exp / lambda exp(E / lambda),    E <= 0.
    Integrated with Gauss-Laguerre nodes after the change of variable
    E = -lambda x.
    """
    kind = 'Exponential'
    rule_kind = GAUSS_LAGUERRE

    def __init__(self, params, rule, constants=None, pool=None):
        super().__init__(params, rule, constants=constants, pool=pool)
        self.n0 = params.n0_exp
        self.lam = params.lambda_exp
        self.active = self.n0 > 0.0
        if self.active and not self.lam > 0.0:
            raise ParameterError(f"exponential DOS with amplitude {self.n0} has zero decay energy")

    def n_approx(self, phi):
        energy = -self.lam * self.rule.nodes
        weights = self.rule.weights * self.n0
        return self._reduce(energy, weights, np.asarray(phi, dtype=float))

    def dn_approx(self, phi):
        c = self.constants
        energy = -self.lam * self.rule.nodes
        weights = self.rule.weights * self.n0 / c.kb_t

        def func(chunk):
            f = self._occupation(energy, chunk)
            return -quadrature_contract(f * (1.0 - f), weights)

        return chunked_apply(func, np.asarray(phi, dtype=float), pool=self.pool)

    def _densities(self, phi):
        return [self.n_approx(phi)] if self.active else []

    def _density_derivatives(self, phi):
        return [self.dn_approx(phi)] if self.active else []


CHARGE_MODELS = {
    'Gaussian': GaussianCharge,
    'Exponential': ExponentialCharge,
}


def charge_from_selector(selector, params, rule, constants=None, pool=None):
    """Build the charge model selected by the configuration value (1: Gaussian, 0: Exponential)."""
    try:
        kind = DOS_MODELS[selector]
    except (KeyError, TypeError):
        raise ConfigurationError(
            f"wrong DOS model selector {selector!r} (only {sorted(DOS_MODELS)} allowed)") from None
    logger.info(f"Initializing constitutive relation for the Density of States ({kind})")
    return CHARGE_MODELS[kind](params, rule, constants=constants, pool=pool)
