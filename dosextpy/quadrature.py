"""
Gaussian quadrature rules used to integrate Fermi-weighted densities of states.

Two rules are available:
    GAUSS_HERMITE: int_{-inf}^{+inf} exp(-x^2) f(x) dx ~ sum_i w_i f(x_i)
    GAUSS_LAGUERRE: int_{0}^{+inf} exp(-x) f(x) dx ~ sum_i w_i f(x_i)
"""

import logging
import numpy as np
from scipy.special import roots_hermite, roots_laguerre

from dosextpy._common import ConfigurationError
from dosextpy.config import QUADRATURE_RULES

logger = logging.getLogger(__name__)

GAUSS_HERMITE = 'GaussHermite'
GAUSS_LAGUERRE = 'GaussLaguerre'

_ROOTS = {
    GAUSS_HERMITE: roots_hermite,
    GAUSS_LAGUERRE: roots_laguerre,
}


class QuadratureRule:
    """
    Nodes and weights of a quadrature rule.

    The arrays are flagged read-only: a rule is shared between the
    simulation driver and the charge model for the whole simulation.
    """

    def __init__(self, kind, nodes, weights):
        nodes = np.array(nodes, dtype=float)
        weights = np.array(weights, dtype=float)
        if nodes.shape != weights.shape or nodes.ndim != 1:
            raise ValueError("nodes and weights must be 1-D arrays of equal length")
        nodes.flags.writeable = False
        weights.flags.writeable = False
        self.kind = kind
        self.nodes = nodes
        self.weights = weights

    @property
    def n_nodes(self):
        return self.nodes.shape[0]

    def integrate(self, f):
        """Apply the rule to a vectorized function of the nodes."""
        return float(np.dot(self.weights, f(self.nodes)))

    def __repr__(self):
        return f"QuadratureRule(kind={self.kind!r}, n_nodes={self.n_nodes})"


def build_rule(kind, n_nodes):
    """
    Compute nodes and weights of the requested rule.

    Args:
        kind (str): GAUSS_HERMITE or GAUSS_LAGUERRE
        n_nodes (int): number of nodes

    Returns:
        QuadratureRule
    """
    if kind not in _ROOTS:
        raise ConfigurationError(f"unknown quadrature rule '{kind}', choose one of {list(_ROOTS)}")
    if not (isinstance(n_nodes, (int, np.integer)) and n_nodes > 0):
        raise ConfigurationError(f"number of quadrature nodes must be a positive integer, got {n_nodes}")
    nodes, weights = _ROOTS[kind](int(n_nodes))
    return QuadratureRule(kind, nodes, weights)


def rule_from_selector(selector, n_nodes):
    """Build the rule selected by the configuration value (1: Gauss-Hermite, 0: Gauss-Laguerre)."""
    try:
        kind = QUADRATURE_RULES[selector]
    except (KeyError, TypeError):
        raise ConfigurationError(
            f"wrong quadrature rule selector {selector!r} (only {sorted(QUADRATURE_RULES)} allowed)") from None
    logger.info(f"Computing nodes and weights of quadrature ({kind} rule) using {n_nodes} nodes")
    return build_rule(kind, n_nodes)
