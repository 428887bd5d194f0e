import logging
import numpy as np
from scipy.sparse import diags
from scipy.sparse.linalg import spsolve

from dosextpy._common import ConvergenceError

logger = logging.getLogger(__name__)

#########################################################################

########################### SOLVERS #####################################

#################### NONLINEAR POISSON (NEWTON) #############

class NonLinearPoisson1D:
    """
    Damped Newton solver for A phi - M rho(phi) = 0 on an assembled Bim1D.

    Dirichlet conditions are imposed at the back contact (node 0) and at the
    gate (last node) with the end values of the initial guess. Each Newton
    update is halved until the residual norm does not grow, up to
    max_halvings times. The iteration stops when the infinity norm of the
    full Newton update drops below the tolerance.

    Args:
        assembler (Bim1D): assembled stiffness and lumped mass operators
        max_iterations (int): Newton iteration budget
        tolerance (float): threshold on the potential update [V]
        max_halvings (int): maximum number of step halvings per iteration
    """

    def __init__(self, assembler, max_iterations=100, tolerance=1.0e-4, max_halvings=30):
        if assembler.stiff is None or assembler.mass is None:
            raise ValueError("stiffness and mass operators must be assembled first")
        self.assembler = assembler
        self.max_iterations = max_iterations
        self.tolerance = tolerance
        self.max_halvings = max_halvings

        self.phi = None
        self.c_tot = None
        self.iterations = 0

        # nodes where the lumped mass is not zero carry charge
        self._charged = assembler.mass > 0.0

    def _rho(self, phi, charge):
        rho = np.zeros_like(phi)
        rho[self._charged] = charge.charge(phi[self._charged])
        return rho

    def _drho(self, phi, charge):
        drho = np.zeros_like(phi)
        drho[self._charged] = charge.dcharge(phi[self._charged])
        return drho

    def residual(self, phi, charge):
        A = self.assembler.stiff
        M = self.assembler.mass
        return A @ phi - M * self._rho(phi, charge)

    def jacobian(self, phi, charge):
        A = self.assembler.stiff
        M = self.assembler.mass
        return (A - diags(M * self._drho(phi, charge))).tocsr()

    def apply(self, phi_init, charge):
        """
        Solve the nonlinear Poisson equation starting from phi_init.

        Returns:
            array: converged potential (also stored in self.phi)

        Raises:
            ConvergenceError: tolerance not met within max_iterations
        """
        phi = np.array(phi_init, dtype=float)
        inner = np.s_[1:-1]

        r = self.residual(phi, charge)
        norm_delta = np.inf
        for it in range(1, self.max_iterations + 1):
            J = self.jacobian(phi, charge)
            delta = np.zeros_like(phi)
            delta[inner] = spsolve(J[inner, inner].tocsc(), -r[inner])
            norm_delta = np.abs(delta).max()

            if norm_delta < self.tolerance:
                phi += delta
                self.iterations = it
                break

            # backtracking on the residual norm
            r_norm = np.linalg.norm(r[inner])
            lam = 1.0
            for _ in range(self.max_halvings):
                trial = phi + lam * delta
                r_trial = self.residual(trial, charge)
                if np.linalg.norm(r_trial[inner]) <= r_norm:
                    break
                lam *= 0.5
            phi = trial
            r = r_trial
        else:
            self.iterations = self.max_iterations
            raise ConvergenceError(
                f"Newton solver did not converge in {self.max_iterations} iterations "
                f"(last update norm {norm_delta:.3e} V, tolerance {self.tolerance:.3e} V)",
                iterations=self.max_iterations, update_norm=norm_delta)

        self.phi = phi
        self.c_tot = self.total_capacitance(phi, charge)
        return phi

    def total_capacitance(self, phi, charge):
        """
        Small-signal capacitance per unit area [F m^-2] at the potential phi.

        The linearized problem J u = 0 is solved with u = 0 at the back contact
        and u = 1 at the gate; the capacitance is the derivative of the gate
        charge, i.e. the gate row of A u.
        """
        A = self.assembler.stiff
        J = self.jacobian(phi, charge)
        inner = np.s_[1:-1]

        u = np.zeros_like(phi)
        u[-1] = 1.0
        rhs = -(J[inner, :] @ u)
        u[inner] = spsolve(J[inner, inner].tocsc(), rhs)
        return float((A @ u)[-1])


def solve(assembler, initial_potential, charge, max_iterations=100, tolerance=1.0e-4):
    """
    Converge the potential of one bias point.

    Returns:
        tuple: (converged potential, total capacitance per unit area)
    """
    nlp = NonLinearPoisson1D(assembler, max_iterations=max_iterations, tolerance=tolerance)
    phi = nlp.apply(initial_potential, charge)
    return phi, nlp.c_tot
