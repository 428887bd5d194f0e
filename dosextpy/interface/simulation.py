import logging
import time
import numpy as np
from multiprocessing.pool import ThreadPool

from dosextpy import _common
from dosextpy._common import ConvergenceError
from dosextpy.config import DLM, SimulationSettings
from dosextpy.fem.mesh import build_mesh
from dosextpy.fem.problem import Bim1D
from dosextpy.fem.solver import NonLinearPoisson1D
from dosextpy.physics import charge_from_selector
from dosextpy.quadrature import rule_from_selector

logger = logging.getLogger(__name__)


class SimulationResult:
    """
    Output of one bias sweep.

    Attributes:
        voltages (array): gate voltages [V], shape (n_steps,)
        potential (array): converged potential [V], shape (n_nodes, n_steps)
        density (array): electron density in the semiconductor [m^-3], shape (n_semic, n_steps)
        c_tot (array): total capacitance per unit area [F m^-2], shape (n_steps,)
        charge_n (array): charge per unit area in the semiconductor [C m^-2], shape (n_steps,)
        iterations (array): Newton iterations per step
        mesh (Mesh1D): the mesh
    """

    def __init__(self, voltages, potential, density, c_tot, charge_n, iterations, mesh):
        self.voltages = voltages
        self.potential = potential
        self.density = density
        self.c_tot = c_tot
        self.charge_n = charge_n
        self.iterations = iterations
        self.mesh = mesh

    def capacitance(self, a_semic, c_sb):
        """Physical capacitance [F]: c_tot scaled by the device area plus stray capacitance."""
        return self.c_tot * a_semic + c_sb

    def center_of_charge(self, step=-1):
        """Centroid [m] of the electron density at a bias step, 0 when there is no charge."""
        x = self.mesh.x_semic
        dens = self.density[:, step]
        total = _common.trapz(dens)
        if total == 0.0:
            return 0.0
        return _common.trapz(x * dens) / total


class CVSimulation:
    """
    Quasi-static C-V sweep of a MIS device for a fixed parameter set.

    The mesh and the operators are built once, then the nonlinear Poisson
    equation is solved at every gate voltage, from V_min to V_max. The
    converged potential of one step, plus a linear ramp spanning the
    voltage increment, is the initial guess of the next one. Steps are
    therefore strictly sequential.

    Args:
        params (ParameterSet): device and sweep parameters
        settings (SimulationSettings): numerical options
        constants (PhysicalConstants): defaults to params.constants
    """

    def __init__(self, params, settings=None, constants=None):
        self.params = params
        self.settings = SimulationSettings() if settings is None else settings
        self.constants = params.constants if constants is None else constants

        self.mesh = None
        self.assembler = None
        self.rule = None

    def build(self):
        """Mesh, permittivity and charged-region indicator, stiffness and mass operators."""
        p = self.params
        self.mesh = build_mesh(p.t_semic, p.t_ins, p.n_nodes, semic_fraction=self.settings.semic_fraction)
        self.mesh.log_summary()

        # permittivity field, two valued
        eps = np.where(self.mesh.midpoints > 0.0, p.eps_ins, p.eps_semic)
        chi = self.mesh.region_indicator()

        logger.info("Assembling system matrices")
        self.assembler = Bim1D(self.mesh)
        self.assembler.assemble(eps, chi)

        self.rule = rule_from_selector(self.settings.quadrature_rule, self.settings.quadrature_nodes)

    def voltages(self):
        p = self.params
        return np.linspace(p.v_min, p.v_max, p.n_steps)

    def initial_guess(self, v, phi_prev=None, v_prev=None):
        """
        Initial potential of a bias step.

        First step: linear profile from -phi_fb at the back contact to
        -phi_fb + V at the gate. Following steps: previous solution plus a
        linear ramp from 0 to the voltage increment.
        """
        n = self.mesh.ng_nodes
        if phi_prev is None:
            phi_fb = self.params.flat_band_potential
            return -np.linspace(phi_fb, phi_fb - v, n)
        return phi_prev + np.linspace(0.0, v - v_prev, n)

    def run(self):
        """
        Run the sweep.

        Returns:
            SimulationResult

        Raises:
            ConvergenceError: the solver failed at one of the bias steps
        """
        t_start = time.perf_counter()
        p = self.params
        s = self.settings

        logger.info("")
        logger.info(f"Simulation No. {p.simulation_no} started")

        if self.mesh is None:
            self.build()

        threads = s.threads
        if threads == 1:
            return self._sweep(pool=1, t_start=t_start)
        with ThreadPool(threads) as pool:
            return self._sweep(pool=pool, t_start=t_start)

    def _sweep(self, pool, t_start):
        p = self.params
        s = self.settings
        q = self.constants.q
        mesh = self.mesh

        charge_fun = charge_from_selector(s.dos_model, p, self.rule, constants=self.constants, pool=pool)

        V = self.voltages()
        nsteps = V.shape[0]
        semic = mesh.semic_slice

        Phi = np.zeros((mesh.ng_nodes, nsteps))
        Dens = np.zeros((mesh.n_semic, nsteps))
        c_tot = np.zeros(nsteps)
        charge_n = np.zeros(nsteps)
        iterations = np.zeros(nsteps, dtype=int)

        logger.info("Running Newton solver for non-linear Poisson equation")
        logger.info(f"{DLM}Max No. of iterations set : {s.max_iterations}")
        logger.info(f"{DLM}Tolerance set             : {s.tolerance}")

        for i in range(nsteps):
            if i == 0 or (i + 1) % 10 == 0 or i == nsteps - 1:
                logger.info(f"{DLM}iteration: {i + 1}/{nsteps}")

            if i == 0:
                phi_old = self.initial_guess(V[i])
            else:
                phi_old = self.initial_guess(V[i], Phi[:, i - 1], V[i - 1])

            nlp = NonLinearPoisson1D(self.assembler, max_iterations=s.max_iterations, tolerance=s.tolerance)
            try:
                nlp.apply(phi_old, charge_fun)
            except ConvergenceError as e:
                e.voltage = V[i]
                logger.error(f"Bias step {i + 1}/{nsteps} (V = {V[i]:.4f} V): {e}")
                raise

            Phi[:, i] = nlp.phi
            charge = charge_fun.charge(nlp.phi[semic])
            Dens[:, i] = -charge / q
            c_tot[i] = nlp.c_tot
            iterations[i] = nlp.iterations
            charge_n[i] = _common.trapz(charge, mesh.x_semic)

        logger.info(f"Simulation took {time.perf_counter() - t_start:.2f} seconds")

        return SimulationResult(V, Phi, Dens, c_tot, charge_n, iterations, mesh)
