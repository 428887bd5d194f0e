import numpy as np
from scipy.sparse import coo_matrix, diags


############################ POISSON PROBLEM ##########################

"""
The nonlinear Poisson equation for the electric potential phi [V]
    -d/dx ( eps(x) d phi / dx ) = rho(phi) chi(x)
is discretized with piecewise-linear finite elements. eps is piecewise
constant (semiconductor / insulator), chi is 1 in the semiconductor and 0 in
the insulator and rho(phi) is the total charge density of the DOS model.
The mass matrix is lumped, so the nodal charge enters as M rho(phi_i).
"""

class Poisson1D:
    """Element matrices of the 1-D Poisson operator."""

    def __init__(self, eps_elem, chi_elem):
        self.eps_elem = np.asarray(eps_elem, dtype=float)
        self.chi_elem = np.asarray(chi_elem, dtype=float)

    def get_elmat(self, iel, h):
        eps = self.eps_elem[iel]
        chi = self.chi_elem[iel]

        # stiffness matrix (derivative of phi times dielectric constant)
        melm = eps / h * np.array([[1.0, -1.0], [-1.0, 1.0]])

        # lumped mass matrix restricted to the charged region
        belm = chi * h * 0.5 * np.ones(2)

        return melm, belm


class Bim1D:
    """
    Assembler of the global stiffness and (lumped) mass operators on a Mesh1D.
    """

    def __init__(self, mesh):
        self.mesh = mesh
        self.stiff = None
        self.mass = None

    def assemble_stiff(self, eps_elem):
        """Global stiffness matrix of -(eps phi')' in CSR format."""
        v = Poisson1D(eps_elem, np.zeros(self.mesh.nelem))
        self.stiff = self._assembly(v)[0]
        return self.stiff

    def assemble_mass(self, chi_elem):
        """Lumped mass matrix weighted by chi, returned as its diagonal."""
        v = Poisson1D(np.zeros(self.mesh.nelem), chi_elem)
        self.mass = self._assembly(v)[1]
        return self.mass

    def assemble(self, eps_elem, chi_elem):
        v = Poisson1D(eps_elem, chi_elem)
        self.stiff, self.mass = self._assembly(v)
        return self.stiff, self.mass

    def mass_matrix(self):
        return diags(self.mass, format='csr')

    def _assembly(self, v):
        mesh = self.mesh
        nn = mesh.ng_nodes
        nq = 4 * mesh.nelem
        row = np.empty(nq, dtype=int)
        col = np.empty(nq, dtype=int)
        data = np.empty(nq, dtype=float)
        mass = np.zeros(nn)

        j = 0
        for iel in range(mesh.nelem):
            kloce = mesh.conec[iel]
            melm, belm = v.get_elmat(iel, mesh.h[iel])
            row[j:j+4] = np.repeat(kloce, 2)
            col[j:j+4] = np.tile(kloce, 2)
            data[j:j+4] = melm.ravel()
            mass[kloce] += belm
            j += 4

        # duplicate entries are summed when converting to csr
        stiff = coo_matrix((data, (row, col)), shape=(nn, nn)).tocsr()
        stiff.eliminate_zeros()
        return stiff, mass
