import logging
import numpy as np

from dosextpy.config import DLM

logger = logging.getLogger(__name__)


class Mesh1D:
    """
    Non-uniform 1-D mesh of a metal-insulator-semiconductor stack.

    The semiconductor occupies [-t_semic, 0] with floor(semic_fraction * n_nodes)
    equispaced nodes, the insulator (0, t_ins] with the remaining nodes. The
    interface node x = 0 belongs to the semiconductor list and is not duplicated.
    Node 0 is the back contact, the last node is the gate.
    """

    def __init__(self, t_semic, t_ins, n_nodes, semic_fraction=0.6):
        self.t_semic = t_semic
        self.t_ins = t_ins
        self.ng_nodes = int(n_nodes)

        self.n_semic = int(np.floor(semic_fraction * self.ng_nodes))
        self.n_ins = self.ng_nodes - self.n_semic
        if self.n_semic < 2 or self.n_ins < 1:
            raise ValueError(f"cannot split {self.ng_nodes} nodes into {self.n_semic} "
                             f"semiconductor and {self.n_ins} insulator nodes")

        x_semic = np.linspace(-t_semic, 0.0, self.n_semic)
        x_ins = np.linspace(0.0, t_ins, self.n_ins + 1)
        self.x = np.concatenate([x_semic, x_ins[1:]])

        # element sizes and midpoints
        self.h = np.diff(self.x)
        self.midpoints = 0.5 * (self.x[1:] + self.x[:-1])
        self.nelem = self.h.shape[0]

        # connectivity table, one row per element
        self.conec = np.column_stack([np.arange(self.nelem), np.arange(1, self.nelem + 1)])

    @property
    def x_semic(self):
        return self.x[:self.n_semic]

    @property
    def semic_slice(self):
        return np.s_[:self.n_semic]

    def region_indicator(self):
        """1 on semiconductor elements (midpoint < 0), 0 on insulator elements."""
        return (self.midpoints < 0.0).astype(float)

    def log_summary(self):
        logger.info("")
        logger.info("Mesh")
        logger.info(f"{DLM}Total nodes         : {self.ng_nodes}")
        logger.info(f"{DLM}Semiconductor nodes : {self.n_semic}")
        logger.info(f"{DLM}Insulator nodes     : {self.n_ins}")
        logger.info(f"{DLM}Extent [m]          : [{self.x[0]:.4e}, {self.x[-1]:.4e}]")


def build_mesh(t_semic, t_ins, n_nodes, semic_fraction=0.6):
    return Mesh1D(t_semic, t_ins, n_nodes, semic_fraction=semic_fraction)
