import numpy as np
from matplotlib import figure
import matplotlib.gridspec as gridspec
from matplotlib.ticker import MaxNLocator


def plot_cv(curves, title=None, figsize=(8.91, 6.14)):
    """
    Experimental against shifted simulated curves: dC/dV on top, C below.

    Returns:
        matplotlib.figure.Figure
    """
    fig = figure.Figure(figsize=figsize)
    gs = gridspec.GridSpec(2, 1, figure=fig, hspace=0.35)

    ax = fig.add_subplot(gs[0, 0])
    ax.plot(curves.v_exp, curves.dcdv_exp, lw=2, label='Experimental')
    ax.plot(curves.v_sim, curves.dcdv_sim, lw=2, label='Simulated')
    ax.set_ylabel('dC/dV [F/V]')
    ax.legend(loc='center right')

    ax = fig.add_subplot(gs[1, 0])
    ax.plot(curves.v_exp, curves.c_exp, lw=2, label='Experimental')
    ax.plot(curves.v_sim, curves.c_sim, lw=2, label='Simulated')
    ax.set_xlabel(r'$V_{gate} - V_{shift}$ [V]')
    ax.set_ylabel('C [F]')
    ax.legend(loc='center right')

    for ax in fig.axes:
        ax.set_xlim(curves.v_exp.min(), curves.v_exp.max())
        ax.ticklabel_format(axis='y', style='sci', scilimits=(0, 0))

    if title is not None:
        fig.suptitle(title, fontsize=8)
    return fig


def plot_fitting(calibration, kb_t, figsize=(8.91, 6.14)):
    """
    L2 and H1 errors against the candidate width (in kT), minima marked.

    Returns:
        matplotlib.figure.Figure
    """
    sigma = calibration.sigmas / kb_t
    errors = (('L2-error', calibration.errors_l2), ('H1-error', calibration.errors_h1))

    fig = figure.Figure(figsize=figsize)
    gs = gridspec.GridSpec(2, 1, figure=fig, hspace=0.35)
    fig.suptitle('Errors between experimental and simulated capacitance values', fontsize=10)

    for k, (label, err) in enumerate(errors):
        ax = fig.add_subplot(gs[k, 0])
        ax.plot(sigma, err, lw=2, label=label)
        if np.any(np.isfinite(err)):
            ax.axhline(np.nanmin(err), color='black', ls='--', lw=1, label='Minimum')
        ax.set_ylabel(label)
        ax.legend(loc='center right')
        ax.xaxis.set_major_locator(MaxNLocator(nbins=8))
    ax.set_xlabel(r'$\sigma$ [$k_B$ 300K]')
    return fig
