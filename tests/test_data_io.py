import numpy as np
import pytest

from dosextpy.alignment import AlignedCurves
from dosextpy.data_io import (CV_HEADER, FITTING_HEADER, cv_plot_title, gnuplot_commands,
                              gnuplot_error_commands, load_parameter_sets, read_experimental,
                              write_cv_csv, write_fitting_csv, write_gnuplot_script)
from dosextpy.interface.calibration import TraceEntry
from dosextpy._constants import DEFAULT_CONSTANTS
from dosextpy.parameters import PARAMETER_NAMES

from conftest import make_params, make_vector

KT = DEFAULT_CONSTANTS.kb_t


def curves(n_exp, n_sim):
    v_exp = np.linspace(-1.0, 1.0, n_exp)
    v_sim = np.linspace(-1.0, 1.0, n_sim)
    return AlignedCurves(v_exp, 2.0 * v_exp, np.full(n_exp, 2.0),
                         v_sim, 3.0 * v_sim, np.full(n_sim, 3.0))


def test_read_experimental(tmp_path):
    path = tmp_path / 'exp.csv'
    path.write_text("index, V, C\n1, -1.0, 1e-11\n2, 0.0, 2e-11\n3, 1.0, 3e-11\n")
    v, c = read_experimental(str(path))
    assert np.array_equal(v, [-1.0, 0.0, 1.0])
    assert np.allclose(c, [1e-11, 2e-11, 3e-11])


def test_read_experimental_without_header(tmp_path):
    path = tmp_path / 'exp.csv'
    path.write_text("1, 0.5, 1e-11\n2, -0.5, 2e-11\n")
    v, c = read_experimental(str(path), skip_headers=False)
    assert np.array_equal(v, [0.5, -0.5])


def test_read_experimental_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_experimental(str(tmp_path / 'missing.csv'))


def test_read_experimental_wrong_columns(tmp_path):
    path = tmp_path / 'exp.csv'
    path.write_text("V, C\n0.0, 1e-11\n1.0, 2e-11\n")
    with pytest.raises(ValueError):
        read_experimental(str(path))


def test_load_parameter_sets(tmp_path):
    rows = [make_vector(simulation_no=1), make_vector(simulation_no=2, sigma=2.0)]
    path = tmp_path / 'params.csv'
    lines = [", ".join(PARAMETER_NAMES)] + [", ".join(repr(float(x)) for x in row) for row in rows]
    path.write_text("\n".join(lines) + "\n")

    sets = load_parameter_sets(str(path))
    assert [p.simulation_no for p in sets] == [1, 2]
    assert sets[1].sigma == pytest.approx(2.0 * KT)


def test_write_cv_csv_same_length(tmp_path):
    path = tmp_path / 'cv.csv'
    write_cv_csv(str(path), curves(3, 3))
    lines = path.read_text().splitlines()
    assert lines[0] == CV_HEADER
    assert len(lines) == 4
    values = [float(x) for x in lines[1].split(',')]
    assert values == [-1.0, -2.0, 2.0, -1.0, -3.0, 3.0]
    assert lines[1].split(',')[0] == '-1.000000000000000e+00'


def test_write_cv_csv_pads_short_series(tmp_path):
    path = tmp_path / 'cv.csv'
    write_cv_csv(str(path), curves(2, 4))
    lines = path.read_text().splitlines()
    assert len(lines) == 5
    assert lines[3].startswith(',,, ')
    assert len(lines[3].split(',')) == 6

    write_cv_csv(str(path), curves(4, 2))
    lines = path.read_text().splitlines()
    assert len(lines) == 5
    assert lines[4].endswith(',,')
    assert len(lines[4].split(',')) == 6


def test_write_fitting_csv(tmp_path):
    path = tmp_path / 'fitting.csv'
    trace = [TraceEntry(0.5 * KT, 1e-12, 2e-12), TraceEntry(1.0 * KT, np.nan, np.nan)]
    write_fitting_csv(str(path), trace, KT)
    lines = path.read_text().splitlines()
    assert lines[0] == FITTING_HEADER
    sigma, l2, h1 = (float(x) for x in lines[1].split(','))
    assert sigma == pytest.approx(0.5)
    assert l2 == 1e-12
    assert h1 == 2e-12
    assert 'nan' in lines[2]


def test_gnuplot_scripts(tmp_path):
    params = make_params()
    title = cv_plot_title(params, 0.25)
    assert 'V_{shift}=2.5000e-01' in title

    path = tmp_path / 'plot.gp'
    write_gnuplot_script(str(path), gnuplot_commands('../run_CV.csv', title))
    text = path.read_text(encoding='utf-8')
    assert text.rstrip().endswith('pause mouse;')
    assert 'using 1:3' in text and 'using 4:6' in text
    assert '"../run_CV.csv"' in text

    commands = gnuplot_error_commands('../run_fitting.csv')
    assert 'error_L2_min' in commands and 'error_H1_min' in commands
