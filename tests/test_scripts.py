import os
import shutil
import subprocess
import sys

from dosextpy.parameters import PARAMETER_NAMES

from conftest import make_vector

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SCRIPT_DIR = os.path.join(ROOT, 'scripts', 'dos_extraction')


def write_parameters(path, rows):
    lines = [", ".join(PARAMETER_NAMES)] + [", ".join(repr(float(x)) for x in row) for row in rows]
    path.write_text("\n".join(lines) + "\n")


def test_failed_rows_are_counted_and_the_run_completes(tmp_path):
    shutil.copy(os.path.join(SCRIPT_DIR, 'main.py'), tmp_path)
    shutil.copy(os.path.join(SCRIPT_DIR, 'indata.py'), tmp_path)
    with open(tmp_path / 'indata.py', 'a', encoding='utf-8') as f:
        f.write("\ngenerate_png_graphs = False\nmax_iterations = 1\ntolerance = 1.0e-12\nthreads = 1\n")

    write_parameters(tmp_path / 'parameters.csv',
                     [make_vector(simulation_no=1, n_nodes=20, n_steps=3),
                      make_vector(simulation_no=2, n_nodes=20, n_steps=3)])
    (tmp_path / 'experimental.csv').write_text("index, V, C\n1, -1.0, 1e-11\n2, 0.0, 2e-11\n3, 1.0, 3e-11\n")

    env = dict(os.environ)
    env['PYTHONPATH'] = ROOT + os.pathsep + env.get('PYTHONPATH', '')
    proc = subprocess.run([sys.executable, 'main.py'], cwd=tmp_path, env=env,
                          capture_output=True, text=True, timeout=300)

    assert proc.returncode == 0, proc.stderr
    log = (tmp_path / 'outdata' / 'logfile.log').read_text(encoding='utf-8')
    assert 'Simulation No. 1 failed' in log
    assert 'Simulation No. 2 failed' in log
    assert '2 simulation(s) failed' in log
