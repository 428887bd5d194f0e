import logging
import os

from dosextpy._common import ConfigurationError
from dosextpy.alignment import align_curves
from dosextpy.config import SimulationSettings
from dosextpy.data_io import (read_experimental, write_cv_csv, write_fitting_csv, write_gnuplot_script,
                              gnuplot_commands, gnuplot_error_commands, cv_plot_title)
from dosextpy.interface.calibration import SigmaCalibration, TraceEntry
from dosextpy.interface.simulation import CVSimulation
from dosextpy.utilities import info_log, log_parameter_set, log_simulation_settings, log_fit_metrics
from dosextpy.visualization import plot_cv, plot_fitting

logger = logging.getLogger(__name__)


class DosModel:
    """
    DOS extraction run for one parameter set: C-V simulation compared with
    experimental data, or automatic fit of the gaussian width.

    Output files, for a prefix P:
        simulate: P_info.txt, P_CV.csv, <plot_subdir>/P_plot.gp, P_plot.png
        fit:      P_info.txt, P_fitting.csv, <plot_subdir>/P_fitting_plot.gp, P_fitting_plot.png,
                  plus the C-V files of every candidate with prefix P_<n>
    """

    def __init__(self, params, settings=None, constants=None, save_png=True,
                 simulation_class=CVSimulation):
        self.params = params
        self.simulation_class = simulation_class
        self.settings = SimulationSettings() if settings is None else settings
        self.constants = params.constants if constants is None else constants
        self.save_png = save_png

        self.result = None
        self.metrics = None
        self.calibration = None

    def simulate(self, input_experim, output_directory, output_plot_subdir, output_filename):
        """
        Simulate the C-V curve, align it to the experimental data and write the outputs.

        Returns:
            FitMetrics
        """
        self._check_output(output_directory, output_plot_subdir)
        info_path = os.path.join(output_directory, output_filename + "_info.txt")

        with info_log(info_path):
            log_parameter_set(self.params)
            log_simulation_settings(self.settings)
            v_exp, c_exp = read_experimental(input_experim, self.settings.skip_headers)
            self.result = self.simulation_class(self.params, self.settings, self.constants).run()
            self.metrics, curves = self._post_process(self.params, self.result, v_exp, c_exp,
                                                      output_directory, output_plot_subdir, output_filename)
        return self.metrics

    def fit(self, input_experim, output_directory, output_plot_subdir, output_filename):
        """
        Fit the gaussian width sigma against the experimental data.

        Returns:
            CalibrationResult
        """
        self._check_output(output_directory, output_plot_subdir)
        info_path = os.path.join(output_directory, output_filename + "_info.txt")
        fitting_name = output_filename + "_fitting.csv"

        # rows collected as the trials complete, so a failed trial keeps the earlier ones
        trace = []

        def on_trial(i, params, result, metrics, curves):
            trace.append(TraceEntry(params.sigma, metrics.error_l2, metrics.error_h1))
            name = f"{output_filename}_{i + 1}"
            self._write_cv_outputs(params, metrics, curves, output_directory, output_plot_subdir, name)

        with info_log(info_path):
            log_parameter_set(self.params)
            log_simulation_settings(self.settings)
            v_exp, c_exp = read_experimental(input_experim, self.settings.skip_headers)
            calibration = SigmaCalibration(self.params, v_exp, c_exp, settings=self.settings,
                                           constants=self.constants, simulation_class=self.simulation_class,
                                           on_trial=on_trial)
            try:
                self.calibration = calibration.run()
            finally:
                write_fitting_csv(os.path.join(output_directory, fitting_name), trace, self.constants.kb_t)

        write_gnuplot_script(
            os.path.join(output_directory, output_plot_subdir, output_filename + "_fitting_plot.gp"),
            gnuplot_error_commands(os.path.join("..", fitting_name)))
        if self.save_png:
            fig = plot_fitting(self.calibration, self.constants.kb_t)
            fig.savefig(os.path.join(output_directory, output_filename + "_fitting_plot.png"),
                        bbox_inches="tight")
        return self.calibration

    def _post_process(self, params, result, v_exp, c_exp, output_directory, output_plot_subdir, output_filename):
        metrics, curves = align_curves(v_exp, c_exp, result.voltages, result.c_tot,
                                       params.a_semic, params.c_sb)
        log_fit_metrics(metrics, result.center_of_charge())
        self._write_cv_outputs(params, metrics, curves, output_directory, output_plot_subdir, output_filename)
        return metrics, curves

    def _write_cv_outputs(self, params, metrics, curves, output_directory, output_plot_subdir, name):
        csv_name = name + "_CV.csv"
        write_cv_csv(os.path.join(output_directory, csv_name), curves)
        title = cv_plot_title(params, metrics.v_shift)
        write_gnuplot_script(os.path.join(output_directory, output_plot_subdir, name + "_plot.gp"),
                             gnuplot_commands(os.path.join("..", csv_name), title))
        if self.save_png:
            fig = plot_cv(curves, title=title.replace("\\n", "\n"))
            fig.savefig(os.path.join(output_directory, name + "_plot.png"), bbox_inches="tight")

    @staticmethod
    def _check_output(output_directory, output_plot_subdir):
        for path in (output_directory, os.path.join(output_directory, output_plot_subdir)):
            if not os.path.isdir(path):
                logger.error(f"Output directory '{path}' does not exist")
                raise ConfigurationError(f"output directory '{path}' does not exist")
