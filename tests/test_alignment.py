import logging

import numpy as np
import pytest

from dosextpy.alignment import align_curves, derivative, error_l2, interpolate, sort_experimental


def sigmoid_curve(v, v0=0.0, c_low=1e-11, c_high=5e-11, width=0.3):
    return c_low + (c_high - c_low) / (1.0 + np.exp(-(v - v0) / width))


def test_stable_sort_keeps_tie_order():
    v = np.array([0.5, -1.0, 0.5, 0.0])
    c = np.array([1.0, 2.0, 3.0, 4.0])
    vs, cs = sort_experimental(v, c)
    assert np.array_equal(vs, [-1.0, 0.0, 0.5, 0.5])
    assert np.array_equal(cs, [2.0, 4.0, 1.0, 3.0])


def test_sort_rejects_mismatched_columns():
    with pytest.raises(ValueError):
        sort_experimental([0.0, 1.0], [1.0])


def test_derivative_non_uniform_grid():
    x = np.array([0.0, 0.1, 0.3, 0.6, 1.0])
    assert np.allclose(derivative(3.0 * x + 1.0, x), 3.0)
    with pytest.raises(ValueError):
        derivative([1.0], [0.0])


def test_interpolation_round_trip():
    v = np.linspace(-2.0, 2.0, 37)
    c = sigmoid_curve(v)
    assert np.allclose(interpolate(v, c, v), c, rtol=0.0, atol=0.0)


def test_error_l2_is_squared_distance():
    x = np.linspace(0.0, 2.0, 11)
    assert error_l2(np.ones_like(x), np.zeros_like(x), x) == pytest.approx(2.0)
    assert error_l2(x, x, x) == 0.0


def test_identical_curves_have_zero_error():
    v = np.linspace(-2.0, 2.0, 81)
    area, c_sb = 1e-6, 1e-12
    c_tot = (sigmoid_curve(v) - c_sb) / area
    metrics, curves = align_curves(v, sigmoid_curve(v), v, c_tot, area, c_sb)
    assert metrics.v_shift == pytest.approx(0.0)
    assert metrics.error_l2 == pytest.approx(0.0, abs=1e-20)
    assert metrics.error_h1 == pytest.approx(0.0, abs=1e-20)
    assert np.allclose(curves.c_sim, sigmoid_curve(v))


def test_shift_detection_and_anchors():
    v_exp = np.linspace(-2.0, 2.0, 81)
    c_exp = sigmoid_curve(v_exp)
    v_sim = np.linspace(-1.5, 2.5, 81)
    c_tot = sigmoid_curve(v_sim, v0=0.5)
    metrics, curves = align_curves(v_exp, c_exp, v_sim, c_tot, 1.0, 0.0)

    assert metrics.v_shift == pytest.approx(0.5)
    assert np.allclose(curves.v_sim, v_sim - 0.5)
    assert metrics.error_l2 == pytest.approx(0.0, abs=1e-15)
    assert metrics.c_acc_experim == c_exp[-1]
    assert metrics.c_dep_experim == c_exp[0]
    assert metrics.c_acc_simulated == pytest.approx(c_tot[-1])
    assert metrics.c_acc_star == pytest.approx(c_tot.max())


def test_unsorted_experimental_input():
    v = np.linspace(-2.0, 2.0, 41)
    c = sigmoid_curve(v)
    order = np.random.default_rng(0).permutation(v.size)
    m_sorted, _ = align_curves(v, c, v, c * 1.01, 1.0, 0.0)
    m_shuffled, _ = align_curves(v[order], c[order], v, c * 1.01, 1.0, 0.0)
    assert m_shuffled.error_l2 == pytest.approx(m_sorted.error_l2)
    assert m_shuffled.c_dep_experim == c[0]


def test_alignment_is_shift_invariant():
    v_exp = np.linspace(-1.95, 1.95, 61)
    c_exp = sigmoid_curve(v_exp, width=0.35)
    v_sim = np.linspace(-2.0, 2.0, 41)
    c_tot = sigmoid_curve(v_sim, v0=0.1, c_high=4.8e-11, width=0.3)

    m0, _ = align_curves(v_exp, c_exp, v_sim, c_tot, 1.0, 0.0)
    delta = 0.25
    m1, _ = align_curves(v_exp, c_exp, v_sim + delta, c_tot, 1.0, 0.0)

    assert m1.v_shift == pytest.approx(m0.v_shift + delta)
    assert m1.error_l2 == pytest.approx(m0.error_l2, rel=1e-9)
    assert m1.error_h1 == pytest.approx(m0.error_h1, rel=1e-9)
    assert m0.error_l2 > 0.0
    assert m0.error_h1 > m0.error_l2


def test_no_overlap_gives_nan(caplog):
    v_exp = np.linspace(0.0, 0.1, 3)
    c_exp = np.array([1.0, 2.0, 2.5])
    v_sim = np.linspace(-10.0, 10.0, 3)
    c_tot = np.array([1.0, 5.0, 5.5])
    with caplog.at_level(logging.WARNING, logger='dosextpy.alignment'):
        metrics, _ = align_curves(v_exp, c_exp, v_sim, c_tot, 1.0, 0.0)
    assert np.isnan(metrics.error_l2)
    assert np.isnan(metrics.error_h1)
    assert 'overlap' in caplog.text


def test_repeated_voltage_reading():
    v = np.linspace(-2.0, 2.0, 41)
    c = sigmoid_curve(v)
    v_rep = np.insert(v, 10, v[10])
    c_rep = np.insert(c, 10, c[10])
    c_tot = sigmoid_curve(v, v0=0.1)

    m_ref, _ = align_curves(v, c, v, c_tot, 1.0, 0.0)
    metrics, curves = align_curves(v_rep, c_rep, v, c_tot, 1.0, 0.0)

    assert metrics.v_shift == pytest.approx(0.1)
    assert np.isfinite(metrics.error_h1)
    assert metrics.error_l2 == pytest.approx(m_ref.error_l2)
    assert metrics.error_h1 == pytest.approx(m_ref.error_h1)
    # the written series keeps every reading
    assert curves.v_exp.size == 42
    assert np.all(np.isfinite(curves.dcdv_exp))
    assert curves.dcdv_exp[10] == curves.dcdv_exp[11]


def test_repeated_voltage_readings_are_averaged():
    v = np.array([-1.0, 0.0, 0.0, 1.0])
    c = np.array([1.0, 1.0, 3.0, 4.0])
    _, curves = align_curves(v, c, np.linspace(-1.0, 1.0, 5), np.linspace(1.0, 4.0, 5), 1.0, 0.0)
    # mean of the tied readings is 2.0
    assert np.allclose(curves.dcdv_exp, [1.0, 1.5, 1.5, 2.0])
    assert np.array_equal(curves.c_exp, c)
