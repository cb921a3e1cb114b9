import numpy as np
import pytest

import nurbskernel as nk


U = np.array([0.0, 0.0, 0.0, 1.0, 2.0, 3.0, 4.0, 4.0, 5.0, 5.0, 5.0])
P_BEZIER = np.array([[-10.0, 10.0, 20.0], [15.0, 5.0, 0.0], [5.0, 5.0, 0.0]])


def quarter_circle():
    P = np.array([[1.0, 1.0, 0.0], [0.0, 1.0, 1.0]])
    W = [1.0, np.sqrt(2.0) / 2.0, 1.0]
    return nk.homogenize(P, W), 2, np.array([0.0, 0.0, 0.0, 1.0, 1.0, 1.0])


# -------------------------------------------------------------------------------------------------------------------- #
# Basis functions
# -------------------------------------------------------------------------------------------------------------------- #
def test_basis_functions_example():
    N = nk.compute_basis_functions(2, U, 4, 2.5)
    np.testing.assert_allclose(N, [1.0 / 8.0, 6.0 / 8.0, 1.0 / 8.0], atol=1e-14)
    np.testing.assert_allclose(nk.compute_basis_functions_at(2, U, 2.5), N, atol=1e-14)


@pytest.mark.parametrize("degree", [1, 2, 3, 4])
def test_partition_of_unity(degree):
    knots = nk.KnotVector.uniform(degree, 9)
    for u in np.linspace(0.0, 1.0, 23):
        N = nk.compute_basis_functions_at(degree, knots.values, u)
        assert N.shape == (degree + 1,)
        assert float(np.sum(N)) == pytest.approx(1.0, abs=1e-12)
        assert np.all(np.asarray(N) >= -1e-14)


def test_derivative_basis_functions_example():
    ders = nk.compute_derivative_basis_functions(2, U, 4, 2.5, 2)
    assert ders.shape == (3, 3)
    np.testing.assert_allclose(ders[0], [0.125, 0.75, 0.125], atol=1e-14)
    np.testing.assert_allclose(ders[1], [-0.5, 0.0, 0.5], atol=1e-14)
    np.testing.assert_allclose(ders[2], [1.0, -2.0, 1.0], atol=1e-14)


def test_derivative_basis_functions_above_degree_are_zero():
    ders = nk.compute_derivative_basis_functions(2, U, 4, 2.5, 4)
    assert ders.shape == (5, 3)
    np.testing.assert_allclose(ders[3:], 0.0)


def test_derivative_basis_functions_sum_to_zero():
    ders = nk.compute_derivative_basis_functions(2, U, 5, 3.7, 2)
    np.testing.assert_allclose(np.sum(ders[1:], axis=1), 0.0, atol=1e-12)


@pytest.mark.parametrize("i, expected", [(4, 1.0 / 8.0), (3, 6.0 / 8.0), (2, 1.0 / 8.0), (0, 0.0), (6, 0.0)])
def test_one_basis_function(i, expected):
    assert float(nk.compute_one_basis_function(2, U, i, 2.5)) == pytest.approx(expected, abs=1e-14)


def test_one_basis_function_at_boundaries():
    n = len(U) - 2 - 2
    assert float(nk.compute_one_basis_function(2, U, 0, 0.0)) == 1.0
    assert float(nk.compute_one_basis_function(2, U, n, 5.0)) == 1.0
    assert float(nk.compute_one_basis_function(2, U, n - 1, 5.0)) == 0.0


def test_one_basis_function_matches_table():
    for u in [0.3, 1.2, 2.5, 3.9, 4.4]:
        span = int(nk.find_span(2, U, u))
        N = nk.compute_basis_functions(2, U, span, u)
        for j in range(3):
            value = nk.compute_one_basis_function(2, U, span - 2 + j, u)
            assert float(value) == pytest.approx(float(N[j]), abs=1e-12)


# -------------------------------------------------------------------------------------------------------------------- #
# Curve points and derivatives
# -------------------------------------------------------------------------------------------------------------------- #
def test_bezier_point():
    Pw = nk.homogenize(P_BEZIER)
    Bezier = np.array([0.0, 0.0, 0.0, 1.0, 1.0, 1.0])
    C = nk.compute_curve_point(Pw, 2, Bezier, 0.5)
    np.testing.assert_allclose(C, [7.5, 6.25, 3.75], atol=1e-12)
    np.testing.assert_allclose(nk.compute_curve_point(Pw, 2, Bezier, 0.0), P_BEZIER[:, 0], atol=1e-12)
    np.testing.assert_allclose(nk.compute_curve_point(Pw, 2, Bezier, 1.0), P_BEZIER[:, -1], atol=1e-12)


def test_bezier_derivatives():
    Pw = nk.homogenize(P_BEZIER)
    Bezier = np.array([0.0, 0.0, 0.0, 1.0, 1.0, 1.0])
    CK = nk.compute_rational_curve_derivatives(Pw, 2, Bezier, 0.5, 3)
    assert CK.shape == (4, 3)
    P0, P1, P2 = P_BEZIER.T
    np.testing.assert_allclose(CK[0], [7.5, 6.25, 3.75], atol=1e-12)
    np.testing.assert_allclose(CK[1], P2 - P0, atol=1e-12)
    np.testing.assert_allclose(CK[2], 2.0 * (P2 - 2.0 * P1 + P0), atol=1e-12)
    np.testing.assert_allclose(CK[3], 0.0, atol=1e-12)


def test_homogeneous_derivatives_shape():
    Pw, p, knots = quarter_circle()
    CK_w = nk.compute_curve_derivatives(Pw, p, knots, 0.3, 2)
    assert CK_w.shape == (3, 3)
    np.testing.assert_allclose(CK_w[0, -1], 1.0 - 0.42 * (1.0 - np.sqrt(2.0) / 2.0), atol=1e-12)


def test_rational_points_on_circle():
    Pw, p, knots = quarter_circle()
    C = nk.compute_curve_points(Pw, p, knots, np.linspace(0.0, 1.0, 31))
    assert C.shape == (2, 31)
    np.testing.assert_allclose(np.linalg.norm(C, axis=0), 1.0, atol=1e-12)


def test_rational_derivatives_finite_differences():
    Pw, p, knots = quarter_circle()
    h = 1e-5
    for u in [0.2, 0.5, 0.8]:
        CK = nk.compute_rational_curve_derivatives(Pw, p, knots, u, 2)
        C_plus = nk.compute_curve_point(Pw, p, knots, u + h)
        C_minus = nk.compute_curve_point(Pw, p, knots, u - h)
        np.testing.assert_allclose(CK[1], (C_plus - C_minus) / (2 * h), atol=1e-7)
        np.testing.assert_allclose(CK[2], (C_plus - 2 * CK[0] + C_minus) / h**2, atol=1e-3)
        # Tangent of a circle is orthogonal to the radius
        assert float(np.dot(CK[0], CK[1])) == pytest.approx(0.0, abs=1e-12)
        np.testing.assert_allclose(nk.compute_rational_curve_tangent(Pw, p, knots, u), CK[1], atol=1e-14)


def test_curve_level_functions():
    Pw, p, knots = quarter_circle()
    curve = nk.NurbsCurve.from_homogeneous(p, knots, Pw)
    np.testing.assert_allclose(nk.curve_point_at(curve, 0.5), nk.compute_curve_point(Pw, p, knots, 0.5))
    assert nk.curve_derivatives(curve, 0.5, 1).shape == (2, 3)
    assert nk.rational_curve_derivatives(curve, 0.5).shape == (2, 2)
    assert nk.rational_curve_tangent(curve, 0.5).shape == (2,)
