import numpy as np
import pytest

import nurbskernel as nk


P = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])


def test_homogenize():
    Pw = nk.homogenize(P, [2.0, 0.5, 1.0])
    expected = np.array([[2.0, 1.0, 3.0], [8.0, 2.5, 6.0], [2.0, 0.5, 1.0]])
    np.testing.assert_allclose(Pw, expected)


def test_homogenize_pads_missing_weights():
    Pw = nk.homogenize(P, [2.0])
    np.testing.assert_allclose(nk.get_weights(Pw), [2.0, 1.0, 1.0])
    np.testing.assert_allclose(nk.get_weights(nk.homogenize(P)), [1.0, 1.0, 1.0])


def test_homogenize_too_many_weights():
    with pytest.raises(ValueError):
        nk.homogenize(P, [1.0, 1.0, 1.0, 1.0])


def test_homogenize_rank():
    with pytest.raises(ValueError):
        nk.homogenize([1.0, 2.0, 3.0])


def test_homogenize_with_weight():
    Pw = nk.homogenize_with_weight(P, 3.0)
    np.testing.assert_allclose(nk.get_weights(Pw), [3.0, 3.0, 3.0])
    np.testing.assert_allclose(nk.rational_points(Pw), 3.0 * P)


def test_dehomogenize_recovers_points():
    W = [0.3, 1.7, 2.0]
    Pw = nk.homogenize(P, W)
    np.testing.assert_allclose(nk.dehomogenize_1d(Pw), P, atol=1e-14)
    np.testing.assert_allclose(nk.rational_1d(Pw), P, atol=1e-14)
    np.testing.assert_allclose(nk.dehomogenize(Pw[:, 1]), P[:, 1], atol=1e-14)


def test_dehomogenize_zero_weight():
    np.testing.assert_allclose(nk.dehomogenize(np.array([1.0, 2.0, 0.0])), [1.0, 2.0])


def test_homogenize_2d():
    grid = np.arange(24, dtype=float).reshape(3, 2, 4)
    weights = np.array([[1.0, 2.0, 3.0, 4.0]])
    Pw = nk.homogenize_2d(grid, weights)
    assert Pw.shape == (4, 2, 4)
    np.testing.assert_allclose(nk.get_weights_2d(Pw), [[1.0, 2.0, 3.0, 4.0], [1.0, 1.0, 1.0, 1.0]])
    np.testing.assert_allclose(nk.dehomogenize_2d(Pw), grid, atol=1e-12)
    np.testing.assert_allclose(nk.rational_2d(Pw), grid, atol=1e-12)


def test_homogenize_2d_too_many_rows():
    grid = np.zeros((3, 2, 4))
    with pytest.raises(ValueError):
        nk.homogenize_2d(grid, np.ones((3, 4)))


@pytest.mark.parametrize(
    "n, k, expected",
    [(8, 4, 70.0), (5, 0, 1.0), (0, 0, 1.0), (0, 3, 0.0), (3, 5, 0.0), (10, 3, 120.0), (1, 1, 1.0)],
)
def test_binomial(n, k, expected):
    assert nk.get_binomial(n, k) == expected


def test_binomial_symmetry():
    for n in range(1, 15):
        for k in range(n + 1):
            assert nk.get_binomial(n, k) == nk.get_binomial(n, n - k)
