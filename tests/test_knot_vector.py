import numpy as np
import pytest

from nurbskernel import KnotVector, find_span


KNOTS = [0.0, 0.0, 0.0, 1.0, 2.0, 3.0, 4.0, 4.0, 5.0, 5.0, 5.0]
DEGREE = 2


@pytest.mark.parametrize(
    "u, expected",
    [(2.5, 4), (1.0, 3), (1.5, 3), (4.9, 7), (5.0, 7), (10.0, 7), (0.0, 2), (-1.0, 2), (4.0, 7), (3.2, 5)],
)
def test_span(u, expected):
    knots = KnotVector(KNOTS)
    n = len(knots) - DEGREE - 2
    assert knots.span(n, DEGREE, u) == expected
    assert knots.span_of(DEGREE, u) == expected
    assert int(find_span(DEGREE, knots.values, u)) == expected


def test_span_brackets_parameter():
    knots = KnotVector(KNOTS)
    for u in np.linspace(0.0, 4.999, 57):
        s = knots.span_of(DEGREE, u)
        assert knots[s] <= u < knots[s + 1]


@pytest.mark.parametrize("n", [0, 6, 8])
def test_span_inconsistent_control_point_index(n):
    knots = KnotVector(KNOTS)
    with pytest.raises(ValueError):
        knots.span(n, DEGREE, 2.5)


def test_multiplicities():
    knots = KnotVector([0, 0, 0, 0, 1, 1, 2, 2, 2, 3, 3.3])
    assert knots.multiplicities() == {0.0: 4, 1.0: 2, 2.0: 3, 3.0: 1, 3.3: 1}
    assert list(knots.multiplicities()) == [0.0, 1.0, 2.0, 3.0, 3.3]
    assert knots.multiplicity(2.0) == 3
    assert knots.multiplicity(2.5) == 0


def test_multiplicity_at_index():
    knots = KnotVector([0, 0, 0, 0, 1, 1, 2, 2, 2, 3, 3.3])
    assert knots.multiplicity_at(4) == 2
    assert knots.multiplicity_at(0) == 4
    assert knots.multiplicity_at(10) == 1
    with pytest.raises(IndexError):
        knots.multiplicity_at(12)
    with pytest.raises(IndexError):
        knots.multiplicity_at(-1)


DENSE_KNOTS = [0, 0, 0, 0, 1.0, 1.0005, 2, 2, 2, 2]


def test_multiplicities_of_close_knots():
    # Knots closer than the maximum tolerance but not equal
    knots = KnotVector(DENSE_KNOTS)
    assert knots.multiplicity(1.0) == 2
    assert knots.multiplicity(1.0005) == 2
    assert knots.multiplicity_at(4) == 1
    assert knots.multiplicities() == {0.0: 4, 1.0: 1, 1.0005: 1, 2.0: 4}
    assert sum(knots.multiplicities().values()) == len(knots)
    assert knots.is_valid(3, 6)


def test_normalize():
    knots = KnotVector([-5, -5, -3, -2, 2, 3, 5, 5]).normalize()
    np.testing.assert_allclose(knots.tolist(), [0.0, 0.0, 0.2, 0.3, 0.7, 0.8, 1.0, 1.0], atol=1e-12)


def test_normalize_is_idempotent():
    once = KnotVector([-5, -5, -3, -2, 2, 3, 5, 5]).normalize()
    twice = once.normalize()
    np.testing.assert_allclose(twice.tolist(), once.tolist(), atol=1e-15)
    assert twice.domain == pytest.approx(1.0)


def test_normalize_errors():
    with pytest.raises(ValueError):
        KnotVector().normalize()
    with pytest.raises(ValueError):
        KnotVector([1.0, 1.0, 1.0]).normalize()


def test_reverse():
    knots = KnotVector([0, 0, 0, 0, 1, 1, 2, 2, 2, 3, 3.3, 4, 4, 4])
    expected = [0, 0, 0, 0.7, 1, 2, 2, 2, 3, 3, 4, 4, 4, 4]
    np.testing.assert_allclose(knots.reverse().tolist(), expected, atol=1e-12)
    np.testing.assert_allclose(knots.reverse().reverse().tolist(), knots.tolist(), atol=1e-12)


def test_reverse_does_not_modify_input():
    values = [0, 0, 1, 3, 3]
    knots = KnotVector(values)
    knots.reverse()
    assert knots.tolist() == values


def test_uniform_clamped():
    knots = KnotVector.uniform(4, 12)
    expected = [0.0] * 4 + list(np.linspace(0.0, 1.0, 9)) + [1.0] * 4
    assert len(knots) == 12 + 4 + 1
    np.testing.assert_allclose(knots.tolist(), expected, atol=1e-12)
    assert knots.is_clamped(4)
    assert knots.is_valid(4, 12)


def test_uniform_unclamped():
    knots = KnotVector.uniform(3, 5, clamped=False)
    np.testing.assert_allclose(knots.tolist(), np.linspace(0.0, 1.0, 9), atol=1e-12)
    assert not knots.is_clamped(3)
    assert knots.is_valid(3, 5)


def test_uniform_periodic():
    knots = KnotVector.uniform_periodic(2, 5)
    expected = np.arange(-2, 6) / 3.0
    np.testing.assert_allclose(knots.tolist(), expected, atol=1e-12)
    assert knots.is_periodic(2)
    assert not KnotVector.uniform(2, 5).is_periodic(2)


@pytest.mark.parametrize("degree, n_points", [(0, 5), (3, 0), (-1, 4), (5, 3)])
def test_uniform_invalid(degree, n_points):
    with pytest.raises(ValueError):
        KnotVector.uniform(degree, n_points)


@pytest.mark.parametrize("degree, n_points", [(1, 5), (2, 1), (3, 3), (4, 2)])
def test_uniform_periodic_invalid(degree, n_points):
    with pytest.raises(ValueError):
        KnotVector.uniform_periodic(degree, n_points)


@pytest.mark.parametrize(
    "values, degree, n_points, expected",
    [
        ([0, 0, 0, 0, 0.5, 1, 1, 1, 1], 3, 5, True),
        ([0, 0, 0, 1, 2, 3, 4, 4, 5, 5, 5], 2, 8, True),
        ([0, 0, 0, 0, 0.5, 1, 1, 1, 1], 3, 6, False),
        ([0, 0, 0, 1, 0.5, 1, 1, 1], 2, 5, False),
        ([0, 0, 0.5, 1, 1, 1], 2, 3, False),
        ([0, 1, 2, 3], 2, 1, False),
        ([], 2, 3, False),
    ],
)
def test_is_valid(values, degree, n_points, expected):
    assert KnotVector(values).is_valid(degree, n_points) is expected


def test_is_valid_rejects_unset_values():
    knots = KnotVector([0, 0, 0, 1, float("nan"), 1, 1])
    assert not knots.is_valid(2, 4)
    assert not KnotVector([0, 0, 0, float("inf"), 1, 1, 1]).is_valid(2, 4)


@pytest.mark.parametrize(
    "values, degree, expected",
    [
        ([0, 0, 0, 0, 0.5, 1, 1, 1, 1], 3, True),
        ([0, 0, 0, 0.5, 1, 1, 1, 1], 3, False),
        ([0, 0, 0, 0, 0.5, 1, 1, 1], 3, False),
        ([0, 0.25, 0.5, 0.75, 1], 1, False),
    ],
)
def test_is_clamped(values, degree, expected):
    assert KnotVector(values).is_clamped(degree) is expected


def test_sequence_protocol():
    knots = KnotVector([0, 0, 0.5, 1, 1])
    assert len(knots) == 5
    assert knots[2] == 0.5
    assert knots[-1] == 1.0
    assert list(knots) == [0.0, 0.0, 0.5, 1.0, 1.0]
    assert knots.domain == 1.0
    assert repr(knots) == "{0,0,0.5,1,1}"
