import logging

import numpy as np
import jax
import jax.lax as lax
import jax.numpy as jnp
import equinox as eqx

from . import settings

log = logging.getLogger(__name__)


# -------------------------------------------------------------------------------------------------------------------- #
# Standalone function to find the knot span
# -------------------------------------------------------------------------------------------------------------------- #
def find_span(degree, U, u):
    """
    Find the index of the knot span that contains the parameter `u`.

    Implementation of Algorithm A2.1 from The NURBS Book using a `lax.while_loop`
    binary search, so that it can be traced inside jitted evaluation functions.
    The interval policy is closed on the left and open on the right, with two
    explicit shortcuts at the ends of the domain:

        - u >= U[n+1] - eps  ->  n
        - u <= U[p] + eps    ->  p

    Parameters
    ----------
    degree : int
        Degree of the basis polynomials.
    U : array_like (r+1 = n + p + 2,)
        Knot vector.
    u : scalar
        Parameter value.

    Returns
    -------
    span : int scalar array
        Index `i` such that U[i] <= u < U[i+1].
    """
    U = jnp.asarray(U)
    n = U.shape[0] - degree - 2
    eps = settings.EPSILON

    at_end = u > U[n + 1] - eps
    at_start = u < U[degree] + eps

    # Out-of-range parameters are replaced so that the search invariant U[low] <= u < U[high] holds
    u_search = jnp.where(at_end | at_start, U[degree], u)

    def cond_fun(state):
        low, high, mid, count = state
        outside = (u_search < U[mid]) | (u_search >= U[mid + 1])
        return outside & (count <= n + 1)

    def body_fun(state):
        low, high, mid, count = state
        below = u_search < U[mid]
        high = jnp.where(below, mid, high)
        low = jnp.where(below, low, mid)
        return low, high, (low + high) // 2, count + 1

    low, high = degree, n + 1
    state = (jnp.asarray(low), jnp.asarray(high), jnp.asarray((low + high) // 2), jnp.asarray(0))
    _, _, mid, _ = lax.while_loop(cond_fun, body_fun, state)

    span = jnp.where(at_start, degree, mid)
    span = jnp.where(at_end, n, span)
    return span

# Apply JIT compilation
find_span = jax.jit(find_span, static_argnames=('degree',))


# -------------------------------------------------------------------------------------------------------------------- #
# Knot vector class
# -------------------------------------------------------------------------------------------------------------------- #
class KnotVector(eqx.Module):
    """Immutable, non-decreasing sequence of knots

    Parameters
    ----------
    values : array_like with shape (r+1,)
        Knot values. Construction from raw values does not check validity,
        use `is_valid` for that. Use `uniform` or `uniform_periodic` to generate
        knot vectors from a degree and a number of control points.

    Notes
    -----
    Every operation returns a new instance, the stored array is never modified in place.
    The number of knots of a valid curve is always equal to the number of control points
    plus the degree plus one (Equation 2.4 in The NURBS Book).

    """

    values: jnp.ndarray  # (r+1,)

    def __init__(self, values=()):
        self.values = jnp.asarray(values, dtype=jnp.float64).reshape(-1)

    # ---------------------------------------------------------------------------------------------------------------- #
    # Knot vector generation
    # ---------------------------------------------------------------------------------------------------------------- #
    @classmethod
    def uniform(cls, degree, n_points, clamped=True):
        """Generate an equally spaced knot vector

        Clamped knot vectors have `degree+1` copies of 0 and 1 at their ends, so that the
        curve is tangent to the first and last legs of the control polygon.
        Unclamped knot vectors are a single linear space over [0, 1] without repetitions.

        Parameters
        ----------
        degree : int
            Degree of the curve
        n_points : int
            Number of control points of the curve
        clamped : bool
            Generate a clamped (default) or unclamped knot vector

        Returns
        -------
        knots : KnotVector
            Knot vector with `n_points + degree + 1` values

        """
        if degree < 1 or n_points < 1:
            raise ValueError("Input values must be positive and different than zero.")
        if n_points < degree:
            raise ValueError("Degree must be less than the number of control point.")

        if clamped:
            values = np.concatenate(
                (np.zeros(degree), np.linspace(0.0, 1.0, n_points - degree + 1), np.ones(degree))
            )
        else:
            values = np.linspace(0.0, 1.0, degree + n_points + 1)

        return cls(values)

    @classmethod
    def uniform_periodic(cls, degree, n_points):
        """Generate a uniform periodic knot vector

        The knots from index `degree` onwards run 0, d, 2d, ... with d = 1/(n_points - degree)
        and the first `degree` knots extend below zero with the same step.

        """
        if n_points < 2:
            raise ValueError("Number of control points must be bigger than two.")
        if degree < 2:
            raise ValueError("Degree must be equal or bigger than two.")
        if n_points <= degree:
            raise ValueError("Degree must be less than the number of points.")

        delta = 1.0 / (n_points - degree)
        count = n_points + degree + 1
        return cls((np.arange(count) - degree) * delta)

    # ---------------------------------------------------------------------------------------------------------------- #
    # Sequence protocol
    # ---------------------------------------------------------------------------------------------------------------- #
    def __len__(self):
        return int(self.values.shape[0])

    def __getitem__(self, index):
        return float(self.values[index])

    def __iter__(self):
        return iter(self.tolist())

    def __repr__(self):
        return "{" + ",".join(f"{k:g}" for k in self.tolist()) + "}"

    def tolist(self):
        return np.asarray(self.values).tolist()

    @property
    def domain(self):
        """Difference between the last and the first knot"""
        return self[-1] - self[0]

    # ---------------------------------------------------------------------------------------------------------------- #
    # Structural checks
    # ---------------------------------------------------------------------------------------------------------------- #
    def is_valid(self, degree, n_points):
        """Check the relations between degree, number of control points and number of knots

        The knots must be valid doubles, non-decreasing and of length (degree + 1) * 2 or
        greater, and must satisfy m = n + p + 1 (The NURBS Book, p.50).
        When the first or last knot is repeated, the first and last `degree+1` knots must
        each be equal.

        """
        count = len(self)
        if count == 0:
            return False
        if count < (degree + 1) * 2:
            return False
        if n_points + degree + 1 != count:
            return False

        U = np.asarray(self.values)
        if not all(settings.is_valid_double(k) for k in U):
            return False

        eps = settings.EPSILON
        end_run = int(np.count_nonzero(np.abs(U - U[-1]) <= eps))
        has_multiplicity = self.multiplicity_at(0) > 1 or end_run > 1
        rep = U[0]
        for i in range(count):
            if has_multiplicity:
                if i < degree + 1 and abs(U[i] - rep) > eps:
                    return False
                if i > count - degree - 1 and abs(U[i] - rep) > eps:
                    return False
            if U[i] < rep - eps:
                return False
            rep = U[i]

        return True

    def is_clamped(self, degree):
        """Check if the first and last `degree+1` knots are repeated"""
        U = np.asarray(self.values)
        eps = settings.EPSILON
        if abs(U[0] - U[degree]) > eps:
            return False
        return bool(abs(U[-1] - U[-degree - 1]) <= eps)

    def is_periodic(self, degree):
        """Check if the first `degree` knots are negative and the last `degree` knots exceed one"""
        U = np.asarray(self.values)
        if U[0] > U[degree]:
            return False
        if U[degree] > 0:
            return False
        return bool(U[-degree - 1] < U[-1] and not U[-degree - 1] < 1)

    # ---------------------------------------------------------------------------------------------------------------- #
    # Queries
    # ---------------------------------------------------------------------------------------------------------------- #
    def span(self, n, degree, u):
        """Index of the knot span containing `u`, where `n` is the highest control point index

        Raises `ValueError` when `n` is not consistent with the number of knots (n = len - degree - 2).

        """
        if n != len(self) - degree - 2:
            raise ValueError(
                f"Highest control point index {n} does not match {len(self)} knots of degree {degree}"
            )
        return int(find_span(degree, self.values, u))

    def span_of(self, degree, u):
        """Index of the knot span containing `u`, with `n` deduced from the number of knots"""
        return int(find_span(degree, self.values, u))

    def multiplicity(self, value):
        """Number of knots equal to `value` within the maximum tolerance"""
        U = np.asarray(self.values)
        return int(np.count_nonzero(np.abs(U - value) <= settings.MAX_TOLERANCE))

    def multiplicity_at(self, index):
        """Multiplicity of the knot at `index`, counting the equal knots that follow it"""
        count = len(self)
        if index < 0 or index >= count:
            raise IndexError("Input values must be in the dimension of the knot set.")

        U = np.asarray(self.values)
        knot = U[index]
        multiplicity = 1
        while index < count - 1 and abs(U[index + 1] - knot) <= settings.EPSILON:
            index += 1
            multiplicity += 1
        return multiplicity

    def multiplicities(self):
        """Ordered mapping from the first knot of each run of equal knots to the length of the run

        Runs are delimited with EPSILON, so knots closer than the maximum tolerance but not
        numerically equal are kept as separate entries.

        """
        multiplicities = {}
        index = 0
        while index < len(self):
            run = self.multiplicity_at(index)
            multiplicities[self[index]] = run
            index += run
        return multiplicities

    # ---------------------------------------------------------------------------------------------------------------- #
    # Transformations
    # ---------------------------------------------------------------------------------------------------------------- #
    def normalize(self):
        """Rescale the knots to the range [0, 1]"""
        if len(self) == 0:
            raise ValueError("Input knot vector cannot be empty")

        U = np.asarray(self.values)
        denominator = U[-1] - U[0]
        if denominator == 0.0:
            raise ValueError("Knot vector domain must be different than zero")
        return KnotVector((U - U[0]) / denominator)

    def reverse(self):
        """Knot vector whose gaps are the original gaps in reverse order, starting from the first knot"""
        U = np.asarray(self.values)
        if U.size == 0:
            return KnotVector()
        gaps = np.diff(U)[::-1]
        return KnotVector(np.concatenate(([U[0]], U[0] + np.cumsum(gaps))))
