import logging

import numpy as np
import jax.numpy as jnp
import equinox as eqx
import optimistix as optx
import quadax

from . import settings
from .evaluation import compute_rational_curve_derivatives
from .modify import decompose_curve_into_beziers

log = logging.getLogger(__name__)


# -------------------------------------------------------------------------------------------------------------------- #
# Arc length
# -------------------------------------------------------------------------------------------------------------------- #
@eqx.filter_jit
def _arc_length(curve, u1, u2, n_points=settings.QUADRATURE_POINTS):
    """Integrate ||C'(u)|| over [u1, u2] with a fixed Clenshaw-Curtis rule

    The definition of the arc length is given by equation 10.3 (Farin's textbook)

    """

    # Define the integrand
    def integrand(u, *args):
        dC = curve.get_derivative(u, 1)  # (ndim, len(u))
        return jnp.linalg.norm(dC, axis=0)  # ||C'(u)||

    # Perform fixed quadrature over [u1, u2]
    rule = quadax.ClenshawCurtisRule(n_points)
    arclength, err, *_ = rule.integrate(integrand, u1, u2, args=())
    return jnp.asarray(arclength).squeeze()


def bezier_length(bezier, u=None):
    """Arc length of a Bezier segment from its first knot to `u`

    Parameters
    ----------
    bezier : NurbsCurve
        Curve with a single non-zero knot span, as returned by `decompose_curve_into_beziers`
    u : scalar, optional
        Upper limit of integration. Defaults to the last knot

    Returns
    -------
    L : float
        Arc length of the segment over [U[0], u]

    """
    u1 = bezier.knots[0]
    u2 = bezier.knots[-1] if u is None else float(u)
    return float(_arc_length(bezier, jnp.asarray(u1), jnp.asarray(u2)))


def curve_length(curve, u=None):
    """Arc length of a curve from its first knot to `u` (last knot by default)

    The curve is decomposed into Bezier segments and the segment lengths are added
    up to the segment that contains `u`.

    """
    u_end = curve.knots[-1] if u is None else float(u)

    total = 0.0
    for segment in decompose_curve_into_beziers(curve):
        start, end = segment.parameter_range
        if start + settings.EPSILON >= u_end:
            break
        total += bezier_length(segment, min(end, u_end))
    return total


# -------------------------------------------------------------------------------------------------------------------- #
# Parameter at a given arc length
# -------------------------------------------------------------------------------------------------------------------- #
def bezier_parameter_at_length(bezier, length, tolerance=settings.MAX_TOLERANCE, total_length=None):
    """Parameter of a Bezier segment at which the arc length from its first knot equals `length`

    The equation L(t) - length = 0 is solved with the bisection method of `optimistix`,
    bracketed by the first and last knots of the segment.
    Lengths below zero or above the segment length are clamped to the segment ends.

    """
    u1, u2 = bezier.parameter_range
    if length < 0.0:
        return u1

    if total_length is None:
        total_length = bezier_length(bezier)
    if length > total_length:
        return u2

    lower = jnp.asarray(u1)

    def residual(t, args):
        return _arc_length(bezier, lower, t) - length

    solver = optx.Bisection(rtol=tolerance, atol=tolerance)
    result = optx.root_find(
        residual,
        solver=solver,
        y0=jnp.asarray(0.5 * (u1 + u2)),
        options={"lower": u1, "upper": u2},
        throw=False,
        max_steps=settings.MAX_ROOT_FIND_STEPS,
    )
    return float(result.value)


def curve_parameter_at_length(curve, length, tolerance=settings.MAX_TOLERANCE):
    """Parameter of a curve at which the arc length from its first knot equals `length`

    Returns the first knot for lengths smaller than EPSILON and the last knot when
    `length` is equal to or bigger than the length of the curve.

    """
    u1, u2 = curve.parameter_range
    if length < settings.EPSILON:
        return u1

    accumulated = 0.0
    for segment in decompose_curve_into_beziers(curve):
        segment_length = bezier_length(segment)
        if length <= accumulated + segment_length + settings.EPSILON:
            return bezier_parameter_at_length(segment, length - accumulated, tolerance, segment_length)
        accumulated += segment_length

    return u2


# -------------------------------------------------------------------------------------------------------------------- #
# Curve division
# -------------------------------------------------------------------------------------------------------------------- #
def divide_curve_by_length(curve, length):
    """Divide a curve into pieces of the given arc length

    Returns
    -------
    t_values : list of float
        Parameters of the division points, starting with the first knot
    lengths : list of float
        Arc length from the start of the curve to each division point

    Only the start of the curve is returned when `length` exceeds the length of the curve.

    """
    if length <= 0.0:
        raise ValueError("Division length must be bigger than zero.")

    segments = decompose_curve_into_beziers(curve)
    segment_lengths = [bezier_length(segment) for segment in segments]
    total_length = sum(segment_lengths)

    t_values = [curve.knots[0]]
    lengths = [0.0]
    if length > total_length:
        return t_values, lengths

    target = length
    accumulated = 0.0
    for segment, segment_length in zip(segments, segment_lengths):
        while target < accumulated + segment_length + settings.EPSILON:
            t = bezier_parameter_at_length(
                segment, target - accumulated, settings.MAX_TOLERANCE, segment_length
            )
            t_values.append(t)
            lengths.append(target)
            target += length
        accumulated += segment_length

    log.debug("Divided curve of length %g into %d pieces", total_length, len(t_values) - 1)
    return t_values, lengths


def divide_curve_by_count(curve, divisions):
    """Divide a curve into `divisions` pieces of equal arc length"""
    if divisions < 1:
        raise ValueError("Number of divisions must be at least one.")
    return divide_curve_by_length(curve, curve_length(curve) / divisions)


def regular_sample(curve, n_samples):
    """Sample a curve at `n_samples` equally spaced parameters

    Returns
    -------
    u : ndarray with shape (n_samples,)
    C : ndarray with shape (ndim, n_samples)

    """
    if n_samples < 2:
        raise ValueError("Number of samples must be at least two.")
    u1, u2 = curve.parameter_range
    u = jnp.linspace(u1, u2, n_samples)
    return u, curve.get_value(u)


# -------------------------------------------------------------------------------------------------------------------- #
# Curvature
# -------------------------------------------------------------------------------------------------------------------- #
def curvature_vector(derivative1, derivative2):
    """Vector from a curve point to its center of curvature

    The curvature vector is k = (C'' - (C''.T) T) / ||C'||^2, with T the unit tangent.
    The returned vector points along k and its length is the radius of curvature 1/||k||.

    Parameters
    ----------
    derivative1 : array_like with shape (ndim,)
        First derivative C'(u)
    derivative2 : array_like with shape (ndim,)
        Second derivative C''(u)

    Returns
    -------
    vector : ndarray with shape (ndim,)
        Zero vector when the first derivative vanishes

    """
    d1 = np.asarray(derivative1, dtype=np.float64)
    d2 = np.asarray(derivative2, dtype=np.float64)
    speed = np.linalg.norm(d1)
    if speed == 0.0:
        return np.zeros_like(d1)

    tangent = d1 / speed
    k = (d2 - np.dot(d2, tangent) * tangent) / speed**2
    k_norm = np.linalg.norm(k)
    if k_norm < settings.SQRT_EPSILON:
        raise ValueError("Curvature is infinite.")
    return k / k_norm**2


# -------------------------------------------------------------------------------------------------------------------- #
# Closest point
# -------------------------------------------------------------------------------------------------------------------- #
@eqx.filter_jit
def _closest_parameter(curve, point, u0, u1, u2, max_steps):
    """Solve (C(u) - Q).C'(u) = 0 with a bounded Newton method started from `u0`"""

    def residual(u, args):
        ders = compute_rational_curve_derivatives(curve.Pw, curve.p, curve.U, u.squeeze(), 1)
        return jnp.atleast_1d(jnp.sum((ders[0] - point) * ders[1]))

    solver = optx.Newton(rtol=1e-6, atol=1e-8)
    result = optx.root_find(
        residual,
        solver=solver,
        y0=jnp.atleast_1d(u0),
        options={"lower": u1, "upper": u2},
        throw=False,
        max_steps=max_steps,
    )
    return jnp.clip(result.value.squeeze(), u1, u2)


def curve_closest_parameter(curve, point, max_steps=32):
    """
    Parameter of the point of a curve closest to `point`.

    The curve is sampled uniformly to pick the closest sample as initial guess, and the
    orthogonality condition

        f(u) = (C(u) - Q) . C'(u) = 0

    is then solved with `optimistix.Newton`, bounded by the ends of the domain.
    The Newton result is only kept when it is at least as close as the initial guess,
    so points beyond the ends of an open curve project onto its end points.

    Parameters
    ----------
    curve : NurbsCurve
        Curve to project onto
    point : array_like with shape (ndim,)
        Coordinates of the point to project
    max_steps : int, optional
        Maximum number of Newton iterations. Default is 32

    Returns
    -------
    t : float
        Parameter of the closest point, in [U[0], U[-1]]
    """
    Q = jnp.asarray(point, dtype=jnp.float64).reshape(-1)
    if Q.shape[0] != curve.ndim:
        raise ValueError(f"Point with {Q.shape[0]} coordinates cannot be projected onto a {curve.ndim}D curve")

    # Initial guess from a regular sampling of the curve
    u1, u2 = curve.parameter_range
    n_samples = max(curve.Pw.shape[1] * curve.p * 4, 100) + 1
    u_samples = jnp.linspace(u1, u2, n_samples)
    distances = jnp.linalg.norm(curve.get_value(u_samples) - Q[:, None], axis=0)
    i_best = int(jnp.argmin(distances))
    u0 = float(u_samples[i_best])

    t = float(_closest_parameter(curve, Q, jnp.asarray(u0), u1, u2, max_steps))
    distance = np.linalg.norm(np.asarray(curve.point_at(t)) - np.asarray(Q))
    if not distance <= float(distances[i_best]):
        log.debug("Newton projection moved away from the closest sample, keeping u = %g", u0)
        return u0
    return t


def curve_closest_point(curve, point):
    """Closest point of a curve to `point` and its parameter, as a tuple (C(t), t)"""
    t = curve_closest_parameter(curve, point)
    return curve.point_at(t), t
