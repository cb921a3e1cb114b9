import logging

import numpy as np

from . import settings
from .knot_vector import KnotVector
from .linear_algebra import get_binomial
from .nurbs_curve import NurbsCurve

log = logging.getLogger(__name__)


# -------------------------------------------------------------------------------------------------------------------- #
# Knot refinement
# -------------------------------------------------------------------------------------------------------------------- #
def curve_knot_refine(curve, knots_to_insert):
    """
    Insert a set of knots into a curve without changing its shape.

    Implementation of Algorithm A5.4 from The NURBS Book. Runs on the host with numpy
    because the size of the output depends on the number of inserted knots.

    Parameters
    ----------
    curve : NurbsCurve
        Curve to refine.
    knots_to_insert : sequence of float
        Sorted knot values to insert. Repeat a value to insert it more than once.

    Returns
    -------
    refined : NurbsCurve
        New curve with `len(knots_to_insert)` more knots and control points.
        The input curve is returned when there is nothing to insert.
    """
    X = np.sort(np.asarray(knots_to_insert, dtype=np.float64).reshape(-1))
    if X.size == 0:
        return curve

    p = curve.p
    U = np.asarray(curve.U)
    Pw = np.asarray(curve.Pw)
    n = Pw.shape[1] - 1
    m = n + p + 1
    r = X.size - 1

    a = curve.knots.span_of(p, X[0])
    b = curve.knots.span_of(p, X[r]) + 1

    Qw = np.zeros((Pw.shape[0], n + r + 2))
    Ubar = np.zeros(m + r + 2)

    # Unaffected control points and knots
    Qw[:, : a - p + 1] = Pw[:, : a - p + 1]
    Qw[:, b + r : n + r + 2] = Pw[:, b - 1 : n + 1]
    Ubar[: a + 1] = U[: a + 1]
    Ubar[b + p + r + 1 : m + r + 2] = U[b + p : m + 1]

    i = b + p - 1
    k = b + p + r
    for j in range(r, -1, -1):
        while X[j] <= U[i] and i > a:
            Qw[:, k - p - 1] = Pw[:, i - p - 1]
            Ubar[k] = U[i]
            k -= 1
            i -= 1

        Qw[:, k - p - 1] = Qw[:, k - p]
        for l in range(1, p + 1):
            ind = k - p + l
            alfa = Ubar[k + l] - X[j]
            if abs(alfa) < settings.EPSILON:
                Qw[:, ind - 1] = Qw[:, ind]
            else:
                alfa = alfa / (Ubar[k + l] - U[i - p + l])
                Qw[:, ind - 1] = alfa * Qw[:, ind - 1] + (1.0 - alfa) * Qw[:, ind]

        Ubar[k] = X[j]
        k -= 1

    log.debug("Refined curve with %d knots: %d -> %d control points", X.size, n + 1, Qw.shape[1])
    return NurbsCurve.from_homogeneous(p, KnotVector(Ubar), Qw)


# -------------------------------------------------------------------------------------------------------------------- #
# Bezier decomposition
# -------------------------------------------------------------------------------------------------------------------- #
def decompose_curve_into_beziers(curve, normalize=False):
    """
    Split a clamped curve into the Bezier segments between its distinct knots.

    Every interior knot is refined up to multiplicity `degree+1` and the control points
    are sliced into groups of `degree+1`. Each segment keeps its local knot vector
    `{a,...,a,b,...,b}`, rescaled to [0, 1] when `normalize` is True.

    """
    p = curve.p
    knots = curve.knots
    if not knots.is_clamped(p):
        raise ValueError("Bezier decomposition requires a clamped knot vector")

    first, last = knots[0], knots[-1]
    to_insert = []
    for value, multiplicity in knots.multiplicities().items():
        if first < value < last and multiplicity < p + 1:
            to_insert.extend([value] * (p + 1 - multiplicity))

    refined = curve_knot_refine(curve, to_insert)
    U = np.asarray(refined.U)
    Pw = np.asarray(refined.Pw)

    order = p + 1
    segments = []
    for i in range(0, Pw.shape[1], order):
        segment_knots = KnotVector(U[i : i + 2 * order])
        if normalize:
            segment_knots = segment_knots.normalize()
        segments.append(NurbsCurve.from_homogeneous(p, segment_knots, Pw[:, i : i + order]))

    log.debug("Decomposed curve into %d Bezier segments", len(segments))
    return segments


# -------------------------------------------------------------------------------------------------------------------- #
# Degree elevation
# -------------------------------------------------------------------------------------------------------------------- #
def elevate_degree(curve, final_degree):
    """
    Raise the degree of a clamped curve without changing its shape.

    Implementation of Algorithm A5.9 from The NURBS Book. The curve is decomposed into
    Bezier segments on the fly, each segment is degree elevated, and the knots that
    are not needed to keep the continuity of the original curve are removed again.

    Parameters
    ----------
    curve : NurbsCurve
        Curve to elevate. Its knot vector must be clamped.
    final_degree : int
        Degree of the elevated curve.

    Returns
    -------
    elevated : NurbsCurve
        Curve of degree `final_degree`. Every distinct knot gains `final_degree - degree`
        copies. The input curve is returned when `final_degree` is not above its degree.
    """
    p = curve.p
    if final_degree <= p:
        return curve
    if not curve.knots.is_clamped(p):
        raise ValueError("Degree elevation requires a clamped knot vector")

    U = np.asarray(curve.U)
    Pw = np.asarray(curve.Pw)
    dim = Pw.shape[0]
    n = Pw.shape[1] - 1
    m = n + p + 1
    t = final_degree - p
    ph = final_degree
    ph2 = ph // 2
    eps = settings.EPSILON

    # Coefficients of the Bezier degree elevation
    bezalfs = np.zeros((ph + 1, p + 1))
    bezalfs[0, 0] = 1.0
    bezalfs[ph, p] = 1.0
    for i in range(1, ph2 + 1):
        inv = 1.0 / get_binomial(ph, i)
        for j in range(max(0, i - t), min(p, i) + 1):
            bezalfs[i, j] = inv * get_binomial(p, j) * get_binomial(t, i - j)
    for i in range(ph2 + 1, ph):
        for j in range(max(0, i - t), min(p, i) + 1):
            bezalfs[i, j] = bezalfs[ph - i, p - j]

    # Upper bounds, trimmed once the final sizes are known
    Qw = np.zeros((dim, n + 1 + t * (m + 1)))
    Uh = np.zeros(m + 1 + t * (m + 1) + ph + 1)
    bpts = Pw[:, : p + 1].copy()
    ebpts = np.zeros((dim, ph + 1))
    next_bpts = np.zeros((dim, max(p - 1, 1)))
    alfs = np.zeros(max(p - 1, 1))

    mh = ph
    kind = ph + 1
    r = -1
    a = p
    b = p + 1
    cind = 1
    ua = U[0]
    Qw[:, 0] = Pw[:, 0]
    Uh[: ph + 1] = ua

    while b < m:
        i = b
        while b < m and abs(U[b] - U[b + 1]) < eps:
            b += 1
        mul = b - i + 1
        mh += mul + t
        ub = U[b]
        oldr = r
        r = p - mul
        lbz = (oldr + 2) // 2 if oldr > 0 else 1
        rbz = ph - (r + 1) // 2 if r > 0 else ph

        # Insert knot ub r times
        if r > 0:
            numer = ub - ua
            for k in range(p, mul, -1):
                alfs[k - mul - 1] = numer / (U[a + k] - ua)
            for j in range(1, r + 1):
                save = r - j
                s = mul + j
                for k in range(p, s - 1, -1):
                    bpts[:, k] = alfs[k - s] * bpts[:, k] + (1.0 - alfs[k - s]) * bpts[:, k - 1]
                next_bpts[:, save] = bpts[:, p]

        # Degree elevate the Bezier segment
        for i in range(lbz, ph + 1):
            ebpts[:, i] = 0.0
            for j in range(max(0, i - t), min(p, i) + 1):
                ebpts[:, i] += bezalfs[i, j] * bpts[:, j]

        # Remove knot ua oldr times
        if oldr > 1:
            first = kind - 2
            last = kind
            den = ub - ua
            bet = (ub - Uh[kind - 1]) / den
            for tr in range(1, oldr):
                i = first
                j = last
                kj = j - kind + 1
                while j - i > tr:
                    if i < cind:
                        alf = (ub - Uh[i]) / (ua - Uh[i])
                        Qw[:, i] = alf * Qw[:, i] + (1.0 - alf) * Qw[:, i - 1]
                    if j >= lbz:
                        if j - tr <= kind - ph + oldr:
                            gam = (ub - Uh[j - tr]) / den
                            ebpts[:, kj] = gam * ebpts[:, kj] + (1.0 - gam) * ebpts[:, kj + 1]
                        else:
                            ebpts[:, kj] = bet * ebpts[:, kj] + (1.0 - bet) * ebpts[:, kj + 1]
                    i += 1
                    j -= 1
                    kj -= 1
                first -= 1
                last += 1

        # Load the knot ua
        if a != p:
            for _ in range(ph - oldr):
                Uh[kind] = ua
                kind += 1

        # Load the control points of the elevated segment
        for j in range(lbz, rbz + 1):
            Qw[:, cind] = ebpts[:, j]
            cind += 1

        if b < m:
            # Set up the next segment
            for j in range(r):
                bpts[:, j] = next_bpts[:, j]
            for j in range(max(r, 0), p + 1):
                bpts[:, j] = Pw[:, b - p + j]
            a = b
            b += 1
            ua = ub
        else:
            Uh[kind : kind + ph + 1] = ub

    nh = mh - ph - 1
    log.debug("Elevated curve from degree %d to %d: %d -> %d control points", p, ph, n + 1, nh + 1)
    return NurbsCurve.from_homogeneous(ph, KnotVector(Uh[: mh + 1]), Qw[:, : nh + 1])


# -------------------------------------------------------------------------------------------------------------------- #
# Reversal and splitting
# -------------------------------------------------------------------------------------------------------------------- #
def reverse_curve(curve):
    """Same geometric trace with the opposite parametrization direction"""
    Pw = np.asarray(curve.Pw)[:, ::-1]
    return NurbsCurve.from_homogeneous(curve.p, curve.knots.reverse(), np.ascontiguousarray(Pw))


def split_curve(curve, u):
    """
    Split a curve into two curves at the parameter `u`.

    The knot `u` is refined up to multiplicity `degree+1` so that the two halves share
    the point C(u) and together reproduce the original curve.

    Returns
    -------
    left, right : NurbsCurve
        Curves over [U[0], u] and [u, U[-1]].
    """
    p = curve.p
    U = np.asarray(curve.U)
    u = float(u)
    if not U[0] < u < U[-1]:
        raise ValueError(f"Split parameter {u} must be inside the curve domain ({U[0]}, {U[-1]})")

    existing = int(np.count_nonzero(np.abs(U - u) <= settings.EPSILON))
    refined = curve_knot_refine(curve, [u] * max(p + 1 - existing, 0))

    U_r = np.asarray(refined.U)
    Qw = np.asarray(refined.Pw)
    k = int(np.count_nonzero(U_r < u - settings.EPSILON))

    left = NurbsCurve.from_homogeneous(p, KnotVector(U_r[: k + p + 1]), Qw[:, :k])
    right = NurbsCurve.from_homogeneous(p, KnotVector(U_r[k:]), Qw[:, k:])
    return left, right
