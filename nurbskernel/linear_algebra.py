import jax.numpy as jnp


# -------------------------------------------------------------------------------------------------------------------- #
# Homogeneous coordinates
# -------------------------------------------------------------------------------------------------------------------- #
# Control points are stored column-wise, as in the rest of the package:
#   points             P  : (ndim, n+1)            surfaces: (ndim, n+1, m+1)
#   homogeneous points P_w: (ndim+1, n+1)          surfaces: (ndim+1, n+1, m+1)
# where the last row of P_w holds the weights and the other rows hold (x*w, y*w, z*w, ...)

def _check_rank(array, rank, name):
    if array.ndim != rank:
        raise ValueError(f"{name} must be a rank-{rank} array, got shape {array.shape}")


def homogenize(points, weights=None):
    """
    Map control points to homogeneous space: P_w = (x*w, y*w, z*w, w).

    Parameters
    ----------
    points : array_like (ndim, n+1)
        Control point coordinates.
    weights : array_like (k,), optional
        Control point weights with k <= n+1.
        Points beyond the end of the weights list get a unit weight.

    Returns
    -------
    P_w : ndarray (ndim+1, n+1)
        Homogeneous control points.

    Raises
    ------
    ValueError
        If there are more weights than control points.
    """
    P = jnp.asarray(points, dtype=jnp.float64)
    _check_rank(P, 2, "points")
    n_points = P.shape[1]

    if weights is None:
        W = jnp.ones((n_points,), dtype=P.dtype)
    else:
        W = jnp.asarray(weights, dtype=P.dtype).reshape(-1)
        if W.shape[0] > n_points:
            raise ValueError(
                "The weights set is bigger than the control points, it must be the same dimension"
            )
        W = jnp.concatenate((W, jnp.ones((n_points - W.shape[0],), dtype=P.dtype)))

    return jnp.concatenate((P * W[None, :], W[None, :]), axis=0)


def homogenize_with_weight(points, weight):
    """Map control points to homogeneous space using the same weight for all of them."""
    P = jnp.asarray(points, dtype=jnp.float64)
    _check_rank(P, 2, "points")
    return homogenize(P, jnp.full((P.shape[1],), weight))


def homogenize_2d(points, weights=None):
    """
    Map a grid of control points to homogeneous space, one row at a time.

    Parameters
    ----------
    points : array_like (ndim, n+1, m+1)
        Control point grid.
    weights : array_like (k, l), optional
        Weight grid with k <= n+1 rows. Missing rows and columns get a unit weight.

    Returns
    -------
    P_w : ndarray (ndim+1, n+1, m+1)
    """
    P = jnp.asarray(points, dtype=jnp.float64)
    _check_rank(P, 3, "points")
    n_rows = P.shape[1]

    if weights is None:
        rows = [None] * n_rows
    else:
        W = jnp.asarray(weights, dtype=P.dtype)
        _check_rank(W, 2, "weights")
        if W.shape[0] > n_rows:
            raise ValueError(
                "The weights set is bigger than the control points, it must be the same dimension"
            )
        rows = [W[i] for i in range(W.shape[0])] + [None] * (n_rows - W.shape[0])

    return jnp.stack([homogenize(P[:, i, :], rows[i]) for i in range(n_rows)], axis=1)


def dehomogenize(point_w):
    """
    Project a single homogeneous point back to ordinary space.

    Returns (x*w, y*w, z*w)/w when the weight is not zero, and the leading
    coordinates unscaled when the weight is zero (points at infinity).
    """
    Pw = jnp.asarray(point_w)
    _check_rank(Pw, 1, "point_w")
    w = Pw[-1]
    return Pw[:-1] / jnp.where(w == 0.0, 1.0, w)


def dehomogenize_1d(points_w):
    """Project a set of homogeneous points (ndim+1, n+1) back to ordinary space (ndim, n+1)."""
    Pw = jnp.asarray(points_w)
    _check_rank(Pw, 2, "points_w")
    w = Pw[-1:, :]
    return Pw[:-1, :] / jnp.where(w == 0.0, 1.0, w)


def dehomogenize_2d(points_w):
    """Project a grid of homogeneous points (ndim+1, n+1, m+1) back to ordinary space."""
    Pw = jnp.asarray(points_w)
    _check_rank(Pw, 3, "points_w")
    w = Pw[-1:, :, :]
    return Pw[:-1, :, :] / jnp.where(w == 0.0, 1.0, w)


def get_weights(points_w):
    """Weights (n+1,) of a set of homogeneous points (ndim+1, n+1)."""
    Pw = jnp.asarray(points_w)
    _check_rank(Pw, 2, "points_w")
    return Pw[-1, :]


def get_weights_2d(points_w):
    """Weights (n+1, m+1) of a grid of homogeneous points (ndim+1, n+1, m+1)."""
    Pw = jnp.asarray(points_w)
    _check_rank(Pw, 3, "points_w")
    return Pw[-1, :, :]


def rational_points(points_w):
    """Leading coordinates (x*w, y*w, z*w) of homogeneous points, without the perspective division."""
    Pw = jnp.asarray(points_w)
    return Pw[:-1, ...]


# Recovering the unweighted form of a rational curve or surface
rational_1d = dehomogenize_1d
rational_2d = dehomogenize_2d


# -------------------------------------------------------------------------------------------------------------------- #
# Binomial coefficients
# -------------------------------------------------------------------------------------------------------------------- #
def get_binomial(n, k):
    """
    Binomial coefficient C(n, k) computed with the multiplicative recurrence.

    Returns 1 when k == 0 and 0 when n == 0 or k > n.
    """
    if k == 0:
        return 1.0
    if n == 0 or k > n:
        return 0.0

    k = min(k, n - k)
    r = 1
    for d in range(1, k + 1):
        r = r * (n - d + 1) // d
    return float(r)
