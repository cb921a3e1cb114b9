import jax
import jax.numpy as jnp

from . import settings
from .knot_vector import find_span
from .linear_algebra import dehomogenize, get_binomial


def _stack_table(rows):
    """Convert a nested list of scalars and tracers to a 2D array"""
    return jnp.stack([jnp.stack([jnp.asarray(x, dtype=jnp.float64) for x in row]) for row in rows])


def _safe_denominator(d):
    return jnp.where(d == 0.0, 1.0, d)


# -------------------------------------------------------------------------------------------------------------------- #
# Standalone functions to compute basis function values
# -------------------------------------------------------------------------------------------------------------------- #
def compute_basis_functions(degree, U, span, u):
    """
    Evaluate the `degree+1` non-vanishing B-spline basis functions at the parameter `u`.

    Implementation of Algorithm A2.2 from The NURBS Book (Cox-de Boor recursion computed
    degree by degree on a triangular table). The span must be located beforehand with `find_span`.

    Parameters
    ----------
    degree : int
        Degree of the basis polynomials.
    U : array_like (r+1,)
        Knot vector.
    span : int
        Index of the knot span containing `u`.
    u : scalar
        Parameter value.

    Returns
    -------
    N : ndarray (degree+1,)
        Values of N_{span-degree,p}(u), ..., N_{span,p}(u).
    """
    U = jnp.asarray(U)
    u = jnp.asarray(u, dtype=jnp.float64)

    left = [0.0] * (degree + 1)
    right = [0.0] * (degree + 1)
    N = [0.0] * (degree + 1)
    N[0] = 1.0

    for j in range(1, degree + 1):
        left[j] = u - U[span + 1 - j]
        right[j] = U[span + j] - u
        saved = 0.0
        for r in range(j):
            temp = N[r] / (right[r + 1] + left[j - r])
            N[r] = saved + right[r + 1] * temp
            saved = left[j - r] * temp
        N[j] = saved

    return jnp.stack([jnp.asarray(value, dtype=jnp.float64) for value in N])

# Apply JIT compilation
compute_basis_functions = jax.jit(compute_basis_functions, static_argnames=('degree',))


def compute_basis_functions_at(degree, U, u):
    """Locate the knot span of `u` and evaluate the non-vanishing basis functions there."""
    span = find_span(degree, U, u)
    return compute_basis_functions(degree, U, span, u)


def compute_one_basis_function(degree, U, i, u):
    """
    Evaluate the single basis function N_{i,p}(u).

    Implementation of Algorithm A2.4 from The NURBS Book. Used to assemble the coefficient
    matrices of curve fitting problems, where individual basis functions are needed.

    Parameters
    ----------
    degree : int
        Degree of the basis polynomials.
    U : array_like (r+1,)
        Knot vector.
    i : int
        Index of the basis function.
    u : scalar
        Parameter value.

    Returns
    -------
    N_ip : scalar
        Value of the basis function. Equal to 1 at the first (last) knot for the first (last)
        basis function, and 0 outside of the local support [U[i], U[i+p+1]).
    """
    U = jnp.asarray(U)
    u = jnp.asarray(u, dtype=jnp.float64)
    m = U.shape[0] - 1
    tol = settings.MAX_TOLERANCE

    at_boundary = ((i == 0) & (jnp.abs(u - U[0]) < tol)) | (
        (i == m - degree - 1) & (jnp.abs(u - U[m]) < tol)
    )
    outside = (u < U[i]) | (u >= U[i + degree + 1])

    # Initialize the zeroth-degree basis functions
    N = [jnp.where((u >= U[i + j]) & (u < U[i + j + 1]), 1.0, 0.0) for j in range(degree + 1)]

    # Compute the triangular table
    for k in range(1, degree + 1):
        saved = jnp.where(
            N[0] == 0.0, 0.0, ((u - U[i]) * N[0]) / _safe_denominator(U[i + k] - U[i])
        )
        for j in range(degree - k + 1):
            u_left = U[i + j + 1]
            u_right = U[i + j + k + 1]
            is_zero = N[j + 1] == 0.0
            temp = N[j + 1] / _safe_denominator(u_right - u_left)
            N[j] = jnp.where(is_zero, saved, saved + (u_right - u) * temp)
            saved = jnp.where(is_zero, 0.0, (u - u_left) * temp)

    value = jnp.where(outside, 0.0, N[0])
    return jnp.where(at_boundary, 1.0, value)

# Apply JIT compilation
compute_one_basis_function = jax.jit(compute_one_basis_function, static_argnames=('degree',))


# -------------------------------------------------------------------------------------------------------------------- #
# Standalone function to compute basis function derivatives
# -------------------------------------------------------------------------------------------------------------------- #
def compute_derivative_basis_functions(degree, U, span, u, order):
    """
    Evaluate the non-vanishing basis functions and their derivatives up to `order`.

    Implementation of Algorithm A2.3 from The NURBS Book. The `ndu` table stores the basis
    functions (upper triangle) and the knot differences (lower triangle). Derivatives are
    computed alternating two rows of coefficients, and each derivative row is finally
    scaled by p(p-1)...(p-k+1).

    Parameters
    ----------
    degree : int
        Degree of the basis polynomials.
    U : array_like (r+1,)
        Knot vector.
    span : int
        Index of the knot span containing `u`.
    u : scalar
        Parameter value.
    order : int
        Highest derivative order. Rows above `degree` are identically zero.

    Returns
    -------
    ders : ndarray (order+1, degree+1)
        ders[k, j] = k-th derivative of N_{span-degree+j,p} at u.
    """
    U = jnp.asarray(U)
    u = jnp.asarray(u, dtype=jnp.float64)
    p = degree
    du = min(order, p)

    left = [0.0] * (p + 1)
    right = [0.0] * (p + 1)
    ndu = [[0.0] * (p + 1) for _ in range(p + 1)]
    ndu[0][0] = 1.0

    for j in range(1, p + 1):
        left[j] = u - U[span + 1 - j]
        right[j] = U[span + j] - u
        saved = 0.0
        for r in range(j):
            # Lower triangle
            ndu[j][r] = right[r + 1] + left[j - r]
            temp = ndu[r][j - 1] / ndu[j][r]
            # Upper triangle
            ndu[r][j] = saved + right[r + 1] * temp
            saved = left[j - r] * temp
        ndu[j][j] = saved

    # Load the basis functions
    ders = [[0.0] * (p + 1) for _ in range(order + 1)]
    for j in range(p + 1):
        ders[0][j] = ndu[j][p]

    # Compute the derivatives, looping over the function index
    a = [[0.0] * (p + 1) for _ in range(2)]
    for r in range(p + 1):
        s1, s2 = 0, 1
        a[0][0] = 1.0

        for k in range(1, du + 1):
            d = 0.0
            rk = r - k
            pk = p - k

            if r >= k:
                a[s2][0] = a[s1][0] / ndu[pk + 1][rk]
                d = a[s2][0] * ndu[rk][pk]

            j1 = 1 if rk >= -1 else -rk
            j2 = k - 1 if r - 1 <= pk else p - r

            for j in range(j1, j2 + 1):
                a[s2][j] = (a[s1][j] - a[s1][j - 1]) / ndu[pk + 1][rk + j]
                d = d + a[s2][j] * ndu[rk + j][pk]

            if r <= pk:
                a[s2][k] = -a[s1][k - 1] / ndu[pk + 1][r]
                d = d + a[s2][k] * ndu[r][pk]

            ders[k][r] = d

            # Switch rows
            s1, s2 = s2, s1

    # Multiply through by the correct factors
    acc = p
    for k in range(1, du + 1):
        for j in range(p + 1):
            ders[k][j] = ders[k][j] * acc
        acc *= p - k

    return _stack_table(ders)

# Apply JIT compilation
compute_derivative_basis_functions = jax.jit(
    compute_derivative_basis_functions,
    static_argnames=('degree', 'order'),
)


# -------------------------------------------------------------------------------------------------------------------- #
# Standalone functions to evaluate curves
# -------------------------------------------------------------------------------------------------------------------- #
def _local_control_points(Pw, degree, span):
    """Homogeneous control points (ndim+1, degree+1) that are active in the given span"""
    return jnp.take(Pw, span - degree + jnp.arange(degree + 1), axis=1)


def compute_curve_point(Pw, degree, U, u):
    """
    Evaluate the coordinates of a NURBS curve at the parameter `u`.

    The curve is evaluated in homogeneous space with the non-vanishing basis functions
    and projected back with the perspective division (Algorithms A3.1 and A4.1).

    Parameters
    ----------
    Pw : ndarray (ndim+1, n+1)
        Homogeneous control points (x*w, y*w, z*w, w).
    degree : int
        Degree of the curve.
    U : ndarray (n+p+2,)
        Knot vector.
    u : scalar
        Parameter value.

    Returns
    -------
    C : ndarray (ndim,)
    """
    Pw = jnp.asarray(Pw)
    U = jnp.asarray(U)
    span = find_span(degree, U, u)
    N = compute_basis_functions(degree, U, span, u)
    C_w = _local_control_points(Pw, degree, span) @ N
    return dehomogenize(C_w)

# Apply JIT compilation
compute_curve_point = jax.jit(compute_curve_point, static_argnames=('degree',))


def compute_curve_derivatives(Pw, degree, U, u, n_derivs):
    """
    Evaluate the derivatives of the homogeneous curve C_w(u) up to order `n_derivs`.

    Implementation of Algorithm A3.2 from The NURBS Book applied to homogeneous control points.
    Orders higher than the degree are zero.

    Returns
    -------
    CK_w : ndarray (n_derivs+1, ndim+1)
        CK_w[k] = d^k C_w(u) / du^k
    """
    Pw = jnp.asarray(Pw)
    U = jnp.asarray(U)
    du = min(n_derivs, degree)

    span = find_span(degree, U, u)
    ders = compute_derivative_basis_functions(degree, U, span, u, du)
    Pw_local = _local_control_points(Pw, degree, span)

    CK_w = jnp.zeros((n_derivs + 1, Pw.shape[0]), dtype=Pw.dtype)
    for k in range(du + 1):
        CK_w = CK_w.at[k].set(Pw_local @ ders[k])
    return CK_w

# Apply JIT compilation
compute_curve_derivatives = jax.jit(compute_curve_derivatives, static_argnames=('degree', 'n_derivs'))


def compute_rational_curve_derivatives(Pw, degree, U, u, n_derivs):
    """
    Evaluate the derivatives of a NURBS curve in ordinary space up to order `n_derivs`.

    Applies the quotient rule recursively (Algorithm A4.2 from The NURBS Book):

        C^(k) = (A^(k) - sum_{i=1}^{k} C(k,i) w^(i) C^(k-i)) / w

    where A^(k) and w^(k) are the derivatives of the numerator and of the weight function.
    Each order depends on all the lower ones, so they are computed in increasing order.

    Returns
    -------
    CK : ndarray (n_derivs+1, ndim)
        CK[k] = d^k C(u) / du^k
    """
    CK_w = compute_curve_derivatives(Pw, degree, U, u, n_derivs)
    A_ders = CK_w[:, :-1]
    w_ders = CK_w[:, -1]

    CK = []
    for k in range(n_derivs + 1):
        v = A_ders[k]
        for i in range(1, k + 1):
            v = v - get_binomial(k, i) * w_ders[i] * CK[k - i]
        CK.append(v / w_ders[0])
    return jnp.stack(CK)

# Apply JIT compilation
compute_rational_curve_derivatives = jax.jit(
    compute_rational_curve_derivatives,
    static_argnames=('degree', 'n_derivs'),
)


def compute_rational_curve_tangent(Pw, degree, U, u):
    """First derivative C'(u) of a NURBS curve (not normalized)."""
    return compute_rational_curve_derivatives(Pw, degree, U, u, 1)[1]


def compute_curve_points(Pw, degree, U, u):
    """
    Evaluate the coordinates of a NURBS curve at several parameter values.

    Returns
    -------
    C : ndarray (ndim, N)
        The first dimension spans the coordinates and the second the parameter values.
    """
    u = jnp.atleast_1d(jnp.asarray(u, dtype=jnp.float64))
    points = jax.vmap(lambda uu: compute_curve_point(Pw, degree, U, uu))(u)
    return jnp.transpose(points)


# -------------------------------------------------------------------------------------------------------------------- #
# Curve-level evaluation
# -------------------------------------------------------------------------------------------------------------------- #
def curve_point_at(curve, u):
    """Point of `curve` at the parameter `u`, shape (ndim,)"""
    return compute_curve_point(curve.Pw, curve.p, curve.U, u)


def curve_derivatives(curve, u, n_derivs):
    """Derivatives of the homogeneous form of `curve`, shape (n_derivs+1, ndim+1)"""
    return compute_curve_derivatives(curve.Pw, curve.p, curve.U, u, n_derivs)


def rational_curve_derivatives(curve, u, n_derivs=1):
    """Derivatives of `curve` in ordinary space, shape (n_derivs+1, ndim)"""
    return compute_rational_curve_derivatives(curve.Pw, curve.p, curve.U, u, n_derivs)


def rational_curve_tangent(curve, u):
    """Tangent vector C'(u) of `curve`, shape (ndim,)"""
    return compute_rational_curve_tangent(curve.Pw, curve.p, curve.U, u)
