import numpy as np
import jax
import jax.numpy as jnp
import equinox as eqx

import matplotlib.pyplot as plt

from .knot_vector import KnotVector
from .linear_algebra import homogenize, dehomogenize_1d, get_weights
from .evaluation import (
    compute_curve_point,
    compute_curve_points,
    compute_rational_curve_derivatives,
)


# ----------------------------------------------------------- #
# Main NURBS curve class
# ----------------------------------------------------------- #
class NurbsCurve(eqx.Module):
    """Create a NURBS (Non-Uniform Rational Basis Spline) curve object

    Parameters
    ----------
    control_points : ndarray with shape (ndim, n+1)
        Array containing the coordinates of the control points
        The first dimension of `P` spans the coordinates of the control points (any number of dimensions)
        The second dimension of `P` spans the u-direction control points (0,1,...,n)
        When `homogeneous=True` the array holds the homogeneous points (x*w, y*w, z*w, w) instead

    weights : ndarray with shape (k,), k <= n+1
        Array containing the weight of the control points
        Control points beyond the end of the array get a unit weight

    degree : int
        Degree of the basis polynomials

    knots : KnotVector or ndarray with shape (r+1=n+p+2,)
        The knot vector in the u-direction
        Set the multiplicity of the first and last entries equal to `p+1` to obtain a clamped NURBS

    Notes
    -----
    The curve is stored as a triple (degree, knot vector, homogeneous control points) and is
    never modified in place. Knot refinement, Bezier decomposition and reversal in `modify`
    return new curves.

    The class can be used to represent polynomial and rational Bézier, B-Spline and NURBS curves
    The type of curve depends on the initialization arguments

        - Polymnomial Bézier: Provide the array of control points
        - Rational Bézier:    Provide the arrays of control points and weights
        - B-Spline:           Provide the array of control points, degree and (optionally) knot vector
        - NURBS:              Provide the arrays of control points and weights, degree and knot vector

    References
    ----------
    The NURBS Book. See references to equations and algorithms throughout the code
    L. Piegl and W. Tiller
    Springer, second edition

    """

    Pw: jnp.ndarray  # (ndim+1, n+1)
    p: int
    knots: KnotVector
    curve_type: str
    ndim: int

    def __init__(self, control_points, weights=None, degree=None, knots=None, homogeneous=False):

        P = jnp.asarray(control_points, dtype=jnp.float64)
        if P.ndim != 2:
            raise ValueError("control_points must have shape (ndim, n+1)")
        n = P.shape[1] - 1

        # Automatic curve type deduction from arguments
        if homogeneous:
            if weights is not None:
                raise ValueError("Weights are already part of the homogeneous control points")
            if degree is None or knots is None:
                raise ValueError("Homogeneous curves require the degree and the knot vector")
            self.curve_type = "NURBS"
            Pw = P

        elif weights is None and degree is None and knots is None:
            self.curve_type = "Bezier"
            degree = n
            Pw = homogenize(P)

        elif degree is None and knots is None:
            self.curve_type = "R-Bezier"
            degree = n
            Pw = homogenize(P, weights)

        elif degree is None:
            raise ValueError("The degree must be provided together with the knot vector")

        elif weights is None:
            self.curve_type = "B-Spline"
            Pw = homogenize(P)

        else:
            self.curve_type = "NURBS"
            Pw = homogenize(P, weights)

        if knots is None:
            knots = KnotVector.uniform(degree, n + 1)
        elif not isinstance(knots, KnotVector):
            knots = KnotVector(knots)

        # Assign class attributes
        self.Pw = Pw
        self.p = int(degree)
        self.knots = knots
        self.ndim = Pw.shape[0] - 1

        # Validation (only once at initialization)
        n_points = self.Pw.shape[1]
        if self.p < 1:
            raise ValueError("degree must be a positive integer")
        if len(self.knots) != n_points + self.p + 1:
            raise ValueError(
                f"Knot vector length {len(self.knots)} does not match n+p+2={n_points + self.p + 1}"
            )
        if not self.knots.is_valid(self.p, n_points):
            raise ValueError(f"Invalid knot vector {self.knots} for degree {self.p}")

    @classmethod
    def from_homogeneous(cls, degree, knots, Pw):
        """Create a curve from its degree, knot vector and homogeneous control points (ndim+1, n+1)"""
        return cls(Pw, degree=degree, knots=knots, homogeneous=True)

    # ---------------------------------------------------------------------------------------------------------------- #
    # Curve data
    # ---------------------------------------------------------------------------------------------------------------- #
    @property
    def degree(self):
        return self.p

    @property
    def U(self):
        return self.knots.values

    @property
    def P(self):
        """Control point coordinates (ndim, n+1)"""
        return dehomogenize_1d(self.Pw)

    @property
    def W(self):
        """Control point weights (n+1,)"""
        return get_weights(self.Pw)

    control_points = P
    weights = W
    homogenized_points = property(lambda self: self.Pw)

    @property
    def parameter_range(self):
        """First and last knot values"""
        return self.knots[0], self.knots[-1]

    @property
    def domain(self):
        """Length of the parameter range"""
        return self.knots.domain

    # ---------------------------------------------------------------------------------------------------------------- #
    # Define functions to compute NURBS properties
    # ---------------------------------------------------------------------------------------------------------------- #
    def point_at(self, u):
        """Evaluate the coordinates of the curve at the scalar parameter `u`, shape (ndim,)"""
        return compute_curve_point(self.Pw, self.p, self.U, jnp.asarray(u, dtype=jnp.float64))

    def derivatives(self, u, n_derivs=1):
        """Evaluate the curve and its derivatives at the scalar parameter `u`, shape (n_derivs+1, ndim)"""
        return compute_rational_curve_derivatives(
            self.Pw, self.p, self.U, jnp.asarray(u, dtype=jnp.float64), n_derivs
        )

    def tangent_at(self, u):
        """Evaluate the (not normalized) tangent vector C'(u) at the scalar parameter `u`"""
        return self.derivatives(u, 1)[1]

    @eqx.filter_jit
    def get_value(self, u):
        """Evaluate the coordinates of the curve for the input `u` parametrization

        Parameters
        ----------
        u : scalar or ndarray with shape (N,)
            Parameter used to evaluate the curve

        Returns
        -------
        C : ndarray with shape (ndim, N)
            Array containing the coordinates of the curve
            The first dimension of `C` spans the `(x,y,z)` coordinates
            The second dimension of `C` spans the `u` parametrization sample points

        """
        return compute_curve_points(self.Pw, self.p, self.U, u)

    @eqx.filter_jit
    def get_derivative(self, u, order):
        """Evaluate the derivative of the curve for the input u-parametrization

        Parameters
        ----------
        u : scalar or ndarray with shape (N,)
            Scalar or array containing the u-parameter used to evaluate the curve

        order : integer
            Order of the derivative

        Returns
        -------
        dC : ndarray with shape (ndim, N)
            Array containing the derivative of the desired order
            The first dimension of `dC` spans the `(x,y,z)` coordinates
            The second dimension of `dC` spans the `u` parametrization sample points

        """
        u = jnp.atleast_1d(jnp.asarray(u, dtype=jnp.float64))
        ders = jax.vmap(
            lambda uu: compute_rational_curve_derivatives(self.Pw, self.p, self.U, uu, order)[order]
        )(u)
        return jnp.transpose(ders)

    @eqx.filter_jit
    def get_tangent(self, u):
        """
        Evaluate the unit tangent vector along the curve for the given u-parameterization.

        The tangent is defined as:
            t(u) = C'(u) / ||C'(u)||

        """
        dC = self.get_derivative(u, 1)
        norm = jnp.linalg.norm(dC, axis=0, keepdims=True)
        return dC / jnp.where(norm == 0.0, 1.0, norm)

    @eqx.filter_jit
    def get_curvature(self, u):
        """Evaluate the curvature of the curve for the input u-parametrization

        The definition of the curvature is given by equation 10.7 (Farin's textbook)

        Parameters
        ----------
        u : scalar or ndarray with shape (N,)
            Scalar or array containing the u-parameter used to evaluate the curvature

        Returns
        -------
        curvature : ndarray with shape (N, )
            Array containing the curvature of the curve

        """
        dC = self.get_derivative(u, 1)
        ddC = self.get_derivative(u, 2)

        # Embed to 3D for consistent cross products
        dC3 = jnp.pad(dC, ((0, 3 - self.ndim), (0, 0)))
        ddC3 = jnp.pad(ddC, ((0, 3 - self.ndim), (0, 0)))

        num = jnp.linalg.norm(jnp.cross(dC3, ddC3, axisa=0, axisb=0, axisc=0), axis=0)
        denom = jnp.linalg.norm(dC3, axis=0) ** 3
        return num / jnp.where(denom == 0.0, 1.0, denom)

    def length(self, u=None):
        """Arc length of the curve from its first knot to `u` (last knot by default)"""
        from .analyze import curve_length
        return curve_length(self, u)

    # ---------------------------------------------------------------------------------------------------------------- #
    # Define functions for plotting
    # ---------------------------------------------------------------------------------------------------------------- #
    def plot(self, fig=None, ax=None, curve=True, control_points=True, axis_off=False, ticks_off=False):
        """Create a plot and return the figure and axes handles"""

        if fig is None:

            # One dimension (law of evolution)
            if self.ndim == 1:
                fig = plt.figure(figsize=(6, 5))
                ax = fig.add_subplot(111)
                ax.set_xlabel("$u$ parameter", fontsize=12, color="k", labelpad=12)
                ax.set_ylabel("NURBS curve value", fontsize=12, color="k", labelpad=12)

            # Two dimensions (plane curve)
            elif self.ndim == 2:
                fig = plt.figure(figsize=(6, 5))
                ax = fig.add_subplot(111)
                ax.set_xlabel("$x$ axis", fontsize=12, color="k", labelpad=12)
                ax.set_ylabel("$y$ axis", fontsize=12, color="k", labelpad=12)

            # Three dimensions (space curve)
            elif self.ndim == 3:
                fig = plt.figure(figsize=(6, 5))
                ax = fig.add_subplot(111, projection="3d")
                ax.view_init(azim=-120, elev=30)
                ax.grid(False)
                ax.set_xlabel("$x$ axis", fontsize=12, color="k", labelpad=12)
                ax.set_ylabel("$y$ axis", fontsize=12, color="k", labelpad=12)
                ax.set_zlabel("$z$ axis", fontsize=12, color="k", labelpad=12)

            else:
                raise ValueError("The number of dimensions must be 1, 2 or 3")

            if ticks_off:
                ax.set_xticks([])
                ax.set_yticks([])
            if axis_off:
                ax.axis("off")

        # Add objects to the plot
        if curve:
            self.plot_curve(fig, ax)
        if control_points:
            self.plot_control_points(fig, ax)

        return fig, ax

    def plot_curve(self, fig, ax, linewidth=1.5, linestyle="-", color="black", n_points=501):
        """Plot the coordinates of the NURBS curve"""

        u1, u2 = self.parameter_range
        u = jnp.linspace(u1, u2, n_points)
        C = self.get_value(u)

        if self.ndim == 1:
            (line,) = ax.plot(u, C[0, :])
        elif self.ndim in (2, 3):
            (line,) = ax.plot(*C)
        else:
            raise ValueError("The number of dimensions must be 1, 2 or 3")

        line.set_linewidth(linewidth)
        line.set_linestyle(linestyle)
        line.set_color(color)
        line.set_marker(" ")

        return fig, ax

    def plot_control_points(
        self,
        fig,
        ax,
        linewidth=1.25,
        linestyle="-.",
        color="red",
        markersize=5,
        markerstyle="o",
    ):
        """Plot the control points of the NURBS curve"""

        P = self.P
        if self.ndim == 1:
            u = jnp.linspace(0.0, 1.0, P.shape[1])
            (line,) = ax.plot(u, P[0, :])
        elif self.ndim in (2, 3):
            (line,) = ax.plot(*P)
        else:
            raise ValueError("The number of dimensions must be 1, 2 or 3")

        line.set_linewidth(linewidth)
        line.set_linestyle(linestyle)
        line.set_color(color)
        line.set_marker(markerstyle)
        line.set_markersize(markersize)
        line.set_markeredgewidth(linewidth)
        line.set_markeredgecolor(color)
        line.set_markerfacecolor("w")
        line.set_zorder(4)

        return fig, ax

    def plot_bezier_segments(self, fig=None, ax=None, cmap="viridis", linewidth=2.0):
        """Plot each Bezier segment of the curve in its own colour"""
        from .modify import decompose_curve_into_beziers

        if fig is None:
            fig, ax = self.plot(curve=False)

        segments = decompose_curve_into_beziers(self)
        colors = plt.get_cmap(cmap)(np.linspace(0.0, 1.0, len(segments)))
        for segment, color in zip(segments, colors):
            segment.plot_curve(fig, ax, linewidth=linewidth, color=color)

        return fig, ax
