import os
os.environ["JAX_PLATFORM_NAME"] = "cpu"
import jax
jax.config.update("jax_enable_x64", True)

# Import kernel modules
from . import settings
from .knot_vector import KnotVector, find_span
from .linear_algebra import (
    homogenize,
    homogenize_with_weight,
    homogenize_2d,
    dehomogenize,
    dehomogenize_1d,
    dehomogenize_2d,
    get_weights,
    get_weights_2d,
    rational_points,
    rational_1d,
    rational_2d,
    get_binomial,
)
from .evaluation import (
    compute_basis_functions,
    compute_basis_functions_at,
    compute_one_basis_function,
    compute_derivative_basis_functions,
    compute_curve_point,
    compute_curve_points,
    compute_curve_derivatives,
    compute_rational_curve_derivatives,
    compute_rational_curve_tangent,
    curve_point_at,
    curve_derivatives,
    rational_curve_derivatives,
    rational_curve_tangent,
)
from .nurbs_curve import NurbsCurve
from .modify import (
    curve_knot_refine,
    decompose_curve_into_beziers,
    elevate_degree,
    reverse_curve,
    split_curve,
)
from .analyze import (
    bezier_length,
    curve_length,
    bezier_parameter_at_length,
    curve_parameter_at_length,
    divide_curve_by_length,
    divide_curve_by_count,
    regular_sample,
    curvature_vector,
    curve_closest_parameter,
    curve_closest_point,
)

# Package info
__version__ = "0.1.0"
PACKAGE_NAME = "nurbskernel"
BREAKLINE = 80 * "-"


def print_banner():
    """Prints a banner."""
    banner = r"""
                         __         __                     __
       ____  __  _______/ /_  _____/ /_____  _________  __/ /
      / __ \/ / / / ___/ __ \/ ___/ //_/ _ \/ ___/ __ \/ _  /
     / / / / /_/ / /  / /_/ (__  ) ,< /  __/ /  / / / /  __/
    /_/ /_/\__,_/_/  /_.___/____/_/|_|\___/_/  /_/ /_/\___/
    """
    print(BREAKLINE)
    print(banner)
    print(BREAKLINE)


def print_package_info():
    """Prints package information with predefined values."""

    info = f""" Version:       {__version__}
 Precision:     {jax.numpy.asarray(0.0).dtype}
 Platform:      {jax.default_backend()}"""
    print_banner()
    print(BREAKLINE)
    print(info)
    print(BREAKLINE)


# NURBS curve minimal working example
def minimal_example():

    # Import packages
    import numpy as np
    import matplotlib.pyplot as plt
    print_package_info()

    # Define the array of control points
    P = np.zeros((2, 5))
    P[:, 0] = [0.20, 0.50]
    P[:, 1] = [0.40, 0.70]
    P[:, 2] = [0.80, 0.60]
    P[:, 3] = [0.80, 0.40]
    P[:, 4] = [0.40, 0.20]

    # Create a cubic B-Spline and plot its Bezier segments
    curve = NurbsCurve(control_points=P, degree=3)
    curve.plot_bezier_segments()
    plt.show()
