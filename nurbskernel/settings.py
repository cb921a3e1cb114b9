# nurbskernel global settings
import math

# Minimum difference to consider two floating point numbers the same
EPSILON = 1e-10

# Euclidean distances to consider two points coincident
MIN_TOLERANCE = 1e-6
MAX_TOLERANCE = 1e-3

# Square root of the machine epsilon, smallest curvature considered finite
SQRT_EPSILON = 1.490116119385e-08

# Value of an unset double
UNSET_VALUE = -1.23432101234321e308

# Order of the closed Clenshaw-Curtis rule used to integrate the arc length of each Bezier segment
# (quadax requires a multiple of 4)
QUADRATURE_POINTS = 40

# Maximum number of root-finding steps for arc length inversion
MAX_ROOT_FIND_STEPS = 256


def is_valid_double(x):
    """Return True if `x` is finite, not NaN and different from the unset value."""
    x = float(x)
    return abs(x - UNSET_VALUE) > 0.0 and not math.isinf(x) and not math.isnan(x)
