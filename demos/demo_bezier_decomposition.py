"""Example showing knot refinement, Bezier decomposition, splitting and arc length division of a NURBS curve."""

# -------------------------------------------------------------------------------------------------------------------- #
# Imports
# -------------------------------------------------------------------------------------------------------------------- #
import logging

import numpy as np
import matplotlib.pyplot as plt
import nurbskernel as nk

logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
nk.print_package_info()


# -------------------------------------------------------------------------------------------------------------------- #
# Cubic NURBS curve
# -------------------------------------------------------------------------------------------------------------------- #
P = np.array([[0.0, 1.0, 2.5, 4.0, 5.0, 6.5, 8.0, 9.0],
              [0.0, 2.0, -1.0, 3.0, 0.5, 2.0, -1.5, 1.0]])
W = [1.0, 0.8, 1.5, 1.0, 2.0, 0.7, 1.0, 1.2]
knots = nk.KnotVector([0, 0, 0, 0, 1, 2, 3, 4, 5, 5, 5, 5])
curve = nk.NurbsCurve(P, W, degree=3, knots=knots)
print(f"Knot vector: {curve.knots}")
print(f"Multiplicities: {curve.knots.multiplicities()}")

# Refinement does not change the shape of the curve
refined = nk.curve_knot_refine(curve, [0.5, 2.5, 2.5, 4.5])
u = np.linspace(0.0, 5.0, 201)
error = np.max(np.abs(refined.get_value(u) - curve.get_value(u)))
print(f"Refined knot vector: {refined.knots}")
print(f"Max deviation after refinement: {error:.3e}")

# Plot each Bezier segment in its own colour
fig, ax = curve.plot_bezier_segments()
ax.set_title("Bezier segments", fontsize=12, color='k', pad=12)


# -------------------------------------------------------------------------------------------------------------------- #
# Splitting and division by arc length
# -------------------------------------------------------------------------------------------------------------------- #
left, right = nk.split_curve(curve, 2.5)
print(f"Left curve knots:  {left.knots}")
print(f"Right curve knots: {right.knots}")

length = curve.length()
print(f"Curve length: {length:.6f}")
print(f"Sum of the halves: {left.length() + right.length():.6f}")

t_values, lengths = nk.divide_curve_by_count(curve, 10)
C = np.asarray(curve.get_value(np.asarray(t_values)))
ax.plot(C[0], C[1], linestyle=" ", marker="s", markersize=4, color="k")

plt.tight_layout(pad=1.)
plt.show()
