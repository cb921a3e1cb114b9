""" Example showing how to evaluate the non-vanishing basis functions and their derivatives """


# -------------------------------------------------------------------------------------------------------------------- #
# Importing packages
# -------------------------------------------------------------------------------------------------------------------- #
import numpy as np
import jax
import nurbskernel as nk
import matplotlib.pyplot as plt


# -------------------------------------------------------------------------------------------------------------------- #
# Basis functions and derivatives example
# -------------------------------------------------------------------------------------------------------------------- #
# Degree and knot vector from Example 2.4 of The NURBS Book
p = 2
knots = nk.KnotVector([0, 0, 0, 1, 2, 3, 4, 4, 5, 5, 5])
U = knots.values
n = len(knots) - p - 2

# Parameters used to sample the functions (the end of the domain is included)
u = np.linspace(0.00, 5.00, 1001)

# Evaluate the non-vanishing functions and scatter them into the full (n+1)-row table
def basis_table(uu):
    span = nk.find_span(p, U, uu)
    ders = nk.compute_derivative_basis_functions(p, U, span, uu, 2)
    table = jax.numpy.zeros((3, n + 1))
    return jax.lax.dynamic_update_slice(table, ders, (0, span - p))

tables = np.asarray(jax.vmap(basis_table)(u))   # (N, 3, n+1)


# -------------------------------------------------------------------------------------------------------------------- #
# Plot the basis functions
# -------------------------------------------------------------------------------------------------------------------- #
fig = plt.figure(figsize=(15, 4.5))
titles = ["Zeroth derivative", "First derivative", "Second derivative"]

for k, title in enumerate(titles):
    ax = fig.add_subplot(1, 3, k + 1)
    ax.set_title(title, fontsize=12, color='k', pad=12)
    ax.set_xlabel('$u$ parameter', fontsize=12, color='k', labelpad=12)
    ax.set_ylabel('Function value', fontsize=12, color='k', labelpad=12)
    for i in range(n + 1):
        line, = ax.plot(u, tables[:, k, i])
        line.set_linewidth(1.25)
        line.set_linestyle("-")
        line.set_marker(" ")
        line.set_label('index ' + str(i))

# Single basis functions (Algorithm A2.4) agree with the table
N_34 = [float(nk.compute_one_basis_function(p, U, 3, uu)) for uu in u]
print(f"Max difference N_3,2: {np.max(np.abs(np.asarray(N_34) - tables[:, 0, 3])):.3e}")

# Create legend
ax.legend(ncol=1, loc='right', bbox_to_anchor=(1.60, 0.50), fontsize=10, edgecolor='k', framealpha=1.0)

# Adjust pad
plt.tight_layout(pad=1.)

# Show the figure
plt.show()
