r"""
Brusselator patterns
====================

This example simulates the
`Brusselator <https://en.wikipedia.org/wiki/Brusselator>`_ with spatial coupling,

.. math::

    \partial_t C_1 &= \nabla^2 C_1 + k\bigl(k_a - (k_b + 1) C_1 + C_1^2 C_2\bigr) \\
    \partial_t C_2 &= D \nabla^2 C_2 + k\bigl(k_b C_1 - C_1^2 C_2\bigr)

for the three control parameters :math:`\mu` that lead to qualitatively different
patterns. The final states are shown side by side.
"""

import matplotlib.pyplot as plt

from rdsim import MU_VALUES, ExperimentSettings, run_sweep

# use a coarser grid and a shorter time than the full experiment
settings = ExperimentSettings(resolution=64, t_end=1000, output_dir=None, progress=True)
results = run_sweep(MU_VALUES, settings)

fig, axes = plt.subplots(ncols=len(results), figsize=(4 * len(results), 4))
for ax, result in zip(axes, results):
    result.state.C1.plot(ax=ax, title=f"$\\mu={result.mu:g}$")
plt.show()
