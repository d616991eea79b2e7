"""
Simulation constants and defaults shared by the kernel, renderer and pipeline
"""

import numpy as np

DT = 0.01  # Fixed integrator step (simulated seconds)
GRAVITY = 9.81
MAX_TRACE_POINTS = 1500

# Values given to links added by a resize
DEFAULT_MASS = 10.0
DEFAULT_LENGTH = 1.0
DEFAULT_THETA = np.pi / 1.5

DEFAULT_MASSES = (15.0, 10.0)
DEFAULT_LENGTHS = (1.5, 1.0)
DEFAULT_THETAS = (np.pi / 2, np.pi / 1.5)

SINGULAR_POLICIES = ("zero", "lstsq", "raise")
DEFAULT_SINGULAR_POLICY = "zero"

RESULTS_FILE = "simulation_results.npz"
