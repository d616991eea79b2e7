from __future__ import annotations

import time
from pathlib import Path
from typing import Callable, Dict, Tuple

import dill
import numpy as np

import sim_config
from linear_solver import solve_linear_system
from pendulum_types import PendulumParameters, PendulumState, check_dimensions


def tail_masses(masses: np.ndarray) -> np.ndarray:
    """Mass of each bob plus every bob further down the chain."""
    masses = np.asarray(masses, dtype=float)
    return np.cumsum(masses[::-1])[::-1]


def assemble_dynamics(state: PendulumState, params: PendulumParameters) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build the system M @ alpha = C for the angular accelerations alpha.

    M[i, j] = l[j] cos(theta_i - theta_j) T[max(i, j)]
    C[i]    = -g sin(theta_i) T[i] - sum_j l[j] sin(theta_i - theta_j) omega_j^2 T[max(i, j)]
    """

    check_dimensions(state, params)
    n = params.count
    if n == 0:
        return np.zeros((0, 0)), np.zeros(0)

    theta = state.thetas
    omega = state.omegas

    # Coupling matrix holds the mass lying beyond joint max(i, j)
    idx = np.arange(n)
    coupling = tail_masses(params.masses)[np.maximum.outer(idx, idx)]

    delta = theta[:, None] - theta[None, :]
    weighted = coupling * params.lengths[None, :]

    mass_matrix = weighted * np.cos(delta)
    centrifugal = (weighted * np.sin(delta)) @ omega**2
    gravity_term = params.g * np.sin(theta) * coupling.diagonal()

    return mass_matrix, -gravity_term - centrifugal


def compute_accelerations(
    state: PendulumState,
    params: PendulumParameters,
    singular_policy: str = sim_config.DEFAULT_SINGULAR_POLICY,
) -> np.ndarray:
    """Angular accelerations of every link for the given state."""
    check_dimensions(state, params)
    if params.count == 0:
        return np.zeros(0)
    mass_matrix, rhs = assemble_dynamics(state, params)
    return solve_linear_system(mass_matrix, rhs, singular_policy)


def build_equations_of_motion(
    params: PendulumParameters,
    singular_policy: str = sim_config.DEFAULT_SINGULAR_POLICY,
) -> Callable:
    """
    equations of motion for N-link pendulum.
    """

    N = params.count

    def equations_of_motion(t: float, u: np.ndarray) -> np.ndarray:
        """Return time derivative of state [theta, omega]."""

        state = PendulumState(u[:N], u[N:])
        theta_ddot = compute_accelerations(state, params, singular_policy)
        return np.concatenate([state.omegas, theta_ddot])

    return equations_of_motion


def generate_pendulum_equations(
    params: PendulumParameters,
    output_dir: str | Path = ".",
    singular_policy: str = sim_config.DEFAULT_SINGULAR_POLICY,
) -> Dict[str, object]:
    """
    Build and persist the equations of motion for an N-link pendulum.

    Returns the dictionary that is written to disk for convenience.
    """

    N = params.count
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    filename = output_dir / f"func_N{N}k.pkl"

    print(f"Building equations of motion for N={N}...")
    tic = time.time()
    equations_of_motion = build_equations_of_motion(params, singular_policy)
    payload = {
        "N": N,
        "gravity": params.g,
        "masses": params.masses.tolist(),
        "lengths": params.lengths.tolist(),
        "equations_of_motion": equations_of_motion,
    }

    with open(filename, "wb") as f:
        dill.dump(payload, f)

    toc = time.time()
    print(f"Saved equations to {filename} in {toc - tic:.2f} s")
    return payload


def load_pendulum_equations(path: str | Path) -> Dict[str, object]:
    with open(path, "rb") as f:
        return dill.load(f)


if __name__ == "__main__":
    generate_pendulum_equations(PendulumParameters(sim_config.DEFAULT_MASSES, sim_config.DEFAULT_LENGTHS))
