"""
N-Pendulum Simulation
Numerically integrate the equations of motion
"""

from __future__ import annotations

import time
from pathlib import Path

import numpy as np
from scipy.integrate import solve_ivp

import sim_config
from function_generator import build_equations_of_motion, compute_accelerations, load_pendulum_equations
from kinematics import bob_positions
from pendulum_types import (
    DimensionMismatchError,
    PendulumParameters,
    PendulumState,
    PendulumSystem,
    check_dimensions,
)

DT = sim_config.DT

REFERENCE_SOLVER_KWARGS = dict(
    method='DOP853',  # High-order Runge-Kutta method (similar to ode89)
    rtol=1e-12,
    atol=1e-14,
    max_step=5e-3,
    first_step=1e-5,
)


def rk4_step(
    state: PendulumState,
    params: PendulumParameters,
    dt: float,
    singular_policy: str = sim_config.DEFAULT_SINGULAR_POLICY,
) -> PendulumState:
    """Advance the chain by one classical Runge-Kutta step of length dt."""
    if dt <= 0:
        raise ValueError(f"Time step must be positive, got {dt}")
    check_dimensions(state, params)

    def derivative(u: np.ndarray) -> np.ndarray:
        s = PendulumState.from_vector(u)
        return np.concatenate([s.omegas, compute_accelerations(s, params, singular_policy)])

    u = state.as_vector()
    k1 = derivative(u)
    k2 = derivative(u + 0.5 * dt * k1)
    k3 = derivative(u + 0.5 * dt * k2)
    k4 = derivative(u + dt * k3)
    return PendulumState.from_vector(u + (dt / 6.0) * (k1 + 2 * k2 + 2 * k3 + k4))


def integrate_reference(
    params: PendulumParameters,
    state: PendulumState,
    T: float,
    t_eval: np.ndarray | None = None,
    equations_of_motion=None,
) -> tuple[np.ndarray, np.ndarray]:
    """
    High-accuracy adaptive solution of the same equations with scipy.

    Returns
    -------
    t : array
        Time points
    u : array
        State vectors [theta, omega] at each time point (shape: len(t) x 2N)
    """
    check_dimensions(state, params)
    if equations_of_motion is None:
        equations_of_motion = build_equations_of_motion(params)
    sol = solve_ivp(
        equations_of_motion,
        [0, T],
        state.as_vector(),
        t_eval=t_eval,
        **REFERENCE_SOLVER_KWARGS,
    )
    if not sol.success:
        raise RuntimeError(f"Reference integration failed: {sol.message}")
    return sol.t, sol.y.T


class PendulumSimulation:
    """
    Owns the current state of one chain and advances it in fixed ticks.

    The state is replaced wholesale on every step() or reset(); nothing outside
    the simulation mutates it.
    """

    def __init__(
        self,
        params: PendulumParameters,
        state: PendulumState,
        dt: float = DT,
        singular_policy: str = sim_config.DEFAULT_SINGULAR_POLICY,
    ):
        if dt <= 0:
            raise ValueError(f"Time step must be positive, got {dt}")
        if singular_policy not in sim_config.SINGULAR_POLICIES:
            raise ValueError(f"Unknown singular policy '{singular_policy}'")
        self._params = params
        self._state = state
        self._dt = dt
        self.singular_policy = singular_policy
        self._time = 0.0
        self._step_count = 0

    @classmethod
    def from_system(cls, system: PendulumSystem, **kwargs) -> "PendulumSimulation":
        return cls(system.parameters, system.state, **kwargs)

    @property
    def state(self) -> PendulumState:
        return self._state

    @property
    def params(self) -> PendulumParameters:
        return self._params

    @property
    def dt(self) -> float:
        return self._dt

    @property
    def time(self) -> float:
        return self._time

    @property
    def step_count(self) -> int:
        return self._step_count

    def step(self) -> None:
        check_dimensions(self._state, self._params)
        self._state = rk4_step(self._state, self._params, self._dt, self.singular_policy)
        self._step_count += 1
        self._time = self._step_count * self._dt

    def advance(self, steps: int) -> None:
        for _ in range(steps):
            self.step()

    def reset(self, state: PendulumState) -> None:
        self._state = state
        self._time = 0.0
        self._step_count = 0

    def set_parameters(self, params: PendulumParameters) -> None:
        self._params = params

    def load(self, system: PendulumSystem) -> None:
        """Swap parameters and state together, e.g. after a resize."""
        self._params = system.parameters
        self.reset(system.state)


def _accumulate_positions(state: PendulumState, params: PendulumParameters,
                          x: np.ndarray, y: np.ndarray, frame: int, idx: int) -> None:
    """Store Cartesian coordinates of one instance for one frame."""
    x[frame, :, idx], y[frame, :, idx] = bob_positions(state, params)


def _check_saved_equations(payload: dict, params: PendulumParameters, source) -> None:
    """Refuse equations that were generated for a different chain."""
    if int(payload['N']) != params.count:
        raise DimensionMismatchError(
            f"Equations in {source} are for N={payload['N']}, parameters describe N={params.count}"
        )
    saved_masses = np.asarray(payload['masses'], dtype=float)
    saved_lengths = np.asarray(payload['lengths'], dtype=float)
    if (not np.array_equal(saved_masses, params.masses)
            or not np.array_equal(saved_lengths, params.lengths)
            or float(payload['gravity']) != params.g):
        raise ValueError(
            f"Equations in {source} were generated for masses={saved_masses.tolist()}, "
            f"lengths={saved_lengths.tolist()}, g={payload['gravity']}; "
            f"regenerate them for masses={params.masses.tolist()}, lengths={params.lengths.tolist()}, g={params.g}"
        )


def _simulate_rk4(params: PendulumParameters, state: PendulumState, Frame: int, steps_per_frame: int,
                  singular_policy: str):
    simulation = PendulumSimulation(params, state, singular_policy=singular_policy)
    yield simulation.state
    for _ in range(Frame - 1):
        simulation.advance(steps_per_frame)
        yield simulation.state


def _simulate_dop853(params: PendulumParameters, state: PendulumState, T: float, t: np.ndarray,
                     equations_of_motion):
    _, u = integrate_reference(params, state, T, t_eval=t, equations_of_motion=equations_of_motion)
    for row in u:
        yield PendulumState.from_vector(row)


def simulate_pendulum(
    params: PendulumParameters,
    initial_state: PendulumState | None = None,
    T: float = 100,
    M: int = 100,
    perturbation: float = 1e-8,
    fps: int = 60,
    method: str = 'rk4',
    singular_policy: str = sim_config.DEFAULT_SINGULAR_POLICY,
    equations_file: str | Path | None = None,
    output: str | Path | None = sim_config.RESULTS_FILE,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Simulate M instances of N-pendulum with slightly different initial conditions

    Parameters:
    -----------
    params : PendulumParameters
        Masses, lengths and gravity shared by every instance
    initial_state : PendulumState | None
        Starting state (default: every link horizontal and at rest)
    T : float
        Total simulation time
    M : int
        Number of pendulum instances (with slightly different initial conditions)
    perturbation : float
        Small perturbation to initial conditions to show chaos
    fps : int
        Frames sampled per simulated second
    method : str
        'rk4' for the fixed-step kernel or 'dop853' for the adaptive reference integrator
    equations_file : path | None
        Pickled equations from function_generator, used by 'dop853' when given
    output : path | None
        Where to save the results (.npz); None skips saving

    Returns:
    --------
    t : array
        Time points
    x : array
        X positions of the pivot and all masses (shape: Frame x N+1 x M)
    y : array
        Y positions of the pivot and all masses (shape: Frame x N+1 x M)
    """

    if method not in ('rk4', 'dop853'):
        raise ValueError(f"Unknown method '{method}'. Use 'rk4' or 'dop853'.")
    if T <= 0 or M < 1 or fps < 1:
        raise ValueError(f"Need T > 0, M >= 1 and fps >= 1, got T={T}, M={M}, fps={fps}")

    N = params.count
    if initial_state is None:
        initial_state = PendulumState.at_rest(np.ones(N) * np.pi / 2)
    check_dimensions(initial_state, params)

    equations_of_motion = None
    if method == 'dop853':
        if equations_file is not None:
            print(f"Loading equations from {equations_file}...")
            payload = load_pendulum_equations(equations_file)
            _check_saved_equations(payload, params, equations_file)
            equations_of_motion = payload['equations_of_motion']
        else:
            equations_of_motion = build_equations_of_motion(params, singular_policy)

    # Whole integrator steps between frames keep the rk4 grid aligned with t
    steps_per_frame = max(1, int(round(1.0 / (fps * DT))))
    frame_dt = steps_per_frame * DT if method == 'rk4' else 1.0 / fps
    Frame = int(np.floor(T / frame_dt + 1e-9)) + 1
    t = np.arange(Frame) * frame_dt

    # Initialize position arrays
    x = np.zeros((Frame, N+1, M))
    y = np.zeros((Frame, N+1, M))

    print(f"Simulating {M} pendulum instances with {method}...")
    tic = time.time()

    for ii in range(M):
        initial_angles = initial_state.thetas - ii / M * perturbation
        state = PendulumState(initial_angles, initial_state.omegas)
        if method == 'rk4':
            states = _simulate_rk4(params, state, Frame, steps_per_frame, singular_policy)
        else:
            states = _simulate_dop853(params, state, max(T, t[-1]), t, equations_of_motion)

        for frame, s in enumerate(states):
            _accumulate_positions(s, params, x, y, frame, ii)

        if (ii + 1) % 10 == 0 or ii + 1 == M:
            print(f"Progress: {ii+1}/{M}")

    toc = time.time()
    print(f"Simulation completed in {toc-tic:.1f} seconds")

    if output is not None:
        np.savez(output, t=t, x=x, y=y, N=N, M=M)
        print(f"Results saved to {output}")

    return t, x, y


if __name__ == '__main__':
    # Run simulation
    params = PendulumParameters(masses=np.ones(3), lengths=np.ones(3))
    t, x, y = simulate_pendulum(params, T=100, M=100)
