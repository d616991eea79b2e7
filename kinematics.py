"""
Forward kinematics, mechanical energy and the bounded bob trace
"""

from __future__ import annotations

from collections import deque
from typing import Tuple

import numpy as np

import sim_config
from pendulum_types import PendulumParameters, PendulumState, check_dimensions


def bob_positions(state: PendulumState, params: PendulumParameters) -> Tuple[np.ndarray, np.ndarray]:
    """
    Cartesian position of the pivot and every bob.

    Index 0 is the pivot at the origin; y grows downward, so a chain hanging at
    rest lies along +y.
    """
    check_dimensions(state, params)
    x = np.concatenate([[0.0], np.cumsum(params.lengths * np.sin(state.thetas))])
    y = np.concatenate([[0.0], np.cumsum(params.lengths * np.cos(state.thetas))])
    return x, y


def bob_velocities(state: PendulumState, params: PendulumParameters) -> Tuple[np.ndarray, np.ndarray]:
    check_dimensions(state, params)
    vx = np.cumsum(params.lengths * np.cos(state.thetas) * state.omegas)
    vy = np.cumsum(-params.lengths * np.sin(state.thetas) * state.omegas)
    return vx, vy


def total_energy(state: PendulumState, params: PendulumParameters) -> float:
    """Kinetic plus gravitational potential energy, zero potential at the pivot."""
    _, y = bob_positions(state, params)
    vx, vy = bob_velocities(state, params)
    kinetic = 0.5 * np.sum(params.masses * (vx**2 + vy**2))
    potential = -params.g * np.sum(params.masses * y[1:])
    return float(kinetic + potential)


class TraceBuffer:
    """Fixed-capacity FIFO of last-bob positions; the oldest point is evicted first."""

    def __init__(self, capacity: int = sim_config.MAX_TRACE_POINTS):
        if capacity <= 0:
            raise ValueError(f"Trace capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._points: deque = deque(maxlen=capacity)

    def append(self, x: float, y: float) -> None:
        self._points.append((float(x), float(y)))

    def clear(self) -> None:
        self._points.clear()

    def __len__(self) -> int:
        return len(self._points)

    def as_arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        if not self._points:
            return np.zeros(0), np.zeros(0)
        xs, ys = zip(*self._points)
        return np.array(xs), np.array(ys)
