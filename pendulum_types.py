"""
N-Pendulum data model
Parameters, state and the bundled system used by the simulation kernel
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

import sim_config


class DimensionMismatchError(ValueError):
    """Raised when parallel pendulum arrays disagree on the number of links."""


class SingularMatrixError(np.linalg.LinAlgError):
    """Raised by the linear solver under the 'raise' singular policy."""


def _frozen_array(values: Sequence[float] | np.ndarray) -> np.ndarray:
    arr = np.array(values, dtype=float).reshape(-1)
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True)
class PendulumParameters:
    masses: np.ndarray
    lengths: np.ndarray
    g: float = sim_config.GRAVITY

    def __post_init__(self) -> None:
        object.__setattr__(self, "masses", _frozen_array(self.masses))
        object.__setattr__(self, "lengths", _frozen_array(self.lengths))
        object.__setattr__(self, "g", float(self.g))
        if self.masses.shape != self.lengths.shape:
            raise DimensionMismatchError(
                f"Got {self.masses.size} masses but {self.lengths.size} lengths"
            )

    @property
    def count(self) -> int:
        return self.masses.size


@dataclass(frozen=True)
class PendulumState:
    thetas: np.ndarray
    omegas: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "thetas", _frozen_array(self.thetas))
        object.__setattr__(self, "omegas", _frozen_array(self.omegas))
        if self.thetas.shape != self.omegas.shape:
            raise DimensionMismatchError(
                f"Got {self.thetas.size} angles but {self.omegas.size} angular velocities"
            )

    @property
    def count(self) -> int:
        return self.thetas.size

    @classmethod
    def at_rest(cls, thetas: Sequence[float] | np.ndarray) -> "PendulumState":
        """State with the given angles and every link at rest."""
        thetas = np.asarray(thetas, dtype=float).reshape(-1)
        return cls(thetas, np.zeros_like(thetas))

    def as_vector(self) -> np.ndarray:
        """Flat [theta_0..theta_N-1, omega_0..omega_N-1] vector."""
        return np.concatenate([self.thetas, self.omegas])

    @classmethod
    def from_vector(cls, u: np.ndarray) -> "PendulumState":
        u = np.asarray(u, dtype=float)
        if u.size % 2:
            raise DimensionMismatchError(f"State vector must have even length, got {u.size}")
        n = u.size // 2
        return cls(u[:n], u[n:])


def check_dimensions(state: PendulumState, params: PendulumParameters) -> None:
    """Reject a state whose link count differs from the parameters'."""
    if state.count != params.count:
        raise DimensionMismatchError(
            f"State has {state.count} links but parameters describe {params.count}; "
            "resize both together before stepping"
        )


@dataclass(frozen=True)
class PendulumSystem:
    """
    Masses, lengths, angles and angular velocities of one chain, kept together.

    Changing the number of links goes through resize(), which reshapes all four
    sequences at once so they can never disagree.
    """

    masses: np.ndarray
    lengths: np.ndarray
    thetas: np.ndarray
    omegas: np.ndarray
    g: float = sim_config.GRAVITY

    def __post_init__(self) -> None:
        for name in ("masses", "lengths", "thetas", "omegas"):
            object.__setattr__(self, name, _frozen_array(getattr(self, name)))
        object.__setattr__(self, "g", float(self.g))
        sizes = {self.masses.size, self.lengths.size, self.thetas.size, self.omegas.size}
        if len(sizes) != 1:
            raise DimensionMismatchError(
                f"Inconsistent link counts: masses={self.masses.size}, lengths={self.lengths.size}, "
                f"thetas={self.thetas.size}, omegas={self.omegas.size}"
            )

    @property
    def count(self) -> int:
        return self.masses.size

    @property
    def parameters(self) -> PendulumParameters:
        return PendulumParameters(self.masses, self.lengths, self.g)

    @property
    def state(self) -> PendulumState:
        return PendulumState(self.thetas, self.omegas)

    @classmethod
    def from_parts(cls, params: PendulumParameters, state: PendulumState) -> "PendulumSystem":
        check_dimensions(state, params)
        return cls(params.masses, params.lengths, state.thetas, state.omegas, params.g)

    def resize(
        self,
        count: int,
        mass: float = sim_config.DEFAULT_MASS,
        length: float = sim_config.DEFAULT_LENGTH,
        theta: float = sim_config.DEFAULT_THETA,
    ) -> "PendulumSystem":
        """Return a copy with `count` links, truncating or padding every sequence together."""
        if count < 0:
            raise ValueError(f"Link count must be non-negative, got {count}")
        if count == self.count:
            return self
        if count < self.count:
            return PendulumSystem(
                self.masses[:count],
                self.lengths[:count],
                self.thetas[:count],
                self.omegas[:count],
                self.g,
            )
        extra = count - self.count
        return PendulumSystem(
            np.concatenate([self.masses, np.full(extra, mass)]),
            np.concatenate([self.lengths, np.full(extra, length)]),
            np.concatenate([self.thetas, np.full(extra, theta)]),
            np.concatenate([self.omegas, np.zeros(extra)]),
            self.g,
        )


def default_system() -> PendulumSystem:
    """Two-link chain the interactive view starts from."""
    return PendulumSystem(
        masses=sim_config.DEFAULT_MASSES,
        lengths=sim_config.DEFAULT_LENGTHS,
        thetas=sim_config.DEFAULT_THETAS,
        omegas=np.zeros(len(sim_config.DEFAULT_THETAS)),
        g=sim_config.GRAVITY,
    )
