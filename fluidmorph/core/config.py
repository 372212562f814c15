from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple

from .errors import PreconditionViolation


# corner / edge / centre weights of the 3x3 splat
DEFAULT_SPLAT_KERNEL: Tuple[Tuple[float, float, float], ...] = (
    (0.2, 0.5, 0.2),
    (0.5, 1.0, 0.5),
    (0.2, 0.5, 0.2),
)


@dataclass(frozen=True)
class SimulationConfig:
    """
    Every tunable of the particle simulation in one place.

    viscosity_interval is the modulus of the per-particle stagger counter:
    a particle recomputes its neighbour-average velocity once every
    `viscosity_interval` ticks.
    """

    spring_constant: float = 0.003
    damping: float = 0.9
    viscosity_blend: float = 0.15
    viscosity_interval: int = 3
    neighbor_radius_multiplier: float = 2.0
    cell_size: int = 8
    stride: int = 3
    splat_kernel: Tuple[Tuple[float, float, float], ...] = DEFAULT_SPLAT_KERNEL
    progress_interval: int = 10
    seed: int = 0

    def validate(self) -> "SimulationConfig":
        if self.stride < 1:
            raise PreconditionViolation(f"stride must be >= 1, got {self.stride}")
        if self.cell_size < 1:
            raise PreconditionViolation(f"cell_size must be >= 1, got {self.cell_size}")
        if self.viscosity_interval < 1:
            raise PreconditionViolation("viscosity_interval must be >= 1")
        if self.progress_interval < 1:
            raise PreconditionViolation("progress_interval must be >= 1")
        if len(self.splat_kernel) != 3 or any(len(row) != 3 for row in self.splat_kernel):
            raise PreconditionViolation("splat_kernel must be 3x3")
        return self

    @property
    def neighbor_radius_sq(self) -> float:
        return self.neighbor_radius_multiplier * self.cell_size * self.cell_size
