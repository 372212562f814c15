from __future__ import annotations
import math
import numpy as np
from dataclasses import dataclass
from typing import Optional

from numba import njit

from . import samples
from .config import SimulationConfig
from .errors import PreconditionViolation
from .grid import SpatialGrid


class Population:
    """
    Struct-of-arrays particle store; row i is particle i.

    targets, origins and colors are fixed at creation. positions, velocities
    and phase change every tick. phase counts up to config.viscosity_interval
    and staggers the neighbour-velocity recompute across particles.
    """

    def __init__(self, targets, origins, colors, viscosity_interval: int = 3):
        targets = np.asarray(targets, dtype=np.float64).reshape(-1, 2)
        origins = np.asarray(origins, dtype=np.float64).reshape(-1, 2)
        colors = np.asarray(colors, dtype=np.uint8).reshape(-1, 3)
        if not (targets.shape[0] == origins.shape[0] == colors.shape[0]):
            raise PreconditionViolation("targets, origins and colors must have the same length")

        self.targets = targets.copy()
        self.origins = origins.copy()
        self.colors = colors.copy()
        for arr in (self.targets, self.origins, self.colors):
            arr.setflags(write=False)

        self.viscosity_interval = viscosity_interval
        self.positions = self.origins.copy()
        self.velocities = np.zeros_like(self.positions)
        self.phase = self._initial_phase()

    def _initial_phase(self) -> np.ndarray:
        return np.arange(len(self), dtype=np.int64) % self.viscosity_interval

    def __len__(self) -> int:
        return int(self.targets.shape[0])

    @classmethod
    def scattered(cls, target_samples: samples.SampleSet, width: int, height: int,
                  seed: Optional[int] = 0, viscosity_interval: int = 3) -> "Population":
        """
        Single-image mode: one particle per target sample, coloured like the
        target, starting from a seeded uniform scatter over the canvas.
        """
        rng = np.random.default_rng(seed)
        origins = rng.random((len(target_samples), 2)) * np.array([width, height], dtype=np.float64)
        return cls(target_samples.positions, origins, target_samples.colors, viscosity_interval)

    @classmethod
    def from_mapping(cls, mapping, viscosity_interval: int = 3) -> "Population":
        """
        Transform mode: particles start on their paired source pixel and carry its colour.
        """
        return cls(mapping.target_positions, mapping.source_positions, mapping.colors, viscosity_interval)

    def reset(self):
        self.positions[:] = self.origins
        self.velocities[:] = 0.0
        self.phase = self._initial_phase()


@njit
def step_particles(
    positions,
    velocities,
    targets,
    phase,
    order,
    cell_start,
    cell_count,
    grid_w,
    grid_h,
    cell_size,
    width,
    height,
    spring,
    damping,
    blend,
    interval,
    radius_sq,
):
    n = positions.shape[0]
    row = grid_w + 1
    for p in range(n):
        x = positions[p, 0]
        y = positions[p, 1]
        vx = velocities[p, 0]
        vy = velocities[p, 1]

        fx = (targets[p, 0] - x) * spring
        fy = (targets[p, 1] - y) * spring

        phase[p] += 1
        if phase[p] >= interval:
            phase[p] = 0

            avg_vx = vx
            avg_vy = vy
            count = 1

            gx = int(math.floor(x / cell_size))
            gy = int(math.floor(y / cell_size))
            min_gx = gx - 1 if gx > 0 else 0
            max_gx = gx + 1 if gx < grid_w else grid_w
            min_gy = gy - 1 if gy > 0 else 0
            max_gy = gy + 1 if gy < grid_h else grid_h

            for i in range(min_gx, max_gx + 1):
                for j in range(min_gy, max_gy + 1):
                    k = j * row + i
                    start = cell_start[k]
                    for m in range(start, start + cell_count[k]):
                        q = order[m]
                        if q == p:
                            continue
                        dx = positions[q, 0] - x
                        dy = positions[q, 1] - y
                        if dx * dx + dy * dy < radius_sq:
                            avg_vx += velocities[q, 0]
                            avg_vy += velocities[q, 1]
                            count += 1

            if count > 1:
                avg_vx /= count
                avg_vy /= count
                vx = vx * (1.0 - blend) + avg_vx * blend
                vy = vy * (1.0 - blend) + avg_vy * blend

        vx = (vx + fx) * damping
        vy = (vy + fy) * damping
        x += vx
        y += vy

        if x < 0.0:
            x = 0.0
        elif x >= width:
            x = width - 1.0
        if y < 0.0:
            y = 0.0
        elif y >= height:
            y = height - 1.0

        positions[p, 0] = x
        positions[p, 1] = y
        velocities[p, 0] = vx
        velocities[p, 1] = vy


@dataclass
class SimulationState:
    population: Population
    grid: SpatialGrid
    config: SimulationConfig
    width: int
    height: int
    tick: int = 0


def new_state(population: Population, width: int, height: int,
              config: Optional[SimulationConfig] = None) -> SimulationState:
    config = (config or SimulationConfig()).validate()
    if population.viscosity_interval != config.viscosity_interval:
        raise PreconditionViolation("population stagger modulus differs from config.viscosity_interval")
    grid = SpatialGrid(width, height, config.cell_size)
    grid.rebuild(population.positions)
    return SimulationState(population, grid, config, width, height)


def tick(state: SimulationState) -> SimulationState:
    """
    Advance every particle by one frame: rebuild the grid from the positions left
    by the previous tick, then spring + viscosity + damping + integrate + clamp.
    """
    pop = state.population
    cfg = state.config
    grid = state.grid
    grid.rebuild(pop.positions)
    step_particles(
        pop.positions,
        pop.velocities,
        pop.targets,
        pop.phase,
        grid.order,
        grid.cell_start,
        grid.cell_count,
        grid.grid_w,
        grid.grid_h,
        float(grid.cell_size),
        float(state.width),
        float(state.height),
        cfg.spring_constant,
        cfg.damping,
        cfg.viscosity_blend,
        cfg.viscosity_interval,
        cfg.neighbor_radius_sq,
    )
    state.tick += 1
    return state


def reset(state: SimulationState) -> SimulationState:
    state.population.reset()
    state.grid.rebuild(state.population.positions)
    state.tick = 0
    return state
