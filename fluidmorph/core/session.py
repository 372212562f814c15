"""
session.py

Command surface around one particle animation.

A MorphSession owns the target raster, the optional second raster, the
current SimulationState and the last rendered frame. The host calls
frame() once per display frame; start / pause / reset / toggle_transform_mode
are the user commands.
"""

from __future__ import annotations
from enum import Enum
from typing import Optional

import numpy as np

from . import particles, rearrange, samples, splat, utils
from .cache import MappingCache
from .config import SimulationConfig
from .errors import MissingInput
from .progress import estimate_progress


class Status(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    REINITIALIZING = "reinitializing"


class MorphSession:

    def __init__(
        self,
        target: np.ndarray,
        second: Optional[np.ndarray] = None,
        config: Optional[SimulationConfig] = None,
        cache: Optional[MappingCache] = None,
        verbose: bool = False,
    ):
        self.target = utils.check_raster(target)
        self.height, self.width = self.target.shape[:2]
        self.second = None if second is None else self._checked_second(second)
        self.config = (config or SimulationConfig()).validate()
        self.cache = cache
        self.verbose = verbose

        self.transform_mode = False
        self.mapping: Optional[rearrange.PixelMapping] = None
        self.progress = 0.0
        self.status = Status.IDLE
        self._target_samples = samples.extract_samples(self.target, self.config.stride)
        self._reinitialize()

    def _checked_second(self, second) -> np.ndarray:
        second = utils.check_raster(second)
        utils.check_same_shape(self.target, second)
        return second

    @property
    def mode(self) -> str:
        return "transform" if self.transform_mode else "single"

    @property
    def state(self) -> particles.SimulationState:
        return self._state

    @property
    def tick_count(self) -> int:
        return self._state.tick

    def _reinitialize(self):
        self.status = Status.REINITIALIZING
        interval = self.config.viscosity_interval
        if self.transform_mode:
            self.mapping = rearrange.build_pixel_mapping(
                self.target, self.second, stride=self.config.stride, cache=self.cache, verbose=self.verbose
            )
            population = particles.Population.from_mapping(self.mapping, interval)
        else:
            self.mapping = None
            population = particles.Population.scattered(
                self._target_samples, self.width, self.height, seed=self.config.seed, viscosity_interval=interval
            )
        self._state = particles.new_state(population, self.width, self.height, self.config)
        self.progress = 0.0
        self.last_frame = self.render()
        self.status = Status.IDLE

    def render(self) -> np.ndarray:
        pop = self._state.population
        return splat.splat(pop.positions, pop.colors, self.width, self.height, self.config.splat_kernel)

    def update_progress(self) -> float:
        pop = self._state.population
        self.progress = estimate_progress(pop.positions, pop.targets, self.width, self.height)
        return self.progress

    # commands

    def start(self):
        self.status = Status.RUNNING

    def pause(self):
        self.status = Status.IDLE

    def toggle_running(self) -> Status:
        if self.status == Status.RUNNING:
            self.pause()
        else:
            self.start()
        return self.status

    def reset(self):
        """
        Stop, put every particle back on its origin with zero velocity and
        clear the tick counter. The pairing is kept as is.
        """
        self.status = Status.IDLE
        particles.reset(self._state)
        self.progress = 0.0
        self.last_frame = self.render()

    def toggle_transform_mode(self, second: Optional[np.ndarray] = None) -> str:
        """
        Switch between single-image and transform mode and rebuild the population.

        Raises MissingInput, leaving the session untouched, when no second
        raster was ever supplied.
        """
        if second is not None:
            second = self._checked_second(second)
        elif self.second is None:
            raise MissingInput("a second image is required to enable transformation mode")

        if second is not None:
            self.second = second
        self.transform_mode = not self.transform_mode
        self._reinitialize()
        return self.mode

    def frame(self) -> np.ndarray:
        """
        One external frame signal: tick and render when running, otherwise
        hand back the last frame unchanged.
        """
        if self.status != Status.RUNNING:
            return self.last_frame

        particles.tick(self._state)
        self.last_frame = self.render()
        if (self._state.tick - 1) % self.config.progress_interval == 0:
            self.update_progress()
        return self.last_frame
