from __future__ import annotations
import numpy as np
from math import sqrt
from typing import Callable, Iterator, Optional, Tuple

from . import distance, samples
from .errors import PreconditionViolation

UNASSIGNED = -1

ProgressCallback = Optional[Callable[[int, str], None]]


class SourcePool:
    """
    Shrinking array of available source indices.

    take() moves the last live entry into the freed slot, so removal is O(1)
    and the live entries stay contiguous in view().
    """

    def __init__(self, indices):
        self._items = np.array(indices, dtype=np.int64).ravel()
        self._size = int(self._items.shape[0])

    @classmethod
    def union(cls, *pools: "SourcePool") -> "SourcePool":
        return cls(np.concatenate([p.view() for p in pools] + [np.empty(0, dtype=np.int64)]))

    def __len__(self) -> int:
        return self._size

    def view(self) -> np.ndarray:
        return self._items[: self._size]

    def take(self, slot: int) -> int:
        picked = int(self._items[slot])
        last = self._size - 1
        self._items[slot] = self._items[last]
        self._size = last
        return picked


class GreedyAssignmentEngine:
    """
    Builds a target -> source bijection in six phases:

      1. order targets by importance (descending, stable)
      2. dark targets take the closest-coloured dark sources
      3. skin targets take the closest-coloured skin sources
      4. unassigned targets with importance > threshold take the closest colour
         from everything that is left
      5. remaining targets take the source minimising
         color_weight * colour distance + spatial_weight * spatial distance
      6. anything still unassigned takes leftovers in pool order

    steps() yields (percent, message) between chunks of work so a host can stay
    responsive; the assignment array is consistent at every yield.
    """

    def __init__(
        self,
        targets: samples.SampleSet,
        sources: samples.SampleSet,
        width: int,
        height: int,
        *,
        color_weight: float = 0.7,
        spatial_weight: float = 0.3,
        importance_threshold: float = 2.0,
        yield_every: int = 500,
        verbose: bool = False,
    ):
        if len(targets) != len(sources):
            raise PreconditionViolation(
                f"target and source sample counts differ ({len(targets)} vs {len(sources)})"
            )
        if targets.importance is None:
            raise PreconditionViolation("target samples must carry importance scores")

        self.targets = targets
        self.sources = sources
        self.width = width
        self.height = height
        self.color_weight = color_weight
        self.spatial_weight = spatial_weight
        self.importance_threshold = importance_threshold
        self.yield_every = max(1, int(yield_every))
        self.verbose = verbose
        self.assignment = np.full(len(targets), UNASSIGNED, dtype=np.int64)

    def _match_color(self, target_indices, pool: SourcePool, start: int, span: int, message: str):
        n = len(target_indices)
        for i, t in enumerate(target_indices):
            if i and i % self.yield_every == 0:
                yield start + int(i / n * span), message
            if self.assignment[t] != UNASSIGNED:
                continue
            if len(pool) == 0:
                break
            costs = distance.batch_color_distance(self.sources.colors[pool.view()], self.targets.colors[t])
            self.assignment[t] = pool.take(int(np.argmin(costs)))

    def _match_balanced(self, target_indices, pool: SourcePool, start: int, span: int, message: str):
        max_spatial = sqrt(self.width * self.width + self.height * self.height)
        n = len(target_indices)
        for i, t in enumerate(target_indices):
            if i and i % self.yield_every == 0:
                yield start + int(i / n * span), message
            if len(pool) == 0:
                break
            live = pool.view()
            costs = distance.batch_balanced_cost(
                self.sources.colors[live],
                self.sources.positions[live],
                self.targets.colors[t],
                self.targets.positions[t],
                max_spatial,
                color_weight=self.color_weight,
                spatial_weight=self.spatial_weight,
            )
            self.assignment[t] = pool.take(int(np.argmin(costs)))

    def steps(self) -> Iterator[Tuple[int, str]]:
        yield 0, "Analyzing image features..."

        order = np.argsort(-self.targets.importance, kind="stable")
        yield 10, "Sorting pixels by importance..."

        target_groups = samples.classify_targets(self.targets, self.width, self.height)
        source_groups = samples.classify_sources(self.sources)
        dark_pool = SourcePool(source_groups[samples.SOURCE_DARK])
        skin_pool = SourcePool(source_groups[samples.SOURCE_SKIN])

        if self.verbose:
            print(
                f"Color classification: {len(target_groups[samples.TARGET_SKIN])} skin, "
                f"{len(target_groups[samples.TARGET_DARK])} dark, "
                f"{len(target_groups[samples.TARGET_BACKGROUND])} background targets"
            )
            print(
                f"Source colors: {len(source_groups[samples.SOURCE_SKIN])} skin, "
                f"{len(source_groups[samples.SOURCE_DARK])} dark, "
                f"{len(source_groups[samples.SOURCE_BLUE])} blue, "
                f"{len(source_groups[samples.SOURCE_OTHER])} other"
            )
        yield 20, "Classifying color regions..."

        yield 30, "Assigning dark features..."
        yield from self._match_color(target_groups[samples.TARGET_DARK], dark_pool, 30, 10, "Assigning dark features...")

        yield 40, "Assigning skin areas..."
        yield from self._match_color(target_groups[samples.TARGET_SKIN], skin_pool, 40, 10, "Assigning skin areas...")

        pool = SourcePool.union(
            dark_pool,
            skin_pool,
            SourcePool(source_groups[samples.SOURCE_BLUE]),
            SourcePool(source_groups[samples.SOURCE_OTHER]),
        )

        pending = self.assignment[order] == UNASSIGNED
        important = order[pending & (self.targets.importance[order] > self.importance_threshold)]
        if self.verbose:
            print(f"Assigning {len(important)} important features...")
        yield 50, "Assigning important features..."
        yield from self._match_color(important, pool, 50, 25, "Assigning important features...")

        remaining = np.flatnonzero(self.assignment == UNASSIGNED)
        if self.verbose:
            print(f"Finalizing {len(remaining)} remaining pixel assignments...")
        yield 75, "Finalizing pixel assignments..."
        yield from self._match_balanced(remaining, pool, 75, 24, "Finalizing pixel assignments...")

        # only reachable when a pool ran dry before its targets did
        leftover = np.flatnonzero(self.assignment == UNASSIGNED)
        for t in leftover:
            self.assignment[t] = pool.take(0)
        yield 99, "Finalizing remaining assignments..."

        self.assignment.setflags(write=False)
        yield 100, "Mapping complete!"

    def run(self, progress: ProgressCallback = None) -> np.ndarray:
        for percent, message in self.steps():
            if progress is not None:
                progress(percent, message)
        return self.assignment


def greedy_assignment(
    targets: samples.SampleSet,
    sources: samples.SampleSet,
    width: int,
    height: int,
    progress: ProgressCallback = None,
    **kwargs,
) -> np.ndarray:
    return GreedyAssignmentEngine(targets, sources, width, height, **kwargs).run(progress)


def assignment_cost(
    assignment: np.ndarray,
    targets: samples.SampleSet,
    sources: samples.SampleSet,
    width: int,
    height: int,
    color_weight: float = 0.7,
    spatial_weight: float = 0.3,
) -> float:
    """
    Mean balanced cost of a finished assignment (lower is a closer match).
    """
    n = len(targets)
    if assignment.shape[0] != n:
        raise PreconditionViolation("assignment length mismatch")
    if n == 0:
        return 0.0

    picked = np.asarray(assignment, dtype=np.int64)
    cdist = np.sqrt(np.sum((sources.colors[picked] - targets.colors) ** 2, axis=1)) / distance.MAX_RGB_DISTANCE
    delta = (sources.positions[picked] - targets.positions).astype(np.float64)
    sdist = np.sqrt(np.sum(delta * delta, axis=1)) / sqrt(width * width + height * height)
    return float(np.mean(color_weight * cdist + spatial_weight * sdist))
