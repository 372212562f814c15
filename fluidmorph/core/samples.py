"""
samples.py

Stride sampling of RGBA rasters plus the per-sample features used by the
greedy pairing:

- luminance of every sample
- importance of target samples (edge strength + central bias + contrast)
- colour-region categories for target and source samples
"""

from __future__ import annotations
import numpy as np
from dataclasses import dataclass
from typing import Dict, Optional

from . import utils
from .errors import PreconditionViolation

EDGE_WEIGHT = 3.0
CENTRAL_WEIGHT = 1.5
CONTRAST_WEIGHT = 0.5

TARGET_DARK = "dark"
TARGET_SKIN = "skin"
TARGET_BACKGROUND = "background"

SOURCE_BLUE = "blue"
SOURCE_SKIN = "skin"
SOURCE_DARK = "dark"
SOURCE_OTHER = "other"


@dataclass(frozen=True)
class SampleSet:
    positions: np.ndarray  # (N,2) int64, (x, y)
    colors: np.ndarray  # (N,3) int64
    luminance: np.ndarray  # (N,) float64
    importance: Optional[np.ndarray] = None  # (N,) float64, targets only

    def __len__(self) -> int:
        return int(self.positions.shape[0])


def luminance(rgb: np.ndarray) -> np.ndarray:
    rgb = np.asarray(rgb, dtype=np.float64)
    return 0.299 * rgb[..., 0] + 0.587 * rgb[..., 1] + 0.114 * rgb[..., 2]


def sample_grid(width: int, height: int, stride: int):
    """
    Row-major sample coordinates: y is the outer loop, x the inner one.
    Returns (xs, ys) as flat int64 arrays.
    """
    if stride < 1:
        raise PreconditionViolation(f"stride must be >= 1, got {stride}")
    ys, xs = np.mgrid[0:height:stride, 0:width:stride]
    return xs.ravel().astype(np.int64), ys.ravel().astype(np.int64)


def centrality(xs: np.ndarray, ys: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    1 at the image centre, 0 at the corners.
    """
    cx = width / 2
    cy = height / 2
    dist = np.sqrt((xs - cx) ** 2 + (ys - cy) ** 2)
    max_dist = np.sqrt(cx ** 2 + cy ** 2)
    return 1.0 - dist / max_dist


def importance_scores(raster: np.ndarray, stride: int) -> np.ndarray:
    """
    Importance of every stride sample of a target raster.

    Samples at least one stride away from every border get a Sobel edge term
    computed with +-stride neighbour offsets (weight 3). Every sample gets the
    central bias (weight 1.5) and the luminance contrast |lum - 128| / 128
    (weight 0.5).
    """
    raster = utils.check_raster(raster)
    height, width = raster.shape[:2]
    xs, ys = sample_grid(width, height, stride)
    lum = luminance(raster[..., :3])

    scores = CENTRAL_WEIGHT * centrality(xs, ys, width, height)
    scores += CONTRAST_WEIGHT * np.abs(lum[ys, xs] - 128) / 128

    s = stride
    inner = (xs >= s) & (xs + s < width) & (ys >= s) & (ys + s < height)
    if np.any(inner):
        x = xs[inner]
        y = ys[inner]
        gx = (
            -lum[y - s, x - s] - 2 * lum[y, x - s] - lum[y + s, x - s]
            + lum[y - s, x + s] + 2 * lum[y, x + s] + lum[y + s, x + s]
        )
        gy = (
            -lum[y - s, x - s] - 2 * lum[y - s, x] - lum[y - s, x + s]
            + lum[y + s, x - s] + 2 * lum[y + s, x] + lum[y + s, x + s]
        )
        scores[inner] += EDGE_WEIGHT * np.sqrt(gx * gx + gy * gy) / 255
    return scores


def extract_samples(raster: np.ndarray, stride: int, with_importance: bool = False) -> SampleSet:
    raster = utils.check_raster(raster)
    height, width = raster.shape[:2]
    xs, ys = sample_grid(width, height, stride)

    positions = np.stack([xs, ys], axis=1)
    colors = raster[ys, xs, :3].astype(np.int64)
    lum = luminance(colors)
    importance = importance_scores(raster, stride) if with_importance else None

    for arr in (positions, colors, lum, importance):
        if arr is not None:
            arr.setflags(write=False)
    return SampleSet(positions, colors, lum, importance)


def classify_targets(samples: SampleSet, width: int, height: int) -> Dict[str, np.ndarray]:
    """
    Split target samples into dark / skin / background index lists (extraction order).
    """
    lum = samples.luminance
    central = centrality(samples.positions[:, 0], samples.positions[:, 1], width, height)

    mid = (lum > 100) & (lum < 200)
    skin = mid & (central > 0.3)
    dark = ~mid & (lum < 80)
    background = ~skin & ~dark
    return {
        TARGET_DARK: np.flatnonzero(dark),
        TARGET_SKIN: np.flatnonzero(skin),
        TARGET_BACKGROUND: np.flatnonzero(background),
    }


def classify_sources(samples: SampleSet) -> Dict[str, np.ndarray]:
    """
    Split source samples into blue / skin / dark / other by raw channel relationships.
    The first matching rule wins.
    """
    r = samples.colors[:, 0]
    g = samples.colors[:, 1]
    b = samples.colors[:, 2]

    blue = (b > r + 20) & (b > g + 20)
    skin = ~blue & (r > 80) & (g > 60) & (b > 40) & (r >= g) & (g >= b) & (r - b < 60)
    dark = ~blue & ~skin & (r < 60) & (g < 60) & (b < 60)
    other = ~blue & ~skin & ~dark
    return {
        SOURCE_BLUE: np.flatnonzero(blue),
        SOURCE_SKIN: np.flatnonzero(skin),
        SOURCE_DARK: np.flatnonzero(dark),
        SOURCE_OTHER: np.flatnonzero(other),
    }
