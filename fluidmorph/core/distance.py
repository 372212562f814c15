import numpy as np
from math import sqrt

# largest possible euclidean distance between two RGB colours, sqrt(3 * 255^2)
MAX_RGB_DISTANCE = 441.67


# color dist metrics
def euclidean_rgb(a: np.ndarray, b: np.ndarray) -> int:
    """
    Squared Euclidean distance in RGB space.
    """
    diff = np.asarray(a, dtype=np.int64) - np.asarray(b, dtype=np.int64)
    return int(np.sum(diff * diff))


# spatial dist
def spatial_distance(p1: tuple[int, int], p2: tuple[int, int]) -> float:
    """
    Euclidean distance between two pixel coordinates (x, y).
    """
    dx = p1[0] - p2[0]
    dy = p1[1] - p2[1]
    return sqrt(dx * dx + dy * dy)


# combined
def balanced_cost(
    color_a: np.ndarray,
    color_b: np.ndarray,
    pos_a: tuple[int, int],
    pos_b: tuple[int, int],
    max_spatial: float,
    color_weight: float = 0.7,
    spatial_weight: float = 0.3,
) -> float:
    """
    Blend of normalised colour distance and normalised positional distance.

    D = color_weight * |a - b|_rgb / 441.67 + spatial_weight * |pa - pb| / max_spatial
    """
    cdist = sqrt(euclidean_rgb(color_a, color_b)) / MAX_RGB_DISTANCE
    sdist = spatial_distance(pos_a, pos_b) / max_spatial
    return color_weight * cdist + spatial_weight * sdist


# vector versoin
def batch_color_distance(candidates: np.ndarray, color: np.ndarray) -> np.ndarray:
    """
    Squared RGB distance from one colour (3,) to every row of an (M,3) array.
    Returns an int64 vector of length M.
    """
    diff = candidates.astype(np.int64) - np.asarray(color, dtype=np.int64)
    return np.sum(diff * diff, axis=1)


def batch_balanced_cost(
    candidate_colors: np.ndarray,
    candidate_positions: np.ndarray,
    color: np.ndarray,
    position: np.ndarray,
    max_spatial: float,
    color_weight: float = 0.7,
    spatial_weight: float = 0.3,
) -> np.ndarray:
    cdist = np.sqrt(batch_color_distance(candidate_colors, color).astype(np.float64)) / MAX_RGB_DISTANCE
    delta = candidate_positions.astype(np.float64) - np.asarray(position, dtype=np.float64)
    sdist = np.sqrt(np.sum(delta * delta, axis=1)) / max_spatial
    return color_weight * cdist + spatial_weight * sdist
