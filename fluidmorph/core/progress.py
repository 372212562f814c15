import numpy as np


def estimate_progress(positions: np.ndarray, targets: np.ndarray, width: int, height: int) -> float:
    """
    How close the population is to its targets, in percent with one decimal.

    100 - 200 * rms(distance to target) / canvas diagonal, clamped to [0, 100].
    An empty population reports 0.0.
    """
    n = positions.shape[0]
    diagonal = np.sqrt(width * width + height * height)
    if n == 0 or diagonal == 0:
        return 0.0
    delta = np.asarray(targets, dtype=np.float64) - np.asarray(positions, dtype=np.float64)
    mean_sq = float(np.sum(delta * delta)) / n
    progress = 100.0 - 200.0 * np.sqrt(mean_sq) / diagonal
    progress = min(100.0, max(0.0, float(progress)))
    return float(np.floor(progress * 10) / 10)
