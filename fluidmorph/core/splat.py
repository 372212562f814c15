from __future__ import annotations
import numpy as np

from .config import DEFAULT_SPLAT_KERNEL


def blank_frame(width: int, height: int) -> np.ndarray:
    frame = np.zeros((height, width, 4), dtype=np.uint8)
    frame[..., 3] = 255
    return frame


def splat(positions: np.ndarray, colors: np.ndarray, width: int, height: int,
          kernel=DEFAULT_SPLAT_KERNEL) -> np.ndarray:
    """
    Render particles as soft 3x3 footprints onto an opaque black RGBA frame.

    Each particle adds color * weight to the texels around its floored
    position; texels outside the frame are dropped and channels saturate at 255.
    """
    frame = blank_frame(width, height)
    if positions.shape[0] == 0:
        return frame

    weights = np.asarray(kernel, dtype=np.float64)
    px = np.floor(positions[:, 0]).astype(np.int64)
    py = np.floor(positions[:, 1]).astype(np.int64)
    rgb = colors.astype(np.float64)

    acc = np.zeros((height, width, 3), dtype=np.float64)
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            nx = px + dx
            ny = py + dy
            inside = (nx >= 0) & (nx < width) & (ny >= 0) & (ny < height)
            np.add.at(acc, (ny[inside], nx[inside]), rgb[inside] * weights[dy + 1, dx + 1])

    frame[..., :3] = np.clip(np.rint(acc), 0, 255).astype(np.uint8)
    return frame
