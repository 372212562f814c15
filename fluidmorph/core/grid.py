from __future__ import annotations
import numpy as np

from .errors import PreconditionViolation


class SpatialGrid:
    """
    Uniform bucket index over particle positions.

    Buckets are stored CSR-style: the particles of flat cell k are
    order[cell_start[k] : cell_start[k] + cell_count[k]]. Flat cell of (i, j)
    is j * (grid_w + 1) + i; the extra row and column are slack for positions
    sitting on the max edge.
    """

    def __init__(self, width: int, height: int, cell_size: int):
        if cell_size < 1:
            raise PreconditionViolation(f"cell_size must be >= 1, got {cell_size}")
        self.width = width
        self.height = height
        self.cell_size = cell_size
        self.grid_w = width // cell_size + 1
        self.grid_h = height // cell_size + 1
        self.row_stride = self.grid_w + 1
        self.n_cells = (self.grid_w + 1) * (self.grid_h + 1)

        self.order = np.empty(0, dtype=np.int64)
        self.cell_start = np.zeros(self.n_cells, dtype=np.int64)
        self.cell_count = np.zeros(self.n_cells, dtype=np.int64)

    def cell_of(self, x: float, y: float) -> int:
        return int(y // self.cell_size) * self.row_stride + int(x // self.cell_size)

    def rebuild(self, positions: np.ndarray):
        """
        Drop every bucket and re-bin all particles by their current position.
        """
        if positions.shape[0] == 0:
            self.order = np.empty(0, dtype=np.int64)
            self.cell_count[:] = 0
            self.cell_start[:] = 0
            return

        gx = np.floor(positions[:, 0] / self.cell_size).astype(np.int64)
        gy = np.floor(positions[:, 1] / self.cell_size).astype(np.int64)
        cells = gy * self.row_stride + gx
        if cells.min() < 0 or cells.max() >= self.n_cells:
            raise PreconditionViolation("particle position outside the grid extents")

        self.order = np.argsort(cells, kind="stable")
        self.cell_count = np.bincount(cells, minlength=self.n_cells).astype(np.int64)
        self.cell_start = np.cumsum(self.cell_count) - self.cell_count

    def bucket(self, i: int, j: int) -> np.ndarray:
        k = j * self.row_stride + i
        start = self.cell_start[k]
        return self.order[start : start + self.cell_count[k]]

    def neighbors(self, x: float, y: float) -> np.ndarray:
        """
        Indices of particles in the 3x3 block of cells around (x, y), clamped to the grid.
        """
        gx = int(x // self.cell_size)
        gy = int(y // self.cell_size)
        found = [
            self.bucket(i, j)
            for j in range(max(gy - 1, 0), min(gy + 1, self.grid_h) + 1)
            for i in range(max(gx - 1, 0), min(gx + 1, self.grid_w) + 1)
        ]
        return np.concatenate(found) if found else np.empty(0, dtype=np.int64)
