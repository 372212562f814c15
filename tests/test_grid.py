import numpy as np
from fluidmorph.core.grid import SpatialGrid

def test_grid_dimensions():
    grid = SpatialGrid(100, 50, 8)
    assert grid.grid_w == 13
    assert grid.grid_h == 7
    assert grid.n_cells == 14 * 8

def test_every_particle_in_exactly_one_bucket():
    rng = np.random.default_rng(0)
    positions = rng.random((500, 2)) * np.array([100.0, 50.0])
    grid = SpatialGrid(100, 50, 8)
    grid.rebuild(positions)

    seen = []
    for j in range(grid.grid_h + 1):
        for i in range(grid.grid_w + 1):
            for p in grid.bucket(i, j):
                x, y = positions[p]
                assert int(x // 8) == i and int(y // 8) == j
                seen.append(int(p))
    assert sorted(seen) == list(range(500))

def test_rebuild_discards_previous_contents():
    grid = SpatialGrid(32, 32, 8)
    grid.rebuild(np.array([[1.0, 1.0], [30.0, 30.0]]))
    assert grid.bucket(0, 0).tolist() == [0]
    grid.rebuild(np.array([[30.0, 30.0], [1.0, 1.0]]))
    assert grid.bucket(0, 0).tolist() == [1]
    assert grid.bucket(3, 3).tolist() == [0]

def test_max_edge_positions_fit():
    grid = SpatialGrid(16, 16, 8)
    grid.rebuild(np.array([[15.999, 15.999], [16.0, 16.0]]))
    assert grid.bucket(2, 2).tolist() == [1]

def test_neighbors_3x3_block_clamped():
    grid = SpatialGrid(40, 40, 8)
    positions = np.array([[1.0, 1.0], [9.0, 9.0], [17.0, 1.0], [25.0, 25.0]])
    grid.rebuild(positions)
    assert sorted(grid.neighbors(1.0, 1.0).tolist()) == [0, 1]
    assert sorted(grid.neighbors(9.0, 9.0).tolist()) == [0, 1, 2]

def test_empty_rebuild():
    grid = SpatialGrid(10, 10, 4)
    grid.rebuild(np.empty((0, 2)))
    assert grid.bucket(0, 0).shape[0] == 0

def test_cell_of_matches_bucket_layout():
    grid = SpatialGrid(40, 40, 8)
    assert grid.cell_of(9.0, 17.0) == 2 * (grid.grid_w + 1) + 1
    grid.rebuild(np.array([[9.0, 17.0]]))
    assert grid.cell_count[grid.cell_of(9.0, 17.0)] == 1
