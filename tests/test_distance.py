import numpy as np
from fluidmorph.core import distance

def test_rgb_distance_basic():
    a = np.array([255, 0, 0])
    b = np.array([0, 255, 0])
    d = distance.euclidean_rgb(a, b)
    assert d > 0
    assert d == 130050

def test_spatial_distance():
    assert distance.spatial_distance((0, 0), (3, 4)) == 5.0

def test_balanced_cost_weights():
    black = np.array([0, 0, 0])
    white = np.array([255, 255, 255])
    # opposite colours at opposite corners of a 3x4 canvas
    val = distance.balanced_cost(black, white, (0, 0), (3, 4), max_spatial=5.0)
    assert abs(val - (0.7 * np.sqrt(3 * 255 ** 2) / 441.67 + 0.3)) < 1e-9

def test_batch_matches_scalar():
    colors = np.array([[10, 20, 30], [200, 100, 0], [0, 0, 0]])
    positions = np.array([[0, 0], [4, 4], [8, 0]])
    costs = distance.batch_balanced_cost(colors, positions, np.array([12, 20, 28]), np.array([2, 2]), 10.0)
    for i in range(3):
        expected = distance.balanced_cost(colors[i], np.array([12, 20, 28]), tuple(positions[i]), (2, 2), 10.0)
        assert abs(costs[i] - expected) < 1e-12
    assert distance.batch_color_distance(colors, np.array([0, 0, 0])).tolist() == [1400, 50000, 0]
