import numpy as np
import pytest
from fluidmorph.core import samples
from fluidmorph.core.errors import PreconditionViolation

def _solid(width, height, rgb):
    raster = np.zeros((height, width, 4), dtype=np.uint8)
    raster[..., :3] = rgb
    raster[..., 3] = 255
    return raster

def test_extract_samples_row_major_stride():
    raster = _solid(7, 5, (10, 20, 30))
    s = samples.extract_samples(raster, 3)
    assert len(s) == 3 * 2
    assert s.positions.tolist() == [[0, 0], [3, 0], [6, 0], [0, 3], [3, 3], [6, 3]]
    assert s.importance is None
    assert not s.colors.flags.writeable

def test_luminance_weights():
    assert samples.luminance(np.array([255, 255, 255])) == pytest.approx(255.0)
    assert samples.luminance(np.array([100, 0, 0])) == pytest.approx(29.9)

def test_importance_flat_image_has_no_edge_term():
    raster = _solid(9, 9, (128, 128, 128))
    s = samples.extract_samples(raster, 3, with_importance=True)
    xs, ys = s.positions[:, 0], s.positions[:, 1]
    central = samples.centrality(xs, ys, 9, 9)
    contrast = np.abs(s.luminance - 128) / 128
    assert np.allclose(s.importance, 1.5 * central + 0.5 * contrast)

def test_importance_edge_uses_stride_neighbours():
    raster = _solid(9, 9, (0, 0, 0))
    # bright column two strides to the right of the sample at (3, 3)
    raster[:, 6, :3] = 255
    s = samples.extract_samples(raster, 3, with_importance=True)
    idx = s.positions.tolist().index([3, 3])
    central = samples.centrality(np.array([3]), np.array([3]), 9, 9)[0]
    base = 1.5 * central + 0.5 * 1.0
    # gx = 255 * (1 + 2 + 1), gy = 0
    assert s.importance[idx] == pytest.approx(base + 3 * 4.0, rel=1e-6)

def test_border_samples_skip_edge_term():
    raster = _solid(6, 6, (0, 0, 0))
    raster[:, 3:, :3] = 255
    s = samples.extract_samples(raster, 3, with_importance=True)
    # stride 3 on a 6x6 canvas: no sample is a full stride inside every edge
    xs, ys = s.positions[:, 0], s.positions[:, 1]
    central = samples.centrality(xs, ys, 6, 6)
    contrast = np.abs(s.luminance - 128) / 128
    assert np.allclose(s.importance, 1.5 * central + 0.5 * contrast)

def test_classify_targets():
    raster = _solid(9, 9, (0, 0, 0))
    raster[3, 3, :3] = (150, 150, 150)  # mid luminance, central
    raster[0, 0, :3] = (150, 150, 150)  # mid luminance, corner
    raster[0, 3, :3] = (90, 90, 90)  # between 80 and 100
    s = samples.extract_samples(raster, 3)
    groups = samples.classify_targets(s, 9, 9)
    pos = s.positions.tolist()
    assert pos.index([3, 3]) in groups[samples.TARGET_SKIN]
    assert pos.index([0, 0]) in groups[samples.TARGET_BACKGROUND]
    assert pos.index([3, 0]) in groups[samples.TARGET_BACKGROUND]
    assert pos.index([6, 6]) in groups[samples.TARGET_DARK]
    total = sum(len(v) for v in groups.values())
    assert total == len(s)

def test_classify_sources_first_rule_wins():
    raster = np.zeros((1, 5, 4), dtype=np.uint8)
    raster[0, :, :3] = [
        (10, 10, 200),  # blue
        (200, 160, 150),  # skin
        (20, 30, 40),  # dark
        (20, 20, 45),  # blue wins over dark
        (255, 0, 0),  # other
    ]
    s = samples.extract_samples(raster, 1)
    groups = samples.classify_sources(s)
    assert groups[samples.SOURCE_BLUE].tolist() == [0, 3]
    assert groups[samples.SOURCE_SKIN].tolist() == [1]
    assert groups[samples.SOURCE_DARK].tolist() == [2]
    assert groups[samples.SOURCE_OTHER].tolist() == [4]

def test_bad_stride_rejected():
    with pytest.raises(PreconditionViolation):
        samples.extract_samples(_solid(4, 4, (0, 0, 0)), 0)
