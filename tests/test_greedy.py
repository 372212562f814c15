import numpy as np
import pytest
from fluidmorph.core import greedy, samples
from fluidmorph.core.errors import PreconditionViolation

def _raster(rgb_grid):
    rgb = np.asarray(rgb_grid, dtype=np.uint8)
    raster = np.full(rgb.shape[:2] + (4,), 255, dtype=np.uint8)
    raster[..., :3] = rgb
    return raster

def _random_raster(seed, size=24):
    rng = np.random.default_rng(seed)
    return _raster(rng.integers(0, 256, size=(size, size, 3)))

def _assign(target, source, stride):
    h, w = target.shape[:2]
    t = samples.extract_samples(target, stride, with_importance=True)
    s = samples.extract_samples(source, stride)
    return greedy.greedy_assignment(t, s, w, h)

def _is_permutation(assignment):
    n = assignment.shape[0]
    return sorted(assignment.tolist()) == list(range(n))

def test_source_pool_swap_and_pop():
    pool = greedy.SourcePool([5, 6, 7, 8])
    assert pool.take(1) == 6
    assert pool.view().tolist() == [5, 8, 7]
    assert pool.take(2) == 7
    assert pool.view().tolist() == [5, 8]
    assert len(pool) == 2

def test_bijection_on_random_images():
    for seed in range(3):
        assignment = _assign(_random_raster(seed), _random_raster(seed + 100), 2)
        assert assignment.shape[0] == 144
        assert _is_permutation(assignment)

def test_deterministic():
    target = _random_raster(1)
    source = _random_raster(2)
    a = _assign(target, source, 2)
    b = _assign(target.copy(), source.copy(), 2)
    assert np.array_equal(a, b)

def test_black_target_white_source():
    target = _raster(np.zeros((4, 4, 3)))
    source = _raster(np.full((4, 4, 3), 255))
    h, w = target.shape[:2]
    t = samples.extract_samples(target, 2, with_importance=True)
    s = samples.extract_samples(source, 2)

    assert len(samples.classify_sources(s)[samples.SOURCE_DARK]) == 0
    assert len(samples.classify_targets(t, w, h)[samples.TARGET_DARK]) == 4
    assert not np.any(t.importance > 2.0)

    assignment = greedy.greedy_assignment(t, s, w, h)
    assert assignment.shape[0] == 4
    assert _is_permutation(assignment)
    # colour cost is identical for every pair, so the spatial term keeps each sample in place
    assert assignment.tolist() == [0, 1, 2, 3]

def test_dark_targets_prefer_dark_sources():
    target = _raster([[(0, 0, 0), (200, 200, 200)]])
    source = _raster([[(230, 230, 230), (10, 10, 10)]])
    assignment = _assign(target, source, 1)
    assert assignment.tolist() == [1, 0]

def test_steps_yield_consistent_partial_state():
    target = _random_raster(3)
    source = _random_raster(4)
    h, w = target.shape[:2]
    t = samples.extract_samples(target, 2, with_importance=True)
    s = samples.extract_samples(source, 2)
    engine = greedy.GreedyAssignmentEngine(t, s, w, h, yield_every=10)

    last = -1
    for percent, message in engine.steps():
        assert percent >= last
        last = percent
        used = engine.assignment[engine.assignment != greedy.UNASSIGNED]
        assert len(set(used.tolist())) == used.shape[0]
        assert isinstance(message, str)
    assert last == 100
    assert _is_permutation(engine.assignment)
    assert not engine.assignment.flags.writeable

def test_progress_callback_receives_events():
    events = []
    target = _random_raster(5, size=8)
    source = _random_raster(6, size=8)
    t = samples.extract_samples(target, 2, with_importance=True)
    s = samples.extract_samples(source, 2)
    greedy.greedy_assignment(t, s, 8, 8, progress=lambda p, m: events.append((p, m)))
    assert events[0][0] == 0
    assert events[-1] == (100, "Mapping complete!")

def test_unequal_sample_counts_rejected():
    t = samples.extract_samples(_random_raster(7, size=8), 2, with_importance=True)
    s = samples.extract_samples(_random_raster(8, size=6), 2)
    with pytest.raises(PreconditionViolation):
        greedy.GreedyAssignmentEngine(t, s, 8, 8)

def test_assignment_cost_zero_for_identity():
    raster = _random_raster(9, size=8)
    t = samples.extract_samples(raster, 2, with_importance=True)
    s = samples.extract_samples(raster, 2)
    identity = np.arange(len(t))
    assert greedy.assignment_cost(identity, t, s, 8, 8) == 0.0
