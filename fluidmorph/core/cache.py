from __future__ import annotations
import numpy as np
from typing import Any, Callable, Hashable, Optional, Tuple

# first channel of every 100th RGBA pixel
FINGERPRINT_STEP = 400


def fingerprint(raster) -> int:
    """
    Cheap rolling 32-bit hash of a raster, h = h * 31 + byte.

    Only meant to spot "same image again"; it is not a content address.
    """
    flat = np.asarray(raster, dtype=np.uint8).reshape(-1)
    h = 0
    for value in flat[::FINGERPRINT_STEP].tolist():
        h = ((h << 5) - h + value) & 0xFFFFFFFF
    return h


class MappingCache:
    """
    Single-entry memo of the last mapping.

    The key is (target fingerprint, source fingerprint, tag); tag carries any
    extra setting the mapping depends on, such as the sampling stride.
    """

    def __init__(self):
        self.value: Optional[Any] = None
        self.key: Optional[Tuple[int, int, Hashable]] = None
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return 0 if self.value is None else 1

    def lookup(self, key):
        if self.value is not None and self.key == key:
            return self.value
        return None

    def store(self, key, value):
        self.key = key
        self.value = value

    def get_or_compute(self, target, source, compute: Callable[[], Any], tag: Hashable = None):
        key = (fingerprint(target), fingerprint(source), tag)
        cached = self.lookup(key)
        if cached is not None:
            self.hits += 1
            return cached
        self.misses += 1
        value = compute()
        self.store(key, value)
        return value

    def clear(self):
        self.key = None
        self.value = None
