from __future__ import annotations
import numpy as np
import time
from typing import Callable, Dict, Optional
from tqdm import trange

from .session import MorphSession

FrameCallback = Optional[Callable[[np.ndarray, int], None]]


def run_simulation(
    session: MorphSession,
    ticks: int,
    *,
    frame_callback: FrameCallback = None,
    frame_interval_ticks: int = 1,
    verbose: bool = True,
) -> Dict:
    """
    Drive `ticks` frame signals through a session, emitting every
    `frame_interval_ticks`-th frame (and the last one) to frame_callback.
    The session is started if it was idle and left paused afterwards.
    """
    frame_interval_ticks = max(1, int(frame_interval_ticks))
    stats = {"start_time": time.time(), "ticks": 0, "frames_emitted": 0, "progress": session.progress}
    frame_idx = 0
    session.start()
    tick_iter = trange(ticks, desc="ticks") if verbose else range(ticks)

    for t in tick_iter:
        frame = session.frame()
        stats["ticks"] += 1

        if frame_callback is not None and ((t % frame_interval_ticks) == 0 or t == ticks - 1):
            frame_callback(frame.copy(), frame_idx)
            stats["frames_emitted"] += 1
            frame_idx += 1

        if verbose:
            tick_iter.set_postfix({"progress": f"{session.progress:.1f}%"})

    session.pause()
    stats["progress"] = session.update_progress()
    stats["end_time"] = time.time()
    stats["duration_s"] = stats["end_time"] - stats["start_time"]
    return stats
