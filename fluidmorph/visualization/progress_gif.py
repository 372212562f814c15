from __future__ import annotations
import os
from typing import List, Optional
from PIL import Image
import numpy as np
import imageio


def frame_to_image(frame: np.ndarray) -> Image.Image:
    if frame.ndim != 3 or frame.shape[2] != 4:
        raise ValueError("frame must be an (H, W, 4) RGBA array")
    return Image.fromarray(frame.astype(np.uint8), "RGBA")


class FrameCollector:

    def __init__(self, out_dir: Optional[str] = None, keep_frames: bool = True, png_prefix: str = "frame"):
        self.out_dir = out_dir
        self.keep_frames = keep_frames
        self.png_prefix = png_prefix
        self.frames: List[np.ndarray] = []
        self._counter = 0
        if self.out_dir is not None:
            os.makedirs(self.out_dir, exist_ok=True)

    def callback(self, frame: np.ndarray, frame_idx: int):
        img = frame_to_image(frame)

        if self.keep_frames:
            # GIF has no alpha; frames are opaque anyway
            self.frames.append(np.asarray(img.convert("RGB")))

        if self.out_dir is not None:
            path = os.path.join(self.out_dir, f"{self.png_prefix}_{frame_idx:04d}.png")
            img.save(path)

        self._counter += 1

    def save_gif(self, out_path: str, fps: int = 30, loop: int = 0):
        if len(self.frames) == 0:
            raise RuntimeError("No frames to save. Did you collect frames?")
        save_frames_as_gif(self.frames, out_path, fps=fps, loop=loop)


def save_frames_as_gif(frames: List[np.ndarray], out_path: str, fps: int = 30, loop: int = 0):
    duration = 1000.0 / float(fps)
    imageio.mimsave(out_path, frames, format="GIF", duration=duration, loop=loop)
