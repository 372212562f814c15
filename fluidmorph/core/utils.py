from PIL import Image
import numpy as np

from .errors import PreconditionViolation


def load_raster(path: str, width: int, height: int):
    img = Image.open(path).convert("RGBA")
    img = img.resize((width, height), Image.LANCZOS)
    return np.asarray(img, dtype=np.uint8)

def raster_from_bytes(data, width: int, height: int):
    """
    Wrap a flat RGBA byte sequence (4 bytes/pixel, row-major) as an (H, W, 4) array.
    """
    arr = np.frombuffer(bytes(data), dtype=np.uint8)
    if arr.size != width * height * 4:
        raise PreconditionViolation(
            f"expected {width * height * 4} bytes for {width}x{height} RGBA, got {arr.size}"
        )
    return arr.reshape(height, width, 4).copy()

def raster_to_bytes(raster: np.ndarray) -> bytes:
    return np.ascontiguousarray(raster, dtype=np.uint8).tobytes()

def check_raster(raster) -> np.ndarray:
    arr = np.asarray(raster)
    if arr.ndim != 3 or arr.shape[2] != 4:
        raise PreconditionViolation(f"expected an (H, W, 4) RGBA raster, got shape {arr.shape}")
    return arr.astype(np.uint8, copy=False)

def check_same_shape(target: np.ndarray, source: np.ndarray):
    if target.shape != source.shape:
        raise PreconditionViolation(
            f"target raster {target.shape[1]}x{target.shape[0]} and source raster "
            f"{source.shape[1]}x{source.shape[0]} must have identical dimensions"
        )

def save_raster(raster: np.ndarray, path: str):
    img = Image.fromarray(np.asarray(raster, dtype=np.uint8), "RGBA")
    img.save(path)
