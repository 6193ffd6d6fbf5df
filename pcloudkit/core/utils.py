from __future__ import annotations
import logging
import operator
import numpy as np
from .errors import PointIndexError

def get_logger(name: str = "pcloudkit") -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        fmt = logging.Formatter("[%(levelname)s] %(message)s")
        handler.setFormatter(fmt)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger

def as_points_array(xyz: np.ndarray) -> np.ndarray:
    """Return ``xyz`` as a float64 (N, 3) array; (N, 2) input gets z = 0."""
    arr = np.asarray(xyz, dtype=np.float64)
    if arr.ndim == 1:
        arr = arr.reshape(1, -1)
    if arr.ndim != 2 or arr.shape[1] not in (2, 3):
        raise ValueError(f"Expected (N, 2) or (N, 3) coordinates, got {arr.shape}")
    if arr.shape[1] == 2:
        arr = np.column_stack([arr, np.zeros(len(arr), dtype=np.float64)])
    return arr

def check_index(index: int, n: int) -> int:
    i = operator.index(index)
    if i < 0 or i >= n:
        raise PointIndexError(f"Index {i} out of bounds for point cloud of length {n}")
    return i
