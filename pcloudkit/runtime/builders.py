from __future__ import annotations

from typing import Optional

import numpy as np

from ..config import CloudConfig
from ..config.schema import TransformConfig
from ..core.column import ColumnPointCloud
from ..core.pointcloud import PointCloud
from ..core.row import RowPointCloud
from ..core.transform import Transform
from ..core.utils import get_logger

_log = get_logger()

LAYOUTS = {
    "row": RowPointCloud,
    "column": ColumnPointCloud,
}


def build_cloud(cfg: CloudConfig) -> PointCloud:
    cls = LAYOUTS.get(cfg.layout)
    if cls is None:
        raise ValueError(f"Unsupported layout: {cfg.layout}")
    pc = cls.with_capacity(cfg.initial_capacity, cfg.capacity)
    _log.info("Created %s (capacity=%d)", cls.__name__, pc.capacity())
    return pc


def build_transform(cfg: CloudConfig) -> Transform:
    t_cfg: Optional[TransformConfig] = cfg.transform
    eps = cfg.homogeneous_eps
    if t_cfg is None:
        return Transform.identity(eps=eps)
    if t_cfg.kind == "matrix":
        return Transform(np.asarray(t_cfg.matrix, dtype=np.float64), eps=eps)
    if t_cfg.kind == "translation":
        return Transform(Transform.translation(*t_cfg.xyz).matrix, eps=eps)
    if t_cfg.kind == "pose":
        return Transform(Transform.from_xyz_rpy(t_cfg.xyz, t_cfg.rpy_deg).matrix, eps=eps)
    raise ValueError(f"Unsupported transform kind: {t_cfg.kind}")
