from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Union

from ..config import CloudConfig, load_config
from ..core.point import Point
from ..core.pointcloud import PointCloud
from ..runtime.builders import build_cloud, build_transform


def cloud_from_config(
    config: Union[str, Path, CloudConfig],
    points: Iterable[Point] = (),
    *,
    layout: Optional[str] = None,
    apply_transform: bool = True,
) -> PointCloud:
    """Build a point cloud described by a configuration file or object.

    Parameters
    ----------
    config:
        Path to a YAML file or a pre-loaded :class:`~pcloudkit.config.schema.CloudConfig`.
    points:
        Points appended to the new container, in order.
    layout:
        Optional override for the storage layout (``"row"`` or ``"column"``).
    apply_transform:
        When true, the configured transform (identity if none) is applied in
        place after loading the points.

    Returns
    -------
    PointCloud
        A container of the requested layout holding ``points`` in the
        configured target frame.
    """

    cfg = load_config(config) if not isinstance(config, CloudConfig) else config.model_copy(deep=True)
    if layout is not None:
        cfg.layout = layout

    pc = build_cloud(cfg)
    pc.extend(points)
    if apply_transform and cfg.transform is not None:
        pc.transform_in_place(build_transform(cfg))
    return pc
