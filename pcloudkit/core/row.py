from __future__ import annotations
from typing import Dict, List, Optional

from ..config.schema import CapacityPolicy
from .point import Point
from .pointcloud import BUILTIN_ORDER, PointCloud
from .transform import Transform
from .utils import check_index


class RowPointCloud(PointCloud):
    """One :class:`Point` record per element.

    Capability queries (``is_3d``, ``has_color``, ``has_intensity``,
    ``has_classification``) scan the stored points: ``is_3d`` is true when
    *any* point has z. ``attribute_names`` reports every attribute seen since
    construction, so the schema survives :meth:`clear` and point overwrites.
    """

    def __init__(self, config: Optional[CapacityPolicy] = None) -> None:
        super().__init__(config)
        self._points: List[Point] = []
        self._reserved = 0
        self._seen: Dict[str, None] = {}

    def _observe(self, point: Point) -> None:
        for name in point.fields():
            if name not in self._seen:
                self._seen[name] = None

    def num_points(self) -> int:
        return len(self._points)

    def capacity(self) -> int:
        return max(self._reserved, len(self._points))

    def add_point(self, point: Point) -> None:
        self._points.append(point)
        self._observe(point)

    def clear(self) -> None:
        self._points.clear()

    def reserve(self, additional: int) -> None:
        if additional < 0:
            raise ValueError("additional must be non-negative")
        self._reserved = max(self._reserved, len(self._points) + additional)

    def at(self, index: int) -> Point:
        return self._points[check_index(index, len(self._points))]

    def set(self, index: int, point: Point) -> None:
        self._points[check_index(index, len(self._points))] = point
        self._observe(point)

    def copy(self) -> "RowPointCloud":
        out = RowPointCloud(self.config)
        out._points = list(self._points)
        out._reserved = self._reserved
        out._seen = dict(self._seen)
        return out

    def to_points(self) -> List[Point]:
        return list(self._points)

    def is_3d(self) -> bool:
        return any(p.z is not None for p in self._points)

    def has_color(self) -> bool:
        return any(p.color is not None for p in self._points)

    def has_intensity(self) -> bool:
        return any(p.intensity is not None for p in self._points)

    def has_classification(self) -> bool:
        return any(p.classification is not None for p in self._points)

    def attribute_names(self) -> List[str]:
        names = ["x", "y"] + [n for n in BUILTIN_ORDER[2:] if n in self._seen]
        return names + [n for n in self._seen if n not in BUILTIN_ORDER]

    def transform_in_place(self, a2b: Transform) -> None:
        self._points = [p.transform(a2b) for p in self._points]
