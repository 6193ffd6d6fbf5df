from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence, Type, TypeVar
import numpy as np

from ..config.schema import CapacityPolicy
from .errors import SchemaMismatch
from .point import Point
from .transform import Transform

PC = TypeVar("PC", bound="PointCloud")

COLOR_CHANNELS = ("r", "g", "b", "a")
# Canonical order of the dedicated attributes; extension names follow.
BUILTIN_ORDER = ("x", "y", "z", "r", "g", "b", "a",
                 "intensity", "classification", "ring_id", "time_offset")
# Inclusive upper bound of the integer-valued attributes.
INT_LIMITS = {"classification": 255, "ring_id": 0xFFFF, "r": 255, "g": 255, "b": 255, "a": 255}


class PointCloud(ABC):
    """Capability contract shared by every storage layout.

    Points of a container are expressed in a reference frame ``a``; the
    transform given to :meth:`transform` / :meth:`transform_in_place` is an
    ``a2b`` map. Callers depend only on the methods below, never on the
    layout's internal records or columns. Mutating methods assume a single
    writer; there is no internal locking.
    """

    def __init__(self, config: Optional[CapacityPolicy] = None) -> None:
        self.config = config if config is not None else CapacityPolicy()

    # -- construction --
    @classmethod
    def new(cls: Type[PC], config: Optional[CapacityPolicy] = None) -> PC:
        return cls(config)

    @classmethod
    def with_capacity(cls: Type[PC], capacity: int, config: Optional[CapacityPolicy] = None) -> PC:
        pc = cls(config)
        pc.reserve(capacity)
        return pc

    @classmethod
    def from_points(cls: Type[PC], points: Iterable[Point], config: Optional[CapacityPolicy] = None) -> PC:
        pc = cls(config)
        pc.extend(points)
        return pc

    # -- storage --
    @abstractmethod
    def num_points(self) -> int: ...

    @abstractmethod
    def capacity(self) -> int: ...

    @abstractmethod
    def add_point(self, point: Point) -> None: ...

    @abstractmethod
    def clear(self) -> None:
        """Remove every point but keep the attribute schema."""

    @abstractmethod
    def reserve(self, additional: int) -> None:
        """Make room for ``additional`` more points without reallocating."""

    @abstractmethod
    def at(self, index: int) -> Point: ...

    @abstractmethod
    def set(self, index: int, point: Point) -> None: ...

    @abstractmethod
    def copy(self: PC) -> PC: ...

    # -- schema --
    @abstractmethod
    def is_3d(self) -> bool: ...

    @abstractmethod
    def has_color(self) -> bool: ...

    @abstractmethod
    def has_intensity(self) -> bool: ...

    @abstractmethod
    def has_classification(self) -> bool: ...

    @abstractmethod
    def attribute_names(self) -> List[str]: ...

    # -- transforms --
    @abstractmethod
    def transform_in_place(self, a2b: Transform) -> None: ...

    def transform(self: PC, a2b: Transform) -> PC:
        """Return a new container of the same layout with mapped coordinates."""
        out = self.copy()
        out.transform_in_place(a2b)
        return out

    # -- derived operations --
    def is_empty(self) -> bool:
        return self.num_points() == 0

    def __len__(self) -> int:
        return self.num_points()

    def has_attribute(self, name: str) -> bool:
        return name in self.attribute_names()

    def get_point(self, index: int) -> Point:
        return self.at(index)

    def extend(self, points: Iterable[Point]) -> None:
        if isinstance(points, Sequence):
            self.reserve(len(points))
        for p in points:
            self.add_point(p)

    def to_points(self) -> List[Point]:
        return [self.at(i) for i in range(self.num_points())]

    # -- column extraction contract --
    def length(self) -> int:
        return self.num_points()

    def get_row(self, index: int) -> Point:
        return self.at(index)

    def get_column(self, name: str) -> np.ndarray:
        """Values of attribute ``name`` as float64, NaN where a point lacks it."""
        if not self.has_attribute(name):
            raise SchemaMismatch(f"Point cloud has no attribute '{name}'")
        n = self.num_points()
        out = np.full(n, np.nan, dtype=np.float64)
        for i in range(n):
            v = self.at(i).value(name)
            if v is not None:
                out[i] = v
        return out

    def set_column(self, name: str, values: Sequence[float] | np.ndarray) -> None:
        """Overwrite attribute ``name`` for every point. NaN clears a nullable attribute."""
        arr = self._checked_column(name, values)
        for i in range(self.num_points()):
            self.set(i, self.at(i).with_value(name, float(arr[i])))

    def _checked_column(self, name: str, values: Sequence[float] | np.ndarray) -> np.ndarray:
        try:
            arr = np.asarray(values, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise SchemaMismatch(f"Column '{name}' must be numeric: {exc}") from exc
        if arr.ndim != 1:
            raise SchemaMismatch(f"Column '{name}' must be one-dimensional, got shape {arr.shape}")
        n = self.num_points()
        if len(arr) != n:
            raise SchemaMismatch(f"Column '{name}' has {len(arr)} values, point cloud has {n} points")
        if name in ("x", "y", "r", "g", "b") and np.isnan(arr).any():
            raise SchemaMismatch(f"Column '{name}' does not accept missing values")
        if name in COLOR_CHANNELS and not self.has_color():
            raise SchemaMismatch(f"Cannot set color channel '{name}' on a point cloud without color")
        limit = INT_LIMITS.get(name)
        if limit is not None:
            v = arr[~np.isnan(arr)]
            if np.any(v != np.round(v)) or np.any(v < 0) or np.any(v > limit):
                raise SchemaMismatch(f"Column '{name}' must hold integers in 0..{limit}")
        return arr

    def __repr__(self) -> str:
        return f"{type(self).__name__}(num_points={self.num_points()}, attributes={self.attribute_names()})"
