from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
import numpy as np

from ..config.schema import CapacityPolicy
from .errors import SchemaMismatch, ShapeError
from .point import Color, Point
from .pointcloud import PointCloud
from .transform import Transform
from .utils import check_index, get_logger

_log = get_logger()

# key -> (dtype, channels); None channels means a 1-D column
_BUILTIN_COLUMNS: Dict[str, Tuple[type, Optional[int]]] = {
    "x": (np.float64, None),
    "y": (np.float64, None),
    "z": (np.float64, None),
    "rgb": (np.uint8, 3),
    "a": (np.uint8, None),
    "intensity": (np.float64, None),
    "classification": (np.uint8, None),
    "ring_id": (np.uint16, None),
    "time_offset": (np.float64, None),
}
_OPTIONAL_KEYS = ("z", "rgb", "a", "intensity", "classification", "ring_id", "time_offset")
# Attribute names stored 1:1 in a builtin column of the same key.
_NAMED_KEYS = ("x", "y", "z", "a", "intensity", "classification", "ring_id", "time_offset")
_CHANNEL_INDEX = {"r": 0, "g": 1, "b": 2}


@dataclass
class _Column:
    """Growable storage for one attribute plus a per-row presence mask.

    Both arrays are sized to the cloud's capacity; only the first
    ``num_points`` rows are meaningful. Rows without a value hold 0 and are
    marked absent in ``valid``.
    """
    data: np.ndarray
    valid: np.ndarray

    @classmethod
    def allocate(cls, dtype: type, channels: Optional[int], capacity: int) -> "_Column":
        shape = (capacity,) if channels is None else (capacity, channels)
        return cls(data=np.zeros(shape, dtype=dtype), valid=np.zeros(capacity, dtype=bool))

    def resize(self, capacity: int) -> None:
        keep = min(capacity, self.data.shape[0])
        data = np.zeros((capacity,) + self.data.shape[1:], dtype=self.data.dtype)
        valid = np.zeros(capacity, dtype=bool)
        data[:keep] = self.data[:keep]
        valid[:keep] = self.valid[:keep]
        self.data = data
        self.valid = valid

    def put(self, i: int, value) -> None:
        if value is None:
            self.data[i] = 0
            self.valid[i] = False
        else:
            self.data[i] = value
            self.valid[i] = True

    def reset(self) -> None:
        self.data[...] = 0
        self.valid[:] = False

    def copy(self) -> "_Column":
        return _Column(data=self.data.copy(), valid=self.valid.copy())


def _row_value(point: Point, key: str):
    if key == "rgb":
        c = point.color
        return None if c is None else (c.r, c.g, c.b)
    if key == "a":
        return None if point.color is None else point.color.a
    return getattr(point, key)


class ColumnPointCloud(PointCloud):
    """One array per attribute, aligned by row index.

    ``x`` and ``y`` always exist. Every optional column (``z``, color,
    alpha, intensity, classification, ring id, time offset and named extras)
    is materialized the first time a value for it arrives; earlier rows are
    backfilled with 0 and flagged absent, so reading them back yields a point
    without that attribute. Schema queries are O(1): ``is_3d`` is true as soon
    as the z column exists, even if individual rows later lose their z.

    All columns share one capacity. When an append would exceed it, every
    column grows together following the container's :class:`CapacityPolicy`
    (bootstrap to ``min_capacity``, then multiply by ``growth_factor``).
    """

    def __init__(self, config: Optional[CapacityPolicy] = None) -> None:
        super().__init__(config)
        self._n = 0
        self._capacity = 0
        self._columns: Dict[str, _Column] = {
            "x": _Column.allocate(np.float64, None, 0),
            "y": _Column.allocate(np.float64, None, 0),
        }
        self._extras: Dict[str, _Column] = {}

    @classmethod
    def from_arrays(cls, xyz: np.ndarray, config: Optional[CapacityPolicy] = None) -> "ColumnPointCloud":
        """Bulk-load coordinates from an (N, 2) or (N, 3) array."""
        arr = np.asarray(xyz, dtype=np.float64)
        if arr.ndim != 2 or arr.shape[1] not in (2, 3):
            raise ShapeError(f"Expected (N, 2) or (N, 3) coordinates, got {arr.shape}")
        pc = cls(config)
        n = len(arr)
        pc.reserve(n)
        pc._columns["x"].data[:n] = arr[:, 0]
        pc._columns["y"].data[:n] = arr[:, 1]
        pc._columns["x"].valid[:n] = True
        pc._columns["y"].valid[:n] = True
        if arr.shape[1] == 3:
            z = pc._materialize("z")
            z.data[:n] = arr[:, 2]
            z.valid[:n] = True
        pc._n = n
        return pc

    # -- storage management --
    def _all_columns(self) -> List[_Column]:
        return list(self._columns.values()) + list(self._extras.values())

    def _resize(self, capacity: int) -> None:
        for col in self._all_columns():
            col.resize(capacity)
        _log.debug("Resized column storage %d -> %d rows", self._capacity, capacity)
        self._capacity = capacity

    def _materialize(self, key: str) -> _Column:
        dtype, channels = _BUILTIN_COLUMNS[key]
        col = _Column.allocate(dtype, channels, self._capacity)
        self._columns[key] = col
        _log.debug("Materialized column '%s' (backfilled %d rows)", key, self._n)
        return col

    def _materialize_extra(self, name: str) -> _Column:
        col = _Column.allocate(np.float64, None, self._capacity)
        self._extras[name] = col
        _log.debug("Materialized extra column '%s' (backfilled %d rows)", name, self._n)
        return col

    def _write_row(self, i: int, point: Point) -> None:
        self._columns["x"].put(i, point.x)
        self._columns["y"].put(i, point.y)
        for key in _OPTIONAL_KEYS:
            value = _row_value(point, key)
            col = self._columns.get(key)
            if col is None:
                if value is None:
                    continue
                col = self._materialize(key)
            col.put(i, value)
        for name, col in self._extras.items():
            col.put(i, point.extras.get(name))
        for name, value in point.extras.items():
            if name not in self._extras:
                self._materialize_extra(name).put(i, value)

    # -- contract --
    def num_points(self) -> int:
        return self._n

    def capacity(self) -> int:
        return self._capacity

    def add_point(self, point: Point) -> None:
        required = self._n + 1
        if required > self._capacity:
            self._resize(self.config.next_capacity(self._capacity, required))
        self._write_row(self._n, point)
        self._n += 1

    def clear(self) -> None:
        for col in self._all_columns():
            col.reset()
        self._n = 0

    def reserve(self, additional: int) -> None:
        if additional < 0:
            raise ValueError("additional must be non-negative")
        required = self._n + additional
        if required > self._capacity:
            self._resize(required)

    def at(self, index: int) -> Point:
        i = check_index(index, self._n)
        cols = self._columns

        def opt(key: str):
            col = cols.get(key)
            if col is None or not col.valid[i]:
                return None
            return col.data[i].item()

        color = None
        rgb = cols.get("rgb")
        if rgb is not None and rgb.valid[i]:
            r, g, b = (int(v) for v in rgb.data[i])
            color = Color(r, g, b, opt("a"))
        extras = {name: float(col.data[i]) for name, col in self._extras.items() if col.valid[i]}
        return Point(
            x=float(cols["x"].data[i]),
            y=float(cols["y"].data[i]),
            z=opt("z"),
            color=color,
            intensity=opt("intensity"),
            classification=opt("classification"),
            ring_id=opt("ring_id"),
            time_offset=opt("time_offset"),
            extras=extras,
        )

    def set(self, index: int, point: Point) -> None:
        self._write_row(check_index(index, self._n), point)

    def copy(self) -> "ColumnPointCloud":
        out = ColumnPointCloud(self.config)
        out._n = self._n
        out._capacity = self._capacity
        out._columns = {k: c.copy() for k, c in self._columns.items()}
        out._extras = {k: c.copy() for k, c in self._extras.items()}
        return out

    def is_3d(self) -> bool:
        return "z" in self._columns

    def has_color(self) -> bool:
        return "rgb" in self._columns

    def has_intensity(self) -> bool:
        return "intensity" in self._columns

    def has_classification(self) -> bool:
        return "classification" in self._columns

    def has_attribute(self, name: str) -> bool:
        if name in ("x", "y"):
            return True
        if name in _CHANNEL_INDEX:
            return "rgb" in self._columns
        if name in _NAMED_KEYS:
            return name in self._columns
        return name in self._extras

    def attribute_names(self) -> List[str]:
        names = ["x", "y"]
        if "z" in self._columns:
            names.append("z")
        if "rgb" in self._columns:
            names.extend(("r", "g", "b"))
        for key in ("a", "intensity", "classification", "ring_id", "time_offset"):
            if key in self._columns:
                names.append(key)
        names.extend(self._extras)
        return names

    def transform_in_place(self, a2b: Transform) -> None:
        n = self._n
        if n == 0:
            return
        x = self._columns["x"].data
        y = self._columns["y"].data
        zcol = self._columns.get("z")
        z = np.where(zcol.valid[:n], zcol.data[:n], 0.0) if zcol is not None else np.zeros(n)
        out = a2b.apply_to_array(np.column_stack([x[:n], y[:n], z]))
        x[:n] = out[:, 0]
        y[:n] = out[:, 1]
        if zcol is not None:
            zcol.data[:n] = np.where(zcol.valid[:n], out[:, 2], 0.0)

    # -- column extraction --
    def _lookup(self, name: str) -> Tuple[_Column, Optional[int]]:
        if name in _CHANNEL_INDEX:
            col = self._columns.get("rgb")
            channel: Optional[int] = _CHANNEL_INDEX[name]
        elif name in _NAMED_KEYS:
            col, channel = self._columns.get(name), None
        else:
            col, channel = self._extras.get(name), None
        if col is None:
            raise SchemaMismatch(f"Point cloud has no attribute '{name}'")
        return col, channel

    def get_column(self, name: str) -> np.ndarray:
        col, channel = self._lookup(name)
        n = self._n
        data = col.data[:n] if channel is None else col.data[:n, channel]
        valid = col.valid[:n]
        if name == "a":
            valid = valid & self._columns["rgb"].valid[:n]
        out = data.astype(np.float64)
        out[~valid] = np.nan
        return out

    def set_column(self, name: str, values: Sequence[float] | np.ndarray) -> None:
        arr = self._checked_column(name, values)
        n = self._n
        present = ~np.isnan(arr)
        if name in ("x", "y"):
            self._columns[name].data[:n] = arr
            return
        if name in _CHANNEL_INDEX:
            # Channel writes only touch rows that already carry a color.
            rgb = self._columns["rgb"]
            rows = rgb.valid[:n]
            rgb.data[:n, _CHANNEL_INDEX[name]][rows] = arr[rows]
            return
        if name == "a":
            present &= self._columns["rgb"].valid[:n]
        if name in _NAMED_KEYS:
            col = self._columns.get(name)
            if col is None:
                if not present.any():
                    return
                col = self._materialize(name)
        else:
            col = self._extras.get(name)
            if col is None:
                if not present.any():
                    return
                col = self._materialize_extra(name)
        col.data[:n] = np.where(present, arr, 0).astype(col.data.dtype)
        col.valid[:n] = present

    def check_columns(self) -> None:
        """Raise :class:`ShapeError` if any column is not sized to the shared capacity."""
        if self._n > self._capacity:
            raise ShapeError(f"{self._n} points exceed capacity {self._capacity}")
        named = list(self._columns.items()) + [(f"extra '{k}'", c) for k, c in self._extras.items()]
        for key, col in named:
            if col.data.shape[0] != self._capacity or col.valid.shape[0] != self._capacity:
                raise ShapeError(
                    f"Column {key} holds {col.data.shape[0]} rows, expected {self._capacity}"
                )
        rgb = self._columns.get("rgb")
        if rgb is not None and rgb.data.shape[1:] != (3,):
            raise ShapeError(f"Color column must have 3 channels, got shape {rgb.data.shape}")

    def is_valid(self) -> bool:
        try:
            self.check_columns()
        except ShapeError:
            return False
        return True
