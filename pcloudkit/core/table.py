"""Interop with point data held in an external table.

Any object that implements :class:`TableSource` (a dataframe wrapper, a
columnar store, or another :class:`~pcloudkit.core.pointcloud.PointCloud`)
can be copied into a container or transformed in place through four calls:
``length``, ``get_column``, ``set_column`` and ``get_row``.
"""
from __future__ import annotations
from typing import Optional, Protocol, Sequence, Type, runtime_checkable
import numpy as np

from ..config.schema import CapacityPolicy
from .column import ColumnPointCloud
from .errors import SchemaMismatch
from .point import Point
from .pointcloud import PointCloud
from .transform import Transform
from .utils import get_logger

_log = get_logger()


@runtime_checkable
class TableSource(Protocol):
    def length(self) -> int: ...

    def get_column(self, name: str) -> np.ndarray:
        """float64 values; raises :class:`SchemaMismatch` if the column is missing."""
        ...

    def set_column(self, name: str, values: Sequence[float] | np.ndarray) -> None:
        """Replace a column; raises :class:`SchemaMismatch` on a length mismatch."""
        ...

    def get_row(self, index: int) -> Point:
        """Raises :class:`~pcloudkit.core.errors.PointIndexError` when out of range."""
        ...


def cloud_from_table(
    table: TableSource,
    layout: Type[PointCloud] = ColumnPointCloud,
    config: Optional[CapacityPolicy] = None,
) -> PointCloud:
    """Copy every row of ``table`` into a new container of ``layout``."""
    n = table.length()
    pc = layout.with_capacity(n, config)
    for i in range(n):
        pc.add_point(table.get_row(i))
    _log.debug("Loaded %d rows into %s", n, layout.__name__)
    return pc


def transform_table(table: TableSource, a2b: Transform) -> None:
    """Map the ``x``/``y`` (and ``z`` when present) columns of ``table`` through ``a2b``.

    Rows whose z is missing (NaN) are mapped as z = 0 and stay missing.
    """
    x = np.asarray(table.get_column("x"), dtype=np.float64)
    y = np.asarray(table.get_column("y"), dtype=np.float64)
    n = table.length()
    if len(x) != n or len(y) != n:
        raise SchemaMismatch(f"Coordinate columns do not match table length {n}")
    try:
        z = np.asarray(table.get_column("z"), dtype=np.float64)
    except SchemaMismatch:
        z = None
    if z is not None and len(z) != n:
        raise SchemaMismatch(f"Column 'z' does not match table length {n}")
    zin = np.zeros(n) if z is None else np.where(np.isnan(z), 0.0, z)
    out = a2b.apply_to_array(np.column_stack([x, y, zin]))
    table.set_column("x", out[:, 0])
    table.set_column("y", out[:, 1])
    if z is not None:
        table.set_column("z", np.where(np.isnan(z), np.nan, out[:, 2]))
