from typing import Dict

import numpy as np
import pytest

from pcloudkit.core.column import ColumnPointCloud
from pcloudkit.core.errors import PointIndexError, SchemaMismatch
from pcloudkit.core.point import Point
from pcloudkit.core.row import RowPointCloud
from pcloudkit.core.table import TableSource, cloud_from_table, transform_table
from pcloudkit.core.transform import Transform


class DictTable:
    """Minimal externally stored table keyed by column name."""

    def __init__(self, columns: Dict[str, np.ndarray]) -> None:
        self.columns = {k: np.asarray(v, dtype=np.float64) for k, v in columns.items()}

    def length(self) -> int:
        return len(self.columns["x"])

    def get_column(self, name: str) -> np.ndarray:
        if name not in self.columns:
            raise SchemaMismatch(name)
        return self.columns[name].copy()

    def set_column(self, name: str, values) -> None:
        arr = np.asarray(values, dtype=np.float64)
        if len(arr) != self.length():
            raise SchemaMismatch(name)
        self.columns[name] = arr

    def get_row(self, index: int) -> Point:
        if not 0 <= index < self.length():
            raise PointIndexError(index)
        z = self.columns.get("z")
        zv = None if z is None or np.isnan(z[index]) else z[index]
        return Point(self.columns["x"][index], self.columns["y"][index], zv)


def test_point_clouds_satisfy_table_protocol() -> None:
    assert isinstance(ColumnPointCloud.new(), TableSource)
    assert isinstance(RowPointCloud.new(), TableSource)
    assert isinstance(DictTable({"x": [0.0], "y": [0.0]}), TableSource)


@pytest.mark.parametrize("layout", [RowPointCloud, ColumnPointCloud])
def test_cloud_from_table(layout) -> None:
    table = DictTable({"x": [1.0, 2.0], "y": [3.0, 4.0], "z": [5.0, np.nan]})
    pc = cloud_from_table(table, layout=layout)
    assert type(pc) is layout
    assert pc.to_points() == [Point.new_3d(1.0, 3.0, 5.0), Point.new_2d(2.0, 4.0)]


def test_transform_table_updates_coordinates() -> None:
    table = DictTable({"x": [1.0, 2.0], "y": [3.0, 4.0], "z": [5.0, np.nan]})
    transform_table(table, Transform.translation(10.0, 20.0, 30.0))
    np.testing.assert_allclose(table.columns["x"], [11.0, 12.0])
    np.testing.assert_allclose(table.columns["y"], [23.0, 24.0])
    np.testing.assert_allclose(table.columns["z"], [35.0, np.nan])


def test_transform_table_without_z() -> None:
    table = DictTable({"x": [1.0], "y": [1.0]})
    transform_table(table, Transform.translation(1.0, 1.0, 1.0))
    assert "z" not in table.columns
    np.testing.assert_allclose(table.columns["x"], [2.0])


class CountingTable(DictTable):
    def __init__(self, columns: Dict[str, np.ndarray]) -> None:
        super().__init__(columns)
        self.reads: Dict[str, int] = {}

    def get_column(self, name: str) -> np.ndarray:
        self.reads[name] = self.reads.get(name, 0) + 1
        return super().get_column(name)


def test_transform_table_reads_each_column_once() -> None:
    table = CountingTable({"x": [1.0], "y": [1.0], "z": [1.0]})
    transform_table(table, Transform.translation(1.0, 1.0, 1.0))
    assert table.reads == {"x": 1, "y": 1, "z": 1}
    flat = CountingTable({"x": [1.0], "y": [1.0]})
    transform_table(flat, Transform.identity())
    assert flat.reads == {"x": 1, "y": 1, "z": 1}


def test_transform_table_on_point_cloud() -> None:
    pc = ColumnPointCloud.from_points([Point.new_3d(1.0, 2.0, 3.0), Point.new_2d(0.0, 0.0)])
    transform_table(pc, Transform.translation(1.0, 1.0, 1.0))
    assert pc.to_points() == [Point.new_3d(2.0, 3.0, 4.0), Point.new_2d(1.0, 1.0)]


def test_table_errors_propagate() -> None:
    table = DictTable({"x": [1.0, 2.0], "y": [3.0, 4.0]})
    with pytest.raises(SchemaMismatch):
        table.set_column("x", [1.0])
    with pytest.raises(PointIndexError):
        table.get_row(2)
    with pytest.raises(SchemaMismatch):
        transform_table(DictTable({"x": [1.0], "y": [1.0, 2.0]}), Transform.identity())
