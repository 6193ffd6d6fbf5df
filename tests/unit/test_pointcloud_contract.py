import numpy as np
import pytest

from pcloudkit.core.column import ColumnPointCloud
from pcloudkit.core.errors import PointIndexError, SchemaMismatch
from pcloudkit.core.point import Point
from pcloudkit.core.row import RowPointCloud
from pcloudkit.core.transform import Transform

LAYOUTS = [RowPointCloud, ColumnPointCloud]


def make_points() -> list[Point]:
    return [
        Point.new_2d(0.0, 0.0),
        Point.new_3d(1.0, 2.0, 3.0).with_color(10, 20, 30).with_intensity(0.5),
        Point.new_3d(4.0, 5.0, 6.0).with_rgba(1, 2, 3, 4).with_classification(2),
        Point.new_2d(7.0, 8.0).with_ring_id(12).with_time_offset(0.01).with_attribute("reflectance", 0.9),
    ]


@pytest.mark.parametrize("layout", LAYOUTS)
def test_new_cloud_is_empty(layout) -> None:
    pc = layout.new()
    assert pc.num_points() == 0
    assert pc.is_empty()
    assert len(pc) == 0
    assert not pc.is_3d()
    assert not pc.has_color()
    assert pc.attribute_names() == ["x", "y"]


@pytest.mark.parametrize("layout", LAYOUTS)
def test_round_trip_points(layout) -> None:
    points = make_points()
    pc = layout.from_points(points)
    assert pc.num_points() == len(points)
    assert pc.to_points() == points
    for i, p in enumerate(points):
        assert pc.at(i) == p
        assert pc.get_row(i) == p


@pytest.mark.parametrize("layout", LAYOUTS)
def test_schema_queries(layout) -> None:
    pc = layout.from_points(make_points())
    assert pc.is_3d()
    assert pc.has_color()
    assert pc.has_intensity()
    assert pc.has_classification()
    assert pc.has_attribute("ring_id")
    assert pc.has_attribute("reflectance")
    assert not pc.has_attribute("missing")
    assert pc.attribute_names() == [
        "x", "y", "z", "r", "g", "b", "a",
        "intensity", "classification", "ring_id", "time_offset", "reflectance",
    ]


@pytest.mark.parametrize("layout", LAYOUTS)
def test_out_of_range_access(layout) -> None:
    pc = layout.from_points(make_points())
    n = pc.num_points()
    with pytest.raises(PointIndexError):
        pc.at(n)
    with pytest.raises(IndexError):
        pc.get_point(n)
    with pytest.raises(PointIndexError):
        pc.set(n, Point.new_2d(0.0, 0.0))
    with pytest.raises(PointIndexError):
        pc.at(-1)
    with pytest.raises(PointIndexError):
        layout.new().at(0)


@pytest.mark.parametrize("layout", LAYOUTS)
def test_set_replaces_point(layout) -> None:
    pc = layout.from_points(make_points())
    replacement = Point.new_3d(9.0, 9.0, 9.0).with_intensity(1.0)
    pc.set(0, replacement)
    assert pc.at(0) == replacement
    assert pc.num_points() == 4


@pytest.mark.parametrize("layout", LAYOUTS)
def test_clear_preserves_schema(layout) -> None:
    pc = layout.from_points(make_points())
    before = pc.attribute_names()
    pc.clear()
    assert pc.num_points() == 0
    assert pc.is_empty()
    assert pc.attribute_names() == before
    assert pc.get_column("intensity").shape == (0,)
    pc.add_point(Point.new_2d(1.0, 1.0))
    assert pc.attribute_names() == before
    assert pc.at(0) == Point.new_2d(1.0, 1.0)


@pytest.mark.parametrize("layout", LAYOUTS)
def test_reserve_and_with_capacity(layout) -> None:
    pc = layout.with_capacity(100)
    assert pc.capacity() >= 100
    pc.add_point(Point.new_2d(0.0, 0.0))
    pc.reserve(500)
    assert pc.capacity() >= 501
    with pytest.raises(ValueError):
        pc.reserve(-1)


@pytest.mark.parametrize("layout", LAYOUTS)
def test_transform_translation_scenario(layout) -> None:
    pc = layout.from_points([Point.new_3d(1.0, 2.0, 3.0).with_intensity(0.25)])
    moved = pc.transform(Transform.translation(10.0, 20.0, 30.0))
    assert type(moved) is layout
    p = moved.at(0)
    assert (p.x, p.y, p.z) == (11.0, 22.0, 33.0)
    assert p.intensity == 0.25
    # the source is untouched
    assert pc.at(0).x == 1.0


@pytest.mark.parametrize("layout", LAYOUTS)
def test_transform_matches_per_point_mapping(layout) -> None:
    t = Transform.from_xyz_rpy((1.0, 2.0, 3.0), (5.0, 10.0, 45.0))
    points = make_points()
    pc = layout.from_points(points)
    moved = pc.transform(t)
    for p, q in zip(points, moved.to_points()):
        expected = p.transform(t)
        assert q.z is None if p.z is None else q.z == pytest.approx(expected.z)
        assert q.x == pytest.approx(expected.x)
        assert q.y == pytest.approx(expected.y)
        assert q.color == p.color
        assert q.extras == p.extras


@pytest.mark.parametrize("layout", LAYOUTS)
def test_transform_in_place(layout) -> None:
    pc = layout.from_points(make_points())
    pc.transform_in_place(Transform.translation(1.0, 1.0, 1.0))
    assert pc.at(0) == Point.new_2d(1.0, 1.0)
    assert pc.at(1).z == 4.0
    assert pc.at(1).color == make_points()[1].color


@pytest.mark.parametrize("layout", LAYOUTS)
def test_get_column_values(layout) -> None:
    pc = layout.from_points(make_points())
    np.testing.assert_allclose(pc.get_column("x"), [0.0, 1.0, 4.0, 7.0])
    np.testing.assert_allclose(pc.get_column("z"), [np.nan, 3.0, 6.0, np.nan])
    np.testing.assert_allclose(pc.get_column("r"), [np.nan, 10.0, 1.0, np.nan])
    np.testing.assert_allclose(pc.get_column("a"), [np.nan, np.nan, 4.0, np.nan])
    np.testing.assert_allclose(pc.get_column("reflectance"), [np.nan, np.nan, np.nan, 0.9])
    with pytest.raises(SchemaMismatch):
        pc.get_column("missing")


@pytest.mark.parametrize("layout", LAYOUTS)
def test_set_column(layout) -> None:
    pc = layout.from_points(make_points())
    pc.set_column("x", [9.0, 8.0, 7.0, 6.0])
    pc.set_column("intensity", [np.nan, 1.0, 2.0, np.nan])
    pc.set_column("weight", np.array([1.0, np.nan, 3.0, np.nan]))
    assert [p.x for p in pc.to_points()] == [9.0, 8.0, 7.0, 6.0]
    assert pc.at(0).intensity is None
    assert pc.at(2).intensity == 2.0
    assert pc.at(0).get_attribute("weight") == 1.0
    assert pc.at(1).get_attribute("weight") is None
    # channel writes leave colorless rows without color
    pc.set_column("g", [0.0, 99.0, 98.0, 97.0])
    assert pc.at(1).color.g == 99
    assert pc.at(3).color is None


@pytest.mark.parametrize("layout", LAYOUTS)
def test_set_column_length_mismatch(layout) -> None:
    pc = layout.from_points(make_points())
    with pytest.raises(SchemaMismatch):
        pc.set_column("intensity", [1.0, 2.0])
    with pytest.raises(SchemaMismatch):
        pc.set_column("x", [1.0, np.nan, 3.0, 4.0])
    with pytest.raises(SchemaMismatch):
        layout.from_points([Point.new_2d(0.0, 0.0)]).set_column("r", [1.0])


@pytest.mark.parametrize("layout", LAYOUTS)
@pytest.mark.parametrize(
    "name, values",
    [
        ("ring_id", [1.0, 2.0, 70000.0, 3.0]),
        ("ring_id", [1.0, 2.5, 3.0, 4.0]),
        ("classification", [1.0, 256.0, 2.0, 3.0]),
        ("classification", [-1.0, 1.0, 2.0, 3.0]),
        ("g", [1.0, 2.0, 300.0, 4.0]),
    ],
)
def test_set_column_rejects_invalid_integers_before_writing(layout, name, values) -> None:
    pc = layout.from_points(make_points())
    with pytest.raises(SchemaMismatch):
        pc.set_column(name, values)
    assert pc.to_points() == make_points()


@pytest.mark.parametrize("layout", LAYOUTS)
def test_extend_and_length(layout) -> None:
    pc = layout.new()
    pc.extend(iter(make_points()))
    pc.extend(make_points())
    assert pc.length() == 8
    assert pc.at(5) == make_points()[1]
