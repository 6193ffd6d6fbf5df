from __future__ import annotations
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, List, Mapping, Optional
import math

if TYPE_CHECKING:
    from .transform import Transform

# Attribute names with a dedicated field; extension attributes may not reuse them.
RESERVED_NAMES = (
    "x", "y", "z", "r", "g", "b", "a",
    "intensity", "classification", "ring_id", "time_offset",
)


def _channel(name: str, v: int) -> int:
    iv = int(v)
    if iv != v or not 0 <= iv <= 255:
        raise ValueError(f"Color channel '{name}' must be an integer in 0..255, got {v!r}")
    return iv


@dataclass(frozen=True)
class Color:
    """8-bit RGB color with optional alpha. Always a complete triple."""
    r: int
    g: int
    b: int
    a: Optional[int] = None

    def __post_init__(self) -> None:
        for name in ("r", "g", "b"):
            object.__setattr__(self, name, _channel(name, getattr(self, name)))
        if self.a is not None:
            object.__setattr__(self, "a", _channel("a", self.a))


@dataclass(frozen=True)
class Point:
    """A single spatial sample.

    ``x``/``y`` are always set; ``z`` and the remaining attributes are
    optional. Instances are immutable: the ``with_*`` builders return a
    modified copy. ``extras`` holds open-ended numeric attributes keyed by name.
    """
    x: float
    y: float
    z: Optional[float] = None
    color: Optional[Color] = None
    intensity: Optional[float] = None
    classification: Optional[int] = None
    ring_id: Optional[int] = None
    time_offset: Optional[float] = None
    extras: Mapping[str, float] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "x", float(self.x))
        object.__setattr__(self, "y", float(self.y))
        for name in ("z", "intensity", "time_offset"):
            v = getattr(self, name)
            if v is not None:
                object.__setattr__(self, name, float(v))
        if self.classification is not None:
            c = int(self.classification)
            if c != self.classification or not 0 <= c <= 255:
                raise ValueError(f"classification must be an integer code in 0..255, got {self.classification!r}")
            object.__setattr__(self, "classification", c)
        if self.ring_id is not None:
            r = int(self.ring_id)
            if r != self.ring_id or not 0 <= r <= 0xFFFF:
                raise ValueError(f"ring_id must be an integer in 0..65535, got {self.ring_id!r}")
            object.__setattr__(self, "ring_id", r)
        extras = {}
        for k, v in dict(self.extras).items():
            if k in RESERVED_NAMES:
                raise ValueError(f"'{k}' is a reserved attribute name")
            extras[str(k)] = float(v)
        object.__setattr__(self, "extras", MappingProxyType(extras))

    # -- construction --
    @staticmethod
    def new_2d(x: float, y: float) -> "Point":
        return Point(x, y)

    @staticmethod
    def new_3d(x: float, y: float, z: float) -> "Point":
        return Point(x, y, z)

    def with_color(self, r: int, g: int, b: int) -> "Point":
        return replace(self, color=Color(r, g, b))

    def with_rgba(self, r: int, g: int, b: int, a: int) -> "Point":
        return replace(self, color=Color(r, g, b, a))

    def with_intensity(self, intensity: float) -> "Point":
        return replace(self, intensity=intensity)

    def with_classification(self, classification: int) -> "Point":
        return replace(self, classification=classification)

    def with_ring_id(self, ring_id: int) -> "Point":
        return replace(self, ring_id=ring_id)

    def with_time_offset(self, time_offset: float) -> "Point":
        return replace(self, time_offset=time_offset)

    def with_attribute(self, name: str, value: float) -> "Point":
        extras = dict(self.extras)
        extras[name] = value
        return replace(self, extras=extras)

    def with_value(self, name: str, value: Optional[float]) -> "Point":
        """Return a copy with the attribute ``name`` set from a column value.

        ``None`` or NaN clears an optional attribute. Color channels can only
        be written on a point that already has a color.
        """
        if value is not None and math.isnan(value):
            value = None
        if name in ("x", "y"):
            if value is None:
                raise ValueError(f"'{name}' cannot be cleared")
            return replace(self, **{name: value})
        if name in ("z", "intensity", "classification", "ring_id", "time_offset"):
            return replace(self, **{name: value})
        if name in ("r", "g", "b", "a"):
            if self.color is None:
                return self
            if value is None:
                if name != "a":
                    raise ValueError(f"Color channel '{name}' cannot be cleared on its own")
                return replace(self, color=replace(self.color, a=None))
            return replace(self, color=replace(self.color, **{name: value}))
        extras = dict(self.extras)
        if value is None:
            extras.pop(name, None)
        else:
            extras[name] = value
        return replace(self, extras=extras)

    # -- queries --
    def get_attribute(self, name: str) -> Optional[float]:
        return self.extras.get(name)

    def is_3d(self) -> bool:
        return self.z is not None

    def has_color(self) -> bool:
        return self.color is not None

    def fields(self) -> List[str]:
        out = ["x", "y"]
        if self.z is not None:
            out.append("z")
        if self.color is not None:
            out.extend(("r", "g", "b"))
            if self.color.a is not None:
                out.append("a")
        for name in ("intensity", "classification", "ring_id", "time_offset"):
            if getattr(self, name) is not None:
                out.append(name)
        out.extend(self.extras.keys())
        return out

    def value(self, name: str) -> Optional[float]:
        """Numeric value of attribute ``name`` or ``None`` if the point lacks it."""
        if name in ("r", "g", "b", "a"):
            if self.color is None:
                return None
            v = getattr(self.color, name)
            return None if v is None else float(v)
        if name in RESERVED_NAMES:
            v = getattr(self, name)
            return None if v is None else float(v)
        return self.extras.get(name)

    def distance_2d(self, other: "Point") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def distance_3d(self, other: "Point") -> Optional[float]:
        """Euclidean distance, or ``None`` when either point has no z."""
        if self.z is None or other.z is None:
            return None
        return math.sqrt((self.x - other.x) ** 2 + (self.y - other.y) ** 2 + (self.z - other.z) ** 2)

    def transform(self, a2b: "Transform") -> "Point":
        """Map the coordinates through ``a2b``; a 2D point stays 2D."""
        x, y, z = a2b.apply_to_point(self.x, self.y, self.z)
        return replace(self, x=x, y=y, z=z if self.z is not None else None)
