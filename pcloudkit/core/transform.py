from __future__ import annotations
from typing import Iterable, Optional, Sequence, Tuple
import numpy as np

from .errors import ShapeError
from .utils import as_points_array

DEFAULT_EPS = 1e-6


class Transform:
    """A 4x4 homogeneous transform mapping points from frame ``a`` to frame ``b``.

    The matrix is always exactly 4x4 (float64) and owned by the instance;
    constructors copy their input. Composition follows the frame chain:
    ``a2b.compose(b2c)`` applies ``a2b`` first and returns ``a2c``
    (matrix product ``b2c @ a2b``).

    When applying to a point the homogeneous weight ``w`` is divided out only
    if ``|w| > eps``. Otherwise the first three components are returned
    unnormalised; no error is raised. Affine matrices always give ``w == 1``.
    """

    __slots__ = ("_mat", "eps")

    def __init__(self, matrix: Sequence[Sequence[float]] | np.ndarray, eps: float = DEFAULT_EPS) -> None:
        try:
            mat = np.array(matrix, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise ShapeError(f"Transform matrix must be numeric 4x4 data: {exc}") from exc
        if mat.shape != (4, 4):
            raise ShapeError(f"Transform matrix must be 4x4, got shape {mat.shape}")
        mat.flags.writeable = False
        eps = float(eps)
        if not eps >= 0.0:
            raise ValueError(f"eps must be non-negative, got {eps}")
        self._mat = mat
        self.eps = eps

    # -- factories --
    @classmethod
    def identity(cls, eps: float = DEFAULT_EPS) -> "Transform":
        return cls(np.eye(4), eps=eps)

    @classmethod
    def from_flat(cls, values: Iterable[float], eps: float = DEFAULT_EPS) -> "Transform":
        """Build from 16 values in row-major order."""
        flat = np.asarray(list(values), dtype=np.float64)
        if flat.shape != (16,):
            raise ShapeError(f"Flat transform data must have 16 values, got {flat.size}")
        return cls(flat.reshape(4, 4), eps=eps)

    @classmethod
    def translation(cls, tx: float, ty: float, tz: float = 0.0) -> "Transform":
        m = np.eye(4)
        m[:3, 3] = (tx, ty, tz)
        return cls(m)

    @classmethod
    def from_rotation_translation(cls, R: np.ndarray, t: Optional[Sequence[float]] = None) -> "Transform":
        R = np.asarray(R, dtype=np.float64)
        if R.shape != (3, 3):
            raise ShapeError(f"Rotation must be 3x3, got shape {R.shape}")
        m = np.eye(4)
        m[:3, :3] = R
        if t is not None:
            tv = np.asarray(t, dtype=np.float64)
            if tv.shape != (3,):
                raise ShapeError(f"Translation must have 3 components, got shape {tv.shape}")
            m[:3, 3] = tv
        return cls(m)

    @classmethod
    def from_xyz_rpy(cls, xyz: Tuple[float, float, float], rpy_deg: Tuple[float, float, float]) -> "Transform":
        """Rigid transform from a translation and roll/pitch/yaw in degrees (R = Rz @ Ry @ Rx)."""
        rx, ry, rz = np.deg2rad(rpy_deg)
        cx, sx = np.cos(rx), np.sin(rx)
        cy, sy = np.cos(ry), np.sin(ry)
        cz, sz = np.cos(rz), np.sin(rz)
        Rx = np.array([[1, 0, 0], [0, cx, -sx], [0, sx, cx]])
        Ry = np.array([[cy, 0, sy], [0, 1, 0], [-sy, 0, cy]])
        Rz = np.array([[cz, -sz, 0], [sz, cz, 0], [0, 0, 1]])
        return cls.from_rotation_translation(Rz @ Ry @ Rx, xyz)

    # -- accessors --
    @property
    def matrix(self) -> np.ndarray:
        """Read-only view of the 4x4 matrix."""
        return self._mat

    def to_list(self) -> list[list[float]]:
        return self._mat.tolist()

    # -- algebra --
    def compose(self, other: "Transform") -> "Transform":
        """Return the transform that applies ``self`` first, then ``other``."""
        return Transform(other._mat @ self._mat, eps=self.eps)

    def inverse(self) -> "Transform":
        return Transform(np.linalg.inv(self._mat), eps=self.eps)

    def apply_to_point(self, x: float, y: float, z: Optional[float] = None) -> Tuple[float, float, float]:
        """Map ``(x, y, z)`` through the matrix; ``z=None`` is treated as 0."""
        zv = 0.0 if z is None else float(z)
        res = self._mat @ np.array([x, y, zv, 1.0])
        w = res[3]
        if abs(w) > self.eps:
            return float(res[0] / w), float(res[1] / w), float(res[2] / w)
        return float(res[0]), float(res[1]), float(res[2])

    def apply_to_array(self, xyz: np.ndarray) -> np.ndarray:
        """Vectorised :meth:`apply_to_point` for an (N, 2) or (N, 3) array; returns (N, 3)."""
        pts = as_points_array(xyz)
        hom = np.column_stack([pts, np.ones(len(pts), dtype=np.float64)])
        res = hom @ self._mat.T
        out = res[:, :3].copy()
        w = res[:, 3]
        ok = np.abs(w) > self.eps
        out[ok] /= w[ok, None]
        return out

    def allclose(self, other: "Transform", atol: float = 1e-9) -> bool:
        return bool(np.allclose(self._mat, other._mat, atol=atol))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Transform):
            return NotImplemented
        return bool(np.array_equal(self._mat, other._mat))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        rows = ", ".join(str(r) for r in self._mat.tolist())
        return f"Transform([{rows}])"
