"""Error types raised by point clouds and transforms.

Each error also derives from the matching builtin so that generic
``except ValueError`` / ``except IndexError`` handlers still catch them.
"""
from __future__ import annotations


class PointCloudError(Exception):
    """Base class for every error raised by :mod:`pcloudkit`."""


class ShapeError(PointCloudError, ValueError):
    """Matrix data is not 4x4, or column storage diverges from the cloud length."""


class PointIndexError(PointCloudError, IndexError):
    """A point index is outside ``[0, num_points)``."""


class SchemaMismatch(PointCloudError, ValueError):
    """A bulk column does not fit the container's schema or length."""
