"""pcloudkit – point-cloud containers and homogeneous transforms.

This package contains:
- Point & Color value types (core.point)
- Transform, a validated 4x4 homogeneous matrix (core.transform)
- PointCloud capability contract (core.pointcloud)
- RowPointCloud, one record per point (core.row)
- ColumnPointCloud, one lazily materialized array per attribute (core.column)
- TableSource interop for externally stored tables (core.table)
- Error types (core.errors) and YAML/pydantic configuration (config)
"""

from .core.errors import PointCloudError, ShapeError, PointIndexError, SchemaMismatch
from .core.point import Point, Color
from .core.transform import Transform
from .core.pointcloud import PointCloud
from .core.row import RowPointCloud
from .core.column import ColumnPointCloud
from .core.table import TableSource, cloud_from_table, transform_table
from .config import CapacityPolicy, CloudConfig, load_config
from .sdk.run import cloud_from_config
