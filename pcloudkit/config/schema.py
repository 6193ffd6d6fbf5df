from __future__ import annotations

from pathlib import Path
from typing import Annotated, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, model_validator


class CapacityPolicy(BaseModel):
    """Storage growth policy, fixed per container at construction time."""
    min_capacity: int = Field(16, ge=1)
    growth_factor: float = Field(2.0, gt=1.0)
    auto_grow: bool = True

    def next_capacity(self, current: int, required: int) -> int:
        if not self.auto_grow:
            return required
        if current == 0:
            grown = self.min_capacity
        else:
            grown = int(current * self.growth_factor)
        return max(grown, required)


class MatrixTransformConfig(BaseModel):
    kind: Literal["matrix"]
    matrix: List[List[float]]

    @model_validator(mode="after")
    def _validate_shape(self) -> "MatrixTransformConfig":
        if len(self.matrix) != 4 or any(len(row) != 4 for row in self.matrix):
            raise ValueError("transform matrix must be 4x4")
        return self


class PoseTransformConfig(BaseModel):
    kind: Literal["pose"]
    xyz: tuple[float, float, float] = (0.0, 0.0, 0.0)
    rpy_deg: tuple[float, float, float] = (0.0, 0.0, 0.0)


class TranslationTransformConfig(BaseModel):
    kind: Literal["translation"]
    xyz: tuple[float, float, float]


TransformConfig = Annotated[
    Union[MatrixTransformConfig, PoseTransformConfig, TranslationTransformConfig],
    Field(discriminator="kind"),
]


LayoutType = Literal["row", "column"]


class CloudConfig(BaseModel):
    layout: LayoutType = "column"
    capacity: CapacityPolicy = CapacityPolicy()
    initial_capacity: int = Field(0, ge=0)
    transform: Optional[TransformConfig] = None
    homogeneous_eps: float = Field(1e-6, gt=0.0)


def load_config(path: str | Path) -> CloudConfig:
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ValueError("Configuration root must be a mapping.")
    return CloudConfig.model_validate(data)
