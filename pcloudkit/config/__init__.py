"""Configuration loading utilities for pcloudkit."""

from .schema import (
    CapacityPolicy,
    CloudConfig,
    load_config,
)

__all__ = ["CapacityPolicy", "CloudConfig", "load_config"]
