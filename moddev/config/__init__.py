"""Configuration schema and loading for moddev."""

from .schema import (
    AssetSyncConfig,
    EnvironmentConfig,
    PipelineStageEntry,
    default_pipeline,
)
from .loader import load_environment_config

__all__ = [
    "AssetSyncConfig",
    "EnvironmentConfig",
    "PipelineStageEntry",
    "default_pipeline",
    "load_environment_config",
]
