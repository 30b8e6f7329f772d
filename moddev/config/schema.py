"""Configuration schema definitions using Pydantic for validation.

Strongly-typed settings for the configuration pipeline and the asset
synchronizer. Invalid values are rejected at load time with clear
error messages instead of surfacing mid-run.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

VALID_MAVEN_SCOPES = {"compile", "provided", "runtime", "test", "system", "import"}

DEFAULT_RESOURCES_BASE = "https://resources.download.minecraft.net/"


class PipelineStageEntry(BaseModel):
    """One remapping stage of the configuration pipeline.

    Attributes:
        source_config: User-facing configuration holding unmapped artifacts.
            Always transitive.
        remapped_config: Configuration receiving remapped artifacts.
            Never transitive.
        target_config: Host configuration that extends from the remapped one.
        on_mod_compile_classpath: Whether the stage feeds the aggregate
            mod classpath configurations.
        maven_scope: Scope used when publishing the source dependencies,
            or None to leave them out of the published POM.
    """

    model_config = ConfigDict(frozen=True)

    source_config: str = Field(min_length=1)
    remapped_config: str = Field(min_length=1)
    target_config: str = Field(min_length=1)
    on_mod_compile_classpath: bool = True
    maven_scope: Optional[str] = None

    @field_validator("maven_scope")
    @classmethod
    def validate_scope(cls, v: Optional[str]) -> Optional[str]:
        """Validate that the publish scope is a valid Maven scope."""
        if v in (None, ""):
            return None
        if v not in VALID_MAVEN_SCOPES:
            raise ValueError(
                f"Invalid Maven scope '{v}'. Valid scopes: {sorted(VALID_MAVEN_SCOPES)}"
            )
        return v

    @model_validator(mode="after")
    def validate_distinct(self) -> "PipelineStageEntry":
        if self.source_config == self.remapped_config:
            raise ValueError(
                f"Stage '{self.source_config}' cannot remap into itself"
            )
        return self

    @property
    def has_maven_scope(self) -> bool:
        return self.maven_scope is not None


class AssetSyncConfig(BaseModel):
    """Settings for the asset synchronizer.

    Attributes:
        cache_dir: Shared user cache; assets live under ``<cache_dir>/assets``.
        run_dir: Optional run directory that receives a second copy of the
            asset tree for the launcher.
        offline: Never touch the network; accept stale assets.
        workers: Size of the fetch worker pool.
        timeout: Per-request timeout in seconds.
        retries: Attempts per transfer before giving up.
        backoff: Base delay in seconds between attempts (doubles each time).
        resources_base: Content origin; objects live at
            ``<resources_base><hash[0:2]>/<hash>``.
    """

    cache_dir: Path = Field(default_factory=lambda: Path.home() / ".moddev" / "cache")
    run_dir: Optional[Path] = None
    offline: bool = False
    workers: int = Field(default=8, ge=1, le=64)
    timeout: float = Field(default=30.0, gt=0.0, le=600.0)
    retries: int = Field(default=3, ge=1, le=10)
    backoff: float = Field(default=0.5, ge=0.0, le=30.0)
    resources_base: str = DEFAULT_RESOURCES_BASE

    model_config = {"extra": "forbid"}

    @field_validator("resources_base")
    @classmethod
    def validate_base(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"resources_base must be an http(s) URL, got '{v}'")
        return v if v.endswith("/") else v + "/"

    @property
    def assets_dir(self) -> Path:
        return self.cache_dir / "assets"


def default_pipeline() -> List[PipelineStageEntry]:
    """Return the standard remapping stages."""
    return [
        PipelineStageEntry(
            source_config="modCompile",
            remapped_config="modCompileMapped",
            target_config="compile",
            on_mod_compile_classpath=True,
            maven_scope="compile",
        ),
        PipelineStageEntry(
            source_config="modApi",
            remapped_config="modApiMapped",
            target_config="api",
            on_mod_compile_classpath=True,
            maven_scope="compile",
        ),
        PipelineStageEntry(
            source_config="modImplementation",
            remapped_config="modImplementationMapped",
            target_config="implementation",
            on_mod_compile_classpath=True,
            maven_scope="runtime",
        ),
        PipelineStageEntry(
            source_config="modRuntime",
            remapped_config="modRuntimeMapped",
            target_config="runtimeOnly",
            on_mod_compile_classpath=False,
        ),
        PipelineStageEntry(
            source_config="modCompileOnly",
            remapped_config="modCompileOnlyMapped",
            target_config="compileOnly",
            on_mod_compile_classpath=True,
        ),
    ]


class EnvironmentConfig(BaseModel):
    """Aggregate configuration for one build invocation."""

    pipeline: List[PipelineStageEntry] = Field(default_factory=default_pipeline)
    assets: AssetSyncConfig = Field(default_factory=AssetSyncConfig)
    refmap_name: str = "mixins.refmap.json"
    tweak_class: str = ""

    model_config = {"extra": "allow"}

    @field_validator("pipeline")
    @classmethod
    def validate_unique_sources(cls, v: List[PipelineStageEntry]) -> List[PipelineStageEntry]:
        seen = set()
        for entry in v:
            if entry.source_config in seen:
                raise ValueError(f"Duplicate pipeline stage '{entry.source_config}'")
            seen.add(entry.source_config)
        return v

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EnvironmentConfig":
        """Build from a parsed mapping, applying environment overrides."""
        merged = dict(data)
        assets = dict(merged.get("assets") or {})

        offline_env = os.getenv("MODDEV_OFFLINE")
        if offline_env is not None:
            assets["offline"] = offline_env.lower() not in ("0", "false", "no", "")
        cache_env = os.getenv("MODDEV_CACHE_DIR")
        if cache_env:
            assets["cache_dir"] = cache_env

        merged["assets"] = assets
        return cls.model_validate(merged)


__all__ = [
    "AssetSyncConfig",
    "EnvironmentConfig",
    "PipelineStageEntry",
    "default_pipeline",
    "DEFAULT_RESOURCES_BASE",
]
