"""Configuration model for study loading."""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator


MIB = 1024 * 1024


class LoadConfig(BaseModel):
    max_file_size: int = Field(
        default=500 * MIB,
        ge=1,
        description="Files larger than this many bytes are skipped",
    )
    max_files: int = Field(default=10_000, ge=1, le=1_000_000)
    max_archive_size: int = Field(default=2 * 1024 * MIB, ge=1)
    header_probe_limit: int = Field(
        default=10,
        ge=1,
        le=1000,
        description="Number of leading files tried when looking for study-level fields",
    )
    max_workers: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Threads decoding files concurrently (1 decodes inline)",
    )
    max_content_depth: int = Field(default=256, ge=1, le=900)
    max_overlay_pixels: int = Field(
        default=8192 * 8192,
        ge=1,
        description="Overlay planes with more rows x columns than this are skipped",
    )
    extensions: tuple[str, ...] = (".dcm", ".dicom", ".ima")
    include_extensionless: bool = True

    @field_validator("extensions", mode="before")
    @classmethod
    def _normalize_extensions(cls, value):
        if isinstance(value, str):
            value = [part for part in value.split(",")]
        normalized = []
        for ext in value:
            ext = str(ext).strip().lower()
            if not ext:
                continue
            normalized.append(ext if ext.startswith(".") else f".{ext}")
        return tuple(normalized)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    return int(raw) if raw else default


@lru_cache
def get_settings() -> LoadConfig:
    defaults = LoadConfig()
    return LoadConfig(
        max_file_size=_env_int("DICOM_LOAD_MAX_FILE_SIZE", defaults.max_file_size),
        max_files=_env_int("DICOM_LOAD_MAX_FILES", defaults.max_files),
        max_archive_size=_env_int("DICOM_LOAD_MAX_ARCHIVE_SIZE", defaults.max_archive_size),
        header_probe_limit=_env_int("DICOM_LOAD_HEADER_PROBE_LIMIT", defaults.header_probe_limit),
        max_workers=_env_int("DICOM_LOAD_MAX_WORKERS", defaults.max_workers),
        max_content_depth=_env_int("DICOM_LOAD_MAX_CONTENT_DEPTH", defaults.max_content_depth),
        max_overlay_pixels=_env_int("DICOM_LOAD_MAX_OVERLAY_PIXELS", defaults.max_overlay_pixels),
        extensions=os.getenv("DICOM_LOAD_EXTENSIONS") or defaults.extensions,
        include_extensionless=os.getenv("DICOM_LOAD_INCLUDE_EXTENSIONLESS", "true").lower() == "true",
    )


def load_config(path: Path) -> LoadConfig:
    """Load a loader config from a JSON or YAML file."""

    text = path.read_text()
    if path.suffix.lower() in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    return LoadConfig.model_validate(data or {})
