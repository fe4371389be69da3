from __future__ import annotations

import logging
import os
from dataclasses import dataclass

LOG = logging.getLogger(__name__)

COMPRESSION_ZLIB = 2
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class RegionGeometry:
    """Layout parameters of a region container and the grids decoded from it."""

    region_dim: int = 32
    sector_bytes: int = 4096
    section_dim: int = 16
    sections_per_column: int = 16
    compression: int = COMPRESSION_ZLIB

    def __post_init__(self) -> None:
        for name in ("region_dim", "sector_bytes", "section_dim", "sections_per_column"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0")

    @property
    def cell_count(self) -> int:
        return self.region_dim * self.region_dim

    @property
    def location_table_bytes(self) -> int:
        return self.cell_count * 4

    @property
    def header_bytes(self) -> int:
        # location table + timestamp table
        return self.location_table_bytes * 2

    @property
    def section_volume(self) -> int:
        return self.section_dim ** 3

    @property
    def column_height(self) -> int:
        return self.section_dim * self.sections_per_column

    @property
    def grid_volume(self) -> int:
        return self.section_dim * self.column_height * self.section_dim


DEFAULT_GEOMETRY = RegionGeometry()


@dataclass
class Settings:
    log_level: str
    workers: int
    output_dirname: str

    @classmethod
    def from_env(cls) -> "Settings":
        log_level = os.environ.get("ANVIL_VOXELS_LOG_LEVEL", "INFO").strip().upper()
        if log_level not in LOG_LEVELS:
            LOG.warning("Ignoring invalid ANVIL_VOXELS_LOG_LEVEL: %r", log_level)
            log_level = "INFO"
        raw_workers = os.environ.get("ANVIL_VOXELS_WORKERS", "1").strip()
        try:
            workers = int(raw_workers)
        except ValueError:
            LOG.warning("Ignoring invalid ANVIL_VOXELS_WORKERS: %r", raw_workers)
            workers = 1
        output_dirname = os.environ.get("ANVIL_VOXELS_OUTPUT_DIRNAME", "decompressed")
        return cls(log_level=log_level, workers=max(1, workers), output_dirname=output_dirname)
