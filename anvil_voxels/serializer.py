"""Fixed-layout ``.vdat`` files: one byte per voxel, x outer, y middle, z inner."""

from __future__ import annotations

from pathlib import Path
from typing import Union

from .assembler import VoxelGrid
from .config import DEFAULT_GEOMETRY, RegionGeometry

VDAT_SUFFIX = ".vdat"


def serialize_grid(grid: VoxelGrid) -> bytes:
    # VoxelGrid already stores voxels in the persisted x/y/z order.
    return bytes(grid.data)


def deserialize_grid(data: bytes, geometry: RegionGeometry = DEFAULT_GEOMETRY) -> VoxelGrid:
    if len(data) != geometry.grid_volume:
        raise ValueError(f"voxel data is {len(data)} bytes, expected {geometry.grid_volume}")
    return VoxelGrid(geometry.section_dim, geometry.column_height, geometry.section_dim, data=data)


def cell_filename(slot_x: int, slot_z: int) -> str:
    return f"{slot_x}.{slot_z}{VDAT_SUFFIX}"


def write_grid(path: Union[str, Path], grid: VoxelGrid) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(serialize_grid(grid))
    return path


def read_grid(path: Union[str, Path], geometry: RegionGeometry = DEFAULT_GEOMETRY) -> VoxelGrid:
    return deserialize_grid(Path(path).read_bytes(), geometry)
