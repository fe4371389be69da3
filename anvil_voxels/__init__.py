"""Decode Anvil/McRegion region files into dense per-chunk voxel grids."""

from .assembler import AssembledCell, CellAssembler, VoxelGrid, normalize_slot
from .config import DEFAULT_GEOMETRY, RegionGeometry, Settings
from .decoder import CellFailure, DecodeResult, decode_container, decode_region
from .errors import (
    CellDecodeError,
    DecompressionFailure,
    IncompleteSection,
    MalformedHeader,
    MalformedSection,
    MalformedTag,
    MissingCoordinate,
    OutOfBounds,
    RegionError,
    SlotCollision,
    UnknownTagType,
    UnsupportedCompression,
    UnsupportedListElement,
)
from .nbt import payload_size
from .region import RegionFile, read_container
from .serializer import deserialize_grid, read_grid, serialize_grid, write_grid
from .walker import decode_cell, iter_tags, walk

__version__ = "0.1.0"
