"""Reassembly of 16^3 section arrays into a full-height voxel column."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Set, Tuple

from .config import DEFAULT_GEOMETRY, RegionGeometry
from .errors import IncompleteSection, MalformedSection, MissingCoordinate


def normalize_slot(coord: int, dim: int = 32) -> int:
    return dim - (abs(coord) % dim) - 1


class VoxelGrid:
    """Dense (x, y, z) grid of block ids, stored flat as x*H*D + y*D + z."""

    __slots__ = ("width", "height", "depth", "data")

    def __init__(self, width: int = 16, height: int = 256, depth: int = 16, data: Optional[bytes] = None):
        self.width = width
        self.height = height
        self.depth = depth
        n = width * height * depth
        if data is None:
            self.data = bytearray(n)
        else:
            if len(data) != n:
                raise ValueError(f"grid data is {len(data)} bytes, expected {n}")
            self.data = bytearray(data)

    @classmethod
    def for_geometry(cls, geometry: RegionGeometry = DEFAULT_GEOMETRY) -> "VoxelGrid":
        return cls(geometry.section_dim, geometry.column_height, geometry.section_dim)

    @property
    def shape(self) -> Tuple[int, int, int]:
        return self.width, self.height, self.depth

    def offset(self, x: int, y: int, z: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height and 0 <= z < self.depth):
            raise IndexError(f"voxel ({x}, {y}, {z}) outside grid {self.shape}")
        return (x * self.height + y) * self.depth + z

    def __getitem__(self, xyz: Tuple[int, int, int]) -> int:
        return self.data[self.offset(*xyz)]

    def __setitem__(self, xyz: Tuple[int, int, int], value: int) -> None:
        self.data[self.offset(*xyz)] = value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VoxelGrid):
            return NotImplemented
        return self.shape == other.shape and self.data == other.data

    def __repr__(self) -> str:
        return f"VoxelGrid(shape={self.shape})"

    def place_section(self, vertical_index: int, identifiers: bytes, section_dim: int = 16) -> None:
        # source is y-major within the section: y*dim*dim + z*dim + x
        d = section_dim
        base_y = vertical_index * d
        for x in range(d):
            for y in range(d):
                dst = (x * self.height + base_y + y) * self.depth
                src = y * d * d + x
                # one z row of the destination is a stride-d column of the source
                self.data[dst : dst + d] = identifiers[src : src + d * d : d]


@dataclass(frozen=True)
class SectionData:
    vertical_index: int
    identifiers: bytes


@dataclass
class AssembledCell:
    chunk_x: int
    chunk_z: int
    slot: Tuple[int, int]
    grid: VoxelGrid
    sections: int


class CellAssembler:
    """Collects coordinates and Y/Blocks pairs for one cell as tags stream by.

    Y and Blocks may arrive in either order; a section is committed as soon as
    both halves are known.
    """

    def __init__(self, geometry: RegionGeometry = DEFAULT_GEOMETRY):
        self.geometry = geometry
        self.chunk_x: Optional[int] = None
        self.chunk_z: Optional[int] = None
        self.pending_index: Optional[int] = None
        self.pending_blocks: Optional[bytes] = None
        self.grid: Optional[VoxelGrid] = None
        self._committed: Set[int] = set()

    def set_x(self, value: int) -> None:
        self.chunk_x = value

    def set_z(self, value: int) -> None:
        self.chunk_z = value

    def add_index(self, vertical_index: int) -> None:
        if self.pending_index is not None:
            raise IncompleteSection(f"section Y={self.pending_index} has no Blocks array")
        self.pending_index = vertical_index
        self._maybe_commit()

    def add_blocks(self, identifiers: bytes) -> None:
        if self.pending_blocks is not None:
            raise IncompleteSection("Blocks array has no Y index")
        if len(identifiers) != self.geometry.section_volume:
            raise MalformedSection(f"Blocks array is {len(identifiers)} bytes, expected {self.geometry.section_volume}")
        self.pending_blocks = identifiers
        self._maybe_commit()

    def _maybe_commit(self) -> None:
        if self.pending_index is None or self.pending_blocks is None:
            return
        self.commit(SectionData(self.pending_index, self.pending_blocks))
        self.pending_index = None
        self.pending_blocks = None

    def commit(self, section: SectionData) -> None:
        idx = section.vertical_index
        if not 0 <= idx < self.geometry.sections_per_column:
            raise MalformedSection(f"section Y={idx} outside 0..{self.geometry.sections_per_column - 1}")
        if idx in self._committed:
            raise MalformedSection(f"section Y={idx} appears twice")
        if self.grid is None:
            self.grid = VoxelGrid.for_geometry(self.geometry)
        self.grid.place_section(idx, section.identifiers, self.geometry.section_dim)
        self._committed.add(idx)

    @property
    def sections(self) -> int:
        return len(self._committed)

    def finish(self) -> Optional[AssembledCell]:
        if self.pending_index is not None:
            raise IncompleteSection(f"stream ended with section Y={self.pending_index} missing its Blocks array")
        if self.pending_blocks is not None:
            raise IncompleteSection("stream ended with a Blocks array missing its Y index")
        if self.grid is None:
            return None
        if self.chunk_x is None or self.chunk_z is None:
            raise MissingCoordinate("cell has sections but no xPos/zPos")
        dim = self.geometry.region_dim
        slot = (normalize_slot(self.chunk_x, dim), normalize_slot(self.chunk_z, dim))
        return AssembledCell(chunk_x=self.chunk_x, chunk_z=self.chunk_z, slot=slot, grid=self.grid, sections=self.sections)
