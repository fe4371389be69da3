"""Region container reader: location header, sector payloads, inflation."""

from __future__ import annotations

import logging
import struct
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Tuple, Union

from .config import DEFAULT_GEOMETRY, RegionGeometry
from .errors import CellDecodeError, DecompressionFailure, MalformedHeader, OutOfBounds, UnsupportedCompression

LOG = logging.getLogger(__name__)

Source = Union[str, Path, bytes, bytearray, memoryview, BinaryIO]


@dataclass(frozen=True)
class RegionIndexEntry:
    index: int
    sector_offset: int
    sector_count: int
    timestamp: int

    @property
    def present(self) -> bool:
        return self.sector_offset != 0

    def local_xz(self, region_dim: int = 32) -> Tuple[int, int]:
        return self.index % region_dim, self.index // region_dim


@dataclass(frozen=True)
class CellPayload:
    index: int
    declared_length: int
    compression: int
    data: bytes


def load_source(source: Source) -> bytes:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    if isinstance(source, (str, Path)):
        return Path(source).read_bytes()
    return source.read()


def read_header(data: bytes, geometry: RegionGeometry = DEFAULT_GEOMETRY) -> List[RegionIndexEntry]:
    if len(data) < geometry.header_bytes:
        raise MalformedHeader(f"region data is {len(data)} bytes, header needs {geometry.header_bytes}")
    n = geometry.cell_count
    locations = struct.unpack_from(f">{n}I", data, 0)
    timestamps = struct.unpack_from(f">{n}I", data, geometry.location_table_bytes)
    return [
        RegionIndexEntry(index=i, sector_offset=(loc >> 8) & 0xFFFFFF, sector_count=loc & 0xFF, timestamp=ts)
        for i, (loc, ts) in enumerate(zip(locations, timestamps))
    ]


def read_payload(data: bytes, entry: RegionIndexEntry, geometry: RegionGeometry = DEFAULT_GEOMETRY) -> CellPayload:
    off = entry.sector_offset * geometry.sector_bytes
    if off + 5 > len(data):
        raise OutOfBounds(f"cell {entry.index}: sector offset {off} exceeds file size {len(data)}")
    length = struct.unpack_from(">I", data, off)[0]
    if length < 1:
        raise OutOfBounds(f"cell {entry.index}: declared length {length} is too small")
    end = off + 4 + length
    if end > len(data):
        raise OutOfBounds(f"cell {entry.index}: payload end {end} exceeds file size {len(data)}")
    compression = data[off + 4]
    if compression != geometry.compression:
        raise UnsupportedCompression(f"cell {entry.index}: unknown chunk compression type {compression}")
    return CellPayload(index=entry.index, declared_length=length, compression=compression, data=data[off + 5 : end])


def inflate(payload: CellPayload) -> bytes:
    try:
        return zlib.decompress(payload.data)
    except zlib.error as exc:
        raise DecompressionFailure(f"cell {payload.index}: {exc}") from exc


class RegionFile:
    def __init__(self, source: Source, geometry: RegionGeometry = DEFAULT_GEOMETRY):
        self.geometry = geometry
        self.data = load_source(source)
        self.entries = read_header(self.data, geometry)

    def read_cell(self, index: int) -> Optional[bytes]:
        entry = self.entries[index]
        if not entry.present:
            return None
        payload = read_payload(self.data, entry, self.geometry)
        raw = inflate(payload)
        LOG.debug("Decompressed cell %d (%d -> %d bytes)", index, payload.declared_length - 1, len(raw))
        return raw

    def iter_cells(self) -> Iterator[Tuple[RegionIndexEntry, Union[bytes, CellDecodeError, None]]]:
        for entry in self.entries:
            try:
                yield entry, self.read_cell(entry.index)
            except CellDecodeError as exc:
                yield entry, exc


def read_container(source: Source, geometry: RegionGeometry = DEFAULT_GEOMETRY) -> List[Optional[bytes]]:
    """Inflate every cell of a region; absent cells are ``None``.

    The first per-cell error propagates; use RegionFile.iter_cells to keep going
    past damaged cells.
    """
    region = RegionFile(source, geometry)
    return [region.read_cell(entry.index) for entry in region.entries]
