from __future__ import annotations

import io
import struct

import pytest

from anvil_voxels.errors import DecompressionFailure, MalformedHeader, OutOfBounds, UnsupportedCompression
from anvil_voxels.region import RegionFile, read_container, read_header, read_payload

SECTOR = 4096


def test_short_file_is_malformed_header():
    with pytest.raises(MalformedHeader):
        RegionFile(bytes(8191))


def test_header_parses_offsets_counts_and_timestamps(nbt):
    data = nbt.region_bytes({0: nbt.chunk_nbt(0, 0), 33: nbt.chunk_nbt(1, 1)})
    entries = read_header(data)
    assert len(entries) == 1024
    assert entries[0].sector_offset == 2
    assert entries[0].sector_count == 1
    assert entries[0].timestamp == 1_600_000_000
    assert entries[33].present
    assert entries[33].local_xz() == (1, 1)
    assert not entries[1].present


def test_read_container_marks_absent_cells(nbt):
    raw = nbt.chunk_nbt(5, 6, [(0, bytes(4096))])
    cells = read_container(nbt.region_bytes({10: raw}))
    assert len(cells) == 1024
    assert cells[10] == raw
    assert all(c is None for i, c in enumerate(cells) if i != 10)


def test_read_container_accepts_path_and_file_object(nbt, region_file):
    raw = nbt.chunk_nbt(0, 0)
    path = region_file({0: raw})
    assert read_container(path)[0] == raw
    assert read_container(str(path))[0] == raw
    assert read_container(io.BytesIO(path.read_bytes()))[0] == raw


def test_sector_offset_past_end_of_file(nbt):
    data = bytearray(nbt.region_bytes({0: nbt.chunk_nbt(0, 0)}))
    struct.pack_into(">I", data, 4, (500 << 8) | 1)
    region = RegionFile(bytes(data))
    with pytest.raises(OutOfBounds):
        region.read_cell(1)


def test_declared_length_past_end_of_file(nbt):
    data = bytearray(nbt.region_bytes({0: nbt.chunk_nbt(0, 0)}))
    struct.pack_into(">I", data, 2 * SECTOR, 10 * SECTOR)
    with pytest.raises(OutOfBounds):
        read_payload(bytes(data), read_header(bytes(data))[0])


def test_zero_declared_length(nbt):
    data = bytearray(nbt.region_bytes({0: nbt.chunk_nbt(0, 0)}))
    struct.pack_into(">I", data, 2 * SECTOR, 0)
    with pytest.raises(OutOfBounds):
        RegionFile(bytes(data)).read_cell(0)


@pytest.mark.parametrize("compression", [1, 3, 127])
def test_unsupported_compression(nbt, compression):
    data = nbt.region_bytes({0: nbt.chunk_nbt(0, 0)}, compression=compression)
    with pytest.raises(UnsupportedCompression):
        RegionFile(data).read_cell(0)


def test_corrupt_stream_is_decompression_failure(nbt):
    data = nbt.region_bytes({0: b"this is not zlib data"}, compress=False)
    with pytest.raises(DecompressionFailure):
        RegionFile(data).read_cell(0)


def test_iter_cells_keeps_going_after_a_bad_cell(nbt):
    good = nbt.chunk_nbt(0, 0)
    data = bytearray(nbt.region_bytes({0: good, 1: good}))
    struct.pack_into(">I", data, 0, (900 << 8) | 1)
    out = {entry.index: value for entry, value in RegionFile(bytes(data)).iter_cells()}
    assert isinstance(out[0], OutOfBounds)
    assert out[1] == good
    assert out[2] is None
