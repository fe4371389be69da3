from __future__ import annotations

import struct
import sys
import zlib
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence, Tuple

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from anvil_voxels.nbt import (  # noqa: E402
    TAG_BYTE,
    TAG_BYTE_ARRAY,
    TAG_COMPOUND,
    TAG_END,
    TAG_INT,
    TAG_LIST,
    TAG_LONG,
    TAG_STRING,
)

SECTOR = 4096


# --- Minimal NBT writer (only the types the fixtures use) ---
def enc_u8(v: int) -> bytes:
    return bytes([v & 0xFF])


def enc_i32(v: int) -> bytes:
    return struct.pack(">i", int(v))


def enc_string(s: str) -> bytes:
    b = s.encode("utf-8")
    return struct.pack(">H", len(b)) + b


def tag(tag_id: int, name: str, payload: bytes) -> bytes:
    return enc_u8(tag_id) + enc_string(name) + payload


def compound_payload(items: Iterable[bytes]) -> bytes:
    return b"".join(items) + enc_u8(TAG_END)


def nbt_int(name: str, v: int) -> bytes:
    return tag(TAG_INT, name, enc_i32(v))


def nbt_byte(name: str, v: int) -> bytes:
    return tag(TAG_BYTE, name, enc_u8(v))


def nbt_long(name: str, v: int) -> bytes:
    return tag(TAG_LONG, name, struct.pack(">q", v))


def nbt_string(name: str, s: str) -> bytes:
    return tag(TAG_STRING, name, enc_string(s))


def nbt_byte_array(name: str, data: bytes) -> bytes:
    return tag(TAG_BYTE_ARRAY, name, enc_i32(len(data)) + data)


def nbt_compound(name: str, children: Iterable[bytes]) -> bytes:
    return tag(TAG_COMPOUND, name, compound_payload(children))


def nbt_list_compound(name: str, compounds_payload: Sequence[bytes]) -> bytes:
    return tag(TAG_LIST, name, enc_u8(TAG_COMPOUND) + enc_i32(len(compounds_payload)) + b"".join(compounds_payload))


def section_payload(y: int, blocks: bytes, *, blocks_first: bool = False) -> bytes:
    kids = [
        nbt_byte_array("Data", bytes(2048)),
        nbt_byte_array("SkyLight", bytes(2048)),
        nbt_byte("Y", y),
        nbt_byte_array("BlockLight", bytes(2048)),
        nbt_byte_array("Blocks", blocks),
    ]
    if blocks_first:
        kids = [kids[4], kids[0], kids[1], kids[3], kids[2]]
    return compound_payload(kids)


def chunk_nbt(
    x: Optional[int],
    z: Optional[int],
    sections: Sequence[Tuple[int, bytes]] = (),
    *,
    blocks_first: bool = False,
    extra: Sequence[bytes] = (),
) -> bytes:
    """Pre-flattening chunk layout: root compound -> Level compound -> Sections list."""
    level = [nbt_long("LastUpdate", 1234), nbt_byte("TerrainPopulated", 1)]
    if x is not None:
        level.append(nbt_int("xPos", x))
    if z is not None:
        level.append(nbt_int("zPos", z))
    level.extend(extra)
    level.append(nbt_list_compound("Sections", [section_payload(y, b, blocks_first=blocks_first) for y, b in sections]))
    level.append(nbt_list_compound("Entities", []))
    return enc_u8(TAG_COMPOUND) + enc_string("") + compound_payload([nbt_compound("Level", level)])


def region_bytes(cells: Dict[int, bytes], *, compression: int = 2, compress: bool = True) -> bytes:
    """Pack ``{header index: raw chunk nbt}`` into a region file image."""
    header = bytearray(SECTOR * 2)
    body = bytearray()
    sector = 2
    for idx, raw in sorted(cells.items()):
        payload = zlib.compress(raw) if compress else raw
        blob = struct.pack(">I", len(payload) + 1) + bytes([compression]) + payload
        count = (len(blob) + SECTOR - 1) // SECTOR
        blob += bytes(count * SECTOR - len(blob))
        struct.pack_into(">I", header, idx * 4, (sector << 8) | count)
        struct.pack_into(">I", header, SECTOR + idx * 4, 1_600_000_000 + idx)
        body += blob
        sector += count
    return bytes(header + body)


class Builders:
    enc_u8 = staticmethod(enc_u8)
    enc_i32 = staticmethod(enc_i32)
    enc_string = staticmethod(enc_string)
    tag = staticmethod(tag)
    compound_payload = staticmethod(compound_payload)
    nbt_int = staticmethod(nbt_int)
    nbt_byte = staticmethod(nbt_byte)
    nbt_long = staticmethod(nbt_long)
    nbt_string = staticmethod(nbt_string)
    nbt_byte_array = staticmethod(nbt_byte_array)
    nbt_compound = staticmethod(nbt_compound)
    nbt_list_compound = staticmethod(nbt_list_compound)
    section_payload = staticmethod(section_payload)
    chunk_nbt = staticmethod(chunk_nbt)
    region_bytes = staticmethod(region_bytes)


@pytest.fixture()
def nbt() -> Builders:
    return Builders()


@pytest.fixture()
def region_file(tmp_path: Path):
    def _write(cells: Dict[int, bytes], name: str = "r.0.0.mca", **kwargs) -> Path:
        p = tmp_path / "region" / name
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(region_bytes(cells, **kwargs))
        return p

    return _write
