"""Flat walk over an inflated chunk NBT stream.

The walker never builds a tree. Compounds are entered by skipping nothing,
``End`` closes them by advancing one byte, and the ``Sections`` list is the
only list whose elements are walked instead of skipped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional

from .assembler import AssembledCell, CellAssembler
from .config import DEFAULT_GEOMETRY, RegionGeometry
from .cursor import Cursor
from .errors import MalformedSection, UnknownTagType
from .nbt import LIST_HEADER_BYTES, TAG_BYTE, TAG_BYTE_ARRAY, TAG_END, TAG_INT, TAG_LIST, is_known, payload_size


@dataclass(frozen=True)
class TagHeader:
    tag_type: int
    name: Optional[str]
    offset: int


def _read_header(cur: Cursor) -> TagHeader:
    start = cur.o
    tag_type = cur.read_u8()
    if not is_known(tag_type):
        raise UnknownTagType(tag_type, start)
    if tag_type == TAG_END:
        return TagHeader(tag_type, None, start)
    name = cur.read_name()
    return TagHeader(tag_type, name, start)


def _advance(cur: Cursor, tag: TagHeader) -> None:
    if tag.tag_type == TAG_END:
        return
    if tag.tag_type == TAG_LIST and tag.name == "Sections":
        cur.skip(LIST_HEADER_BYTES)
        return
    cur.skip(payload_size(tag.tag_type, cur.b, cur.o))


def iter_tags(buffer: bytes) -> Iterator[TagHeader]:
    """Yield every tag header the walker visits, in stream order."""
    cur = Cursor(buffer)
    while not cur.at_end():
        tag = _read_header(cur)
        yield tag
        _advance(cur, tag)


def walk(buffer: bytes, sink: CellAssembler) -> CellAssembler:
    cur = Cursor(buffer)
    while not cur.at_end():
        tag = _read_header(cur)
        key = (tag.tag_type, tag.name)
        if key == (TAG_INT, "xPos"):
            sink.set_x(cur.read_i32_be())
            continue
        if key == (TAG_INT, "zPos"):
            sink.set_z(cur.read_i32_be())
            continue
        if key == (TAG_BYTE, "Y"):
            sink.add_index(cur.read_u8())
            continue
        if key == (TAG_BYTE_ARRAY, "Blocks"):
            ln = cur.read_i32_be()
            if ln != sink.geometry.section_volume:
                raise MalformedSection(f"Blocks array at offset {tag.offset} has length {ln}")
            sink.add_blocks(cur.read_bytes(ln))
            continue
        _advance(cur, tag)
    return sink


def decode_cell(buffer: bytes, geometry: RegionGeometry = DEFAULT_GEOMETRY) -> Optional[AssembledCell]:
    """Walk one inflated chunk stream and return its assembled column, if any."""
    return walk(buffer, CellAssembler(geometry)).finish()
