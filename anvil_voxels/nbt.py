"""Size grammar for the NBT tag kinds found in pre-flattening chunk data."""

from __future__ import annotations

import struct

from .errors import MalformedTag, OutOfBounds, UnknownTagType, UnsupportedListElement

TAG_END = 0
TAG_BYTE = 1
TAG_SHORT = 2
TAG_INT = 3
TAG_LONG = 4
TAG_FLOAT = 5
TAG_DOUBLE = 6
TAG_BYTE_ARRAY = 7
TAG_STRING = 8
TAG_LIST = 9
TAG_COMPOUND = 10
TAG_INT_ARRAY = 11

TAG_NAMES = {
    TAG_END: "End",
    TAG_BYTE: "Byte",
    TAG_SHORT: "Short",
    TAG_INT: "Int",
    TAG_LONG: "Long",
    TAG_FLOAT: "Float",
    TAG_DOUBLE: "Double",
    TAG_BYTE_ARRAY: "ByteArray",
    TAG_STRING: "String",
    TAG_LIST: "List",
    TAG_COMPOUND: "Compound",
    TAG_INT_ARRAY: "IntArray",
}

FIXED_SIZES = {
    TAG_END: 1,
    TAG_BYTE: 1,
    TAG_SHORT: 2,
    TAG_INT: 4,
    TAG_LONG: 8,
    TAG_FLOAT: 4,
    TAG_DOUBLE: 8,
}

LIST_HEADER_BYTES = 5


def is_known(tag_type: int) -> bool:
    return tag_type in TAG_NAMES


def tag_name(tag_type: int) -> str:
    return TAG_NAMES.get(tag_type, f"Unknown({tag_type})")


def _unpack(fmt: str, buffer: bytes, offset: int) -> int:
    try:
        return struct.unpack_from(fmt, buffer, offset)[0]
    except struct.error as exc:
        raise OutOfBounds(f"length prefix at offset {offset} exceeds buffer of {len(buffer)} bytes") from exc


def _array_length(buffer: bytes, offset: int, what: str) -> int:
    ln = _unpack(">i", buffer, offset)
    if ln < 0:
        raise MalformedTag(f"negative {what} length at offset {offset}")
    return ln


def payload_size(tag_type: int, buffer: bytes, offset: int) -> int:
    """Return how many bytes the payload of a tag occupies at ``offset``.

    Compound payloads report 0: their children are walked, not skipped. List
    sizes are only computable for fixed-width (or compound) elements.
    """
    fixed = FIXED_SIZES.get(tag_type)
    if fixed is not None:
        return fixed
    if tag_type == TAG_BYTE_ARRAY:
        return 4 + _array_length(buffer, offset, "byte array")
    if tag_type == TAG_INT_ARRAY:
        return 4 + 4 * _array_length(buffer, offset, "int array")
    if tag_type == TAG_STRING:
        return 2 + _unpack(">H", buffer, offset)
    if tag_type == TAG_LIST:
        if offset < 0 or offset >= len(buffer):
            raise OutOfBounds(f"list header at offset {offset} exceeds buffer of {len(buffer)} bytes")
        inner = buffer[offset]
        if not is_known(inner):
            raise UnknownTagType(inner, offset)
        count = _array_length(buffer, offset + 1, "list")
        if count == 0:
            return LIST_HEADER_BYTES
        if inner not in FIXED_SIZES and inner != TAG_COMPOUND:
            raise UnsupportedListElement(f"list of {tag_name(inner)} at offset {offset} has variable-width elements")
        return LIST_HEADER_BYTES + payload_size(inner, b"", 0) * count
    if tag_type == TAG_COMPOUND:
        return 0
    raise UnknownTagType(tag_type, offset)
