from __future__ import annotations


class RegionError(Exception):
    """Base class for everything the region decoder raises."""

    @property
    def kind(self) -> str:
        return type(self).__name__


class MalformedHeader(RegionError):
    """Raised when the file is too short to hold the location/timestamp header."""


class CellDecodeError(RegionError):
    """Raised for a failure confined to a single cell of the region."""


class OutOfBounds(CellDecodeError):
    pass


class UnsupportedCompression(CellDecodeError):
    pass


class DecompressionFailure(CellDecodeError):
    pass


class UnknownTagType(CellDecodeError):
    def __init__(self, tag_type: int, offset: int):
        super().__init__(f"unknown tag type {tag_type} at offset {offset}")
        self.tag_type = tag_type
        self.offset = offset


class UnsupportedListElement(CellDecodeError):
    pass


class MalformedTag(CellDecodeError):
    pass


class MalformedSection(CellDecodeError):
    pass


class IncompleteSection(CellDecodeError):
    pass


class MissingCoordinate(CellDecodeError):
    pass


class SlotCollision(CellDecodeError):
    pass
