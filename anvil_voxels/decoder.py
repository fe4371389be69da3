from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from .assembler import AssembledCell, VoxelGrid
from .config import DEFAULT_GEOMETRY, RegionGeometry
from .errors import CellDecodeError, SlotCollision
from .region import RegionFile, RegionIndexEntry, Source
from .walker import decode_cell

LOG = logging.getLogger(__name__)

Slot = Tuple[int, int]
_Outcome = Union[Optional[AssembledCell], CellDecodeError]
_SKIPPED = object()


@dataclass
class CellFailure:
    index: int
    kind: str
    message: str

    @classmethod
    def from_error(cls, index: int, exc: CellDecodeError) -> "CellFailure":
        return cls(index=index, kind=exc.kind, message=str(exc))


@dataclass
class DecodeResult:
    cells: Dict[Slot, AssembledCell] = field(default_factory=dict)
    failures: List[CellFailure] = field(default_factory=list)
    absent: List[int] = field(default_factory=list)
    empty: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    cancelled: bool = False

    @property
    def grids(self) -> Dict[Slot, VoxelGrid]:
        return {slot: cell.grid for slot, cell in self.cells.items()}

    @property
    def ok(self) -> bool:
        return not self.failures and not self.cancelled


def _decode_entry(region: RegionFile, entry: RegionIndexEntry) -> _Outcome:
    try:
        raw = region.read_cell(entry.index)
        if raw is None:
            return None
        cell = decode_cell(raw, region.geometry)
    except CellDecodeError as exc:
        return exc
    if cell is not None:
        LOG.debug("Read NBT data for cell %d at %d, %d (%d sections)", entry.index, cell.chunk_x, cell.chunk_z, cell.sections)
    return cell


def _run_serial(region: RegionFile, entries: List[RegionIndexEntry], cancel: Optional[threading.Event]) -> Dict[int, object]:
    outcomes: Dict[int, object] = {}
    for entry in entries:
        if cancel is not None and cancel.is_set():
            outcomes[entry.index] = _SKIPPED
            continue
        outcomes[entry.index] = _decode_entry(region, entry)
    return outcomes


def _run_pool(region: RegionFile, entries: List[RegionIndexEntry], workers: int, cancel: Optional[threading.Event]) -> Dict[int, object]:
    def job(entry: RegionIndexEntry) -> object:
        if cancel is not None and cancel.is_set():
            return _SKIPPED
        return _decode_entry(region, entry)

    outcomes: Dict[int, object] = {}
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="anvil-voxels") as pool:
        futures = {pool.submit(job, entry): entry.index for entry in entries}
        for fut in as_completed(futures):
            outcomes[futures[fut]] = fut.result()
    return outcomes


def decode_region(
    region: RegionFile,
    *,
    workers: int = 1,
    cancel: Optional[threading.Event] = None,
) -> DecodeResult:
    result = DecodeResult()
    present = []
    for entry in region.entries:
        if entry.present:
            present.append(entry)
        else:
            result.absent.append(entry.index)

    if workers > 1:
        outcomes = _run_pool(region, present, workers, cancel)
    else:
        outcomes = _run_serial(region, present, cancel)

    # Slots are assigned in header order so collisions do not depend on scheduling.
    owners: Dict[Slot, int] = {}
    for entry in present:
        outcome = outcomes[entry.index]
        if outcome is _SKIPPED:
            result.skipped.append(entry.index)
            continue
        if isinstance(outcome, CellDecodeError):
            _fail(result, entry.index, outcome)
            continue
        if outcome is None:
            result.empty.append(entry.index)
            continue
        cell = outcome
        if cell.slot in owners:
            _fail(
                result,
                entry.index,
                SlotCollision(
                    f"chunk ({cell.chunk_x}, {cell.chunk_z}) maps to slot {cell.slot} already used by cell {owners[cell.slot]}"
                ),
            )
            continue
        owners[cell.slot] = entry.index
        result.cells[cell.slot] = cell

    result.cancelled = bool(result.skipped)
    return result


def _fail(result: DecodeResult, index: int, exc: CellDecodeError) -> None:
    LOG.warning("Cell %d failed: %s: %s", index, exc.kind, exc)
    result.failures.append(CellFailure.from_error(index, exc))


def decode_container(
    source: Source,
    geometry: RegionGeometry = DEFAULT_GEOMETRY,
    *,
    workers: int = 1,
    cancel: Optional[threading.Event] = None,
) -> DecodeResult:
    """Decode every cell of a region container.

    Per-cell errors are collected in ``DecodeResult.failures``; only a header
    that is too short (MalformedHeader) aborts the whole container.
    """
    region = RegionFile(source, geometry)
    return decode_region(region, workers=workers, cancel=cancel)
