#!/usr/bin/env python3
"""
Convert Anvil/McRegion region files into raw per-chunk voxel dumps.

Each non-empty chunk becomes a 65536-byte ``<slot_x>.<slot_z>.vdat`` file
(one block id per voxel, x outer, y middle, z inner) under
``<region dir>/decompressed/<region name>/`` unless --output-dir is given.

Examples:
  python3 -m anvil_voxels ./world/region/r.0.0.mca
  python3 -m anvil_voxels --workers 4 --report report.json ./world/region/*.mca
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .config import LOG_LEVELS, Settings
from .decoder import decode_container
from .errors import RegionError
from .models import ConversionReportModel, RegionReportModel, WrittenCellModel
from .serializer import cell_filename, write_grid

LOG = logging.getLogger("anvil_voxels")
REGION_SUFFIXES = (".mca", ".mcr")


def _parse_args(argv: Sequence[str], settings: Settings) -> argparse.Namespace:
    ap = argparse.ArgumentParser(prog="anvil-voxels", description="Dump region file chunks as dense voxel grids (.vdat).")
    ap.add_argument("regions", nargs="+", help="Region files (.mca or .mcr)")
    ap.add_argument("--output-dir", default=None, help="Write .vdat files here instead of <region dir>/decompressed/<name>")
    ap.add_argument("--workers", type=int, default=settings.workers, help=f"Decode threads (default: {settings.workers})")
    ap.add_argument("--report", default=None, help="Write a JSON report of written cells and failures")
    ap.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=settings.log_level,
        help=f"Logging level (default: {settings.log_level})",
    )
    args = ap.parse_args(list(argv))
    if args.workers < 1:
        ap.error("--workers must be >= 1")
    return args


def output_dir_for(region_path: Path, settings: Settings, override: Optional[str] = None) -> Path:
    if override:
        base = Path(override)
        return base / region_path.stem
    return region_path.parent / settings.output_dirname / region_path.stem


def convert_region(
    region_path: Path,
    out_dir: Path,
    *,
    workers: int = 1,
) -> RegionReportModel:
    LOG.info("Processing %s...", region_path)
    try:
        result = decode_container(region_path, workers=workers)
    except RegionError as exc:
        LOG.error("%s: %s", region_path, exc)
        return RegionReportModel(path=str(region_path), status="failed", error=f"{exc.kind}: {exc}")

    written: List[WrittenCellModel] = []
    for (sx, sz), cell in sorted(result.cells.items()):
        p = write_grid(out_dir / cell_filename(sx, sz), cell.grid)
        written.append(
            WrittenCellModel(slot_x=sx, slot_z=sz, chunk_x=cell.chunk_x, chunk_z=cell.chunk_z, sections=cell.sections, path=str(p))
        )
    LOG.info(
        "%s: wrote %d cells to %s (%d absent, %d empty, %d failed)",
        region_path.name,
        len(written),
        out_dir,
        len(result.absent),
        len(result.empty),
        len(result.failures),
    )
    return RegionReportModel.from_result(str(region_path), str(out_dir), result, written)


def main(argv: Sequence[str]) -> int:
    settings = Settings.from_env()
    args = _parse_args(argv, settings)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    reports: List[RegionReportModel] = []
    for raw in args.regions:
        region_path = Path(raw)
        if region_path.suffix.lower() not in REGION_SUFFIXES:
            LOG.warning("Unsupported file format: %s", region_path.suffix or raw)
            reports.append(RegionReportModel(path=raw, status="skipped", error="unsupported file format"))
            continue
        if not region_path.is_file():
            print(f"Missing region file: {region_path}", file=sys.stderr)
            reports.append(RegionReportModel(path=raw, status="failed", error="missing file"))
            continue
        out_dir = output_dir_for(region_path, settings, args.output_dir)
        reports.append(convert_region(region_path, out_dir, workers=args.workers))

    report = ConversionReportModel(regions=reports)
    if args.report:
        out = Path(args.report)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(report.model_dump_json(indent=2), encoding="utf-8")

    if any(r.status == "failed" for r in reports):
        return 2
    if report.failed:
        return 1
    return 0


def run() -> None:
    raise SystemExit(main(sys.argv[1:]))


if __name__ == "__main__":
    run()
