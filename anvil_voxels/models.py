from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

from .decoder import CellFailure, DecodeResult


class CellFailureModel(BaseModel):
    index: int = Field(ge=0)
    kind: str
    message: str

    @classmethod
    def from_failure(cls, failure: CellFailure) -> "CellFailureModel":
        return cls(index=failure.index, kind=failure.kind, message=failure.message)


class WrittenCellModel(BaseModel):
    slot_x: int
    slot_z: int
    chunk_x: int
    chunk_z: int
    sections: int
    path: str


class RegionReportModel(BaseModel):
    path: str
    status: Literal["ok", "partial", "failed", "skipped"]
    error: Optional[str] = None
    output_dir: Optional[str] = None
    absent_cells: int = 0
    empty_cells: int = 0
    written: list[WrittenCellModel] = Field(default_factory=list)
    failures: list[CellFailureModel] = Field(default_factory=list)

    @classmethod
    def from_result(cls, path: str, output_dir: str, result: DecodeResult, written: list[WrittenCellModel]) -> "RegionReportModel":
        return cls(
            path=path,
            status="ok" if result.ok else "partial",
            output_dir=output_dir,
            absent_cells=len(result.absent),
            empty_cells=len(result.empty),
            written=written,
            failures=[CellFailureModel.from_failure(f) for f in result.failures],
        )


class ConversionReportModel(BaseModel):
    regions: list[RegionReportModel]

    @property
    def failed(self) -> bool:
        return any(r.status in ("partial", "failed") for r in self.regions)
