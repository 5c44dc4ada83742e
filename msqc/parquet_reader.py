"""Spectra Parquet reader and spectrum lookup.

Reads per-spectrum Parquet files (one row per spectrum). The key columns are:
  - scan_idx: UInt32 (scan number)
  - native_id: Utf8 (vendor native ID, referenced by identifications)
  - scan_start_time: Float64 (RT in seconds)
  - ms_level: UInt8
  - precursor_mz: Float64 (null for MS1)
  - precursor_charge: Int8 (optional)
  - mz_array: List[Int64] (micro-Dalton encoded, x1e6) or List[Float64]
  - intensity_array: List[UInt32] or List[Float64]
"""

from __future__ import annotations

import bisect
from pathlib import Path
from typing import Optional

import numpy as np
import polars as pl

SPECTRA_SCHEMA = {
    "scan_idx": pl.UInt32,
    "native_id": pl.Utf8,
    "scan_start_time": pl.Float64,
    "ms_level": pl.UInt8,
    "precursor_mz": pl.Float64,
    "precursor_charge": pl.Int8,
    "mz_array": pl.List(pl.Float64),
    "intensity_array": pl.List(pl.Float64),
}


def empty_spectra() -> pl.DataFrame:
    """Schema-only spectra frame, used when no spectra were supplied."""
    return pl.DataFrame(schema=SPECTRA_SCHEMA)


def read_spectra_parquet(path: str | Path) -> pl.DataFrame:
    """Read a spectra Parquet file into a polars DataFrame sorted by RT.

    All MS levels are kept. Missing optional columns are added as nulls;
    a missing native_id is derived from scan_idx.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Spectra Parquet not found: {path}")

    df = pl.read_parquet(path)

    required = {"scan_start_time", "ms_level", "mz_array", "intensity_array"}
    missing = required - set(df.columns)
    if missing:
        raise ValueError(f"Spectra Parquet missing columns: {missing}")

    if "scan_idx" not in df.columns:
        df = df.with_row_index("scan_idx").with_columns(pl.col("scan_idx").cast(pl.UInt32))
    if "native_id" not in df.columns:
        df = df.with_columns(
            pl.format("scan={}", pl.col("scan_idx")).alias("native_id")
        )
    if "precursor_mz" not in df.columns:
        df = df.with_columns(pl.lit(None).cast(pl.Float64).alias("precursor_mz"))
    if "precursor_charge" not in df.columns:
        df = df.with_columns(pl.lit(None).cast(pl.Int8).alias("precursor_charge"))

    return df.sort("scan_start_time", maintain_order=True)


def decode_mz_array(mz_array: list[int] | list[float]) -> list[float]:
    """Decode m/z array from micro-Dalton Int64 to float Da.

    If already float, return as-is. If Int64 (micro-Dalton), divide by 1e6.
    """
    if not mz_array:
        return []
    if isinstance(mz_array[0], int):
        return [v / 1_000_000.0 for v in mz_array]
    return list(mz_array)


def ms2_spectra(spectra: pl.DataFrame) -> pl.DataFrame:
    return spectra.filter(pl.col("ms_level") == 2)


class SpectraLookup:
    """Index over loaded spectra: native ID -> row, with nearest-RT fallback."""

    def __init__(self, spectra: pl.DataFrame):
        self._spectra = spectra
        self._rts = spectra["scan_start_time"].to_list()
        self._levels = spectra["ms_level"].to_list()
        self._by_native_id = {
            native_id: row for row, native_id in enumerate(spectra["native_id"].to_list())
        }
        self._mz_arrays = spectra["mz_array"].to_list()
        self._int_arrays = spectra["intensity_array"].to_list()

    @classmethod
    def build(cls, spectra: pl.DataFrame) -> SpectraLookup:
        return cls(spectra)

    def __len__(self) -> int:
        return len(self._rts)

    def find_native_id(self, native_id: str) -> Optional[int]:
        return self._by_native_id.get(native_id)

    def find_nearest_rt(
        self, rt: float, ms_level: int = 2, tolerance: float = 0.05
    ) -> Optional[int]:
        """Row of the spectrum of `ms_level` closest in RT, within `tolerance` seconds."""
        pos = bisect.bisect_left(self._rts, rt - tolerance)
        best, best_delta = None, None
        while pos < len(self._rts) and self._rts[pos] <= rt + tolerance:
            if self._levels[pos] == ms_level:
                delta = abs(self._rts[pos] - rt)
                if best_delta is None or delta < best_delta:
                    best, best_delta = pos, delta
            pos += 1
        return best

    def find(self, native_id: Optional[str], rt: Optional[float], ms_level: int = 2) -> Optional[int]:
        if native_id is not None:
            row = self.find_native_id(native_id)
            if row is not None:
                return row
        if rt is not None:
            return self.find_nearest_rt(rt, ms_level=ms_level)
        return None

    def row(self, row: int) -> dict:
        return self._spectra.row(row, named=True)

    def peaks(self, row: int) -> tuple[np.ndarray, np.ndarray]:
        """Decoded (m/z, intensity) arrays of one spectrum."""
        mz_raw = self._mz_arrays[row]
        int_raw = self._int_arrays[row]
        if not mz_raw or not int_raw:
            return np.array([], dtype=np.float64), np.array([], dtype=np.float64)
        return (
            np.array(decode_mz_array(mz_raw), dtype=np.float64),
            np.array(int_raw, dtype=np.float64),
        )
