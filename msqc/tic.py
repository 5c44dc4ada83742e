"""Total ion current over retention time."""

from __future__ import annotations

import polars as pl

from .qc_base import Metric
from .status import Requires, Status


class TIC(Metric):
    """Summed intensity of every spectrum of one MS level, in RT order.

    Result per experiment: list of (rt, intensity) pairs.
    """

    name = "TIC"

    def __init__(self, ms_level: int = 1):
        super().__init__()
        self.ms_level = ms_level

    def requires(self) -> Status:
        return Status(Requires.RAWMZML)

    def run(self, resources):
        self.compute(resources.spectra)
        return []

    def compute(self, spectra: pl.DataFrame) -> list[tuple[float, float]]:
        chrom = (
            spectra
            .filter(pl.col("ms_level") == self.ms_level)
            .sort("scan_start_time", maintain_order=True)
            .select(
                pl.col("scan_start_time").alias("rt"),
                pl.col("intensity_array")
                .list.eval(pl.element().cast(pl.Float64))
                .list.sum()
                .fill_null(0.0)
                .alias("tic"),
            )
        )
        series = [(float(rt), float(tic)) for rt, tic in chrom.iter_rows()]
        self._results.append(series)
        return series
