"""Precursor m/z error before and after calibration."""

from __future__ import annotations

from typing import Optional

import polars as pl

from .model import FeatureTable
from .parquet_reader import SpectraLookup
from .qc_base import Metric, identified, matching_spectrum
from .sequence import peptide_mz
from .status import Requires, Status


def ppm_error(observed: float, reference: float) -> float:
    return (observed - reference) / reference * 1e6


class MzCalibration(Metric):
    """Annotates top hits with reference and observed precursor m/z.

    ``mz_ref`` and ``calibrated_mz_error_ppm`` come from the identification;
    ``mz_raw`` and ``uncalibrated_mz_error_ppm`` need the spectra and are
    only written when spectra were loaded.
    """

    name = "MzCalibration"

    def requires(self) -> Status:
        return Status(Requires.POSTFDRFEAT)

    def run(self, resources):
        self.compute(resources.features, resources.spectra, resources.spectra_lookup)
        return []

    def compute(
        self,
        features: FeatureTable,
        spectra: pl.DataFrame,
        lookup: Optional[SpectraLookup],
    ) -> None:
        if lookup is None and len(spectra) > 0:
            lookup = SpectraLookup.build(spectra)

        for pep_id in identified(features):
            hit = pep_id.hits[0]
            if hit.charge == 0:
                continue
            mz_ref = peptide_mz(hit.sequence, hit.charge)
            hit.meta["mz_ref"] = mz_ref
            if pep_id.mz is not None:
                hit.meta["calibrated_mz_error_ppm"] = ppm_error(pep_id.mz, mz_ref)

            if lookup is None:
                continue
            row = matching_spectrum(lookup, pep_id, self.name)
            mz_raw = lookup.row(row)["precursor_mz"]
            if mz_raw is None:
                continue
            hit.meta["mz_raw"] = mz_raw
            hit.meta["uncalibrated_mz_error_ppm"] = ppm_error(mz_raw, mz_ref)
