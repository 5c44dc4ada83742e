"""MS2 identification rate: identified MS2 spectra / all MS2 spectra."""

from __future__ import annotations

from dataclasses import dataclass

import polars as pl

from .errors import MissingInformationError
from .model import FeatureTable
from .parquet_reader import ms2_spectra
from .qc_base import Metric, identified
from .status import Requires, Status

TARGET_LABELS = ("target", "target+decoy")


@dataclass
class IdentificationRateData:
    num_peptide_identification: int
    num_ms2_spectra: int
    identification_rate: float

    def to_dict(self) -> dict:
        return {
            "num_peptide_identification": self.num_peptide_identification,
            "num_ms2_spectra": self.num_ms2_spectra,
            "identification_rate": self.identification_rate,
        }


class Ms2IdentificationRate(Metric):
    """Counts target identifications against the MS2 spectra of a run."""

    name = "Ms2IdentificationRate"

    def __init__(self, force_no_fdr: bool = False):
        super().__init__()
        self.force_no_fdr = force_no_fdr

    def requires(self) -> Status:
        return Status(Requires.RAWMZML, Requires.POSTFDRFEAT)

    def run(self, resources):
        self.compute(resources.features, resources.spectra, self.force_no_fdr)
        return []

    def compute(
        self,
        features: FeatureTable,
        spectra: pl.DataFrame,
        force_no_fdr: bool = False,
    ) -> IdentificationRateData:
        num_ms2 = ms2_spectra(spectra).height
        if num_ms2 == 0:
            raise MissingInformationError("No MS2 spectra found in the spectra input.")

        labels = [pep_id.hits[0].target_decoy for pep_id in identified(features)]
        if force_no_fdr:
            num_ids = len(labels)
        else:
            if labels and all(label is None for label in labels):
                raise MissingInformationError(
                    "FDR was not made. If you want to continue without FDR use "
                    "force_no_fdr."
                )
            num_ids = sum(label in TARGET_LABELS for label in labels)

        if num_ids > num_ms2:
            raise MissingInformationError(
                f"There are more identifications ({num_ids}) than MS2 spectra ({num_ms2})."
            )

        data = IdentificationRateData(
            num_peptide_identification=num_ids,
            num_ms2_spectra=num_ms2,
            identification_rate=num_ids / num_ms2,
        )
        self._results.append(data)
        return data
