"""Scan event numbers of MS2 spectra over retention time.

Every MS2 spectrum gets its position in the duty cycle (1 for the first
MS2 after an MS1 scan). Identified spectra annotate their identification;
each unidentified MS2 spectrum becomes a new, hitless identification so
the report also covers what was not identified.
"""

from __future__ import annotations

from typing import Optional

import polars as pl

from .model import FeatureTable, PeptideIdentification, SPECTRUM_REFERENCE_KEY
from .parquet_reader import SpectraLookup
from .qc_base import Metric, identified, matching_spectrum
from .status import Requires, Status


def scan_event_numbers(spectra: pl.DataFrame) -> dict[int, int]:
    """Row -> scan event number, for every MS2 spectrum."""
    numbers: dict[int, int] = {}
    event = 0
    for row, level in enumerate(spectra["ms_level"].to_list()):
        if level == 1:
            event = 0
        elif level == 2:
            event += 1
            numbers[row] = event
    return numbers


class TopNoverRT(Metric):
    """Annotates identifications with ``ScanEventNumber`` and ``identified``.

    Returns one new identification per unidentified MS2 spectrum. These
    have no hits, no UID and no run identifier yet.
    """

    name = "TopNoverRT"
    creates_identifications = True

    def requires(self) -> Status:
        return Status(Requires.RAWMZML, Requires.POSTFDRFEAT)

    def run(self, resources):
        return self.compute(resources.spectra, resources.features, resources.spectra_lookup)

    def compute(
        self,
        spectra: pl.DataFrame,
        features: FeatureTable,
        lookup: Optional[SpectraLookup] = None,
    ) -> list[PeptideIdentification]:
        if lookup is None:
            lookup = SpectraLookup.build(spectra)
        events = scan_event_numbers(spectra)

        identified_rows: set[int] = set()
        for pep_id in identified(features):
            row = matching_spectrum(lookup, pep_id, self.name)
            pep_id.meta["ScanEventNumber"] = events.get(row, 0)
            pep_id.meta["identified"] = 1
            identified_rows.add(row)

        new_ids = []
        for row, event in events.items():
            if row in identified_rows:
                continue
            spectrum = lookup.row(row)
            new_ids.append(PeptideIdentification(
                rt=spectrum["scan_start_time"],
                mz=spectrum["precursor_mz"],
                meta={
                    "ScanEventNumber": event,
                    "identified": 0,
                    SPECTRUM_REFERENCE_KEY: spectrum["native_id"],
                },
            ))

        self._results.append({
            "identified": len(identified_rows),
            "unidentified": len(new_ids),
        })
        return new_ids
