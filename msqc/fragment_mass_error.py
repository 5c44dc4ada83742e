"""Fragment mass error between theoretical and observed MS2 peaks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import polars as pl

from .model import FeatureTable
from .parquet_reader import SpectraLookup
from .qc_base import Metric, identified, matching_spectrum
from .sequence import fragment_ions
from .status import Requires, Status

logger = logging.getLogger(__name__)

TOLERANCE_UNITS = ("ppm", "da", "auto")


@dataclass
class FragmentMassErrorStatistics:
    average_ppm: float = 0.0
    variance_ppm: float = 0.0
    n_matched: int = 0

    def to_dict(self) -> dict:
        return {
            "average_ppm": self.average_ppm,
            "variance_ppm": self.variance_ppm,
            "n_matched": self.n_matched,
        }


def resolve_tolerance(
    features: FeatureTable, unit: str, tolerance: float
) -> tuple[str, float]:
    """Turn 'auto' into the fragment tolerance of the feature table's search."""
    unit = unit.lower()
    if unit != "auto":
        return unit, tolerance

    params = features.search_parameters
    if "fragment_mass_tolerance" not in params:
        logger.warning(
            "FragmentMassError: no fragment tolerance in search parameters, using %s ppm",
            tolerance,
        )
        return "ppm", tolerance
    is_ppm = bool(params.get("fragment_mass_tolerance_ppm", False))
    return ("ppm" if is_ppm else "da"), float(params["fragment_mass_tolerance"])


def match_fragments(
    theoretical: list[float],
    mz: np.ndarray,
    unit: str,
    tolerance: float,
) -> tuple[list[float], list[float]]:
    """Errors (ppm, Da) of every theoretical ion with an observed peak in tolerance."""
    errors_ppm: list[float] = []
    errors_da: list[float] = []
    if len(mz) == 0:
        return errors_ppm, errors_da

    order = np.argsort(mz)
    mz_sorted = mz[order]
    for theo in theoretical:
        tol_da = theo * tolerance * 1e-6 if unit == "ppm" else tolerance
        pos = int(np.searchsorted(mz_sorted, theo))
        candidates = [p for p in (pos - 1, pos) if 0 <= p < len(mz_sorted)]
        nearest = min(candidates, key=lambda p: abs(mz_sorted[p] - theo))
        delta = float(mz_sorted[nearest] - theo)
        if abs(delta) <= tol_da:
            errors_da.append(delta)
            errors_ppm.append(delta / theo * 1e6)
    return errors_ppm, errors_da


class FragmentMassError(Metric):
    """Annotates top hits with fragment mass errors in ppm and Da."""

    name = "FragmentMassError"

    def __init__(self, unit: str = "auto", tolerance: float = 20.0):
        super().__init__()
        if unit.lower() not in TOLERANCE_UNITS:
            raise ValueError(f"Unknown tolerance unit: {unit}")
        self.unit = unit
        self.tolerance = tolerance

    def requires(self) -> Status:
        return Status(Requires.RAWMZML, Requires.POSTFDRFEAT)

    def run(self, resources):
        self.compute(resources.features, resources.spectra, resources.spectra_lookup,
                     self.unit, self.tolerance)
        return []

    def compute(
        self,
        features: FeatureTable,
        spectra: pl.DataFrame,
        lookup: Optional[SpectraLookup],
        unit: str,
        tolerance: float,
    ) -> FragmentMassErrorStatistics:
        if lookup is None and len(spectra) > 0:
            lookup = SpectraLookup.build(spectra)
        unit, tolerance = resolve_tolerance(features, unit, tolerance)

        all_ppm: list[float] = []
        for pep_id in identified(features):
            row = matching_spectrum(lookup, pep_id, self.name)
            mz, _ = lookup.peaks(row)
            hit = pep_id.hits[0]
            errors_ppm, errors_da = match_fragments(fragment_ions(hit.sequence), mz, unit, tolerance)
            hit.meta["fragment_mass_error_ppm"] = errors_ppm
            hit.meta["fragment_mass_error_da"] = errors_da
            all_ppm.extend(errors_ppm)

        if all_ppm:
            arr = np.array(all_ppm)
            stats = FragmentMassErrorStatistics(
                average_ppm=float(arr.mean()),
                variance_ppm=float(arr.var()),
                n_matched=len(arr),
            )
        else:
            stats = FragmentMassErrorStatistics()
        self._results.append(stats)
        return stats
