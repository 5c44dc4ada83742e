"""Common interface of all QC metrics.

A metric declares the inputs it requires, computes over one experiment's
resources at a time and accumulates one result entry per experiment.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator, Optional

from .errors import MissingInformationError
from .model import FeatureTable, PeptideIdentification
from .status import Status

if TYPE_CHECKING:
    from .inputs import ExperimentResources
    from .parquet_reader import SpectraLookup


class Metric:
    """Base class for QC metrics."""

    name: str = "base"
    creates_identifications: bool = False

    def __init__(self):
        self._results: list[Any] = []

    def requires(self) -> Status:
        raise NotImplementedError

    def run(self, resources: ExperimentResources) -> list[PeptideIdentification]:
        """Compute over one experiment; return newly created identifications."""
        raise NotImplementedError

    def get_results(self) -> list[Any]:
        return self._results

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, n_results={len(self._results)})"


def identified(features: FeatureTable) -> Iterator[PeptideIdentification]:
    """Identifications of a feature table that carry at least one hit."""
    return (pep_id for pep_id in features.all_identifications() if pep_id.hits)


def matching_spectrum(
    lookup: Optional[SpectraLookup],
    pep_id: PeptideIdentification,
    metric_name: str,
) -> int:
    """Row of the MS2 spectrum an identification was made from."""
    if lookup is None:
        raise MissingInformationError(f"{metric_name}: no spectra loaded")
    row = lookup.find(pep_id.spectrum_reference, pep_id.rt)
    if row is None:
        raise MissingInformationError(
            f"{metric_name}: no spectrum matches the identification at RT {pep_id.rt} "
            f"(reference '{pep_id.spectrum_reference}')."
        )
    return row
