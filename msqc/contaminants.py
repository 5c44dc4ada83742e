"""Contaminant fraction of identifications and feature intensity."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .database import FastaEntry, digest_contaminants
from .errors import MissingInformationError
from .model import FeatureTable
from .qc_base import Metric
from .sequence import unmodified_sequence
from .status import Requires, Status

logger = logging.getLogger(__name__)


@dataclass
class ContaminantsSummary:
    """Contaminant ratios for one experiment."""

    all: float                  # contaminant IDs / all IDs
    assigned: float             # among IDs mapped to features
    unassigned: float           # among unassigned IDs
    feature_intensity: float    # contaminant feature intensity / total intensity
    empty_features: int         # features without identification

    def to_dict(self) -> dict:
        return {
            "all": self.all,
            "assigned": self.assigned,
            "unassigned": self.unassigned,
            "feature_intensity": self.feature_intensity,
            "empty_features": self.empty_features,
        }


def _ratio(n: int, total: int) -> float:
    return n / total if total > 0 else 0.0


class Contaminants(Metric):
    """Flags identifications whose top hit is a contaminant peptide.

    Annotates the top hit with ``is_contaminant`` (0/1).
    """

    name = "Contaminants"

    def __init__(self, entries: list[FastaEntry] | None = None, missed_cleavages: int = 2):
        super().__init__()
        self.entries = entries or []
        self.missed_cleavages = missed_cleavages
        self._digests: dict[str, set[str]] = {}

    def requires(self) -> Status:
        return Status(Requires.POSTFDRFEAT, Requires.CONTAMINANTS)

    def run(self, resources):
        self.compute(resources.features, self.entries)
        return []

    def _peptides(self, entries: list[FastaEntry], enzyme: str) -> set[str]:
        key = enzyme.lower()
        if key not in self._digests:
            self._digests[key] = digest_contaminants(
                entries, enzyme, missed_cleavages=self.missed_cleavages
            )
            logger.info("  %d contaminant peptides (%s digest)", len(self._digests[key]), enzyme)
        return self._digests[key]

    def compute(self, features: FeatureTable, entries: list[FastaEntry]) -> ContaminantsSummary:
        if not entries:
            raise MissingInformationError("No contaminant database given or database is empty.")

        peptides = self._peptides(entries, features.search_parameters.get("enzyme", "trypsin"))

        def flag(pep_id) -> bool:
            hit = pep_id.hits[0]
            is_cont = unmodified_sequence(hit.sequence) in peptides
            hit.meta["is_contaminant"] = int(is_cont)
            return is_cont

        n_unassigned = n_unassigned_cont = 0
        for pep_id in features.unassigned_identifications:
            if not pep_id.hits:
                continue
            n_unassigned += 1
            n_unassigned_cont += flag(pep_id)

        n_assigned = n_assigned_cont = 0
        empty_features = 0
        total_intensity = cont_intensity = 0.0
        for feature in features:
            total_intensity += feature.intensity
            hits = [p for p in feature.identifications if p.hits]
            if not hits:
                empty_features += 1
                continue
            feature_cont = False
            for pep_id in hits:
                n_assigned += 1
                is_cont = flag(pep_id)
                n_assigned_cont += is_cont
                feature_cont = feature_cont or is_cont
            if feature_cont:
                cont_intensity += feature.intensity

        summary = ContaminantsSummary(
            all=_ratio(n_assigned_cont + n_unassigned_cont, n_assigned + n_unassigned),
            assigned=_ratio(n_assigned_cont, n_assigned),
            unassigned=_ratio(n_unassigned_cont, n_unassigned),
            feature_intensity=cont_intensity / total_intensity if total_intensity > 0 else 0.0,
            empty_features=empty_features,
        )
        self._results.append(summary)
        return summary
