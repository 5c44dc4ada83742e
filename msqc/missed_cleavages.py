"""Missed cleavage counts of identified peptides."""

from __future__ import annotations

from collections import Counter

from .model import FeatureTable
from .qc_base import Metric, identified
from .sequence import count_missed_cleavages
from .status import Requires, Status


class MissedCleavages(Metric):
    """Annotates top hits with ``missed_cleavages``.

    Result per experiment: {number of missed cleavages: number of identifications}.
    """

    name = "MissedCleavages"

    def requires(self) -> Status:
        return Status(Requires.POSTFDRFEAT)

    def run(self, resources):
        self.compute(resources.features)
        return []

    def compute(self, features: FeatureTable) -> dict[int, int]:
        enzyme = features.search_parameters.get("enzyme", "trypsin")
        counts: Counter[int] = Counter()
        for pep_id in identified(features):
            hit = pep_id.hits[0]
            n = count_missed_cleavages(hit.sequence, enzyme)
            hit.meta["missed_cleavages"] = n
            counts[n] += 1

        result = dict(sorted(counts.items()))
        self._results.append(result)
        return result
