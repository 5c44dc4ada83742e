"""Retention times before and after alignment."""

from __future__ import annotations

from .model import FeatureTable
from .qc_base import Metric
from .status import Requires, Status
from .trafo import TransformationDescription


class RTAlignment(Metric):
    """Annotates identifications with ``rt_raw`` and ``rt_align``."""

    name = "RTAlignment"

    def requires(self) -> Status:
        return Status(Requires.POSTFDRFEAT, Requires.TRAFOALIGN)

    def run(self, resources):
        self.compute(resources.features, resources.trafo)
        return []

    def compute(self, features: FeatureTable, trafo: TransformationDescription) -> None:
        for pep_id in features.all_identifications():
            if pep_id.rt is None:
                continue
            pep_id.meta["rt_raw"] = pep_id.rt
            pep_id.meta["rt_align"] = trafo.apply(pep_id.rt)
