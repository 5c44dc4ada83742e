"""Per-experiment input lists and resource loading.

Optional inputs come as parallel file lists, one entry per experiment.
Every non-empty list must have the same length; the first non-empty list
fixes the number of experiments. Empty lists are legal: the category's
resource then takes a default empty value for every experiment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import polars as pl

from .errors import InvalidParameterError
from .idfile import load_feature_table
from .model import FeatureTable
from .parquet_reader import SpectraLookup, empty_spectra, read_spectra_parquet
from .status import Requires, Status
from .trafo import TransformationDescription, load_trafo

logger = logging.getLogger(__name__)


@dataclass
class ExperimentResources:
    """Everything loaded for one experiment."""

    index: int
    spectra: pl.DataFrame = field(default_factory=empty_spectra)
    spectra_lookup: Optional[SpectraLookup] = None
    features: FeatureTable = field(default_factory=FeatureTable)
    trafo: TransformationDescription = field(default_factory=TransformationDescription)


class BatchInputLoader:
    """Registers optional per-experiment file lists and loads them on demand."""

    def __init__(self, status: Status | None = None):
        self.status = status if status is not None else Status()
        self.number_exps = 0
        self.in_raw: list[str] = []
        self.in_postfdr: list[str] = []
        self.in_trafo: list[str] = []

    def register_list(self, name: str, files: list[str], req: Requires) -> list[str]:
        """Validate one optional file list and record its capability."""
        files = list(files or [])
        # since files are optional, nothing to do if none were provided
        if not files:
            return files

        if self.number_exps == 0:
            self.number_exps = len(files)
        if self.number_exps != len(files):
            raise InvalidParameterError(
                f"{name}: invalid number of files. Expected were {self.number_exps}."
            )
        self.status = self.status | req
        return files

    def register_file(self, name: str, path: str | None, req: Requires) -> str:
        """Record a single optional input file."""
        if not path:
            return ""
        self.status = self.status | req
        logger.debug("%s: %s", name, path)
        return path

    def register_inputs(
        self,
        in_raw: list[str],
        in_postfdr: list[str],
        in_trafo: list[str],
    ) -> int:
        """Register the three per-experiment lists, return the experiment count."""
        self.in_raw = self.register_list("in_raw", in_raw, Requires.RAWMZML)
        self.in_postfdr = self.register_list("in_postFDR", in_postfdr, Requires.POSTFDRFEAT)
        self.in_trafo = self.register_list("in_trafo", in_trafo, Requires.TRAFOALIGN)
        return self.number_exps

    def load_experiment(self, i: int) -> ExperimentResources:
        """Load the i-th entry of every non-empty list."""
        if not 0 <= i < self.number_exps:
            raise IndexError(f"Experiment {i} out of range (0..{self.number_exps - 1})")

        resources = ExperimentResources(index=i)

        if self.in_raw:
            logger.info("Loading spectra from %s", self.in_raw[i])
            resources.spectra = read_spectra_parquet(self.in_raw[i])
            resources.spectra_lookup = SpectraLookup.build(resources.spectra)
            logger.info("  %d spectra loaded", len(resources.spectra))

        if self.in_postfdr:
            logger.info("Loading features from %s", self.in_postfdr[i])
            resources.features = load_feature_table(self.in_postfdr[i])
            logger.info("  %d features, %d unassigned identifications",
                        len(resources.features),
                        len(resources.features.unassigned_identifications))

        if self.in_trafo:
            logger.info("Loading transformation from %s", self.in_trafo[i])
            resources.trafo = load_trafo(self.in_trafo[i])

        return resources
