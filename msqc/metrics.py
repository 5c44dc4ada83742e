"""Metric registry and per-experiment execution.

Metrics run in a fixed order, each gated immediately before it runs.
Later metrics may read feature-table annotations written by earlier ones.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .config import QcConfig
from .contaminants import Contaminants
from .database import FastaEntry
from .fragment_mass_error import FragmentMassError
from .identity import IdentityIndex
from .inputs import ExperimentResources
from .missed_cleavages import MissedCleavages
from .model import PeptideIdentification
from .ms2_id_rate import Ms2IdentificationRate
from .mz_calibration import MzCalibration
from .qc_base import Metric
from .rt_alignment import RTAlignment
from .status import Status, is_runnable
from .tic import TIC
from .top_n_over_rt import TopNoverRT

logger = logging.getLogger(__name__)


@dataclass
class MetricSet:
    """The metric instances of one run, in execution order."""

    contaminants: Contaminants
    fragment_mass_error: FragmentMassError
    missed_cleavages: MissedCleavages
    ms2_id_rate: Ms2IdentificationRate
    mz_calibration: MzCalibration
    rt_alignment: RTAlignment
    tic: TIC
    top_n_over_rt: TopNoverRT
    runs: dict[str, int] = field(default_factory=dict)
    skips: dict[str, int] = field(default_factory=dict)

    def __iter__(self):
        return iter((
            self.contaminants,
            self.fragment_mass_error,
            self.missed_cleavages,
            self.ms2_id_rate,
            self.mz_calibration,
            self.rt_alignment,
            self.tic,
            self.top_n_over_rt,
        ))


def build_metrics(config: QcConfig, contaminants: list[FastaEntry] | None = None) -> MetricSet:
    """Instantiate all metrics from the run configuration."""
    return MetricSet(
        contaminants=Contaminants(contaminants),
        fragment_mass_error=FragmentMassError(
            unit=config.fragment_mass_error_unit,
            tolerance=config.fragment_mass_error_tolerance,
        ),
        missed_cleavages=MissedCleavages(),
        ms2_id_rate=Ms2IdentificationRate(force_no_fdr=config.force_no_fdr),
        mz_calibration=MzCalibration(),
        rt_alignment=RTAlignment(),
        tic=TIC(ms_level=config.tic_ms_level),
        top_n_over_rt=TopNoverRT(),
    )


def run_metrics(
    metrics: MetricSet,
    resources: ExperimentResources,
    status: Status,
    index: IdentityIndex,
    overflow: list[PeptideIdentification],
) -> list[PeptideIdentification]:
    """Run every runnable metric on one experiment.

    Every run of an identification-creating metric looks up the run
    identifier of the experiment's feature table (unknown run is fatal).
    Identifications it creates get that identifier and are appended to
    `overflow`; they are merged into the consensus only after all
    experiments are processed.
    """
    new_ids: list[PeptideIdentification] = []
    for metric in metrics:
        if not is_runnable(metric, status):
            metrics.skips[metric.name] = metrics.skips.get(metric.name, 0) + 1
            continue

        created = metric.run(resources)
        metrics.runs[metric.name] = metrics.runs.get(metric.name, 0) + 1
        if not metric.creates_identifications:
            continue

        # get identifier for just calculated IDs via MS run path, even if none were created
        identifier = index.run_identifier(resources.features.primary_ms_run_paths)
        if not created:
            continue
        for pep_id in created:
            pep_id.identifier = identifier
        logger.info("  %s: %d new identifications", metric.name, len(created))
        new_ids.extend(created)

    overflow.extend(new_ids)
    return new_ids


def metric_summary(metrics: MetricSet) -> dict:
    """Per-metric results as plain dicts/lists for JSON output."""
    summary = {}
    for metric in metrics:
        results = []
        for result in metric.get_results():
            results.append(result.to_dict() if hasattr(result, "to_dict") else result)
        summary[metric.name] = {
            "runs": metrics.runs.get(metric.name, 0),
            "skipped": metrics.skips.get(metric.name, 0),
            "results": results,
        }
    return summary
