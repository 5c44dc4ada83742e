"""Pipeline orchestrator: runs the full QC battery over a batch of experiments.

Order of work:
1. Validate the configuration and register every optional input list
   (cardinality problems are fatal before any metric runs)
2. Load the consensus result and index its identifications and runs
3. Per experiment: load resources, run the gated metrics, optionally
   store the annotated feature table, merge annotations into the consensus
4. Resolve conflicts, fold in metric-created identifications, export mzTab
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from .config import QcConfig
from .database import FastaEntry, load_contaminants
from .identity import IdentityIndex
from .idfile import load_consensus, store_feature_table
from .inputs import BatchInputLoader
from .merge import merge_annotations
from .metrics import MetricSet, build_metrics, metric_summary, run_metrics
from .model import AggregateResult, PeptideIdentification
from .mztab import MzTab, store
from .report import assemble_report
from .status import Requires, Status

logger = logging.getLogger(__name__)


@dataclass
class QcResult:
    """Complete result from a QC run."""

    report: MzTab
    aggregate: AggregateResult
    metrics: MetricSet
    status: Status
    config: QcConfig
    n_experiments: int
    n_merged: int
    elapsed_seconds: float
    overflow: list[PeptideIdentification] = field(default_factory=list)

    def summary(self) -> dict:
        return {
            "n_experiments": self.n_experiments,
            "status": [r.value for r in self.status],
            "n_merged": self.n_merged,
            "n_overflow": len(self.overflow),
            "custom_fields": [p.name for p in self.report.custom],
            "metrics": metric_summary(self.metrics),
            "elapsed_seconds": self.elapsed_seconds,
        }


def run_pipeline(config: QcConfig, verbose: bool = True) -> QcResult:
    """Run every runnable metric on every experiment and write the report."""
    t0 = time.time()
    config.validate()

    # --- Step 1: Register inputs ---
    loader = BatchInputLoader()
    n_exps = loader.register_inputs(config.in_raw, config.in_postfdr, config.in_trafo)

    contaminants: list[FastaEntry] = []
    if loader.register_file("in_contaminants", config.in_contaminants, Requires.CONTAMINANTS):
        contaminants = load_contaminants(config.in_contaminants)
    if verbose:
        logger.info("%d experiments, available inputs: %s",
                    n_exps, ", ".join(r.value for r in loader.status) or "none")

    # --- Step 2: Consensus and identity index ---
    if verbose:
        logger.info("Loading consensus from %s", config.in_cm)
    aggregate = load_consensus(config.in_cm)
    if verbose:
        logger.info("  %d consensus groups, %d unassigned identifications, %d runs",
                    len(aggregate), len(aggregate.unassigned_identifications),
                    len(aggregate.runs))
    index = IdentityIndex.build(aggregate)

    # --- Step 3: Per-experiment metrics and merge ---
    metrics = build_metrics(config, contaminants)
    overflow: list[PeptideIdentification] = []
    n_merged = 0
    for i in range(n_exps):
        t_exp = time.time()
        if verbose:
            logger.info("Experiment %d/%d", i + 1, n_exps)
        resources = loader.load_experiment(i)

        run_metrics(metrics, resources, loader.status, index, overflow)

        if config.out_feat:
            store_feature_table(config.out_feat[i], resources.features)
            if verbose:
                logger.info("  Annotated feature table written to %s", config.out_feat[i])

        n_merged += merge_annotations(resources.features, index, aggregate)
        if verbose:
            logger.info("  Experiment %d done in %.1fs", i + 1, time.time() - t_exp)

    # --- Step 4: Report ---
    if verbose:
        logger.info("Assembling report")
    report = assemble_report(aggregate, overflow, config.in_cm, metrics, out_cm=config.out_cm or None)
    store(config.out, report)

    elapsed = time.time() - t0
    if verbose:
        logger.info("QC complete in %.1fs", elapsed)

    return QcResult(
        report=report,
        aggregate=aggregate,
        metrics=metrics,
        status=loader.status,
        config=config,
        n_experiments=n_exps,
        n_merged=n_merged,
        elapsed_seconds=elapsed,
        overflow=overflow,
    )
