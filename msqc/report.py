"""Assemble the final mzTab report from the annotated consensus."""

from __future__ import annotations

import logging
from typing import Optional

from . import conflict
from .idfile import store_consensus
from .metrics import MetricSet
from .model import AggregateResult, PeptideIdentification
from .ms2_id_rate import IdentificationRateData
from .mztab import MzTab, MzTabParameter, export_consensus, to_report_text

logger = logging.getLogger(__name__)


def tic_parameter(k: int, series: list[tuple[float, float]]) -> MzTabParameter:
    """``TIC_<k>`` custom field; value is the flattened (rt, intensity) list."""
    flat = []
    for rt, intensity in series:
        flat.append(to_report_text(float(rt)))
        flat.append(to_report_text(float(intensity)))
    return MzTabParameter(
        cv_label="total ion current",
        accession="MS:1000285",
        name=f"TIC_{k}",
        value="[" + ", ".join(flat) + "]",
    )


def ms2_id_rate_parameter(k: int, data: IdentificationRateData) -> MzTabParameter:
    """``MS2_ID_Rate_<k>`` custom field; value is the rate in percent."""
    return MzTabParameter(
        cv_label="MS2 identification rate",
        accession="null",
        name=f"MS2_ID_Rate_{k}",
        value=to_report_text(data.identification_rate * 100),
    )


def assemble_report(
    aggregate: AggregateResult,
    overflow: list[PeptideIdentification],
    in_cm: str,
    metrics: MetricSet,
    out_cm: Optional[str] = None,
) -> MzTab:
    """Resolve conflicts, fold in metric-created identifications and export.

    `aggregate` is modified in place. Custom fields list every TIC series
    first, then every identification rate, each numbered from 1 in
    experiment order.
    """
    conflict.resolve(aggregate)

    aggregate.unassigned_identifications.extend(overflow)
    logger.info("  %d metric-created identifications added as unassigned", len(overflow))

    if out_cm:
        store_consensus(out_cm, aggregate)
        logger.info("  Annotated consensus written to %s", out_cm)

    report = export_consensus(
        aggregate,
        in_cm,
        first_run_inference_only=True,
        export_unidentified_features=True,
        export_unassigned_ids=True,
        export_subfeatures=True,
    )

    for k, series in enumerate(metrics.tic.get_results(), start=1):
        report.custom.append(tic_parameter(k, series))
    for k, data in enumerate(metrics.ms2_id_rate.get_results(), start=1):
        report.custom.append(ms2_id_rate_parameter(k, data))
    return report
