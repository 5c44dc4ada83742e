"""mzTab export of a consensus result.

Sections written: MTD (metadata, including custom parameters), PEP (one row
per consensus group) and PSM (one row per identification). Table sections
are built as all-Utf8 polars DataFrames and written tab separated.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import polars as pl

from .model import AggregateResult, PeptideIdentification, SPECTRUM_REFERENCE_KEY
from .sequence import peptide_mz

logger = logging.getLogger(__name__)

NULL = "null"
MZTAB_VERSION = "1.0.0"
DECOY_COLUMN = "opt_global_cv_MS:1002217_decoy_peptide"

PSM_COLUMNS = [
    "PSM_ID", "sequence", "accession", "unique", "database", "database_version",
    "search_engine", "search_engine_score[1]", "modifications", "retention_time",
    "charge", "exp_mass_to_charge", "calc_mass_to_charge", "spectra_ref",
    "pre", "post", "start", "end",
]

PEP_COLUMNS = [
    "sequence", "accession", "unique", "database", "database_version",
    "search_engine", "best_search_engine_score[1]", "modifications",
    "retention_time", "retention_time_window", "charge", "mass_to_charge",
]

# meta values that already have a dedicated column
_SKIP_META = {SPECTRUM_REFERENCE_KEY, "target_decoy"}


def to_report_text(value: Any) -> str:
    """Render a value as mzTab cell text.

    Floats use 10 significant digits in general format: 85.32 -> "85.32",
    100.0 -> "100". Lists are comma separated, None is "null".
    """
    if value is None:
        return NULL
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "INF" if value > 0 else "-INF"
        return format(value, ".10g")
    if isinstance(value, (list, tuple)):
        return ",".join(to_report_text(v) for v in value) if value else NULL
    text = str(value)
    return text if text else NULL


@dataclass
class MzTabParameter:
    """A [cv label, accession, name, value] parameter."""

    cv_label: str = ""
    accession: str = ""
    name: str = ""
    value: str = ""

    def to_cell(self) -> str:
        return f"[{self.cv_label}, {self.accession}, {self.name}, {self.value}]"


@dataclass
class MzTab:
    metadata: list[tuple[str, str]] = field(default_factory=list)
    custom: list[MzTabParameter] = field(default_factory=list)
    peptides: pl.DataFrame = field(default_factory=pl.DataFrame)
    psms: pl.DataFrame = field(default_factory=pl.DataFrame)

    def metadata_value(self, key: str) -> Optional[str]:
        for k, v in self.metadata:
            if k == key:
                return v
        return None


def _ms_runs(aggregate: AggregateResult) -> list[str]:
    """ms_run locations: map filenames, else the runs' primary paths."""
    if aggregate.maps:
        return [aggregate.maps[k].filename for k in sorted(aggregate.maps)]
    paths: list[str] = []
    for run in aggregate.runs:
        for p in run.primary_ms_run_paths:
            if p not in paths:
                paths.append(p)
    return paths


def _location(path: str) -> str:
    return path if "://" in path else f"file://{path}"


def _calc_mz(sequence: str, charge: int) -> Optional[float]:
    if charge == 0:
        return None
    try:
        return peptide_mz(sequence, charge)
    except ValueError:
        return None


class _Exporter:
    def __init__(self, aggregate: AggregateResult, first_run_inference_only: bool):
        self.aggregate = aggregate
        runs = aggregate.runs[:1] if first_run_inference_only else aggregate.runs
        self.engines = {run.identifier: run.search_engine for run in aggregate.runs}
        self.software = [run.search_engine for run in runs if run.search_engine]
        ms_runs = _ms_runs(aggregate)
        self.ms_runs = ms_runs
        self.run_index: dict[str, int] = {}
        for run in aggregate.runs:
            for p in run.primary_ms_run_paths:
                if p in ms_runs:
                    self.run_index.setdefault(run.identifier, ms_runs.index(p) + 1)
                    break

    def search_engine(self, pep_id: PeptideIdentification) -> str:
        engine = self.engines.get(pep_id.identifier, "")
        return f"[, , {engine}, ]" if engine else NULL

    def spectra_ref(self, pep_id: PeptideIdentification) -> str:
        ref = pep_id.spectrum_reference
        run = self.run_index.get(pep_id.identifier)
        if ref is None or run is None:
            return NULL
        return f"ms_run[{run}]:{ref}"

    def psm_row(self, psm_id: int, pep_id: PeptideIdentification) -> dict[str, str]:
        hit = pep_id.top_hit
        row = {
            "PSM_ID": str(psm_id),
            "sequence": NULL,
            "accession": NULL,
            "unique": NULL,
            "database": NULL,
            "database_version": NULL,
            "search_engine": self.search_engine(pep_id),
            "search_engine_score[1]": NULL,
            "modifications": NULL,
            "retention_time": to_report_text(pep_id.rt),
            "charge": NULL,
            "exp_mass_to_charge": to_report_text(pep_id.mz),
            "calc_mass_to_charge": NULL,
            "spectra_ref": self.spectra_ref(pep_id),
            "pre": NULL,
            "post": NULL,
            "start": NULL,
            "end": NULL,
            DECOY_COLUMN: NULL,
        }
        if hit is not None:
            row.update({
                "sequence": hit.sequence,
                "accession": to_report_text(hit.accessions),
                "unique": "1" if len(hit.accessions) == 1 else "0",
                "search_engine_score[1]": to_report_text(hit.score),
                "charge": to_report_text(hit.charge),
                "calc_mass_to_charge": to_report_text(_calc_mz(hit.sequence, hit.charge)),
            })
            if hit.target_decoy is not None:
                row[DECOY_COLUMN] = "1" if hit.target_decoy == "decoy" else "0"
        for key, value in pep_id.meta.items():
            if key not in _SKIP_META:
                row[f"opt_global_{key}"] = to_report_text(value)
        if hit is not None:
            for key, value in hit.meta.items():
                if key not in _SKIP_META:
                    row[f"opt_global_{key}"] = to_report_text(value)
        return row


def _frame(rows: list[dict[str, str]], base_columns: list[str]) -> pl.DataFrame:
    """All-Utf8 frame: base columns first, then optional columns sorted."""
    extra = sorted({k for row in rows for k in row} - set(base_columns))
    columns = base_columns + extra
    return pl.DataFrame(
        [{c: row.get(c, NULL) for c in columns} for row in rows],
        schema={c: pl.Utf8 for c in columns},
    )


def export_consensus(
    aggregate: AggregateResult,
    source_path: str,
    first_run_inference_only: bool = True,
    export_unidentified_features: bool = True,
    export_unassigned_ids: bool = True,
    export_subfeatures: bool = True,
) -> MzTab:
    """Export a (conflict-resolved) consensus result to mzTab."""
    exporter = _Exporter(aggregate, first_run_inference_only)
    map_indices = sorted(aggregate.maps) or sorted(
        {e.map_index for g in aggregate.groups for e in g.elements}
    )

    metadata = [
        ("mzTab-version", MZTAB_VERSION),
        ("mzTab-mode", "Summary"),
        ("mzTab-type", "Quantification" if map_indices else "Identification"),
        ("description", f"QC export from {source_path}"),
    ]
    for i, path in enumerate(exporter.ms_runs, start=1):
        metadata.append((f"ms_run[{i}]-location", _location(path)))
    for i, engine in enumerate(exporter.software, start=1):
        metadata.append((f"software[{i}]", f"[, , {engine}, ]"))

    score_type = next(
        (p.score_type for p in _all_identifications(aggregate) if p.score_type), ""
    )
    metadata.append(("psm_search_engine_score[1]", f"[, , {score_type or 'score'}, ]"))
    for k, map_index in enumerate(map_indices, start=1):
        description = aggregate.maps.get(map_index)
        label = description.label if description is not None and description.label else f"map {map_index}"
        metadata.append((f"study_variable[{k}]-description", label))

    # PEP section
    pep_rows = []
    for cf_id, group in enumerate(aggregate.groups):
        pep_id = next((p for p in group.identifications if p.hits), None)
        if pep_id is None and not export_unidentified_features:
            continue
        hit = pep_id.top_hit if pep_id is not None else None
        row = {c: NULL for c in PEP_COLUMNS}
        row.update({
            "retention_time": to_report_text(group.rt),
            "charge": to_report_text(group.charge),
            "mass_to_charge": to_report_text(group.mz),
            "opt_global_cf_id": str(cf_id),
        })
        if hit is not None:
            row.update({
                "sequence": hit.sequence,
                "accession": to_report_text(hit.accessions),
                "unique": "1" if len(hit.accessions) == 1 else "0",
                "search_engine": exporter.search_engine(pep_id),
                "best_search_engine_score[1]": to_report_text(hit.score),
            })
        elements = {e.map_index: e for e in group.elements}
        for k, map_index in enumerate(map_indices, start=1):
            element = elements.get(map_index)
            row[f"peptide_abundance_study_variable[{k}]"] = to_report_text(
                element.intensity if element is not None else None
            )
            if export_subfeatures:
                row[f"opt_global_mass_to_charge_study_variable[{k}]"] = to_report_text(
                    element.mz if element is not None else None
                )
                row[f"opt_global_retention_time_study_variable[{k}]"] = to_report_text(
                    element.rt if element is not None else None
                )
        pep_rows.append(row)

    # PSM section
    psm_rows = []
    for group in aggregate.groups:
        for pep_id in group.identifications:
            if pep_id.hits:
                psm_rows.append(exporter.psm_row(len(psm_rows) + 1, pep_id))
    if export_unassigned_ids:
        for pep_id in aggregate.unassigned_identifications:
            psm_rows.append(exporter.psm_row(len(psm_rows) + 1, pep_id))

    logger.info("  mzTab: %d PEP rows, %d PSM rows", len(pep_rows), len(psm_rows))
    return MzTab(
        metadata=metadata,
        peptides=_frame(pep_rows, PEP_COLUMNS),
        psms=_frame(psm_rows, PSM_COLUMNS + [DECOY_COLUMN]),
    )


def _all_identifications(aggregate: AggregateResult):
    for group in aggregate.groups:
        yield from group.identifications
    yield from aggregate.unassigned_identifications


def _section(df: pl.DataFrame, header: str, prefix: str) -> str:
    if df.height == 0:
        return ""
    tagged = df.select(pl.lit(prefix).alias(header), pl.all())
    return tagged.write_csv(separator="\t", quote_style="never", null_value=NULL)


def store(path: str | Path, mztab: MzTab) -> None:
    """Write an mzTab file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    lines = [f"MTD\t{key}\t{value}" for key, value in mztab.metadata]
    lines += [
        f"MTD\tcustom[{i}]\t{param.to_cell()}"
        for i, param in enumerate(mztab.custom, start=1)
    ]
    text = "\n".join(lines) + "\n"
    for df, header, prefix in ((mztab.peptides, "PEH", "PEP"), (mztab.psms, "PSH", "PSM")):
        section = _section(df, header, prefix)
        if section:
            text += "\n" + section

    with open(path, "w") as f:
        f.write(text)
    logger.info("mzTab written to %s", path)
