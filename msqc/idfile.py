"""JSON storage for feature tables and consensus results.

Feature table document:
  {"primary_ms_run_paths": [...], "search_parameters": {...}, "meta": {...},
   "features": [{"rt", "mz", "charge", "intensity", "meta", "identifications": [...]}],
   "unassigned_identifications": [...]}

Consensus document:
  {"maps": {"0": {"filename", "label", "size"}}, "meta": {...},
   "runs": [{"identifier", "search_engine", "primary_ms_run_paths", "search_parameters"}],
   "groups": [{"rt", "mz", "charge", "intensity", "elements": [...], "identifications": [...]}],
   "unassigned_identifications": [...]}

Identification:
  {"rt", "mz", "score_type", "higher_score_better", "identifier", "meta",
   "hits": [{"sequence", "score", "charge", "accessions", "meta"}]}
"""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path

from .model import (
    AggregateResult,
    ConsensusElement,
    ConsensusGroup,
    Feature,
    FeatureTable,
    MapDescription,
    PeptideHit,
    PeptideIdentification,
    RunIdentification,
)


def _read_json(path: str | Path) -> dict:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    with open(path) as f:
        doc = json.load(f)
    if not isinstance(doc, dict):
        raise ValueError(f"{path}: expected a JSON object at top level")
    return doc


def _write_json(path: str | Path, doc: dict) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(doc, f, indent=2, default=str)


def hit_from_dict(d: dict) -> PeptideHit:
    return PeptideHit(
        sequence=d["sequence"],
        score=float(d.get("score", 0.0)),
        charge=int(d.get("charge", 0)),
        accessions=list(d.get("accessions", [])),
        meta=dict(d.get("meta", {})),
    )


def identification_from_dict(d: dict) -> PeptideIdentification:
    return PeptideIdentification(
        rt=d.get("rt"),
        mz=d.get("mz"),
        score_type=d.get("score_type", ""),
        higher_score_better=bool(d.get("higher_score_better", True)),
        identifier=d.get("identifier", ""),
        hits=[hit_from_dict(h) for h in d.get("hits", [])],
        meta=dict(d.get("meta", {})),
    )


def feature_table_from_dict(doc: dict) -> FeatureTable:
    features = [
        Feature(
            rt=float(f["rt"]),
            mz=float(f["mz"]),
            charge=int(f.get("charge", 0)),
            intensity=float(f.get("intensity", 0.0)),
            identifications=[identification_from_dict(p) for p in f.get("identifications", [])],
            meta=dict(f.get("meta", {})),
        )
        for f in doc.get("features", [])
    ]
    return FeatureTable(
        features=features,
        unassigned_identifications=[
            identification_from_dict(p) for p in doc.get("unassigned_identifications", [])
        ],
        primary_ms_run_paths=list(doc.get("primary_ms_run_paths", [])),
        search_parameters=dict(doc.get("search_parameters", {})),
        meta=dict(doc.get("meta", {})),
    )


def consensus_from_dict(doc: dict) -> AggregateResult:
    groups = [
        ConsensusGroup(
            rt=float(g["rt"]),
            mz=float(g["mz"]),
            charge=int(g.get("charge", 0)),
            intensity=float(g.get("intensity", 0.0)),
            elements=[
                ConsensusElement(
                    map_index=int(e["map_index"]),
                    rt=float(e["rt"]),
                    mz=float(e["mz"]),
                    intensity=float(e.get("intensity", 0.0)),
                )
                for e in g.get("elements", [])
            ],
            identifications=[identification_from_dict(p) for p in g.get("identifications", [])],
            meta=dict(g.get("meta", {})),
        )
        for g in doc.get("groups", [])
    ]
    runs = [
        RunIdentification(
            identifier=r["identifier"],
            search_engine=r.get("search_engine", ""),
            primary_ms_run_paths=list(r.get("primary_ms_run_paths", [])),
            search_parameters=dict(r.get("search_parameters", {})),
        )
        for r in doc.get("runs", [])
    ]
    maps = {
        int(k): MapDescription(
            filename=m.get("filename", ""),
            label=m.get("label", ""),
            size=int(m.get("size", 0)),
        )
        for k, m in doc.get("maps", {}).items()
    }
    return AggregateResult(
        groups=groups,
        unassigned_identifications=[
            identification_from_dict(p) for p in doc.get("unassigned_identifications", [])
        ],
        runs=runs,
        maps=maps,
        meta=dict(doc.get("meta", {})),
    )


def load_feature_table(path: str | Path) -> FeatureTable:
    """Load a feature table JSON file."""
    return feature_table_from_dict(_read_json(path))


def store_feature_table(path: str | Path, features: FeatureTable) -> None:
    _write_json(path, asdict(features))


def load_consensus(path: str | Path) -> AggregateResult:
    """Load a consensus JSON file."""
    return consensus_from_dict(_read_json(path))


def store_consensus(path: str | Path, aggregate: AggregateResult) -> None:
    doc = asdict(aggregate)
    doc["maps"] = {str(k): v for k, v in doc["maps"].items()}
    _write_json(path, doc)
