"""Shared builders for the msqc test suite."""

import json

import polars as pl
import pytest

from msqc.model import (
    AggregateResult,
    ConsensusGroup,
    Feature,
    FeatureTable,
    PeptideHit,
    PeptideIdentification,
    RunIdentification,
    SPECTRUM_REFERENCE_KEY,
    UID_KEY,
)
from msqc.parquet_reader import SPECTRA_SCHEMA


def build_id(uid=None, sequence="PEPTIDEK", score=0.01, rt=100.0, mz=500.0,
             identifier="run_0", native_id=None, target_decoy="target", charge=2,
             hits=True):
    meta = {}
    if uid is not None:
        meta[UID_KEY] = uid
    if native_id is not None:
        meta[SPECTRUM_REFERENCE_KEY] = native_id
    hit_meta = {"target_decoy": target_decoy} if target_decoy is not None else {}
    return PeptideIdentification(
        rt=rt,
        mz=mz,
        score_type="q-value",
        higher_score_better=False,
        identifier=identifier,
        hits=[PeptideHit(sequence=sequence, score=score, charge=charge,
                         accessions=["P1"], meta=hit_meta)] if hits else [],
        meta=meta,
    )


def build_spectra(levels, rt_step=1.0, peaks=None):
    """Spectra frame with one row per MS level entry; every spectrum gets `peaks`."""
    mz, intensity = peaks if peaks is not None else ([100.0, 200.0], [10.0, 20.0])
    rows = []
    for i, level in enumerate(levels):
        rows.append({
            "scan_idx": i + 1,
            "native_id": f"scan={i + 1}",
            "scan_start_time": 10.0 + i * rt_step,
            "ms_level": level,
            "precursor_mz": 500.0 + i if level == 2 else None,
            "precursor_charge": 2 if level == 2 else None,
            "mz_array": list(mz),
            "intensity_array": list(intensity),
        })
    return pl.DataFrame(rows, schema=SPECTRA_SCHEMA)


def build_aggregate():
    """Two runs, two groups (U1, U2 / U3) and one unassigned identification (U4)."""
    return AggregateResult(
        groups=[
            ConsensusGroup(rt=100.0, mz=500.0, charge=2,
                           identifications=[build_id("U1", "PEPTIDEK"),
                                            build_id("U2", "PEPTIDEK", identifier="run_1")]),
            ConsensusGroup(rt=200.0, mz=600.0, charge=2,
                           identifications=[build_id("U3", "ELVISLIVESK")]),
        ],
        unassigned_identifications=[build_id("U4", "SAMPLER", identifier="run_1")],
        runs=[
            RunIdentification("run_0", "Comet", ["a.mzML"]),
            RunIdentification("run_1", "Comet", ["b.mzML"]),
        ],
    )


def build_feature_table(paths=("a.mzML",)):
    """Feature table of run_0: U1 assigned to a feature, U3 unassigned."""
    return FeatureTable(
        features=[Feature(rt=100.0, mz=500.0, charge=2, intensity=1e5,
                          identifications=[build_id("U1", "PEPTIDEK", native_id="scan=2")])],
        unassigned_identifications=[build_id("U3", "ELVISLIVESK", native_id="scan=3")],
        primary_ms_run_paths=list(paths),
        search_parameters={"enzyme": "Trypsin"},
    )


def identification_doc(pep_id):
    return {
        "rt": pep_id.rt,
        "mz": pep_id.mz,
        "score_type": pep_id.score_type,
        "higher_score_better": pep_id.higher_score_better,
        "identifier": pep_id.identifier,
        "meta": dict(pep_id.meta),
        "hits": [
            {"sequence": h.sequence, "score": h.score, "charge": h.charge,
             "accessions": list(h.accessions), "meta": dict(h.meta)}
            for h in pep_id.hits
        ],
    }


@pytest.fixture
def make_id():
    return build_id


@pytest.fixture
def make_spectra():
    return build_spectra


@pytest.fixture
def aggregate():
    return build_aggregate()


@pytest.fixture
def feature_table():
    return build_feature_table()


@pytest.fixture
def write_json(tmp_path):
    def _write(name, doc):
        path = tmp_path / name
        with open(path, "w") as f:
            json.dump(doc, f)
        return str(path)
    return _write


@pytest.fixture
def batch_files(tmp_path, write_json):
    """Consensus + per-experiment feature tables (and spectra) on disk.

    Returns a function(n_experiments, with_spectra) -> dict of paths.
    Experiment i holds identification E<i> of sequence PEPTIDEK at scan=2
    and is linked to run_<i> in the consensus.
    """
    def _build(n_experiments=1, with_spectra=False):
        raw, feats, groups, runs = [], [], [], []
        for i in range(n_experiments):
            raw_path = str(tmp_path / f"exp{i}.parquet")
            pep_id = build_id(f"E{i}", "PEPTKIDER", identifier=f"run_{i}",
                              native_id="scan=2", rt=11.0)
            feats.append(write_json(f"exp{i}.features.json", {
                "primary_ms_run_paths": [raw_path],
                "search_parameters": {"enzyme": "Trypsin"},
                "features": [{"rt": 11.0, "mz": 500.0, "charge": 2, "intensity": 1e5,
                              "identifications": [identification_doc(pep_id)]}],
                "unassigned_identifications": [],
            }))
            groups.append({"rt": 11.0, "mz": 500.0, "charge": 2,
                           "identifications": [identification_doc(pep_id)]})
            runs.append({"identifier": f"run_{i}", "search_engine": "Comet",
                         "primary_ms_run_paths": [raw_path]})
            if with_spectra:
                build_spectra([1, 2, 2, 1, 2]).write_parquet(raw_path)
                raw.append(raw_path)
        consensus = write_json("consensus.json", {
            "maps": {str(i): {"filename": runs[i]["primary_ms_run_paths"][0]}
                     for i in range(n_experiments)},
            "runs": runs,
            "groups": groups,
            "unassigned_identifications": [],
        })
        return {"in_cm": consensus, "in_postfdr": feats, "in_raw": raw,
                "out": str(tmp_path / "report.mzTab")}
    return _build
