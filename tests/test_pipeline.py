import json
import logging
from pathlib import Path

import pytest

from msqc import run
from msqc.config import QcConfig
from msqc.errors import ExitCode, InvalidParameterError
from msqc.idfile import load_feature_table
from msqc.pipeline import run_pipeline


def test_features_and_consensus_only(batch_files, caplog):
    files = batch_files(1)
    config = QcConfig(in_cm=files["in_cm"], in_postfdr=files["in_postfdr"], out=files["out"])

    with caplog.at_level(logging.WARNING):
        result = run_pipeline(config)

    assert result.n_experiments == 1
    assert result.metrics.runs == {"MissedCleavages": 1, "MzCalibration": 1}
    assert not any(
        "MissedCleavages" in r.getMessage()
        for r in caplog.records if r.levelno >= logging.WARNING
    )

    hit = result.aggregate.groups[0].identifications[0].hits[0]
    assert hit.meta["missed_cleavages"] == 1
    assert "fragment_mass_error_ppm" not in hit.meta

    assert result.report.custom == []
    text = Path(config.out).read_text()
    assert "TIC_" not in text
    assert "opt_global_missed_cleavages" in text


def test_two_experiments_with_spectra(batch_files):
    files = batch_files(2, with_spectra=True)
    config = QcConfig(
        in_cm=files["in_cm"], in_raw=files["in_raw"],
        in_postfdr=files["in_postfdr"], out=files["out"],
    )

    result = run_pipeline(config)

    assert [p.name for p in result.report.custom] == [
        "TIC_1", "TIC_2", "MS2_ID_Rate_1", "MS2_ID_Rate_2",
    ]
    assert result.report.custom[0].value == "[10, 30, 13, 30]"
    assert result.report.custom[2].value == "33.33333333"
    # two unidentified MS2 spectra per experiment
    assert len(result.overflow) == 4
    assert sorted(p.identifier for p in result.overflow) == ["run_0", "run_0", "run_1", "run_1"]
    assert len(result.aggregate.unassigned_identifications) == 4

    text = Path(config.out).read_text()
    assert "MTD\tcustom[2]\t[total ion current, MS:1000285, TIC_2, [10, 30, 13, 30]]" in text


def test_cardinality_mismatch_fails_before_loading(tmp_path):
    config = QcConfig(
        in_cm=str(tmp_path / "missing.json"),
        in_postfdr=["a", "b", "c"],
        in_trafo=["w", "x", "y", "z"],
        out=str(tmp_path / "report.mzTab"),
    )
    with pytest.raises(InvalidParameterError, match="Expected were 3"):
        run_pipeline(config)
    assert not (tmp_path / "report.mzTab").exists()


def test_annotated_feature_tables_written(batch_files, tmp_path):
    files = batch_files(1)
    out_feat = str(tmp_path / "annotated" / "exp0.json")
    config = QcConfig(
        in_cm=files["in_cm"], in_postfdr=files["in_postfdr"],
        out=files["out"], out_feat=[out_feat],
    )

    run_pipeline(config)

    table = load_feature_table(out_feat)
    assert table.features[0].identifications[0].hits[0].meta["missed_cleavages"] == 1


def test_unknown_fragment_unit_rejected(tmp_path):
    config = QcConfig(in_cm="c.json", out="r.mzTab", fragment_mass_error_unit="mmu")
    with pytest.raises(InvalidParameterError, match="fragment_mass_error_unit"):
        config.validate()


def test_config_from_json_ignores_unknown_keys(write_json):
    path = write_json("cfg.json", {"force_no_fdr": True, "tic_ms_level": 2, "bogus": 1})
    config = QcConfig.from_json(path)
    assert config.force_no_fdr is True
    assert config.tic_ms_level == 2
    assert not hasattr(config, "bogus")


def test_cli_writes_report_and_metrics(batch_files):
    files = batch_files(1)
    code = run.main([
        "--in-cm", files["in_cm"], "--out", files["out"],
        "--in-postfdr", *files["in_postfdr"], "--quiet",
    ])

    assert code == ExitCode.EXECUTION_OK
    metrics_path = Path(files["out"]).with_suffix(".qc.json")
    with open(metrics_path) as f:
        summary = json.load(f)
    assert summary["n_experiments"] == 1
    assert summary["metrics"]["MissedCleavages"]["results"] == [{"1": 1}]


def test_cli_exit_codes(batch_files, tmp_path):
    files = batch_files(1)
    assert run.main(["--out", files["out"], "--quiet"]) == ExitCode.ILLEGAL_PARAMETERS
    assert run.main([
        "--in-cm", files["in_cm"], "--out", files["out"],
        "--in-postfdr", *files["in_postfdr"], "--out-feat", "a.json", "b.json", "--quiet",
    ]) == ExitCode.ILLEGAL_PARAMETERS
    assert run.main([
        "--in-cm", str(tmp_path / "nope.json"), "--out", files["out"], "--quiet",
    ]) == ExitCode.INPUT_FILE_NOT_FOUND


def test_cli_unknown_residue_exit_code(batch_files):
    files = batch_files(1)
    with open(files["in_postfdr"][0]) as f:
        doc = json.load(f)
    doc["features"][0]["identifications"][0]["hits"][0]["sequence"] = "PEPXIDEK"
    with open(files["in_postfdr"][0], "w") as f:
        json.dump(doc, f)

    code = run.main([
        "--in-cm", files["in_cm"], "--out", files["out"],
        "--in-postfdr", *files["in_postfdr"], "--quiet",
    ])

    assert code == ExitCode.INPUT_FILE_CORRUPT
