import pytest

from msqc.database import digest_contaminants, load_contaminants
from msqc.parquet_reader import SpectraLookup, decode_mz_array, read_spectra_parquet
from msqc.sequence import (
    count_missed_cleavages,
    fragment_ions,
    parse_sequence,
    peptide_mass,
    peptide_mz,
    unmodified_sequence,
)
from msqc.trafo import TransformationDescription, load_trafo


def test_parse_modified_sequence():
    residues, deltas, n_term = parse_sequence(".(Acetyl)PEPM(Oxidation)TIDEK")
    assert "".join(residues) == "PEPMTIDEK"
    assert deltas[3] == pytest.approx(15.994915)
    assert n_term == pytest.approx(42.010565)
    assert unmodified_sequence("PEPC[+57.0215]TIDEK") == "PEPCTIDEK"


def test_peptide_masses():
    # PEPTIDE monoisotopic mass
    assert peptide_mass("PEPTIDE") == pytest.approx(799.35996, abs=1e-4)
    assert peptide_mz("PEPTIDE", 2) == pytest.approx((799.35996 + 2 * 1.00727646677) / 2, abs=1e-4)
    with pytest.raises(ValueError):
        peptide_mz("PEPTIDE", 0)


def test_fragment_ions_count():
    ions = fragment_ions("PEPTIDEK")
    assert len(ions) == 14
    assert ions == sorted(ions)


@pytest.mark.parametrize(
    "sequence, expected",
    [("PEPTIDEK", 0), ("PEPTKIDER", 1), ("PEPKPIDER", 0), ("AKAKAR", 2)],
)
def test_missed_cleavages(sequence, expected):
    assert count_missed_cleavages(sequence, "Trypsin") == expected


def test_unknown_enzyme_falls_back_to_trypsin(caplog):
    assert count_missed_cleavages("PEPTKIDER", "Pepsin") == 1
    assert "Unknown enzyme" in caplog.text


def test_load_and_digest_contaminants(tmp_path):
    path = tmp_path / "contaminants.fasta"
    path.write_text(">CON_1 Keratin\nPEPTIDEKAAAWVTFISLLLR*\n>CON_2 Trypsin\nGGGGGGK\n")

    entries = load_contaminants(path)
    assert [e.identifier for e in entries] == ["CON_1", "CON_2"]
    assert entries[0].description == "Keratin"

    peptides = digest_contaminants(entries, "trypsin", missed_cleavages=0)
    assert peptides == {"PEPTIDEK", "AAAWVTFISLLLR", "GGGGGGK"}


def test_trafo_models(write_json):
    assert TransformationDescription().apply(12.0) == 12.0
    linear = TransformationDescription("linear", [(0.0, 1.0), (10.0, 21.0)])
    assert linear.apply(5.0) == pytest.approx(11.0)

    path = write_json("t.json", {"model": "interpolated", "pairs": [[0, 0], [10, 20], [20, 30]]})
    trafo = load_trafo(path)
    assert trafo.apply(15.0) == pytest.approx(25.0)
    # linear extrapolation past the last point
    assert trafo.apply(30.0) == pytest.approx(40.0)


def test_unknown_trafo_model():
    with pytest.raises(ValueError):
        TransformationDescription("lowess", [])


def test_read_spectra_parquet(tmp_path, make_spectra):
    path = tmp_path / "run.parquet"
    make_spectra([1, 2, 2]).drop("native_id").write_parquet(path)

    spectra = read_spectra_parquet(path)

    assert spectra["native_id"].to_list() == ["scan=1", "scan=2", "scan=3"]
    lookup = SpectraLookup.build(spectra)
    assert lookup.find(None, 11.01) == 1
    assert lookup.find("scan=3", None) == 2
    assert lookup.find(None, 10.0) is None
    mz, intensity = lookup.peaks(0)
    assert mz.tolist() == [100.0, 200.0]


def test_read_spectra_parquet_missing_columns(tmp_path, make_spectra):
    path = tmp_path / "run.parquet"
    make_spectra([1]).drop("ms_level").write_parquet(path)
    with pytest.raises(ValueError, match="missing columns"):
        read_spectra_parquet(path)


def test_decode_micro_dalton():
    assert decode_mz_array([500_000_000, 600_500_000]) == [500.0, 600.5]


@pytest.mark.parametrize("sequence", ["PEPXIDEK", "PEPBIDEK"])
def test_unknown_residue_raises_value_error(sequence):
    with pytest.raises(ValueError, match="Unknown residue"):
        peptide_mass(sequence)
    with pytest.raises(ValueError, match="Unknown residue"):
        peptide_mz(sequence, 2)
    with pytest.raises(ValueError, match="Unknown residue"):
        fragment_ions(sequence)
