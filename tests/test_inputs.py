import pytest

from msqc.errors import InvalidParameterError
from msqc.idfile import store_feature_table
from msqc.inputs import BatchInputLoader
from msqc.status import Requires, Status


def test_empty_lists_are_legal():
    loader = BatchInputLoader()
    assert loader.register_inputs([], [], []) == 0
    assert loader.status == Status()


def test_cardinality_zero_three_three():
    loader = BatchInputLoader()
    n = loader.register_inputs([], ["a", "b", "c"], ["x", "y", "z"])
    assert n == 3
    assert loader.status == Status(Requires.POSTFDRFEAT, Requires.TRAFOALIGN)


def test_cardinality_mismatch_is_fatal():
    loader = BatchInputLoader()
    with pytest.raises(InvalidParameterError, match="in_trafo: invalid number of files. Expected were 3."):
        loader.register_inputs([], ["a", "b", "c"], ["w", "x", "y", "z"])


def test_first_non_empty_list_fixes_count():
    loader = BatchInputLoader()
    loader.register_list("in_raw", ["r1", "r2"], Requires.RAWMZML)
    with pytest.raises(InvalidParameterError, match="in_postFDR"):
        loader.register_list("in_postFDR", ["f1"], Requires.POSTFDRFEAT)


def test_register_file():
    loader = BatchInputLoader()
    assert loader.register_file("in_contaminants", "", Requires.CONTAMINANTS) == ""
    assert Requires.CONTAMINANTS not in loader.status
    assert loader.register_file("in_contaminants", "c.fasta", Requires.CONTAMINANTS) == "c.fasta"
    assert Requires.CONTAMINANTS in loader.status


def test_load_experiment_defaults_for_empty_categories(tmp_path, feature_table):
    path = tmp_path / "exp0.features.json"
    store_feature_table(path, feature_table)

    loader = BatchInputLoader()
    loader.register_inputs([], [str(path)], [])
    resources = loader.load_experiment(0)

    assert len(resources.features) == 1
    assert resources.features.primary_ms_run_paths == ["a.mzML"]
    assert resources.spectra.height == 0
    assert resources.spectra_lookup is None
    assert resources.trafo.is_identity


def test_load_experiment_spectra(tmp_path, make_spectra):
    path = tmp_path / "exp0.parquet"
    make_spectra([1, 2, 2]).write_parquet(path)

    loader = BatchInputLoader()
    loader.register_inputs([str(path)], [], [])
    resources = loader.load_experiment(0)

    assert resources.spectra.height == 3
    assert resources.spectra_lookup.find_native_id("scan=3") == 2


def test_load_experiment_out_of_range():
    loader = BatchInputLoader()
    with pytest.raises(IndexError):
        loader.load_experiment(0)
