import pytest

from msqc.errors import InvalidParameterError
from msqc.identity import CF_ID_KEY, NO_GROUP, IdentityHandle, IdentityIndex
from msqc.model import RunIdentification


def test_build_indexes_every_identification(aggregate):
    index = IdentityIndex.build(aggregate)

    assert len(index) == 4
    assert index.locate("U2") == IdentityHandle(group=0, slot=1)
    assert index.locate("U3") == IdentityHandle(group=1, slot=0)
    assert index.locate("U4") == IdentityHandle(group=None, slot=0)


def test_resolve_returns_aggregate_object(aggregate):
    index = IdentityIndex.build(aggregate)
    assert index.resolve(aggregate, "U2") is aggregate.groups[0].identifications[1]
    assert index.resolve(aggregate, "U4") is aggregate.unassigned_identifications[0]


def test_build_sets_group_index_meta(aggregate):
    IdentityIndex.build(aggregate)
    assert aggregate.groups[1].identifications[0].meta[CF_ID_KEY] == 1
    assert aggregate.unassigned_identifications[0].meta[CF_ID_KEY] == NO_GROUP


def test_missing_uid_is_fatal(aggregate, make_id):
    aggregate.groups[0].identifications.append(make_id(uid=None))
    with pytest.raises(InvalidParameterError, match="No unique ID at peptide identifications found"):
        IdentityIndex.build(aggregate)


def test_hitless_identification_without_uid_is_skipped(aggregate, make_id):
    aggregate.unassigned_identifications.append(make_id(uid=None, hits=False))
    index = IdentityIndex.build(aggregate)
    assert len(index) == 4


def test_duplicate_run_paths_are_fatal(aggregate):
    aggregate.runs.append(RunIdentification("run_2", "Comet", ["a.mzML"]))
    with pytest.raises(InvalidParameterError, match="Multiple protein identifications"):
        IdentityIndex.build(aggregate)


def test_run_identifier_lookup(aggregate):
    index = IdentityIndex.build(aggregate)
    assert index.run_identifier(["b.mzML"]) == "run_1"
    with pytest.raises(InvalidParameterError, match="run not found"):
        index.run_identifier(["c.mzML"])


def test_run_key_is_order_sensitive(aggregate):
    aggregate.runs = [RunIdentification("run_0", "Comet", ["a.mzML", "b.mzML"])]
    index = IdentityIndex.build(aggregate)
    assert index.run_identifier(["a.mzML", "b.mzML"]) == "run_0"
    with pytest.raises(InvalidParameterError):
        index.run_identifier(["b.mzML", "a.mzML"])


def test_unknown_uid(aggregate):
    index = IdentityIndex.build(aggregate)
    assert "U9" not in index
    with pytest.raises(InvalidParameterError):
        index.locate("U9")
