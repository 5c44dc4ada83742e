"""Copy metric annotations from a feature table onto the consensus result."""

from __future__ import annotations

import logging
from typing import Iterable

from .identity import IdentityIndex, require_uid
from .model import AggregateResult, FeatureTable, PeptideIdentification

logger = logging.getLogger(__name__)


def copy_meta_values(source, target) -> None:
    """Overwrite target meta values with every meta value of source."""
    for key, value in source.meta.items():
        target.meta[key] = value


def copy_identification_meta_values(
    pep_ids: Iterable[PeptideIdentification],
    index: IdentityIndex,
    aggregate: AggregateResult,
) -> int:
    """Merge identification- and top-hit-level meta values by UID."""
    n_merged = 0
    for ref_pep_id in pep_ids:
        # empty identifications created by a metric
        if not ref_pep_id.hits:
            continue

        pep_id = index.resolve(aggregate, require_uid(ref_pep_id))

        copy_meta_values(ref_pep_id, pep_id)
        if pep_id.hits:
            copy_meta_values(ref_pep_id.hits[0], pep_id.hits[0])
        n_merged += 1
    return n_merged


def merge_annotations(
    features: FeatureTable,
    index: IdentityIndex,
    aggregate: AggregateResult,
) -> int:
    """Merge every identification of one experiment's feature table."""
    n_merged = copy_identification_meta_values(
        features.unassigned_identifications, index, aggregate
    )
    for feature in features:
        n_merged += copy_identification_meta_values(feature.identifications, index, aggregate)
    logger.info("  %d identifications annotated in consensus", n_merged)
    return n_merged
