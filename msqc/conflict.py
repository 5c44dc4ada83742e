"""Reduce every consensus group to a single identification.

The mzTab export needs at most one identification per consensus group;
the one with the best top-hit score is kept.
"""

from __future__ import annotations

import logging
from typing import Optional

from .model import AggregateResult, PeptideIdentification

logger = logging.getLogger(__name__)


def _is_better(a: PeptideIdentification, b: PeptideIdentification) -> bool:
    if a.higher_score_better:
        return a.hits[0].score > b.hits[0].score
    return a.hits[0].score < b.hits[0].score


def best_identification(pep_ids: list[PeptideIdentification]) -> Optional[PeptideIdentification]:
    best = None
    for pep_id in pep_ids:
        if not pep_id.hits:
            continue
        if best is None or _is_better(pep_id, best):
            best = pep_id
    return best


def resolve(aggregate: AggregateResult) -> int:
    """Collapse multi-identification groups in place; return how many changed."""
    n_resolved = 0
    for group in aggregate.groups:
        if len(group.identifications) <= 1:
            continue
        best = best_identification(group.identifications)
        group.identifications = [best if best is not None else group.identifications[0]]
        n_resolved += 1
    logger.info("  %d consensus groups with conflicting identifications resolved", n_resolved)
    return n_resolved
