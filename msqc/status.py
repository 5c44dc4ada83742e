"""Input capabilities and metric gating.

A Status is the set of optional input categories that were supplied.
Each metric declares the Status it requires; is_runnable() decides
whether it can run and warns about every missing category.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)


class Requires(Enum):
    """Optional input categories. Values are the display names used in warnings."""

    FAIL = "fail"
    RAWMZML = "raw.mzML"
    POSTFDRFEAT = "postFDR.featureXML"
    PREFDRFEAT = "preFDR.featureXML"
    CONTAMINANTS = "contaminants.fasta"
    TRAFOALIGN = "trafoAlign.trafoXML"


class Status:
    """Immutable set of Requires values."""

    __slots__ = ("_flags",)

    def __init__(self, *requires: Requires | Iterable[Requires]):
        flags: set[Requires] = set()
        for item in requires:
            if isinstance(item, Requires):
                flags.add(item)
            else:
                flags.update(item)
        self._flags = frozenset(flags)

    def __or__(self, other: Status | Requires) -> Status:
        if isinstance(other, Requires):
            return Status(self._flags, (other,))
        if isinstance(other, Status):
            return Status(self._flags, other._flags)
        return NotImplemented

    def is_superset_of(self, other: Status | Requires) -> bool:
        if isinstance(other, Requires):
            return other in self._flags
        return self._flags >= other._flags

    def __contains__(self, item: Requires) -> bool:
        return item in self._flags

    def __iter__(self) -> Iterator[Requires]:
        # Declaration order, so warnings come out deterministically
        return (r for r in Requires if r in self._flags)

    def __len__(self) -> int:
        return len(self._flags)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Status):
            return NotImplemented
        return self._flags == other._flags

    def __hash__(self) -> int:
        return hash(self._flags)

    def __repr__(self) -> str:
        return f"Status({', '.join(r.name for r in self)})"


def is_runnable(metric, status: Status) -> bool:
    """Return True if `status` covers everything `metric` requires.

    Otherwise log one warning per missing input category.
    """
    required = metric.requires()
    if status.is_superset_of(required):
        return True

    for req in required:
        if req not in status:
            logger.warning(
                "Metric '%s' cannot run because input data '%s' is missing!",
                metric.name, req.value,
            )
    return False
