"""Back-references from stable identifiers into the consensus result.

Two maps are built once, before any experiment is processed:

1. UID -> IdentityHandle(group, slot). Handles are positions, not object
   references, and are resolved against the consensus result on demand.
   group is None for unassigned identifications.
2. primary MS run paths -> run identifier, used to give newly created
   identifications the identifier of the run they came from.

Keys never change during a run; only the metadata of resolved
identifications is mutated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from .errors import InvalidParameterError
from .model import AggregateResult, PeptideIdentification

logger = logging.getLogger(__name__)

CF_ID_KEY = "cf_id"
NO_GROUP = -1

MISSING_UID_MESSAGE = (
    "No unique ID at peptide identifications found. "
    "Please run PeptideIndexer with '-addUID'."
)


@dataclass(frozen=True)
class IdentityHandle:
    group: Optional[int]    # consensus group index, None = unassigned
    slot: int               # position within the group / unassigned list


def require_uid(pep_id: PeptideIdentification) -> str:
    uid = pep_id.uid
    if uid is None:
        raise InvalidParameterError(MISSING_UID_MESSAGE)
    return uid


def run_key(paths: Iterable[str]) -> tuple[str, ...]:
    return tuple(paths)


class IdentityIndex:
    """UID and run-path lookups into one AggregateResult."""

    def __init__(self):
        self._handles: dict[str, IdentityHandle] = {}
        self._run_identifiers: dict[tuple[str, ...], str] = {}

    @classmethod
    def build(cls, aggregate: AggregateResult) -> IdentityIndex:
        index = cls()
        for i, group in enumerate(aggregate.groups):
            index._fill(group.identifications, i)
        index._fill(aggregate.unassigned_identifications, None)

        for run in aggregate.runs:
            key = run_key(run.primary_ms_run_paths)
            if key in index._run_identifiers:
                raise InvalidParameterError(
                    "Multiple protein identifications with the same identifier in "
                    f"consensus input (MS run {list(key)}). Check input!"
                )
            index._run_identifiers[key] = run.identifier

        logger.info("  %d identifications indexed, %d runs",
                    len(index._handles), len(index._run_identifiers))
        return index

    def _fill(self, pep_ids: list[PeptideIdentification], group: Optional[int]) -> None:
        for slot, pep_id in enumerate(pep_ids):
            # Hitless placeholders without UID are not indexed
            if not pep_id.hits and pep_id.uid is None:
                continue
            uid = require_uid(pep_id)
            pep_id.meta[CF_ID_KEY] = group if group is not None else NO_GROUP
            self._handles[uid] = IdentityHandle(group=group, slot=slot)

    def __len__(self) -> int:
        return len(self._handles)

    def __contains__(self, uid: str) -> bool:
        return uid in self._handles

    def locate(self, uid: str) -> IdentityHandle:
        handle = self._handles.get(uid)
        if handle is None:
            raise InvalidParameterError(
                f"Peptide identification with UID '{uid}' not found in consensus input. "
                "Check input!"
            )
        return handle

    def resolve(self, aggregate: AggregateResult, uid: str) -> PeptideIdentification:
        """The consensus identification carrying `uid`."""
        handle = self.locate(uid)
        if handle.group is None:
            return aggregate.unassigned_identifications[handle.slot]
        return aggregate.groups[handle.group].identifications[handle.slot]

    def run_identifier(self, paths: Iterable[str]) -> str:
        key = run_key(paths)
        identifier = self._run_identifiers.get(key)
        if identifier is None:
            raise InvalidParameterError(
                f"Feature table (MS run {list(key)}) does not correspond to the "
                "consensus input (run not found). Check input!"
            )
        return identifier
