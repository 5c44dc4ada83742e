"""In-memory data model for identifications, feature tables and consensus results.

Identifications and hits carry an open `meta` dict. Metrics write their
annotations there; the merge step copies them onto the consensus result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

UID_KEY = "UID"
SPECTRUM_REFERENCE_KEY = "spectrum_reference"


@dataclass
class PeptideHit:
    """One ranked hypothesis of an identification."""

    sequence: str
    score: float = 0.0
    charge: int = 0
    accessions: list[str] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def target_decoy(self) -> Optional[str]:
        return self.meta.get("target_decoy")


@dataclass
class PeptideIdentification:
    """An identification with ranked hits (best first)."""

    rt: Optional[float] = None
    mz: Optional[float] = None
    score_type: str = ""
    higher_score_better: bool = True
    identifier: str = ""            # run identifier, ties the ID to a RunIdentification
    hits: list[PeptideHit] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def uid(self) -> Optional[str]:
        value = self.meta.get(UID_KEY)
        return str(value) if value not in (None, "") else None

    @property
    def spectrum_reference(self) -> Optional[str]:
        return self.meta.get(SPECTRUM_REFERENCE_KEY)

    @property
    def top_hit(self) -> Optional[PeptideHit]:
        return self.hits[0] if self.hits else None


@dataclass
class Feature:
    """A quantified feature with the identifications mapped onto it."""

    rt: float
    mz: float
    charge: int = 0
    intensity: float = 0.0
    identifications: list[PeptideIdentification] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)


@dataclass
class FeatureTable:
    """Per-experiment feature table (post-FDR)."""

    features: list[Feature] = field(default_factory=list)
    unassigned_identifications: list[PeptideIdentification] = field(default_factory=list)
    primary_ms_run_paths: list[str] = field(default_factory=list)
    search_parameters: dict[str, Any] = field(default_factory=dict)
    meta: dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.features)

    def __iter__(self) -> Iterator[Feature]:
        return iter(self.features)

    def all_identifications(self) -> Iterator[PeptideIdentification]:
        """Unassigned identifications first, then feature by feature."""
        yield from self.unassigned_identifications
        for feature in self.features:
            yield from feature.identifications


@dataclass
class RunIdentification:
    """Run-level identification record (one search run)."""

    identifier: str
    search_engine: str = ""
    primary_ms_run_paths: list[str] = field(default_factory=list)
    search_parameters: dict[str, Any] = field(default_factory=dict)


@dataclass
class ConsensusElement:
    """One sub-feature of a consensus group, from one input map."""

    map_index: int
    rt: float
    mz: float
    intensity: float = 0.0


@dataclass
class ConsensusGroup:
    """A group of features linked across experiments."""

    rt: float
    mz: float
    charge: int = 0
    intensity: float = 0.0
    elements: list[ConsensusElement] = field(default_factory=list)
    identifications: list[PeptideIdentification] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)


@dataclass
class MapDescription:
    filename: str
    label: str = ""
    size: int = 0


@dataclass
class AggregateResult:
    """The consensus result linking all experiments."""

    groups: list[ConsensusGroup] = field(default_factory=list)
    unassigned_identifications: list[PeptideIdentification] = field(default_factory=list)
    runs: list[RunIdentification] = field(default_factory=list)
    maps: dict[int, MapDescription] = field(default_factory=dict)
    meta: dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.groups)

    def __getitem__(self, i: int) -> ConsensusGroup:
        return self.groups[i]
