"""Contaminant protein database loading.

Reads a FASTA file with pyteomics and digests it into the peptide set
used by the Contaminants metric.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from pyteomics import fasta

from .sequence import digest

logger = logging.getLogger(__name__)


@dataclass
class FastaEntry:
    identifier: str
    description: str
    sequence: str


def load_contaminants(path: str | Path) -> list[FastaEntry]:
    """Load a contaminant FASTA database."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"FASTA not found: {path}")

    entries = []
    for desc, seq in fasta.read(str(path)):
        identifier, _, rest = desc.partition(" ")
        entries.append(FastaEntry(identifier=identifier, description=rest, sequence=seq))
    logger.info("  %d contaminant proteins loaded from %s", len(entries), path)
    return entries


def digest_contaminants(
    entries: list[FastaEntry],
    enzyme: str | None = "trypsin",
    missed_cleavages: int = 2,
    min_length: int = 6,
) -> set[str]:
    """Digest every contaminant protein into one peptide set."""
    peptides: set[str] = set()
    for entry in entries:
        # Drop stop codon markers
        seq = entry.sequence.replace("*", "")
        peptides |= digest(seq, enzyme, missed_cleavages=missed_cleavages, min_length=min_length)
    return peptides
