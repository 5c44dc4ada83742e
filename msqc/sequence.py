"""Peptide sequence helpers: modification parsing, masses, fragments, enzymes.

Sequences use bracket notation for modifications, e.g. ``PEPM(Oxidation)TIDEK``,
``.(Acetyl)PEPTIDEK`` or ``PEPC[+57.0215]TIDEK``.
"""

from __future__ import annotations

import logging
import re

from pyteomics import mass, parser
from pyteomics.auxiliary import PyteomicsError

logger = logging.getLogger(__name__)

PROTON = 1.00727646677
WATER = 18.0105646837

# Unimod monoisotopic deltas
MOD_MASSES = {
    "Oxidation": 15.994915,
    "Carbamidomethyl": 57.021464,
    "Acetyl": 42.010565,
    "Phospho": 79.966331,
    "Deamidated": 0.984016,
    "Amidated": -0.984016,
    "Carbamyl": 43.005814,
    "Methyl": 14.01565,
}

# pyteomics rule names, or a cleavage regex where pyteomics has no name
ENZYME_RULES = {
    "trypsin": "trypsin",
    "trypsin/p": r"[KR]",
    "lys-c": "lysc",
    "arg-c": "arg-c",
}

_RE_MOD = re.compile(r"\(([^)]*)\)|\[([^\]]*)\]")


def _mod_delta(token: str) -> float:
    token = token.strip()
    try:
        return float(token)
    except ValueError:
        pass
    if token in MOD_MASSES:
        return MOD_MASSES[token]
    raise ValueError(f"Unknown modification: {token}")


def parse_sequence(sequence: str) -> tuple[list[str], list[float], float]:
    """Split a modified sequence into residues, per-residue deltas and an N-terminal delta."""
    residues: list[str] = []
    deltas: list[float] = []
    n_term = 0.0
    pos = 0
    while pos < len(sequence):
        char = sequence[pos]
        if char == ".":
            pos += 1
            continue
        if char in "([":
            match = _RE_MOD.match(sequence, pos)
            if match is None:
                raise ValueError(f"Unbalanced modification in sequence: {sequence}")
            delta = _mod_delta(match.group(1) if match.group(1) is not None else match.group(2))
            if residues:
                deltas[-1] += delta
            else:
                n_term += delta
            pos = match.end()
            continue
        residues.append(char)
        deltas.append(0.0)
        pos += 1
    return residues, deltas, n_term


def unmodified_sequence(sequence: str) -> str:
    return "".join(parse_sequence(sequence)[0])


def peptide_mass(sequence: str) -> float:
    """Neutral monoisotopic mass including modifications."""
    residues, deltas, n_term = parse_sequence(sequence)
    try:
        mono_mass = mass.fast_mass("".join(residues), ion_type="M", charge=0)
    except (KeyError, PyteomicsError) as e:
        raise ValueError(f"Unknown residue in sequence: {sequence}") from e
    return mono_mass + sum(deltas) + n_term


def peptide_mz(sequence: str, charge: int) -> float:
    if charge == 0:
        raise ValueError("Cannot compute m/z for charge 0")
    return (peptide_mass(sequence) + charge * PROTON) / charge


def fragment_ions(sequence: str) -> list[float]:
    """Singly charged b and y ion m/z values, sorted ascending."""
    residues, deltas, n_term = parse_sequence(sequence)
    try:
        residue_masses = [
            mass.std_aa_mass[aa] + delta for aa, delta in zip(residues, deltas)
        ]
    except KeyError as e:
        raise ValueError(f"Unknown residue {e} in sequence: {sequence}") from e
    total = sum(residue_masses) + n_term
    ions = []
    prefix = n_term
    for i in range(len(residue_masses) - 1):
        prefix += residue_masses[i]
        ions.append(prefix + PROTON)                    # b ion
        ions.append(total - prefix + WATER + PROTON)    # y ion
    ions.sort()
    return ions


def enzyme_rule(enzyme: str | None) -> str:
    """Cleavage regex for an enzyme name; unknown names fall back to trypsin."""
    key = (enzyme or "trypsin").strip().lower()
    if key not in ENZYME_RULES:
        logger.warning("Unknown enzyme '%s', using trypsin", enzyme)
        key = "trypsin"
    return ENZYME_RULES[key]


def count_missed_cleavages(sequence: str, enzyme: str | None = None) -> int:
    return parser.num_sites(unmodified_sequence(sequence), enzyme_rule(enzyme))


def digest(sequence: str, enzyme: str | None = None, missed_cleavages: int = 0,
           min_length: int = 6) -> set[str]:
    """In-silico digestion of a protein sequence."""
    return parser.cleave(
        sequence,
        enzyme_rule(enzyme),
        missed_cleavages=missed_cleavages,
        min_length=min_length,
    )
