"""QC run configuration: all inputs, outputs and tunables in one place.

Each parameter has a docstring explaining its role. Defaults can be
overlaid from a JSON file (QcConfig.from_json) and then by CLI flags.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from .errors import InvalidParameterError

TOLERANCE_UNITS = ("auto", "ppm", "da")


@dataclass
class QcConfig:
    """Complete configuration for a QC run."""

    # === Inputs ===
    in_cm: str = ""
    """Consensus (aggregate) result JSON. Mandatory."""

    in_raw: list[str] = field(default_factory=list)
    """Per-experiment spectra Parquet files (after calibration, if available)."""

    in_postfdr: list[str] = field(default_factory=list)
    """Per-experiment feature tables after FDR filtering."""

    in_trafo: list[str] = field(default_factory=list)
    """Per-experiment retention time alignment transforms."""

    in_contaminants: str = ""
    """Contaminant protein database (FASTA)."""

    # === Outputs ===
    out: str = ""
    """mzTab report with QC information. Mandatory."""

    out_cm: str = ""
    """Consensus JSON with QC annotations (optional)."""

    out_feat: list[str] = field(default_factory=list)
    """Per-experiment feature tables with QC annotations (optional)."""

    # === FragmentMassError ===
    fragment_mass_error_unit: str = "auto"
    """Unit for the fragment tolerance: 'ppm', 'da' or 'auto' (from the feature table)."""

    fragment_mass_error_tolerance: float = 20.0
    """Search window for matching theoretical to observed fragment peaks."""

    # === MS2 identification rate ===
    force_no_fdr: bool = False
    """Run the ID rate metric without FDR annotation, counting every hit as target."""

    # === TIC ===
    tic_ms_level: int = 1
    """MS level whose spectra are summed into the total ion current."""

    def validate(self) -> None:
        """Check mandatory parameters and enumerations."""
        if not self.in_cm:
            raise InvalidParameterError("in_cm: a consensus input file is required.")
        if not self.out:
            raise InvalidParameterError("out: an mzTab output file is required.")
        if self.fragment_mass_error_unit.lower() not in TOLERANCE_UNITS:
            raise InvalidParameterError(
                f"fragment_mass_error_unit: '{self.fragment_mass_error_unit}' is not one of "
                f"{', '.join(TOLERANCE_UNITS)}."
            )
        if self.out_feat and len(self.out_feat) != len(self.in_postfdr):
            raise InvalidParameterError(
                f"out_feat: invalid number of files. Expected were {len(self.in_postfdr)}."
            )

    def to_dict(self) -> dict:
        """Serialize config to dict for logging."""
        return {
            k: v for k, v in self.__dict__.items()
        }

    @classmethod
    def from_json(cls, path: str | Path) -> QcConfig:
        """Build a config from defaults overlaid with a JSON file."""
        config = cls()
        with open(path) as f:
            config_dict = json.load(f)
        for k, v in config_dict.items():
            if hasattr(config, k):
                setattr(config, k, v)
        return config
