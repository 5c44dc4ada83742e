"""Retention time alignment transforms.

A transform is stored as JSON:
  {"model": "linear" | "interpolated" | "identity", "pairs": [[rt_in, rt_out], ...]}
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
from scipy.interpolate import interp1d

MODELS = ("identity", "linear", "interpolated")


@dataclass
class TransformationDescription:
    """RT mapping fitted from (input, output) data points."""

    model: str = "identity"
    pairs: list[tuple[float, float]] = field(default_factory=list)

    def __post_init__(self):
        if self.model not in MODELS:
            raise ValueError(f"Unknown transformation model: {self.model}")
        self._fn = self._fit()

    def _fit(self):
        if self.model == "identity" or not self.pairs:
            return lambda x: np.asarray(x, dtype=np.float64)

        xs = np.array([p[0] for p in self.pairs], dtype=np.float64)
        ys = np.array([p[1] for p in self.pairs], dtype=np.float64)

        if self.model == "linear" or len(xs) < 2:
            if len(xs) < 2:
                offset = float(ys[0] - xs[0])
                return lambda x: np.asarray(x, dtype=np.float64) + offset
            slope, intercept = np.polyfit(xs, ys, 1)
            return lambda x: slope * np.asarray(x, dtype=np.float64) + intercept

        order = np.argsort(xs)
        return interp1d(xs[order], ys[order], kind="linear", fill_value="extrapolate",
                        assume_sorted=True)

    @property
    def is_identity(self) -> bool:
        return self.model == "identity" or not self.pairs

    def apply(self, x: float) -> float:
        return float(self._fn(x))


def load_trafo(path: str | Path) -> TransformationDescription:
    """Load a transform JSON file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Transformation file not found: {path}")
    with open(path) as f:
        doc = json.load(f)
    return TransformationDescription(
        model=doc.get("model", "identity"),
        pairs=[(float(a), float(b)) for a, b in doc.get("pairs", [])],
    )
