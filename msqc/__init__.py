"""msqc: quality-control metrics for mass-spectrometry identification runs."""

__version__ = "0.1.0"

from .config import QcConfig
from .errors import ExitCode, InvalidParameterError, MissingInformationError
from .pipeline import QcResult, run_pipeline

__all__ = [
    "ExitCode",
    "InvalidParameterError",
    "MissingInformationError",
    "QcConfig",
    "QcResult",
    "run_pipeline",
]
