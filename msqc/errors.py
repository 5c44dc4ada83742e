"""Error kinds and process exit codes.

Every fatal configuration/input condition raises InvalidParameterError.
Nothing inside the library catches it; the CLI maps it to an exit code.
"""

from __future__ import annotations

from enum import IntEnum


class InvalidParameterError(ValueError):
    """Invalid configuration or inconsistent input data."""


class MissingInformationError(RuntimeError):
    """A metric lacks information it needs beyond its declared inputs."""


class ExitCode(IntEnum):
    EXECUTION_OK = 0
    INPUT_FILE_NOT_FOUND = 1
    INPUT_FILE_NOT_READABLE = 2
    INPUT_FILE_CORRUPT = 3
    INPUT_FILE_EMPTY = 4
    CANNOT_WRITE_OUTPUT_FILE = 5
    ILLEGAL_PARAMETERS = 6
    MISSING_PARAMETERS = 7
    UNKNOWN_ERROR = 8
    UNEXPECTED_RESULT = 13
