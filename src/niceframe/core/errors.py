"""Exception types raised by the normalization pipeline."""

from __future__ import annotations


class NiceFrameError(Exception):
    """Base error; ``exit_code`` is what the CLI reports for it."""

    exit_code = 1


class ConfigError(NiceFrameError):
    """Configuration value is missing or out of range."""


class ResourceAcquisitionFailure(NiceFrameError):
    """The scratch directory for slice materialization could not be created."""

    exit_code = 10


class EngineFailure(NiceFrameError):
    """A raster operation failed (unreadable file, impossible geometry)."""


class InterruptedOperation(NiceFrameError):
    """A termination signal arrived while slices were being materialized."""

    exit_code = 2

    def __init__(self, signum: int) -> None:
        super().__init__(f"Interrupted by signal {signum}")
        self.signum = signum
