"""Runtime helpers used by the run driver."""

from .progress import ProgressReporter

__all__ = ["ProgressReporter"]
