"""I/O helper subpackage."""
from . import drivers, samples, writer

__all__ = ["drivers", "samples", "writer"]
