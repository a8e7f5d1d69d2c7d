"""Route group exports."""

from . import batches, health, planning

__all__ = ["batches", "health", "planning"]
