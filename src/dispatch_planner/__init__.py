"""Batch capacity allocation and stop sequencing for delivery dispatch."""

__version__ = "0.1.0"
