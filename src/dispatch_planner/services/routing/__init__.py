"""Route sequencing services."""

from .models import RouteResult, RouteStop, SequencingStrategy
from .origin import select_origin_warehouse
from .sequencer import estimate_duration_min, sequence

__all__ = [
    "sequence",
    "estimate_duration_min",
    "select_origin_warehouse",
    "RouteResult",
    "RouteStop",
    "SequencingStrategy",
]
