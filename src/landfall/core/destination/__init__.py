"""
Destination writer models and effects.

The writer itself lives in ``landfall.core.destination.writer`` and the
writer factory in ``landfall.core.destination.destination``.
"""

from landfall.core.destination.effects import to_effect
from landfall.core.destination.models import (
    DestinationEffect,
    DestinationRef,
    DiffEntry,
    DiffOperation,
    EffectType,
    OriginChange,
    OriginRevision,
    TransformResult,
    WriterState,
)

__all__ = [
    "DestinationEffect",
    "DestinationRef",
    "DiffEntry",
    "DiffOperation",
    "EffectType",
    "OriginChange",
    "OriginRevision",
    "TransformResult",
    "WriterState",
    "to_effect",
]
