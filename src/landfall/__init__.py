"""
Landfall - destination writer for code migrations.

Applies a transformed working directory onto a destination repository,
commits it, and pushes it.
"""

__version__ = "0.4.0"

from landfall.core.destination.models import DestinationEffect, TransformResult
from landfall.core.destination.writer import SyncWriter

__all__ = ["DestinationEffect", "SyncWriter", "TransformResult", "__version__"]
