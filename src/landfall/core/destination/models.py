"""
Data models for the destination writer.

Defines Pydantic models for the transform result handed over by the upstream
pipeline, the file-level diff entries, and the effect record produced after a
successful push.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class OriginRevision(BaseModel):
    """
    Reference to the origin revision a transform was produced from.

    Rendered into the commit message as a ``<label_name>: <value>`` trailer.
    """

    model_config = ConfigDict(frozen=True)

    label_name: str = Field(
        ..., pattern=r"^[\w-]+$", description="Trailer label name (letters, digits, _ and -)"
    )
    value: str = Field(..., description="Serialized origin revision")


class OriginChange(BaseModel):
    """A change in the origin repository that contributed to this transform."""

    model_config = ConfigDict(frozen=True)

    ref: str = Field(..., description="Origin revision identifier")
    author: str | None = Field(default=None, description="Author of the origin change")
    message: str = Field(default="", description="Origin change description")


class TransformResult(BaseModel):
    """
    Output of the upstream transformation pipeline, consumed once per write.

    Example:
        >>> result = TransformResult(
        ...     path=Path("/tmp/workdir"),
        ...     author="Jane Doe <jane@example.com>",
        ...     timestamp=datetime.now(timezone.utc),
        ...     summary="Import upstream changes",
        ... )
    """

    model_config = ConfigDict(frozen=True)

    path: Path = Field(..., description="Working directory holding the transformed tree")
    author: str = Field(..., min_length=1, description="Commit author string")
    timestamp: datetime = Field(..., description="Commit timestamp")
    summary: str = Field(default="", description="Free-text change description")
    current_revision: OriginRevision | None = Field(
        default=None,
        description="Origin revision to record as a trailer label, if any",
    )
    changes: tuple[OriginChange, ...] = Field(
        default=(),
        description="Origin changes included in this transform, oldest first",
    )

    @property
    def current_change(self) -> OriginChange | None:
        """The newest origin change, or None when none were recorded."""
        return self.changes[-1] if self.changes else None


class DiffOperation(str, Enum):
    """Operation needed to bring a checkout path in line with the workdir."""

    ADD = "add"
    MODIFIED = "modified"
    DELETE = "delete"


class DiffEntry(BaseModel):
    """A single differing path between a snapshot and a working directory."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Path relative to the tree roots, '/'-separated")
    operation: DiffOperation


class EffectType(str, Enum):
    """Kind of effect a write had on the destination."""

    CREATED = "created"


class DestinationRef(BaseModel):
    """Where the written revision lives."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Revision identifier")
    kind: str = Field(default="commit", description="Type of the destination reference")
    url: str = Field(..., min_length=1, description="Destination repository URL")


class DestinationEffect(BaseModel):
    """
    Structured record of a completed write, consumed by the outer pipeline.

    Only ever built after a successful push.
    """

    model_config = ConfigDict(frozen=True)

    type: EffectType
    summary: str
    origin_ref: OriginChange | None = Field(
        default=None,
        description="Origin change that produced this revision",
    )
    destination_ref: DestinationRef


class WriterState(str, Enum):
    """Progress of a single write."""

    INIT = "init"
    PULLED = "pulled"
    CLEAN = "clean"
    RECONCILED = "reconciled"
    COMMITTED = "committed"
    PUSHED = "pushed"
    DONE = "done"
    ABORTED = "aborted"
