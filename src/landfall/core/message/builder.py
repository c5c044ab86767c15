"""Compose canonical commit messages from a transform summary."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from landfall.core.message.models import ChangeMessage, Label

if TYPE_CHECKING:
    from landfall.core.destination.models import TransformResult

ORIGIN_LABEL_SEPARATOR = ": "


def build_change_message(summary: str, labels: Iterable[Label] = ()) -> ChangeMessage:
    """
    Parse ``summary`` and upsert each of ``labels`` into its trailer block.

    Re-running with the same labels on the same summary yields the same
    message, and a stale value for a label already present in ``summary`` is
    overwritten rather than duplicated.
    """
    msg = ChangeMessage.parse(summary)
    for label in labels:
        msg = msg.with_new_or_replaced_label(label.name, label.separator, label.value)
    return msg


def build_change_message_for(
    transform_result: TransformResult,
    separator: str = ORIGIN_LABEL_SEPARATOR,
) -> ChangeMessage:
    """Return the message for a transform, with its origin revision label if set."""
    labels: list[Label] = []
    revision = transform_result.current_revision
    if revision is not None:
        labels.append(Label(name=revision.label_name, separator=separator, value=revision.value))
    return build_change_message(transform_result.summary, labels)
