"""Map a pushed revision to the effect record reported to the outer pipeline."""

from __future__ import annotations

from landfall.core.destination.models import (
    DestinationEffect,
    DestinationRef,
    EffectType,
    TransformResult,
)


def to_effect(
    tip: str, transform_result: TransformResult, destination_url: str
) -> DestinationEffect:
    """
    Build the CREATED effect for a revision that was just pushed.

    Args:
        tip: Revision id of the pushed commit
        transform_result: Transform the revision was created from
        destination_url: Repository the revision was pushed to

    Returns:
        DestinationEffect pointing at ``tip`` in ``destination_url``
    """
    return DestinationEffect(
        type=EffectType.CREATED,
        summary=f"Created revision {tip}",
        origin_ref=transform_result.current_change,
        destination_ref=DestinationRef(id=tip, kind="commit", url=destination_url),
    )
