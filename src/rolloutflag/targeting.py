"""Targeting rule resolution."""

from __future__ import annotations

from collections.abc import Sequence

from .models import DEFAULT_TARGETING, FlagContext, TargetCriterion, TargetingConfig


def criterion_matches(context: FlagContext, criterion: TargetCriterion) -> bool:
    """True when any accepted value is present in the context attribute."""
    if not criterion.target_field_name or not criterion.target_field_values:
        return False
    value = context.get_attribute(criterion.target_field_name)
    if not value:
        return False
    if isinstance(value, str):
        return value in criterion.target_field_values
    return any(v in value for v in criterion.target_field_values)


def resolve_targeting(
    context: FlagContext, candidates: Sequence[TargetingConfig]
) -> TargetingConfig:
    """Pick the first candidate, by priority, whose criteria all match.

    Candidates without criteria never match. Falls back to DEFAULT_TARGETING.
    """
    if not candidates:
        return DEFAULT_TARGETING
    # sorted() is stable, equal priorities keep input order
    for candidate in sorted(candidates, key=lambda c: c.target_priority):
        if not candidate.target_criteria:
            continue
        if all(criterion_matches(context, c) for c in candidate.target_criteria):
            return candidate
    return DEFAULT_TARGETING
