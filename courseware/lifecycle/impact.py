"""Impact analysis for a prospective parent status change."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from .status import Status, allowed_children_for


@dataclass(frozen=True, slots=True)
class ImpactResult:
    will_make_inaccessible: bool
    affected_children: list[Status] = field(default_factory=list)
    recommendation: str = ""
    affected_summary: str = ""

    @property
    def affected_counts(self) -> dict[Status, int]:
        return dict(Counter(self.affected_children))


def analyze_parent_change(
    new_parent_status: Status,
    children_statuses: Iterable[Status],
    *,
    parent_name: str = "Parent",
    child_name: str = "children",
) -> ImpactResult:
    """Work out which children a parent moving to ``new_parent_status`` would strand."""
    allowed = allowed_children_for(new_parent_status)
    affected = [status for status in children_statuses if status not in allowed]

    if not affected:
        return ImpactResult(
            will_make_inaccessible=False,
            recommendation=f"Safe to change {parent_name.lower()} to {new_parent_status.label}.",
        )

    # Counter keeps first-seen order, which keeps the summary stable.
    summary = ", ".join(f"{count} {status.label}" for status, count in Counter(affected).items())

    if new_parent_status is Status.INACTIVE:
        recommendation = (
            f"Deactivate {summary} {child_name} first, or they will become inaccessible to users."
        )
    elif new_parent_status is Status.ARCHIVED:
        recommendation = f"Archive {summary} {child_name} first to maintain clean state."
    elif new_parent_status is Status.DRAFT:
        recommendation = (
            f"Cannot revert to DRAFT with {summary} {child_name}. This would create invalid state."
        )
    else:
        recommendation = f"Review {summary} {child_name} before changing {parent_name.lower()}."

    return ImpactResult(
        will_make_inaccessible=True,
        affected_children=affected,
        recommendation=recommendation,
        affected_summary=summary,
    )


__all__ = ["ImpactResult", "analyze_parent_change"]
