from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from app.schemas.workouts import GroupingIn

if TYPE_CHECKING:
    from app.repositories.workout_repository import WorkoutRepository


@dataclass
class GroupingMap:
    """Client-local grouping refs resolved to persisted ids for one ingestion."""

    by_ref: dict[str, str] = field(default_factory=dict)
    # every row written, including ones whose ref was shadowed by a duplicate
    persisted_ids: list[str] = field(default_factory=list)

    def resolve(self, local_ref: str | None) -> str | None:
        if not local_ref:
            return None
        return self.by_ref.get(local_ref)


def normalize_order(groupings: Sequence[GroupingIn] | None) -> list[tuple[int, GroupingIn]]:
    """Pair each descriptor with its final ordinal.

    Client ordinals only decide the order; ties keep input order (sorted() is stable).
    """
    if not groupings:
        return []
    ordered = sorted(groupings, key=lambda g: g.ordinal)
    return list(enumerate(ordered))


async def persist_groupings(
    repository: "WorkoutRepository",
    workout_id: str,
    groupings: Sequence[GroupingIn] | None,
) -> GroupingMap:
    """Insert one grouping row per descriptor, numbered 0..n-1."""
    mapping = GroupingMap()
    for ordinal, group in normalize_order(groupings):
        grouping_id = await repository.insert_grouping(
            workout_id=workout_id,
            kind=group.kind,
            ordinal=ordinal,
            rest_seconds=group.rest_seconds,
        )
        mapping.by_ref[group.local_ref] = grouping_id
        mapping.persisted_ids.append(grouping_id)
    return mapping
