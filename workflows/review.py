"""Review state machine for document groups.

A group is ``pending`` until a caseworker confirms it, then ``reviewed``
until any add, remove or reorder of its files sends it back to ``pending``
with ``has_changes`` set. The Unclassified group has no review meaning and is
never touched by these transitions.
"""

import dataclasses
from typing import List

from .models import CaseState, DocumentGroup, PENDING, REVIEWED
from .repository import find_group, replace_groups, update_group


def invalidate(group: DocumentGroup) -> DocumentGroup:
    """Drop a reviewed group back to pending after its files changed."""
    if group.is_sink or group.status != REVIEWED:
        return group
    return dataclasses.replace(group, status=PENDING, has_changes=True)


def _confirmed(group: DocumentGroup) -> DocumentGroup:
    # Confirmation accepts soft removals and clears the "new" markers
    files = tuple(
        dataclasses.replace(f, is_new=False) if f.is_new else f
        for f in group.files if not f.is_removed
    )
    return dataclasses.replace(group, status=REVIEWED, has_changes=False, files=files)


def confirm_review(state: CaseState, group_id: str) -> CaseState:
    """Mark a group's current contents as reviewed.

    Returns the unchanged state for the Unclassified group, an unknown id, or
    a group that is already reviewed with nothing left to accept.
    """
    group = find_group(state, group_id)
    if group is None or group.is_sink:
        return state
    confirmed = _confirmed(group)
    if confirmed == group:
        return state
    return update_group(state, confirmed)


def confirm_all_reviews(state: CaseState) -> CaseState:
    """Confirm every group except Unclassified in one step."""
    groups = tuple(g if g.is_sink else _confirmed(g) for g in state.groups)
    if groups == state.groups:
        return state
    return replace_groups(state, groups)


def needs_review(group: DocumentGroup) -> bool:
    """Whether a group should be surfaced as awaiting confirmation.

    Display convention only: groups with a single active file are treated as
    trivially ready even though their state is still ``pending``.
    """
    if group.is_sink or group.status != PENDING:
        return False
    return len(group.active_files) > 1


def pending_review_groups(state: CaseState) -> List[DocumentGroup]:
    """Groups surfaced as awaiting confirmation, in display order."""
    return [g for g in state.groups if needs_review(g)]
