"""Document repository: the authoritative collection of groups and files.

Lookups and whole-snapshot replacement helpers shared by the workflow
modules. A file belongs to exactly one group; every change produces a new
``CaseState`` with a complete new group tuple.
"""

import dataclasses
from typing import Dict, Iterable, List, Optional, Tuple

from .models import (
    CaseState,
    DocumentFile,
    DocumentGroup,
    PENDING,
    SINK_GROUP_ID,
)


def new_case_state() -> CaseState:
    """Empty case containing only the Unclassified group."""
    return CaseState()


def find_group(state: CaseState, group_id: str) -> Optional[DocumentGroup]:
    """Look up a group by id."""
    for group in state.groups:
        if group.id == group_id:
            return group
    return None


def sink_group(state: CaseState) -> DocumentGroup:
    """The Unclassified group (always present)."""
    group = find_group(state, SINK_GROUP_ID)
    assert group is not None, "Unclassified group missing from case state"
    return group


def find_file(state: CaseState, file_id: str,
              include_removed: bool = True) -> Optional[Tuple[DocumentGroup, DocumentFile]]:
    """Locate a file and the group that owns it.

    Returns:
        Tuple of (group, file), or None if no group holds the file
    """
    for group in state.groups:
        for f in group.files:
            if f.id == file_id:
                if f.is_removed and not include_removed:
                    return None
                return (group, f)
    return None


def all_file_ids(state: CaseState) -> List[str]:
    """Every file id in display order (duplicates would indicate a bug)."""
    return [f.id for g in state.groups for f in g.files]


def replace_groups(state: CaseState, groups: Iterable[DocumentGroup]) -> CaseState:
    """New state with the given group sequence."""
    return dataclasses.replace(state, groups=tuple(groups))


def update_group(state: CaseState, updated: DocumentGroup) -> CaseState:
    """New state with one group swapped for its updated version."""
    return replace_groups(state, (updated if g.id == updated.id else g for g in state.groups))


def update_groups(state: CaseState, updated: Dict[str, DocumentGroup]) -> CaseState:
    """New state with several groups swapped in a single step."""
    return replace_groups(state, (updated.get(g.id, g) for g in state.groups))


def check_invariants(state: CaseState) -> List[str]:
    """Return a message for every violated repository invariant.

    An empty list means the snapshot is consistent.
    """
    problems: List[str] = []

    group_ids = [g.id for g in state.groups]
    if len(set(group_ids)) != len(group_ids):
        problems.append("Duplicate group ids")

    sinks = [g for g in state.groups if g.id == SINK_GROUP_ID]
    if len(sinks) != 1:
        problems.append("Unclassified group must exist exactly once")
    elif sinks[0].status != PENDING or sinks[0].has_changes:
        problems.append("Unclassified group must not carry review state")

    seen: Dict[str, str] = {}
    for group in state.groups:
        for f in group.files:
            if f.id in seen:
                problems.append(f"File {f.id} owned by both {seen[f.id]} and {group.id}")
            else:
                seen[f.id] = group.id
            if f.pages < 1:
                problems.append(f"File {f.id} has no pages")

    known = set(group_ids)
    for ev in state.evidence:
        linked = ev.linked_group_id is not None and ev.linked_group_id in known
        if ev.is_uploaded != linked:
            problems.append(f"Evidence {ev.id} upload flag does not match its link")

    evidence_ids = {ev.id for ev in state.evidence}
    for combined in state.combined:
        missing = [e for e in combined.evidence_ids if e not in evidence_ids]
        if missing:
            problems.append(f"Combined group {combined.id} references unknown evidence {missing}")

    return problems
