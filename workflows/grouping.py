"""Grouping engine: create, rename and delete groups, move and reorder files.

Each function takes a ``CaseState`` and returns the next one. Impossible
requests (moving a file onto its own group, deleting a non-empty group, ...)
return the input state object unchanged, which callers treat as a rejection.
"""

import dataclasses
import re
from typing import Iterable

from .evidence import clear_links_to
from .models import CaseState, DocumentFile, DocumentGroup, PENDING
from .repository import find_file, find_group, replace_groups, update_group, update_groups
from .review import invalidate


def move_file(state: CaseState, file_id: str, target_group_id: str) -> CaseState:
    """Move a file to the front of another group.

    Source and target change together in one new snapshot. Both are sent
    back to pending if they had been reviewed.
    """
    located = find_file(state, file_id, include_removed=False)
    target = find_group(state, target_group_id)
    if located is None or target is None:
        return state

    source, moving = located
    if source.id == target.id:
        return state

    new_source = invalidate(dataclasses.replace(
        source, files=tuple(f for f in source.files if f.id != file_id)
    ))
    incoming = dataclasses.replace(moving, is_new=True, is_removed=False)
    new_target = invalidate(dataclasses.replace(target, files=(incoming,) + target.files))

    return update_groups(state, {new_source.id: new_source, new_target.id: new_target})


def reorder_file(state: CaseState, group_id: str, from_index: int, to_index: int) -> CaseState:
    """Move a file to a new position within its group."""
    group = find_group(state, group_id)
    if group is None:
        return state

    count = len(group.files)
    if not (0 <= from_index < count and 0 <= to_index < count) or from_index == to_index:
        return state

    files = list(group.files)
    moved = files.pop(from_index)
    files.insert(to_index, moved)

    return update_group(state, invalidate(dataclasses.replace(group, files=tuple(files))))


def next_group_title(state: CaseState, template_name: str) -> str:
    """Pick a unique title for a new group created from a template.

    The first group keeps the bare template name; later ones are numbered
    "Bank Statement 2", "Bank Statement 3", ... continuing from the highest
    number already in use for that category. The bare title counts as the
    first. The Unclassified group never takes part.
    """
    numbered = re.compile(rf'^{re.escape(template_name)} (\d+)$')
    highest = 0
    for group in state.groups:
        if group.is_sink or group.tag != template_name:
            continue
        if group.title == template_name:
            highest = max(highest, 1)
            continue
        match = numbered.match(group.title)
        if match:
            highest = max(highest, int(match.group(1)))

    if highest == 0:
        return template_name
    return f"{template_name} {highest + 1}"


def create_group(state: CaseState, template_name: str, group_id: str) -> CaseState:
    """Add an empty pending group just before the Unclassified group.

    Args:
        template_name: Category name, also used as the group tag
        group_id: Id for the new group (must not already exist)
    """
    template_name = (template_name or "").strip()
    if not template_name or not group_id or find_group(state, group_id) is not None:
        return state

    title = next_group_title(state, template_name)
    new_group = DocumentGroup(
        id=group_id,
        title=title,
        tag=template_name,
        merged_file_name=f"{title}.pdf",
        status=PENDING,
    )

    groups = list(state.groups)
    sink_index = next((i for i, g in enumerate(groups) if g.is_sink), None)
    if sink_index is None:
        groups.insert(0, new_group)
    else:
        groups.insert(sink_index, new_group)
    return replace_groups(state, groups)


def rename_group(state: CaseState, group_id: str, new_title: str) -> CaseState:
    """Change the merged-output name; the title and tag stay as they are."""
    group = find_group(state, group_id)
    new_title = (new_title or "").strip()
    if group is None or not new_title or group.merged_file_name == new_title:
        return state
    return update_group(state, dataclasses.replace(group, merged_file_name=new_title))


def delete_group(state: CaseState, group_id: str) -> CaseState:
    """Remove an empty group. Unclassified and non-empty groups are kept.

    Evidence slots linked to the deleted group are unlinked in the same step.
    """
    group = find_group(state, group_id)
    if group is None or group.is_sink or group.files:
        return state
    remaining = replace_groups(state, (g for g in state.groups if g.id != group_id))
    return clear_links_to(remaining, group_id)


def mark_file_removed(state: CaseState, file_id: str) -> CaseState:
    """Soft-remove a file; it stays in its group until the group is confirmed."""
    located = find_file(state, file_id, include_removed=False)
    if located is None:
        return state

    group, target = located
    files = tuple(
        dataclasses.replace(f, is_removed=True, is_new=False) if f.id == target.id else f
        for f in group.files
    )
    return update_group(state, invalidate(dataclasses.replace(group, files=files)))


def upload_to_group(state: CaseState, group_id: str,
                    files: Iterable[DocumentFile]) -> CaseState:
    """Append freshly uploaded files to a group, flagged as new."""
    group = find_group(state, group_id)
    if group is None:
        return state

    new_files = tuple(
        dataclasses.replace(f, is_new=True, is_removed=False)
        for f in files
        if f.pages >= 1 and find_file(state, f.id) is None
    )
    ids = [f.id for f in new_files]
    if not new_files or len(set(ids)) != len(ids):
        return state

    return update_group(state, invalidate(dataclasses.replace(group, files=group.files + new_files)))
