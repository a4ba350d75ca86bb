"""Evidence linking: bind checklist slots to document groups.

A slot is satisfied by at most one group. ``is_uploaded`` is true exactly
when ``linked_group_id`` names a group that exists, so linking to an unknown
group is rejected and deleting a group clears links that point at it.
"""

import dataclasses
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .models import (
    ALL,
    ANY,
    PENDING,
    CaseState,
    CombinedEvidenceGroup,
    DocumentGroup,
    RequiredEvidence,
)
from .repository import find_group


def find_evidence(state: CaseState, evidence_id: str) -> Optional[RequiredEvidence]:
    """Look up an evidence slot by id."""
    for ev in state.evidence:
        if ev.id == evidence_id:
            return ev
    return None


def _replace_evidence(state: CaseState, updated: RequiredEvidence) -> CaseState:
    return dataclasses.replace(
        state,
        evidence=tuple(updated if ev.id == updated.id else ev for ev in state.evidence),
    )


def link_evidence_to_group(state: CaseState, evidence_id: str, group_id: str) -> CaseState:
    """Satisfy an evidence slot with a group.

    Rejected when the slot is unknown, already satisfied, or the group does
    not exist. The group itself is not modified.
    """
    ev = find_evidence(state, evidence_id)
    if ev is None or ev.is_uploaded or find_group(state, group_id) is None:
        return state
    return _replace_evidence(
        state, dataclasses.replace(ev, linked_group_id=group_id, is_uploaded=True)
    )


def unlink_evidence(state: CaseState, evidence_id: str) -> CaseState:
    """Clear a slot's link. The previously linked group is left as it is."""
    ev = find_evidence(state, evidence_id)
    if ev is None or (not ev.is_uploaded and ev.linked_group_id is None):
        return state
    return _replace_evidence(
        state, dataclasses.replace(ev, linked_group_id=None, is_uploaded=False)
    )


def clear_links_to(state: CaseState, group_id: str) -> CaseState:
    """Unlink every slot satisfied by the given group."""
    if not any(ev.linked_group_id == group_id for ev in state.evidence):
        return state
    return dataclasses.replace(state, evidence=tuple(
        dataclasses.replace(ev, linked_group_id=None, is_uploaded=False)
        if ev.linked_group_id == group_id else ev
        for ev in state.evidence
    ))


def set_checklist(state: CaseState, evidence: Iterable[RequiredEvidence],
                  combined: Iterable[CombinedEvidenceGroup] = ()) -> CaseState:
    """Replace the case's evidence checklist.

    Links to groups that do not exist are cleared, duplicate slot ids keep
    their first occurrence, and combined groups drop member ids that are not
    in the checklist.
    """
    slots: Dict[str, RequiredEvidence] = {}
    for ev in evidence:
        if ev.id in slots:
            continue
        linked = ev.linked_group_id is not None and find_group(state, ev.linked_group_id) is not None
        slots[ev.id] = dataclasses.replace(
            ev,
            linked_group_id=ev.linked_group_id if linked else None,
            is_uploaded=linked,
        )

    clusters = tuple(
        dataclasses.replace(c, evidence_ids=tuple(e for e in c.evidence_ids if e in slots))
        for c in combined
        if c.relationship in (ALL, ANY)
    )
    return dataclasses.replace(state, evidence=tuple(slots.values()), combined=clusters)


def linked_group(state: CaseState, ev: RequiredEvidence) -> Optional[DocumentGroup]:
    """The group satisfying a slot, if any."""
    if not ev.linked_group_id:
        return None
    return find_group(state, ev.linked_group_id)


def combined_members(state: CaseState, combined: CombinedEvidenceGroup) -> List[RequiredEvidence]:
    """Member slots of a combined group, in declared order."""
    members = []
    for evidence_id in combined.evidence_ids:
        ev = find_evidence(state, evidence_id)
        if ev is not None:
            members.append(ev)
    return members


def is_combined_complete(state: CaseState, combined: CombinedEvidenceGroup) -> bool:
    """Completion of a combined group.

    ``all`` needs every member uploaded (an empty cluster counts as complete);
    ``any`` needs at least one.
    """
    members = combined_members(state, combined)
    uploaded = sum(1 for ev in members if ev.is_uploaded)
    if combined.relationship == ANY:
        return uploaded >= 1
    return uploaded == len(members)


def has_pending_review(state: CaseState, combined: CombinedEvidenceGroup) -> bool:
    """Whether any uploaded member is backed by a group still pending review.

    Attention flag only; it does not affect completion.
    """
    for ev in combined_members(state, combined):
        if not ev.is_uploaded:
            continue
        group = linked_group(state, ev)
        if group is not None and group.status == PENDING:
            return True
    return False


@dataclass(frozen=True)
class EvidenceSummary:
    """Uploaded counts across the checklist."""
    mandatory_uploaded: int
    mandatory_total: int
    optional_uploaded: int
    optional_total: int

    @property
    def is_complete(self) -> bool:
        """All mandatory slots satisfied."""
        return self.mandatory_uploaded == self.mandatory_total


def evidence_summary(state: CaseState) -> EvidenceSummary:
    """Count satisfied mandatory and optional slots."""
    mandatory = [ev for ev in state.evidence if ev.is_mandatory]
    optional = [ev for ev in state.evidence if not ev.is_mandatory]
    return EvidenceSummary(
        mandatory_uploaded=sum(1 for ev in mandatory if ev.is_uploaded),
        mandatory_total=len(mandatory),
        optional_uploaded=sum(1 for ev in optional if ev.is_uploaded),
        optional_total=len(optional),
    )
