"""Tests for evidence linking and combined evidence groups."""

import pytest

from workflows import (
    ALL,
    ANY,
    CombinedEvidenceGroup,
    ConfirmReview,
    LinkEvidence,
    RequiredEvidence,
    SINK_GROUP_ID,
    SetChecklist,
    UnlinkEvidence,
    check_invariants,
    evidence_summary,
    find_group,
    has_pending_review,
    is_combined_complete,
    link_evidence_to_group,
    set_checklist,
    unlink_evidence,
)
from workflows.evidence import find_evidence


@pytest.fixture
def funds():
    """Combined group over the bank and savings slots."""
    def _make(relationship):
        return CombinedEvidenceGroup(
            id="funds", name="Proof of funds",
            evidence_ids=("ev_bank", "ev_savings"), relationship=relationship,
        )
    return _make


class TestLinking:
    """Tests for link_evidence_to_group() and unlink_evidence()."""

    def test_link_marks_uploaded(self, case_state):
        state = link_evidence_to_group(case_state, "ev_passport", "g_passport")
        slot = find_evidence(state, "ev_passport")
        assert slot.is_uploaded
        assert slot.linked_group_id == "g_passport"
        assert check_invariants(state) == []

    def test_link_leaves_group_untouched(self, case_state):
        state = link_evidence_to_group(case_state, "ev_bank", "g_bank")
        assert state.groups == case_state.groups

    def test_link_already_uploaded_rejected(self, case_state):
        state = link_evidence_to_group(case_state, "ev_passport", "g_passport")
        assert link_evidence_to_group(state, "ev_passport", "g_bank") is state

    def test_link_unknown_slot_or_group_rejected(self, case_state):
        assert link_evidence_to_group(case_state, "ev_missing", "g_bank") is case_state
        assert link_evidence_to_group(case_state, "ev_bank", "g_missing") is case_state

    def test_link_to_unclassified_allowed(self, case_state):
        state = link_evidence_to_group(case_state, "ev_bank", SINK_GROUP_ID)
        assert find_evidence(state, "ev_bank").is_uploaded

    def test_unlink(self, case_state):
        state = link_evidence_to_group(case_state, "ev_bank", "g_bank")
        state = unlink_evidence(state, "ev_bank")
        slot = find_evidence(state, "ev_bank")
        assert not slot.is_uploaded
        assert slot.linked_group_id is None
        assert find_group(state, "g_bank") == find_group(case_state, "g_bank")

    def test_unlink_unlinked_rejected(self, case_state):
        assert unlink_evidence(case_state, "ev_bank") is case_state

    def test_relink_after_unlink(self, workspace):
        assert workspace.dispatch(LinkEvidence("ev_bank", "g_bank"))
        assert workspace.dispatch(UnlinkEvidence("ev_bank"))
        assert workspace.dispatch(LinkEvidence("ev_bank", "g_passport"))
        group = dict((ev.id, g) for ev, g in workspace.evidence_status())["ev_bank"]
        assert group.id == "g_passport"


class TestCombinedGroups:
    """Tests for is_combined_complete() and has_pending_review()."""

    def test_all_needs_every_member(self, case_state, funds):
        combined = funds(ALL)
        state = link_evidence_to_group(case_state, "ev_bank", "g_bank")
        assert not is_combined_complete(state, combined)
        state = link_evidence_to_group(state, "ev_savings", "g_passport")
        assert is_combined_complete(state, combined)

    def test_any_needs_one_member(self, case_state, funds):
        combined = funds(ANY)
        assert not is_combined_complete(case_state, combined)
        state = link_evidence_to_group(case_state, "ev_savings", "g_bank")
        assert is_combined_complete(state, combined)

    def test_all_with_three_members(self, case_state):
        lease = RequiredEvidence(id="ev_lease", name="Tenancy agreement")
        state = set_checklist(case_state, case_state.evidence + (lease,), ())
        combined = CombinedEvidenceGroup(
            id="home", name="Residence", relationship=ALL,
            evidence_ids=("ev_passport", "ev_bank", "ev_lease"),
        )
        state = link_evidence_to_group(state, "ev_passport", "g_passport")
        state = link_evidence_to_group(state, "ev_bank", "g_bank")
        assert not is_combined_complete(state, combined)
        state = link_evidence_to_group(state, "ev_lease", SINK_GROUP_ID)
        assert is_combined_complete(state, combined)
        assert not is_combined_complete(unlink_evidence(state, "ev_bank"), combined)

    def test_any_stays_complete_until_last_unlink(self, case_state, funds):
        combined = funds(ANY)
        state = link_evidence_to_group(case_state, "ev_bank", "g_bank")
        state = link_evidence_to_group(state, "ev_savings", "g_passport")
        assert is_combined_complete(state, combined)

        state = unlink_evidence(state, "ev_bank")
        assert is_combined_complete(state, combined)
        state = unlink_evidence(state, "ev_savings")
        assert not is_combined_complete(state, combined)

    def test_empty_all_group_is_complete(self, case_state):
        empty = CombinedEvidenceGroup(id="none", name="Nothing", relationship=ALL)
        assert is_combined_complete(case_state, empty)

    def test_pending_review_flag(self, case_state, funds):
        combined = funds(ANY)
        state = link_evidence_to_group(case_state, "ev_bank", "g_bank")
        assert not has_pending_review(state, combined)
        state = link_evidence_to_group(state, "ev_savings", "g_passport")
        assert has_pending_review(state, combined)
        assert is_combined_complete(state, combined)

    def test_pending_review_ignores_unlinked_members(self, case_state, funds):
        assert not has_pending_review(case_state, funds(ALL))

    def test_combined_status_projection(self, workspace, funds):
        workspace.dispatch(SetChecklist(workspace.snapshot.evidence, (funds(ALL),)))
        workspace.dispatch(LinkEvidence("ev_bank", "g_bank"))
        workspace.dispatch(LinkEvidence("ev_savings", "g_passport"))
        (status,) = workspace.combined_status()
        assert status.is_complete
        assert status.has_pending_review
        assert [ev.id for ev in status.members] == ["ev_bank", "ev_savings"]

        workspace.dispatch(ConfirmReview("g_passport"))
        (status,) = workspace.combined_status()
        assert not status.has_pending_review


class TestChecklistState:
    """Tests for set_checklist() and evidence_summary()."""

    def test_unknown_links_cleared(self, case_state):
        slots = (RequiredEvidence(id="ev1", name="One", linked_group_id="g_gone", is_uploaded=True),)
        state = set_checklist(case_state, slots)
        assert not state.evidence[0].is_uploaded
        assert state.evidence[0].linked_group_id is None
        assert check_invariants(state) == []

    def test_existing_links_kept(self, case_state):
        slots = (RequiredEvidence(id="ev1", name="One", linked_group_id="g_bank"),)
        state = set_checklist(case_state, slots)
        assert state.evidence[0].is_uploaded

    def test_duplicate_slots_keep_first(self, case_state):
        slots = (RequiredEvidence(id="ev1", name="First"), RequiredEvidence(id="ev1", name="Second"))
        state = set_checklist(case_state, slots)
        assert [ev.name for ev in state.evidence] == ["First"]

    def test_combined_members_filtered(self, case_state):
        slots = (RequiredEvidence(id="ev1", name="One"),)
        combined = (
            CombinedEvidenceGroup(id="c1", name="C", evidence_ids=("ev1", "ev_gone")),
            CombinedEvidenceGroup(id="c2", name="Bad", relationship="some"),
        )
        state = set_checklist(case_state, slots, combined)
        assert [c.id for c in state.combined] == ["c1"]
        assert state.combined[0].evidence_ids == ("ev1",)

    def test_summary(self, case_state):
        state = link_evidence_to_group(case_state, "ev_passport", "g_passport")
        state = link_evidence_to_group(state, "ev_savings", "g_bank")
        summary = evidence_summary(state)
        assert summary.mandatory_uploaded == 1
        assert summary.mandatory_total == 2
        assert summary.optional_uploaded == 1
        assert summary.optional_total == 1
        assert not summary.is_complete

        state = link_evidence_to_group(state, "ev_bank", "g_bank")
        assert evidence_summary(state).is_complete
