"""Shared fixtures for workflow tests."""

import pytest

from workflows import (
    CaseState,
    DocumentFile,
    DocumentGroup,
    RequiredEvidence,
    REVIEWED,
    SINK_GROUP_ID,
    Workspace,
)


@pytest.fixture
def make_file():
    """Factory for DocumentFile records with 1000 bytes per page."""
    def _make(file_id, pages=1, **kwargs):
        kwargs.setdefault("size", 1000 * pages)
        return DocumentFile(id=file_id, name=f"{file_id}.pdf", pages=pages, **kwargs)
    return _make


@pytest.fixture
def case_state(make_file):
    """A pending Passport group, a reviewed Bank Statement group and a scan."""
    passport = DocumentGroup(
        id="g_passport", title="Passport", tag="Passport",
        merged_file_name="Passport.pdf",
        files=(make_file("f1"), make_file("f2", pages=2)),
    )
    bank = DocumentGroup(
        id="g_bank", title="Bank Statement", tag="Bank Statement",
        merged_file_name="Bank Statement.pdf", status=REVIEWED,
        files=(make_file("f3", pages=3),),
    )
    sink = DocumentGroup(
        id=SINK_GROUP_ID, title="Unclassified", tag="Unclassified",
        files=(make_file("scan", pages=5),),
    )
    evidence = (
        RequiredEvidence(id="ev_passport", name="Current passport"),
        RequiredEvidence(id="ev_bank", name="Bank statements"),
        RequiredEvidence(id="ev_savings", name="Savings account", is_mandatory=False),
    )
    return CaseState(groups=(passport, bank, sink), evidence=evidence)


@pytest.fixture
def workspace(case_state):
    """Strict workspace over the sample case."""
    return Workspace(state=case_state, strict=True)
