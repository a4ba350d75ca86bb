"""Tests for the text rendering used by the TUI panels."""

from textui import format_case, format_evidence, format_groups
from workflows import (
    CaseState,
    CombinedEvidenceGroup,
    DocumentFile,
    RequiredEvidence,
    SINK_GROUP_ID,
    create_group,
    link_evidence_to_group,
    set_checklist,
    upload_to_group,
)


def sample_state():
    state = create_group(CaseState(), "Passport", "g_passport")
    state = upload_to_group(state, "g_passport", (
        DocumentFile(id="f1", name="scan[draft].pdf", size=2048, pages=2),
        DocumentFile(id="f2", name="back.pdf"),
    ))
    state = upload_to_group(state, SINK_GROUP_ID, (DocumentFile(id="f3", name="misc.pdf"),))
    state = set_checklist(
        state,
        (RequiredEvidence(id="ev1", name="Current passport"),
         RequiredEvidence(id="ev2", name="Old passport", is_mandatory=False)),
        (CombinedEvidenceGroup(id="c1", name="Identity", evidence_ids=("ev1", "ev2"), relationship="any"),),
    )
    return link_evidence_to_group(state, "ev1", "g_passport")


class TestFormatting:
    """Tests for format_groups(), format_evidence() and format_case()."""

    def test_groups(self):
        lines = format_groups(sample_state())
        assert lines[0].startswith("[bold]Passport[/bold] [yellow]needs review[/yellow]")
        assert "(2 files, 3 pages)" in lines[0]
        assert "scan\\[draft].pdf" in lines[1]
        assert "[cyan]new[/cyan]" in lines[1]
        assert lines[3].startswith("[bold]Unclassified[/bold] [dim]unclassified[/dim]")

    def test_evidence(self):
        lines = format_evidence(sample_state())
        assert lines[0] == "[green]✓[/green] Current passport → Passport"
        assert lines[1] == "[red]✗[/red] Old passport [dim](optional)[/dim]"
        assert lines[2].startswith("[green]✓[/green] Identity [dim](any, 1/2)[/dim]")
        assert lines[2].endswith("[yellow]pending review[/yellow]")

    def test_case_header(self):
        text = format_case(sample_state())
        assert text.startswith("Analysis: [red]outdated[/red]")
        assert "[bold]Evidence[/bold]" in text

    def test_empty_case(self):
        text = format_case(CaseState())
        assert text.startswith("Analysis: [dim]empty[/dim]")
        assert "[bold]Evidence[/bold]" not in text
