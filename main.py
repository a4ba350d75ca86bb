#!/usr/bin/env python3
"""CaseFile - Document organization and evidence linking for case files."""

import argparse

from casefile import CaseFile, __version__
from workflows import (
    ChecklistError,
    ConfirmAllReviews,
    ManifestError,
    classify_path,
    describe_rules,
    load_checklist,
    apply_checklist,
    ingest_inbox,
    run_local_analysis,
)


def show_groups() -> None:
    """Print groups, evidence status and analysis status for the workspace."""
    workspace = CaseFile.workspace

    CaseFile.print_right("\n[bold]Document groups[/bold]")
    for group in workspace.groups():
        flag = "" if group.is_sink else f" ({group.status}{', changed' if group.has_changes else ''})"
        CaseFile.print_right(f"  {group.title}{flag}: {len(group.active_files)} file(s), "
                             f"{group.page_count} page(s)")
        for f in group.active_files:
            CaseFile.print_right(f"    {f.name} ({f.pages}p, {f.display_size})")

    evidence = workspace.evidence_status()
    if evidence:
        CaseFile.print_right("\n[bold]Evidence[/bold]")
        for ev, group in evidence:
            target = group.title if group else "missing"
            CaseFile.print_right(f"  {'✓' if ev.is_uploaded else '✗'} {ev.name} → {target}")
        for status in workspace.combined_status():
            attention = ", needs review" if status.has_pending_review else ""
            CaseFile.print_right(f"  {'✓' if status.is_complete else '✗'} {status.combined.name} "
                                 f"({status.combined.relationship}{attention})")

    summary = workspace.evidence_summary()
    stats = workspace.analysis_stats()
    CaseFile.print_right(f"\nMandatory evidence: {summary.mandatory_uploaded}/{summary.mandatory_total}")
    CaseFile.print_right(f"Analysis: {stats.status} ({stats.total_analyzed}/{stats.total_ready} analyzed)")


def run_processing() -> None:
    """Load the checklist, file the inbox and report the result."""
    workspace = CaseFile.workspace

    CaseFile.print_right(f"CaseFile v{__version__}")
    try:
        if CaseFile.checklist_path:
            CaseFile.print_right(f"Checklist: {CaseFile.checklist_path}")
            apply_checklist(workspace, load_checklist(CaseFile.checklist_path))

        if CaseFile.inbox_path:
            read, filed = ingest_inbox(workspace, CaseFile.inbox_path)
            CaseFile.print_right(f"Filed {filed} of {read} upload(s)")
    except (ChecklistError, ManifestError) as e:
        CaseFile.print_right(f"[red]Error: {e}[/red]")
        return

    if CaseFile.confirm_all:
        if workspace.dispatch(ConfirmAllReviews()):
            CaseFile.print_right("Confirmed all document groups")

    if CaseFile.analyze and not run_local_analysis(workspace, step_delay=0):
        CaseFile.print_right("[yellow]No reviewed documents ready for analysis[/yellow]")

    show_groups()
    CaseFile.print_right("\n[green]Processing complete![/green]")


def main() -> None:
    """Main entry point for processing the inbox (CLI mode)."""
    if not CaseFile.inbox_path and not CaseFile.checklist_path:
        print("Error: nothing to do")
        print("Use --inbox/--checklist or set CASEFILE_INBOX/CASEFILE_CHECKLIST")
        print("Example: --inbox=uploads.json --checklist=skilled-worker.json")
        return

    CaseFile.init_workspace()
    run_processing()
    CaseFile.close()


def main_tui() -> None:
    """Main entry point for processing the inbox (TUI mode)."""
    from textui import CaseFileApp

    workspace = CaseFile.init_workspace()
    app = CaseFileApp(
        workspace,
        source=CaseFile.inbox_path or "(none)",
        checklist=CaseFile.checklist_path or "(none)",
        process_func=run_processing,
    )
    app.run()
    CaseFile.close()


def classify(path: str) -> None:
    """Print what the path classifier derives from an upload path."""
    raw_path, _, filename = path.replace('\\', '/').rpartition('/')
    parsed = classify_path(raw_path, filename)
    label = f" ({parsed.label})" if parsed.label else ""
    print(f"Path:     {parsed.relative_path or '.'}")
    print(f"File:     {parsed.original_filename}")
    print(f"Who:      {parsed.who or '-'}")
    print(f"Type:     {parsed.document_type}{label}")
    print(f"Date:     {parsed.date or '-'}")
    print(f"Name:     {parsed.generated_name or '-'}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Case file document organizer")
    parser.add_argument("--inbox", type=str,
                       help="Upload manifest (JSON list of path/filename/size/pages)")
    parser.add_argument("--checklist", type=str,
                       help="Evidence checklist (JSON)")
    parser.add_argument("--classify", type=str, metavar="PATH",
                       help="Classify a single upload path and exit")
    parser.add_argument("--showrules", action="store_true",
                       help="Print the document type rules used for classification")
    parser.add_argument("--confirm-all", action="store_true",
                       help="Confirm every group after filing")
    parser.add_argument("--analyze", action="store_true",
                       help="Run an analysis pass over reviewed documents")
    parser.add_argument("--verbose", action="store_true",
                       help="Log every applied and rejected command")
    parser.add_argument("--cli", action="store_true",
                       help="Use CLI output instead of TextUI (default is TextUI)")
    return parser


if __name__ == "__main__":
    args = build_parser().parse_args()

    if args.classify:
        classify(args.classify)

    elif args.showrules:
        for line in describe_rules():
            print(line)

    else:
        CaseFile.configure(args)

        if args.cli:
            # CLI mode - plain text output
            main()
        else:
            # TUI mode (default) - Textual interface
            main_tui()
