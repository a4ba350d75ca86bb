"""Analysis sync tracking.

The extraction pipeline is external: it is started, reports progress and
finally delivers ``(analyzed_at, file_ids)``. This module records those events
and derives how up to date the last run is relative to the reviewed
documents.
"""

import dataclasses
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, TYPE_CHECKING

from casefile import CaseFile
from .models import CaseState, DocumentFile, PENDING, REVIEWED

if TYPE_CHECKING:
    from .store import Workspace

# Sync statuses
ANALYZING = "analyzing"
EMPTY = "empty"
OUTDATED = "outdated"
SYNCED = "synced"
PARTIAL = "partial"


@dataclass(frozen=True)
class AnalysisStats:
    """Derived analysis sync summary.

    Attributes:
        status: One of analyzing, empty, outdated, synced, partial
        total_ready: Files in reviewed groups (not removed)
        total_analyzed: Ready files included in an analysis run
        new_since_analysis: Ready files not yet analyzed
        pending_review: Files in pending groups other than Unclassified
        last_analysis_at: ISO timestamp of the last completed run
    """
    status: str
    total_ready: int
    total_analyzed: int
    new_since_analysis: int
    pending_review: int
    last_analysis_at: Optional[str]


def ready_files(state: CaseState) -> List[DocumentFile]:
    """Active files of reviewed groups, excluding Unclassified."""
    return [
        f for g in state.groups
        if not g.is_sink and g.status == REVIEWED
        for f in g.active_files
    ]


def ready_file_ids(state: CaseState) -> List[str]:
    return [f.id for f in ready_files(state)]


def pending_review_files(state: CaseState) -> List[DocumentFile]:
    """Active files of pending groups, excluding Unclassified."""
    return [
        f for g in state.groups
        if not g.is_sink and g.status == PENDING
        for f in g.active_files
    ]


def compute_analysis_stats(state: CaseState) -> AnalysisStats:
    """Derive the sync status from the current snapshot."""
    analysis = state.analysis
    ready = ready_files(state)

    total_ready = len(ready)
    total_analyzed = sum(1 for f in ready if f.id in analysis.analyzed_file_ids)
    new_since = total_ready - total_analyzed
    pending = len(pending_review_files(state))

    # First match wins
    if analysis.is_analyzing:
        status = ANALYZING
    elif total_ready == 0 and pending == 0:
        status = EMPTY
    elif total_ready == 0 and pending > 0:
        status = OUTDATED
    elif new_since == 0 and total_analyzed > 0:
        status = SYNCED
    elif total_analyzed > 0 and new_since > 0:
        status = PARTIAL
    else:
        status = OUTDATED

    return AnalysisStats(
        status=status,
        total_ready=total_ready,
        total_analyzed=total_analyzed,
        new_since_analysis=new_since,
        pending_review=pending,
        last_analysis_at=analysis.last_analysis_at,
    )


def start_analysis(state: CaseState) -> CaseState:
    """Flag a run as in flight. Rejected while running or with nothing ready."""
    if state.analysis.is_analyzing or not ready_files(state):
        return state
    return dataclasses.replace(
        state, analysis=dataclasses.replace(state.analysis, is_analyzing=True, progress=0)
    )


def set_analysis_progress(state: CaseState, percent: int) -> CaseState:
    """Record progress of the running analysis (clamped to 0-100)."""
    if not state.analysis.is_analyzing:
        return state
    percent = max(0, min(100, int(percent)))
    if percent == state.analysis.progress:
        return state
    return dataclasses.replace(
        state, analysis=dataclasses.replace(state.analysis, progress=percent)
    )


def complete_analysis(state: CaseState, analyzed_at: str,
                      file_ids: Iterable[str]) -> CaseState:
    """Apply a completion event from the extraction pipeline.

    Stamps ``last_analysis_at``, extends the analyzed id set and marks the
    matching files as analyzed.
    """
    ids = frozenset(file_ids)
    analysis = dataclasses.replace(
        state.analysis,
        is_analyzing=False,
        progress=100,
        last_analysis_at=analyzed_at,
        analyzed_file_ids=state.analysis.analyzed_file_ids | ids,
    )

    groups = []
    for group in state.groups:
        if any(f.id in ids for f in group.files):
            group = dataclasses.replace(group, files=tuple(
                dataclasses.replace(f, is_analyzed=True, analyzed_at=analyzed_at)
                if f.id in ids else f
                for f in group.files
            ))
        groups.append(group)

    return dataclasses.replace(state, groups=tuple(groups), analysis=analysis)


def fail_analysis(state: CaseState) -> CaseState:
    """Clear the running flag after a failed run; nothing is stamped."""
    if not state.analysis.is_analyzing:
        return state
    return dataclasses.replace(
        state, analysis=dataclasses.replace(state.analysis, is_analyzing=False, progress=0)
    )


def run_local_analysis(workspace: "Workspace", step_delay: float = 0.5,
                       steps: int = 4) -> bool:
    """Stand-in for the external extraction pipeline.

    Analyzes the currently ready files: starts a run, reports progress in
    ``steps`` increments and delivers the completion event.

    Returns:
        True if a run was started and completed, False if nothing was ready
    """
    from .store import CompleteAnalysis, SetAnalysisProgress, StartAnalysis

    if not workspace.dispatch(StartAnalysis()):
        return False

    file_ids = ready_file_ids(workspace.snapshot)
    CaseFile.print_right(f"Analyzing {len(file_ids)} document(s)...")
    CaseFile.set_progress(0)
    for i in range(1, steps + 1):
        if step_delay:
            time.sleep(step_delay)
        percent = round(i / steps * 100)
        workspace.dispatch(SetAnalysisProgress(percent))
        CaseFile.set_progress(percent)

    analyzed_at = datetime.now(timezone.utc).isoformat()
    workspace.dispatch(CompleteAnalysis(analyzed_at=analyzed_at, file_ids=tuple(file_ids)))
    CaseFile.print_right(f"[green]Analysis complete[/green] ({len(file_ids)} document(s))")
    return True
