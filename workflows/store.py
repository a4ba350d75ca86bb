"""Workspace store: the single writer for a case's document state.

Commands are small frozen records. ``apply_command`` maps a snapshot and a
command to the next snapshot without side effects; ``Workspace`` layers
versioning, serialization and change notification on top of it.
"""

import dataclasses
import threading
import uuid
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, List, Optional, Tuple

from casefile import CaseFile
from . import analysis, evidence, grouping, ingestion, review, splitting
from .models import (
    CaseState,
    CombinedEvidenceGroup,
    DocumentFile,
    DocumentGroup,
    RequiredEvidence,
)
from .repository import check_invariants, find_group, new_case_state


def new_id(prefix: str) -> str:
    """Generate a unique record id, e.g. 'group_3f2a9c1d0b7e'."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


# =========================================================================
# Commands
# =========================================================================

@dataclass(frozen=True)
class MoveFile:
    file_id: str
    target_group_id: str


@dataclass(frozen=True)
class ReorderFile:
    group_id: str
    from_index: int
    to_index: int


@dataclass(frozen=True)
class CreateGroup:
    template_name: str
    group_id: Optional[str] = None           # Generated when omitted


@dataclass(frozen=True)
class RenameGroup:
    group_id: str
    new_title: str


@dataclass(frozen=True)
class DeleteGroup:
    group_id: str


@dataclass(frozen=True)
class SplitFile:
    file_id: str
    selected_page_indices: Tuple[int, ...]
    new_file_name: str
    new_file_id: Optional[str] = None        # Generated when omitted


@dataclass(frozen=True)
class ConfirmReview:
    group_id: str


@dataclass(frozen=True)
class ConfirmAllReviews:
    pass


@dataclass(frozen=True)
class MarkFileRemoved:
    file_id: str


@dataclass(frozen=True)
class UploadToGroup:
    group_id: str
    files: Tuple[DocumentFile, ...]


@dataclass(frozen=True)
class IngestFiles:
    files: Tuple["ingestion.IncomingFile", ...]
    file_ids: Tuple[str, ...] = ()           # Generated when omitted


@dataclass(frozen=True)
class SetChecklist:
    evidence: Tuple[RequiredEvidence, ...]
    combined: Tuple[CombinedEvidenceGroup, ...] = ()


@dataclass(frozen=True)
class LinkEvidence:
    evidence_id: str
    group_id: str


@dataclass(frozen=True)
class UnlinkEvidence:
    evidence_id: str


@dataclass(frozen=True)
class StartAnalysis:
    pass


@dataclass(frozen=True)
class SetAnalysisProgress:
    percent: int


@dataclass(frozen=True)
class CompleteAnalysis:
    analyzed_at: str
    file_ids: Tuple[str, ...]


@dataclass(frozen=True)
class FailAnalysis:
    pass


_HANDLERS = {
    MoveFile: lambda s, c: grouping.move_file(s, c.file_id, c.target_group_id),
    ReorderFile: lambda s, c: grouping.reorder_file(s, c.group_id, c.from_index, c.to_index),
    CreateGroup: lambda s, c: grouping.create_group(s, c.template_name, c.group_id),
    RenameGroup: lambda s, c: grouping.rename_group(s, c.group_id, c.new_title),
    DeleteGroup: lambda s, c: grouping.delete_group(s, c.group_id),
    SplitFile: lambda s, c: splitting.split_file(
        s, c.file_id, c.selected_page_indices, c.new_file_name, c.new_file_id),
    ConfirmReview: lambda s, c: review.confirm_review(s, c.group_id),
    ConfirmAllReviews: lambda s, c: review.confirm_all_reviews(s),
    MarkFileRemoved: lambda s, c: grouping.mark_file_removed(s, c.file_id),
    UploadToGroup: lambda s, c: grouping.upload_to_group(s, c.group_id, c.files),
    IngestFiles: lambda s, c: ingestion.ingest_files(s, c.files, c.file_ids),
    SetChecklist: lambda s, c: evidence.set_checklist(s, c.evidence, c.combined),
    LinkEvidence: lambda s, c: evidence.link_evidence_to_group(s, c.evidence_id, c.group_id),
    UnlinkEvidence: lambda s, c: evidence.unlink_evidence(s, c.evidence_id),
    StartAnalysis: lambda s, c: analysis.start_analysis(s),
    SetAnalysisProgress: lambda s, c: analysis.set_analysis_progress(s, c.percent),
    CompleteAnalysis: lambda s, c: analysis.complete_analysis(s, c.analyzed_at, c.file_ids),
    FailAnalysis: lambda s, c: analysis.fail_analysis(s),
}


def apply_command(state: CaseState, command) -> CaseState:
    """Compute the snapshot that follows ``command``.

    Returns the same state object when the command is rejected.

    Raises:
        TypeError: If ``command`` is not a known command type
    """
    handler = _HANDLERS.get(type(command))
    if handler is None:
        raise TypeError(f"Unknown command: {type(command).__name__}")
    return handler(state, command)


def with_generated_ids(command):
    """Fill in ids the caller left for the store to generate."""
    if isinstance(command, CreateGroup) and not command.group_id:
        return dataclasses.replace(command, group_id=new_id("group"))
    if isinstance(command, SplitFile) and not command.new_file_id:
        return dataclasses.replace(command, new_file_id=new_id("split"))
    if isinstance(command, IngestFiles) and not command.file_ids:
        return dataclasses.replace(command, file_ids=tuple(new_id("file") for _ in command.files))
    return command


def describe(command) -> str:
    """Short one-line description of a command for the activity log."""
    parts = []
    for f in dataclasses.fields(command):
        value = getattr(command, f.name)
        if isinstance(value, tuple) and value and not isinstance(value[0], int):
            value = f"<{len(value)}>"
        parts.append(f"{f.name}={value}")
    return f"{type(command).__name__}({', '.join(parts)})"


# =========================================================================
# Workspace
# =========================================================================

Subscriber = Callable[[CaseState], None]


@dataclass(frozen=True)
class CombinedStatus:
    """Read-only projection of a combined evidence group."""
    combined: CombinedEvidenceGroup
    members: Tuple[RequiredEvidence, ...]
    is_complete: bool
    has_pending_review: bool


class Workspace:
    """Owns one case's state and applies commands one at a time.

    All mutations go through ``dispatch`` (or ``post`` from inside a
    subscriber). Commands are applied under a single lock, so callers on
    different threads such as a UI handler and a background sync are
    serialized. Subscribers are called with each new snapshot after the lock
    is released, one thread at a time and in version order, so a subscriber
    may block on another thread that is itself waiting to unsubscribe.
    """

    def __init__(self, state: Optional[CaseState] = None, strict: bool = False) -> None:
        """
        Args:
            state: Initial snapshot (defaults to an empty case)
            strict: Verify repository invariants after every applied command
        """
        self._state = state if state is not None else new_case_state()
        self._lock = threading.RLock()
        self._delivering = threading.Lock()
        self._local = threading.local()
        self._queue: Deque = deque()
        # (log line, snapshot or None) waiting to be logged and delivered
        self._outbox: Deque[Tuple[str, Optional[CaseState]]] = deque()
        self._subscribers: List[Subscriber] = []
        self.strict = strict

    @property
    def snapshot(self) -> CaseState:
        """The current immutable snapshot."""
        return self._state

    @property
    def version(self) -> int:
        return self._state.version

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def dispatch(self, command) -> bool:
        """Apply a command now.

        Returns:
            True if the state changed, False if the command was rejected

        Raises:
            RuntimeError: If called from a subscriber (use ``post`` there)
        """
        if self._in_subscriber():
            raise RuntimeError("dispatch() called from a subscriber; use post() instead")
        with self._lock:
            applied = self._apply(command)
        self._deliver()
        return applied

    def post(self, command) -> None:
        """Queue a command to run after the one currently being delivered."""
        with self._lock:
            self._queue.append(command)
        if not self._in_subscriber():
            self._deliver()

    def _in_subscriber(self) -> bool:
        return getattr(self._local, "notifying", False)

    def _apply(self, command) -> bool:
        # Caller holds self._lock
        command = with_generated_ids(command)
        new_state = apply_command(self._state, command)
        if new_state is self._state:
            self._outbox.append((f"Rejected {describe(command)}", None))
            return False

        new_state = dataclasses.replace(new_state, version=self._state.version + 1)
        if self.strict:
            problems = check_invariants(new_state)
            if problems:
                raise RuntimeError(f"{type(command).__name__} broke invariants: {'; '.join(problems)}")

        self._state = new_state
        self._outbox.append((f"Applied {describe(command)} -> v{new_state.version}", new_state))
        return True

    def _deliver(self) -> None:
        """Log and notify outside the lock, then run posted commands.

        A thread that finds another one delivering leaves its entries to it.
        """
        while True:
            if not self._delivering.acquire(blocking=False):
                return
            try:
                self._deliver_pending()
            finally:
                self._delivering.release()
            # Pick up entries left by threads that found delivery busy
            with self._lock:
                if not self._outbox and not self._queue:
                    return

    def _deliver_pending(self) -> None:
        while True:
            with self._lock:
                if self._outbox:
                    message, state = self._outbox.popleft()
                elif self._queue:
                    self._apply(self._queue.popleft())
                    continue
                else:
                    return
            CaseFile.debug(message)
            if state is not None:
                self._notify(state)

    # -------------------------------------------------------------------------
    # Observation
    # -------------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a change callback. Returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def clear_subscribers(self) -> None:
        with self._lock:
            self._subscribers.clear()

    def _notify(self, state: CaseState) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        self._local.notifying = True
        try:
            for callback in subscribers:
                callback(state)
        finally:
            self._local.notifying = False

    # -------------------------------------------------------------------------
    # Query surface
    # -------------------------------------------------------------------------

    def groups(self) -> Tuple[DocumentGroup, ...]:
        """Groups with their files, in display order."""
        return self._state.groups

    def group(self, group_id: str) -> Optional[DocumentGroup]:
        return find_group(self._state, group_id)

    def evidence_status(self) -> List[Tuple[RequiredEvidence, Optional[DocumentGroup]]]:
        """Each evidence slot with the group satisfying it (if any)."""
        state = self._state
        return [(ev, evidence.linked_group(state, ev)) for ev in state.evidence]

    def combined_status(self) -> List[CombinedStatus]:
        """Completion and attention state of every combined group."""
        state = self._state
        return [
            CombinedStatus(
                combined=c,
                members=tuple(evidence.combined_members(state, c)),
                is_complete=evidence.is_combined_complete(state, c),
                has_pending_review=evidence.has_pending_review(state, c),
            )
            for c in state.combined
        ]

    def evidence_summary(self) -> "evidence.EvidenceSummary":
        return evidence.evidence_summary(self._state)

    def pending_review_groups(self) -> List[DocumentGroup]:
        return review.pending_review_groups(self._state)

    def analysis_stats(self) -> "analysis.AnalysisStats":
        return analysis.compute_analysis_stats(self._state)
