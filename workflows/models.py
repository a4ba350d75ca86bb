"""Records for the case workspace: files, groups, evidence slots, analysis state.

Every record is a frozen dataclass and every sequence is a tuple. Workflow
functions never mutate a record; they build replacements with
``dataclasses.replace`` so a half-applied change can never be observed.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple

# Review states
PENDING = "pending"
REVIEWED = "reviewed"

# Combined evidence relationships
ALL = "all"
ANY = "any"

# The always-present landing zone for uncategorized files
SINK_GROUP_ID = "unclassified"
SINK_GROUP_TITLE = "Unclassified"


@dataclass(frozen=True)
class DocumentFile:
    """A single uploaded file (metadata only, never content)."""

    # Identity
    id: str
    name: str                                # "Statement_July.pdf"
    size: int = 0                            # Bytes
    pages: int = 1

    # Review / audit flags
    is_new: bool = False                     # Added since last review confirmation
    is_removed: bool = False                 # Soft-deleted, kept for the diff view
    is_analyzed: bool = False
    analyzed_at: Optional[str] = None        # ISO timestamp of the analysis run

    # Classification (filled on ingestion)
    who: Optional[str] = None                # "applicant", "sponsor", ...
    document_type: Optional[str] = None      # "bankStatement"
    date: Optional[str] = None               # "MMYY" or "YY"
    generated_name: Optional[str] = None     # "applicant_bankStatement_0724"
    relative_path: Optional[str] = None      # Folder path at upload time

    @property
    def display_size(self) -> str:
        """Human-readable size, e.g. '2.4 MB'."""
        if self.size >= 1024 * 1024:
            return f"{self.size / (1024 * 1024):.1f} MB"
        if self.size >= 1024:
            return f"{self.size / 1024:.0f} KB"
        return f"{self.size} B"


@dataclass(frozen=True)
class DocumentGroup:
    """A logical document made of ordered files.

    File order determines the page order of the merged output.
    """

    id: str
    title: str
    tag: str                                 # Category, used for duplicate naming
    merged_file_name: Optional[str] = None
    status: str = PENDING
    has_changes: bool = False
    files: Tuple[DocumentFile, ...] = ()

    @property
    def is_sink(self) -> bool:
        return self.id == SINK_GROUP_ID

    @property
    def active_files(self) -> Tuple[DocumentFile, ...]:
        """Files that are not soft-removed."""
        return tuple(f for f in self.files if not f.is_removed)

    @property
    def page_count(self) -> int:
        return sum(f.pages for f in self.active_files)

    def index_of(self, file_id: str) -> int:
        """Position of a file in this group, or -1."""
        for i, f in enumerate(self.files):
            if f.id == file_id:
                return i
        return -1


@dataclass(frozen=True)
class RequiredEvidence:
    """One evidence slot of the application checklist."""

    id: str
    name: str
    is_mandatory: bool = True
    is_uploaded: bool = False
    linked_group_id: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class CombinedEvidenceGroup:
    """Cluster of evidence slots completed by all or any of its members."""

    id: str
    name: str
    evidence_ids: Tuple[str, ...] = ()
    relationship: str = ALL


@dataclass(frozen=True)
class AnalysisState:
    """Bookkeeping for the external extraction run."""

    last_analysis_at: Optional[str] = None
    analyzed_file_ids: FrozenSet[str] = frozenset()
    is_analyzing: bool = False
    progress: int = 0                        # 0-100, UI only


def _sink() -> DocumentGroup:
    return DocumentGroup(
        id=SINK_GROUP_ID,
        title=SINK_GROUP_TITLE,
        tag=SINK_GROUP_TITLE,
    )


@dataclass(frozen=True)
class CaseState:
    """Versioned snapshot of one case workspace."""

    version: int = 0
    groups: Tuple[DocumentGroup, ...] = field(default_factory=lambda: (_sink(),))
    evidence: Tuple[RequiredEvidence, ...] = ()
    combined: Tuple[CombinedEvidenceGroup, ...] = ()
    analysis: AnalysisState = field(default_factory=AnalysisState)
