"""Workflow layer for casefile.

Contains the document organization engine:
- Classification: Derive entity, type and date from upload paths
- Grouping: Create/rename/delete groups, move and reorder files
- Splitting: Extract pages of unclassified scans into new files
- Review: Pending/reviewed state per group
- Evidence: Link checklist slots to groups and compute completion
- Analysis: Track how current the last extraction run is
- Store: Serialized, observable workspace applying commands
"""

from .models import (
    PENDING,
    REVIEWED,
    ALL,
    ANY,
    SINK_GROUP_ID,
    DocumentFile,
    DocumentGroup,
    RequiredEvidence,
    CombinedEvidenceGroup,
    AnalysisState,
    CaseState,
)
from .path_classifier import (
    ParsedDocument,
    TypeRule,
    classify_path,
    describe_rules,
    DOCUMENT_TYPE_LABELS,
)
from .repository import (
    new_case_state,
    find_group,
    find_file,
    sink_group,
    check_invariants,
)
from .grouping import (
    move_file,
    reorder_file,
    create_group,
    next_group_title,
    rename_group,
    delete_group,
    mark_file_removed,
    upload_to_group,
)
from .splitting import split_file
from .review import (
    invalidate,
    confirm_review,
    confirm_all_reviews,
    needs_review,
    pending_review_groups,
)
from .evidence import (
    link_evidence_to_group,
    unlink_evidence,
    set_checklist,
    is_combined_complete,
    has_pending_review,
    evidence_summary,
    EvidenceSummary,
)
from .analysis import (
    AnalysisStats,
    compute_analysis_stats,
    start_analysis,
    set_analysis_progress,
    complete_analysis,
    fail_analysis,
    run_local_analysis,
)
from .ingestion import (
    IncomingFile,
    ManifestError,
    ingest_files,
    load_manifest,
    ingest_inbox,
)
from .checklist import (
    Checklist,
    ChecklistError,
    load_checklist,
    parse_checklist,
    apply_checklist,
)
from .store import (
    Workspace,
    CombinedStatus,
    apply_command,
    new_id,
    MoveFile,
    ReorderFile,
    CreateGroup,
    RenameGroup,
    DeleteGroup,
    SplitFile,
    ConfirmReview,
    ConfirmAllReviews,
    MarkFileRemoved,
    UploadToGroup,
    IngestFiles,
    SetChecklist,
    LinkEvidence,
    UnlinkEvidence,
    StartAnalysis,
    SetAnalysisProgress,
    CompleteAnalysis,
    FailAnalysis,
)


__all__ = [
    # Records
    'PENDING',
    'REVIEWED',
    'ALL',
    'ANY',
    'SINK_GROUP_ID',
    'DocumentFile',
    'DocumentGroup',
    'RequiredEvidence',
    'CombinedEvidenceGroup',
    'AnalysisState',
    'CaseState',

    # Classification
    'ParsedDocument',
    'TypeRule',
    'classify_path',
    'describe_rules',
    'DOCUMENT_TYPE_LABELS',

    # Repository
    'new_case_state',
    'find_group',
    'find_file',
    'sink_group',
    'check_invariants',

    # Grouping
    'move_file',
    'reorder_file',
    'create_group',
    'next_group_title',
    'rename_group',
    'delete_group',
    'mark_file_removed',
    'upload_to_group',
    'split_file',

    # Review
    'invalidate',
    'confirm_review',
    'confirm_all_reviews',
    'needs_review',
    'pending_review_groups',

    # Evidence
    'link_evidence_to_group',
    'unlink_evidence',
    'set_checklist',
    'is_combined_complete',
    'has_pending_review',
    'evidence_summary',
    'EvidenceSummary',

    # Analysis
    'AnalysisStats',
    'compute_analysis_stats',
    'start_analysis',
    'set_analysis_progress',
    'complete_analysis',
    'fail_analysis',
    'run_local_analysis',

    # Boundaries
    'IncomingFile',
    'ManifestError',
    'ingest_files',
    'load_manifest',
    'ingest_inbox',
    'Checklist',
    'ChecklistError',
    'load_checklist',
    'parse_checklist',
    'apply_checklist',

    # Store
    'Workspace',
    'CombinedStatus',
    'apply_command',
    'new_id',
    'MoveFile',
    'ReorderFile',
    'CreateGroup',
    'RenameGroup',
    'DeleteGroup',
    'SplitFile',
    'ConfirmReview',
    'ConfirmAllReviews',
    'MarkFileRemoved',
    'UploadToGroup',
    'IngestFiles',
    'SetChecklist',
    'LinkEvidence',
    'UnlinkEvidence',
    'StartAnalysis',
    'SetAnalysisProgress',
    'CompleteAnalysis',
    'FailAnalysis',
]
