"""Tests for analysis sync tracking."""

from workflows import (
    CaseState,
    CompleteAnalysis,
    ConfirmReview,
    FailAnalysis,
    MarkFileRemoved,
    SINK_GROUP_ID,
    SetAnalysisProgress,
    StartAnalysis,
    UploadToGroup,
    Workspace,
    complete_analysis,
    compute_analysis_stats,
    find_file,
    run_local_analysis,
    start_analysis,
    upload_to_group,
)
from workflows.analysis import ANALYZING, EMPTY, OUTDATED, PARTIAL, SYNCED


def analyze(workspace, *file_ids, at="2024-07-01T10:00:00+00:00"):
    assert workspace.dispatch(StartAnalysis())
    assert workspace.dispatch(CompleteAnalysis(analyzed_at=at, file_ids=file_ids))


class TestStatus:
    """Tests for compute_analysis_stats()."""

    def test_empty_case(self):
        stats = compute_analysis_stats(CaseState())
        assert stats.status == EMPTY
        assert stats.total_ready == 0
        assert stats.last_analysis_at is None

    def test_unclassified_files_do_not_count(self, make_file):
        state = upload_to_group(CaseState(), SINK_GROUP_ID, (make_file("scan"),))
        stats = compute_analysis_stats(state)
        assert stats.status == EMPTY
        assert stats.pending_review == 0

    def test_ready_but_never_analyzed(self, case_state):
        stats = compute_analysis_stats(case_state)
        assert stats.status == OUTDATED
        assert stats.total_ready == 1
        assert stats.total_analyzed == 0
        assert stats.new_since_analysis == 1
        assert stats.pending_review == 2

    def test_only_pending_groups(self, workspace):
        workspace.dispatch(MarkFileRemoved("f3"))
        stats = workspace.analysis_stats()
        assert stats.total_ready == 0
        assert stats.status == OUTDATED

    def test_synced_after_run(self, workspace):
        analyze(workspace, "f3")
        stats = workspace.analysis_stats()
        assert stats.status == SYNCED
        assert stats.total_analyzed == 1
        assert stats.last_analysis_at == "2024-07-01T10:00:00+00:00"

    def test_partial_after_new_reviewed_files(self, workspace, make_file):
        analyze(workspace, "f3")
        workspace.dispatch(UploadToGroup("g_bank", (make_file("f9"),)))
        assert workspace.analysis_stats().status == OUTDATED

        workspace.dispatch(ConfirmReview("g_bank"))
        stats = workspace.analysis_stats()
        assert stats.status == PARTIAL
        assert stats.total_ready == 2
        assert stats.total_analyzed == 1
        assert stats.new_since_analysis == 1

    def test_analyzing_takes_precedence(self, workspace):
        workspace.dispatch(StartAnalysis())
        assert workspace.analysis_stats().status == ANALYZING


class TestLifecycle:
    """Tests for the start/progress/complete/fail transitions."""

    def test_start_requires_ready_files(self):
        state = CaseState()
        assert start_analysis(state) is state

    def test_start_twice_rejected(self, workspace):
        assert workspace.dispatch(StartAnalysis())
        assert not workspace.dispatch(StartAnalysis())

    def test_progress_clamped(self, workspace):
        workspace.dispatch(StartAnalysis())
        assert workspace.dispatch(SetAnalysisProgress(150))
        assert workspace.snapshot.analysis.progress == 100
        assert workspace.dispatch(SetAnalysisProgress(-5))
        assert workspace.snapshot.analysis.progress == 0

    def test_progress_without_run_rejected(self, workspace):
        assert not workspace.dispatch(SetAnalysisProgress(50))

    def test_complete_marks_files(self, case_state):
        state = complete_analysis(case_state, "2024-07-01T10:00:00+00:00", ["f3"])
        _, analyzed = find_file(state, "f3")
        assert analyzed.is_analyzed
        assert analyzed.analyzed_at == "2024-07-01T10:00:00+00:00"
        assert not state.analysis.is_analyzing
        assert state.analysis.progress == 100

    def test_complete_extends_analyzed_ids(self, case_state):
        state = complete_analysis(case_state, "t1", ["f3"])
        state = complete_analysis(state, "t2", ["f1"])
        assert state.analysis.analyzed_file_ids == frozenset({"f1", "f3"})
        assert state.analysis.last_analysis_at == "t2"

    def test_fail_keeps_previous_run(self, workspace):
        analyze(workspace, "f3")
        workspace.dispatch(StartAnalysis())
        assert workspace.dispatch(FailAnalysis())
        analysis = workspace.snapshot.analysis
        assert not analysis.is_analyzing
        assert analysis.last_analysis_at == "2024-07-01T10:00:00+00:00"
        assert workspace.analysis_stats().status == SYNCED

    def test_fail_without_run_rejected(self, workspace):
        assert not workspace.dispatch(FailAnalysis())


class TestLocalAnalysis:
    """Tests for run_local_analysis()."""

    def test_runs_to_completion(self, workspace):
        assert run_local_analysis(workspace, step_delay=0)
        stats = workspace.analysis_stats()
        assert stats.status == SYNCED
        assert stats.last_analysis_at is not None
        _, f3 = find_file(workspace.snapshot, "f3")
        assert f3.is_analyzed

    def test_nothing_ready(self):
        assert not run_local_analysis(Workspace(), step_delay=0)
