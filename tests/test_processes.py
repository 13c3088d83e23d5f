"""End-to-end tests for the UX/UI design processes."""

import pytest

from designflow.errors import CheckpointRejectedError, ProcessInputError, UnknownProcessError
from designflow.events.bus import EventType
from designflow.events.store import RunStore
from designflow.models.schemas import CheckpointRequest, ProcessFailure, ReviewDecision
from designflow.orchestrator import ProcessRunner
from designflow.processes.usability_testing import (
    PLAN_REJECTED_REASON,
    Participant,
    moderated_participants,
)
from designflow.runners import AutoApproveReviewer, ScriptedStepRunner
from designflow.runners.base import Reviewer
from designflow.testing import FixedClock, SequentialIds


def _one_artifact_each(*task_names):
    return {name: {"artifacts": [{"path": f"{name}.md"}]} for name in task_names}


class Harness:
    """Runs a process with scripted steps and auto-approved checkpoints."""

    def __init__(self, responses=None, delays=None, reviewer=None, store=None):
        self.steps = ScriptedStepRunner(responses=responses, delays=delays)
        self.reviewer = reviewer or AutoApproveReviewer()
        self.runner = ProcessRunner(
            step_runner=self.steps,
            reviewer=self.reviewer,
            store=store,
            clock=FixedClock(),
            id_factory=SequentialIds("run"),
        )

    async def run(self, process_id, inputs):
        return await self.runner.run(process_id, inputs)

    @property
    def titles(self):
        return self.reviewer.titles


class RejectTitle(Reviewer):
    def __init__(self, title):
        self.title = title

    async def review(self, request: CheckpointRequest) -> ReviewDecision:
        return ReviewDecision(approved=request.title != self.title, feedback="redo")


class TestProcessRunner:
    @pytest.mark.asyncio
    async def test_unknown_process(self):
        with pytest.raises(UnknownProcessError):
            await Harness().run("not-a-process", {})

    @pytest.mark.asyncio
    async def test_invalid_inputs(self):
        with pytest.raises(ProcessInputError):
            await Harness().run("usability-testing", {"projectName": "Shop", "testingType": "remote"})

    @pytest.mark.asyncio
    async def test_unknown_input_field_rejected(self):
        with pytest.raises(ProcessInputError):
            await Harness().run("design-handoff", {"projectName": "Shop", "colour": "red"})

    @pytest.mark.asyncio
    async def test_missing_project_name(self):
        with pytest.raises(ProcessInputError):
            await Harness().run("analytics-heatmap", {})

    @pytest.mark.asyncio
    async def test_lifecycle_events_and_store(self, tmp_path):
        store = RunStore(tmp_path)
        harness = Harness(store=store)

        result = await harness.run("card-sorting", {"projectName": "Docs"})

        run_id = result.metadata.run_id
        journal = store.load_journal(run_id)
        assert journal[0].type is EventType.PROCESS_START
        assert journal[-1].type is EventType.PROCESS_COMPLETE
        assert journal[-1].data["success"] is True
        assert store.load_run(run_id).status == "completed"
        assert store.load_output(run_id)["project_name"] == "Docs"

    @pytest.mark.asyncio
    async def test_early_return_logs_are_journaled(self, tmp_path):
        store = RunStore(tmp_path)
        harness = Harness(
            responses={"test-planning": {"planApproved": False}},
            store=store,
        )

        result = await harness.run("usability-testing", {"projectName": "Checkout"})

        journal = store.load_journal(result.metadata.run_id)
        logged = [e.data["message"] for e in journal if e.type is EventType.LOG]
        recorded = [e.data["message"] for e in harness.runner.bus.get_history(EventType.LOG)]
        assert len(logged) == 2
        assert sorted(logged) == sorted(recorded)
        assert PLAN_REJECTED_REASON in logged
        assert journal[-1].type is EventType.PROCESS_COMPLETE
        assert store.active_runs == []

    @pytest.mark.asyncio
    async def test_rejection_marks_run_failed(self, tmp_path):
        store = RunStore(tmp_path)
        harness = Harness(reviewer=RejectTitle("Card Sorting Analysis Review"), store=store)

        with pytest.raises(CheckpointRejectedError, match="redo"):
            await harness.run("card-sorting", {"projectName": "Docs"})

        runs = store.list_runs()
        assert runs[0]["status"] == "failed"
        # nothing after the rejected checkpoint ran
        assert "category-labeling-analysis" not in harness.steps.task_names

    @pytest.mark.asyncio
    async def test_metadata(self):
        result = await Harness().run("design-handoff", {"projectName": "Shop"})
        assert result.metadata.process_id == "specializations/ux-ui-design/design-handoff"
        assert result.metadata.run_id == "run-0001"
        assert result.metadata.inputs["project_name"] == "Shop"
        assert result.duration_seconds > 0


class TestUsabilityTesting:
    @pytest.mark.asyncio
    async def test_rejected_plan_returns_early(self):
        harness = Harness(responses={
            "test-planning": {"planApproved": False, "recommendations": ["x"]},
        })

        result = await harness.run("usability-testing", {"projectName": "Checkout"})

        assert isinstance(result, ProcessFailure)
        assert result.success is False
        assert result.reason == PLAN_REJECTED_REASON
        assert result.recommendations == ["x"]
        assert result.metadata.inputs["project_name"] == "Checkout"
        assert len(harness.steps.calls) == 1
        assert harness.titles == []

    @pytest.mark.asyncio
    async def test_moderated_run(self):
        participants = [
            {"id": f"p{i}", "name": f"P{i}", "testingType": "moderated"} for i in range(3)
        ]
        harness = Harness(responses={
            "participant-recruitment": {"confirmedParticipants": participants},
            "moderated-testing-session": lambda inv: {
                "sessionNumber": inv.args["session_number"],
                "artifacts": [{"path": f"session-{inv.args['session_number']}.md"}],
            },
            "usability-scoring": {"susScore": 72.5, "grade": "B"},
        })

        result = await harness.run(
            "usability-testing", {"projectName": "Checkout", "participantCount": 3},
        )

        assert result.success is True
        assert result.usability_score == 72.5
        assert result.passed_threshold is True
        assert result.moderated_sessions == 3
        assert result.unmoderated_sessions == 0
        assert harness.steps.count("unmoderated-testing") == 0
        assert [a.path for a in result.artifacts] == ["session-1.md", "session-2.md", "session-3.md"]
        assert harness.titles == ["Pilot Test Review", "Usability Test Results Review"]

    @pytest.mark.asyncio
    async def test_hybrid_splits_participants(self):
        participants = [
            {"id": "a", "testingType": "moderated"},
            {"id": "b", "testingType": "unmoderated"},
            {"id": "c", "testingType": "moderated"},
            {"id": "d"},
            {"id": "e", "testingType": "moderated"},
        ]
        harness = Harness(responses={
            "participant-recruitment": {"confirmedParticipants": participants},
            "unmoderated-testing": {"participantCount": 2},
        })

        result = await harness.run(
            "usability-testing",
            {"projectName": "Checkout", "participantCount": 4, "testingType": "hybrid"},
        )

        sessions = [c for c in harness.steps.calls if c.task == "moderated-testing-session"]
        assert [c.args["participant"]["id"] for c in sessions] == ["a", "c"]
        unmoderated = next(c for c in harness.steps.calls if c.task == "unmoderated-testing")
        assert [p["id"] for p in unmoderated.args["participants"]] == ["b", "d"]
        assert result.moderated_sessions == 2
        assert result.unmoderated_sessions == 2

    @pytest.mark.asyncio
    async def test_below_minimum_score(self):
        harness = Harness(responses={"usability-scoring": {"susScore": 50}})
        result = await harness.run("usability-testing", {"projectName": "Checkout"})
        assert result.passed_threshold is False
        assert result.success is True

    @pytest.mark.asyncio
    async def test_accessibility_testing_optional(self):
        harness = Harness(responses={"accessibility-analysis": {"issuesFound": 4}})

        result = await harness.run(
            "usability-testing", {"projectName": "Checkout", "includeAccessibilityTesting": True},
        )

        assert harness.steps.count("accessibility-analysis") == 1
        assert result.accessibility_issues == 4

    @pytest.mark.asyncio
    async def test_artifacts_accumulate_in_step_order(self):
        names = [
            "test-planning", "participant-recruitment", "task-scenario-design",
            "test-protocol-preparation", "pilot-testing", "observation-synthesis",
            "success-metrics-analysis", "issue-identification", "findings-synthesis",
            "usability-scoring", "recommendations-generation", "test-report-generation",
        ]
        harness = Harness(responses=_one_artifact_each(*names))

        result = await harness.run("usability-testing", {"projectName": "Checkout"})

        assert harness.steps.task_names == names
        assert [a.path for a in result.artifacts] == [f"{n}.md" for n in names]

    def test_moderated_participants(self):
        people = [Participant(id=str(i), testing_type="moderated") for i in range(5)]
        assert len(moderated_participants(people, 5, "moderated")) == 5
        assert len(moderated_participants(people, 5, "hybrid")) == 3
        assert moderated_participants([Participant(id="x")], 5, "moderated") == []


class TestCardSorting:
    @pytest.mark.asyncio
    async def test_rejected_study_returns_early(self):
        harness = Harness(responses={
            "study-planning": {"studyApproved": False, "recommendations": ["more cards"]},
        })

        result = await harness.run("card-sorting", {})

        assert result.success is False
        assert result.reason == "Card sorting study plan quality insufficient"
        assert result.recommendations == ["more cards"]
        assert harness.steps.task_names == ["study-planning"]

    @pytest.mark.asyncio
    async def test_open_sort(self):
        harness = Harness(responses={
            "session-facilitation": {"completedSessions": 18},
            "similarity-matrix-analysis": {"overallAgreementScore": 74},
            "dendrogram-analysis": {"clusters": ["Account", "Billing", "Help"]},
            "category-labeling-analysis": {"recommendedLabels": ["Account", "Billing", "Support"]},
            "quality-scoring": {"overallScore": 80},
        })

        result = await harness.run("card-sorting", {"projectName": "Docs"})

        assert result.project_name == "Docs"
        assert result.sorting_type == "open"
        assert result.quality_met is True
        assert result.agreement_met is True
        assert result.clusters == 3
        assert result.recommended_labels == ["Account", "Billing", "Support"]
        assert result.primary_navigation == []
        assert harness.titles == [
            "Card Sorting Study Setup Review",
            "Card Sorting Analysis Review",
            "Card Sorting Final Review",
        ]

    @pytest.mark.asyncio
    async def test_closed_sort_skips_labelling(self):
        harness = Harness()

        result = await harness.run(
            "card-sorting",
            {"sortingType": "closed", "generateNavigationRecommendations": False},
        )

        assert harness.steps.count("category-labeling-analysis") == 0
        assert harness.steps.count("navigation-recommendations") == 0
        assert result.recommended_labels is None
        assert result.primary_navigation is None
        assert result.project_name == "Project"

    @pytest.mark.asyncio
    async def test_quality_below_target(self):
        harness = Harness(responses={"quality-scoring": {"overallScore": 74.9}})
        result = await harness.run("card-sorting", {})
        assert result.quality_met is False

    @pytest.mark.asyncio
    async def test_artifacts_accumulate_in_step_order(self):
        names = [
            "study-planning", "card-preparation", "tool-setup", "participant-recruitment",
            "session-facilitation", "similarity-matrix-analysis", "dendrogram-analysis",
            "category-labeling-analysis", "category-validation", "navigation-recommendations",
            "insight-generation", "validation-report", "quality-scoring",
        ]
        harness = Harness(responses=_one_artifact_each(*names))

        result = await harness.run("card-sorting", {})

        assert harness.steps.task_names == names
        assert [a.path for a in result.artifacts] == [f"{n}.md" for n in names]


class TestAnalyticsHeatmap:
    @pytest.mark.asyncio
    async def test_low_scores_raise_gates(self):
        harness = Harness()

        result = await harness.run("analytics-heatmap", {"projectName": "Shop"})

        assert harness.titles == [
            "Analytics Strategy Review",
            "Data Quality Gate",
            "Begin Data Collection Phase",
            "Heatmap Sample Size Review",
            "Final Analytics Review",
        ]
        assert result.sample_size_adequate is False
        assert result.quality_met is False

    @pytest.mark.asyncio
    async def test_healthy_run_skips_gates(self):
        harness = Harness(responses={
            "analytics-strategy": {"completenessScore": 70},
            "data-collection-validation": {"qualityScore": 80},
            "heatmap-generation": {"totalSessions": 1000},
            "quality-scoring": {"overallQualityScore": 90},
        })

        result = await harness.run("analytics-heatmap", {"projectName": "Shop"})

        assert harness.titles == ["Begin Data Collection Phase", "Final Analytics Review"]
        assert result.sample_size_adequate is True
        assert result.quality_met is True

    @pytest.mark.asyncio
    async def test_integration_issues_raise_checkpoint(self):
        harness = Harness(responses={
            "analytics-tool-setup": {"allToolsIntegrated": False, "failedTools": ["Mixpanel"]},
        })

        await harness.run("analytics-heatmap", {"projectName": "Shop"})

        assert "Tool Integration Status" in harness.titles
        request = harness.reviewer.requests[harness.titles.index("Tool Integration Status")]
        assert request.context["failed_tools"] == ["Mixpanel"]

    @pytest.mark.asyncio
    async def test_heatmap_analyses_join_in_submission_order(self):
        harness = Harness(
            responses={
                "click-heatmap-analysis": {"insights": ["c"], "artifacts": [{"path": "click.md"}]},
                "scroll-heatmap-analysis": {"insights": ["s"], "artifacts": [{"path": "scroll.md"}]},
                "move-heatmap-analysis": {"insights": ["m"], "artifacts": [{"path": "move.md"}]},
            },
            delays={
                "click-heatmap-analysis": 0.03,
                "scroll-heatmap-analysis": 0.01,
                "move-heatmap-analysis": 0.02,
            },
        )

        result = await harness.run("analytics-heatmap", {"projectName": "Shop"})

        assert [a.path for a in result.artifacts] == ["click.md", "scroll.md", "move.md"]
        assert result.heatmap_key_findings == ["c", "s", "m"]

    @pytest.mark.asyncio
    async def test_defaults(self):
        harness = Harness()
        await harness.run("analytics-heatmap", {"projectName": "Shop"})
        strategy_args = harness.steps.calls[0].args
        assert strategy_args["analytics_tools"] == ["Hotjar", "Google Analytics", "Mixpanel"]
        assert strategy_args["tracking_duration"] == "2 weeks"


class TestComponentLibrary:
    @pytest.mark.asyncio
    async def test_failed_strategy_returns_early(self):
        harness = Harness(responses={"design-system-strategy": {"success": False}})

        result = await harness.run("component-library", {"projectName": "Atlas"})

        assert result.success is False
        assert result.reason == "Design system strategy planning failed"
        assert "error" not in result.model_dump()
        assert harness.steps.task_names == ["design-system-strategy"]

    @pytest.mark.asyncio
    async def test_components_designed_in_parallel_batches(self):
        harness = Harness(responses={
            "color-system-design": {"accessibilityScore": 95},
            "component-inventory": {"components": [
                {"name": "Button", "category": "foundational"},
                {"name": "DataTable", "category": "complex"},
                {"name": "Input", "category": "foundational"},
            ]},
            "component-design": lambda inv: {"componentName": inv.args["component"]["name"]},
            "component-library-validation": {"validationScore": 92, "productionReady": True},
        })

        result = await harness.run("component-library", {"projectName": "Atlas"})

        designed = [
            c.args["component"]["name"] for c in harness.steps.calls if c.task == "component-design"
        ]
        assert designed == ["Button", "Input", "DataTable"]
        complex_call = harness.steps.calls[
            harness.steps.task_names.index("component-design") + 2
        ]
        assert complex_call.args["foundational_components"] == ["Button", "Input"]
        assert result.success is True
        assert result.production_ready is True
        assert result.foundational_components == 2
        assert result.complex_components == 1
        assert "Color Accessibility Review" not in harness.titles

    @pytest.mark.asyncio
    async def test_not_production_ready(self):
        harness = Harness()
        result = await harness.run("component-library", {"projectName": "Atlas"})
        assert result.success is False
        assert result.production_ready is False
        assert harness.titles[:2] == ["Design System Strategy Review", "Color Accessibility Review"]
        assert harness.titles[-1] == "Component Library Complete"

    @pytest.mark.asyncio
    async def test_critical_issues_raise_checkpoint(self):
        harness = Harness(responses={"accessibility-audit": {"criticalIssues": ["contrast"]}})
        await harness.run("component-library", {"projectName": "Atlas"})
        assert "Accessibility Compliance Gate" in harness.titles

    @pytest.mark.asyncio
    async def test_optional_icon_and_illustration_systems(self):
        harness = Harness()
        result = await harness.run(
            "component-library",
            {"projectName": "Atlas", "includeIcons": False, "includeIllustrations": False},
        )
        assert harness.steps.count("icon-system-design") == 0
        assert harness.steps.count("illustration-system-design") == 0
        assert result.icon_count is None


class TestDesignHandoff:
    @pytest.mark.asyncio
    async def test_ready_handoff(self):
        harness = Harness(responses={
            "design-readiness-assessment": {"readinessScore": 85},
            "handoff-quality-validation": {"validationScore": 80, "completeness": 95},
        })

        result = await harness.run("design-handoff", {"projectName": "Shop"})

        assert result.success is True
        assert result.handoff_ready is True
        assert harness.titles == [
            "Asset Export Review",
            "Handoff Package Review",
            "Design Handoff Complete",
        ]

    @pytest.mark.asyncio
    async def test_low_readiness_raises_gate(self):
        harness = Harness(responses={"design-readiness-assessment": {"readinessScore": 69}})

        result = await harness.run("design-handoff", {"projectName": "Shop"})

        assert harness.titles[0] == "Design Readiness Gate"
        assert harness.reviewer.requests[0].context["score"] == 69
        assert result.handoff_ready is False
        assert result.success is False

    @pytest.mark.asyncio
    async def test_asset_review_shows_first_five_assets(self):
        assets = [{"path": f"assets/icon-{i}.svg", "format": "svg"} for i in range(8)]
        harness = Harness(responses={"asset-export": {"totalAssets": 8, "artifacts": assets}})

        await harness.run("design-handoff", {"projectName": "Shop"})

        request = harness.reviewer.requests[harness.titles.index("Asset Export Review")]
        assert [f.path for f in request.files] == [f"assets/icon-{i}.svg" for i in range(5)]

    @pytest.mark.asyncio
    async def test_optional_steps_skipped(self):
        harness = Harness()
        result = await harness.run(
            "design-handoff",
            {"projectName": "Shop", "includePrototype": False, "includeAccessibilitySpecs": False},
        )
        assert harness.steps.count("prototype-demo-preparation") == 0
        assert harness.steps.count("accessibility-specifications") == 0
        assert result.prototype_url is None
        assert result.components_with_a11y is None


HEALTHY_JOURNEY = {
    "research-synthesis": {"synthesizedInsights": ["slow checkout"], "insightQualityScore": 80},
    "stages-definition": {"stages": [{"name": n} for n in ("Discover", "Compare", "Buy", "Use")]},
    "touchpoint-mapping": {"touchpointsByStage": [
        {"stage": "Discover", "touchpoints": list(range(6))},
        {"stage": "Buy", "touchpoints": list(range(4))},
    ]},
    "emotional-mapping": {"emotionalVariance": 3},
    "pain-points-analysis": {"totalPainPoints": 8},
    "opportunities-identification": {"totalOpportunities": 5},
}


class TestUserJourneyMapping:
    @pytest.mark.asyncio
    async def test_failed_research_returns_early(self):
        harness = Harness(responses={"research-synthesis": {"success": False}})

        result = await harness.run("user-journey-mapping", {})

        assert result.success is False
        assert result.reason == "Failed to synthesize research data"
        assert harness.steps.task_names == ["research-synthesis"]

    @pytest.mark.asyncio
    async def test_null_insights_returns_early(self):
        harness = Harness(responses={"research-synthesis": {"synthesizedInsights": None}})
        result = await harness.run("user-journey-mapping", {})
        assert result.success is False

    @pytest.mark.asyncio
    async def test_targets_met_skip_gates(self):
        harness = Harness(responses=HEALTHY_JOURNEY)

        result = await harness.run("user-journey-mapping", {"projectName": "Shop"})

        assert harness.titles == ["Final User Journey Mapping Review"]
        assert result.touchpoints == 10
        assert [s.name for s in result.stages] == ["Discover", "Compare", "Buy", "Use"]
        assert harness.steps.count("future-state-map") == 1
        assert harness.steps.count("service-blueprint") == 0
        assert result.backstage_processes is None

    @pytest.mark.asyncio
    async def test_missed_targets_raise_gates(self):
        harness = Harness()

        await harness.run("user-journey-mapping", {})

        assert harness.titles == [
            "Research Quality Review",
            "Journey Stages Review",
            "Touchpoint Coverage Review",
            "Emotional Journey Review",
            "Pain Points Coverage Review",
            "Opportunities Coverage Review",
            "Final User Journey Mapping Review",
        ]

    @pytest.mark.asyncio
    async def test_custom_quality_targets(self):
        harness = Harness(responses=HEALTHY_JOURNEY)

        await harness.run(
            "user-journey-mapping",
            {"qualityTargets": {"minPainPoints": 9, "minStages": 3}},
        )

        assert harness.titles == ["Pain Points Coverage Review", "Final User Journey Mapping Review"]

    @pytest.mark.asyncio
    async def test_service_blueprint(self):
        harness = Harness(responses={
            **HEALTHY_JOURNEY,
            "service-blueprint": {"backstageProcesses": 6},
        })
        result = await harness.run(
            "user-journey-mapping",
            {"includeServiceBlueprint": True, "includeFutureState": False},
        )
        assert harness.steps.count("future-state-map") == 0
        assert result.backstage_processes == 6
