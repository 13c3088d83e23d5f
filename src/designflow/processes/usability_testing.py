"""Usability testing.

Plans the study, recruits participants, runs moderated sessions in parallel
and/or an unmoderated study, then synthesises observations, metrics, issues
and a System Usability Scale score into a report.

The test plan is the only gate that ends the process early: if the planning
step does not approve its own plan, nothing else runs.
"""

from __future__ import annotations

import math
from typing import Any, Literal

from pydantic import BaseModel, Field

from designflow.execution.context import ProcessContext
from designflow.models.ledger import ArtifactLedger
from designflow.models.schemas import CAMEL_CONFIG, ProcessFailure, ProcessResult, StepOutput
from designflow.processes.base import ProcessInputs, early_failure, elapsed_seconds, review_context
from designflow.processes.registry import register_process
from designflow.tasks.definition import define_task

PROCESS_ID = "specializations/ux-ui-design/usability-testing"

PLAN_REJECTED_REASON = "Test plan quality insufficient"

TestingType = Literal["moderated", "unmoderated", "hybrid"]


class UsabilityTestingInputs(ProcessInputs):
    product_type: str = ""
    testing_goals: list[str] = Field(default_factory=list)
    prototype_fidelity: str = "high-fidelity"
    participant_count: int = Field(default=8, ge=1)
    testing_type: TestingType = "moderated"
    output_dir: str = "usability-testing-output"
    minimum_usability_score: float = 68
    include_accessibility_testing: bool = False
    target_task_success_rate: float = 80


class Participant(BaseModel):
    model_config = CAMEL_CONFIG

    id: str = ""
    name: str = ""
    testing_type: str | None = None


class StudyPlan(StepOutput):
    plan_approved: bool = True
    recommendations: list[str] = Field(default_factory=list)
    testing_type: str | None = None
    refined_testing_goals: list[str] = Field(default_factory=list)
    participant_criteria: list[str] = Field(default_factory=list)
    screener_questions: list[str] = Field(default_factory=list)
    incentive_amount: float | None = None
    estimated_duration: str | None = None


class Recruitment(StepOutput):
    confirmed_participants: list[Participant] = Field(default_factory=list)
    diversity_score: float | None = None


class TaskScenarios(StepOutput):
    scenarios: list[Any] = Field(default_factory=list)


class SessionProtocol(StepOutput):
    think_aloud_instructions: str = ""


class PilotTest(StepOutput):
    issues_found: int = 0
    adjustments_made: list[str] = Field(default_factory=list)


class ModeratedSession(StepOutput):
    session_number: int = 0
    task_success_rate: float | None = None
    observations: list[Any] = Field(default_factory=list)


class UnmoderatedResults(StepOutput):
    participant_count: int = 0
    completion_rate: float | None = None


class ObservationSynthesis(StepOutput):
    total_observations: int = 0
    behavioral_patterns: list[Any] = Field(default_factory=list)
    confusion_points: list[Any] = Field(default_factory=list)
    positive_observations: list[Any] = Field(default_factory=list)


class MetricsAnalysis(StepOutput):
    overall_task_success_rate: float = 0
    average_time_on_task: float | None = None
    average_error_rate: float | None = None
    satisfaction_score: float | None = None


class IssueIdentification(StepOutput):
    total_issues: int = 0
    critical_issues: list[Any] = Field(default_factory=list)
    high_issues: list[Any] = Field(default_factory=list)
    medium_issues: list[Any] = Field(default_factory=list)
    low_issues: list[Any] = Field(default_factory=list)


class FindingsSynthesis(StepOutput):
    key_findings: list[str] = Field(default_factory=list)
    insights: list[str] = Field(default_factory=list)


class UsabilityScoring(StepOutput):
    sus_score: float = 0
    grade: str = ""


class Recommendations(StepOutput):
    recommendations: list[Any] = Field(default_factory=list)
    prioritized_recommendations: list[Any] = Field(default_factory=list)
    quick_wins: list[Any] = Field(default_factory=list)


class AccessibilityFindings(StepOutput):
    issues_found: int = 0
    wcag_compliance_level: str = ""


class StudyReport(StepOutput):
    report_path: str | None = None
    executive_summary: str = ""


_RESEARCHER = dict(agent="usability-researcher", role="Senior usability researcher")

test_planning_task = define_task(
    "test-planning", "Usability test plan", **_RESEARCHER,
    task="Plan the usability test: objectives, method, participants and success criteria",
    output=StudyPlan,
    instructions=["Set planApproved to false and list recommendations if the plan is not ready"],
    labels=["planning"],
)
recruitment_task = define_task(
    "participant-recruitment", "Participant recruitment", **_RESEARCHER,
    task="Recruit and screen participants; tag each with the testing type they join",
    output=Recruitment, labels=["recruitment"],
)
scenarios_task = define_task(
    "task-scenario-design", "Task scenarios", **_RESEARCHER,
    task="Design realistic task scenarios with success criteria",
    output=TaskScenarios, labels=["planning"],
)
protocol_task = define_task(
    "test-protocol-preparation", "Test protocol", **_RESEARCHER,
    task="Prepare the moderator script, think-aloud instructions and materials",
    output=SessionProtocol, labels=["planning"],
)
pilot_task = define_task(
    "pilot-testing", "Pilot test", **_RESEARCHER,
    task="Run a pilot session and adjust the protocol",
    output=PilotTest, labels=["sessions"],
)
moderated_session_task = define_task(
    "moderated-testing-session", "Moderated session",
    agent="usability-moderator", role="Usability test moderator",
    task="Run one moderated think-aloud session and record observations and task outcomes",
    output=ModeratedSession, labels=["sessions"],
)
unmoderated_task = define_task(
    "unmoderated-testing", "Unmoderated testing",
    agent="usability-moderator", role="Remote testing specialist",
    task="Run the unmoderated remote study and collect task metrics",
    output=UnmoderatedResults, labels=["sessions"],
)
observation_task = define_task(
    "observation-synthesis", "Observation synthesis", **_RESEARCHER,
    task="Synthesise observations into behavioural patterns and confusion points",
    output=ObservationSynthesis, labels=["analysis"],
)
metrics_task = define_task(
    "success-metrics-analysis", "Success metrics",
    agent="usability-analyst", role="Quantitative UX analyst",
    task="Compute task success, time on task, error rate and satisfaction",
    output=MetricsAnalysis, labels=["analysis"],
)
issues_task = define_task(
    "issue-identification", "Usability issues", **_RESEARCHER,
    task="Identify usability issues and rate each by severity",
    output=IssueIdentification, labels=["analysis"],
)
findings_task = define_task(
    "findings-synthesis", "Findings synthesis", **_RESEARCHER,
    task="Synthesise key findings and insights against the testing goals",
    output=FindingsSynthesis, labels=["synthesis"],
)
scoring_task = define_task(
    "usability-scoring", "SUS scoring",
    agent="usability-analyst", role="Quantitative UX analyst",
    task="Calculate the System Usability Scale score and letter grade",
    output=UsabilityScoring, labels=["scoring"],
)
recommendations_task = define_task(
    "recommendations-generation", "Recommendations", **_RESEARCHER,
    task="Generate prioritised recommendations: quick wins, short and long term",
    output=Recommendations, labels=["recommendations"],
)
accessibility_task = define_task(
    "accessibility-analysis", "Accessibility findings",
    agent="accessibility-specialist", role="Accessibility specialist",
    task="Extract accessibility findings from the sessions and map them to WCAG",
    output=AccessibilityFindings, labels=["accessibility"],
)
report_task = define_task(
    "test-report-generation", "Usability test report", **_RESEARCHER,
    task="Write the usability test report with an executive summary",
    output=StudyReport, labels=["report"],
)


class UsabilityTestingResult(ProcessResult):
    project_name: str
    usability_score: float = 0
    usability_grade: str = ""
    passed_threshold: bool = False
    testing_type: TestingType = "moderated"
    task_count: int = 0
    participants_recruited: int = 0
    moderated_sessions: int = 0
    unmoderated_sessions: int = 0
    task_success_rate: float = 0
    satisfaction_score: float | None = None
    total_issues: int = 0
    critical_issues: int = 0
    key_findings: list[str] = Field(default_factory=list)
    top_recommendations: list[Any] = Field(default_factory=list)
    quick_wins: list[Any] = Field(default_factory=list)
    accessibility_issues: int | None = None
    report_path: str | None = None


def moderated_participants(
    participants: list[Participant], participant_count: int, testing_type: str
) -> list[Participant]:
    """Participants booked into moderated sessions.

    A hybrid study gives half of the target count to moderated sessions.
    """
    limit = math.ceil(participant_count / (2 if testing_type == "hybrid" else 1))
    return [p for p in participants if p.testing_type == "moderated"][:limit]


@register_process(
    PROCESS_ID,
    inputs=UsabilityTestingInputs,
    description="Moderated, unmoderated or hybrid usability testing with SUS scoring",
    references=["https://www.nngroup.com/articles/usability-testing-101/", "https://measuringu.com/sus/"],
)
async def process(
    inputs: UsabilityTestingInputs, ctx: ProcessContext
) -> UsabilityTestingResult | ProcessFailure:
    started_at = ctx.now()
    artifacts = ArtifactLedger()
    base = {"project_name": inputs.project_name, "output_dir": inputs.output_dir}

    ctx.log("info", f"Starting usability testing for {inputs.project_name}")

    plan = await ctx.task(test_planning_task, {
        **base,
        "product_type": inputs.product_type,
        "testing_goals": inputs.testing_goals,
        "prototype_fidelity": inputs.prototype_fidelity,
        "participant_count": inputs.participant_count,
        "testing_type": inputs.testing_type,
        "include_accessibility_testing": inputs.include_accessibility_testing,
        "target_task_success_rate": inputs.target_task_success_rate,
    })
    artifacts = artifacts.record(plan)

    if not plan.plan_approved:
        return early_failure(ctx, started_at, inputs, PLAN_REJECTED_REASON, plan.recommendations)

    goals = plan.refined_testing_goals

    recruitment = await ctx.task(recruitment_task, {
        **base,
        "participant_criteria": plan.participant_criteria,
        "participant_count": inputs.participant_count,
        "screener_questions": plan.screener_questions,
        "testing_type": inputs.testing_type,
        "incentive_amount": plan.incentive_amount,
    })
    artifacts = artifacts.record(recruitment)
    participants = recruitment.confirmed_participants

    scenarios = await ctx.task(scenarios_task, {
        **base,
        "product_type": inputs.product_type,
        "testing_goals": goals,
        "prototype_fidelity": inputs.prototype_fidelity,
        "target_task_success_rate": inputs.target_task_success_rate,
    })
    protocol = await ctx.task(protocol_task, {
        **base,
        "testing_type": inputs.testing_type,
        "task_scenarios": scenarios.scenarios,
        "testing_goals": goals,
        "include_accessibility_testing": inputs.include_accessibility_testing,
    })
    pilot = await ctx.task(pilot_task, {
        **base,
        "task_scenarios": scenarios.scenarios,
        "testing_type": inputs.testing_type,
    })
    artifacts = artifacts.record(scenarios, protocol, pilot)

    await ctx.breakpoint(
        question=(
            f"Pilot test complete. {pilot.issues_found} issues identified. "
            "Review pilot findings and approve the test protocol?"
        ),
        title="Pilot Test Review",
        context=review_context(ctx, {
            "project_name": inputs.project_name,
            "testing_type": inputs.testing_type,
            "participants_recruited": len(participants),
            "task_count": len(scenarios.scenarios),
            "pilot_issues": pilot.issues_found,
            "adjustments_made": pilot.adjustments_made,
        }),
        files=artifacts.as_files(),
    )

    sessions: list[ModeratedSession] = []
    if inputs.testing_type in ("moderated", "hybrid"):
        booked = moderated_participants(participants, inputs.participant_count, inputs.testing_type)

        def session(number: int, participant: Participant):
            return lambda: ctx.task(moderated_session_task, {
                **base,
                "session_number": number,
                "participant": participant.model_dump(),
                "task_scenarios": scenarios.scenarios,
                "think_aloud_protocol": protocol.think_aloud_instructions,
            })

        sessions = await ctx.parallel_all(
            [session(number, p) for number, p in enumerate(booked, start=1)]
        )
        artifacts = artifacts.record_all(sessions)

    unmoderated: UnmoderatedResults | None = None
    if inputs.testing_type in ("unmoderated", "hybrid"):
        unmoderated = await ctx.task(unmoderated_task, {
            **base,
            "participants": [
                p.model_dump() for p in participants
                if p.testing_type in (None, "unmoderated")
            ],
            "task_scenarios": scenarios.scenarios,
        })
        artifacts = artifacts.record(unmoderated)

    session_results = {
        "moderated_results": {
            "session_count": len(sessions),
            "sessions": [s.model_dump() for s in sessions],
        } if sessions else None,
        "unmoderated_results": unmoderated.model_dump() if unmoderated else None,
    }

    observations = await ctx.task(observation_task, {
        **base, **session_results, "task_scenarios": scenarios.scenarios, "testing_goals": goals,
    })
    metrics = await ctx.task(metrics_task, {
        **base,
        **session_results,
        "target_task_success_rate": inputs.target_task_success_rate,
        "behavioral_patterns": observations.behavioral_patterns,
    })
    issues = await ctx.task(issues_task, {
        **base,
        "confusion_points": observations.confusion_points,
        "task_success_rate": metrics.overall_task_success_rate,
        "testing_goals": goals,
    })
    findings = await ctx.task(findings_task, {
        **base,
        "behavioral_patterns": observations.behavioral_patterns,
        "total_issues": issues.total_issues,
        "testing_goals": goals,
    })
    scoring = await ctx.task(scoring_task, {
        **base,
        **session_results,
        "minimum_usability_score": inputs.minimum_usability_score,
    })
    artifacts = artifacts.record(observations, metrics, issues, findings, scoring)

    usability_score = scoring.sus_score
    passed_threshold = usability_score >= inputs.minimum_usability_score

    recommendations = await ctx.task(recommendations_task, {
        **base,
        "critical_issues": issues.critical_issues,
        "key_findings": findings.key_findings,
        "usability_score": usability_score,
        "testing_goals": goals,
    })
    artifacts = artifacts.record(recommendations)

    accessibility: AccessibilityFindings | None = None
    if inputs.include_accessibility_testing:
        accessibility = await ctx.task(accessibility_task, {
            **base,
            "moderated_results": session_results["moderated_results"],
            "confusion_points": observations.confusion_points,
            "total_issues": issues.total_issues,
        })
        artifacts = artifacts.record(accessibility)

    report = await ctx.task(report_task, {
        **base,
        "usability_score": usability_score,
        "usability_grade": scoring.grade,
        "key_findings": findings.key_findings,
        "recommendations": recommendations.prioritized_recommendations,
        "accessibility_issues": accessibility.issues_found if accessibility else None,
    })
    artifacts = artifacts.record(report)

    unmoderated_count = unmoderated.participant_count if unmoderated else 0
    await ctx.breakpoint(
        question=(
            f"Usability testing complete for {inputs.project_name}. SUS score: "
            f"{usability_score}/100 ({scoring.grade}). {len(issues.critical_issues)} critical "
            "issues found. Review results and approve the report?"
        ),
        title="Usability Test Results Review",
        context=review_context(ctx, {
            "project_name": inputs.project_name,
            "usability_score": usability_score,
            "usability_grade": scoring.grade,
            "passed_threshold": passed_threshold,
            "participant_count": len(sessions) + unmoderated_count,
            "task_success_rate": metrics.overall_task_success_rate,
            "critical_issues": len(issues.critical_issues),
            "total_issues": issues.total_issues,
            "top_recommendations": recommendations.prioritized_recommendations[:3],
        }),
        files=artifacts.as_files(),
    )

    return UsabilityTestingResult(
        project_name=inputs.project_name,
        usability_score=usability_score,
        usability_grade=scoring.grade,
        passed_threshold=passed_threshold,
        testing_type=inputs.testing_type,
        task_count=len(scenarios.scenarios),
        participants_recruited=len(participants),
        moderated_sessions=len(sessions),
        unmoderated_sessions=unmoderated_count,
        task_success_rate=metrics.overall_task_success_rate,
        satisfaction_score=metrics.satisfaction_score,
        total_issues=issues.total_issues,
        critical_issues=len(issues.critical_issues),
        key_findings=findings.key_findings,
        top_recommendations=recommendations.prioritized_recommendations[:3],
        quick_wins=recommendations.quick_wins,
        accessibility_issues=accessibility.issues_found if accessibility else None,
        report_path=report.report_path,
        artifacts=artifacts.to_list(),
        duration_seconds=elapsed_seconds(ctx, started_at),
        metadata=ctx.metadata(started_at, inputs.model_dump()),
    )
