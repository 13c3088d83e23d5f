"""Analytics integration and heatmap analysis.

Plans tracking, integrates analytics tools, validates data collection, then
analyses click/scroll/move heatmaps, sessions and funnels into optimisation
recommendations and an A/B test plan.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from designflow.execution.context import ProcessContext
from designflow.models.ledger import ArtifactLedger
from designflow.models.schemas import ProcessResult, StepOutput
from designflow.processes.base import ProcessInputs, elapsed_seconds, review_context
from designflow.processes.registry import register_process
from designflow.tasks.definition import define_task

PROCESS_ID = "specializations/ux-ui-design/analytics-heatmap"

STRATEGY_COMPLETENESS_THRESHOLD = 70
DATA_QUALITY_THRESHOLD = 80


class AnalyticsHeatmapInputs(ProcessInputs):
    website_url: str = ""
    analytics_tools: list[str] = Field(
        default_factory=lambda: ["Hotjar", "Google Analytics", "Mixpanel"]
    )
    tracking_goals: list[str] = Field(default_factory=list)
    business_metrics: dict[str, Any] = Field(default_factory=dict)
    conversion_funnels: list[Any] = Field(default_factory=list)
    key_pages: list[str] = Field(default_factory=list)
    user_segments: list[Any] = Field(default_factory=list)
    tracking_duration: str = "2 weeks"
    output_dir: str = "analytics-heatmap-output"
    minimum_sample_size: int = 1000
    quality_score_target: float = 85
    privacy_compliance: bool = True


# Step outputs


class AnalyticsStrategy(StepOutput):
    completeness_score: float | None = None
    selected_tools: list[str] = Field(default_factory=list)
    tracking_plan: dict[str, Any] = Field(default_factory=dict)
    missing_elements: list[str] = Field(default_factory=list)
    key_pages: list[str] = Field(default_factory=list)
    prioritized_funnels: list[Any] = Field(default_factory=list)
    target_segments: list[Any] = Field(default_factory=list)


class ToolSetup(StepOutput):
    all_tools_integrated: bool = True
    integrated_tools: list[str] = Field(default_factory=list)
    failed_tools: list[str] = Field(default_factory=list)
    integration_issues: list[str] = Field(default_factory=list)
    privacy_compliant: bool = True


class EventTracking(StepOutput):
    total_events: int = 0


class HeatmapConfig(StepOutput):
    configured_pages: list[str] = Field(default_factory=list)


class FunnelTracking(StepOutput):
    configured_funnels: list[Any] = Field(default_factory=list)


class DataValidation(StepOutput):
    quality_score: float = 0
    issues: list[str] = Field(default_factory=list)
    missing_data_points: list[str] = Field(default_factory=list)


class HeatmapGeneration(StepOutput):
    total_sessions: int = 0
    sessions_by_page: list[Any] = Field(default_factory=list)
    click_heatmaps: list[Any] = Field(default_factory=list)
    scroll_heatmaps: list[Any] = Field(default_factory=list)
    move_heatmaps: list[Any] = Field(default_factory=list)


class HeatmapAnalysis(StepOutput):
    insights: list[str] = Field(default_factory=list)


class SessionAnalysis(StepOutput):
    sessions_analyzed: int = 0
    patterns: list[Any] = Field(default_factory=list)
    usability_issues: list[Any] = Field(default_factory=list)
    key_findings: list[str] = Field(default_factory=list)


class FunnelAnalysis(StepOutput):
    analyzed_funnels: int = 0
    average_conversion_rate: float = 0
    critical_dropoff_points: list[Any] = Field(default_factory=list)


class FrictionAnalysis(StepOutput):
    friction_points: list[Any] = Field(default_factory=list)
    critical_issues: list[Any] = Field(default_factory=list)
    prioritized_issues: list[Any] = Field(default_factory=list)


class OptimizationRecommendations(StepOutput):
    recommendations: list[Any] = Field(default_factory=list)
    critical_recommendations: list[Any] = Field(default_factory=list)
    quick_wins: list[Any] = Field(default_factory=list)


class ABTestPlan(StepOutput):
    planned_tests: list[Any] = Field(default_factory=list)
    priority_tests: list[Any] = Field(default_factory=list)


class InsightsReport(StepOutput):
    report_path: str | None = None
    executive_summary_path: str | None = None


class QualityScore(StepOutput):
    overall_quality_score: float = 0


# Tasks

analytics_strategy_task = define_task(
    "analytics-strategy",
    "Analytics strategy and tracking plan",
    agent="ux-analytics-strategist",
    role="Senior UX analytics strategist",
    task="Define the analytics requirements, tool selection and tracking plan",
    output=AnalyticsStrategy,
    instructions=[
        "Map tracking goals to measurable events",
        "Prioritise conversion funnels and key pages",
        "Score the completeness of the strategy from 0 to 100",
    ],
    labels=["analytics", "planning"],
)

tool_setup_task = define_task(
    "analytics-tool-setup",
    "Analytics tool integration",
    agent="analytics-engineer",
    role="Analytics implementation engineer",
    task="Integrate the selected analytics, heatmap and session replay tools",
    output=ToolSetup,
    labels=["analytics", "setup"],
)

event_tracking_task = define_task(
    "event-tracking-implementation",
    "Custom event tracking",
    agent="analytics-engineer",
    role="Analytics implementation engineer",
    task="Implement custom event tracking and tagging for the tracking plan",
    output=EventTracking,
    labels=["analytics", "setup"],
)

heatmap_config_task = define_task(
    "heatmap-configuration",
    "Heatmap configuration",
    agent="analytics-engineer",
    role="Analytics implementation engineer",
    task="Configure click, scroll and move heatmaps for the key pages",
    output=HeatmapConfig,
    labels=["heatmap", "setup"],
)

funnel_tracking_task = define_task(
    "funnel-tracking-setup",
    "Conversion funnel tracking",
    agent="analytics-engineer",
    role="Analytics implementation engineer",
    task="Configure funnel tracking for the prioritised conversion funnels",
    output=FunnelTracking,
    labels=["funnel", "setup"],
)

data_validation_task = define_task(
    "data-collection-validation",
    "Data collection validation",
    agent="analytics-qa",
    role="Analytics QA specialist",
    task="Validate that every configured tool collects complete, accurate data",
    output=DataValidation,
    instructions=["Score overall data quality from 0 to 100"],
    labels=["analytics", "validation"],
)

heatmap_generation_task = define_task(
    "heatmap-generation",
    "Heatmap data collection",
    agent="heatmap-analyst",
    role="Heatmap analyst",
    task="Collect heatmap data and generate click, scroll and move visualisations",
    output=HeatmapGeneration,
    labels=["heatmap"],
)

click_analysis_task = define_task(
    "click-heatmap-analysis",
    "Click heatmap analysis",
    agent="heatmap-analyst",
    role="Heatmap analyst",
    task="Analyse click heatmaps for dead clicks, rage clicks and ignored CTAs",
    output=HeatmapAnalysis,
    labels=["heatmap", "analysis"],
)

scroll_analysis_task = define_task(
    "scroll-heatmap-analysis",
    "Scroll heatmap analysis",
    agent="heatmap-analyst",
    role="Heatmap analyst",
    task="Analyse scroll depth and fold placement of key content",
    output=HeatmapAnalysis,
    labels=["heatmap", "analysis"],
)

move_analysis_task = define_task(
    "move-heatmap-analysis",
    "Move heatmap analysis",
    agent="heatmap-analyst",
    role="Heatmap analyst",
    task="Analyse mouse movement for attention and hesitation patterns",
    output=HeatmapAnalysis,
    labels=["heatmap", "analysis"],
)

session_analysis_task = define_task(
    "session-replay-analysis",
    "Session replay analysis",
    agent="ux-researcher",
    role="UX researcher",
    task="Review session recordings for behaviour patterns and usability issues",
    output=SessionAnalysis,
    labels=["sessions", "analysis"],
)

funnel_analysis_task = define_task(
    "funnel-analysis",
    "Funnel and drop-off analysis",
    agent="conversion-analyst",
    role="Conversion rate analyst",
    task="Analyse conversion funnels and locate critical drop-off points",
    output=FunnelAnalysis,
    labels=["funnel", "analysis"],
)

friction_task = define_task(
    "ux-friction-identification",
    "UX friction identification",
    agent="ux-researcher",
    role="UX researcher",
    task="Combine heatmap, session and funnel evidence into prioritised friction points",
    output=FrictionAnalysis,
    labels=["analysis"],
)

optimization_task = define_task(
    "optimization-recommendations",
    "Optimisation recommendations",
    agent="conversion-analyst",
    role="Conversion rate analyst",
    task="Produce data-driven optimisation recommendations with estimated impact",
    output=OptimizationRecommendations,
    labels=["recommendations"],
)

ab_test_task = define_task(
    "ab-test-planning",
    "A/B test planning",
    agent="experimentation-lead",
    role="Experimentation lead",
    task="Plan A/B tests for the highest-impact recommendations",
    output=ABTestPlan,
    labels=["experimentation"],
)

report_task = define_task(
    "insights-report-generation",
    "Analytics insights report",
    agent="ux-analytics-strategist",
    role="Senior UX analytics strategist",
    task="Write the analytics and heatmap insights report with an executive summary",
    output=InsightsReport,
    labels=["report"],
)

quality_task = define_task(
    "quality-scoring",
    "Analysis quality scoring",
    agent="analytics-qa",
    role="Analytics QA specialist",
    task="Score the overall quality of the analysis from 0 to 100",
    output=QualityScore,
    labels=["validation"],
)


class AnalyticsHeatmapResult(ProcessResult):
    project_name: str
    website_url: str
    quality_score: float
    quality_met: bool
    tools_integrated: list[str] = Field(default_factory=list)
    events_tracked: int = 0
    data_quality_score: float = 0
    total_sessions: int = 0
    sample_size_adequate: bool = False
    heatmap_key_findings: list[str] = Field(default_factory=list)
    critical_dropoff_points: int = 0
    friction_points: int = 0
    recommendations: int = 0
    quick_wins: list[Any] = Field(default_factory=list)
    ab_tests_planned: int = 0
    report_path: str | None = None


@register_process(
    PROCESS_ID,
    inputs=AnalyticsHeatmapInputs,
    description="Analytics integration and heatmap analysis with data quality gates",
    references=["https://www.hotjar.com/heatmaps/", "https://www.nngroup.com/articles/scrolling-and-attention/"],
)
async def process(inputs: AnalyticsHeatmapInputs, ctx: ProcessContext) -> AnalyticsHeatmapResult:
    started_at = ctx.now()
    artifacts = ArtifactLedger()
    base = {"project_name": inputs.project_name, "output_dir": inputs.output_dir}

    ctx.log("info", f"Starting analytics and heatmap analysis for {inputs.project_name}")

    strategy = await ctx.task(analytics_strategy_task, {
        **base,
        "website_url": inputs.website_url,
        "analytics_tools": inputs.analytics_tools,
        "tracking_goals": inputs.tracking_goals,
        "business_metrics": inputs.business_metrics,
        "conversion_funnels": inputs.conversion_funnels,
        "key_pages": inputs.key_pages,
        "user_segments": inputs.user_segments,
        "tracking_duration": inputs.tracking_duration,
        "privacy_compliance": inputs.privacy_compliance,
    })
    artifacts = artifacts.record(strategy)

    await ctx.gate(
        strategy.completeness_score,
        STRATEGY_COMPLETENESS_THRESHOLD,
        title="Analytics Strategy Review",
        question=(
            f"Analytics strategy completeness: {strategy.completeness_score or 0}/100 "
            f"(below threshold of {STRATEGY_COMPLETENESS_THRESHOLD}). Approve to continue?"
        ),
        context={
            "tracking_plan": strategy.tracking_plan,
            "missing_elements": strategy.missing_elements,
        },
    )

    tool_setup = await ctx.task(tool_setup_task, {
        **base,
        "website_url": inputs.website_url,
        "analytics_tools": strategy.selected_tools or inputs.analytics_tools,
        "tracking_plan": strategy.tracking_plan,
        "privacy_compliance": inputs.privacy_compliance,
    })
    artifacts = artifacts.record(tool_setup)

    if not tool_setup.all_tools_integrated:
        await ctx.breakpoint(
            question=(
                f"{len(tool_setup.integrated_tools)}/{len(strategy.selected_tools)} analytics "
                "tools integrated. Review integration issues and continue?"
            ),
            title="Tool Integration Status",
            context={
                "run_id": ctx.run_id,
                "integrated_tools": tool_setup.integrated_tools,
                "failed_tools": tool_setup.failed_tools,
                "integration_issues": tool_setup.integration_issues,
            },
        )

    event_tracking = await ctx.task(event_tracking_task, {
        **base,
        "tracking_plan": strategy.tracking_plan,
        "conversion_funnels": strategy.prioritized_funnels,
        "key_pages": strategy.key_pages,
    })
    artifacts = artifacts.record(event_tracking)

    heatmap_config = await ctx.task(heatmap_config_task, {
        **base,
        "key_pages": strategy.key_pages,
        "tracking_duration": inputs.tracking_duration,
        "minimum_sample_size": inputs.minimum_sample_size,
    })
    artifacts = artifacts.record(heatmap_config)

    funnel_tracking = await ctx.task(funnel_tracking_task, {
        **base,
        "conversion_funnels": strategy.prioritized_funnels,
        "total_events": event_tracking.total_events,
    })
    artifacts = artifacts.record(funnel_tracking)

    validation = await ctx.task(data_validation_task, {
        **base,
        "integrated_tools": tool_setup.integrated_tools,
        "configured_pages": heatmap_config.configured_pages,
        "configured_funnels": funnel_tracking.configured_funnels,
    })
    artifacts = artifacts.record(validation)

    await ctx.gate(
        validation.quality_score,
        DATA_QUALITY_THRESHOLD,
        title="Data Quality Gate",
        question=(
            f"Data collection quality score: {validation.quality_score}/100 "
            f"(below threshold of {DATA_QUALITY_THRESHOLD}). Continue or fix issues?"
        ),
        context={
            "issues": validation.issues,
            "missing_data": validation.missing_data_points,
        },
    )

    await ctx.breakpoint(
        question=(
            f"Analytics tools configured and validated. Collection period: "
            f"{inputs.tracking_duration}. Proceed to data collection?"
        ),
        title="Begin Data Collection Phase",
        context=review_context(ctx, {
            "project_name": inputs.project_name,
            "tools_integrated": len(tool_setup.integrated_tools),
            "events_tracked": event_tracking.total_events,
            "heatmap_pages_configured": len(heatmap_config.configured_pages),
            "funnels_configured": len(funnel_tracking.configured_funnels),
            "data_quality_score": validation.quality_score,
        }),
        files=artifacts.as_files(),
    )

    heatmaps = await ctx.task(heatmap_generation_task, {
        **base,
        "configured_pages": heatmap_config.configured_pages,
        "minimum_sample_size": inputs.minimum_sample_size,
    })
    artifacts = artifacts.record(heatmaps)

    sample_size_adequate = heatmaps.total_sessions >= inputs.minimum_sample_size
    await ctx.gate(
        heatmaps.total_sessions,
        inputs.minimum_sample_size,
        title="Heatmap Sample Size Review",
        question=(
            f"Heatmap sample size: {heatmaps.total_sessions} sessions (minimum: "
            f"{inputs.minimum_sample_size}). Continue with available data?"
        ),
        context={"sessions_by_page": heatmaps.sessions_by_page},
    )

    click, scroll, move = await ctx.parallel_all([
        lambda: ctx.task(click_analysis_task, {
            **base, "heatmap_data": heatmaps.click_heatmaps, "key_pages": strategy.key_pages,
        }),
        lambda: ctx.task(scroll_analysis_task, {
            **base, "heatmap_data": heatmaps.scroll_heatmaps, "key_pages": strategy.key_pages,
        }),
        lambda: ctx.task(move_analysis_task, {
            **base, "heatmap_data": heatmaps.move_heatmaps, "key_pages": strategy.key_pages,
        }),
    ])
    artifacts = artifacts.record_all([click, scroll, move])
    heatmap_insights = {
        "click_insights": click.insights,
        "scroll_insights": scroll.insights,
        "move_insights": move.insights,
    }

    sessions = await ctx.task(session_analysis_task, {
        **base,
        "user_segments": strategy.target_segments,
        "heatmap_insights": heatmap_insights,
    })
    artifacts = artifacts.record(sessions)

    funnels = await ctx.task(funnel_analysis_task, {
        **base,
        "configured_funnels": funnel_tracking.configured_funnels,
        "session_findings": sessions.key_findings,
        "business_metrics": inputs.business_metrics,
    })
    artifacts = artifacts.record(funnels)

    friction = await ctx.task(friction_task, {
        **base,
        "heatmap_insights": heatmap_insights,
        "usability_issues": sessions.usability_issues,
        "dropoff_points": funnels.critical_dropoff_points,
    })
    artifacts = artifacts.record(friction)

    optimization = await ctx.task(optimization_task, {
        **base,
        "friction_points": friction.prioritized_issues,
        "dropoff_points": funnels.critical_dropoff_points,
        "business_metrics": inputs.business_metrics,
    })
    artifacts = artifacts.record(optimization)

    ab_tests = await ctx.task(ab_test_task, {
        **base,
        "recommendations": optimization.critical_recommendations,
        "friction_points": friction.prioritized_issues,
    })
    artifacts = artifacts.record(ab_tests)

    report = await ctx.task(report_task, {
        **base,
        "website_url": inputs.website_url,
        "heatmap_insights": heatmap_insights,
        "session_findings": sessions.key_findings,
        "recommendations": optimization.recommendations,
        "planned_tests": ab_tests.planned_tests,
    })
    artifacts = artifacts.record(report)

    scoring = await ctx.task(quality_task, {
        **base,
        "total_sessions": heatmaps.total_sessions,
        "minimum_sample_size": inputs.minimum_sample_size,
        "quality_score_target": inputs.quality_score_target,
        "report_path": report.report_path,
    })
    artifacts = artifacts.record(scoring)

    quality_score = scoring.overall_quality_score
    quality_met = quality_score >= inputs.quality_score_target

    await ctx.breakpoint(
        question=(
            f"Analytics and heatmap analysis complete for {inputs.project_name}. "
            f"Quality score: {quality_score}/100. Review insights and approve?"
        ),
        title="Final Analytics Review",
        context=review_context(ctx, {
            "project_name": inputs.project_name,
            "quality_score": quality_score,
            "quality_met": quality_met,
            "total_sessions": heatmaps.total_sessions,
            "funnels_analyzed": funnels.analyzed_funnels,
            "critical_insights": len(optimization.critical_recommendations),
            "ab_tests_planned": len(ab_tests.planned_tests),
        }),
        files=artifacts.as_files(),
    )

    return AnalyticsHeatmapResult(
        project_name=inputs.project_name,
        website_url=inputs.website_url,
        quality_score=quality_score,
        quality_met=quality_met,
        tools_integrated=tool_setup.integrated_tools,
        events_tracked=event_tracking.total_events,
        data_quality_score=validation.quality_score,
        total_sessions=heatmaps.total_sessions,
        sample_size_adequate=sample_size_adequate,
        heatmap_key_findings=click.insights[:5] + scroll.insights[:5] + move.insights[:5],
        critical_dropoff_points=len(funnels.critical_dropoff_points),
        friction_points=len(friction.friction_points),
        recommendations=len(optimization.recommendations),
        quick_wins=optimization.quick_wins,
        ab_tests_planned=len(ab_tests.planned_tests),
        report_path=report.report_path,
        artifacts=artifacts.to_list(),
        duration_seconds=elapsed_seconds(ctx, started_at),
        metadata=ctx.metadata(started_at, inputs.model_dump()),
    )
