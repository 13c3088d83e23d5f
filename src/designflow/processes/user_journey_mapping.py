"""User journey mapping.

Synthesises research into journey stages, touchpoints, actions, emotions,
pain points and opportunities, then draws current and future state maps.
Each coverage count is checked against ``quality_targets`` and a shortfall
raises a review checkpoint.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from designflow.execution.context import ProcessContext
from designflow.models.ledger import ArtifactLedger
from designflow.models.schemas import CAMEL_CONFIG, CheckpointFile, ProcessFailure, ProcessResult, StepOutput
from designflow.processes.base import INPUTS_CONFIG, ProcessInputs, early_failure, elapsed_seconds, review_context
from designflow.processes.registry import register_process
from designflow.tasks.definition import define_task

PROCESS_ID = "specializations/ux-ui-design/user-journey-mapping"

INSIGHT_QUALITY_THRESHOLD = 70


class QualityTargets(BaseModel):
    model_config = INPUTS_CONFIG

    min_pain_points: int = 8
    min_opportunities: int = 5
    min_touchpoints: int = 10
    # range of emotions on a 1-10 scale
    emotional_variance_threshold: float = 3
    min_stages: int = 4


class UserJourneyMappingInputs(ProcessInputs):
    project_name: str = "Product"
    personas: list[dict[str, Any]] = Field(default_factory=list)
    research_data: dict[str, Any] = Field(default_factory=dict)
    journey_scope: Literal["end-to-end", "specific-task", "day-in-life"] = "end-to-end"
    target_persona: str | None = None
    tools: list[str] = Field(default_factory=lambda: ["Miro", "Figma"])
    quality_targets: QualityTargets = Field(default_factory=QualityTargets)
    output_dir: str = "user-journey-mapping-output"
    include_service_blueprint: bool = False
    include_future_state: bool = True

    def persona(self) -> str | None:
        if self.target_persona:
            return self.target_persona
        if self.personas:
            return self.personas[0].get("name")
        return None


class JourneyStage(BaseModel):
    model_config = CAMEL_CONFIG

    name: str
    description: str = ""


class StageTouchpoints(BaseModel):
    model_config = CAMEL_CONFIG

    stage: str
    touchpoints: list[Any] = Field(default_factory=list)


class ResearchSynthesis(StepOutput):
    success: bool = True
    synthesized_insights: list[Any] | None = Field(default_factory=list)
    insight_quality_score: float | None = None
    data_sources_covered: list[str] = Field(default_factory=list)
    missing_data: list[str] = Field(default_factory=list)


class StagesDefinition(StepOutput):
    stages: list[JourneyStage] = Field(default_factory=list)


class TouchpointMapping(StepOutput):
    touchpoints_by_stage: list[StageTouchpoints] = Field(default_factory=list)
    touchpoints_by_channel: dict[str, Any] = Field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(len(s.touchpoints) for s in self.touchpoints_by_stage)


class ActionsDocumentation(StepOutput):
    total_actions: int = 0
    actions_by_stage: list[Any] = Field(default_factory=list)


class EmotionalMapping(StepOutput):
    emotional_variance: float | None = None
    emotional_curve: list[Any] = Field(default_factory=list)
    emotional_high_points: list[Any] = Field(default_factory=list)
    emotional_low_points: list[Any] = Field(default_factory=list)
    thoughts_by_stage: list[Any] = Field(default_factory=list)


class PainPoints(StepOutput):
    total_pain_points: int = 0
    all_pain_points: list[Any] = Field(default_factory=list)
    pain_points_by_severity: dict[str, Any] = Field(default_factory=dict)
    top_pain_points: list[Any] = Field(default_factory=list)
    pain_points_report_path: str | None = None


class Opportunities(StepOutput):
    total_opportunities: int = 0
    all_opportunities: list[Any] = Field(default_factory=list)
    top_opportunities: list[Any] = Field(default_factory=list)
    opportunities_report_path: str | None = None


class JourneyMap(StepOutput):
    journey_map_path: str | None = None
    journey_map_data: dict[str, Any] = Field(default_factory=dict)
    improvements_applied: int = 0


class ServiceBlueprint(StepOutput):
    backstage_processes: int = 0
    support_processes: int = 0


class Prioritization(StepOutput):
    quick_wins: int = 0
    strategic_bets: int = 0
    priority_roadmap: list[Any] = Field(default_factory=list)
    prioritization_matrix_path: str | None = None


class FinalAssessment(StepOutput):
    assessment: str = ""
    recommendation: str = ""
    next_steps: list[str] = Field(default_factory=list)
    executive_summary_path: str | None = None


_RESEARCHER = dict(agent="journey-mapping-researcher", role="Senior UX researcher specialising in journey mapping")

research_synthesis_task = define_task(
    "research-synthesis", "Research synthesis", **_RESEARCHER,
    task="Synthesise research data into journey insights and score their quality from 0 to 100",
    output=ResearchSynthesis,
    instructions=["Set success to false if the research data cannot support a journey map"],
    labels=["research"],
)
stages_task = define_task(
    "stages-definition", "Journey stages", **_RESEARCHER,
    task="Define the stages of the journey for the target persona",
    output=StagesDefinition, labels=["structure"],
)
touchpoints_task = define_task(
    "touchpoint-mapping", "Touchpoint mapping", **_RESEARCHER,
    task="List every digital and physical touchpoint per stage",
    output=TouchpointMapping, labels=["structure"],
)
actions_task = define_task(
    "actions-documentation", "User actions", **_RESEARCHER,
    task="Document what the user does at each touchpoint",
    output=ActionsDocumentation, labels=["structure"],
)
emotions_task = define_task(
    "emotional-mapping", "Thoughts and emotions", **_RESEARCHER,
    task="Map thoughts and an emotional curve on a 1-10 scale across the stages",
    output=EmotionalMapping, labels=["emotions"],
)
pain_points_task = define_task(
    "pain-points-analysis", "Pain points", **_RESEARCHER,
    task="Identify and rank pain points by severity and stage",
    output=PainPoints, labels=["analysis"],
)
opportunities_task = define_task(
    "opportunities-identification", "Opportunities", **_RESEARCHER,
    task="Turn pain points and emotional lows into improvement opportunities",
    output=Opportunities, labels=["analysis"],
)
current_state_task = define_task(
    "current-state-map", "Current state journey map",
    agent="journey-map-designer", role="Service designer",
    task="Draw the current state journey map",
    output=JourneyMap, labels=["map"],
)
future_state_task = define_task(
    "future-state-map", "Future state journey map",
    agent="journey-map-designer", role="Service designer",
    task="Draw the future state journey map with the prioritised improvements applied",
    output=JourneyMap, labels=["map"],
)
blueprint_task = define_task(
    "service-blueprint", "Service blueprint",
    agent="journey-map-designer", role="Service designer",
    task="Extend the current state map with backstage and support processes",
    output=ServiceBlueprint, labels=["map"],
)
prioritization_task = define_task(
    "prioritization", "Improvement prioritisation", **_RESEARCHER,
    task="Place opportunities on an effort/impact matrix into quick wins and strategic bets",
    output=Prioritization, labels=["prioritization"],
)
final_assessment_task = define_task(
    "final-assessment", "Final assessment", **_RESEARCHER,
    task="Assess the deliverables against the quality targets and write an executive summary",
    output=FinalAssessment, labels=["validation"],
)


class UserJourneyMappingResult(ProcessResult):
    journey_maps_created: int = 0
    stages: list[JourneyStage] = Field(default_factory=list)
    touchpoints: int = 0
    pain_points_identified: int = 0
    top_pain_points: list[Any] = Field(default_factory=list)
    opportunities_count: int = 0
    top_opportunities: list[Any] = Field(default_factory=list)
    emotional_variance: float = 0
    quick_wins: int = 0
    strategic_bets: int = 0
    backstage_processes: int | None = None
    recommendation: str = ""
    next_steps: list[str] = Field(default_factory=list)


@register_process(
    PROCESS_ID,
    inputs=UserJourneyMappingInputs,
    description="User journey mapping from research synthesis to prioritised improvements",
    references=["https://www.nngroup.com/articles/journey-mapping-101/"],
)
async def process(
    inputs: UserJourneyMappingInputs, ctx: ProcessContext
) -> UserJourneyMappingResult | ProcessFailure:
    started_at = ctx.now()
    artifacts = ArtifactLedger()
    targets = inputs.quality_targets
    base = {"product": inputs.project_name, "output_dir": inputs.output_dir}
    maps_created = 0

    ctx.log("info", f"Starting user journey mapping for {inputs.project_name}")
    ctx.log("info", f"Scope: {inputs.journey_scope}, target: {inputs.persona() or 'All personas'}")

    research = await ctx.task(research_synthesis_task, {
        **base,
        "personas": inputs.personas,
        "research_data": inputs.research_data,
        "journey_scope": inputs.journey_scope,
        "target_persona": inputs.target_persona,
    })
    if not research.success or research.synthesized_insights is None:
        return early_failure(
            ctx, started_at, inputs,
            "Failed to synthesize research data",
            research=research.model_dump(),
        )
    artifacts = artifacts.record(research)
    insights = research.synthesized_insights

    await ctx.gate(
        research.insight_quality_score,
        INSIGHT_QUALITY_THRESHOLD,
        title="Research Quality Review",
        question=(
            f"Research synthesis quality: {research.insight_quality_score or 0}%. "
            "Approve to continue or provide additional research?"
        ),
        context={
            "data_sources_covered": research.data_sources_covered,
            "missing_data": research.missing_data,
        },
    )

    stages = await ctx.task(stages_task, {
        **base,
        "journey_scope": inputs.journey_scope,
        "target_persona": inputs.persona(),
        "synthesized_insights": insights,
        "quality_targets": targets.model_dump(),
    })
    artifacts = artifacts.record(stages)
    stage_names = [s.name for s in stages.stages]

    await ctx.gate(
        len(stages.stages),
        targets.min_stages,
        title="Journey Stages Review",
        question=(
            f"Only {len(stages.stages)} stages defined; minimum recommended is "
            f"{targets.min_stages}. Approve stages?"
        ),
    )
    ctx.log("info", f"{len(stages.stages)} stages defined for {inputs.journey_scope} journey")

    touchpoints = await ctx.task(touchpoints_task, {
        **base, "stages": stage_names, "synthesized_insights": insights,
    })
    artifacts = artifacts.record(touchpoints)
    total_touchpoints = touchpoints.total

    await ctx.gate(
        total_touchpoints,
        targets.min_touchpoints,
        title="Touchpoint Coverage Review",
        question=(
            f"Only {total_touchpoints} touchpoints identified; minimum recommended is "
            f"{targets.min_touchpoints}. Continue or add more touchpoints?"
        ),
        context={"touchpoints_by_stage": [t.model_dump() for t in touchpoints.touchpoints_by_stage]},
    )

    actions = await ctx.task(actions_task, {
        **base,
        "stages": stage_names,
        "touchpoints": [t.model_dump() for t in touchpoints.touchpoints_by_stage],
    })
    artifacts = artifacts.record(actions)
    ctx.log("info", f"{actions.total_actions} user actions documented across journey")

    emotions = await ctx.task(emotions_task, {
        **base, "stages": stage_names, "actions": actions.actions_by_stage,
    })
    artifacts = artifacts.record(emotions)

    await ctx.gate(
        emotions.emotional_variance,
        targets.emotional_variance_threshold,
        title="Emotional Journey Review",
        question=(
            f"Emotional variance is {emotions.emotional_variance or 0} (scale 1-10). "
            "Low variance may miss critical pain or delight moments. Review emotional mapping?"
        ),
        context={
            "emotional_curve": emotions.emotional_curve,
            "low_points": emotions.emotional_low_points,
        },
    )

    pain_points = await ctx.task(pain_points_task, {
        **base,
        "stages": stage_names,
        "emotions": emotions.emotional_curve,
        "synthesized_insights": insights,
    })
    artifacts = artifacts.record(pain_points)

    await ctx.gate(
        pain_points.total_pain_points,
        targets.min_pain_points,
        title="Pain Points Coverage Review",
        question=(
            f"Only {pain_points.total_pain_points} pain points identified; minimum "
            f"recommended is {targets.min_pain_points}. Review pain points and approve?"
        ),
        context={"top_pain_points": pain_points.top_pain_points},
    )

    opportunities = await ctx.task(opportunities_task, {
        **base,
        "pain_points": pain_points.all_pain_points,
        "emotional_low_points": emotions.emotional_low_points,
    })
    artifacts = artifacts.record(opportunities)

    await ctx.gate(
        opportunities.total_opportunities,
        targets.min_opportunities,
        title="Opportunities Coverage Review",
        question=(
            f"Only {opportunities.total_opportunities} opportunities identified; minimum "
            f"recommended is {targets.min_opportunities}. Review and approve?"
        ),
        context={"top_opportunities": opportunities.top_opportunities},
    )

    current = await ctx.task(current_state_task, {
        **base,
        "persona": inputs.persona(),
        "stages": stage_names,
        "emotions": emotions.emotional_curve,
        "thoughts": emotions.thoughts_by_stage,
        "pain_points": pain_points.all_pain_points,
        "opportunities": opportunities.all_opportunities,
        "tools": inputs.tools,
    })
    artifacts = artifacts.record(current)
    maps_created += 1

    future: JourneyMap | None = None
    if inputs.include_future_state:
        future = await ctx.task(future_state_task, {
            **base,
            "persona": inputs.persona(),
            "current_state_map": current.journey_map_data,
            "prioritized_improvements": opportunities.top_opportunities,
            "tools": inputs.tools,
        })
        artifacts = artifacts.record(future)
        maps_created += 1
        ctx.log("info", f"Future state map applies {future.improvements_applied} improvements")

    blueprint: ServiceBlueprint | None = None
    if inputs.include_service_blueprint:
        blueprint = await ctx.task(blueprint_task, {
            **base,
            "current_state_map": current.journey_map_data,
            "touchpoints": [t.model_dump() for t in touchpoints.touchpoints_by_stage],
        })
        artifacts = artifacts.record(blueprint)

    priorities = await ctx.task(prioritization_task, {
        **base,
        "opportunities": opportunities.all_opportunities,
        "pain_points": pain_points.all_pain_points,
    })
    artifacts = artifacts.record(priorities)

    assessment = await ctx.task(final_assessment_task, {
        **base,
        "journey_maps_created": maps_created,
        "stages": len(stage_names),
        "touchpoints": total_touchpoints,
        "pain_points": pain_points.total_pain_points,
        "opportunities": opportunities.total_opportunities,
        "quality_targets": targets.model_dump(),
    })
    artifacts = artifacts.record(assessment)

    ctx.log(
        "info",
        f"User journey mapping complete: {maps_created} maps, "
        f"{pain_points.total_pain_points} pain points, {opportunities.total_opportunities} opportunities",
    )

    deliverables = [
        (current.journey_map_path, "html", "Current State Journey Map"),
        (future.journey_map_path if future else None, "html", "Future State Journey Map"),
        (pain_points.pain_points_report_path, "json", "Pain Points Report"),
        (opportunities.opportunities_report_path, "markdown", "Opportunities Report"),
        (priorities.prioritization_matrix_path, "html", "Prioritization Matrix"),
        (assessment.executive_summary_path, "markdown", "Executive Summary"),
    ]
    await ctx.breakpoint(
        question=(
            f"User journey mapping complete. {maps_created} journey maps created with "
            f"{pain_points.total_pain_points} pain points and "
            f"{opportunities.total_opportunities} opportunities. Review deliverables and approve?"
        ),
        title="Final User Journey Mapping Review",
        context=review_context(ctx, {
            "journey_maps_created": maps_created,
            "pain_points_identified": pain_points.total_pain_points,
            "opportunities_count": opportunities.total_opportunities,
            "stages_count": len(stage_names),
            "touchpoints_count": total_touchpoints,
            "prioritized_improvements": priorities.quick_wins + priorities.strategic_bets,
        }, quality_targets=targets.model_dump(), recommendation=assessment.recommendation),
        files=[
            CheckpointFile(path=path, format=fmt, label=label)
            for path, fmt, label in deliverables
            if path
        ],
    )

    return UserJourneyMappingResult(
        journey_maps_created=maps_created,
        stages=stages.stages,
        touchpoints=total_touchpoints,
        pain_points_identified=pain_points.total_pain_points,
        top_pain_points=pain_points.top_pain_points,
        opportunities_count=opportunities.total_opportunities,
        top_opportunities=opportunities.top_opportunities,
        emotional_variance=emotions.emotional_variance or 0,
        quick_wins=priorities.quick_wins,
        strategic_bets=priorities.strategic_bets,
        backstage_processes=blueprint.backstage_processes if blueprint else None,
        recommendation=assessment.recommendation,
        next_steps=assessment.next_steps,
        artifacts=artifacts.to_list(),
        duration_seconds=elapsed_seconds(ctx, started_at),
        metadata=ctx.metadata(started_at, inputs.model_dump()),
    )
