"""Card sorting study for information architecture."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from designflow.execution.context import ProcessContext
from designflow.models.ledger import ArtifactLedger
from designflow.models.schemas import ProcessFailure, ProcessResult, StepOutput
from designflow.processes.base import ProcessInputs, early_failure, elapsed_seconds, review_context
from designflow.processes.registry import register_process
from designflow.tasks.definition import define_task

PROCESS_ID = "specializations/ux-ui-design/card-sorting"

QUALITY_TARGET = 75

SortingType = Literal["open", "closed", "hybrid"]


class CardSortingInputs(ProcessInputs):
    project_name: str = "Project"
    sorting_type: SortingType = "open"
    content_items: list[Any] = Field(default_factory=list)
    existing_categories: list[str] = Field(default_factory=list)
    participant_count: int = Field(default=20, ge=1)
    tool_preference: str = "optimal-workshop"
    research_objectives: list[str] = Field(default_factory=list)
    target_audience: list[Any] = Field(default_factory=list)
    remote_session: bool = True
    session_duration: str = "30 minutes"
    output_dir: str = "card-sorting-output"
    min_agreement_score: float = 70
    include_follow_up_questions: bool = True
    generate_navigation_recommendations: bool = True


class StudyPlan(StepOutput):
    study_approved: bool = True
    recommendations: list[str] = Field(default_factory=list)
    recommended_card_count: int | None = None
    incentive_structure: dict[str, Any] = Field(default_factory=dict)


class CardPreparation(StepOutput):
    final_cards: list[Any] = Field(default_factory=list)
    categories: list[Any] = Field(default_factory=list)


class ToolSetup(StepOutput):
    tool_name: str = ""
    study_url: str | None = None
    follow_up_questions: list[str] = Field(default_factory=list)


class Recruitment(StepOutput):
    confirmed_participants: list[Any] = Field(default_factory=list)


class Sessions(StepOutput):
    completed_sessions: int = 0
    completion_rate: float = 0
    sorting_data: list[Any] = Field(default_factory=list)
    participant_category_labels: list[Any] = Field(default_factory=list)


class SimilarityAnalysis(StepOutput):
    overall_agreement_score: float = 0
    similarity_matrix: list[Any] = Field(default_factory=list)
    strong_pairings: list[Any] = Field(default_factory=list)
    weak_pairings: list[Any] = Field(default_factory=list)


class Dendrogram(StepOutput):
    clusters: list[Any] = Field(default_factory=list)
    uncertain_groupings: list[Any] = Field(default_factory=list)
    recommended_category_count: int | None = None


class CategoryLabeling(StepOutput):
    popular_labels: list[str] = Field(default_factory=list)
    recommended_labels: list[str] = Field(default_factory=list)


class CategoryValidation(StepOutput):
    recommended_categories: list[Any] = Field(default_factory=list)
    recommended_changes: list[Any] = Field(default_factory=list)


class Navigation(StepOutput):
    primary_navigation: list[Any] = Field(default_factory=list)
    secondary_navigation: list[Any] = Field(default_factory=list)


class Insights(StepOutput):
    insights: list[Any] = Field(default_factory=list)
    critical_insights: list[Any] = Field(default_factory=list)
    key_findings: list[str] = Field(default_factory=list)


class Report(StepOutput):
    report_path: str | None = None


class QualityScore(StepOutput):
    overall_score: float = 0


_RESEARCHER = dict(agent="ia-researcher", role="Information architecture researcher")

study_planning_task = define_task(
    "study-planning",
    "Card sorting study plan",
    **_RESEARCHER,
    task="Plan the card sorting study, methodology and participant profile",
    output=StudyPlan,
    instructions=["Set studyApproved to false and list recommendations if the plan is not viable"],
    labels=["planning"],
)
card_preparation_task = define_task(
    "card-preparation", "Card preparation", **_RESEARCHER,
    task="Curate the content items into cards and, for closed sorts, categories",
    output=CardPreparation, labels=["setup"],
)
tool_setup_task = define_task(
    "tool-setup", "Card sorting tool setup", **_RESEARCHER,
    task="Configure the study in the preferred card sorting tool",
    output=ToolSetup, labels=["setup"],
)
recruitment_task = define_task(
    "participant-recruitment", "Participant recruitment", **_RESEARCHER,
    task="Recruit and screen participants matching the target audience",
    output=Recruitment, labels=["recruitment"],
)
sessions_task = define_task(
    "session-facilitation", "Card sorting sessions", **_RESEARCHER,
    task="Run the card sorting sessions and collect sorting data",
    output=Sessions, labels=["sessions"],
)
similarity_task = define_task(
    "similarity-matrix-analysis", "Similarity matrix analysis",
    agent="ia-analyst", role="Quantitative IA analyst",
    task="Build the similarity matrix and score overall participant agreement",
    output=SimilarityAnalysis, labels=["analysis"],
)
dendrogram_task = define_task(
    "dendrogram-analysis", "Dendrogram analysis",
    agent="ia-analyst", role="Quantitative IA analyst",
    task="Cluster cards hierarchically and flag uncertain groupings",
    output=Dendrogram, labels=["analysis"],
)
labeling_task = define_task(
    "category-labeling-analysis", "Category labelling analysis", **_RESEARCHER,
    task="Analyse participant-generated category labels",
    output=CategoryLabeling, labels=["analysis"],
)
validation_task = define_task(
    "category-validation", "Category validation",
    agent="ia-analyst", role="Quantitative IA analyst",
    task="Validate categories against the agreement threshold",
    output=CategoryValidation, labels=["analysis"],
)
navigation_task = define_task(
    "navigation-recommendations", "Navigation recommendations",
    agent="information-architect", role="Information architect",
    task="Recommend primary and secondary navigation from the clusters",
    output=Navigation, labels=["recommendations"],
)
insights_task = define_task(
    "insight-generation", "Insights", **_RESEARCHER,
    task="Synthesise findings against the research objectives",
    output=Insights, labels=["synthesis"],
)
report_task = define_task(
    "validation-report", "Validation report", **_RESEARCHER,
    task="Write the card sorting report",
    output=Report, labels=["report"],
)
quality_task = define_task(
    "quality-scoring", "Study quality scoring",
    agent="ia-analyst", role="Quantitative IA analyst",
    task="Score the study quality and reliability from 0 to 100",
    output=QualityScore, labels=["validation"],
)


class CardSortingResult(ProcessResult):
    project_name: str
    sorting_type: SortingType
    quality_score: float = 0
    quality_met: bool = False
    card_count: int = 0
    completed_sessions: int = 0
    tool_used: str = ""
    agreement_score: float = 0
    agreement_met: bool = False
    clusters: int = 0
    recommended_labels: list[str] | None = None
    recommended_categories: list[Any] = Field(default_factory=list)
    primary_navigation: list[Any] | None = None
    key_findings: list[str] = Field(default_factory=list)
    report_path: str | None = None


@register_process(
    PROCESS_ID,
    inputs=CardSortingInputs,
    description="Open, closed or hybrid card sorting study with similarity and cluster analysis",
    references=["https://www.nngroup.com/articles/card-sorting-definition/"],
)
async def process(inputs: CardSortingInputs, ctx: ProcessContext) -> CardSortingResult | ProcessFailure:
    started_at = ctx.now()
    artifacts = ArtifactLedger()
    base = {
        "project_name": inputs.project_name,
        "sorting_type": inputs.sorting_type,
        "output_dir": inputs.output_dir,
    }

    ctx.log("info", f"Starting card sorting for {inputs.project_name} ({inputs.sorting_type} sort)")

    plan = await ctx.task(study_planning_task, {
        **base,
        "content_items": inputs.content_items,
        "existing_categories": inputs.existing_categories,
        "research_objectives": inputs.research_objectives,
        "participant_count": inputs.participant_count,
        "target_audience": inputs.target_audience,
        "remote_session": inputs.remote_session,
    })
    artifacts = artifacts.record(plan)

    if not plan.study_approved:
        return early_failure(
            ctx, started_at, inputs,
            "Card sorting study plan quality insufficient",
            plan.recommendations,
        )

    cards = await ctx.task(card_preparation_task, {
        **base,
        "content_items": inputs.content_items,
        "existing_categories": inputs.existing_categories,
        "target_card_count": plan.recommended_card_count,
    })
    tool = await ctx.task(tool_setup_task, {
        **base,
        "tool_preference": inputs.tool_preference,
        "cards": cards.final_cards,
        "predefined_categories": cards.categories,
        "include_follow_up_questions": inputs.include_follow_up_questions,
    })
    artifacts = artifacts.record(cards, tool)

    closed = inputs.sorting_type == "closed"
    await ctx.breakpoint(
        question=(
            f"Card sorting study configured with {len(cards.final_cards)} cards"
            + (f" and {len(cards.categories)} predefined categories" if closed else "")
            + ". Approve for participant recruitment?"
        ),
        title="Card Sorting Study Setup Review",
        context=review_context(ctx, {
            "sorting_type": inputs.sorting_type,
            "card_count": len(cards.final_cards),
            "category_count": len(cards.categories) if closed else "User-defined",
            "target_participants": inputs.participant_count,
            "tool_configured": tool.tool_name,
            "study_url": tool.study_url,
        }),
        files=ArtifactLedger().record(plan, cards, tool).as_files(),
    )

    recruitment = await ctx.task(recruitment_task, {
        **base,
        "target_audience": inputs.target_audience,
        "participant_count": inputs.participant_count,
        "session_duration": inputs.session_duration,
        "incentive_structure": plan.incentive_structure,
    })
    sessions = await ctx.task(sessions_task, {
        **base,
        "study_url": tool.study_url,
        "participants": recruitment.confirmed_participants,
        "remote_session": inputs.remote_session,
        "follow_up_questions": tool.follow_up_questions if inputs.include_follow_up_questions else [],
    })
    similarity = await ctx.task(similarity_task, {
        **base,
        "sorting_data": sessions.sorting_data,
        "cards": cards.final_cards,
        "participant_count": sessions.completed_sessions,
    })
    dendrogram = await ctx.task(dendrogram_task, {
        **base,
        "similarity_matrix": similarity.similarity_matrix,
        "cards": cards.final_cards,
    })
    artifacts = artifacts.record(recruitment, sessions, similarity, dendrogram)

    await ctx.breakpoint(
        question=(
            f"Card sorting analysis complete. {sessions.completed_sessions} sessions analysed. "
            f"Agreement score: {similarity.overall_agreement_score}/100. "
            f"{len(dendrogram.clusters)} clusters identified. Review analysis?"
        ),
        title="Card Sorting Analysis Review",
        context=review_context(ctx, {
            "completed_sessions": sessions.completed_sessions,
            "agreement_score": similarity.overall_agreement_score,
            "clusters_identified": len(dendrogram.clusters),
            "strong_pairings": len(similarity.strong_pairings),
            "uncertain_groupings": len(dendrogram.uncertain_groupings),
        }),
        files=ArtifactLedger().record(sessions, similarity, dendrogram).as_files(),
    )

    labeling: CategoryLabeling | None = None
    if inputs.sorting_type in ("open", "hybrid"):
        labeling = await ctx.task(labeling_task, {
            **base,
            "clusters": dendrogram.clusters,
            "participant_labels": sessions.participant_category_labels,
        })
        artifacts = artifacts.record(labeling)

    validation = await ctx.task(validation_task, {
        **base,
        "clusters": dendrogram.clusters,
        "recommended_labels": labeling.recommended_labels if labeling else None,
        "existing_categories": cards.categories if closed else None,
        "min_agreement_score": inputs.min_agreement_score,
    })
    artifacts = artifacts.record(validation)

    navigation: Navigation | None = None
    if inputs.generate_navigation_recommendations:
        navigation = await ctx.task(navigation_task, {
            **base,
            "clusters": dendrogram.clusters,
            "recommended_categories": validation.recommended_categories,
        })
        artifacts = artifacts.record(navigation)

    insights = await ctx.task(insights_task, {
        **base,
        "research_objectives": inputs.research_objectives,
        "agreement_score": similarity.overall_agreement_score,
        "clusters": dendrogram.clusters,
        "recommended_changes": validation.recommended_changes,
    })
    report = await ctx.task(report_task, {**base, "key_findings": insights.key_findings})
    scoring = await ctx.task(quality_task, {
        **base,
        "participant_count": sessions.completed_sessions,
        "target_participant_count": inputs.participant_count,
        "card_count": len(cards.final_cards),
        "agreement_score": similarity.overall_agreement_score,
        "min_agreement_score": inputs.min_agreement_score,
    })
    artifacts = artifacts.record(insights, report, scoring)

    quality_score = scoring.overall_score
    quality_met = quality_score >= QUALITY_TARGET
    agreement_met = similarity.overall_agreement_score >= inputs.min_agreement_score

    await ctx.breakpoint(
        question=(
            f"Card sorting study complete. Quality score: {quality_score}/100. "
            f"Agreement score: {similarity.overall_agreement_score}/100. Review findings and approve?"
        ),
        title="Card Sorting Final Review",
        context=review_context(ctx, {
            "sorting_type": inputs.sorting_type,
            "quality_score": quality_score,
            "quality_met": quality_met,
            "agreement_score": similarity.overall_agreement_score,
            "agreement_met": agreement_met,
            "critical_insights": len(insights.critical_insights),
            "category_changes": len(validation.recommended_changes),
            "navigation_structure_ready": navigation is not None,
        }),
        files=artifacts.as_files(),
    )

    return CardSortingResult(
        project_name=inputs.project_name,
        sorting_type=inputs.sorting_type,
        quality_score=quality_score,
        quality_met=quality_met,
        card_count=len(cards.final_cards),
        completed_sessions=sessions.completed_sessions,
        tool_used=tool.tool_name,
        agreement_score=similarity.overall_agreement_score,
        agreement_met=agreement_met,
        clusters=len(dendrogram.clusters),
        recommended_labels=labeling.recommended_labels if labeling else None,
        recommended_categories=validation.recommended_categories,
        primary_navigation=navigation.primary_navigation if navigation else None,
        key_findings=insights.key_findings,
        report_path=report.report_path,
        artifacts=artifacts.to_list(),
        duration_seconds=elapsed_seconds(ctx, started_at),
        metadata=ctx.metadata(started_at, inputs.model_dump()),
    )
