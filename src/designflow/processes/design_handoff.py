"""Design handoff to development."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from designflow.execution.context import ProcessContext
from designflow.models.ledger import ArtifactLedger
from designflow.models.schemas import CheckpointFile, ProcessResult, StepOutput
from designflow.processes.base import ProcessInputs, elapsed_seconds, review_context
from designflow.processes.registry import register_process
from designflow.tasks.definition import define_task

PROCESS_ID = "specializations/ux-ui-design/design-handoff"

READINESS_THRESHOLD = 70
HANDOFF_READY_SCORE = 80


class DesignHandoffInputs(ProcessInputs):
    design_files: list[Any] = Field(default_factory=list)
    platform: str = "web"
    technology: str = "react"
    target_developers: list[Any] = Field(default_factory=list)
    include_prototype: bool = True
    include_redlines: bool = True
    include_accessibility_specs: bool = True
    output_dir: str = "design-handoff-output"
    design_tool_url: str = ""
    repository_url: str = ""


class ReadinessAssessment(StepOutput):
    readiness_score: float | None = None
    blockers: list[Any] = Field(default_factory=list)
    warnings: list[Any] = Field(default_factory=list)


class Annotation(StepOutput):
    annotated_screens_count: int = 0


class ComponentSpecs(StepOutput):
    component_count: int = 0
    specifications: dict[str, Any] = Field(default_factory=dict)


class InteractionSpecs(StepOutput):
    interaction_count: int = 0
    animation_count: int = 0


class ResponsiveSpecs(StepOutput):
    breakpoint_count: int = 0


class TokenExport(StepOutput):
    token_count: int = 0
    categories: list[str] = Field(default_factory=list)
    tokens_file_path: str | None = None


class AssetExport(StepOutput):
    total_assets: int = 0
    icons_count: int = 0
    images_count: int = 0
    total_size: str = "0 KB"
    formats: list[str] = Field(default_factory=list)
    optimization_score: float | None = None
    asset_manifest_path: str | None = None


class AccessibilitySpecs(StepOutput):
    components_with_a11y: int = 0
    compliance_level: str = ""


class DeveloperDocs(StepOutput):
    main_doc_path: str | None = None
    page_count: int = 0


class CodeSnippets(StepOutput):
    snippet_count: int = 0
    component_count: int = 0


class PrototypeDemo(StepOutput):
    prototype_url: str | None = None
    flows_count: int = 0


class QACriteria(StepOutput):
    test_case_count: int = 0
    test_categories: list[str] = Field(default_factory=list)
    test_plan_path: str | None = None


class HandoffPackage(StepOutput):
    package_path: str | None = None
    package_index_path: str | None = None


class HandoffMeeting(StepOutput):
    questions_count: int = 0
    developers_ready: bool = False


class SupportPlan(StepOutput):
    support_duration: str = ""
    next_steps: list[str] = Field(default_factory=list)


class HandoffValidation(StepOutput):
    validation_score: float = 0
    completeness: float = 0
    missing_items: list[str] = Field(default_factory=list)
    report_path: str | None = None


def _handoff_task(name: str, title: str, task: str, output: type, **kwargs: Any):
    return define_task(
        name, title,
        agent="design-handoff-specialist",
        role="Design handoff specialist bridging design and engineering",
        task=task,
        output=output,
        **kwargs,
    )


readiness_task = _handoff_task(
    "design-readiness-assessment", "Design readiness assessment",
    "Assess whether the design files are complete enough to hand off; score 0 to 100",
    ReadinessAssessment, labels=["assessment"],
)
annotation_task = _handoff_task(
    "design-annotation", "Design annotation",
    "Annotate screens with measurements, redlines and developer notes",
    Annotation, labels=["specs"],
)
component_specs_task = _handoff_task(
    "component-specifications", "Component specifications",
    "Specify every component's props, states, variants and tokens",
    ComponentSpecs, labels=["specs"],
)
interaction_specs_task = _handoff_task(
    "interaction-specifications", "Interaction specifications",
    "Document interactions, transitions and animation timings",
    InteractionSpecs, labels=["specs"],
)
responsive_specs_task = _handoff_task(
    "responsive-specifications", "Responsive specifications",
    "Define breakpoints and responsive behaviour per component",
    ResponsiveSpecs, labels=["specs"],
)
token_export_task = _handoff_task(
    "design-tokens-export", "Design token export",
    "Extract design tokens into platform formats",
    TokenExport, labels=["tokens"],
)
asset_export_task = _handoff_task(
    "asset-export", "Asset export",
    "Export and optimise icons and images with a manifest",
    AssetExport, labels=["assets"],
)
accessibility_specs_task = _handoff_task(
    "accessibility-specifications", "Accessibility specifications",
    "Write ARIA, focus order and contrast requirements per component",
    AccessibilitySpecs, labels=["accessibility", "specs"],
)
developer_docs_task = _handoff_task(
    "developer-documentation", "Developer documentation",
    "Write the developer-facing implementation guide",
    DeveloperDocs, labels=["documentation"],
)
code_snippets_task = _handoff_task(
    "code-snippets-generation", "Code snippets",
    "Generate implementation snippets for the target technology",
    CodeSnippets, labels=["code"],
)
prototype_task = _handoff_task(
    "prototype-demo-preparation", "Prototype and demos",
    "Prepare the interactive prototype and demo flows",
    PrototypeDemo, labels=["prototype"],
)
qa_criteria_task = _handoff_task(
    "qa-criteria-definition", "QA criteria",
    "Define acceptance criteria and visual QA test cases",
    QACriteria, labels=["qa"],
)
package_task = _handoff_task(
    "handoff-package-assembly", "Handoff package assembly",
    "Assemble every deliverable into an indexed handoff package",
    HandoffPackage, labels=["handoff"],
)
meeting_task = _handoff_task(
    "handoff-meeting", "Handoff meeting",
    "Run the handoff walkthrough and capture developer questions",
    HandoffMeeting, labels=["handoff"],
)
support_task = _handoff_task(
    "implementation-support-plan", "Implementation support plan",
    "Plan design support checkpoints during implementation",
    SupportPlan, labels=["handoff"],
)
validation_task = _handoff_task(
    "handoff-quality-validation", "Handoff validation",
    "Validate handoff completeness and score it from 0 to 100",
    HandoffValidation, labels=["validation"],
)


class DesignHandoffResult(ProcessResult):
    project_name: str
    platform: str
    technology: str
    validation_score: float = 0
    handoff_ready: bool = False
    completeness: float = 0
    missing_items: list[str] = Field(default_factory=list)
    component_count: int = 0
    interaction_count: int = 0
    animation_count: int = 0
    breakpoint_count: int = 0
    token_count: int = 0
    total_assets: int = 0
    components_with_a11y: int | None = None
    prototype_url: str | None = None
    test_case_count: int = 0
    developers_ready: bool = False
    package_path: str | None = None


@register_process(
    PROCESS_ID,
    inputs=DesignHandoffInputs,
    description="Design handoff to development with specs, assets, tokens and QA criteria",
    references=["https://www.figma.com/best-practices/guide-to-developer-handoff/"],
)
async def process(inputs: DesignHandoffInputs, ctx: ProcessContext) -> DesignHandoffResult:
    started_at = ctx.now()
    artifacts = ArtifactLedger()
    base = {
        "project_name": inputs.project_name,
        "platform": inputs.platform,
        "output_dir": inputs.output_dir,
    }

    ctx.log("info", f"Starting design handoff: {inputs.project_name} ({inputs.platform}, {inputs.technology})")

    readiness = await ctx.task(readiness_task, {
        **base,
        "design_files": inputs.design_files,
        "technology": inputs.technology,
        "include_prototype": inputs.include_prototype,
    })
    artifacts = artifacts.record(readiness)

    await ctx.gate(
        readiness.readiness_score,
        READINESS_THRESHOLD,
        title="Design Readiness Gate",
        question=(
            f"Design readiness score: {readiness.readiness_score or 0}/100, below "
            f"{READINESS_THRESHOLD}. {len(readiness.blockers)} blocking issues found. "
            "Resolve issues before proceeding?"
        ),
        context={"blockers": readiness.blockers, "warnings": readiness.warnings},
        files=ArtifactLedger().record(readiness).as_files(),
    )

    annotation = await ctx.task(annotation_task, {
        **base,
        "design_files": inputs.design_files,
        "include_redlines": inputs.include_redlines,
    })
    artifacts = artifacts.record(annotation)

    components = await ctx.task(component_specs_task, {
        **base,
        "design_files": inputs.design_files,
        "technology": inputs.technology,
        "annotated_screens": annotation.annotated_screens_count,
    })
    artifacts = artifacts.record(components)
    ctx.log("info", f"Component specifications created: {components.component_count} components")

    interactions = await ctx.task(interaction_specs_task, {
        **base,
        "specifications": components.specifications,
        "include_prototype": inputs.include_prototype,
    })
    responsive = await ctx.task(responsive_specs_task, {**base, "specifications": components.specifications})
    tokens = await ctx.task(token_export_task, {
        **base,
        "design_files": inputs.design_files,
        "technology": inputs.technology,
    })
    assets = await ctx.task(asset_export_task, {
        **base,
        "design_files": inputs.design_files,
        "technology": inputs.technology,
    })
    artifacts = artifacts.record(interactions, responsive, tokens, assets)

    await ctx.breakpoint(
        question=(
            f"Asset export complete. {assets.total_assets} assets exported and optimised. "
            f"Total size: {assets.total_size}. Review asset quality?"
        ),
        title="Asset Export Review",
        context={
            "run_id": ctx.run_id,
            "assets_summary": {
                "total_assets": assets.total_assets,
                "icons_count": assets.icons_count,
                "images_count": assets.images_count,
                "total_size": assets.total_size,
                "formats": assets.formats,
                "optimization_score": assets.optimization_score,
            },
        },
        files=ArtifactLedger(assets.artifacts[:5]).as_files(),
    )

    accessibility: AccessibilitySpecs | None = None
    if inputs.include_accessibility_specs:
        accessibility = await ctx.task(accessibility_specs_task, {
            **base, "specifications": components.specifications,
        })
        artifacts = artifacts.record(accessibility)

    docs = await ctx.task(developer_docs_task, {
        **base,
        "technology": inputs.technology,
        "component_count": components.component_count,
        "token_count": tokens.token_count,
        "design_tool_url": inputs.design_tool_url,
        "repository_url": inputs.repository_url,
    })
    snippets = await ctx.task(code_snippets_task, {
        **base,
        "technology": inputs.technology,
        "specifications": components.specifications,
    })
    artifacts = artifacts.record(docs, snippets)

    prototype: PrototypeDemo | None = None
    if inputs.include_prototype:
        prototype = await ctx.task(prototype_task, {
            **base, "interaction_count": interactions.interaction_count,
        })
        artifacts = artifacts.record(prototype)

    qa = await ctx.task(qa_criteria_task, {
        **base,
        "component_count": components.component_count,
        "interaction_count": interactions.interaction_count,
        "breakpoint_count": responsive.breakpoint_count,
        "accessibility_included": accessibility is not None,
    })
    artifacts = artifacts.record(qa)

    package = await ctx.task(package_task, {
        **base,
        "main_doc_path": docs.main_doc_path,
        "asset_manifest_path": assets.asset_manifest_path,
        "tokens_file_path": tokens.tokens_file_path,
        "test_plan_path": qa.test_plan_path,
        "prototype_url": prototype.prototype_url if prototype else None,
    })
    artifacts = artifacts.record(package)

    package_files = [
        CheckpointFile(path=path, format="markdown", label=label)
        for path, label in (
            (package.package_index_path, "Handoff Package Index"),
            (docs.main_doc_path, "Developer Documentation"),
            (qa.test_plan_path, "QA Test Plan"),
        )
        if path
    ]
    await ctx.breakpoint(
        question=(
            f"Handoff package assembled. {components.component_count} components, "
            f"{interactions.interaction_count} interactions, {assets.total_assets} assets, "
            f"{qa.test_case_count} test cases. Ready for the handoff meeting?"
        ),
        title="Handoff Package Review",
        context=review_context(ctx, {
            "project_name": inputs.project_name,
            "platform": inputs.platform,
            "technology": inputs.technology,
            "components_count": components.component_count,
            "interactions_count": interactions.interaction_count,
            "assets_count": assets.total_assets,
            "test_cases_count": qa.test_case_count,
            "documentation_pages": docs.page_count,
            "code_snippets": snippets.snippet_count,
        }),
        files=package_files,
    )

    meeting = await ctx.task(meeting_task, {
        **base,
        "package_path": package.package_path,
        "target_developers": inputs.target_developers,
    })
    support = await ctx.task(support_task, {
        **base,
        "developer_questions": meeting.questions_count,
        "target_developers": inputs.target_developers,
    })
    validation = await ctx.task(validation_task, {
        **base,
        "package_path": package.package_path,
        "component_count": components.component_count,
        "developers_ready": meeting.developers_ready,
    })
    artifacts = artifacts.record(meeting, support, validation)

    handoff_ready = validation.validation_score >= HANDOFF_READY_SCORE

    await ctx.breakpoint(
        question=(
            f"Design handoff complete for {inputs.project_name}: validation score "
            f"{validation.validation_score}/100. Handoff ready: {handoff_ready}. "
            "Approve and close the handoff?"
        ),
        title="Design Handoff Complete",
        context=review_context(ctx, {
            "validation_score": validation.validation_score,
            "handoff_ready": handoff_ready,
            "components_handed_off": components.component_count,
            "animations": interactions.animation_count,
            "design_tokens": tokens.token_count,
            "developer_questions": meeting.questions_count,
            "support_duration": support.support_duration,
        }, completeness=validation.completeness, next_steps=support.next_steps),
        files=artifacts.as_files(),
    )

    return DesignHandoffResult(
        success=handoff_ready,
        project_name=inputs.project_name,
        platform=inputs.platform,
        technology=inputs.technology,
        validation_score=validation.validation_score,
        handoff_ready=handoff_ready,
        completeness=validation.completeness,
        missing_items=validation.missing_items,
        component_count=components.component_count,
        interaction_count=interactions.interaction_count,
        animation_count=interactions.animation_count,
        breakpoint_count=responsive.breakpoint_count,
        token_count=tokens.token_count,
        total_assets=assets.total_assets,
        components_with_a11y=accessibility.components_with_a11y if accessibility else None,
        prototype_url=prototype.prototype_url if prototype else None,
        test_case_count=qa.test_case_count,
        developers_ready=meeting.developers_ready,
        package_path=package.package_path,
        artifacts=artifacts.to_list(),
        duration_seconds=elapsed_seconds(ctx, started_at),
        metadata=ctx.metadata(started_at, inputs.model_dump()),
    )
