"""Component library development.

Strategy, design tokens and foundations, then foundational and complex
components designed in parallel batches, followed by accessibility audit,
documentation, governance and developer handoff.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from designflow.execution.context import ProcessContext
from designflow.models.ledger import ArtifactLedger
from designflow.models.schemas import CAMEL_CONFIG, CheckpointFile, ProcessFailure, ProcessResult, StepOutput
from designflow.processes.base import ProcessInputs, early_failure, elapsed_seconds, review_context
from designflow.processes.registry import register_process
from designflow.tasks.definition import define_task

PROCESS_ID = "specializations/ux-ui-design/component-library"

COLOR_ACCESSIBILITY_THRESHOLD = 90


class ComponentLibraryInputs(ProcessInputs):
    scope: str = "product-suite"
    design_language: dict[str, Any] = Field(default_factory=dict)
    platforms: list[str] = Field(default_factory=lambda: ["web"])
    technology: str = "react"
    existing_designs: list[Any] = Field(default_factory=list)
    accessibility_level: str = "WCAG-AA"
    target_frameworks: list[str] = Field(default_factory=lambda: ["React"])
    include_icons: bool = True
    include_illustrations: bool = True
    versioning_strategy: str = "semantic"
    output_dir: str = "component-library-output"


class Component(BaseModel):
    model_config = CAMEL_CONFIG

    name: str
    category: str = "foundational"


class StrategyPlan(StepOutput):
    success: bool = True
    component_count: int = 0
    architecture: str = ""
    design_principles: list[str] = Field(default_factory=list)
    governance_model: dict[str, Any] = Field(default_factory=dict)


class DesignTokens(StepOutput):
    design_tokens: dict[str, Any] = Field(default_factory=dict)
    token_count: int = 0
    categories: list[str] = Field(default_factory=list)


class ColorSystem(StepOutput):
    colors: dict[str, Any] = Field(default_factory=dict)
    accessibility_score: float | None = None
    contrast_issues: list[Any] = Field(default_factory=list)
    color_palette_path: str | None = None


class TypographySystem(StepOutput):
    typography: dict[str, Any] = Field(default_factory=dict)
    fonts: list[str] = Field(default_factory=list)


class SpacingSystem(StepOutput):
    spacing: dict[str, Any] = Field(default_factory=dict)


class ComponentInventory(StepOutput):
    components: list[Component] = Field(default_factory=list)


class ComponentDesign(StepOutput):
    component_name: str = ""
    variant_count: int = 0
    state_count: int = 0
    accessibility_score: float | None = None
    design_file_path: str | None = None


class PatternLibrary(StepOutput):
    pattern_count: int = 0


class IconSystem(StepOutput):
    icon_count: int = 0
    formats: list[str] = Field(default_factory=list)


class AccessibilityAudit(StepOutput):
    overall_score: float = 0
    critical_issues: list[Any] = Field(default_factory=list)
    compliance_status: str = ""
    report_path: str | None = None


class Documentation(StepOutput):
    component_count: int = 0
    main_doc_path: str | None = None


class DesignToolLibrary(StepOutput):
    tool: str = "Figma"
    library_file_path: str | None = None
    library_structure: dict[str, Any] = Field(default_factory=dict)


class StorybookSetup(StepOutput):
    stories_count: int = 0
    storybook_url: str | None = None


class Governance(StepOutput):
    governance_model_path: str | None = None


class DeveloperHandoff(StepOutput):
    handoff_package_path: str | None = None


class LibraryValidation(StepOutput):
    validation_score: float = 0
    production_ready: bool = False
    verdict: str = ""
    recommendation: str = ""


_DESIGNER = dict(agent="design-system-architect", role="Design system architect")

strategy_task = define_task(
    "design-system-strategy",
    "Design system strategy",
    **_DESIGNER,
    task="Plan the component library scope, architecture, principles and governance",
    output=StrategyPlan,
    instructions=["Set success to false if the inputs are not enough to plan a library"],
    labels=["planning"],
)

tokens_task = define_task(
    "design-tokens-definition",
    "Design tokens",
    **_DESIGNER,
    task="Define platform-agnostic design tokens grouped by category",
    output=DesignTokens,
    labels=["tokens"],
)

color_task = define_task(
    "color-system-design",
    "Colour system",
    agent="visual-designer",
    role="Visual designer with accessibility expertise",
    task="Design the colour palette and score its contrast accessibility from 0 to 100",
    output=ColorSystem,
    labels=["foundations", "accessibility"],
)

typography_task = define_task(
    "typography-system-design",
    "Typography system",
    agent="visual-designer",
    role="Visual designer",
    task="Design the type scale, font stacks and line heights",
    output=TypographySystem,
    labels=["foundations"],
)

spacing_task = define_task(
    "spacing-layout-system",
    "Spacing and layout",
    agent="visual-designer",
    role="Visual designer",
    task="Define the spacing scale, grid and breakpoints",
    output=SpacingSystem,
    labels=["foundations"],
)

inventory_task = define_task(
    "component-inventory",
    "Component inventory",
    **_DESIGNER,
    task="List the components needed, each tagged foundational or complex",
    output=ComponentInventory,
    labels=["planning"],
)

component_design_task = define_task(
    "component-design",
    "Component design",
    agent="ui-designer",
    role="UI component designer",
    task="Design one component with its variants, states and accessibility notes",
    output=ComponentDesign,
    labels=["components"],
)

pattern_task = define_task(
    "pattern-library-design",
    "Pattern library",
    agent="ui-designer",
    role="UI component designer",
    task="Compose the designed components into reusable patterns",
    output=PatternLibrary,
    labels=["components"],
)

icon_task = define_task(
    "icon-system-design",
    "Icon system",
    agent="visual-designer",
    role="Icon designer",
    task="Design the icon grid, style rules and core icon set",
    output=IconSystem,
    labels=["foundations"],
)

illustration_task = define_task(
    "illustration-system-design",
    "Illustration system",
    agent="visual-designer",
    role="Illustrator",
    task="Define the illustration style guide using the colour system",
    output=StepOutput,
    labels=["foundations"],
)

audit_task = define_task(
    "accessibility-audit",
    "Accessibility audit",
    agent="accessibility-specialist",
    role="Accessibility specialist",
    task="Audit the foundations and components against the target WCAG level",
    output=AccessibilityAudit,
    labels=["accessibility", "validation"],
)

documentation_task = define_task(
    "component-documentation",
    "Component documentation",
    agent="technical-writer",
    role="Design system technical writer",
    task="Write usage, anatomy and do/don't documentation for every component",
    output=Documentation,
    labels=["documentation"],
)

design_tool_task = define_task(
    "design-tool-library",
    "Design tool library",
    **_DESIGNER,
    task="Organise and publish the components as a shared design tool library",
    output=DesignToolLibrary,
    labels=["tooling"],
)

storybook_task = define_task(
    "storybook-setup",
    "Storybook setup",
    agent="frontend-engineer",
    role="Frontend engineer",
    task="Plan Storybook stories and controls for every component",
    output=StorybookSetup,
    labels=["documentation", "code"],
)

governance_task = define_task(
    "governance-versioning",
    "Governance and versioning",
    **_DESIGNER,
    task="Define versioning, contribution and deprecation rules",
    output=Governance,
    labels=["governance"],
)

handoff_task = define_task(
    "developer-handoff",
    "Developer handoff package",
    agent="frontend-engineer",
    role="Frontend engineer",
    task="Assemble tokens, specs and assets into a developer handoff package",
    output=DeveloperHandoff,
    labels=["handoff"],
)

validation_task = define_task(
    "component-library-validation",
    "Final validation",
    **_DESIGNER,
    task="Score the library from 0 to 100 and decide whether it is production ready",
    output=LibraryValidation,
    labels=["validation"],
)


class ComponentLibraryResult(ProcessResult):
    project_name: str
    scope: str
    platforms: list[str] = Field(default_factory=list)
    total_components: int = 0
    foundational_components: int = 0
    complex_components: int = 0
    patterns: int = 0
    token_count: int = 0
    color_accessibility_score: float | None = None
    icon_count: int | None = None
    accessibility_score: float = 0
    critical_accessibility_issues: int = 0
    stories_count: int = 0
    validation_score: float = 0
    production_ready: bool = False
    verdict: str = ""


@register_process(
    PROCESS_ID,
    inputs=ComponentLibraryInputs,
    description="Component library creation from design tokens to developer handoff",
    references=["https://atomicdesign.bradfrost.com/", "https://www.designsystems.com/"],
)
async def process(
    inputs: ComponentLibraryInputs, ctx: ProcessContext
) -> ComponentLibraryResult | ProcessFailure:
    started_at = ctx.now()
    artifacts = ArtifactLedger()
    base = {"project_name": inputs.project_name, "output_dir": inputs.output_dir}

    ctx.log("info", f"Starting component library development: {inputs.project_name}")

    strategy = await ctx.task(strategy_task, {
        **base,
        "scope": inputs.scope,
        "design_language": inputs.design_language,
        "platforms": inputs.platforms,
        "technology": inputs.technology,
        "existing_designs": inputs.existing_designs,
        "target_frameworks": inputs.target_frameworks,
        "accessibility_level": inputs.accessibility_level,
    })
    if not strategy.success:
        return early_failure(
            ctx, started_at, inputs,
            "Design system strategy planning failed",
            strategy=strategy.model_dump(),
        )
    artifacts = artifacts.record(strategy)

    await ctx.breakpoint(
        question=(
            f"Design system strategy planned for {inputs.project_name}: "
            f"{strategy.component_count} components across {len(inputs.platforms)} "
            f"platform(s). Architecture: {strategy.architecture}. Approve strategy?"
        ),
        title="Design System Strategy Review",
        context=review_context(ctx, {
            "component_count": strategy.component_count,
            "platforms": inputs.platforms,
            "architecture": strategy.architecture,
            "accessibility_level": inputs.accessibility_level,
        }, principles=strategy.design_principles, governance=strategy.governance_model),
        files=artifacts.as_files(),
    )

    tokens = await ctx.task(tokens_task, {
        **base,
        "design_language": inputs.design_language,
        "platforms": inputs.platforms,
        "architecture": strategy.architecture,
    })
    artifacts = artifacts.record(tokens)
    ctx.log("info", f"Design tokens defined: {tokens.token_count} across {len(tokens.categories)} categories")

    colors = await ctx.task(color_task, {
        **base,
        "design_tokens": tokens.design_tokens,
        "accessibility_level": inputs.accessibility_level,
    })
    artifacts = artifacts.record(colors)

    palette_files = []
    if colors.color_palette_path:
        palette_files.append(
            CheckpointFile(path=colors.color_palette_path, format="image", label="Color Palette")
        )
    await ctx.gate(
        colors.accessibility_score,
        COLOR_ACCESSIBILITY_THRESHOLD,
        title="Color Accessibility Review",
        question=(
            f"Colour accessibility score: {colors.accessibility_score or 0}/100, below "
            f"{COLOR_ACCESSIBILITY_THRESHOLD} for {inputs.accessibility_level}. Review contrast issues?"
        ),
        context={"contrast_issues": colors.contrast_issues},
        files=palette_files,
    )

    typography = await ctx.task(typography_task, {**base, "design_tokens": tokens.design_tokens})
    spacing = await ctx.task(spacing_task, {**base, "design_tokens": tokens.design_tokens})
    artifacts = artifacts.record(typography, spacing)

    inventory = await ctx.task(inventory_task, {
        **base,
        "scope": inputs.scope,
        "existing_designs": inputs.existing_designs,
        "component_count": strategy.component_count,
    })
    artifacts = artifacts.record(inventory)
    ctx.log("info", f"Component inventory: {len(inventory.components)} components identified")

    foundations = {
        "design_tokens": tokens.design_tokens,
        "color_system": colors.colors,
        "typography_system": typography.typography,
        "spacing_system": spacing.spacing,
        "platforms": inputs.platforms,
        "accessibility_level": inputs.accessibility_level,
    }

    def design(component: Component, **extra: Any):
        return lambda: ctx.task(component_design_task, {
            **base, **foundations, "component": component.model_dump(), **extra,
        })

    foundational = await ctx.parallel_all([
        design(c) for c in inventory.components if c.category == "foundational"
    ])
    artifacts = artifacts.record_all(foundational)

    await ctx.breakpoint(
        question=(
            f"Foundational components designed: {len(foundational)}. "
            "Approve to proceed with complex components?"
        ),
        title="Foundational Components Review",
        context=review_context(ctx, {
            "components_designed": len(foundational),
            "components": [
                {
                    "name": d.component_name,
                    "variants": d.variant_count,
                    "states": d.state_count,
                    "accessibility_score": d.accessibility_score,
                }
                for d in foundational
            ],
        }),
        files=[
            CheckpointFile(path=d.design_file_path, format="image", label=f"Component: {d.component_name}")
            for d in foundational[:5]
            if d.design_file_path
        ],
    )

    foundational_names = [d.component_name for d in foundational]
    complex_designs = await ctx.parallel_all([
        design(c, foundational_components=foundational_names)
        for c in inventory.components
        if c.category == "complex"
    ])
    artifacts = artifacts.record_all(complex_designs)

    patterns = await ctx.task(pattern_task, {
        **base,
        "components": foundational_names + [d.component_name for d in complex_designs],
    })
    artifacts = artifacts.record(patterns)

    icons: IconSystem | None = None
    if inputs.include_icons:
        icons = await ctx.task(icon_task, {**base, "design_tokens": tokens.design_tokens})
        artifacts = artifacts.record(icons)

    if inputs.include_illustrations:
        illustrations = await ctx.task(illustration_task, {**base, "color_system": colors.colors})
        artifacts = artifacts.record(illustrations)

    audit = await ctx.task(audit_task, {
        **base,
        "accessibility_level": inputs.accessibility_level,
        "color_accessibility_score": colors.accessibility_score,
        "components": foundational_names + [d.component_name for d in complex_designs],
    })
    artifacts = artifacts.record(audit)

    if audit.critical_issues:
        await ctx.breakpoint(
            question=(
                f"Accessibility audit found {len(audit.critical_issues)} critical issue(s). "
                f"Overall score: {audit.overall_score}/100. Review before proceeding?"
            ),
            title="Accessibility Compliance Gate",
            context={
                "run_id": ctx.run_id,
                "accessibility_score": audit.overall_score,
                "critical_issues": audit.critical_issues,
                "target_level": inputs.accessibility_level,
            },
        )

    docs = await ctx.task(documentation_task, {
        **base,
        "components": foundational_names + [d.component_name for d in complex_designs],
        "pattern_count": patterns.pattern_count,
    })
    artifacts = artifacts.record(docs)

    library = await ctx.task(design_tool_task, {
        **base,
        "design_tokens": tokens.design_tokens,
        "icon_count": icons.icon_count if icons else 0,
    })
    artifacts = artifacts.record(library)

    total_components = len(inventory.components)
    await ctx.breakpoint(
        question=(
            f"Design library created in {library.tool}. {total_components} components "
            "organised and published. Review library structure?"
        ),
        title="Design Library Review",
        context={
            "run_id": ctx.run_id,
            "tool": library.tool,
            "component_count": total_components,
            "library_structure": library.library_structure,
        },
    )

    storybook = await ctx.task(storybook_task, {
        **base,
        "technology": inputs.technology,
        "target_frameworks": inputs.target_frameworks,
        "main_doc_path": docs.main_doc_path,
    })
    governance = await ctx.task(governance_task, {
        **base,
        "versioning_strategy": inputs.versioning_strategy,
        "governance_model": strategy.governance_model,
    })
    handoff = await ctx.task(handoff_task, {
        **base,
        "design_tokens": tokens.design_tokens,
        "main_doc_path": docs.main_doc_path,
        "platforms": inputs.platforms,
    })
    artifacts = artifacts.record(storybook, governance, handoff)

    validation = await ctx.task(validation_task, {
        **base,
        "total_components": total_components,
        "accessibility_score": audit.overall_score,
        "accessibility_level": inputs.accessibility_level,
        "stories_count": storybook.stories_count,
    })
    artifacts = artifacts.record(validation)

    await ctx.breakpoint(
        question=(
            f"Component library complete for {inputs.project_name}: {total_components} "
            f"components, {tokens.token_count} design tokens, validation score "
            f"{validation.validation_score}/100. Production ready: "
            f"{validation.production_ready}. Approve for release?"
        ),
        title="Component Library Complete",
        context=review_context(ctx, {
            "total_components": total_components,
            "foundational_components": len(foundational),
            "complex_components": len(complex_designs),
            "design_tokens": tokens.token_count,
            "patterns": patterns.pattern_count,
            "icons": icons.icon_count if icons else 0,
            "validation_score": validation.validation_score,
            "accessibility_score": audit.overall_score,
            "production_ready": validation.production_ready,
        }, verdict=validation.verdict, recommendation=validation.recommendation),
        files=artifacts.as_files(),
    )

    return ComponentLibraryResult(
        success=validation.production_ready,
        project_name=inputs.project_name,
        scope=inputs.scope,
        platforms=inputs.platforms,
        total_components=total_components,
        foundational_components=len(foundational),
        complex_components=len(complex_designs),
        patterns=patterns.pattern_count,
        token_count=tokens.token_count,
        color_accessibility_score=colors.accessibility_score,
        icon_count=icons.icon_count if icons else None,
        accessibility_score=audit.overall_score,
        critical_accessibility_issues=len(audit.critical_issues),
        stories_count=storybook.stories_count,
        validation_score=validation.validation_score,
        production_ready=validation.production_ready,
        verdict=validation.verdict,
        artifacts=artifacts.to_list(),
        duration_seconds=elapsed_seconds(ctx, started_at),
        metadata=ctx.metadata(started_at, inputs.model_dump()),
    )
