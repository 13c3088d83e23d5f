from __future__ import annotations

"""Command-line interface for designflow."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from designflow.config import DesignFlowConfig, get_default_config
from designflow.errors import DesignFlowError
from designflow.events.store import RunStore
from designflow.orchestrator import ProcessRunner
from designflow.processes import get_process, list_processes
from designflow.providers import get_provider
from designflow.runners import (
    AgentStepRunner,
    AutoApproveReviewer,
    ConsoleReviewer,
    Reviewer,
    ScriptedStepRunner,
    StepRunner,
)

logger = logging.getLogger(__name__)


def _load_json(path: str | None) -> dict[str, Any]:
    if not path:
        return {}
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return data


def create_step_runner(config: DesignFlowConfig, args: argparse.Namespace) -> StepRunner:
    """Create the step runner: scripted for dry runs, LLM-backed otherwise."""
    if args.dry_run:
        return ScriptedStepRunner(responses=_load_json(args.responses))

    pc = config.provider
    provider = get_provider(pc.type.value, pc.resolved_model(), **pc.provider_kwargs())
    return AgentStepRunner(
        provider,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )


def create_runner(config: DesignFlowConfig, args: argparse.Namespace) -> ProcessRunner:
    """Create a fully configured process runner."""
    reviewer: Reviewer
    if args.auto_approve or config.auto_approve:
        reviewer = AutoApproveReviewer()
    else:
        reviewer = ConsoleReviewer()

    return ProcessRunner(
        step_runner=create_step_runner(config, args),
        reviewer=reviewer,
        store=RunStore(args.runs_dir or config.runs_dir),
        max_concurrent=config.max_concurrent,
    )


def cmd_list(args: argparse.Namespace) -> int:
    """List registered processes."""
    for definition in list_processes():
        print(f"{definition.short_name:28} {definition.description}")
    return 0


def cmd_describe(args: argparse.Namespace) -> int:
    """Print a process's description and input schema."""
    definition = get_process(args.process)
    print(json.dumps(definition.describe(), indent=2))
    return 0


async def cmd_run(args: argparse.Namespace) -> int:
    """Run a process to completion."""
    config = get_default_config()
    runner = create_runner(config, args)
    inputs = _load_json(args.inputs)

    print(f"Running process: {args.process}")
    print("-" * 50)

    step_runner = runner.step_runner
    try:
        result = await runner.run(args.process, inputs)
    finally:
        if isinstance(step_runner, AgentStepRunner):
            await step_runner.provider.close()

    print("\n" + "=" * 50)
    print("RESULT")
    print("=" * 50)
    print(json.dumps(result.model_dump(mode="json"), indent=2))

    return 0 if getattr(result, "success", True) else 1


def cmd_runs(args: argparse.Namespace) -> int:
    """List recorded runs."""
    config = get_default_config()
    store = RunStore(args.runs_dir or config.runs_dir)
    runs = store.list_runs(status=args.status, limit=args.limit)
    if not runs:
        print("No runs found")
        return 0
    for run in runs:
        print(
            f"{run['id']:14} {run['status']:10} {run['steps_completed']:4} steps  "
            f"{run['process_id']}"
        )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="designflow - UX/UI design process runner"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("list", help="List available processes")

    describe_parser = subparsers.add_parser("describe", help="Show a process and its inputs")
    describe_parser.add_argument("process", help="Process id or short name")

    run_parser = subparsers.add_parser("run", help="Run a process")
    run_parser.add_argument("process", help="Process id or short name")
    run_parser.add_argument(
        "--inputs", "-i",
        help=(
            "JSON file with process inputs. Required for processes whose inputs "
            "need projectName (see `describe`)"
        ),
    )
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Answer every task with scripted or default output instead of an LLM",
    )
    run_parser.add_argument(
        "--responses",
        help="JSON file mapping task names to scripted outputs (with --dry-run)",
    )
    run_parser.add_argument(
        "--auto-approve",
        action="store_true",
        help="Approve every checkpoint without prompting",
    )
    run_parser.add_argument(
        "--runs-dir",
        help="Directory for run journals (default: from config)",
    )

    runs_parser = subparsers.add_parser("runs", help="List recorded runs")
    runs_parser.add_argument("--status", help="Filter by status")
    runs_parser.add_argument("--limit", type=int, default=20)
    runs_parser.add_argument(
        "--runs-dir",
        help="Directory for run journals (default: from config)",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        if args.command == "list":
            sys.exit(cmd_list(args))
        elif args.command == "describe":
            sys.exit(cmd_describe(args))
        elif args.command == "run":
            sys.exit(asyncio.run(cmd_run(args)))
        elif args.command == "runs":
            sys.exit(cmd_runs(args))
        else:
            parser.print_help()
            sys.exit(1)
    except (DesignFlowError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
