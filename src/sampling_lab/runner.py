"""
sampling-lab CLI Runner

Minimal CLI for running sampling-parameter experiments and inspecting saved results.

Usage:
    python -m sampling_lab.runner run --prompt "Explain quantum computing in simple terms"
    python -m sampling_lab.runner run --prompt "..." --temperatures 0.1,0.9 --top-ps 0.5 --model claude-haiku-4-5-20251001

Inspect saved experiments:
    python -m sampling_lab.runner list
    python -m sampling_lab.runner show <experiment-id>
    python -m sampling_lab.runner export <experiment-id> --format csv --output experiment.csv
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from sampling_lab.domain.errors import PersistenceError, ValidationError
from sampling_lab.infrastructure.model_clients import create_client
from sampling_lab.infrastructure.storage import CsvStorage, StorageService
from sampling_lab.lab_config import LabConfig, load_config
from sampling_lab.use_cases.experiment import ExperimentOrchestrator
from sampling_lab.use_cases.export import (
    EXPORT_FORMATS,
    best_response,
    comparison_frame,
    export_experiment,
    export_filename,
    to_iso,
)
from sampling_lab.use_cases.health_check import check_storage, health_check_model


def _float_list(value: str) -> list[float]:
    try:
        return [float(x.strip()) for x in value.split(",") if x.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a comma-separated list of numbers, got '{value}'")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="sampling-lab: Compare LLM responses across temperature and top-p settings",
    )
    parser.add_argument(
        "--storage-dir",
        default=None,
        help="Directory holding experiments.csv / responses.csv (default: LAB_STORAGE_DIR or results)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run a new experiment")
    run.add_argument("--prompt", required=True, help="Prompt text (at least 10 characters)")
    run.add_argument(
        "--temperatures",
        type=_float_list,
        default=None,
        help="Comma-separated temperatures (default: LAB_TEMPERATURES)",
    )
    run.add_argument(
        "--top-ps",
        type=_float_list,
        default=None,
        help="Comma-separated top-p values (default: LAB_TOP_PS)",
    )
    run.add_argument("--model", default=None, help="Model name (default: LAB_MODEL)")
    run.add_argument(
        "--deadline",
        type=float,
        default=None,
        help="Overall time budget in seconds, 0 = none (default: LAB_DEADLINE_SECONDS)",
    )
    run.add_argument(
        "--skip-health-check",
        action="store_true",
        help="Do not ping the model before dispatching",
    )

    subparsers.add_parser("list", help="List saved experiments, newest first")

    show = subparsers.add_parser("show", help="Show the comparison table of an experiment")
    show.add_argument("experiment_id")

    export = subparsers.add_parser("export", help="Export an experiment as JSON or CSV")
    export.add_argument("experiment_id")
    export.add_argument("--format", default="json", choices=EXPORT_FORMATS)
    export.add_argument(
        "--output",
        default=None,
        help="Output path (default: experiment-<id>.<format> in the current directory)",
    )

    return parser.parse_args(argv)


def _print_comparison(responses) -> None:
    df = comparison_frame(responses)
    if df.empty:
        print("  (no responses)")
        return
    print(df.drop(columns=["id"]).to_string(index=False))


def _cmd_run(args: argparse.Namespace, config: LabConfig, storage: StorageService) -> int:
    model = args.model or config.generation.model
    config.generation.model = model
    temperatures = args.temperatures if args.temperatures is not None else config.grid.temperatures
    top_ps = args.top_ps if args.top_ps is not None else config.grid.top_ps

    print(f"\n=== Experiment ===\n")
    print(f"  Prompt: {args.prompt}")
    print(f"  Model: {model}")
    print(f"  Temperatures: {temperatures}")
    print(f"  Top-p: {top_ps}")
    print(f"  Storage: {config.storage.directory}")
    print()

    storage_check = check_storage(storage)
    if not storage_check.success:
        print(f"ERROR: Storage is not readable: {storage_check.error}")
        return 1

    try:
        generator = create_client(model, config=config)
    except ValueError as e:
        print(f"ERROR: {e}")
        return 1

    if not args.skip_health_check:
        print(f"=== Model Health Check ===\n")
        print(f"  {model}... ", end="", flush=True)
        result = health_check_model(model, lambda _name: generator)
        if not result.success:
            print("FAILED")
            # Display only the first 100 characters of the error message
            print(f"    Error: {(result.error or 'Unknown error')[:100]}")
            return 1
        print(f"OK ({result.latency_ms}ms)\n")

    orchestrator = ExperimentOrchestrator.from_config(config, generator, storage)
    print(f"=== Running {len(temperatures) * len(top_ps)} generations ===\n")
    try:
        result = orchestrator.run_experiment(
            args.prompt, temperatures, top_ps, deadline_seconds=args.deadline,
        )
    except (ValidationError, PersistenceError) as e:
        print(f"ERROR: {e}")
        return 1

    _print_comparison(result.responses)
    print()

    if result.failures:
        print(f"=== Failed generations ({len(result.failures)}) ===\n")
        for failure in result.failures:
            print(
                f"  temperature={failure.combination.temperature} top_p={failure.combination.top_p} "
                f"[{failure.kind}] {failure.reason[:100]}"
            )
        print()

    best = best_response(result.responses)
    print(f"=== Summary ===\n")
    print(f"  Experiment ID:   {result.experiment_id}")
    print(f"  Generated:       {result.metadata.total_generated}")
    print(f"  Average score:   {result.metadata.average_score}")
    print(f"  Total time:      {result.metadata.total_time_ms}ms")
    if best is not None:
        print(f"  Best:            temperature={best.temperature} top_p={best.top_p} (overall {best.metrics.overall})")
    print()
    return 0


def _cmd_list(storage: StorageService) -> int:
    experiments = storage.get_all_experiments()
    if not experiments:
        print("No experiments found.")
        return 0
    print(f"  {'ID':<36}  {'Created At':<24}  Prompt")
    print(f"  {'-'*36}  {'-'*24}  {'-'*40}")
    for experiment in experiments:
        prompt = experiment.prompt if len(experiment.prompt) <= 60 else experiment.prompt[:57] + "..."
        print(f"  {experiment.id:<36}  {to_iso(experiment.created_at):<24}  {prompt}")
    return 0


def _cmd_show(args: argparse.Namespace, storage: StorageService) -> int:
    experiment = storage.get_experiment(args.experiment_id)
    if experiment is None:
        print(f"ERROR: Experiment not found: {args.experiment_id}")
        return 1
    print(f"\n=== Experiment {experiment.id} ===\n")
    print(f"  Prompt: {experiment.prompt}")
    print(f"  Created: {to_iso(experiment.created_at)}")
    print()
    _print_comparison(experiment.responses or [])
    print()
    return 0


def _cmd_export(args: argparse.Namespace, storage: StorageService) -> int:
    experiment = storage.get_experiment(args.experiment_id)
    if experiment is None:
        print(f"ERROR: Experiment not found: {args.experiment_id}")
        return 1
    output = Path(args.output or export_filename(experiment.id, args.format))
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(export_experiment(experiment, args.format), encoding="utf-8")
    print(f"  Exported: {output}")
    return 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config()
    if args.storage_dir:
        config.storage.directory = args.storage_dir
    storage = CsvStorage(config.storage.directory)

    try:
        if args.command == "run":
            return _cmd_run(args, config, storage)
        if args.command == "list":
            return _cmd_list(storage)
        if args.command == "show":
            return _cmd_show(args, storage)
        return _cmd_export(args, storage)
    except PersistenceError as e:
        print(f"ERROR: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
