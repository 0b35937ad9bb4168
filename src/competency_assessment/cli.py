"""Command-line entry point for the assessment engine."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import random
import sys
from importlib import metadata
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console

from competency_assessment.core import config_templates
from competency_assessment.core.ai import load_async_client
from competency_assessment.core.config_templates import ConfigTemplateError
from competency_assessment.core.logging import configure_logger

from .assessment.config import (
    CONFIG_FILENAME,
    AssessmentConfig,
    AssessmentConfigError,
    ConfigOverrides,
    load_config,
)
from .assessment.errors import GenerationExhaustedError
from .assessment.generator import QuestionBankGenerator
from .assessment.reporter import ProgressTracker
from .assessment.scheduler import ManualScheduler
from .assessment.service import OpenAIGenerationService
from .assessment.session import QuizSession
from .assessment.view import (
    console_notice_sink,
    render_question_bank,
    run_terminal_assessment,
)

LOGGER_NAME = "competency_assessment"


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("title", help="Topic title to assess.")
    parser.add_argument(
        "--description", help="Optional topic description for keywords."
    )
    parser.add_argument(
        "--count", type=int, help="Number of questions (defaults to config)."
    )
    parser.add_argument(
        "--seed", type=int, help="Seed for reproducible offline questions."
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip the AI service and use the offline question set.",
    )
    parser.add_argument("--model", help="Override the AI model name.")
    parser.add_argument(
        "--config",
        type=Path,
        help=f"Path to a TOML config (defaults to ./{CONFIG_FILENAME}).",
    )
    parser.add_argument("--log-level", help="Logging level for the log file.")
    parser.add_argument(
        "--verbose", action="store_true", help="Also log to stderr."
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="assess",
        description="Generate question banks and run timed assessments.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sp_generate = sub.add_parser(
        "generate", help="Generate and print a question bank"
    )
    _add_common_arguments(sp_generate)
    sp_generate.add_argument(
        "--output", type=Path, help="Write the bank as JSON lines to this file."
    )

    sp_take = sub.add_parser("take", help="Take a timed assessment")
    _add_common_arguments(sp_take)

    sp_config = sub.add_parser("config", help="Manage configuration files")
    config_sub = sp_config.add_subparsers(dest="action", required=True)
    sp_init = config_sub.add_parser(
        "init", help=f"Write the default {CONFIG_FILENAME} template"
    )
    sp_init.add_argument(
        "--path",
        type=Path,
        default=Path(CONFIG_FILENAME),
        help="Destination for the config TOML.",
    )
    sp_init.add_argument(
        "--force", action="store_true", help="Overwrite an existing file."
    )

    sub.add_parser("version", help="Print the installed version")
    return parser


def _load(args: argparse.Namespace) -> AssessmentConfig:
    overrides = ConfigOverrides(
        desired_count=args.count,
        use_ai=False if args.offline else None,
        model=args.model,
        log_level=args.log_level,
        verbose=True if args.verbose else None,
    )
    return load_config(config_path=args.config, overrides=overrides).config


def _setup_logging(config: AssessmentConfig) -> logging.Logger:
    logger, _ = configure_logger(
        LOGGER_NAME,
        log_dir=config.logging.log_dir,
        level=config.logging.level,
        verbose=config.logging.verbose,
    )
    return logger


def _build_generator(
    config: AssessmentConfig, seed: Optional[int], logger: logging.Logger
) -> QuestionBankGenerator:
    service = None
    if config.generation.use_ai:
        try:
            client = load_async_client()
        except RuntimeError as exc:
            logger.warning(
                "AI client unavailable; using offline questions",
                extra={"reason": str(exc)},
            )
        else:
            service = OpenAIGenerationService(
                client,
                model=config.ai.model,
                temperature=config.ai.temperature,
                max_tokens=config.ai.max_tokens,
            )
    return QuestionBankGenerator(
        service,
        rng=random.Random(seed),
        reshuffle_probability=config.ai.reshuffle_probability,
    )


def _cmd_generate(args: argparse.Namespace, config: AssessmentConfig) -> int:
    logger = _setup_logging(config)
    console = Console()
    generator = _build_generator(config, args.seed, logger)
    bank = asyncio.run(
        generator.generate_bank(
            args.title,
            args.description,
            config.generation.desired_count,
            config.generation.distribution,
        )
    )
    if not bank.questions:
        console.print("[red]No questions generated.[/]")
        return 1
    if bank.degraded:
        console.print(
            f"[yellow]Using offline question set ({bank.degraded_reason}).[/]"
        )
    render_question_bank(console, bank.questions, title=args.title)
    if args.output is not None:
        _write_jsonl(args.output, [q.to_dict() for q in bank.questions])
        console.print(f"Wrote {len(bank.questions)} question(s) -> {args.output}")
    return 0


def _cmd_take(args: argparse.Namespace, config: AssessmentConfig) -> int:
    logger = _setup_logging(config)
    console = Console()
    scheduler = ManualScheduler()
    tracker = ProgressTracker()
    session = QuizSession(
        _build_generator(config, args.seed, logger),
        scheduler,
        on_complete=tracker.completion_callback(args.title),
        notify=console_notice_sink(console),
        subtask_ref=args.title,
        desired_count=config.generation.desired_count,
        distribution=config.generation.distribution,
        pass_threshold=config.scoring.pass_threshold,
    )
    try:
        asyncio.run(session.start(args.title, args.description))
    except GenerationExhaustedError:
        return 1
    outcome = run_terminal_assessment(session, scheduler, console, input)
    if outcome != "completed":
        return 1
    return 0 if tracker.is_completed(args.title) else 1


def _cmd_config_init(args: argparse.Namespace) -> int:
    template = config_templates.get_template("assessment")
    try:
        written = template.write(args.path, overwrite=args.force)
    except ConfigTemplateError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1
    sys.stdout.write(f"Wrote assessment config to {written}\n")
    return 0


def _cmd_version() -> int:
    try:
        version = metadata.version("competency-assessment")
    except metadata.PackageNotFoundError:
        version = "unknown"
    sys.stdout.write(version + "\n")
    return 0


def _write_jsonl(path: Path, records: Sequence[dict]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        for record in records:
            fh.write(json.dumps(record, ensure_ascii=False))
            fh.write("\n")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if args.command == "config":
        return _cmd_config_init(args)
    if args.command == "version":
        return _cmd_version()

    try:
        config = _load(args)
    except AssessmentConfigError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 2

    if args.command == "generate":
        return _cmd_generate(args, config)
    return _cmd_take(args, config)


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
