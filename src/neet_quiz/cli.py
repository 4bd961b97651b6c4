"""Command-line entry point for ``neet-quiz``."""

from __future__ import annotations

import argparse
import logging
import sys
from importlib import metadata
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console

from neet_quiz.core import workspace as workspace_mod
from neet_quiz.core.logging import configure_logger
from neet_quiz.core.workspace import WorkspaceError
from neet_quiz.quiz.config import (
    CONFIG_FILENAME,
    ConfigOverrides,
    QuizConfig,
    QuizConfigError,
    load_config,
    write_template,
)
from neet_quiz.quiz.encoder import UploadedFile
from neet_quiz.quiz.exporter import ExportFormat, write_export
from neet_quiz.quiz.pipeline import QuizGenerator
from neet_quiz.quiz.session import InputProvider, render_error, run_quiz_session
from neet_quiz.quiz.state import Answering, Error, QuizStateMachine, Scored
from neet_quiz.quiz.transport import GenerationClient


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="neet-quiz",
        description=(
            "Generate NEET-level multiple-choice quizzes from your study "
            "files, take them in the terminal and export the solutions."
        ),
    )
    parser.add_argument(
        "-V", "--version", action="store_true", help="Print the version."
    )
    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="Generate a quiz and take it.")
    run.add_argument(
        "files",
        nargs="*",
        type=Path,
        help="Files (images, PDFs, notes) to generate questions from.",
    )
    run.add_argument(
        "--count",
        type=int,
        help="Number of questions to request (defaults to the config value).",
    )
    run.add_argument(
        "--export",
        nargs="+",
        choices=[fmt.value for fmt in ExportFormat],
        default=[],
        help="Write the questions and solutions in these formats.",
    )
    run.add_argument(
        "--output-dir",
        type=Path,
        help="Directory for exported files (defaults to <workspace>/exports).",
    )
    run.add_argument(
        "--no-interactive",
        dest="interactive",
        action="store_false",
        help="Skip the answering session; only generate and export.",
    )
    run.add_argument("--config", type=Path, help="Path to a config TOML.")
    run.add_argument("--workspace", type=Path, help="Workspace root override.")
    run.add_argument("--model", help="Override the generation model.")
    run.add_argument("--log-level", help="Logging level for the run.")
    run.add_argument(
        "--verbose",
        action="store_true",
        default=None,
        help="Echo log records to stderr.",
    )

    config = sub.add_parser("config", help="Manage configuration files.")
    config_sub = config.add_subparsers(dest="action", required=True)
    init = config_sub.add_parser(
        "init", help=f"Write the default {CONFIG_FILENAME} template."
    )
    init.add_argument(
        "--path",
        type=Path,
        help="Destination (defaults to the workspace config directory).",
    )
    init.add_argument("--workspace", type=Path, help="Workspace root override.")
    init.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the destination if a config already exists.",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.version:
        return _handle_version()
    if args.command == "run":
        return _cmd_run(args)
    if args.command == "config":
        return _cmd_config_init(args)
    parser.print_help()
    return 2


def _handle_version() -> int:
    try:
        version = metadata.version("neet-quiz")
    except metadata.PackageNotFoundError:
        version = "unknown"
    sys.stdout.write(version + "\n")
    return 0


def _cmd_run(
    args: argparse.Namespace,
    *,
    console: Optional[Console] = None,
    input_provider: Optional[InputProvider] = None,
) -> int:
    console = console or Console()
    overrides = ConfigOverrides(
        model=args.model,
        export_dir=args.output_dir,
        log_level=args.log_level,
        verbose=args.verbose,
    )
    try:
        load_result = load_config(
            config_path=args.config,
            overrides=overrides,
            workspace_path=args.workspace,
        )
    except (QuizConfigError, WorkspaceError) as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 2
    config = load_result.config

    logger, log_path = configure_logger(
        "neet_quiz",
        log_dir=load_result.layout.path_for("logs"),
        level=config.log_level,
        verbose=config.verbose,
        secrets=(config.api_key,),
    )
    logger.debug(
        "neet-quiz run invoked",
        extra={"files": [str(p) for p in args.files], "count": args.count},
    )

    uploads = [UploadedFile.from_path(path) for path in args.files]
    with GenerationClient.from_config(config, logger=logger) as client:
        generator = QuizGenerator(
            client, default_count=config.default_count, logger=logger
        )
        machine = QuizStateMachine(generator.generate, logger=logger)
        with console.status("Generating NEET-level questions..."):
            state = machine.submit(uploads, args.count)

    if isinstance(state, Error):
        render_error(console, state)
        console.print(f"[dim]Details in {log_path}[/]")
        return 1

    if args.interactive:
        result = run_quiz_session(
            machine,
            console,
            input_provider or (lambda: console.input("[bold]> [/]")),
        )
        state = result.state

    return _export(
        args.export,
        state,
        config,
        console,
        logger,
        require_scored=args.interactive,
    )


def _export(
    formats: Sequence[str],
    state: object,
    config: QuizConfig,
    console: Console,
    logger: logging.Logger,
    *,
    require_scored: bool,
) -> int:
    if not formats:
        return 0
    if isinstance(state, Scored):
        questions, answers = state.questions, state.answers
    elif isinstance(state, Answering) and not require_scored:
        questions, answers = state.questions, None
    else:
        console.print("[yellow]Quiz not submitted; nothing exported.[/]")
        return 1
    try:
        for value in formats:
            target = write_export(
                questions,
                ExportFormat.from_value(value),
                config.export_dir,
                answers=answers,
                logger=logger,
            )
            console.print(f"Exported {len(questions)} question(s) -> {target}")
    except OSError as exc:
        logger.error("Export failed", extra={"error": str(exc)})
        sys.stderr.write(f"Failed to write export: {exc}\n")
        return 1
    return 0


def _cmd_config_init(args: argparse.Namespace) -> int:
    try:
        target = _resolve_config_target(args)
    except WorkspaceError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1
    try:
        written = write_template(target, overwrite=args.force)
    except QuizConfigError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1
    sys.stdout.write(f"Wrote neet-quiz config to {written}\n")
    return 0


def _resolve_config_target(args: argparse.Namespace) -> Path:
    if args.path is not None:
        return args.path.expanduser().absolute()
    layout = workspace_mod.ensure_workspace(path=args.workspace)
    return layout.path_for("config") / CONFIG_FILENAME


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
