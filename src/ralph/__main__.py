"""CLI entrypoint for Ralph."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from ralph import __version__
from ralph.config import DEFAULT_MAX_ITERATIONS, ConfigurationError, RalphConfig
from ralph.schemas import LoopResult, StopReason

logger = logging.getLogger(__name__)


def _load_dotenv() -> None:
    """Load .env from the cwd or its parent so project defaults apply."""
    for dir_ in (Path.cwd(), Path.cwd().parent):
        env_file = dir_ / ".env"
        if env_file.is_file():
            load_dotenv(env_file)
            return
    load_dotenv()


_load_dotenv()


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the command-line parser."""
    p = argparse.ArgumentParser(
        prog="ralph",
        description="Ralph - autonomous AI agent loop for implementing PRDs.",
        epilog=(
            "examples:\n"
            "  ralph --tool claude 10    Run 10 iterations with Claude Code\n"
            "  ralph --tool amp 5        Run 5 iterations with Amp\n"
            "  ralph init                Set up project for Ralph\n"
            "\n"
            "project files:\n"
            "  prd.json                  User stories with passes status (required)\n"
            "  progress.txt              Append-only learnings log (auto-created)\n"
            "  .ralph/archive/           Archived runs by date/branch\n"
            "  .ralph/.last-branch       Branch tracking state"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument(
        "words",
        nargs="*",
        metavar="init|max_iterations",
        help=f"'init' to set up the project, or the iteration budget (default: {DEFAULT_MAX_ITERATIONS}).",
    )
    p.add_argument(
        "--tool",
        type=str,
        default=None,
        help="AI coding tool: amp or claude (default: $RALPH_TOOL or amp).",
    )
    p.add_argument(
        "--sleep",
        type=float,
        default=None,
        help="Seconds to pause between iterations (default: $RALPH_SLEEP_SECONDS or 2).",
    )
    p.add_argument(
        "--project-dir",
        type=str,
        default=None,
        help="Project directory holding prd.json (default: current directory).",
    )
    p.add_argument(
        "--template-dir",
        type=str,
        default=None,
        help="Directory with prompt.md / CLAUDE.md overrides (default: $RALPH_HOME).",
    )
    p.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"ralph version {__version__}",
    )
    p.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging.",
    )
    return p


def _parse_words(words: list[str]) -> tuple[str, int | None]:
    """Split positional words into a command and an optional iteration budget.

    Words that are neither ``init`` nor a number are ignored.
    """
    command = "run"
    max_iterations: int | None = None
    for word in words:
        if word == "init":
            command = "init"
        elif word.isascii() and word.isdigit():
            max_iterations = int(word)
        else:
            logger.warning("Ignoring unrecognized argument: %s", word)
    return command, max_iterations


def main(argv: list[str] | None = None) -> int:
    """Parse arguments and dispatch to init or the loop."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    # -- Logging setup ----------------------------------------------------------
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )
    command, max_iterations = _parse_words(args.words)
    project_dir = Path(args.project_dir) if args.project_dir else Path.cwd()

    if command == "init":
        return _run_init(project_dir.resolve())

    try:
        config = RalphConfig.from_env(
            project_dir=project_dir,
            tool=args.tool,
            max_iterations=max_iterations,
            sleep_seconds=args.sleep,
            template_dir=Path(args.template_dir) if args.template_dir else None,
        )
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return _run_loop(config)


# -- Init command ---------------------------------------------------------------


def _run_init(project_dir: Path) -> int:
    """Create the .ralph/ layout and tell the operator what is missing."""
    from ralph.project import init_project
    from ralph.prompts import PromptCatalog

    print(f"Initializing Ralph in {project_dir}...")
    report = init_project(project_dir)
    print("Created .ralph/ directory structure")

    if report.has_prd:
        print("Found existing prd.json")
    else:
        print(f"\nNote: No prd.json found in {project_dir}")
        print("Create a prd.json file to define your user stories, for example:\n")
        print(PromptCatalog().prd_example())

    print("\nRalph initialized! Run 'ralph --tool claude' or 'ralph --tool amp' to start.")
    return 0


# -- Loop command ---------------------------------------------------------------


def _run_loop(config: RalphConfig) -> int:
    """Run the controller and print the outcome."""
    from ralph.controller import RalphController

    controller = RalphController(config)
    try:
        result = controller.run()
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        print("Run 'ralph --help' for usage information.", file=sys.stderr)
        return 1

    _print_summary(result, config)
    return result.exit_code


def _print_summary(result: LoopResult, config: RalphConfig) -> None:
    print()
    if result.archive is not None:
        print(f"Archived previous run to: {result.archive.path}")
    if result.outcome == StopReason.COMPLETED:
        print("Ralph completed all tasks!")
        print(f"Completed at iteration {result.iterations} of {result.max_iterations}")
    else:
        print(
            f"Ralph reached max iterations ({result.max_iterations}) "
            "without completing all tasks."
        )
        print(f"Check {config.progress_file} for status.")


if __name__ == "__main__":
    raise SystemExit(main())
