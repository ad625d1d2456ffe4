"""Main CLI entry point for minibuild.

Provides commands: build, dag, driver
"""

import argparse
import logging
import sys
from typing import List, Optional, Tuple

from rich.console import Console
from rich.logging import RichHandler

from minibuild.bootstrap.arguments import ArgumentFacility
from minibuild.cli.build import build_command
from minibuild.cli.dag import dag_command
from minibuild.cli.driver import driver_command
from minibuild.config.options import DEFAULT_BUILD_FILE

logger = logging.getLogger("minibuild.cli")


def setup_logging(
    verbose: bool = False, quiet: bool = False, console: Optional[Console] = None
) -> None:
    """Setup logging configuration with Rich integration.

    Every record renders as a colored level tag followed by the message.

    Args:
        verbose: Enable debug logging.
        quiet: Only show warnings and errors.
        console: Rich Console instance for output (optional, stdout).
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = RichHandler(
        console=console or Console(file=sys.stdout),
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
    )

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        prog="minibuild",
        description="minibuild - minimal incremental build engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only report warnings and errors",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Build command
    build_parser = subparsers.add_parser(
        "build",
        help="Build a target and its stale dependencies",
    )
    build_parser.add_argument(
        "target",
        nargs="?",
        help="Target to build (default: the build file's default target)",
    )
    build_parser.add_argument(
        "-f",
        "--file",
        default=DEFAULT_BUILD_FILE,
        help=f"Declarative build file, TOML or JSON (default: {DEFAULT_BUILD_FILE})",
    )
    # -j / -B / --clean come from the shared argument definitions.
    ArgumentFacility().add_to_parser(build_parser)
    # Unset values fall back to the build file's [build] section.
    build_parser.set_defaults(nb_process=None)
    build_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail when a file source does not exist instead of skipping it",
    )

    # Graph inspection command
    dag_parser = subparsers.add_parser(
        "dag",
        help="Inspect the target graph and report dependency cycles",
    )
    dag_parser.add_argument(
        "target",
        nargs="?",
        help="Target whose build order is printed",
    )
    dag_parser.add_argument(
        "-f",
        "--file",
        default=DEFAULT_BUILD_FILE,
        help=f"Declarative build file, TOML or JSON (default: {DEFAULT_BUILD_FILE})",
    )
    dag_parser.add_argument(
        "--limit",
        type=int,
        default=20,
        help=(
            "Maximum number of cycles to report (default: 20). "
            "Use <=0 for no limit."
        ),
    )
    dag_parser.add_argument(
        "--fail-on-cycle",
        action="store_true",
        help=(
            "Exit with non-zero status when dependency cycles are found. "
            "Useful for CI validation."
        ),
    )

    # Compiled driver command
    driver_parser = subparsers.add_parser(
        "driver",
        help="Recompile a build driver when it is stale, then run it",
    )
    driver_parser.add_argument(
        "source",
        help="Source of the build driver",
    )
    driver_parser.add_argument(
        "-o",
        "--output",
        help="Compiled driver path (default: source path without extension)",
    )
    driver_parser.add_argument(
        "--cc",
        default="cc",
        help="Compiler command (default: cc)",
    )
    driver_parser.add_argument(
        "--cflag",
        action="append",
        help="Extra compiler flag (repeatable)",
    )
    driver_parser.add_argument(
        "--step",
        type=int,
        default=0,
        help="Bootstrap step the current driver was compiled with (default: 0)",
    )
    driver_parser.add_argument(
        "--args-header",
        help="Argument facility header; its presence enables the staged rebuild",
    )
    driver_parser.add_argument(
        "--args-enabled",
        action="store_true",
        help="The current driver was compiled with the argument facility (implied by --step >= 1)",
    )
    # Everything after "--" is forwarded untouched, see split_forwarded_args.
    driver_parser.set_defaults(driver_args=[])

    return parser


def split_forwarded_args(argv: List[str]) -> Tuple[List[str], List[str]]:
    """Split ``driver`` arguments at the first ``--``.

    Returns:
        Tuple[List[str], List[str]]: Arguments for minibuild itself and the
        arguments forwarded verbatim to the driver.
    """
    if "--" not in argv:
        return argv, []
    index = argv.index("--")
    if "driver" not in argv[:index]:
        return argv, []
    return argv[:index], argv[index + 1 :]


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        int: Exit code.
    """
    argv = list(sys.argv[1:] if argv is None else argv)
    own_args, forwarded = split_forwarded_args(argv)

    parser = create_parser()
    args = parser.parse_args(own_args)
    if args.command == "driver":
        args.driver_args = forwarded

    setup_logging(args.verbose, args.quiet)

    if args.command == "build":
        return build_command(args)
    elif args.command == "dag":
        return dag_command(args)
    elif args.command == "driver":
        return driver_command(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
