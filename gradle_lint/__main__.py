#!/usr/bin/env python3
"""gradle_lint/__main__.py — CLI entry-point.

Usage examples
--------------
    # Report missing build-scan plugin
    python -m gradle_lint build.gradle

    # Write the corrected script to stdout
    python -m gradle_lint build.gradle --fix

    # Require some other plugin, for an old Gradle
    python -m gradle_lint build.gradle --gradle-version 2.0 \\
        --plugin nebula.lint --plugin-version 6.1.4 \\
        --classpath com.netflix.nebula:gradle-lint-plugin:6.1.4 --fix -o fixed.gradle

Exit codes
----------
    0   Success (no violations, or all of them fixed).
    1   Unexpected error.
    2   Infrastructure failure (missing file, unparseable script).
    3   Violations found and not fixed.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import textwrap
from pathlib import Path
from typing import Dict, List, Optional, Sequence, TextIO

from termcolor import colored

from gradle_lint import __version__
from gradle_lint.errors import GradleLintError, ScriptParseError
from gradle_lint.rule import Rule
from gradle_lint.rules import BuildScanRule, RequiredPluginRule
from gradle_lint.runner import LintConfig, lint_file
from gradle_lint.violation import Violation

_log = logging.getLogger("gradle_lint")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2
EXIT_VIOLATION: int = 3


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``gradle_lint`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("gradle_lint")
    root.setLevel(level)
    root.addHandler(handler)


def _open_output(dest: Optional[str]) -> TextIO:
    """``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path for writing."""
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    # newline="" keeps the script's own line separators
    return open(p, "w", encoding="utf-8", newline="")


def _colour_options(stream: TextIO) -> Dict[str, bool]:
    """termcolor switches for ``stream``: plain unless it is a terminal."""
    isatty = getattr(stream, "isatty", None)
    if isatty is None or not isatty():
        return {"no_color": True}
    if "NO_COLOR" in os.environ or "ANSI_COLORS_DISABLED" in os.environ:
        return {"no_color": True}
    return {"force_color": True}


def _format_violation(
    violation: Violation, build_file: str, stream: Optional[TextIO] = None
) -> str:
    """``file:line: warning: message [rule-id]``, coloured when ``stream`` is a terminal."""
    options = _colour_options(sys.stderr if stream is None else stream)
    where = build_file if violation.line is None else f"{build_file}:{violation.line}"
    return (
        f"{colored(where, 'cyan', attrs=['bold'], **options)}: "
        f"{colored('warning', 'yellow', attrs=['bold'], **options)}: "
        f"{colored(violation.message, 'white', attrs=['bold'], **options)} "
        f"{colored(f'[{violation.rule_id}]', attrs=['dark'], **options)}"
    )


def _parse_properties(raw: Sequence[str]) -> Dict[str, str]:
    properties: Dict[str, str] = {}
    for item in raw:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {item!r}")
        properties[key.strip()] = value
    return properties


def _build_rules(args: argparse.Namespace) -> List[Rule]:
    if args.plugin is None:
        return [BuildScanRule()]
    if not args.plugin_version or not args.classpath:
        raise argparse.ArgumentTypeError("--plugin requires --plugin-version and --classpath")
    return [RequiredPluginRule(args.plugin, args.plugin_version, args.classpath)]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gradle-lint",
        description=(
            "Lint a Gradle build script for a required plugin and\n"
            "optionally write the corrected script."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              gradle-lint build.gradle
              gradle-lint build.gradle --gradle-version 3.2 --fix -o build.gradle.fixed
        """),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )
    parser.add_argument("build_file", help="Gradle build script to lint.")
    parser.add_argument("--gradle-version", default=None, help="Gradle version of the build.")
    parser.add_argument(
        "--configuration",
        action="append",
        default=[],
        metavar="NAME",
        help="Dependency configuration name (repeatable; replaces the defaults).",
    )
    parser.add_argument(
        "--property",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Project property used to resolve dependency expressions (repeatable).",
    )

    plugin = parser.add_argument_group("required plugin (default: build-scan)")
    plugin.add_argument("--plugin", default=None, metavar="ID", help="Plugin id.")
    plugin.add_argument("--plugin-version", default=None, metavar="VERSION")
    plugin.add_argument("--classpath", default=None, metavar="GROUP:NAME:VERSION")

    parser.add_argument(
        "--fix",
        action="store_true",
        help="Write the corrected script instead of reporting violations.",
    )
    parser.add_argument(
        "-o", "--output",
        default=None,
        metavar="FILE",
        help="Destination of the corrected script (default: stdout).",
    )
    return parser


def _run(args: argparse.Namespace) -> int:
    path = Path(args.build_file).expanduser()
    if not path.is_file():
        _log.error("build file not found: %s", path)
        return EXIT_INFRA

    try:
        rules = _build_rules(args)
        config = LintConfig(
            gradle_version=args.gradle_version,
            configurations=frozenset(args.configuration),
            properties=_parse_properties(args.property),
            build_file=str(args.build_file),
        )
    except argparse.ArgumentTypeError as exc:
        _log.error("%s", exc)
        return EXIT_ERROR

    try:
        result = lint_file(path, rules, config, fix=args.fix)
    except ScriptParseError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA

    for violation in result.violations:
        print(_format_violation(violation, result.build_file, sys.stderr), file=sys.stderr)

    if args.fix:
        stream = _open_output(args.output)
        try:
            stream.write(result.corrected if result.corrected is not None else result.source)
        finally:
            if stream is not sys.stdout:
                stream.close()
        unfixed = [v for v in result.violations if not v.fixable]
        return EXIT_VIOLATION if unfixed else EXIT_OK

    return EXIT_VIOLATION if result.violations else EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        return _run(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except GradleLintError as exc:
        _log.error("%s", exc)
        return EXIT_ERROR
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
