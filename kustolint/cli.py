"""CLI entrypoint for kustolint."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError, load_config
from .logging import configure_logging
from .models import DiscoveredFiles
from .orchestrator import StaticAnalysis
from .report import ReportWriter


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kustolint",
        description=(
            "Lint tracked Markdown and shell files and build every kustomization "
            "directory in parallel, then print a single summary."
        ),
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help=(
            "Path to the repository root (defaults to the directory holding "
            "--config, else the current directory)."
        ),
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a .kustolint.yml file (defaults to the one in the repository root).",
    )
    parser.add_argument(
        "--ci",
        action="store_true",
        help="Frame output with ::group:: markers (also enabled by the CI variable).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log debug detail and keep captured outputs (also enabled by DEBUG).",
    )
    parser.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="Report format written to stdout.",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="Print the discovered files and directories without running any tool.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write log records to this file.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint; returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    config_path = Path(args.config) if args.config else Path(args.path or ".")
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        parser.exit(2, f"kustolint: {exc}\n")
    config.ci_mode = config.ci_mode or bool(args.ci)
    config.debug_mode = config.debug_mode or bool(args.debug)

    configure_logging(
        verbose=bool(args.verbose) or config.debug_mode,
        log_file=Path(args.log_file) if args.log_file else None,
    )

    analysis = StaticAnalysis(config)
    try:
        if args.list:
            print(_format_listing(analysis.discover(args.path)), end="")
            return 0
        report = analysis.run(args.path)
    except (FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(2, f"kustolint: {exc}\n")

    writer = ReportWriter(ci_mode=config.ci_mode)
    if args.format == "json":
        print(writer.render_json(report), end="")
    else:
        print(writer.render_text(report), end="")
    return report.exit_code


def _format_listing(files: DiscoveredFiles) -> str:
    lines = [f"Markdown files ({len(files.markdown)}):"]
    lines.extend(f"  {path}" for path in files.markdown.paths)
    lines.append(f"Shell scripts ({len(files.shell)}):")
    lines.extend(f"  {path}" for path in files.shell.paths)
    lines.append(f"Kustomization directories ({len(files.manifests)}):")
    lines.extend(f"  {directory.path} [{directory.role}]" for directory in files.manifests)
    return "\n".join(lines) + "\n"


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
