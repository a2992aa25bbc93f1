#!/usr/bin/env python3
"""Publish a .NET project for one Windows runtime."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Callable, Optional

from publish_manager.config import load_config
from publish_manager.errors import PublishError, ValidationError
from publish_manager.request import (
    ARCHITECTURES,
    CONFIGURATIONS,
    DEFAULT_ARCHITECTURE,
    DEFAULT_CONFIGURATION,
    BuildRequest,
    normalize_choice,
)
from publish_manager.step_runner import log_error, run_publish


def _choice(allowed: tuple[str, ...], field: str) -> Callable[[str], str]:
    def parse(value: str) -> str:
        try:
            return normalize_choice(value, allowed, field)
        except ValidationError as exc:
            raise argparse.ArgumentTypeError(str(exc)) from exc

    return parse


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Publish a .NET project with dotnet publish")
    parser.add_argument(
        "-c",
        "--configuration",
        type=_choice(CONFIGURATIONS, "configuration"),
        default=DEFAULT_CONFIGURATION,
        help=f"Build configuration: {', '.join(CONFIGURATIONS)} (default: {DEFAULT_CONFIGURATION})",
    )
    parser.add_argument(
        "-a",
        "--architecture",
        type=_choice(ARCHITECTURES, "architecture"),
        default=DEFAULT_ARCHITECTURE,
        help=f"Target architecture: {', '.join(ARCHITECTURES)} (default: {DEFAULT_ARCHITECTURE})",
    )
    parser.add_argument("--self-contained", action="store_true", help="Bundle the .NET runtime")
    parser.add_argument("--single-file", action="store_true", help="Publish a single executable")
    parser.add_argument(
        "--trimmed",
        action="store_true",
        help="Trim unused code (enables --self-contained unless trim_policy is 'reject')",
    )
    parser.add_argument("-o", "--output-dir", help="Output directory (default: <root>/artifacts/win-<arch>)")
    parser.add_argument("--clean", action="store_true", help="Remove previous output and run dotnet clean first")
    parser.add_argument("--config", help="Path to publish.toml (default: PUBLISH_MANAGER_CONFIG or <root>/publish.toml)")
    parser.add_argument("--root", help="Project root (default: current directory)")
    parser.add_argument("--dry-run", action="store_true", help="Print the commands without running them")
    return parser


def main(argv: Optional[list[str]] = None, default_root: Optional[Path] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if args.root:
        root = Path(args.root).expanduser().resolve()
    else:
        root = default_root or Path.cwd()

    try:
        request = BuildRequest(
            configuration=args.configuration,
            architecture=args.architecture,
            self_contained=args.self_contained,
            single_file=args.single_file,
            trimmed=args.trimmed,
            output_dir=Path(args.output_dir).expanduser().resolve() if args.output_dir else None,
            clean=args.clean,
        )
        config = load_config(
            root,
            Path(args.config).expanduser().resolve() if args.config else None,
            root_explicit=bool(args.root),
        )
        run_publish(config, request, dry_run=args.dry_run)
    except PublishError as exc:
        log_error(str(exc))
        return exc.exit_code
    except KeyboardInterrupt:
        log_error("Interrupted")
        return 130
    return 0


def entrypoint() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    entrypoint()
