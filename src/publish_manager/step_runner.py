"""Run ``dotnet clean``/``dotnet publish`` for a single build request."""
from __future__ import annotations

import os
import shutil
import signal
import subprocess
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Mapping, Optional

from publish_manager.config import PublishConfig
from publish_manager.errors import BuildFailure, CleanError, ConfigError, ToolchainUnavailableError
from publish_manager.request import BuildRequest, apply_trim_policy, resolve_output_dir, runtime_identifier

SINGLE_FILE_FLAGS = (
    "-p:PublishSingleFile=true",
    "-p:IncludeNativeLibrariesForSelfExtract=true",
)
TRIM_FLAG = "-p:PublishTrimmed=true"

BYTES_PER_MIB = 1024 * 1024


def log_info(message: str) -> None:
    print(f"[INFO] {message}")


def log_warn(message: str) -> None:
    print(f"[WARN] {message}")


def log_error(message: str) -> None:
    print(f"[ERROR] {message}", file=sys.stderr)


def build_publish_args(config: PublishConfig, request: BuildRequest, output_dir: Path) -> list[str]:
    argv = [
        config.toolchain_bin,
        "publish",
        str(config.project),
        "-c",
        request.configuration,
        "-r",
        runtime_identifier(request, config.platform_tag),
        "-o",
        str(output_dir),
        "--self-contained",
        "true" if request.self_contained else "false",
    ]
    if request.single_file:
        argv.extend(SINGLE_FILE_FLAGS)
    if request.trimmed:
        argv.append(TRIM_FLAG)
    return argv


def build_clean_args(config: PublishConfig, request: BuildRequest) -> list[str]:
    return [config.toolchain_bin, "clean", str(config.project), "-c", request.configuration]


def remove_output(output_dir: Path) -> bool:
    """Delete ``output_dir``; return False when there was nothing to delete."""
    if not output_dir.exists():
        return False
    try:
        shutil.rmtree(output_dir)
    except OSError as exc:
        raise CleanError(output_dir, exc) from exc
    return True


@contextmanager
def forward_termination(process: subprocess.Popen) -> Iterator[None]:
    """Relay SIGTERM to ``process`` while it runs."""

    def handler(signum, _frame) -> None:
        if process.poll() is None:
            process.send_signal(signum)

    previous = signal.signal(signal.SIGTERM, handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous)


def run_command(argv: list[str], cwd: Path, env: Optional[Mapping[str, str]] = None) -> int:
    log_info(f"Running: {' '.join(argv)}")
    child_env = None
    if env:
        child_env = dict(os.environ)
        for key, value in env.items():
            child_env.setdefault(key, value)
    if not cwd.is_dir():
        raise ConfigError(f"Working directory not found: {cwd}")
    try:
        process = subprocess.Popen(argv, cwd=str(cwd), env=child_env)
    except (FileNotFoundError, PermissionError) as exc:
        raise ToolchainUnavailableError(argv[0], exc) from exc

    with forward_termination(process):
        try:
            return process.wait()
        except KeyboardInterrupt:
            process.terminate()
            process.wait()
            raise


def artifact_size_mib(path: Path) -> Optional[float]:
    if not path.is_file():
        return None
    return round(path.stat().st_size / BYTES_PER_MIB, 2)


def clean(config: PublishConfig, request: BuildRequest, output_dir: Path) -> None:
    if remove_output(output_dir):
        log_info(f"Removed {output_dir}")
    returncode = run_command(build_clean_args(config, request), config.root, config.env)
    if returncode != 0:
        raise BuildFailure("clean", returncode)


def report(config: PublishConfig, output_dir: Path) -> None:
    log_info("=" * 60)
    log_info("Publish succeeded")
    log_info(f"Output: {output_dir}")
    size = artifact_size_mib(output_dir / config.artifact_name)
    if size is not None:
        log_info(f"Executable size: {size:.2f} MB")
    log_info("=" * 60)


def run_publish(config: PublishConfig, request: BuildRequest, dry_run: bool = False) -> Path:
    """Publish ``request`` and return the output directory.

    Raises ``ValidationError`` (before anything is touched), ``CleanError``,
    ``ToolchainUnavailableError`` or ``BuildFailure``.
    """
    request, warning = apply_trim_policy(request, config.trim_policy)
    if warning:
        log_warn(warning)

    output_dir = resolve_output_dir(request, config.artifacts_dir, config.platform_tag)
    publish_argv = build_publish_args(config, request, output_dir)

    log_info(
        f"Publishing {config.project.name} ({request.configuration}, "
        f"{runtime_identifier(request, config.platform_tag)})"
    )

    if dry_run:
        if request.clean:
            log_info(f"[DRY RUN] Would remove {output_dir}")
            log_info(f"[DRY RUN] Would run: {' '.join(build_clean_args(config, request))}")
        log_info(f"[DRY RUN] Would run: {' '.join(publish_argv)}")
        return output_dir

    if request.clean:
        clean(config, request, output_dir)

    returncode = run_command(publish_argv, config.root, config.env)
    if returncode != 0:
        raise BuildFailure("publish", returncode)

    report(config, output_dir)
    return output_dir
