"""Publish request record and the rules derived from it."""
from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from publish_manager.errors import ValidationError

CONFIGURATIONS = ("Debug", "Release")
ARCHITECTURES = ("x64", "x86", "arm64")

DEFAULT_CONFIGURATION = "Release"
DEFAULT_ARCHITECTURE = "x64"
DEFAULT_PLATFORM_TAG = "win"

TRIM_POLICIES = ("promote", "reject")


@dataclass(frozen=True)
class BuildRequest:
    configuration: str = DEFAULT_CONFIGURATION
    architecture: str = DEFAULT_ARCHITECTURE
    self_contained: bool = False
    single_file: bool = False
    trimmed: bool = False
    output_dir: Optional[Path] = None
    clean: bool = False

    def __post_init__(self) -> None:
        if self.configuration not in CONFIGURATIONS:
            raise ValidationError(
                f"Invalid configuration '{self.configuration}' (expected one of: {', '.join(CONFIGURATIONS)})"
            )
        if self.architecture not in ARCHITECTURES:
            raise ValidationError(
                f"Invalid architecture '{self.architecture}' (expected one of: {', '.join(ARCHITECTURES)})"
            )


def normalize_choice(value: str, allowed: tuple[str, ...], field: str) -> str:
    """Return the canonical spelling of ``value`` from ``allowed``, ignoring case."""
    wanted = (value or "").strip().lower()
    for candidate in allowed:
        if candidate.lower() == wanted:
            return candidate
    raise ValidationError(f"Invalid {field} '{value}' (expected one of: {', '.join(allowed)})")


def runtime_identifier(request: BuildRequest, platform_tag: str = DEFAULT_PLATFORM_TAG) -> str:
    return f"{platform_tag}-{request.architecture}"


def resolve_output_dir(request: BuildRequest, artifacts_dir: Path, platform_tag: str = DEFAULT_PLATFORM_TAG) -> Path:
    if request.output_dir is not None:
        return Path(request.output_dir)
    return artifacts_dir / runtime_identifier(request, platform_tag)


def apply_trim_policy(request: BuildRequest, policy: str = "promote") -> tuple[BuildRequest, Optional[str]]:
    """Reconcile ``trimmed`` with ``self_contained``.

    Trimming only works on self-contained output. Under the ``promote`` policy a
    trimmed, framework-dependent request is silently turned into a
    self-contained one and a warning message is returned for the caller to
    print. Under ``reject`` the same request raises ``ValidationError``.

    Returns:
        The request to build and an optional warning message.
    """
    if policy not in TRIM_POLICIES:
        raise ValidationError(f"Invalid trim policy '{policy}' (expected one of: {', '.join(TRIM_POLICIES)})")
    if not request.trimmed or request.self_contained:
        return request, None
    if policy == "reject":
        raise ValidationError("--trimmed requires --self-contained")
    return (
        replace(request, self_contained=True),
        "Trimming requires a self-contained build; enabling --self-contained",
    )
