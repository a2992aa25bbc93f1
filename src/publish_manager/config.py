"""Project configuration loaded from ``publish.toml``."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Optional

import tomllib

from publish_manager.errors import ConfigError
from publish_manager.request import DEFAULT_PLATFORM_TAG, TRIM_POLICIES

CONFIG_FILE_NAME = "publish.toml"
CONFIG_ENV = "PUBLISH_MANAGER_CONFIG"
TOOLCHAIN_ENV = "PUBLISH_DOTNET_BIN"

SKIPPED_DIRS = {"bin", "obj", ".git"}


@dataclass(frozen=True)
class PublishConfig:
    root: Path
    project: Path
    artifacts_dir: Path
    artifact_name: str
    toolchain_bin: str = "dotnet"
    platform_tag: str = DEFAULT_PLATFORM_TAG
    trim_policy: str = "promote"
    env: Mapping[str, str] = field(default_factory=dict)


def resolve_path(base: Path, raw: str) -> Path:
    path = Path(raw)
    if path.is_absolute():
        return path
    return (base / path).resolve()


def load_toml(path: Path) -> dict:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    with path.open("rb") as handle:
        try:
            return tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc


def find_project(root: Path, excluded: Iterable[Path] = ()) -> Path:
    excluded_dirs = [Path(item) for item in excluded]
    candidates = sorted(
        path
        for path in root.rglob("*.csproj")
        if not SKIPPED_DIRS.intersection(path.relative_to(root).parts[:-1])
        and not any(directory in path.parents for directory in excluded_dirs)
    )
    if not candidates:
        raise ConfigError(f"No .csproj found under {root}; set 'project' in {CONFIG_FILE_NAME}")
    if len(candidates) > 1:
        names = ", ".join(str(path.relative_to(root)) for path in candidates)
        raise ConfigError(f"Multiple projects found under {root} ({names}); set 'project' in {CONFIG_FILE_NAME}")
    return candidates[0]


def locate_config(explicit: Optional[Path], root: Path) -> Optional[Path]:
    if explicit is not None:
        return explicit
    env_value = os.getenv(CONFIG_ENV)
    if env_value:
        return Path(env_value).expanduser().resolve()
    default = root / CONFIG_FILE_NAME
    if default.exists():
        return default
    return None


def _string(config: dict, key: str, default: str) -> str:
    value = config.get(key)
    if value is None:
        return default
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{key} must be a non-empty string")
    return value.strip()


def load_config(root: Path, config_path: Optional[Path] = None, root_explicit: bool = False) -> PublishConfig:
    """Build the ``PublishConfig`` for ``root``.

    ``config_path`` wins over ``PUBLISH_MANAGER_CONFIG``, which wins over
    ``<root>/publish.toml``. With no file at all, defaults apply and the
    project is discovered under ``root``.

    An explicit root (``root_explicit``) is kept as is. Otherwise the config
    file's ``project_root`` applies, falling back to the file's directory.
    """
    root = root.expanduser().resolve()
    path = locate_config(config_path, root)
    config = load_toml(path) if path is not None else {}

    if path is not None and not root_explicit:
        if config.get("project_root"):
            root = resolve_path(path.parent, _string(config, "project_root", "."))
        else:
            root = path.parent

    artifacts_dir = resolve_path(root, _string(config, "artifacts_dir", "artifacts"))

    project_raw = config.get("project")
    if project_raw:
        project = resolve_path(root, _string(config, "project", ""))
        if not project.exists():
            raise ConfigError(f"Project file not found: {project}")
    else:
        project = find_project(root, [artifacts_dir])

    artifact_name = _string(config, "artifact_name", f"{project.stem}.exe")
    platform_tag = _string(config, "platform_tag", DEFAULT_PLATFORM_TAG)

    trim_policy = _string(config, "trim_policy", "promote")
    if trim_policy not in TRIM_POLICIES:
        raise ConfigError(f"trim_policy must be one of: {', '.join(TRIM_POLICIES)}")

    toolchain = config.get("toolchain", {})
    if toolchain is None:
        toolchain = {}
    if not isinstance(toolchain, dict):
        raise ConfigError("[toolchain] must be a table")
    toolchain_bin = os.getenv(TOOLCHAIN_ENV) or _string(toolchain, "bin", "dotnet")

    env_section = config.get("env", {})
    if env_section is None:
        env_section = {}
    if not isinstance(env_section, dict):
        raise ConfigError("[env] must be a table of key/value pairs")
    env: dict[str, str] = {}
    for key, value in env_section.items():
        if value is None:
            continue
        value_str = str(value).strip()
        if value_str:
            env[key] = value_str

    return PublishConfig(
        root=root,
        project=project,
        artifacts_dir=artifacts_dir,
        artifact_name=artifact_name,
        toolchain_bin=toolchain_bin,
        platform_tag=platform_tag,
        trim_policy=trim_policy,
        env=env,
    )
