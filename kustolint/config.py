"""Configuration loading for kustolint (.kustolint.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

CONFIG_FILENAME = ".kustolint.yml"

DEFAULT_ROOTS = ("bootstrap", "deploy")
DEFAULT_DESCRIPTORS = ("kustomization.yaml", "kustomization.yml", "Kustomization")
DEFAULT_BUILD_COMMAND = (
    "kustomize",
    "build",
    "--load-restrictor",
    "LoadRestrictionsNone",
    "--helm-debug",
    "--enable-helm",
)
DEFAULT_LOCK_TIMEOUT = 900.0
DEFAULT_LOCK_POLL_INTERVAL = 0.1


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class LintToolConfig:
    """Settings for one external linter invoked over a tracked file set."""

    command: List[str]
    patterns: List[str]
    exclude: List[str] = field(default_factory=list)
    config_file: Optional[str] = None
    enabled: bool = True


@dataclass
class ManifestConfig:
    """Settings for the manifest-build checker."""

    command: List[str] = field(default_factory=lambda: list(DEFAULT_BUILD_COMMAND))
    descriptors: List[str] = field(default_factory=lambda: list(DEFAULT_DESCRIPTORS))
    concurrency: Optional[int] = None
    lock_timeout: Optional[float] = DEFAULT_LOCK_TIMEOUT
    lock_poll_interval: float = DEFAULT_LOCK_POLL_INTERVAL
    enabled: bool = True


def _default_markdown() -> LintToolConfig:
    return LintToolConfig(
        command=["npx", "markdownlint"],
        patterns=["*.md"],
        exclude=["CHANGELOG.md"],
        config_file=".markdownlint.json",
    )


def _default_shell() -> LintToolConfig:
    return LintToolConfig(command=["shellcheck"], patterns=["*.sh"])


@dataclass
class CheckConfig:
    """Represents the settings defined in .kustolint.yml.

    ``ci_mode`` switches the report to CI group framing (``::group::``).
    ``debug_mode`` enables debug logging and keeps the artifact directory
    holding captured linter output, rendered manifests and ``kustolint.log``.
    ``root`` is the repository checked when no path is given explicitly.
    """

    root: Path
    roots: List[str] = field(default_factory=lambda: list(DEFAULT_ROOTS))
    markdown: LintToolConfig = field(default_factory=_default_markdown)
    shell: LintToolConfig = field(default_factory=_default_shell)
    manifests: ManifestConfig = field(default_factory=ManifestConfig)
    ci_mode: bool = False
    debug_mode: bool = False


def load_config(
    config_path: Path, *, environ: Mapping[str, str] | None = None
) -> CheckConfig:
    """Load configuration from disk and apply the CI/DEBUG environment switches."""
    env = os.environ if environ is None else environ
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if config_file.exists():
        data = _read_config(config_file)
    else:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = CheckConfig(root=root)

    roots = _as_str_list(data.get("roots"))
    if roots:
        config.roots = roots

    config.markdown = _lint_tool(data.get("markdown"), config.markdown, "markdown")
    config.shell = _lint_tool(data.get("shell"), config.shell, "shell")
    config.manifests = _manifests(data.get("manifests"), config.manifests)

    config.ci_mode = bool(_as_bool(data.get("ci"))) or _env_flag(env, "CI")
    config.debug_mode = bool(_as_bool(data.get("debug"))) or _env_flag(env, "DEBUG")
    return config


def _lint_tool(raw: Any, defaults: LintToolConfig, section: str) -> LintToolConfig:
    if raw is None:
        return defaults
    if not isinstance(raw, dict):
        raise ConfigError(f"'{section}' must be a mapping")

    command = _as_str_list(raw.get("command")) or defaults.command
    patterns = _as_str_list(raw.get("patterns")) or defaults.patterns
    exclude = _as_str_list(raw["exclude"]) if "exclude" in raw else defaults.exclude
    config_file = _as_str(raw["config"]) if "config" in raw else defaults.config_file
    enabled = _as_bool(raw.get("enabled"))
    return LintToolConfig(
        command=command,
        patterns=patterns,
        exclude=exclude,
        config_file=config_file,
        enabled=defaults.enabled if enabled is None else enabled,
    )


def _manifests(raw: Any, defaults: ManifestConfig) -> ManifestConfig:
    if raw is None:
        return defaults
    if not isinstance(raw, dict):
        raise ConfigError("'manifests' must be a mapping")

    concurrency = _as_int(raw.get("concurrency"))
    if concurrency is not None and concurrency < 1:
        raise ConfigError("'manifests.concurrency' must be a positive integer")

    lock_timeout = defaults.lock_timeout
    if "lock_timeout" in raw:
        lock_timeout = _as_float(raw.get("lock_timeout"))
        if lock_timeout is not None and lock_timeout <= 0:
            raise ConfigError("'manifests.lock_timeout' must be positive or null")

    poll = _as_float(raw.get("lock_poll_interval"))
    if poll is not None and poll <= 0:
        raise ConfigError("'manifests.lock_poll_interval' must be positive")

    enabled = _as_bool(raw.get("enabled"))
    return ManifestConfig(
        command=_as_str_list(raw.get("command")) or defaults.command,
        descriptors=_as_str_list(raw.get("descriptors")) or defaults.descriptors,
        concurrency=concurrency,
        lock_timeout=lock_timeout,
        lock_poll_interval=poll if poll is not None else defaults.lock_poll_interval,
        enabled=defaults.enabled if enabled is None else enabled,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _env_flag(env: Mapping[str, str], name: str) -> bool:
    return bool(env.get(name, "").strip())


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "CheckConfig",
    "ConfigError",
    "LintToolConfig",
    "ManifestConfig",
    "load_config",
]
