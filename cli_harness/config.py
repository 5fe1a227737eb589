from __future__ import annotations

"""
Harness configuration.

Values come from, in increasing precedence: built-in defaults, an optional
YAML file (`CLI_HARNESS_CONFIG`, or `cli-harness.yaml` in the working
directory), and `CLI_HARNESS_*` environment variables.
"""

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from cli_harness.wait import DEFAULT_INTERVAL_SEC, DEFAULT_TIMEOUT_SEC


CONFIG_ENV_VAR = "CLI_HARNESS_CONFIG"
DEFAULT_CONFIG_NAME = "cli-harness.yaml"

DEFAULT_RUNTIME = "node"
DEFAULT_CLI_PATH = "src/cli.js"
DEFAULT_WIZARD_PROMPT = "Which wizard"


def default_input_settle_sec() -> float:
    # CI runners are slower to process input after echoing it.
    return 0.5 if os.getenv("CI") else 0.05


@dataclass(frozen=True)
class HarnessConfig:
    runtime: str = DEFAULT_RUNTIME
    cli_path: str = DEFAULT_CLI_PATH
    wizard_prompt: str = DEFAULT_WIZARD_PROMPT
    poll_timeout_sec: float = DEFAULT_TIMEOUT_SEC
    poll_interval_sec: float = DEFAULT_INTERVAL_SEC
    input_settle_sec: float = field(default_factory=default_input_settle_sec)

    def command(self, *args: str) -> list[str]:
        # Relative paths resolve against the harness's cwd, not the child's.
        return [self.runtime, os.path.abspath(self.cli_path), *args]


ENV_OVERRIDES: dict[str, tuple[str, type]] = {
    "CLI_HARNESS_RUNTIME": ("runtime", str),
    "CLI_HARNESS_CLI_PATH": ("cli_path", str),
    "CLI_HARNESS_POLL_TIMEOUT_SEC": ("poll_timeout_sec", float),
    "CLI_HARNESS_POLL_INTERVAL_SEC": ("poll_interval_sec", float),
}


def _load_yaml(path: Path) -> dict[str, Any]:
    payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValueError(f"harness config is not a mapping: {path}")
    return payload


def _locate_config_file(path: str | os.PathLike[str] | None) -> Path | None:
    if path is not None:
        return Path(path)
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    candidate = Path.cwd() / DEFAULT_CONFIG_NAME
    return candidate if candidate.is_file() else None


def _from_file(config: HarnessConfig, path: Path) -> HarnessConfig:
    payload = _load_yaml(path)
    known = {f.name for f in fields(HarnessConfig)}
    unknown = sorted(set(payload) - known)
    if unknown:
        raise ValueError(f"unknown harness config keys in {path}: {unknown}")
    updates: dict[str, Any] = {}
    for key, value in payload.items():
        if key in {"poll_timeout_sec", "poll_interval_sec", "input_settle_sec"}:
            updates[key] = float(value)
        else:
            updates[key] = str(value)
    cli_path = updates.get("cli_path")
    if cli_path and not os.path.isabs(cli_path):
        updates["cli_path"] = str((path.parent / cli_path).resolve())
    return replace(config, **updates)


def _from_env(config: HarnessConfig) -> HarnessConfig:
    updates: dict[str, Any] = {}
    for env_name, (attr, cast) in ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None or not raw.strip():
            continue
        try:
            updates[attr] = cast(raw.strip())
        except ValueError as exc:
            raise ValueError(f"{env_name} must be a {cast.__name__}, got {raw!r}") from exc
    return replace(config, **updates)


def load_config(path: str | os.PathLike[str] | None = None) -> HarnessConfig:
    config = HarnessConfig()
    config_file = _locate_config_file(path)
    if config_file is not None:
        config = _from_file(config, config_file)
    return _from_env(config)
