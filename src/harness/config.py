"""Harness configuration helpers."""

from __future__ import annotations

import os
import shlex
from argparse import Namespace
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional, Sequence

import yaml

HARNESS_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "harness.yaml"


class HarnessConfigError(RuntimeError):
    """Raised when harness configuration is invalid."""


def _default_harness_config() -> dict[str, Any]:
    return {
        "tool": {
            "command": ["python", "recognize.py"],
            "cwd": ".",
            "timeout_seconds": None,
        },
        "resources_dir": "resources",
        "storage": {
            "bucket_prefix": "python-docs-samples-test-",
            "delete_attempts": 2,
            "project": None,
        },
    }


@lru_cache()
def _load_harness_config() -> dict[str, Any]:
    if HARNESS_CONFIG_PATH.exists():
        with HARNESS_CONFIG_PATH.open(encoding="utf-8") as fh:
            return yaml.safe_load(fh) or _default_harness_config()
    return _default_harness_config()


def _as_command(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return shlex.split(value)
    return [str(part) for part in value]


@dataclass
class HarnessConfig:
    """Knobs for provisioning fixtures and running the tool under test."""

    tool_command: list[str] = field(default_factory=lambda: ["python", "recognize.py"])
    tool_cwd: Path = Path(".")
    resources_dir: Path = Path("resources")
    bucket_prefix: str = "python-docs-samples-test-"
    delete_attempts: int = 2
    command_timeout_seconds: Optional[float] = None
    project: Optional[str] = None

    def __post_init__(self) -> None:
        self.tool_command = _as_command(self.tool_command)
        if not self.tool_command:
            raise HarnessConfigError("tool_command must name an executable")
        self.tool_cwd = Path(self.tool_cwd).resolve()
        self.resources_dir = Path(self.resources_dir).resolve()

        if not self.bucket_prefix:
            raise HarnessConfigError("bucket_prefix cannot be empty")
        try:
            self.delete_attempts = int(self.delete_attempts)
        except (TypeError, ValueError) as exc:
            raise HarnessConfigError(f"delete_attempts must be an integer, got {self.delete_attempts!r}") from exc
        if self.delete_attempts < 1:
            raise ValueError("delete_attempts must be >= 1")
        if self.command_timeout_seconds is not None and self.command_timeout_seconds <= 0:
            raise ValueError("command_timeout_seconds must be > 0 when provided")
        self.project = self.project or os.getenv("GOOGLE_CLOUD_PROJECT") or None

    @classmethod
    def load(cls, **overrides: Any) -> "HarnessConfig":
        """Build config from config/harness.yaml, applying non-None overrides."""
        raw = _load_harness_config()
        tool = raw.get("tool") or {}
        storage = raw.get("storage") or {}
        values: dict[str, Any] = {
            "tool_command": tool.get("command") or ["python", "recognize.py"],
            "tool_cwd": tool.get("cwd") or ".",
            "resources_dir": raw.get("resources_dir") or "resources",
            "bucket_prefix": storage.get("bucket_prefix") or "python-docs-samples-test-",
            "delete_attempts": 2 if storage.get("delete_attempts") is None else storage["delete_attempts"],
            "command_timeout_seconds": tool.get("timeout_seconds"),
            "project": storage.get("project"),
        }
        unknown = set(overrides) - set(values)
        if unknown:
            raise HarnessConfigError(f"Unknown harness settings: {sorted(unknown)}")
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    @classmethod
    def from_args(cls, args: Namespace) -> "HarnessConfig":
        """Build config from argparse Namespace (scripts/run_system_tests.py)."""
        return cls.load(
            tool_command=getattr(args, "tool_command", None),
            tool_cwd=getattr(args, "tool_cwd", None),
            resources_dir=getattr(args, "resources", None),
            bucket_prefix=getattr(args, "bucket_prefix", None),
            delete_attempts=getattr(args, "delete_attempts", None),
            command_timeout_seconds=getattr(args, "timeout", None),
            project=getattr(args, "project", None),
        )

    def validate(self) -> None:
        """Fail fast if required inputs are missing."""
        if not self.resources_dir.is_dir():
            raise FileNotFoundError(f"resources directory not found: {self.resources_dir}")
        if not self.tool_cwd.is_dir():
            raise FileNotFoundError(f"tool working directory not found: {self.tool_cwd}")

    def fixture_path(self, name: str) -> Path:
        """Return the local path of a fixture file under resources_dir."""
        return self.resources_dir / name

    def command_for(self, arguments: Sequence[str]) -> list[str]:
        return [*self.tool_command, *arguments]
