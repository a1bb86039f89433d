"""Scenario runner: shell out to the recognize tool and check its output."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from src.harness.config import HarnessConfig
from src.harness.provisioner import SuiteContext
from src.harness.scenarios import WORD_TIMING_PATTERN, Scenario
from src.schema.result import ScenarioResult

logger = logging.getLogger(__name__)


@dataclass
class CommandOutput:
    returncode: int
    output: str


def run_command(argv: Sequence[str], cwd: Path, timeout: Optional[float] = None) -> CommandOutput:
    """Run argv to completion and return its exit status and merged output.

    A process that cannot be launched or that exceeds the timeout yields a
    CommandOutput with returncode -1 and the error text as output.
    """
    try:
        proc = subprocess.run(
            list(argv),
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        partial = exc.output or ""
        if isinstance(partial, bytes):
            partial = partial.decode("utf-8", errors="replace")
        return CommandOutput(returncode=-1, output=f"{partial}\ntimeout after {timeout} seconds")
    except OSError as exc:
        return CommandOutput(returncode=-1, output=f"failed to launch {argv[0]}: {exc}")
    return CommandOutput(returncode=proc.returncode, output=proc.stdout or "")


def check_output(text: str, expected: Iterable[str], expect_word_timing: bool = False) -> List[str]:
    """Return every expectation that text does not satisfy."""
    missing = [needle for needle in expected if needle not in text]
    if expect_word_timing and not WORD_TIMING_PATTERN.search(text):
        missing.append(WORD_TIMING_PATTERN.pattern)
    return missing


class ScenarioRunner:
    """Run scenarios one at a time against the configured tool."""

    def __init__(self, config: HarnessConfig) -> None:
        self.config = config

    def run(self, scenario: Scenario, ctx: SuiteContext) -> ScenarioResult:
        command = self.config.command_for(scenario.arguments(ctx))
        logger.debug(f"Running scenario '{scenario.name}': {' '.join(command)}")
        completed = run_command(command, self.config.tool_cwd, self.config.command_timeout_seconds)

        result = ScenarioResult(
            scenario=scenario.name,
            command=command,
            returncode=completed.returncode,
            output=completed.output,
            missing=check_output(completed.output, scenario.expected, scenario.expect_word_timing),
        )
        if result.missing:
            # A crashed tool and a wrong transcription both fail the scenario
            if completed.returncode != 0:
                result.mark_failed(
                    "command_failed",
                    f"{command[0]} exited with status {completed.returncode}",
                    {"returncode": completed.returncode, "missing": result.missing},
                )
            else:
                result.mark_failed(
                    "output_mismatch",
                    "Expected text not found in output",
                    {"missing": result.missing},
                )
            logger.info(f"Scenario '{scenario.name}': failed ({result.status_reason.code})")
        else:
            logger.info(f"Scenario '{scenario.name}': ok")
        return result
