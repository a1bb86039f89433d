"""Suite orchestration: provision once, run every scenario, always deprovision."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from src.harness.config import HarnessConfig
from src.harness.provisioner import FixtureProvisioner
from src.harness.runner import ScenarioRunner
from src.harness.scenarios import Scenario, required_fixtures, required_uploads, select_scenarios
from src.harness.storage import StorageBackend
from src.schema.result import ScenarioResult

logger = logging.getLogger(__name__)


@dataclass
class SuiteReport:
    """Results of one suite run."""

    bucket_name: str
    results: List[ScenarioResult] = field(default_factory=list)

    @property
    def ok_count(self) -> int:
        return sum(1 for result in self.results if result.ok)

    @property
    def failed_count(self) -> int:
        return len(self.results) - self.ok_count

    @property
    def ok(self) -> bool:
        return self.failed_count == 0

    def summary_line(self) -> str:
        return f"Scenario summary: ok={self.ok_count}, failed={self.failed_count}"


def run_suite(
    config: HarnessConfig,
    storage: StorageBackend,
    scenarios: Optional[Iterable[Scenario]] = None,
) -> SuiteReport:
    """Run scenarios inside a single provisioned bucket.

    Each scenario is independent: a failing one does not stop the rest.
    Teardown runs after the last scenario regardless of outcomes.
    """
    config.validate()
    selected = list(scenarios) if scenarios is not None else select_scenarios()

    provisioner = FixtureProvisioner(config, storage)
    runner = ScenarioRunner(config)
    with provisioner.provisioned(required_fixtures(selected), required_uploads(selected)) as ctx:
        report = SuiteReport(bucket_name=ctx.bucket_name)
        for scenario in selected:
            report.results.append(runner.run(scenario, ctx))

    logger.info(report.summary_line())
    return report
