"""Scenario result schema.

One ScenarioResult per tool invocation, with the same status discipline
used throughout the harness: ok | failed.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class StatusReason(BaseModel):
    """Structured reason for non-ok status states.

    Attributes:
        code: Machine-readable code ("command_failed", "output_mismatch")
        message: Human-readable description
        context: Optional additional context (return code, missing text, etc.)
    """

    code: str
    message: str
    context: Optional[dict[str, Any]] = None


class ScenarioResult(BaseModel):
    """Outcome of running one scenario against the recognize tool.

    Fields:
        scenario: Scenario name (e.g., "sync-gcs")
        command: Full argv the tool was launched with
        returncode: Process exit status (-1 when the process never ran to completion)
        output: Captured stdout with stderr merged in
        missing: Expected substrings/patterns absent from output
        status: ok when nothing is missing, failed otherwise
        status_reason: Structured reason for failed results
    """

    scenario: str = Field(..., min_length=1, description="Scenario name")
    command: list[str] = Field(default_factory=list, description="Executed argv")
    returncode: int = Field(default=0, description="Child process exit status")
    output: str = Field(default="", description="Merged stdout/stderr text")
    missing: list[str] = Field(default_factory=list, description="Unmatched expectations")
    status: Literal["ok", "failed"] = Field(default="ok", description="Scenario status")
    status_reason: Optional[StatusReason] = Field(
        default=None, description="Structured reason for failed status"
    )

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def mark_failed(
        self, code: str, message: str, context: Optional[dict[str, Any]] = None
    ) -> None:
        """Mark result as failed with a reason.

        Args:
            code: Machine-readable status code
            message: Human-readable description
            context: Optional additional context
        """
        self.status = "failed"
        self.status_reason = StatusReason(code=code, message=message, context=context)
