"""
Outcome of a best-effort pipeline step.

Best-effort steps (doc logging, email, Slack) never raise into the pipeline.
They all go through `run_best_effort`, which turns any exception into a
`failed` result after logging it, so the absorption rule lives in one place.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Literal

from support_agent.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

StepStatus = Literal["ok", "skipped", "failed"]


@dataclass(slots=True, frozen=True)
class StepResult:
    step: str
    status: StepStatus
    value: Any = None
    reason: str | None = None

    @classmethod
    def success(cls, step: str, value: Any = None) -> "StepResult":
        return cls(step=step, status="ok", value=value)

    @classmethod
    def skipped(cls, step: str, reason: str) -> "StepResult":
        return cls(step=step, status="skipped", reason=reason)

    @classmethod
    def failed(cls, step: str, reason: str, value: Any = None) -> "StepResult":
        return cls(step=step, status="failed", value=value, reason=reason)

    @property
    def ok(self) -> bool:
        return self.status == "ok"


async def run_best_effort(
    step: str,
    action: Callable[[], Awaitable[StepResult]],
    default: Any = None,
) -> StepResult:
    """Await `action`; any exception is logged and reported as a failed step."""
    try:
        return await action()
    except Exception as e:
        logger.error(
            "Best-effort step failed",
            step=step,
            error=str(e),
            error_type=type(e).__name__,
        )
        return StepResult.failed(step, reason=f"{type(e).__name__}: {e}", value=default)
