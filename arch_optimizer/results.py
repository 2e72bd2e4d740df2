# arch_optimizer/results.py
from dataclasses import dataclass
from enum import Enum
from typing import Iterable


class ResultStatus(str, Enum):
    """Terminal status of a single action invocation."""
    SUCCESS = "success"
    FAILURE = "failure"
    CONFLICT_DECLINED = "conflict_declined"


@dataclass(frozen=True)
class MutationResult:
    """Outcome of one invocation. Produced once, never persisted."""
    action_id: str
    status: ResultStatus
    message: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status is ResultStatus.SUCCESS

    @property
    def failed(self) -> bool:
        return self.status is ResultStatus.FAILURE

    @property
    def declined(self) -> bool:
        return self.status is ResultStatus.CONFLICT_DECLINED


@dataclass(frozen=True)
class RunSummary:
    """Aggregated outcome of a batch of invocations."""
    total: int
    succeeded: int
    failed: int
    declined: int
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.failed == 0 and not self.cancelled

    def describe(self) -> str:
        text = (f"{self.total} action(s): {self.succeeded} succeeded, "
                f"{self.failed} failed, {self.declined} skipped due to conflict")
        if self.cancelled:
            text += " (cancelled before completion)"
        return text


def summarize(results: Iterable[MutationResult], cancelled: bool = False) -> RunSummary:
    results = list(results)
    return RunSummary(
        total=len(results),
        succeeded=sum(1 for r in results if r.succeeded),
        failed=sum(1 for r in results if r.failed),
        declined=sum(1 for r in results if r.declined),
        cancelled=cancelled,
    )
