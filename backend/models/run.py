"""Remote assistant run models."""
from dataclasses import dataclass, replace
from enum import Enum


class RunStatus(str, Enum):
    """
    Lifecycle of a remote assistant run.

    QUEUED and IN_PROGRESS are the only non-terminal states. TIMED_OUT is never
    reported by the remote service; the poller assigns it when it gives up.
    """
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    EXPIRED = "expired"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self not in (RunStatus.QUEUED, RunStatus.IN_PROGRESS)

    @classmethod
    def from_remote(cls, raw: str) -> "RunStatus":
        """Map a status string from the remote API onto the local lifecycle."""
        if raw == "cancelling":
            return cls.IN_PROGRESS
        try:
            status = cls(raw)
        except ValueError:
            # cancelled, incomplete, requires_action, ...
            return cls.FAILED
        if status is cls.TIMED_OUT:
            return cls.FAILED
        return status


@dataclass(frozen=True)
class RemoteRun:
    """Snapshot of a remote run as last observed by the poller."""
    run_id: str
    thread_id: str
    status: RunStatus
    attempt_count: int = 0
    raw_status: str = ""

    def observed(self, raw_status: str) -> "RemoteRun":
        """Record one more status check."""
        return replace(
            self,
            status=RunStatus.from_remote(raw_status),
            raw_status=raw_status,
            attempt_count=self.attempt_count + 1,
        )

    def timed_out(self) -> "RemoteRun":
        return replace(self, status=RunStatus.TIMED_OUT)
