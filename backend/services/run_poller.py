"""
Run poller for the stateful assistant API.

A run moves queued -> in_progress -> completed | failed on the remote side.
The poller checks its status at a fixed interval and gives up after a fixed
number of checks, marking the run timed_out. Waiting goes through a Clock so
tests can simulate time.
"""
import logging
import time
from typing import Any, Dict, List, Optional, Protocol

from config import POLL_INTERVAL_SECONDS, POLL_MAX_ATTEMPTS
from models.run import RemoteRun, RunStatus
from services.assistant_client import AssistantClient
from services.errors import AssistantResponseMissing, RunFailed, RunTimedOut

logger = logging.getLogger(__name__)


class Clock(Protocol):
    def sleep(self, seconds: float) -> None:
        ...


class SystemClock:
    """Real wall-clock waits."""

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


class RunPoller:
    """Drives a RemoteRun to a terminal state and extracts the reply."""

    def __init__(
        self,
        client: AssistantClient,
        clock: Optional[Clock] = None,
        interval: float = POLL_INTERVAL_SECONDS,
        max_attempts: int = POLL_MAX_ATTEMPTS,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.client = client
        self.clock = clock or SystemClock()
        self.interval = interval
        self.max_attempts = max_attempts

    @property
    def max_wait_seconds(self) -> float:
        return self.interval * self.max_attempts

    def wait(self, run: RemoteRun) -> RemoteRun:
        """
        Poll until the run is terminal or the attempt budget is spent.

        Returns:
            The last observed run; status is TIMED_OUT when the budget ran out
            while the remote run was still queued or in progress.
        """
        current = run
        while not current.status.is_terminal:
            if current.attempt_count >= self.max_attempts:
                logger.warning(
                    f"Run {current.run_id} still {current.raw_status or current.status.value} "
                    f"after {current.attempt_count} checks, giving up"
                )
                return current.timed_out()

            self.clock.sleep(self.interval)
            raw_status = self.client.get_run_status(current.thread_id, current.run_id)
            current = current.observed(raw_status)
            logger.debug(f"Run {current.run_id} check {current.attempt_count}: {raw_status}")

        logger.info(f"Run {current.run_id} finished with status {current.status.value} after {current.attempt_count} checks")
        return current

    def fetch_reply(self, run: RemoteRun) -> str:
        """
        Turn a terminal run into reply text.

        Raises:
            RunTimedOut: The poller gave up on the run
            RunFailed: The run failed, expired or was cancelled remotely
            AssistantResponseMissing: The run completed without an assistant message
        """
        details: Dict[str, Any] = {
            "run_id": run.run_id,
            "thread_id": run.thread_id,
            "status": run.status.value,
            "raw_status": run.raw_status,
            "attempts": run.attempt_count,
        }
        if run.status is RunStatus.TIMED_OUT:
            raise RunTimedOut("Assistant run timed out", details)
        if run.status is not RunStatus.COMPLETED:
            raise RunFailed(f"Assistant run failed with status: {run.raw_status or run.status.value}", details)

        text = latest_assistant_text(self.client.list_messages(run.thread_id))
        if text is None:
            raise AssistantResponseMissing("Run completed but no assistant message was found", details)
        return text

    def run_to_completion(self, run: RemoteRun) -> str:
        return self.fetch_reply(self.wait(run))


def latest_assistant_text(messages: List[Dict[str, Any]]) -> Optional[str]:
    """Text of the newest assistant message in a newest-first message list."""
    for message in messages:
        if message.get("role") != "assistant":
            continue
        for part in message.get("content") or []:
            if part.get("type", "text") == "text":
                value = (part.get("text") or {}).get("value")
                if value:
                    return value
        # Only the newest assistant message counts
        return None
    return None


class AssistantConversation:
    """
    Three-stage exchange with the assistant API for one chat message:
    reuse or create the session's thread, post the message, run and wait.
    """

    def __init__(self, client: AssistantClient, poller: RunPoller, store):
        self.client = client
        self.poller = poller
        self.store = store

    def ensure_thread(self, user_id: str, session_id: str) -> str:
        thread_id = self.store.get_thread_id(user_id, session_id)
        if thread_id:
            logger.debug(f"Reusing thread {thread_id} for {user_id}/{session_id}")
            return thread_id

        thread_id = self.client.create_thread()
        self.store.bind_thread(user_id, session_id, thread_id)
        return thread_id

    def ask(self, user_id: str, session_id: str, message: str) -> str:
        thread_id = self.ensure_thread(user_id, session_id)
        self.client.add_message(thread_id, message)
        run = self.client.create_run(thread_id)
        return self.poller.run_to_completion(run)
