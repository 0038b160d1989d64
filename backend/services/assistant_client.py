"""HTTP client for the stateful assistant (threads and runs) API."""
import logging
from typing import Any, Dict, List, Optional

import httpx

from config import ASSISTANT_ID, ASSISTANT_REQUEST_TIMEOUT, OPENAI_API_KEY, OPENAI_BASE_URL
from models.run import RemoteRun, RunStatus
from services.errors import RecoverableRemoteError, RequestError

logger = logging.getLogger(__name__)


class AssistantClient:
    """
    Thin wrapper over the assistant REST endpoints.

    Every call is a single attempt. 429, 5xx and transport failures raise
    RecoverableRemoteError; any other non-2xx status raises RequestError.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        assistant_id: Optional[str] = None,
        base_url: str = OPENAI_BASE_URL,
        timeout: float = ASSISTANT_REQUEST_TIMEOUT,
        http_client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key or OPENAI_API_KEY
        if not self.api_key:
            raise ValueError("OPENAI_API_KEY must be provided or set in environment")

        self.assistant_id = assistant_id or ASSISTANT_ID
        if not self.assistant_id:
            raise ValueError("ASSISTANT_ID must be provided or set in environment")

        self.http = http_client or httpx.Client(timeout=timeout)
        self.base_url = base_url.rstrip("/")
        self.headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "OpenAI-Beta": "assistants=v2",
        }
        logger.info("AssistantClient initialized successfully")

    def create_thread(self) -> str:
        thread = self._request("POST", "/threads", json={})
        logger.info(f"Created assistant thread {thread['id']}")
        return thread["id"]

    def add_message(self, thread_id: str, content: str) -> Dict[str, Any]:
        return self._request(
            "POST",
            f"/threads/{thread_id}/messages",
            json={"role": "user", "content": content},
        )

    def create_run(self, thread_id: str) -> RemoteRun:
        run = self._request(
            "POST",
            f"/threads/{thread_id}/runs",
            json={"assistant_id": self.assistant_id},
        )
        return RemoteRun(
            run_id=run["id"],
            thread_id=thread_id,
            status=RunStatus.from_remote(run["status"]),
            raw_status=run["status"],
        )

    def get_run_status(self, thread_id: str, run_id: str) -> str:
        """Return the raw status string of a run."""
        run = self._request("GET", f"/threads/{thread_id}/runs/{run_id}")
        return run["status"]

    def list_messages(self, thread_id: str) -> List[Dict[str, Any]]:
        """Messages of a thread, newest first."""
        payload = self._request("GET", f"/threads/{thread_id}/messages", params={"order": "desc"})
        return payload.get("data", [])

    def close(self) -> None:
        self.http.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(method, url, headers=self.headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"Assistant API timeout: {method} {path}")
            raise RecoverableRemoteError(
                "Assistant API request timed out",
                {"method": method, "path": path, "original_error": str(e)},
            ) from e
        except httpx.RequestError as e:
            logger.error(f"Assistant API network error: {method} {path}: {e}")
            raise RecoverableRemoteError(
                "Could not reach the assistant API",
                {"method": method, "path": path, "original_error": str(e)},
            ) from e

        if response.status_code == 429 or response.status_code >= 500:
            logger.error(f"Assistant API unavailable: {method} {path} -> {response.status_code}")
            raise RecoverableRemoteError(
                f"Assistant API returned {response.status_code}",
                {"method": method, "path": path, "status_code": response.status_code},
            )
        if response.status_code >= 400:
            logger.error(f"Assistant API rejected request: {method} {path} -> {response.status_code}: {response.text}")
            raise RequestError(
                f"Assistant API rejected request with status {response.status_code}",
                {"method": method, "path": path, "status_code": response.status_code},
            )

        return response.json()
