import json
import logging
import random
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

import requests

from core import FULL_SYNC_TOKEN, Command, CommandResult, SyncPayload, Task

from .errors import TodoistAuthError, TodoistClientError, TodoistPayloadError
from .payloads import decode_command_result, decode_completed, decode_sync, decode_tasks
from .rate_limiter import RateLimiter

logger = logging.getLogger("todomd.todoist")

SYNC_URL = "https://api.todoist.com/sync/v9/sync"
COMPLETED_URL = "https://api.todoist.com/sync/v9/completed/get_all"
REST_URL = "https://api.todoist.com/rest/v2"
RESOURCE_TYPES = ["projects", "items"]


class TodoistClient:
    def __init__(
        self,
        token_provider: Callable[[], Optional[str]],
        session: Optional[requests.Session] = None,
        rate_limiter: Optional[RateLimiter] = None,
        timeout: int = 30,
        max_attempts: int = 3,
    ) -> None:
        self.token_provider = token_provider
        self.session = session or requests.Session()
        self.rate_limiter = rate_limiter or RateLimiter()
        self.timeout = timeout
        self.max_attempts = max_attempts

    def _headers(self, token: Optional[str] = None) -> Dict[str, str]:
        token = token or self.token_provider()
        if not token:
            raise TodoistAuthError("Todoist token missing")
        return {"Authorization": f"Bearer {token}"}

    def _request(self, method: str, url: str, token: Optional[str] = None, **kwargs: Any) -> requests.Response:
        headers = self._headers(token)
        attempt = 0
        delay = 1.0
        while True:
            attempt += 1
            try:
                self.rate_limiter.acquire()
                response = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
            except requests.RequestException as exc:
                if attempt >= self.max_attempts:
                    raise TodoistClientError(f"Todoist network error: {exc}") from exc
                logger.warning("Todoist request failed (attempt %s): %s", attempt, exc)
                self._sleep(delay)
                delay *= 2
                continue
            self.rate_limiter.update(response.headers, response.status_code)
            retryable = response.status_code >= 500 or response.status_code == 429
            if retryable and attempt < self.max_attempts:
                logger.warning("Todoist HTTP %s, retrying (attempt %s)", response.status_code, attempt)
                self._sleep(delay)
                delay *= 2
                continue
            if response.status_code in (401, 403):
                raise TodoistAuthError(f"HTTP {response.status_code}")
            if response.status_code >= 400:
                raise TodoistClientError(f"Todoist API error: {response.status_code} {response.text}")
            return response

    @staticmethod
    def _json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise TodoistPayloadError(f"Todoist returned invalid JSON: {exc}") from exc

    def _sleep(self, base_delay: float) -> None:
        time.sleep(base_delay + random.uniform(0, base_delay))

    def health_check(self, token: Optional[str] = None) -> bool:
        """True when the token is accepted; transport failures still raise."""
        try:
            self._request("GET", f"{REST_URL}/projects", token=token)
        except TodoistAuthError:
            return False
        return True

    def fetch_snapshot(self, sync_token: str = FULL_SYNC_TOKEN) -> SyncPayload:
        response = self._request(
            "POST",
            SYNC_URL,
            data={"sync_token": sync_token, "resource_types": json.dumps(RESOURCE_TYPES)},
        )
        return decode_sync(self._json(response))

    def fetch_completed(self) -> List[Task]:
        response = self._request("POST", COMPLETED_URL, data={"annotate_items": "true"})
        return decode_completed(self._json(response))

    def submit_commands(self, commands: Iterable[Command]) -> CommandResult:
        body = [command.to_dict() for command in commands]
        if not body:
            return CommandResult()
        response = self._request("POST", SYNC_URL, data={"commands": json.dumps(body)})
        result = decode_command_result(self._json(response))
        for uuid, error in result.errors.items():
            logger.warning("Todoist rejected command %s: %s", uuid, error)
        return result

    def query_by_filter(self, expression: str) -> List[Task]:
        response = self._request("GET", f"{REST_URL}/tasks", params={"filter": expression})
        return decode_tasks(self._json(response))
