import logging
import time
from typing import Optional
from urllib.parse import urlparse

import httpx

logger = logging.getLogger("matchcredit.http_client")

# Statuses counted as upstream failures by the breaker
_FAILURE_STATUSES = {429, 500, 502, 503, 504}


class CircuitOpenError(httpx.HTTPError):
    """Raised instead of issuing a request while the breaker is open."""


class CircuitBreaker:
    """Simple circuit breaker for external API calls."""

    def __init__(self, failure_threshold: int = 3, recovery_timeout: int = 300):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.last_failure_time: Optional[float] = None
        self.is_open = False

    def record_success(self) -> None:
        self.failure_count = 0
        self.is_open = False

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()
        if self.failure_count >= self.failure_threshold:
            self.is_open = True
            logger.warning(
                "Circuit breaker OPEN after %d failures", self.failure_count
            )

    def can_attempt(self) -> bool:
        if not self.is_open:
            return True
        # Half-open after the recovery timeout
        if self.last_failure_time and (
            time.time() - self.last_failure_time > self.recovery_timeout
        ):
            logger.info("Circuit breaker half-open, allowing request")
            return True
        return False


def _safe_url(url: str) -> str:
    """Strip query params (may contain tokens) for safe logging."""
    parsed = urlparse(str(url))
    return f"{parsed.scheme}://{parsed.netloc}{parsed.path}"

class ResilientClient:
    """httpx.AsyncClient wrapper with a circuit breaker.

    Each call sends exactly one outbound request; callers decide how to
    degrade. Timeouts, connection errors and retryable statuses count as
    breaker failures.
    """

    def __init__(self, name: str, timeout: float = 15.0):
        self._client = httpx.AsyncClient(timeout=timeout)
        self._name = name
        self.circuit = CircuitBreaker()

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        if not self.circuit.can_attempt():
            raise CircuitOpenError(f"[{self._name}] circuit open, skipping {_safe_url(url)}")

        try:
            resp = await self._client.request(method, url, **kwargs)
        except (httpx.TimeoutException, httpx.ConnectError, httpx.RemoteProtocolError) as exc:
            logger.warning(
                "[%s] Network error on %s %s: %s", self._name, method, _safe_url(url), exc,
            )
            self.circuit.record_failure()
            raise

        if resp.status_code in _FAILURE_STATUSES:
            logger.warning(
                "[%s] Status %d on %s %s", self._name, resp.status_code, method, _safe_url(url),
            )
            self.circuit.record_failure()
        else:
            self.circuit.record_success()
        return resp

    async def get(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()
