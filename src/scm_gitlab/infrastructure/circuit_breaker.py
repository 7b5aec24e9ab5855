"""Resilient call gateway. Every outbound GitLab request goes through here.

States: CLOSED → OPEN → HALF_OPEN → CLOSED

- ``failure_threshold`` consecutive failures → OPEN
- while OPEN, calls fail fast with :class:`BreakerOpenError`
- after ``cooldown`` seconds → HALF_OPEN, a single trial call is let through
- trial success → CLOSED; trial failure → OPEN again

A failure is a non-2xx response or a transport fault. ``timeout`` bounds each
whole call, injected clients included, and expiry counts as a transport fault.
The gateway never reads response bodies; that is the validator's job.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

import httpx

from scm_gitlab.domain.exceptions import BreakerOpenError, TransportError
from scm_gitlab.infrastructure.config import BreakerOptions

logger = logging.getLogger(__name__)

_USER_AGENT = "scm-gitlab/1.0"


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True, slots=True)
class RequestSpec:
    """One outbound HTTP call, authenticated with a bearer token."""

    method: str
    url: str
    token: str = field(repr=False)
    params: dict[str, str] | None = None
    json: Any = None


@dataclass(frozen=True, slots=True)
class BreakerStats:
    requests: int
    successes: int
    failures: int
    rejections: int
    consecutive_failures: int
    state: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class CircuitBreakerGateway:
    """Wraps an ``httpx.AsyncClient`` with a three-state circuit breaker.

    Safe for interleaved concurrent calls: state transitions happen under an
    ``asyncio.Lock``, the network call itself does not.
    """

    def __init__(
        self,
        options: BreakerOptions | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._options = options or BreakerOptions()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(self._options.timeout)
        )
        self._lock = asyncio.Lock()
        self._state = CircuitState.CLOSED
        self._opened_at = 0.0
        self._trial_in_flight = False
        self._consecutive_failures = 0
        self._requests = 0
        self._successes = 0
        self._failures = 0
        self._rejections = 0

    @property
    def state(self) -> CircuitState:
        return self._state

    # ── Public entry point ──────────────────────────────────────────────

    async def execute(self, spec: RequestSpec) -> httpx.Response:
        """Issue *spec* through the breaker, retrying transport faults if configured.

        Non-2xx responses are returned (and counted as failures); transport
        faults raise :class:`TransportError`.
        """
        attempt = 0
        while True:
            try:
                return await self._execute_once(spec)
            except TransportError:
                if attempt >= self._options.retries:
                    raise
                delay = self._options.retry_min_timeout * (
                    self._options.retry_factor**attempt
                )
                attempt += 1
                logger.warning(
                    "%s %s failed; retrying in %.2fs (attempt %d/%d)",
                    spec.method,
                    spec.url,
                    delay,
                    attempt,
                    self._options.retries,
                )
                await asyncio.sleep(delay)

    def stats(self) -> BreakerStats:
        return BreakerStats(
            requests=self._requests,
            successes=self._successes,
            failures=self._failures,
            rejections=self._rejections,
            consecutive_failures=self._consecutive_failures,
            state=self._state.value,
        )

    async def aclose(self) -> None:
        """Release the HTTP client if the gateway created it."""
        if self._owns_client:
            await self._client.aclose()

    # ── Breaker mechanics ───────────────────────────────────────────────

    async def _execute_once(self, spec: RequestSpec) -> httpx.Response:
        async with self._lock:
            trial = self._before_call()

        logger.debug("%s %s", spec.method, spec.url)
        try:
            response = await asyncio.wait_for(
                self._client.request(
                    spec.method,
                    spec.url,
                    params=spec.params,
                    json=spec.json,
                    headers={
                        "Authorization": f"Bearer {spec.token}",
                        "Accept": "application/json",
                        "User-Agent": _USER_AGENT,
                    },
                    timeout=self._options.timeout,
                ),
                timeout=self._options.timeout,
            )
        except (httpx.HTTPError, asyncio.TimeoutError) as exc:
            async with self._lock:
                self._on_failure(trial)
            raise TransportError(
                f"Network error calling {spec.method} {spec.url}: {type(exc).__name__}"
            ) from exc
        except BaseException:
            # Cancelled mid-flight: release the half-open slot without judging the call.
            if trial:
                async with self._lock:
                    self._trial_in_flight = False
            raise

        async with self._lock:
            if response.is_success:
                self._on_success(trial)
            else:
                self._on_failure(trial)
        return response

    def _before_call(self) -> bool:
        """Admit or reject a call. Returns True when the call is the half-open trial."""
        if self._state == CircuitState.OPEN:
            if time.monotonic() - self._opened_at < self._options.cooldown:
                self._reject("open")
            logger.info("Circuit breaker: transitioning to HALF-OPEN")
            self._state = CircuitState.HALF_OPEN

        if self._state == CircuitState.HALF_OPEN:
            if self._trial_in_flight:
                self._reject("half-open, trial call pending")
            self._trial_in_flight = True
            self._requests += 1
            return True

        self._requests += 1
        return False

    def _reject(self, reason: str) -> None:
        self._rejections += 1
        raise BreakerOpenError(f"SCM circuit breaker is {reason}; failing fast.")

    def _on_success(self, trial: bool) -> None:
        self._successes += 1
        self._consecutive_failures = 0
        if trial:
            self._trial_in_flight = False
            logger.info("Circuit breaker: trial call succeeded, transitioning to CLOSED")
            self._state = CircuitState.CLOSED

    def _on_failure(self, trial: bool) -> None:
        self._failures += 1
        self._consecutive_failures += 1
        if trial:
            self._trial_in_flight = False
            logger.warning("Circuit breaker: trial call failed, re-opening circuit")
            self._open()
        elif (
            self._state == CircuitState.CLOSED
            and self._consecutive_failures >= self._options.failure_threshold
        ):
            logger.warning(
                "Circuit breaker: failure threshold (%d) reached, opening circuit for %.1fs",
                self._options.failure_threshold,
                self._options.cooldown,
            )
            self._open()

    def _open(self) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = time.monotonic()
