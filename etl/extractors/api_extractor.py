"""
API data source extractor with retry logic and a circuit breaker.

Every answer is classified into the core.exceptions retry hierarchy:
RetryableError failures (timeouts, connection errors, 429, 5xx) are sent
again with exponential backoff, NonRetryableError failures (401, 403, 404)
fail at once. Only retryable failures count toward opening the circuit
breaker of the target host; a 4xx answer means the host is up.
"""

import httpx
import asyncio
from typing import Dict, Any, Optional
from datetime import datetime, timedelta
from urllib.parse import urlsplit
from etl.extractors.base import DataSource
from models.base import SourceType
from core.config import settings
from core.exceptions import (
    APIExtractionError,
    NetworkError,
    RateLimitError,
    AuthenticationError,
    ResourceNotFoundError,
    RetryableError,
)
import logging

logger = logging.getLogger(__name__)


class CircuitBreaker:
    """
    Opens after `threshold` consecutive failures and rejects calls until
    `reset_timeout` seconds have passed.
    """

    def __init__(self, threshold: int = 5, reset_timeout: int = 60):
        self.threshold = threshold
        self.reset_timeout = reset_timeout
        self.failures = 0
        self.open_until: Optional[datetime] = None

    def is_open(self) -> bool:
        if self.open_until is None:
            return False

        if datetime.utcnow() >= self.open_until:
            logger.info("Circuit breaker reset")
            self.failures = 0
            self.open_until = None
            return False

        return True

    def record_failure(self):
        self.failures += 1

        if self.failures >= self.threshold:
            self.open_until = datetime.utcnow() + timedelta(seconds=self.reset_timeout)
            logger.warning(
                f"Circuit breaker opened. "
                f"Will retry after {self.reset_timeout} seconds."
            )

    def record_success(self):
        self.failures = 0
        self.open_until = None


class CircuitBreakerRegistry:
    """
    One CircuitBreaker per host, so a failing API never blocks
    extraction from the others.
    """

    def __init__(self, threshold: int = 5, reset_timeout: int = 60):
        self.threshold = threshold
        self.reset_timeout = reset_timeout
        self._breakers: Dict[str, CircuitBreaker] = {}

    def for_url(self, url: str) -> CircuitBreaker:
        host = urlsplit(url).netloc.lower() or url
        if host not in self._breakers:
            self._breakers[host] = CircuitBreaker(self.threshold, self.reset_timeout)
        return self._breakers[host]


class APIExtractor(DataSource):
    """
    Extract data from a REST endpoint.

    The response body is returned as-is, except that a JSON object with a
    list under `data` or `results` is unwrapped to that list.

    Attributes:
        max_retries: Maximum number of attempts (default: settings.MAX_RETRIES)
        retry_delay: Initial retry delay in seconds (default: settings.RETRY_DELAY)
        timeout: Request timeout in seconds
    """

    source_type = SourceType.API

    def __init__(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        body: Any = None,
        timeout: float = 30.0,
        source_name: Optional[str] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(source_name=source_name or "api")
        self.url = url
        self.method = method.upper()
        self.headers = headers or {}
        self.params = params or {}
        self.body = body
        self.timeout = timeout
        self.max_retries = max(1, max_retries if max_retries is not None else settings.MAX_RETRIES)
        self.retry_delay = retry_delay if retry_delay is not None else settings.RETRY_DELAY
        self.circuit_breaker = circuit_breaker or CircuitBreaker()
        self._http_client = http_client

    def details(self) -> Dict[str, Any]:
        return {"url": self.url, "method": self.method}

    async def fetch_data(self) -> Any:
        """
        Call the endpoint and return its JSON body.

        Raises:
            APIExtractionError: For API-related errors
            NetworkError: For network errors after all retries
            AuthenticationError: For 401/403 answers
        """
        if self._http_client is not None:
            response = await self._make_request_with_retry(self._http_client)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await self._make_request_with_retry(client)

        try:
            data = response.json()
        except ValueError as e:
            raise APIExtractionError(
                "Failed to parse JSON response",
                context={
                    "api_url": self.url,
                    "response_body": response.text[:500]
                },
                original_exception=e
            )

        # Handle common envelope formats
        if isinstance(data, dict):
            for key in ("data", "results"):
                if isinstance(data.get(key), list):
                    return data[key]

        return data

    async def _make_request_with_retry(self, client: httpx.AsyncClient) -> httpx.Response:
        """
        Send the request, retrying RetryableError failures with exponential
        backoff (429 answers wait for Retry-After when the server sends it).

        Raises:
            APIExtractionError: Circuit open, or a non-retryable 4xx answer
            NonRetryableError: 401/403/404, raised on the first attempt
            RetryableError: Still failing after max_retries attempts
        """
        if self.circuit_breaker.is_open():
            raise APIExtractionError(
                f"Circuit breaker is open for {self.url}",
                context={
                    "api_url": self.url,
                    "open_until": self.circuit_breaker.open_until.isoformat()
                },
                status_code=503
            )

        for attempt in range(1, self.max_retries + 1):
            logger.debug(f"Request attempt {attempt}/{self.max_retries} to {self.url}")

            try:
                response = await client.request(
                    self.method,
                    self.url,
                    headers=self.headers,
                    params=self.params,
                    json=self.body if self.method != "GET" else None,
                    timeout=self.timeout
                )
            except httpx.TimeoutException as e:
                error = NetworkError(
                    f"Request timeout after {attempt} attempts",
                    context={"api_url": self.url, "timeout": self.timeout, "retry_count": attempt},
                    original_exception=e
                )
            except httpx.NetworkError as e:
                error = NetworkError(
                    f"Network error after {attempt} attempts",
                    context={"api_url": self.url, "retry_count": attempt},
                    original_exception=e
                )
            else:
                error = self._check_response(response, attempt)
                if error is None:
                    self.circuit_breaker.record_success()
                    return response

            if isinstance(error, RetryableError) and attempt < self.max_retries:
                delay = self._backoff(error, attempt)
                logger.warning(
                    f"{error.message}. Retrying in {delay} seconds "
                    f"(attempt {attempt}/{self.max_retries})"
                )
                await asyncio.sleep(delay)
                continue

            if isinstance(error, RetryableError):
                self.circuit_breaker.record_failure()
            raise error

    def _check_response(self, response: httpx.Response, attempt: int) -> Optional[APIExtractionError]:
        """The error an answer stands for, or None for a 2xx/3xx answer"""
        status = response.status_code
        context = {"status_code": status, "api_url": self.url}

        if status in (401, 403):
            return AuthenticationError(f"Authentication failed for {self.url}", context=context)

        if status == 404:
            return ResourceNotFoundError(f"Resource not found: {self.url}", context=context)

        if status == 429:
            return RateLimitError(
                f"Rate limit exceeded for {self.url}",
                context={**context, "retry_count": attempt},
                retry_after=_retry_after(response)
            )

        if status >= 500:
            return NetworkError(
                f"Server error {status} after {attempt} attempts",
                context={**context, "retry_count": attempt, "response_body": response.text[:500]}
            )

        if status >= 400:
            return APIExtractionError(
                f"API request failed with status {status}: {response.reason_phrase}",
                context={**context, "response_body": response.text[:500]},
                status_code=400
            )

        return None

    def _backoff(self, error: APIExtractionError, attempt: int) -> float:
        if isinstance(error, RateLimitError) and error.retry_after is not None:
            return error.retry_after
        return self.retry_delay * (2 ** (attempt - 1))


def _retry_after(response: httpx.Response) -> Optional[int]:
    """Retry-After in seconds; HTTP-date values are ignored"""
    value = response.headers.get("Retry-After")
    try:
        return int(value) if value is not None else None
    except ValueError:
        return None
