"""MediaStack API client with bounded retries."""

import time
from typing import Any, Callable, Dict, Mapping, Optional, Union

import httpx
from pydantic import ValidationError

from ..config import MediastackConfig, RetryConfig
from ..errors import ApiError, ConfigurationError, FetchError, HttpError, TransportError
from ..utils.logging import get_logger, mask_secret
from .models import Pagination, RawArticle, RawBatch

logger = get_logger("client")

ParamValue = Union[str, int, None]

# Parameters the news endpoint understands; anything else is dropped.
QUERY_PARAMS = (
    "limit",
    "offset",
    "languages",
    "countries",
    "categories",
    "sources",
    "keywords",
    "sort",
    "date",
)


def build_query_params(
    defaults: Mapping[str, ParamValue],
    params: Optional[Mapping[str, ParamValue]] = None,
) -> Dict[str, ParamValue]:
    """Merge caller parameters over configured defaults.

    Empty values in ``params`` do not override a default. ``access_key`` is
    never accepted from either side.
    """
    merged: Dict[str, ParamValue] = {}
    for source in (defaults, params or {}):
        for key, value in source.items():
            if key not in QUERY_PARAMS:
                if key == "access_key":
                    logger.warning("Ignoring caller-supplied access_key")
                else:
                    logger.debug("Ignoring unknown query parameter %s", key)
                continue
            if value is None or value == "":
                continue
            merged[key] = value
    return merged


class FetchClient:
    """Fetch one page of news from the MediaStack API."""

    def __init__(
        self,
        config: MediastackConfig,
        api_key: str,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the client. ``transport`` and ``sleep`` are swappable for tests."""
        if not api_key:
            raise ConfigurationError("MediaStack API key is empty")
        self.config = config
        self._api_key = api_key
        self._transport = transport
        self._sleep = sleep

    @property
    def retry(self) -> RetryConfig:
        return self.config.retry

    @property
    def masked_endpoint(self) -> str:
        """Endpoint with the access key masked, safe for logs and the run log."""
        return f"{self.config.api_url}?access_key={mask_secret(self._api_key)}"

    def build_params(self, params: Optional[Mapping[str, ParamValue]] = None) -> Dict[str, ParamValue]:
        """Final query parameters for a fetch, without the credential."""
        return build_query_params(self.config.default_params, params)

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after failed ``attempt`` (1-based)."""
        delay_ms = self.retry.sleep_ms
        if self.retry.exponential_backoff:
            delay_ms = delay_ms * (2 ** (attempt - 1))
        return min(delay_ms, self.retry.max_sleep_ms) / 1000.0

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.config.timeout,
            transport=self._transport,
            headers={"Accept": "application/json"},
        )

    def fetch(self, params: Optional[Mapping[str, ParamValue]] = None) -> RawBatch:
        """
        Fetch one page of articles.

        Transport failures and non-2xx responses are retried up to the
        configured number of attempts. An error envelope in a 2xx response
        is final.

        Raises:
            TransportError, HttpError, ApiError
        """
        query = self.build_params(params)
        query["access_key"] = self._api_key
        max_attempts = self.retry.times
        started = time.monotonic()
        attempt = 0

        with self._client() as client:
            while True:
                attempt += 1
                error: FetchError
                try:
                    response = client.get(self.config.api_url, params=query)
                except httpx.RequestError as e:
                    # Connection, timeout, decoding and redirect failures alike
                    error = TransportError(f"{type(e).__name__}: {e}", attempts=attempt)
                else:
                    if response.is_success:
                        batch = self._parse(response, attempt)
                        batch.response_time_ms = int((time.monotonic() - started) * 1000)
                        return batch
                    error = HttpError(response.status_code, attempts=attempt)

                if attempt >= max_attempts:
                    logger.error("MediaStack request failed after %s attempts: %s", attempt, error)
                    raise error

                delay = self.backoff_delay(attempt)
                logger.warning(
                    "MediaStack request failed (attempt %s/%s): %s; retrying in %.1fs",
                    attempt,
                    max_attempts,
                    error,
                    delay,
                )
                self._sleep(delay)

    def _parse(self, response: httpx.Response, attempt: int) -> RawBatch:
        try:
            data = response.json()
        except ValueError:
            raise ApiError(
                "Response body is not valid JSON",
                code="invalid_response",
                status=response.status_code,
                attempts=attempt,
            )
        if not isinstance(data, dict):
            raise ApiError(
                "Response body is not a JSON object",
                code="invalid_response",
                status=response.status_code,
                attempts=attempt,
            )

        if data.get("error"):
            error = data["error"] if isinstance(data["error"], dict) else {"message": str(data["error"])}
            raise ApiError(
                error.get("message") or "Unknown error",
                code=error.get("code"),
                status=response.status_code,
                attempts=attempt,
            )

        records = []
        for item in data.get("data") or []:
            records.append(self._parse_record(item))

        pagination = Pagination()
        if isinstance(data.get("pagination"), dict):
            try:
                pagination = Pagination(**data["pagination"])
            except ValidationError as e:
                logger.warning("Ignoring malformed pagination block: %s", e)

        return RawBatch(
            records=records,
            pagination=pagination,
            http_status=response.status_code,
            attempts=attempt,
        )

    @staticmethod
    def _parse_record(item: Any) -> RawArticle:
        # A malformed entry still counts as fetched; the normalizer rejects it.
        if not isinstance(item, dict):
            logger.warning("Malformed record in response: %r", item)
            return RawArticle()
        try:
            return RawArticle.model_validate(item)
        except ValidationError as e:
            logger.warning("Malformed record in response (%s): %s", item.get("url"), e)
            return RawArticle()

    def test_connection(self) -> Dict[str, Any]:
        """Single ``limit=1`` request without retries."""
        try:
            with httpx.Client(timeout=min(self.config.timeout, 10.0), transport=self._transport) as client:
                response = client.get(
                    self.config.api_url,
                    params={"access_key": self._api_key, "limit": 1},
                )
        except httpx.HTTPError as e:
            return {"success": False, "status": "error", "message": str(e)}

        if not response.is_success:
            return {
                "success": False,
                "status": "failed",
                "message": f"API returned status: {response.status_code}",
            }
        try:
            data = response.json()
        except ValueError:
            return {"success": False, "status": "failed", "message": "Response body is not valid JSON"}
        if isinstance(data, dict) and data.get("error"):
            error = data["error"] if isinstance(data["error"], dict) else {}
            return {
                "success": False,
                "status": "failed",
                "message": error.get("message") or "API returned an error",
            }
        return {"success": True, "status": "connected", "message": "API connection successful"}
