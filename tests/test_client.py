"""Tests for the MediaStack fetch client."""

import httpx
import pytest

from newsingest.errors import ApiError, ConfigurationError, HttpError, TransportError
from newsingest.ingestion import FetchClient, build_query_params

from .fakes import ApiStub, api_payload, make_client, make_config, raw_record


class TestBuildQueryParams:
    """Parameter merging."""

    def test_caller_overrides_defaults(self):
        merged = build_query_params({"limit": 100, "languages": "en"}, {"limit": 10, "keywords": "rates"})

        assert merged == {"limit": 10, "languages": "en", "keywords": "rates"}

    def test_empty_values_keep_default(self):
        merged = build_query_params({"categories": "business"}, {"categories": "", "countries": None})

        assert merged == {"categories": "business"}

    def test_access_key_and_unknown_keys_are_dropped(self):
        merged = build_query_params({"limit": 5}, {"access_key": "stolen", "format": "xml"})

        assert merged == {"limit": 5}


class TestFetch:
    """Fetching one page."""

    def test_successful_fetch_parses_records_and_pagination(self):
        stub = ApiStub(api_payload([raw_record(), raw_record(url="https://example.com/2")], total=250))
        client = make_client(stub)

        batch = client.fetch({"categories": "business"})

        assert len(batch.records) == 2
        assert batch.records[0].url == "https://example.com/markets-rally"
        assert batch.total_available == 250
        assert batch.returned_count == 2
        assert batch.attempts == 1
        assert batch.http_status == 200

    def test_request_carries_merged_params_and_key(self):
        stub = ApiStub(api_payload([]))
        client = make_client(stub)

        client.fetch({"categories": "science", "access_key": "other"})

        params = stub.requests[0].url.params
        assert params["access_key"] == "secret-key-1234"
        assert params["categories"] == "science"
        assert params["languages"] == "en"
        assert params["limit"] == "100"

    def test_transport_failures_retried_until_success(self):
        sleeps = []
        stub = ApiStub(
            httpx.ConnectError("connection refused"),
            httpx.ReadTimeout("timed out"),
            api_payload([raw_record()]),
        )
        client = make_client(stub, sleeps=sleeps)

        batch = client.fetch()

        assert len(stub.requests) == 3
        assert batch.attempts == 3
        assert len(batch.records) == 1
        assert sleeps == [1.0, 2.0]

    def test_all_attempts_fail_raises_last_error(self):
        sleeps = []
        stub = ApiStub(httpx.ConnectError("refused"), httpx.ConnectError("refused"), httpx.ReadTimeout("slow"))
        client = make_client(stub, sleeps=sleeps)

        with pytest.raises(TransportError) as exc_info:
            client.fetch()

        assert len(stub.requests) == 3
        assert exc_info.value.attempts == 3
        assert "ReadTimeout" in str(exc_info.value)
        assert len(sleeps) == 2

    @pytest.mark.parametrize(
        "error",
        [httpx.DecodingError("bad gzip"), httpx.TooManyRedirects("redirect loop"), httpx.UnsupportedProtocol("gopher")],
    )
    def test_other_request_errors_are_transport_errors(self, error):
        sleeps = []
        stub = ApiStub(error)
        client = make_client(stub, sleeps=sleeps)

        with pytest.raises(TransportError) as exc_info:
            client.fetch()

        assert len(stub.requests) == 3
        assert exc_info.value.attempts == 3
        assert type(error).__name__ in str(exc_info.value)
        assert sleeps == [1.0, 2.0]

    def test_single_attempt_raises_without_sleeping(self):
        sleeps = []
        stub = ApiStub(httpx.Response(503))
        config = make_config(mediastack={"retry": {"times": 1, "sleep_ms": 1000}})
        client = make_client(stub, config=config, sleeps=sleeps)

        with pytest.raises(HttpError) as exc_info:
            client.fetch()

        assert exc_info.value.attempts == 1
        assert len(stub.requests) == 1
        assert sleeps == []

    def test_server_error_retried_then_raised(self):
        stub = ApiStub(httpx.Response(500, text="boom"))
        client = make_client(stub)

        with pytest.raises(HttpError) as exc_info:
            client.fetch()

        assert len(stub.requests) == 3
        assert exc_info.value.status == 500
        assert exc_info.value.http_status == 500
        assert not exc_info.value.is_rate_limited
        assert str(exc_info.value) == "API request failed with status: 500"

    def test_too_many_requests_is_rate_limited(self):
        stub = ApiStub(httpx.Response(429))
        client = make_client(stub)

        with pytest.raises(HttpError) as exc_info:
            client.fetch()

        assert exc_info.value.is_rate_limited

    def test_error_envelope_is_not_retried(self):
        stub = ApiStub({"error": {"code": "invalid_access_key", "message": "You have not supplied a valid API Access Key."}})
        client = make_client(stub)

        with pytest.raises(ApiError) as exc_info:
            client.fetch()

        assert len(stub.requests) == 1
        assert exc_info.value.code == "invalid_access_key"
        assert str(exc_info.value).startswith("MediaStack API Error: ")
        assert not exc_info.value.is_rate_limited

    @pytest.mark.parametrize("code", ["rate_limit_reached", "usage_limit_reached"])
    def test_limit_codes_are_rate_limited(self, code):
        stub = ApiStub({"error": {"code": code, "message": "limit"}})
        client = make_client(stub)

        with pytest.raises(ApiError) as exc_info:
            client.fetch()

        assert exc_info.value.is_rate_limited

    def test_non_json_body_is_invalid_response(self):
        stub = ApiStub(httpx.Response(200, text="<html>maintenance</html>"))
        client = make_client(stub)

        with pytest.raises(ApiError) as exc_info:
            client.fetch()

        assert exc_info.value.code == "invalid_response"
        assert len(stub.requests) == 1

    def test_malformed_records_still_counted(self):
        stub = ApiStub(api_payload(["junk", raw_record(title={"nested": True}), raw_record(title=42)]))
        client = make_client(stub)

        batch = client.fetch()

        assert len(batch.records) == 3
        assert batch.records[0].url is None
        assert batch.records[1].url is None
        assert batch.records[2].title == "42"

    def test_malformed_pagination_is_ignored(self):
        stub = ApiStub({"pagination": {"total": "many"}, "data": [raw_record()]})
        client = make_client(stub)

        batch = client.fetch()

        assert batch.total_available == 1


class TestBackoff:
    """Delay schedule between attempts."""

    def test_exponential_delay_is_capped(self):
        config = make_config(mediastack={"retry": {"sleep_ms": 1000, "max_sleep_ms": 1500}})
        client = make_client(ApiStub(api_payload([])), config)

        assert client.backoff_delay(1) == 1.0
        assert client.backoff_delay(2) == 1.5
        assert client.backoff_delay(3) == 1.5

    def test_fixed_delay(self):
        config = make_config(mediastack={"retry": {"sleep_ms": 250, "exponential_backoff": False}})
        client = make_client(ApiStub(api_payload([])), config)

        assert client.backoff_delay(1) == 0.25
        assert client.backoff_delay(4) == 0.25


class TestClientSetup:
    """Construction and connection checks."""

    def test_empty_key_rejected(self):
        with pytest.raises(ConfigurationError):
            FetchClient(make_config().mediastack, api_key="")

    def test_masked_endpoint_hides_key(self):
        client = make_client(ApiStub(api_payload([])))

        assert "secret" not in client.masked_endpoint
        assert client.masked_endpoint.endswith("1234")

    def test_connection_success_sends_single_record_request(self):
        stub = ApiStub(api_payload([raw_record()]))
        client = make_client(stub)

        result = client.test_connection()

        assert result["success"] is True
        assert result["status"] == "connected"
        assert stub.requests[0].url.params["limit"] == "1"

    def test_connection_failure_reports_status(self):
        client = make_client(ApiStub(httpx.Response(401)))

        result = client.test_connection()

        assert result == {"success": False, "status": "failed", "message": "API returned status: 401"}

    def test_connection_error_envelope(self):
        client = make_client(ApiStub({"error": {"code": "invalid_access_key", "message": "Bad key"}}))

        result = client.test_connection()

        assert result["success"] is False
        assert result["message"] == "Bad key"
