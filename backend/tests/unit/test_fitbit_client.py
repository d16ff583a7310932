"""Tests for the Fitbit client."""

from datetime import date

import httpx
import pytest

from integrations.exceptions import (
    ProviderAPIError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderDataError,
)
from integrations.fitbit_client import FitbitClient
from integrations.provider_protocol import (
    MetricKind,
    MetricRecord,
    Period,
    Platform,
    ProviderCredential,
)

DAILY_SUMMARY = {
    "activities": [],
    "goals": {"steps": 10000},
    "summary": {
        "steps": 2020,
        "caloriesOut": 1010,
        "distances": [
            {"activity": "tracker", "distance": 2.5},
            {"activity": "total", "distance": 2.63},
        ],
    },
}

CREDENTIAL = ProviderCredential(platform=Platform.FITBIT, access_token="fitbit-token")


def _client(handler) -> FitbitClient:
    return FitbitClient(
        base_url="https://fitbit.test/1",
        timeout=1.0,
        transport=httpx.MockTransport(handler),
    )


def _json_handler(payload, status_code=200, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)

    return handler


class TestFitbitDaily:
    """Tests for FitbitClient.fetch()."""

    def test_steps(self):
        record = _client(_json_handler(DAILY_SUMMARY)).fetch(
            CREDENTIAL, MetricKind.STEPS, date(2020, 2, 13)
        )
        assert record == MetricRecord(platform=Platform.FITBIT, value=2020)
        assert isinstance(record.value, int)

    def test_calories(self):
        record = _client(_json_handler(DAILY_SUMMARY)).fetch(
            CREDENTIAL, MetricKind.CALORIES, date(2020, 2, 13)
        )
        assert record.value == 1010

    def test_distance_uses_total_entry(self):
        record = _client(_json_handler(DAILY_SUMMARY)).fetch(
            CREDENTIAL, MetricKind.DISTANCE, date(2020, 2, 13)
        )
        assert record.value == pytest.approx(2.63)
        assert isinstance(record.value, float)

    def test_request_path_and_auth_header(self):
        seen = []
        _client(_json_handler(DAILY_SUMMARY, seen=seen)).fetch(
            CREDENTIAL, MetricKind.STEPS, date(2020, 2, 13)
        )
        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/1/user/-/activities/date/2020-02-13.json"
        assert request.headers["Authorization"] == "Bearer fitbit-token"

    def test_external_user_id_in_path(self):
        seen = []
        credential = ProviderCredential(
            platform=Platform.FITBIT, access_token="t", external_user_id="22ABCD"
        )
        _client(_json_handler(DAILY_SUMMARY, seen=seen)).fetch(
            credential, MetricKind.STEPS, date(2020, 2, 13)
        )
        assert seen[0].url.path == "/1/user/22ABCD/activities/date/2020-02-13.json"

    def test_missing_summary_returns_none(self):
        record = _client(_json_handler({"activities": []})).fetch(
            CREDENTIAL, MetricKind.STEPS, date(2020, 2, 13)
        )
        assert record is None

    def test_missing_total_distance_returns_none(self):
        payload = {"summary": {"steps": 1, "distances": [{"activity": "tracker", "distance": 1.0}]}}
        record = _client(_json_handler(payload)).fetch(
            CREDENTIAL, MetricKind.DISTANCE, date(2020, 2, 13)
        )
        assert record is None

    def test_errors_array_raises_api_error(self):
        payload = {"errors": [{"errorType": "validation", "message": "Invalid date"}]}
        with pytest.raises(ProviderAPIError):
            _client(_json_handler(payload)).fetch(
                CREDENTIAL, MetricKind.STEPS, date(2020, 2, 13)
            )

    def test_non_numeric_value_raises_data_error(self):
        payload = {"summary": {"steps": "lots"}}
        with pytest.raises(ProviderDataError):
            _client(_json_handler(payload)).fetch(
                CREDENTIAL, MetricKind.STEPS, date(2020, 2, 13)
            )

    @pytest.mark.parametrize("raw", [b"NaN", b"Infinity", b"\"nan\""])
    def test_non_finite_value_raises_data_error(self, raw):
        def handler(request):
            return httpx.Response(200, content=b'{"summary": {"steps": ' + raw + b"}}")

        with pytest.raises(ProviderDataError):
            _client(handler).fetch(CREDENTIAL, MetricKind.STEPS, date(2020, 2, 13))

    def test_unauthorized_raises_auth_error(self):
        with pytest.raises(ProviderAuthError):
            _client(_json_handler({}, status_code=401)).fetch(
                CREDENTIAL, MetricKind.STEPS, date(2020, 2, 13)
            )

    def test_server_error_raises_retriable_api_error(self):
        with pytest.raises(ProviderAPIError) as exc_info:
            _client(_json_handler({}, status_code=503)).fetch(
                CREDENTIAL, MetricKind.STEPS, date(2020, 2, 13)
            )
        assert exc_info.value.status_code == 503
        assert exc_info.value.retriable

    def test_connection_failure_raises_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ProviderConnectionError):
            _client(handler).fetch(CREDENTIAL, MetricKind.STEPS, date(2020, 2, 13))

    def test_invalid_json_raises_data_error(self):
        def handler(request):
            return httpx.Response(200, content=b"<html>oops</html>")

        with pytest.raises(ProviderDataError):
            _client(handler).fetch(CREDENTIAL, MetricKind.STEPS, date(2020, 2, 13))


class TestFitbitOverPeriod:
    """Tests for FitbitClient.fetch_over_period()."""

    def test_sums_time_series(self):
        payload = {
            "activities-distance": [
                {"dateTime": "2020-02-13", "value": "1.0"},
                {"dateTime": "2020-02-14", "value": "2.0"},
                {"dateTime": "2020-02-15", "value": "3.0"},
            ]
        }
        seen = []
        record = _client(_json_handler(payload, seen=seen)).fetch_over_period(
            CREDENTIAL, MetricKind.DISTANCE, date(2020, 2, 13), Period.ONE_WEEK
        )
        assert record.value == pytest.approx(6.0)
        assert seen[0].url.path == "/1/user/-/activities/distance/date/2020-02-13/1w.json"

    def test_skips_bad_values(self):
        payload = {
            "activities-steps": [
                {"dateTime": "2020-02-13", "value": "100"},
                {"dateTime": "2020-02-14", "value": "n/a"},
                {"dateTime": "2020-02-15", "value": "250"},
            ]
        }
        record = _client(_json_handler(payload)).fetch_over_period(
            CREDENTIAL, MetricKind.STEPS, date(2020, 2, 13), Period.SEVEN_DAYS
        )
        assert record.value == 350

    def test_skips_non_finite_values(self):
        payload = {
            "activities-steps": [
                {"dateTime": "2020-02-13", "value": "100"},
                {"dateTime": "2020-02-14", "value": "nan"},
                {"dateTime": "2020-02-15", "value": "Infinity"},
                {"dateTime": "2020-02-16", "value": "250"},
            ]
        }
        record = _client(_json_handler(payload)).fetch_over_period(
            CREDENTIAL, MetricKind.STEPS, date(2020, 2, 13), Period.SEVEN_DAYS
        )
        assert record.value == 350

    def test_empty_series_returns_none(self):
        record = _client(_json_handler({"activities-calories": []})).fetch_over_period(
            CREDENTIAL, MetricKind.CALORIES, date(2020, 2, 13), Period.ONE_MONTH
        )
        assert record is None


class TestFitbitConfiguration:
    def test_platform(self):
        assert FitbitClient(base_url="https://fitbit.test/1").platform is Platform.FITBIT

    def test_is_configured_with_base_url(self):
        assert FitbitClient(base_url="https://fitbit.test/1").is_configured()

