"""Error Hierarchy — status mapping and the FAILED envelope."""

from travel_advisor.core.errors import (
    AdvisorError, CityValidationError, ErrorCategory, ErrorContext,
    InvalidRangeError, StoreError, UnauthorizedError, UpstreamError,
)


def test_every_error_is_an_advisor_error():
    for err in (
        CityValidationError("bad"), InvalidRangeError(5, 1),
        StoreError("down", "commit"), UpstreamError("boom", "geonames"),
        UnauthorizedError(),
    ):
        assert isinstance(err, AdvisorError)


def test_upstream_404_surfaces_as_not_found():
    assert UpstreamError("missing", "openweathermap", status_code=404).http_status == 404


def test_other_upstream_failures_are_bad_gateway():
    assert UpstreamError("boom", "restcountries", status_code=500).http_status == 502
    assert UpstreamError("timeout", "restcountries").http_status == 502


def test_upstream_error_carries_name_and_retry_hint():
    err = UpstreamError(
        "slow down", "geonames", status_code=429, retry_after_ms=2000,
        context=ErrorContext(country="FR"),
    )
    assert err.message == "geonames error: slow down"
    assert err.upstream == "geonames"
    assert err.context.retry_after_ms == 2000
    assert err.context.country == "FR"
    assert err.category is ErrorCategory.EXTERNAL_API


def test_store_error_is_service_unavailable():
    err = StoreError("connection refused", "execute")
    assert err.http_status == 503
    assert err.operation == "execute"


def test_to_response_shape():
    body = CityValidationError("City is required", ErrorContext(city="")).to_response()
    assert body["status"] == "FAILED"
    assert body["message"] == "City is required"
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["error"]["category"] == "validation"
    assert body["error"]["severity"] == "warning"
    assert body["error"]["context"]["city"] == ""
