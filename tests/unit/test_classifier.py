"""
Unit tests for failure classification.
"""

import aiohttp
import pytest

from tokenpipe.errors.classifier import (
    NETWORK_MESSAGE,
    TIMEOUT_MESSAGE,
    classify,
    is_retryable,
)
from tokenpipe.errors.internal import ClassifiedError, ErrorKind, TransportError
from tokenpipe.transport.base import NETWORK_CODE, TIMEOUT_CODE, TransportResponse


def _http_failure(status: int, data=None) -> TransportError:
    return TransportError(
        f"Request failed with status code {status}",
        response=TransportResponse(status=status, data=data),
    )


class TestClassifyWithoutResponse:
    """Failures where no response was received."""

    @pytest.mark.parametrize("code", [TIMEOUT_CODE, "ETIMEDOUT", "timeout"])
    def test_timeout_codes_classify_as_timeout(self, code):
        error = classify(TransportError("Request timeout", code=code))

        assert error.kind is ErrorKind.TIMEOUT
        assert error.retryable is True
        assert error.message == TIMEOUT_MESSAGE
        assert error.code == code
        assert error.status is None

    def test_other_codes_classify_as_network(self):
        error = classify(TransportError("boom", code=NETWORK_CODE))

        assert error.kind is ErrorKind.NETWORK
        assert error.retryable is True
        assert error.message == NETWORK_MESSAGE

    def test_missing_code_classifies_as_network(self):
        assert classify(TransportError("boom")).kind is ErrorKind.NETWORK

    def test_raw_timeout_error(self):
        cause = TimeoutError()
        error = classify(cause)

        assert error.kind is ErrorKind.TIMEOUT
        assert error.cause is cause

    def test_raw_connection_errors(self):
        assert classify(ConnectionResetError()).kind is ErrorKind.NETWORK
        assert classify(aiohttp.ClientConnectionError("refused")).kind is ErrorKind.NETWORK


class TestClassifyWithResponse:
    """Failures where the server answered with a non-2xx status."""

    @pytest.mark.parametrize("status", [408, 429, 500, 502, 503, 504])
    def test_transient_statuses(self, status):
        error = classify(_http_failure(status))

        assert error.kind is ErrorKind.SERVER_TRANSIENT
        assert error.retryable is True
        assert error.status == status

    def test_401_is_auth_expired(self):
        error = classify(_http_failure(401, {"message": "jwt expired"}))

        assert error.kind is ErrorKind.AUTH_EXPIRED
        assert error.retryable is False
        assert error.message == "jwt expired"
        assert error.response_data == {"message": "jwt expired"}

    @pytest.mark.parametrize("status", [403, 419])
    def test_csrf_statuses_with_csrf_refresh(self, status):
        error = classify(_http_failure(status), csrf_refresh_configured=True)

        assert error.kind is ErrorKind.CSRF_EXPIRED
        assert error.retryable is False

    @pytest.mark.parametrize("status", [403, 419])
    def test_csrf_statuses_without_csrf_refresh(self, status):
        error = classify(_http_failure(status), csrf_refresh_configured=False)

        assert error.kind is ErrorKind.AUTH_DENIED
        assert error.retryable is False

    @pytest.mark.parametrize("status", [400, 404, 409, 422])
    def test_other_4xx_are_client_errors(self, status):
        error = classify(_http_failure(status))

        assert error.kind is ErrorKind.CLIENT_ERROR
        assert error.retryable is False

    @pytest.mark.parametrize("status", [501, 505, 302])
    def test_fallback_is_unknown(self, status):
        error = classify(_http_failure(status))

        assert error.kind is ErrorKind.UNKNOWN
        assert error.retryable is False

    def test_message_falls_back_to_error_field_then_status(self):
        assert classify(_http_failure(400, {"error": "bad input"})).message == "bad input"
        assert classify(_http_failure(400, "plain text body")).message == "HTTP 400"
        assert classify(_http_failure(400, {"message": ""})).message == "HTTP 400"

    def test_cause_is_the_transport_error(self):
        failure = _http_failure(500)

        assert classify(failure).cause is failure


class TestClassifyOther:
    """Inputs that are not transport failures."""

    def test_classified_error_passes_through(self):
        original = ClassifiedError("x", kind=ErrorKind.CLIENT_ERROR, retryable=False)

        assert classify(original) is original

    def test_arbitrary_exception_is_unknown(self):
        cause = KeyError("oops")
        error = classify(cause)

        assert error.kind is ErrorKind.UNKNOWN
        assert error.retryable is False
        assert error.cause is cause
        assert error.message.startswith("An unexpected error occurred")

    def test_deterministic_for_same_input(self):
        failure = _http_failure(429, {"message": "slow down"})

        first = classify(failure)
        second = classify(failure)

        assert (first.kind, first.retryable, first.message, first.status) == (
            second.kind,
            second.retryable,
            second.message,
            second.status,
        )


class TestIsRetryable:
    """Retry verdict exposed to callers."""

    def test_classified_errors_use_their_flag(self):
        assert is_retryable(ClassifiedError("x", kind=ErrorKind.NETWORK, retryable=True))
        assert not is_retryable(ClassifiedError("x", kind=ErrorKind.AUTH_EXPIRED, retryable=False))

    def test_transport_errors_are_classified_on_the_fly(self):
        assert is_retryable(_http_failure(503))
        assert not is_retryable(_http_failure(404))
        assert not is_retryable(_http_failure(403))

    def test_raw_network_failures_are_retryable(self):
        assert is_retryable(TimeoutError())
        assert is_retryable(ConnectionRefusedError())
        assert is_retryable(aiohttp.ServerDisconnectedError())

    def test_other_values_are_not_retryable(self):
        assert not is_retryable(ValueError("bad"))
        assert not is_retryable("not an error")
        assert not is_retryable(None)


class TestClassifiedError:
    """Read-only error value."""

    def test_attributes_are_read_only(self):
        error = ClassifiedError("x", kind=ErrorKind.TIMEOUT, retryable=True)

        with pytest.raises(AttributeError):
            error.kind = ErrorKind.UNKNOWN  # type: ignore[misc]

    def test_str_is_message_and_repr_has_kind(self):
        error = ClassifiedError("Token expired", kind=ErrorKind.AUTH_EXPIRED, retryable=False, status=401)

        assert str(error) == "Token expired"
        assert "auth_expired" in repr(error)
        assert "401" in repr(error)
