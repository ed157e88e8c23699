from cart_protection.error_handler import ErrorHandler
from cart_protection.errors import InvalidArgument, NotFound, UpstreamAuthError, UpstreamError


def test_handle_exception_returns_payload():
    eh = ErrorHandler()
    status, body = eh.handle_exception(Exception("boom"), context={"k": "v"})
    assert status == 500
    assert body["success"] is False
    assert body["error_type"] == "internal_error"
    assert body["metadata"]["context"] == {"k": "v"}
    # internals are not leaked to the caller
    assert "boom" not in body["error"]


def test_domain_errors_keep_their_status_and_type():
    eh = ErrorHandler()

    assert eh.handle_exception(InvalidArgument("Cart ID is required"))[0] == 400
    assert eh.handle_exception(NotFound("Cart not found: x"))[1]["error_type"] == "not_found"

    status, body = eh.handle_exception(UpstreamAuthError("auth failed", upstream_status=401))
    assert status == 502
    assert body["error_type"] == "upstream_auth_error"
    assert body["upstream_status"] == 401


def test_upstream_payload_is_passed_through():
    exc = UpstreamError("BigCommerce API error: 422", upstream_status=422, payload={"title": "Invalid"})

    status, body = ErrorHandler().handle_exception(exc)

    assert status == 502
    assert body["details"] == {"title": "Invalid"}
