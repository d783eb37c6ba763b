from starlette.requests import Request

from peopleflow.core.middlewares.rate_limit import session_or_address


def make_request(headers: dict) -> Request:
    return Request({
        "type": "http",
        "method": "POST",
        "path": "/api/v1/tenants/cambiar",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": ("10.0.0.7", 52000),
    })


class TestRateLimitKey:

    def test_bearer_token_is_the_bucket(self):
        assert session_or_address(make_request({"Authorization": "Bearer abc"})) == "session:abc"

    def test_session_cookie_is_the_bucket(self):
        assert session_or_address(make_request({"Cookie": "session_token=xyz"})) == "session:xyz"

    def test_anonymous_falls_back_to_client_address(self):
        assert session_or_address(make_request({})) == "10.0.0.7"
