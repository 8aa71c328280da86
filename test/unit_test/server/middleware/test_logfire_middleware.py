"""
Unit tests for the request timing middleware.

This test suite covers:
- Request/response processing
- Duration header injection
- Error handling and exception tracking
- Slow request detection
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import Request
from starlette.responses import Response

from serviceos.server.middleware.logfire_middleware import LogfireMiddleware

MODULE = "serviceos.server.middleware.logfire_middleware"


@pytest.fixture
def mock_request():
    request = AsyncMock(spec=Request)
    request.method = "GET"
    request.url.path = "/api/v1/bookings"
    request.state = MagicMock()
    return request


class TestLogfireMiddlewareDispatch:
    """Test LogfireMiddleware.dispatch method."""

    async def test_successful_request_is_logged(self, mock_request):
        async def call_next(request):
            return Response(content="ok", status_code=200)

        middleware = LogfireMiddleware(app=AsyncMock())

        with patch(f"{MODULE}.log_api_request") as mock_log:
            response = await middleware.dispatch(mock_request, call_next)

        assert response.status_code == 200
        assert float(response.headers["X-Process-Time"]) >= 0
        kwargs = mock_log.call_args.kwargs
        assert kwargs["method"] == "GET"
        assert kwargs["path"] == "/api/v1/bookings"
        assert kwargs["status_code"] == 200

    async def test_failed_request_is_logged_as_500(self, mock_request):
        async def call_next(request):
            raise RuntimeError("handler crashed")

        middleware = LogfireMiddleware(app=AsyncMock())

        with patch(f"{MODULE}.log_api_request") as mock_log, patch(f"{MODULE}.logger") as mock_logger:
            with pytest.raises(RuntimeError):
                await middleware.dispatch(mock_request, call_next)

        assert mock_log.call_args.kwargs["status_code"] == 500
        mock_logger.error.assert_called_once()

    async def test_slow_request_warning(self, mock_request):
        async def call_next(request):
            return Response(status_code=201)

        middleware = LogfireMiddleware(app=AsyncMock())

        with (
            patch(f"{MODULE}.log_api_request"),
            patch(f"{MODULE}.logger") as mock_logger,
            patch(f"{MODULE}.SLOW_REQUEST_THRESHOLD_MS", -1),
        ):
            await middleware.dispatch(mock_request, call_next)

        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args.kwargs["extra"]["status_code"] == 201

    async def test_fast_request_no_warning(self, mock_request):
        async def call_next(request):
            return Response(status_code=200)

        middleware = LogfireMiddleware(app=AsyncMock())

        with (
            patch(f"{MODULE}.log_api_request"),
            patch(f"{MODULE}.logger") as mock_logger,
            patch(f"{MODULE}.SLOW_REQUEST_THRESHOLD_MS", 60_000),
        ):
            await middleware.dispatch(mock_request, call_next)

        mock_logger.warning.assert_not_called()
