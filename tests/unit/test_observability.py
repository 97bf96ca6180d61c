"""Unit tests for observability setup."""

import logging
import os
from unittest.mock import MagicMock, Mock, patch

import pytest
from pythonjsonlogger import jsonlogger

from zequi_storefront.observability import traced
from zequi_storefront.observability.config import (
    configure_logging,
    exporters_enabled,
    get_service_resource,
    otlp_endpoint,
    setup_observability,
)


@pytest.mark.unit
class TestObservabilityConfig:
    """Tests for provider and logging configuration."""

    @patch.dict(os.environ, {"ENVIRONMENT": "production"}, clear=True)
    def test_resource_identifies_service(self) -> None:
        """Test default resource attributes."""
        attributes = get_service_resource().attributes

        assert attributes["service.name"] == "zequi-storefront"
        assert attributes["deployment.environment"] == "production"

    @patch.dict(os.environ, {"OTEL_EXPORTER_OTLP_ENDPOINT": "http://collector:4318/"}, clear=True)
    def test_endpoint_drops_trailing_slash(self) -> None:
        """Test that signal paths can be appended to the endpoint."""
        assert otlp_endpoint() == "http://collector:4318"

    @pytest.mark.parametrize(
        "env,expected",
        [
            ({"ENVIRONMENT": "test"}, False),
            ({"ENVIRONMENT": "production", "OTEL_SDK_DISABLED": "true"}, False),
            ({"ENVIRONMENT": "production"}, True),
        ],
    )
    def test_exporters_enabled(self, env: dict[str, str], expected: bool) -> None:
        """Test when OTLP exporters are installed."""
        with patch.dict(os.environ, env, clear=True):
            assert exporters_enabled() is expected

    @patch.dict(os.environ, {"ENVIRONMENT": "test"}, clear=True)
    @patch("zequi_storefront.observability.config.FastAPIInstrumentor")
    @patch("zequi_storefront.observability.config.BotocoreInstrumentor")
    @patch("zequi_storefront.observability.config.setup_tracing")
    def test_setup_skips_exporters_under_test(
        self, mock_tracing: Mock, mock_botocore: Mock, mock_fastapi: Mock
    ) -> None:
        """Test that tests never install exporters but still instrument."""
        mock_botocore.return_value.is_instrumented_by_opentelemetry = False
        app = MagicMock()

        setup_observability(app)

        mock_tracing.assert_not_called()
        mock_botocore.return_value.instrument.assert_called_once()
        mock_fastapi.instrument_app.assert_called_once()
        assert mock_fastapi.instrument_app.call_args.args == (app,)

    @patch.dict(os.environ, {"ENVIRONMENT": "test"}, clear=True)
    @patch("zequi_storefront.observability.config.BotocoreInstrumentor")
    def test_setup_does_not_instrument_twice(self, mock_botocore: Mock) -> None:
        """Test that a warm container keeps its existing instrumentation."""
        mock_botocore.return_value.is_instrumented_by_opentelemetry = True

        setup_observability()

        mock_botocore.return_value.instrument.assert_not_called()

    @patch.dict(os.environ, {"LOG_LEVEL": "debug"}, clear=True)
    def test_configure_logging_installs_json_handler(self) -> None:
        """Test that the root logger gets a single JSON handler."""
        root = logging.getLogger()
        previous_handlers, previous_level = root.handlers[:], root.level
        try:
            configure_logging()

            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, jsonlogger.JsonFormatter)
            assert logging.getLogger("botocore").level == logging.WARNING
        finally:
            root.handlers = previous_handlers
            root.setLevel(previous_level)


@pytest.mark.unit
class TestTraced:
    """Tests for the traced decorator."""

    def test_sync_function_result_passes_through(self) -> None:
        """Test that wrapped sync functions behave unchanged."""

        @traced("test.sync")
        def add(a: int, b: int) -> int:
            return a + b

        assert add(2, 3) == 5
        assert add.__name__ == "add"

    @pytest.mark.asyncio
    async def test_async_function_reraises(self) -> None:
        """Test that exceptions escape the span unchanged."""

        @traced()
        async def fail() -> None:
            raise ValueError("nope")

        with pytest.raises(ValueError, match="nope"):
            await fail()
