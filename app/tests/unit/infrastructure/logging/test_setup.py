"""Unit tests for infrastructure.logging.setup module.

Tests cover:
- configure_logging function
- get_module_logger / get_logger context binding
- Test logging suppression in test environment
"""

import logging

import pytest
import structlog

from infrastructure.logging.setup import (
    _is_test_environment,
    configure_logging,
    get_logger,
    get_module_logger,
)


@pytest.mark.unit
class TestIsTestEnvironment:
    def test_detects_pytest_in_sys_modules(self):
        """Returns True when pytest is in sys.modules."""
        assert _is_test_environment() is True


@pytest.mark.unit
class TestConfigureLogging:
    """Test suite for configure_logging function."""

    def test_configure_logging_returns_bound_logger(self, mock_settings):
        result = configure_logging(settings=mock_settings)

        assert hasattr(result, "info")
        assert hasattr(result, "warning")
        assert hasattr(result, "error")

    def test_configure_logging_accepts_overrides(self, mock_settings):
        assert configure_logging(settings=mock_settings, log_level="DEBUG") is not None
        assert configure_logging(settings=mock_settings, is_production=True) is not None

    def test_configure_logging_idempotent(self, mock_settings):
        """Multiple configure_logging calls are safe."""
        assert configure_logging(settings=mock_settings) is not None
        assert configure_logging(settings=mock_settings) is not None

    def test_configure_logging_suppresses_in_test_env(self, mock_settings):
        """In test environment, root logger level is set high to suppress output."""
        configure_logging(settings=mock_settings)

        assert logging.getLogger().level >= logging.CRITICAL


@pytest.mark.unit
class TestModuleLoggers:
    def test_get_module_logger_binds_component_and_path(self):
        from infrastructure.queue import store

        context = structlog.get_context(store.logger)

        assert context["module_path"] == "infrastructure.queue.store"
        assert context["component"] == "store"

    def test_get_module_logger_returns_usable_logger(self, mock_settings):
        configure_logging(settings=mock_settings)

        logger = get_module_logger()

        assert "component" in structlog.get_context(logger)
        logger.info("test_event", key="value")

    def test_get_logger_with_explicit_name(self, mock_settings):
        configure_logging(settings=mock_settings)

        logger = get_logger("modules.notifications.producer")

        assert structlog.get_context(logger)["logger_name"] == "modules.notifications.producer"
