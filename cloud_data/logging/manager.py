"""
Logging manager for cloud_data.

Configures the ``cloud_data`` logger hierarchy; the host application's root
logger is left alone.
"""

import logging
import sys
from typing import Dict, Optional, Union

from ..config.models import CloudDataConfig, LoggingConfig, LogLevel
from .filters import SensitiveDataFilter
from .formatters import StructuredFormatter

PACKAGE_LOGGER = "cloud_data"


class LoggingManager:
    """Centralized logging manager."""

    def __init__(self) -> None:
        """Initialize logging manager."""
        self._configured = False
        self._handlers: Dict[str, logging.Handler] = {}

    def setup_logging(self, config: LoggingConfig) -> None:
        """
        Setup logging based on configuration.

        Args:
            config: Logging configuration
        """
        if self._configured:
            self.cleanup()

        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.setLevel(getattr(logging, config.level.value))

        if config.enable_console:
            self._setup_console_handler(config)

        for component, level in config.component_levels.items():
            logging.getLogger(component).setLevel(getattr(logging, level.value))

        self._configured = True
        logging.getLogger(__name__).debug("Logging system configured")

    def _setup_console_handler(self, config: LoggingConfig) -> None:
        """Setup console logging handler."""
        handler = logging.StreamHandler(sys.stdout)

        formatter: logging.Formatter
        if config.enable_structured:
            formatter = StructuredFormatter()
        else:
            formatter = logging.Formatter(config.format)

        handler.setFormatter(formatter)
        handler.setLevel(getattr(logging, config.level.value))

        if config.mask_credentials:
            handler.addFilter(SensitiveDataFilter())

        logging.getLogger(PACKAGE_LOGGER).addHandler(handler)
        self._handlers["console"] = handler

    def set_level(self, level: LogLevel, component: Optional[str] = None) -> None:
        """
        Set logging level.

        Args:
            level: New logging level
            component: Specific component (None for the package logger)
        """
        log_level = getattr(logging, level.value)

        if component:
            logging.getLogger(component).setLevel(log_level)
        else:
            logging.getLogger(PACKAGE_LOGGER).setLevel(log_level)
            for handler in self._handlers.values():
                handler.setLevel(log_level)

    def cleanup(self) -> None:
        """Remove and close the handlers this manager installed."""
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        for handler in list(self._handlers.values()):
            package_logger.removeHandler(handler)
            handler.close()

        self._handlers.clear()
        self._configured = False

    def is_configured(self) -> bool:
        """Check if logging is configured."""
        return self._configured


_logging_manager = LoggingManager()


def setup_logging(config: Optional[Union[LoggingConfig, CloudDataConfig]] = None) -> None:
    """
    Setup logging with configuration.

    Args:
        config: Logging configuration, or a full configuration whose
            ``logging`` section is applied (defaults used when omitted)
    """
    if isinstance(config, CloudDataConfig):
        config = config.logging
    _logging_manager.setup_logging(config or LoggingConfig())


def cleanup_logging() -> None:
    """Cleanup logging system."""
    _logging_manager.cleanup()
