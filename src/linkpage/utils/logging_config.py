"""
Centralized logging configuration for LinkPage.
Provides component-specific loggers with separate log files.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Dict, Any

from ..config import get_config


DETAILED_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - "
    "%(funcName)s() - %(message)s"
)
SIMPLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


class ComponentLogger:
    """Manages component-specific logging with separate files."""

    _loggers: Dict[str, logging.Logger] = {}
    _initialized = False
    _log_dir: Optional[Path] = None
    _to_file = True
    _debug = False

    # Component definitions with their log levels
    COMPONENTS = {
        'api': {'level': logging.INFO, 'file': 'api.log'},
        'auth': {'level': logging.INFO, 'file': 'auth.log'},
        'database': {'level': logging.INFO, 'file': 'database.log'},
        'domain': {'level': logging.INFO, 'file': 'domain.log'},
        # Best-effort telemetry failures (profile view analytics) land here
        'analytics': {'level': logging.INFO, 'file': 'analytics.log'},
        'main': {'level': logging.INFO, 'file': 'main.log'},
        'error': {'level': logging.ERROR, 'file': 'errors.log'},  # Centralized error log
    }

    @classmethod
    def initialize(
        cls,
        log_dir: Optional[str] = None,
        debug: Optional[bool] = None,
        to_file: Optional[bool] = None,
    ) -> None:
        """
        Initialize the logging system with component-specific loggers.

        Args:
            log_dir: Directory for log files. Defaults to config.app.log_dir
            debug: Enable debug logging for all components
            to_file: Write to rotating files instead of stderr
        """
        if cls._initialized:
            return

        config = get_config()
        cls._debug = config.server.debug if debug is None else debug
        cls._to_file = config.app.log_to_file if to_file is None else to_file

        if cls._to_file:
            cls._log_dir = Path(log_dir or config.app.log_dir)
            cls._log_dir.mkdir(parents=True, exist_ok=True)

        for component_name in cls.COMPONENTS:
            cls._create_component_logger(component_name)

        # Mark as initialized before logging to avoid recursion
        cls._initialized = True

        main_logger = cls._loggers['main']
        main_logger.info("LinkPage logging system initialized")
        main_logger.info(f"Log directory: {cls._log_dir}")
        main_logger.info(f"Debug mode: {cls._debug}")

    @classmethod
    def _create_component_logger(cls, component: str) -> logging.Logger:
        """Create (or reset) the logger for one component."""
        logger = logging.getLogger(f"linkpage.{component}")
        logger.handlers.clear()

        default_level = cls.COMPONENTS.get(component, {}).get('level', logging.INFO)
        level = logging.DEBUG if cls._debug else default_level
        logger.setLevel(level)

        detailed_formatter = logging.Formatter(DETAILED_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

        if cls._to_file and cls._log_dir is not None:
            file_name = cls.COMPONENTS.get(component, {}).get('file', f'{component}.log')
            file_handler = logging.handlers.RotatingFileHandler(
                cls._log_dir / file_name,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding='utf-8'
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(detailed_formatter)
            logger.addHandler(file_handler)
            logger.propagate = False

            # Errors still reach the console
            if component in ('error', 'main'):
                console_handler = logging.StreamHandler(sys.stderr)
                console_handler.setLevel(logging.ERROR)
                console_handler.setFormatter(
                    logging.Formatter(SIMPLE_FORMAT, datefmt='%H:%M:%S')
                )
                logger.addHandler(console_handler)
        else:
            # Without files, hand records to the root logger (uvicorn, pytest)
            logger.propagate = True

        cls._loggers[component] = logger
        return logger

    @classmethod
    def get_logger(cls, component: str) -> logging.Logger:
        """
        Get a logger for a specific component.

        Args:
            component: Component name (api, auth, domain, ...) or a module
                path such as 'linkpage.repositories.sqlalchemy_impl'

        Returns:
            Logger instance for the component
        """
        if not cls._initialized:
            cls.initialize()

        if component.startswith('linkpage.'):
            parts = component.split('.')
            if parts[1] in ('repositories', 'db'):
                component = 'database'
            elif len(parts) > 1:
                component = parts[1]

        if component not in cls._loggers:
            cls._create_component_logger(component)
        return cls._loggers[component]

    @classmethod
    def log_exception(cls, component: str, exc: BaseException, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Log an exception with context to both component and error logs.

        Args:
            component: Component where the exception occurred
            exc: The exception to log
            context: Additional context information
        """
        component_logger = cls.get_logger(component)
        error_logger = cls.get_logger('error')

        context_str = ""
        if context:
            context_str = " | Context: " + ", ".join(f"{k}={v}" for k, v in context.items())

        component_logger.error(
            f"Exception in {component}: {type(exc).__name__}: {exc}{context_str}",
            exc_info=exc,
        )
        if error_logger is not component_logger:
            error_logger.error(
                f"[{component}] {type(exc).__name__}: {exc}{context_str}", exc_info=exc
            )

    @classmethod
    def reset(cls) -> None:
        """Drop all handlers so the next call re-reads configuration."""
        for logger in cls._loggers.values():
            for handler in logger.handlers:
                handler.close()
            logger.handlers.clear()
            logger.propagate = True
        cls._loggers = {}
        cls._initialized = False
        cls._log_dir = None


# Convenience functions
def get_logger(component: str) -> logging.Logger:
    """Get a logger for a specific component."""
    return ComponentLogger.get_logger(component)


def initialize_logging(log_dir: Optional[str] = None, debug: Optional[bool] = None) -> None:
    """Initialize the logging system."""
    ComponentLogger.initialize(log_dir=log_dir, debug=debug)


def log_exception(component: str, exc: BaseException, context: Optional[Dict[str, Any]] = None) -> None:
    """Log an exception with context."""
    ComponentLogger.log_exception(component, exc, context)

