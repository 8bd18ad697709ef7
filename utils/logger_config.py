"""
Unified logging configuration for the SGBM tuner.

Every module obtains its logger through get_logger(), which returns a child
of the single project logger, so level and handlers are set in one place.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Union

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class LoggerConfig:
    """Centralized logger configuration manager."""

    _configured = False
    _root_logger_name = 'sgbm_tuner'

    @classmethod
    def setup_root_logger(
        cls,
        level: int = logging.INFO,
        format_string: Optional[str] = None,
        log_file: Optional[Path] = None,
        force: bool = False
    ) -> logging.Logger:
        """
        Setup the project logger.

        Args:
            level: Logging level (default: INFO)
            format_string: Custom format string (optional)
            log_file: Optional file path for logging to file
            force: Replace an existing configuration

        Returns:
            logging.Logger: Configured project logger
        """
        root_logger = logging.getLogger(cls._root_logger_name)
        if cls._configured and not force:
            return root_logger

        root_logger.setLevel(level)
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

        formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        if log_file is not None:
            log_file = Path(log_file)
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        # Prevent propagation to avoid duplicate messages
        root_logger.propagate = False
        cls._configured = True

        root_logger.debug(f"Project logger configured: level={logging.getLevelName(level)}")
        if log_file:
            root_logger.info(f"Logging to file: {log_file}")
        return root_logger

    @classmethod
    def configure_from(cls, config: Any) -> logging.Logger:
        """
        Reconfigure logging from a Config object.

        Reads the optional ``log_level`` (name or number) and ``log_file``
        entries.
        """
        level = cls.parse_level(getattr(config, 'log_level', 'INFO'))
        log_file = getattr(config, 'log_file', None)
        return cls.setup_root_logger(level=level,
                                     log_file=Path(log_file) if log_file else None,
                                     force=True)

    @staticmethod
    def parse_level(level: Union[int, str]) -> int:
        """Convert 'DEBUG', 'info', 10, ... into a logging level number."""
        if isinstance(level, int):
            return level
        value = logging.getLevelName(str(level).upper())
        if not isinstance(value, int):
            raise ValueError(f"Unknown logging level: {level}")
        return value

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """
        Get a logger that inherits from the project logger configuration.

        Args:
            name: Logger name (typically __name__ from calling module)

        Returns:
            logging.Logger: Configured logger
        """
        if not cls._configured:
            cls.setup_root_logger()

        # modules inside the package already carry the project prefix
        if name == cls._root_logger_name or name.startswith(f"{cls._root_logger_name}."):
            full_name = name
        else:
            full_name = f"{cls._root_logger_name}.{name}"
        logger = logging.getLogger(full_name)
        logger.propagate = True
        return logger

    @classmethod
    def set_level(cls, level: int) -> None:
        root_logger = logging.getLogger(cls._root_logger_name)
        root_logger.setLevel(level)
        for handler in root_logger.handlers:
            handler.setLevel(level)
        root_logger.info(f"Logging level changed to: {logging.getLevelName(level)}")

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured

    @classmethod
    def get_configuration_info(cls) -> Dict[str, Any]:
        """
        Get information about current logger configuration.

        Returns:
            Dict[str, Any]: Configuration information
        """
        if not cls._configured:
            return {'configured': False}

        root_logger = logging.getLogger(cls._root_logger_name)
        return {
            'configured': True,
            'root_logger_name': cls._root_logger_name,
            'level': logging.getLevelName(root_logger.level),
            'handlers': [
                {
                    'type': type(handler).__name__,
                    'level': logging.getLevelName(handler.level)
                }
                for handler in root_logger.handlers
            ]
        }


def get_logger(name: str = None) -> logging.Logger:
    """
    Convenience function to get a properly configured logger.

    Args:
        name: Logger name (if None, uses calling module's __name__)

    Returns:
        logging.Logger: Configured logger
    """
    if name is None:
        import inspect
        frame = inspect.currentframe().f_back
        name = frame.f_globals.get('__name__', 'unknown')

    return LoggerConfig.get_logger(name)


# Auto-initialize when imported so library use logs consistently without setup
if not LoggerConfig.is_configured():
    LoggerConfig.setup_root_logger()
