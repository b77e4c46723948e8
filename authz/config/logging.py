"""
Logging configuration for the authorization service.

This module provides centralized logging configuration with support for
structured logging, different log levels, and text or JSON output.
"""

import logging
import logging.config
import sys
from typing import Dict, Any, Optional


def get_logging_config(
    log_level: str = "INFO",
    log_format: str = "text",
    log_file: Optional[str] = None,
    enable_access_log: bool = True
) -> Dict[str, Any]:
    """
    Get logging configuration dictionary.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format ('json' or 'text')
        log_file: Optional log file path
        enable_access_log: Whether to enable HTTP access logging

    Returns:
        Logging configuration dictionary
    """
    log_level = log_level.upper()

    formatters = {
        "default": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S"
        },
        "detailed": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(lineno)d - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S"
        },
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(name)s %(levelname)s %(module)s %(lineno)d %(message)s"
        }
    }

    formatter_name = "json" if log_format == "json" else "detailed"

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": log_level,
            "formatter": formatter_name,
            "stream": sys.stdout
        }
    }

    if log_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": log_level,
            "formatter": formatter_name,
            "filename": log_file,
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
            "encoding": "utf8"
        }

    handler_names = list(handlers.keys())

    loggers = {
        "": {  # Root logger
            "level": log_level,
            "handlers": handler_names,
            "propagate": False
        },
        "uvicorn": {
            "level": log_level,
            "handlers": handler_names,
            "propagate": False
        },
        "uvicorn.error": {
            "level": log_level,
            "handlers": handler_names,
            "propagate": False
        },
        "sqlalchemy.engine": {
            "level": "WARNING",
            "handlers": handler_names,
            "propagate": False
        },
        "authz": {  # Application logger
            "level": log_level,
            "handlers": handler_names,
            "propagate": False
        }
    }

    if enable_access_log:
        loggers["uvicorn.access"] = {
            "level": "INFO",
            "handlers": handler_names,
            "propagate": False
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": handlers,
        "loggers": loggers
    }


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "text",
    log_file: Optional[str] = None,
    enable_access_log: bool = True
) -> None:
    """
    Setup logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format ('json' or 'text')
        log_file: Optional log file path
        enable_access_log: Whether to enable HTTP access logging
    """
    config = get_logging_config(
        log_level=log_level,
        log_format=log_format,
        log_file=log_file,
        enable_access_log=enable_access_log
    )

    logging.config.dictConfig(config)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


class StructuredLogger:
    """
    Structured logger for consistent log message formatting.

    This class provides methods for logging structured data with
    consistent field names and formats.
    """

    def __init__(self, name: str):
        """Initialize structured logger.

        Args:
            name: Logger name
        """
        self.logger = get_logger(name)

    def log_request(
        self,
        method: str,
        path: str,
        status_code: int,
        response_time: float,
        client_ip: str = None,
        username: str = None,
        **kwargs
    ):
        """Log HTTP request information.

        Args:
            method: HTTP method
            path: Request path
            status_code: Response status code
            response_time: Response time in milliseconds
            client_ip: Client IP address
            username: Authenticated username, if any
            **kwargs: Additional fields to log
        """
        log_data = {
            "event": "http_request",
            "method": method,
            "path": path,
            "status_code": status_code,
            "response_time_ms": response_time,
        }

        if client_ip:
            log_data["client_ip"] = client_ip
        if username:
            log_data["username"] = username

        log_data.update(kwargs)

        if status_code >= 500:
            self.logger.error("HTTP request", extra=log_data)
        elif status_code >= 400:
            self.logger.warning("HTTP request", extra=log_data)
        else:
            self.logger.info("HTTP request", extra=log_data)

    def log_decision(
        self,
        username: Optional[str],
        method: str,
        path: str,
        granted: bool,
        reason: str,
        rule_id: Optional[int] = None,
        **kwargs
    ):
        """Log an authorization decision.

        Grants go to DEBUG, denials to WARNING.
        """
        log_data = {
            "event": "authorization_decision",
            "username": username,
            "method": method,
            "path": path,
            "granted": granted,
            "reason": reason,
        }

        if rule_id is not None:
            log_data["rule_id"] = rule_id

        log_data.update(kwargs)

        if granted:
            self.logger.debug("Access granted", extra=log_data)
        else:
            self.logger.warning("Access denied", extra=log_data)


# Global structured logger instance for the application
app_logger = StructuredLogger("authz")
