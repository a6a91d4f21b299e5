"""
Custom logging configuration to suppress health check and pre-flight noise
"""

import logging
import logging.config
from typing import Any, Dict

QUIET_PATHS = ("/healthz", "/metrics")


class HealthCheckFilter(logging.Filter):
    """Filter to suppress health, metrics and pre-flight access logs."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Filter out health check and OPTIONS requests from uvicorn access logs."""
        if record.name == "uvicorn.access":
            message = record.getMessage()
            if '"OPTIONS ' in message:
                return False
            if "GET" in message and any(path in message for path in QUIET_PATHS):
                return False
        return True


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """Get logging configuration with health check suppression."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "health_check_filter": {
                "()": HealthCheckFilter
            }
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "access": {
                "format": "%(message)s"
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout"
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
                "filters": ["health_check_filter"]
            }
        },
        "loggers": {
            "uvicorn": {
                "handlers": ["default"],
                "level": level,
                "propagate": False
            },
            "uvicorn.error": {
                "handlers": ["default"],
                "level": level,
                "propagate": False
            },
            "uvicorn.access": {
                "handlers": ["access"],
                "level": level,
                "propagate": False
            },
            "policy_update": {
                "handlers": ["default"],
                "level": level,
                "propagate": False
            }
        },
        "root": {
            "level": level,
            "handlers": ["default"]
        }
    }


def configure_logging(level: str = "INFO") -> None:
    logging.config.dictConfig(get_logging_config(level))
