import sys
from logging.config import dictConfig
from typing import Any

from peticao.core.config import settings

PETICAO_FORMAT = "%(levelprefix)s %(asctime)s [%(name)s] %(message)s"


def build_logging_config(level: str | None = None) -> dict[str, Any]:
    """dictConfig for uvicorn plus the application loggers.

    Application records go to stdout at ``level`` (``settings.log_level`` by
    default). Storage clients and the retry executor get their own handler on
    stderr so failed S3/Supabase calls stay visible when stdout is filtered.
    """
    app_level = (level or settings.log_level).upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": "uvicorn.logging.DefaultFormatter",
                "fmt": PETICAO_FORMAT,
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "access": {
                "()": "uvicorn.logging.AccessFormatter",
                "fmt": '%(levelprefix)s %(asctime)s [%(name)s] "%(request_line)s" %(status_code)s',
            },
        },
        "handlers": {
            "default": {"class": "logging.StreamHandler", "formatter": "default", "stream": sys.stderr},
            "access": {"class": "logging.StreamHandler", "formatter": "access", "stream": sys.stdout},
            "peticao": {"class": "logging.StreamHandler", "formatter": "default", "stream": sys.stdout},
            "storage": {"class": "logging.StreamHandler", "formatter": "default", "stream": sys.stderr},
        },
        "loggers": {
            "root": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.error": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
            "peticao": {"handlers": ["peticao"], "level": app_level, "propagate": False},
            "peticao.services.storage": {"handlers": ["storage"], "level": "INFO", "propagate": False},
            "peticao.services.retry": {"handlers": ["storage"], "level": "WARNING", "propagate": False},
            "botocore": {"handlers": ["default"], "level": "WARNING", "propagate": False},
            "httpx": {"handlers": ["default"], "level": "WARNING", "propagate": False},
        },
    }


def setup_logging(level: str | None = None) -> None:
    dictConfig(build_logging_config(level))
