"""
Logging configuration for production
"""
import logging
import sys
from pathlib import Path
from dabil.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(logs_dir: str = "logs") -> logging.Logger:
    """Console + app.log + error.log on the root logger. Safe to call twice."""
    root_logger = logging.getLogger()
    if getattr(root_logger, "_dabil_configured", False):
        return root_logger

    path = Path(logs_dir)
    path.mkdir(exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    root_logger.setLevel(logging.INFO if not settings.DEBUG else logging.DEBUG)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    # Ledger failures end up here as well as in app.log
    error_handler = logging.FileHandler(path / "error.log")
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(formatter)

    file_handler = logging.FileHandler(path / "app.log")
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)

    root_logger.addHandler(console_handler)
    root_logger.addHandler(error_handler)
    root_logger.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    root_logger._dabil_configured = True
    return root_logger
