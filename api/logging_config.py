"""
Logging configuration for stdout and file output.
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def setup_logging(
    log_dir: Optional[Union[Path, str]] = None,
    level: Union[int, str] = logging.INFO,
) -> Optional[Path]:
    """
    Configure the root logger with stdout and an optional file handler.

    When log_dir is provided, writes to a datetime-stamped file inside it
    (e.g. logs/2026-05-02_07-30-00.log) and returns that path.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # clear existing handlers to avoid duplicates on reload
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    root_logger.addHandler(stdout_handler)

    # asyncpg logs every pool connection at INFO
    logging.getLogger("asyncpg").setLevel(logging.WARNING)

    if log_dir is None:
        return None

    dir_path = Path(log_dir)
    dir_path.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(tz=timezone.utc).strftime(LOG_FILE_TIMESTAMP_FORMAT)
    file_path = dir_path / f"{timestamp}.log"
    file_handler = logging.FileHandler(file_path)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)
    return file_path
