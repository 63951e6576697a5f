# hudcaption/LoggingSetup.py
import sys
import logging
from pathlib import Path
from logging.handlers import RotatingFileHandler

LOG_FILE_NAME = "hudcaption.log"
LOG_FORMAT = '[%(asctime)s] [%(levelname)s] %(name)s: %(message)s'


def setup_logging(logs_dir: Path, verbose: bool = False, is_frozen: bool = False) -> Path:
    """
    Configure root logging for the caption server.

    Creates the log directory, installs a rotating file handler and, unless
    running frozen, a console handler on stdout.

    Args:
        logs_dir: Directory to store log files
        verbose: If True, set DEBUG level; otherwise INFO
        is_frozen: If True, skip console handler (frozen app has no console)

    Returns:
        Path of the active log file
    """
    logs_dir.mkdir(parents=True, exist_ok=True)

    level = logging.DEBUG if verbose else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    # 10MB per file, keep 5 files
    log_file = logs_dir / LOG_FILE_NAME
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    if not is_frozen:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    # websockets logs every frame at DEBUG
    logging.getLogger("websockets").setLevel(logging.INFO if verbose else logging.WARNING)

    logging.info(f"Logging initialized: level={logging.getLevelName(level)}, frozen={is_frozen}")
    return log_file
