import logging
import logging.handlers
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(log_level: str = "INFO", log_dir: Optional[Path] = None) -> None:
    """Configure root logging for the league engine command-line tools.

    Writes everything at DEBUG to ``logs/league_engine.log`` (rotated at
    5MB, 3 backups) and *log_level* and above to the console. Calling it
    again once handlers exist does nothing.
    """
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    log_dir = log_dir or Path(__file__).parent.parent / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger.setLevel(logging.DEBUG)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    file_handler = logging.handlers.RotatingFileHandler(
        log_dir / "league_engine.log", maxBytes=5 * 1024 * 1024, backupCount=3
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logging.getLogger(__name__).info(
        "Logging initialized (level=%s, dir=%s)", log_level, log_dir
    )
