import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from .utils.paths import get_log_dir

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Handlers added by the last setup_logging call
_installed_handlers: List[logging.Handler] = []


def setup_logging(log_file: Optional[Union[str, Path]] = None, level: int = logging.INFO) -> Path:
    """Sets up console and daily file logging for the steamswitch package.

    Calling it again replaces the handlers from the previous call.
    Returns the log file path.
    """
    if log_file is None:
        log_file = get_log_dir() / f"steamswitch_{datetime.now():%Y%m%d}.log"
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT)
    package_logger = logging.getLogger("steamswitch")
    package_logger.setLevel(level)

    for handler in _installed_handlers:
        package_logger.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    for handler in (logging.StreamHandler(), logging.FileHandler(log_file, encoding='utf-8')):
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)
        _installed_handlers.append(handler)

    return log_file
