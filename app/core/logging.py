import logging
import os

from app.core.config import settings


def setup_early_logging():
    os.makedirs(settings.LOG_DIR, exist_ok=True)
    early_logger = logging.getLogger("startup")
    early_logger.setLevel(logging.ERROR)
    if early_logger.handlers:
        return early_logger
    fh = logging.FileHandler(os.path.join(settings.LOG_DIR, "startup.log"))
    fh.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(message)s"))
    early_logger.addHandler(fh)
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    )
    early_logger.addHandler(console_handler)
    return early_logger
