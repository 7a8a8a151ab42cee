# jobportal/core/logging.py
import logging

from jobportal.core.config import settings

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s – %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install the root handler once; later calls only adjust the level."""
    level = (level or settings.LOG_LEVEL).upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    root.setLevel(level)
