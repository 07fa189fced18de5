"""
Logging setup shared by the API process and the client SDK
"""
import logging

from analytics_dashboard.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logger once; repeated calls only adjust the level"""
    root = logging.getLogger()
    root.setLevel(level or settings.LOG_LEVEL)

    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
