import logging

from .settings import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging() -> None:
    """Root logging for the API process, level taken from settings"""
    settings = get_settings()
    level = logging.DEBUG if settings.debug else logging.getLevelName(settings.log_level.upper())
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # audit events always go out, whatever the app level is
    logging.getLogger("priceguide.audit").setLevel(logging.INFO)
