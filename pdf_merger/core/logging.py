import logging
from logging import Logger

from .config import get_settings

LOG_FORMAT = "[%(levelname)s] %(asctime)s | %(name)s | %(message)s"


def configure_logging() -> Logger:
    """
    إرجاع مسجل الخدمة، مع تهيئته عند أول استدعاء فقط.

    المستوى يؤخذ من LOG_LEVEL في الإعدادات؛ القيمة غير المعروفة تعود إلى INFO.
    """
    settings = get_settings()

    logger = logging.getLogger(settings.app_name)
    if logger.handlers:
        return logger

    level = logging.getLevelName(settings.log_level.upper())
    logger.setLevel(level if isinstance(level, int) else logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger.addHandler(handler)
    logger.propagate = False

    return logger
