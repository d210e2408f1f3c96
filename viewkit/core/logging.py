import os
import sys
from typing import List, Optional

from loguru import logger

from .config import GeneralSettings

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def setup_logging(settings: Optional[GeneralSettings] = None, **overrides) -> List[int]:
    """
    Configure loguru sinks from the ``general`` settings section.

    Keyword overrides replace individual settings (``debug_mode``,
    ``log_dir``, ``log_to_file``). Returns the ids of the added sinks.
    """
    settings = (settings or GeneralSettings()).model_copy(update=overrides)
    logger.remove()

    level = "DEBUG" if settings.debug_mode else "INFO"
    sinks = [logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT)]

    if settings.log_to_file:
        os.makedirs(settings.log_dir, exist_ok=True)
        sinks.append(logger.add(
            os.path.join(settings.log_dir, "viewkit_{time}.log"),
            rotation="10 MB",
            retention="1 week",
            level="DEBUG",
        ))

    logger.info(f"Logging initialized at {level}" + (f", files in '{settings.log_dir}'" if settings.log_to_file else ""))
    return sinks
