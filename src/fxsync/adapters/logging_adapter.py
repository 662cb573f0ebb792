import logging

from fxsync.core.interfaces.logging import LoggingPort
from fxsync.core.logging_config import level_from_name


class LoggingAdapter(LoggingPort):
    """LoggingPort backed by a named stdlib logger.

    Adds no handlers of its own; records propagate to the root handlers
    installed by `configure_logging`, which also stamp the run id.
    """

    def __init__(self, name: str = "fxsync", log_level: int | str = logging.INFO):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level_from_name(log_level))
        self.logger.propagate = True

    def info(self, msg: str, *args):
        self.logger.info(msg, *args)

    def warning(self, msg: str, *args):
        self.logger.warning(msg, *args)

    def error(self, msg: str, *args):
        self.logger.error(msg, *args)

    def debug(self, msg: str, *args):
        self.logger.debug(msg, *args)
