import datetime
import inspect
import logging
import logging.config
import typing as t

TimestampProvider = t.Callable[..., datetime.datetime]

TRACE = 5


class LoggingProvider(object):
    """
    Applies the `logging` settings once, at boot, and hands out loggers.

    Also registers a TRACE level below DEBUG, which the logging config may
    reference by name.
    """

    def __init__(self, config: dict[str, t.Any], debug: bool):
        logging.addLevelName(TRACE, "TRACE")
        logging.config.dictConfig(config)
        logging.captureWarnings(debug)

    @staticmethod
    def get_logger(name: str | None = None) -> logging.Logger:
        """Logger for `name`, or for the calling module when no name is given."""
        if name is None:
            frame = inspect.stack()[1].frame
            name = frame.f_globals.get("__name__", "courier")
        return logging.getLogger(name)
