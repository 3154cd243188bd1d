import logging
from pprint import pformat
from typing import Any

from pydantic import BaseModel

DEFAULT_LOGGER_NAME = "kingraph"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class PprintLogger:
    """A logger wrapper that pretty-prints edges, results and other structures.

    Strings pass through untouched so %-style arguments keep working.
    Pydantic models (edges, deletion results) are rendered with
    model_dump_json(); other non-string objects go through pformat.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def _format_message(self, msg: Any, pprint: bool = True) -> str:
        if isinstance(msg, str) or not pprint:
            return str(msg)
        if isinstance(msg, BaseModel):
            return msg.model_dump_json(indent=2)
        return pformat(msg, width=120, depth=None)

    def debug(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._logger.debug(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def info(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._logger.info(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def warning(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._logger.warning(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def error(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._logger.error(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def exception(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._logger.exception(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def __getattr__(self, name: str) -> Any:
        """Delegate any other attributes to the underlying logger."""
        return getattr(self._logger, name)


def setup_logging(name: str = DEFAULT_LOGGER_NAME, level: int | str = logging.INFO) -> PprintLogger:
    """Set up the named logger (once) and return a PprintLogger around it.

    `level` accepts either a logging constant or a level name such as
    "DEBUG", as found in the engine configuration file.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return PprintLogger(logger)
