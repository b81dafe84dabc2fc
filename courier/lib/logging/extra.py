import json
import logging
import sys
import typing as t

import pygments
from pygments.formatters import Terminal256Formatter
from pygments.lexers.data import JsonLexer  # pyright: ignore [reportMissingTypeStubs]
from pygments.style import Style

from courier.lib.json import LenientJSONEncoder

from .style import LogStyle

# attributes every record carries, anything else came in through `extra=`
RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "log_color", "taskName"}


def record_extra(record: logging.LogRecord) -> dict[str, t.Any]:
    return {k: v for k, v in record.__dict__.items() if k not in RECORD_ATTRS}


class ExtraFormatter(logging.Formatter):
    """
    Formats with `base`, then appends the record's `extra={...}` payload as
    JSON. On a terminal the payload is highlighted with pygments unless the
    base formatter was told `no_color`.
    """

    def __init__(
        self,
        base: type[logging.Formatter],
        format: str | None = None,
        datefmt: str | None = None,
        indent: bool = True,
        pyg_style: type[Style] = LogStyle,
        stream: t.TextIO | None = None,
        **kwargs: t.Any,
    ):
        super().__init__(format, datefmt)
        self.base = base(format, datefmt=datefmt, **kwargs)
        self.indent = indent
        self.pyg_style = pyg_style
        self.stream = stream or sys.stderr

    @property
    def highlight(self) -> bool:
        if getattr(self.base, "no_color", False):
            return False
        isatty = getattr(self.stream, "isatty", None)
        return bool(isatty and isatty())

    def format(self, record: logging.LogRecord) -> str:
        message = self.base.format(record)
        extra = record_extra(record)
        if not extra:
            return message

        payload = json.dumps(extra, sort_keys=True, indent=4 if self.indent else None, cls=LenientJSONEncoder)
        if self.highlight:
            hl = pygments.highlight  # pyright: ignore [reportUnknownMemberType, reportUnknownVariableType]
            payload = hl(payload, JsonLexer(), Terminal256Formatter(style=self.pyg_style)).strip()
        return f"{message} {payload}"
