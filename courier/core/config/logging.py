import typing as t

import pydantic as p

from .base import BaseSettings

LogLevel = t.Literal["NOTSET", "TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class FormatterSettings(BaseSettings):
    """An `ExtraFormatter` wrapping a colorlog formatter given as `base`."""

    factory: t.Literal["courier.lib.logging.ExtraFormatter"] = p.Field(alias="()")
    base: str = "ext://colorlog.ColoredFormatter"
    format: str | None = None
    datefmt: str | None = None
    log_colors: dict[str, str] = p.Field(default_factory=dict)
    no_color: bool = False
    indent: bool = True


class HandlerSettings(BaseSettings):
    class_: t.Literal["colorlog.StreamHandler", "logging.StreamHandler"] = p.Field(alias="class")
    formatter: str
    level: LogLevel = "NOTSET"
    stream: str = "ext://sys.stderr"


class LoggerSettings(BaseSettings):
    level: LogLevel = "NOTSET"
    propagate: bool = True
    handlers: list[str] | None = None


class RootLoggerSettings(BaseSettings):
    handlers: list[str]
    level: LogLevel = "WARNING"


class LoggingSettings(BaseSettings):
    """Mirrors the `logging.config.dictConfig` schema, restricted to what courier configures."""

    version: t.Literal[1] = 1
    disable_existing_loggers: bool = False
    formatters: dict[str, FormatterSettings]
    handlers: dict[str, HandlerSettings]
    root: RootLoggerSettings
    loggers: dict[str, LoggerSettings] = p.Field(default_factory=dict)

    @p.model_validator(mode="after")
    def check_references(self) -> "LoggingSettings":
        for name, handler in self.handlers.items():
            if handler.formatter not in self.formatters:
                raise ValueError(f"handler {name!r} uses unknown formatter {handler.formatter!r}")
        for name in [*self.root.handlers, *(h for lg in self.loggers.values() for h in lg.handlers or ())]:
            if name not in self.handlers:
                raise ValueError(f"unknown handler {name!r}")
        return self
