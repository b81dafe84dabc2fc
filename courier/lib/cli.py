from __future__ import annotations

import enum
import pathlib
import typing as t

import click
import pydantic as p
from click import *  # noqa: F401, F403 # pyright: ignore [reportWildcardImportFromLibrary]

# Thin wrapper around Click: everything in `click` is re-exported, plus the
# parameter types the courier commands need.

E = t.TypeVar("E", bound=enum.Enum)


class EnumType(click.ParamType, t.Generic[E]):
    """Parameter whose value is a member of `enum`, matched by value without regard to case."""

    def __init__(self, enum: type[E]):
        self.enum = enum
        self.name = enum.__name__

    def get_metavar(self, param: click.Parameter, *args: t.Any, **kwargs: t.Any) -> str:
        return "[" + "|".join(str(e.value) for e in self.enum) + "]"

    def convert(self, value: t.Any, param: click.Parameter | None, ctx: click.Context | None) -> E:
        if isinstance(value, self.enum):
            return value
        for member in self.enum:
            if str(member.value).lower() == str(value).lower():
                return member
        self.fail(f"{value!r} is not one of {', '.join(str(e.value) for e in self.enum)}", param, ctx)


class FileURLParamType(click.ParamType):
    """
    A local path or `file://` URL, returned as an absolute `FileUrl`. The
    path must exist; directories are refused unless `dir_ok`.
    """

    name = "PATH OR URL"

    def __init__(self, dir_ok: bool = False):
        self.dir_ok = dir_ok

    def convert(self, value: t.Any, param: click.Parameter | None, ctx: click.Context | None) -> p.FileUrl:
        if isinstance(value, p.FileUrl):
            return value

        text = str(value)
        if "://" in text:
            url = p.AnyUrl(text)
            if url.scheme != "file" or not url.path:
                self.fail(f"{text}: only file:// URLs are accepted", param, ctx)
            path = pathlib.Path(url.path)
        else:
            path = pathlib.Path(text).expanduser()

        if not path.exists():
            self.fail(f"{text}: no such file or directory", param, ctx)
        if path.is_dir() and not self.dir_ok:
            self.fail(f"{text}: is a directory", param, ctx)
        return p.FileUrl(f"file://{path.absolute()}")
