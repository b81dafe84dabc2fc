"""JSON with encoders for the values that show up in queued rows and log payloads."""

from __future__ import annotations

import datetime
import enum
import functools
import json as pyjson
import pathlib
import typing as t

import pydantic as p

JSONValue = str | int | float | bool | None | list["JSONValue"] | dict[str, "JSONValue"]

Encoder = t.Callable[[t.Any], JSONValue]

ENCODERS: dict[type, Encoder] = {
    # datetime before date, it is a subclass
    datetime.datetime: lambda o: o.isoformat(),
    datetime.date: lambda o: o.isoformat(),
    datetime.timedelta: lambda o: o.total_seconds(),
    enum.Enum: lambda o: o.value,
    pathlib.PurePath: str,
    p.BaseModel: lambda o: o.model_dump(mode="json", by_alias=True),
    set: lambda o: sorted(o, key=repr),
    frozenset: lambda o: sorted(o, key=repr),
}


class JSONEncoder(pyjson.JSONEncoder):
    encoders: t.ClassVar[dict[type, Encoder]] = ENCODERS

    def default(self, o: t.Any) -> JSONValue:
        for tp, encode in self.encoders.items():
            if isinstance(o, tp):
                return encode(o)
        return super().default(o)


class LenientJSONEncoder(JSONEncoder):
    """Never fails; anything unknown is rendered with `repr`."""

    def default(self, o: t.Any) -> JSONValue:
        try:
            return super().default(o)
        except TypeError:
            return repr(o)


dumps = functools.partial(pyjson.dumps, cls=JSONEncoder)
loads = pyjson.loads
