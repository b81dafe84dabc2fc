"""
Settings sources: one YAML file per top-level settings field, looked up under
the config root and then under `env.d/<env>/`, plus `-o key.path=value`
command line overrides.
"""

import functools
import typing as t
from pathlib import Path

import pydantic as p
import yaml
from pydantic_settings import PydanticBaseSettingsSource
from pydantic_settings import SettingsError

import courier.lib.util as util
from courier.model import DeploymentEnvironment

# init kwargs that steer the sources instead of being read from them
BOOT_KEYS = frozenset({"env", "root", "override"})


class SectionSource(PydanticBaseSettingsSource):
    """A source that yields whole top-level sections, keyed by field name."""

    def sections(self) -> dict[str, t.Any]:
        raise NotImplementedError

    def get_field_value(self, field: p.fields.FieldInfo, field_name: str) -> tuple[t.Any, str, bool]:
        return self.sections().get(field_name), field_name, True

    def __call__(self) -> dict[str, t.Any]:
        fields = set(self.settings_cls.model_fields) - BOOT_KEYS
        return {k: v for k, v in self.sections().items() if k in fields}


class OverrideSettingsSource(SectionSource):
    """
    `-o sync.min_interval_seconds=60` becomes `{"sync": {"min_interval_seconds": 60}}`.

    Values are parsed as YAML scalars. The partial mappings produced here are
    deep-merged by pydantic-settings over the YAML sources that follow.
    """

    @functools.cache
    def sections(self) -> dict[str, t.Any]:
        merged: dict[str, t.Any] = {}
        for option in self.current_state.get("override", ()):
            key, sep, raw = option.partition("=")
            if not sep or not key.strip():
                raise SettingsError(f"override must look like key.path=value: {option!r}")
            try:
                value: t.Any = yaml.safe_load(raw.strip())
            except yaml.YAMLError as e:
                raise SettingsError(f"could not parse override {option!r}") from e

            for part in reversed(key.strip().split(".")):
                value = {part: value}
            merged = util.deep_update(merged, value)
        return merged


class YAMLCascadingSettingsSource(SectionSource):
    """
    `<root>/<field>.yaml`, replaced wholesale by `<root>/env.d/<env>/<field>.yaml`
    when that exists. The local environment reads the root only.
    """

    @property
    def directories(self) -> list[Path]:
        root: p.AnyUrl = self.current_state["root"]
        env: DeploymentEnvironment = self.current_state["env"]
        if root.scheme != "file" or root.path is None:
            raise SettingsError(f"config root must be a file:// URL, got {root}")

        base = Path(root.path)
        if env is DeploymentEnvironment.Local:
            return [base]
        return [base, base / "env.d" / env.value]

    @functools.cache
    def sections(self) -> dict[str, t.Any]:
        found: dict[str, t.Any] = {}
        for name in set(self.settings_cls.model_fields) - BOOT_KEYS:
            for directory in reversed(self.directories):
                path = directory / f"{name}.yaml"
                if path.exists():
                    try:
                        found[name] = yaml.safe_load(path.read_text(encoding="utf8")) or {}
                    except yaml.YAMLError as e:
                        raise SettingsError(f"could not parse {path}") from e
                    break
        return found
