import typing as t

from pydantic_settings import BaseSettings as PydanticBaseSettings
from pydantic_settings import SettingsConfigDict

from courier.model import BaseModel


class BaseSettings(PydanticBaseSettings, BaseModel):  # pyright: ignore [reportIncompatibleVariableOverride]
    # keep stray variables such as PATH or USER_ID out of standalone sections
    model_config = SettingsConfigDict(
        env_prefix="COURIER_", serialize_by_alias=True, validate_by_name=True, validate_by_alias=True
    )

    def __init__(self, cf: dict[str, t.Any] | None = None, **kwargs: t.Any):
        # a section can be built straight from its parsed YAML mapping
        if cf is not None:
            kwargs = {**cf, **kwargs}
        super().__init__(**kwargs)
