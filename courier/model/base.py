import pydantic as p


class BaseModel(p.BaseModel):
    # aliases are the external names (YAML keys, dictConfig keys), so dump by them
    model_config = p.ConfigDict(serialize_by_alias=True, validate_by_name=True, validate_by_alias=True)
