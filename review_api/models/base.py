"""Shared pydantic base for models exchanged with the web client."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Model serialized with camelCase keys, constructible with snake_case names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
